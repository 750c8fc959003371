import pytest

gp = pytest.importorskip("gurobipy")

from TKPCode.InputDataTKP import TKPInstance
from TKPCode.tabu_search import tabu_search


def _solve(instance, **kwargs):
    from TKPCode.exact_model import ExactModel
    try:
        model = ExactModel(instance, time_limit=30, **kwargs)
        return model, model.run()
    except gp.GurobiError as e:
        pytest.skip(f"gurobi unavailable: {e}")


def test_conflicting_orders(conflicting_instance):
    model, profit = _solve(conflicting_instance)
    assert profit == pytest.approx(9)
    assert model.selected_orders() == [0]
    # 时间槽 1..4 有活动订单
    assert len(model.cons_capacity) == 4


def test_empty_instance():
    _, profit = _solve(TKPInstance.from_records(10, []))
    assert profit == pytest.approx(0)


def test_tabu_search_never_beats_exact(make_instance, quiet_config):
    for seed in range(3):
        inst = make_instance(seed, n=14, capacity=15)
        _, exact = _solve(inst)
        best = tabu_search(inst, 200, 15, 10, config=quiet_config)
        assert best.total_profit <= exact + 1e-6
