import pytest
from alns.stop import MaxIterations

from TKPCode.InputDataTKP import TKPInstance, ConfigurationError
from TKPCode.tabu_search import TabuSearch, tabu_search
from TKPCode.tabutrack import TabuTracker
from TKPCode.neighbor_operators import RepairExhausted


def test_single_order_is_selected(single_order_instance, quiet_config):
    best = tabu_search(single_order_instance, 10, 5, 5, config=quiet_config)
    assert best.total_profit == 10
    assert best.selected_orders() == [0]
    assert best.feasible


def test_conflicting_orders_keep_the_better_one(conflicting_instance, quiet_config):
    best = tabu_search(conflicting_instance, 50, 5, 10, config=quiet_config)
    assert best.total_profit == 9
    assert best.selected_orders() == [0]


@pytest.mark.parametrize("iterations", [1, 20])
def test_same_slot_orders_keep_higher_profit(iterations, quiet_config):
    inst = TKPInstance.from_records(10, [(7, 6, 1, 1), (9, 6, 1, 1)], seed=15926535)
    best = tabu_search(inst, iterations, 5, 20, config=quiet_config)
    assert best.total_profit == 9
    assert best.selected_orders() == [1]


def test_zero_iterations_returns_baseline(conflicting_instance, quiet_config):
    best = tabu_search(conflicting_instance, 0, 5, 10, config=quiet_config)
    assert best.total_profit == 0
    assert best.num_selected() == 0


def test_empty_instance_returns_baseline(quiet_config):
    inst = TKPInstance.from_records(10, [], seed=1)
    best = tabu_search(inst, 100, 5, 10, config=quiet_config)
    assert best.total_profit == 0
    assert len(best.selected) == 0


def test_more_iterations_never_worse_with_random_flip_only(make_instance, quiet_config):
    inst = make_instance(21, n=25, capacity=18)
    kwargs = dict(enable_cost_benefit=False, enable_slack_fill=False, config=quiet_config)
    short = tabu_search(inst, 100, 10, 10, **kwargs)
    long = tabu_search(inst, 1000, 10, 10, **kwargs)
    assert long.total_profit >= short.total_profit


def test_runs_are_reproducible(make_instance, quiet_config):
    inst = make_instance(5, n=20)
    first = tabu_search(inst, 200, 20, 15, config=quiet_config)
    second = tabu_search(inst, 200, 20, 15, config=quiet_config)
    assert first == second
    # 调用方的实例与随机流不受影响
    assert first.instance is inst
    third = tabu_search(make_instance(5, n=20), 200, 20, 15, config=quiet_config)
    assert third == first


def test_result_is_feasible_and_consistent(make_instance, quiet_config):
    for seed in range(4):
        inst = make_instance(seed, n=18, capacity=16)
        best = tabu_search(inst, 150, 15, 12, config=quiet_config)
        assert best.feasible
        best.check_consistency()


def test_best_profit_is_non_decreasing(make_instance, quiet_config):
    inst = make_instance(8, n=20)
    tracker = TabuTracker(verbose=False)
    best = tabu_search(inst, 300, 10, 10, observer=tracker, config=quiet_config)
    history = tracker.best_profits
    assert len(history) == 300
    assert all(a <= b for a, b in zip(history, history[1:]))
    assert history[-1] == best.total_profit
    assert [p for _, _, p, _ in tracker.best_history] == sorted({p for _, _, p, _ in tracker.best_history})


def test_observer_receives_improvements(conflicting_instance, quiet_config):
    events = []
    tabu_search(conflicting_instance, 20, 5, 10,
                observer=lambda t, p, s: events.append((t, p, list(s))), config=quiet_config)
    assert events
    assert events[-1][1] == 9
    assert events[-1][2] == [0]
    assert all(t >= 0 for t, _, _ in events)


def test_aspiration_skips_tabu_insert(quiet_config):
    inst = TKPInstance.from_records(10, [(100, 1, 0, 1)], seed=0)
    search = TabuSearch(inst, tabu_capacity=5, neighborhood_size=3, aspiration_threshold=50, config=quiet_config)
    search.iterate(MaxIterations(1))
    assert search.get_statistics()["aspiration_bypassed"] == 1
    assert len(search.tabu) == 0

    strict = TabuSearch(inst, tabu_capacity=5, neighborhood_size=3, aspiration_threshold=1000, config=quiet_config)
    strict.iterate(MaxIterations(1))
    assert strict.get_statistics()["aspiration_bypassed"] == 0
    assert len(strict.tabu) == 1


def test_statistics_are_consistent(make_instance, quiet_config):
    inst = make_instance(13, n=15)
    search = TabuSearch(inst, tabu_capacity=10, neighborhood_size=8, config=quiet_config)
    search.iterate(MaxIterations(40))
    stats = search.get_statistics()
    assert stats["iterations"] == 40
    assert stats["generated"] + stats["repair_dropped"] == 40 * 8
    assert stats["accepted"] <= 40
    assert stats["infeasible_dropped"] + stats["tabu_dropped"] <= stats["generated"]
    assert sum(stats["operator_usage"].values()) == 40 * 8
    assert search.instance is not inst


def test_parallel_filter_matches_sequential(make_instance, quiet_config):
    inst = make_instance(17, n=20)
    sequential = tabu_search(inst, 100, 10, 12, config=quiet_config)
    parallel = tabu_search(inst, 100, 10, 12, config=quiet_config.copy_with(PARALLEL_FILTER=True))
    assert sequential == parallel


def test_validate_every_iteration(make_instance, quiet_config):
    inst = make_instance(19, n=15)
    best = tabu_search(inst, 50, 10, 10, config=quiet_config.copy_with(VALIDATE_EVERY_ITERATION=True))
    assert best.feasible


def test_initial_selection(conflicting_instance, quiet_config):
    search = TabuSearch(conflicting_instance, tabu_capacity=5, neighborhood_size=5, config=quiet_config)
    best = search.iterate(MaxIterations(0), initial=[1])
    assert best.selected_orders() == [1]
    with pytest.raises(ValueError):
        search.iterate(MaxIterations(0), initial=[0, 1])


@pytest.mark.parametrize("iterations, tabu_capacity, neighborhood_size", [
    (-1, 5, 5),
    (10, -1, 5),
    (10, 5, 0),
])
def test_invalid_parameters(conflicting_instance, quiet_config, iterations, tabu_capacity, neighborhood_size):
    with pytest.raises(ValueError):
        tabu_search(conflicting_instance, iterations, tabu_capacity, neighborhood_size, config=quiet_config)


def test_invalid_instance_is_rejected(quiet_config):
    inst = TKPInstance.from_records(10, [(1, 1, 4, 2)])
    with pytest.raises(ConfigurationError):
        tabu_search(inst, 10, 5, 5, config=quiet_config)


def test_empty_batch_leaves_tabu_memory_untouched(monkeypatch, quiet_config):
    inst = TKPInstance.from_records(10, [(100, 1, 0, 1)], seed=0)
    search = TabuSearch(inst, tabu_capacity=5, neighborhood_size=3, aspiration_threshold=50, config=quiet_config)

    def exhausted(current):
        raise RepairExhausted(1)

    monkeypatch.setattr(search.generator, "generate", exhausted)
    best = search.iterate(MaxIterations(2), initial=[0])
    assert best.selected_orders() == [0]
    assert len(search.tabu) == 0
    stats = search.get_statistics()
    assert stats["iterations"] == 2
    assert stats["repair_dropped"] == 6
    assert stats["accepted"] == 0


def test_repair_exhaustion_drops_candidates_and_continues(quiet_config):
    # 订单 0 单独就超出容量, 加入后修复必然失败
    inst = TKPInstance.from_records(10, [(5, 20, 0, 1), (3, 1, 0, 1)], seed=11)
    config = quiet_config.copy_with(REPAIR_MAX_ATTEMPTS=1)
    search = TabuSearch(inst, tabu_capacity=5, neighborhood_size=5, config=config)
    best = search.iterate(MaxIterations(50))
    stats = search.get_statistics()
    assert best.feasible
    assert best.total_profit == 3
    assert stats["repair_dropped"] > 0
    assert stats["iterations"] == 50

    result = tabu_search(inst, 50, 5, 5, config=config)
    assert result.feasible
    assert result.selected_orders() == [1]
