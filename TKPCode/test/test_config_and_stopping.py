import time
import inspect

import pytest
from alns.stop import MaxIterations

from TKPCode.tkp_config import TabuConfig, default_config
from TKPCode.tabu_search import tabu_search
from TKPCode.combined_stopping import CombinedStoppingCriterion, create_search_budget


def test_default_config_is_valid():
    default_config.validate()
    assert default_config.ASPIRATION_THRESHOLD == 50
    assert default_config.GREEDY_TOP_K == 5


def test_search_params_match_entry_point():
    params = default_config.get_search_params()
    signature = inspect.signature(tabu_search)
    assert set(params) <= set(signature.parameters)


@pytest.mark.parametrize("field, value", [
    ("ITERATIONS", -1),
    ("TABU_CAPACITY", -3),
    ("NEIGHBORHOOD_SIZE", 0),
    ("ASPIRATION_THRESHOLD", -1),
    ("GREEDY_TOP_K", 0),
    ("REPAIR_MAX_ATTEMPTS", 0),
    ("MAX_FILTER_WORKERS", 0),
])
def test_validate_rejects(field, value):
    with pytest.raises(ValueError):
        default_config.copy_with(**{field: value}).validate()


def test_copy_with_does_not_touch_default():
    cfg = default_config.copy_with(ITERATIONS=7)
    assert cfg.ITERATIONS == 7
    assert default_config.ITERATIONS == TabuConfig().ITERATIONS


def test_update_from_dict_rejects_unknown_keys():
    cfg = TabuConfig()
    cfg.update_from_dict({"SEED": 3})
    assert cfg.SEED == 3
    with pytest.raises(KeyError):
        cfg.update_from_dict({"NOT_A_FIELD": 1})


def test_to_dict_round_trip():
    cfg = TabuConfig(ITERATIONS=12)
    assert TabuConfig(**cfg.to_dict()) == cfg


def test_iteration_budget_only():
    stop = create_search_budget(3)
    assert isinstance(stop, MaxIterations)
    assert [stop(None, None, None) for _ in range(4)] == [False, False, False, True]


def test_zero_iterations_stop_immediately():
    stop = create_search_budget(0)
    assert stop(None, None, None)


def test_runtime_budget_triggers():
    stop = create_search_budget(10**6, max_runtime=0.01)
    assert isinstance(stop, CombinedStoppingCriterion)
    assert not stop(None, None, None)
    time.sleep(0.05)
    assert stop(None, None, None)
    status = stop.get_status()
    assert status["triggered"] == "MaxRuntime"
    assert status["checks"] == 2
    assert status["criteria_types"] == ["MaxIterations", "MaxRuntime"]


def test_combined_iteration_budget_triggers_first():
    stop = create_search_budget(1, max_runtime=3600)
    assert not stop(None, None, None)
    assert stop(None, None, None)
    assert stop.get_status()["triggered"] == "MaxIterations"


def test_invalid_budgets():
    with pytest.raises(ValueError):
        create_search_budget(-1)
    with pytest.raises(ValueError):
        CombinedStoppingCriterion()
