import pytest
import numpy as np

from TKPCode.InputDataTKP import TKPInstance
from TKPCode.tkp_config import default_config as TabuConfig


def build_random_instance(seed: int, n: int = 12, horizon: int = 10, capacity: int = 20,
                          max_profit: int = 30, max_demand: int = 12) -> TKPInstance:
    """随机小实例: start 可以为 0, end >= 1"""
    gen = np.random.default_rng(seed)
    records = []
    for _ in range(n):
        start = int(gen.integers(0, horizon))
        end = int(gen.integers(max(start, 1), horizon + 1))
        records.append((int(gen.integers(0, max_profit + 1)), int(gen.integers(0, max_demand + 1)), start, end))
    return TKPInstance.from_records(capacity, records, name=f"random_{seed}", seed=seed)


@pytest.fixture
def single_order_instance():
    """一个订单, 可以直接放下"""
    return TKPInstance.from_records(5, [(10, 5, 1, 1)], name="single", seed=1)


@pytest.fixture
def conflicting_instance():
    """两个订单在时间槽 2, 3 上冲突, 只能选一个"""
    return TKPInstance.from_records(10, [(9, 6, 1, 3), (5, 6, 2, 4)], name="conflict", seed=3)


@pytest.fixture
def random_instance():
    return build_random_instance(seed=42)


@pytest.fixture
def make_instance():
    return build_random_instance


@pytest.fixture
def quiet_config(tmp_path):
    """不输出到控制台, 日志目录放在临时目录"""
    return TabuConfig.copy_with(VERBOSE=False, LOG_DIR=str(tmp_path / "logs"))
