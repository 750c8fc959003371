"""
combined_stopping
=================

模块定位
    禁忌搜索的停止准则。核心入口 tabu_search() 只使用固定迭代预算
    (alns.stop.MaxIterations); 调用方 (例如命令行) 可以再叠加自己的截止时间
    (alns.stop.MaxRuntime), 通过 CombinedStoppingCriterion 以 OR 逻辑组合。

依赖 (来自 alns.stop)
    - MaxIterations
    - MaxRuntime
    两者均实现可调用协议: criterion(rng, best_state, current_state) -> bool

使用示例
    stop = create_search_budget(iterations=1000, max_runtime=60)
    while not stop(rng, best, current):
        ...
    print(stop.get_status())
"""

# =========================
# 标准库
# =========================
import time
import logging
from typing import Any, Dict, List, Optional

# =========================
# 外部库 (ALNS)
# =========================
from alns.stop import MaxIterations, MaxRuntime

logger = logging.getLogger(__name__)


class CombinedStoppingCriterion:
    """对若干单一停止准则执行 OR 逻辑: 任一触发即停止"""

    def __init__(self, *criteria: Any):
        if not criteria:
            raise ValueError("至少需要提供一个停止准则")
        self.criteria: List[Any] = list(criteria)
        self._start_time: Optional[float] = None
        self._triggered: Optional[str] = None
        self._checks: int = 0

    def add_criterion(self, criterion: Any) -> None:
        self.criteria.append(criterion)

    def __call__(self, rng, best, current) -> bool:
        if self._start_time is None:
            self._start_time = time.perf_counter()
        self._checks += 1

        # 所有准则都要被调用一次, 保证 MaxIterations 的内部计数与检查次数同步
        fired = [type(c).__name__ for c in self.criteria if c(rng, best, current)]
        if fired:
            self._triggered = fired[0]
            elapsed = time.perf_counter() - self._start_time
            logger.info(f"[STOP] {self._triggered} 触发停止 (elapsed={elapsed:.2f}s)")
            return True
        return False

    def get_status(self) -> Dict[str, Any]:
        elapsed_time = time.perf_counter() - self._start_time if self._start_time else 0.0
        return {
            "elapsed_time": elapsed_time,
            "triggered": self._triggered,
            "checks": self._checks,
            "criteria_types": [type(c).__name__ for c in self.criteria],
        }


def create_search_budget(iterations: int, max_runtime: Optional[float] = None):
    """
    迭代预算 [+ 运行时间上限]。
    未给出 max_runtime 时直接返回 MaxIterations (核心路径的唯一停止条件)。
    """
    if iterations < 0:
        raise ValueError(f"iterations must be >= 0, got {iterations}")
    budget = MaxIterations(max_iterations=iterations)
    if max_runtime is None:
        return budget
    return CombinedStoppingCriterion(budget, MaxRuntime(max_runtime=max_runtime))
