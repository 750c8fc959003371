"""
tabu_search
===========

模块定位
    禁忌搜索主循环。TabuSearch 封装一次搜索运行的全部状态 (私有实例副本、
    邻域生成器、禁忌表、统计计数), tabu_search() 是面向调用方的单一入口。

单轮迭代
    1. 由 NeighborhoodGenerator 生成 neighborhood_size 个候选
       (RepairExhausted 的候选直接丢弃并计数)
    2. 过滤不可行与禁忌候选 (可选线程池并行, 结果按批次顺序收集)
    3. 剩余候选中取 total_profit 最大者, 并列时取批次中最靠前者;
       无剩余候选时 current 保持不变
    4. current 优于 best 时刷新 best 并通知 observer(elapsed, profit, sample)
    5. 特赦: current 相对本轮开始前的 best 提升超过 aspiration_threshold 时
       不写入禁忌表, 否则写入
    6. 清空本轮"已提供"订单集合

终止
    tabu_search() 只使用固定迭代预算 (alns.stop.MaxIterations);
    TabuSearch.iterate() 接受任意 alns 风格的停止准则 (见 combined_stopping)。

可复现性
    构造 TabuSearch 时深拷贝实例 (连同随机流), 同一实例对象重复运行结果一致,
    调用方的实例不会被修改。
"""

# =========================
# 标准库
# =========================
import time
import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

# =========================
# 第三方库
# =========================
from alns.stop import MaxIterations

# =========================
# 项目内部模块
# =========================
from .InputDataTKP import TKPInstance
from .tkpopt import SolutionState
from .tabu_memory import TabuMemory
from .neighbor_operators import NeighborhoodGenerator, RepairExhausted
from .tabutrack import NullSink
from .tkp_config import TabuConfig, default_config

logger = logging.getLogger(__name__)

# 候选过滤结果
_ADMISSIBLE = "admissible"
_INFEASIBLE = "infeasible"
_TABU = "tabu"


class TabuSearch:
    """单次禁忌搜索运行"""

    def __init__(
        self,
        instance: TKPInstance,
        tabu_capacity: int,
        neighborhood_size: int,
        enable_cost_benefit: bool = True,
        enable_slack_fill: bool = True,
        aspiration_threshold: int = 50,
        observer=None,
        config: Optional[TabuConfig] = None,
    ):
        self.config = config or default_config
        if neighborhood_size < 1:
            raise ValueError(f"neighborhood_size must be >= 1, got {neighborhood_size}")
        if aspiration_threshold < 0:
            raise ValueError(f"aspiration_threshold must be >= 0, got {aspiration_threshold}")

        self.instance = instance.clone()
        self.neighborhood_size = neighborhood_size
        self.aspiration_threshold = aspiration_threshold
        self.tabu = TabuMemory(tabu_capacity)
        self.generator = NeighborhoodGenerator(
            self.instance, enable_cost_benefit, enable_slack_fill, self.config
        )
        self.observer = observer if observer is not None else NullSink()
        self._on_iteration = getattr(self.observer, "on_iteration", None)

        self.stats: Counter = Counter()
        self.elapsed: float = 0.0

    # ------------------------------------------------------------------
    # 候选生成与过滤
    # ------------------------------------------------------------------
    def _generate_batch(self, current: SolutionState) -> List[SolutionState]:
        batch = []
        for _ in range(self.neighborhood_size):
            try:
                batch.append(self.generator.generate(current))
            except RepairExhausted as e:
                logger.debug(f"候选被丢弃: {e}")
                self.stats["repair_dropped"] += 1
        self.stats["generated"] += len(batch)
        return batch

    def _classify(self, candidate: SolutionState) -> str:
        if not candidate.feasible:
            return _INFEASIBLE
        if candidate in self.tabu:
            return _TABU
        return _ADMISSIBLE

    def _filter(self, candidates: List[SolutionState]) -> List[SolutionState]:
        """保留可行且不在禁忌表中的候选, 顺序与批次一致"""
        if self.config.PARALLEL_FILTER and len(candidates) > 1:
            workers = min(self.config.MAX_FILTER_WORKERS, len(candidates))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                labels = list(pool.map(self._classify, candidates))
        else:
            labels = [self._classify(c) for c in candidates]

        admissible = []
        for candidate, label in zip(candidates, labels):
            if label == _ADMISSIBLE:
                admissible.append(candidate)
            elif label == _INFEASIBLE:
                self.stats["infeasible_dropped"] += 1
            else:
                self.stats["tabu_dropped"] += 1
        return admissible

    # ------------------------------------------------------------------
    # 主循环
    # ------------------------------------------------------------------
    def iterate(self, stop, initial: Optional[Iterable[int]] = None) -> SolutionState:
        """
        运行搜索直到 stop(rng, best, current) 返回 True。
        initial 为初始选中订单下标, 缺省为全不选的基线解。
        """
        if initial is None:
            current = SolutionState.baseline(self.instance)
        else:
            current = SolutionState.from_selection(self.instance, initial)
            if not current.feasible:
                raise ValueError("initial selection violates the capacity")
        best = current

        if self.instance.n == 0:
            return best

        start = time.perf_counter()
        iteration = 0
        rng = self.instance.rng
        while not stop(rng, best, current):
            iteration += 1
            best_before = best

            admissible = self._filter(self._generate_batch(current))
            # 没有可接受的候选: current, best 与禁忌表都保持不变
            if admissible:
                # max 在并列时返回第一个, 即批次中下标最小者
                current = max(admissible, key=lambda s: s.total_profit)
                self.stats["accepted"] += 1

                if current.total_profit > best.total_profit:
                    best = current
                    self.stats["improvements"] += 1
                    sample = best.selected_orders()[: self.config.IMPROVEMENT_SAMPLE_SIZE]
                    self.observer(time.perf_counter() - start, best.total_profit, sample)

                if current.total_profit - best_before.total_profit > self.aspiration_threshold:
                    self.stats["aspiration_bypassed"] += 1
                else:
                    self.tabu.insert(current)

            self.generator.end_iteration()

            if self.config.VALIDATE_EVERY_ITERATION:
                current.check_consistency()
            if self._on_iteration is not None:
                self._on_iteration(iteration, current, best)

        self.stats["iterations"] = iteration
        self.elapsed = time.perf_counter() - start
        logger.info(
            f"{self.instance.name}: {iteration} iterations, best profit {best.total_profit}, "
            f"{self.elapsed:.3f}s"
        )
        return best

    def get_statistics(self) -> Dict[str, Any]:
        return {
            "iterations": self.stats["iterations"],
            "generated": self.stats["generated"],
            "repair_dropped": self.stats["repair_dropped"],
            "infeasible_dropped": self.stats["infeasible_dropped"],
            "tabu_dropped": self.stats["tabu_dropped"],
            "accepted": self.stats["accepted"],
            "aspiration_bypassed": self.stats["aspiration_bypassed"],
            "improvements": self.stats["improvements"],
            "operator_usage": dict(self.generator.usage),
            "elapsed_time": self.elapsed,
        }


def tabu_search(
    instance: TKPInstance,
    iterations: int,
    tabu_capacity: int,
    neighborhood_size: int,
    enable_cost_benefit: bool = True,
    enable_slack_fill: bool = True,
    aspiration_threshold: int = 50,
    observer=None,
    config: Optional[TabuConfig] = None,
) -> SolutionState:
    """
    在 instance 上运行 iterations 轮禁忌搜索, 返回找到的最优可行解。

    - 实例前置条件不满足时抛 ConfigurationError
    - 参数非法 (负迭代数、邻域为 0 等) 时抛 ValueError
    - 空实例或 iterations == 0 时返回基线解
    返回的解绑定在调用方传入的 instance 上。
    """
    instance.validate()
    config = config or default_config
    run_config = config.copy_with(
        ITERATIONS=iterations,
        TABU_CAPACITY=tabu_capacity,
        NEIGHBORHOOD_SIZE=neighborhood_size,
        ENABLE_COST_BENEFIT=enable_cost_benefit,
        ENABLE_SLACK_FILL=enable_slack_fill,
        ASPIRATION_THRESHOLD=aspiration_threshold,
    )
    run_config.validate()
    logger.info(f"tabu_search on {instance.name}: {run_config.get_search_params()}")

    if instance.n == 0 or iterations == 0:
        return SolutionState.baseline(instance)

    search = TabuSearch(
        instance,
        tabu_capacity=tabu_capacity,
        neighborhood_size=neighborhood_size,
        enable_cost_benefit=enable_cost_benefit,
        enable_slack_fill=enable_slack_fill,
        aspiration_threshold=aspiration_threshold,
        observer=observer,
        config=config,
    )
    best = search.iterate(MaxIterations(max_iterations=iterations))
    logger.debug(f"search statistics: {search.get_statistics()}")

    result = best.copy()
    result.instance = instance
    return result
