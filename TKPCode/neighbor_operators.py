"""
neighbor_operators.py

模块说明
- 本模块实现禁忌搜索使用的三种邻域算子, 以及统一的算子选择入口 NeighborhoodGenerator。
- 所有算子都满足同一契约: op(current) -> SolutionState
  * 从实例独占的随机流 (instance.rng) 消耗随机数
  * 在 current 的副本上通过 SolutionState.apply() 修改, 从不改动 current 本身
  * 产生的候选可能不可行, 不可行性通过 feasible 字段表达而不是异常
- 唯一的异常情况是随机翻转修复超过重试上限, 此时抛出 RepairExhausted,
  主循环捕获后丢弃该候选。

暴露接口
- RandomFlipRepair      随机翻转 + 有界迭代修复
- CostBenefitGreedy     按 profit/duration 排序的贪心插入
- SlackFillGreedy       按区间剩余容量 (slack) 排序的贪心插入
- NeighborhoodGenerator 在启用的算子中均匀选择, 并维护"本轮已提供"集合
- build_operators(...)  根据开关构造算子列表
"""

# -------------------------
# 标准库
# -------------------------
import math
import logging
from collections import Counter
from typing import List, Optional, Set

# -------------------------
# 第三方库
# -------------------------
import numpy as np

# -------------------------
# 包内模块
# -------------------------
from .InputDataTKP import TKPInstance, TKPError
from .tkpopt import SolutionState
from .tkp_config import TabuConfig, default_config

logger = logging.getLogger(__name__)


class RepairExhausted(TKPError):
    """随机翻转修复在 max_attempts 轮内未能得到可行解"""

    def __init__(self, attempts: int):
        super().__init__(f"repair exhausted after {attempts} attempts")
        self.attempts = attempts


def cost_benefit_key(profit: int, start: int, end: int) -> float:
    """
    单位时长利润 round(profit / (end - start)), 四舍五入 (0.5 向上)。
    start == end 的单槽订单没有有效时长, 排在最前 (key = +inf);
    其中利润为 0 的订单 (0/0) 排在最后 (key = 0)。
    """
    duration = end - start
    if duration == 0:
        return 0.0 if profit == 0 else math.inf
    return float(math.floor(profit / duration + 0.5))


class RandomFlipRepair:
    """
    随机翻转算子:
      1) 均匀随机选一个订单并翻转其选中状态
      2) 若结果不可行, 迭代修复: 第 d 轮执行 max(d+1, min_steps) 次扰动,
         每次以 1/(d+1) 的概率加入一个随机未选订单, 否则移除一个随机已选订单;
         一轮结束后若可行则返回, 否则 d += 1
      3) d 达到 max_attempts 仍不可行 → RepairExhausted
    """

    def __init__(self, instance: TKPInstance, max_attempts: int = 100, min_steps: int = 5):
        self.instance = instance
        self.max_attempts = max_attempts
        self.min_steps = min_steps
        self.__name__ = "random_flip_repair"

    def __call__(self, current: SolutionState) -> SolutionState:
        rng = self.instance.rng
        idx = int(rng.integers(self.instance.n))
        neighbor = current.copy().toggle(idx)
        neighbor.produced_by = self.__name__
        if neighbor.feasible:
            return neighbor
        return self.repair(neighbor)

    def repair(self, candidate: SolutionState) -> SolutionState:
        """原地修复 candidate 直到可行; 超过重试上限抛 RepairExhausted"""
        rng = self.instance.rng
        depth = 0
        while not candidate.feasible:
            if depth >= self.max_attempts:
                raise RepairExhausted(depth)
            add_prob = 1.0 / (depth + 1)
            for _ in range(max(depth + 1, self.min_steps)):
                if rng.random() < add_prob:
                    pool = np.flatnonzero(~candidate.selected)
                    add = True
                else:
                    pool = np.flatnonzero(candidate.selected)
                    add = False
                if len(pool) == 0:
                    continue
                candidate.apply(int(pool[rng.integers(len(pool))]), add)
            depth += 1
        return candidate

    def __repr__(self):
        return f"<RandomFlipRepair max_attempts={self.max_attempts} min_steps={self.min_steps}>"


class _GreedyInsertion:
    """贪心插入算子的公共部分: 本轮已提供集合 + 前 top_k 随机选择 + 回退"""

    def __init__(self, instance: TKPInstance, offered: Set[int], fallback: RandomFlipRepair, top_k: int = 5):
        self.instance = instance
        self.offered = offered
        self.fallback = fallback
        self.top_k = top_k

    def _eligible(self, current: SolutionState, idx: int) -> bool:
        return (
            not current.selected[idx]
            and idx not in self.offered
            and current.fits(idx)
        )

    def _insert_one_of(self, current: SolutionState, top: List[int]) -> SolutionState:
        if not top:
            logger.debug(f"{self.__name__}: 无可插入订单, 回退到 {self.fallback.__name__}")
            return self.fallback(current)
        chosen = top[int(self.instance.rng.integers(len(top)))]
        self.offered.add(chosen)
        neighbor = current.copy().apply(chosen, True)
        neighbor.produced_by = self.__name__
        return neighbor


class CostBenefitGreedy(_GreedyInsertion):
    """
    单位时长利润贪心:
      - 构造时按 (key, index) 升序预排序全部订单
      - 生成时从 key 最大端开始扫描, 跳过已选中/本轮已提供/单独加入即超容量的订单,
        收集前 top_k 个后均匀随机选一个插入
    """

    def __init__(self, instance: TKPInstance, offered: Set[int], fallback: RandomFlipRepair, top_k: int = 5):
        super().__init__(instance, offered, fallback, top_k)
        self.__name__ = "cost_benefit_greedy"
        keys = [cost_benefit_key(o.profit, o.start, o.end) for o in instance.orders]
        self.ranking: List[int] = sorted(range(instance.n), key=lambda i: (keys[i], i))
        self.keys = keys

    def __call__(self, current: SolutionState) -> SolutionState:
        top: List[int] = []
        for idx in reversed(self.ranking):
            if self._eligible(current, idx):
                top.append(idx)
                if len(top) == self.top_k:
                    break
        return self._insert_one_of(current, top)

    def __repr__(self):
        return f"<CostBenefitGreedy top_k={self.top_k}>"


class SlackFillGreedy(_GreedyInsertion):
    """
    剩余容量贪心:
      - slack[t] = capacity - demand_profile[t]
      - 对每个可插入订单计算区间 slack 之和 (前缀和 O(1))
      - 按 slack 和升序稳定排序, 从降序端取前 top_k 个, 均匀随机选一个插入
    """

    def __init__(self, instance: TKPInstance, offered: Set[int], fallback: RandomFlipRepair, top_k: int = 5):
        super().__init__(instance, offered, fallback, top_k)
        self.__name__ = "slack_fill_greedy"

    def __call__(self, current: SolutionState) -> SolutionState:
        inst = self.instance
        candidates = [int(i) for i in current.unselected_orders() if self._eligible(current, int(i))]
        if not candidates:
            return self._insert_one_of(current, [])

        prefix = np.concatenate(([0], np.cumsum(current.slack())))
        cand = np.array(candidates, dtype=np.int64)
        sums = prefix[inst.ends[cand] + 1] - prefix[inst.starts[cand]]
        ascending = np.argsort(sums, kind="stable")
        top = [candidates[j] for j in ascending[::-1][: self.top_k]]
        return self._insert_one_of(current, top)

    def __repr__(self):
        return f"<SlackFillGreedy top_k={self.top_k}>"


def build_operators(
    instance: TKPInstance,
    offered: Set[int],
    enable_cost_benefit: bool = True,
    enable_slack_fill: bool = True,
    config: Optional[TabuConfig] = None,
) -> list:
    """按开关构造算子列表, 随机翻转算子总是第一个"""
    config = config or default_config
    random_op = RandomFlipRepair(
        instance,
        max_attempts=config.REPAIR_MAX_ATTEMPTS,
        min_steps=config.REPAIR_MIN_STEPS,
    )
    operators = [random_op]
    if enable_cost_benefit:
        operators.append(CostBenefitGreedy(instance, offered, random_op, top_k=config.GREEDY_TOP_K))
    if enable_slack_fill:
        operators.append(SlackFillGreedy(instance, offered, random_op, top_k=config.GREEDY_TOP_K))
    return operators


class NeighborhoodGenerator:
    """
    统一的候选生成入口:
      - generate(current): 在启用的算子中均匀随机选择一个并调用
      - end_iteration(): 清空"本轮已提供"集合 (主循环每轮结束时调用)
      - usage: 各算子被选中的次数
    """

    def __init__(
        self,
        instance: TKPInstance,
        enable_cost_benefit: bool = True,
        enable_slack_fill: bool = True,
        config: Optional[TabuConfig] = None,
    ):
        self.instance = instance
        self.offered: Set[int] = set()
        self.operators = build_operators(
            instance, self.offered, enable_cost_benefit, enable_slack_fill, config
        )
        self.usage: Counter = Counter()

    @property
    def operator_names(self) -> List[str]:
        return [op.__name__ for op in self.operators]

    def select_operator(self):
        return self.operators[int(self.instance.rng.integers(len(self.operators)))]

    def generate(self, current: SolutionState) -> SolutionState:
        op = self.select_operator()
        self.usage[op.__name__] += 1
        return op(current)

    def end_iteration(self) -> None:
        self.offered.clear()
