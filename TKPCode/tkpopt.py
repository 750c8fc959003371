"""
模块: tkpopt
核心职责:
1. 定义 SolutionState:
   - 保存订单选择向量 selected、逐时间槽需求曲线 demand_profile、总利润与可行性标记
   - 提供增量更新 apply() + 全量重算 recompute() 两条路径, 以及可行性校验 validate()
2. 增量更新 (单一修改入口):
   - 选中/取消订单 i 时, 仅对 [start_i, end_i] 内的时间槽加/减 demand_i
   - 同时维护 overloaded_slots (需求超过容量的时间槽个数):
       加入: 统计区间内由 <=capacity 变为 >capacity 的槽数
       移除: 统计区间内由 >capacity 变为 <=capacity 的槽数
     因此 feasible = (overloaded_slots == 0) 在加入与移除之后都精确成立
   - 不可行时需求曲线仍保持数值正确, 后续移除可恢复精确值
3. 全量重算 recompute():
   - 按定义从零累加所有被选中订单的需求, 作为校验基线
   - check_consistency() 对比两条路径, 不一致视为程序错误 (AssertionError)
4. 相等性/哈希 (禁忌表成员判定):
   - 仅当 (selected, total_profit, feasible, demand_profile) 四者完全一致时视为同一解
5. 重要不变量:
   - demand_profile[t] = Σ demand_i (i 被选中且 start_i <= t <= end_i)
   - feasible ⇔ ∀t: demand_profile[t] <= capacity
   - total_profit = Σ profit_i (i 被选中)

维护提示:
- 新增的邻域算子必须通过 apply()/apply_move() 修改解, 不要直接改写数组
"""

# =========================
# 标准库
# =========================
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

# =========================
# 第三方库
# =========================
import numpy as np

# =========================
# 项目内部模块
# =========================
from .InputDataTKP import TKPInstance


@dataclass(eq=False)
class SolutionState:
    instance: TKPInstance
    selected: np.ndarray = field(default=None)
    demand_profile: np.ndarray = field(default=None)
    total_profit: int = 0
    feasible: bool = True
    overloaded_slots: int = 0
    # 生成该解的算子名称 (仅统计用途, 不参与相等性判定)
    produced_by: str = field(default="baseline")

    def __post_init__(self):
        if self.selected is None:
            self.selected = np.zeros(self.instance.n, dtype=bool)
        if self.demand_profile is None:
            self.demand_profile = np.zeros(self.instance.horizon + 1, dtype=np.int64)

    @classmethod
    def baseline(cls, instance: TKPInstance) -> "SolutionState":
        """全部未选中的基线解"""
        return cls(instance)

    @classmethod
    def from_selection(cls, instance: TKPInstance, indices) -> "SolutionState":
        """由下标集合经增量路径构造解 (主要用于测试与结果复核)"""
        state = cls(instance)
        for idx in sorted(set(int(i) for i in indices)):
            state.apply(idx, True)
        return state

    # ------------------------------------------------------------------
    # 复制
    # ------------------------------------------------------------------
    def copy(self) -> "SolutionState":
        """轻量快照: 共享 instance, 复制两个数组"""
        return SolutionState(
            instance=self.instance,
            selected=self.selected.copy(),
            demand_profile=self.demand_profile.copy(),
            total_profit=self.total_profit,
            feasible=self.feasible,
            overloaded_slots=self.overloaded_slots,
            produced_by=self.produced_by,
        )

    # ------------------------------------------------------------------
    # 增量更新
    # ------------------------------------------------------------------
    def apply(self, order_index: int, add: bool) -> "SolutionState":
        """
        原地选中 (add=True) 或取消 (add=False) 订单 order_index, 返回 self.
        对已选中订单再次选中、或取消未选中订单属于调用方错误 (ValueError)。
        """
        if bool(self.selected[order_index]) == add:
            state = "已选中" if add else "未选中"
            raise ValueError(f"订单 {order_index} {state}, 无法重复 {'加入' if add else '移除'}")

        order = self.instance.orders[order_index]
        capacity = self.instance.capacity
        window = self.demand_profile[order.start: order.end + 1]

        if add:
            crossed = int(np.count_nonzero((window <= capacity) & (window + order.demand > capacity)))
            window += order.demand
            self.overloaded_slots += crossed
            self.total_profit += order.profit
        else:
            crossed = int(np.count_nonzero((window > capacity) & (window - order.demand <= capacity)))
            window -= order.demand
            self.overloaded_slots -= crossed
            self.total_profit -= order.profit

        self.selected[order_index] = add
        self.feasible = self.overloaded_slots == 0
        return self

    def toggle(self, order_index: int) -> "SolutionState":
        return self.apply(order_index, not bool(self.selected[order_index]))

    def fits(self, order_index: int) -> bool:
        """在当前需求曲线上单独加入该订单是否不超容量"""
        order = self.instance.orders[order_index]
        window = self.demand_profile[order.start: order.end + 1]
        return bool(np.all(window + order.demand <= self.instance.capacity))

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------
    def selected_orders(self) -> List[int]:
        return np.flatnonzero(self.selected).tolist()

    def unselected_orders(self) -> np.ndarray:
        return np.flatnonzero(~self.selected)

    def num_selected(self) -> int:
        return int(np.count_nonzero(self.selected))

    def objective(self) -> float:
        """
        目标函数 (最小化约定, 与 alns State 协议一致):
            objective = -total_profit
        """
        return -float(self.total_profit)

    def slack(self) -> np.ndarray:
        """每个时间槽剩余容量 capacity - demand_profile[t] (超载时为负)"""
        return self.instance.capacity - self.demand_profile

    def validate(self) -> Tuple[bool, Dict[str, list]]:
        """
        可行性校验 (全量扫描需求曲线):
            返回 (feasible, violations), violations['capacity_exceed'] 列出超载时间槽
        """
        capacity = self.instance.capacity
        over = np.flatnonzero(self.demand_profile > capacity)
        violations = {
            'capacity_exceed': [
                {'slot': int(t), 'demand': int(self.demand_profile[t]), 'capacity': capacity}
                for t in over
            ]
        }
        return len(over) == 0, violations

    def check_consistency(self) -> None:
        """增量维护值必须与全量重算一致, 否则为程序错误"""
        profile, feasible, total_profit = recompute(self.instance, self.selected)
        assert np.array_equal(profile, self.demand_profile), \
            f"需求曲线不一致: 增量={self.demand_profile.tolist()} 重算={profile.tolist()}"
        assert feasible == self.feasible, \
            f"可行性不一致: 增量={self.feasible} 重算={feasible}"
        assert total_profit == self.total_profit, \
            f"总利润不一致: 增量={self.total_profit} 重算={total_profit}"
        assert self.overloaded_slots == int(np.count_nonzero(profile > self.instance.capacity)), \
            "超载时间槽计数不一致"

    # ------------------------------------------------------------------
    # 相等性 / 哈希 (禁忌表)
    # ------------------------------------------------------------------
    def _key(self) -> Tuple[bytes, int, bool, bytes]:
        return (
            self.selected.tobytes(),
            int(self.total_profit),
            bool(self.feasible),
            self.demand_profile.tobytes(),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, SolutionState):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return (
            f"SolutionState(profit={self.total_profit}, feasible={self.feasible}, "
            f"selected={self.num_selected()}/{self.instance.n})"
        )


def apply_move(solution: SolutionState, order_index: int, add: bool) -> SolutionState:
    """函数式增量更新: 复制 solution 后对副本执行 apply, 原解保持不变"""
    return solution.copy().apply(order_index, add)


def recompute(instance: TKPInstance, selected: np.ndarray) -> Tuple[np.ndarray, bool, int]:
    """
    全量重算 (校验基线):
        返回 (demand_profile, feasible, total_profit)
    """
    profile = np.zeros(instance.horizon + 1, dtype=np.int64)
    total_profit = 0
    for idx in np.flatnonzero(selected):
        order = instance.orders[idx]
        profile[order.start: order.end + 1] += order.demand
        total_profit += order.profit
    feasible = bool(np.all(profile <= instance.capacity))
    return profile, feasible, total_profit
