"""
check_solution

模块定位
    对禁忌搜索 (或任意来源) 给出的订单选择做只读复核: 时间槽容量、总利润、
    增量维护值与全量重算值的一致性, 并生成可读的验证摘要。

设计原则
    - 不修改实例与解, 只做只读校验
    - 校验方法相互独立, validate_all() 汇总
    - 日志走模块级 logger, 摘要输出走 LogPrinter
"""

# =========================
# 标准库
# =========================
import time
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple

# =========================
# 第三方库
# =========================
import numpy as np

# =========================
# 项目内部
# =========================
from .InputDataTKP import TKPInstance
from .tkpopt import SolutionState, recompute
from .optutility import LogPrinter

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """单项约束的验证结果"""
    constraint_name: str
    is_satisfied: bool
    violations: List[str]
    total_violations: int
    details: Dict


class SolutionValidator:
    """解的验证器"""

    def __init__(self, instance: TKPInstance, solution: SolutionState):
        self.instance = instance
        self.solution = solution
        self.validation_results: List[ValidationResult] = []

    def check_capacity(self) -> ValidationResult:
        """每个时间槽上被选订单的需求之和不超过容量"""
        logger.info("检查时间槽容量...")
        profile, _, _ = recompute(self.instance, self.solution.selected)
        capacity = self.instance.capacity
        over = np.flatnonzero(profile > capacity)
        violations = [
            f"时间槽 {int(t)}: 需求 {int(profile[t])} > 容量 {capacity}" for t in over
        ]
        details = {
            'horizon': self.instance.horizon,
            'peak_demand': int(profile.max()) if len(profile) else 0,
            'overloaded_slots': len(over),
        }
        return ValidationResult('capacity', len(over) == 0, violations, len(violations), details)

    def check_profit(self) -> ValidationResult:
        """记录的总利润等于被选订单利润之和"""
        logger.info("检查总利润...")
        expected = int(self.instance.profits[self.solution.selected].sum())
        recorded = int(self.solution.total_profit)
        violations = [] if expected == recorded else [f"记录利润 {recorded} != 实际利润 {expected}"]
        details = {'recorded': recorded, 'expected': expected}
        return ValidationResult('profit', not violations, violations, len(violations), details)

    def check_incremental_state(self) -> ValidationResult:
        """增量维护的需求曲线与可行性标记和全量重算结果一致"""
        logger.info("检查增量状态一致性...")
        profile, feasible, _ = recompute(self.instance, self.solution.selected)
        violations = []
        mismatched = np.flatnonzero(profile != self.solution.demand_profile)
        for t in mismatched:
            violations.append(
                f"时间槽 {int(t)}: 增量需求 {int(self.solution.demand_profile[t])} != 重算需求 {int(profile[t])}"
            )
        if feasible != self.solution.feasible:
            violations.append(f"可行性标记 {self.solution.feasible} != 重算结果 {feasible}")
        details = {'mismatched_slots': len(mismatched)}
        return ValidationResult('incremental_state', not violations, violations, len(violations), details)

    def validate_all(self) -> Tuple[bool, List[ValidationResult]]:
        results = [
            self.check_capacity(),
            self.check_profit(),
            self.check_incremental_state(),
        ]
        self.validation_results = results
        return all(r.is_satisfied for r in results), results

    def print_validation_summary(self, log_printer: LogPrinter = None) -> None:
        printer = log_printer or LogPrinter(time.time())
        printer.print_title("解的验证结果摘要", stars_len=60)
        total_violations = 0
        for result in self.validation_results:
            status = "通过" if result.is_satisfied else "违反"
            printer.print(f"{result.constraint_name}: {status}",
                          color='bold green' if result.is_satisfied else 'bold red')
            if not result.is_satisfied:
                total_violations += result.total_violations
                for i, violation in enumerate(result.violations[:3]):
                    printer.print(f"    {i + 1}. {violation}")
                if len(result.violations) > 3:
                    printer.print(f"    ... 还有 {len(result.violations) - 3} 个违反")
        printer.print(f"总违反数量: {total_violations}")


def check_solution(instance: TKPInstance, selected: Iterable[int]) -> bool:
    """
    复核一组选中订单下标:
        返回 True 当且仅当选择满足容量约束
    """
    indices = sorted(set(int(i) for i in selected))
    for idx in indices:
        if not 0 <= idx < instance.n:
            raise IndexError(f"订单下标 {idx} 超出范围 [0, {instance.n})")
    solution = SolutionState.from_selection(instance, indices)
    validator = SolutionValidator(instance, solution)
    overall_feasible, _ = validator.validate_all()
    if not overall_feasible:
        logger.warning(f"{instance.name}: 选择 {indices[:10]}... 未通过验证")
    return overall_feasible
