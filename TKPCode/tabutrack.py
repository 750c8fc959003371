"""
模块: tabutrack
功能定位:
    提供禁忌搜索过程中的改进事件接收 (ImprovementSink) 与迭代级跟踪支持, 包含:
      1. 改进事件: 主循环每次刷新最优解时回调 sink(elapsed, best_profit, sample)
      2. 迭代级记录: 当前利润 / 历史最优利润序列 (供绘图)
      3. 可选 CSV 持久化: Iteration, Current_Profit, Best_Profit
      4. gap 计算: 启发式利润相对精确解的差距

设计要点:
    - 不介入搜索决策, 仅消费主循环传入的数值
    - 主循环只依赖 "可调用" 这一最小契约; on_iteration 为可选扩展,
      主循环在对象具备该方法时才调用
    - NullSink 为默认实现, 不产生任何输出

Gap 定义 (最大化问题):
    gap = (exact - heuristic) / exact * 100%
"""

# =========================
# 标准库
# =========================
import os
import csv
import time
import logging
from typing import List, Optional, Sequence, Tuple, Protocol, TYPE_CHECKING

# =========================
# 项目内部依赖
# =========================
from .optutility import LogPrinter
from .tkp_config import default_config as TabuDefaults

if TYPE_CHECKING:  # 仅类型检查时导入, 避免循环依赖
    from .tkpopt import SolutionState

logger = logging.getLogger(__name__)


class ImprovementSink(Protocol):
    """最优解改进事件的接收者"""

    def __call__(self, elapsed_time: float, best_profit: int, sample: Sequence[int]) -> None:
        ...


class NullSink:
    """默认 sink: 忽略所有事件"""

    def __call__(self, elapsed_time: float, best_profit: int, sample: Sequence[int]) -> None:
        return None


class TabuTracker:
    """
    禁忌搜索过程跟踪器:
      - 作为 ImprovementSink 接收改进事件并输出到控制台
      - 通过 on_iteration 记录每轮 current/best 利润, 支撑收敛曲线绘制
    """

    def __init__(
        self,
        output_file: Optional[str] = None,
        print_every: Optional[int] = None,
        log_printer: Optional[LogPrinter] = None,
        verbose: bool = True,
    ):
        self.iteration: int = 0
        self.start_time: float = time.time()
        self.current_profits: List[int] = []
        self.best_profits: List[int] = []
        # (iteration, elapsed, profit, sample)
        self.best_history: List[Tuple[int, float, int, List[int]]] = []
        self.best_profit: int = 0
        self.verbose = verbose
        self.print_every = print_every if print_every is not None else TabuDefaults.TRACKER_PRINT_EVERY
        self.log_printer = log_printer or LogPrinter(self.start_time)

        self.output_file: Optional[str] = output_file
        if self.output_file:
            out_dir = os.path.dirname(self.output_file)
            if out_dir:
                os.makedirs(out_dir, exist_ok=True)
            with open(self.output_file, "w", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(["Iteration", "Current_Profit", "Best_Profit"])

    # -----------------------------------------------------------------
    # 改进事件 (ImprovementSink)
    # -----------------------------------------------------------------
    def __call__(self, elapsed_time: float, best_profit: int, sample: Sequence[int]) -> None:
        self.best_profit = int(best_profit)
        # 改进事件发生在本轮 on_iteration 之前, 因此记为进行中的一轮
        in_progress = self.iteration + 1
        self.best_history.append((in_progress, float(elapsed_time), int(best_profit), list(sample)))
        if self.verbose:
            self.log_printer.print(
                f"Iteration {in_progress}: new best profit {best_profit} "
                f"(t={elapsed_time:.3f}s, sample={list(sample)})",
                color="bold green",
            )

    # -----------------------------------------------------------------
    # 迭代回调
    # -----------------------------------------------------------------
    def on_iteration(self, iteration: int, current: "SolutionState", best: "SolutionState") -> None:
        """主循环每轮结束时调用 (iteration 从 1 开始)"""
        self.iteration = iteration
        self.current_profits.append(int(current.total_profit))
        self.best_profits.append(int(best.total_profit))

        if self.verbose and self.print_every and iteration % self.print_every == 0:
            self.log_printer.print(
                f"Iteration: {iteration}\tCurrent: {current.total_profit}\tBest: {best.total_profit}"
            )

        if self.output_file:
            try:
                with open(self.output_file, "a", newline="") as f:
                    writer = csv.writer(f)
                    writer.writerow([iteration, current.total_profit, best.total_profit])
            except OSError as e:
                logger.warning(f"Failed to append tracker CSV: {e}")

    # -----------------------------------------------------------------
    # 汇总统计
    # -----------------------------------------------------------------
    def get_statistics(self) -> dict:
        return {
            "total_iterations": self.iteration,
            "best_profit": self.best_profit,
            "improvements": len(self.best_history),
            "last_improvement_iteration": self.best_history[-1][0] if self.best_history else 0,
            "current_history": self.current_profits.copy(),
            "best_history": self.best_profits.copy(),
            "elapsed_time": time.time() - self.start_time,
        }


def calculate_gap(heuristic_profit: float, exact_profit: float) -> float:
    """
    最大化问题的相对差距 (百分比):
        gap = (exact - heuristic) / exact * 100
    exact 为 0 时: heuristic 也为 0 则 gap = 0, 否则返回 -inf (启发式优于"精确"值, 说明输入有误)
    """
    if exact_profit == 0:
        return 0.0 if heuristic_profit == 0 else float("-inf")
    return (exact_profit - heuristic_profit) / abs(exact_profit) * 100.0
