"""
visualization
=============

模块定位
    禁忌搜索过程与结果的可视化输出:
      1. 利润收敛曲线 (当前解利润 + 历史最优利润)
      2. 最优解的逐时间槽需求曲线与容量上限
      3. 邻域算子使用次数统计

设计原则
    - 函数相互独立, 无全局状态, 输入只读
    - 自动创建输出目录 (images)
    - matplotlib 在函数内部延迟导入, 图在保存后即关闭

主要函数
    plot_best_profit(tracker, output_file_loc)
        tracker.current_profits / tracker.best_profits → images/Profit.svg
    plot_demand_profile(instance, solution, output_file_loc)
        solution.demand_profile 与 capacity → images/DemandProfile.svg
    plot_operator_usage(statistics, output_file_loc)
        statistics['operator_usage'] → images/OperatorUsage.svg
"""

# =========================
# 标准库
# =========================
import os
from typing import Dict, Optional

# =========================
# 第三方库
# =========================
import numpy as np


def _ensure_image_dir(output_file_loc: str) -> str:
    """
    确保输出目录下的 images 子目录存在, 返回其路径
    """
    img_dir = os.path.join(output_file_loc, "images")
    os.makedirs(img_dir, exist_ok=True)
    return img_dir


def plot_best_profit(tracker, output_file_loc: str, smooth_window: int = 1) -> Optional[str]:
    """
    绘制利润收敛曲线.
    参数:
        tracker         含 current_profits / best_profits 的 TabuTracker
        output_file_loc 输出根目录
        smooth_window   当前利润的移动平均窗口, =1 表示不平滑
    返回:
        保存的文件路径; 没有迭代记录时返回 None
    """
    best = tracker.best_profits
    if not best:
        return None
    img_dir = _ensure_image_dir(output_file_loc)
    current = np.asarray(tracker.current_profits, dtype=float)
    iters = np.arange(1, len(best) + 1)

    import matplotlib.pyplot as plt
    plt.figure(figsize=(10, 6))
    plt.plot(iters, current, color="#d62728", alpha=0.45, linewidth=1.2, label="Current profit")
    if 1 < smooth_window <= len(current):
        kernel = np.ones(smooth_window) / smooth_window
        smoothed = np.convolve(current, kernel, mode="valid")
        plt.plot(iters[smooth_window - 1:], smoothed, color="#ff7f0e", linewidth=1.8,
                 label=f"Current (w={smooth_window})")
    plt.step(iters, best, where="post", color="#1f77b4", linewidth=2.2, label="Best profit")

    plt.title("Changes of Profit")
    plt.ylabel("Profit")
    plt.xlabel("Iteration (#)")
    plt.grid(True, linestyle="--", alpha=0.7)
    plt.legend()
    file_path = os.path.join(img_dir, "Profit.svg")
    plt.savefig(file_path, dpi=600, bbox_inches="tight")
    plt.close()
    return file_path


def plot_demand_profile(instance, solution, output_file_loc: str) -> str:
    """
    绘制解的逐时间槽需求 (柱状) 与容量上限 (水平线).
    超载时间槽以红色标出。
    """
    img_dir = _ensure_image_dir(output_file_loc)
    profile = np.asarray(solution.demand_profile)
    slots = np.arange(len(profile))
    colors = np.where(profile > instance.capacity, "#d62728", "#1f77b4")

    import matplotlib.pyplot as plt
    plt.figure(figsize=(12, 5))
    plt.bar(slots, profile, color=colors, width=1.0, edgecolor="none")
    plt.axhline(instance.capacity, color="black", linestyle="--", linewidth=1.2, label="Capacity")
    plt.title(f"Demand Profile ({instance.name}, profit={solution.total_profit})")
    plt.ylabel("Demand")
    plt.xlabel("Time slot")
    plt.legend()
    file_path = os.path.join(img_dir, "DemandProfile.svg")
    plt.savefig(file_path, dpi=600, bbox_inches="tight")
    plt.close()
    return file_path


def plot_operator_usage(statistics: Dict, output_file_loc: str) -> Optional[str]:
    """
    水平条形图展示各邻域算子被选中的次数 (TabuSearch.get_statistics() 的 operator_usage)
    """
    usage = statistics.get("operator_usage") or {}
    if not usage:
        return None
    img_dir = _ensure_image_dir(output_file_loc)
    names = sorted(usage)
    counts = [usage[n] for n in names]

    import matplotlib.pyplot as plt
    fig, ax = plt.subplots(figsize=(8, 0.6 * len(names) + 1.5))
    bars = ax.barh(names, counts, color="#1f77b4")
    for bar, count in zip(bars, counts):
        ax.text(bar.get_width(), bar.get_y() + bar.get_height() / 2, f" {count}", va="center")
    ax.set_title("Operator Usage")
    ax.set_xlabel("Times selected")
    file_path = os.path.join(img_dir, "OperatorUsage.svg")
    fig.savefig(file_path, dpi=600, bbox_inches="tight")
    plt.close(fig)
    return file_path
