"""
TKPCode 包初始化

模块定位
    - 使 TKPCode 成为可导入的 Python 包
    - 提供常用对象的便捷导出, 便于调用方 from TKPCode import X

说明
    - exact_model 依赖 gurobipy, 不在此处导出, 需要时显式 from TKPCode.exact_model import ExactModel
    - visualization 在函数内部导入 matplotlib, 同样按需导入
"""

from .InputDataTKP import TKPInstance, Order, TKPError, ConfigurationError, InstanceFormatError
from .tkpopt import SolutionState, apply_move, recompute
from .tabu_memory import TabuMemory
from .neighbor_operators import NeighborhoodGenerator, RepairExhausted
from .tabu_search import TabuSearch, tabu_search
from .tabutrack import TabuTracker, NullSink, calculate_gap
from .combined_stopping import CombinedStoppingCriterion, create_search_budget
from .check_solution import check_solution
# 模块级默认配置实例 (tkp_config.TabuConfig)
from .tkp_config import default_config

__all__ = [
    "TKPInstance",
    "Order",
    "TKPError",
    "ConfigurationError",
    "InstanceFormatError",
    "SolutionState",
    "apply_move",
    "recompute",
    "TabuMemory",
    "NeighborhoodGenerator",
    "RepairExhausted",
    "TabuSearch",
    "tabu_search",
    "TabuTracker",
    "NullSink",
    "calculate_gap",
    "CombinedStoppingCriterion",
    "create_search_budget",
    "check_solution",
    "default_config",
]
