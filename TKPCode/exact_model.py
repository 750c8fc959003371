# TKP 的整数规划模型 (gurobi), 只用于与禁忌搜索结果做对比
# 决策变量 x_i: 是否选中订单 i, 选中 = 1, 不选 = 0
# 目标: max Σ profit_i * x_i
# 约束: 对每个时间槽 t = 0, 1, ..., horizon, Σ demand_i * x_i <= capacity (i 在 t 上处于活动状态)
import time
import logging
from gurobipy import GRB
import gurobipy as gp
from typing import List, Optional
from dataclasses import dataclass, field

from .InputDataTKP import TKPInstance
from .optutility import LogPrinter
from .tkp_config import default_config as TabuDefaults

logger = logging.getLogger(__name__)


@dataclass
class ExactModel:
    instance: TKPInstance
    # 求解时间限制 (秒)
    time_limit: float = TabuDefaults.EXACT_TIME_LIMIT
    # MIP 求解 gap, 达到后停止
    gap_limit: float = TabuDefaults.EXACT_GAP_LIMIT
    # 是否输出 gurobi 的求解日志
    output_flag: int = TabuDefaults.EXACT_OUTPUT_FLAG
    log_printer: Optional[LogPrinter] = None

    model: gp.Model = field(init=False)
    # {order_index: gp.Var}
    x_i: gp.tupledict = field(init=False)
    # {slot: gp.Constr}
    cons_capacity: gp.tupledict = field(init=False)
    runtime: float = field(init=False, default=0.0)

    def __post_init__(self):
        if self.log_printer is None:
            self.log_printer = LogPrinter(time.time())
        inst = self.instance

        self.model = gp.Model(f"tkp_{inst.name}")
        self.x_i = self.model.addVars(range(inst.n), lb=0, ub=1, vtype=GRB.BINARY, name='x')
        self.model.setObjective(
            gp.quicksum(int(inst.profits[i]) * self.x_i[i] for i in range(inst.n)),
            GRB.MAXIMIZE,
        )

        # 只对有活动订单的时间槽建约束
        slots: List[int] = [t for t in range(inst.horizon + 1) if inst.active_orders(t)]
        self.cons_capacity = self.model.addConstrs((
            gp.quicksum(int(inst.demands[i]) * self.x_i[i] for i in inst.active_orders(t)) <= inst.capacity
            for t in slots
        ), name='cons_capacity')

        self.model.setParam('OutputFlag', self.output_flag)
        self.model.Params.MIPGap = self.gap_limit
        self.model.Params.TimeLimit = self.time_limit

    def run(self) -> float:
        """求解并返回目标值; 超时返回当前最好可行解的目标值"""
        start = time.perf_counter()
        self.model.optimize()
        self.runtime = time.perf_counter() - start

        status = self.model.Status
        if status in (GRB.INF_OR_UNBD, GRB.INFEASIBLE, GRB.UNBOUNDED):
            # 全不选总是可行, 出现该状态说明模型构造有误
            raise RuntimeError(f"{self.instance.name}: 模型状态异常 ({status})")
        if status == GRB.TIME_LIMIT:
            self.log_printer.print("Time limit is reached! Solving process is stopped.", color='yellow')
            logger.warning(f"{self.instance.name}: 达到时间限制 {self.time_limit}s")
            if self.model.SolCount == 0:
                return 0.0
        elif status == GRB.OPTIMAL:
            self.log_printer.print(f"{self.instance.name} is solved to be optimal: {self.model.ObjVal}")
        return float(self.model.ObjVal)

    def selected_orders(self) -> List[int]:
        return [i for i, var in self.x_i.items() if var.X > 0.5]
