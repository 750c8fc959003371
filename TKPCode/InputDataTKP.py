"""
InputDataTKP
============

模块职责
    提供 TKP (Temporal Knapsack Problem) 求解所需的全部静态输入数据读取 / 结构化 /
    派生数组生成 / 前置条件校验。单个实例文件被读取为 TKPInstance 数据容器, 为
    邻域算子、禁忌搜索主循环以及精确模型提供统一的数据接口。

实例文件格式 (空白分隔的非负整数)
    n                        订单数量
    capacity                 每个时间槽的资源容量上限
    profit demand start end  共 n 行, 每行一个订单 (闭区间 [start, end])

核心字段 (构造完成后保证存在)
    capacity / orders / name
    rng                      实例独占的随机数流 (numpy Generator, 由 seed 创建)
    horizon                  max(order.end), 空实例为 0
    profits / demands / starts / ends   与 orders 顺序一致的 int64 数组

前置条件 (validate(), 违反时抛 ConfigurationError)
    - capacity >= 0
    - 每个订单字段非负, start <= end, end >= 1
    - 总利润与任一时间槽可能出现的最大需求不超过 int64 表示范围

使用示例
    inst = TKPInstance.parse_from_file(Path('tkp_instances/I01.txt'), seed=7)
    print(inst.n, inst.capacity, inst.horizon)
"""

# =========================
# 标准库
# =========================
import os
import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Iterable, Optional, Sequence, Tuple, Union

# =========================
# 第三方库
# =========================
import numpy as np
import numpy.random as rnd

logger = logging.getLogger(__name__)

INT64_MAX = int(np.iinfo(np.int64).max)


class TKPError(Exception):
    """项目内所有可预期错误的基类"""


class ConfigurationError(TKPError):
    """实例违反前置条件 (致命, 搜索开始前抛出)"""


class InstanceFormatError(TKPError):
    """实例文件无法解析"""


@dataclass(frozen=True)
class Order:
    """单个订单: 在 [start, end] 每个时间槽占用 demand, 被选中时获得 profit"""
    profit: int
    demand: int
    start: int
    end: int

    @property
    def duration(self) -> int:
        return self.end - self.start

    def is_active(self, t: int) -> bool:
        return self.start <= t <= self.end

    @classmethod
    def parse_from_line(cls, line: str) -> "Order":
        values = line.split()
        if len(values) != 4:
            raise InstanceFormatError(f"订单行需要 4 个整数, 实际为: {line!r}")
        try:
            profit, demand, start, end = (int(v) for v in values)
        except ValueError as e:
            raise InstanceFormatError(f"订单行包含非整数: {line!r}") from e
        return cls(profit, demand, start, end)


@dataclass
class TKPInstance:
    """
    TKPInstance
    -----------
    禁忌搜索与精确模型共同依赖的数据容器。除 rng 的内部游标外不可变。
    """
    capacity: int
    orders: List[Order]
    name: str = "instance"
    seed: Optional[int] = None
    rng: rnd.Generator = field(default=None, repr=False, compare=False)

    # ==== 派生数据 ====
    horizon: int = field(init=False)
    profits: np.ndarray = field(init=False, repr=False, compare=False)
    demands: np.ndarray = field(init=False, repr=False, compare=False)
    starts: np.ndarray = field(init=False, repr=False, compare=False)
    ends: np.ndarray = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self.orders = list(self.orders)
        if self.rng is None:
            self.rng = rnd.default_rng(self.seed)
        self.profits = np.array([o.profit for o in self.orders], dtype=np.int64)
        self.demands = np.array([o.demand for o in self.orders], dtype=np.int64)
        self.starts = np.array([o.start for o in self.orders], dtype=np.int64)
        self.ends = np.array([o.end for o in self.orders], dtype=np.int64)
        self.horizon = int(self.ends.max()) if self.orders else 0

    @property
    def n(self) -> int:
        return len(self.orders)

    # ------------------------------------------------------------------
    # 构造入口
    # ------------------------------------------------------------------
    @classmethod
    def from_records(
        cls,
        capacity: int,
        records: Iterable[Sequence[int]],
        name: str = "instance",
        seed: Optional[int] = None,
    ) -> "TKPInstance":
        """由 (profit, demand, start, end) 元组序列构造实例"""
        orders = [Order(int(p), int(d), int(s), int(e)) for p, d, s, e in records]
        return cls(capacity=int(capacity), orders=orders, name=name, seed=seed)

    @classmethod
    def parse_from_text(cls, text: str, name: str = "instance", seed: Optional[int] = None) -> "TKPInstance":
        """
        解析实例文本:
            - 前两个值依次为订单数 n 与容量 capacity
            - 其后至少 4n 个整数, 多余内容忽略
        """
        tokens = text.split()
        if len(tokens) < 2:
            raise InstanceFormatError(f"{name}: 缺少订单数量或容量")
        try:
            values = np.array(tokens, dtype=np.int64)
        except (ValueError, OverflowError) as e:
            raise InstanceFormatError(f"{name}: 包含无法解析的整数") from e

        n, capacity = int(values[0]), int(values[1])
        if n < 0:
            raise InstanceFormatError(f"{name}: 订单数量为负 ({n})")
        body = values[2:]
        if len(body) < 4 * n:
            raise InstanceFormatError(
                f"{name}: 声明 {n} 个订单, 但只读到 {len(body) // 4} 条完整记录"
            )
        records = body[: 4 * n].reshape(n, 4) if n else np.empty((0, 4), dtype=np.int64)
        return cls.from_records(capacity, records.tolist(), name=name, seed=seed)

    @classmethod
    def parse_from_file(cls, path: Union[str, Path], seed: Optional[int] = None) -> "TKPInstance":
        """读取单个实例文件; 实例名为文件名 (不含扩展名)"""
        path = Path(path)
        if not path.is_file():
            raise InstanceFormatError(f"实例文件不存在: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"读取实例文件失败: {path}: {e}")
            raise
        instance = cls.parse_from_text(text, name=path.stem, seed=seed)
        logger.info(f"成功加载实例 {instance.name}: {instance.n} 个订单, 容量 {instance.capacity}")
        return instance

    @classmethod
    def parse_instance_folder(cls, path: Union[str, Path], seed: Optional[int] = None) -> List["TKPInstance"]:
        """按文件名排序加载目录下所有普通文件 (子目录忽略)"""
        path = Path(path)
        if not path.is_dir():
            raise InstanceFormatError(f"实例目录不存在: {path}")
        instances = []
        for entry in sorted(os.listdir(path)):
            file_path = path / entry
            if file_path.is_file():
                instances.append(cls.parse_from_file(file_path, seed))
        return instances

    # ------------------------------------------------------------------
    # 前置条件校验
    # ------------------------------------------------------------------
    def validate(self) -> None:
        """
        搜索开始前的一次性检查, 任一违反即抛 ConfigurationError.
        空订单列表不是错误。
        """
        if self.capacity < 0:
            raise ConfigurationError(f"{self.name}: capacity 为负 ({self.capacity})")
        if self.capacity > INT64_MAX:
            raise ConfigurationError(f"{self.name}: capacity 超出 int64 范围")
        for idx, order in enumerate(self.orders):
            if min(order.profit, order.demand, order.start, order.end) < 0:
                raise ConfigurationError(f"{self.name}: 订单 {idx} 含负值 {order}")
            if order.start > order.end:
                raise ConfigurationError(f"{self.name}: 订单 {idx} 的 start > end ({order})")
            if order.end < 1:
                raise ConfigurationError(f"{self.name}: 订单 {idx} 的 end < 1 ({order})")
        # Python int 不会溢出, 因此用精确求和与 int64 上限比较
        total_profit = sum(o.profit for o in self.orders)
        if total_profit > INT64_MAX:
            raise ConfigurationError(f"{self.name}: 利润总和 {total_profit} 超出 int64 范围")
        total_demand = sum(o.demand for o in self.orders)
        if total_demand > INT64_MAX:
            raise ConfigurationError(f"{self.name}: 需求总和 {total_demand} 超出 int64 范围")

    # ------------------------------------------------------------------
    # 随机流 / 复制
    # ------------------------------------------------------------------
    def reseed(self, seed: Optional[int]) -> None:
        """以新的种子重建随机流"""
        self.seed = seed
        self.rng = rnd.default_rng(seed)

    def clone(self) -> "TKPInstance":
        """深拷贝 (随机流状态一并复制, 与原实例相互独立)"""
        return copy.deepcopy(self)

    def active_orders(self, t: int) -> List[int]:
        """时间槽 t 上处于活动状态的订单下标"""
        mask = (self.starts <= t) & (self.ends >= t)
        return np.flatnonzero(mask).tolist()

    def summary(self) -> Tuple[str, int, int, int]:
        return self.name, self.n, self.capacity, self.horizon
