"""
optutility
==========

模块定位
    面向用户的控制台输出 `LogPrinter`: 每行带"相对起始耗时"前缀; 交互式终端使用
    rich 彩色输出, 重定向/CI 场景自动退化为纯文本。另提供两列统计表输出,
    用于打印一次搜索运行的计数 (迭代数、候选丢弃数、算子使用次数等)。

使用方式
    printer = LogPrinter(time.time())
    printer.print_title("TABU SEARCH")
    printer.print("Iteration 1")
    printer.print_table("Statistics", search.get_statistics())

说明
    系统级消息走 logging, LogPrinter 只负责用户可见输出, 不创建全局实例
"""

# =========================
# 标准库
# =========================
import re
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Mapping

# =========================
# 第三方库
# =========================
from rich import box
from rich.console import Console
from rich.table import Table

# ESC + 单字符控制, 或 CSI 序列
ANSI_ESCAPE_PATTERN = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')


def _flatten(rows: Mapping[str, Any], prefix: str = "") -> dict:
    """嵌套字典展开为 'outer.inner' 形式的一层键"""
    flat = {}
    for key, value in rows.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(_flatten(value, prefix=f"{name}."))
        elif isinstance(value, float):
            flat[name] = f"{value:.3f}"
        else:
            flat[name] = value
    return flat


@dataclass
class LogPrinter:
    """带耗时前缀的控制台输出"""
    start_time: float
    console: Console = field(init=False)
    use_rich_formatting: bool = field(init=False)

    def __post_init__(self):
        self.set_output_mode()

    def set_output_mode(self, force_plain: bool = False) -> None:
        """force_plain=True 时强制纯文本 (写文件或测试捕获输出时)"""
        self.use_rich_formatting = sys.stdout.isatty() and not force_plain
        if self.use_rich_formatting:
            self.console = Console()
        else:
            self.console = Console(force_terminal=False, color_system=None, highlight=False)

    def elapsed(self) -> float:
        return time.time() - self.start_time

    @staticmethod
    def strip_ansi(text: str) -> str:
        return ANSI_ESCAPE_PATTERN.sub('', text)

    def _emit(self, text: str, color: str) -> None:
        if self.use_rich_formatting:
            self.console.print(text, style=color)
        else:
            self.console.print(self.strip_ansi(text))

    def print(self, msg: str, color: str = 'bold blue') -> None:
        """"<耗时秒>s <消息>" """
        self._emit(f'{self.elapsed():.1f}s {msg}', color)

    def print_title(self, msg: str, color: str = 'bold blue', stars_len: int = 75) -> None:
        line = "*" * stars_len
        for text in (line, msg.center(stars_len), line):
            self._emit(text, color)

    def print_table(self, title: str, rows: Mapping[str, Any], color: str = 'cyan') -> None:
        """两列 (名称 / 取值) 统计表; 嵌套字典展开为 outer.inner"""
        table = Table(
            title=f'{self.elapsed():.1f}s {title}',
            show_header=False,
            box=box.SIMPLE if self.use_rich_formatting else box.ASCII,
        )
        table.add_column(style=color if self.use_rich_formatting else None)
        table.add_column(justify="right")
        for key, value in _flatten(rows).items():
            table.add_row(str(key), str(value))
        self.console.print(table)
