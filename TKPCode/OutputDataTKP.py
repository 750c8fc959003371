"""
OutputDataTKP

模块定位
    将禁忌搜索 / 精确模型 / 二者对比的运行结果追加写入 CSV (每次运行一行),
    以及读取这些 CSV 供后续分析。文件不存在时先写表头, 已存在时只追加数据行。

列定义
    tabu     name, seed, iterations, tabu_list_size, neighborhood_size, total_profit, time
    exact    name, profit, time
    compare  tabu 列 + exact_profit, exact_time, gap
"""

# =========================
# 标准库
# =========================
import os
import logging
from pathlib import Path
from typing import Dict, List, Union

# =========================
# 第三方库
# =========================
import pandas as pd

logger = logging.getLogger(__name__)

TABU_COLUMNS = ['name', 'seed', 'iterations', 'tabu_list_size', 'neighborhood_size', 'total_profit', 'time']
EXACT_COLUMNS = ['name', 'profit', 'time']
COMPARE_COLUMNS = TABU_COLUMNS + ['exact_profit', 'exact_time', 'gap']


def is_file_in_use(file_path) -> bool:
    """
    检查文件是否被占用 (被其他程序打开)
    """
    if not os.path.exists(file_path):
        return False
    try:
        with open(file_path, 'a'):
            pass
        return False
    except PermissionError:
        return True


def append_rows(file_path: Union[str, Path], rows: List[Dict], columns: List[str]) -> None:
    """按 columns 顺序追加若干行; 新文件先写表头"""
    file_path = Path(file_path)
    if is_file_in_use(file_path):
        logger.error(f"文件被占用, 无法写入: {file_path}")
        raise PermissionError(f"file is in use: {file_path}")
    file_path.parent.mkdir(parents=True, exist_ok=True)

    write_header = not file_path.exists() or file_path.stat().st_size == 0
    df = pd.DataFrame(rows, columns=columns)
    df.to_csv(file_path, mode='a', header=write_header, index=False)
    logger.info(f"写入 {len(df)} 行到 {file_path}")


def write_tabu_result(file_path, name: str, seed: int, iterations: int, tabu_list_size: int,
                      neighborhood_size: int, total_profit: int, elapsed: float) -> None:
    append_rows(file_path, [{
        'name': name,
        'seed': seed,
        'iterations': iterations,
        'tabu_list_size': tabu_list_size,
        'neighborhood_size': neighborhood_size,
        'total_profit': total_profit,
        'time': round(elapsed, 6),
    }], TABU_COLUMNS)


def write_exact_result(file_path, name: str, profit: float, elapsed: float) -> None:
    append_rows(file_path, [{'name': name, 'profit': profit, 'time': round(elapsed, 6)}], EXACT_COLUMNS)


def write_compare_result(file_path, name: str, seed: int, iterations: int, tabu_list_size: int,
                         neighborhood_size: int, total_profit: int, elapsed: float,
                         exact_profit: float, exact_time: float, gap: float) -> None:
    append_rows(file_path, [{
        'name': name,
        'seed': seed,
        'iterations': iterations,
        'tabu_list_size': tabu_list_size,
        'neighborhood_size': neighborhood_size,
        'total_profit': total_profit,
        'time': round(elapsed, 6),
        'exact_profit': exact_profit,
        'exact_time': round(exact_time, 6),
        'gap': gap,
    }], COMPARE_COLUMNS)


def load_results(file_path: Union[str, Path]) -> pd.DataFrame:
    """读取结果 CSV; 文件不存在时返回空 DataFrame"""
    file_path = Path(file_path)
    if not file_path.exists():
        logger.warning(f"文件不存在: {file_path}")
        return pd.DataFrame()
    df = pd.read_csv(file_path, header=0)
    logger.info(f"成功加载文件: {file_path}, 形状: {df.shape}")
    return df
