import os
import sys
import time
import logging
import argparse
from pathlib import Path

# Use package-internal modules via relative imports. This file must be run
# as a module (python -m TKPCode.main) or the package must be installed
# (pip install -e .).

from .tkp_config import default_config as TabuDefaults
from .InputDataTKP import TKPInstance, TKPError
from .tabu_search import TabuSearch
from .combined_stopping import create_search_budget
from .tabutrack import TabuTracker, calculate_gap
from .optutility import LogPrinter
from .OutputDataTKP import write_tabu_result, write_exact_result, write_compare_result

logger = logging.getLogger(__name__)


def setup_logging(config) -> str:
    """日志写入 LOG_DIR/tkp_tabu.log, 返回日志文件路径"""
    log_dir = config.LOG_DIR or "."
    os.makedirs(log_dir, exist_ok=True)
    log_file = str(Path(log_dir) / 'tkp_tabu.log')
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s %(levelname)s %(name)s - %(message)s',
        handlers=[logging.FileHandler(log_file, mode='w')],
        force=True,
    )
    return log_file


def _add_search_arguments(parser: argparse.ArgumentParser) -> None:
    """tabu 与 compare 共用的搜索参数"""
    parser.add_argument("seed", type=int)
    parser.add_argument("iterations", type=int)
    parser.add_argument("tabu_size", type=int)
    parser.add_argument("neighborhood_size", type=int)
    parser.add_argument("--no-cost-benefit", action="store_true")
    parser.add_argument("--no-slack-fill", action="store_true")
    parser.add_argument("--aspiration", type=int, default=TabuDefaults.ASPIRATION_THRESHOLD)
    parser.add_argument("--max-runtime", type=float, default=TabuDefaults.MAX_RUNTIME)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m TKPCode.main",
        description="Tabu search for the temporal knapsack problem",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    tabu = sub.add_parser("tabu", help="run the tabu search on one instance file")
    tabu.add_argument("path", type=Path)
    _add_search_arguments(tabu)
    tabu.add_argument("--output", type=Path, default=None, help="append a result row to this CSV")
    tabu.add_argument("--plots", type=Path, default=None, help="save SVG plots under DIR/images")

    exact = sub.add_parser("exact", help="solve one instance file with gurobi")
    exact.add_argument("path", type=Path)
    exact.add_argument("seed", type=int)
    exact.add_argument("--time-limit", type=float, default=TabuDefaults.EXACT_TIME_LIMIT)
    exact.add_argument("--output", type=Path, default=None)

    compare = sub.add_parser("compare", help="tabu search vs. gurobi on every file of a folder")
    compare.add_argument("folder", type=Path)
    _add_search_arguments(compare)
    compare.add_argument("--time-limit", type=float, default=TabuDefaults.EXACT_TIME_LIMIT)
    compare.add_argument("--output", type=Path, default=None)
    return parser


def run_tabu(instance: TKPInstance, iterations: int, tabu_size: int, neighborhood_size: int,
             config, log_printer: LogPrinter, enable_cost_benefit: bool = True,
             enable_slack_fill: bool = True, max_runtime=None, tracker=None):
    """运行一次禁忌搜索, 返回 (best, elapsed, search)"""
    instance.validate()
    config = config.copy_with(
        ITERATIONS=iterations,
        TABU_CAPACITY=tabu_size,
        NEIGHBORHOOD_SIZE=neighborhood_size,
    )
    config.validate()

    search = TabuSearch(
        instance,
        tabu_capacity=tabu_size,
        neighborhood_size=neighborhood_size,
        enable_cost_benefit=enable_cost_benefit,
        enable_slack_fill=enable_slack_fill,
        aspiration_threshold=config.ASPIRATION_THRESHOLD,
        observer=tracker,
        config=config,
    )
    log_printer.print(f"Operators: {search.generator.operator_names}")
    start = time.perf_counter()
    best = search.iterate(create_search_budget(iterations, max_runtime))
    elapsed = time.perf_counter() - start
    return best, elapsed, search


def cmd_tabu(args, config, log_printer: LogPrinter) -> int:
    instance = TKPInstance.parse_from_file(args.path, seed=args.seed)
    config = config.copy_with(ASPIRATION_THRESHOLD=args.aspiration)
    log_printer.print_title(f"TABU SEARCH: {instance.name}")
    log_printer.print(f"Orders: {instance.n}, capacity: {instance.capacity}, horizon: {instance.horizon}")

    tracker = TabuTracker(
        output_file=config.TRACKER_CSV,
        log_printer=log_printer,
        verbose=config.VERBOSE,
    )
    best, elapsed, search = run_tabu(
        instance, args.iterations, args.tabu_size, args.neighborhood_size, config, log_printer,
        enable_cost_benefit=not args.no_cost_benefit,
        enable_slack_fill=not args.no_slack_fill,
        max_runtime=args.max_runtime,
        tracker=tracker,
    )
    stats = search.get_statistics()
    log_printer.print(f"Best profit: {best.total_profit} ({best.num_selected()} orders, {elapsed:.3f}s)",
                      color='bold green')
    log_printer.print_table("Search statistics", stats)

    if args.output:
        write_tabu_result(args.output, instance.name, args.seed, stats["iterations"], args.tabu_size,
                          args.neighborhood_size, best.total_profit, elapsed)
    if args.plots:
        from .visualization import plot_best_profit, plot_demand_profile, plot_operator_usage
        plot_best_profit(tracker, str(args.plots))
        plot_demand_profile(instance, best, str(args.plots))
        plot_operator_usage(stats, str(args.plots))
        log_printer.print(f"Plots saved under {args.plots / 'images'}")
    return 0


def solve_exact(instance: TKPInstance, time_limit: float, config, log_printer: LogPrinter):
    """gurobi 求解一个实例, 返回 (profit, runtime); 求解器错误 (许可证、规模限制) 转为 TKPError"""
    from gurobipy import GurobiError
    from .exact_model import ExactModel

    try:
        model = ExactModel(instance, time_limit=time_limit, gap_limit=config.EXACT_GAP_LIMIT,
                           output_flag=config.EXACT_OUTPUT_FLAG, log_printer=log_printer)
        profit = model.run()
    except GurobiError as e:
        raise TKPError(f"gurobi failed on {instance.name}: {e}") from e
    return profit, model.runtime


def cmd_exact(args, config, log_printer: LogPrinter) -> int:
    instance = TKPInstance.parse_from_file(args.path, seed=args.seed)
    instance.validate()
    log_printer.print_title(f"EXACT MODEL: {instance.name}")
    profit, runtime = solve_exact(instance, args.time_limit, config, log_printer)
    log_printer.print(f"Profit: {profit} ({runtime:.3f}s)", color='bold green')
    if args.output:
        write_exact_result(args.output, instance.name, profit, runtime)
    return 0


def cmd_compare(args, config, log_printer: LogPrinter) -> int:
    instances = TKPInstance.parse_instance_folder(args.folder, seed=args.seed)
    config = config.copy_with(ASPIRATION_THRESHOLD=args.aspiration)
    log_printer.print_title(f"COMPARE: {len(instances)} instances")
    for instance in instances:
        best, elapsed, search = run_tabu(
            instance, args.iterations, args.tabu_size, args.neighborhood_size, config, log_printer,
            enable_cost_benefit=not args.no_cost_benefit,
            enable_slack_fill=not args.no_slack_fill,
            max_runtime=args.max_runtime,
        )
        exact_profit, exact_time = solve_exact(instance, args.time_limit, config, log_printer)
        gap = calculate_gap(best.total_profit, exact_profit)
        log_printer.print(
            f"{instance.name}: tabu={best.total_profit} ({elapsed:.2f}s) "
            f"exact={exact_profit} ({exact_time:.2f}s) gap={gap:.2f}%"
        )
        if args.output:
            write_compare_result(args.output, instance.name, args.seed, search.get_statistics()["iterations"],
                                 args.tabu_size, args.neighborhood_size, best.total_profit, elapsed,
                                 exact_profit, exact_time, gap)
    return 0


COMMANDS = {
    "tabu": cmd_tabu,
    "exact": cmd_exact,
    "compare": cmd_compare,
}


def main(argv=None, config=None) -> int:
    args = build_parser().parse_args(argv)
    config = config or TabuDefaults
    log_file = setup_logging(config)
    log_printer = LogPrinter(time.time())
    logger.info(f"command={args.command} args={vars(args)} log={log_file}")
    try:
        return COMMANDS[args.command](args, config, log_printer)
    except (TKPError, ValueError, OSError) as e:
        logger.error(f"运行失败: {e}")
        log_printer.print(f"Error: {e}", color='bold red')
        return 1


if __name__ == "__main__":
    sys.exit(main())
