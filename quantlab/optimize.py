#!/usr/bin/env python3
"""
参数扫描 CLI 入口

用法:
    python -m quantlab.optimize --symbols AAPL --days 60 120 365 --confidence 0.5 0.65 0.8
    python -m quantlab.optimize --symbols AAPL TSLA --source csv --data-dir data/ --csv opt.csv
"""

import argparse
import logging
import sys
import time

from tqdm import tqdm

from quantlab.config import backtest_params_from_env, strategy_params_from_env
from quantlab.data.factory import SOURCES, create_data_source
from quantlab.backtest.optimizer import StrategyOptimizer
from quantlab.backtest.report import (
    print_top_results, export_optimization_csv, export_optimization_json,
)

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="均值回归策略参数扫描")
    parser.add_argument("--symbols", nargs="+", default=["AAPL"], help="股票代码列表")
    parser.add_argument("--days", nargs="+", type=int, default=[60, 120, 365], help="回看 K 线数量")
    parser.add_argument(
        "--confidence", nargs="+", type=float, default=[0.5, 0.65, 0.8],
        help="置信度阈值列表",
    )
    parser.add_argument("--timeframe", default="1Day", help="K 线周期（默认 1Day）")
    parser.add_argument("--source", choices=SOURCES, default="alpaca", help="数据源（默认 alpaca）")
    parser.add_argument("--data-dir", help="csv 数据源目录")
    parser.add_argument("--top", type=int, default=10, help="显示前 N 组（默认 10）")
    parser.add_argument("--csv", default="optimization_results.csv", help="CSV 输出路径")
    parser.add_argument("--json", default="optimization_results.json", help="JSON 输出路径")
    parser.add_argument("--verbose", "-v", action="store_true", help="输出调试日志")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    invalid = [c for c in args.confidence if not 0.0 < c <= 1.0]
    if invalid:
        logger.error(f"置信度阈值必须在 (0, 1] 之间: {invalid}")
        return 1

    start_time = time.time()

    try:
        source = create_data_source(args.source, args.data_dir)
        optimizer = StrategyOptimizer(
            source,
            backtest_params=backtest_params_from_env(),
            strategy_params=strategy_params_from_env(),
            timeframe=args.timeframe,
        )
        grid = optimizer.build_parameter_grid(args.symbols, args.days, args.confidence)

        with tqdm(total=len(grid), desc="参数扫描") as pbar:
            optimizer.run(progress_callback=lambda current, total: pbar.update(1))

        logger.info(f"参数扫描完成，耗时 {time.time() - start_time:.1f} 秒")

        print_top_results(optimizer.top_results(args.top), args.top)
        export_optimization_csv(optimizer.results, args.csv)
        export_optimization_json(optimizer.results, args.json)

    except Exception as e:
        logger.error(f"参数扫描失败: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
