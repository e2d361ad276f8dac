"""
回测 CLI 入口

用法:
    python -m quantlab.backtest --symbol TSLA --days 120
    python -m quantlab.backtest --symbol TSLA --source csv --data-dir data/
    python -m quantlab.backtest --symbol TSLA --confidence 0.7 --csv trades.csv --json metrics.json
"""

import argparse
import logging
import sys
import time

from quantlab.config import backtest_params_from_env, strategy_params_from_env
from quantlab.data.factory import SOURCES, create_data_source
from quantlab.strategy.mean_reversion import SignalGenerator
from quantlab.backtest.runner import run_backtest
from quantlab.backtest.report import (
    print_report, print_trade_summary, export_trades_csv, export_metrics_json,
)

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="均值回归策略回测")
    parser.add_argument("--symbol", "-s", required=True, help="股票代码，如 TSLA")
    parser.add_argument("--days", type=int, default=120, help="历史 K 线数量（默认 120）")
    parser.add_argument("--timeframe", default="1Day", help="K 线周期（默认 1Day）")
    parser.add_argument("--source", choices=SOURCES, default="alpaca", help="数据源（默认 alpaca）")
    parser.add_argument("--data-dir", help="csv 数据源目录")
    parser.add_argument("--capital", type=float, help="初始资金")
    parser.add_argument("--notional", type=float, help="每笔交易名义金额")
    parser.add_argument("--confidence", type=float, help="置信度阈值 (0, 1]")
    parser.add_argument(
        "--sell-partial", action="store_true",
        help="每次卖出不超过一笔名义金额（默认清仓）",
    )
    parser.add_argument("--live-signal", action="store_true", help="回测前先输出最新报价的实时信号")
    parser.add_argument("--csv", help="导出成交明细到 CSV 文件")
    parser.add_argument("--json", help="导出绩效指标到 JSON 文件")
    parser.add_argument("--verbose", "-v", action="store_true", help="输出调试日志")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    start_time = time.time()

    try:
        strategy_params = strategy_params_from_env()
        backtest_params = backtest_params_from_env()
        if args.capital is not None:
            backtest_params.starting_capital = args.capital
        if args.notional is not None:
            backtest_params.notional_per_trade = args.notional
        if args.sell_partial:
            backtest_params.sell_all = False

        source = create_data_source(args.source, args.data_dir)
        generator = SignalGenerator(data_source=source, params=strategy_params)
        if args.confidence is not None and not generator.set_confidence_threshold(args.confidence):
            logger.error(f"置信度阈值必须在 (0, 1] 之间: {args.confidence}")
            return 1

        logger.info(f"加载 {args.symbol} 历史数据: {args.days} 根 {args.timeframe} K 线")
        loaded = generator.load_history(args.symbol, args.timeframe, args.days)
        if loaded == 0:
            logger.error(f"{args.symbol} 没有历史数据")
            return 1

        if args.live_signal:
            signal = generator.generate_live_signal(args.symbol)
            logger.info(
                f"实时信号: {signal.signal.value} | 价格 {signal.current_price:.2f} "
                f"| 置信度 {signal.confidence:.0%} | {signal.reason}"
            )

        logger.info(
            f"初始化回测: 资金={backtest_params.starting_capital:,.0f}, "
            f"每笔={backtest_params.notional_per_trade:,.0f}, "
            f"阈值={generator.confidence_threshold:.0%}"
        )
        result = run_backtest(generator, generator.history, args.symbol, backtest_params)

        logger.info(f"回测完成，耗时 {time.time() - start_time:.1f} 秒")

        print_report(result)
        print_trade_summary(result)

        if args.csv:
            export_trades_csv(result, args.csv)
        if args.json:
            export_metrics_json(result, args.json)

    except Exception as e:
        logger.error(f"回测失败: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
