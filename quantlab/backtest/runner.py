"""
回测驱动

两阶段：
- Phase 1: 信号生成（SignalGenerator 在历史 K 线上回放）
- Phase 2: 交易模拟（按置信度阈值和仓位规则执行，逐根记录净值）
"""

import logging
from typing import Iterable, List, Optional

from quantlab.config import BacktestParams
from quantlab.data.models import Bar
from quantlab.strategy.mean_reversion import SignalGenerator
from quantlab.strategy.models import Signal, StrategyResult
from .engine import BacktestSimulator
from .models import BacktestResult
from .sizing import FixedNotionalSizer

logger = logging.getLogger(__name__)


def replay_signals(
    simulator: BacktestSimulator,
    results: Iterable[StrategyResult],
    sizer: FixedNotionalSizer,
    confidence_threshold: float,
) -> int:
    """
    按信号序列执行交易

    Args:
        simulator: 回测模拟器
        results: 按时间顺序的策略输出
        sizer: 仓位规则
        confidence_threshold: 执行交易所需的最低置信度

    Returns:
        成交笔数
    """
    portfolio = simulator.portfolio
    filled = 0

    for result in results:
        price = result.current_price
        if result.confidence >= confidence_threshold:
            if result.signal is Signal.BUY:
                shares = sizer.buy_shares(price, portfolio)
                filled += simulator.execute_buy(
                    price, shares, result.confidence, result.reason, result.timestamp,
                )
            elif result.signal is Signal.SELL and portfolio.shares_held > 0:
                shares = sizer.sell_shares(price, portfolio)
                filled += simulator.execute_sell(
                    price, shares, result.confidence, result.reason, result.timestamp,
                )
        if price > 0:
            simulator.record_value(price)

    return filled


def run_backtest(
    generator: SignalGenerator,
    bars: List[Bar],
    symbol: str = "",
    params: Optional[BacktestParams] = None,
) -> BacktestResult:
    """
    完整回测：信号回放 → 交易模拟 → 绩效计算

    Args:
        generator: 信号生成器（会被重置）
        bars: 历史 K 线，按时间升序
        symbol: 标的代码（仅用于报告）
        params: 回测参数

    Returns:
        BacktestResult
    """
    params = params or BacktestParams()

    logger.info("Phase 1: 生成信号...")
    signals = generator.run_backtest(bars)

    logger.info("Phase 2: 模拟交易...")
    simulator = BacktestSimulator(params.starting_capital)
    sizer = FixedNotionalSizer(params.notional_per_trade, params.sell_all)
    filled = replay_signals(simulator, signals, sizer, generator.confidence_threshold)
    logger.info(f"成交 {filled} 笔")

    final_price = bars[-1].close if bars else 0.0
    metrics = simulator.calculate_final_metrics(final_price)
    portfolio = simulator.portfolio

    return BacktestResult(
        symbol=symbol,
        final_price=final_price,
        metrics=metrics,
        signals=signals,
        trades=list(portfolio.trade_history),
        daily_values=list(portfolio.daily_values),
        cash=portfolio.cash,
        shares_held=portfolio.shares_held,
    )
