"""绩效指标计算"""

from typing import List, Sequence, Tuple

from .models import BacktestMetrics, Trade, TradeAction

TRADING_DAYS_PER_YEAR = 252
RISK_FREE_PCT = 2.0
SHARPE_DIVISOR = 15.0


def calc_cycle_pnl(trades: Sequence[Trade]) -> Tuple[List[float], List[float]]:
    """
    按加权平均成本计算每笔卖出的盈亏

    买入累加持仓成本和股数；卖出按平均成本计算盈亏，
    再按卖出比例扣减持仓成本。

    Args:
        trades: 按时间顺序的成交记录

    Returns:
        (盈利列表, 亏损列表)，亏损取绝对值；盈亏为 0 计入亏损
    """
    wins: List[float] = []
    losses: List[float] = []
    position_cost = 0.0
    position_shares = 0

    for trade in trades:
        if trade.action is TradeAction.BUY:
            position_cost += trade.price * trade.shares
            position_shares += trade.shares
        elif trade.action is TradeAction.SELL and position_shares > 0:
            avg_cost = position_cost / position_shares
            pnl = (trade.price - avg_cost) * trade.shares
            if pnl > 0:
                wins.append(pnl)
            else:
                losses.append(abs(pnl))
            position_cost -= position_cost * (trade.shares / position_shares)
            position_shares -= trade.shares

    return wins, losses


def calc_max_drawdown(values: Sequence[float]) -> float:
    """
    最大回撤（百分比）

    峰值从第一个净值开始，而不是初始资金：单调不减的净值序列回撤为 0。
    """
    if not values:
        return 0.0

    peak = values[0]
    max_dd = 0.0
    for value in values:
        if value > peak:
            peak = value
        if peak > 0:
            dd = (peak - value) / peak * 100
            if dd > max_dd:
                max_dd = dd
    return max_dd


def calc_simple_sharpe(total_return_pct: float) -> float:
    """
    简化 Sharpe：(总收益率 - 2) / 15，收益率不超过 2% 时为 0

    这是总收益率的线性函数，不考虑波动率和年化，只保留为兼容口径。
    """
    if total_return_pct > RISK_FREE_PCT:
        return (total_return_pct - RISK_FREE_PCT) / SHARPE_DIVISOR
    return 0.0


def calc_metrics(
    starting_capital: float,
    cash: float,
    shares_held: int,
    trades: Sequence[Trade],
    daily_values: Sequence[float],
    final_price: float,
) -> BacktestMetrics:
    """
    计算回测绩效指标

    Args:
        starting_capital: 初始资金
        cash: 期末现金
        shares_held: 期末持仓股数
        trades: 全部成交记录
        daily_values: 每日净值
        final_price: 期末估值价格

    Returns:
        BacktestMetrics
    """
    position_value = shares_held * final_price
    ending_capital = cash + position_value
    if starting_capital > 0:
        total_return = (ending_capital - starting_capital) / starting_capital * 100
    else:
        total_return = 0.0

    annualized = 0.0
    if len(daily_values) > 1 and starting_capital > 0 and ending_capital > 0:
        annual_factor = TRADING_DAYS_PER_YEAR / len(daily_values)
        annualized = ((ending_capital / starting_capital) ** annual_factor - 1) * 100

    wins, losses = calc_cycle_pnl(trades)
    completed = len(wins) + len(losses)
    total_wins = sum(wins)
    total_losses = sum(losses)

    return BacktestMetrics(
        starting_capital=starting_capital,
        ending_capital=ending_capital,
        total_return_pct=total_return,
        annualized_return_pct=annualized,
        max_drawdown_pct=calc_max_drawdown(daily_values),
        sharpe_ratio=calc_simple_sharpe(total_return),
        total_trades=len(trades),
        winning_trades=len(wins),
        losing_trades=len(losses),
        win_rate_pct=len(wins) / completed * 100 if completed else 0.0,
        avg_win=total_wins / len(wins) if wins else 0.0,
        avg_loss=total_losses / len(losses) if losses else 0.0,
        # 没有亏损时记为 0（不是无穷大）
        profit_factor=total_wins / total_losses if total_losses > 0 else 0.0,
        max_capital=max([ending_capital, *daily_values]),
        current_position_value=position_value,
    )
