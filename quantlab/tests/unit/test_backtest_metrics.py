"""回测绩效指标单元测试"""

import pytest

from quantlab.backtest.metrics import (
    calc_metrics, calc_cycle_pnl, calc_max_drawdown, calc_simple_sharpe,
)
from quantlab.backtest.models import Trade, TradeAction


def buy(price, shares):
    return Trade(None, TradeAction.BUY, price, shares, price * shares, 0.8, "")


def sell(price, shares):
    return Trade(None, TradeAction.SELL, price, shares, price * shares, 0.8, "")


def metrics_for(trades, daily_values=(), final_price=0.0, starting_capital=100_000):
    cash = starting_capital
    shares = 0
    for t in trades:
        if t.action is TradeAction.BUY:
            cash -= t.value
            shares += t.shares
        else:
            cash += t.value
            shares -= t.shares
    return calc_metrics(starting_capital, cash, shares, trades, list(daily_values), final_price)


class TestCyclePnl:

    def test_single_winning_cycle(self):
        wins, losses = calc_cycle_pnl([buy(10, 100), sell(15, 100)])
        assert wins == pytest.approx([500])
        assert losses == []

    def test_average_cost_across_partial_sells(self):
        # 平均成本 15：卖 100@18 赚 300，剩余成本 1500；卖 100@12 亏 300
        trades = [buy(10, 100), buy(20, 100), sell(18, 100), sell(12, 100)]
        wins, losses = calc_cycle_pnl(trades)
        assert wins == pytest.approx([300])
        assert losses == pytest.approx([300])

    def test_partial_sell_keeps_average_cost(self):
        trades = [buy(10, 100), sell(12, 50), buy(16, 50), sell(14, 100)]
        wins, losses = calc_cycle_pnl(trades)
        # 第一次卖出后剩余 50 股成本 500；再买 50@16 → 平均成本 13
        assert wins == pytest.approx([100, 100])
        assert losses == []

    def test_breakeven_is_loss(self):
        wins, losses = calc_cycle_pnl([buy(10, 100), sell(10, 100)])
        assert wins == []
        assert losses == pytest.approx([0])

    def test_sell_without_position_ignored(self):
        wins, losses = calc_cycle_pnl([sell(10, 100)])
        assert wins == [] and losses == []


class TestDrawdown:

    def test_max_drawdown(self):
        assert calc_max_drawdown([100_000, 110_000, 99_000, 105_000]) == pytest.approx(10.0)

    def test_monotonic_increasing(self):
        assert calc_max_drawdown([90_000, 95_000, 100_000, 120_000]) == pytest.approx(0.0)

    def test_empty(self):
        assert calc_max_drawdown([]) == 0.0


class TestSharpe:

    def test_above_risk_free(self):
        assert calc_simple_sharpe(17.0) == pytest.approx(1.0)

    @pytest.mark.parametrize("ret", [2.0, 1.0, 0.0, -5.0])
    def test_at_or_below_risk_free(self, ret):
        assert calc_simple_sharpe(ret) == 0.0


class TestCalcMetrics:

    def test_winning_cycle_without_losses(self):
        m = metrics_for([buy(10, 100), sell(15, 100)], final_price=15)
        assert m.total_trades == 2
        assert m.winning_trades == 1
        assert m.losing_trades == 0
        assert m.win_rate_pct == pytest.approx(100.0)
        assert m.avg_win == pytest.approx(500)
        assert m.avg_loss == 0.0
        assert m.profit_factor == 0.0  # 没有亏损时记为 0
        assert m.ending_capital == pytest.approx(100_500)
        assert m.total_return_pct == pytest.approx(0.5)

    def test_profit_factor(self):
        trades = [buy(10, 100), sell(14, 100), buy(10, 100), sell(8, 100)]
        m = metrics_for(trades)
        assert m.winning_trades == 1
        assert m.losing_trades == 1
        assert m.win_rate_pct == pytest.approx(50.0)
        assert m.avg_win == pytest.approx(400)
        assert m.avg_loss == pytest.approx(200)
        assert m.profit_factor == pytest.approx(2.0)

    def test_open_position_marked_to_final_price(self):
        m = metrics_for([buy(50, 1000)], final_price=60)
        assert m.current_position_value == pytest.approx(60_000)
        assert m.ending_capital == pytest.approx(110_000)
        assert m.total_return_pct == pytest.approx(10.0)
        assert m.sharpe_ratio == pytest.approx(8 / 15)
        assert m.winning_trades == 0
        assert m.win_rate_pct == 0.0

    def test_no_trades(self):
        m = metrics_for([], final_price=100)
        assert m.total_trades == 0
        assert m.ending_capital == pytest.approx(100_000)
        assert m.total_return_pct == 0.0
        assert m.max_drawdown_pct == 0.0
        assert m.sharpe_ratio == 0.0
        assert m.win_rate_pct == 0.0
        assert m.profit_factor == 0.0

    def test_drawdown_and_max_capital(self):
        values = [100_000, 110_000, 99_000, 105_000]
        m = metrics_for([], daily_values=values)
        assert m.max_drawdown_pct == pytest.approx(10.0)
        assert m.max_capital == pytest.approx(110_000)

    def test_annualized_return(self):
        values = [100_000 + i * 40 for i in range(252)]
        m = metrics_for([buy(100, 100)], daily_values=values, final_price=210)
        assert m.total_return_pct == pytest.approx(11.0)
        assert m.annualized_return_pct == pytest.approx(11.0)

    def test_annualized_needs_history(self):
        m = metrics_for([buy(100, 100)], daily_values=[100_000], final_price=210)
        assert m.annualized_return_pct == 0.0
