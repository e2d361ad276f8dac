"""
回测模拟器

持有一个 Portfolio，由外部驱动逐笔执行买卖，结束时按期末价格计算绩效。
仓位大小由调用方决定（见 sizing.py），模拟器只负责记账。
"""

import logging
from typing import Optional

from .metrics import calc_metrics
from .models import BacktestMetrics
from .portfolio import Portfolio

logger = logging.getLogger(__name__)


class BacktestSimulator:
    """回测模拟器"""

    def __init__(self, starting_capital: float = 100_000):
        self._portfolio = Portfolio(starting_capital)
        self._metrics = BacktestMetrics(starting_capital=starting_capital)

    @property
    def portfolio(self) -> Portfolio:
        return self._portfolio

    @property
    def metrics(self) -> BacktestMetrics:
        return self._metrics

    @property
    def starting_capital(self) -> float:
        return self._portfolio.starting_capital

    def execute_buy(self, price: float, shares: int, confidence: float = 0.0,
                    reason: str = "", timestamp: Optional[str] = None) -> bool:
        """买入；资金不足或价格/股数无效时静默忽略"""
        filled = self._portfolio.execute_buy(price, shares, confidence, reason, timestamp)
        if not filled:
            logger.debug(f"买入被拒绝: {shares} 股 @ {price:.2f}，现金 {self._portfolio.cash:.2f}")
        return filled

    def execute_sell(self, price: float, shares: int, confidence: float = 0.0,
                     reason: str = "", timestamp: Optional[str] = None) -> bool:
        """卖出；持仓不足或价格/股数无效时静默忽略"""
        filled = self._portfolio.execute_sell(price, shares, confidence, reason, timestamp)
        if not filled:
            logger.debug(f"卖出被拒绝: {shares} 股 @ {price:.2f}，持仓 {self._portfolio.shares_held}")
        return filled

    def record_value(self, price: float) -> float:
        return self._portfolio.record_value(price)

    def calculate_final_metrics(self, final_price: float) -> BacktestMetrics:
        """按期末价格计算绩效快照"""
        p = self._portfolio
        self._metrics = calc_metrics(
            starting_capital=p.starting_capital,
            cash=p.cash,
            shares_held=p.shares_held,
            trades=p.trade_history,
            daily_values=p.daily_values,
            final_price=final_price,
        )
        return self._metrics
