"""仓位管理：现金、持仓、成交记录、每日净值"""

from typing import List, Optional

from .models import Trade, TradeAction


class Portfolio:
    """单标的投资组合"""

    def __init__(self, starting_capital: float = 100_000):
        if starting_capital < 0:
            raise ValueError(f"Invalid starting capital: {starting_capital}")
        self.starting_capital = starting_capital
        self.cash = starting_capital
        self.shares_held = 0
        self.last_buy_price = 0.0
        self.trade_history: List[Trade] = []
        self.daily_values: List[float] = []

    def total_value(self, price: float) -> float:
        """按给定价格计算组合总值"""
        return self.cash + self.shares_held * price

    @staticmethod
    def _valid_order(price: float, shares: int) -> bool:
        # 价格为正，股数为正整数
        return price > 0 and shares > 0 and int(shares) == shares

    def can_buy(self, price: float, shares: int) -> bool:
        return self._valid_order(price, shares) and self.cash >= price * shares

    def can_sell(self, price: float, shares: int) -> bool:
        return self._valid_order(price, shares) and shares <= self.shares_held

    def execute_buy(
        self,
        price: float,
        shares: int,
        confidence: float = 0.0,
        reason: str = "",
        timestamp: Optional[str] = None,
    ) -> bool:
        """
        买入，资金不足或价格/股数无效时忽略

        Returns:
            是否成交
        """
        if not self.can_buy(price, shares):
            return False

        shares = int(shares)
        cost = price * shares
        self.cash -= cost
        self.shares_held += shares
        self.last_buy_price = price
        self.trade_history.append(Trade(
            timestamp=timestamp, action=TradeAction.BUY,
            price=price, shares=shares, value=cost,
            confidence=confidence, reason=reason,
        ))
        return True

    def execute_sell(
        self,
        price: float,
        shares: int,
        confidence: float = 0.0,
        reason: str = "",
        timestamp: Optional[str] = None,
    ) -> bool:
        """
        卖出，持仓不足或价格/股数无效时忽略

        Returns:
            是否成交
        """
        if not self.can_sell(price, shares):
            return False

        shares = int(shares)
        proceeds = price * shares
        self.cash += proceeds
        self.shares_held -= shares
        self.trade_history.append(Trade(
            timestamp=timestamp, action=TradeAction.SELL,
            price=price, shares=shares, value=proceeds,
            confidence=confidence, reason=reason,
        ))
        return True

    def record_value(self, price: float) -> float:
        """记录当前净值"""
        value = self.total_value(price)
        self.daily_values.append(value)
        return value
