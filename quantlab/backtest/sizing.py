"""仓位大小：每笔固定名义金额，按整股取整"""

from .portfolio import Portfolio


class FixedNotionalSizer:
    """固定名义金额仓位"""

    def __init__(self, notional: float = 50_000, sell_all: bool = True):
        if notional <= 0:
            raise ValueError(f"Invalid notional: {notional}")
        self.notional = notional
        self.sell_all = sell_all  # False 表示每次最多卖出一笔名义金额对应的股数

    def buy_shares(self, price: float, portfolio: Portfolio) -> int:
        if price <= 0:
            return 0
        return int(self.notional / price)

    def sell_shares(self, price: float, portfolio: Portfolio) -> int:
        if self.sell_all:
            return portfolio.shares_held
        if price <= 0:
            return 0
        return min(int(self.notional / price), portfolio.shares_held)
