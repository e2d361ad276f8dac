"""行情数据模型"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Bar:
    """K 线（按时间升序由数据源提供）"""
    timestamp: str
    open: float
    high: float
    low: float
    close: float
    volume: int = 0


@dataclass(frozen=True)
class Quote:
    """最新买卖报价"""
    symbol: str
    bid_price: float
    ask_price: float
    bid_size: int = 0
    ask_size: int = 0
    timestamp: str = ""

    @property
    def mid_price(self) -> float:
        return (self.bid_price + self.ask_price) / 2.0

    @property
    def spread(self) -> float:
        return self.ask_price - self.bid_price
