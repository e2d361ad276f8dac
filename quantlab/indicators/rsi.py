"""
相对强弱指标 RSI

涨幅、跌幅分别做 EMA 平滑：
- 第一个价格只记录，返回中性值 50
- 均涨、均跌都为 0（横盘）→ 50
- 均跌为 0（单边上涨）→ 100
- 否则 RSI = 100 - 100 / (1 + 均涨/均跌)
"""

from .base import Indicator
from .ema import RollingEMA

NEUTRAL_RSI = 50.0


class RSI(Indicator):
    """增量 RSI，取值范围 [0, 100]"""

    def __init__(self, period: int = 14):
        self.gains_ema = RollingEMA(period)
        self.losses_ema = RollingEMA(period)
        self.period = self.gains_ema.period
        self.previous_price = 0.0
        self.current_rsi = NEUTRAL_RSI
        self.initialized = False

    def update(self, price: float) -> float:
        if not self.initialized:
            self.previous_price = price
            self.initialized = True
            return self.current_rsi

        change = price - self.previous_price
        gain = max(change, 0.0)
        loss = max(-change, 0.0)
        avg_gain = self.gains_ema.update(gain)
        avg_loss = self.losses_ema.update(loss)

        if avg_gain == 0.0 and avg_loss == 0.0:
            self.current_rsi = NEUTRAL_RSI
        elif avg_loss == 0.0:
            self.current_rsi = 100.0
        else:
            rs = avg_gain / avg_loss
            self.current_rsi = 100.0 - 100.0 / (1.0 + rs)

        self.previous_price = price
        return self.current_rsi

    def value(self) -> float:
        return self.current_rsi

    def reset(self) -> None:
        self.gains_ema.reset()
        self.losses_ema.reset()
        self.previous_price = 0.0
        self.current_rsi = NEUTRAL_RSI
        self.initialized = False

    def is_initialized(self) -> bool:
        return self.initialized
