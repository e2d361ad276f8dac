"""
指数移动平均 EMA

EMA_t = α * price_t + (1 - α) * EMA_{t-1}，α = 2 / (N + 1)
第一个价格直接作为初始 EMA。
"""

from .base import Indicator, check_period


class RollingEMA(Indicator):
    """增量 EMA"""

    def __init__(self, period: int):
        self.period = check_period(period)
        self.alpha = 2.0 / (self.period + 1)
        self.current_ema = 0.0
        self.initialized = False

    def update(self, price: float) -> float:
        if not self.initialized:
            self.current_ema = price
            self.initialized = True
        else:
            self.current_ema = self.alpha * price + (1 - self.alpha) * self.current_ema
        return self.current_ema

    def value(self) -> float:
        """当前 EMA（未初始化时为 0，调用方需先检查 is_initialized）"""
        return self.current_ema

    def reset(self) -> None:
        self.current_ema = 0.0
        self.initialized = False

    def is_initialized(self) -> bool:
        return self.initialized
