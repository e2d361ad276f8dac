"""
布林带

中轨 = 最近 N 个价格的简单均值
上/下轨 = 中轨 ± k * 总体标准差（除数为 N）
窗口未满时返回“未就绪”结果，不能当作信号使用。
"""

from collections import deque
from dataclasses import dataclass
from typing import Deque

import numpy as np

from .base import Indicator, check_period


@dataclass(frozen=True)
class BollingerResult:
    """布林带计算结果"""
    upper: float = 0.0
    middle: float = 0.0
    lower: float = 0.0
    ready: bool = False

    @property
    def width(self) -> float:
        return self.upper - self.lower


NOT_READY = BollingerResult()


class BollingerBands(Indicator):
    """增量布林带"""

    def __init__(self, period: int = 20, k: float = 2.0):
        if k < 0:
            raise ValueError(f"Invalid band multiplier: {k}")
        self.period = check_period(period)
        self.k = k
        self.prices: Deque[float] = deque(maxlen=self.period)
        self.current = NOT_READY

    def update(self, price: float) -> BollingerResult:
        # maxlen 保证超出窗口时自动淘汰最早的价格
        self.prices.append(price)
        if len(self.prices) < self.period:
            return NOT_READY

        window = np.fromiter(self.prices, dtype=float, count=self.period)
        sma = float(window.mean())
        std = float(np.sqrt(np.mean((window - sma) ** 2)))
        self.current = BollingerResult(
            upper=sma + self.k * std,
            middle=sma,
            lower=sma - self.k * std,
            ready=True,
        )
        return self.current

    def value(self) -> BollingerResult:
        return self.current

    def reset(self) -> None:
        self.prices.clear()
        self.current = NOT_READY

    def is_initialized(self) -> bool:
        return self.current.ready
