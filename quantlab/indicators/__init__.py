"""流式技术指标模块"""

from .base import Indicator
from .ema import RollingEMA
from .rsi import RSI, NEUTRAL_RSI
from .bollinger import BollingerBands, BollingerResult, NOT_READY

__all__ = [
    # 基类
    "Indicator",
    # 指标
    "RollingEMA",
    "RSI",
    "BollingerBands",
    # 结果
    "BollingerResult",
    "NOT_READY",
    "NEUTRAL_RSI",
]
