"""策略数据模型"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Signal(Enum):
    """交易信号"""
    NONE = "NONE"  # 未初始化 / 无数据
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"  # 明确决定不交易


@dataclass(frozen=True)
class IndicatorSnapshot:
    """一次价格更新后的指标值（bb_* 仅在 bb_ready 时有意义）"""
    ema: float = 0.0
    rsi: float = 50.0
    bb_upper: float = 0.0
    bb_middle: float = 0.0
    bb_lower: float = 0.0
    bb_ready: bool = False


@dataclass(frozen=True)
class ConfidenceBreakdown:
    """置信度各因子得分，每项取值 [0, 1]"""
    rsi_score: float
    bollinger_score: float
    trend_score: float
    volatility_score: float
    weighted_mean: float
    confidence: float


@dataclass(frozen=True)
class StrategyResult:
    """策略输出"""
    signal: Signal = Signal.NONE
    confidence: float = 0.0
    reason: str = ""
    current_price: float = 0.0
    indicators: IndicatorSnapshot = field(default_factory=IndicatorSnapshot)
    breakdown: Optional[ConfidenceBreakdown] = None
    timestamp: Optional[str] = None

    @property
    def is_actionable(self) -> bool:
        return self.signal in (Signal.BUY, Signal.SELL)
