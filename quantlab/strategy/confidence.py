"""
加权置信度

四个因子各自归一化到 [0, 1]，加权平均后映射到 [0.5, 0.95]：

| 因子         | 权重 |
|--------------|------|
| RSI 极值     | 0.35 |
| 布林带极值   | 0.30 |
| 偏离 EMA     | 0.20 |
| 波动率       | 0.15 |
"""

from .models import ConfidenceBreakdown

RSI_WEIGHT = 0.35
BOLLINGER_WEIGHT = 0.30
TREND_WEIGHT = 0.20
VOLATILITY_WEIGHT = 0.15

CONFIDENCE_FLOOR = 0.5
CONFIDENCE_SPAN = 0.45


def _clamp(x: float) -> float:
    return max(0.0, min(1.0, x))


def rsi_score(rsi: float) -> float:
    """RSI 越深入超卖/超买区得分越高"""
    if rsi <= 30:
        return _clamp((30 - rsi) / 30.0)
    if rsi >= 70:
        return _clamp((rsi - 70) / 30.0)
    return 0.0


def bollinger_score(price: float, upper: float, lower: float) -> float:
    """价格突破布林带的幅度（相对带宽）"""
    width = upper - lower
    if width <= 0:
        return 0.0
    if price < lower:
        return _clamp((lower - price) / width)
    if price > upper:
        return _clamp((price - upper) / width)
    return 0.0


def trend_score(price: float, ema: float) -> float:
    """价格偏离 EMA 的程度"""
    if ema <= 0:
        return 0.0
    return min(1.0, 10 * abs(price - ema) / ema)


def volatility_score(upper: float, middle: float, lower: float) -> float:
    """带宽占中轨的比例，波动越大得分越高"""
    width = upper - lower
    if width <= 0 or middle <= 0:
        return 0.0
    return min(1.0, 20 * width / middle)


def calc_confidence(
    price: float,
    ema: float,
    rsi: float,
    bb_upper: float,
    bb_middle: float,
    bb_lower: float,
) -> ConfidenceBreakdown:
    """
    计算置信度

    Args:
        price: 当前价格
        ema: 当前 EMA
        rsi: 当前 RSI
        bb_upper / bb_middle / bb_lower: 布林带（未就绪时全部为 0）

    Returns:
        ConfidenceBreakdown，confidence 取值 [0.5, 0.95]
    """
    scores = (
        (rsi_score(rsi), RSI_WEIGHT),
        (bollinger_score(price, bb_upper, bb_lower), BOLLINGER_WEIGHT),
        (trend_score(price, ema), TREND_WEIGHT),
        (volatility_score(bb_upper, bb_middle, bb_lower), VOLATILITY_WEIGHT),
    )
    total_weight = sum(w for _, w in scores)
    weighted_mean = sum(s * w for s, w in scores) / total_weight

    return ConfidenceBreakdown(
        rsi_score=scores[0][0],
        bollinger_score=scores[1][0],
        trend_score=scores[2][0],
        volatility_score=scores[3][0],
        weighted_mean=weighted_mean,
        confidence=CONFIDENCE_FLOOR + CONFIDENCE_SPAN * weighted_mean,
    )
