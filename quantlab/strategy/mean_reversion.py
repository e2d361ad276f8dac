"""
均值回归策略（带动量过滤）

买入：RSI < 超卖阈值 且 置信度 ≥ 阈值
卖出：RSI > 超买阈值 且 置信度 ≥ 阈值
其余：观望

每个 SignalGenerator 独占一套指标，不同标的/参数组合之间没有共享状态。
"""

import logging
from dataclasses import fields, replace
from typing import Iterable, List, Optional

from quantlab.config import StrategyParams
from quantlab.data.models import Bar
from quantlab.data.source import MarketDataSource
from quantlab.indicators import RollingEMA, RSI, BollingerBands
from .confidence import calc_confidence
from .models import Signal, StrategyResult, IndicatorSnapshot

logger = logging.getLogger(__name__)


class SignalGenerator:
    """均值回归信号生成器"""

    # 回测时的预热 K 线数（不超过数据量的一半）
    WARMUP_PERIODS = 20

    def __init__(
        self,
        data_source: Optional[MarketDataSource] = None,
        params: Optional[StrategyParams] = None,
        **overrides,
    ):
        self.data_source = data_source
        self.params = replace(params) if params else StrategyParams()
        self._validate(self.params)
        self.history: List[Bar] = []
        self._build_indicators()
        if overrides:
            self.configure(**overrides)

    @staticmethod
    def _validate(params: StrategyParams):
        """阈值配置检查，无效时抛出 ValueError"""
        if params.oversold >= params.overbought:
            raise ValueError(
                f"oversold must be below overbought: {params.oversold} >= {params.overbought}"
            )
        if not 0.0 < params.confidence_threshold <= 1.0:
            raise ValueError(f"Invalid confidence threshold: {params.confidence_threshold}")

    def _build_indicators(self, params: Optional[StrategyParams] = None):
        p = params or self.params
        ema = RollingEMA(p.ema_period)
        rsi = RSI(p.rsi_period)
        bands = BollingerBands(p.bb_period, p.bb_k)
        self.ema, self.rsi, self.bands = ema, rsi, bands

    # ------------------------------------------------------------------
    # 参数
    # ------------------------------------------------------------------

    @property
    def confidence_threshold(self) -> float:
        return self.params.confidence_threshold

    def set_confidence_threshold(self, threshold: float) -> bool:
        """
        设置置信度阈值，只接受 (0, 1]

        Returns:
            是否生效
        """
        if not 0.0 < threshold <= 1.0:
            logger.warning(f"忽略无效的置信度阈值: {threshold}")
            return False
        self.params.confidence_threshold = threshold
        return True

    def configure(self, **kwargs):
        """
        调整策略参数

        可选参数：confidence_threshold, oversold, overbought,
        ema_period, rsi_period, bb_period, bb_k
        修改任何指标周期都会重建指标（状态清空）。
        任何参数无效都抛出 ValueError 且不修改当前配置；
        confidence_threshold 也不例外（set_confidence_threshold 则只返回 False）。
        """
        valid = {f.name for f in fields(StrategyParams)}
        unknown = set(kwargs) - valid
        if unknown:
            raise ValueError(f"Unknown strategy parameter: {sorted(unknown)}")

        candidate = replace(self.params, **kwargs)
        self._validate(candidate)

        rebuild = any(
            getattr(candidate, k) != getattr(self.params, k)
            for k in ("ema_period", "rsi_period", "bb_period", "bb_k")
        )
        if rebuild:
            self._build_indicators(candidate)
        self.params = candidate

    # ------------------------------------------------------------------
    # 指标
    # ------------------------------------------------------------------

    def reset(self):
        """清空全部指标状态"""
        self.ema.reset()
        self.rsi.reset()
        self.bands.reset()

    def is_ready(self) -> bool:
        """三个指标是否都已就绪"""
        return (
            self.ema.is_initialized()
            and self.rsi.is_initialized()
            and self.bands.is_initialized()
        )

    def _update_indicators(self, price: float) -> IndicatorSnapshot:
        ema = self.ema.update(price)
        rsi = self.rsi.update(price)
        bands = self.bands.update(price)
        return IndicatorSnapshot(
            ema=ema,
            rsi=rsi,
            bb_upper=bands.upper,
            bb_middle=bands.middle,
            bb_lower=bands.lower,
            bb_ready=bands.ready,
        )

    def ingest_history(self, bars: Iterable[Bar]) -> int:
        """
        用历史 K 线预热指标（不产生信号）

        Returns:
            处理的 K 线数
        """
        self.history = list(bars)
        for bar in self.history:
            self._update_indicators(bar.close)
        logger.debug(f"预热指标: {len(self.history)} 根 K 线")
        return len(self.history)

    def load_history(self, symbol: str, timeframe: str = "1Day", count: int = 250) -> int:
        """从注入的数据源获取历史 K 线并预热指标"""
        if self.data_source is None:
            logger.error("未配置数据源，无法加载历史数据")
            return 0
        bars = self.data_source.fetch_history(symbol, timeframe, count)
        logger.info(f"加载 {symbol} {len(bars)} 根历史 K 线")
        return self.ingest_history(bars)

    # ------------------------------------------------------------------
    # 信号
    # ------------------------------------------------------------------

    def _decide(self, price: float, snapshot: IndicatorSnapshot, timestamp: Optional[str] = None) -> StrategyResult:
        p = self.params
        breakdown = calc_confidence(
            price, snapshot.ema, snapshot.rsi,
            snapshot.bb_upper, snapshot.bb_middle, snapshot.bb_lower,
        )
        confidence = breakdown.confidence
        rsi = snapshot.rsi

        if rsi < p.oversold and confidence >= p.confidence_threshold:
            signal = Signal.BUY
            reason = f"买入: RSI={rsi:.1f} (超卖<{p.oversold:g})，置信度={confidence:.0%}"
        elif rsi > p.overbought and confidence >= p.confidence_threshold:
            signal = Signal.SELL
            reason = f"卖出: RSI={rsi:.1f} (超买>{p.overbought:g})，置信度={confidence:.0%}"
        else:
            signal = Signal.HOLD
            reason = (
                f"观望: RSI={rsi:.1f}，置信度={confidence:.0%} "
                f"(需要 ≥{p.confidence_threshold:.0%} 且 RSI 越过阈值)"
            )

        return StrategyResult(
            signal=signal,
            confidence=confidence,
            reason=reason,
            current_price=price,
            indicators=snapshot,
            breakdown=breakdown,
            timestamp=timestamp,
        )

    def generate_signal(self, current_price: Optional[float], timestamp: Optional[str] = None) -> StrategyResult:
        """
        输入最新价格，更新指标并给出信号

        Args:
            current_price: 最新价格，None 表示没有可用报价
            timestamp: 可选的时间戳，原样写入结果

        Returns:
            StrategyResult
        """
        if current_price is None:
            return StrategyResult(
                signal=Signal.HOLD,
                confidence=0.0,
                reason="无可用报价，保持观望",
                timestamp=timestamp,
            )
        snapshot = self._update_indicators(current_price)
        return self._decide(current_price, snapshot, timestamp)

    def generate_live_signal(self, symbol: str) -> StrategyResult:
        """用数据源的最新报价（买卖中间价）生成信号"""
        quote = self.data_source.fetch_latest_quote(symbol) if self.data_source else None
        if quote is None:
            logger.warning(f"{symbol} 无报价，保持观望")
            return self.generate_signal(None)
        return self.generate_signal(quote.mid_price, quote.timestamp or None)

    def run_backtest(self, bars: Optional[Iterable[Bar]] = None) -> List[StrategyResult]:
        """
        在历史数据上逐根回放

        重置指标，用前 min(20, n/2) 根 K 线预热，之后每根 K 线输出一个结果。

        Args:
            bars: 历史 K 线，默认使用 ingest_history 保存的数据

        Returns:
            按时间顺序的 StrategyResult 列表
        """
        bars = list(bars) if bars is not None else self.history
        if not bars:
            logger.warning("没有历史数据，无法回测")
            return []

        self.reset()
        warmup = min(self.WARMUP_PERIODS, len(bars) // 2)
        for bar in bars[:warmup]:
            self._update_indicators(bar.close)

        results = [
            self._decide(bar.close, self._update_indicators(bar.close), bar.timestamp)
            for bar in bars[warmup:]
        ]
        logger.info(
            f"回放 {len(bars)} 根 K 线（预热 {warmup}），"
            f"买入信号 {sum(r.signal is Signal.BUY for r in results)}，"
            f"卖出信号 {sum(r.signal is Signal.SELL for r in results)}"
        )
        return results
