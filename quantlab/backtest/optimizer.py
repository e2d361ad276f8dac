"""
参数网格搜索

对 (标的, 回看天数, 置信度阈值) 的笛卡尔积逐组回测。
每组使用全新的 SignalGenerator / BacktestSimulator，互不共享状态；
同一 (标的, 天数) 的历史数据只获取一次。
"""

import itertools
import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import pandas as pd

from quantlab.config import BacktestParams, StrategyParams
from quantlab.data.models import Bar
from quantlab.data.source import MarketDataSource
from quantlab.strategy.mean_reversion import SignalGenerator
from .runner import run_backtest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParameterSet:
    """一组待测参数"""
    symbol: str
    days: int
    confidence_threshold: float


@dataclass
class OptimizationResult:
    """单组参数的回测结果"""
    parameters: ParameterSet
    total_return_pct: float = 0.0
    max_drawdown_pct: float = 0.0
    sharpe_ratio: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    win_rate_pct: float = 0.0
    profit_factor: float = 0.0
    error: Optional[str] = None


def results_to_dataframe(results: Sequence[OptimizationResult]) -> pd.DataFrame:
    """扫描结果转为 DataFrame（参数列展开）"""
    rows = []
    for r in results:
        rows.append({
            "symbol": r.parameters.symbol,
            "days": r.parameters.days,
            "confidence_threshold": r.parameters.confidence_threshold,
            "total_return_pct": r.total_return_pct,
            "max_drawdown_pct": r.max_drawdown_pct,
            "sharpe_ratio": r.sharpe_ratio,
            "total_trades": r.total_trades,
            "winning_trades": r.winning_trades,
            "win_rate_pct": r.win_rate_pct,
            "profit_factor": r.profit_factor,
            "error": r.error,
        })
    columns = [
        "symbol", "days", "confidence_threshold", "total_return_pct",
        "max_drawdown_pct", "sharpe_ratio", "total_trades", "winning_trades",
        "win_rate_pct", "profit_factor", "error",
    ]
    return pd.DataFrame(rows, columns=columns)


class StrategyOptimizer:
    """策略参数扫描"""

    def __init__(
        self,
        data_source: MarketDataSource,
        backtest_params: Optional[BacktestParams] = None,
        strategy_params: Optional[StrategyParams] = None,
        timeframe: str = "1Day",
    ):
        self.data_source = data_source
        self.backtest_params = backtest_params or BacktestParams()
        self.strategy_params = strategy_params or StrategyParams()
        self.timeframe = timeframe
        self.parameter_grid: List[ParameterSet] = []
        self.results: List[OptimizationResult] = []
        self._history_cache: Dict[Tuple[str, int], List[Bar]] = {}

    def build_parameter_grid(
        self,
        symbols: Sequence[str],
        days_range: Sequence[int],
        confidence_range: Sequence[float],
    ) -> List[ParameterSet]:
        self.parameter_grid = [
            ParameterSet(symbol, days, conf)
            for symbol, days, conf in itertools.product(symbols, days_range, confidence_range)
        ]
        logger.info(
            f"参数网格 {len(self.parameter_grid)} 组 "
            f"(标的 {len(symbols)} × 天数 {len(days_range)} × 阈值 {len(confidence_range)})"
        )
        return self.parameter_grid

    def _get_history(self, symbol: str, days: int) -> List[Bar]:
        key = (symbol, days)
        if key not in self._history_cache:
            self._history_cache[key] = self.data_source.fetch_history(symbol, self.timeframe, days)
        return self._history_cache[key]

    def run_single(self, params: ParameterSet) -> OptimizationResult:
        """回测单组参数，异常只记录不抛出"""
        result = OptimizationResult(parameters=params)
        try:
            bars = self._get_history(params.symbol, params.days)
            if not bars:
                result.error = "no data"
                return result

            strategy = replace(self.strategy_params, confidence_threshold=params.confidence_threshold)
            generator = SignalGenerator(params=strategy)
            backtest = run_backtest(generator, bars, params.symbol, self.backtest_params)
            m = backtest.metrics

            result.total_return_pct = m.total_return_pct
            result.max_drawdown_pct = m.max_drawdown_pct
            result.sharpe_ratio = m.sharpe_ratio
            result.total_trades = m.total_trades
            result.winning_trades = m.winning_trades
            result.win_rate_pct = m.win_rate_pct
            result.profit_factor = m.profit_factor
        except Exception as e:
            logger.error(
                f"回测失败 {params.symbol} {params.days} 天 "
                f"阈值 {params.confidence_threshold:.0%}: {e}"
            )
            result.error = str(e)
        return result

    def run(self, progress_callback: Optional[Callable[[int, int], None]] = None) -> List[OptimizationResult]:
        """
        逐组回测

        Args:
            progress_callback: 进度回调 (current, total)

        Returns:
            全部结果（与参数网格同序）
        """
        self.results = []
        total = len(self.parameter_grid)
        for i, params in enumerate(self.parameter_grid):
            self.results.append(self.run_single(params))
            if progress_callback:
                progress_callback(i + 1, total)

        failed = sum(1 for r in self.results if r.error)
        logger.info(f"参数扫描完成: {total} 组，失败 {failed} 组")
        return self.results

    def top_results(self, n: int = 10) -> List[OptimizationResult]:
        """按总收益率降序取前 n 组（跳过失败的组）"""
        ok = [r for r in self.results if r.error is None]
        return sorted(ok, key=lambda r: r.total_return_pct, reverse=True)[:n]

    def to_dataframe(self) -> pd.DataFrame:
        return results_to_dataframe(self.results)
