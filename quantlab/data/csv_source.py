"""
本地 CSV 数据源

每个股票一个文件：<data_dir>/<SYMBOL>.csv
必须包含 timestamp（或 date）, open, high, low, close 列，volume 可选。
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from .models import Bar, Quote
from .source import MarketDataSource

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["open", "high", "low", "close"]


def bars_from_dataframe(df: pd.DataFrame) -> List[Bar]:
    """
    DataFrame 转为 K 线列表（按时间升序）

    Args:
        df: 包含 timestamp/date 和 OHLC 列的 DataFrame

    Returns:
        K 线列表
    """
    if df.empty:
        return []

    df = df.copy()
    if "timestamp" not in df.columns:
        if "date" not in df.columns:
            raise ValueError("DataFrame 缺少 timestamp/date 列")
        df["timestamp"] = df["date"]

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"DataFrame 缺少列: {missing}")

    if "volume" not in df.columns:
        df["volume"] = 0

    df["timestamp"] = df["timestamp"].astype(str)
    for col in REQUIRED_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df["volume"] = pd.to_numeric(df["volume"], errors="coerce").fillna(0).astype(int)
    df = df.dropna(subset=REQUIRED_COLUMNS)
    df = df.sort_values("timestamp").reset_index(drop=True)

    return [
        Bar(
            timestamp=row.timestamp,
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=int(row.volume),
        )
        for row in df.itertuples(index=False)
    ]


class CsvDataSource(MarketDataSource):
    """从本地 CSV 读取行情"""

    def __init__(self, data_dir: Union[str, Path]):
        self.data_dir = Path(data_dir)

    def _path_for(self, symbol: str) -> Path:
        return self.data_dir / f"{symbol.upper()}.csv"

    def fetch_history(self, symbol: str, timeframe: str = "1Day", count: int = 250) -> List[Bar]:
        path = self._path_for(symbol)
        if not path.exists():
            logger.error(f"找不到 {symbol} 的数据文件: {path}")
            return []

        try:
            df = pd.read_csv(path)
            bars = bars_from_dataframe(df)
        except (ValueError, pd.errors.ParserError) as e:
            logger.error(f"读取 {path} 失败: {e}")
            return []

        if count > 0:
            bars = bars[-count:]
        logger.info(f"从 {path} 加载 {len(bars)} 根 K 线 ({timeframe})")
        return bars

    def fetch_latest_quote(self, symbol: str) -> Optional[Quote]:
        """用最后一根 K 线的收盘价合成报价"""
        bars = self.fetch_history(symbol, count=1)
        if not bars:
            return None
        last = bars[-1]
        return Quote(
            symbol=symbol,
            bid_price=last.close,
            ask_price=last.close,
            timestamp=last.timestamp,
        )
