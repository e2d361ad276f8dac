"""
行情数据源接口

策略只依赖这个接口，具体实现（Alpaca REST、本地 CSV）在构造时注入。
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import Bar, Quote


class MarketDataSource(ABC):
    """行情数据源抽象基类"""

    @abstractmethod
    def fetch_history(self, symbol: str, timeframe: str = "1Day", count: int = 250) -> List[Bar]:
        """
        获取历史 K 线

        Args:
            symbol: 股票代码，如 "AAPL"
            timeframe: K 线周期，如 "1Day"
            count: 最多返回最近多少根

        Returns:
            按时间升序的 K 线列表，失败时为空列表
        """

    @abstractmethod
    def fetch_latest_quote(self, symbol: str) -> Optional[Quote]:
        """获取最新报价，没有报价时返回 None"""
