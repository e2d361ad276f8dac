"""行情数据获取模块"""

from .models import Bar, Quote
from .source import MarketDataSource
from .alpaca import AlpacaClient
from .csv_source import CsvDataSource, bars_from_dataframe
from .factory import create_data_source, SOURCES

__all__ = [
    "Bar",
    "Quote",
    "MarketDataSource",
    "AlpacaClient",
    "CsvDataSource",
    "bars_from_dataframe",
    "create_data_source",
    "SOURCES",
]
