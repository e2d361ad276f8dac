"""按名称创建数据源"""

from typing import Optional

from quantlab.config import AlpacaSettings
from .alpaca import AlpacaClient
from .csv_source import CsvDataSource
from .source import MarketDataSource

SOURCES = ("alpaca", "csv")


def create_data_source(
    name: str,
    data_dir: Optional[str] = None,
    settings: Optional[AlpacaSettings] = None,
) -> MarketDataSource:
    """
    创建数据源

    Args:
        name: "alpaca" 或 "csv"
        data_dir: csv 数据目录
        settings: Alpaca 配置，默认从环境变量读取

    Returns:
        MarketDataSource
    """
    if name == "csv":
        if not data_dir:
            raise ValueError("csv 数据源需要指定 data_dir")
        return CsvDataSource(data_dir)
    if name == "alpaca":
        settings = settings or AlpacaSettings.from_env()
        if not settings.has_credentials:
            raise ValueError("缺少 ALPACA_API_KEY_ID / ALPACA_API_SECRET_KEY 环境变量")
        return AlpacaClient(settings)
    raise ValueError(f"Unknown data source: {name}")
