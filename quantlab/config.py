"""
配置

参数默认值写在 dataclass 里，CLI 入口可以用环境变量覆盖：
格式：<PREFIX><FIELD>，如 QUANTLAB_STRATEGY_RSI_PERIOD=10
核心模块（指标、策略、回测）不读取环境变量，只接收显式参数。
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Optional

STRATEGY_ENV_PREFIX = "QUANTLAB_STRATEGY_"
BACKTEST_ENV_PREFIX = "QUANTLAB_BACKTEST_"

DEFAULT_DATA_URL = "https://data.alpaca.markets/v2"
DEFAULT_TRADING_URL = "https://paper-api.alpaca.markets"
DEFAULT_TIMEOUT = 30


@dataclass
class StrategyParams:
    """均值回归策略参数"""
    ema_period: int = 20
    rsi_period: int = 14
    bb_period: int = 20
    bb_k: float = 2.0
    oversold: float = 30.0
    overbought: float = 70.0
    confidence_threshold: float = 0.65


@dataclass
class BacktestParams:
    """回测参数"""
    starting_capital: float = 1_000_000.0
    notional_per_trade: float = 50_000.0
    sell_all: bool = True  # False 表示每次卖出不超过一笔名义金额对应的股数


@dataclass
class AlpacaSettings:
    """Alpaca 连接配置"""
    api_key: str = ""
    api_secret: str = ""
    base_url: str = DEFAULT_TRADING_URL
    data_url: str = DEFAULT_DATA_URL
    feed: str = "iex"
    timeout: int = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls) -> "AlpacaSettings":
        """从 ALPACA_* 环境变量读取"""
        return cls(
            api_key=os.getenv("ALPACA_API_KEY_ID", ""),
            api_secret=os.getenv("ALPACA_API_SECRET_KEY", ""),
            base_url=os.getenv("ALPACA_BASE_URL", DEFAULT_TRADING_URL),
            data_url=os.getenv("ALPACA_DATA_URL", DEFAULT_DATA_URL),
            feed=os.getenv("ALPACA_FEED", "iex"),
            timeout=int(os.getenv("ALPACA_TIMEOUT", str(DEFAULT_TIMEOUT))),
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_secret)


def _convert(raw: str, default_value: Any) -> Any:
    """根据默认值类型转换环境变量（bool 必须先于 int 判断）"""
    if isinstance(default_value, bool):
        return raw.lower() in ("true", "1", "yes")
    if isinstance(default_value, int):
        return int(raw)
    if isinstance(default_value, float):
        return float(raw)
    return raw


def load_params_from_env(params: Any, prefix: str, environ: Optional[dict] = None) -> Any:
    """
    用环境变量覆盖 dataclass 参数

    Args:
        params: StrategyParams / BacktestParams 实例（原地修改）
        prefix: 环境变量前缀
        environ: 环境变量字典，默认 os.environ

    Returns:
        同一个 params 实例
    """
    environ = os.environ if environ is None else environ
    for f in fields(params):
        env_value = environ.get(prefix + f.name.upper())
        if env_value is not None:
            setattr(params, f.name, _convert(env_value, getattr(params, f.name)))
    return params


def strategy_params_from_env(environ: Optional[dict] = None) -> StrategyParams:
    return load_params_from_env(StrategyParams(), STRATEGY_ENV_PREFIX, environ)


def backtest_params_from_env(environ: Optional[dict] = None) -> BacktestParams:
    return load_params_from_env(BacktestParams(), BACKTEST_ENV_PREFIX, environ)
