"""
Alpaca 行情客户端

- 历史 K 线：GET /stocks/{symbol}/bars（分页 next_page_token）
- 最新报价：GET /stocks/{symbol}/quotes/latest
- 429/5xx/超时/连接失败时指数退避重试，请求之间固定间隔限速
"""

import logging
import re
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests

from quantlab.config import AlpacaSettings
from .models import Bar, Quote
from .source import MarketDataSource

logger = logging.getLogger(__name__)

# 每个周期单位大约对应多少个自然日，用于推算起始日期
_TIMEFRAME_DAYS = {
    "Min": 1 / (6.5 * 60),
    "T": 1 / (6.5 * 60),
    "Hour": 1 / 6.5,
    "H": 1 / 6.5,
    "Day": 7 / 5,
    "D": 7 / 5,
    "Week": 7,
    "W": 7,
    "Month": 31,
    "M": 31,
}

_TIMEFRAME_RE = re.compile(r"^(\d+)([A-Za-z]+)$")


def lookback_days(timeframe: str, count: int) -> int:
    """
    估算取回 count 根 K 线需要回溯的自然日数（留出节假日余量）

    Args:
        timeframe: 如 "1Day", "15Min", "1Hour"
        count: K 线数量

    Returns:
        回溯天数
    """
    match = _TIMEFRAME_RE.match(timeframe)
    if not match or match.group(2) not in _TIMEFRAME_DAYS:
        raise ValueError(f"Unknown timeframe: {timeframe}")
    amount = int(match.group(1))
    days = amount * count * _TIMEFRAME_DAYS[match.group(2)]
    return int(days * 1.2) + 5


class AlpacaClient(MarketDataSource):
    """Alpaca Market Data v2 客户端"""

    # 请求间隔（秒），免费账户 200 次/分钟
    REQUEST_INTERVAL = 0.3
    # 最大重试次数
    MAX_RETRIES = 3
    # 重试基础等待时间（秒），按 2^attempt 递增
    RETRY_WAIT = 2
    # 单页最大条数
    PAGE_LIMIT = 10_000

    def __init__(self, settings: Optional[AlpacaSettings] = None):
        self.settings = settings or AlpacaSettings.from_env()
        self.data_url = self.settings.data_url.rstrip("/")
        self.base_url = self.settings.base_url.rstrip("/")
        self._last_request = 0.0

    def _make_headers(self) -> Dict[str, str]:
        return {
            "APCA-API-KEY-ID": self.settings.api_key,
            "APCA-API-SECRET-KEY": self.settings.api_secret,
        }

    def _throttle(self):
        """保证两次请求间隔不小于 REQUEST_INTERVAL"""
        elapsed = time.monotonic() - self._last_request
        if elapsed < self.REQUEST_INTERVAL:
            time.sleep(self.REQUEST_INTERVAL - elapsed)
        self._last_request = time.monotonic()

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """
        带重试的 GET 请求

        Returns:
            解析后的 JSON，失败时为 None
        """
        for attempt in range(self.MAX_RETRIES):
            self._throttle()
            try:
                response = requests.get(
                    url,
                    params=params,
                    headers=self._make_headers(),
                    timeout=self.settings.timeout,
                )
            except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
                logger.warning(f"请求 {url} 失败 (尝试 {attempt + 1}/{self.MAX_RETRIES}): {e}")
            else:
                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        logger.error(f"解析 {url} 响应失败: {e}")
                        return None
                if response.status_code == 429 or response.status_code >= 500:
                    logger.warning(
                        f"请求 {url} 返回 {response.status_code} "
                        f"(尝试 {attempt + 1}/{self.MAX_RETRIES})"
                    )
                else:
                    logger.error(f"HTTP {response.status_code} for {url}: {response.text[:200]}")
                    return None

            if attempt < self.MAX_RETRIES - 1:
                time.sleep(self.RETRY_WAIT * (2 ** attempt))

        logger.error(f"请求 {url} 最终失败")
        return None

    def test_connection(self) -> bool:
        """检查账户接口是否可用"""
        logger.info("检查 Alpaca 连接...")
        data = self._get(f"{self.base_url}/v2/account")
        if data is None:
            logger.error("Alpaca 连接失败")
            return False
        logger.info("Alpaca 连接成功")
        return True

    def fetch_history(self, symbol: str, timeframe: str = "1Day", count: int = 250) -> List[Bar]:
        if count <= 0:
            return []

        start = datetime.now(timezone.utc) - timedelta(days=lookback_days(timeframe, count))
        url = f"{self.data_url}/stocks/{symbol}/bars"
        params: Dict[str, Any] = {
            "timeframe": timeframe,
            "start": start.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "limit": self.PAGE_LIMIT,
            "feed": self.settings.feed,
            "sort": "asc",
        }

        bars: List[Bar] = []
        while True:
            data = self._get(url, dict(params))
            if data is None:
                break

            for item in data.get("bars") or []:
                try:
                    bars.append(Bar(
                        timestamp=item["t"],
                        open=float(item["o"]),
                        high=float(item["h"]),
                        low=float(item["l"]),
                        close=float(item["c"]),
                        volume=int(item.get("v", 0)),
                    ))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"跳过无法解析的 K 线 {item}: {e}")

            page_token = data.get("next_page_token")
            if not page_token:
                break
            params["page_token"] = page_token

        if not bars:
            logger.warning(f"{symbol} 没有 K 线数据")
            return []

        bars = bars[-count:]
        low = min(b.low for b in bars)
        high = max(b.high for b in bars)
        logger.info(
            f"获取 {symbol} {len(bars)} 根 K 线 ({timeframe})，"
            f"价格区间 {low:.2f} - {high:.2f}"
        )
        return bars

    def fetch_latest_quote(self, symbol: str) -> Optional[Quote]:
        data = self._get(
            f"{self.data_url}/stocks/{symbol}/quotes/latest",
            {"feed": self.settings.feed},
        )
        if data is None or "quote" not in data:
            logger.warning(f"{symbol} 没有报价数据")
            return None

        q = data["quote"]
        try:
            quote = Quote(
                symbol=symbol,
                bid_price=float(q["bp"]),
                ask_price=float(q["ap"]),
                bid_size=int(q.get("bs", 0)),
                ask_size=int(q.get("as", 0)),
                timestamp=q.get("t", ""),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"解析 {symbol} 报价失败: {e}")
            return None

        logger.info(f"{symbol} 报价: 买 {quote.bid_price} 卖 {quote.ask_price}")
        return quote
