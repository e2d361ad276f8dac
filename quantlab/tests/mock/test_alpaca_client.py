"""
Mock 测试 - AlpacaClient
测试 K 线/报价解析、分页和失败重试逻辑
"""

import pytest
import requests
from unittest.mock import patch, MagicMock

from quantlab.config import AlpacaSettings
from quantlab.data.alpaca import AlpacaClient, lookback_days


def make_response(status_code=200, payload=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = text
    return response


def bar_item(t, close):
    return {"t": t, "o": close - 1, "h": close + 1, "l": close - 2, "c": close, "v": 1000}


@pytest.fixture
def client():
    settings = AlpacaSettings(api_key="key", api_secret="secret", feed="iex")
    return AlpacaClient(settings)


class TestLookbackDays:

    def test_daily(self):
        assert lookback_days("1Day", 100) == int(100 * 7 / 5 * 1.2) + 5

    def test_minutes_shorter_than_days(self):
        assert lookback_days("15Min", 100) < lookback_days("1Day", 100)

    def test_unknown(self):
        with pytest.raises(ValueError):
            lookback_days("1Fortnight", 10)
        with pytest.raises(ValueError):
            lookback_days("Day", 10)


class TestFetchHistory:

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_parse_bars(self, mock_get, mock_sleep, client):
        """正常获取 K 线"""
        mock_get.return_value = make_response(payload={
            "bars": [bar_item("2026-02-19T05:00:00Z", 10.0), bar_item("2026-02-20T05:00:00Z", 11.0)],
            "next_page_token": None,
        })

        bars = client.fetch_history("AAPL", "1Day", 10)

        assert len(bars) == 2
        assert bars[0].timestamp == "2026-02-19T05:00:00Z"
        assert bars[1].close == 11.0
        assert bars[1].low == 9.0
        assert bars[1].volume == 1000

        args, kwargs = mock_get.call_args
        assert args[0] == "https://data.alpaca.markets/v2/stocks/AAPL/bars"
        assert kwargs["headers"] == {"APCA-API-KEY-ID": "key", "APCA-API-SECRET-KEY": "secret"}
        assert kwargs["params"]["timeframe"] == "1Day"
        assert kwargs["params"]["feed"] == "iex"
        assert kwargs["timeout"] == 30

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_pagination_and_trim(self, mock_get, mock_sleep, client):
        """跟随 next_page_token 翻页，只保留最后 count 根"""
        mock_get.side_effect = [
            make_response(payload={
                "bars": [bar_item(f"2026-01-{d:02d}", float(d)) for d in range(1, 4)],
                "next_page_token": "abc",
            }),
            make_response(payload={
                "bars": [bar_item(f"2026-01-{d:02d}", float(d)) for d in range(4, 7)],
                "next_page_token": None,
            }),
        ]

        bars = client.fetch_history("AAPL", "1Day", 4)

        assert mock_get.call_count == 2
        assert "page_token" not in mock_get.call_args_list[0].kwargs["params"]
        assert mock_get.call_args_list[1].kwargs["params"]["page_token"] == "abc"
        assert [b.close for b in bars] == [3.0, 4.0, 5.0, 6.0]

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_rate_limit_retry(self, mock_get, mock_sleep, client):
        """429 后退避重试成功"""
        mock_get.side_effect = [
            make_response(status_code=429),
            make_response(payload={"bars": [bar_item("2026-02-20", 10.0)]}),
        ]

        bars = client.fetch_history("AAPL", "1Day", 10)

        assert len(bars) == 1
        assert mock_get.call_count == 2
        mock_sleep.assert_any_call(AlpacaClient.RETRY_WAIT)

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_client_error_no_retry(self, mock_get, mock_sleep, client):
        """403 不重试，直接返回空"""
        mock_get.return_value = make_response(status_code=403, text="forbidden")

        assert client.fetch_history("AAPL", "1Day", 10) == []
        assert mock_get.call_count == 1

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_timeout_exhausts_retries(self, mock_get, mock_sleep, client):
        """超时重试 MAX_RETRIES 次后放弃"""
        mock_get.side_effect = requests.exceptions.Timeout()

        assert client.fetch_history("AAPL", "1Day", 10) == []
        assert mock_get.call_count == AlpacaClient.MAX_RETRIES

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_malformed_bar_skipped(self, mock_get, mock_sleep, client):
        mock_get.return_value = make_response(payload={
            "bars": [{"t": "2026-02-19", "o": 1}, bar_item("2026-02-20", 10.0)],
        })
        bars = client.fetch_history("AAPL", "1Day", 10)
        assert [b.timestamp for b in bars] == ["2026-02-20"]

    def test_non_positive_count(self, client):
        assert client.fetch_history("AAPL", "1Day", 0) == []


class TestFetchLatestQuote:

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_parse_quote(self, mock_get, mock_sleep, client):
        mock_get.return_value = make_response(payload={
            "symbol": "AAPL",
            "quote": {"bp": 99.5, "ap": 100.5, "bs": 3, "as": 5, "t": "2026-02-20T15:00:00Z"},
        })

        quote = client.fetch_latest_quote("AAPL")

        assert quote.bid_price == 99.5
        assert quote.ask_price == 100.5
        assert quote.ask_size == 5
        assert quote.mid_price == 100.0
        assert quote.spread == 1.0
        args, kwargs = mock_get.call_args
        assert args[0].endswith("/stocks/AAPL/quotes/latest")
        assert kwargs["params"] == {"feed": "iex"}

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_missing_quote(self, mock_get, mock_sleep, client):
        mock_get.return_value = make_response(payload={"symbol": "AAPL"})
        assert client.fetch_latest_quote("AAPL") is None

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_connection_error(self, mock_get, mock_sleep, client):
        mock_get.side_effect = requests.exceptions.ConnectionError("Connection refused")
        assert client.fetch_latest_quote("AAPL") is None


class TestConnection:

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_connection_ok(self, mock_get, mock_sleep, client):
        mock_get.return_value = make_response(payload={"status": "ACTIVE"})
        assert client.test_connection() is True
        assert mock_get.call_args[0][0] == "https://paper-api.alpaca.markets/v2/account"

    @patch("quantlab.data.alpaca.time.sleep")
    @patch("quantlab.data.alpaca.requests.get")
    def test_connection_unauthorized(self, mock_get, mock_sleep, client):
        mock_get.return_value = make_response(status_code=401)
        assert client.test_connection() is False
