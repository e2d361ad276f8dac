"""
集成测试 - 完整回测流程

CSV 数据源 → SignalGenerator → 回测 → 报告导出，以及两个 CLI 入口。
Alpaca 实盘数据测试需要设置 ALPACA_API_KEY_ID / ALPACA_API_SECRET_KEY，
否则自动跳过。

运行测试：
  pytest quantlab/tests/integration -v -m integration
"""

import json
import os

import numpy as np
import pandas as pd
import pytest

from quantlab.config import AlpacaSettings, BacktestParams
from quantlab.data.alpaca import AlpacaClient
from quantlab.data.csv_source import CsvDataSource
from quantlab.strategy.mean_reversion import SignalGenerator
from quantlab.backtest.runner import run_backtest
from quantlab.backtest.report import export_metrics_json, export_trades_csv
from quantlab.backtest.__main__ import main as backtest_main
from quantlab.optimize import main as optimize_main


pytestmark = pytest.mark.integration


def write_symbol_csv(directory, symbol, days=250, seed=42):
    """写入一个来回震荡的价格序列"""
    np.random.seed(seed)
    closes = [100.0]
    for i in range(1, days):
        drift = 0.025 if (i // 15) % 2 == 0 else -0.025
        closes.append(closes[-1] * (1 + drift + np.random.uniform(-0.01, 0.01)))
    closes = np.array(closes)
    df = pd.DataFrame({
        "date": pd.bdate_range(end="2026-02-20", periods=days).strftime("%Y-%m-%d"),
        "open": closes * 0.995,
        "high": closes * 1.01,
        "low": closes * 0.99,
        "close": closes,
        "volume": np.random.randint(100_000, 1_000_000, days),
    })
    df.to_csv(directory / f"{symbol}.csv", index=False)
    return df


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    for name in list(os.environ):
        if name.startswith("QUANTLAB_"):
            monkeypatch.delenv(name)
    write_symbol_csv(tmp_path, "OSC")
    write_symbol_csv(tmp_path, "ALT", seed=7)
    return tmp_path


class TestCsvPipeline:

    def test_full_backtest(self, data_dir, tmp_path):
        source = CsvDataSource(data_dir)
        generator = SignalGenerator(data_source=source)
        assert generator.load_history("OSC", count=200) == 200

        result = run_backtest(generator, generator.history, "OSC", BacktestParams())
        m = result.metrics

        assert len(result.signals) == 200 - 20
        assert len(result.daily_values) == len(result.signals)
        assert m.total_trades == len(result.trades) > 0
        assert m.ending_capital == pytest.approx(result.cash + result.shares_held * result.final_price)
        assert result.final_price == pytest.approx(generator.history[-1].close)
        assert 0 <= m.max_drawdown_pct <= 100

        trades_path = tmp_path / "out" / "trades.csv"
        trades_path.parent.mkdir()
        export_trades_csv(result, str(trades_path))
        export_metrics_json(result, str(tmp_path / "out" / "metrics.json"))
        exported = pd.read_csv(trades_path)
        assert len(exported) == m.total_trades
        assert set(exported["action"]) <= {"BUY", "SELL"}

    def test_live_signal_from_csv(self, data_dir):
        generator = SignalGenerator(data_source=CsvDataSource(data_dir))
        generator.load_history("OSC", count=200)
        generator.run_backtest()
        result = generator.generate_live_signal("OSC")
        assert result.current_price == pytest.approx(generator.history[-1].close)


class TestCli:

    def test_backtest_cli(self, data_dir, tmp_path, capsys):
        json_path = tmp_path / "metrics.json"
        code = backtest_main([
            "--symbol", "OSC", "--source", "csv", "--data-dir", str(data_dir),
            "--days", "200", "--sell-partial", "--json", str(json_path),
        ])
        assert code == 0
        assert "OSC" in capsys.readouterr().out
        data = json.loads(json_path.read_text(encoding="utf-8"))
        assert data["metrics"]["starting_capital"] == 1_000_000

    def test_backtest_cli_missing_symbol(self, data_dir):
        code = backtest_main(["--symbol", "NONE", "--source", "csv", "--data-dir", str(data_dir)])
        assert code == 1

    def test_backtest_cli_invalid_confidence(self, data_dir):
        code = backtest_main([
            "--symbol", "OSC", "--source", "csv", "--data-dir", str(data_dir), "--confidence", "1.5",
        ])
        assert code == 1

    def test_optimize_cli(self, data_dir, tmp_path):
        csv_path = tmp_path / "opt.csv"
        json_path = tmp_path / "opt.json"
        code = optimize_main([
            "--symbols", "OSC", "ALT", "--days", "120", "200", "--confidence", "0.5", "0.8",
            "--source", "csv", "--data-dir", str(data_dir),
            "--csv", str(csv_path), "--json", str(json_path),
        ])
        assert code == 0
        assert len(pd.read_csv(csv_path)) == 8
        summary = json.loads(json_path.read_text(encoding="utf-8"))["summary"]
        assert summary["total_combinations"] == 8
        assert summary["symbols_tested"] == ["ALT", "OSC"]


def alpaca_available() -> bool:
    return AlpacaSettings.from_env().has_credentials


@pytest.mark.skipif(not alpaca_available(), reason="未配置 Alpaca 凭证")
class TestAlpacaLive:

    def test_fetch_and_backtest(self):
        client = AlpacaClient()
        assert client.test_connection()
        generator = SignalGenerator(data_source=client)
        assert generator.load_history("AAPL", "1Day", 60) > 0
        result = run_backtest(generator, generator.history, "AAPL")
        assert result.metrics.starting_capital == 1_000_000
