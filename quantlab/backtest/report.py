"""回测报告：终端格式化 + CSV/JSON 导出"""

import csv
import json
from dataclasses import asdict
from datetime import date
from typing import List

import pandas as pd

from .models import BacktestResult
from .optimizer import OptimizationResult, results_to_dataframe


def print_report(result: BacktestResult):
    """打印终端回测报告"""
    m = result.metrics

    print()
    print("=" * 50)
    print(f"  回测报告：{result.symbol}")
    print(f"  初始资金：{m.starting_capital:,.2f}")
    print("=" * 50)

    print()
    print("【绩效概览】")
    sign = "+" if m.total_return_pct >= 0 else ""
    print(f"  期末资金:      {m.ending_capital:,.2f}")
    print(f"  总收益率:      {sign}{m.total_return_pct:.2f}%")
    if m.annualized_return_pct:
        sign = "+" if m.annualized_return_pct >= 0 else ""
        print(f"  年化收益率:    {sign}{m.annualized_return_pct:.2f}%")
    print(f"  状态:          {'盈利' if m.total_return_pct > 0 else '亏损'}")

    print()
    print("【风险指标】")
    print(f"  最大回撤:      -{m.max_drawdown_pct:.2f}%")
    print(f"  Sharpe(简化):  {m.sharpe_ratio:.2f}")

    print()
    print("【交易统计】")
    print(f"  成交笔数:      {m.total_trades}")
    print(f"  完整回合:      {m.completed_cycles}")
    print(f"  盈利回合:      {m.winning_trades}")
    print(f"  亏损回合:      {m.losing_trades}")
    print(f"  胜率:          {m.win_rate_pct:.1f}%")
    print(f"  平均盈利:      {m.avg_win:,.2f}")
    print(f"  平均亏损:      {m.avg_loss:,.2f}")
    print(f"  盈亏因子:      {m.profit_factor:.2f}")

    print()
    print("【当前持仓】")
    print(f"  现金:          {result.cash:,.2f}")
    print(f"  持股:          {result.shares_held}")
    print(f"  持仓市值:      {m.current_position_value:,.2f}")
    print("=" * 50)
    print()


def print_trade_summary(result: BacktestResult, last_n: int = 10):
    """打印最近 last_n 笔成交"""
    if not result.trades:
        print("\n回测期间没有成交。")
        return

    recent = result.trades[-last_n:]
    print()
    print(f"【成交明细】(最近 {len(recent)} 笔)")
    print("-" * 60)
    for t in recent:
        print(
            f"  {t.action.value:<4} {t.shares:>6} 股 @ {t.price:>9.2f} "
            f"| 金额 {t.value:>12,.2f} | 置信度 {t.confidence:.0%}"
        )
        print(f"       {t.reason}")


def export_trades_csv(result: BacktestResult, path: str):
    """导出成交明细到 CSV"""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([
            "timestamp", "action", "price", "shares",
            "value", "confidence", "reason",
        ])
        for t in result.trades:
            writer.writerow([
                t.timestamp or "", t.action.value, f"{t.price:.2f}", t.shares,
                f"{t.value:.2f}", f"{t.confidence:.4f}", t.reason,
            ])
    print(f"成交明细已导出: {path} ({len(result.trades)} 笔)")


def export_metrics_json(result: BacktestResult, path: str):
    """导出绩效指标到 JSON"""
    payload = {
        "symbol": result.symbol,
        "final_price": result.final_price,
        "metrics": asdict(result.metrics),
        "position": {"cash": result.cash, "shares_held": result.shares_held},
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)
    print(f"绩效指标已导出: {path}")


def print_top_results(results: List[OptimizationResult], top_n: int = 10):
    """打印收益率最高的参数组合"""
    if not results:
        print("没有可显示的结果")
        return

    ranked = sorted(results, key=lambda r: r.total_return_pct, reverse=True)[:top_n]
    print()
    print(f"===== 按收益率排序 TOP {len(ranked)} =====")
    print(f"{'代码':<8}{'天数':>6}{'阈值':>8}{'收益率':>10}{'回撤':>8}{'笔数':>6}{'胜率':>8}{'盈亏因子':>10}")
    print("-" * 70)
    for r in ranked:
        p = r.parameters
        print(
            f"{p.symbol:<8}{p.days:>6}{p.confidence_threshold:>8.0%}"
            f"{r.total_return_pct:>+9.2f}%{r.max_drawdown_pct:>7.2f}%"
            f"{r.total_trades:>6}{r.win_rate_pct:>7.1f}%{r.profit_factor:>10.2f}"
        )
    print("=" * 70)


def export_optimization_csv(results: List[OptimizationResult], path: str):
    """导出参数扫描结果到 CSV"""
    df = results_to_dataframe(results)
    df.to_csv(path, index=False, float_format="%.4f")
    print(f"参数扫描结果已导出: {path} ({len(df)} 组)")


def export_optimization_json(results: List[OptimizationResult], path: str):
    """导出参数扫描结果到 JSON（附汇总信息）"""
    df = results_to_dataframe(results)
    payload = {
        "optimization_results": df.to_dict(orient="records"),
        "summary": {
            "total_combinations": len(results),
            "symbols_tested": sorted({r.parameters.symbol for r in results}),
            "date_generated": date.today().isoformat(),
        },
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2, default=_json_default)
    print(f"参数扫描结果已导出: {path}")


def _json_default(obj):
    # pandas 的 NA 和 numpy 标量
    if obj is pd.NA:
        return None
    if hasattr(obj, "item"):
        return obj.item()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
