"""回测数据模型"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from quantlab.strategy.models import StrategyResult


class TradeAction(Enum):
    BUY = "BUY"
    SELL = "SELL"


@dataclass(frozen=True)
class Trade:
    """成交记录（只追加，不修改）"""
    timestamp: Optional[str]
    action: TradeAction
    price: float
    shares: int
    value: float  # price * shares
    confidence: float
    reason: str


@dataclass(frozen=True)
class BacktestMetrics:
    """回测绩效快照，由期末价格一次性计算得出"""
    starting_capital: float
    ending_capital: float = 0.0
    total_return_pct: float = 0.0
    annualized_return_pct: float = 0.0
    max_drawdown_pct: float = 0.0
    sharpe_ratio: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate_pct: float = 0.0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    profit_factor: float = 0.0
    max_capital: float = 0.0
    current_position_value: float = 0.0

    @property
    def completed_cycles(self) -> int:
        return self.winning_trades + self.losing_trades


@dataclass
class BacktestResult:
    """一次完整回测的结果"""
    symbol: str
    final_price: float
    metrics: BacktestMetrics
    signals: List[StrategyResult] = field(default_factory=list)
    trades: List[Trade] = field(default_factory=list)
    daily_values: List[float] = field(default_factory=list)
    cash: float = 0.0
    shares_held: int = 0
