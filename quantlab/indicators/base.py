"""
指标系统基类

Indicator 是流式计算单元：每次 update() 消费一个价格并返回最新值，
不感知自己被哪个策略使用。
"""

from abc import ABC, abstractmethod
from typing import Any


class Indicator(ABC):
    """流式指标抽象基类"""

    @abstractmethod
    def update(self, price: float) -> Any:
        """
        输入一个新价格，更新内部状态

        Args:
            price: 最新价格（调用方保证按时间升序输入）

        Returns:
            更新后的指标值
        """

    @abstractmethod
    def value(self) -> Any:
        """当前指标值"""

    @abstractmethod
    def reset(self) -> None:
        """清空全部状态，便于重新运行一次独立的模拟"""

    @abstractmethod
    def is_initialized(self) -> bool:
        """指标是否已可用"""


def check_period(period: int) -> int:
    """校验周期参数"""
    if int(period) != period or period < 1:
        raise ValueError(f"Invalid period: {period}")
    return int(period)
