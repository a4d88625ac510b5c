"""
Factory for creating click id generation strategies.
Uses caching to avoid creating multiple instances.
"""

from enum import Enum
from clicktrack_app.tracking.click_id_strategies import (
    ClickIdStrategy,
    TimestampRandomClickIdStrategy,
    MonotonicClickIdStrategy
)


class ClickIdStrategyType(Enum):
    """Available click id generation strategies"""
    TIMESTAMP_RANDOM = "timestamp_random"
    MONOTONIC = "monotonic"


class ClickIdFactory:
    """Factory for creating click id strategies with caching"""

    _instances = {}  # Cache for strategy instances

    @classmethod
    def create_strategy(
        cls,
        strategy_type: ClickIdStrategyType = ClickIdStrategyType.TIMESTAMP_RANDOM
    ) -> ClickIdStrategy:
        """
        Create or return cached click id strategy.

        The monotonic strategy keeps per-process state, so sharing one
        instance is what makes its ids increase across callers.

        Args:
            strategy_type: Type of strategy to create

        Returns:
            A cached instance of a ClickIdStrategy

        Raises:
            ValueError: If strategy_type is unknown
        """
        if strategy_type in cls._instances:
            return cls._instances[strategy_type]

        if strategy_type == ClickIdStrategyType.TIMESTAMP_RANDOM:
            instance = TimestampRandomClickIdStrategy()
        elif strategy_type == ClickIdStrategyType.MONOTONIC:
            instance = MonotonicClickIdStrategy()
        else:
            raise ValueError(f"Unknown click id strategy: {strategy_type}")

        cls._instances[strategy_type] = instance
        return instance


def next_id() -> int:
    """Generate a click id with the default strategy"""
    return ClickIdFactory.create_strategy().next_id()
