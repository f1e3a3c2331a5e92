"""
Blue/green rotation of Elasticsearch indices
"""

from .rotation import (
    AliasStrategy,
    ConfigurationEntry,
    ConfigurationIndex,
    ConfigurationStrategy,
    MissingPrimaryIndex,
    PrimaryIndexCopyFailure,
    PrimaryIndexStrategy,
    RotatorError,
    StrategyConfigurationError,
    create_strategy,
)
from .rotator_service import IndexRotator

__all__ = [
    "IndexRotator",
    "AliasStrategy",
    "ConfigurationEntry",
    "ConfigurationIndex",
    "ConfigurationStrategy",
    "MissingPrimaryIndex",
    "PrimaryIndexCopyFailure",
    "PrimaryIndexStrategy",
    "RotatorError",
    "StrategyConfigurationError",
    "create_strategy",
]
