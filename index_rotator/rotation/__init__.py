"""
Rotation module exports
"""

from .models import ConfigurationEntry, PRIMARY_ID
from .errors import (
    RotatorError,
    MissingPrimaryIndex,
    PrimaryIndexCopyFailure,
    StrategyConfigurationError,
    is_transient_error,
)
from .es_schema import CONFIGURATION_INDEX_SETTINGS, configuration_index_name, parse_version
from .configuration import ConfigurationIndex
from .strategies import PrimaryIndexStrategy, ConfigurationStrategy, AliasStrategy, create_strategy

__all__ = [
    "ConfigurationEntry",
    "PRIMARY_ID",
    "RotatorError",
    "MissingPrimaryIndex",
    "PrimaryIndexCopyFailure",
    "StrategyConfigurationError",
    "is_transient_error",
    "CONFIGURATION_INDEX_SETTINGS",
    "configuration_index_name",
    "parse_version",
    "ConfigurationIndex",
    "PrimaryIndexStrategy",
    "ConfigurationStrategy",
    "AliasStrategy",
    "create_strategy",
]
