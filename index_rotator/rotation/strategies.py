"""
Primary index strategies: where the pointer to the current primary lives
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from elasticsearch import NotFoundError

from .configuration import ConfigurationIndex
from .errors import MissingPrimaryIndex, StrategyConfigurationError
from .models import PRIMARY_ID, ConfigurationEntry


class PrimaryIndexStrategy(ABC):
    """Resolves and repoints the primary index for one application"""

    name = "base"

    def __init__(self, es_client, logger: Optional[logging.Logger] = None):
        self.es = es_client
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    def get_primary_index(self) -> str:
        """
        Name of the currently active index.

        Raises MissingPrimaryIndex when nothing is pointed at yet.
        """

    @abstractmethod
    def set_primary_index(self, name: str) -> None:
        """Point the primary at `name`, whether or not one existed before"""


class ConfigurationStrategy(PrimaryIndexStrategy):
    """Primary pointer stored as the "primary" record of a configuration index"""

    name = "configuration"

    def __init__(
        self,
        es_client,
        logger: Optional[logging.Logger] = None,
        configuration_index: ConfigurationIndex = None
    ):
        super().__init__(es_client, logger)
        if not isinstance(configuration_index, ConfigurationIndex):
            raise StrategyConfigurationError("Configuration index must be provided.")
        self.configuration_index = configuration_index

    def get_primary_index(self) -> str:
        if not self.configuration_index.exists():
            self.logger.error("Primary index configuration index not available.")
            raise MissingPrimaryIndex("Primary index configuration index not available.")

        try:
            entry = self.configuration_index.get_entry(PRIMARY_ID)
        except NotFoundError:
            self.logger.error("Primary index does not exist.")
            raise MissingPrimaryIndex("Primary index not available.")

        return entry.name

    def set_primary_index(self, name: str) -> None:
        self.configuration_index.create_if_not_exists()
        self.configuration_index.put_entry(ConfigurationEntry.primary(name))
        self.logger.debug("Primary index set.", extra={"index_name": name})


class AliasStrategy(PrimaryIndexStrategy):
    """
    Primary pointer realized as an Elasticsearch alias.

    Repointing submits remove + add in a single update_aliases request,
    so the alias is never bound to zero or two indices.
    """

    name = "alias"

    def __init__(
        self,
        es_client,
        logger: Optional[logging.Logger] = None,
        alias_name: str = None,
        index_pattern: str = None
    ):
        super().__init__(es_client, logger)
        if not alias_name:
            raise StrategyConfigurationError("Alias name must be specified.")
        if not index_pattern:
            raise StrategyConfigurationError("Index pattern must be specified.")
        self.alias_name = alias_name
        self.index_pattern = index_pattern

    def get_primary_index(self) -> str:
        try:
            alias_info = self.es.indices.get_alias(name=self.alias_name)
        except NotFoundError:
            self.logger.error("Primary index alias not available.", extra={"alias": self.alias_name})
            raise MissingPrimaryIndex(f"Primary index alias '{self.alias_name}' not available.")

        indices = list(alias_info.keys())
        if not indices:
            raise MissingPrimaryIndex(f"Primary index alias '{self.alias_name}' not available.")
        return indices[0]

    def set_primary_index(self, name: str) -> None:
        self.logger.debug(f"Setting primary index to {name}.")

        # Atomic alias switch: remove from anything matching the pattern, add to new
        actions = [
            {"remove": {"index": self.index_pattern, "alias": self.alias_name}},
            {"add": {"index": name, "alias": self.alias_name}}
        ]
        try:
            self.es.indices.update_aliases(body={"actions": actions})
        except NotFoundError:
            self.logger.debug("No aliases matched the pattern. Retrying without the removal of old indices.")
            self.es.indices.update_aliases(body={"actions": actions[1:]})


STRATEGIES = {
    ConfigurationStrategy.name: ConfigurationStrategy,
    AliasStrategy.name: AliasStrategy,
}


def create_strategy(kind: str, es_client, logger: Optional[logging.Logger] = None, **options) -> PrimaryIndexStrategy:
    """
    Factory for primary index strategies.

    Args:
        kind: "configuration" or "alias"
        es_client: Elasticsearch client
        logger: Optional logger
        **options: Strategy options (configuration_index, or alias_name + index_pattern)
    """
    try:
        strategy_cls = STRATEGIES[kind]
    except KeyError:
        raise StrategyConfigurationError(f"Unknown primary index strategy: {kind!r}")
    return strategy_cls(es_client, logger, **options)
