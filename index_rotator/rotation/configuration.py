"""
Configuration index: bookkeeping store for primary and secondary records
"""

import logging
from typing import Any, Dict, Optional, Tuple

from .es_schema import (
    COMBINED_QUERY_FILTER_VERSION,
    PRIMARY_PREFERENCE_REMOVED_VERSION,
    configuration_index_name,
    create_index_if_not_exists,
    parse_version,
)
from .models import PRIMARY_ID, ConfigurationEntry

# Upper bound on secondaries returned by one listing (default max_result_window)
SECONDARY_QUERY_SIZE = 10000


class ConfigurationIndex:
    """
    Per-prefix configuration index holding one "primary" record and any
    number of secondary records.

    The engine version is probed once through `info()` and cached, so the
    query shape and read preference are chosen without extra round-trips.
    """

    def __init__(self, es_client, prefix: str, logger: Optional[logging.Logger] = None):
        self.es = es_client
        self.prefix = prefix
        self.logger = logger or logging.getLogger(__name__)
        self.name = configuration_index_name(prefix)
        self._engine_version: Optional[Tuple[int, int, int]] = None

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"ConfigurationIndex({self.name!r})"

    # Index lifecycle

    def exists(self) -> bool:
        """True iff the configuration index has been created"""
        return bool(self.es.indices.exists(index=self.name))

    def create_if_not_exists(self) -> bool:
        """Create the configuration index with its mapping; no-op if present"""
        created = create_index_if_not_exists(self.es, self.name)
        if created:
            self.logger.debug("Configuration index created.", extra={"index": self.name})
        return created

    # Records

    def get_entry(self, entry_id: str) -> ConfigurationEntry:
        """
        Fetch one record by id.

        Raises the client's NotFoundError when the record is absent.
        """
        params = {"index": self.name, "id": entry_id}
        if self.supports_primary_preference():
            params["preference"] = "_primary"
        response = self.es.get(**params)
        return ConfigurationEntry.from_hit(response)

    def put_entry(self, entry: ConfigurationEntry) -> str:
        """
        Index or overwrite one record.

        Entries without an id get an engine-generated one.
        Returns: the document id
        """
        params = {"index": self.name, "body": entry.to_es_doc()}
        if entry.id is not None:
            params["id"] = entry.id
        response = self.es.index(**params)
        entry.id = response["_id"]
        return entry.id

    def delete_entry(self, entry_id: str):
        """
        Delete one record by id.

        A missing record is not an error: the raw response, whose `result`
        is "not_found" in that case, is returned for the caller to inspect.
        """
        return self.es.options(ignore_status=404).delete(index=self.name, id=entry_id)

    # Engine version gates

    @property
    def engine_version(self) -> Tuple[int, int, int]:
        """Engine version from `info()`, probed once"""
        if self._engine_version is None:
            self._engine_version = parse_version(self.es.info()["version"]["number"])
        return self._engine_version

    def supports_combined_query_filter(self) -> bool:
        return self.engine_version >= COMBINED_QUERY_FILTER_VERSION

    def supports_primary_preference(self) -> bool:
        return self.engine_version < PRIMARY_PREFERENCE_REMOVED_VERSION

    def secondary_query(self, older_than: Optional[int] = None) -> Dict[str, Any]:
        """
        Search body matching every secondary record older than `older_than`
        (epoch seconds), in storage order. Without a cutoff every secondary
        matches.
        """
        body = {
            "query": {
                "bool": {
                    "must_not": {"term": {"_id": PRIMARY_ID}},
                }
            },
            "sort": ["_doc"],
            "size": SECONDARY_QUERY_SIZE
        }
        if older_than is None:
            return body

        age_filter = {"range": {"timestamp": {"lt": older_than}}}
        if self.supports_combined_query_filter():
            body["query"]["bool"]["filter"] = age_filter
        else:
            # Pre-2.0 query DSL only takes the filter at the top level
            self.logger.warning(
                "Using legacy query format due to elasticsearch version < 2.0.",
                extra={"index": self.name}
            )
            body["filter"] = age_filter

        return body
