"""
Index Rotator - Facade layer
Composes the configuration index and a primary index strategy into
blue/green rotation: archive the primary, repoint it, prune old secondaries
"""

import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from elasticsearch import ApiError, ConnectionError, ConnectionTimeout, NotFoundError

from index_rotator.metrics import (
    inc_copy_failure,
    inc_copy_retry,
    inc_primary_set,
    inc_secondary_created,
    inc_secondary_pruned,
    observe_rotation_latency,
    track_latency,
)
from index_rotator.rotation import (
    ConfigurationEntry,
    ConfigurationIndex,
    ConfigurationStrategy,
    MissingPrimaryIndex,
    PrimaryIndexCopyFailure,
    PrimaryIndexStrategy,
    is_transient_error,
)

# Delay between attempts to read the primary while archiving (seconds)
RETRY_TIME_COPY = 0.5
MAX_RETRY_COUNT = 5

OlderThan = Optional[Union[datetime, int, float]]


class IndexRotator:
    """
    Index Rotator - Facade
    Primary get/set is delegated to the active strategy; secondary records
    always live in the configuration index, whichever strategy is active.
    """

    def __init__(
        self,
        es_client,
        prefix: str,
        logger: Optional[logging.Logger] = None,
        strategy: Optional[PrimaryIndexStrategy] = None,
        retry_delay: float = RETRY_TIME_COPY,
        max_retries: int = MAX_RETRY_COUNT,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.es = es_client
        self.prefix = prefix
        self.logger = logger or logging.getLogger(__name__)
        self.retry_delay = retry_delay
        self.max_retries = max_retries
        self.sleep = sleep

        # Initialize sub-components
        self.configuration_index = ConfigurationIndex(es_client, prefix, logger)
        self.strategy = strategy or ConfigurationStrategy(
            es_client, logger, configuration_index=self.configuration_index
        )

    def set_primary_index_strategy(self, strategy: PrimaryIndexStrategy):
        """Swap the strategy used to resolve and repoint the primary"""
        self.strategy = strategy

    def get_primary_index(self) -> str:
        """Current primary index name (raises MissingPrimaryIndex)"""
        return self.strategy.get_primary_index()

    def set_primary_index(self, name: str):
        """Repoint the primary to `name`"""
        self.strategy.set_primary_index(name)
        inc_primary_set(self.strategy.name)

    def copy_primary_index_to_secondary(self) -> str:
        """
        Archive the current primary as a timestamped secondary record.

        Transient engine errors while reading the primary are retried
        `max_retries` times, `retry_delay` seconds apart.

        Returns:
            ID of the new secondary record

        Raises:
            MissingPrimaryIndex: nothing to archive yet
            PrimaryIndexCopyFailure: retries exhausted
        """
        self.configuration_index.create_if_not_exists()
        return self._write_secondary(self._read_primary_with_retry())

    def _write_secondary(self, index_name: str) -> str:
        entry_id = self.configuration_index.put_entry(ConfigurationEntry.secondary(index_name))
        inc_secondary_created()
        self.logger.debug("Secondary entry created.", extra={"configuration_id": entry_id})
        return entry_id

    def _read_primary_with_retry(self) -> str:
        retry_count = 0
        while True:
            try:
                return self.strategy.get_primary_index()
            except (ApiError, ConnectionError, ConnectionTimeout) as e:
                if not is_transient_error(e):
                    raise
                if retry_count >= self.max_retries:
                    inc_copy_failure()
                    raise PrimaryIndexCopyFailure(
                        "Unable to copy primary to secondary index."
                    ) from e
                retry_count += 1
                inc_copy_retry()
                self.logger.debug(
                    f"Unable to get primary index, retry {retry_count}/{self.max_retries}: {e}"
                )
                self.sleep(self.retry_delay)

    def get_secondary_indices(
        self,
        older_than: OlderThan = None,
        include_id: bool = False
    ) -> List[Union[str, Dict[str, str]]]:
        """
        Secondary indices (rotated from) older than `older_than`, in storage
        order.

        If no cutoff is provided, all secondary indices are returned.

        Args:
            older_than: datetime or epoch seconds
            include_id: return {"index", "configuration_id"} dicts instead of names
        """
        if not self.configuration_index.exists():
            return []

        body = self.configuration_index.secondary_query(self._to_epoch(older_than))
        response = self.es.search(index=self.configuration_index.name, body=body)

        entries = [ConfigurationEntry.from_hit(hit) for hit in response["hits"]["hits"]]
        if include_id:
            return [entry.to_secondary_dict() for entry in entries]
        return [entry.name for entry in entries]

    def delete_secondary_indices(self, older_than: OlderThan = None) -> Dict[str, Dict[str, Any]]:
        """
        Remove every secondary index older than `older_than` together with
        its configuration record.

        If no cutoff is provided, all secondary indices are removed.

        Returns:
            {configuration_id: {"name": index name,
                                "index": delete response or None,
                                "config": delete response or None}}
            Keyed by record ID, so two records naming the same index each
            report their own outcome. Failures are recorded per entry as
            {"error", "status"}. When the physical delete fails, "config" is
            None: the record deletion was not attempted, so the index stays
            listed for the next pass.
        """
        results = {}
        for secondary in self.get_secondary_indices(older_than, include_id=True):
            index_name = secondary["index"]
            configuration_id = secondary["configuration_id"]
            index_outcome = self._delete_physical_index(index_name)

            if isinstance(index_outcome, dict) and "error" in index_outcome:
                results[configuration_id] = {"name": index_name, "index": index_outcome, "config": None}
                continue

            results[configuration_id] = {
                "name": index_name,
                "index": index_outcome,
                "config": self._delete_configuration_entry(configuration_id)
            }
        return results

    def rotate(self, new_index: str) -> Optional[str]:
        """
        Archive the current primary and point the primary at `new_index`.

        Rotating to the index that is already primary is a no-op, so a
        retried rotation never archives (and later prunes) the live index.

        Returns:
            ID of the secondary record, or None on first-time setup or when
            `new_index` is already the primary
        """
        with track_latency(observe_rotation_latency):
            self.configuration_index.create_if_not_exists()
            try:
                current = self._read_primary_with_retry()
            except MissingPrimaryIndex:
                self.logger.info(f"No primary index to archive, setting {new_index} as the first primary.")
                current = None

            if current == new_index:
                self.logger.info(f"{new_index} is already the primary index, nothing to rotate.")
                return None

            secondary_id = self._write_secondary(current) if current is not None else None
            self.set_primary_index(new_index)
        return secondary_id

    def _delete_physical_index(self, index_name: str):
        try:
            if not self.es.indices.exists(index=index_name):
                self.logger.debug("Index not found to delete.", extra={"index": index_name})
                inc_secondary_pruned("missing")
                return None
            response = self.es.indices.delete(index=index_name)
        except NotFoundError:
            self.logger.debug("Index not found to delete.", extra={"index": index_name})
            inc_secondary_pruned("missing")
            return None
        except (ApiError, ConnectionError, ConnectionTimeout) as e:
            self.logger.error(f"Failed to delete secondary index {index_name}: {e}")
            inc_secondary_pruned("error")
            return self._error_outcome(e)

        self.logger.debug("Deleted secondary index.", extra={"index": index_name})
        inc_secondary_pruned("deleted")
        return response

    def _delete_configuration_entry(self, entry_id: str):
        try:
            return self.configuration_index.delete_entry(entry_id)
        except (ApiError, ConnectionError, ConnectionTimeout) as e:
            self.logger.error(f"Failed to delete configuration entry {entry_id}: {e}")
            return self._error_outcome(e)

    @staticmethod
    def _error_outcome(error: Exception) -> Dict[str, Any]:
        meta = getattr(error, "meta", None)
        return {
            "error": str(error),
            "status": getattr(meta, "status", None)
        }

    @staticmethod
    def _to_epoch(older_than: OlderThan) -> Optional[int]:
        if older_than is None:
            return None
        if isinstance(older_than, datetime):
            return int(older_than.timestamp())
        return int(older_than)
