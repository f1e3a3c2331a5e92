"""
Configuration index naming, mapping and engine version gates
"""

import re
from typing import Tuple


# Bool queries accept `filter` alongside `must_not` from this version on
COMBINED_QUERY_FILTER_VERSION = (2, 0, 0)

# The `_primary` read preference was removed in this version
PRIMARY_PREFERENCE_REMOVED_VERSION = (7, 0, 0)

# Configuration index name template, filled with the caller's prefix
CONFIGURATION_INDEX_TEMPLATE = ".{prefix}_configuration"


# ES index settings and mappings for the configuration index
CONFIGURATION_INDEX_SETTINGS = {
    "settings": {
        "number_of_shards": 1,
    },

    "mappings": {
        "properties": {
            # Exact match on the physical index name
            "name": {"type": "keyword"},
            "timestamp": {"type": "date", "format": "epoch_second"}
        }
    }
}


def parse_version(number: str) -> Tuple[int, int, int]:
    """
    Parse an engine version string into a comparable tuple.

    "8.11.0" -> (8, 11, 0); "7.10.2-SNAPSHOT" -> (7, 10, 2); "1.7" -> (1, 7, 0)
    """
    parts = [int(p) for p in re.findall(r"\d+", number.split("-", 1)[0])[:3]]
    if not parts:
        raise ValueError(f"Unrecognized engine version: {number!r}")
    while len(parts) < 3:
        parts.append(0)
    return tuple(parts)


def configuration_index_name(prefix: str) -> str:
    """Configuration index name for an application prefix"""
    return CONFIGURATION_INDEX_TEMPLATE.format(prefix=prefix)


def create_index_if_not_exists(es_client, index_name: str) -> bool:
    """Create configuration index with proper mapping if not exists"""
    if not es_client.indices.exists(index=index_name):
        es_client.indices.create(index=index_name, body=CONFIGURATION_INDEX_SETTINGS)
        return True
    return False
