"""
Example: Show the rotation state of a prefix

Usage:
    python examples/show_rotation.py

Environment variables:
    - ES_URL: Elasticsearch URL (default: http://localhost:9200)
    - ROTATOR_PREFIX: Configuration prefix (default: app)
"""

import sys
import os
from datetime import datetime

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from index_rotator import IndexRotator, MissingPrimaryIndex
from index_rotator.es_client import create_es_client, get_es_info, check_es_health

ROTATOR_PREFIX = os.getenv("ROTATOR_PREFIX", "app")


def main():
    """Print cluster, primary and secondary information"""
    print("=== Rotation State ===")

    es = create_es_client()

    info = get_es_info(es)
    health = check_es_health(es)
    print(f"\nCluster: {info['cluster_name']} (version {info['version']['number']}, {health['status']})")

    rotator = IndexRotator(es, ROTATOR_PREFIX)
    print(f"Configuration index: {rotator.configuration_index}")

    try:
        print(f"Primary index: {rotator.get_primary_index()}")
    except MissingPrimaryIndex:
        print("Primary index: (not set)")

    secondaries = rotator.get_secondary_indices(include_id=True)
    print(f"\nSecondary indices ({len(secondaries)}):")
    for secondary in secondaries:
        entry = rotator.configuration_index.get_entry(secondary["configuration_id"])
        archived_at = datetime.fromtimestamp(entry.timestamp).isoformat(timespec='seconds')
        print(f"  - {secondary['index']} (archived {archived_at}, id {secondary['configuration_id']})")


if __name__ == "__main__":
    main()
