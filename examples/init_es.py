"""
Example: Initialize the configuration index for a prefix

Usage:
    ROTATOR_PREFIX=products python examples/init_es.py

Environment variables:
    - ES_URL: Elasticsearch URL (default: http://localhost:9200)
    - ROTATOR_PREFIX: Configuration prefix (default: app)
"""

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from index_rotator.es_client import (
    create_es_client,
    get_engine_version,
    initialize_configuration_index,
    check_es_health,
)

ROTATOR_PREFIX = os.getenv("ROTATOR_PREFIX", "app")


def main():
    """Initialize configuration index"""
    print("=== Configuration Index Initialization ===")

    # Connect to ES
    print("\nConnecting to Elasticsearch...")
    es = create_es_client()

    version = get_engine_version(es)
    print(f"\nEngine version: {'.'.join(str(p) for p in version)}")

    # Check health
    health = check_es_health(es)
    print(f"Cluster status: {health['status']}")

    print(f"\nInitializing configuration index for prefix '{ROTATOR_PREFIX}'...")
    created = initialize_configuration_index(es, ROTATOR_PREFIX)

    if created:
        print("✓ Configuration index created")
    else:
        print("✓ Configuration index already exists")

    print("\nDone!")


if __name__ == "__main__":
    main()
