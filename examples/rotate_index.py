"""
Example: Rotate the primary index to a freshly built index

Usage:
    # Archive the current primary and point the primary at products_20240601
    python examples/rotate_index.py products_20240601

    # Same, using an alias as the primary pointer
    ROTATOR_STRATEGY=alias ROTATOR_ALIAS=products ROTATOR_INDEX_PATTERN='products_*' \
        python examples/rotate_index.py products_20240601

Environment variables:
    - ES_URL: Elasticsearch URL (default: http://localhost:9200)
    - ES_API_KEY: Elastic Cloud API Key (optional, for cloud auth)
    - ROTATOR_PREFIX: Configuration prefix (default: app)
    - ROTATOR_STRATEGY: "configuration" or "alias" (default: configuration)
    - ROTATOR_ALIAS: Alias name (alias strategy only)
    - ROTATOR_INDEX_PATTERN: Pattern matching all rotated indices (alias strategy only)
"""

import sys
import os
import logging

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from index_rotator import IndexRotator, create_strategy
from index_rotator.es_client import create_es_client

ROTATOR_PREFIX = os.getenv("ROTATOR_PREFIX", "app")
ROTATOR_STRATEGY = os.getenv("ROTATOR_STRATEGY", "configuration")
ROTATOR_ALIAS = os.getenv("ROTATOR_ALIAS", "")
ROTATOR_INDEX_PATTERN = os.getenv("ROTATOR_INDEX_PATTERN", "")


def build_rotator(es) -> IndexRotator:
    """Rotator for ROTATOR_PREFIX using the configured strategy"""
    rotator = IndexRotator(es, ROTATOR_PREFIX)
    if ROTATOR_STRATEGY == "alias":
        rotator.set_primary_index_strategy(create_strategy(
            "alias", es, alias_name=ROTATOR_ALIAS, index_pattern=ROTATOR_INDEX_PATTERN
        ))
    return rotator


def main():
    """Archive the primary and repoint it"""
    if len(sys.argv) != 2:
        print("Usage: python examples/rotate_index.py <new_index>")
        sys.exit(1)
    new_index = sys.argv[1]

    logging.basicConfig(level=logging.INFO)
    print("=== Index Rotation ===")
    print(f"Prefix: {ROTATOR_PREFIX}")
    print(f"Strategy: {ROTATOR_STRATEGY}")

    # Connect to ES
    print("\nConnecting to Elasticsearch...")
    es = create_es_client()
    print(f"Connected to cluster: {es.info()['cluster_name']}")

    if not es.indices.exists(index=new_index):
        print(f"Index '{new_index}' does not exist. Build and fill it first.")
        sys.exit(1)

    rotator = build_rotator(es)

    # Confirm before proceeding
    print(f"\nThis will archive the current primary and point the primary at '{new_index}'.")
    confirm = input("Continue? [y/N]: ").strip().lower()

    if confirm != 'y':
        print("Aborted.")
        return

    print("\nPerforming rotation...")
    secondary_id = rotator.rotate(new_index)

    print(f"\nRotation complete!")
    print(f"Primary index: {rotator.get_primary_index()}")
    if secondary_id:
        print(f"Previous primary archived as secondary entry: {secondary_id}")
    else:
        print("Nothing archived (first rotation, or already the primary).")


if __name__ == "__main__":
    main()
