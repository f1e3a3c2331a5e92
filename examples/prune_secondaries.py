"""
Example: Delete secondary indices older than N days

Usage:
    python examples/prune_secondaries.py

    # Keep two weeks of rollback history
    ROTATOR_PRUNE_DAYS=14 python examples/prune_secondaries.py

Environment variables:
    - ES_URL: Elasticsearch URL (default: http://localhost:9200)
    - ROTATOR_PREFIX: Configuration prefix (default: app)
    - ROTATOR_PRUNE_DAYS: Age in days beyond which secondaries are deleted (default: 7)
"""

import sys
import os
from datetime import datetime, timedelta

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from index_rotator import IndexRotator
from index_rotator.es_client import create_es_client

ROTATOR_PREFIX = os.getenv("ROTATOR_PREFIX", "app")
ROTATOR_PRUNE_DAYS = int(os.getenv("ROTATOR_PRUNE_DAYS", "7"))


def main():
    """Prune old secondaries"""
    print("=== Secondary Index Pruning ===")
    older_than = datetime.now() - timedelta(days=ROTATOR_PRUNE_DAYS)
    print(f"Prefix: {ROTATOR_PREFIX}")
    print(f"Older than: {older_than.isoformat(timespec='seconds')}")

    es = create_es_client()
    rotator = IndexRotator(es, ROTATOR_PREFIX)

    candidates = rotator.get_secondary_indices(older_than)
    if not candidates:
        print("\nNothing to prune.")
        return

    print(f"\nSecondary indices to delete ({len(candidates)}):")
    for name in candidates:
        print(f"  - {name}")

    confirm = input("Continue? [y/N]: ").strip().lower()
    if confirm != 'y':
        print("Aborted.")
        return

    results = rotator.delete_secondary_indices(older_than)
    for configuration_id, outcome in results.items():
        if outcome["index"] is None:
            status = "index already gone"
        elif "error" in outcome["index"]:
            status = f"FAILED: {outcome['index']['error']}"
        else:
            status = "deleted"
        if outcome["config"] and "error" in outcome["config"]:
            status += f", record kept: {outcome['config']['error']}"
        print(f"  {outcome['name']} ({configuration_id}): {status}")

    print("\nDone!")


if __name__ == "__main__":
    main()
