"""
Elasticsearch client initialization and utility functions
"""

import os
from typing import Tuple

from elasticsearch import Elasticsearch

from index_rotator.rotation import ConfigurationIndex, parse_version


def create_es_client(
    hosts: list = None,
    es_url: str = None,
    **kwargs
) -> Elasticsearch:
    """
    Create and configure Elasticsearch client

    Args:
        hosts: List of ES host strings (e.g., ["http://localhost:9200"])
        es_url: Single ES URL (alternative to hosts)
        **kwargs: Additional Elasticsearch client options

    Returns:
        Configured Elasticsearch client
    """
    # Priority: explicit params > env vars > defaults
    if hosts is None and es_url is None:
        es_url = os.getenv("ES_URL", "http://localhost:9200")

    if es_url:
        hosts = [es_url]

    api_key = os.getenv("ES_API_KEY")
    if api_key and "api_key" not in kwargs:
        kwargs["api_key"] = api_key

    es = Elasticsearch(hosts, **kwargs)

    # Verify connection
    if not es.ping():
        raise ConnectionError(f"Cannot connect to Elasticsearch at {hosts}")

    return es


def get_es_info(es_client: Elasticsearch) -> dict:
    """Get Elasticsearch cluster info"""
    return es_client.info()


def check_es_health(es_client: Elasticsearch) -> dict:
    """Check Elasticsearch cluster health"""
    return es_client.cluster.health()


def get_engine_version(es_client: Elasticsearch) -> Tuple[int, int, int]:
    """Engine version as a comparable tuple"""
    return parse_version(get_es_info(es_client)["version"]["number"])


def initialize_configuration_index(es_client: Elasticsearch, prefix: str) -> bool:
    """
    Create the configuration index for `prefix` if not exists

    Returns:
        True if index was created, False if already exists
    """
    return ConfigurationIndex(es_client, prefix).create_if_not_exists()
