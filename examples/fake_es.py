"""
In-memory stand-in for the Elasticsearch client used by the tests

Implements only the calls the rotator makes, and raises the real
elasticsearch exception types so error handling is exercised as-is.
"""

import copy
import fnmatch
import uuid
from datetime import datetime

from elastic_transport import ApiResponseMeta, HttpHeaders, NodeConfig
from elasticsearch import ApiError, NotFoundError

NODE = NodeConfig("http", "localhost", 9200)


def make_meta(status: int) -> ApiResponseMeta:
    return ApiResponseMeta(
        status=status,
        http_version="1.1",
        headers=HttpHeaders(),
        duration=0.0,
        node=NODE
    )


def not_found(message: str, body: dict = None) -> NotFoundError:
    return NotFoundError(message, make_meta(404), body or {"error": message, "status": 404})


def api_error(status: int, message: str = "server_error") -> ApiError:
    return ApiError(message, make_meta(status), {"error": message, "status": status})


def epoch(*args) -> int:
    """Epoch seconds for a local datetime, e.g. epoch(2015, 1, 15)"""
    return int(datetime(*args).timestamp())


class FakeIndices:
    """indices.* namespace"""

    def __init__(self, client: "FakeElasticsearch"):
        self.client = client
        self.alias_updates = []

    def exists(self, index: str) -> bool:
        return index in self.client.docs

    def create(self, index: str, body: dict = None):
        self.client.docs.setdefault(index, {})
        self.client.aliases.setdefault(index, set())
        self.client.created.append((index, body))
        return {"acknowledged": True, "index": index}

    def delete(self, index: str):
        if index in self.client.delete_index_errors:
            raise self.client.delete_index_errors.pop(index)
        if index not in self.client.docs:
            raise not_found(f"no such index [{index}]")
        del self.client.docs[index]
        self.client.aliases.pop(index, None)
        return {"acknowledged": True}

    def get_alias(self, name: str):
        bound = {
            index: {"aliases": {name: {}}}
            for index, aliases in self.client.aliases.items()
            if name in aliases
        }
        if not bound:
            raise not_found(f"alias [{name}] missing")
        return bound

    def update_aliases(self, body: dict):
        self.alias_updates.append(copy.deepcopy(body["actions"]))
        staged = {index: set(aliases) for index, aliases in self.client.aliases.items()}

        # Validate and apply on a copy so a failing batch changes nothing
        for action in body["actions"]:
            (kind, params), = action.items()
            alias = params["alias"]
            if kind == "remove":
                matched = [
                    index for index, aliases in staged.items()
                    if fnmatch.fnmatch(index, params["index"]) and alias in aliases
                ]
                if not matched:
                    raise not_found(f"aliases [{alias}] missing")
                for index in matched:
                    staged[index].discard(alias)
            elif kind == "add":
                if params["index"] not in staged:
                    raise not_found(f"no such index [{params['index']}]")
                staged[params["index"]].add(alias)

        self.client.aliases = staged
        return {"acknowledged": True}


class _IgnoreStatusClient:
    """Result of client.options(ignore_status=...)"""

    def __init__(self, client: "FakeElasticsearch", ignore_status):
        self.client = client
        self.ignore_status = ignore_status if isinstance(ignore_status, (list, tuple)) else [ignore_status]

    def __getattr__(self, item):
        method = getattr(self.client, item)

        def call(*args, **kwargs):
            try:
                return method(*args, **kwargs)
            except ApiError as e:
                if e.meta.status in self.ignore_status:
                    return e.body
                raise

        return call


class FakeElasticsearch:
    """Minimal Elasticsearch client double"""

    def __init__(self, version: str = "8.11.0"):
        self.version = version
        self.docs = {}
        self.aliases = {}
        self.created = []
        self.indices = FakeIndices(self)

        # Call records
        self.info_calls = 0
        self.get_calls = []
        self.search_bodies = []

        # Queued failures
        self.get_errors = []
        self.delete_index_errors = {}
        self.delete_errors = {}

    def ping(self) -> bool:
        return True

    def info(self):
        self.info_calls += 1
        return {"cluster_name": "fake-cluster", "version": {"number": self.version}}

    def options(self, ignore_status=None, **kwargs):
        return _IgnoreStatusClient(self, ignore_status)

    def get(self, index: str, id: str, **params):
        self.get_calls.append(dict(index=index, id=id, **params))
        if self.get_errors:
            raise self.get_errors.pop(0)
        if index not in self.docs:
            raise not_found(f"no such index [{index}]")
        if id not in self.docs[index]:
            raise not_found(f"[{id}] not found", {"_index": index, "_id": id, "found": False})
        return {"_index": index, "_id": id, "found": True, "_source": dict(self.docs[index][id])}

    def index(self, index: str, body: dict, id: str = None):
        if index not in self.docs:
            self.indices.create(index=index)
        doc_id = id or uuid.uuid4().hex[:20]
        result = "updated" if doc_id in self.docs[index] else "created"
        self.docs[index][doc_id] = dict(body)
        return {"_index": index, "_id": doc_id, "result": result}

    def delete(self, index: str, id: str):
        if id in self.delete_errors:
            raise self.delete_errors.pop(id)
        if index not in self.docs or id not in self.docs[index]:
            raise not_found(
                f"[{id}] not found",
                {"_index": index, "_id": id, "result": "not_found"}
            )
        del self.docs[index][id]
        return {"_index": index, "_id": id, "result": "deleted"}

    def search(self, index: str, body: dict):
        self.search_bodies.append(copy.deepcopy(body))
        if index not in self.docs:
            raise not_found(f"no such index [{index}]")

        bool_query = body.get("query", {}).get("bool", {})
        excluded_id = bool_query.get("must_not", {}).get("term", {}).get("_id")
        age_filter = bool_query.get("filter") or body.get("filter") or {}
        lt = age_filter.get("range", {}).get("timestamp", {}).get("lt")

        hits = []
        for doc_id, source in self.docs[index].items():
            if doc_id == excluded_id:
                continue
            if lt is not None and not source["timestamp"] < lt:
                continue
            hits.append({"_index": index, "_id": doc_id, "_source": dict(source)})

        hits = hits[:body.get("size", 10)]
        return {"hits": {"total": {"value": len(hits), "relation": "eq"}, "hits": hits}}

    # Fixture helpers

    def add_index(self, index: str, alias: str = None):
        self.indices.create(index=index)
        if alias:
            self.aliases[index].add(alias)

    def alias_bindings(self, alias: str) -> list:
        return sorted(index for index, aliases in self.aliases.items() if alias in aliases)


def load_rotation_fixture(es: FakeElasticsearch, prefix: str = "config_test") -> str:
    """
    Primary some_index_1, secondaries some_index_2 @ 2015-01-15 and
    some_index_3 @ 2015-02-01, all three physical indices present.

    Returns: the configuration index name
    """
    config_index = f".{prefix}_configuration"
    es.indices.create(index=config_index)
    es.index(index=config_index, id="primary", body={"name": "some_index_1", "timestamp": epoch(2024, 1, 1)})
    es.index(index=config_index, id="somesecondary1", body={"name": "some_index_2", "timestamp": epoch(2015, 1, 15)})
    es.index(index=config_index, id="somesecondary2", body={"name": "some_index_3", "timestamp": epoch(2015, 2, 1)})
    for name in ("some_index_1", "some_index_2", "some_index_3"):
        es.add_index(name)
    return config_index
