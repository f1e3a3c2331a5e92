"""
Tests for the index rotator facade

Fixture: primary some_index_1, secondaries some_index_2 @ 2015-01-15
and some_index_3 @ 2015-02-01.

Run with: python -m pytest examples/test_index_rotator.py -v
"""

import sys
import os
from datetime import datetime

import pytest
from elasticsearch import ConnectionError

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from index_rotator import (
    AliasStrategy,
    ConfigurationStrategy,
    IndexRotator,
    MissingPrimaryIndex,
    PrimaryIndexCopyFailure,
)
from index_rotator.rotation import is_transient_error
from fake_es import FakeElasticsearch, api_error, epoch, load_rotation_fixture, not_found

CONFIG_INDEX = ".config_test_configuration"

SECONDARY_CONDITIONS = [
    pytest.param(None, ["some_index_2", "some_index_3"], ["somesecondary1", "somesecondary2"], id="all"),
    pytest.param(datetime(2015, 2, 1), ["some_index_2"], ["somesecondary1"], id="older than 2015-02-01"),
    pytest.param(datetime(2015, 1, 1), [], [], id="older than 2015-01-01"),
]


class RecordingSleep:
    """Injected sleep that records delays instead of sleeping"""

    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


def make_rotator(es=None, **kwargs):
    es = es or FakeElasticsearch()
    kwargs.setdefault("sleep", RecordingSleep())
    return IndexRotator(es, "config_test", **kwargs)


def make_fixture_rotator(**kwargs):
    es = FakeElasticsearch()
    load_rotation_fixture(es)
    return es, make_rotator(es, **kwargs)


# Primary index

def test_default_strategy_shares_configuration_index():
    rotator = make_rotator()

    assert isinstance(rotator.strategy, ConfigurationStrategy)
    assert rotator.strategy.configuration_index is rotator.configuration_index
    assert rotator.configuration_index.name == CONFIG_INDEX


def test_get_primary_index():
    _, rotator = make_fixture_rotator()

    assert rotator.get_primary_index() == "some_index_1"


def test_get_primary_index_on_untouched_prefix():
    with pytest.raises(MissingPrimaryIndex):
        make_rotator().get_primary_index()


def test_set_primary_index():
    _, rotator = make_fixture_rotator()

    rotator.set_primary_index("some_index_2")

    assert rotator.get_primary_index() == "some_index_2"


def test_set_primary_index_first_time():
    es = FakeElasticsearch()
    rotator = make_rotator(es)

    rotator.set_primary_index("some_index_1")

    assert rotator.get_primary_index() == "some_index_1"
    assert es.indices.exists(index=CONFIG_INDEX)


# Archiving

def test_copy_primary_index_to_secondary():
    """Exactly one new secondary record naming the primary"""
    es, rotator = make_fixture_rotator()
    before = set(es.docs[CONFIG_INDEX])

    entry_id = rotator.copy_primary_index_to_secondary()

    assert entry_id != "primary"
    assert set(es.docs[CONFIG_INDEX]) - before == {entry_id}
    assert es.docs[CONFIG_INDEX][entry_id]["name"] == "some_index_1"
    assert rotator.get_primary_index() == "some_index_1"

    print("✓ Copy primary to secondary test passed")


def test_copy_without_primary_raises_missing():
    """A missing primary is final: no retries"""
    sleep = RecordingSleep()
    rotator = make_rotator(sleep=sleep)

    with pytest.raises(MissingPrimaryIndex):
        rotator.copy_primary_index_to_secondary()
    assert sleep.delays == []


def test_copy_retries_transient_errors():
    """Server errors are retried after the configured delay"""
    sleep = RecordingSleep()
    es, rotator = make_fixture_rotator(sleep=sleep, retry_delay=0.25)
    es.get_errors = [api_error(503), ConnectionError("connection refused")]

    entry_id = rotator.copy_primary_index_to_secondary()

    assert es.docs[CONFIG_INDEX][entry_id]["name"] == "some_index_1"
    assert sleep.delays == [0.25, 0.25]
    assert len(es.get_calls) == 3


def test_copy_gives_up_after_max_retries():
    """The retry counter advances and the copy fails once it is exhausted"""
    sleep = RecordingSleep()
    es, rotator = make_fixture_rotator(sleep=sleep, max_retries=3)
    es.get_errors = [api_error(500) for _ in range(10)]
    before = dict(es.docs[CONFIG_INDEX])

    with pytest.raises(PrimaryIndexCopyFailure) as exc_info:
        rotator.copy_primary_index_to_secondary()

    assert exc_info.value.__cause__.meta.status == 500
    assert len(es.get_calls) == 4
    assert sleep.delays == [0.5, 0.5, 0.5]
    assert es.docs[CONFIG_INDEX] == before


def test_copy_does_not_retry_client_errors():
    """Non-transient engine errors pass through unwrapped"""
    sleep = RecordingSleep()
    es, rotator = make_fixture_rotator(sleep=sleep)
    bad_request = api_error(400, "parsing_exception")
    es.get_errors = [bad_request]

    with pytest.raises(type(bad_request)) as exc_info:
        rotator.copy_primary_index_to_secondary()

    assert exc_info.value is bad_request
    assert sleep.delays == []


def test_transient_error_classification():
    assert is_transient_error(api_error(500))
    assert is_transient_error(api_error(503))
    assert is_transient_error(ConnectionError("connection refused"))
    assert not is_transient_error(api_error(400))
    assert not is_transient_error(not_found("missing"))
    assert not is_transient_error(MissingPrimaryIndex("missing"))


# Secondary listing

@pytest.mark.parametrize("older_than, expected_indices, expected_ids", SECONDARY_CONDITIONS)
def test_get_secondary_indices(older_than, expected_indices, expected_ids):
    _, rotator = make_fixture_rotator()

    assert rotator.get_secondary_indices(older_than) == expected_indices


@pytest.mark.parametrize("older_than, expected_indices, expected_ids", SECONDARY_CONDITIONS)
def test_get_secondary_indices_include_ids(older_than, expected_indices, expected_ids):
    _, rotator = make_fixture_rotator()

    results = rotator.get_secondary_indices(older_than, include_id=True)

    assert [r["index"] for r in results] == expected_indices
    assert [r["configuration_id"] for r in results] == expected_ids


def test_get_secondary_indices_accepts_epoch_seconds():
    _, rotator = make_fixture_rotator()

    assert rotator.get_secondary_indices(epoch(2015, 2, 1)) == ["some_index_2"]
    assert rotator.get_secondary_indices(epoch(2015, 2, 1) + 1) == ["some_index_2", "some_index_3"]


def test_get_secondary_indices_without_configuration_index():
    es = FakeElasticsearch()

    assert make_rotator(es).get_secondary_indices() == []
    assert es.search_bodies == []


def test_get_secondary_indices_legacy_engine():
    """Old engines receive the top-level filter and still match by age"""
    es = FakeElasticsearch(version="1.7.5")
    load_rotation_fixture(es)

    results = make_rotator(es).get_secondary_indices(datetime(2015, 2, 1))

    assert results == ["some_index_2"]
    assert "filter" in es.search_bodies[-1]


# Secondary pruning

@pytest.mark.parametrize("older_than, expected_indices, expected_ids", SECONDARY_CONDITIONS)
def test_delete_secondary_indices(older_than, expected_indices, expected_ids):
    es, rotator = make_fixture_rotator()

    results = rotator.delete_secondary_indices(older_than)

    assert sorted(results) == sorted(expected_ids)
    assert sorted(result["name"] for result in results.values()) == sorted(expected_indices)
    for result in results.values():
        assert result["index"] == {"acknowledged": True}
        assert result["config"]["result"] == "deleted"
        assert not es.indices.exists(index=result["name"])

    remaining = {"some_index_2", "some_index_3"} - set(expected_indices)
    assert set(rotator.get_secondary_indices()) == remaining
    for configuration_id in expected_ids:
        assert configuration_id not in es.docs[CONFIG_INDEX]

    # Primary untouched
    assert rotator.get_primary_index() == "some_index_1"
    assert es.indices.exists(index="some_index_1")


def test_delete_secondary_indices_no_match_is_noop():
    es, rotator = make_fixture_rotator()
    before = dict(es.docs[CONFIG_INDEX])

    assert rotator.delete_secondary_indices(datetime(2014, 12, 31)) == {}
    assert es.docs[CONFIG_INDEX] == before


def test_delete_secondary_indices_index_already_gone():
    """A vanished physical index still has its record removed"""
    es, rotator = make_fixture_rotator()
    es.indices.delete(index="some_index_2")

    results = rotator.delete_secondary_indices()

    assert results["somesecondary1"]["name"] == "some_index_2"
    assert results["somesecondary1"]["index"] is None
    assert results["somesecondary1"]["config"]["result"] == "deleted"
    assert results["somesecondary2"]["index"] == {"acknowledged": True}
    assert rotator.get_secondary_indices() == []


def test_delete_secondary_indices_reports_failures_per_entry():
    """One failing entry does not stop the others"""
    es, rotator = make_fixture_rotator()
    es.delete_index_errors["some_index_2"] = api_error(403, "security_exception")

    results = rotator.delete_secondary_indices()

    assert results["somesecondary1"]["index"]["status"] == 403
    # Record deletion is not attempted when the index delete fails
    assert results["somesecondary1"]["config"] is None
    assert "somesecondary1" in es.docs[CONFIG_INDEX]
    assert results["somesecondary2"]["config"]["result"] == "deleted"

    # Failed entry keeps its record for a later pass
    assert rotator.get_secondary_indices() == ["some_index_2"]
    assert es.indices.exists(index="some_index_2")


def test_delete_secondary_indices_duplicate_names_report_each_record():
    """Two records naming one index each report their own outcome"""
    es, rotator = make_fixture_rotator()
    es.add_index("some_index_4")
    rotator.set_primary_index("some_index_4")
    first_id = rotator.copy_primary_index_to_secondary()
    second_id = rotator.copy_primary_index_to_secondary()
    rotator.set_primary_index("some_index_1")
    es.delete_errors[first_id] = api_error(503)

    results = rotator.delete_secondary_indices()

    assert results[first_id]["name"] == "some_index_4"
    assert results[first_id]["index"] == {"acknowledged": True}
    assert results[first_id]["config"]["status"] == 503
    assert results[second_id]["name"] == "some_index_4"
    assert results[second_id]["index"] is None
    assert results[second_id]["config"]["result"] == "deleted"

    # The record whose deletion failed is still listed
    assert rotator.get_secondary_indices(include_id=True) == [
        {"index": "some_index_4", "configuration_id": first_id}
    ]


# Full rotation

def test_rotate_first_time():
    es = FakeElasticsearch()
    es.add_index("some_index_1")
    rotator = make_rotator(es)

    assert rotator.rotate("some_index_1") is None
    assert rotator.get_primary_index() == "some_index_1"
    assert rotator.get_secondary_indices() == []


def test_rotate_archives_previous_primary():
    es, rotator = make_fixture_rotator()
    es.add_index("some_index_4")

    secondary_id = rotator.rotate("some_index_4")

    assert rotator.get_primary_index() == "some_index_4"
    assert es.docs[CONFIG_INDEX][secondary_id]["name"] == "some_index_1"
    assert rotator.get_secondary_indices() == ["some_index_2", "some_index_3", "some_index_1"]


def test_rotate_to_current_primary_is_noop():
    """Repeating a rotation must not archive, and later prune, the live index"""
    es, rotator = make_fixture_rotator()
    before = dict(es.docs[CONFIG_INDEX])

    assert rotator.rotate("some_index_1") is None
    assert es.docs[CONFIG_INDEX] == before

    rotator.delete_secondary_indices()

    assert rotator.get_primary_index() == "some_index_1"
    assert es.indices.exists(index="some_index_1")
    print("✓ Live primary survives a repeated rotation and pruning")


def test_rotate_retry_after_success_keeps_primary():
    es, rotator = make_fixture_rotator()
    es.add_index("some_index_4")

    first_id = rotator.rotate("some_index_4")
    assert rotator.rotate("some_index_4") is None

    assert rotator.get_secondary_indices(include_id=True)[-1] == {
        "index": "some_index_1", "configuration_id": first_id
    }
    assert "some_index_4" not in rotator.get_secondary_indices()


def test_rotate_with_alias_strategy():
    """Secondaries are tracked in the configuration index with the alias strategy too"""
    es = FakeElasticsearch()
    es.add_index("some_index_1", alias="some_alias")
    es.add_index("some_index_2")
    rotator = make_rotator(es)
    rotator.set_primary_index_strategy(
        AliasStrategy(es, alias_name="some_alias", index_pattern="some_index_*")
    )

    secondary_id = rotator.rotate("some_index_2")

    assert rotator.get_primary_index() == "some_index_2"
    assert es.alias_bindings("some_alias") == ["some_index_2"]
    assert es.docs[CONFIG_INDEX][secondary_id]["name"] == "some_index_1"
    assert "primary" not in es.docs[CONFIG_INDEX]
    assert rotator.get_secondary_indices(include_id=True) == [
        {"index": "some_index_1", "configuration_id": secondary_id}
    ]
