import pytest

from authz_matrix import FailureRecord
from authz_matrix.aggregator import FailureAggregator
from authz_matrix.errors import AuthorizationMismatchError


def record(test, role):
    return FailureRecord(test, role, "d", f"mismatch for {role}")


def test_empty_aggregator_passes():
    aggregator = FailureAggregator()
    aggregator.note_trial()

    aggregator.assert_empty()
    assert aggregator.trials == 1
    assert aggregator.records == []


def test_records_keep_collection_order():
    aggregator = FailureAggregator()
    aggregator.collect([record("find", "read")])
    aggregator.collect([record("insert", "read"), record("insert", "root")])

    assert [(r.test_name, r.role_key) for r in aggregator.records] == [
        ("find", "read"),
        ("insert", "read"),
        ("insert", "root"),
    ]
    assert len(aggregator) == 3


def test_records_view_is_a_copy():
    aggregator = FailureAggregator()
    aggregator.collect([record("find", "read")])
    aggregator.records.clear()
    assert len(aggregator) == 1


def test_assert_empty_reports_every_record():
    aggregator = FailureAggregator()
    aggregator.collect([record("find", "read"), record("insert", "root")])

    with pytest.raises(AuthorizationMismatchError) as exc_info:
        aggregator.assert_empty()

    message = str(exc_info.value)
    assert message.startswith("2 authorization mismatch(es)")
    assert "find: mismatch for read" in message
    assert "insert: mismatch for root" in message
    assert isinstance(exc_info.value, AssertionError)
