# tests/test_sql_backends.py
"""Tests for the SQLAlchemy-backed store and aggregator."""

from datetime import timedelta

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from confessional.models import Confession, MetricsSampleRow
from confessional.repositories import SqlConfessionStore, SqlMetricsAggregator
from confessional.services.errors import StorageFailureError
from confessional.services.metrics import MetricsSample, RiskLevel
from confessional.services.store import ConfessionRecord
from tests.conftest import START_TIME, TTL


@pytest.fixture()
def sql_store(session_factory, clock) -> SqlConfessionStore:
    return SqlConfessionStore(session_factory, clock=clock)


@pytest.fixture()
def sql_metrics(session_factory, clock) -> SqlMetricsAggregator:
    return SqlMetricsAggregator(session_factory, clock=clock)


def _record(clock, ttl: timedelta = TTL) -> ConfessionRecord:
    now = clock()
    return ConfessionRecord(
        session_id="session-1",
        ciphertext="abc",
        nonce="xyz",
        created_at=now,
        expires_at=now + ttl,
    )


def test_insert_and_get_round_trip(sql_store, clock) -> None:
    confession_id = sql_store.insert(_record(clock))

    record = sql_store.get(confession_id)
    assert record is not None
    assert record.id == confession_id
    assert record.ciphertext == "abc"
    assert record.nonce == "xyz"
    assert record.created_at == START_TIME
    assert record.expires_at == START_TIME + TTL
    assert record.read_count == 0


def test_ids_are_unique(sql_store, clock) -> None:
    ids = {sql_store.insert(_record(clock)) for _ in range(50)}
    assert len(ids) == 50


def test_expired_rows_are_invisible_before_purge(sql_store, session_factory, clock) -> None:
    confession_id = sql_store.insert(_record(clock))

    clock.advance(hours=72)
    assert sql_store.get(confession_id) is None
    assert sql_store.record_read(confession_id) is None
    assert sql_store.pop(confession_id) is None
    assert sql_store.delete(confession_id) is False

    with session_factory() as session:
        # Still physically present until the sweeper runs.
        assert session.get(Confession, confession_id) is not None


def test_record_read_and_delete(sql_store, clock) -> None:
    confession_id = sql_store.insert(_record(clock))

    assert sql_store.record_read(confession_id) == 1
    assert sql_store.record_read(confession_id) == 2
    assert sql_store.get(confession_id).read_count == 2

    assert sql_store.delete(confession_id) is True
    assert sql_store.delete(confession_id) is False
    assert sql_store.get(confession_id) is None


def test_pop_returns_record_once(sql_store, clock) -> None:
    confession_id = sql_store.insert(_record(clock))

    assert sql_store.pop(confession_id).ciphertext == "abc"
    assert sql_store.pop(confession_id) is None


def test_purge_expired_in_batches(sql_store, session_factory, clock) -> None:
    for _ in range(5):
        sql_store.insert(_record(clock, ttl=timedelta(hours=1)))
    keeper = sql_store.insert(_record(clock))

    clock.advance(hours=2)
    assert sql_store.purge_expired(batch_size=2) == 5
    assert sql_store.purge_expired(batch_size=2) == 0

    with session_factory() as session:
        remaining = list(session.execute(select(Confession.id)).scalars())
    assert remaining == [keeper]


def test_missing_table_surfaces_storage_failure(clock) -> None:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    store = SqlConfessionStore(sessionmaker(bind=engine), clock=clock)
    metrics = SqlMetricsAggregator(sessionmaker(bind=engine), clock=clock)

    with pytest.raises(StorageFailureError):
        store.insert(_record(clock))
    with pytest.raises(StorageFailureError):
        store.get("conf_anything")
    with pytest.raises(StorageFailureError):
        metrics.aggregate()
    engine.dispose()


def test_sql_metrics_aggregate(sql_metrics) -> None:
    for length, hours in ((10, 0), (20, 1), (30, 1)):
        sql_metrics.record(MetricsSample.from_submission(length, START_TIME + timedelta(hours=hours)))

    aggregate = sql_metrics.aggregate()
    assert aggregate.total_count == 3
    assert aggregate.average_length == 20
    assert aggregate.hour_histogram[14] == 1
    assert aggregate.hour_histogram[15] == 2
    assert aggregate.weekday_histogram[0] == 3


def test_sql_metrics_empty_aggregate(sql_metrics) -> None:
    aggregate = sql_metrics.aggregate()
    assert aggregate.total_count == 0
    assert aggregate.average_length == 0.0
    assert sum(aggregate.weekday_histogram) == 0


def test_sql_metrics_crisis_threshold(sql_metrics, clock) -> None:
    for _ in range(10):
        sql_metrics.record(MetricsSample.from_submission(5, clock() - timedelta(hours=2)))
    assert sql_metrics.crisis_level().level is RiskLevel.NORMAL

    sql_metrics.record(MetricsSample.from_submission(5, clock()))
    crisis = sql_metrics.crisis_level()
    assert crisis.level is RiskLevel.ELEVATED
    assert crisis.frequency == 11


def test_metric_rows_hold_no_identifiers() -> None:
    columns = set(MetricsSampleRow.__table__.columns.keys())
    assert columns == {"id", "timestamp", "text_length", "hour_of_day", "day_of_week"}
