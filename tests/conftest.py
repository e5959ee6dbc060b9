# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ANTHROPIC_API_KEY", "")

from confessional.api.v1.dependencies import (
    get_confession_service,
    get_support_responder,
)
from confessional.core.rate_limit import limiter
from confessional.db.session import Base
from confessional.main import app as fastapi_app
from confessional.services.confessions import ConfessionService
from confessional.services.metrics import MetricsAggregator
from confessional.services.responder import SupportResponder
from confessional.services.store import InMemoryConfessionStore

# Sunday, 14:30 UTC.
START_TIME = datetime(2024, 3, 10, 14, 30, tzinfo=UTC)
TTL = timedelta(hours=72)


class FakeClock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime = START_TIME) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> InMemoryConfessionStore:
    return InMemoryConfessionStore(clock=clock)


@pytest.fixture()
def metrics(clock: FakeClock) -> MetricsAggregator:
    return MetricsAggregator(clock=clock)


@pytest.fixture()
def service(
    store: InMemoryConfessionStore,
    metrics: MetricsAggregator,
    clock: FakeClock,
) -> ConfessionService:
    return ConfessionService(store, metrics, clock=clock, ttl=TTL)


@pytest.fixture()
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture()
def responder() -> SupportResponder:
    return SupportResponder(api_key=None, model="test-model")


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(
    app: FastAPI,
    service: ConfessionService,
    responder: SupportResponder,
) -> Iterator[TestClient]:
    app.dependency_overrides[get_confession_service] = lambda: service
    app.dependency_overrides[get_support_responder] = lambda: responder
    limiter.reset()
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()
        limiter.reset()
