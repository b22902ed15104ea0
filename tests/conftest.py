"""
Shared test fixtures and configuration for entire test suite.

Provides: fake clock, file-backed SQLite session factory, queue/aggregator
instances, project fixtures and a fully wired service container
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_none

from trailer_backend.application.container import ServiceContainer
from trailer_backend.boundary.db.base import Base
from trailer_backend.boundary.db.connection import (
    create_engine_from_settings,
    create_session_factory,
    transaction,
)
from trailer_backend.boundary.db.models.project_model import ProjectModel
from trailer_backend.configs import Settings
from trailer_backend.configs.aggregation import AggregationSettings
from trailer_backend.configs.database import DatabaseSettings
from trailer_backend.configs.gateway import GatewaySettings
from trailer_backend.configs.queue import QueueSettings
from trailer_backend.core.aggregator import FailurePolicy, ProgressAggregator
from trailer_backend.core.exceptions import PersistenceError
from trailer_backend.core.job_queue import JobQueue


class FakeClock:
    """
    Deterministic clock shared by the queue, the mock provider and the poll loop.

    now() ticks one millisecond per call so successive enqueues get
    distinct creation times; sleep() advances time instantly.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        self.sleeps: list[float] = []

    def now(self) -> datetime:
        self._now += timedelta(milliseconds=1)
        return self._now

    def time(self) -> float:
        return self._now.timestamp()

    def advance(self, seconds: float) -> None:
        self._now += timedelta(seconds=seconds)

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.advance(seconds)
        await asyncio.sleep(0)


def no_wait_retrying() -> AsyncRetrying:
    """Persistence retry policy without backoff for tests."""
    return AsyncRetrying(
        retry=retry_if_exception_type(PersistenceError),
        stop=stop_after_attempt(2),
        wait=wait_none(),
        reraise=True,
    )


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings pointing at a file-backed SQLite database with mock providers."""
    return Settings(
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'trailer.db'}"),
        queue=QueueSettings(concurrency=2, idle_sleep_seconds=0.01),
        gateway=GatewaySettings(mock_mode=True, fal_key=None, openai_api_key=None),
        aggregation=AggregationSettings(),
    )


@pytest.fixture
async def engine(settings: Settings):
    """
    Create the file-backed SQLite engine with all tables.

    A file database (not :memory:) gives each session its own
    connection, so concurrent claims really compete.
    """
    engine = create_engine_from_settings(settings.database)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Provide an async session factory bound to the test engine."""
    return create_session_factory(engine)


@pytest.fixture
def queue(session_factory, settings: Settings, clock: FakeClock) -> JobQueue:
    """Provide a JobQueue driven by the fake clock."""
    return JobQueue(session_factory, settings.queue, clock=clock.now)


@pytest.fixture
def aggregator(session_factory) -> ProgressAggregator:
    """Provide a ProgressAggregator with the default failure policy."""
    return ProgressAggregator(session_factory, FailurePolicy())


@pytest.fixture
def create_project(session_factory):
    """
    Factory fixture that inserts a project row.

    Returns:
        Callable: async (generated_script=None) -> project UUID
    """

    async def _create(generated_script: dict | None = None, title: str = "DevLens") -> uuid.UUID:
        async with transaction(session_factory, "create_project") as session:
            project = ProjectModel(
                user_id="user-1",
                title=title,
                description="A code review assistant",
                generated_script=generated_script,
            )
            session.add(project)
            await session.flush()
            return project.id

    return _create


@pytest.fixture
def sample_script() -> dict:
    """Provide a stored three-scene script in its JSON form."""
    return {
        "title": "DevLens in 30 seconds",
        "script": "Meet DevLens. Review code faster. Ship today.",
        "duration": 30,
        "voiceover": "Meet DevLens. Review code faster. Ship today.",
        "visualCues": ["dark theme"],
        "scenes": [
            {
                "id": "scene_1",
                "startTime": 0,
                "endTime": 10,
                "description": "A developer at a glowing monitor",
                "action": "typing quickly",
                "setting": "a night office",
                "mood": "focused",
                "voiceover": "Meet DevLens.",
            },
            {
                "startTime": 10,
                "endTime": 20,
                "description": "Pull request comments appearing",
                "voiceover": "Review code faster.",
            },
            {
                "startTime": 20,
                "endTime": 30,
                "description": "The DevLens logo",
                "mood": "confident",
                "voiceover": "Ship today.",
            },
        ],
    }


@pytest.fixture
async def container(settings: Settings, engine, clock: FakeClock):
    """
    Provide a fully wired ServiceContainer on the test database.

    Queue, mock provider and poll loop all run on the fake clock, so a
    mock generation completes after two simulated polls.
    """
    container = ServiceContainer.build(
        settings,
        engine=engine,
        clock=clock.now,
        wall_clock=clock.time,
        sleep=clock.sleep,
    )
    container.build_worker_pool(name="test-worker", retrying=no_wait_retrying())
    yield container
    if container.worker_pool is not None:
        await container.worker_pool.stop(grace_seconds=1)
