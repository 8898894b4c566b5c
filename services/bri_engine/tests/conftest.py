from pathlib import Path
import asyncio
import os
import sys
from datetime import datetime, timezone

import pytest

ROOT = Path(__file__).resolve().parents[3]
SERVICES_DIR = ROOT / "services"
if str(SERVICES_DIR) not in sys.path:
    sys.path.insert(0, str(SERVICES_DIR))

# До импорта bri_engine: движок модуля database создаётся при импорте
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from bri_engine.aggregator import MetricAggregator, MetricSource
from bri_engine.database import BRI_SCHEMA, Base
from bri_engine.recompute import BriRecomputer

# Среда, 14 октября 2026: неделя начинается в понедельник 12 октября
FIXED_NOW = datetime(2026, 10, 14, 10, 0, tzinfo=timezone.utc)


class MutableClock:
    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class FakeSource(MetricSource):
    """Хранилище кампуса в памяти: метрики по студентам, ошибки и задержки по запросу."""

    def __init__(self):
        self.students: list[str] = []
        self.attendance: dict[str, list] = {}
        self.results: dict[str, list] = {}
        self.submissions: dict[str, list] = {}
        self.events: dict[str, list] = {}
        self.failures: dict[str, Exception] = {}
        self.delay = 0.0
        self.calls: list[tuple] = []
        self.active = 0
        self.max_active = 0

    def add_student(self, student_id, attendance=(), results=(), submissions=(), events=()):
        if student_id not in self.students:
            self.students.append(student_id)
        self.attendance[student_id] = list(attendance)
        self.results[student_id] = list(results)
        self.submissions[student_id] = list(submissions)
        self.events[student_id] = list(events)

    def _check(self, student_id):
        if student_id in self.failures:
            raise self.failures[student_id]

    async def fetch_attendance(self, student_id, since):
        self.calls.append(("attendance", student_id, since))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            self._check(student_id)
            return list(self.attendance.get(student_id, []))
        finally:
            self.active -= 1

    async def fetch_test_results(self, student_id, limit):
        self.calls.append(("results", student_id, limit))
        self._check(student_id)
        return list(self.results.get(student_id, []))[:limit]

    async def fetch_submissions(self, student_id, limit):
        self.calls.append(("submissions", student_id, limit))
        self._check(student_id)
        return list(self.submissions.get(student_id, []))[:limit]

    async def fetch_sentiment_events(self, student_id, since):
        self.calls.append(("sentiment", student_id, since))
        self._check(student_id)
        return list(self.events.get(student_id, []))

    async def list_student_ids(self):
        return list(self.students)


# Файловая SQLite: запись снимков идёт из пула потоков, у каждого своё соединение
@pytest.fixture
def engine(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'bri.db'}",
        connect_args={"check_same_thread": False},
        execution_options={"schema_translate_map": {BRI_SCHEMA: None}},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def fake_source():
    return FakeSource()


@pytest.fixture
def make_recomputer(fake_source, session_factory, clock):
    def _make(**kwargs) -> BriRecomputer:
        return BriRecomputer(
            aggregator=MetricAggregator(fake_source, clock=clock),
            session_factory=session_factory,
            clock=clock,
            **kwargs,
        )

    return _make
