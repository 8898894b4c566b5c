# services/bri_engine/aggregator.py

import asyncio
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Iterable

from .config import settings
from .schemas import (
    AttendanceRecord,
    ComponentRatios,
    MarksRecord,
    SentimentEvent,
    SubmissionRecord,
)
from .utils.logging import setup_logging

logger = setup_logging()

# Нет данных за окно: нейтральное значение, а не 0 или 1
NEUTRAL_RATIO = 0.5


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MetricSource(ABC):
    """
    Интерфейс чтения метрик студента из хранилища кампуса.
    Только чтение; реализации обязаны ставить таймаут на каждый запрос.
    """

    @abstractmethod
    async def fetch_attendance(self, student_id: str, since: date) -> list[AttendanceRecord]:
        ...

    @abstractmethod
    async def fetch_test_results(self, student_id: str, limit: int) -> list[MarksRecord]:
        """Последние результаты тестов, новые первыми."""

    @abstractmethod
    async def fetch_submissions(self, student_id: str, limit: int) -> list[SubmissionRecord]:
        """Последние сданные задания, новые первыми."""

    @abstractmethod
    async def fetch_sentiment_events(self, student_id: str, since: datetime) -> list[SentimentEvent]:
        """Оценки тональности сообщений чата и диалогов с чат-ботом."""

    @abstractmethod
    async def list_student_ids(self) -> list[str]:
        ...


# ---------- Коэффициенты компонент ----------


def attendance_ratio(records: Iterable[AttendanceRecord], since: date | None = None) -> float:
    """Доля дней присутствия; записи раньше `since` не учитываются."""
    window = [r for r in records if since is None or r.date >= since]
    if not window:
        return NEUTRAL_RATIO
    return sum(1 for r in window if r.is_present) / len(window)


def marks_ratio(results: Iterable[MarksRecord], limit: int | None = None) -> float:
    """
    Средняя доля набранных баллов по последним `limit` тестам.
    Тесты с max_marks <= 0 пропускаются; доля по тесту ограничена [0;1].
    """
    recent = sorted(results, key=lambda r: r.created_at, reverse=True)
    if limit is not None:
        recent = recent[:limit]

    ratios = [
        min(1.0, max(0.0, r.marks_obtained / r.max_marks))
        for r in recent
        if r.max_marks > 0
    ]
    if not ratios:
        return NEUTRAL_RATIO
    return sum(ratios) / len(ratios)


def assignment_ratio(submissions: Iterable[SubmissionRecord], limit: int | None = None) -> float:
    """Доля заданий, сданных вовремя, среди последних `limit`."""
    recent = list(submissions)
    if limit is not None:
        recent = recent[:limit]
    if not recent:
        return NEUTRAL_RATIO
    return sum(1 for s in recent if s.is_on_time) / len(recent)


def sentiment_ratio(events: Iterable[SentimentEvent]) -> float:
    """Средняя тональность; события без оценки пропускаются."""
    scores = [min(1.0, max(0.0, e.sentiment_score)) for e in events if e.sentiment_score is not None]
    if not scores:
        return NEUTRAL_RATIO
    return sum(scores) / len(scores)


# ---------- Агрегатор ----------


class MetricAggregator:
    """
    Собирает четыре «позитивных» коэффициента студента за окно наблюдения.
    Ничего не пишет; четыре чтения идут параллельно и не обязаны
    быть согласованы между собой.
    """

    def __init__(
        self,
        source: MetricSource,
        clock: Callable[[], datetime] = utcnow,
        attendance_days: int | None = None,
        sentiment_days: int | None = None,
        marks_limit: int | None = None,
        assignments_limit: int | None = None,
    ):
        self.source = source
        self.clock = clock
        self.attendance_days = attendance_days or settings.ATTENDANCE_WINDOW_DAYS
        self.sentiment_days = sentiment_days or settings.SENTIMENT_WINDOW_DAYS
        self.marks_limit = marks_limit or settings.MARKS_SAMPLE_SIZE
        self.assignments_limit = assignments_limit or settings.ASSIGNMENTS_SAMPLE_SIZE

    async def aggregate(self, student_id: str) -> ComponentRatios:
        now = self.clock()
        attendance_since = now.date() - timedelta(days=self.attendance_days)
        sentiment_since = now - timedelta(days=self.sentiment_days)

        attendance, results, submissions, events = await asyncio.gather(
            self.source.fetch_attendance(student_id, attendance_since),
            self.source.fetch_test_results(student_id, self.marks_limit),
            self.source.fetch_submissions(student_id, self.assignments_limit),
            self.source.fetch_sentiment_events(student_id, sentiment_since),
        )

        ratios = ComponentRatios(
            attendance=attendance_ratio(attendance, since=attendance_since),
            marks=marks_ratio(results, limit=self.marks_limit),
            assignments=assignment_ratio(submissions, limit=self.assignments_limit),
            sentiment=sentiment_ratio(events),
        )

        logger.debug(
            f"🔍 Student {student_id}: attendance={ratios.attendance:.2f} ({len(attendance)} rec), "
            f"marks={ratios.marks:.2f} ({len(results)}), assignments={ratios.assignments:.2f} "
            f"({len(submissions)}), sentiment={ratios.sentiment:.2f} ({len(events)})"
        )
        return ratios
