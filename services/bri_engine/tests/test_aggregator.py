import asyncio
from datetime import date, datetime, timedelta, timezone

import pytest

from bri_engine.aggregator import (
    NEUTRAL_RATIO,
    MetricAggregator,
    assignment_ratio,
    attendance_ratio,
    marks_ratio,
    sentiment_ratio,
)
from bri_engine.schemas import AttendanceRecord, MarksRecord, SentimentEvent, SubmissionRecord


def _marks(obtained: float, maximum: float, days_ago: int) -> MarksRecord:
    return MarksRecord(
        marks_obtained=obtained,
        max_marks=maximum,
        created_at=datetime(2026, 10, 14, tzinfo=timezone.utc) - timedelta(days=days_ago),
    )


def test_empty_inputs_default_to_neutral() -> None:
    assert attendance_ratio([]) == NEUTRAL_RATIO
    assert marks_ratio([]) == NEUTRAL_RATIO
    assert assignment_ratio([]) == NEUTRAL_RATIO
    assert sentiment_ratio([]) == NEUTRAL_RATIO


def test_attendance_ratio_ignores_records_before_window() -> None:
    since = date(2026, 9, 14)
    records = [
        AttendanceRecord(date=date(2026, 10, 1), is_present=True),
        AttendanceRecord(date=date(2026, 10, 2), is_present=False),
        AttendanceRecord(date=date(2026, 10, 3), is_present=True),
        AttendanceRecord(date=date(2026, 10, 5), is_present=True),
        AttendanceRecord(date=date(2026, 9, 1), is_present=False),
    ]
    assert attendance_ratio(records, since=since) == pytest.approx(0.75)
    assert attendance_ratio(records[-1:], since=since) == NEUTRAL_RATIO


def test_marks_ratio_uses_most_recent_tests() -> None:
    results = [_marks(50, 100, days_ago=d) for d in range(10)] + [_marks(0, 100, days_ago=40)]
    # самый старый тест (0 баллов) не попадает в последние 10
    assert marks_ratio(list(reversed(results)), limit=10) == pytest.approx(0.5)


def test_marks_ratio_skips_zero_max_and_clamps_bonus() -> None:
    results = [_marks(12, 10, days_ago=1), _marks(5, 0, days_ago=2), _marks(3, 10, days_ago=3)]
    assert marks_ratio(results) == pytest.approx((1.0 + 0.3) / 2)
    assert marks_ratio([_marks(5, 0, days_ago=1)]) == NEUTRAL_RATIO


def test_assignment_ratio_limits_to_recent_submissions() -> None:
    submissions = [SubmissionRecord(is_on_time=True)] * 3 + [SubmissionRecord(is_on_time=False)] * 2
    assert assignment_ratio(submissions) == pytest.approx(0.6)
    assert assignment_ratio(submissions, limit=3) == 1.0


def test_sentiment_ratio_skips_missing_scores() -> None:
    events = [SentimentEvent(sentiment_score=0.2), SentimentEvent(sentiment_score=None), SentimentEvent(sentiment_score=0.6)]
    assert sentiment_ratio(events) == pytest.approx(0.4)


def test_aggregate_reads_windows_from_clock(fake_source, clock) -> None:
    fake_source.add_student(
        "s-1",
        attendance=[AttendanceRecord(date=date(2026, 10, 13), is_present=True)],
        results=[_marks(40, 50, days_ago=2)],
        submissions=[SubmissionRecord(is_on_time=False)],
        events=[SentimentEvent(sentiment_score=0.1)],
    )
    aggregator = MetricAggregator(fake_source, clock=clock)

    ratios = asyncio.run(aggregator.aggregate("s-1"))

    assert ratios.attendance == 1.0
    assert ratios.marks == pytest.approx(0.8)
    assert ratios.assignments == 0.0
    assert ratios.sentiment == pytest.approx(0.1)

    calls = {name: arg for name, _, arg in fake_source.calls}
    assert calls["attendance"] == date(2026, 9, 14)
    assert calls["results"] == 10
    assert calls["submissions"] == 20
    assert calls["sentiment"] == clock.now - timedelta(days=30)


def test_aggregate_with_no_records_is_all_neutral(fake_source, clock) -> None:
    fake_source.add_student("s-empty")

    ratios = asyncio.run(MetricAggregator(fake_source, clock=clock).aggregate("s-empty"))

    assert ratios.model_dump() == {"attendance": 0.5, "marks": 0.5, "assignments": 0.5, "sentiment": 0.5}
