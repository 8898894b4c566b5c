# services/bri_engine/recompute.py

import asyncio
from datetime import datetime
from enum import Enum
from typing import Callable

from sqlalchemy.orm import Session

from .aggregator import MetricAggregator, utcnow
from .config import settings
from .errors import RecomputationFailed
from .schemas import RecomputeResult, SweepFailure, SweepReport, WeightConfig
from .scoring import FACTORS, classify, rank_factors, score_ratios
from .snapshots import persist_snapshot, week_start
from .weights import get_active_config
from .utils.logging import setup_logging

logger = setup_logging()


class Stage(str, Enum):
    """Этапы пересчёта одного студента. Порядок строгий, пропускать нельзя."""
    PENDING = "Pending"
    AGGREGATING = "Aggregating"
    SCORING = "Scoring"
    CLASSIFYING = "Classifying"
    PERSISTING = "Persisting"
    DONE = "Done"
    FAILED = "Failed"


class BriRecomputer:
    """
    Оркестратор пересчёта BRI:
      - recompute(student_id): по запросу, один снимок за текущую неделю;
      - sweep(): после смены весов, по всем студентам с ограниченным параллелизмом.

    Пересчёт одного студента выполняется по принципу «всё или ничего»: при ошибке на любом этапе
    ни снимок, ни текущий BRI не меняются.
    """

    def __init__(
        self,
        aggregator: MetricAggregator,
        session_factory: Callable[[], Session],
        clock: Callable[[], datetime] = utcnow,
        aggregation_timeout: float | None = None,
        concurrency: int | None = None,
    ):
        self.aggregator = aggregator
        self.session_factory = session_factory
        self.clock = clock
        self.aggregation_timeout = aggregation_timeout or settings.AGGREGATION_TIMEOUT
        self.concurrency = max(1, concurrency or settings.SWEEP_CONCURRENCY)

    # Синхронные обращения к БД выполняются в пуле потоков, чтобы не
    # блокировать event loop, пока идёт сбор метрик других студентов
    def _active_config(self) -> WeightConfig:
        db = self.session_factory()
        try:
            return get_active_config(db)
        finally:
            db.close()

    def _persist(self, result: RecomputeResult) -> None:
        db = self.session_factory()
        try:
            persist_snapshot(db, result)
        finally:
            db.close()

    async def recompute(self, student_id: str, config: WeightConfig | None = None) -> RecomputeResult:
        """
        Пересчитывает BRI студента и сохраняет снимок за текущую неделю.
        Бросает RecomputationFailed с этапом, на котором произошла ошибка.
        """
        stage = Stage.PENDING
        try:
            if config is None:
                config = await asyncio.to_thread(self._active_config)

            stage = Stage.AGGREGATING
            logger.debug(f"▶️ {student_id}: {stage.value}")
            ratios = await asyncio.wait_for(
                self.aggregator.aggregate(student_id),
                timeout=self.aggregation_timeout,
            )

            stage = Stage.SCORING
            logger.debug(f"▶️ {student_id}: {stage.value}")
            score = score_ratios(ratios, config)

            stage = Stage.CLASSIFYING
            logger.debug(f"▶️ {student_id}: {stage.value}")
            risk_level = classify(score.bri, config)
            factors = rank_factors(score.contributions)

            result = RecomputeResult(
                student_id=student_id,
                bri_score=score.bri,
                risk_level=risk_level,
                contributing_factors=factors,
                component_scores=ratios,
                week_start_date=week_start(self.clock().date()),
                config_version=config.version,
            )

            stage = Stage.PERSISTING
            logger.debug(f"▶️ {student_id}: {stage.value}")
            await asyncio.to_thread(self._persist, result)
        except Exception as e:
            if isinstance(e, asyncio.TimeoutError):
                logger.error(f"⏱️ {student_id}: aggregation exceeded {self.aggregation_timeout}s")
            logger.error(f"❌ BRI recomputation failed: student={student_id}, stage={stage.value}, error={e!r}")
            raise RecomputationFailed(student_id, stage.value, e) from e

        logger.info(
            f"📊 BRI recomputed | student={student_id}, bri={result.bri_score:.2f}, "
            f"level={result.risk_level.value}, factors={result.contributing_factors}, "
            + ", ".join(f"{key}={score.contributions[key]:.3f}" for key, _ in FACTORS)
        )
        return result

    async def sweep(
        self,
        student_ids: list[str] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> SweepReport:
        """
        Пересчёт по всем студентам после смены конфигурации.

        Студенты независимы: ошибка одного попадает в отчёт и не прерывает
        остальных. Отмена кооперативная: проверяется перед стартом каждого
        студента; уже начатый пересчёт доводится до конца.
        """
        if student_ids is None:
            student_ids = await self.aggregator.source.list_student_ids()

        # одна версия весов на весь проход
        config = await asyncio.to_thread(self._active_config)
        report = SweepReport(config_version=config.version, total=len(student_ids))
        semaphore = asyncio.Semaphore(self.concurrency)

        logger.info(
            f"🧹 BRI sweep started: students={len(student_ids)}, config=v{config.version}, "
            f"concurrency={self.concurrency}"
        )

        async def run_one(student_id: str) -> None:
            async with semaphore:
                if cancel_event is not None and cancel_event.is_set():
                    report.skipped.append(student_id)
                    return
                try:
                    await self.recompute(student_id, config=config)
                except RecomputationFailed as e:
                    report.failed.append(
                        SweepFailure(student_id=student_id, stage=e.stage, error=str(e.cause or e))
                    )
                else:
                    report.succeeded.append(student_id)

        await asyncio.gather(*(run_one(student_id) for student_id in student_ids))

        report.cancelled = bool(report.skipped)
        logger.info(
            f"🧹 BRI sweep finished: ok={len(report.succeeded)}, failed={len(report.failed)}, "
            f"skipped={len(report.skipped)}"
        )
        return report
