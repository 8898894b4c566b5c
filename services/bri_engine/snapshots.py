# services/bri_engine/snapshots.py

from datetime import date, datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import BriSnapshot, StudentCurrentBri
from .schemas import RecomputeResult, RiskLevel
from .utils.logging import setup_logging

logger = setup_logging()


def week_start(day: date) -> date:
    """Понедельник ISO-недели, в которую попадает `day`."""
    return day - timedelta(days=day.weekday())


def persist_snapshot(db: Session, result: RecomputeResult) -> BriSnapshot:
    """
    Сохраняет результат пересчёта одной транзакцией:
      1. upsert снимка за неделю (student_id, week_start_date);
      2. только после него: обновление «текущего» BRI студента.
    При любой ошибке транзакция откатывается целиком, так что текущий BRI
    никогда не указывает на несуществующий снимок.
    Конфликт уникальности с параллельной записью той же недели
    повторяется один раз: вторая попытка обновляет уже вставленную строку.
    """
    now = datetime.utcnow()
    try:
        snapshot = _write_snapshot(db, result, now)
    except IntegrityError:
        # параллельный пересчёт той же недели успел вставить строку;
        # со второй попытки она найдётся и будет перезаписана
        logger.warning(
            f"🔁 Concurrent BRI write for student={result.student_id}, week={result.week_start_date}, retrying"
        )
        snapshot = _write_snapshot(db, result, now)

    db.refresh(snapshot)
    logger.info(
        f"💾 BRI snapshot saved: student={result.student_id}, week={result.week_start_date}, "
        f"bri={snapshot.bri_score:.2f}, level={snapshot.risk_level}, id={snapshot.id}"
    )
    return snapshot


def _write_snapshot(db: Session, result: RecomputeResult, now: datetime) -> BriSnapshot:
    payload = {
        "bri_score": result.bri_score,
        "risk_level": result.risk_level.value,
        "contributing_factors": list(result.contributing_factors),
        "component_scores": result.component_scores.model_dump(),
        "config_version": result.config_version,
    }

    try:
        snapshot = (
            db.query(BriSnapshot)
            .filter(
                BriSnapshot.student_id == result.student_id,
                BriSnapshot.week_start_date == result.week_start_date,
            )
            .one_or_none()
        )
        if snapshot is None:
            snapshot = BriSnapshot(
                student_id=result.student_id,
                week_start_date=result.week_start_date,
                created_at=now,
                updated_at=now,
                **payload,
            )
            db.add(snapshot)
        else:
            # перезапись снимка той же недели; created_at остаётся прежним
            for field, value in payload.items():
                setattr(snapshot, field, value)
            snapshot.updated_at = now

        # снимок должен получить id до обновления указателя
        db.flush()

        current = db.get(StudentCurrentBri, result.student_id)
        if current is None:
            current = StudentCurrentBri(student_id=result.student_id)
            db.add(current)
        current.bri_score = snapshot.bri_score
        current.risk_level = snapshot.risk_level
        current.week_start_date = snapshot.week_start_date
        current.snapshot_id = snapshot.id
        current.updated_at = now

        db.commit()
    except Exception:
        db.rollback()
        raise
    return snapshot


def snapshot_history(
    db: Session,
    student_id: str,
    date_from: date | None = None,
    date_to: date | None = None,
) -> list[BriSnapshot]:
    """Снимки студента за период (включительно), от старых к новым, для графиков."""
    query = db.query(BriSnapshot).filter(BriSnapshot.student_id == student_id)
    if date_from is not None:
        query = query.filter(BriSnapshot.week_start_date >= date_from)
    if date_to is not None:
        query = query.filter(BriSnapshot.week_start_date <= date_to)
    return query.order_by(BriSnapshot.week_start_date.asc()).all()


def list_current(
    db: Session,
    risk_level: RiskLevel | None = None,
    order: str = "desc",
    limit: int = 100,
) -> list[StudentCurrentBri]:
    """Текущие BRI студентов для списков дашборда: фильтр по уровню, сортировка по баллу."""
    query = db.query(StudentCurrentBri)
    if risk_level is not None:
        query = query.filter(StudentCurrentBri.risk_level == RiskLevel(risk_level).value)

    score_order = StudentCurrentBri.bri_score.asc() if order == "asc" else StudentCurrentBri.bri_score.desc()
    return (
        query.order_by(score_order, StudentCurrentBri.student_id.asc())
        .limit(limit)
        .all()
    )
