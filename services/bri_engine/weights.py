# services/bri_engine/weights.py

from sqlalchemy import func
from sqlalchemy.orm import Session

from .config import settings
from .errors import ConfigurationError
from .models import WeightConfigVersion
from .schemas import WeightConfig
from .utils.logging import setup_logging

logger = setup_logging()


def default_config() -> WeightConfig:
    """Конфигурация по умолчанию из settings (до первой записи администратора)."""
    return WeightConfig(
        attendance_weight=settings.DEFAULT_ATTENDANCE_WEIGHT,
        marks_weight=settings.DEFAULT_MARKS_WEIGHT,
        assignments_weight=settings.DEFAULT_ASSIGNMENTS_WEIGHT,
        sentiment_weight=settings.DEFAULT_SENTIMENT_WEIGHT,
        low_risk_threshold=settings.DEFAULT_LOW_RISK_THRESHOLD,
        high_risk_threshold=settings.DEFAULT_HIGH_RISK_THRESHOLD,
    )


def validate_weight_config(config: WeightConfig, tolerance: float | None = None) -> None:
    """
    Проверяет инварианты конфигурации:
      - веса неотрицательны и в сумме дают 1.0 ± tolerance;
      - пороги лежат в [0;1] и строго упорядочены: low < high.
    Нарушение → ConfigurationError.
    """
    tolerance = settings.WEIGHT_SUM_TOLERANCE if tolerance is None else tolerance
    weights = config.weights()

    negative = [name for name, value in weights.items() if value < 0]
    if negative:
        raise ConfigurationError(f"Weights must be non-negative: {', '.join(negative)}")

    total = sum(weights.values())
    if abs(total - 1.0) > tolerance:
        raise ConfigurationError(f"Weights must sum to 1.0 (got {total:.4f})")

    low, high = config.low_risk_threshold, config.high_risk_threshold
    for name, value in (("low_risk_threshold", low), ("high_risk_threshold", high)):
        if not 0.0 <= value <= 1.0:
            raise ConfigurationError(f"{name} must be within [0, 1] (got {value})")
    if not low < high:
        raise ConfigurationError(
            f"low_risk_threshold must be strictly below high_risk_threshold (got {low} >= {high})"
        )


def to_weight_config(row: WeightConfigVersion) -> WeightConfig:
    return WeightConfig(
        attendance_weight=row.attendance_weight,
        marks_weight=row.marks_weight,
        assignments_weight=row.assignments_weight,
        sentiment_weight=row.sentiment_weight,
        low_risk_threshold=row.low_risk_threshold,
        high_risk_threshold=row.high_risk_threshold,
        version=row.version,
    )


def get_active_row(db: Session) -> WeightConfigVersion | None:
    return (
        db.query(WeightConfigVersion)
        .order_by(WeightConfigVersion.version.desc())
        .first()
    )


def _append_version(db: Session, config: WeightConfig, updated_by: str | None) -> WeightConfigVersion:
    last_version = db.query(func.max(WeightConfigVersion.version)).scalar() or 0
    row = WeightConfigVersion(
        version=last_version + 1,
        attendance_weight=config.attendance_weight,
        marks_weight=config.marks_weight,
        assignments_weight=config.assignments_weight,
        sentiment_weight=config.sentiment_weight,
        low_risk_threshold=config.low_risk_threshold,
        high_risk_threshold=config.high_risk_threshold,
        updated_by=updated_by,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def ensure_default_config(db: Session) -> WeightConfigVersion:
    """Создаёт первую версию из значений по умолчанию, если хранилище пустое."""
    row = get_active_row(db)
    if row is not None:
        return row

    config = default_config()
    validate_weight_config(config)
    row = _append_version(db, config, updated_by="system")
    logger.info(f"⚖️ Default weight config seeded as version {row.version}")
    return row


def get_active_config(db: Session) -> WeightConfig:
    """Текущая активная конфигурация (последняя версия)."""
    return to_weight_config(ensure_default_config(db))


def save_config(db: Session, config: WeightConfig, updated_by: str | None = None) -> WeightConfigVersion:
    """
    Записывает новую версию конфигурации после проверки инвариантов.
    При ошибке валидации ничего не пишется и активной остаётся прежняя версия.
    Запуск пересчёта по всем студентам: ответственность вызывающего кода.
    """
    try:
        validate_weight_config(config)
    except ConfigurationError as e:
        logger.warning(f"🚫 Weight config rejected: {e}")
        raise

    row = _append_version(db, config, updated_by=updated_by)
    logger.info(
        f"⚖️ Weight config v{row.version} activated by {updated_by or 'unknown'}: "
        f"weights={config.weights()}, thresholds=({config.low_risk_threshold}, {config.high_risk_threshold})"
    )
    return row


def list_config_versions(db: Session, limit: int = 50) -> list[WeightConfigVersion]:
    return (
        db.query(WeightConfigVersion)
        .order_by(WeightConfigVersion.version.desc())
        .limit(limit)
        .all()
    )
