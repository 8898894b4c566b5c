# services/bri_engine/models.py

from datetime import date, datetime

from sqlalchemy import Integer, Float, String, Date, DateTime, JSON, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base, BRI_SCHEMA


class WeightConfigVersion(Base):
    """
    Версия конфигурации весов BRI (append-only).
    Активной считается версия с наибольшим номером; старые версии
    сохраняются для аудита пересчётов.
    """
    __tablename__ = "weight_configs"
    __table_args__ = {"schema": BRI_SCHEMA}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, unique=True, index=True)

    # Веса компонент (сумма ≈ 1.0)
    attendance_weight: Mapped[float] = mapped_column(Float, nullable=False)
    marks_weight: Mapped[float] = mapped_column(Float, nullable=False)
    assignments_weight: Mapped[float] = mapped_column(Float, nullable=False)
    sentiment_weight: Mapped[float] = mapped_column(Float, nullable=False)

    # Пороги уровней риска (low < high)
    low_risk_threshold: Mapped[float] = mapped_column(Float, nullable=False)
    high_risk_threshold: Mapped[float] = mapped_column(Float, nullable=False)

    updated_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )


class BriSnapshot(Base):
    """
    Недельный снимок BRI студента.
    Не больше одной записи на пару (student_id, week_start_date):
    повторный пересчёт в ту же неделю перезаписывает строку.
    """
    __tablename__ = "bri_snapshots"
    __table_args__ = (
        UniqueConstraint("student_id", "week_start_date", name="uq_bri_snapshots_student_week"),
        Index("ix_bri_snapshots_student_week", "student_id", "week_start_date"),
        {"schema": BRI_SCHEMA},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    student_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Итоговый индекс (0..1, 2 знака) и уровень риска
    bri_score: Mapped[float] = mapped_column(Float, nullable=False)
    risk_level: Mapped[str] = mapped_column(String(16), nullable=False, index=True)

    # До трёх факторов, упорядоченных по вкладу
    contributing_factors: Mapped[list] = mapped_column(JSON, nullable=False)

    # Исходные коэффициенты компонент и версия весов для аудита
    component_scores: Mapped[dict] = mapped_column(JSON, nullable=False)
    config_version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )


class StudentCurrentBri(Base):
    """
    Денормализованное «текущее» значение BRI студента для списков и сортировки.
    Обновляется только после успешной записи снимка.
    """
    __tablename__ = "student_current_bri"
    __table_args__ = {"schema": BRI_SCHEMA}

    student_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    bri_score: Mapped[float] = mapped_column(Float, nullable=False, index=True)
    risk_level: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    snapshot_id: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
    )
