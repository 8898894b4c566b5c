# services/bri_engine/routers/bri.py

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from ..aggregator import MetricAggregator
from ..campus_client import CampusStoreClient
from ..database import SessionLocal, get_db
from ..errors import ConfigurationError, RecomputationFailed
from ..recompute import BriRecomputer
from ..schemas import (
    BriHistory,
    BriSnapshotOut,
    ConfigUpdateResult,
    CurrentBriList,
    RecomputeResult,
    RiskLevel,
    StudentCurrentBriOut,
    SweepReport,
    WeightConfig,
    WeightConfigOut,
    WeightConfigUpdate,
)
from ..snapshots import list_current, snapshot_history
from ..weights import ensure_default_config, list_config_versions, save_config
from ..utils.logging import setup_logging

logger = setup_logging()

router = APIRouter(prefix="/api/v1/bri", tags=["bri"])


# ---------- Зависимости ----------


def get_recomputer() -> BriRecomputer:
    """Оркестратор пересчёта поверх REST API хранилища кампуса."""
    return BriRecomputer(
        aggregator=MetricAggregator(CampusStoreClient()),
        session_factory=SessionLocal,
    )


async def run_sweep(recomputer: BriRecomputer) -> None:
    """Фоновый пересчёт после смены весов; ошибки только логируются."""
    try:
        await recomputer.sweep()
    except Exception as e:
        logger.error(f"❌ Background BRI sweep aborted: {e!r}")


# ---------- Пересчёт ----------


@router.post("/recompute/{student_id}", response_model=RecomputeResult)
async def recompute_student(
    student_id: str,
    recomputer: BriRecomputer = Depends(get_recomputer),
):
    """
    Пересчитывает BRI студента по запросу («обновить мой индекс»).
    Повторный вызов в ту же неделю перезаписывает недельный снимок.
    При ошибке прежние снимок и текущий BRI остаются нетронутыми.
    """
    try:
        return await recomputer.recompute(student_id)
    except RecomputationFailed as e:
        raise HTTPException(
            status_code=503,
            detail=f"BRI recomputation failed at stage {e.stage}, please try again later",
        )


@router.post("/sweep", response_model=SweepReport)
async def sweep_all(recomputer: BriRecomputer = Depends(get_recomputer)):
    """Пересчитывает BRI всех студентов и возвращает отчёт по каждому."""
    try:
        return await recomputer.sweep()
    except Exception as e:
        logger.error(f"❌ BRI sweep could not start: {e!r}")
        raise HTTPException(status_code=503, detail="Student list is unavailable, please try again later")


# ---------- История и текущие значения ----------


@router.get("/history/{student_id}", response_model=BriHistory)
async def get_bri_history(
    student_id: str,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Недельные снимки BRI студента за период для графика динамики."""
    if date_from and date_to and date_from > date_to:
        raise HTTPException(status_code=400, detail="date_from must not be after date_to")

    items = [BriSnapshotOut.model_validate(obj) for obj in snapshot_history(db, student_id, date_from, date_to)]
    return BriHistory(items=items, count=len(items))


@router.get("/current", response_model=CurrentBriList)
async def get_current_bri(
    risk_level: Optional[RiskLevel] = None,
    order: Literal["asc", "desc"] = "desc",
    limit: int = 100,
    db: Session = Depends(get_db),
):
    """Текущие BRI студентов: фильтр по уровню риска и сортировка по баллу."""
    if limit <= 0:
        raise HTTPException(status_code=400, detail="limit must be positive")

    items = [StudentCurrentBriOut.model_validate(obj) for obj in list_current(db, risk_level, order, limit)]
    return CurrentBriList(items=items, count=len(items))


# ---------- Конфигурация весов ----------


@router.get("/config", response_model=WeightConfigOut)
async def get_config(db: Session = Depends(get_db)):
    """Активная конфигурация весов и порогов."""
    return WeightConfigOut.model_validate(ensure_default_config(db))


@router.get("/config/versions", response_model=list[WeightConfigOut])
async def get_config_versions(limit: int = 50, db: Session = Depends(get_db)):
    if limit <= 0:
        raise HTTPException(status_code=400, detail="limit must be positive")
    return [WeightConfigOut.model_validate(row) for row in list_config_versions(db, limit)]


@router.put("/config", response_model=ConfigUpdateResult)
async def update_config(
    payload: WeightConfigUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    recomputer: BriRecomputer = Depends(get_recomputer),
):
    """
    Сохраняет новую версию весов (только для администратора).
    Некорректная конфигурация отклоняется с 400, пересчёт не запускается.
    После записи BRI всех студентов пересчитывается в фоне.
    """
    config = WeightConfig(**payload.model_dump(exclude={"updated_by"}))
    try:
        row = save_config(db, config, updated_by=payload.updated_by)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    background_tasks.add_task(run_sweep, recomputer)
    return ConfigUpdateResult(config=WeightConfigOut.model_validate(row), sweep_scheduled=True)
