"""
bri_engine: микросервис расчёта индекса риска выгорания (Burnout Risk Index)
студентов кампуса и лексической оценки тональности сообщений.
Включает API, модели, миграции, настройки и клиент хранилища кампуса.
"""

from .config import settings
from .database import engine, Base, get_db, ensure_schema
from .recompute import BriRecomputer
from .sentiment import score_text

__all__ = [
    "settings",
    "engine",
    "Base",
    "get_db",
    "ensure_schema",
    "BriRecomputer",
    "score_text",
]
