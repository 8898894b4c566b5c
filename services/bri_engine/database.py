# services/bri_engine/database.py

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import settings

DATABASE_URL = settings.DATABASE_URL

# Отдельная схема для bri_engine
BRI_SCHEMA = "bri"


def schema_translate_map(url: str) -> dict | None:
    """SQLite не знает схем: таблицы bri кладём в основную базу."""
    if url.startswith("sqlite"):
        return {BRI_SCHEMA: None}
    return None


# Движок SQLAlchemy
engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    future=True,
    execution_options={"schema_translate_map": schema_translate_map(DATABASE_URL)},
)

# Фабрика сессий
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
)


class Base(DeclarativeBase):
    """Базовый класс моделей SQLAlchemy для bri_engine."""
    pass


def ensure_schema() -> None:
    """Создаёт схему bri, если она ещё не существует (только Postgres)."""
    if engine.dialect.name != "postgresql":
        return
    with engine.begin() as conn:
        conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{BRI_SCHEMA}"'))


def get_db():
    """Зависимость FastAPI для получения сессии БД."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
