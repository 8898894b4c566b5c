# services/bri_engine/config.py

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Конфигурация bri_engine, ядра расчёта индекса риска выгорания (BRI).
    """

    # --- Основная информация ---
    SERVICE_NAME: str = "BRI Engine Service"
    VERSION: str = "1.0.0"
    ENV: str = os.getenv("ENV", "dev")

    # --- Подключение к БД ---
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://postgres:postgres@db:5432/campus"
    )

    # --- Хранилище кампуса (PostgREST / Supabase REST) ---
    CAMPUS_STORE_URL: str = os.getenv(
        "CAMPUS_STORE_URL",
        "http://campus_store:3000"
    )
    CAMPUS_STORE_KEY: str = os.getenv("CAMPUS_STORE_KEY", "")

    # --- Настройки поведения ---
    REQUEST_TIMEOUT: float = 5.0        # таймаут одного запроса к хранилищу
    RETRIES: int = 2                    # ретраи только на сетевых ошибках
    AGGREGATION_TIMEOUT: float = 15.0   # общий дедлайн сбора метрик по студенту
    SWEEP_CONCURRENCY: int = 8          # сколько студентов пересчитываем параллельно
    STUDENT_PAGE_SIZE: int = 1000       # не больше max-rows PostgREST

    # --- Окна метрик ---
    ATTENDANCE_WINDOW_DAYS: int = 30
    SENTIMENT_WINDOW_DAYS: int = 30
    MARKS_SAMPLE_SIZE: int = 10
    ASSIGNMENTS_SAMPLE_SIZE: int = 20

    # --- Веса и пороги по умолчанию (используются при пустом хранилище) ---
    DEFAULT_ATTENDANCE_WEIGHT: float = 0.25
    DEFAULT_MARKS_WEIGHT: float = 0.25
    DEFAULT_ASSIGNMENTS_WEIGHT: float = 0.20
    DEFAULT_SENTIMENT_WEIGHT: float = 0.30
    DEFAULT_LOW_RISK_THRESHOLD: float = 0.33
    DEFAULT_HIGH_RISK_THRESHOLD: float = 0.66

    # допустимое отклонение суммы весов от 1.0
    WEIGHT_SUM_TOLERANCE: float = 0.01

    # --- Логирование ---
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # --- Файл .env ---
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
