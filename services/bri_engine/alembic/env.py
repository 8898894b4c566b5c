# services/bri_engine/alembic/env.py

import os
import sys
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool, text
from alembic import context

# --- Добавляем каталог services, чтобы импортировался пакет bri_engine ---
SERVICES_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
if SERVICES_DIR not in sys.path:
    sys.path.insert(0, SERVICES_DIR)

# --- Импортируем внутренние модули bri_engine ---
from bri_engine.database import Base, BRI_SCHEMA  # noqa
from bri_engine import models  # noqa: F401
from bri_engine.config import settings  # noqa


# --- Конфигурация Alembic ---
config = context.config

# URL БД: из окружения или из config.py
db_url = os.getenv("DATABASE_URL", settings.DATABASE_URL)
if db_url:
    config.set_main_option("sqlalchemy.url", db_url)

# Логирование Alembic
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Метаданные моделей: по ним Alembic строит миграции
target_metadata = Base.metadata


# --- OFFLINE режим (генерация SQL без подключения к БД) ---
def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")

    context.configure(
        url=url,
        target_metadata=target_metadata,
        include_schemas=True,
        version_table_schema=BRI_SCHEMA,
        literal_binds=True,
    )

    with context.begin_transaction():
        context.execute(f'CREATE SCHEMA IF NOT EXISTS "{BRI_SCHEMA}"')
        context.run_migrations()


# --- ONLINE режим (с реальным подключением к БД) ---
def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        connection.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{BRI_SCHEMA}"'))
        connection.commit()

        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            include_schemas=True,
            version_table_schema=BRI_SCHEMA,
        )

        with context.begin_transaction():
            context.run_migrations()


# --- Точка входа ---
if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
