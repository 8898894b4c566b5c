import sys
from loguru import logger

from ..config import settings

_configured = False


def setup_logging():
    """
    Настраивает loguru-логгер для bri_engine.

    Логи выводятся в stdout (для Docker), формат короткий и читаемый.
    Уровень логирования задаётся через settings.LOG_LEVEL.
    Повторные вызовы из разных модулей возвращают уже настроенный логгер.
    """
    global _configured
    if _configured:
        return logger

    # Удаляем дефолтные хендлеры loguru
    logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stdout,
        colorize=True,
        format=log_format,
        level=settings.LOG_LEVEL.upper(),
        enqueue=True,       # потокобезопасность в Docker
        backtrace=False,
        diagnose=False,
    )

    _configured = True
    logger.info(f"📜 Logging initialized with level: {settings.LOG_LEVEL.upper()}")
    return logger
