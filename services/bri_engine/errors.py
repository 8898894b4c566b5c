# services/bri_engine/errors.py


class BriEngineError(Exception):
    """Базовое исключение bri_engine."""


class ConfigurationError(BriEngineError):
    """
    Некорректная конфигурация весов: сумма весов не ≈ 1.0
    или пороги риска не упорядочены строго.
    Отклоняется при записи, активной остаётся предыдущая версия.
    """


class RecomputationFailed(BriEngineError):
    """
    Пересчёт BRI для студента завершился ошибкой на одном из этапов.
    Ничего из частичных результатов не сохраняется.
    """

    def __init__(self, student_id: str, stage: str, cause: BaseException | None = None):
        self.student_id = student_id
        self.stage = stage
        self.cause = cause
        reason = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown error"
        super().__init__(f"BRI recomputation for student {student_id} failed at {stage} ({reason})")
