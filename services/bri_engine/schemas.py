from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


# ------------------------------------------------------------
#  ПЕРЕЧИСЛЕНИЯ
# ------------------------------------------------------------

class RiskLevel(str, Enum):
    """Уровень риска выгорания. Значения совпадают с enum risk_level в БД кампуса."""
    LOW = "Low"
    AT_RISK = "At Risk"
    HIGH = "High"


class SentimentLabel(str, Enum):
    POSITIVE = "Positive"
    NEUTRAL = "Neutral"
    NEGATIVE = "Negative"


# ------------------------------------------------------------
#  КОНФИГУРАЦИЯ ВЕСОВ
# ------------------------------------------------------------

class WeightConfig(BaseModel):
    """
    Веса четырёх компонент BRI и пороги уровней риска.
    Инварианты (сумма весов ≈ 1, low < high) проверяет
    weights.validate_weight_config: при записи, а не при каждом расчёте.
    """
    attendance_weight: float = Field(ge=0, description="Вес посещаемости")
    marks_weight: float = Field(ge=0, description="Вес успеваемости")
    assignments_weight: float = Field(ge=0, description="Вес своевременности заданий")
    sentiment_weight: float = Field(ge=0, description="Вес тональности сообщений")

    low_risk_threshold: float = Field(ge=0, le=1, description="Нижний порог (At Risk)")
    high_risk_threshold: float = Field(ge=0, le=1, description="Верхний порог (High)")

    version: int = Field(default=0, description="Номер версии конфигурации (0: не сохранена)")

    def weights(self) -> dict[str, float]:
        return {
            "attendance": self.attendance_weight,
            "marks": self.marks_weight,
            "assignments": self.assignments_weight,
            "sentiment": self.sentiment_weight,
        }


class WeightConfigUpdate(BaseModel):
    """Тело запроса администратора на изменение весов."""
    attendance_weight: float = Field(ge=0)
    marks_weight: float = Field(ge=0)
    assignments_weight: float = Field(ge=0)
    sentiment_weight: float = Field(ge=0)
    low_risk_threshold: float = Field(ge=0, le=1)
    high_risk_threshold: float = Field(ge=0, le=1)
    updated_by: Optional[str] = Field(default=None, description="Кто изменил конфигурацию")


class WeightConfigOut(BaseModel):
    version: int
    attendance_weight: float
    marks_weight: float
    assignments_weight: float
    sentiment_weight: float
    low_risk_threshold: float
    high_risk_threshold: float
    updated_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ConfigUpdateResult(BaseModel):
    config: WeightConfigOut
    sweep_scheduled: bool = Field(description="Запланирован ли пересчёт BRI по всем студентам")


# ------------------------------------------------------------
#  ВХОДНЫЕ ДАННЫЕ ОТ ХРАНИЛИЩА КАМПУСА
# ------------------------------------------------------------

class AttendanceRecord(BaseModel):
    date: date
    is_present: bool


class MarksRecord(BaseModel):
    """Результат одного теста: набранные и максимальные баллы."""
    marks_obtained: float
    max_marks: float
    created_at: datetime


class SubmissionRecord(BaseModel):
    is_on_time: bool
    submitted_at: Optional[datetime] = None


class SentimentEvent(BaseModel):
    """Тональность одного сообщения чата / диалога с чат-ботом."""
    sentiment_score: Optional[float] = None
    created_at: Optional[datetime] = None


class ComponentRatios(BaseModel):
    """
    Четыре «позитивных» коэффициента в [0;1]: чем больше, тем лучше.
    Политика скоринга инвертирует их в риск.
    """
    attendance: float = Field(ge=0, le=1)
    marks: float = Field(ge=0, le=1)
    assignments: float = Field(ge=0, le=1)
    sentiment: float = Field(ge=0, le=1)


# ------------------------------------------------------------
#  РЕЗУЛЬТАТЫ ПЕРЕСЧЁТА
# ------------------------------------------------------------

class RecomputeResult(BaseModel):
    student_id: str
    bri_score: float = Field(ge=0, le=1)
    risk_level: RiskLevel
    contributing_factors: list[str]
    component_scores: ComponentRatios
    week_start_date: date
    config_version: int


class SweepFailure(BaseModel):
    student_id: str
    stage: str
    error: str


class SweepReport(BaseModel):
    """Итог массового пересчёта после смены конфигурации."""
    config_version: int
    total: int = Field(description="Сколько студентов было в очереди")
    succeeded: list[str] = Field(default_factory=list)
    failed: list[SweepFailure] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list, description="Не начаты из-за отмены")
    cancelled: bool = False


# ------------------------------------------------------------
#  СХЕМЫ ДЛЯ ORM-МОДЕЛЕЙ
# ------------------------------------------------------------

class BriSnapshotOut(BaseModel):
    id: int
    student_id: str
    week_start_date: date
    bri_score: float
    risk_level: RiskLevel
    contributing_factors: list[str]
    component_scores: dict
    config_version: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BriHistory(BaseModel):
    items: list[BriSnapshotOut]
    count: int = Field(description="Количество снимков в истории")


class StudentCurrentBriOut(BaseModel):
    student_id: str
    bri_score: float
    risk_level: RiskLevel
    week_start_date: date
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CurrentBriList(BaseModel):
    items: list[StudentCurrentBriOut]
    count: int


# ------------------------------------------------------------
#  ТОНАЛЬНОСТЬ
# ------------------------------------------------------------

class SentimentRequest(BaseModel):
    text: str = Field(default="", description="Текст сообщения / жалобы / реплики чат-бота")
    type: Optional[str] = Field(default=None, description="Источник текста: chat, complaint, chatbot")


class SentimentResponse(BaseModel):
    sentiment_score: float = Field(ge=0, le=1)
    sentiment_label: SentimentLabel
