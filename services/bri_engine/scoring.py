# services/bri_engine/scoring.py

from typing import NamedTuple

from .schemas import ComponentRatios, RiskLevel, WeightConfig
from .utils.logging import setup_logging

logger = setup_logging()

# Компоненты BRI в порядке приоритета при равном вкладе:
# ключ коэффициента → название фактора для UI
FACTORS: tuple[tuple[str, str], ...] = (
    ("attendance", "Attendance"),
    ("marks", "Academic Performance"),
    ("assignments", "Assignment Completion"),
    ("sentiment", "Sentiment Analysis"),
)

TOP_FACTORS = 3


class BriScore(NamedTuple):
    bri: float                        # округлённый до 2 знаков и ограниченный [0;1]
    raw_bri: float                    # сумма вкладов до округления
    contributions: dict[str, float]   # (1 - ratio) * weight по компонентам
    shortfalls: dict[str, float]      # 1 - ratio по компонентам


def _clamp_unit(value: float, what: str) -> float:
    if 0.0 <= value <= 1.0:
        return value
    # Сюда попадаем только при конфигурации, прошедшей мимо валидации
    logger.warning(f"⚠️ {what}={value:.4f} is outside [0, 1], clamping; check weight config validation")
    return min(1.0, max(0.0, value))


def score_ratios(ratios: ComponentRatios, config: WeightConfig) -> BriScore:
    """
    Политика скоринга: инвертирует «позитивные» коэффициенты в риск
    и взвешивает их весами конфигурации.

      contribution = (1 - ratio) * weight
      bri = round(sum(contributions), 2), ограничено [0;1]

    Конфигурация здесь повторно не проверяется: её инварианты
    гарантирует weights.validate_weight_config при записи.
    """
    weights = config.weights()
    values = ratios.model_dump()

    shortfalls = {key: 1.0 - values[key] for key, _ in FACTORS}
    contributions = {key: shortfalls[key] * weights[key] for key, _ in FACTORS}

    raw_bri = sum(contributions.values())
    bri = _clamp_unit(round(raw_bri, 2), "bri")

    return BriScore(bri=bri, raw_bri=raw_bri, contributions=contributions, shortfalls=shortfalls)


def classify(bri: float, config: WeightConfig) -> RiskLevel:
    """
    Уровень риска по двум порогам. Граница относится к более строгому уровню:
    bri == high_risk_threshold → High, bri == low_risk_threshold → At Risk.
    """
    if bri >= config.high_risk_threshold:
        return RiskLevel.HIGH
    if bri >= config.low_risk_threshold:
        return RiskLevel.AT_RISK
    return RiskLevel.LOW


def rank_factors(risk_by_factor: dict[str, float], top: int = TOP_FACTORS) -> list[str]:
    """
    Возвращает названия до `top` факторов по убыванию взвешенного вклада
    в BRI, (1 - ratio) * weight, чтобы список объяснял сам балл.
    При равенстве порядок фиксирован: Attendance, Academic Performance,
    Assignment Completion, Sentiment Analysis.
    """
    ordered = sorted(
        enumerate(FACTORS),
        key=lambda item: (-risk_by_factor.get(item[1][0], 0.0), item[0]),
    )
    return [name for _, (_, name) in ordered[:top]]
