# services/bri_engine/sentiment.py

from typing import NamedTuple

from .schemas import SentimentLabel

# Словари тональности. Это прозрачный набор правил, а не обученная модель:
# веса и пороги BRI откалиброваны под распределение именно этих оценок.
POSITIVE_WORDS = frozenset({
    "good", "great", "excellent", "amazing", "wonderful", "fantastic", "happy",
    "love", "best", "awesome", "perfect", "brilliant", "outstanding",
})
NEGATIVE_WORDS = frozenset({
    "bad", "terrible", "awful", "horrible", "hate", "worst", "stupid",
    "useless", "boring", "frustrated", "angry", "sad", "disappointed",
})
# Лексика выгорания весит больше обычного негатива
STRESS_WORDS = frozenset({
    "stressed", "overwhelmed", "anxious", "worried", "tired", "exhausted",
    "pressure", "burden", "difficult", "struggling", "burnout",
})

NEUTRAL_BASELINE = 0.5
POSITIVE_STEP = 0.10
NEGATIVE_STEP = 0.15
STRESS_STEP = 0.20

POSITIVE_THRESHOLD = 0.6
NEGATIVE_THRESHOLD = 0.4


class SentimentResult(NamedTuple):
    score: float
    label: SentimentLabel


def label_for(score: float) -> SentimentLabel:
    if score >= POSITIVE_THRESHOLD:
        return SentimentLabel.POSITIVE
    if score >= NEGATIVE_THRESHOLD:
        return SentimentLabel.NEUTRAL
    return SentimentLabel.NEGATIVE


def score_text(text: str | None) -> SentimentResult:
    """
    Лексическая оценка тональности текста.

    Старт с нейтральных 0.5; каждое слово из позитивного словаря даёт +0.10,
    из негативного −0.15, из словаря стресса −0.20. Ограничение в [0;1]
    применяется один раз в конце, поэтому длинное сообщение может «качнуть»
    оценку сильнее. Пустой текст: нейтральный результат, а не ошибка.
    """
    if not text or not text.strip():
        return SentimentResult(NEUTRAL_BASELINE, SentimentLabel.NEUTRAL)

    score = NEUTRAL_BASELINE
    for word in text.lower().split():
        if word in POSITIVE_WORDS:
            score += POSITIVE_STEP
        elif word in NEGATIVE_WORDS:
            score -= NEGATIVE_STEP
        elif word in STRESS_WORDS:
            score -= STRESS_STEP

    # шаги кратны 0.05: округление снимает только шум float
    score = round(max(0.0, min(1.0, score)), 2)
    return SentimentResult(score, label_for(score))
