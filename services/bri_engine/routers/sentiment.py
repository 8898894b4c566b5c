# services/bri_engine/routers/sentiment.py

from fastapi import APIRouter

from ..schemas import SentimentRequest, SentimentResponse
from ..sentiment import score_text
from ..utils.logging import setup_logging

logger = setup_logging()

router = APIRouter(prefix="/api/v1/sentiment", tags=["sentiment"])


@router.post("/analyze", response_model=SentimentResponse)
async def analyze(body: SentimentRequest):
    """
    Оценивает тональность текста (чат, жалоба, реплика чат-бота).
    Результат сохраняет вызывающая сторона вместе с текстом.
    """
    score, label = score_text(body.text)
    logger.debug(f"💬 Sentiment ({body.type or 'unknown'}): score={score:.2f}, label={label.value}")
    return SentimentResponse(sentiment_score=score, sentiment_label=label)
