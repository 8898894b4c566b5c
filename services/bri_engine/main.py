# services/bri_engine/main.py

from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

from .config import settings
from .database import SessionLocal, engine, ensure_schema
from .models import Base
from .routers import bri as bri_router
from .routers import sentiment as sentiment_router
from .utils.logging import setup_logging
from .weights import ensure_default_config

logger = setup_logging()

app = FastAPI(
    title=settings.SERVICE_NAME,
    version=settings.VERSION,
    description="BRI Engine: расчёт индекса риска выгорания студентов и оценка тональности текстов",
)

Instrumentator().instrument(app).expose(app, include_in_schema=False)


@app.on_event("startup")
def startup_event():
    ensure_schema()
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        config = ensure_default_config(db)
    finally:
        db.close()

    logger.info(f"⚙️ bri_engine started, schema ensured, weight config v{config.version} active.")


@app.get("/health", tags=["system"])
async def health():
    return {"status": "ok", "service": "bri_engine"}


@app.get("/ready", tags=["system"])
async def ready():
    return {"status": "ready"}


@app.get("/", include_in_schema=False)
async def root():
    return {"message": "BRI Engine is operational"}


app.include_router(bri_router.router)
app.include_router(sentiment_router.router)
