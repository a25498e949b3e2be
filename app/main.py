# app/main.py
import time
import uuid

from fastapi import FastAPI, Request

from app.config import get_settings
from app.core.logging_config import setup_logging, logger
from app.db import Base, engine
from app.observability.metrics import router as metrics_router
from app.verticals.agrimarket.api.checkout import router as checkout_router
from app.verticals.agrimarket.storage import orm  # noqa: F401  (registreert SQLAlchemy modellen)


# ----------------------------------------------------
# App init
# ----------------------------------------------------
app = FastAPI(title="Agrimarket Pricing", version="0.1.0")

setup_logging()
logger.info("startup", service="agrimarket-pricing", env=get_settings().app_env)


@app.on_event("startup")
def _create_tables() -> None:
    Base.metadata.create_all(bind=engine)


# ----------------------------------------------------
# Health
# ----------------------------------------------------
@app.get("/health", include_in_schema=True)
def health() -> dict:
    return {"status": "ok"}


# ----------------------------------------------------
# Logging middleware
# ----------------------------------------------------
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    start = time.time()
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id

    response = await call_next(request)

    duration_ms = round((time.time() - start) * 1000, 2)
    response.headers["X-Request-ID"] = request_id
    logger.bind(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
    ).info("http_request")
    return response


# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(checkout_router)

if get_settings().metrics_enabled:
    app.include_router(metrics_router)
