# kalkulator/main.py
import time

from fastapi import FastAPI, Request

from kalkulator.api.routes import router as api_router
from kalkulator.core.logging_config import logger, setup_logging
from kalkulator.core.settings import get_settings
from kalkulator.forms.registry import register_definitions

settings = get_settings()

# ----------------------------------------------------
# App init
# ----------------------------------------------------
app = FastAPI(title="HandyHands kalkulátor", version="0.1.0")

setup_logging(settings.log_level)
register_definitions(settings.forms_dir)
logger.info("startup", service="handyhands-kalkulator", env=settings.app_env)


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

    bound_logger = logger.bind(
        request_id=request.headers.get("X-Request-ID", "unknown"),
        endpoint=str(request.url.path),
        method=request.method,
    )

    bound_logger.info("request_started")
    response = await call_next(request)
    latency_ms = round((time.time() - start) * 1000, 2)

    bound_logger.bind(status_code=response.status_code, latency_ms=latency_ms).info(
        "request_finished"
    )
    return response


# ----------------------------------------------------
# Routers
# ----------------------------------------------------
app.include_router(api_router)
