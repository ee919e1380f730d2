import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.app.api.routes.budgets import router as budgets_router
from backend.app.api.routes.business_insights import router as business_insights_router
from backend.app.api.routes.forecast import router as forecast_router
from backend.app.api.routes.personal_insights import router as personal_insights_router
from backend.app.config import LOCAL_DEV_ORIGINS, cors_origins
from backend.app.errors import InsightsError


logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    origins = cors_origins()
    if not any(origin in origins for origin in LOCAL_DEV_ORIGINS):
        logger.warning("CORS allowlist does not include local dev origins: %s", origins)
    return origins


app = FastAPI(title="FinPulse Insights API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InsightsError)
def _insights_error_handler(request: Request, exc: InsightsError):
    logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(personal_insights_router)
app.include_router(budgets_router)
app.include_router(forecast_router)
app.include_router(business_insights_router)
