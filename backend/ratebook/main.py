import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ratebook.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(os.environ.get("LOG_DIR", Path(__file__).resolve().parent.parent / "logs"))
_LOG_DIR.mkdir(parents=True, exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "ratebook.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

from ratebook.errors import RatebookError
from ratebook.routers import (
    currencies,
    dynamic_pricing,
    folios,
    loyalty,
    pricing,
    promotions,
    rate_plans,
    rate_restrictions,
    room_types,
    taxes,
)
from ratebook.services.cache_service import cache_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Seed reference data if the DB is empty (dev convenience)
    if settings.auto_seed:
        try:
            from ratebook.seed import seed
            await seed()
        except Exception as e:
            logger.warning(f"Auto-seed skipped: {e}")

    yield

    # Shutdown
    await cache_service.close()


app = FastAPI(
    title="Ratebook",
    description="Hotel rate, tax, promotion, loyalty and currency engine",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RatebookError)
async def ratebook_error_handler(request: Request, exc: RatebookError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(room_types.router, prefix="/api/room-types", tags=["room-types"])
app.include_router(rate_plans.router, prefix="/api/rate-plans", tags=["rate-plans"])
app.include_router(rate_plans.seasonal_router, prefix="/api/seasonal-rates", tags=["seasonal-rates"])
app.include_router(dynamic_pricing.router, prefix="/api/dynamic-pricing", tags=["dynamic-pricing"])
app.include_router(rate_restrictions.router, prefix="/api/rate-restrictions", tags=["rate-restrictions"])
app.include_router(taxes.router, prefix="/api/taxes", tags=["taxes"])
app.include_router(currencies.router, prefix="/api/currencies", tags=["currencies"])
app.include_router(promotions.router, prefix="/api/promotions", tags=["promotions"])
app.include_router(loyalty.router, prefix="/api/loyalty", tags=["loyalty"])
app.include_router(folios.router, prefix="/api/folios", tags=["folios"])
app.include_router(pricing.router, prefix="/api/pricing", tags=["pricing"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "ratebook"}
