from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.database import SessionLocal, init_db
from app.core.errors import PricingError
from app.core.logging import configure_logging
from app.routes.auth import router as auth_router
from app.routes.health import router as health_router
from app.routes.inventory import router as inventory_router
from app.routes.making_charges import router as making_charges_router
from app.routes.metal_rates import router as metal_rates_router
from app.routes.pricing import router as pricing_router
from app.services.scheduler import build_scheduler
from app.services.seed import seed_demo

logger = logging.getLogger(__name__)


async def pricing_error_handler(request: Request, exc: PricingError):
    logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse({"detail": exc.message, "error": type(exc).__name__}, status_code=exc.status_code)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    # Only seed in development or when explicitly requested
    if settings.env == "dev" or os.getenv("FORCE_SEED") == "true":
        with SessionLocal() as db:
            seed_demo(db)

    scheduler = None
    if settings.scheduler_enabled:
        scheduler = build_scheduler()
        scheduler.start()
        logger.info("Rate refresh scheduled every %s minutes", settings.rate_refresh_minutes)
    yield
    if scheduler is not None:
        scheduler.shutdown()
        logger.info("Rate refresh scheduler stopped")


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Jewelry Pricing API", version="0.1.0", lifespan=lifespan)

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(PricingError, pricing_error_handler)

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(metal_rates_router, prefix="/gold-rates", tags=["gold-rates"])
    app.include_router(pricing_router, prefix="/pricing", tags=["pricing"])
    app.include_router(making_charges_router, prefix="/making-charges", tags=["making-charges"])
    app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])

    return app


app = create_app()
