from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import logging

from app.core.config import get_settings
from app.core.database import engine, Base
from app.core.logging_config import setup_logging
from app.core.scheduler import start_scheduler, shutdown_scheduler
from app.features.analytics.exceptions import AggregationError

from app.features.auth.router import router as auth_router
from app.features.categories.router import router as categories_router
from app.features.expenses.router import router as expenses_router
from app.features.budgets.router import router as budgets_router
from app.features.analytics.router import router as analytics_router
from app.features.dashboard.router import router as dashboard_router
from app.features.notifications.router import router as notifications_router

# Register every table on Base.metadata before create_all
from app.features.notifications.models import Notification  # noqa: F401

setup_logging()
logger = logging.getLogger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        if settings.ENVIRONMENT in ["local", "development", "production"]:
            logger.info(f"Environment: {settings.ENVIRONMENT}. Ensuring tables...")
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        else:
            logger.info(f"Environment: {settings.ENVIRONMENT}. Skipping table creation.")
    except Exception as e:
        logger.error(f"Startup Database Error: {str(e)}")
        logger.exception("Full traceback:")

    try:
        start_scheduler()
    except Exception as e:
        logger.error(f"Failed to start scheduler: {e}")

    yield

    shutdown_scheduler()


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AggregationError)
async def aggregation_exception_handler(request: Request, exc: AggregationError):
    logger.warning(f"Aggregation rejected on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=422,
        content={"detail": str(exc)},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.error(f"Validation error: {exc.errors()}")
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors()},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error"},
    )


app.include_router(auth_router, prefix=f"{settings.API_V1_STR}/auth", tags=["auth"])
app.include_router(categories_router, prefix=f"{settings.API_V1_STR}/categories", tags=["categories"])
app.include_router(expenses_router, prefix=f"{settings.API_V1_STR}/expenses", tags=["expenses"])
app.include_router(budgets_router, prefix=f"{settings.API_V1_STR}/budgets", tags=["budgets"])
app.include_router(analytics_router, prefix=f"{settings.API_V1_STR}/analytics", tags=["analytics"])
app.include_router(dashboard_router, prefix=f"{settings.API_V1_STR}/dashboard", tags=["dashboard"])
app.include_router(notifications_router, prefix=f"{settings.API_V1_STR}/notifications", tags=["notifications"])


@app.get("/", tags=["status"])
async def root():
    return {
        "app": settings.PROJECT_NAME,
        "status": "Operational",
        "docs": "/docs",
    }
