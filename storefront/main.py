# storefront/main.py

import logging
import subprocess
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError

from storefront.core.config import get_settings
from storefront.core.exceptions import BaseServiceError, ErrorCode
from storefront.core.logging_config import configure_logging
from storefront.core.utils import utc_now
from storefront.database import async_session, engine
from storefront.integrations.restock_pipeline import RestockEventPipeline
from storefront.routes import health, notifications, orders, products, restock, scheduler as scheduler_routes, sellers
from storefront.scheduler import start_scheduler, stop_scheduler
from storefront.services.cache_service import CacheService

configure_logging()
logger = logging.getLogger(__name__)


def run_migrations() -> None:
    logger.info("Running database migrations...")
    result = subprocess.run(['alembic', 'upgrade', 'head'], capture_output=True, text=True)
    if result.returncode == 0:
        logger.info("Migrations completed successfully")
        logger.debug(result.stdout)
    else:
        logger.error(f"Migration failed: {result.stderr}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if settings.RUN_MIGRATIONS:
        try:
            run_migrations()
        except Exception as e:
            logger.error(f"Migration error: {e}")

    app.state.cache = CacheService.from_settings(settings)
    app.state.restock_pipeline = RestockEventPipeline(async_session, maxsize=settings.RESTOCK_QUEUE_MAXSIZE)
    app.state.restock_pipeline.start()
    await start_scheduler(app.state.cache)

    try:
        yield  # This is where the app runs
    finally:
        await stop_scheduler()
        await app.state.restock_pipeline.stop()
        await app.state.cache.close()
        await engine.dispose()


app = FastAPI(
    title="Storefront Backend",
    debug=get_settings().DEBUG,
    lifespan=lifespan
)


def error_response(request: Request, error_code: ErrorCode, message: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=error_code.status_code,
        content=jsonable_encoder({
            "status": error_code.status_code,
            "code": error_code.code,
            "message": message,
            "path": request.url.path,
            "details": details,
            "timestamp": utc_now().isoformat(),
        }),
    )


@app.exception_handler(BaseServiceError)
async def service_error_handler(request: Request, exc: BaseServiceError):
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code.code} on {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.error_code.code} on {request.url.path}: {exc.message}")
    return error_response(request, exc.error_code, exc.message, exc.details)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.url.path}: {exc}", exc_info=exc)
    return error_response(request, ErrorCode.DATABASE_ERROR, ErrorCode.DATABASE_ERROR.default_message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unexpected error on {request.url.path}: {exc}", exc_info=exc)
    return error_response(request, ErrorCode.INTERNAL_SERVER_ERROR, ErrorCode.INTERNAL_SERVER_ERROR.default_message)


app.include_router(orders.router)
app.include_router(products.router)
app.include_router(restock.router)
app.include_router(notifications.router)
app.include_router(sellers.router)
app.include_router(scheduler_routes.router)
app.include_router(health.router)  # Health check should be accessible without auth
