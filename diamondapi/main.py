import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from diamondapi import containers
from diamondapi.config import settings
from diamondapi.core.exception_handlers import (
    handle_base_api_exception,
    handle_http_exception,
    handle_unexpected_error,
    handle_validation_error,
)
from diamondapi.core.exceptions import BaseAPIException
from diamondapi.core.logging_middleware import LoggingMiddleware
from diamondapi.jobs.scheduler import SweepScheduler
from diamondapi.logging_config import setup_logging
from diamondapi.routers import (
    admin_router,
    auth_router,
    balance_log_router,
    health_router,
    order_router,
    player_router,
    supplier_router,
    user_router,
)

load_dotenv("diamondapi/.env")
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger("diamondapi")


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweep_scheduler = SweepScheduler(settings)
    sweep_scheduler.start()
    app.state.scheduler = sweep_scheduler
    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    try:
        yield
    finally:
        sweep_scheduler.shutdown()
        app.container.integrations.sheet_sync_executor().shutdown(wait=False)  # type: ignore


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(BaseAPIException, handle_base_api_exception)
    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(health_router.router)
    for module in (
        auth_router,
        user_router,
        order_router,
        supplier_router,
        balance_log_router,
        admin_router,
        player_router,
    ):
        app.include_router(module.router, prefix=settings.API_V1_STR)

    return app


app = create_app()

handler = Mangum(app)
