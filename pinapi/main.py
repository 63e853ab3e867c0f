import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from mangum import Mangum
from starlette.middleware.cors import CORSMiddleware

from pinapi import containers
from pinapi.config import settings
from pinapi.core.exception_handlers import register_exception_handlers
from pinapi.core.logging_middleware import LoggingMiddleware
from pinapi.logging_config import setup_logging
from pinapi.routers import (
    admin_router,
    health_router,
    pin_router,
    point_router,
    verification_router,
)

load_dotenv("pinapi/.env")
setup_logging(log_level=settings.LOG_LEVEL, json_logs=settings.ENVIRONMENT != "development")
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)
    app.container = containers.Container()  # type: ignore

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    register_exception_handlers(app)

    @app.get("/")
    def hello() -> dict:
        return {"message": settings.APP_NAME}

    app.include_router(health_router.router)
    for module in (point_router, pin_router, verification_router, admin_router):
        app.include_router(module.router, prefix=settings.API_V1_STR)

    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")
    return app


app = create_app()

handler = Mangum(app)
