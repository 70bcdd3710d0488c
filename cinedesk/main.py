"""
CineDesk API - application factory and process entry point.

``app`` is the composed ASGI application for serverless hosts; ``run()``
binds a socket for standalone deployments.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from cinedesk import __version__
from cinedesk.config import Settings, get_settings
from cinedesk.database import Base, create_db_engine, create_session_factory
from cinedesk.gateway import GatewayMiddleware, OriginPolicy, build_stages, register_routes
from cinedesk.logging_config import configure_logging
from cinedesk.routers import RESOURCE_GROUPS

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events"""
    settings = app.state.settings
    logger.info(
        "Starting CineDesk API",
        environment=settings.environment,
        port=settings.port,
        allowed_origins=list(app.state.origin_policy.allowed),
    )

    try:
        Base.metadata.create_all(bind=app.state.engine)
        logger.info("Database connection initialized")
    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))

    yield

    app.state.engine.dispose()
    logger.info("Database connection closed")


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "message": "Invalid request",
            "errors": [
                {"loc": list(error["loc"]), "msg": error["msg"]} for error in exc.errors()
            ],
        },
    )


def create_app(settings: Optional[Settings] = None, policy: Optional[OriginPolicy] = None) -> FastAPI:
    settings = settings or get_settings()
    policy = policy or OriginPolicy.from_settings(settings)

    app = FastAPI(
        title=settings.app_name,
        description="Cinema, theater, movie and showtime management for the CineDesk booking client",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    engine = create_db_engine(settings.database)
    app.state.settings = settings
    app.state.origin_policy = policy
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    app.add_middleware(
        GatewayMiddleware,
        stages=build_stages(policy, settings),
        settings=settings,
    )
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    register_routes(app, RESOURCE_GROUPS)
    return app


def run() -> None:
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.is_production)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level="info")


app = create_app()


if __name__ == "__main__":
    run()
