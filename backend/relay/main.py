import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from relay.api.middleware import BodySizeLimitMiddleware, RequestLoggingMiddleware
from relay.api.routers import chat as chat_router
from relay.api.routers import files as files_router
from relay.api.routers import health as health_router
from relay.core.config import Settings, get_settings
from relay.core.errors import ConfigurationError, register_exception_handlers
from relay.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


def check_startup_config(settings: Settings) -> None:
    missing = settings.missing_required()
    if not missing:
        return
    if settings.strict_startup:
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")
    logger.warning(
        "Missing configuration %s; affected endpoints will fail until it is set",
        ", ".join(missing),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    check_startup_config(get_settings())
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)
    app = FastAPI(
        debug=settings.debug,
        title="Agent Relay API",
        lifespan=lifespan,
    )

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    app.include_router(health_router.router)
    app.include_router(files_router.router)
    app.include_router(chat_router.router)

    # Mounted last so the API routes win.
    if settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="static")
    else:
        logger.warning("Static directory %s not found; frontend not served", settings.static_dir)

    return app


app = create_app()


def run() -> None:
    settings = get_settings()
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
