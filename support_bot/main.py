import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from support_bot.api.routes import chat, health
from support_bot.core.config import get_settings
from support_bot.core.errors import SupportBotError
from support_bot.core.logging import configure_logging
from support_bot.core.middleware import RateLimitMiddleware, RequestContextMiddleware
from support_bot.db.init_db import init_db
from support_bot.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if get_settings().session_store == "database":
        init_db()
    yield


async def handle_domain_error(_: Request, exc: SupportBotError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request failed: %s", exc.message)
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=exc.message).model_dump())


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=ErrorResponse(error="Internal server error").model_dump())


def create_app() -> FastAPI:
    settings = get_settings()
    settings.validate_production_safety()
    configure_logging(settings.log_level)

    app = FastAPI(title="Support Bot API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestContextMiddleware)

    app.add_exception_handler(SupportBotError, handle_domain_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(health.router)
    app.include_router(chat.router)

    @app.get("/", tags=["root"])
    def root() -> dict:
        return {
            "name": "Support Bot API",
            "status": "ok",
            "health": "/health",
            "docs": "/docs",
        }

    return app


app = create_app()
