from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from voice_hooks.api import (
    actions_router,
    events_router,
    health_router,
    preferences_router,
    speech_router,
    utterances_router,
)
from voice_hooks.core.config import Settings, get_settings
from voice_hooks.core.context import VoiceContext
from voice_hooks.core.errors import VoiceHooksError, error_response
from voice_hooks.core.logger import get_logger, get_request_id, new_request_id, set_request_id

logger = get_logger("server")


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"{field}: {message}" if field else message


def create_app(settings: Optional[Settings] = None, context: Optional[VoiceContext] = None) -> FastAPI:
    settings = settings or get_settings()

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        logger.info("Server started", extra={"host": settings.host, "port": settings.port})
        yield
        logger.info("Server stopped")

    app = FastAPI(title="voice-hooks", lifespan=_lifespan)
    app.state.voice = context or VoiceContext(settings)

    @app.middleware("http")
    async def _request_id_middleware(request: Request, call_next):
        rid = request.headers.get("X-Request-Id") or new_request_id()
        set_request_id(rid)
        response = await call_next(request)
        response.headers["X-Request-Id"] = rid
        return response

    @app.exception_handler(VoiceHooksError)
    async def _voice_hooks_error(request: Request, exc: VoiceHooksError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_response(exc.code, exc.message, details=exc.details, request_id=get_request_id()),
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=error_response(
                "VH_4000",
                _describe_validation_error(exc),
                details=[
                    jsonable_encoder({key: err[key] for key in ("type", "loc", "msg") if key in err})
                    for err in exc.errors()
                ],
                request_id=get_request_id(),
            ),
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health_router)
    app.include_router(utterances_router)
    app.include_router(speech_router)
    app.include_router(preferences_router)
    app.include_router(actions_router)
    app.include_router(events_router)

    # Browser UI, when a build is present next to the server.
    public_dir = Path(settings.public_dir)
    if public_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(public_dir), html=True), name="ui")

    return app


app = create_app()
