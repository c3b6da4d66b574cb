import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chainlens.core.config import settings
from chainlens.models.domain import ErrorKind
from chainlens.routers.chat import router as chat_router
from chainlens.routers.errors import error_body
from chainlens.routers.health import router as health_router
from chainlens.routers.mcp import router as mcp_router

log = logging.getLogger(__name__)


def _field_errors(exc: RequestValidationError):
    fields, messages = [], []
    for e in exc.errors():
        loc = ".".join(str(p) for p in e.get("loc", ()) if p not in ("body", "query", "path"))
        messages.append(f'"{loc}" {e.get("msg", "is invalid")}')
        if loc not in fields:
            fields.append(loc)
    return fields, messages


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    app = FastAPI(title="Chainlens", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError):
        fields, messages = _field_errors(exc)
        return JSONResponse(
            status_code=400,
            content=error_body(ErrorKind.VALIDATION_ERROR.value, "; ".join(messages), 400,
                               request.url.path, fields),
        )

    @app.exception_handler(Exception)
    async def _unexpected(request: Request, exc: Exception):
        log.exception("request=failed path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content=error_body("internal_error", "Internal Server Error", 500, request.url.path),
        )

    app.include_router(health_router)
    app.include_router(chat_router)
    app.include_router(mcp_router)
    return app


app = create_app()
