from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .ad.errors import DirectoryUnavailable, TransportError
from .bootstrap import DirectoryContext, initialize_application
from .responses import CORS_HEADERS, api_response
from .routers import users

log = logging.getLogger(__name__)


def _request_uri(request: Request) -> str:
    uri = request.url.path
    if request.url.query:
        uri = f"{uri}?{request.url.query}"
    return uri


def create_app(directory: DirectoryContext | None = None) -> FastAPI:
    """Build the API.

    With `directory` given (tests) the startup bind is skipped; otherwise the
    session is created from the environment when the server starts.
    """
    app = FastAPI(title="AD Users API")
    app.state.directory = directory

    @app.on_event("startup")
    def _startup():
        if app.state.directory is None:
            app.state.directory = initialize_application()

    @app.on_event("shutdown")
    def _shutdown():
        if app.state.directory is not None:
            app.state.directory.session.close()

    @app.middleware("http")
    async def _cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            resp = api_response(f"{_request_uri(request)} Not Found", exc.status_code)
        else:
            resp = api_response(str(exc.detail), exc.status_code)
        if exc.headers:
            resp.headers.update(exc.headers)
        return resp

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError):
        fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) for err in exc.errors()})
        return api_response(
            f"Invalid request body: {', '.join(f for f in fields if f) or 'malformed JSON'}",
            422,
        )

    @app.exception_handler(DirectoryUnavailable)
    @app.exception_handler(TransportError)
    async def _directory_down(request: Request, exc: Exception):
        log.error("%s %s: %s", request.method, _request_uri(request), exc)
        return api_response("Directory Unavailable", status.HTTP_503_SERVICE_UNAVAILABLE)

    @app.get("/health")
    def health():
        ctx = app.state.directory
        return api_response("ok", status.HTTP_200_OK, {"bound": bool(ctx and ctx.session.is_bound)})

    app.include_router(users.router)
    return app


app = create_app()
