from contextlib import asynccontextmanager
import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException

from authsvc.api import auth, credentials, users
from authsvc.config import settings
from authsvc.core.errors import AuthServiceError, ValidationError

log = structlog.get_logger()

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("startup", env=settings.APP_ENV, version=VERSION)
    try:
        from authsvc.db import init_db
        await init_db()
        log.info("database_ready")
    except Exception as e:
        log.warning("database_not_available", error=str(e))
    log.info("startup_complete")
    yield
    from authsvc.db import dispose_db
    await dispose_db()
    log.info("shutdown")


class PreflightCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that answers every OPTIONS request with an empty 204."""

    def preflight_response(self, request_headers: Headers) -> Response:
        response = super().preflight_response(request_headers)
        if response.status_code != 200:
            return response
        headers = {
            k: v for k, v in response.headers.items() if k not in ("content-length", "content-type")
        }
        return Response(status_code=204, headers=headers)

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http" or scope["method"] != "OPTIONS":
            await super().__call__(scope, receive, send)
            return

        request_headers = Headers(scope=scope)
        origin = request_headers.get("origin")
        if origin is not None and "access-control-request-method" in request_headers:
            await super().__call__(scope, receive, send)
            return

        # Plain OPTIONS never reaches the router
        headers = {}
        if origin is not None:
            headers.update(self.simple_headers)
            if not self.allow_all_origins and self.is_allowed_origin(origin=origin):
                headers["Access-Control-Allow-Origin"] = origin
                headers["Vary"] = "Origin"
        response = Response(status_code=204, headers=headers)
        await response(scope, receive, send)


app = FastAPI(
    title="XHashPass Auth",
    description="User registration, credential checks and bearer tokens for the XHashPass API",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    PreflightCORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_credentials=False,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Worker-Token"],
)

app.include_router(auth.router, prefix="/auth", tags=["Auth"])
app.include_router(users.router, tags=["Users"])
app.include_router(credentials.router, prefix="/xhashpass", tags=["XHashPass"])


# ── Error shaping ──────────────────────────────────────────────────────────

def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": {"code": code, "message": message}})


@app.exception_handler(AuthServiceError)
async def auth_service_error_handler(request: Request, exc: AuthServiceError):
    if exc.status_code >= 500:
        log.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]) or "body", "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=ValidationError(details).to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    codes = {404: "not_found", 405: "method_not_allowed"}
    return _error(exc.status_code, codes.get(exc.status_code, "http_error"), str(exc.detail))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    log.exception("unhandled_error", path=request.url.path)
    return _error(500, "internal_error", "An unexpected error occurred")


# ── System ─────────────────────────────────────────────────────────────────

@app.get("/health", tags=["System"])
async def health():
    return {"status": "ok", "version": VERSION, "env": settings.APP_ENV}
