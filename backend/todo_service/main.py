import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Settings
from .database import Base, build_engine, make_session_factory
from .errors import AppError, RateLimitExceededError
from .logs import configure_logging, log_error, log_request, logger
from .ratelimit import build_limiters
from .routes import auth, categories, todos, users

OPENAPI_TAGS = [
    {"name": "Auth", "description": "Authentication endpoints"},
    {"name": "User", "description": "User endpoints"},
    {"name": "Todo", "description": "Todo CRUD endpoints"},
    {"name": "Category", "description": "Category endpoints"},
]


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RateLimitExceededError)
    async def rate_limited(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=exc.status,
            content={"detail": exc.message, "code": exc.code, "retryAfter": exc.retry_after},
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(AppError)
    async def app_error(request: Request, exc: AppError):
        content = {"detail": exc.message, "code": exc.code}
        if exc.status >= 500:
            log_error(exc, method=request.method, path=request.url.path, details=exc.details)
        elif exc.details is not None:
            content["details"] = exc.details
        return JSONResponse(status_code=exc.status, content=content)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"detail": "Validation error", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        log_error(exc, method=request.method, path=request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings)

    engine = build_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        Base.metadata.create_all(bind=engine)
        logger.info("todo service started env=%s", settings.environment)
        yield
        engine.dispose()

    app = FastAPI(title="Todo List API", version="2.0.0", openapi_tags=OPENAPI_TAGS, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.limiters = build_limiters(settings)

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        request_id = str(uuid.uuid4())
        started = time.perf_counter()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            log_request(request_id, request.method, request.url.path, status, duration_ms)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(categories.router)
    app.include_router(todos.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


def run() -> None:
    uvicorn.run(create_app(), host="0.0.0.0", port=3000)


if __name__ == "__main__":
    run()
