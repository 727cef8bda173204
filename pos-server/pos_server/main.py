import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from pos_server.api.v1.routes_checkout import router as checkout_router
from pos_server.api.v1.routes_products import router as products_router
from pos_server.core.config import get_settings
from pos_server.core.errors import (
    BusinessError,
    InsufficientStock,
    NotFoundError,
    PersistenceFailure,
    POSError,
    PriceMismatch,
    SettlementValidationError,
)
from pos_server.core.logging_config import get_logger, setup_logging
from pos_server.db.base import close_db, get_session_factory, init_db
from pos_server.db.repositories.users import ensure_user

logger = get_logger(__name__)

# most specific first; the first matching class wins
ERROR_STATUS = [
    (SettlementValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InsufficientStock, status.HTTP_409_CONFLICT),
    (PriceMismatch, status.HTTP_409_CONFLICT),
    (BusinessError, status.HTTP_409_CONFLICT),
    (PersistenceFailure, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_for(exc: POSError) -> int:
    for error_type, code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def seed_operators() -> None:
    async with get_session_factory()() as db:
        async with db.begin():
            await ensure_user(db, "admin", role="admin")
            await ensure_user(db, "cashier", role="cashier")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging()
    logger.info("application_startup", app_name=settings.app_name, env=settings.app_env)

    await init_db()
    await seed_operators()
    logger.info("database_initialized")

    yield

    await close_db()
    logger.info("application_shutdown")


app = FastAPI(title="POS Server", lifespan=lifespan)

app.include_router(checkout_router)
app.include_router(products_router)


@app.middleware("http")
async def bind_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(POSError)
async def pos_error_handler(request: Request, exc: POSError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc),
        content={"error": exc.message, "code": exc.code, **exc.details()},
    )


@app.get("/health")
async def health():
    return {"status": "ok"}
