import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from machine_booking.api.dependencies import bundle_use_cases, get_bundle
from machine_booking.api.deps import get_engine
from machine_booking.api.routers.health import router as health_router
from machine_booking.api.routers.machines import router as machines_router
from machine_booking.api.routers.orders import router as orders_router
from machine_booking.api.routers.payments import router as payments_router
from machine_booking.api.routers.rewards import router as rewards_router
from machine_booking.api.routers.worker import router as worker_router
from machine_booking.application.interfaces.document_store import (
    PermissionDeniedError,
    StoreError,
)
from machine_booking.config import get_settings
from machine_booking.domain.errors import (
    DomainError,
    InvalidBookingDurationError,
    MachineLockTimeoutError,
    MachineNotBookableError,
    MachineNotFoundError,
    NoAvailableTokensError,
    OrderNotFoundError,
    PaymentAlreadyProcessedError,
    PaymentNotFoundError,
    SlotUnavailableError,
    ValidationError,
    VoucherNotFoundError,
)
from machine_booking.infrastructure.db.tables import metadata

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DOMAIN_ERROR_STATUS: dict[type[DomainError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    InvalidBookingDurationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MachineNotBookableError: status.HTTP_409_CONFLICT,
    SlotUnavailableError: status.HTTP_409_CONFLICT,
    PaymentAlreadyProcessedError: status.HTTP_409_CONFLICT,
    NoAvailableTokensError: status.HTTP_409_CONFLICT,
    MachineNotFoundError: status.HTTP_404_NOT_FOUND,
    OrderNotFoundError: status.HTTP_404_NOT_FOUND,
    PaymentNotFoundError: status.HTTP_404_NOT_FOUND,
    VoucherNotFoundError: status.HTTP_404_NOT_FOUND,
    MachineLockTimeoutError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if not settings.use_in_memory:
        # Initialize DB tables (for dev/demo purposes)
        async with get_engine().begin() as conn:
            await conn.run_sync(metadata.create_all)

    worker_task = None
    worker = None
    if settings.outbox_worker_enabled:
        worker = bundle_use_cases(get_bundle(settings), settings)["outbox_worker"]
        worker_task = asyncio.create_task(worker.start())

    yield

    if worker is not None:
        await worker.stop()
        worker_task.cancel()
        try:
            await worker_task
        except asyncio.CancelledError:
            pass
    if not settings.use_in_memory:
        await get_engine().dispose()


app = FastAPI(
    title="Machine Booking API",
    version="0.1.0",
    lifespan=lifespan,
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    status_code = DOMAIN_ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info(
        "Request rejected",
        extra={"path": request.url.path, "code": exc.code, "status_code": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    if isinstance(exc, PermissionDeniedError):
        status_code = status.HTTP_403_FORBIDDEN
        detail = "Access to the document store was denied"
    else:
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        detail = "Document store unavailable"
    logger.error(
        "Store error while handling request",
        exc_info=exc,
        extra={"path": request.url.path, "method": request.method},
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "code": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Logs unhandled exceptions with an error id and returns a generic 500
    so internals never reach the client.
    """
    error_id = str(uuid.uuid4())
    logger.error(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={
            "error_id": error_id,
            "path": request.url.path,
            "method": request.method,
            "client_host": request.client.host if request.client else None,
        },
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists.",
        },
    )


app.include_router(health_router, tags=["Health"])
app.include_router(machines_router, prefix="/api/v1", tags=["Machines"])
app.include_router(orders_router, prefix="/api/v1", tags=["Orders"])
app.include_router(payments_router, prefix="/api/v1", tags=["Payments"])
app.include_router(rewards_router, prefix="/api/v1", tags=["Rewards"])
app.include_router(worker_router, prefix="/api/v1", tags=["Worker"])
