"""
Health check endpoints.

- /health: liveness, always 200
- /health/store: document store connectivity, 503 when unreachable
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from machine_booking.api.dependencies import ServiceBundle, get_bundle

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "ok", "service": "machine-booking"}


@router.get("/health/store")
async def health_check_store(bundle: ServiceBundle = Depends(get_bundle)):
    try:
        await bundle.store.ping()
    except Exception:
        logger.error("Store health check failed", exc_info=True)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "component": "store",
                "error": "Document store unreachable",
            },
        )
    return {"status": "healthy", "component": "store"}
