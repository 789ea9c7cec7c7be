from typing import Annotated

from fastapi import APIRouter, Depends, status

from machine_booking.api.dependencies import get_use_cases

router = APIRouter()


@router.post("/workers/outbox/run", status_code=status.HTTP_200_OK)
async def run_outbox_batch(use_cases: Annotated[dict, Depends(get_use_cases)]) -> dict:
    """Processes one batch of ready saga repair events."""
    worker = use_cases["outbox_worker"]
    processed = await worker.run_once()
    return {"worker_id": worker.worker_id, "processed": processed}
