from datetime import datetime

from fastapi import APIRouter, Depends, Query, status

from machine_booking.api.dependencies import get_use_cases
from machine_booking.api.schemas.booking import (
    AvailabilityResponse,
    MachineResponse,
    MachineType,
    RegisterMachineRequest,
)

router = APIRouter()


@router.post(
    "/machines",
    response_model=MachineResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_machine(
    payload: RegisterMachineRequest,
    use_cases=Depends(get_use_cases),
) -> MachineResponse:
    machine = await use_cases["register_machine"].execute(
        machine_name=payload.machine_name,
        machine_type=payload.type.value,
        price=payload.price,
        status=payload.status.value,
    )
    return MachineResponse.model_validate(machine, from_attributes=True)


@router.get("/machines", response_model=list[MachineResponse])
async def list_machines(
    machine_type: MachineType | None = Query(default=None, alias="type"),
    use_cases=Depends(get_use_cases),
) -> list[MachineResponse]:
    machines = await use_cases["list_machines"].execute(
        machine_type.value if machine_type else None
    )
    return [MachineResponse.model_validate(machine, from_attributes=True) for machine in machines]


@router.get(
    "/machines/{machine_id}/availability",
    response_model=AvailabilityResponse,
)
async def check_availability(
    machine_id: str,
    start: datetime,
    end: datetime,
    use_cases=Depends(get_use_cases),
) -> AvailabilityResponse:
    available = await use_cases["check_availability"].execute(machine_id, start, end)
    return AvailabilityResponse(machine_id=machine_id, start=start, end=end, available=available)
