import logging
from decimal import Decimal
from typing import Sequence

from machine_booking.application.interfaces.document_store import PermissionDeniedError
from machine_booking.application.interfaces.machine_repo import MachineRepo
from machine_booking.domain.constants import (
    MACHINE_STATUS_AVAILABLE,
    MACHINE_STATUS_MAINTENANCE,
    MACHINE_STATUS_UNAVAILABLE,
    MACHINE_TYPE_DRYER,
    MACHINE_TYPE_WASHER,
)
from machine_booking.domain.entities.machine import Machine
from machine_booking.domain.errors import ValidationError

MACHINE_TYPES = (MACHINE_TYPE_WASHER, MACHINE_TYPE_DRYER)
MACHINE_STATUSES = (MACHINE_STATUS_AVAILABLE, MACHINE_STATUS_MAINTENANCE, MACHINE_STATUS_UNAVAILABLE)


class RegisterMachineUseCase:
    def __init__(self, machine_repo: MachineRepo) -> None:
        self._machine_repo = machine_repo
        self._logger = logging.getLogger(__name__)

    async def execute(
        self,
        machine_name: str,
        machine_type: str,
        price: Decimal,
        status: str = MACHINE_STATUS_AVAILABLE,
    ) -> Machine:
        if not machine_name.strip():
            raise ValidationError("machine_name", "must not be empty")
        if machine_type not in MACHINE_TYPES:
            raise ValidationError("type", f"must be one of {', '.join(MACHINE_TYPES)}")
        if status not in MACHINE_STATUSES:
            raise ValidationError("status", f"must be one of {', '.join(MACHINE_STATUSES)}")
        if price < 0:
            raise ValidationError("price", "must not be negative")

        machine = Machine(
            machine_name=machine_name.strip(),
            type=machine_type,
            price=Decimal(price),
            status=status,
        )
        await self._machine_repo.add(machine)
        self._logger.info(
            "Machine registered",
            extra={"machine_id": machine.id, "type": machine_type, "status": status},
        )
        return machine


class ListMachinesUseCase:
    def __init__(self, machine_repo: MachineRepo) -> None:
        self._machine_repo = machine_repo
        self._logger = logging.getLogger(__name__)

    async def execute(self, machine_type: str | None = None) -> Sequence[Machine]:
        try:
            return list(await self._machine_repo.list_machines(machine_type))
        except PermissionDeniedError:
            self._logger.warning(
                "Permission denied listing machines, returning empty list",
                extra={"machine_type": machine_type},
            )
            return []
