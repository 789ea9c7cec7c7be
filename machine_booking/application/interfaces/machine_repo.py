from typing import Sequence

from machine_booking.domain.entities.machine import Machine


class MachineRepo:
    async def get(self, machine_id: str) -> Machine | None:
        raise NotImplementedError

    async def add(self, machine: Machine) -> str:
        raise NotImplementedError

    async def list_machines(self, machine_type: str | None = None) -> Sequence[Machine]:
        raise NotImplementedError
