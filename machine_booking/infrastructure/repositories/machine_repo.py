from typing import Sequence

from machine_booking.application.interfaces.document_store import DocumentStore, FilterOp, Query
from machine_booking.application.interfaces.machine_repo import MachineRepo
from machine_booking.domain.constants import COLLECTION_MACHINES
from machine_booking.domain.entities.machine import Machine


class DocumentMachineRepo(MachineRepo):
    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def get(self, machine_id: str) -> Machine | None:
        doc = await self._store.get(COLLECTION_MACHINES, machine_id)
        if doc is None:
            return None
        return Machine.from_document(doc.id, doc.data)

    async def add(self, machine: Machine) -> str:
        machine_id = await self._store.add(COLLECTION_MACHINES, machine.to_document())
        machine.id = machine_id
        return machine_id

    async def list_machines(self, machine_type: str | None = None) -> Sequence[Machine]:
        query = Query(COLLECTION_MACHINES)
        if machine_type:
            query = query.where("type", FilterOp.EQ, machine_type)
        docs = await self._store.query(query)
        return [Machine.from_document(doc.id, doc.data) for doc in docs]
