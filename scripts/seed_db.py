import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to sys.path
project_root = Path(__file__).resolve().parent.parent
sys.path.append(str(project_root))

from machine_booking.api.deps import get_engine, get_session_maker  # noqa: E402
from machine_booking.application.interfaces.clock import SystemClock  # noqa: E402
from machine_booking.application.use_cases.machines import RegisterMachineUseCase  # noqa: E402
from machine_booking.application.use_cases.vouchers import IssueVoucherUseCase  # noqa: E402
from machine_booking.infrastructure.db.document_store_sql import SQLDocumentStore  # noqa: E402
from machine_booking.infrastructure.db.tables import metadata  # noqa: E402
from machine_booking.infrastructure.repositories import (  # noqa: E402
    DocumentMachineRepo,
    DocumentVoucherRepo,
)

MACHINES = [
    ("Washer 1", "washer", Decimal("4.00")),
    ("Washer 2", "washer", Decimal("4.00")),
    ("Washer 3 (large)", "washer", Decimal("6.00")),
    ("Dryer 1", "dryer", Decimal("3.00")),
    ("Dryer 2", "dryer", Decimal("3.00")),
]

DEMO_USER_ID = "demo-user"


async def seed():
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    print("Created missing tables.")

    store = SQLDocumentStore(get_session_maker())
    register = RegisterMachineUseCase(DocumentMachineRepo(store))
    for name, machine_type, price in MACHINES:
        machine = await register.execute(name, machine_type, price)
        print(f"Seeded machine {machine.id}: {name} ({machine_type}, {price}/h)")

    voucher = await IssueVoucherUseCase(DocumentVoucherRepo(store), SystemClock()).execute(DEMO_USER_ID)
    print(f"Issued voucher {voucher.id} to {DEMO_USER_ID}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
