from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from fastapi import Depends, Header, HTTPException, status

from machine_booking.api.deps import get_session_maker
from machine_booking.application.interfaces.clock import Clock, SystemClock
from machine_booking.application.interfaces.document_store import DocumentStore
from machine_booking.application.interfaces.id_generator import IdGenerator, RealIdGenerator
from machine_booking.application.interfaces.machine_lock import MachineLock
from machine_booking.application.interfaces.outbox_repo import OutboxRepo
from machine_booking.application.use_cases.check_availability import CheckAvailabilityUseCase
from machine_booking.application.use_cases.complete_payment import CompletePaymentUseCase
from machine_booking.application.use_cases.create_order import CreateOrderUseCase
from machine_booking.application.use_cases.list_orders import GetOrderUseCase, ListUserOrdersUseCase
from machine_booking.application.use_cases.machines import ListMachinesUseCase, RegisterMachineUseCase
from machine_booking.application.use_cases.reward_ledger import RewardLedger
from machine_booking.application.use_cases.saga_repair import SagaRepairHandlers
from machine_booking.application.use_cases.vouchers import (
    GetVoucherUseCase,
    IssueVoucherUseCase,
    ListVouchersUseCase,
    RedeemTokenForVoucherUseCase,
)
from machine_booking.config import Settings, get_settings
from machine_booking.infrastructure.db.document_store_sql import SQLDocumentStore
from machine_booking.infrastructure.db.machine_lock_sql import SQLMachineLock
from machine_booking.infrastructure.db.outbox_repo_sql import OutboxRepoSQL
from machine_booking.infrastructure.in_memory.document_store import InMemoryDocumentStore
from machine_booking.infrastructure.in_memory.machine_lock import InMemoryMachineLock
from machine_booking.infrastructure.in_memory.outbox_repo import InMemoryOutboxRepo
from machine_booking.infrastructure.messaging.outbox_worker import OutboxWorker
from machine_booking.infrastructure.repositories import (
    DocumentMachineRepo,
    DocumentOrderRepo,
    DocumentPaymentRepo,
    DocumentTokenRepo,
    DocumentVoucherRepo,
)


@dataclass
class ServiceBundle:
    """Long-lived collaborators shared by every request."""

    store: DocumentStore
    outbox_repo: OutboxRepo
    machine_lock: MachineLock
    clock: Clock
    id_generator: IdGenerator

    # Built on first use, then shared by every request on this bundle.
    use_cases: dict[str, Any] | None = field(default=None, repr=False, compare=False)


@lru_cache(maxsize=1)
def _in_memory_bundle() -> ServiceBundle:
    settings = get_settings()
    return ServiceBundle(
        store=InMemoryDocumentStore(),
        outbox_repo=InMemoryOutboxRepo(),
        machine_lock=InMemoryMachineLock(wait_seconds=settings.machine_lock_wait_seconds),
        clock=SystemClock(),
        id_generator=RealIdGenerator(),
    )


@lru_cache(maxsize=1)
def _sql_bundle() -> ServiceBundle:
    settings = get_settings()
    session_maker = get_session_maker()
    clock = SystemClock()
    id_generator = RealIdGenerator()
    return ServiceBundle(
        store=SQLDocumentStore(session_maker),
        outbox_repo=OutboxRepoSQL(session_maker),
        machine_lock=SQLMachineLock(
            session_maker,
            clock=clock,
            id_generator=id_generator,
            ttl_seconds=settings.machine_lock_ttl_seconds,
            wait_seconds=settings.machine_lock_wait_seconds,
        ),
        clock=clock,
        id_generator=id_generator,
    )


def get_bundle(settings: Settings = Depends(get_settings)) -> ServiceBundle:
    if settings.use_in_memory:
        return _in_memory_bundle()
    return _sql_bundle()


def build_outbox_worker(bundle: ServiceBundle, settings: Settings) -> OutboxWorker:
    worker = OutboxWorker(
        outbox_repo=bundle.outbox_repo,
        clock=bundle.clock,
        poll_interval_seconds=settings.outbox_poll_interval_seconds,
        batch_size=settings.outbox_batch_size,
        max_attempts=settings.outbox_max_attempts,
        base_backoff_seconds=settings.outbox_base_backoff_seconds,
    )
    handlers = SagaRepairHandlers(
        order_repo=DocumentOrderRepo(bundle.store),
        token_repo=DocumentTokenRepo(bundle.store),
        clock=bundle.clock,
    )
    for event_type, handler in handlers.handlers().items():
        worker.register_handler(event_type, handler)
    return worker


def build_use_cases(bundle: ServiceBundle, settings: Settings) -> dict[str, Any]:
    machine_repo = DocumentMachineRepo(bundle.store)
    order_repo = DocumentOrderRepo(bundle.store)
    payment_repo = DocumentPaymentRepo(bundle.store)
    token_repo = DocumentTokenRepo(bundle.store)
    voucher_repo = DocumentVoucherRepo(bundle.store)

    availability = CheckAvailabilityUseCase(
        order_repo=order_repo,
        payment_repo=payment_repo,
        on_permission_denied=settings.availability_on_permission_denied,
    )
    reward_ledger = RewardLedger(token_repo=token_repo)
    return {
        "check_availability": availability,
        "create_order": CreateOrderUseCase(
            machine_repo=machine_repo,
            order_repo=order_repo,
            payment_repo=payment_repo,
            outbox_repo=bundle.outbox_repo,
            availability=availability,
            machine_lock=bundle.machine_lock,
            clock=bundle.clock,
            currency_code=settings.currency_code,
            min_minutes=settings.min_booking_minutes,
            max_minutes=settings.max_booking_minutes,
        ),
        "complete_payment": CompletePaymentUseCase(
            payment_repo=payment_repo,
            order_repo=order_repo,
            voucher_repo=voucher_repo,
            token_repo=token_repo,
            outbox_repo=bundle.outbox_repo,
            availability=availability,
            machine_lock=bundle.machine_lock,
            clock=bundle.clock,
            id_generator=bundle.id_generator,
            currency_code=settings.currency_code,
        ),
        "reward_ledger": reward_ledger,
        "list_orders": ListUserOrdersUseCase(order_repo=order_repo, clock=bundle.clock),
        "get_order": GetOrderUseCase(order_repo=order_repo, clock=bundle.clock),
        "list_vouchers": ListVouchersUseCase(voucher_repo=voucher_repo, clock=bundle.clock),
        "get_voucher": GetVoucherUseCase(voucher_repo=voucher_repo),
        "redeem_voucher": RedeemTokenForVoucherUseCase(
            reward_ledger=reward_ledger,
            issue_voucher=IssueVoucherUseCase(
                voucher_repo=voucher_repo,
                clock=bundle.clock,
                validity_days=settings.voucher_validity_days,
            ),
        ),
        "register_machine": RegisterMachineUseCase(machine_repo=machine_repo),
        "list_machines": ListMachinesUseCase(machine_repo=machine_repo),
        "outbox_worker": build_outbox_worker(bundle, settings),
    }


def bundle_use_cases(bundle: ServiceBundle, settings: Settings) -> dict[str, Any]:
    if bundle.use_cases is None:
        bundle.use_cases = build_use_cases(bundle, settings)
    return bundle.use_cases


def get_use_cases(
    settings: Settings = Depends(get_settings),
    bundle: ServiceBundle = Depends(get_bundle),
) -> dict[str, Any]:
    return bundle_use_cases(bundle, settings)


def get_current_user_id(
    user_id: str | None = Header(default=None, alias="X-User-Id"),
) -> str:
    """The identity provider sits in front of the API and forwards the user id."""
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required",
        )
    return user_id.strip()
