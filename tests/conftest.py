"""
Shared fixtures.

- deterministic time (FakeClock) and ids (FakeIdGenerator)
- in-memory document store, outbox and machine lock
- repositories and use cases wired over them
- FastAPI TestClient bound to the same in-memory collaborators
"""

from decimal import Decimal
from typing import Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from machine_booking.api.dependencies import ServiceBundle, get_bundle
from machine_booking.application.interfaces.clock import FakeClock
from machine_booking.application.interfaces.id_generator import FakeIdGenerator
from machine_booking.application.use_cases.check_availability import CheckAvailabilityUseCase
from machine_booking.application.use_cases.complete_payment import CompletePaymentUseCase
from machine_booking.application.use_cases.create_order import CreateOrderUseCase
from machine_booking.application.use_cases.reward_ledger import RewardLedger
from machine_booking.domain.constants import MACHINE_TYPE_WASHER
from machine_booking.domain.entities.machine import Machine
from machine_booking.infrastructure.in_memory.document_store import InMemoryDocumentStore
from machine_booking.infrastructure.in_memory.machine_lock import InMemoryMachineLock
from machine_booking.infrastructure.in_memory.outbox_repo import InMemoryOutboxRepo
from machine_booking.infrastructure.repositories import (
    DocumentMachineRepo,
    DocumentOrderRepo,
    DocumentPaymentRepo,
    DocumentTokenRepo,
    DocumentVoucherRepo,
)
from machine_booking.main import app
from tests.factories import NOW


# ============================================================================
# CORE COLLABORATORS
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def id_generator() -> FakeIdGenerator:
    return FakeIdGenerator()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def outbox_repo() -> InMemoryOutboxRepo:
    return InMemoryOutboxRepo()


@pytest.fixture
def machine_lock() -> InMemoryMachineLock:
    return InMemoryMachineLock(wait_seconds=1.0)


@pytest.fixture
def machine_repo(store) -> DocumentMachineRepo:
    return DocumentMachineRepo(store)


@pytest.fixture
def order_repo(store) -> DocumentOrderRepo:
    return DocumentOrderRepo(store)


@pytest.fixture
def payment_repo(store) -> DocumentPaymentRepo:
    return DocumentPaymentRepo(store)


@pytest.fixture
def token_repo(store) -> DocumentTokenRepo:
    return DocumentTokenRepo(store)


@pytest.fixture
def voucher_repo(store) -> DocumentVoucherRepo:
    return DocumentVoucherRepo(store)


# ============================================================================
# USE CASES
# ============================================================================


@pytest.fixture
def availability(order_repo, payment_repo) -> CheckAvailabilityUseCase:
    return CheckAvailabilityUseCase(order_repo=order_repo, payment_repo=payment_repo)


@pytest.fixture
def create_order(
    machine_repo, order_repo, payment_repo, outbox_repo, availability, machine_lock, clock
) -> CreateOrderUseCase:
    return CreateOrderUseCase(
        machine_repo=machine_repo,
        order_repo=order_repo,
        payment_repo=payment_repo,
        outbox_repo=outbox_repo,
        availability=availability,
        machine_lock=machine_lock,
        clock=clock,
    )


@pytest.fixture
def complete_payment(
    payment_repo,
    order_repo,
    voucher_repo,
    token_repo,
    outbox_repo,
    availability,
    machine_lock,
    clock,
    id_generator,
) -> CompletePaymentUseCase:
    return CompletePaymentUseCase(
        payment_repo=payment_repo,
        order_repo=order_repo,
        voucher_repo=voucher_repo,
        token_repo=token_repo,
        outbox_repo=outbox_repo,
        availability=availability,
        machine_lock=machine_lock,
        clock=clock,
        id_generator=id_generator,
    )


@pytest.fixture
def reward_ledger(token_repo) -> RewardLedger:
    return RewardLedger(token_repo=token_repo)


# ============================================================================
# TEST DATA
# ============================================================================


@pytest_asyncio.fixture
async def washer(machine_repo) -> Machine:
    """Available washer priced at 2.00 per hour."""
    machine = Machine(
        machine_name="Washer 1",
        type=MACHINE_TYPE_WASHER,
        price=Decimal("2.00"),
        status="available",
    )
    await machine_repo.add(machine)
    return machine


# ============================================================================
# HTTP CLIENT
# ============================================================================


@pytest.fixture
def bundle(store, outbox_repo, machine_lock, clock, id_generator) -> ServiceBundle:
    return ServiceBundle(
        store=store,
        outbox_repo=outbox_repo,
        machine_lock=machine_lock,
        clock=clock,
        id_generator=id_generator,
    )


@pytest.fixture
def client(bundle: ServiceBundle) -> Generator[TestClient, None, None]:
    """TestClient wired to the in-memory bundle of the current test."""
    app.dependency_overrides[get_bundle] = lambda: bundle

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================================================
# PYTEST MARKERS
# ============================================================================


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: tests that run against a SQL database (aiosqlite by default)",
    )
    config.addinivalue_line(
        "markers",
        "concurrency: tests that interleave several workflows on one event loop",
    )
