from decimal import Decimal

import pytest
from pydantic import ValidationError

from machine_booking.api.schemas.booking import (
    CompletePaymentRequest,
    CreateOrderRequest,
    RegisterMachineRequest,
)
from tests.factories import at


@pytest.fixture()
def order_payload():
    return {
        "machine_id": "m1",
        "temperature": "hot",
        "start_time": at(10),
        "end_time": at(11),
    }


def test_create_order_request_accepts_payload(order_payload):
    request = CreateOrderRequest(**order_payload)

    assert request.temperature.value == "hot"
    assert request.start_time == at(10)


def test_create_order_request_rejects_unknown_temperature(order_payload):
    order_payload["temperature"] = "boiling"

    with pytest.raises(ValidationError):
        CreateOrderRequest(**order_payload)


def test_create_order_request_rejects_extra_fields(order_payload):
    order_payload["total_amount"] = "0.01"

    with pytest.raises(ValidationError):
        CreateOrderRequest(**order_payload)


def test_register_machine_defaults_to_available():
    request = RegisterMachineRequest(machine_name="  Washer 3 ", type="washer", price=Decimal("2.50"))

    assert request.machine_name == "Washer 3"
    assert request.status.value == "available"


def test_register_machine_rejects_negative_price():
    with pytest.raises(ValidationError):
        RegisterMachineRequest(machine_name="Washer 3", type="washer", price=Decimal("-1"))


def test_complete_payment_requires_method():
    with pytest.raises(ValidationError):
        CompletePaymentRequest(payment_method="  ")

    assert CompletePaymentRequest(payment_method="card").voucher_id is None
