from datetime import datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, condecimal, constr

Amount = condecimal(max_digits=12, decimal_places=2, ge=0)


class MachineType(str, Enum):
    WASHER = "washer"
    DRYER = "dryer"


class MachineStatus(str, Enum):
    AVAILABLE = "available"
    MAINTENANCE = "maintenance"
    UNAVAILABLE = "unavailable"


class Temperature(str, Enum):
    COLD = "cold"
    WARM = "warm"
    HOT = "hot"


# === Machines ===


class RegisterMachineRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    machine_name: constr(strip_whitespace=True, min_length=1, max_length=150)
    type: MachineType
    price: Amount = Field(description="Hourly price")
    status: MachineStatus = MachineStatus.AVAILABLE


class MachineResponse(BaseModel):
    id: str
    machine_name: str
    type: str
    price: Decimal
    status: str


class AvailabilityResponse(BaseModel):
    machine_id: str
    start: datetime
    end: datetime
    available: bool


# === Orders ===


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    machine_id: constr(strip_whitespace=True, min_length=1)
    temperature: Temperature
    start_time: datetime
    end_time: datetime


class CreateOrderResponse(BaseModel):
    order_id: str
    payment_id: str
    status: str
    total_amount: Decimal
    currency_code: str
    linkage_complete: bool


class OrderResponse(BaseModel):
    id: str
    user_id: str
    machine_id: str
    machine_name: str
    temperature: str
    start_time: datetime | None = None
    end_time: datetime | None = None
    status: str
    total_amount: Decimal
    payment_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


# === Payments ===


class CompletePaymentRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    payment_method: constr(strip_whitespace=True, min_length=1, max_length=64)
    voucher_id: str | None = None


class CompletePaymentResponse(BaseModel):
    payment_id: str
    order_id: str | None = None
    status: str = "completed"
    amount: Decimal
    discount: Decimal
    currency_code: str
    transaction_id: str
    order_status: str | None = None
    token_id: str | None = None
    voucher_id: str | None = None
