from datetime import datetime

from pydantic import BaseModel, ConfigDict

from machine_booking.domain.constants import VOUCHER_TYPE_RM5_OFF


class TokenBalanceResponse(BaseModel):
    user_id: str
    available: int


class UsedTokenResponse(BaseModel):
    token_id: str
    order_id: str | None = None
    used: bool


class RedeemVoucherRequest(BaseModel):
    """Voucher wanted in exchange for one reward token."""

    model_config = ConfigDict(extra="forbid")

    type: str = VOUCHER_TYPE_RM5_OFF


class VoucherResponse(BaseModel):
    id: str
    user_id: str
    type: str
    used: bool
    order_id: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None
