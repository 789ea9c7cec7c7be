from fastapi import APIRouter, Depends, Query, status

from machine_booking.api.dependencies import get_current_user_id, get_use_cases
from machine_booking.api.schemas.rewards import (
    RedeemVoucherRequest,
    TokenBalanceResponse,
    UsedTokenResponse,
    VoucherResponse,
)

router = APIRouter()


@router.get("/users/me/tokens", response_model=TokenBalanceResponse)
async def token_balance(
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> TokenBalanceResponse:
    available = await use_cases["reward_ledger"].available_token_count(user_id)
    return TokenBalanceResponse(user_id=user_id, available=available)


@router.post("/users/me/tokens/use", response_model=UsedTokenResponse)
async def use_token(
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> UsedTokenResponse:
    token = await use_cases["reward_ledger"].use_token(user_id)
    return UsedTokenResponse(token_id=token.id, order_id=token.order_id, used=token.used)


@router.get("/users/me/vouchers", response_model=list[VoucherResponse])
async def list_my_vouchers(
    valid_only: bool = Query(default=False),
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> list[VoucherResponse]:
    vouchers = await use_cases["list_vouchers"].execute(user_id, valid_only=valid_only)
    return [VoucherResponse.model_validate(voucher, from_attributes=True) for voucher in vouchers]


@router.get("/users/me/vouchers/{voucher_id}", response_model=VoucherResponse)
async def get_my_voucher(
    voucher_id: str,
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> VoucherResponse:
    voucher = await use_cases["get_voucher"].execute(voucher_id, user_id)
    return VoucherResponse.model_validate(voucher, from_attributes=True)


@router.post(
    "/users/me/vouchers",
    response_model=VoucherResponse,
    status_code=status.HTTP_201_CREATED,
)
async def redeem_token_for_voucher(
    payload: RedeemVoucherRequest | None = None,
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> VoucherResponse:
    """Spends one reward token on a voucher; 409 when the user has none."""
    payload = payload or RedeemVoucherRequest()
    voucher = await use_cases["redeem_voucher"].execute(user_id, voucher_type=payload.type)
    return VoucherResponse.model_validate(voucher, from_attributes=True)
