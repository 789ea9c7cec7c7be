from fastapi import APIRouter, Depends, status

from machine_booking.api.dependencies import get_current_user_id, get_use_cases
from machine_booking.api.schemas.booking import CompletePaymentRequest, CompletePaymentResponse

router = APIRouter()


@router.post(
    "/payments/{payment_id}/complete",
    response_model=CompletePaymentResponse,
    status_code=status.HTTP_200_OK,
)
async def complete_payment(
    payment_id: str,
    payload: CompletePaymentRequest,
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> CompletePaymentResponse:
    result = await use_cases["complete_payment"].execute(
        payment_id=payment_id,
        payment_method=payload.payment_method,
        voucher_id=payload.voucher_id,
        user_id=user_id,
    )
    return CompletePaymentResponse.model_validate(result, from_attributes=True)
