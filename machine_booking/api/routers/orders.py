from fastapi import APIRouter, Depends, status

from machine_booking.api.dependencies import get_current_user_id, get_use_cases
from machine_booking.api.schemas.booking import (
    CreateOrderRequest,
    CreateOrderResponse,
    OrderResponse,
)

router = APIRouter()


@router.post(
    "/orders",
    response_model=CreateOrderResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_order(
    payload: CreateOrderRequest,
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> CreateOrderResponse:
    result = await use_cases["create_order"].execute(
        user_id=user_id,
        machine_id=payload.machine_id,
        temperature=payload.temperature.value,
        start=payload.start_time,
        end=payload.end_time,
    )
    return CreateOrderResponse.model_validate(result, from_attributes=True)


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> OrderResponse:
    order = await use_cases["get_order"].execute(order_id, user_id=user_id)
    return OrderResponse.model_validate(order, from_attributes=True)


@router.get("/users/me/orders", response_model=list[OrderResponse])
async def list_my_orders(
    user_id: str = Depends(get_current_user_id),
    use_cases=Depends(get_use_cases),
) -> list[OrderResponse]:
    orders = await use_cases["list_orders"].execute(user_id)
    return [OrderResponse.model_validate(order, from_attributes=True) for order in orders]
