"""Order routes, including the restaurant and platform dashboards."""

from typing import Annotated

from fastapi import APIRouter, Depends

from campus_bites.auth.api_dependencies import get_access_context
from campus_bites.auth.policy import AccessContext
from campus_bites.handlers.responses import ApiResponse, get_order_service, respond
from campus_bites.models.order_models import CreateOrderRequest, OrderStatus, StatusUpdateRequest
from campus_bites.models.restaurant_models import RatingRequest
from campus_bites.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["Orders"])

Service = Annotated[OrderService, Depends(get_order_service)]
Caller = Annotated[AccessContext, Depends(get_access_context)]


@router.post("", response_model=ApiResponse, status_code=201)
async def create_order(payload: CreateOrderRequest, context: Caller, service: Service) -> ApiResponse:
    order = await service.create_order(context, payload)
    return respond(order, "Order placed successfully")


@router.get("/my", response_model=ApiResponse)
async def list_my_orders(context: Caller, service: Service) -> ApiResponse:
    return respond(await service.list_my_orders(context))


@router.get("/restaurant", response_model=ApiResponse)
async def list_restaurant_orders(
    context: Caller,
    service: Service,
    status: OrderStatus | None = None,
    restaurant_id: str | None = None,
) -> ApiResponse:
    """Orders of the caller's restaurant (admins pass ``restaurant_id``)."""
    orders = await service.list_restaurant_orders(context, restaurant_id=restaurant_id, status=status)
    return respond(orders)


@router.get("/restaurant/stats", response_model=ApiResponse)
async def restaurant_statistics(
    context: Caller,
    service: Service,
    restaurant_id: str | None = None,
) -> ApiResponse:
    return respond(await service.restaurant_statistics(context, restaurant_id=restaurant_id))


@router.get("/admin/all", response_model=ApiResponse)
async def list_all_orders(context: Caller, service: Service) -> ApiResponse:
    return respond(await service.list_all_orders(context))


@router.get("/admin/stats", response_model=ApiResponse)
async def platform_statistics(context: Caller, service: Service) -> ApiResponse:
    return respond(await service.platform_statistics(context))


@router.get("/{order_id}", response_model=ApiResponse)
async def get_order(order_id: str, context: Caller, service: Service) -> ApiResponse:
    return respond(await service.get_order(context, order_id))


@router.put("/{order_id}/status", response_model=ApiResponse)
async def update_status(
    order_id: str,
    payload: StatusUpdateRequest,
    context: Caller,
    service: Service,
) -> ApiResponse:
    order = await service.update_status(context, order_id, payload.status)
    return respond(order, f"Order status updated to {order.status.value}")


@router.post("/{order_id}/rate", response_model=ApiResponse)
async def rate_order(
    order_id: str,
    payload: RatingRequest,
    context: Caller,
    service: Service,
) -> ApiResponse:
    order = await service.rate_order(context, order_id, payload.rating, payload.review)
    return respond(order, "Order rated successfully")
