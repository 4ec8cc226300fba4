"""Response envelope and service lookups shared by the API routers."""

from decimal import Decimal
from typing import Any

from fastapi import Request
from pydantic import BaseModel

from campus_bites.services.auth_service import AuthService
from campus_bites.services.menu_service import MenuService
from campus_bites.services.order_service import OrderService
from campus_bites.services.restaurant_service import RestaurantService


class ApiResponse(BaseModel):
    """Envelope returned by every endpoint.

    Attributes:
        success: False only for error responses
        message: Human-readable outcome
        data: Payload, if any
        count: Number of entries when ``data`` is a list
    """

    success: bool = True
    message: str | None = None
    data: Any = None
    count: int | None = None


def to_json(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, list):
        return [to_json(entry) for entry in value]
    if isinstance(value, dict):
        return {key: to_json(entry) for key, entry in value.items()}
    return value


def respond(data: Any = None, message: str | None = None) -> ApiResponse:
    """Wrap a payload in the success envelope; lists also get a count."""
    count = len(data) if isinstance(data, list) else None
    return ApiResponse(success=True, message=message, data=to_json(data), count=count)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_restaurant_service(request: Request) -> RestaurantService:
    return request.app.state.restaurant_service


def get_menu_service(request: Request) -> MenuService:
    return request.app.state.menu_service


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service
