"""Shared pytest fixtures and configuration for all tests."""

import os

# Keep the entry-point modules from building real applications at import time.
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

import pytest

from campus_bites.auth.credentials import TokenIssuer
from campus_bites.auth.policy import AccessContext
from campus_bites.models.identity_models import Role, User
from campus_bites.models.menu_models import DietType, MenuCategory, MenuItem
from campus_bites.models.order_models import (
    Order,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    StatusHistoryEntry,
)
from campus_bites.models.restaurant_models import ApprovalStatus, Restaurant

BASE_TIME = datetime(2025, 1, 15, 10, 30, tzinfo=UTC)


@pytest.fixture
def base_time() -> datetime:
    """Fixed timestamp used across tests."""
    return BASE_TIME


@pytest.fixture
def token_issuer() -> TokenIssuer:
    return TokenIssuer(secret="test-secret")


@pytest.fixture
def make_user() -> Callable[..., User]:
    """Factory for identities (password hash is a placeholder, not a real bcrypt hash)."""

    def _make(
        user_id: str = "usr_student01",
        role: Role = Role.STUDENT,
        restaurant_id: str | None = None,
        **overrides: Any,
    ) -> User:
        data: dict[str, Any] = {
            "id": user_id,
            "name": "Asha Rao",
            "email": f"{user_id}@campus.edu",
            "password_hash": "not-a-real-hash",
            "role": role,
            "restaurant_id": restaurant_id,
            "created_at": BASE_TIME,
            "updated_at": BASE_TIME,
        }
        data.update(overrides)
        return User(**data)

    return _make


@pytest.fixture
def make_restaurant() -> Callable[..., Restaurant]:
    def _make(
        restaurant_id: str = "rst_canteen01",
        owner_id: str = "usr_owner01",
        approval_status: ApprovalStatus = ApprovalStatus.APPROVED,
        is_open: bool = True,
        **overrides: Any,
    ) -> Restaurant:
        data: dict[str, Any] = {
            "id": restaurant_id,
            "name": "North Canteen",
            "description": "Biryani and rolls near the library",
            "location": "Block A",
            "customer_care_number": "9876543210",
            "owner_id": owner_id,
            "categories": ["Biryani"],
            "approval_status": approval_status,
            "is_open": is_open,
            "created_at": BASE_TIME,
            "updated_at": BASE_TIME,
        }
        data.update(overrides)
        return Restaurant(**data)

    return _make


@pytest.fixture
def make_item() -> Callable[..., MenuItem]:
    def _make(
        item_id: str = "itm_biryani01",
        restaurant_id: str = "rst_canteen01",
        price: str = "120.00",
        **overrides: Any,
    ) -> MenuItem:
        data: dict[str, Any] = {
            "id": item_id,
            "restaurant_id": restaurant_id,
            "name": "Chicken Biryani",
            "description": "Dum biryani with raita",
            "price": Decimal(price),
            "category": MenuCategory.BIRYANI,
            "type": DietType.NON_VEG,
            "is_available": True,
            "created_at": BASE_TIME,
            "updated_at": BASE_TIME,
        }
        data.update(overrides)
        return MenuItem(**data)

    return _make


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Factory for orders; ``status`` also fills in a consistent history."""
    path = [OrderStatus.PLACED, OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.COMPLETED]

    def _make(
        order_id: str = "ord_000000000001",
        user_id: str = "usr_student01",
        restaurant_id: str = "rst_canteen01",
        status: OrderStatus = OrderStatus.PLACED,
        items: list[OrderLineItem] | None = None,
        created_at: datetime = BASE_TIME,
        **overrides: Any,
    ) -> Order:
        lines = items or [
            OrderLineItem(
                menu_item_id="itm_biryani01",
                name="Chicken Biryani",
                price=Decimal("120.00"),
                quantity=2,
            )
        ]
        if status == OrderStatus.CANCELLED:
            statuses = [OrderStatus.PLACED, OrderStatus.CANCELLED]
        else:
            statuses = path[: path.index(status) + 1]
        history = [
            StatusHistoryEntry(status=s, timestamp=created_at + timedelta(minutes=i))
            for i, s in enumerate(statuses)
        ]
        data: dict[str, Any] = {
            "id": order_id,
            "user_id": user_id,
            "restaurant_id": restaurant_id,
            "items": lines,
            "total_amount": sum((line.line_total for line in lines), Decimal("0")),
            "status": status,
            "payment_method": PaymentMethod.UPI,
            "payment_status": PaymentStatus.COMPLETED,
            "status_history": history,
            "created_at": created_at,
            "updated_at": created_at,
        }
        data.update(overrides)
        return Order(**data)

    return _make


@pytest.fixture
def student(make_user: Callable[..., User]) -> User:
    return make_user()


@pytest.fixture
def owner(make_user: Callable[..., User]) -> User:
    return make_user("usr_owner01", Role.RESTAURANT, restaurant_id="rst_canteen01", name="Ravi Kumar")


@pytest.fixture
def admin(make_user: Callable[..., User]) -> User:
    return make_user("usr_admin01", Role.ADMIN, name="Campus Admin")


@pytest.fixture
def restaurant(make_restaurant: Callable[..., Restaurant]) -> Restaurant:
    return make_restaurant()


@pytest.fixture
def student_context(student: User) -> AccessContext:
    return AccessContext(identity=student)


@pytest.fixture
def owner_context(owner: User, restaurant: Restaurant) -> AccessContext:
    return AccessContext(identity=owner, restaurant=restaurant)


@pytest.fixture
def admin_context(admin: User) -> AccessContext:
    return AccessContext(identity=admin)


@pytest.fixture
def anonymous_context() -> AccessContext:
    return AccessContext()
