"""Unit tests for the FastAPI application and its routers."""

from collections.abc import Callable
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from campus_bites.auth.credentials import TokenIssuer
from campus_bites.exceptions import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
)
from campus_bites.handlers.api_handler import create_app
from campus_bites.models.identity_models import AuthResult, Role, User, UserProfile
from campus_bites.models.menu_models import DietType, MenuItem
from campus_bites.models.order_models import Order, OrderStatus, OrderView
from campus_bites.models.restaurant_models import ApprovalStatus, Restaurant
from campus_bites.models.stats_models import PlatformStatistics
from campus_bites.repositories.account_repositories import RestaurantRepository, UserRepository
from campus_bites.services.auth_service import AuthService
from campus_bites.services.menu_service import MenuService
from campus_bites.services.order_service import OrderService
from campus_bites.services.restaurant_service import RestaurantService


@pytest.fixture
def user_repository() -> MagicMock:
    return MagicMock(spec=UserRepository)


@pytest.fixture
def restaurant_repository(restaurant: Restaurant) -> MagicMock:
    repo = MagicMock(spec=RestaurantRepository)
    repo.get_restaurant.return_value = restaurant
    return repo


@pytest.fixture
def client(
    token_issuer: TokenIssuer,
    user_repository: MagicMock,
    restaurant_repository: MagicMock,
) -> TestClient:
    """Create a test client with mocked services."""
    app = create_app(
        auth_service=MagicMock(spec=AuthService),
        restaurant_service=MagicMock(spec=RestaurantService),
        menu_service=MagicMock(spec=MenuService),
        order_service=MagicMock(spec=OrderService),
        token_issuer=token_issuer,
        user_repository=user_repository,
        restaurant_repository=restaurant_repository,
        cors_origins=["http://localhost:3000"],
    )
    return TestClient(app)


@pytest.fixture
def login_as(
    token_issuer: TokenIssuer, user_repository: MagicMock
) -> Callable[[User], dict[str, str]]:
    """Make ``user`` the authenticated caller and return its auth header."""

    def _login(user: User) -> dict[str, str]:
        user_repository.get_user.return_value = user
        return {"Authorization": f"Bearer {token_issuer.issue(user.id)}"}

    return _login


def as_view(order: Order) -> OrderView:
    return OrderView(**dict(order))


@pytest.mark.unit
class TestHealthEndpoint:
    """Test suite for health check endpoint."""

    def test_health_check(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


@pytest.mark.unit
class TestAuthentication:
    """Test suite for bearer token handling."""

    def test_missing_token(self, client: TestClient) -> None:
        response = client.get("/api/orders/my")

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Not authorized - No token provided"}

    def test_invalid_token(self, client: TestClient) -> None:
        response = client.get("/api/orders/my", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401
        assert response.json()["message"] == "Not authorized - Token invalid or expired"

    def test_token_for_deleted_user(
        self, client: TestClient, token_issuer: TokenIssuer, user_repository: MagicMock
    ) -> None:
        user_repository.get_user.return_value = None
        headers = {"Authorization": f"Bearer {token_issuer.issue('usr_gone')}"}

        response = client.get("/api/auth/me", headers=headers)

        assert response.status_code == 401
        assert response.json()["message"] == "User not found - Token invalid"


@pytest.mark.unit
class TestAuthRoutes:
    """Test suite for /api/auth."""

    def test_register_student(self, client: TestClient, student: User) -> None:
        client.app.state.auth_service.register = AsyncMock(
            return_value=AuthResult(user=UserProfile.from_user(student), token="tok")
        )

        response = client.post(
            "/api/auth/register",
            json={"name": "Asha Rao", "email": "asha@campus.edu", "password": "secret123"},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "User registered successfully"
        assert body["data"]["token"] == "tok"
        assert "password_hash" not in body["data"]["user"]

    def test_register_restaurant_message(self, client: TestClient, owner: User) -> None:
        client.app.state.auth_service.register = AsyncMock(
            return_value=AuthResult(user=UserProfile.from_user(owner), token="tok")
        )

        response = client.post(
            "/api/auth/register",
            json={
                "name": "Ravi Kumar",
                "email": "ravi@campus.edu",
                "password": "secret123",
                "role": "restaurant",
                "restaurant": {
                    "name": "North Canteen",
                    "description": "Rolls",
                    "location": "Block A",
                    "customer_care_number": "9876543210",
                },
            },
        )

        assert response.status_code == 201
        assert response.json()["message"] == "Restaurant registered successfully. Awaiting admin approval."

    def test_register_validation_error(self, client: TestClient) -> None:
        response = client.post(
            "/api/auth/register",
            json={"name": "Asha", "email": "not-an-email", "password": "secret123"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"].startswith("email:")

    def test_register_rejects_overlong_password(self, client: TestClient) -> None:
        client.app.state.auth_service.register = AsyncMock()

        response = client.post(
            "/api/auth/register",
            json={"name": "Asha", "email": "asha@campus.edu", "password": "a" * 100},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"].startswith("password:")
        client.app.state.auth_service.register.assert_not_awaited()

    def test_password_limit_counts_utf8_bytes(self, client: TestClient) -> None:
        client.app.state.auth_service.register = AsyncMock()

        response = client.post(
            "/api/auth/register",
            json={"name": "Asha", "email": "asha@campus.edu", "password": "é" * 40},
        )

        assert response.status_code == 400
        client.app.state.auth_service.register.assert_not_awaited()

    def test_profile_update_rejects_overlong_password(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        student: User,
    ) -> None:
        client.app.state.auth_service.update_profile = AsyncMock()

        response = client.put(
            "/api/auth/profile", json={"password": "a" * 100}, headers=login_as(student)
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("password:")
        client.app.state.auth_service.update_profile.assert_not_awaited()

    def test_login_forbidden_for_pending_owner(self, client: TestClient) -> None:
        client.app.state.auth_service.login = AsyncMock(
            side_effect=ForbiddenError("Restaurant registration is pending admin approval")
        )

        response = client.post(
            "/api/auth/login", json={"email": "ravi@campus.edu", "password": "secret123"}
        )

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "message": "Restaurant registration is pending admin approval",
        }

    def test_me_includes_restaurant(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        owner: User,
        restaurant: Restaurant,
    ) -> None:
        client.app.state.auth_service.get_profile = AsyncMock(
            return_value=(UserProfile.from_user(owner), restaurant)
        )

        response = client.get("/api/auth/me", headers=login_as(owner))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["role"] == "restaurant"
        assert data["restaurant"]["id"] == "rst_canteen01"
        assert "ratings" not in data["restaurant"]


@pytest.mark.unit
class TestRestaurantRoutes:
    """Test suite for /api/restaurants."""

    def test_list_is_public_with_count(
        self, client: TestClient, restaurant: Restaurant
    ) -> None:
        service = client.app.state.restaurant_service
        service.list_restaurants = AsyncMock(return_value=[restaurant])

        response = client.get("/api/restaurants", params={"search": "canteen"})

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["name"] == "North Canteen"
        assert body["data"][0]["rating"] == 0.0
        assert service.list_restaurants.call_args.kwargs["search"] == "canteen"

    def test_missing_restaurant(self, client: TestClient) -> None:
        client.app.state.restaurant_service.get_restaurant = AsyncMock(
            side_effect=NotFoundError("Restaurant not found")
        )

        response = client.get("/api/restaurants/rst_missing")

        assert response.status_code == 404
        assert response.json()["message"] == "Restaurant not found"

    def test_approve(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        admin: User,
        restaurant: Restaurant,
    ) -> None:
        client.app.state.restaurant_service.approve_restaurant = AsyncMock(return_value=restaurant)

        response = client.put("/api/restaurants/rst_canteen01/approve", headers=login_as(admin))

        assert response.status_code == 200
        assert response.json()["message"] == "Restaurant approved successfully"
        assert response.json()["data"]["approval_status"] == "approved"

    def test_toggle_open_without_body(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        owner: User,
        make_restaurant: Callable[..., Restaurant],
    ) -> None:
        service = client.app.state.restaurant_service
        service.set_open = AsyncMock(return_value=make_restaurant(is_open=False))

        response = client.patch("/api/restaurants/rst_canteen01/open", headers=login_as(owner))

        assert response.status_code == 200
        assert response.json()["message"] == "Restaurant is now closed"
        assert service.set_open.call_args.args[2] is None

    def test_rate_restaurant(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        student: User,
        restaurant: Restaurant,
    ) -> None:
        client.app.state.restaurant_service.rate_restaurant = AsyncMock(
            return_value=restaurant.with_rating(student.id, 4)
        )

        response = client.post(
            "/api/restaurants/rst_canteen01/rate", json={"rating": 4}, headers=login_as(student)
        )

        assert response.status_code == 200
        assert response.json()["data"] == {"rating": 4.0, "total_ratings": 1}

    def test_pending_owner_request_context(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        owner: User,
        restaurant_repository: MagicMock,
        make_restaurant: Callable[..., Restaurant],
    ) -> None:
        """The resolved caller carries the owner's linked restaurant."""
        pending = make_restaurant(approval_status=ApprovalStatus.PENDING)
        restaurant_repository.get_restaurant.return_value = pending
        service = client.app.state.restaurant_service
        service.get_my_restaurant = AsyncMock(return_value=pending)

        client.get("/api/restaurants/my/profile", headers=login_as(owner))

        context = service.get_my_restaurant.call_args.args[0]
        assert context.restaurant == pending
        assert context.role == Role.RESTAURANT


@pytest.mark.unit
class TestMenuRoutes:
    """Test suite for /api/menu."""

    def test_type_query_maps_to_diet_type(
        self, client: TestClient, make_item: Callable[..., MenuItem]
    ) -> None:
        service = client.app.state.menu_service
        service.get_menu = AsyncMock(return_value=[make_item()])

        response = client.get("/api/menu/restaurant/rst_canteen01", params={"type": "veg"})

        assert response.status_code == 200
        assert response.json()["data"][0]["price"] == 120.0
        assert service.get_menu.call_args.kwargs["diet_type"] == DietType.VEG

    def test_unknown_category_rejected(self, client: TestClient) -> None:
        response = client.get("/api/menu/restaurant/rst_canteen01", params={"category": "Sushi"})

        assert response.status_code == 400

    def test_create_item(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        owner: User,
        make_item: Callable[..., MenuItem],
    ) -> None:
        client.app.state.menu_service.create_item = AsyncMock(return_value=make_item())

        response = client.post(
            "/api/menu",
            json={
                "name": "Chicken Biryani",
                "price": 120,
                "category": "Biryani",
                "type": "non-veg",
            },
            headers=login_as(owner),
        )

        assert response.status_code == 201
        assert response.json()["message"] == "Menu item created successfully"


@pytest.mark.unit
class TestOrderRoutes:
    """Test suite for /api/orders."""

    def test_place_order(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        student: User,
        make_order: Callable[..., Order],
    ) -> None:
        client.app.state.order_service.create_order = AsyncMock(return_value=as_view(make_order()))

        response = client.post(
            "/api/orders",
            json={
                "restaurant_id": "rst_canteen01",
                "items": [{"menu_item_id": "itm_biryani01", "quantity": 2}],
                "payment_method": "UPI",
            },
            headers=login_as(student),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Order placed successfully"
        assert body["data"]["total_amount"] == 240.0
        assert body["data"]["status"] == "Placed"

    def test_invalid_transition_lists_allowed(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        owner: User,
    ) -> None:
        client.app.state.order_service.update_status = AsyncMock(
            side_effect=InvalidTransitionError("Completed", "Preparing", [])
        )

        response = client.put(
            "/api/orders/ord_000000000001/status",
            json={"status": "Preparing"},
            headers=login_as(owner),
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["allowed_transitions"] == []
        assert 'Cannot change from "Completed" to "Preparing"' in body["message"]

    def test_status_update_message(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        owner: User,
        make_order: Callable[..., Order],
    ) -> None:
        client.app.state.order_service.update_status = AsyncMock(
            return_value=as_view(make_order(status=OrderStatus.PREPARING))
        )

        response = client.put(
            "/api/orders/ord_000000000001/status",
            json={"status": "Preparing"},
            headers=login_as(owner),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Order status updated to Preparing"

    def test_admin_stats(
        self,
        client: TestClient,
        login_as: Callable[[User], dict[str, str]],
        admin: User,
    ) -> None:
        client.app.state.order_service.platform_statistics = AsyncMock(
            return_value=PlatformStatistics(total_orders=2, total_revenue=Decimal("480.00"))
        )

        response = client.get("/api/orders/admin/stats", headers=login_as(admin))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_orders"] == 2
        assert data["total_revenue"] == 480.0
        assert data["top_restaurants"] == []

    def test_unexpected_error_is_500(
        self,
        token_issuer: TokenIssuer,
        user_repository: MagicMock,
        restaurant_repository: MagicMock,
        student: User,
    ) -> None:
        order_service = MagicMock(spec=OrderService)
        order_service.list_my_orders = AsyncMock(side_effect=RuntimeError("boom"))
        app = create_app(
            auth_service=MagicMock(spec=AuthService),
            restaurant_service=MagicMock(spec=RestaurantService),
            menu_service=MagicMock(spec=MenuService),
            order_service=order_service,
            token_issuer=token_issuer,
            user_repository=user_repository,
            restaurant_repository=restaurant_repository,
        )
        client = TestClient(app, raise_server_exceptions=False)
        user_repository.get_user.return_value = student

        response = client.get(
            "/api/orders/my",
            headers={"Authorization": f"Bearer {token_issuer.issue(student.id)}"},
        )

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}
