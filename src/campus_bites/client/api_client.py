"""Async client for the Campus Bites REST API."""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from campus_bites.models.identity_models import AuthResult
from campus_bites.models.order_models import OrderStatus, OrderView, PaymentMethod
from campus_bites.models.restaurant_models import RestaurantPublic
from campus_bites.models.stats_models import PlatformStatistics, RestaurantStatistics

logger = logging.getLogger(__name__)


class CampusBitesClient:
    """HTTP client for students, restaurant owners, and admins.

    The session token is held by the client instance. ``login`` and
    ``register`` store the token they receive; it can also be passed in
    directly. Failed calls are logged and return None, with the server's
    message kept in ``last_error``.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the API (e.g., "https://api.example.com")
            token: Session token from a previous login
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.transport = transport
        self.last_error: str | None = None

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Send a request and return the response envelope, or None on failure."""
        url = f"{self.base_url}{path}"
        query = {key: value for key, value in (params or {}).items() if value is not None}
        self.last_error = None

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method, url, json=json, params=query, headers=self._headers()
                )
                response.raise_for_status()
                envelope: dict[str, Any] = response.json()
                return envelope

        except httpx.HTTPStatusError as e:
            self.last_error = self._error_message(e.response)
            logger.error(f"{method} {path} failed with {e.response.status_code}: {self.last_error}")
            return None
        except httpx.RequestError as e:
            self.last_error = str(e)
            logger.error(f"{method} {path} failed: {e}")
            return None

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return str(response.json().get("message", response.text))
        except ValueError:
            return response.text

    async def _data(self, method: str, path: str, **kwargs: Any) -> Any:
        envelope = await self._request(method, path, **kwargs)
        return None if envelope is None else envelope.get("data")

    def _parse(self, model: Any, data: Any) -> Any:
        if data is None:
            return None
        try:
            if isinstance(data, list):
                return [model.model_validate(entry) for entry in data]
            return model.model_validate(data)
        except ValidationError as e:
            self.last_error = str(e)
            logger.error(f"Unexpected {model.__name__} payload: {e}")
            return None

    # Authentication

    async def register(self, payload: dict[str, Any]) -> AuthResult | None:
        result = self._parse(AuthResult, await self._data("POST", "/api/auth/register", json=payload))
        if result is not None:
            self.token = result.token
        return result

    async def login(self, email: str, password: str) -> AuthResult | None:
        """Log in and keep the returned session token on this client."""
        data = await self._data("POST", "/api/auth/login", json={"email": email, "password": password})
        result = self._parse(AuthResult, data)
        if result is not None:
            self.token = result.token
        return result

    def logout(self) -> None:
        self.token = None

    async def get_me(self) -> dict[str, Any] | None:
        data: dict[str, Any] | None = await self._data("GET", "/api/auth/me")
        return data

    # Restaurants and menus

    async def list_restaurants(
        self,
        search: str | None = None,
        location: str | None = None,
        category: str | None = None,
    ) -> list[RestaurantPublic] | None:
        data = await self._data(
            "GET",
            "/api/restaurants",
            params={"search": search, "location": location, "category": category},
        )
        return self._parse(RestaurantPublic, data)

    async def get_restaurant(self, restaurant_id: str) -> RestaurantPublic | None:
        return self._parse(RestaurantPublic, await self._data("GET", f"/api/restaurants/{restaurant_id}"))

    async def get_menu(self, restaurant_id: str, **filters: Any) -> list[dict[str, Any]] | None:
        data: list[dict[str, Any]] | None = await self._data(
            "GET", f"/api/menu/restaurant/{restaurant_id}", params=filters
        )
        return data

    async def list_pending_restaurants(self) -> list[RestaurantPublic] | None:
        return self._parse(RestaurantPublic, await self._data("GET", "/api/restaurants/admin/pending"))

    async def approve_restaurant(self, restaurant_id: str) -> RestaurantPublic | None:
        data = await self._data("PUT", f"/api/restaurants/{restaurant_id}/approve")
        return self._parse(RestaurantPublic, data)

    async def reject_restaurant(self, restaurant_id: str) -> RestaurantPublic | None:
        data = await self._data("PUT", f"/api/restaurants/{restaurant_id}/reject")
        return self._parse(RestaurantPublic, data)

    # Orders

    async def place_order(
        self,
        restaurant_id: str,
        items: list[tuple[str, int]],
        payment_method: PaymentMethod = PaymentMethod.UPI,
    ) -> OrderView | None:
        """Place an order.

        Args:
            restaurant_id: Restaurant to order from
            items: (menu item id, quantity) pairs
            payment_method: Payment label
        """
        payload = {
            "restaurant_id": restaurant_id,
            "items": [{"menu_item_id": item_id, "quantity": quantity} for item_id, quantity in items],
            "payment_method": payment_method.value,
        }
        return self._parse(OrderView, await self._data("POST", "/api/orders", json=payload))

    async def get_order(self, order_id: str) -> OrderView | None:
        return self._parse(OrderView, await self._data("GET", f"/api/orders/{order_id}"))

    async def list_my_orders(self) -> list[OrderView] | None:
        return self._parse(OrderView, await self._data("GET", "/api/orders/my"))

    async def list_restaurant_orders(
        self,
        status: OrderStatus | None = None,
        restaurant_id: str | None = None,
    ) -> list[OrderView] | None:
        params = {"status": status.value if status else None, "restaurant_id": restaurant_id}
        return self._parse(OrderView, await self._data("GET", "/api/orders/restaurant", params=params))

    async def update_order_status(self, order_id: str, status: OrderStatus) -> OrderView | None:
        data = await self._data("PUT", f"/api/orders/{order_id}/status", json={"status": status.value})
        return self._parse(OrderView, data)

    async def rate_order(self, order_id: str, rating: int, review: str | None = None) -> OrderView | None:
        data = await self._data(
            "POST", f"/api/orders/{order_id}/rate", json={"rating": rating, "review": review}
        )
        return self._parse(OrderView, data)

    async def get_restaurant_statistics(self, restaurant_id: str | None = None) -> RestaurantStatistics | None:
        data = await self._data(
            "GET", "/api/orders/restaurant/stats", params={"restaurant_id": restaurant_id}
        )
        return self._parse(RestaurantStatistics, data)

    async def get_platform_statistics(self) -> PlatformStatistics | None:
        return self._parse(PlatformStatistics, await self._data("GET", "/api/orders/admin/stats"))
