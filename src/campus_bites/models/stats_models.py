"""Dashboard statistics shapes."""

from decimal import Decimal

from pydantic import BaseModel, Field

from campus_bites.models.fields import Money
from campus_bites.models.order_models import OrderView


class PopularItem(BaseModel):
    menu_item_id: str
    name: str
    total_quantity: int


class TopRestaurant(BaseModel):
    restaurant_id: str
    name: str
    order_count: int
    revenue: Money


class OrderStatistics(BaseModel):
    """Metrics shared by the platform and restaurant dashboards."""

    total_orders: int = 0
    completed_orders: int = 0
    total_revenue: Money = Decimal("0")
    average_order_value: Money = Decimal("0")
    orders_by_status: dict[str, int] = Field(default_factory=dict)
    recent_orders: list[OrderView] = Field(default_factory=list)


class RestaurantStatistics(OrderStatistics):
    popular_items: list[PopularItem] = Field(default_factory=list)


class PlatformStatistics(OrderStatistics):
    top_restaurants: list[TopRestaurant] = Field(default_factory=list)
