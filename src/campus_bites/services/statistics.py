"""Dashboard statistics computed on demand from a set of orders.

Nothing here is stored or maintained incrementally; callers pass in the
orders they are allowed to see and get fresh numbers back.
"""

from collections import Counter, defaultdict
from collections.abc import Callable, Mapping, Sequence
from decimal import Decimal

from campus_bites.models.fields import round_money
from campus_bites.models.order_models import Order, OrderStatus, OrderView
from campus_bites.models.restaurant_models import Restaurant
from campus_bites.models.stats_models import (
    OrderStatistics,
    PlatformStatistics,
    PopularItem,
    RestaurantStatistics,
    TopRestaurant,
)

RECENT_ORDER_LIMIT = 10
TOP_LIMIT = 5


def total_revenue(orders: Sequence[Order]) -> Decimal:
    return sum((order.total_amount for order in orders), Decimal("0"))


def average_order_value(orders: Sequence[Order]) -> Decimal:
    """Revenue divided by order count, 0 for no orders."""
    if not orders:
        return Decimal("0")
    return round_money(total_revenue(orders) / len(orders))


def count_by_status(orders: Sequence[Order]) -> dict[str, int]:
    counts = Counter(order.status.value for order in orders)
    return dict(counts)


def most_recent(orders: Sequence[Order], limit: int = RECENT_ORDER_LIMIT) -> list[Order]:
    return sorted(orders, key=lambda order: order.created_at, reverse=True)[:limit]


def popular_items(orders: Sequence[Order], limit: int = TOP_LIMIT) -> list[PopularItem]:
    """Menu items ranked by cumulative quantity ordered."""
    quantities: dict[str, int] = defaultdict(int)
    names: dict[str, str] = {}
    for order in orders:
        for line in order.items:
            quantities[line.menu_item_id] += line.quantity
            names.setdefault(line.menu_item_id, line.name)

    ranked = sorted(quantities.items(), key=lambda pair: pair[1], reverse=True)[:limit]
    return [
        PopularItem(menu_item_id=item_id, name=names[item_id], total_quantity=quantity)
        for item_id, quantity in ranked
    ]


def top_restaurants(
    orders: Sequence[Order],
    restaurants: Mapping[str, Restaurant],
    limit: int = TOP_LIMIT,
) -> list[TopRestaurant]:
    """Restaurants ranked by order count.

    Restaurants missing from ``restaurants`` (for example deleted ones) are
    left out of the ranking.
    """
    counts: dict[str, int] = defaultdict(int)
    revenue: dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
    for order in orders:
        counts[order.restaurant_id] += 1
        revenue[order.restaurant_id] += order.total_amount

    ranked = sorted(counts.items(), key=lambda pair: pair[1], reverse=True)[:limit]
    return [
        TopRestaurant(
            restaurant_id=restaurant_id,
            name=restaurants[restaurant_id].name,
            order_count=count,
            revenue=revenue[restaurant_id],
        )
        for restaurant_id, count in ranked
        if restaurant_id in restaurants
    ]


def summarize(
    orders: Sequence[Order],
    to_view: Callable[[Order], OrderView],
) -> OrderStatistics:
    """Compute the metrics shared by every dashboard.

    Args:
        orders: Orders in scope
        to_view: Joins an order with its purchaser/restaurant summaries

    Returns:
        OrderStatistics: All-zero metrics when ``orders`` is empty
    """
    return OrderStatistics(
        total_orders=len(orders),
        completed_orders=sum(1 for order in orders if order.status == OrderStatus.COMPLETED),
        total_revenue=total_revenue(orders),
        average_order_value=average_order_value(orders),
        orders_by_status=count_by_status(orders),
        recent_orders=[to_view(order) for order in most_recent(orders)],
    )


def restaurant_statistics(
    orders: Sequence[Order],
    to_view: Callable[[Order], OrderView],
) -> RestaurantStatistics:
    base = summarize(orders, to_view)
    return RestaurantStatistics(**dict(base), popular_items=popular_items(orders))


def platform_statistics(
    orders: Sequence[Order],
    restaurants: Mapping[str, Restaurant],
    to_view: Callable[[Order], OrderView],
) -> PlatformStatistics:
    base = summarize(orders, to_view)
    return PlatformStatistics(**dict(base), top_restaurants=top_restaurants(orders, restaurants))
