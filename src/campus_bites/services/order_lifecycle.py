"""Order lifecycle state machine.

Placed -> Preparing -> Ready -> Completed, with Cancelled reachable only from
Placed. Completed and Cancelled are terminal. Functions here are pure: they
validate and return new ``Order`` values and never touch storage.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal

from campus_bites.exceptions import (
    AlreadyRatedError,
    ForbiddenError,
    InputValidationError,
    InvalidRatingError,
    InvalidTransitionError,
    NotFoundError,
)
from campus_bites.models.fields import new_id, utc_now
from campus_bites.models.menu_models import MenuItem
from campus_bites.models.order_models import (
    Order,
    OrderItemRequest,
    OrderLineItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    StatusHistoryEntry,
)
from campus_bites.models.restaurant_models import Restaurant

ALLOWED_TRANSITIONS: dict[OrderStatus, tuple[OrderStatus, ...]] = {
    OrderStatus.PLACED: (OrderStatus.PREPARING, OrderStatus.CANCELLED),
    OrderStatus.PREPARING: (OrderStatus.READY,),
    OrderStatus.READY: (OrderStatus.COMPLETED,),
    OrderStatus.COMPLETED: (),
    OrderStatus.CANCELLED: (),
}

TERMINAL_STATUSES = frozenset(
    status for status, allowed in ALLOWED_TRANSITIONS.items() if not allowed
)

MIN_RATING = 1
MAX_RATING = 5


def allowed_transitions(status: OrderStatus) -> tuple[OrderStatus, ...]:
    return ALLOWED_TRANSITIONS.get(status, ())


def can_transition(current: OrderStatus, requested: OrderStatus) -> bool:
    return requested in allowed_transitions(current)


def transition(order: Order, requested: OrderStatus, now: datetime | None = None) -> Order:
    """Move an order to a new status.

    Args:
        order: Current order
        requested: Target status
        now: Timestamp for the history entry (defaults to the current time)

    Returns:
        Order: Copy with the new status and one more history entry

    Raises:
        InvalidTransitionError: If ``requested`` is not allowed from the current status
    """
    allowed = allowed_transitions(order.status)
    if requested not in allowed:
        raise InvalidTransitionError(
            current=order.status.value,
            requested=requested.value,
            allowed=[status.value for status in allowed],
        )

    now = now or utc_now()
    history = [*order.status_history, StatusHistoryEntry(status=requested, timestamp=now)]
    return order.model_copy(
        update={"status": requested, "status_history": history, "updated_at": now}
    )


def calculate_total(items: Sequence[OrderLineItem]) -> Decimal:
    """Sum of price x quantity over all line items."""
    return sum((line.line_total for line in items), Decimal("0"))


def build_line_items(
    requested: Sequence[OrderItemRequest],
    restaurant_id: str,
    catalog: Mapping[str, MenuItem],
) -> list[OrderLineItem]:
    """Snapshot requested items against the catalog.

    Args:
        requested: Items and quantities the student asked for
        restaurant_id: Restaurant the order is placed with
        catalog: Menu items fetched for the requested ids

    Returns:
        list: Line items carrying the current name and price

    Raises:
        InputValidationError: No items, or an item from another restaurant
        NotFoundError: A requested item does not exist
        ForbiddenError: A requested item is unavailable
    """
    if not requested:
        raise InputValidationError("Order must contain at least one item")

    lines: list[OrderLineItem] = []
    for entry in requested:
        if entry.quantity < 1:
            raise InputValidationError("Quantity must be at least 1")

        menu_item = catalog.get(entry.menu_item_id)
        if menu_item is None:
            raise NotFoundError(f"Menu item {entry.menu_item_id} not found")

        if menu_item.restaurant_id != restaurant_id:
            raise InputValidationError("All items must be from the same restaurant")

        if not menu_item.is_available:
            raise ForbiddenError(f"{menu_item.name} is currently unavailable")

        lines.append(
            OrderLineItem(
                menu_item_id=menu_item.id,
                name=menu_item.name,
                price=menu_item.price,
                quantity=entry.quantity,
            )
        )

    return lines


def check_restaurant_accepts_orders(restaurant: Restaurant | None) -> Restaurant:
    """Ensure the restaurant exists, is approved, and is open.

    Raises:
        NotFoundError: Restaurant does not exist
        ForbiddenError: Restaurant is not approved or is closed
    """
    if restaurant is None:
        raise NotFoundError("Restaurant not found")

    if not restaurant.is_approved:
        raise ForbiddenError("Cannot order from unapproved restaurant")

    if not restaurant.is_open:
        raise ForbiddenError("Restaurant is currently closed and not accepting orders")

    return restaurant


def place_order(
    user_id: str,
    restaurant: Restaurant | None,
    requested: Sequence[OrderItemRequest],
    catalog: Mapping[str, MenuItem],
    payment_method: PaymentMethod,
    now: datetime | None = None,
) -> Order:
    """Validate an order request and build the new order.

    Every check runs before the order exists, so a failure leaves nothing
    behind.

    Returns:
        Order: New order in status Placed with a one-entry history
    """
    if not requested:
        raise InputValidationError("Order must contain at least one item")

    restaurant = check_restaurant_accepts_orders(restaurant)
    lines = build_line_items(requested, restaurant.id, catalog)

    now = now or utc_now()
    payment_status = (
        PaymentStatus.PENDING if payment_method == PaymentMethod.CASH else PaymentStatus.COMPLETED
    )

    return Order(
        id=new_id("ord"),
        user_id=user_id,
        restaurant_id=restaurant.id,
        items=lines,
        total_amount=calculate_total(lines),
        status=OrderStatus.PLACED,
        payment_method=payment_method,
        payment_status=payment_status,
        status_history=[StatusHistoryEntry(status=OrderStatus.PLACED, timestamp=now)],
        created_at=now,
        updated_at=now,
    )


def validate_rating_value(rating: int) -> int:
    """Ensure a rating is an integer from 1 to 5.

    Raises:
        InvalidRatingError: Out of range or not an integer
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidRatingError("Please provide a valid rating between 1 and 5")
    if rating < MIN_RATING or rating > MAX_RATING:
        raise InvalidRatingError("Please provide a valid rating between 1 and 5")
    return rating


def rate(
    order: Order,
    rater_id: str,
    rating: int,
    review: str | None = None,
    now: datetime | None = None,
) -> Order:
    """Attach the one-time rating to a completed order.

    Returns:
        Order: Copy carrying the rating, review, and rated_at timestamp

    Raises:
        InvalidRatingError: Rating out of range, or order not completed
        ForbiddenError: Rater is not the purchaser
        AlreadyRatedError: Order was rated before
    """
    validate_rating_value(rating)

    if order.user_id != rater_id:
        raise ForbiddenError("You can only rate your own orders")

    if order.status != OrderStatus.COMPLETED:
        raise InvalidRatingError("You can only rate completed orders")

    if order.is_rated:
        raise AlreadyRatedError()

    now = now or utc_now()
    return order.model_copy(
        update={"rating": rating, "review": review or "", "rated_at": now, "updated_at": now}
    )
