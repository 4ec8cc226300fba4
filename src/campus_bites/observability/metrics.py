"""Custom metrics for the Campus Bites API."""

from opentelemetry import metrics

meter = metrics.get_meter("campus-bites-api")

orders_placed_counter = meter.create_counter(
    name="orders_placed_total",
    description="Total number of orders placed by payment method",
    unit="1",
)

order_transition_counter = meter.create_counter(
    name="order_status_transitions_total",
    description="Total number of successful order status transitions by target status",
    unit="1",
)

order_revenue_histogram = meter.create_histogram(
    name="order_total_amount",
    description="Total amount of placed orders",
    unit="1",
)

ratings_counter = meter.create_counter(
    name="ratings_submitted_total",
    description="Total number of ratings submitted by source",
    unit="1",
)

registration_compensation_counter = meter.create_counter(
    name="registration_compensations_total",
    description="Restaurant registrations rolled back after a partial write",
    unit="1",
)

rating_drift_counter = meter.create_counter(
    name="restaurant_rating_drift_total",
    description="Order ratings stored without updating the restaurant average",
    unit="1",
)


def record_order_placed(payment_method: str, total_amount: float) -> None:
    """Record a newly placed order.

    Args:
        payment_method: UPI, Cash or Card
        total_amount: Order total
    """
    orders_placed_counter.add(1, {"payment_method": payment_method})
    order_revenue_histogram.record(total_amount, {"payment_method": payment_method})


def record_order_transition(status: str) -> None:
    order_transition_counter.add(1, {"status": status})


def record_rating(source: str) -> None:
    """Record a submitted rating.

    Args:
        source: "order" or "restaurant"
    """
    ratings_counter.add(1, {"source": source})


def record_registration_compensation(stage: str) -> None:
    registration_compensation_counter.add(1, {"stage": stage})


def record_rating_drift(reason: str) -> None:
    """Record an order rating that the restaurant average does not include.

    Args:
        reason: "save_failed" or "restaurant_missing"
    """
    rating_drift_counter.add(1, {"reason": reason})
