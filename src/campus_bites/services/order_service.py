"""Order service: placement, status updates, ratings, and dashboards.

State rules live in ``order_lifecycle`` and aggregation in ``statistics``;
this module loads documents, asks the authorization policy, and persists the
results.
"""

import logging
from collections.abc import Iterable

from campus_bites.auth.policy import AccessContext, Action, AuthorizationPolicy, ResourceRef
from campus_bites.exceptions import InputValidationError, NotFoundError, StorageError
from campus_bites.models.identity_models import Role, UserSummary
from campus_bites.models.order_models import (
    CreateOrderRequest,
    Order,
    OrderStatus,
    OrderView,
)
from campus_bites.models.restaurant_models import RestaurantSummary
from campus_bites.models.stats_models import PlatformStatistics, RestaurantStatistics
from campus_bites.observability.decorators import traced
from campus_bites.observability.metrics import (
    record_order_placed,
    record_order_transition,
    record_rating,
    record_rating_drift,
)
from campus_bites.repositories.account_repositories import RestaurantRepository, UserRepository
from campus_bites.repositories.order_repositories import MenuItemRepository, OrderRepository
from campus_bites.services import order_lifecycle, statistics

logger = logging.getLogger(__name__)


def _newest_first(orders: Iterable[Order]) -> list[Order]:
    return sorted(orders, key=lambda order: order.created_at, reverse=True)


class OrderService:
    """Service for orders and the dashboards built from them."""

    def __init__(
        self,
        order_repository: OrderRepository,
        menu_item_repository: MenuItemRepository,
        restaurant_repository: RestaurantRepository,
        user_repository: UserRepository,
        policy: AuthorizationPolicy | None = None,
    ) -> None:
        """Initialize the OrderService.

        Args:
            order_repository: Order storage
            menu_item_repository: Catalog lookups for line-item snapshots
            restaurant_repository: Restaurant lookups and rating updates
            user_repository: Purchaser lookups for read views
            policy: Authorization policy (a default one is created if omitted)
        """
        self.order_repository = order_repository
        self.menu_item_repository = menu_item_repository
        self.restaurant_repository = restaurant_repository
        self.user_repository = user_repository
        self.policy = policy or AuthorizationPolicy()

    @traced("orders.create")
    async def create_order(self, context: AccessContext, request: CreateOrderRequest) -> OrderView:
        """Place an order.

        Every check (restaurant approved and open, every item existing,
        available, and from that restaurant) runs before anything is
        written.
        """
        self.policy.authorize(context, Action.CREATE_ORDER)

        if not request.items:
            raise InputValidationError("Order must contain at least one item")

        restaurant = self.restaurant_repository.get_restaurant(request.restaurant_id)
        catalog = self.menu_item_repository.get_items([entry.menu_item_id for entry in request.items])

        order = order_lifecycle.place_order(
            user_id=context.user_id,
            restaurant=restaurant,
            requested=request.items,
            catalog=catalog,
            payment_method=request.payment_method,
        )
        self._save(order)
        record_order_placed(order.payment_method.value, float(order.total_amount))

        logger.info(
            f"Order {order.id} placed by {order.user_id} at {order.restaurant_id} "
            f"for {order.total_amount}"
        )
        return self.to_view(order)

    async def list_my_orders(self, context: AccessContext) -> list[OrderView]:
        self.policy.authorize(context, Action.READ_OWN_ORDERS)
        orders = self.order_repository.list_for_user(context.user_id)
        return [self.to_view(order) for order in _newest_first(orders)]

    async def list_restaurant_orders(
        self,
        context: AccessContext,
        restaurant_id: str | None = None,
        status: OrderStatus | None = None,
    ) -> list[OrderView]:
        """Orders of one restaurant, optionally filtered by status.

        Owners always see their own restaurant; admins must name one.
        """
        target = self._target_restaurant(context, restaurant_id)
        self.policy.authorize(context, Action.READ_RESTAURANT_ORDERS, ResourceRef(restaurant_id=target))

        orders = self.order_repository.list_for_restaurant(target)
        if status is not None:
            orders = [order for order in orders if order.status == status]
        return [self.to_view(order) for order in _newest_first(orders)]

    async def get_order(self, context: AccessContext, order_id: str) -> OrderView:
        order = self._load(order_id)
        self.policy.authorize(context, Action.READ_ORDER, self._resource(order))
        return self.to_view(order)

    @traced("orders.update_status")
    async def update_status(
        self,
        context: AccessContext,
        order_id: str,
        status: OrderStatus,
    ) -> OrderView:
        """Move an order along its lifecycle.

        Raises:
            NotFoundError: Order does not exist
            ForbiddenError: Caller is neither the owning restaurant nor an admin
            InvalidTransitionError: ``status`` is not reachable from the current status
        """
        order = self._load(order_id)
        self.policy.authorize(context, Action.UPDATE_ORDER_STATUS, self._resource(order))

        updated = order_lifecycle.transition(order, status)
        self._save(updated)
        record_order_transition(status.value)

        logger.info(f"Order {order_id} moved from {order.status.value} to {status.value}")
        return self.to_view(updated)

    async def list_all_orders(self, context: AccessContext) -> list[OrderView]:
        self.policy.authorize(context, Action.READ_ALL_ORDERS)
        return [self.to_view(order) for order in _newest_first(self.order_repository.list_orders())]

    @traced("orders.rate")
    async def rate_order(
        self,
        context: AccessContext,
        order_id: str,
        rating: int,
        review: str | None = None,
    ) -> OrderView:
        """Rate a completed order and fold the rating into the restaurant's average.

        Raises:
            InvalidRatingError: Out of range, or the order is not completed
            ForbiddenError: Caller did not place the order
            AlreadyRatedError: The order already has a rating
        """
        order = self._load(order_id)
        self.policy.authorize(context, Action.RATE_ORDER, self._resource(order))

        rated = order_lifecycle.rate(order, context.user_id, rating, review)
        self._save(rated)
        record_rating("order")

        restaurant = self.restaurant_repository.get_restaurant(order.restaurant_id)
        if restaurant is not None:
            updated = restaurant.with_rating(context.user_id, rating)
            if not self.restaurant_repository.save_restaurant(updated):
                logger.warning(f"Failed to update rating of restaurant {restaurant.id}")
                record_rating_drift("save_failed")
        else:
            logger.warning(f"Rated order {order_id} belongs to missing restaurant {order.restaurant_id}")
            record_rating_drift("restaurant_missing")

        logger.info(f"Order {order_id} rated {rating} by {context.user_id}")
        return self.to_view(rated)

    async def restaurant_statistics(
        self,
        context: AccessContext,
        restaurant_id: str | None = None,
    ) -> RestaurantStatistics:
        target = self._target_restaurant(context, restaurant_id)
        self.policy.authorize(context, Action.READ_RESTAURANT_STATS, ResourceRef(restaurant_id=target))

        orders = self.order_repository.list_for_restaurant(target)
        return statistics.restaurant_statistics(orders, self.to_view)

    async def platform_statistics(self, context: AccessContext) -> PlatformStatistics:
        self.policy.authorize(context, Action.READ_PLATFORM_STATS)

        orders = self.order_repository.list_orders()
        restaurants = {r.id: r for r in self.restaurant_repository.list_restaurants()}
        return statistics.platform_statistics(orders, restaurants, self.to_view)

    def to_view(self, order: Order) -> OrderView:
        """Join an order with its purchaser and restaurant summaries.

        Missing documents (deleted restaurant, removed account) leave the
        corresponding field empty.
        """
        user = self.user_repository.get_user(order.user_id)
        restaurant = self.restaurant_repository.get_restaurant(order.restaurant_id)
        return OrderView(
            **dict(order),
            user=UserSummary.from_user(user) if user else None,
            restaurant=RestaurantSummary.from_restaurant(restaurant) if restaurant else None,
        )

    def _target_restaurant(self, context: AccessContext, restaurant_id: str | None) -> str | None:
        if context.role == Role.ADMIN:
            if not restaurant_id:
                raise InputValidationError("Please provide restaurant_id")
            return restaurant_id
        if context.identity is not None and context.identity.restaurant_id:
            return context.identity.restaurant_id
        return restaurant_id

    def _resource(self, order: Order) -> ResourceRef:
        return ResourceRef(restaurant_id=order.restaurant_id, purchaser_id=order.user_id)

    def _load(self, order_id: str) -> Order:
        order = self.order_repository.get_order(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def _save(self, order: Order) -> None:
        if not self.order_repository.save_order(order):
            raise StorageError("Failed to save order")


