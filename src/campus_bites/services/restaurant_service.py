"""Restaurant profile service: discovery, owner edits, and admin approval."""

import logging

from campus_bites.auth.policy import AccessContext, Action, AuthorizationPolicy, ResourceRef
from campus_bites.exceptions import NotFoundError, StorageError
from campus_bites.models.fields import utc_now
from campus_bites.models.identity_models import Role
from campus_bites.models.restaurant_models import (
    ApprovalStatus,
    Restaurant,
    RestaurantUpdateRequest,
)
from campus_bites.observability.decorators import traced
from campus_bites.observability.metrics import record_rating
from campus_bites.repositories.account_repositories import RestaurantRepository
from campus_bites.repositories.order_repositories import MenuItemRepository
from campus_bites.services.order_lifecycle import validate_rating_value

logger = logging.getLogger(__name__)


def _contains(haystack: str, needle: str) -> bool:
    return needle.strip().lower() in haystack.lower()


def filter_restaurants(
    restaurants: list[Restaurant],
    search: str | None = None,
    location: str | None = None,
    category: str | None = None,
) -> list[Restaurant]:
    """Apply the public listing filters.

    Args:
        restaurants: Candidates
        search: Case-insensitive substring of name or description
        location: Case-insensitive substring of location
        category: Exact (case-insensitive) category tag

    Returns:
        list: Matches sorted by rating (highest first), then newest first
    """
    matches = restaurants
    if search:
        matches = [r for r in matches if _contains(r.name, search) or _contains(r.description, search)]
    if location:
        matches = [r for r in matches if _contains(r.location, location)]
    if category:
        wanted = category.strip().lower()
        matches = [r for r in matches if any(c.lower() == wanted for c in r.categories)]

    return sorted(matches, key=lambda r: (r.rating, r.created_at), reverse=True)


class RestaurantService:
    """Service for restaurant profiles."""

    def __init__(
        self,
        restaurant_repository: RestaurantRepository,
        menu_item_repository: MenuItemRepository,
        policy: AuthorizationPolicy | None = None,
    ) -> None:
        """Initialize the RestaurantService.

        Args:
            restaurant_repository: Restaurant profile storage
            menu_item_repository: Menu storage, for the delete cascade
            policy: Authorization policy (a default one is created if omitted)
        """
        self.restaurant_repository = restaurant_repository
        self.menu_item_repository = menu_item_repository
        self.policy = policy or AuthorizationPolicy()

    async def list_restaurants(
        self,
        context: AccessContext,
        search: str | None = None,
        location: str | None = None,
        category: str | None = None,
    ) -> list[Restaurant]:
        """List approved restaurants, optionally filtered."""
        self.policy.authorize(context, Action.LIST_RESTAURANTS)
        approved = self.restaurant_repository.list_by_approval_status(ApprovalStatus.APPROVED)
        return filter_restaurants(approved, search=search, location=location, category=category)

    async def get_restaurant(self, context: AccessContext, restaurant_id: str) -> Restaurant:
        """Fetch a restaurant.

        Restaurants that are not approved are only visible to admins and
        their owner; everyone else gets NotFoundError.
        """
        self.policy.authorize(context, Action.READ_RESTAURANT)
        restaurant = self._load(restaurant_id)

        if not restaurant.is_approved:
            is_admin = context.role == Role.ADMIN
            is_owner = context.user_id is not None and context.user_id == restaurant.owner_id
            if not (is_admin or is_owner):
                raise NotFoundError("Restaurant not found")

        return restaurant

    async def get_my_restaurant(self, context: AccessContext) -> Restaurant:
        self.policy.authorize(context, Action.READ_OWN_RESTAURANT)
        if context.restaurant is None:
            raise NotFoundError("Restaurant profile not found")
        return context.restaurant

    @traced("restaurants.update")
    async def update_restaurant(
        self,
        context: AccessContext,
        restaurant_id: str,
        update: RestaurantUpdateRequest,
    ) -> Restaurant:
        """Apply owner-editable changes. Approval status is never editable here."""
        restaurant = self._load(restaurant_id)
        self.policy.authorize(context, Action.UPDATE_RESTAURANT, ResourceRef(restaurant=restaurant))

        changes = update.model_dump(exclude_none=True)
        if not changes:
            return restaurant

        changes["updated_at"] = utc_now()
        updated = restaurant.model_copy(update=changes)
        self._save(updated)

        logger.info(f"Updated restaurant {restaurant_id}: {', '.join(sorted(changes))}")
        return updated

    @traced("restaurants.set_open")
    async def set_open(
        self,
        context: AccessContext,
        restaurant_id: str,
        is_open: bool | None = None,
    ) -> Restaurant:
        """Set the open flag, or flip it when ``is_open`` is None."""
        restaurant = self._load(restaurant_id)
        self.policy.authorize(
            context, Action.TOGGLE_RESTAURANT_OPEN, ResourceRef(restaurant=restaurant)
        )

        target = (not restaurant.is_open) if is_open is None else is_open
        updated = restaurant.model_copy(update={"is_open": target, "updated_at": utc_now()})
        self._save(updated)

        logger.info(f"Restaurant {restaurant_id} is now {'open' if target else 'closed'}")
        return updated

    @traced("restaurants.approve")
    async def approve_restaurant(self, context: AccessContext, restaurant_id: str) -> Restaurant:
        return await self._set_approval(
            context, restaurant_id, ApprovalStatus.APPROVED, Action.APPROVE_RESTAURANT
        )

    @traced("restaurants.reject")
    async def reject_restaurant(self, context: AccessContext, restaurant_id: str) -> Restaurant:
        return await self._set_approval(
            context, restaurant_id, ApprovalStatus.REJECTED, Action.REJECT_RESTAURANT
        )

    @traced("restaurants.delete")
    async def delete_restaurant(self, context: AccessContext, restaurant_id: str) -> int:
        """Delete a restaurant and all of its menu items.

        Returns:
            int: Number of menu items removed with it
        """
        self.policy.authorize(context, Action.DELETE_RESTAURANT)
        self._load(restaurant_id)

        removed_items = self.menu_item_repository.delete_for_restaurant(restaurant_id)
        if not self.restaurant_repository.delete_restaurant(restaurant_id):
            raise StorageError("Failed to delete restaurant")

        logger.info(f"Deleted restaurant {restaurant_id} and {removed_items} menu items")
        return removed_items

    async def list_pending(self, context: AccessContext) -> list[Restaurant]:
        """Restaurants awaiting approval, newest first."""
        self.policy.authorize(context, Action.LIST_PENDING_RESTAURANTS)
        pending = self.restaurant_repository.list_by_approval_status(ApprovalStatus.PENDING)
        return sorted(pending, key=lambda r: r.created_at, reverse=True)

    @traced("restaurants.rate")
    async def rate_restaurant(self, context: AccessContext, restaurant_id: str, rating: int) -> Restaurant:
        """Record a student's rating; a repeat rating replaces their earlier one."""
        self.policy.authorize(context, Action.RATE_RESTAURANT)
        validate_rating_value(rating)
        restaurant = self._load(restaurant_id)

        updated = restaurant.with_rating(context.user_id, rating, replace_existing=True)
        self._save(updated)
        record_rating("restaurant")

        logger.info(
            f"User {context.user_id} rated restaurant {restaurant_id}: {rating} "
            f"(average {updated.rating} over {updated.total_ratings})"
        )
        return updated

    async def _set_approval(
        self,
        context: AccessContext,
        restaurant_id: str,
        status: ApprovalStatus,
        action: Action,
    ) -> Restaurant:
        self.policy.authorize(context, action)
        restaurant = self._load(restaurant_id)

        updated = restaurant.model_copy(update={"approval_status": status, "updated_at": utc_now()})
        self._save(updated)

        logger.info(f"Restaurant {restaurant_id} {status.value} by admin {context.user_id}")
        return updated

    def _load(self, restaurant_id: str) -> Restaurant:
        restaurant = self.restaurant_repository.get_restaurant(restaurant_id)
        if restaurant is None:
            raise NotFoundError("Restaurant not found")
        return restaurant

    def _save(self, restaurant: Restaurant) -> None:
        if not self.restaurant_repository.save_restaurant(restaurant):
            raise StorageError("Failed to save restaurant")
