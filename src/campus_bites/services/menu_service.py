"""Menu (catalog) service."""

import logging

from campus_bites.auth.policy import AccessContext, Action, AuthorizationPolicy, ResourceRef
from campus_bites.exceptions import InputValidationError, NotFoundError, StorageError
from campus_bites.models.fields import new_id, utc_now
from campus_bites.models.identity_models import Role
from campus_bites.models.menu_models import (
    DEFAULT_ITEM_IMAGE,
    DietType,
    MenuCategory,
    MenuItem,
    MenuItemCreateRequest,
    MenuItemUpdateRequest,
)
from campus_bites.models.restaurant_models import Restaurant
from campus_bites.observability.decorators import traced
from campus_bites.repositories.account_repositories import RestaurantRepository
from campus_bites.repositories.order_repositories import MenuItemRepository

logger = logging.getLogger(__name__)


def filter_menu(
    items: list[MenuItem],
    category: MenuCategory | None = None,
    diet_type: DietType | None = None,
    search: str | None = None,
) -> list[MenuItem]:
    """Filter a menu and sort it by category, then name."""
    matches = items
    if category is not None:
        matches = [item for item in matches if item.category == category]
    if diet_type is not None:
        matches = [item for item in matches if item.type == diet_type]
    if search:
        needle = search.strip().lower()
        matches = [
            item
            for item in matches
            if needle in item.name.lower() or needle in item.description.lower()
        ]

    return sorted(matches, key=lambda item: (item.category.value, item.name.lower()))


class MenuService:
    """Service for menu items.

    Restaurant owners manage their own items; admins may manage any
    restaurant's items. Reads are public but a closed restaurant's menu is
    hidden.
    """

    def __init__(
        self,
        menu_item_repository: MenuItemRepository,
        restaurant_repository: RestaurantRepository,
        policy: AuthorizationPolicy | None = None,
    ) -> None:
        self.menu_item_repository = menu_item_repository
        self.restaurant_repository = restaurant_repository
        self.policy = policy or AuthorizationPolicy()

    async def get_menu(
        self,
        context: AccessContext,
        restaurant_id: str,
        category: MenuCategory | None = None,
        diet_type: DietType | None = None,
        search: str | None = None,
    ) -> list[MenuItem]:
        """List a restaurant's menu.

        Raises:
            NotFoundError: Restaurant does not exist
            ForbiddenError: Restaurant is closed
        """
        restaurant = self._load_restaurant(restaurant_id)
        self.policy.authorize(context, Action.READ_MENU, ResourceRef(restaurant=restaurant))

        items = self.menu_item_repository.list_for_restaurant(restaurant_id)
        return filter_menu(items, category=category, diet_type=diet_type, search=search)

    async def get_item(self, context: AccessContext, item_id: str) -> MenuItem:
        self.policy.authorize(context, Action.READ_MENU_ITEM)
        return self._load_item(item_id)

    async def list_my_items(self, context: AccessContext) -> list[MenuItem]:
        """Every item of the caller's restaurant, available or not."""
        self.policy.authorize(context, Action.READ_OWN_MENU)
        items = self.menu_item_repository.list_for_restaurant(context.identity.restaurant_id)
        return sorted(items, key=lambda item: (item.category.value, item.name.lower()))

    @traced("menu.create_item")
    async def create_item(self, context: AccessContext, request: MenuItemCreateRequest) -> MenuItem:
        """Create a menu item.

        Owners always create items for their own restaurant; admins must name
        the target restaurant. The item's category is added to the
        restaurant's category tags if it is new.

        Raises:
            InputValidationError: Admin did not name a restaurant
            NotFoundError: Target restaurant does not exist
            ForbiddenError: Not the owner, or the restaurant is not approved
        """
        if context.role == Role.ADMIN:
            if not request.restaurant_id:
                raise InputValidationError("Please provide restaurant_id")
            restaurant_id = request.restaurant_id
        else:
            restaurant_id = context.identity.restaurant_id if context.identity else None

        restaurant = self._load_restaurant(restaurant_id) if restaurant_id else None
        self.policy.authorize(context, Action.CREATE_MENU_ITEM, ResourceRef(restaurant=restaurant))
        if restaurant is None:
            raise NotFoundError("Restaurant not found")

        now = utc_now()
        item = MenuItem(
            id=new_id("itm"),
            restaurant_id=restaurant.id,
            name=request.name,
            description=request.description,
            price=request.price,
            category=request.category,
            type=request.type,
            image=request.image or DEFAULT_ITEM_IMAGE,
            created_at=now,
            updated_at=now,
        )
        if not self.menu_item_repository.save_item(item):
            raise StorageError("Failed to create menu item")

        self._add_category(restaurant, item.category)

        logger.info(f"Created menu item {item.id} for restaurant {restaurant.id}")
        return item

    @traced("menu.update_item")
    async def update_item(
        self,
        context: AccessContext,
        item_id: str,
        update: MenuItemUpdateRequest,
    ) -> MenuItem:
        item = self._load_item(item_id)
        self.policy.authorize(
            context, Action.MANAGE_MENU_ITEM, ResourceRef(restaurant_id=item.restaurant_id)
        )

        changes = update.model_dump(exclude_none=True)
        if not changes:
            return item

        changes["updated_at"] = utc_now()
        updated = item.model_copy(update=changes)
        self._save_item(updated)

        if "category" in changes:
            restaurant = self.restaurant_repository.get_restaurant(item.restaurant_id)
            if restaurant is not None:
                self._add_category(restaurant, updated.category)

        logger.info(f"Updated menu item {item_id}: {', '.join(sorted(changes))}")
        return updated

    @traced("menu.delete_item")
    async def delete_item(self, context: AccessContext, item_id: str) -> None:
        item = self._load_item(item_id)
        self.policy.authorize(
            context, Action.MANAGE_MENU_ITEM, ResourceRef(restaurant_id=item.restaurant_id)
        )

        if not self.menu_item_repository.delete_item(item_id):
            raise StorageError("Failed to delete menu item")

        logger.info(f"Deleted menu item {item_id}")

    @traced("menu.toggle_availability")
    async def toggle_availability(self, context: AccessContext, item_id: str) -> MenuItem:
        item = self._load_item(item_id)
        self.policy.authorize(
            context, Action.MANAGE_MENU_ITEM, ResourceRef(restaurant_id=item.restaurant_id)
        )

        updated = item.model_copy(update={"is_available": not item.is_available, "updated_at": utc_now()})
        self._save_item(updated)

        logger.info(
            f"Menu item {item_id} is now {'available' if updated.is_available else 'unavailable'}"
        )
        return updated

    def _add_category(self, restaurant: Restaurant, category: MenuCategory) -> None:
        if category.value in restaurant.categories:
            return

        tagged = restaurant.model_copy(
            update={"categories": [*restaurant.categories, category.value], "updated_at": utc_now()}
        )
        if not self.restaurant_repository.save_restaurant(tagged):
            logger.warning(f"Failed to add category {category.value} to restaurant {restaurant.id}")

    def _load_restaurant(self, restaurant_id: str) -> Restaurant:
        restaurant = self.restaurant_repository.get_restaurant(restaurant_id)
        if restaurant is None:
            raise NotFoundError("Restaurant not found")
        return restaurant

    def _load_item(self, item_id: str) -> MenuItem:
        item = self.menu_item_repository.get_item(item_id)
        if item is None:
            raise NotFoundError("Menu item not found")
        return item

    def _save_item(self, item: MenuItem) -> None:
        if not self.menu_item_repository.save_item(item):
            raise StorageError("Failed to save menu item")
