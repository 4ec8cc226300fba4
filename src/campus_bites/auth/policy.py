"""Role-based authorization policy.

Every service consults this module before reading or writing a resource.
``AuthorizationPolicy.evaluate`` is a pure function of the caller's access
context, the action, and a reference to the target resource; it never
touches storage.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from campus_bites.exceptions import ForbiddenError, UnauthorizedError
from campus_bites.models.identity_models import Role, User
from campus_bites.models.restaurant_models import Restaurant

logger = logging.getLogger(__name__)


class Action(str, Enum):
    """Actions gated by the policy."""

    # Public
    LIST_RESTAURANTS = "list_restaurants"
    READ_RESTAURANT = "read_restaurant"
    READ_MENU = "read_menu"
    READ_MENU_ITEM = "read_menu_item"

    # Any authenticated identity
    READ_PROFILE = "read_profile"
    UPDATE_PROFILE = "update_profile"

    # Student
    CREATE_ORDER = "create_order"
    READ_OWN_ORDERS = "read_own_orders"
    READ_ORDER = "read_order"
    RATE_ORDER = "rate_order"
    RATE_RESTAURANT = "rate_restaurant"

    # Restaurant owner
    CREATE_MENU_ITEM = "create_menu_item"
    MANAGE_MENU_ITEM = "manage_menu_item"
    READ_OWN_MENU = "read_own_menu"
    READ_RESTAURANT_ORDERS = "read_restaurant_orders"
    UPDATE_ORDER_STATUS = "update_order_status"
    READ_OWN_RESTAURANT = "read_own_restaurant"
    UPDATE_RESTAURANT = "update_restaurant"
    TOGGLE_RESTAURANT_OPEN = "toggle_restaurant_open"
    READ_RESTAURANT_STATS = "read_restaurant_stats"

    # Admin
    APPROVE_RESTAURANT = "approve_restaurant"
    REJECT_RESTAURANT = "reject_restaurant"
    DELETE_RESTAURANT = "delete_restaurant"
    LIST_PENDING_RESTAURANTS = "list_pending_restaurants"
    READ_ALL_ORDERS = "read_all_orders"
    READ_PLATFORM_STATS = "read_platform_stats"


class DenyReason(str, Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    WRONG_ROLE = "wrong_role"
    NOT_OWNER = "not_owner"
    INVALID_STATE = "invalid_state"


@dataclass(frozen=True)
class AccessContext:
    """The caller of an operation.

    Attributes:
        identity: Authenticated identity, or None for anonymous callers
        restaurant: The identity's linked restaurant (restaurant role only)
    """

    identity: User | None = None
    restaurant: Restaurant | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def role(self) -> Role | None:
        return self.identity.role if self.identity else None

    @property
    def user_id(self) -> str | None:
        return self.identity.id if self.identity else None


@dataclass(frozen=True)
class ResourceRef:
    """What an action targets.

    Attributes:
        restaurant_id: Owning restaurant of the resource
        restaurant: Loaded owning restaurant, when state checks are needed
        purchaser_id: Purchasing identity, for order resources
    """

    restaurant_id: str | None = None
    restaurant: Restaurant | None = None
    purchaser_id: str | None = None

    @property
    def owning_restaurant_id(self) -> str | None:
        if self.restaurant_id is not None:
            return self.restaurant_id
        return self.restaurant.id if self.restaurant else None


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: DenyReason | None = None
    message: str = ""


ALLOW = Decision(allowed=True)

PUBLIC_ACTIONS = frozenset(
    {
        Action.LIST_RESTAURANTS,
        Action.READ_RESTAURANT,
        Action.READ_MENU,
        Action.READ_MENU_ITEM,
    }
)

_STUDENT = frozenset({Role.STUDENT})
_OWNER = frozenset({Role.RESTAURANT})
_OWNER_OR_ADMIN = frozenset({Role.RESTAURANT, Role.ADMIN})
_STUDENT_OR_ADMIN = frozenset({Role.STUDENT, Role.ADMIN})
_ADMIN = frozenset({Role.ADMIN})
_ANY = frozenset(Role)

ROLE_GRANTS: dict[Action, frozenset[Role]] = {
    Action.READ_PROFILE: _ANY,
    Action.UPDATE_PROFILE: _ANY,
    Action.CREATE_ORDER: _STUDENT,
    Action.READ_OWN_ORDERS: _STUDENT_OR_ADMIN,
    Action.READ_ORDER: _ANY,
    Action.RATE_ORDER: _STUDENT,
    Action.RATE_RESTAURANT: _STUDENT,
    Action.CREATE_MENU_ITEM: _OWNER_OR_ADMIN,
    Action.MANAGE_MENU_ITEM: _OWNER_OR_ADMIN,
    Action.READ_OWN_MENU: _OWNER,
    Action.READ_RESTAURANT_ORDERS: _OWNER_OR_ADMIN,
    Action.UPDATE_ORDER_STATUS: _OWNER_OR_ADMIN,
    Action.READ_OWN_RESTAURANT: _OWNER,
    Action.UPDATE_RESTAURANT: _OWNER_OR_ADMIN,
    Action.TOGGLE_RESTAURANT_OPEN: _OWNER_OR_ADMIN,
    Action.READ_RESTAURANT_STATS: _OWNER_OR_ADMIN,
    Action.APPROVE_RESTAURANT: _ADMIN,
    Action.REJECT_RESTAURANT: _ADMIN,
    Action.DELETE_RESTAURANT: _ADMIN,
    Action.LIST_PENDING_RESTAURANTS: _ADMIN,
    Action.READ_ALL_ORDERS: _ADMIN,
    Action.READ_PLATFORM_STATS: _ADMIN,
}

# Restaurant-role actions that compare the caller's restaurant with the target.
OWNERSHIP_ACTIONS = frozenset(
    {
        Action.CREATE_MENU_ITEM,
        Action.MANAGE_MENU_ITEM,
        Action.READ_RESTAURANT_ORDERS,
        Action.UPDATE_ORDER_STATUS,
        Action.UPDATE_RESTAURANT,
        Action.TOGGLE_RESTAURANT_OPEN,
        Action.READ_RESTAURANT_STATS,
    }
)


class AuthorizationPolicy:
    """Decides whether a caller may perform an action on a resource."""

    def evaluate(
        self,
        context: AccessContext,
        action: Action,
        resource: ResourceRef | None = None,
    ) -> Decision:
        """Evaluate an action.

        Args:
            context: The caller
            action: Action being attempted
            resource: Target resource, when the action has one

        Returns:
            Decision: allowed, or denied with a reason and message
        """
        resource = resource or ResourceRef()

        if action in PUBLIC_ACTIONS:
            return self._evaluate_public(action, resource)

        if context.identity is None:
            return Decision(False, DenyReason.NOT_AUTHENTICATED, "Not authorized - No token provided")

        role = context.identity.role
        if role not in ROLE_GRANTS.get(action, frozenset()):
            return Decision(
                False,
                DenyReason.WRONG_ROLE,
                f"User role '{role.value}' is not authorized to perform {action.value}",
            )

        if role == Role.RESTAURANT:
            decision = self._evaluate_linked_restaurant(context)
            if not decision.allowed:
                return decision

        if action == Action.CREATE_MENU_ITEM and resource.restaurant is not None:
            if not resource.restaurant.is_approved:
                return Decision(
                    False,
                    DenyReason.INVALID_STATE,
                    "Restaurant must be approved before adding menu items",
                )

        if action in OWNERSHIP_ACTIONS and role == Role.RESTAURANT:
            return self._evaluate_ownership(context, resource)

        if action == Action.READ_ORDER:
            return self._evaluate_order_read(context, resource)

        if action == Action.RATE_ORDER and resource.purchaser_id != context.identity.id:
            return Decision(False, DenyReason.NOT_OWNER, "You can only rate your own orders")

        return ALLOW

    def authorize(
        self,
        context: AccessContext,
        action: Action,
        resource: ResourceRef | None = None,
    ) -> None:
        """Evaluate an action and raise the matching error when denied.

        Raises:
            UnauthorizedError: Caller is not authenticated
            ForbiddenError: Wrong role, not the owner, or resource state forbids it
        """
        decision = self.evaluate(context, action, resource)
        if decision.allowed:
            return

        logger.warning(
            f"Denied {action.value} for user {context.user_id}: "
            f"{decision.reason.value if decision.reason else 'unknown'}"
        )
        if decision.reason == DenyReason.NOT_AUTHENTICATED:
            raise UnauthorizedError(decision.message)
        raise ForbiddenError(decision.message)

    def _evaluate_public(self, action: Action, resource: ResourceRef) -> Decision:
        if action == Action.READ_MENU and resource.restaurant is not None:
            if not resource.restaurant.is_open:
                return Decision(False, DenyReason.INVALID_STATE, "Restaurant is currently closed")
        return ALLOW

    def _evaluate_linked_restaurant(self, context: AccessContext) -> Decision:
        restaurant = context.restaurant
        if restaurant is None or context.identity.restaurant_id is None:
            return Decision(False, DenyReason.INVALID_STATE, "Restaurant not found for this user")
        if not restaurant.is_approved:
            return Decision(
                False,
                DenyReason.INVALID_STATE,
                f"Restaurant is {restaurant.approval_status.value}, not approved",
            )
        return ALLOW

    def _evaluate_ownership(self, context: AccessContext, resource: ResourceRef) -> Decision:
        target = resource.owning_restaurant_id
        if target is None or target != context.identity.restaurant_id:
            return Decision(False, DenyReason.NOT_OWNER, "Not authorized to access this restaurant")
        return ALLOW

    def _evaluate_order_read(self, context: AccessContext, resource: ResourceRef) -> Decision:
        identity = context.identity
        if identity.role == Role.ADMIN:
            return ALLOW
        if resource.purchaser_id is not None and resource.purchaser_id == identity.id:
            return ALLOW
        if (
            identity.role == Role.RESTAURANT
            and resource.owning_restaurant_id is not None
            and resource.owning_restaurant_id == identity.restaurant_id
        ):
            return ALLOW
        return Decision(False, DenyReason.NOT_OWNER, "Not authorized to view this order")
