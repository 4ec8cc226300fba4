"""Identity service: registration, login, and profile management."""

import logging

from pydantic import ValidationError

from campus_bites.auth.credentials import TokenIssuer, hash_password, verify_password
from campus_bites.auth.policy import AccessContext, Action, AuthorizationPolicy
from campus_bites.exceptions import (
    DuplicateEmailError,
    ForbiddenError,
    InputValidationError,
    NotFoundError,
    StorageError,
    UnauthorizedError,
)
from campus_bites.models.fields import new_id, utc_now
from campus_bites.models.identity_models import (
    AuthResult,
    ProfileUpdateRequest,
    RegisterRequest,
    RestaurantDetails,
    Role,
    User,
    UserProfile,
)
from campus_bites.models.restaurant_models import (
    DEFAULT_LOGO,
    ApprovalStatus,
    Restaurant,
)
from campus_bites.observability.decorators import traced
from campus_bites.observability.metrics import record_registration_compensation
from campus_bites.repositories.account_repositories import RestaurantRepository, UserRepository

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"


class AuthService:
    """Service for identities and the two-step restaurant registration.

    Restaurant registration writes two documents (identity, then restaurant
    profile) without a transaction. When a later step fails the earlier
    writes are undone by ``_compensate_registration``.
    """

    def __init__(
        self,
        user_repository: UserRepository,
        restaurant_repository: RestaurantRepository,
        token_issuer: TokenIssuer,
        policy: AuthorizationPolicy | None = None,
    ) -> None:
        """Initialize the AuthService.

        Args:
            user_repository: Identity storage
            restaurant_repository: Restaurant profile storage
            token_issuer: Issues session tokens
            policy: Authorization policy (a default one is created if omitted)
        """
        self.user_repository = user_repository
        self.restaurant_repository = restaurant_repository
        self.token_issuer = token_issuer
        self.policy = policy or AuthorizationPolicy()

    @traced("auth.register")
    async def register(self, request: RegisterRequest) -> AuthResult:
        """Register a student or a restaurant owner.

        Raises:
            InputValidationError: Admin role requested, or restaurant details missing
            DuplicateEmailError: Email already taken
        """
        if request.role == Role.STUDENT:
            return await self.register_student(request.name, request.email, request.password)

        if request.role == Role.RESTAURANT:
            return await self.register_restaurant(
                request.name,
                request.email,
                request.password,
                request.restaurant or RestaurantDetails(),
            )

        raise InputValidationError("Admin accounts cannot be self-registered")

    async def register_student(self, name: str, email: str, password: str) -> AuthResult:
        """Create a student identity and issue a session token."""
        self._check_email_available(email)

        user = self._new_user(name, email, password, Role.STUDENT)
        if not self.user_repository.save_user(user):
            raise StorageError("Failed to create user")

        logger.info(f"Registered student {user.id}")
        return self._auth_result(user)

    async def register_restaurant(
        self,
        name: str,
        email: str,
        password: str,
        details: RestaurantDetails,
    ) -> AuthResult:
        """Create a restaurant owner and their pending restaurant profile.

        Every field is validated before the first write. Steps: identity (no
        restaurant link) -> restaurant profile (pending, owned by the
        identity) -> link the restaurant back onto the identity. A failure
        after the identity is written deletes whatever was written.

        Returns:
            AuthResult: The linked identity and a session token

        Raises:
            InputValidationError: A restaurant detail is missing
            DuplicateEmailError: Email already taken
            StorageError: A write failed (after compensation ran)
        """
        if details.missing_fields():
            raise InputValidationError(
                "Please provide all restaurant details including customer care number"
            )

        self._check_email_available(email)

        user = self._new_user(name, email, password, Role.RESTAURANT)
        try:
            restaurant = Restaurant(
                id=new_id("rst"),
                name=details.name,
                description=details.description,
                location=details.location,
                customer_care_number=details.customer_care_number,
                logo=details.logo or DEFAULT_LOGO,
                categories=list(details.categories),
                owner_id=user.id,
                approval_status=ApprovalStatus.PENDING,
            )
        except ValidationError as e:
            raise InputValidationError(f"Restaurant creation failed: {e.errors()[0]['msg']}") from e

        if not self.user_repository.save_user(user):
            raise StorageError("Failed to create user")

        if not self.restaurant_repository.save_restaurant(restaurant):
            self._compensate_registration(user.id, restaurant.id)
            raise StorageError("Restaurant creation failed: could not save restaurant profile")

        linked = user.model_copy(update={"restaurant_id": restaurant.id, "updated_at": utc_now()})
        if not self.user_repository.save_user(linked):
            self._compensate_registration(user.id, restaurant.id)
            raise StorageError("Restaurant creation failed: could not link restaurant to user")

        logger.info(f"Registered restaurant {restaurant.id} for owner {user.id} (pending approval)")
        return self._auth_result(linked)

    def _compensate_registration(self, user_id: str, restaurant_id: str | None) -> None:
        """Undo a partial restaurant registration.

        Deletes are idempotent, so running this twice (or for a restaurant
        that was never written) is harmless.
        """
        if restaurant_id is not None:
            self.restaurant_repository.delete_restaurant(restaurant_id)
            record_registration_compensation("restaurant")
        self.user_repository.delete_user(user_id)
        record_registration_compensation("user")
        logger.info(f"Compensated partial registration of user {user_id}")

    @traced("auth.login")
    async def login(self, email: str, password: str) -> AuthResult:
        """Authenticate an identity.

        Raises:
            UnauthorizedError: Unknown email or wrong password
            ForbiddenError: Restaurant owner whose restaurant is missing, pending, or rejected
        """
        user = self.user_repository.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Rejected login attempt with invalid credentials")
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if user.role == Role.RESTAURANT:
            restaurant = (
                self.restaurant_repository.get_restaurant(user.restaurant_id)
                if user.restaurant_id
                else None
            )
            if restaurant is None:
                raise ForbiddenError("Restaurant profile not found")
            if restaurant.approval_status == ApprovalStatus.PENDING:
                raise ForbiddenError("Restaurant registration is pending admin approval")
            if restaurant.approval_status == ApprovalStatus.REJECTED:
                raise ForbiddenError("Restaurant registration was rejected")

        logger.info(f"User {user.id} logged in")
        return self._auth_result(user)

    async def get_profile(self, context: AccessContext) -> tuple[UserProfile, Restaurant | None]:
        """Return the caller's identity and, for owners, their restaurant."""
        self.policy.authorize(context, Action.READ_PROFILE)
        return UserProfile.from_user(context.identity), context.restaurant

    @traced("auth.update_profile")
    async def update_profile(self, context: AccessContext, update: ProfileUpdateRequest) -> AuthResult:
        """Update name, email, or password and issue a fresh token.

        Raises:
            DuplicateEmailError: The new email belongs to another identity
            NotFoundError: The identity no longer exists
        """
        self.policy.authorize(context, Action.UPDATE_PROFILE)

        user = self.user_repository.get_user(context.identity.id)
        if user is None:
            raise NotFoundError("User not found")

        changes: dict[str, object] = {}
        if update.name is not None:
            changes["name"] = update.name
        if update.email is not None and update.email.lower() != user.email:
            existing = self.user_repository.get_user_by_email(update.email)
            if existing is not None and existing.id != user.id:
                raise DuplicateEmailError("Email already in use")
            changes["email"] = update.email.lower()
        if update.password is not None:
            changes["password_hash"] = hash_password(update.password)

        if changes:
            changes["updated_at"] = utc_now()
            user = user.model_copy(update=changes)
            if not self.user_repository.save_user(user):
                raise StorageError("Failed to update profile")
            logger.info(f"Updated profile of user {user.id}: {', '.join(sorted(changes))}")

        return self._auth_result(user)

    async def ensure_admin(self, name: str, email: str, password: str) -> tuple[User, bool]:
        """Create an admin identity unless the email is already registered.

        Returns:
            tuple: (identity with this email, whether it was created now)
        """
        existing = self.user_repository.get_user_by_email(email)
        if existing is not None:
            logger.info(f"Admin bootstrap skipped, {existing.email} already exists as {existing.role.value}")
            return existing, False

        admin = self._new_user(name, email, password, Role.ADMIN)
        if not self.user_repository.save_user(admin):
            raise StorageError("Failed to create admin")

        logger.info(f"Created admin {admin.id}")
        return admin, True

    @traced("auth.cleanup_orphaned_accounts")
    async def cleanup_orphaned_accounts(self) -> int:
        """Delete restaurant-role identities that never got linked to a restaurant.

        A restaurant written for the identity before the link failed is
        deleted first.

        Returns:
            int: Number of identities removed
        """
        orphans = self.user_repository.list_orphaned_restaurant_users()
        removed = 0
        for user in orphans:
            stray = self.restaurant_repository.get_restaurant_by_owner(user.id)
            if stray is not None and not self.restaurant_repository.delete_restaurant(stray.id):
                logger.warning(f"Kept orphaned account {user.id}, failed to delete restaurant {stray.id}")
                continue

            if self.user_repository.delete_user(user.id):
                removed += 1
                logger.info(f"Removed orphaned restaurant account {user.id}")

        logger.info(f"Orphaned account cleanup removed {removed} of {len(orphans)} accounts")
        return removed

    def _check_email_available(self, email: str) -> None:
        if self.user_repository.get_user_by_email(email) is not None:
            raise DuplicateEmailError()

    def _new_user(self, name: str, email: str, password: str, role: Role) -> User:
        if not name or not email or not password:
            raise InputValidationError("Please provide all required fields")
        return User(
            id=new_id("usr"),
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
        )

    def _auth_result(self, user: User) -> AuthResult:
        return AuthResult(user=UserProfile.from_user(user), token=self.token_issuer.issue(user.id))
