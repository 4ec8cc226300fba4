"""FastAPI dependencies for resolving the caller of a request.

The bearer token is verified, the identity is loaded, and for restaurant
owners the linked restaurant is fetched so the authorization policy can
check its approval state.
"""

from typing import Annotated

from fastapi import Header, Request

from campus_bites.auth.credentials import TokenIssuer
from campus_bites.auth.policy import AccessContext
from campus_bites.exceptions import UnauthorizedError
from campus_bites.models.identity_models import Role
from campus_bites.repositories.account_repositories import RestaurantRepository, UserRepository


def extract_bearer_token(authorization: str | None) -> str | None:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def resolve_access_context(
    authorization: str | None,
    token_issuer: TokenIssuer,
    user_repository: UserRepository,
    restaurant_repository: RestaurantRepository,
    required: bool = True,
) -> AccessContext:
    """Build the access context for a request.

    Args:
        authorization: Raw Authorization header value
        token_issuer: Verifies session tokens
        user_repository: Identity lookup
        restaurant_repository: Linked restaurant lookup
        required: Raise when no token is supplied; otherwise return an anonymous context

    Returns:
        AccessContext: The caller

    Raises:
        UnauthorizedError: Token missing (when required), invalid, expired, or for an unknown user
    """
    token = extract_bearer_token(authorization)
    if token is None:
        if required:
            raise UnauthorizedError("Not authorized - No token provided")
        return AccessContext()

    user_id = token_issuer.verify(token)
    if user_id is None:
        raise UnauthorizedError("Not authorized - Token invalid or expired")

    user = user_repository.get_user(user_id)
    if user is None:
        raise UnauthorizedError("User not found - Token invalid")

    restaurant = None
    if user.role == Role.RESTAURANT and user.restaurant_id:
        restaurant = restaurant_repository.get_restaurant(user.restaurant_id)

    return AccessContext(identity=user, restaurant=restaurant)


def get_access_context(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> AccessContext:
    """FastAPI dependency for routes that require an authenticated caller."""
    state = request.app.state
    return resolve_access_context(
        authorization=authorization,
        token_issuer=state.token_issuer,
        user_repository=state.user_repository,
        restaurant_repository=state.restaurant_repository,
    )


def get_optional_access_context(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> AccessContext:
    """FastAPI dependency for public routes; anonymous callers are allowed."""
    state = request.app.state
    return resolve_access_context(
        authorization=authorization,
        token_issuer=state.token_issuer,
        user_repository=state.user_repository,
        restaurant_repository=state.restaurant_repository,
        required=False,
    )
