"""Shared dependency factory for Lambda handlers.

Dependencies are created once per Lambda container and reused across
invocations.
"""

import logging
import os
from datetime import timedelta
from typing import Any

import boto3
from fastapi import FastAPI

from campus_bites.auth.credentials import TokenIssuer
from campus_bites.auth.policy import AuthorizationPolicy
from campus_bites.handlers.api_handler import create_app
from campus_bites.handlers.event_handler import MaintenanceEventHandler
from campus_bites.observability import configure_logging, setup_observability
from campus_bites.repositories.account_repositories import RestaurantRepository, UserRepository
from campus_bites.repositories.order_repositories import MenuItemRepository, OrderRepository
from campus_bites.services.auth_service import AuthService
from campus_bites.services.menu_service import MenuService
from campus_bites.services.order_service import OrderService
from campus_bites.services.restaurant_service import RestaurantService

logger = logging.getLogger(__name__)

# Module-level caches for Lambda container reuse
_dynamodb_resource: Any | None = None
_repositories: dict[str, Any] | None = None
_token_issuer: TokenIssuer | None = None
_auth_service: AuthService | None = None
_event_handler: MaintenanceEventHandler | None = None
_fastapi_app: FastAPI | None = None


def get_dynamodb_resource() -> Any:
    """Create or retrieve the cached DynamoDB resource."""
    global _dynamodb_resource

    if _dynamodb_resource is not None:
        return _dynamodb_resource

    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        _dynamodb_resource = boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )
    else:
        logger.info(f"Using AWS DynamoDB in region {region}")
        _dynamodb_resource = boto3.resource("dynamodb", region_name=region)

    return _dynamodb_resource


def get_repositories() -> dict[str, Any]:
    """Create or retrieve the cached repositories, keyed by table role."""
    global _repositories

    if _repositories is not None:
        return _repositories

    dynamodb_resource = get_dynamodb_resource()
    _repositories = {
        "users": UserRepository(
            dynamodb_resource, os.getenv("DYNAMODB_USERS_TABLE", "campus-bites-users")
        ),
        "restaurants": RestaurantRepository(
            dynamodb_resource, os.getenv("DYNAMODB_RESTAURANTS_TABLE", "campus-bites-restaurants")
        ),
        "menu_items": MenuItemRepository(
            dynamodb_resource, os.getenv("DYNAMODB_MENU_ITEMS_TABLE", "campus-bites-menu-items")
        ),
        "orders": OrderRepository(
            dynamodb_resource, os.getenv("DYNAMODB_ORDERS_TABLE", "campus-bites-orders")
        ),
    }

    logger.info("Repositories initialized")
    return _repositories


def get_token_issuer() -> TokenIssuer:
    """Create or retrieve the cached token issuer.

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    global _token_issuer

    if _token_issuer is not None:
        return _token_issuer

    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET must be set in environment")

    expires_days = int(os.getenv("JWT_EXPIRES_DAYS", "30"))
    _token_issuer = TokenIssuer(secret=secret, expires_in=timedelta(days=expires_days))
    return _token_issuer


def get_auth_service() -> AuthService:
    global _auth_service

    if _auth_service is not None:
        return _auth_service

    repositories = get_repositories()
    _auth_service = AuthService(
        user_repository=repositories["users"],
        restaurant_repository=repositories["restaurants"],
        token_issuer=get_token_issuer(),
    )

    logger.info("Auth service initialized")
    return _auth_service


def get_event_handler() -> MaintenanceEventHandler:
    """Create or retrieve the cached maintenance event handler."""
    global _event_handler

    if _event_handler is not None:
        return _event_handler

    _event_handler = MaintenanceEventHandler(auth_service=get_auth_service())

    logger.info("Event handler initialized")
    return _event_handler


def get_fastapi_app() -> FastAPI:
    """Create or retrieve the cached FastAPI application."""
    global _fastapi_app

    if _fastapi_app is not None:
        return _fastapi_app

    repositories = get_repositories()
    policy = AuthorizationPolicy()
    client_url = os.getenv("CLIENT_URL", "http://localhost:3000")

    _fastapi_app = create_app(
        auth_service=get_auth_service(),
        restaurant_service=RestaurantService(
            repositories["restaurants"], repositories["menu_items"], policy
        ),
        menu_service=MenuService(repositories["menu_items"], repositories["restaurants"], policy),
        order_service=OrderService(
            repositories["orders"],
            repositories["menu_items"],
            repositories["restaurants"],
            repositories["users"],
            policy,
        ),
        token_issuer=get_token_issuer(),
        user_repository=repositories["users"],
        restaurant_repository=repositories["restaurants"],
        cors_origins=[client_url],
    )

    logger.info("FastAPI application initialized")
    return _fastapi_app


def initialize_lambda_environment() -> None:
    """Initialize logging and observability.

    Should be called once during Lambda cold start.
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    setup_observability()

    logger.info("Lambda environment initialized")
