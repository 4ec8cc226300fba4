"""Main application entry point for the Campus Bites API.

Builds the FastAPI application with its repositories and services for
running locally under uvicorn or in a container.
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
from campus_bites.observability import configure_logging, setup_observability
from campus_bites.repositories.account_repositories import RestaurantRepository, UserRepository
from campus_bites.repositories.order_repositories import MenuItemRepository, OrderRepository
from campus_bites.services.auth_service import AuthService
from campus_bites.services.menu_service import MenuService
from campus_bites.services.order_service import OrderService
from campus_bites.services.restaurant_service import RestaurantService

logger = logging.getLogger(__name__)


def get_dynamodb_resource() -> Any:
    """Create DynamoDB resource with appropriate configuration.

    Returns:
        Boto3 DynamoDB resource configured for environment
    """
    endpoint_url = os.getenv("DYNAMODB_ENDPOINT")
    region = os.getenv("AWS_REGION", "us-east-1")

    if endpoint_url:
        logger.info(f"Using local DynamoDB at {endpoint_url}")
        return boto3.resource(
            "dynamodb",
            endpoint_url=endpoint_url,
            region_name=region,
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
        )

    logger.info(f"Using AWS DynamoDB in region {region}")
    # Default credential chain (IAM role, env vars, profile)
    return boto3.resource("dynamodb", region_name=region)


def create_token_issuer() -> TokenIssuer:
    """Build the session token issuer from JWT_SECRET / JWT_EXPIRES_DAYS.

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET must be set in environment")

    expires_days = int(os.getenv("JWT_EXPIRES_DAYS", "30"))
    return TokenIssuer(secret=secret, expires_in=timedelta(days=expires_days))


def create_application() -> FastAPI:
    """Create and configure the FastAPI application with all dependencies.

    Returns:
        Configured FastAPI application instance
    """
    configure_logging(os.getenv("LOG_LEVEL", "INFO"))

    logger.info("Initializing Campus Bites API...")

    dynamodb_resource = get_dynamodb_resource()

    users_table = os.getenv("DYNAMODB_USERS_TABLE", "campus-bites-users")
    restaurants_table = os.getenv("DYNAMODB_RESTAURANTS_TABLE", "campus-bites-restaurants")
    menu_items_table = os.getenv("DYNAMODB_MENU_ITEMS_TABLE", "campus-bites-menu-items")
    orders_table = os.getenv("DYNAMODB_ORDERS_TABLE", "campus-bites-orders")

    user_repository = UserRepository(dynamodb_resource=dynamodb_resource, table_name=users_table)
    restaurant_repository = RestaurantRepository(
        dynamodb_resource=dynamodb_resource, table_name=restaurants_table
    )
    menu_item_repository = MenuItemRepository(
        dynamodb_resource=dynamodb_resource, table_name=menu_items_table
    )
    order_repository = OrderRepository(dynamodb_resource=dynamodb_resource, table_name=orders_table)

    logger.info(
        f"Repositories configured - users: {users_table}, restaurants: {restaurants_table}, "
        f"menu items: {menu_items_table}, orders: {orders_table}"
    )

    token_issuer = create_token_issuer()
    policy = AuthorizationPolicy()

    auth_service = AuthService(
        user_repository=user_repository,
        restaurant_repository=restaurant_repository,
        token_issuer=token_issuer,
        policy=policy,
    )
    restaurant_service = RestaurantService(
        restaurant_repository=restaurant_repository,
        menu_item_repository=menu_item_repository,
        policy=policy,
    )
    menu_service = MenuService(
        menu_item_repository=menu_item_repository,
        restaurant_repository=restaurant_repository,
        policy=policy,
    )
    order_service = OrderService(
        order_repository=order_repository,
        menu_item_repository=menu_item_repository,
        restaurant_repository=restaurant_repository,
        user_repository=user_repository,
        policy=policy,
    )

    logger.info("Services initialized")

    app = create_app(
        auth_service=auth_service,
        restaurant_service=restaurant_service,
        menu_service=menu_service,
        order_service=order_service,
        token_issuer=token_issuer,
        user_repository=user_repository,
        restaurant_repository=restaurant_repository,
        cors_origins=[os.getenv("CLIENT_URL", "http://localhost:3000")],
    )

    setup_observability(app)

    logger.info("Campus Bites API initialized successfully")
    return app


# Only build the real application outside of test runs, so importing this
# module during test collection has no side effects.
if os.getenv("ENVIRONMENT") != "test":  # noqa: SIM108
    app = create_application()
else:
    app = FastAPI()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "5000"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting development server on {host}:{port}")
    logger.info(f"API documentation available at http://{host}:{port}/docs")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=True,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
