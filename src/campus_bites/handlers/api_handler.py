"""FastAPI application for the Campus Bites API."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from campus_bites.auth.credentials import TokenIssuer
from campus_bites.exceptions import CampusBitesError, InvalidTransitionError
from campus_bites.handlers.routes import auth_routes, menu_routes, order_routes, restaurant_routes
from campus_bites.repositories.account_repositories import RestaurantRepository, UserRepository
from campus_bites.services.auth_service import AuthService
from campus_bites.services.menu_service import MenuService
from campus_bites.services.order_service import OrderService
from campus_bites.services.restaurant_service import RestaurantService

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str


def _error_response(status_code: int, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message, **extra})


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain and validation errors onto the response envelope."""

    @app.exception_handler(CampusBitesError)
    async def handle_domain_error(_request: Request, exc: CampusBitesError) -> JSONResponse:
        if isinstance(exc, InvalidTransitionError):
            return _error_response(exc.status_code, exc.message, allowed_transitions=exc.allowed)
        if exc.status_code >= 500:
            logger.error(f"Request failed: {exc.message}")
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
        else:  # pragma: no cover
            message = "Invalid request"
        return _error_response(400, message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(_request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error: {exc}")
        return _error_response(500, "Internal server error")


def create_app(
    auth_service: AuthService,
    restaurant_service: RestaurantService,
    menu_service: MenuService,
    order_service: OrderService,
    token_issuer: TokenIssuer,
    user_repository: UserRepository,
    restaurant_repository: RestaurantRepository,
    cors_origins: list[str] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        auth_service: Registration, login, and profiles
        restaurant_service: Restaurant profiles and approval
        menu_service: Menu items
        order_service: Orders and dashboards
        token_issuer: Verifies bearer tokens on incoming requests
        user_repository: Identity lookup for request authentication
        restaurant_repository: Linked-restaurant lookup for request authentication
        cors_origins: Browser origins allowed to call the API

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Campus Bites API",
        description="Campus food ordering: restaurants, menus, orders, and dashboards",
        version="1.0.0",
    )

    app.state.auth_service = auth_service
    app.state.restaurant_service = restaurant_service
    app.state.menu_service = menu_service
    app.state.order_service = order_service
    app.state.token_issuer = token_issuer
    app.state.user_repository = user_repository
    app.state.restaurant_repository = restaurant_repository

    if cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check() -> HealthResponse:
        """Health check endpoint.

        Returns:
            Health status indicating service is running
        """
        return HealthResponse(status="healthy")

    app.include_router(auth_routes.router)
    app.include_router(restaurant_routes.router)
    app.include_router(menu_routes.router)
    app.include_router(order_routes.router)

    return app
