"""Authentication and profile routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from campus_bites.auth.api_dependencies import get_access_context
from campus_bites.auth.policy import AccessContext
from campus_bites.handlers.responses import ApiResponse, get_auth_service, respond
from campus_bites.models.identity_models import (
    LoginRequest,
    ProfileUpdateRequest,
    RegisterRequest,
    Role,
)
from campus_bites.models.restaurant_models import RestaurantPublic
from campus_bites.services.auth_service import AuthService

router = APIRouter(prefix="/api/auth", tags=["Auth"])

Service = Annotated[AuthService, Depends(get_auth_service)]
Caller = Annotated[AccessContext, Depends(get_access_context)]


@router.post("/register", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, service: Service) -> ApiResponse:
    """Register a student or a restaurant owner (with a pending restaurant)."""
    result = await service.register(payload)
    message = (
        "Restaurant registered successfully. Awaiting admin approval."
        if payload.role == Role.RESTAURANT
        else "User registered successfully"
    )
    return respond(result, message)


@router.post("/login", response_model=ApiResponse)
async def login(payload: LoginRequest, service: Service) -> ApiResponse:
    result = await service.login(payload.email, payload.password)
    return respond(result, "Login successful")


@router.get("/me", response_model=ApiResponse)
async def get_me(context: Caller, service: Service) -> ApiResponse:
    """Return the caller's profile; restaurant owners also get their restaurant."""
    profile, restaurant = await service.get_profile(context)
    data = profile.model_dump(mode="json")
    data["restaurant"] = (
        RestaurantPublic.from_restaurant(restaurant).model_dump(mode="json") if restaurant else None
    )
    return respond(data)


@router.put("/profile", response_model=ApiResponse)
async def update_profile(payload: ProfileUpdateRequest, context: Caller, service: Service) -> ApiResponse:
    result = await service.update_profile(context, payload)
    return respond(result, "Profile updated successfully")
