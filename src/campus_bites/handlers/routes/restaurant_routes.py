"""Restaurant routes: public discovery, owner profile, admin approval."""

from typing import Annotated

from fastapi import APIRouter, Body, Depends

from campus_bites.auth.api_dependencies import get_access_context, get_optional_access_context
from campus_bites.auth.policy import AccessContext
from campus_bites.handlers.responses import ApiResponse, get_restaurant_service, respond
from campus_bites.models.restaurant_models import (
    RatingRequest,
    RestaurantPublic,
    RestaurantUpdateRequest,
)
from campus_bites.services.restaurant_service import RestaurantService

router = APIRouter(prefix="/api/restaurants", tags=["Restaurants"])

Service = Annotated[RestaurantService, Depends(get_restaurant_service)]
Caller = Annotated[AccessContext, Depends(get_access_context)]
OptionalCaller = Annotated[AccessContext, Depends(get_optional_access_context)]


@router.get("", response_model=ApiResponse)
async def list_restaurants(
    context: OptionalCaller,
    service: Service,
    search: str | None = None,
    location: str | None = None,
    category: str | None = None,
) -> ApiResponse:
    """List approved restaurants, best rated first."""
    restaurants = await service.list_restaurants(
        context, search=search, location=location, category=category
    )
    return respond([RestaurantPublic.from_restaurant(r) for r in restaurants])


# Fixed paths are registered before /{restaurant_id} so they are not shadowed.
@router.get("/my/profile", response_model=ApiResponse)
async def get_my_restaurant(context: Caller, service: Service) -> ApiResponse:
    restaurant = await service.get_my_restaurant(context)
    return respond(RestaurantPublic.from_restaurant(restaurant))


@router.get("/admin/pending", response_model=ApiResponse)
async def list_pending(context: Caller, service: Service) -> ApiResponse:
    restaurants = await service.list_pending(context)
    return respond([RestaurantPublic.from_restaurant(r) for r in restaurants])


@router.get("/{restaurant_id}", response_model=ApiResponse)
async def get_restaurant(restaurant_id: str, context: OptionalCaller, service: Service) -> ApiResponse:
    restaurant = await service.get_restaurant(context, restaurant_id)
    return respond(RestaurantPublic.from_restaurant(restaurant))


@router.put("/{restaurant_id}", response_model=ApiResponse)
async def update_restaurant(
    restaurant_id: str,
    payload: RestaurantUpdateRequest,
    context: Caller,
    service: Service,
) -> ApiResponse:
    restaurant = await service.update_restaurant(context, restaurant_id, payload)
    return respond(RestaurantPublic.from_restaurant(restaurant), "Restaurant updated successfully")


@router.patch("/{restaurant_id}/open", response_model=ApiResponse)
async def set_open(
    restaurant_id: str,
    context: Caller,
    service: Service,
    is_open: Annotated[bool | None, Body(embed=True)] = None,
) -> ApiResponse:
    """Open or close a restaurant; without a body the flag is flipped."""
    restaurant = await service.set_open(context, restaurant_id, is_open)
    state = "open" if restaurant.is_open else "closed"
    return respond(RestaurantPublic.from_restaurant(restaurant), f"Restaurant is now {state}")


@router.delete("/{restaurant_id}", response_model=ApiResponse)
async def delete_restaurant(restaurant_id: str, context: Caller, service: Service) -> ApiResponse:
    await service.delete_restaurant(context, restaurant_id)
    return respond(message="Restaurant and associated menu items deleted successfully")


@router.put("/{restaurant_id}/approve", response_model=ApiResponse)
async def approve_restaurant(restaurant_id: str, context: Caller, service: Service) -> ApiResponse:
    restaurant = await service.approve_restaurant(context, restaurant_id)
    return respond(RestaurantPublic.from_restaurant(restaurant), "Restaurant approved successfully")


@router.put("/{restaurant_id}/reject", response_model=ApiResponse)
async def reject_restaurant(restaurant_id: str, context: Caller, service: Service) -> ApiResponse:
    restaurant = await service.reject_restaurant(context, restaurant_id)
    return respond(RestaurantPublic.from_restaurant(restaurant), "Restaurant rejected")


@router.post("/{restaurant_id}/rate", response_model=ApiResponse)
async def rate_restaurant(
    restaurant_id: str,
    payload: RatingRequest,
    context: Caller,
    service: Service,
) -> ApiResponse:
    restaurant = await service.rate_restaurant(context, restaurant_id, payload.rating)
    return respond(
        {"rating": restaurant.rating, "total_ratings": restaurant.total_ratings},
        "Rating submitted successfully",
    )
