"""Menu routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from campus_bites.auth.api_dependencies import get_access_context, get_optional_access_context
from campus_bites.auth.policy import AccessContext
from campus_bites.handlers.responses import ApiResponse, get_menu_service, respond
from campus_bites.models.menu_models import (
    DietType,
    MenuCategory,
    MenuItemCreateRequest,
    MenuItemUpdateRequest,
)
from campus_bites.services.menu_service import MenuService

router = APIRouter(prefix="/api/menu", tags=["Menu"])

Service = Annotated[MenuService, Depends(get_menu_service)]
Caller = Annotated[AccessContext, Depends(get_access_context)]
OptionalCaller = Annotated[AccessContext, Depends(get_optional_access_context)]


@router.get("/restaurant/{restaurant_id}", response_model=ApiResponse)
async def get_menu(
    restaurant_id: str,
    context: OptionalCaller,
    service: Service,
    category: MenuCategory | None = None,
    diet_type: Annotated[DietType | None, Query(alias="type")] = None,
    search: str | None = None,
) -> ApiResponse:
    """Menu of an open restaurant, sorted by category then name."""
    items = await service.get_menu(
        context, restaurant_id, category=category, diet_type=diet_type, search=search
    )
    return respond(items)


@router.get("/my/items", response_model=ApiResponse)
async def list_my_items(context: Caller, service: Service) -> ApiResponse:
    return respond(await service.list_my_items(context))


@router.get("/{item_id}", response_model=ApiResponse)
async def get_item(item_id: str, context: OptionalCaller, service: Service) -> ApiResponse:
    return respond(await service.get_item(context, item_id))


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_item(payload: MenuItemCreateRequest, context: Caller, service: Service) -> ApiResponse:
    item = await service.create_item(context, payload)
    return respond(item, "Menu item created successfully")


@router.put("/{item_id}", response_model=ApiResponse)
async def update_item(
    item_id: str,
    payload: MenuItemUpdateRequest,
    context: Caller,
    service: Service,
) -> ApiResponse:
    item = await service.update_item(context, item_id, payload)
    return respond(item, "Menu item updated successfully")


@router.delete("/{item_id}", response_model=ApiResponse)
async def delete_item(item_id: str, context: Caller, service: Service) -> ApiResponse:
    await service.delete_item(context, item_id)
    return respond(message="Menu item deleted successfully")


@router.patch("/{item_id}/availability", response_model=ApiResponse)
async def toggle_availability(item_id: str, context: Caller, service: Service) -> ApiResponse:
    item = await service.toggle_availability(context, item_id)
    state = "available" if item.is_available else "unavailable"
    return respond(item, f"Menu item is now {state}")
