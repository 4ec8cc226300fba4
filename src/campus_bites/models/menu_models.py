"""Menu (catalog) models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from campus_bites.models.fields import Money, parse_timestamp, utc_now

DEFAULT_ITEM_IMAGE = "https://via.placeholder.com/400x300?text=Food+Item"


class MenuCategory(str, Enum):
    """Fixed set of menu categories."""

    PIZZA = "Pizza"
    BURGER = "Burger"
    BIRYANI = "Biryani"
    PASTA = "Pasta"
    DESSERT = "Dessert"
    BEVERAGE = "Beverage"
    SALAD = "Salad"
    SANDWICH = "Sandwich"
    CHINESE = "Chinese"
    INDIAN = "Indian"
    CONTINENTAL = "Continental"
    OTHER = "Other"


class DietType(str, Enum):
    VEG = "veg"
    NON_VEG = "non-veg"


class MenuItem(BaseModel):
    """Menu item model.

    Stored in DynamoDB with ``id`` as partition key and a global secondary
    index on ``restaurant_id``.
    """

    id: str = Field(..., description="Unique identifier for the menu item")
    restaurant_id: str = Field(..., description="Restaurant this item belongs to")
    name: str = Field(..., description="Item name", min_length=1, max_length=100)
    description: str = Field(default="", description="Item description", max_length=300)
    price: Money = Field(..., description="Item price", ge=0)
    category: MenuCategory = Field(..., description="Menu category")
    type: DietType = Field(..., description="Veg or non-veg")
    image: str = Field(default=DEFAULT_ITEM_IMAGE, description="URL to item image")
    is_available: bool = Field(default=True, description="Whether item is currently available")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_dynamodb_item(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category.value,
            "type": self.type.value,
            "image": self.image,
            "is_available": self.is_available,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItem":
        return cls(
            id=item["id"],
            restaurant_id=item["restaurant_id"],
            name=item["name"],
            description=item.get("description", ""),
            price=Decimal(str(item["price"])),
            category=MenuCategory(item["category"]),
            type=DietType(item["type"]),
            image=item.get("image", DEFAULT_ITEM_IMAGE),
            is_available=bool(item.get("is_available", True)),
            created_at=parse_timestamp(item["created_at"]),
            updated_at=parse_timestamp(item["updated_at"]),
        )


class MenuItemCreateRequest(BaseModel):
    """Payload for creating a menu item.

    ``restaurant_id`` is only honoured for admins; restaurant owners always
    create items for their own restaurant.
    """

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(default="", max_length=300)
    price: Decimal = Field(..., ge=0)
    category: MenuCategory
    type: DietType
    image: str | None = None
    restaurant_id: str | None = None


class MenuItemUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=300)
    price: Decimal | None = Field(None, ge=0)
    category: MenuCategory | None = None
    type: DietType | None = None
    image: str | None = None
    is_available: bool | None = None
