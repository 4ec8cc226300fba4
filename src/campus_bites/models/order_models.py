"""Order models.

Line items are snapshots taken at order time, so later menu edits never
change historical orders. ``OrderView`` is the joined read shape; the stored
``Order`` record never carries nested documents.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from campus_bites.models.fields import Money, parse_timestamp, utc_now
from campus_bites.models.identity_models import UserSummary
from campus_bites.models.restaurant_models import RestaurantSummary


class OrderStatus(str, Enum):
    """Enumeration of order lifecycle states."""

    PLACED = "Placed"
    PREPARING = "Preparing"
    READY = "Ready"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class PaymentMethod(str, Enum):
    UPI = "UPI"
    CASH = "Cash"
    CARD = "Card"


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"
    FAILED = "Failed"


class OrderLineItem(BaseModel):
    """Snapshot of a menu item at order time."""

    menu_item_id: str
    name: str
    price: Money = Field(..., ge=0)
    quantity: int = Field(..., ge=1)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class StatusHistoryEntry(BaseModel):
    status: OrderStatus
    timestamp: datetime


class Order(BaseModel):
    """Stored order record.

    Stored in DynamoDB with ``id`` as partition key and global secondary
    indexes on ``user_id`` and ``restaurant_id``.
    """

    id: str = Field(..., description="Order identifier")
    user_id: str = Field(..., description="Purchasing identity")
    restaurant_id: str = Field(..., description="Restaurant the order was placed with")
    items: list[OrderLineItem] = Field(..., min_length=1)
    total_amount: Money = Field(..., ge=0, description="Fixed at creation")
    status: OrderStatus = Field(default=OrderStatus.PLACED)
    payment_method: PaymentMethod
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING)
    status_history: list[StatusHistoryEntry] = Field(default_factory=list)
    rating: int | None = Field(None, ge=1, le=5)
    review: str | None = Field(None, max_length=500)
    rated_at: datetime | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_rated(self) -> bool:
        return self.rating is not None

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "user_id": self.user_id,
            "restaurant_id": self.restaurant_id,
            "items": [
                {
                    "menu_item_id": line.menu_item_id,
                    "name": line.name,
                    "price": line.price,
                    "quantity": line.quantity,
                }
                for line in self.items
            ],
            "total_amount": self.total_amount,
            "status": self.status.value,
            "payment_method": self.payment_method.value,
            "payment_status": self.payment_status.value,
            "status_history": [
                {"status": entry.status.value, "timestamp": entry.timestamp.isoformat()}
                for entry in self.status_history
            ],
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        if self.rating is not None:
            item["rating"] = self.rating

        if self.review is not None:
            item["review"] = self.review

        if self.rated_at is not None:
            item["rated_at"] = self.rated_at.isoformat()

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Order":
        """Create Order from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Order: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["id"],
            "user_id": item["user_id"],
            "restaurant_id": item["restaurant_id"],
            "items": [
                OrderLineItem(
                    menu_item_id=line["menu_item_id"],
                    name=line["name"],
                    price=Decimal(str(line["price"])),
                    quantity=int(line["quantity"]),
                )
                for line in item["items"]
            ],
            "total_amount": Decimal(str(item["total_amount"])),
            "status": OrderStatus(item["status"]),
            "payment_method": PaymentMethod(item["payment_method"]),
            "payment_status": PaymentStatus(item.get("payment_status", "Pending")),
            "status_history": [
                StatusHistoryEntry(
                    status=OrderStatus(entry["status"]),
                    timestamp=parse_timestamp(entry["timestamp"]),
                )
                for entry in item.get("status_history", [])
            ],
            "created_at": parse_timestamp(item["created_at"]),
            "updated_at": parse_timestamp(item["updated_at"]),
        }

        if "rating" in item:
            data["rating"] = int(item["rating"])

        if "review" in item:
            data["review"] = item["review"]

        if "rated_at" in item:
            data["rated_at"] = parse_timestamp(item["rated_at"])

        return cls(**data)


class OrderView(Order):
    """Order joined with its purchaser and restaurant summaries."""

    user: UserSummary | None = None
    restaurant: RestaurantSummary | None = None


class OrderItemRequest(BaseModel):
    menu_item_id: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)


class CreateOrderRequest(BaseModel):
    restaurant_id: str = Field(..., min_length=1)
    items: list[OrderItemRequest]
    payment_method: PaymentMethod


class StatusUpdateRequest(BaseModel):
    status: OrderStatus
