"""Restaurant profile models."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from campus_bites.models.fields import Money, parse_timestamp, round_rating, utc_now

DEFAULT_LOGO = "https://via.placeholder.com/200x200?text=Restaurant+Logo"


class ApprovalStatus(str, Enum):
    """Admin-controlled gate on whether a restaurant may transact."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RestaurantRating(BaseModel):
    """A single rating left for a restaurant."""

    user_id: str
    rating: int = Field(..., ge=1, le=5)
    created_at: datetime = Field(default_factory=utc_now)


class Restaurant(BaseModel):
    """Restaurant profile record.

    Stored in DynamoDB with ``id`` as partition key and global secondary
    indexes on ``owner_id`` and ``approval_status``.
    """

    id: str = Field(..., description="Restaurant identifier")
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=500)
    location: str = Field(..., min_length=1)
    customer_care_number: str = Field(..., min_length=1)
    logo: str = Field(default=DEFAULT_LOGO)
    owner_id: str = Field(..., description="Owning identity")
    categories: list[str] = Field(default_factory=list)
    rating: Money = Field(default=Decimal("0"), ge=0, le=5)
    total_ratings: int = Field(default=0, ge=0)
    ratings: list[RestaurantRating] = Field(default_factory=list)
    approval_status: ApprovalStatus = Field(default=ApprovalStatus.PENDING)
    is_open: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.APPROVED

    def with_rating(self, user_id: str, rating: int, replace_existing: bool = False) -> "Restaurant":
        """Return a copy with a rating recorded and the average recomputed.

        Args:
            user_id: Identity leaving the rating
            rating: Integer rating 1-5
            replace_existing: Overwrite this user's earlier rating instead of appending

        Returns:
            Restaurant: Updated copy; the original is left untouched
        """
        ratings = list(self.ratings)
        entry = RestaurantRating(user_id=user_id, rating=rating, created_at=utc_now())

        existing_index = next(
            (i for i, r in enumerate(ratings) if r.user_id == user_id), None
        )
        if replace_existing and existing_index is not None:
            ratings[existing_index] = entry
        else:
            ratings.append(entry)

        average, count = calculate_average_rating(ratings)
        return self.model_copy(
            update={
                "ratings": ratings,
                "rating": average,
                "total_ratings": count,
                "updated_at": utc_now(),
            }
        )

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "customer_care_number": self.customer_care_number,
            "logo": self.logo,
            "owner_id": self.owner_id,
            "categories": list(self.categories),
            "rating": self.rating,
            "total_ratings": self.total_ratings,
            "ratings": [
                {
                    "user_id": r.user_id,
                    "rating": r.rating,
                    "created_at": r.created_at.isoformat(),
                }
                for r in self.ratings
            ],
            "approval_status": self.approval_status.value,
            "is_open": self.is_open,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "Restaurant":
        """Create Restaurant from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            Restaurant: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["id"],
            "name": item["name"],
            "description": item["description"],
            "location": item["location"],
            "customer_care_number": item["customer_care_number"],
            "owner_id": item["owner_id"],
            "categories": list(item.get("categories", [])),
            "rating": Decimal(str(item.get("rating", "0"))),
            "total_ratings": int(item.get("total_ratings", 0)),
            "ratings": [
                RestaurantRating(
                    user_id=r["user_id"],
                    rating=int(r["rating"]),
                    created_at=parse_timestamp(r["created_at"]),
                )
                for r in item.get("ratings", [])
            ],
            "approval_status": ApprovalStatus(item["approval_status"]),
            "is_open": bool(item.get("is_open", True)),
            "created_at": parse_timestamp(item["created_at"]),
            "updated_at": parse_timestamp(item["updated_at"]),
        }

        if "logo" in item:
            data["logo"] = item["logo"]

        return cls(**data)


def calculate_average_rating(ratings: list[RestaurantRating]) -> tuple[Decimal, int]:
    """Compute the rounded mean and count of a list of ratings.

    Returns:
        tuple: (average rounded half-up to one decimal, number of ratings)
    """
    if not ratings:
        return Decimal("0"), 0

    total = sum(Decimal(r.rating) for r in ratings)
    return round_rating(total / len(ratings)), len(ratings)


class RestaurantSummary(BaseModel):
    """Subset of a restaurant embedded in order views."""

    id: str
    name: str
    location: str
    logo: str

    @classmethod
    def from_restaurant(cls, restaurant: Restaurant) -> "RestaurantSummary":
        return cls(
            id=restaurant.id,
            name=restaurant.name,
            location=restaurant.location,
            logo=restaurant.logo,
        )


class RestaurantPublic(BaseModel):
    """Restaurant as shown to clients (individual ratings are not exposed)."""

    id: str
    name: str
    description: str
    location: str
    customer_care_number: str
    logo: str
    owner_id: str
    categories: list[str]
    rating: Money
    total_ratings: int
    approval_status: ApprovalStatus
    is_open: bool
    created_at: datetime

    @classmethod
    def from_restaurant(cls, restaurant: Restaurant) -> "RestaurantPublic":
        return cls(**restaurant.model_dump(exclude={"ratings", "updated_at"}))


class RestaurantUpdateRequest(BaseModel):
    """Editable restaurant profile fields."""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, min_length=1, max_length=500)
    location: str | None = Field(None, min_length=1)
    customer_care_number: str | None = Field(None, min_length=1)
    logo: str | None = None
    categories: list[str] | None = None
    is_open: bool | None = None


class RatingRequest(BaseModel):
    """Rating payload; range checks happen in the services."""

    rating: int
    review: str | None = Field(None, max_length=500)
