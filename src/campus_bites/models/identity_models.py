"""Identity models.

An identity is an account with exactly one role. Restaurant-role identities
link to the single restaurant profile they own.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, EmailStr, Field, field_validator

from campus_bites.models.fields import Password, parse_timestamp, utc_now


class Role(str, Enum):
    """Enumeration of identity roles."""

    STUDENT = "student"
    RESTAURANT = "restaurant"
    ADMIN = "admin"


class User(BaseModel):
    """Stored identity record.

    Stored in DynamoDB with ``id`` as partition key and a global secondary
    index on ``email``.
    """

    id: str = Field(..., description="Identity identifier")
    name: str = Field(..., description="Display name", min_length=1, max_length=50)
    email: str = Field(..., description="Unique, lower-cased email address")
    password_hash: str = Field(..., description="bcrypt hash of the password")
    role: Role = Field(default=Role.STUDENT, description="Account role")
    restaurant_id: str | None = Field(None, description="Owned restaurant (restaurant role only)")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        """Emails are unique case-insensitively, so store them lower-cased."""
        return v.strip().lower()

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "password_hash": self.password_hash,
            "role": self.role.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

        if self.restaurant_id is not None:
            item["restaurant_id"] = self.restaurant_id

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "User":
        """Create User from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            User: Parsed model instance
        """
        return cls(
            id=item["id"],
            name=item["name"],
            email=item["email"],
            password_hash=item["password_hash"],
            role=Role(item["role"]),
            restaurant_id=item.get("restaurant_id"),
            created_at=parse_timestamp(item["created_at"]),
            updated_at=parse_timestamp(item["updated_at"]),
        )


class UserSummary(BaseModel):
    """Public subset of an identity embedded in read views."""

    id: str
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(id=user.id, name=user.name, email=user.email)


class UserProfile(BaseModel):
    """Identity as returned to its owner (never includes the password hash)."""

    id: str
    name: str
    email: str
    role: Role
    restaurant_id: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            restaurant_id=user.restaurant_id,
        )


class RestaurantDetails(BaseModel):
    """Restaurant fields supplied during restaurant registration.

    Fields are optional here so that the registration service can report
    every missing detail with a single domain error.
    """

    name: str | None = None
    description: str | None = None
    location: str | None = None
    customer_care_number: str | None = None
    logo: str | None = None
    categories: list[str] = Field(default_factory=list)

    def missing_fields(self) -> list[str]:
        required = ("name", "description", "location", "customer_care_number")
        return [field for field in required if not (getattr(self, field) or "").strip()]


class RegisterRequest(BaseModel):
    """Registration payload for students and restaurant owners."""

    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: Password
    role: Role = Role.STUDENT
    restaurant: RestaurantDetails | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=50)
    email: EmailStr | None = None
    password: Password | None = None


class AuthResult(BaseModel):
    """Identity plus a freshly issued session token."""

    user: UserProfile
    token: str
