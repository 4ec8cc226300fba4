"""Shared field types and helpers for Campus Bites models."""

import uuid
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from pydantic import AfterValidator, Field, PlainSerializer

# DynamoDB stores numbers as Decimal; JSON responses render them as numbers.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]

ONE_DECIMAL = Decimal("0.1")
TWO_DECIMALS = Decimal("0.01")

# bcrypt refuses secrets longer than this
MAX_PASSWORD_BYTES = 72


def new_id(prefix: str) -> str:
    """Generate a record identifier such as ``ord_3f9a0c1b2d4e``."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def utc_now() -> datetime:
    return datetime.now(UTC)


def round_rating(value: Decimal) -> Decimal:
    """Round a rating average half-up to one decimal place."""
    return value.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP)


def round_money(value: Decimal) -> Decimal:
    return value.quantize(TWO_DECIMALS, rounding=ROUND_HALF_UP)


def parse_timestamp(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"must be at most {MAX_PASSWORD_BYTES} bytes")
    return value


Password = Annotated[str, Field(min_length=6), AfterValidator(check_password_bytes)]
