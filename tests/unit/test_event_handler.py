"""Unit tests for the EventBridge maintenance handler."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from campus_bites.handlers.event_handler import (
    ADMIN_BOOTSTRAP,
    MAINTENANCE_SOURCE,
    ORPHAN_CLEANUP,
    MaintenanceEventHandler,
    parse_admin_bootstrap,
)
from campus_bites.models.identity_models import User
from campus_bites.services.auth_service import AuthService


def eventbridge_event(detail_type: str, detail: dict[str, Any] | None = None, source: str = MAINTENANCE_SOURCE) -> dict[str, Any]:
    return {
        "version": "0",
        "id": "event-123",
        "detail-type": detail_type,
        "source": source,
        "account": "123456789012",
        "time": "2025-01-15T10:30:00Z",
        "region": "us-east-1",
        "detail": detail or {},
    }


@pytest.fixture
def auth_service() -> MagicMock:
    return MagicMock(spec=AuthService)


@pytest.fixture
def handler(auth_service: MagicMock) -> MaintenanceEventHandler:
    return MaintenanceEventHandler(auth_service=auth_service)


@pytest.mark.unit
class TestParseAdminBootstrap:
    """Test suite for AdminBootstrap detail parsing."""

    def test_parse_valid_event(self) -> None:
        event = eventbridge_event(
            ADMIN_BOOTSTRAP,
            {"name": "Campus Admin", "email": "admin@campus.edu", "password": "secret123"},
        )

        detail = parse_admin_bootstrap(event)

        assert detail is not None
        assert detail.email == "admin@campus.edu"

    def test_short_password(self) -> None:
        event = eventbridge_event(
            ADMIN_BOOTSTRAP, {"name": "Campus Admin", "email": "admin@campus.edu", "password": "123"}
        )
        assert parse_admin_bootstrap(event) is None

    def test_overlong_password(self) -> None:
        event = eventbridge_event(
            ADMIN_BOOTSTRAP, {"name": "Campus Admin", "email": "admin@campus.edu", "password": "a" * 100}
        )
        assert parse_admin_bootstrap(event) is None

    def test_missing_detail(self) -> None:
        assert parse_admin_bootstrap({"source": MAINTENANCE_SOURCE}) is None


@pytest.mark.unit
class TestMaintenanceEventHandler:
    """Test suite for MaintenanceEventHandler."""

    @pytest.mark.asyncio
    async def test_orphan_cleanup(
        self, handler: MaintenanceEventHandler, auth_service: MagicMock
    ) -> None:
        auth_service.cleanup_orphaned_accounts = AsyncMock(return_value=3)

        result = await handler.handle_eventbridge_event(eventbridge_event(ORPHAN_CLEANUP))

        assert result == {"statusCode": 200, "body": "Removed 3 orphaned accounts"}
        auth_service.cleanup_orphaned_accounts.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_admin_bootstrap_creates(
        self, handler: MaintenanceEventHandler, auth_service: MagicMock, admin: User
    ) -> None:
        auth_service.ensure_admin = AsyncMock(return_value=(admin, True))
        event = eventbridge_event(
            ADMIN_BOOTSTRAP,
            {"name": "Campus Admin", "email": admin.email, "password": "secret123"},
        )

        result = await handler.handle_eventbridge_event(event)

        assert result == {"statusCode": 200, "body": f"Created admin {admin.email}"}
        auth_service.ensure_admin.assert_awaited_once_with("Campus Admin", admin.email, "secret123")

    @pytest.mark.asyncio
    async def test_admin_bootstrap_existing(
        self, handler: MaintenanceEventHandler, auth_service: MagicMock, admin: User
    ) -> None:
        auth_service.ensure_admin = AsyncMock(return_value=(admin, False))
        event = eventbridge_event(
            ADMIN_BOOTSTRAP,
            {"name": "Campus Admin", "email": admin.email, "password": "secret123"},
        )

        result = await handler.handle_eventbridge_event(event)

        assert result["statusCode"] == 200
        assert "already exists" in result["body"]

    @pytest.mark.asyncio
    async def test_admin_bootstrap_invalid_detail(
        self, handler: MaintenanceEventHandler, auth_service: MagicMock
    ) -> None:
        auth_service.ensure_admin = AsyncMock()

        result = await handler.handle_eventbridge_event(
            eventbridge_event(ADMIN_BOOTSTRAP, {"email": "nope"})
        )

        assert result == {"statusCode": 400, "body": "Invalid event format"}
        auth_service.ensure_admin.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unsupported_source(self, handler: MaintenanceEventHandler) -> None:
        result = await handler.handle_eventbridge_event(
            eventbridge_event(ORPHAN_CLEANUP, source="menu-service")
        )

        assert result["statusCode"] == 400
        assert result["body"] == "Unsupported event type: menu-service/OrphanedAccountCleanup"

    @pytest.mark.asyncio
    async def test_unsupported_detail_type(self, handler: MaintenanceEventHandler) -> None:
        result = await handler.handle_eventbridge_event(eventbridge_event("Something Else"))

        assert result["statusCode"] == 400
        assert "Unsupported event type" in result["body"]
