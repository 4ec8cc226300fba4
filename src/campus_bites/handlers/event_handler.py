"""EventBridge handler for maintenance events."""

import logging
from typing import Any

from pydantic import BaseModel, EmailStr, Field, ValidationError

from campus_bites.models.fields import Password
from campus_bites.services.auth_service import AuthService

logger = logging.getLogger(__name__)

MAINTENANCE_SOURCE = "com.campusbites.maintenance"
ORPHAN_CLEANUP = "OrphanedAccountCleanup"
ADMIN_BOOTSTRAP = "AdminBootstrap"


class AdminBootstrapDetail(BaseModel):
    """Detail payload of an AdminBootstrap event."""

    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: Password


def parse_admin_bootstrap(event: dict[str, Any]) -> AdminBootstrapDetail | None:
    """Parse the detail of an AdminBootstrap event.

    Args:
        event: Raw EventBridge event dictionary

    Returns:
        AdminBootstrapDetail if parsing succeeds, None otherwise
    """
    try:
        return AdminBootstrapDetail(**(event.get("detail") or {}))
    except (ValidationError, TypeError) as e:
        logger.error(f"Failed to parse AdminBootstrap event: {e}")
        return None


class MaintenanceEventHandler:
    """Runs maintenance jobs delivered as EventBridge events.

    There is no scheduler inside the service; a rule on the event bus decides
    when a job runs.
    """

    def __init__(self, auth_service: AuthService) -> None:
        self.auth_service = auth_service

    async def handle_eventbridge_event(self, event: dict[str, Any], _context: Any = None) -> dict[str, Any]:
        """Dispatch a maintenance event.

        Args:
            event: EventBridge event dictionary
            _context: Lambda context object (unused)

        Returns:
            Dictionary with statusCode and body for the Lambda response
        """
        source = event.get("source", "")
        detail_type = event.get("detail-type", "")

        if source != MAINTENANCE_SOURCE:
            logger.warning(f"Unsupported event source: {source}")
            return {"statusCode": 400, "body": f"Unsupported event type: {source}/{detail_type}"}

        if detail_type == ORPHAN_CLEANUP:
            removed = await self.auth_service.cleanup_orphaned_accounts()
            return {"statusCode": 200, "body": f"Removed {removed} orphaned accounts"}

        if detail_type == ADMIN_BOOTSTRAP:
            detail = parse_admin_bootstrap(event)
            if detail is None:
                return {"statusCode": 400, "body": "Invalid event format"}

            admin, created = await self.auth_service.ensure_admin(detail.name, detail.email, detail.password)
            if created:
                return {"statusCode": 200, "body": f"Created admin {admin.email}"}
            return {"statusCode": 200, "body": f"Account {admin.email} already exists"}

        logger.warning(f"Unsupported event type: {source}/{detail_type}")
        return {"statusCode": 400, "body": f"Unsupported event type: {source}/{detail_type}"}
