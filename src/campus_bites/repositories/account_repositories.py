"""DynamoDB repositories for identities and restaurant profiles.

Expected storage failures are logged and reported through simple return
values (None/False/empty list) rather than exceptions; services decide how
to surface them.
"""

import logging
from typing import Any

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from campus_bites.models.identity_models import Role, User
from campus_bites.models.restaurant_models import ApprovalStatus, Restaurant

logger = logging.getLogger(__name__)


def query_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Run a query and follow pagination until every page is read."""
    items: list[dict[str, Any]] = []
    while True:
        response = table.query(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


def scan_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Run a scan and follow pagination until every page is read."""
    items: list[dict[str, Any]] = []
    while True:
        response = table.scan(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return items
        kwargs["ExclusiveStartKey"] = last_key


class UserRepository:
    """Repository for identity records.

    Manages users in DynamoDB with ``id`` as partition key and an
    ``email-index`` global secondary index.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_user(self, user_id: str) -> User | None:
        """Retrieve a user by id.

        Returns:
            User if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"id": user_id})

            if "Item" not in response:
                return None

            return User.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get user: {e}")  # pragma: no cover
            return None

    def get_user_by_email(self, email: str) -> User | None:
        """Retrieve a user by email (case-insensitive).

        Returns:
            User if found, None otherwise
        """
        try:
            response = self.table.query(
                IndexName="email-index",
                KeyConditionExpression="email = :email",
                ExpressionAttributeValues={":email": email.strip().lower()},
                Limit=1,
            )

            items = response.get("Items", [])
            return User.from_dynamodb_item(items[0]) if items else None

        except ClientError as e:
            logger.error(f"Failed to get user by email: {e}")  # pragma: no cover
            return None

    def save_user(self, user: User) -> bool:
        """Create or replace a user.

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=user.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save user: {e}")  # pragma: no cover
            return False

    def delete_user(self, user_id: str) -> bool:
        """Delete a user. Deleting a missing user succeeds.

        Returns:
            bool: True if delete succeeded, False otherwise
        """
        try:
            self.table.delete_item(Key={"id": user_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete user: {e}")  # pragma: no cover
            return False

    def list_orphaned_restaurant_users(self) -> list[User]:
        """List restaurant-role users that have no linked restaurant.

        Returns:
            list: Orphaned users (empty list if none found)
        """
        try:
            items = scan_all(
                self.table,
                FilterExpression="#role = :role AND attribute_not_exists(restaurant_id)",
                ExpressionAttributeNames={"#role": "role"},
                ExpressionAttributeValues={":role": Role.RESTAURANT.value},
            )
            return [User.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list orphaned users: {e}")  # pragma: no cover
            return []


class RestaurantRepository:
    """Repository for restaurant profiles.

    Manages restaurants in DynamoDB with ``id`` as partition key and
    ``owner_id-index`` / ``approval_status-index`` global secondary indexes.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_restaurant(self, restaurant_id: str) -> Restaurant | None:
        try:
            response = self.table.get_item(Key={"id": restaurant_id})

            if "Item" not in response:
                return None

            return Restaurant.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get restaurant: {e}")  # pragma: no cover
            return None

    def get_restaurant_by_owner(self, owner_id: str) -> Restaurant | None:
        try:
            response = self.table.query(
                IndexName="owner_id-index",
                KeyConditionExpression="owner_id = :owner",
                ExpressionAttributeValues={":owner": owner_id},
                Limit=1,
            )

            items = response.get("Items", [])
            return Restaurant.from_dynamodb_item(items[0]) if items else None

        except ClientError as e:
            logger.error(f"Failed to get restaurant by owner: {e}")  # pragma: no cover
            return None

    def save_restaurant(self, restaurant: Restaurant) -> bool:
        try:
            self.table.put_item(Item=restaurant.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save restaurant: {e}")  # pragma: no cover
            return False

    def delete_restaurant(self, restaurant_id: str) -> bool:
        try:
            self.table.delete_item(Key={"id": restaurant_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete restaurant: {e}")  # pragma: no cover
            return False

    def list_by_approval_status(self, status: ApprovalStatus) -> list[Restaurant]:
        """List restaurants with the given approval status.

        Returns:
            list: Matching restaurants (empty list if none found)
        """
        try:
            items = query_all(
                self.table,
                IndexName="approval_status-index",
                KeyConditionExpression="approval_status = :status",
                ExpressionAttributeValues={":status": status.value},
            )
            return [Restaurant.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list restaurants by status: {e}")  # pragma: no cover
            return []

    def list_restaurants(self) -> list[Restaurant]:
        """List every restaurant regardless of status."""
        try:
            return [Restaurant.from_dynamodb_item(item) for item in scan_all(self.table)]

        except ClientError as e:
            logger.error(f"Failed to list restaurants: {e}")  # pragma: no cover
            return []
