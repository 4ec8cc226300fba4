"""DynamoDB repositories for menu items and orders."""

import logging

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from campus_bites.models.menu_models import MenuItem
from campus_bites.models.order_models import Order
from campus_bites.repositories.account_repositories import query_all, scan_all

logger = logging.getLogger(__name__)


class MenuItemRepository:
    """Repository for menu items.

    Manages menu items in DynamoDB with ``id`` as partition key and a
    ``restaurant_id-index`` global secondary index.
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

    def get_item(self, item_id: str) -> MenuItem | None:
        try:
            response = self.table.get_item(Key={"id": item_id})

            if "Item" not in response:
                return None

            return MenuItem.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get menu item: {e}")  # pragma: no cover
            return None

    def get_items(self, item_ids: list[str]) -> dict[str, MenuItem]:
        """Fetch several menu items by id.

        Returns:
            dict: Found items keyed by id; missing ids are simply absent
        """
        found: dict[str, MenuItem] = {}
        for item_id in dict.fromkeys(item_ids):
            item = self.get_item(item_id)
            if item is not None:
                found[item_id] = item
        return found

    def list_for_restaurant(self, restaurant_id: str) -> list[MenuItem]:
        """List every menu item of a restaurant.

        Returns:
            list: Menu items (empty list if none found)
        """
        try:
            items = query_all(
                self.table,
                IndexName="restaurant_id-index",
                KeyConditionExpression="restaurant_id = :rid",
                ExpressionAttributeValues={":rid": restaurant_id},
            )
            return [MenuItem.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list menu items: {e}")  # pragma: no cover
            return []

    def save_item(self, item: MenuItem) -> bool:
        try:
            self.table.put_item(Item=item.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save menu item: {e}")  # pragma: no cover
            return False

    def delete_item(self, item_id: str) -> bool:
        try:
            self.table.delete_item(Key={"id": item_id})
            return True

        except ClientError as e:
            logger.error(f"Failed to delete menu item: {e}")  # pragma: no cover
            return False

    def delete_for_restaurant(self, restaurant_id: str) -> int:
        """Delete every menu item of a restaurant.

        Returns:
            int: Number of items deleted
        """
        deleted = 0
        for item in self.list_for_restaurant(restaurant_id):
            if self.delete_item(item.id):
                deleted += 1
        return deleted


class OrderRepository:
    """Repository for orders.

    Manages orders in DynamoDB with ``id`` as partition key and
    ``user_id-index`` / ``restaurant_id-index`` global secondary indexes.
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

    def get_order(self, order_id: str) -> Order | None:
        try:
            response = self.table.get_item(Key={"id": order_id})

            if "Item" not in response:
                return None

            return Order.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get order: {e}")  # pragma: no cover
            return None

    def save_order(self, order: Order) -> bool:
        """Write the whole order document in a single put.

        Returns:
            bool: True if save succeeded, False otherwise
        """
        try:
            self.table.put_item(Item=order.to_dynamodb_item())
            return True

        except ClientError as e:
            logger.error(f"Failed to save order: {e}")  # pragma: no cover
            return False

    def list_for_user(self, user_id: str) -> list[Order]:
        try:
            items = query_all(
                self.table,
                IndexName="user_id-index",
                KeyConditionExpression="user_id = :uid",
                ExpressionAttributeValues={":uid": user_id},
            )
            return [Order.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list orders for user: {e}")  # pragma: no cover
            return []

    def list_for_restaurant(self, restaurant_id: str) -> list[Order]:
        try:
            items = query_all(
                self.table,
                IndexName="restaurant_id-index",
                KeyConditionExpression="restaurant_id = :rid",
                ExpressionAttributeValues={":rid": restaurant_id},
            )
            return [Order.from_dynamodb_item(item) for item in items]

        except ClientError as e:
            logger.error(f"Failed to list orders for restaurant: {e}")  # pragma: no cover
            return []

    def list_orders(self) -> list[Order]:
        """List every order on the platform."""
        try:
            return [Order.from_dynamodb_item(item) for item in scan_all(self.table)]

        except ClientError as e:
            logger.error(f"Failed to list orders: {e}")  # pragma: no cover
            return []
