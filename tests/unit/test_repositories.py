"""Unit tests for the DynamoDB repositories."""

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from campus_bites.models.identity_models import Role, User
from campus_bites.models.menu_models import MenuItem
from campus_bites.models.order_models import Order
from campus_bites.models.restaurant_models import ApprovalStatus, Restaurant
from campus_bites.repositories.account_repositories import (
    RestaurantRepository,
    UserRepository,
    query_all,
)
from campus_bites.repositories.order_repositories import MenuItemRepository, OrderRepository


def client_error(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "ValidationException", "Message": "boom"}}, operation)


@pytest.fixture
def mock_dynamodb() -> MagicMock:
    """Create a mock DynamoDB resource."""
    return MagicMock()


@pytest.mark.unit
class TestPagination:
    """Test suite for paginated reads."""

    def test_query_all_follows_last_evaluated_key(self) -> None:
        table = MagicMock()
        table.query.side_effect = [
            {"Items": [{"id": "a"}], "LastEvaluatedKey": {"id": "a"}},
            {"Items": [{"id": "b"}]},
        ]

        items = query_all(table, IndexName="x")

        assert items == [{"id": "a"}, {"id": "b"}]
        assert table.query.call_count == 2
        assert table.query.call_args.kwargs["ExclusiveStartKey"] == {"id": "a"}


@pytest.mark.unit
class TestUserRepository:
    """Test suite for UserRepository."""

    @pytest.fixture
    def repository(self, mock_dynamodb: MagicMock) -> UserRepository:
        return UserRepository(dynamodb_resource=mock_dynamodb, table_name="test-users")

    def test_repository_initialization(self, mock_dynamodb: MagicMock) -> None:
        repo = UserRepository(dynamodb_resource=mock_dynamodb, table_name="test-table")
        assert repo.table_name == "test-table"
        mock_dynamodb.Table.assert_called_once_with("test-table")

    def test_get_user_success(
        self, repository: UserRepository, mock_dynamodb: MagicMock, student: User
    ) -> None:
        mock_dynamodb.Table.return_value.get_item.return_value = {"Item": student.to_dynamodb_item()}

        user = repository.get_user("usr_student01")

        assert user == student
        mock_dynamodb.Table.return_value.get_item.assert_called_once_with(
            Key={"id": "usr_student01"}
        )

    def test_get_user_not_found(self, repository: UserRepository, mock_dynamodb: MagicMock) -> None:
        mock_dynamodb.Table.return_value.get_item.return_value = {}

        assert repository.get_user("usr_missing") is None

    def test_get_user_by_email_normalizes(
        self, repository: UserRepository, mock_dynamodb: MagicMock, student: User
    ) -> None:
        mock_dynamodb.Table.return_value.query.return_value = {"Items": [student.to_dynamodb_item()]}

        user = repository.get_user_by_email("  USR_Student01@Campus.edu ")

        assert user == student
        call_kwargs = mock_dynamodb.Table.return_value.query.call_args.kwargs
        assert call_kwargs["IndexName"] == "email-index"
        assert call_kwargs["ExpressionAttributeValues"] == {":email": "usr_student01@campus.edu"}

    def test_save_user_success(
        self, repository: UserRepository, mock_dynamodb: MagicMock, student: User
    ) -> None:
        assert repository.save_user(student) is True
        mock_dynamodb.Table.return_value.put_item.assert_called_once_with(
            Item=student.to_dynamodb_item()
        )

    def test_save_user_failure(
        self, repository: UserRepository, mock_dynamodb: MagicMock, student: User
    ) -> None:
        mock_dynamodb.Table.return_value.put_item.side_effect = client_error("PutItem")

        assert repository.save_user(student) is False

    def test_delete_user_failure(self, repository: UserRepository, mock_dynamodb: MagicMock) -> None:
        mock_dynamodb.Table.return_value.delete_item.side_effect = client_error("DeleteItem")

        assert repository.delete_user("usr_student01") is False

    def test_list_orphaned_restaurant_users(
        self,
        repository: UserRepository,
        mock_dynamodb: MagicMock,
        make_user: Callable[..., User],
    ) -> None:
        orphan = make_user("usr_orphan01", Role.RESTAURANT)
        mock_dynamodb.Table.return_value.scan.return_value = {"Items": [orphan.to_dynamodb_item()]}

        orphans = repository.list_orphaned_restaurant_users()

        assert [u.id for u in orphans] == ["usr_orphan01"]
        call_kwargs = mock_dynamodb.Table.return_value.scan.call_args.kwargs
        assert "attribute_not_exists(restaurant_id)" in call_kwargs["FilterExpression"]


@pytest.mark.unit
class TestRestaurantRepository:
    """Test suite for RestaurantRepository."""

    @pytest.fixture
    def repository(self, mock_dynamodb: MagicMock) -> RestaurantRepository:
        return RestaurantRepository(dynamodb_resource=mock_dynamodb, table_name="test-restaurants")

    def test_get_restaurant_success(
        self, repository: RestaurantRepository, mock_dynamodb: MagicMock, restaurant: Restaurant
    ) -> None:
        mock_dynamodb.Table.return_value.get_item.return_value = {
            "Item": restaurant.to_dynamodb_item()
        }

        assert repository.get_restaurant("rst_canteen01") == restaurant

    def test_get_restaurant_by_owner(
        self, repository: RestaurantRepository, mock_dynamodb: MagicMock, restaurant: Restaurant
    ) -> None:
        mock_dynamodb.Table.return_value.query.return_value = {
            "Items": [restaurant.to_dynamodb_item()]
        }

        assert repository.get_restaurant_by_owner("usr_owner01") == restaurant
        call_kwargs = mock_dynamodb.Table.return_value.query.call_args.kwargs
        assert call_kwargs["IndexName"] == "owner_id-index"
        assert call_kwargs["ExpressionAttributeValues"] == {":owner": "usr_owner01"}

    def test_get_restaurant_by_owner_not_found(
        self, repository: RestaurantRepository, mock_dynamodb: MagicMock
    ) -> None:
        mock_dynamodb.Table.return_value.query.return_value = {"Items": []}

        assert repository.get_restaurant_by_owner("usr_orphan01") is None

    def test_list_by_approval_status(
        self, repository: RestaurantRepository, mock_dynamodb: MagicMock, restaurant: Restaurant
    ) -> None:
        mock_dynamodb.Table.return_value.query.return_value = {
            "Items": [restaurant.to_dynamodb_item()]
        }

        restaurants = repository.list_by_approval_status(ApprovalStatus.APPROVED)

        assert restaurants == [restaurant]
        call_kwargs = mock_dynamodb.Table.return_value.query.call_args.kwargs
        assert call_kwargs["IndexName"] == "approval_status-index"
        assert call_kwargs["ExpressionAttributeValues"] == {":status": "approved"}

    def test_list_by_approval_status_failure(
        self, repository: RestaurantRepository, mock_dynamodb: MagicMock
    ) -> None:
        mock_dynamodb.Table.return_value.query.side_effect = client_error("Query")

        assert repository.list_by_approval_status(ApprovalStatus.PENDING) == []

    def test_save_restaurant_failure(
        self, repository: RestaurantRepository, mock_dynamodb: MagicMock, restaurant: Restaurant
    ) -> None:
        mock_dynamodb.Table.return_value.put_item.side_effect = client_error("PutItem")

        assert repository.save_restaurant(restaurant) is False


@pytest.mark.unit
class TestMenuItemRepository:
    """Test suite for MenuItemRepository."""

    @pytest.fixture
    def repository(self, mock_dynamodb: MagicMock) -> MenuItemRepository:
        return MenuItemRepository(dynamodb_resource=mock_dynamodb, table_name="test-menu-items")

    def test_get_items_skips_missing_and_duplicates(
        self,
        repository: MenuItemRepository,
        mock_dynamodb: MagicMock,
        make_item: Callable[..., MenuItem],
    ) -> None:
        stored = make_item().to_dynamodb_item()
        mock_dynamodb.Table.return_value.get_item.side_effect = [{"Item": stored}, {}]

        found = repository.get_items(["itm_biryani01", "itm_biryani01", "itm_missing"])

        assert list(found) == ["itm_biryani01"]
        assert mock_dynamodb.Table.return_value.get_item.call_count == 2

    def test_delete_for_restaurant_counts_deletions(
        self,
        repository: MenuItemRepository,
        mock_dynamodb: MagicMock,
        make_item: Callable[..., MenuItem],
    ) -> None:
        mock_dynamodb.Table.return_value.query.return_value = {
            "Items": [
                make_item("itm_a").to_dynamodb_item(),
                make_item("itm_b").to_dynamodb_item(),
            ]
        }

        assert repository.delete_for_restaurant("rst_canteen01") == 2
        assert mock_dynamodb.Table.return_value.delete_item.call_count == 2


@pytest.mark.unit
class TestOrderRepository:
    """Test suite for OrderRepository."""

    @pytest.fixture
    def repository(self, mock_dynamodb: MagicMock) -> OrderRepository:
        return OrderRepository(dynamodb_resource=mock_dynamodb, table_name="test-orders")

    def test_save_order_writes_single_document(
        self,
        repository: OrderRepository,
        mock_dynamodb: MagicMock,
        make_order: Callable[..., Order],
    ) -> None:
        order = make_order()

        assert repository.save_order(order) is True
        mock_dynamodb.Table.return_value.put_item.assert_called_once_with(
            Item=order.to_dynamodb_item()
        )

    def test_get_order_not_found(self, repository: OrderRepository, mock_dynamodb: MagicMock) -> None:
        mock_dynamodb.Table.return_value.get_item.return_value = {}

        assert repository.get_order("ord_missing") is None

    def test_list_for_user(
        self,
        repository: OrderRepository,
        mock_dynamodb: MagicMock,
        make_order: Callable[..., Order],
    ) -> None:
        order = make_order()
        mock_dynamodb.Table.return_value.query.return_value = {"Items": [order.to_dynamodb_item()]}

        assert repository.list_for_user("usr_student01") == [order]
        call_kwargs = mock_dynamodb.Table.return_value.query.call_args.kwargs
        assert call_kwargs["IndexName"] == "user_id-index"

    def test_list_orders_failure(self, repository: OrderRepository, mock_dynamodb: MagicMock) -> None:
        mock_dynamodb.Table.return_value.scan.side_effect = client_error("Scan")

        assert repository.list_orders() == []
