"""db モジュールのモックテスト."""

from unittest.mock import MagicMock, call, patch

import pytest


def _chain(data):
    """select/eq/order 等を連結できるモックを返す."""
    mock_chain = MagicMock()
    for name in ("select", "eq", "gt", "order", "insert", "update", "delete", "maybe_single"):
        getattr(mock_chain, name).return_value = mock_chain
    mock_chain.execute.return_value = MagicMock(data=data)
    return mock_chain


class TestGetClient:
    """get_client のテスト."""

    @patch("localshop.db._client", None)
    @patch("localshop.db.SUPABASE_URL", "")
    def test_missing_settings(self):
        from localshop.db import get_client

        with pytest.raises(RuntimeError):
            get_client()

    @patch("localshop.db._client", None)
    @patch("localshop.db.SUPABASE_ANON_KEY", "anon")
    @patch("localshop.db.SUPABASE_URL", "https://example.supabase.co")
    @patch("localshop.db.create_client")
    def test_created_once(self, mock_create):
        from localshop.db import get_client

        first = get_client()
        second = get_client()

        mock_create.assert_called_once_with("https://example.supabase.co", "anon")
        assert first is second


class TestListShops:
    """list_shops のテスト."""

    @patch("localshop.db._table")
    def test_returns_rows(self, mock_table):
        from localshop.db import list_shops

        rows = [{"id": "s1", "name": "ShopA"}]
        mock_chain = _chain(rows)
        mock_table.return_value = mock_chain

        assert list_shops() == rows
        mock_table.assert_called_once_with("shops")
        mock_chain.order.assert_called_once_with("created_at", desc=True)

    @patch("localshop.db._table")
    def test_none_data(self, mock_table):
        from localshop.db import list_shops

        mock_table.return_value = _chain(None)
        assert list_shops() == []


class TestGetShop:
    """get_shop のテスト."""

    @patch("localshop.db._table")
    def test_found(self, mock_table):
        from localshop.db import get_shop

        mock_chain = _chain({"id": "s1", "delivery_fee": 40})
        mock_table.return_value = mock_chain

        assert get_shop("s1") == {"id": "s1", "delivery_fee": 40}
        mock_chain.eq.assert_called_once_with("id", "s1")

    @patch("localshop.db._table")
    def test_not_found(self, mock_table):
        from localshop.db import get_shop

        mock_chain = _chain(None)
        mock_chain.execute.return_value = None
        mock_table.return_value = mock_chain

        assert get_shop("missing") is None


class TestFavourites:
    """お気に入り取得のテスト."""

    @patch("localshop.db._table")
    def test_shop_ids(self, mock_table):
        from localshop.db import list_favourite_shop_ids

        mock_table.return_value = _chain([{"shop_id": "s1"}, {"shop_id": "s3"}])

        assert list_favourite_shop_ids("u1") == {"s1", "s3"}
        mock_table.assert_called_once_with("favourites")

    @patch("localshop.db._table")
    def test_with_shops(self, mock_table):
        from localshop.db import list_favourites

        rows = [{"id": "f1", "shop_id": "s1", "shops": {"id": "s1", "latitude": 1.0, "longitude": 2.0}}]
        mock_chain = _chain(rows)
        mock_table.return_value = mock_chain

        assert list_favourites("u1") == rows
        mock_chain.eq.assert_called_once_with("user_id", "u1")


class TestProfileAddress:
    """get_profile_address のテスト."""

    @patch("localshop.db._table")
    def test_address(self, mock_table):
        from localshop.db import get_profile_address

        mock_table.return_value = _chain({"address": "1-2-3 Shibuya"})
        assert get_profile_address("u1") == "1-2-3 Shibuya"

    @patch("localshop.db._table")
    def test_no_profile(self, mock_table):
        from localshop.db import get_profile_address

        mock_table.return_value = _chain(None)
        assert get_profile_address("u1") is None


class TestOrders:
    """注文操作のテスト."""

    @patch("localshop.db._table")
    def test_insert_order(self, mock_table):
        from localshop.db import insert_order

        mock_chain = _chain([])
        mock_table.return_value = mock_chain

        record = {"shop_id": "s1", "total_amount": 150.0, "status": "pending"}
        insert_order(record)

        mock_table.assert_called_once_with("orders")
        mock_chain.insert.assert_called_once_with(record)

    @patch("localshop.db._table")
    def test_list_orders_for_shop(self, mock_table):
        from localshop.db import list_orders_for_shop

        rows = [{"id": "o1", "shop_id": "s1"}]
        mock_chain = _chain(rows)
        mock_table.return_value = mock_chain

        assert list_orders_for_shop("s1") == rows
        mock_chain.eq.assert_called_once_with("shop_id", "s1")

    @patch("localshop.db._table")
    def test_update_order_status(self, mock_table):
        from localshop.db import update_order_status

        mock_chain = _chain([])
        mock_table.return_value = mock_chain

        update_order_status("o1", "ready")

        mock_chain.update.assert_called_once_with({"status": "ready"})
        mock_chain.eq.assert_called_once_with("id", "o1")


class TestListProducts:
    """list_products のテスト."""

    @patch("localshop.db._table")
    def test_in_stock_by_category(self, mock_table):
        from localshop.db import list_products

        rows = [{"id": "p1", "shop_id": "s1", "name": "Milk", "price": 50, "stock": 4}]
        mock_chain = _chain(rows)
        mock_table.return_value = mock_chain

        assert list_products("s1") == rows
        mock_table.assert_called_once_with("products")
        mock_chain.eq.assert_called_once_with("shop_id", "s1")
        mock_chain.gt.assert_called_once_with("stock", 0)
        mock_chain.order.assert_called_once_with("category")

    @patch("localshop.db._table")
    def test_none_data(self, mock_table):
        from localshop.db import list_products

        mock_table.return_value = _chain(None)
        assert list_products("s1") == []


class TestFavouriteToggle:
    """add_favourite / remove_favourite のテスト."""

    @patch("localshop.db._table")
    def test_add(self, mock_table):
        from localshop.db import add_favourite

        mock_chain = _chain([])
        mock_table.return_value = mock_chain

        add_favourite("u1", "s1")

        mock_table.assert_called_once_with("favourites")
        mock_chain.insert.assert_called_once_with({"user_id": "u1", "shop_id": "s1"})

    @patch("localshop.db._table")
    def test_remove(self, mock_table):
        from localshop.db import remove_favourite

        mock_chain = _chain([])
        mock_table.return_value = mock_chain

        remove_favourite("u1", "s1")

        mock_table.assert_called_once_with("favourites")
        mock_chain.delete.assert_called_once_with()
        assert mock_chain.eq.call_args_list == [call("user_id", "u1"), call("shop_id", "s1")]
