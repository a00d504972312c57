"""Supabase データベース操作モジュール.

店舗・お気に入り・注文・プロフィールの各テーブルを参照する。
クライアントは初回アクセス時に生成する。
"""

from __future__ import annotations

import logging

from supabase import Client, create_client

from localshop.config import SUPABASE_ANON_KEY, SUPABASE_URL

logger = logging.getLogger(__name__)

_client: Client | None = None


def get_client() -> Client:
    """Supabase クライアントを返す（未生成なら生成する）."""
    global _client
    if _client is None:
        if not SUPABASE_URL or not SUPABASE_ANON_KEY:
            raise RuntimeError("SUPABASE_URL / SUPABASE_ANON_KEY が設定されていません。.env を確認してください")
        _client = create_client(SUPABASE_URL, SUPABASE_ANON_KEY)
    return _client


def _table(name: str):
    """public スキーマのテーブルを参照する."""
    return get_client().table(name)


def list_shops() -> list[dict]:
    """全店舗を新しい順に取得する."""
    resp = _table("shops").select("*").order("created_at", desc=True).execute()
    return resp.data or []


def get_shop(shop_id: str) -> dict | None:
    """店舗1件を取得する. 存在しなければ None."""
    resp = (
        _table("shops")
        .select("id, name, delivery_available, pickup_available, delivery_fee, location")
        .eq("id", shop_id)
        .maybe_single()
        .execute()
    )
    if resp is None:
        return None
    return resp.data


def list_favourite_shop_ids(user_id: str) -> set[str]:
    """ユーザーがお気に入り登録した店舗IDの集合を取得する."""
    resp = _table("favourites").select("shop_id").eq("user_id", user_id).execute()
    return {row["shop_id"] for row in resp.data or []}


def list_favourites(user_id: str) -> list[dict]:
    """お気に入りを店舗情報付きで取得する.

    Returns:
        [{"id", "shop_id", "created_at", ..., "shops": {"id", "name", "latitude", "longitude", ...}}, ...]
    """
    resp = (
        _table("favourites")
        .select(
            "*, "
            "shops(id, name, description, image_url, location, category, latitude, longitude)"
        )
        .eq("user_id", user_id)
        .order("created_at", desc=True)
        .execute()
    )
    return resp.data or []


def get_profile_address(user_id: str) -> str | None:
    """プロフィールに登録された配送先住所を取得する."""
    resp = _table("profiles").select("address").eq("id", user_id).maybe_single().execute()
    if resp is None or not resp.data:
        return None
    return resp.data.get("address")


def insert_order(record: dict) -> None:
    """注文を1件挿入する."""
    _table("orders").insert(record).execute()
    logger.info(
        "orders に挿入: shop_id=%s, total_amount=%.2f",
        record.get("shop_id"), record.get("total_amount", 0),
    )


def list_orders_for_shop(shop_id: str) -> list[dict]:
    """店舗宛ての注文を新しい順に取得する."""
    resp = (
        _table("orders")
        .select("*")
        .eq("shop_id", shop_id)
        .order("created_at", desc=True)
        .execute()
    )
    return resp.data or []


def update_order_status(order_id: str, status: str) -> None:
    """注文ステータスを更新する."""
    _table("orders").update({"status": status}).eq("id", order_id).execute()
    logger.info("注文ステータス更新: order_id=%s, status=%s", order_id, status)


def list_products(shop_id: str) -> list[dict]:
    """店舗の在庫ありの商品をカテゴリ順に取得する."""
    resp = (
        _table("products")
        .select("*")
        .eq("shop_id", shop_id)
        .gt("stock", 0)
        .order("category")
        .execute()
    )
    return resp.data or []


def add_favourite(user_id: str, shop_id: str) -> None:
    """店舗をお気に入りに登録する."""
    _table("favourites").insert({"user_id": user_id, "shop_id": shop_id}).execute()
    logger.info("お気に入り登録: user_id=%s, shop_id=%s", user_id, shop_id)


def remove_favourite(user_id: str, shop_id: str) -> None:
    """店舗をお気に入りから外す."""
    _table("favourites").delete().eq("user_id", user_id).eq("shop_id", shop_id).execute()
    logger.info("お気に入り解除: user_id=%s, shop_id=%s", user_id, shop_id)
