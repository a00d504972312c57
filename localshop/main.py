"""localshop — メインエントリーポイント.

使い方:
  python -m localshop.main nearby "35.68, 139.76" [USER_ID]
      近隣店舗を更新し、距離順に一覧表示する
  python -m localshop.main cart
      保存済みカートの内容を表示する
  python -m localshop.main shop SHOP_ID
      店舗の商品一覧を表示する
  python -m localshop.main add SHOP_ID PRODUCT_ID
      商品をカートに追加する（別店舗の商品がある場合は確認する）
  python -m localshop.main favourite SHOP_ID USER_ID
      お気に入りを切り替える

処理フロー (nearby):
  1. 位置を取得（取得できなければ距離なしの一覧にフォールバック）
  2. Edge Function で近隣店舗を更新（失敗してもそのまま続行）
  3. DB から店舗・お気に入りを取得
  4. 距離順に並べてログ出力
"""

from __future__ import annotations

import asyncio
import logging
import sys
import time
from datetime import datetime

from localshop.cart import CartStore
from localshop.config import CART_STORAGE_PATH, LOG_DIR
from localshop.db import (
    add_favourite,
    get_shop,
    list_favourite_shop_ids,
    list_products,
    list_shops,
    remove_favourite,
)
from localshop.models import Coordinates, ProductSnapshot, ShopRef
from localshop.places import fetch_nearby_shops
from localshop.proximity import (
    LocationUnavailable,
    ManualLocationProvider,
    acquire_location,
    format_distance,
    parse_coordinates,
    rank_by_distance,
)
from localshop.storage import JsonFileStorage

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """ロギングの初期設定."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    log_file = LOG_DIR / f"localshop_{datetime.now().strftime('%Y%m%d')}.log"
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, encoding="utf-8"),
        ],
    )


def console_confirm(message: str) -> bool:
    """コンソールで y/n を確認する."""
    answer = input(f"{message} [y/N]: ")
    return answer.strip().lower() in ("y", "yes")


def open_cart() -> CartStore:
    """セッションで使うカートを生成する（起動時に1回だけ呼ぶ）."""
    return CartStore(JsonFileStorage(CART_STORAGE_PATH), confirm=console_confirm)


def browse_nearby(coords: Coordinates | None, user_id: str | None = None) -> list[dict]:
    """近隣店舗を距離順に並べて返す.

    Args:
        coords: 現在地。None なら距離なしの一覧
        user_id: ログインユーザー。指定時はお気に入りフラグを付与する
    """
    if coords is not None:
        shops = fetch_nearby_shops(coords)
        if shops is None:
            logger.warning("近隣店舗の更新に失敗しました。登録済み店舗のみ表示します。")
        else:
            logger.info("近隣店舗を %d 件取得しました", len(shops))

    favourite_ids = list_favourite_shop_ids(user_id) if user_id else set()
    ranked = rank_by_distance(coords, list_shops())
    for shop in ranked:
        shop["is_favourite"] = shop.get("id") in favourite_ids

    logger.info("店舗一覧: %d 件", len(ranked))
    for shop in ranked:
        mark = "★" if shop["is_favourite"] else " "
        logger.info(
            " %s %s (%s)",
            mark, shop.get("name", ""), format_distance(shop.get("distance_km")),
        )
    return ranked


def show_shop(shop_id: str) -> list[dict]:
    """店舗の商品一覧をログ出力する."""
    products = list_products(shop_id)
    if not products:
        logger.info("商品がありません: shop_id=%s", shop_id)
    for p in products:
        logger.info(
            "  [%s] %s  %.2f (在庫 %s)",
            p["id"], p.get("name", ""), float(p.get("price") or 0), p.get("stock"),
        )
    return products


def add_to_cart(cart: CartStore, shop_id: str, product_id: str) -> bool:
    """店舗の商品をカートに1つ追加する.

    Returns:
        追加した場合 True。店舗・商品が見つからない、または別店舗の確認が拒否された場合 False。
    """
    shop = get_shop(shop_id)
    if not shop:
        logger.warning("店舗が見つかりません: shop_id=%s", shop_id)
        return False
    row = next((p for p in list_products(shop_id) if p["id"] == product_id), None)
    if row is None:
        logger.warning("商品が見つからないか在庫切れです: product_id=%s", product_id)
        return False
    return cart.add_item(ProductSnapshot.from_record(row), ShopRef.from_record(shop))


def toggle_favourite(user_id: str, shop_id: str) -> bool:
    """お気に入りを切り替える.

    Returns:
        切り替え後にお気に入りなら True
    """
    if shop_id in list_favourite_shop_ids(user_id):
        remove_favourite(user_id, shop_id)
        return False
    add_favourite(user_id, shop_id)
    return True


def show_cart(cart: CartStore) -> None:
    """カートの内容をログ出力する."""
    if cart.is_empty:
        logger.info("カートは空です")
        return

    logger.info("カート: shop_id=%s", cart.active_shop_id)
    for line in cart.lines:
        logger.info("  %s x%d  %.2f", line.name, line.quantity, line.subtotal)
    logger.info("合計: %d 点, %.2f", cart.total_item_count, cart.total_amount)


def _resolve_location(text: str | None) -> Coordinates | None:
    coords = parse_coordinates(text) if text else None
    if coords is None:
        logger.warning("位置が指定されていないか不正です: %r", text)
        return None
    try:
        return asyncio.run(acquire_location(ManualLocationProvider(coords)))
    except LocationUnavailable as e:
        logger.warning("位置情報を取得できません。距離なしで表示します: %s", e)
        return None


def run(argv: list[str] | None = None) -> int:
    """メイン処理."""
    setup_logging()
    args = list(sys.argv[1:] if argv is None else argv)
    command = args[0] if args else "nearby"

    if command == "cart":
        show_cart(open_cart())
        return 0

    if command == "shop" and len(args) > 1:
        show_shop(args[1])
        return 0

    if command == "add" and len(args) > 2:
        cart = open_cart()
        added = add_to_cart(cart, args[1], args[2])
        show_cart(cart)
        return 0 if added else 1

    if command == "favourite" and len(args) > 2:
        state = toggle_favourite(args[2], args[1])
        logger.info("お気に入り: shop_id=%s -> %s", args[1], "登録" if state else "解除")
        return 0

    if command != "nearby":
        logger.error("不明なコマンド: %s", command)
        return 2

    logger.info("=== 近隣店舗 取得開始 ===")
    start_time = time.time()
    coords = _resolve_location(args[1] if len(args) > 1 else None)
    user_id = args[2] if len(args) > 2 else None
    browse_nearby(coords, user_id)
    logger.info("=== 近隣店舗 取得完了 (%.1f 秒) ===", time.time() - start_time)
    return 0


if __name__ == "__main__":
    sys.exit(run())
