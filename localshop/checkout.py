"""注文確定処理.

カートの内容から orders レコードを作成して挿入し、成功したらカートを空にする。
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from localshop.cart import CartStore
from localshop.db import get_profile_address, get_shop, insert_order
from localshop.models import OrderItem

logger = logging.getLogger(__name__)

DELIVERY = "delivery"
PICKUP = "pickup"


class CheckoutError(ValueError):
    """注文を確定できない入力."""


def default_delivery_type(shop: dict) -> str:
    """店舗が対応する受け取り方法の初期値を返す."""
    if shop.get("pickup_available") and not shop.get("delivery_available"):
        return PICKUP
    if shop.get("delivery_available") and not shop.get("pickup_available"):
        return DELIVERY
    return PICKUP


def delivery_fee(shop: dict | None, delivery_type: str) -> float:
    if delivery_type != DELIVERY or not shop:
        return 0.0
    return float(shop.get("delivery_fee") or 0)


def build_order(
    cart: CartStore,
    user_id: str,
    shop: dict | None,
    delivery_type: str,
    address: str | None,
) -> dict:
    """orders テーブルに挿入するレコードを組み立てる."""
    fee = delivery_fee(shop, delivery_type)
    items = [
        asdict(OrderItem(
            product_id=line.product_id,
            name=line.name,
            price=line.unit_price,
            quantity=line.quantity,
        ))
        for line in cart.lines
    ]
    return {
        "user_id": user_id,
        "shop_id": cart.active_shop_id,
        "items": items,
        "total_amount": cart.total_amount + fee,
        "delivery_type": delivery_type,
        "delivery_address": address if delivery_type == DELIVERY else None,
        "delivery_fee": fee,
        "status": "pending",
    }


def is_available(shop: dict, delivery_type: str) -> bool:
    """店舗がその受け取り方法に対応しているか."""
    if delivery_type == DELIVERY:
        return bool(shop.get("delivery_available"))
    if delivery_type == PICKUP:
        return bool(shop.get("pickup_available"))
    return False


def place_order(
    cart: CartStore,
    user_id: str,
    delivery_type: str,
    address: str | None = None,
) -> dict:
    """注文を確定する.

    配送で住所が省略された場合はプロフィールの住所を使う。

    Returns:
        挿入した注文レコード

    Raises:
        CheckoutError: カートが空、店舗が見つからない、店舗が未対応の受け取り方法、
            または配送先住所がない
    """
    if cart.is_empty:
        raise CheckoutError("Your cart is empty")
    if delivery_type not in (DELIVERY, PICKUP):
        raise CheckoutError(f"Unknown delivery type: {delivery_type}")

    shop = get_shop(cart.active_shop_id)
    if not shop:
        raise CheckoutError("Shop not found")
    if not is_available(shop, delivery_type):
        raise CheckoutError(f"This shop does not offer {delivery_type}")

    if delivery_type == DELIVERY and not (address or "").strip():
        address = get_profile_address(user_id)
        if not (address or "").strip():
            raise CheckoutError("Please enter a delivery address")

    record = build_order(cart, user_id, shop, delivery_type, address)
    insert_order(record)

    cart.clear()
    logger.info("注文確定: shop_id=%s, 明細 %d 件", record["shop_id"], len(record["items"]))
    return record
