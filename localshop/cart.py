"""カートストア.

1セッションにつき1つのカートを保持する。
  - カート内の商品は常に1店舗分のみ（別店舗の商品追加時はユーザー確認のうえ破棄）
  - 変更のたびにローカルストレージへ保存し、起動時に復元する
  - 合計数量・合計金額は保持せず、毎回 lines から計算する
"""

from __future__ import annotations

import json
import logging
import time
from typing import Callable

from localshop.config import CART_STORAGE_KEY, CROSS_SHOP_CONFIRM_MESSAGE
from localshop.models import CartLine, ProductSnapshot, ShopRef
from localshop.storage import KeyValueStorage

logger = logging.getLogger(__name__)


class CartStore:
    """アクティブなカートを管理する.

    Args:
        storage: 保存先ストレージ
        confirm: 別店舗の商品を追加する前に呼ばれる確認関数（True で続行）
        key: ストレージのキー
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        confirm: Callable[[str], bool],
        key: str = CART_STORAGE_KEY,
    ) -> None:
        self._storage = storage
        self._confirm = confirm
        self._key = key
        self._lines: list[CartLine] = []
        self._shop_id: str | None = None
        self._restore()

    # --- 読み取り ---

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def active_shop_id(self) -> str | None:
        return self._shop_id

    @property
    def is_empty(self) -> bool:
        return not self._lines

    @property
    def total_item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    @property
    def total_amount(self) -> float:
        return sum((line.subtotal for line in self._lines), 0.0)

    def snapshot(self) -> dict:
        """保存形式の dict を返す."""
        return {
            "lines": [line.to_dict() for line in self._lines],
            "shopId": self._shop_id,
        }

    # --- 変更 ---

    def add_item(self, product: ProductSnapshot, shop: ShopRef) -> bool:
        """商品を1つ追加する.

        Returns:
            追加した場合 True。別店舗の確認が拒否された場合 False（カートは変更しない）。
        """
        if self._shop_id is not None and self._shop_id != shop.id:
            if not self._confirm(CROSS_SHOP_CONFIRM_MESSAGE):
                logger.info("別店舗の商品追加がキャンセルされました: shop_id=%s", shop.id)
                return False
            logger.info("店舗切替のためカートを破棄: %s -> %s", self._shop_id, shop.id)
            self._lines = []

        self._shop_id = shop.id

        existing = self._find(product.id)
        if existing is not None:
            existing.quantity += 1
        else:
            self._lines.append(CartLine(
                id=f"{product.id}-{int(time.time() * 1000)}",
                product_id=product.id,
                name=product.name,
                unit_price=float(product.price),
                quantity=1,
                shop_id=shop.id,
                shop_name=shop.name,
                image_url=product.image_url,
            ))

        self._persist()
        return True

    def remove_item(self, product_id: str) -> None:
        """商品行を削除する. 存在しなければ何もしない."""
        self._lines = [line for line in self._lines if line.product_id != product_id]
        if not self._lines:
            self._shop_id = None
        self._persist()

    def set_quantity(self, product_id: str, quantity: int) -> None:
        """数量を変更する. 0 以下なら削除と同じ."""
        if quantity <= 0:
            self.remove_item(product_id)
            return

        line = self._find(product_id)
        if line is not None:
            line.quantity = quantity
        self._persist()

    def clear(self) -> None:
        """カートを空にする."""
        self._lines = []
        self._shop_id = None
        self._persist()

    # --- 内部処理 ---

    def _find(self, product_id: str) -> CartLine | None:
        for line in self._lines:
            if line.product_id == product_id:
                return line
        return None

    def _persist(self) -> None:
        self._storage.set(self._key, json.dumps(self.snapshot(), ensure_ascii=False))

    def _restore(self) -> None:
        """ストレージからカートを復元する. 壊れたデータは空カートとして扱う."""
        raw = self._storage.get(self._key)
        if raw is None:
            return

        try:
            lines, shop_id = _parse_snapshot(raw)
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, OverflowError, RecursionError) as e:
            logger.warning("保存済みカートを破棄します: %s", e)
            return

        self._lines = lines
        self._shop_id = shop_id
        logger.info("カートを復元: %d 行, shop_id=%s", len(lines), shop_id)


def _parse_snapshot(raw: str) -> tuple[list[CartLine], str | None]:
    """保存文字列を (lines, shop_id) に変換する.

    旧形式（"items" キー）も受け付ける。

    Raises:
        ValueError 等: 形式不正・店舗の不整合・商品の重複
    """
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("cart snapshot is not an object")

    entries = data.get("lines")
    if entries is None:
        entries = data.get("items") or []
    if not isinstance(entries, list):
        raise ValueError("cart lines is not a list")

    lines = [CartLine.from_dict(entry) for entry in entries]
    if not lines:
        return [], None

    shop_id = data.get("shopId")
    if not shop_id:
        raise ValueError("cart has lines but no shopId")
    shop_id = str(shop_id)
    if any(line.shop_id != shop_id for line in lines):
        raise ValueError("cart lines belong to more than one shop")
    if len({line.product_id for line in lines}) != len(lines):
        raise ValueError("duplicate product in cart")

    return lines, shop_id
