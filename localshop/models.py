"""データモデル定義."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Coordinates:
    """緯度経度（10進度）."""

    latitude: float
    longitude: float


@dataclass(frozen=True)
class ProductSnapshot:
    """カート投入時点の商品情報."""

    id: str
    name: str
    price: float
    image_url: str | None = None

    @classmethod
    def from_record(cls, row: dict) -> ProductSnapshot:
        """products テーブルの行から生成する."""
        return cls(
            id=row["id"],
            name=row.get("name", ""),
            price=float(row.get("price") or 0),
            image_url=row.get("image_url"),
        )


@dataclass(frozen=True)
class ShopRef:
    """商品の所属店舗."""

    id: str
    name: str

    @classmethod
    def from_record(cls, row: dict) -> ShopRef:
        return cls(id=row["id"], name=row.get("name", ""))


@dataclass
class CartLine:
    """カート内の1商品行."""

    id: str  # 行ID（商品IDとは別）
    product_id: str
    name: str
    unit_price: float
    quantity: int  # 1 以上
    shop_id: str
    shop_name: str
    image_url: str | None = None

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        """保存用 JSON 形式に変換する."""
        return {
            "id": self.id,
            "product_id": self.product_id,
            "name": self.name,
            "price": self.unit_price,
            "quantity": self.quantity,
            "image_url": self.image_url,
            "shop_id": self.shop_id,
            "shop_name": self.shop_name,
        }

    @classmethod
    def from_dict(cls, data: dict) -> CartLine:
        """保存済み JSON から復元する.

        Raises:
            KeyError, TypeError, ValueError: 形式が不正な場合
        """
        raw_quantity = float(data["quantity"])
        price = float(data["price"])
        if not math.isfinite(raw_quantity) or not math.isfinite(price):
            raise ValueError("quantity and price must be finite numbers")
        quantity = int(raw_quantity)
        if quantity < 1:
            raise ValueError(f"quantity must be >= 1: {quantity}")
        if price < 0:
            raise ValueError(f"price must be >= 0: {price}")
        return cls(
            id=str(data["id"]),
            product_id=str(data["product_id"]),
            name=str(data.get("name", "")),
            unit_price=price,
            quantity=quantity,
            shop_id=str(data["shop_id"]),
            shop_name=str(data.get("shop_name", "")),
            image_url=data.get("image_url"),
        )


@dataclass
class OrderItem:
    """orders.items カラムに書き込む明細."""

    product_id: str
    name: str
    price: float
    quantity: int
