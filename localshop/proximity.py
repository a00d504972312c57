"""現在地の取得と距離順ソート.

距離は球面近似（平均半径 6371km）の haversine 式で計算し、表示用に小数2桁で丸める。
座標のない店舗は距離なしとして末尾に並べる。
"""

from __future__ import annotations

import asyncio
import logging
import math
import re
from typing import Awaitable, Callable, Iterable

from localshop.config import DISTANCE_DECIMALS, EARTH_RADIUS_KM, GEOLOCATION_TIMEOUT_MS
from localshop.models import Coordinates

logger = logging.getLogger(__name__)

LocationProvider = Callable[[], Awaitable[Coordinates]]

_COORDS_PATTERN = re.compile(r"^\s*(-?\d+(?:\.\d+)?)\s*[, ]\s*(-?\d+(?:\.\d+)?)\s*$")


class LocationUnavailable(Exception):
    """現在地を取得できなかった."""


class PermissionDenied(LocationUnavailable):
    """位置情報の利用が許可されなかった."""


class LocationTimeout(LocationUnavailable):
    """位置情報の取得がタイムアウトした."""


def distance_km(a: Coordinates, b: Coordinates) -> float:
    """2点間の大圏距離（km）を返す."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    dlat = math.radians(b.latitude - a.latitude)
    dlon = math.radians(b.longitude - a.longitude)

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(max(0.0, 1 - h)))
    return round(EARTH_RADIUS_KM * c, DISTANCE_DECIMALS)


def _entity_coords(entity: dict, coords_key: str | None) -> Coordinates | None:
    source = entity.get(coords_key) if coords_key else entity
    if not isinstance(source, dict):
        return None
    lat = source.get("latitude")
    lng = source.get("longitude")
    if lat is None or lng is None:
        return None
    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lat) and math.isfinite(lng)):
        return None
    return Coordinates(latitude=lat, longitude=lng)


def rank_by_distance(
    origin: Coordinates | None,
    entities: Iterable[dict],
    coords_key: str | None = None,
) -> list[dict]:
    """距離を付与して近い順に並べた新しいリストを返す.

    Args:
        origin: 現在地。None なら距離は付与しない
        entities: latitude / longitude を持つレコード
        coords_key: 座標がネストしている場合のキー（お気に入りの "shops" など）

    Returns:
        distance_km を付与したレコードのコピー。距離なしは元の順序のまま末尾。
    """
    ranked: list[dict] = []
    for entity in entities:
        row = dict(entity)
        coords = _entity_coords(entity, coords_key) if origin is not None else None
        if coords is not None:
            row["distance_km"] = distance_km(origin, coords)
        ranked.append(row)

    # sorted は安定ソート
    return sorted(
        ranked,
        key=lambda r: (r.get("distance_km") is None, r.get("distance_km") or 0.0),
    )


def format_distance(value: float | None) -> str:
    """表示用の距離文字列. 距離なしは 0km と区別して表示する."""
    if value is None:
        return "distance unknown"
    return f"{value:.{DISTANCE_DECIMALS}f} km away"


async def acquire_location(
    provider: LocationProvider,
    timeout_ms: int = GEOLOCATION_TIMEOUT_MS,
) -> Coordinates:
    """現在地を1回だけ取得する.

    Raises:
        PermissionDenied: 利用が許可されなかった
        LocationTimeout: timeout_ms 以内に応答がなかった（遅れて届いた結果は破棄）
    """
    try:
        coords = await asyncio.wait_for(provider(), timeout=timeout_ms / 1000)
    except asyncio.TimeoutError as e:
        logger.warning("位置情報の取得がタイムアウトしました: timeout_ms=%d", timeout_ms)
        raise LocationTimeout(f"location not available within {timeout_ms} ms") from e
    except PermissionDenied:
        logger.warning("位置情報の利用が許可されませんでした")
        raise

    logger.info("現在地を取得: %.2f, %.2f", coords.latitude, coords.longitude)
    return coords


def parse_coordinates(text: str) -> Coordinates | None:
    """手入力の "緯度, 経度" を解析する. 不正・範囲外なら None."""
    m = _COORDS_PATTERN.match(text)
    if not m:
        return None
    lat, lng = float(m.group(1)), float(m.group(2))
    if abs(lat) > 90 or abs(lng) > 180:
        return None
    return Coordinates(latitude=lat, longitude=lng)


class ManualLocationProvider:
    """手入力された位置を返すプロバイダ（位置情報が拒否された場合の代替）."""

    def __init__(self, coordinates: Coordinates) -> None:
        self.coordinates = coordinates

    async def __call__(self) -> Coordinates:
        return self.coordinates
