"""近隣店舗取得 Edge Function の呼び出しモジュール.

Edge Function が外部の Places API を検索し、結果を店舗レコード形式で返す。
  入力: {"latitude", "longitude", "radius"}
  出力: {"shops": [...]}（失敗時は {"error": str} / HTTP 400）
"""

from __future__ import annotations

import logging

import requests

from localshop.config import (
    NEARBY_RADIUS_M,
    NEARBY_SHOPS_FUNCTION,
    REQUEST_TIMEOUT,
    SUPABASE_ANON_KEY,
    SUPABASE_URL,
)
from localshop.models import Coordinates

logger = logging.getLogger(__name__)


def _function_url(name: str) -> str:
    return f"{SUPABASE_URL.rstrip('/')}/functions/v1/{name}"


def fetch_nearby_shops(
    coords: Coordinates,
    radius: int = NEARBY_RADIUS_M,
    access_token: str | None = None,
) -> list[dict] | None:
    """現在地周辺の店舗を取得する.

    Args:
        coords: 現在地
        radius: 検索半径（m）
        access_token: ログインユーザーのアクセストークン（省略時は anon key）

    Returns:
        店舗レコードのリスト。失敗時は None。
    """
    headers = {
        "Authorization": f"Bearer {access_token or SUPABASE_ANON_KEY}",
        "apikey": SUPABASE_ANON_KEY,
        "Content-Type": "application/json",
    }
    body = {
        "latitude": coords.latitude,
        "longitude": coords.longitude,
        "radius": radius,
    }

    try:
        resp = requests.post(
            _function_url(NEARBY_SHOPS_FUNCTION),
            json=body,
            headers=headers,
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as e:
        logger.error("近隣店舗取得失敗: lat=%s, lng=%s, error=%s", coords.latitude, coords.longitude, e)
        return None
    except ValueError as e:
        logger.error("近隣店舗レスポンスの JSON パースエラー: %s", e)
        return None

    if not isinstance(data, dict) or data.get("error"):
        logger.error("近隣店舗取得エラー: %s", data.get("error") if isinstance(data, dict) else data)
        return None

    shops = data.get("shops") or []
    logger.info("近隣店舗: %d 件", len(shops))
    return shops
