"""設定モジュール — 環境変数・定数定義."""

import os
from pathlib import Path

from dotenv import load_dotenv

# .env はプロジェクトルートに配置
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJECT_ROOT / ".env")

# --- Supabase ---
SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
SUPABASE_ANON_KEY: str = os.getenv("SUPABASE_ANON_KEY", "")

# --- 近隣店舗取得 (Edge Function) ---
NEARBY_SHOPS_FUNCTION = "fetch-nearby-shops"
NEARBY_RADIUS_M = 5000
REQUEST_TIMEOUT = 15  # 秒

# --- カート ---
CART_STORAGE_KEY = "cart"
CART_STORAGE_PATH = Path(
    os.getenv("LOCALSHOP_STORAGE_PATH", str(_PROJECT_ROOT / "data" / "local_storage.json"))
)
CROSS_SHOP_CONFIRM_MESSAGE = (
    "Your cart contains items from another shop. "
    "Adding this item will clear your current cart. Continue?"
)

# --- 位置情報 ---
GEOLOCATION_TIMEOUT_MS = 10_000
EARTH_RADIUS_KM = 6371.0
DISTANCE_DECIMALS = 2

# --- ログ ---
LOG_DIR = Path(os.getenv("LOCALSHOP_LOG_DIR", str(_PROJECT_ROOT / "logs")))
