"""ローカルストレージ（ブラウザ localStorage 相当）の実装."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class KeyValueStorage(ABC):
    """文字列キー・文字列値のストレージインターフェース."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """値を取得する. 未保存なら None."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """値を保存する."""


class MemoryStorage(KeyValueStorage):
    """プロセス内だけで保持するストレージ."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStorage(KeyValueStorage):
    """1つの JSON ファイルに全キーを保存するストレージ.

    ファイルが存在しない、または JSON オブジェクトでない場合は空として扱う。
    書き込みは一時ファイル経由で置き換える。
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning("ストレージファイルが壊れています: path=%s, error=%s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("ストレージファイルの形式が不正です: path=%s", self.path)
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
