"""storage モジュールのユニットテスト."""

import json

from localshop.storage import JsonFileStorage, MemoryStorage


class TestMemoryStorage:
    """MemoryStorage のテスト."""

    def test_get_missing(self):
        assert MemoryStorage().get("cart") is None

    def test_set_and_get(self):
        storage = MemoryStorage()
        storage.set("cart", "{}")
        assert storage.get("cart") == "{}"


class TestJsonFileStorage:
    """JsonFileStorage のテスト."""

    def test_missing_file(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "local_storage.json")
        assert storage.get("cart") is None

    def test_set_creates_file(self, tmp_path):
        """親ディレクトリごと作成して保存できること."""
        path = tmp_path / "data" / "local_storage.json"
        storage = JsonFileStorage(path)
        storage.set("cart", '{"lines": [], "shopId": null}')

        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == {"cart": '{"lines": [], "shopId": null}'}
        assert JsonFileStorage(path).get("cart") == '{"lines": [], "shopId": null}'

    def test_keeps_other_keys(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "local_storage.json")
        storage.set("theme", "dark")
        storage.set("cart", "x")
        assert storage.get("theme") == "dark"
        assert storage.get("cart") == "x"

    def test_corrupt_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "local_storage.json"
        path.write_text("not json", encoding="utf-8")
        storage = JsonFileStorage(path)

        assert storage.get("cart") is None
        storage.set("cart", "y")
        assert storage.get("cart") == "y"

    def test_non_object_reads_as_empty(self, tmp_path):
        path = tmp_path / "local_storage.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert JsonFileStorage(path).get("cart") is None

    def test_no_temp_files_left(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "local_storage.json")
        storage.set("cart", "z")
        assert [p.name for p in tmp_path.iterdir()] == ["local_storage.json"]
