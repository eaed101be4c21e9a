"""Unit tests for key-value storage backends."""

import pytest

from pagecraft.storage import JsonFileStorage, MemoryStorage


class TestMemoryStorage:
    def test_set_get_remove(self):
        storage = MemoryStorage()

        storage.set("k", "v")
        assert storage.get("k") == "v"

        storage.remove("k")
        assert storage.get("k") is None

    def test_remove_missing_key_is_noop(self):
        MemoryStorage().remove("missing")


class TestJsonFileStorage:
    def test_missing_key_returns_none(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "store")

        assert storage.get("last_conversation") is None

    def test_set_creates_directory_and_file(self, tmp_path):
        storage = JsonFileStorage(tmp_path / "nested" / "store")

        storage.set("last_conversation", "[]")

        assert (tmp_path / "nested" / "store" / "last_conversation.json").read_text() == "[]"
        assert storage.get("last_conversation") == "[]"

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        storage = JsonFileStorage(tmp_path)

        storage.set("k", "first")
        storage.set("k", "second")

        assert storage.get("k") == "second"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]

    def test_unicode_round_trip(self, tmp_path):
        storage = JsonFileStorage(tmp_path)

        storage.set("k", "café ☕")

        assert storage.get("k") == "café ☕"

    def test_remove(self, tmp_path):
        storage = JsonFileStorage(tmp_path)
        storage.set("k", "v")

        storage.remove("k")
        storage.remove("k")

        assert storage.get("k") is None

    @pytest.mark.parametrize("key", ["../escape", "a/b", "", "with space"])
    def test_rejects_unsafe_keys(self, tmp_path, key):
        storage = JsonFileStorage(tmp_path)

        with pytest.raises(ValueError, match="Invalid storage key"):
            storage.set(key, "v")

    def test_expands_user_directory(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))

        storage = JsonFileStorage("~/pagecraft-data")

        assert storage.directory == tmp_path / "pagecraft-data"
