"""
Unit tests for ThemeStore
"""
from pathlib import Path
from unittest.mock import Mock

from saafy.services.theme import DARK_PALETTE, LIGHT_PALETTE, ThemeStore
from saafy.storage.kv_store import JsonFileStore, KeyValueStore, MemoryStore
from saafy.utils.exceptions import StorageError


class TestThemeStore:

    def test_defaults_to_light(self, memory_store):
        theme = ThemeStore(memory_store)

        assert theme.is_dark is False
        assert theme.mode == "light"
        assert theme.palette is LIGHT_PALETTE

    def test_reads_persisted_dark(self, memory_store):
        memory_store.set("theme", "dark")

        assert ThemeStore(memory_store).is_dark is True

    def test_toggle_twice_restores_palette(self, memory_store):
        theme = ThemeStore(memory_store)
        original = theme.get_palette()

        theme.toggle()
        assert theme.get_palette() is DARK_PALETTE
        theme.toggle()

        assert theme.get_palette() == original

    def test_toggle_persists(self, memory_store):
        theme = ThemeStore(memory_store)

        assert theme.toggle() is True
        assert memory_store.get("theme") == "dark"
        theme.toggle()
        assert memory_store.get("theme") == "light"

    def test_reload_matches_last_toggle(self, tmp_path):
        path = tmp_path / "state.json"
        theme = ThemeStore(JsonFileStore(path))
        theme.toggle()
        theme.toggle()
        theme.toggle()

        assert ThemeStore(JsonFileStore(path)).is_dark is True

    def test_fonts_same_for_both_modes(self):
        theme = ThemeStore(MemoryStore())
        light_fonts = dict(theme.fonts)
        theme.toggle()

        assert dict(theme.fonts) == light_fonts
        assert set(light_fonts) == {"display", "primary", "mono"}

    def test_palettes_have_same_keys(self):
        assert set(LIGHT_PALETTE) == set(DARK_PALETTE)

    def test_unreadable_store_falls_back_to_light(self):
        store = Mock(spec=KeyValueStore)
        store.get.side_effect = StorageError("blocked")

        assert ThemeStore(store).is_dark is False

    def test_unreadable_state_dir_falls_back_to_light(self, tmp_path, monkeypatch):
        def denied(self, *args, **kwargs):
            raise PermissionError(13, "Permission denied", str(self))

        monkeypatch.setattr(Path, "exists", denied)

        assert ThemeStore(JsonFileStore(tmp_path / "state.json")).is_dark is False

    def test_persist_failure_still_flips(self):
        store = Mock(spec=KeyValueStore)
        store.get.return_value = None
        store.set.side_effect = StorageError("disk full")
        theme = ThemeStore(store)

        assert theme.toggle() is True
        assert theme.is_dark is True
