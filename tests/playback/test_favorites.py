"""Tests for favorites."""

from unittest.mock import MagicMock

import pytest

from jukebox.notifications import NotificationCenter, NotificationType
from jukebox.playback.favorites import FavoritesManager
from jukebox.storage import MemoryStore, StorageKeys


@pytest.fixture
def notifier() -> MagicMock:
    return MagicMock(spec=NotificationCenter)


@pytest.fixture
def favorites(store: MemoryStore, notifier: MagicMock) -> FavoritesManager:
    return FavoritesManager(store, notifier=notifier)


class TestFavorites:
    def test_add_and_has(self, favorites: FavoritesManager, notifier: MagicMock) -> None:
        favorites.add("songs", "42")
        assert favorites.has("songs", "42")
        assert not favorites.has("albums", "42")
        notifier.show.assert_called_with("Added song to favorites", NotificationType.SUCCESS)

    def test_remove(self, favorites: FavoritesManager, notifier: MagicMock) -> None:
        favorites.add("artists", "Queen")
        favorites.remove("artists", "Queen")
        assert not favorites.has("artists", "Queen")
        notifier.show.assert_called_with("Removed artist from favorites", NotificationType.INFO)

    def test_toggle(self, favorites: FavoritesManager) -> None:
        assert favorites.toggle("albums", "Jazz") is True
        assert favorites.toggle("albums", "Jazz") is False
        assert favorites.items("albums") == frozenset()

    def test_persisted_per_type(self, favorites: FavoritesManager, store: MemoryStore) -> None:
        favorites.add("songs", "b")
        favorites.add("songs", "a")
        favorites.add("artists", "Queen")
        assert store.load(StorageKeys.FAVORITE_SONGS) == ["a", "b"]
        assert store.load(StorageKeys.FAVORITE_ARTISTS) == ["Queen"]
        assert store.load(StorageKeys.FAVORITE_ALBUMS) is None

    def test_load(self, store: MemoryStore) -> None:
        store.save(StorageKeys.FAVORITE_SONGS, ["1", 2])
        store.save(StorageKeys.FAVORITE_ALBUMS, "not a list")
        favorites = FavoritesManager(store)
        favorites.load()
        assert favorites.items("songs") == frozenset({"1", "2"})
        assert favorites.items("albums") == frozenset()

    def test_unknown_type(self, favorites: FavoritesManager) -> None:
        with pytest.raises(ValueError):
            favorites.add("playlists", "x")

    def test_without_notifier(self, store: MemoryStore) -> None:
        favorites = FavoritesManager(store)
        favorites.add("songs", "1")
        assert favorites.has("songs", "1")
