"""
Favorite songs, artists and albums.
"""

import logging
from typing import Optional

from jukebox.notifications import NotificationCenter, NotificationType
from jukebox.storage import PersistenceGateway, StorageKeys

logger = logging.getLogger(__name__)

FAVORITE_KEYS = {
    "songs": StorageKeys.FAVORITE_SONGS,
    "artists": StorageKeys.FAVORITE_ARTISTS,
    "albums": StorageKeys.FAVORITE_ALBUMS,
}


class FavoritesManager:
    """
    Three independent id sets, each persisted under its own key.

    Songs are keyed by song id, artists and albums by name.
    """

    def __init__(
        self,
        store: PersistenceGateway,
        notifier: Optional[NotificationCenter] = None,
    ):
        self._store = store
        self._notifier = notifier
        self._sets: dict[str, set[str]] = {kind: set() for kind in FAVORITE_KEYS}

    def load(self) -> None:
        """Restore all three sets from storage."""
        for kind, key in FAVORITE_KEYS.items():
            data = self._store.load(key)
            if isinstance(data, list):
                self._sets[kind] = {str(item) for item in data}
        logger.debug(
            "Restored favorites: "
            + ", ".join(f"{len(ids)} {kind}" for kind, ids in self._sets.items())
        )

    def add(self, kind: str, item_id: str) -> None:
        self._ids(kind).add(item_id)
        self._persist(kind)
        self._notify(f"Added {self._item_name(kind)} to favorites", "success")

    def remove(self, kind: str, item_id: str) -> None:
        self._ids(kind).discard(item_id)
        self._persist(kind)
        self._notify(f"Removed {self._item_name(kind)} from favorites", "info")

    def toggle(self, kind: str, item_id: str) -> bool:
        """Flip membership. Returns True if item_id is now a favorite."""
        if self.has(kind, item_id):
            self.remove(kind, item_id)
            return False
        self.add(kind, item_id)
        return True

    def has(self, kind: str, item_id: str) -> bool:
        return item_id in self._ids(kind)

    def items(self, kind: str) -> frozenset[str]:
        return frozenset(self._ids(kind))

    def _ids(self, kind: str) -> set[str]:
        try:
            return self._sets[kind]
        except KeyError:
            raise ValueError(f"Unknown favorite type: {kind!r}")

    def _persist(self, kind: str) -> None:
        if not self._store.save(FAVORITE_KEYS[kind], sorted(self._sets[kind])):
            logger.warning(f"Failed to persist favorite {kind}")

    @staticmethod
    def _item_name(kind: str) -> str:
        return kind[:-1]

    def _notify(self, message: str, kind: str) -> None:
        if self._notifier is None:
            return
        self._notifier.show(message, NotificationType(kind))
