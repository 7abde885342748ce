"""
Music library provider.

Reads the library JSON document:

    [{"artist": ..., "albums": [{"album": ..., "year": ...,
      "songs": [{"id": ..., "title": ..., "duration": ...}]}]}]
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional

from .errors import LibraryError
from .models import AlbumContext, Song
from .utils import album_image_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artist:
    name: str
    albums: tuple[AlbumContext, ...] = ()


class Library:
    """Artists and their albums, with songs carrying artist, album and cover."""

    def __init__(self, artists: list[Artist]):
        self._artists = list(artists)
        self._by_id: dict[str, tuple[Song, AlbumContext]] = {}
        for album in self.albums():
            for song in album.songs:
                self._by_id.setdefault(song.id, (song, album))

    @classmethod
    def from_file(cls, path: Path, artwork_base_url: str = "") -> "Library":
        """
        Load a library JSON file.

        Raises:
            LibraryError: If the file cannot be read or is not a library document
        """
        path = Path(path).expanduser()
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise LibraryError(f"Library file not found: {path}")
        except (OSError, json.JSONDecodeError) as e:
            raise LibraryError(f"Cannot read library {path}: {e}")

        library = cls.from_data(data, artwork_base_url)
        logger.info(
            f"Loaded library from {path}: {len(library.artists)} artists, "
            f"{len(library)} songs"
        )
        return library

    @classmethod
    def from_data(cls, data: Any, artwork_base_url: str = "") -> "Library":
        """Build a library from parsed JSON. Invalid songs are skipped with a warning."""
        if not isinstance(data, list):
            raise LibraryError(f"Library must be a list of artists, got {type(data).__name__}")

        artists = []
        for entry in data:
            if not isinstance(entry, dict) or not entry.get("artist"):
                logger.warning(f"Skipping library entry without artist: {entry!r:.80}")
                continue
            name = str(entry["artist"])
            albums = tuple(
                _parse_album(name, album, artwork_base_url)
                for album in entry.get("albums") or []
                if isinstance(album, dict)
            )
            artists.append(Artist(name=name, albums=albums))
        return cls(artists)

    # =========================================================================
    # Lookup
    # =========================================================================

    @property
    def artists(self) -> tuple[Artist, ...]:
        return tuple(self._artists)

    def albums(self) -> Iterator[AlbumContext]:
        for artist in self._artists:
            yield from artist.albums

    def all_songs(self) -> list[Song]:
        """Every song, in library order."""
        return [song for album in self.albums() for song in album.songs]

    def find_artist(self, name: str) -> Optional[Artist]:
        key = name.strip().lower()
        return next((a for a in self._artists if a.name.lower() == key), None)

    def find_album(self, artist: str, album: str) -> Optional[AlbumContext]:
        """Album by artist and album name (case-insensitive)."""
        artist_key, album_key = artist.strip().lower(), album.strip().lower()
        for context in self.albums():
            if context.artist.lower() == artist_key and context.album.lower() == album_key:
                return context
        return None

    def find_song(self, song_id: str) -> Optional[Song]:
        found = self._by_id.get(str(song_id))
        return found[0] if found else None

    def album_context_for(self, song: Song) -> Optional[AlbumContext]:
        """The album song belongs to, by artist and album name, then by id."""
        if song.artist and song.album:
            context = self.find_album(song.artist, song.album)
            if context is not None and context.index_of(song) >= 0:
                return context
        found = self._by_id.get(song.id)
        return found[1] if found else None

    def __len__(self) -> int:
        return len(self._by_id)


def _parse_album(artist: str, data: dict, artwork_base_url: str) -> AlbumContext:
    name = str(data.get("album") or "")
    cover = album_image_url(artwork_base_url, name)

    songs = []
    for entry in data.get("songs") or []:
        try:
            song = Song.from_dict(entry)
        except ValueError as e:
            logger.warning(f'Skipping song in "{name}": {e}')
            continue
        songs.append(Song(
            id=song.id,
            title=song.title,
            artist=artist,
            album=name,
            duration=song.duration,
            cover=song.cover or cover,
        ))

    year = data.get("year")
    try:
        year = int(year) if year is not None else None
    except (TypeError, ValueError):
        year = None

    return AlbumContext(artist=artist, album=name, songs=tuple(songs), year=year)
