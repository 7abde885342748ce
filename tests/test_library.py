"""Tests for the music library."""

import json
from pathlib import Path

import pytest

from jukebox.errors import LibraryError
from jukebox.library import Library
from jukebox.models import Song

LIBRARY_DATA = [
    {
        "artist": "Queen",
        "albums": [
            {
                "album": "A Night at the Opera",
                "year": 1975,
                "songs": [
                    {"id": 1, "title": "Death on Two Legs", "duration": "3:43"},
                    {"id": 2, "title": "Lazing on a Sunday Afternoon", "duration": 68},
                ],
            },
            {
                "album": "News of the World",
                "year": "1977",
                "songs": [{"id": 3, "title": "We Will Rock You"}],
            },
        ],
    },
    {
        "artist": "Miles Davis",
        "albums": [
            {
                "album": "Kind of Blue",
                "songs": [{"id": 4, "title": "So What"}, {"title": "Missing id"}],
            }
        ],
    },
    {"albums": []},
]


@pytest.fixture
def library() -> Library:
    return Library.from_data(LIBRARY_DATA, artwork_base_url="http://img/")


class TestParsing:
    def test_counts(self, library: Library) -> None:
        assert len(library) == 4
        assert [a.name for a in library.artists] == ["Queen", "Miles Davis"]
        assert len(list(library.albums())) == 3

    def test_songs_carry_album_fields(self, library: Library) -> None:
        song = library.find_song("1")
        assert song is not None
        assert song.artist == "Queen"
        assert song.album == "A Night at the Opera"
        assert song.cover == "http://img/anightattheopera.png"
        assert song.duration == 223.0

    def test_year(self, library: Library) -> None:
        assert library.find_album("Queen", "News of the World").year == 1977
        assert library.find_album("Miles Davis", "Kind of Blue").year is None

    def test_all_songs_in_library_order(self, library: Library) -> None:
        assert [s.id for s in library.all_songs()] == ["1", "2", "3", "4"]

    def test_not_a_list(self) -> None:
        with pytest.raises(LibraryError):
            Library.from_data({"artist": "Queen"})


class TestLookup:
    def test_find_album_case_insensitive(self, library: Library) -> None:
        album = library.find_album("queen", "a night at the opera ")
        assert album is not None
        assert len(album) == 2

    def test_find_missing(self, library: Library) -> None:
        assert library.find_album("Queen", "Jazz") is None
        assert library.find_artist("ABBA") is None
        assert library.find_song("99") is None

    def test_find_artist(self, library: Library) -> None:
        artist = library.find_artist("MILES DAVIS")
        assert artist is not None
        assert artist.albums[0].album == "Kind of Blue"

    def test_album_context_for(self, library: Library) -> None:
        song = library.find_song("3")
        assert library.album_context_for(song).album == "News of the World"

    def test_album_context_by_id(self, library: Library) -> None:
        bare = Song(id="4", title="So What")
        assert library.album_context_for(bare).album == "Kind of Blue"

    def test_album_context_unknown(self, library: Library) -> None:
        assert library.album_context_for(Song(id="x", title="Nope")) is None


class TestFromFile:
    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "library.json"
        path.write_text(json.dumps(LIBRARY_DATA))
        assert len(Library.from_file(path)) == 4

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(LibraryError, match="not found"):
            Library.from_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "library.json"
        path.write_text("[{not json")
        with pytest.raises(LibraryError):
            Library.from_file(path)
