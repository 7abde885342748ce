"""Tests for core value types."""

import pytest

from jukebox.models import AlbumContext, RepeatMode, Song


class TestRepeatMode:
    def test_cycle(self) -> None:
        assert RepeatMode.OFF.cycle() == RepeatMode.ALL
        assert RepeatMode.ALL.cycle() == RepeatMode.ONE
        assert RepeatMode.ONE.cycle() == RepeatMode.OFF

    @pytest.mark.parametrize("value", ["one", "ONE", " one ", RepeatMode.ONE])
    def test_parse(self, value) -> None:
        assert RepeatMode.parse(value) == RepeatMode.ONE

    def test_parse_invalid(self) -> None:
        with pytest.raises(ValueError):
            RepeatMode.parse("sometimes")


class TestSong:
    def test_from_dict(self) -> None:
        song = Song.from_dict({"id": 7, "title": "So What", "duration": "9:22", "artist": None})
        assert song.id == "7"
        assert song.artist == ""
        assert song.duration == 562.0
        assert song.cover is None

    def test_to_dict_omits_missing_cover(self) -> None:
        data = Song(id="1", title="T").to_dict()
        assert "cover" not in data
        assert Song.from_dict(data) == Song(id="1", title="T")

    @pytest.mark.parametrize(
        "data",
        [
            {"title": "No id"},
            {"id": "", "title": "Empty id"},
            {"id": "1"},
            ["not", "a", "dict"],
        ],
    )
    def test_from_dict_invalid(self, data) -> None:
        with pytest.raises(ValueError):
            Song.from_dict(data)

    def test_frozen(self) -> None:
        song = Song(id="1", title="T")
        with pytest.raises(AttributeError):
            song.title = "Other"


class TestAlbumContext:
    def test_index_of(self, album: AlbumContext) -> None:
        assert album.index_of(album.songs[2]) == 2
        assert album.index_of(None) == -1
        assert album.index_of(Song(id="x", title="Nope")) == -1

    def test_index_of_falls_back_to_title(self, album: AlbumContext) -> None:
        assert album.index_of(Song(id="other", title="Track 3")) == 3
