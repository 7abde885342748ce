"""
Next/previous track resolution within an album.
"""

import random
from typing import Optional

from jukebox.models import AlbumContext, RepeatMode, Song


def next_index(
    length: int,
    current_index: int,
    shuffle: bool,
    repeat_mode: RepeatMode,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """
    Index of the track after current_index, or None when playback should stop.

    Shuffle picks uniformly from the whole album whatever the repeat mode.
    Repeat ONE is not handled here: a manual skip behaves like OFF.
    """
    if length <= 0:
        return None
    if shuffle:
        return (rng or random).randrange(length)
    if repeat_mode == RepeatMode.ALL:
        return (current_index + 1) % length
    if current_index + 1 >= length:
        return None
    return current_index + 1


def previous_index(length: int, current_index: int) -> Optional[int]:
    """Index of the track before current_index. Always wraps around."""
    if length <= 0:
        return None
    return (current_index - 1 + length) % length


class RepeatShuffleResolver:
    """Maps (album, position, modes) to the song that plays next or previously."""

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def next(
        self,
        album: Optional[AlbumContext],
        current_index: int,
        shuffle: bool,
        repeat_mode: RepeatMode,
    ) -> Optional[Song]:
        if album is None:
            return None
        index = next_index(len(album), current_index, shuffle, repeat_mode, self._rng)
        return album.songs[index] if index is not None else None

    def previous(self, album: Optional[AlbumContext], current_index: int) -> Optional[Song]:
        if album is None:
            return None
        index = previous_index(len(album), current_index)
        return album.songs[index] if index is not None else None
