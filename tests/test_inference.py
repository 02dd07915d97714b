from __future__ import annotations

import pytest

from tunefetch.inference import fill_from_title, infer
from tunefetch.models import TrackMetadata


@pytest.mark.parametrize("sep", ["-", "–", "—", ":"])
def test_splits_on_separators(sep: str) -> None:
    meta = infer(f"Artist Name {sep} Song Title")
    assert meta.artist == "Artist Name"
    assert meta.title == "Song Title"


def test_colon_without_leading_space() -> None:
    meta = infer("Artist Name: Song Title")
    assert (meta.artist, meta.title) == ("Artist Name", "Song Title")


def test_trims_input() -> None:
    meta = infer("  The Beatles - Hey Jude  ")
    assert (meta.artist, meta.title) == ("The Beatles", "Hey Jude")


def test_plain_title_fallback() -> None:
    meta = infer("Just A Title")
    assert meta.artist is None
    assert meta.title == "Just A Title"


def test_only_title_and_artist_are_set() -> None:
    meta = infer("A - B")
    assert meta.album is None and meta.year is None and meta.comment is None


def test_long_artist_is_rejected() -> None:
    text = "x" * 150 + " - Song"
    meta = infer(text)
    assert meta.artist is None
    assert meta.title == text


def test_long_title_is_rejected() -> None:
    text = "Artist - " + "y" * 250
    meta = infer(text)
    assert meta.artist is None
    assert meta.title == text


@pytest.mark.parametrize(
    "artist,title",
    [("Queen", "Bohemian Rhapsody"), ("a" * 99, "b" * 199), ("AC DC", "T.N.T.")],
)
def test_round_trip(artist: str, title: str) -> None:
    meta = infer(f"{artist} - {title}")
    assert (meta.artist, meta.title) == (artist, title)


def test_fill_from_title_keeps_caller_values() -> None:
    meta = TrackMetadata(artist="Caller Artist")
    fill_from_title(meta, "Someone Else - The Song")
    assert meta.artist == "Caller Artist"
    assert meta.title == "The Song"


def test_fill_treats_empty_strings_as_missing() -> None:
    meta = TrackMetadata(title="", artist="  ")
    fill_from_title(meta, "Band - Tune")
    assert (meta.artist, meta.title) == ("Band", "Tune")
