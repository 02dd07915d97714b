from __future__ import annotations

from pathlib import Path

import pytest
from mutagen.id3 import ID3

import tunefetch.tagger as tagger
from tunefetch.errors import TaggingError, TagTargetNotFoundError, UnsupportedFormatError
from tunefetch.models import TrackMetadata

# A few MPEG frame headers; enough for mutagen to prepend an ID3 header to.
FAKE_MP3 = b"\xff\xfb\x90\x64" + b"\x00" * 413


@pytest.fixture
def mp3(tmp_path: Path) -> Path:
    path = tmp_path / "song.mp3"
    path.write_bytes(FAKE_MP3)
    return path


def _read(path: Path) -> ID3:
    return ID3(str(path), translate=False)


def test_writes_all_fields(mp3: Path) -> None:
    meta = TrackMetadata(
        title="Hey Jude",
        artist="The Beatles",
        album="Hey Jude",
        year="1968",
        genre="Rock",
        track_number="1/2",
        album_artist="The Beatles",
        comment="https://www.youtube.com/watch?v=A_MjCqQoLLA",
    )
    tagger.tag_file(mp3, meta)

    tags = _read(mp3)
    assert tags.version[:2] == (2, 3)
    assert tags["TIT2"].text == ["Hey Jude"]
    assert tags["TPE1"].text == ["The Beatles"]
    assert tags["TALB"].text == ["Hey Jude"]
    assert tags["TYER"].text == ["1968"]
    assert tags["TCON"].text == ["Rock"]
    assert tags["TRCK"].text == ["1/2"]
    assert tags["TPE2"].text == ["The Beatles"]
    comments = tags.getall("COMM")
    assert len(comments) == 1
    assert comments[0].lang == "eng"
    assert comments[0].desc == "Source"
    assert comments[0].text == ["https://www.youtube.com/watch?v=A_MjCqQoLLA"]
    assert tags["TIT2"].encoding == 1


def test_audio_data_is_preserved(mp3: Path) -> None:
    tagger.tag_file(mp3, TrackMetadata(title="x"))
    assert mp3.read_bytes().endswith(FAKE_MP3)


def test_absent_fields_produce_no_frames(mp3: Path) -> None:
    tagger.tag_file(mp3, TrackMetadata(title="Only Title"))
    tags = _read(mp3)
    assert sorted(k[:4] for k in tags.keys()) == ["TIT2"]


def test_existing_tags_are_replaced(mp3: Path) -> None:
    tagger.tag_file(mp3, TrackMetadata(title="Old", album="Old Album"))
    tagger.tag_file(mp3, TrackMetadata(title="New"))
    tags = _read(mp3)
    assert tags["TIT2"].text == ["New"]
    assert "TALB" not in tags


def test_non_numeric_year_is_skipped(mp3: Path) -> None:
    tagger.tag_file(mp3, TrackMetadata(title="T", year="nineteen"))
    assert "TYER" not in _read(mp3)


def test_unicode_text(mp3: Path) -> None:
    tagger.tag_file(mp3, TrackMetadata(title="Café – Ünïcødé", artist="Sigur Rós"))
    tags = _read(mp3)
    assert tags["TIT2"].text == ["Café – Ünïcødé"]
    assert tags["TPE1"].text == ["Sigur Rós"]


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(TagTargetNotFoundError):
        tagger.tag_file(tmp_path / "nope.mp3", TrackMetadata(title="x"))


def test_wrong_extension(tmp_path: Path) -> None:
    path = tmp_path / "song.m4a"
    path.write_bytes(b"data")
    with pytest.raises(UnsupportedFormatError):
        tagger.tag_file(path, TrackMetadata(title="x"))
    assert path.read_bytes() == b"data"


def test_uppercase_extension_is_accepted(tmp_path: Path) -> None:
    path = tmp_path / "SONG.MP3"
    path.write_bytes(FAKE_MP3)
    tagger.tag_file(path, TrackMetadata(title="x"))
    assert _read(path)["TIT2"].text == ["x"]


def test_failed_save_leaves_file_untouched(mp3: Path, monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(tagger.ID3, "save", boom)
    with pytest.raises(TaggingError):
        tagger.tag_file(mp3, TrackMetadata(title="x"))
    assert mp3.read_bytes() == FAKE_MP3
    assert sorted(p.name for p in mp3.parent.iterdir()) == ["song.mp3"]


def test_build_tags_only_has_present_fields() -> None:
    tags = tagger.build_tags(TrackMetadata(artist="A", comment="c"))
    assert sorted(k[:4] for k in tags.keys()) == ["COMM", "TPE1"]
