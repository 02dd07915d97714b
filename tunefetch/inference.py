# "Artist - Title" splitting for titles that carry no structured metadata.

from __future__ import annotations

import re

from .models import TrackMetadata

_TITLE_PATTERNS = (
    re.compile(r"(.+?)\s*[-–—]\s*(.+)", re.DOTALL),
    re.compile(r"(.+?)\s*:\s*(.+)", re.DOTALL),
)

MAX_ARTIST_LEN = 100
MAX_TITLE_LEN = 200


def infer(title: str) -> TrackMetadata:
    s = (title or "").strip()

    for rx in _TITLE_PATTERNS:
        m = rx.search(s)
        if not m:
            continue
        artist = m.group(1).strip()
        song = m.group(2).strip()
        if artist and song and len(artist) < MAX_ARTIST_LEN and len(song) < MAX_TITLE_LEN:
            return TrackMetadata(title=song, artist=artist)

    return TrackMetadata(title=s)


def fill_from_title(metadata: TrackMetadata, title: str) -> TrackMetadata:
    """Fill title/artist from `title` without touching fields the caller already set."""
    return metadata.fill_missing(infer(title))
