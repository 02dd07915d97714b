# CSV import for playlist exports (Exportify-style column names).
#
# Headers are matched loosely so "Artist", "Artists" or "Artist_Name(s)" all
# resolve to the canonical "Artist Name(s)". Rows are handled one at a time: a
# bad row is recorded in the error list and the import carries on.

from __future__ import annotations

import csv
import io
import logging
from typing import Dict, List, Optional, Union

from .errors import CsvHeaderError, InputValidationError
from .models import CsvImportResult, CsvTrackEntry, CsvTrackMetadata, clean_value

logger = logging.getLogger(__name__)

ARTIST_HEADER = "Artist Name(s)"
TRACK_HEADER = "Track Name"
ALBUM_HEADER = "Album Name"
GENRES_HEADER = "Artist Genres"
RELEASE_DATE_HEADER = "Album Release Date"
TEMPO_HEADER = "BPM/Tempo"

EXPECTED_HEADERS = (
    ARTIST_HEADER,
    TRACK_HEADER,
    ALBUM_HEADER,
    GENRES_HEADER,
    RELEASE_DATE_HEADER,
    TEMPO_HEADER,
)

# canonical header -> CsvTrackMetadata field
_FIELD_FOR_HEADER = {
    ARTIST_HEADER: "artist_names",
    TRACK_HEADER: "track_name",
    ALBUM_HEADER: "album_name",
    GENRES_HEADER: "artist_genres",
    RELEASE_DATE_HEADER: "album_release_date",
    TEMPO_HEADER: "bpm_tempo",
}

_HEADER_SEPARATORS = str.maketrans({" ": "_", "-": "_", "/": "_"})
_HEADER_STRIP = str.maketrans("", "", '()[]"')


def normalize_header(header: str) -> str:
    return (header or "").lower().translate(_HEADER_SEPARATORS).translate(_HEADER_STRIP)


def find_column_index(headers: List[str], target: str) -> Optional[int]:
    want = normalize_header(target)
    for idx, header in enumerate(headers):
        have = normalize_header(header)
        if not have:
            continue
        if have == want or want in have or have in want:
            return idx
    return None


def _decode(content: Union[bytes, str]) -> str:
    if isinstance(content, bytes):
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise InputValidationError(f"CSV is not valid UTF-8: {e}") from e
    return content.lstrip("\ufeff")


def _read_header(reader) -> List[str]:
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return []
        except csv.Error as e:
            raise CsvHeaderError(f"Failed to read CSV headers: {e}") from e
        if row:
            return [h.strip() for h in row]


def _column_map(headers: List[str]) -> Dict[str, Optional[int]]:
    return {name: find_column_index(headers, name) for name in EXPECTED_HEADERS}


def _cell(row: List[str], idx: Optional[int]) -> Optional[str]:
    if idx is None or idx >= len(row):
        return None
    return clean_value(row[idx])


def build_search_query(artist: Optional[str], track: Optional[str]) -> Optional[str]:
    if artist and track:
        return f"{artist} - {track}"
    return artist or track or None


def validate_headers(content: Union[bytes, str]) -> List[str]:
    """Canonical headers recognized in the header row, in canonical order."""
    reader = csv.reader(io.StringIO(_decode(content), newline=""), strict=True)
    headers = _read_header(reader)
    return [name for name, idx in _column_map(headers).items() if idx is not None]


def parse_csv(content: Union[bytes, str]) -> CsvImportResult:
    reader = csv.reader(io.StringIO(_decode(content), newline=""), strict=True)
    headers = _read_header(reader)
    columns = _column_map(headers)

    entries: List[CsvTrackEntry] = []
    errors: List[str] = []
    row_number = 1

    while True:
        try:
            row = next(reader)
        except StopIteration:
            break
        except csv.Error as e:
            row_number += 1
            errors.append(f"Row {row_number}: Failed to parse CSV record: {e}")
            continue

        if not row:
            continue
        row_number += 1

        meta = CsvTrackMetadata(
            **{_FIELD_FOR_HEADER[name]: _cell(row, idx) for name, idx in columns.items()}
        )
        query = build_search_query(meta.artist_names, meta.track_name)
        if query is None:
            errors.append(
                f"Row {row_number}: Missing both '{ARTIST_HEADER}' and '{TRACK_HEADER}' "
                "- cannot create search query"
            )
            continue

        entries.append(CsvTrackEntry(row_number=row_number, metadata=meta, search_query=query))

    for err in errors:
        logger.warning("CSV import: %s", err)

    return CsvImportResult(
        entries=entries,
        total_count=len(entries) + len(errors),
        success_count=len(entries),
        error_count=len(errors),
        errors=errors,
    )
