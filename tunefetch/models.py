# Data structures shared across the pipeline

from __future__ import annotations

import re
import uuid
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import List, Optional


def clean_value(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


class InputType(Enum):
    URL = "url"
    SEARCH_QUERY = "search_query"


class AudioMode(Enum):
    OFFICIAL = "official"
    RAW = "raw"
    CLEAN = "clean"

    @property
    def search_suffix(self) -> str:
        return f"{self.value} audio"


@dataclass(frozen=True)
class AcquisitionRequest:
    input_type: InputType
    original_text: str
    processed_query: str
    video_id: Optional[str] = None


@dataclass(frozen=True)
class VideoInfo:
    id: str
    title: str
    url: str
    thumbnail_url: Optional[str] = None
    uploader: Optional[str] = None
    duration_seconds: Optional[int] = None
    upload_date: Optional[str] = None


@dataclass
class TrackMetadata:
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[str] = None
    genre: Optional[str] = None
    track_number: Optional[str] = None
    album_artist: Optional[str] = None
    comment: Optional[str] = None

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, clean_value(getattr(self, f.name)))

    def missing(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is None]

    def fill_missing(self, other: "TrackMetadata") -> "TrackMetadata":
        """Copy values from `other` into fields that are unset here. Returns self."""
        for name in self.missing():
            value = clean_value(getattr(other, name))
            if value is not None:
                setattr(self, name, value)
        return self

    def copy(self) -> "TrackMetadata":
        return TrackMetadata(**{f.name: getattr(self, f.name) for f in fields(self)})


_YEAR_RE = re.compile(r"^(\d{4})")


@dataclass
class CsvTrackMetadata:
    artist_names: Optional[str] = None
    track_name: Optional[str] = None
    album_name: Optional[str] = None
    artist_genres: Optional[str] = None
    album_release_date: Optional[str] = None
    bpm_tempo: Optional[str] = None

    def to_track_metadata(self) -> TrackMetadata:
        year = None
        if self.album_release_date:
            m = _YEAR_RE.match(self.album_release_date.strip())
            if m:
                year = m.group(1)
        return TrackMetadata(
            title=self.track_name,
            artist=self.artist_names,
            album=self.album_name,
            genre=self.artist_genres,
            year=year,
        )


@dataclass
class CsvTrackEntry:
    row_number: int
    metadata: CsvTrackMetadata
    search_query: str


@dataclass
class CsvImportResult:
    entries: List[CsvTrackEntry] = field(default_factory=list)
    total_count: int = 0
    success_count: int = 0
    error_count: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ToolLocation:
    tool: str
    path: Path
    source: str  # "system" or "private"


@dataclass
class ProcessInputResult:
    items: List[AcquisitionRequest] = field(default_factory=list)
    total_count: int = 0
    url_count: int = 0
    search_count: int = 0


@dataclass
class AcquisitionJob:
    request: AcquisitionRequest
    metadata: TrackMetadata = field(default_factory=TrackMetadata)
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass
class AcquisitionResult:
    job_id: str
    request: AcquisitionRequest
    file_path: Path
    metadata: TrackMetadata
    video: Optional[VideoInfo] = None


@dataclass
class BatchOutcome:
    job: AcquisitionJob
    result: Optional[AcquisitionResult] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.result is not None
