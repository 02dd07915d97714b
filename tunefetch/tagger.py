# ID3v2.3 tagging (UTF-16 text, v2.3 save).
#
# The tag is built from scratch: only fields that are present produce a frame.
# Tags are written into a temporary copy that then replaces the original, so a
# failed save leaves the file untouched.

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from typing import Union

from mutagen import MutagenError
from mutagen.id3 import COMM, ID3, TALB, TCON, TIT2, TPE1, TPE2, TRCK, TYER

from .errors import TaggingError, TagTargetNotFoundError, UnsupportedFormatError
from .models import TrackMetadata

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSION = ".mp3"

ENC = 1  # UTF-16 for ID3v2.3 compatibility
COMMENT_LANG = "eng"
COMMENT_DESC = "Source"


def _year(value: str):
    try:
        return str(int(value.strip()))
    except ValueError:
        return None


def build_tags(meta: TrackMetadata):
    tags = ID3()

    if meta.title:
        tags.add(TIT2(encoding=ENC, text=meta.title))
    if meta.artist:
        tags.add(TPE1(encoding=ENC, text=meta.artist))
    if meta.album:
        tags.add(TALB(encoding=ENC, text=meta.album))
    if meta.year:
        y = _year(meta.year)
        if y is not None:
            tags.add(TYER(encoding=ENC, text=y))
        else:
            logger.debug("Skipping non-numeric year %r", meta.year)
    if meta.genre:
        tags.add(TCON(encoding=ENC, text=meta.genre))
    if meta.track_number:
        tags.add(TRCK(encoding=ENC, text=meta.track_number))
    if meta.album_artist:
        tags.add(TPE2(encoding=ENC, text=meta.album_artist))
    if meta.comment:
        tags.add(COMM(encoding=ENC, lang=COMMENT_LANG, desc=COMMENT_DESC, text=meta.comment))

    return tags


def tag_file(path: Union[str, Path], meta: TrackMetadata) -> None:
    mp3_path = Path(path)
    if not mp3_path.exists():
        raise TagTargetNotFoundError(f"File does not exist: {mp3_path}")
    if mp3_path.suffix.lower() != SUPPORTED_EXTENSION:
        raise UnsupportedFormatError(f"File is not an MP3 file: {mp3_path}")

    tags = build_tags(meta)

    tmp = mp3_path.with_name(f".{mp3_path.name}.tagging")
    try:
        shutil.copy2(mp3_path, tmp)
        tags.save(str(tmp), v2_version=3)
        os.replace(tmp, mp3_path)
    except (OSError, MutagenError) as e:
        tmp.unlink(missing_ok=True)
        raise TaggingError(f"Failed to write ID3 tags to {mp3_path}: {e}") from e

    logger.info("Tagged %s", mp3_path)
