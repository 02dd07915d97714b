# tunefetch - YouTube audio acquisition and ID3 tagging.
#
# Toolchain (ffmpeg, yt-dlp) is located on PATH or installed into a private
# directory on first use; downloads are cleaned up, named and tagged as MP3.

from .csv_import import parse_csv, validate_headers
from .inference import infer
from .models import AcquisitionJob, AudioMode, TrackMetadata, VideoInfo
from .pipeline import acquire_batch, acquire_track
from .sanitize import sanitize
from .tagger import tag_file

__version__ = "0.1.0"

__all__ = [
    "AcquisitionJob",
    "AudioMode",
    "TrackMetadata",
    "VideoInfo",
    "acquire_batch",
    "acquire_track",
    "infer",
    "parse_csv",
    "sanitize",
    "tag_file",
    "validate_headers",
]
