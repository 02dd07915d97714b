# Command line entry point.

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import config
from .csv_import import parse_csv, validate_headers
from .errors import TunefetchError
from .events import Event, EventChannel, ProgressEvent, ToolStatusEvent
from .models import AudioMode, BatchOutcome, TrackMetadata
from .pipeline import acquire_batch, jobs_from_csv, jobs_from_text
from .tagger import tag_file
from .toolchain import Toolchain
from .transcode import convert_to_mp3

logger = logging.getLogger(__name__)


def _print_event(event: Event) -> None:
    if isinstance(event, ProgressEvent):
        print(f"  [{(event.job_id or '-')[:8]}] {event.progress:3d}% {event.message}")
    elif isinstance(event, ToolStatusEvent):
        print(f"  {event.tool}: {event.status.value} - {event.message}")


def _channel() -> EventChannel:
    channel = EventChannel(buffered=False)
    channel.subscribe(_print_event)
    return channel


def _report(outcomes: List[BatchOutcome]) -> int:
    failed = 0
    for o in outcomes:
        if o.ok:
            print(f"OK    {o.job.request.original_text} -> {o.result.file_path}")
        else:
            failed += 1
            print(f"FAIL  {o.job.request.original_text}: {o.error}")
    print(f"{len(outcomes) - failed} succeeded, {failed} failed")
    return 0 if failed == 0 else 1


def cmd_setup(args) -> int:
    locations = Toolchain(channel=_channel()).ensure_ready()
    for name, loc in locations.items():
        print(f"{name}: {loc.path} ({loc.source})")
    return 0


def cmd_get(args) -> int:
    lines = list(args.lines)
    if args.input:
        lines.extend(Path(args.input).read_text(encoding="utf-8").splitlines())
    jobs = jobs_from_text("\n".join(lines), AudioMode(args.mode))
    if not jobs:
        print("Nothing to download.")
        return 2
    outcomes = acquire_batch(jobs, Path(args.out), max_workers=args.workers, channel=_channel())
    return _report(outcomes)


def cmd_csv(args) -> int:
    content = Path(args.file).read_bytes()
    found = validate_headers(content)
    print(f"Recognized columns: {', '.join(found) if found else '(none)'}")

    result = parse_csv(content)
    print(f"Rows: {result.total_count} total, {result.success_count} ok, {result.error_count} errors")
    for err in result.errors:
        print(f"  {err}")
    if args.check:
        return 0 if result.error_count == 0 else 1

    mode = AudioMode(args.mode) if args.mode else None
    jobs = jobs_from_csv(result, mode)
    if not jobs:
        return 1
    outcomes = acquire_batch(jobs, Path(args.out), max_workers=args.workers, channel=_channel())
    code = _report(outcomes)
    return code if result.error_count == 0 else 1


def cmd_tag(args) -> int:
    meta = TrackMetadata(
        title=args.title,
        artist=args.artist,
        album=args.album,
        year=args.year,
        genre=args.genre,
        track_number=args.track,
        album_artist=args.album_artist,
        comment=args.comment,
    )
    tag_file(Path(args.file), meta)
    print(f"Tagged {args.file}")
    return 0


def cmd_convert(args) -> int:
    ffmpeg = Toolchain(channel=_channel()).ffmpeg()
    out = convert_to_mp3(ffmpeg, Path(args.input), Path(args.output))
    print(f"Wrote {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=config.APP_NAME,
        description="Download audio from YouTube, clean up file names and write ID3 tags.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("setup", help="Locate or install ffmpeg and yt-dlp.")
    p.set_defaults(func=cmd_setup)

    def add_batch_options(p, mode_default: Optional[str]):
        p.add_argument("--out", default=str(config.default_output_dir()), help="Output directory.")
        p.add_argument(
            "--mode",
            choices=[m.value for m in AudioMode],
            default=mode_default,
            help="Suffix added to search queries (official/raw/clean audio).",
        )
        p.add_argument("--workers", type=int, default=config.DEFAULT_WORKERS, help="Parallel downloads.")

    p = sub.add_parser("get", help="Download URLs or search phrases.")
    p.add_argument("lines", nargs="*", help="YouTube URLs or search phrases.")
    p.add_argument("--input", help="Text file with one URL or search phrase per line.")
    add_batch_options(p, AudioMode.OFFICIAL.value)
    p.set_defaults(func=cmd_get)

    p = sub.add_parser("csv", help="Import a playlist CSV and download every row.")
    p.add_argument("file", help="CSV file with a header row.")
    p.add_argument("--check", action="store_true", help="Only validate the file.")
    add_batch_options(p, None)
    p.set_defaults(func=cmd_csv)

    p = sub.add_parser("tag", help="Write ID3 tags to an MP3 file.")
    p.add_argument("file")
    for flag in ("title", "artist", "album", "year", "genre", "track", "album-artist", "comment"):
        p.add_argument(f"--{flag}")
    p.set_defaults(func=cmd_tag)

    p = sub.add_parser("convert", help="Convert a local file to MP3 with ffmpeg.")
    p.add_argument("input")
    p.add_argument("output")
    p.set_defaults(func=cmd_convert)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    try:
        return args.func(args)
    except TunefetchError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
