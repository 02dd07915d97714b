# Acquire one track end to end, and run many of them as a batch.
#
# Stages run in a fixed order: provision -> search -> download -> sanitize ->
# infer -> tag. The search stage only runs for search-query requests. Any
# failure stops that job and is raised as StageError naming the stage; jobs in
# a batch never affect each other.

from __future__ import annotations

import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, List, Optional

from . import config
from .errors import (
    NoSearchResultError,
    PathRecoveryError,
    RenameCollisionError,
    StageError,
    TunefetchError,
)
from .events import EventChannel, progress_reporter
from .inference import fill_from_title
from .inputs import construct_search_query, process_input
from .models import (
    AcquisitionJob,
    AcquisitionRequest,
    AcquisitionResult,
    AudioMode,
    BatchOutcome,
    CsvImportResult,
    InputType,
    VideoInfo,
)
from .sanitize import sanitize
from .tagger import tag_file
from .toolchain import Toolchain
from .youtube import download_audio, search_video, watch_url

logger = logging.getLogger(__name__)

STAGE_PROVISION = "provision"
STAGE_SEARCH = "search"
STAGE_DOWNLOAD = "download"
STAGE_SANITIZE = "sanitize"
STAGE_INFER = "infer"
STAGE_TAG = "tag"


def strip_video_id(stem: str, video_id: Optional[str]) -> str:
    """Drop the trailing "[<id>]" token that the download template adds."""
    if not video_id:
        return stem
    return re.sub(r"\s*" + re.escape(f"[{video_id}]") + r"$", "", stem)


def clean_stem(stem: str, video_id: Optional[str]) -> str:
    return sanitize(strip_video_id(stem, video_id)) or video_id or "audio"


def rename_if_needed(path: Path, new_stem: str) -> Path:
    if new_stem == path.stem:
        return path
    target = path.with_name(f"{new_stem}{path.suffix}")
    if target.exists() and os.path.samefile(target, path):
        # case-only rename on a case-insensitive filesystem
        os.replace(path, target)
        return target

    # Claim the name with an exclusive create so concurrent jobs cannot both win.
    try:
        fd = os.open(target, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
    except FileExistsError as e:
        raise RenameCollisionError(f"Cannot rename {path.name}: {target} already exists") from e
    os.close(fd)
    try:
        os.replace(path, target)
    except OSError:
        target.unlink(missing_ok=True)
        raise
    logger.debug("Renamed %s -> %s", path.name, target.name)
    return target


class TrackPipeline:
    def __init__(
        self,
        output_dir: Path,
        channel: Optional[EventChannel] = None,
        toolchain: Optional[Toolchain] = None,
    ):
        self.output_dir = Path(output_dir)
        self.channel = channel
        self.toolchain = toolchain or Toolchain(channel=channel)

    @contextmanager
    def _stage(self, job: AcquisitionJob, name: str):
        logger.debug("[%s] %s", job.job_id, name)
        try:
            yield
        except (TunefetchError, OSError) as e:
            logger.error("[%s] %s failed: %s", job.job_id, name, e)
            raise StageError(name, e) from e

    def run(self, job: AcquisitionJob) -> AcquisitionResult:
        request = job.request
        report = progress_reporter(self.channel, job.job_id)

        with self._stage(job, STAGE_PROVISION):
            ytdlp = self.toolchain.ytdlp()
            ffmpeg = self.toolchain.ffmpeg()

        video: Optional[VideoInfo] = None
        video_id = request.video_id
        if request.input_type is InputType.SEARCH_QUERY or not video_id:
            with self._stage(job, STAGE_SEARCH):
                video = search_video(ytdlp, request.processed_query)
                if video is None:
                    raise NoSearchResultError(f"No results for {request.processed_query!r}")
                video_id = video.id

        with self._stage(job, STAGE_DOWNLOAD):
            self.output_dir.mkdir(parents=True, exist_ok=True)
            downloaded = download_audio(
                ytdlp,
                video_id,
                self.output_dir,
                ffmpeg_location=ffmpeg,
                on_progress=report,
            )
            if not downloaded.is_file():
                raise PathRecoveryError(f"yt-dlp reported {downloaded} but the file does not exist")

        with self._stage(job, STAGE_SANITIZE):
            final_path = rename_if_needed(downloaded, clean_stem(downloaded.stem, video_id))

        with self._stage(job, STAGE_INFER):
            metadata = job.metadata.copy()
            source_title = sanitize(video.title) if video and video.title else final_path.stem
            fill_from_title(metadata, source_title)
            if not metadata.comment:
                metadata.comment = watch_url(video_id)

        with self._stage(job, STAGE_TAG):
            tag_file(final_path, metadata)

        logger.info("[%s] Done: %s", job.job_id, final_path)
        return AcquisitionResult(
            job_id=job.job_id,
            request=request,
            file_path=final_path,
            metadata=metadata,
            video=video,
        )


def acquire_track(
    job: AcquisitionJob,
    output_dir: Path,
    *,
    channel: Optional[EventChannel] = None,
    toolchain: Optional[Toolchain] = None,
) -> AcquisitionResult:
    return TrackPipeline(output_dir, channel=channel, toolchain=toolchain).run(job)


def _run_one(pipeline: TrackPipeline, job: AcquisitionJob) -> BatchOutcome:
    try:
        return BatchOutcome(job=job, result=pipeline.run(job))
    except StageError as e:
        return BatchOutcome(job=job, error=e)
    except Exception as e:
        logger.exception("[%s] Unexpected error", job.job_id)
        return BatchOutcome(job=job, error=e)


def acquire_batch(
    jobs: Iterable[AcquisitionJob],
    output_dir: Path,
    *,
    max_workers: int = config.DEFAULT_WORKERS,
    channel: Optional[EventChannel] = None,
    toolchain: Optional[Toolchain] = None,
) -> List[BatchOutcome]:
    """Run every job independently; outcomes are returned in completion order."""
    jobs = list(jobs)
    if not jobs:
        return []
    pipeline = TrackPipeline(output_dir, channel=channel, toolchain=toolchain)
    workers = max(1, min(int(max_workers), config.MAX_WORKERS, len(jobs)))

    outcomes: List[BatchOutcome] = []
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(_run_one, pipeline, job) for job in jobs]
        for fut in as_completed(futures):
            outcomes.append(fut.result())

    failed = sum(1 for o in outcomes if not o.ok)
    logger.info("Batch finished: %d succeeded, %d failed", len(outcomes) - failed, failed)
    return outcomes


def jobs_from_text(input_text: str, mode: AudioMode = AudioMode.OFFICIAL) -> List[AcquisitionJob]:
    return [AcquisitionJob(request=item) for item in process_input(input_text, mode).items]


def jobs_from_csv(result: CsvImportResult, mode: Optional[AudioMode] = None) -> List[AcquisitionJob]:
    jobs = []
    for entry in result.entries:
        query = construct_search_query(entry.search_query, mode) if mode else entry.search_query
        request = AcquisitionRequest(
            input_type=InputType.SEARCH_QUERY,
            original_text=entry.search_query,
            processed_query=query,
        )
        jobs.append(AcquisitionJob(request=request, metadata=entry.metadata.to_track_metadata()))
    return jobs
