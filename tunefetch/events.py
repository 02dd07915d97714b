# Progress and tool-status notifications.
#
# Producers post typed events to an EventChannel; consumers either drain the
# queue or subscribe a handler. Posting never raises into the producer.

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Union

logger = logging.getLogger(__name__)


class ToolStatus(Enum):
    ALREADY_INSTALLED = "already_installed"
    DOWNLOADING = "downloading"
    INSTALLING = "installing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressEvent:
    job_id: Optional[str]
    progress: int
    message: str

    name = "download-progress"


@dataclass(frozen=True)
class ToolStatusEvent:
    tool: str
    status: ToolStatus
    message: str

    @property
    def name(self) -> str:
        return f"{self.tool}-progress"


Event = Union[ProgressEvent, ToolStatusEvent]
Handler = Callable[[Event], None]


class EventChannel:
    def __init__(self, buffered: bool = True):
        # Push-only channels (subscribers, no drain()) keep nothing in memory.
        self.buffered = buffered
        self._queue: "queue.Queue[Event]" = queue.Queue()
        self._handlers: List[Handler] = []
        self._lock = threading.Lock()

    def subscribe(self, handler: Handler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def post(self, event: Event) -> None:
        if self.buffered:
            self._queue.put(event)
        with self._lock:
            handlers = list(self._handlers)
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler failed for %s", event.name)

    def drain(self) -> List[Event]:
        out: List[Event] = []
        while True:
            try:
                out.append(self._queue.get_nowait())
            except queue.Empty:
                return out


def post(channel: Optional[EventChannel], event: Event) -> None:
    if channel is not None:
        channel.post(event)


def progress_reporter(channel: Optional[EventChannel], job_id: Optional[str]) -> Callable[[int, str], None]:
    """Adapt the channel to the (progress, message) callback the video client takes."""

    def report(pct: int, text: str) -> None:
        post(channel, ProgressEvent(job_id=job_id, progress=int(max(0, min(100, pct))), message=text))

    return report
