# Free-text input: one YouTube URL or search phrase per line.

from __future__ import annotations

from .models import AcquisitionRequest, AudioMode, InputType, ProcessInputResult
from .youtube import extract_video_id


def construct_search_query(line: str, mode: AudioMode) -> str:
    return f"{line.strip()} {mode.search_suffix}"


def classify_line(line: str, mode: AudioMode = AudioMode.OFFICIAL) -> AcquisitionRequest:
    text = line.strip()
    video_id = extract_video_id(text)
    if video_id:
        return AcquisitionRequest(
            input_type=InputType.URL,
            original_text=text,
            processed_query=text,
            video_id=video_id,
        )
    return AcquisitionRequest(
        input_type=InputType.SEARCH_QUERY,
        original_text=text,
        processed_query=construct_search_query(text, mode),
    )


def process_input(input_text: str, mode: AudioMode = AudioMode.OFFICIAL) -> ProcessInputResult:
    items = [classify_line(line, mode) for line in (input_text or "").splitlines() if line.strip()]
    url_count = sum(1 for item in items if item.input_type is InputType.URL)
    return ProcessInputResult(
        items=items,
        total_count=len(items),
        url_count=url_count,
        search_count=len(items) - url_count,
    )
