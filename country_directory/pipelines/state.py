from __future__ import annotations

from enum import Enum

from country_directory.collector.sources import NotFound, SourceError


class PipelineStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


LIST_UNAVAILABLE_MESSAGE = "Failed to load countries. Please try again later."
DETAIL_UNAVAILABLE_MESSAGE = "Failed to load country details. Please try again later."
NOT_FOUND_MESSAGE = "Country not found"


def error_message(err: SourceError | None, *, unavailable: str) -> str | None:
    if err is None:
        return None
    if isinstance(err, NotFound):
        return NOT_FOUND_MESSAGE
    return unavailable
