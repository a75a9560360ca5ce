"""
Shared fixtures and fake collaborators.
No network access: every backend and provider here is in-memory.
"""

from pathlib import Path
from typing import List, Optional

import pytest

from transcript_gateway.config import GatewaySettings
from transcript_gateway.core.errors import FailureKind, MetadataError
from transcript_gateway.core.schema import (
    ExtractionOutcome,
    ExtractionPreferences,
    Technique,
    TranscriptSegment,
    VideoMetadata,
)
from transcript_gateway.logging_core.logger import get_logger, release_logger

VIDEO_ID = "dQw4w9WgXcQ"


def make_segments(texts: List[str], step_ms: int = 2000) -> List[TranscriptSegment]:
    return [
        TranscriptSegment(text=text, start_ms=index * step_ms, duration_ms=step_ms)
        for index, text in enumerate(texts)
    ]


def success_outcome(technique: Technique, texts: List[str], **kwargs) -> ExtractionOutcome:
    segments = make_segments(texts)
    return ExtractionOutcome(
        success=True,
        technique=technique,
        text=" ".join(texts),
        segments=segments,
        language=kwargs.pop("language", "en"),
        confidence=kwargs.pop("confidence", 0.9),
        **kwargs,
    )


class FakeBackend:
    """Returns a canned outcome (or raises) and records every call."""

    def __init__(
        self,
        technique: Technique,
        outcome: Optional[ExtractionOutcome] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.technique = technique
        self.outcome = outcome
        self.error = error
        self.calls = []

    async def extract(self, video_id, config):
        self.calls.append((video_id, config))
        if self.error is not None:
            raise self.error
        return self.outcome


class FakeDownloader:
    """Writes a file of the requested size and remembers where."""

    def __init__(self, size: int) -> None:
        self.size = size
        self.paths = []

    def download(self, video_id, target_dir):
        path = Path(target_dir) / "audio.webm"
        path.write_bytes(b"\0" * self.size)
        self.paths.append(path)
        return path


class FakeMetadataProvider:
    def __init__(self, metadata: Optional[VideoMetadata] = None, error: Optional[Exception] = None) -> None:
        self.metadata = metadata
        self.error = error
        self.calls = []

    async def get_metadata(self, video_id):
        self.calls.append(video_id)
        if self.error is not None:
            raise self.error
        return self.metadata


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return GatewaySettings(_env_file=None, log_level="DEBUG", cookies_file=None)


@pytest.fixture
def captioned_metadata():
    return VideoMetadata(
        video_id=VIDEO_ID,
        title="Never Gonna Give You Up",
        description="Official video",
        duration=212,
        has_closed_captions=True,
        available_languages=["en"],
        channel_name="Rick Astley",
        publish_date="2009-10-25",
    )


@pytest.fixture
def uncaptioned_metadata():
    return VideoMetadata(video_id=VIDEO_ID, title="Silent film", duration=600)


@pytest.fixture
def preferences():
    return ExtractionPreferences(preferred_language="en")


@pytest.fixture
def logger():
    run_id = "test-run"
    log = get_logger(run_id)
    yield log
    release_logger(run_id)


@pytest.fixture
def metadata_error():
    return MetadataError("Video is private or access denied", FailureKind.VIDEO_PRIVATE)
