# transcript_gateway/core/validation.py
"""
Video reference validation and video_id extraction.

Accepts a bare 11-character id or a watch / youtu.be / embed / shorts URL.
No external network calls: pure deterministic validation.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from transcript_gateway.core.errors import FailureKind, InvalidRequestError
from transcript_gateway.core.schema import ValidationResult

VIDEO_ID_REGEX = re.compile(r"^[a-zA-Z0-9_-]{11}$")

# Checked in order; the first match wins.
URL_PATTERNS = (
    re.compile(r"[?&]v=([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtu\.be/([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/embed/([a-zA-Z0-9_-]{11})"),
    re.compile(r"youtube\.com/shorts/([a-zA-Z0-9_-]{11})"),
)


def is_valid_video_id(video_id: Any) -> bool:
    return isinstance(video_id, str) and bool(VIDEO_ID_REGEX.match(video_id))


def parse_video_id(reference: Optional[str]) -> Optional[str]:
    """Extract the video id from a URL or bare id, or None."""
    if not reference:
        return None
    reference = reference.strip()

    if VIDEO_ID_REGEX.match(reference):
        return reference

    for pattern in URL_PATTERNS:
        match = pattern.search(reference)
        if match:
            return match.group(1)
    return None


def normalize_url(reference: str) -> str:
    """Canonical watch URL; the input is returned unchanged when no id is found."""
    video_id = parse_video_id(reference)
    if not video_id:
        return reference
    return f"https://www.youtube.com/watch?v={video_id}"


def url_type(reference: Optional[str]) -> str:
    """One of: videoId, watch, short, embed, shorts, invalid."""
    if not reference:
        return "invalid"
    if VIDEO_ID_REGEX.match(reference):
        return "videoId"
    if "youtube.com/watch" in reference:
        return "watch"
    if "youtu.be/" in reference:
        return "short"
    if "youtube.com/embed/" in reference:
        return "embed"
    if "youtube.com/shorts/" in reference:
        return "shorts"
    return "invalid"


def validate_reference(reference: Any) -> ValidationResult:
    if not reference or not isinstance(reference, str) or not reference.strip():
        return ValidationResult(
            is_valid=False,
            error="Input must be a non-empty string",
            kind=FailureKind.MISSING_PARAMETERS,
        )

    video_id = parse_video_id(reference)
    if not video_id:
        return ValidationResult(
            is_valid=False,
            error="Invalid YouTube URL format or video ID",
            kind=FailureKind.INVALID_URL,
        )

    if not is_valid_video_id(video_id):
        return ValidationResult(
            is_valid=False,
            video_id=video_id,
            error="Invalid video ID format (must be 11 characters)",
            kind=FailureKind.INVALID_VIDEO_ID,
        )

    return ValidationResult(
        is_valid=True,
        video_id=video_id,
        normalized_url=normalize_url(reference.strip()),
    )


def require_video_id(reference: Any) -> str:
    """Return the video id or raise InvalidRequestError with the matching kind."""
    result = validate_reference(reference)
    if not result.is_valid:
        raise InvalidRequestError(result.error or "Invalid video reference", result.kind)
    return result.video_id
