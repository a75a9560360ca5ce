# transcript_gateway/core/errors.py
"""
Error taxonomy for the transcript gateway.

Backends tag failures with a FailureKind at the point of failure.
classify_error_message() is a best-effort heuristic reserved for exceptions
raised by opaque third-party libraries; it is not a contract.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, List


class FailureKind(str, Enum):
    """Typed failure categories for machine-parsable diagnostics."""
    INVALID_URL = "invalid_url"
    INVALID_VIDEO_ID = "invalid_video_id"
    MISSING_PARAMETERS = "missing_parameters"
    UNSUPPORTED_ENCODING = "unsupported_encoding"
    VIDEO_NOT_FOUND = "video_not_found"
    VIDEO_PRIVATE = "video_private"
    VIDEO_RESTRICTED = "video_restricted"
    NO_CAPTIONS_AVAILABLE = "no_captions_available"
    AUDIO_DOWNLOAD_FAILED = "audio_download_failed"
    AUDIO_TOO_SMALL = "audio_too_small"
    TRANSCRIPTION_FAILED = "transcription_failed"
    CAPABILITY_UNAVAILABLE = "capability_unavailable"
    INSUFFICIENT_CONTENT = "insufficient_content"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    ALL_TECHNIQUES_FAILED = "all_techniques_failed"
    UNEXPECTED_ERROR = "unexpected_error"


_HINTS: Dict[FailureKind, str] = {
    FailureKind.INVALID_URL: "Please provide a valid YouTube URL (e.g., https://www.youtube.com/watch?v=VIDEO_ID)",
    FailureKind.INVALID_VIDEO_ID: "Video ID must be exactly 11 characters long and contain only letters, numbers, hyphens, and underscores",
    FailureKind.MISSING_PARAMETERS: "Required parameters: url or videoId",
    FailureKind.UNSUPPORTED_ENCODING: "Supported output encodings: text, subtitle, structured",
    FailureKind.VIDEO_NOT_FOUND: "Check if the video exists and is publicly accessible",
    FailureKind.VIDEO_PRIVATE: "This video is private or unlisted and cannot be accessed",
    FailureKind.VIDEO_RESTRICTED: "This video may have age restrictions or geographic limitations",
    FailureKind.NO_CAPTIONS_AVAILABLE: "Enable audio fallback to use audio transcription instead",
    FailureKind.AUDIO_DOWNLOAD_FAILED: "The video audio could not be downloaded. It may be restricted or unavailable",
    FailureKind.AUDIO_TOO_SMALL: "The downloaded audio was too small to contain real content",
    FailureKind.TRANSCRIPTION_FAILED: "Audio transcription failed. Check the whisper installation and model",
    FailureKind.CAPABILITY_UNAVAILABLE: "Configure a transcription backend to enable audio transcription",
    FailureKind.INSUFFICIENT_CONTENT: "The technique returned too little text to be a usable transcript",
    FailureKind.RATE_LIMITED: "Please wait before making another request",
    FailureKind.QUOTA_EXCEEDED: "Daily quota exceeded. Please try again tomorrow",
    FailureKind.ALL_TECHNIQUES_FAILED: "All transcript extraction techniques failed. The video may not have captions and audio may be inaccessible",
    FailureKind.UNEXPECTED_ERROR: "Please check the video URL and try again",
}


_SUGGESTED_FIXES: Dict[FailureKind, List[str]] = {
    FailureKind.NO_CAPTIONS_AVAILABLE: ["Fallback to audio transcription", "Try another caption language"],
    FailureKind.AUDIO_DOWNLOAD_FAILED: ["Update yt-dlp", "Provide a cookies file for restricted videos"],
    FailureKind.AUDIO_TOO_SMALL: ["Check that the video has an audio track", "Retry later"],
    FailureKind.TRANSCRIPTION_FAILED: ["Check ffmpeg is installed", "Try a larger whisper model"],
    FailureKind.CAPABILITY_UNAVAILABLE: ["Set TRANSCRIPT_GATEWAY_AUDIO_TRANSCRIPTION_ENABLED=true"],
    FailureKind.RATE_LIMITED: ["Retry later", "Provide a cookies file"],
    FailureKind.VIDEO_RESTRICTED: ["Provide a cookies file with a logged-in session"],
}


def hint_for(kind: FailureKind) -> str:
    return _HINTS.get(kind, _HINTS[FailureKind.UNEXPECTED_ERROR])


def suggested_fixes_for(kind: FailureKind) -> List[str]:
    return list(_SUGGESTED_FIXES.get(kind, []))


# Ordered: first matching rule wins.
_MESSAGE_RULES = [
    (("rate limit", "too many requests", "429"), FailureKind.RATE_LIMITED),
    (("quota",), FailureKind.QUOTA_EXCEEDED),
    (("private", "access denied"), FailureKind.VIDEO_PRIVATE),
    (("age-restricted", "restricted", "blocked", "sign in"), FailureKind.VIDEO_RESTRICTED),
    (("no captions", "no transcript", "subtitles are disabled", "transcripts are disabled"), FailureKind.NO_CAPTIONS_AVAILABLE),
    (("not found", "unavailable", "does not exist"), FailureKind.VIDEO_NOT_FOUND),
    (("audio download", "download failed", "requested format"), FailureKind.AUDIO_DOWNLOAD_FAILED),
    (("whisper", "ffmpeg"), FailureKind.TRANSCRIPTION_FAILED),
]


def classify_error_message(message: str | None, default: FailureKind = FailureKind.UNEXPECTED_ERROR) -> FailureKind:
    """
    Best-effort classification of an opaque library error message.

    Only used for exceptions whose type carries no usable information.
    """
    if not message:
        return default
    lower = message.lower()
    for needles, kind in _MESSAGE_RULES:
        if any(needle in lower for needle in needles):
            return kind
    return default


class GatewayError(Exception):
    """Base class for gateway errors that cross the core boundary."""

    kind: FailureKind = FailureKind.UNEXPECTED_ERROR

    def __init__(self, message: str, kind: FailureKind | None = None) -> None:
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    @property
    def hint(self) -> str:
        return hint_for(self.kind)


class InvalidRequestError(GatewayError):
    """Malformed identifiers or unsupported options; no technique is attempted."""

    kind = FailureKind.MISSING_PARAMETERS


class MetadataError(GatewayError):
    """Metadata provider failure, classified as not-found, private or restricted."""

    kind = FailureKind.VIDEO_NOT_FOUND


class TranscriptionUnavailableError(GatewayError):
    """No transcription backend is configured."""

    kind = FailureKind.CAPABILITY_UNAVAILABLE
