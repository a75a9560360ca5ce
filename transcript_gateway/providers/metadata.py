# transcript_gateway/providers/metadata.py
"""
Metadata provider using yt-dlp.

Responsibility:
- Extract title, channel, duration, publish date, live state, caption tracks
- Map caption tracks to has_closed_captions / available_languages
- Classify failures as not-found, private or restricted (MetadataError)

No media is downloaded. Each configured player client is tried in order.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, Protocol

import yt_dlp

from transcript_gateway.config import GatewaySettings, get_settings
from transcript_gateway.core.errors import FailureKind, MetadataError, classify_error_message
from transcript_gateway.core.schema import AvailabilityStatus, VideoMetadata

YDL_PARAMS = {
    "quiet": True,
    "no_warnings": True,
    "extract_flat": False,
    "skip_download": True,
    "noplaylist": True,
}

RESTRICTED_AVAILABILITY = frozenset({"needs_auth", "premium_only", "subscriber_only"})
PRIVATE_AVAILABILITY = frozenset({"private", "unlisted"})

_METADATA_MESSAGES = {
    FailureKind.VIDEO_PRIVATE: "Video is private or access denied",
    FailureKind.VIDEO_RESTRICTED: "Video is restricted or blocked",
    FailureKind.VIDEO_NOT_FOUND: "Video not found or unavailable",
}


class MetadataProvider(Protocol):
    async def get_metadata(self, video_id: str) -> VideoMetadata:
        ...


def minimal_metadata(video_id: str) -> VideoMetadata:
    """Fallback used when the metadata fetch failed: no captions, no languages."""
    return VideoMetadata(video_id=video_id, title=f"Video {video_id}", is_minimal=True)


def caption_languages(info: Dict[str, Any]) -> List[str]:
    """
    Manual subtitle languages, then original-language automatic tracks.

    Automatic "<lang>-orig" tracks are reported as "<lang>"; auto-translated
    tracks are ignored.
    """
    languages: List[str] = []
    for code in (info.get("subtitles") or {}):
        if code != "live_chat":
            languages.append(code)
    for code in (info.get("automatic_captions") or {}):
        if code.endswith("-orig"):
            languages.append(code[: -len("-orig")])
    return list(dict.fromkeys(languages))


def best_thumbnail(info: Dict[str, Any]) -> Optional[str]:
    thumbnails = [thumb for thumb in (info.get("thumbnails") or []) if thumb.get("url")]
    if not thumbnails:
        return info.get("thumbnail")
    best = max(thumbnails, key=lambda thumb: (thumb.get("width") or 0) * (thumb.get("height") or 0))
    return best["url"]


def format_upload_date(value: Optional[str]) -> Optional[str]:
    """yt-dlp YYYYMMDD -> YYYY-MM-DD."""
    if not value or len(value) != 8 or not value.isdigit():
        return value
    return f"{value[:4]}-{value[4:6]}-{value[6:]}"


def metadata_from_info(video_id: str, info: Dict[str, Any]) -> VideoMetadata:
    languages = caption_languages(info)
    live_status = info.get("live_status")
    return VideoMetadata(
        video_id=info.get("id") or video_id,
        title=info.get("title") or "Unknown Title",
        description=info.get("description") or "",
        duration=int(info.get("duration") or 0),
        is_live=bool(info.get("is_live")) or live_status == "is_live",
        is_upcoming=live_status == "is_upcoming",
        has_closed_captions=bool(languages),
        available_languages=languages,
        channel_name=info.get("channel") or info.get("uploader") or "Unknown Channel",
        publish_date=format_upload_date(info.get("upload_date")),
        thumbnail_url=best_thumbnail(info),
    )


def _metadata_error(exc: Exception) -> MetadataError:
    kind = classify_error_message(str(exc), default=FailureKind.VIDEO_NOT_FOUND)
    if kind not in _METADATA_MESSAGES:
        kind = FailureKind.VIDEO_NOT_FOUND
    return MetadataError(f"{_METADATA_MESSAGES[kind]}: {exc}", kind)


class YtDlpMetadataProvider:
    """Fetches VideoMetadata with yt-dlp, one player client at a time."""

    def __init__(
        self,
        settings: Optional[GatewaySettings] = None,
        ydl_factory: Callable[[Dict[str, Any]], Any] = yt_dlp.YoutubeDL,
    ) -> None:
        self._settings = settings or get_settings()
        self._ydl_factory = ydl_factory

    def _ydl_params(self, client: str) -> Dict[str, Any]:
        params: Dict[str, Any] = dict(
            YDL_PARAMS,
            socket_timeout=self._settings.socket_timeout,
            http_headers={"User-Agent": self._settings.user_agent},
            extractor_args={"youtube": {"player_client": [client]}},
        )
        if self._settings.cookies_file:
            params["cookiefile"] = self._settings.cookies_file
        return params

    def _extract_info(self, video_id: str) -> Dict[str, Any]:
        url = f"https://www.youtube.com/watch?v={video_id}"
        last_error: Optional[Exception] = None

        for client in self._settings.metadata_clients:
            try:
                with self._ydl_factory(self._ydl_params(client)) as ydl:
                    info = ydl.extract_info(url, download=False)
            except yt_dlp.DownloadError as exc:
                last_error = exc
                continue
            if info:
                return info
            last_error = yt_dlp.DownloadError("No info returned")

        raise _metadata_error(last_error or yt_dlp.DownloadError("No player clients configured"))

    async def get_metadata(self, video_id: str) -> VideoMetadata:
        """Raises MetadataError (not found / private / restricted)."""
        info = await asyncio.to_thread(self._extract_info, video_id)
        return metadata_from_info(video_id, info)

    async def check_availability(self, video_id: str) -> AvailabilityStatus:
        """Never raises; failures are reported in the status."""
        try:
            info = await asyncio.to_thread(self._extract_info, video_id)
        except MetadataError as exc:
            return AvailabilityStatus(
                is_available=False,
                is_private=exc.kind is FailureKind.VIDEO_PRIVATE,
                is_restricted=exc.kind is FailureKind.VIDEO_RESTRICTED,
                error=str(exc),
            )

        availability = info.get("availability")
        return AvailabilityStatus(
            is_available=True,
            is_private=availability in PRIVATE_AVAILABILITY,
            is_restricted=(info.get("age_limit") or 0) >= 18 or availability in RESTRICTED_AVAILABILITY,
        )


# High-Level Intent
# providers/metadata.py is the Metadata Provider: all metadata I/O is isolated here.
# get_metadata raises MetadataError; the runner degrades to minimal_metadata() on that error.
# check_availability is the non-raising variant used by the CLI's info command.
# Player clients are tried in the order given by settings.metadata_clients; the last error is reported.
