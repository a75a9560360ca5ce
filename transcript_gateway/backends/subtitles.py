# transcript_gateway/backends/subtitles.py
"""
Caption-secondary technique using yt-dlp subtitle tracks.
Single responsibility: locate a manual or automatic track and parse it.

Tracks are read without downloading media. json3 is preferred (millisecond
timings); WebVTT is parsed as a fallback.
"""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Callable, Dict, List, Optional

import yt_dlp

from transcript_gateway.backends.base import (
    BackendFailure,
    BaseBackend,
    first_language_with_segments,
    join_segments,
    normalize_segments,
    retry_languages,
)
from transcript_gateway.config import GatewaySettings, get_settings
from transcript_gateway.core.errors import FailureKind, classify_error_message
from transcript_gateway.core.schema import (
    CaptionSecondaryConfig,
    ExtractionOutcome,
    Technique,
    TranscriptSegment,
)

SUBTITLE_CONFIDENCE = 0.9
PREFERRED_FORMATS = ("json3", "vtt")

_VTT_TIMESTAMP = re.compile(r"(?:(\d+):)?(\d{1,2}):(\d{2})[.,](\d{3})")
_TAG = re.compile(r"<[^>]+>")


def parse_json3(payload: str) -> List[Dict[str, Any]]:
    """Parse a json3 subtitle document into raw timed records."""
    document = json.loads(payload)
    records: List[Dict[str, Any]] = []
    for event in document.get("events", []):
        segs = event.get("segs")
        if not segs:
            continue
        text = "".join(seg.get("utf8", "") for seg in segs).strip()
        if not text:
            continue
        records.append({
            "text": text,
            "tStartMs": event.get("tStartMs", 0),
            "dDurationMs": event.get("dDurationMs", 0),
        })
    return records


def _vtt_seconds(stamp: str) -> Optional[float]:
    match = _VTT_TIMESTAMP.search(stamp)
    if not match:
        return None
    hours, minutes, seconds, millis = match.groups()
    return int(hours or 0) * 3600 + int(minutes) * 60 + int(seconds) + int(millis) / 1000


def parse_vtt(payload: str) -> List[Dict[str, Any]]:
    """
    Parse WebVTT cues into raw timed records.

    Inline tags are stripped. Rolling auto-captions repeat the previous cue's
    text; consecutive duplicates are dropped.
    """
    records: List[Dict[str, Any]] = []
    for block in re.split(r"\n\s*\n", payload.replace("\r\n", "\n")):
        lines = [line.strip() for line in block.split("\n") if line.strip()]
        timing_index = next((i for i, line in enumerate(lines) if "-->" in line), None)
        if timing_index is None:
            continue

        start_raw, end_raw = lines[timing_index].split("-->", 1)
        start = _vtt_seconds(start_raw)
        end = _vtt_seconds(end_raw)
        if start is None or end is None:
            continue

        text = _TAG.sub("", " ".join(lines[timing_index + 1:])).strip()
        if not text or (records and records[-1]["text"] == text):
            continue
        records.append({"text": text, "start": start, "end": end})
    return records


def find_track(info: Dict[str, Any], language: str) -> Optional[Dict[str, Any]]:
    """
    Pick the best track entry for a language.

    Manual subtitles win over automatic captions; automatic tracks translated
    from the original audio ("<lang>-orig") are accepted as the same language.
    """
    wanted = language.lower()
    for source in ("subtitles", "automatic_captions"):
        tracks = info.get(source) or {}
        by_key = {key.lower(): value for key, value in tracks.items()}
        for key in (wanted, f"{wanted}-orig"):
            entries = by_key.get(key)
            if not entries:
                continue
            for fmt in PREFERRED_FORMATS:
                for entry in entries:
                    if entry.get("ext") == fmt and entry.get("url"):
                        return entry
    return None


def video_details(info: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "title": info.get("title"),
        "description": info.get("description"),
        "channel": info.get("channel") or info.get("uploader"),
        "duration": info.get("duration"),
        "view_count": info.get("view_count"),
    }


class SubtitleTrackBackend(BaseBackend):
    """Caption-secondary backend."""

    technique = Technique.CAPTION_SECONDARY

    def __init__(
        self,
        settings: Optional[GatewaySettings] = None,
        ydl_factory: Callable[[Dict[str, Any]], Any] = yt_dlp.YoutubeDL,
    ) -> None:
        self._settings = settings or get_settings()
        self._ydl_factory = ydl_factory

    def _ydl_params(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "quiet": True,
            "no_warnings": True,
            "skip_download": True,
            "noplaylist": True,
            "socket_timeout": self._settings.socket_timeout,
            "http_headers": {"User-Agent": self._settings.user_agent},
        }
        if self._settings.cookies_file:
            params["cookiefile"] = self._settings.cookies_file
        return params

    async def _extract(self, video_id: str, config: CaptionSecondaryConfig) -> ExtractionOutcome:
        with self._ydl_factory(self._ydl_params()) as ydl:
            info = await asyncio.to_thread(self._extract_info, ydl, video_id)
            warnings: List[str] = []

            async def fetch(language: str) -> List[TranscriptSegment]:
                return await asyncio.to_thread(self._fetch_track, ydl, info, language)

            languages = retry_languages(config.lang_code, config.fallback_languages)
            found = await first_language_with_segments(languages, fetch, warnings)

        if found is None:
            raise BackendFailure(
                f"{self.technique.value}: No subtitle track available (tried {', '.join(languages)})",
                FailureKind.NO_CAPTIONS_AVAILABLE,
                warnings=warnings,
            )

        language, segments = found
        return ExtractionOutcome(
            success=True,
            technique=self.technique,
            text=join_segments(segments),
            segments=segments,
            language=language,
            confidence=SUBTITLE_CONFIDENCE,
            warnings=warnings,
            video_details=video_details(info),
        )

    def _extract_info(self, ydl: Any, video_id: str) -> Dict[str, Any]:
        try:
            info = ydl.extract_info(f"https://www.youtube.com/watch?v={video_id}", download=False)
        except yt_dlp.DownloadError as exc:
            kind = classify_error_message(str(exc), default=FailureKind.VIDEO_NOT_FOUND)
            raise BackendFailure(f"{self.technique.value}: {exc}", kind) from exc

        if not info:
            raise BackendFailure(
                f"{self.technique.value}: No video info returned",
                FailureKind.VIDEO_NOT_FOUND,
            )
        return info

    def _fetch_track(self, ydl: Any, info: Dict[str, Any], language: str) -> List[TranscriptSegment]:
        track = find_track(info, language)
        if track is None:
            return []

        payload = ydl.urlopen(track["url"]).read()
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")

        if track.get("ext") == "json3":
            return normalize_segments(parse_json3(payload))
        return normalize_segments(parse_vtt(payload))


# High-Level Intent
# subtitles.py is the second caption technique: independent of youtube_transcript_api, sharing only yt-dlp.
# One YoutubeDL instance serves both the info extraction and every track fetch of one attempt.
# Languages are tried in order (selected code, then its regional variants); the first non-empty track wins.
# A track that cannot be fetched is a per-language warning, not a failed attempt.
