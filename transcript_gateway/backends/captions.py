# transcript_gateway/backends/captions.py
"""
Caption-primary technique using youtube_transcript_api.
Single responsibility: fetch a caption track, retrying across languages.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, List, Optional

import requests
from youtube_transcript_api import (
    CouldNotRetrieveTranscript,
    NoTranscriptFound,
    RequestBlocked,
    TranscriptsDisabled,
    VideoUnavailable,
    YouTubeTranscriptApi,
)

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
    CaptionPrimaryConfig,
    ExtractionOutcome,
    Technique,
    TranscriptSegment,
)

CAPTION_CONFIDENCE = 0.9

ApiFactory = Callable[[requests.Session], Any]


def _default_api_factory(session: requests.Session) -> YouTubeTranscriptApi:
    return YouTubeTranscriptApi(http_client=session)


class TranscriptApiBackend(BaseBackend):
    """Caption-primary backend."""

    technique = Technique.CAPTION_PRIMARY

    def __init__(
        self,
        settings: Optional[GatewaySettings] = None,
        api_factory: ApiFactory = _default_api_factory,
    ) -> None:
        self._settings = settings or get_settings()
        self._api_factory = api_factory

    def _session(self, language: str, country: str) -> requests.Session:
        session = requests.Session()
        session.headers.update({
            "User-Agent": self._settings.user_agent,
            "Accept-Language": f"{language}-{country},{language};q=0.9",
        })
        return session

    async def _extract(self, video_id: str, config: CaptionPrimaryConfig) -> ExtractionOutcome:
        api = self._api_factory(self._session(config.language, config.country))
        warnings: List[str] = []

        async def fetch(language: str) -> List[TranscriptSegment]:
            return await asyncio.to_thread(self._fetch_language, api, video_id, language)

        languages = retry_languages(config.language, config.fallback_languages)
        found = await first_language_with_segments(languages, fetch, warnings)
        if found is None:
            raise BackendFailure(
                f"{self.technique.value}: No transcript data available (tried {', '.join(languages)})",
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
            confidence=CAPTION_CONFIDENCE,
            warnings=warnings,
        )

    def _fetch_language(self, api: Any, video_id: str, language: str) -> List[TranscriptSegment]:
        try:
            fetched = api.fetch(video_id, languages=[language])
        except NoTranscriptFound:
            return []
        except TranscriptsDisabled as exc:
            raise BackendFailure(
                f"{self.technique.value}: Transcripts are disabled for this video",
                FailureKind.NO_CAPTIONS_AVAILABLE,
            ) from exc
        except VideoUnavailable as exc:
            raise BackendFailure(
                f"{self.technique.value}: Video is unavailable",
                FailureKind.VIDEO_NOT_FOUND,
            ) from exc
        except RequestBlocked as exc:
            raise BackendFailure(
                f"{self.technique.value}: Requests are being blocked by YouTube",
                FailureKind.RATE_LIMITED,
            ) from exc
        except CouldNotRetrieveTranscript as exc:
            # Remaining library errors carry no stable type information.
            kind = classify_error_message(str(exc), default=FailureKind.NO_CAPTIONS_AVAILABLE)
            raise BackendFailure(f"{self.technique.value}: {exc}", kind) from exc

        return normalize_segments(fetched)
