# transcript_gateway/core/runner.py
"""
Orchestration for one transcript request.

Responsibilities:
- Initialize traceability (run_id + logger)
- Validate the video reference and preferences
- Fetch metadata, degrading to minimal metadata on failure
- Select the strategy, build one config per technique, run the executor
- Normalize the report into the single FinalResult

No extraction logic lives here: only orchestration.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from transcript_gateway.backends.audio import AudioTranscriptionBackend
from transcript_gateway.backends.base import ExtractionBackend, timer
from transcript_gateway.backends.captions import TranscriptApiBackend
from transcript_gateway.backends.subtitles import SubtitleTrackBackend
from transcript_gateway.backends.whisper import WhisperTranscriber
from transcript_gateway.config import GatewaySettings, get_settings
from transcript_gateway.core.errors import FailureKind, InvalidRequestError, MetadataError
from transcript_gateway.core.executor import extract_with_fallback
from transcript_gateway.core.formatter import format_failure, format_result
from transcript_gateway.core.schema import (
    ExtractionPreferences,
    FinalResult,
    OutputEncoding,
    Technique,
    TechniqueConfig,
    TechniquePlan,
    VideoMetadata,
)
from transcript_gateway.core.strategy import (
    get_method_config,
    plan_techniques,
    select_forced_strategy,
    select_strategy,
)
from transcript_gateway.core.validation import require_video_id
from transcript_gateway.logging_core.logger import get_logger, log_event, release_logger
from transcript_gateway.providers.metadata import MetadataProvider, YtDlpMetadataProvider, minimal_metadata

COMPONENT = "runner"
AUTO = "auto"

TechniqueSelection = Union[str, Technique, Sequence[Union[str, Technique]]]


def build_preferences(
    preferred_language: Optional[str] = "en",
    encoding: Union[str, OutputEncoding] = OutputEncoding.TEXT,
    fallback_to_audio: bool = True,
) -> ExtractionPreferences:
    """Caller-facing constructor; an unknown encoding is an input error."""
    try:
        parsed = OutputEncoding.parse(encoding)
    except ValueError as exc:
        raise InvalidRequestError(str(exc), FailureKind.UNSUPPORTED_ENCODING) from exc
    return ExtractionPreferences(
        preferred_language=preferred_language,
        encoding=parsed,
        fallback_to_audio=fallback_to_audio,
    )


def _describe_selection(selection: TechniqueSelection) -> Union[str, List[str]]:
    if isinstance(selection, Technique):
        return selection.value
    if isinstance(selection, str):
        return selection
    return [Technique.parse(item).value for item in selection]


def _strategy_for(
    selection: TechniqueSelection,
    metadata: VideoMetadata,
    preferences: ExtractionPreferences,
) -> List[Technique]:
    """auto: metadata-driven; one technique: forced (+ audio); a list: used as given."""
    if isinstance(selection, (str, Technique)):
        if isinstance(selection, str) and selection.strip().lower() == AUTO:
            return select_strategy(metadata, preferences)
        return select_forced_strategy(selection, preferences)
    return list(dict.fromkeys(Technique.parse(item) for item in selection))


class TranscriptGateway:
    """
    Holds the injected metadata provider and one backend per technique.

    Stateless across requests: every call builds fresh metadata, configs and results.
    """

    def __init__(
        self,
        metadata_provider: MetadataProvider,
        backends: Mapping[Technique, ExtractionBackend],
        settings: Optional[GatewaySettings] = None,
    ) -> None:
        self.metadata_provider = metadata_provider
        self.backends: Dict[Technique, ExtractionBackend] = dict(backends)
        self.settings = settings or get_settings()

    async def _metadata(self, video_id: str, logger: logging.Logger) -> VideoMetadata:
        try:
            return await self.metadata_provider.get_metadata(video_id)
        except MetadataError as exc:
            log_event(
                logger,
                logging.WARNING,
                "Metadata fetch failed; continuing with minimal metadata",
                component=COMPONENT,
                event_type="metadata_fallback",
                metadata={"video_id": video_id, "error": str(exc), "kind": exc.kind.value},
            )
            return minimal_metadata(video_id)

    async def resolve_transcript(
        self,
        reference: str,
        techniques: TechniqueSelection = AUTO,
        preferences: Optional[ExtractionPreferences] = None,
    ) -> FinalResult:
        """
        Produce a transcript for a video id or URL.

        Raises InvalidRequestError for malformed references (before any
        technique runs) and ValueError for unknown technique names. Every
        extraction failure is reported in the returned FinalResult.
        """
        preferences = preferences or ExtractionPreferences()
        run_id = uuid.uuid4()
        logger = get_logger(run_id, self.settings.log_level)

        try:
            with timer() as end:
                video_id = require_video_id(reference)
                log_event(
                    logger,
                    logging.INFO,
                    "Starting transcript request",
                    component=COMPONENT,
                    event_type="request_start",
                    metadata={
                        "video_id": video_id,
                        "techniques": _describe_selection(techniques),
                        "preferred_language": preferences.preferred_language,
                        "encoding": preferences.encoding.value,
                        "fallback_to_audio": preferences.fallback_to_audio,
                    },
                )

                metadata = await self._metadata(video_id, logger)
                strategy = _strategy_for(techniques, metadata, preferences)
                configs: Dict[Technique, TechniqueConfig] = {
                    technique: get_method_config(
                        technique, metadata, preferences, whisper_model=self.settings.whisper_model
                    )
                    for technique in strategy
                }
                log_event(
                    logger,
                    logging.INFO,
                    "Strategy selected",
                    component=COMPONENT,
                    event_type="strategy_selected",
                    metadata={
                        "strategy": [technique.value for technique in strategy],
                        "has_closed_captions": metadata.has_closed_captions,
                        "available_languages": list(metadata.available_languages),
                        "minimal_metadata": metadata.is_minimal,
                    },
                )

                report = await extract_with_fallback(video_id, strategy, configs, self.backends, logger)
                if report.accepted is not None:
                    result = format_result(report.accepted, metadata, preferences)
                    # Techniques rejected before the accepted one.
                    result.failures = list(report.failures)
                else:
                    result = format_failure(report, metadata, preferences)

            result.total_processing_ms = end()
            if result.success:
                log_event(
                    logger,
                    logging.INFO,
                    "Transcript request completed",
                    component=COMPONENT,
                    technique=result.technique.value,
                    event_type="request_success",
                    metadata={
                        "video_id": video_id,
                        "segments": result.segment_count,
                        "total_processing_ms": round(result.total_processing_ms, 1),
                    },
                )
            return result
        finally:
            release_logger(run_id)

    async def describe_techniques(
        self,
        reference: str,
        preferences: Optional[ExtractionPreferences] = None,
    ) -> List[TechniquePlan]:
        """Advisory plan (order, estimates, configs) without running any technique."""
        preferences = preferences or ExtractionPreferences()
        video_id = require_video_id(reference)
        try:
            metadata = await self.metadata_provider.get_metadata(video_id)
        except MetadataError:
            metadata = minimal_metadata(video_id)
        return plan_techniques(metadata, preferences, whisper_model=self.settings.whisper_model)

    async def video_info(self, reference: str) -> Dict[str, Any]:
        """Metadata plus availability; raises MetadataError when the video cannot be read."""
        video_id = require_video_id(reference)
        info: Dict[str, Any] = {"metadata": await self.metadata_provider.get_metadata(video_id)}
        check_availability = getattr(self.metadata_provider, "check_availability", None)
        if check_availability is not None:
            info["availability"] = await check_availability(video_id)
        return info


def build_default_gateway(settings: Optional[GatewaySettings] = None) -> TranscriptGateway:
    """Wire the yt-dlp metadata provider and the three real backends from settings."""
    settings = settings or get_settings()
    transcriber = (
        WhisperTranscriber(model=settings.whisper_model, device=settings.whisper_device)
        if settings.audio_transcription_enabled
        else None
    )
    backends: Dict[Technique, ExtractionBackend] = {
        Technique.CAPTION_PRIMARY: TranscriptApiBackend(settings),
        Technique.CAPTION_SECONDARY: SubtitleTrackBackend(settings),
        Technique.AUDIO_TRANSCRIPTION: AudioTranscriptionBackend(transcriber, settings=settings),
    }
    return TranscriptGateway(YtDlpMetadataProvider(settings), backends, settings)


async def resolve_transcript(
    reference: str,
    techniques: TechniqueSelection = AUTO,
    preferences: Optional[ExtractionPreferences] = None,
    *,
    gateway: Optional[TranscriptGateway] = None,
) -> FinalResult:
    """Module-level entry point; builds the default gateway when none is given."""
    gateway = gateway or build_default_gateway()
    return await gateway.resolve_transcript(reference, techniques, preferences)


# High-Level Intent
# runner.py is the exposed call of the gateway: resolve_transcript(reference, techniques | "auto", preferences) -> FinalResult.
# Input errors raise before any technique runs; everything after validation ends in a FinalResult.
# Metadata failure is soft: minimal metadata (no captions, no languages) still yields a valid strategy.
# One run_id per request correlates every log line; the logger is released when the request ends.
