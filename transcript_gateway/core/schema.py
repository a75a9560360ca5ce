# transcript_gateway/core/schema.py
"""
Authoritative schema definitions for the transcript gateway.

This module defines:
- Video metadata and caller preferences (inputs)
- The closed Technique enumeration and per-technique configuration variants
- The per-attempt ExtractionOutcome contract every backend returns
- The FinalResult handed back to the caller

All other modules MUST conform to these contracts.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from transcript_gateway.core.errors import FailureKind


# Minimum transcript length (characters) for an outcome to count as usable.
SUFFICIENCY_THRESHOLD = 50


class Technique(str, Enum):
    """The three independent transcript-acquisition techniques, in default priority order."""
    CAPTION_PRIMARY = "caption-primary"
    CAPTION_SECONDARY = "caption-secondary"
    AUDIO_TRANSCRIPTION = "audio-transcription"

    @classmethod
    def parse(cls, value: "str | Technique") -> "Technique":
        """Accept canonical names and the legacy method names; raise ValueError otherwise."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = _TECHNIQUE_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unsupported extraction technique: {value!r}") from None


_TECHNIQUE_ALIASES = {
    "youtube-transcript": "caption-primary",
    "youtube-caption-extractor": "caption-secondary",
    "whisper-audio": "audio-transcription",
}

TECHNIQUE_PRIORITY: Tuple[Technique, ...] = (
    Technique.CAPTION_PRIMARY,
    Technique.CAPTION_SECONDARY,
    Technique.AUDIO_TRANSCRIPTION,
)


class OutputEncoding(str, Enum):
    TEXT = "text"
    SUBTITLE = "subtitle"
    STRUCTURED = "structured"

    @classmethod
    def parse(cls, value: "str | OutputEncoding") -> "OutputEncoding":
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        key = {"txt": "text", "srt": "subtitle", "json": "structured"}.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unsupported output encoding: {value!r}") from None


class MatchKind(str, Enum):
    EXACT = "exact"
    FAMILY = "family"
    PRIORITY_FALLBACK = "priority-fallback"
    FIRST_AVAILABLE = "first-available"
    NONE = "none"


class VideoMetadata(BaseModel):
    """Immutable facts about one video, fetched fresh per request."""
    video_id: str
    title: str = ""
    description: str = ""
    duration: int = 0  # seconds, 0 when unknown
    is_live: bool = False
    is_upcoming: bool = False
    has_closed_captions: bool = False
    available_languages: Tuple[str, ...] = ()
    channel_name: Optional[str] = None
    publish_date: Optional[str] = None
    thumbnail_url: Optional[str] = None
    is_minimal: bool = False  # built locally after a failed metadata fetch

    model_config = ConfigDict(frozen=True)

    @field_validator("available_languages", mode="before")
    @classmethod
    def _dedupe_languages(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple(dict.fromkeys(code for code in value if code))
        return value


class ExtractionPreferences(BaseModel):
    """Caller preferences for one request."""
    preferred_language: str = "en"
    encoding: OutputEncoding = OutputEncoding.TEXT
    fallback_to_audio: bool = True

    model_config = ConfigDict(frozen=True)

    @field_validator("preferred_language", mode="before")
    @classmethod
    def _default_language(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "en"
        return value.strip() if isinstance(value, str) else value

    @field_validator("encoding", mode="before")
    @classmethod
    def _parse_encoding(cls, value: Any) -> Any:
        return OutputEncoding.parse(value)


class LanguageMatch(BaseModel):
    """Resolution of a preferred language against a video's caption languages."""
    selected_language: str
    kind: MatchKind
    confidence: float = Field(ge=0.0, le=1.0)
    alternatives: Tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class _TechniqueConfigBase(BaseModel):
    """Fields shared by every technique's configuration."""
    video_id: str
    language: str
    fallback_languages: Tuple[str, ...] = ()
    encoding: OutputEncoding = OutputEncoding.TEXT
    language_match: LanguageMatch

    model_config = ConfigDict(frozen=True)


class CaptionPrimaryConfig(_TechniqueConfigBase):
    technique: Literal[Technique.CAPTION_PRIMARY] = Technique.CAPTION_PRIMARY
    country: str = "US"


class CaptionSecondaryConfig(_TechniqueConfigBase):
    technique: Literal[Technique.CAPTION_SECONDARY] = Technique.CAPTION_SECONDARY
    lang_code: str
    available_languages: Tuple[str, ...] = ()


class AudioTranscriptionConfig(_TechniqueConfigBase):
    technique: Literal[Technique.AUDIO_TRANSCRIPTION] = Technique.AUDIO_TRANSCRIPTION
    title: str = ""
    description: str = ""
    duration: int = 0
    model: str = "base"
    output_format: Literal["segments", "words"] = "segments"
    language_hint: str = "en"
    match_confidence: float = 0.0


TechniqueConfig = Annotated[
    Union[CaptionPrimaryConfig, CaptionSecondaryConfig, AudioTranscriptionConfig],
    Field(discriminator="technique"),
]


class TranscriptSegment(BaseModel):
    """One timed piece of transcript, in playback order."""
    text: str
    start_ms: int = 0
    duration_ms: int = 0
    confidence: Optional[float] = None

    @property
    def end_ms(self) -> int:
        return self.start_ms + self.duration_ms


class ExtractionOutcome(BaseModel):
    """Standardized result from any extraction backend (one per attempted technique)."""
    success: bool
    technique: Technique
    text: str = ""
    segments: List[TranscriptSegment] = Field(default_factory=list)
    language: Optional[str] = None
    confidence: Optional[float] = None
    audio_size_bytes: Optional[int] = None
    elapsed_ms: float = 0.0
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    warnings: List[str] = Field(default_factory=list)
    video_details: Optional[Dict[str, Any]] = None

    @classmethod
    def failed(
        cls,
        technique: Technique,
        error: str,
        kind: FailureKind,
        *,
        warnings: Optional[List[str]] = None,
        audio_size_bytes: Optional[int] = None,
    ) -> "ExtractionOutcome":
        return cls(
            success=False,
            technique=technique,
            error=error,
            failure_kind=kind,
            warnings=list(warnings or []),
            audio_size_bytes=audio_size_bytes,
        )


class TechniqueFailure(BaseModel):
    """Why one technique was not accepted."""
    technique: Technique
    kind: FailureKind
    reason: str
    suggested_fixes: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    def describe(self) -> str:
        return f"{self.technique.value}: {self.reason}"


class FinalResult(BaseModel):
    """
    The single result of one request.

    On success: transcript in the requested encoding plus provenance.
    On failure: one aggregated error listing every technique tried.
    """
    success: bool
    video_id: Optional[str] = None
    video_title: Optional[str] = None
    transcript: str = ""
    encoding: Optional[OutputEncoding] = None
    language: Optional[str] = None
    technique: Optional[Technique] = None
    segment_count: int = 0
    elapsed_ms: float = 0.0
    total_processing_ms: Optional[float] = None
    confidence: Optional[float] = None
    audio_size_bytes: Optional[int] = None
    duration: Optional[int] = None
    available_languages: List[str] = Field(default_factory=list)
    metadata: Optional[Dict[str, Any]] = None
    message: str = ""
    error: Optional[str] = None
    error_code: Optional[FailureKind] = None
    hint: Optional[str] = None
    failures: List[TechniqueFailure] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_sufficiency(self) -> "FinalResult":
        if self.success and len(self.transcript) <= SUFFICIENCY_THRESHOLD:
            raise ValueError(
                f"successful result must carry more than {SUFFICIENCY_THRESHOLD} characters"
            )
        return self


class AvailabilityStatus(BaseModel):
    is_available: bool
    is_private: bool = False
    is_restricted: bool = False
    error: Optional[str] = None


class ValidationResult(BaseModel):
    is_valid: bool
    video_id: Optional[str] = None
    normalized_url: Optional[str] = None
    error: Optional[str] = None
    kind: Optional[FailureKind] = None


class TechniquePlan(BaseModel):
    """Advisory description of one technique for a given video."""
    technique: Technique
    estimated_seconds: float
    recommended: bool
    config: TechniqueConfig


# High-Level Intent
# schema.py is the contract layer shared by the selector, backends, executor and normalizer.
# VideoMetadata, ExtractionPreferences and every TechniqueConfig are frozen: built once per request, never mutated.
# TechniqueConfig is a discriminated union on `technique`; technique-specific fields only exist on their own variant.
# ExtractionOutcome is mutable: backends stamp elapsed time and warnings after construction.
# FinalResult enforces the sufficiency invariant: success implies more than SUFFICIENCY_THRESHOLD characters.
