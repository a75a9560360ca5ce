# transcript_gateway/core/strategy.py
"""
Strategy selection for transcript extraction.

Single responsibility: decide which techniques to try, in which order, and
with which per-technique configuration. Pure functions, no I/O.
"""

from __future__ import annotations

from typing import List, Optional

from transcript_gateway.core.language import (
    country_for_language,
    language_variants,
    normalize_language_code,
    resolve_language,
)
from transcript_gateway.core.schema import (
    AudioTranscriptionConfig,
    CaptionPrimaryConfig,
    CaptionSecondaryConfig,
    ExtractionPreferences,
    OutputEncoding,
    Technique,
    TechniqueConfig,
    TechniquePlan,
    VideoMetadata,
)

DEFAULT_WHISPER_MODEL = "base"
MIN_CAPTION_DURATION_SECONDS = 10
UNKNOWN_DURATION_SECONDS = 300


def is_suitable_for_captions(metadata: VideoMetadata) -> bool:
    """Live, upcoming and very short (<10 s) videos skip caption techniques."""
    if metadata.is_live or metadata.is_upcoming:
        return False
    if 0 < metadata.duration < MIN_CAPTION_DURATION_SECONDS:
        return False
    return True


def select_strategy(metadata: VideoMetadata, preferences: ExtractionPreferences) -> List[Technique]:
    """Ordered, de-duplicated list of techniques to attempt (possibly empty)."""
    if not is_suitable_for_captions(metadata):
        return [Technique.AUDIO_TRANSCRIPTION] if preferences.fallback_to_audio else []

    strategies: List[Technique] = []
    if metadata.has_closed_captions:
        # Attempted even without an exact language match; backends fall back per language.
        strategies.append(Technique.CAPTION_PRIMARY)
        strategies.append(Technique.CAPTION_SECONDARY)

    if preferences.fallback_to_audio:
        strategies.append(Technique.AUDIO_TRANSCRIPTION)

    return list(dict.fromkeys(strategies))


def select_forced_strategy(technique: Technique | str, preferences: ExtractionPreferences) -> List[Technique]:
    """Caller-forced technique, followed by audio transcription when allowed."""
    forced = Technique.parse(technique)
    strategies = [forced]
    if preferences.fallback_to_audio and forced is not Technique.AUDIO_TRANSCRIPTION:
        strategies.append(Technique.AUDIO_TRANSCRIPTION)
    return strategies


def get_primary_strategy(metadata: VideoMetadata, preferences: ExtractionPreferences) -> Optional[Technique]:
    strategies = select_strategy(metadata, preferences)
    return strategies[0] if strategies else None


def is_technique_recommended(
    metadata: VideoMetadata,
    technique: Technique | str,
    preferences: ExtractionPreferences,
) -> bool:
    return Technique.parse(technique) in select_strategy(metadata, preferences)


def get_method_config(
    technique: Technique | str,
    metadata: VideoMetadata,
    preferences: ExtractionPreferences,
    *,
    whisper_model: str = DEFAULT_WHISPER_MODEL,
) -> TechniqueConfig:
    """
    Build the configuration for one technique.

    The language match is computed here and layered with technique-specific
    fields. Raises ValueError for an unknown technique name.
    """
    technique = Technique.parse(technique)
    match = resolve_language(metadata.available_languages, preferences.preferred_language)
    selected = match.selected_language
    fallbacks = tuple(
        code for code in language_variants(preferences.preferred_language) if code != selected
    )

    base = dict(
        video_id=metadata.video_id,
        language=selected,
        fallback_languages=fallbacks,
        encoding=preferences.encoding,
        language_match=match,
    )

    if technique is Technique.CAPTION_PRIMARY:
        return CaptionPrimaryConfig(**base, country=country_for_language(selected))

    if technique is Technique.CAPTION_SECONDARY:
        return CaptionSecondaryConfig(
            **base,
            lang_code=selected,
            available_languages=metadata.available_languages,
        )

    return AudioTranscriptionConfig(
        **base,
        title=metadata.title,
        description=metadata.description,
        duration=metadata.duration,
        model=whisper_model,
        output_format="words" if preferences.encoding is OutputEncoding.STRUCTURED else "segments",
        language_hint=normalize_language_code(preferences.preferred_language),
        match_confidence=match.confidence,
    )


def estimate_extraction_time(technique: Technique | str, metadata: VideoMetadata) -> float:
    """Advisory estimate in seconds; clamped, monotonic in duration."""
    technique = Technique.parse(technique)
    duration = metadata.duration or UNKNOWN_DURATION_SECONDS

    if technique is Technique.CAPTION_PRIMARY:
        return min(10.0, duration * 0.02)
    if technique is Technique.CAPTION_SECONDARY:
        return min(15.0, duration * 0.03)
    # download + transcription
    return min(300.0, 30 + duration * 0.1)


def plan_techniques(
    metadata: VideoMetadata,
    preferences: ExtractionPreferences,
    *,
    whisper_model: str = DEFAULT_WHISPER_MODEL,
) -> List[TechniquePlan]:
    """Advisory listing: every selected technique with its estimate and config."""
    strategies = select_strategy(metadata, preferences)
    primary = strategies[0] if strategies else None
    return [
        TechniquePlan(
            technique=technique,
            estimated_seconds=estimate_extraction_time(technique, metadata),
            recommended=technique is primary,
            config=get_method_config(technique, metadata, preferences, whisper_model=whisper_model),
        )
        for technique in strategies
    ]
