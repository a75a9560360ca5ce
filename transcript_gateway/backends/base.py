# transcript_gateway/backends/base.py
"""
Shared base definitions for all extraction backends.

This module defines:
- The ExtractionBackend contract: extract(video_id, config) -> ExtractionOutcome
- BaseBackend, which turns every failure into an outcome (never raises)
- BackendFailure, the typed failure a backend raises internally
- A lightweight timer and segment normalization shared by the backends
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
)

from transcript_gateway.core.errors import FailureKind, GatewayError, classify_error_message
from transcript_gateway.core.schema import (
    ExtractionOutcome,
    Technique,
    TechniqueConfig,
    TranscriptSegment,
)


class ExtractionBackend(Protocol):
    """Uniform call contract for one acquisition technique."""

    technique: Technique

    async def extract(self, video_id: str, config: TechniqueConfig) -> ExtractionOutcome:
        ...


class BackendFailure(Exception):
    """Typed failure raised inside a backend and captured into its outcome."""

    def __init__(
        self,
        message: str,
        kind: FailureKind,
        *,
        warnings: Optional[List[str]] = None,
        audio_size_bytes: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.warnings = list(warnings or [])
        self.audio_size_bytes = audio_size_bytes


@contextmanager
def timer() -> Iterator[Callable[[], float]]:
    """
    Context manager that provides an end() function returning elapsed milliseconds.

    Usage:
        with timer() as end:
            # do work
            pass
        elapsed_ms = end()
    """
    start = time.perf_counter()

    def end() -> float:
        return (time.perf_counter() - start) * 1000

    yield end


class BaseBackend(ABC):
    """Wraps _extract so that no failure crosses the backend boundary."""

    technique: Technique

    async def extract(self, video_id: str, config: TechniqueConfig) -> ExtractionOutcome:
        if config.technique is not self.technique:
            raise ValueError(
                f"{self.technique.value} backend received a {config.technique.value} config"
            )

        with timer() as end:
            try:
                outcome = await self._extract(video_id, config)
            except BackendFailure as failure:
                outcome = ExtractionOutcome.failed(
                    self.technique,
                    str(failure),
                    failure.kind,
                    warnings=failure.warnings,
                    audio_size_bytes=failure.audio_size_bytes,
                )
            except GatewayError as exc:
                outcome = ExtractionOutcome.failed(self.technique, str(exc), exc.kind)
            except Exception as exc:  # pylint: disable=broad-except
                message = f"{self.technique.value}: {exc}"
                outcome = ExtractionOutcome.failed(self.technique, message, classify_error_message(str(exc)))
            outcome.elapsed_ms = end()

        return outcome

    @abstractmethod
    async def _extract(self, video_id: str, config: TechniqueConfig) -> ExtractionOutcome:
        ...


async def first_language_with_segments(
    languages: Sequence[str],
    fetch: Callable[[str], Awaitable[List[TranscriptSegment]]],
    warnings: List[str],
) -> Optional[Tuple[str, List[TranscriptSegment]]]:
    """
    Try each language in order and return the first non-empty segment list.

    Per-language failures are appended to warnings. BackendFailure propagates
    unchanged: it marks a condition no other language can fix.
    """
    for language in languages:
        try:
            segments = await fetch(language)
        except BackendFailure:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            warnings.append(f"Language {language} failed: {exc}")
            continue

        if segments:
            return language, segments
        warnings.append(f"Language {language} returned no segments")

    return None


def retry_languages(primary: str, fallbacks: Iterable[str]) -> List[str]:
    """Primary language first, then fallbacks, without duplicates."""
    return list(dict.fromkeys([primary, *fallbacks]))


# Upstream field names, grouped by unit.
_START_MS_KEYS = ("offset", "start_ms", "tStartMs")
_DURATION_MS_KEYS = ("duration_ms", "dDurationMs")
_START_SECONDS_KEYS = ("start",)
_DURATION_SECONDS_KEYS = ("duration", "dur")


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _first_number(item: Any, names: Sequence[str]) -> Optional[float]:
    for name in names:
        value = _field(item, name)
        if value is None or value == "":
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            continue
    return None


def normalize_segment(item: Any) -> TranscriptSegment:
    """
    Build a TranscriptSegment from a heterogeneous upstream record.

    Millisecond fields (offset, tStartMs, dDurationMs, ...) win over second
    fields (start, duration, dur); an "end" in seconds yields the duration
    when none is given.
    """
    start_ms = _first_number(item, _START_MS_KEYS)
    if start_ms is None:
        start_seconds = _first_number(item, _START_SECONDS_KEYS)
        start_ms = (start_seconds or 0.0) * 1000

    duration_ms = _first_number(item, _DURATION_MS_KEYS)
    if duration_ms is None:
        duration_seconds = _first_number(item, _DURATION_SECONDS_KEYS)
        if duration_seconds is None:
            end_seconds = _first_number(item, ("end",))
            duration_seconds = (end_seconds - start_ms / 1000) if end_seconds is not None else 0.0
        duration_ms = duration_seconds * 1000

    confidence = _first_number(item, ("confidence",))
    text = str(_field(item, "text") or "").replace("\n", " ").strip()

    return TranscriptSegment(
        text=text,
        start_ms=max(0, round(start_ms)),
        duration_ms=max(0, round(duration_ms)),
        confidence=confidence,
    )


def normalize_segments(items: Iterable[Any]) -> List[TranscriptSegment]:
    """Normalize and drop segments without text, preserving playback order."""
    segments = [normalize_segment(item) for item in items]
    return [segment for segment in segments if segment.text]


def join_segments(segments: Iterable[TranscriptSegment]) -> str:
    return " ".join(segment.text for segment in segments if segment.text)
