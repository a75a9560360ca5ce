# transcript_gateway/core/formatter.py
"""
Result normalizer: one FinalResult shape regardless of the technique used.

Encodings:
- text: the accepted transcript text
- subtitle: SRT-style numbered blocks with HH:MM:SS,mmm timings
- structured: JSON document with segments (milliseconds), technique and
  any raw video details the backend passed through
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from transcript_gateway.core.diagnostics.collector import ExecutionReport
from transcript_gateway.core.errors import FailureKind, hint_for
from transcript_gateway.core.schema import (
    ExtractionOutcome,
    ExtractionPreferences,
    FinalResult,
    OutputEncoding,
    TranscriptSegment,
    VideoMetadata,
)


def format_subtitle_time(milliseconds: int) -> str:
    """00:00:01,500 for 1500 ms."""
    milliseconds = max(0, int(milliseconds))
    total_seconds = milliseconds // 1000
    hours = total_seconds // 3600
    minutes = (total_seconds % 3600) // 60
    seconds = total_seconds % 60
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{milliseconds % 1000:03d}"


def render_subtitles(segments: List[TranscriptSegment]) -> str:
    blocks = [
        f"{index}\n{format_subtitle_time(segment.start_ms)} --> {format_subtitle_time(segment.end_ms)}\n{segment.text}\n"
        for index, segment in enumerate(segments, start=1)
    ]
    return "\n".join(blocks)


def render_text(segments: List[TranscriptSegment]) -> str:
    return " ".join(segment.text for segment in segments if segment.text)


def render_structured(outcome: ExtractionOutcome, segments: List[TranscriptSegment]) -> str:
    items: List[Dict[str, Any]] = []
    for segment in segments:
        item: Dict[str, Any] = {
            "text": segment.text,
            "start": segment.start_ms,
            "duration": segment.duration_ms,
        }
        if segment.confidence is not None:
            item["confidence"] = segment.confidence
        items.append(item)

    document = {
        "segments": items,
        "technique": outcome.technique.value,
        "video_details": outcome.video_details,
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def _segments_for(outcome: ExtractionOutcome) -> List[TranscriptSegment]:
    # Timed segments are used only when they carry exactly the accepted text.
    if outcome.segments and (not outcome.text or render_text(outcome.segments) == outcome.text):
        return list(outcome.segments)
    if outcome.text:
        # Untimed transcript: a single segment spanning nothing.
        return [TranscriptSegment(text=outcome.text)]
    return []


def encode_transcript(outcome: ExtractionOutcome, encoding: OutputEncoding) -> str:
    segments = _segments_for(outcome)
    if encoding is OutputEncoding.SUBTITLE:
        return render_subtitles(segments)
    if encoding is OutputEncoding.STRUCTURED:
        return render_structured(outcome, segments)
    return outcome.text or render_text(segments)


def format_result(
    outcome: ExtractionOutcome,
    metadata: VideoMetadata,
    preferences: ExtractionPreferences,
) -> FinalResult:
    """Normalize a successful outcome into the caller-facing result."""
    encoding = preferences.encoding
    result_metadata: Optional[Dict[str, Any]] = None
    if encoding is OutputEncoding.STRUCTURED:
        result_metadata = {
            "channel_name": metadata.channel_name,
            "publish_date": metadata.publish_date,
            "thumbnail_url": metadata.thumbnail_url,
            "has_closed_captions": metadata.has_closed_captions,
            "available_languages": list(metadata.available_languages),
            "requested_language": preferences.preferred_language,
            "detected_language": outcome.language,
        }

    return FinalResult(
        success=True,
        video_id=metadata.video_id,
        video_title=metadata.title,
        transcript=encode_transcript(outcome, encoding),
        encoding=encoding,
        language=outcome.language,
        technique=outcome.technique,
        segment_count=len(_segments_for(outcome)),
        elapsed_ms=outcome.elapsed_ms,
        confidence=outcome.confidence,
        audio_size_bytes=outcome.audio_size_bytes or None,
        duration=metadata.duration or None,
        available_languages=list(metadata.available_languages),
        metadata=result_metadata,
        message=f"Transcript extracted successfully using {outcome.technique.value}",
    )


def format_failure(
    report: ExecutionReport,
    metadata: VideoMetadata,
    preferences: ExtractionPreferences,
) -> FinalResult:
    """One aggregated failure listing every technique tried, in attempt order."""
    return FinalResult(
        success=False,
        video_id=metadata.video_id,
        video_title=metadata.title,
        encoding=preferences.encoding,
        duration=metadata.duration or None,
        available_languages=list(metadata.available_languages),
        message="Transcript extraction failed",
        error=report.error_message,
        error_code=report.error_code,
        hint=hint_for(report.error_code),
        failures=list(report.failures),
    )


def format_error(
    message: str,
    kind: FailureKind,
    *,
    video_id: Optional[str] = None,
) -> FinalResult:
    """Failure result for errors raised before any technique ran."""
    return FinalResult(
        success=False,
        video_id=video_id,
        message="Request rejected",
        error=message,
        error_code=kind,
        hint=hint_for(kind),
    )


# High-Level Intent
# formatter.py is the last step of a request: it never calls a backend and never raises for a valid outcome.
# Subtitle timings are bit-exact: "INDEX\nHH:MM:SS,mmm --> HH:MM:SS,mmm\nTEXT\n" per segment, blocks joined by a blank line.
# The structured metadata block is only attached for the structured encoding.
# Failure results always carry error_code, hint and the ordered per-technique failures.
