"""
Unit tests for the result normalizer.
"""

import json

import pytest

from transcript_gateway.core.diagnostics.collector import AttemptCollector
from transcript_gateway.core.errors import FailureKind
from transcript_gateway.core.formatter import (
    encode_transcript,
    format_error,
    format_failure,
    format_result,
    format_subtitle_time,
    render_subtitles,
)
from transcript_gateway.core.schema import (
    ExtractionOutcome,
    ExtractionPreferences,
    FinalResult,
    OutputEncoding,
    Technique,
    TranscriptSegment,
)

from conftest import VIDEO_ID, success_outcome

TEXTS = ["Never gonna give you up", "never gonna let you down", "never gonna run around"]


class TestSubtitleEncoding:

    @pytest.mark.parametrize(
        "ms, expected",
        [
            (0, "00:00:00,000"),
            (1500, "00:00:01,500"),
            (61_001, "00:01:01,001"),
            (3_723_456, "01:02:03,456"),
            (360_000_000, "100:00:00,000"),
        ],
    )
    def test_format_subtitle_time(self, ms, expected):
        assert format_subtitle_time(ms) == expected

    def test_first_block_timing(self):
        segments = [TranscriptSegment(text="hello", start_ms=0, duration_ms=1500)]
        assert render_subtitles(segments) == "1\n00:00:00,000 --> 00:00:01,500\nhello\n"

    def test_blocks_are_numbered_and_blank_line_separated(self):
        segments = [
            TranscriptSegment(text="one", start_ms=0, duration_ms=1000),
            TranscriptSegment(text="two", start_ms=1000, duration_ms=2500),
        ]
        assert render_subtitles(segments) == (
            "1\n00:00:00,000 --> 00:00:01,000\none\n"
            "\n"
            "2\n00:00:01,000 --> 00:00:03,500\ntwo\n"
        )


class TestEncodeTranscript:

    def test_text_joins_with_single_spaces(self):
        outcome = success_outcome(Technique.CAPTION_PRIMARY, TEXTS)
        assert encode_transcript(outcome, OutputEncoding.TEXT) == " ".join(TEXTS)

    def test_structured_document(self):
        outcome = success_outcome(
            Technique.CAPTION_SECONDARY, TEXTS, video_details={"title": "Never Gonna Give You Up"}
        )
        document = json.loads(encode_transcript(outcome, OutputEncoding.STRUCTURED))
        assert document["technique"] == "caption-secondary"
        assert document["video_details"] == {"title": "Never Gonna Give You Up"}
        assert document["segments"][1] == {"text": TEXTS[1], "start": 2000, "duration": 2000}

    def test_untimed_text_becomes_one_segment(self):
        outcome = ExtractionOutcome(success=True, technique=Technique.AUDIO_TRANSCRIPTION, text="spoken words " * 5)
        rendered = encode_transcript(outcome, OutputEncoding.SUBTITLE)
        assert rendered.startswith("1\n00:00:00,000 --> 00:00:00,000\n")


class TestFormatResult:

    def test_success_carries_provenance(self, captioned_metadata, preferences):
        outcome = success_outcome(Technique.CAPTION_PRIMARY, TEXTS, elapsed_ms=42.0)
        result = format_result(outcome, captioned_metadata, preferences)

        assert result.success
        assert result.video_id == VIDEO_ID
        assert result.technique is Technique.CAPTION_PRIMARY
        assert result.language == "en"
        assert result.segment_count == 3
        assert result.elapsed_ms == 42.0
        assert result.confidence == 0.9
        assert result.duration == 212
        assert result.audio_size_bytes is None
        assert result.metadata is None
        assert result.message == "Transcript extracted successfully using caption-primary"

    def test_structured_encoding_adds_metadata_block(self, captioned_metadata):
        prefs = ExtractionPreferences(preferred_language="en-GB", encoding="json")
        outcome = success_outcome(Technique.AUDIO_TRANSCRIPTION, TEXTS, audio_size_bytes=2_500_000, language="en")
        result = format_result(outcome, captioned_metadata, prefs)

        assert result.encoding is OutputEncoding.STRUCTURED
        assert result.audio_size_bytes == 2_500_000
        assert result.metadata["requested_language"] == "en-GB"
        assert result.metadata["detected_language"] == "en"
        assert result.metadata["channel_name"] == "Rick Astley"

    @pytest.mark.parametrize("encoding", list(OutputEncoding))
    def test_segments_shorter_than_accepted_text(self, captioned_metadata, encoding):
        text = "spoken words from the audio track that are long enough to count"
        outcome = ExtractionOutcome(
            success=True,
            technique=Technique.AUDIO_TRANSCRIPTION,
            text=text,
            segments=[TranscriptSegment(text="spoken words from the audio track", duration_ms=2500)],
        )

        result = format_result(outcome, captioned_metadata, ExtractionPreferences(encoding=encoding))

        assert result.success
        assert text in result.transcript
        assert result.segment_count == 1
        if encoding is OutputEncoding.TEXT:
            assert result.transcript == text

    def test_short_success_is_rejected_by_the_model(self):
        with pytest.raises(ValueError):
            FinalResult(success=True, transcript="short")


class TestFormatFailure:

    def test_aggregated_failure(self, captioned_metadata, preferences):
        collector = AttemptCollector(VIDEO_ID)
        collector.add_failure(Technique.CAPTION_PRIMARY, FailureKind.NO_CAPTIONS_AVAILABLE, "no transcript")
        collector.add_failure(Technique.AUDIO_TRANSCRIPTION, FailureKind.AUDIO_TOO_SMALL, "Audio too small")

        result = format_failure(collector.build_report(), captioned_metadata, preferences)

        assert not result.success
        assert result.transcript == ""
        assert result.error == "caption-primary: no transcript; audio-transcription: Audio too small"
        assert result.error_code is FailureKind.ALL_TECHNIQUES_FAILED
        assert result.hint
        assert [failure.technique for failure in result.failures] == [
            Technique.CAPTION_PRIMARY,
            Technique.AUDIO_TRANSCRIPTION,
        ]

    def test_format_error(self):
        result = format_error("Invalid YouTube URL format or video ID", FailureKind.INVALID_URL)
        assert not result.success
        assert result.error_code is FailureKind.INVALID_URL
        assert "valid YouTube URL" in result.hint
