"""
Unit tests for video reference validation and error classification.
"""

import pytest

from transcript_gateway.core.errors import (
    FailureKind,
    InvalidRequestError,
    MetadataError,
    classify_error_message,
    hint_for,
    suggested_fixes_for,
)
from transcript_gateway.core.validation import (
    normalize_url,
    parse_video_id,
    require_video_id,
    url_type,
    validate_reference,
)

from conftest import VIDEO_ID


class TestParseVideoId:

    @pytest.mark.parametrize(
        "reference",
        [
            VIDEO_ID,
            f"  {VIDEO_ID}  ",
            f"https://www.youtube.com/watch?v={VIDEO_ID}",
            f"https://www.youtube.com/watch?feature=share&v={VIDEO_ID}&t=42",
            f"https://youtu.be/{VIDEO_ID}?si=abc",
            f"https://www.youtube.com/embed/{VIDEO_ID}",
            f"https://youtube.com/shorts/{VIDEO_ID}",
        ],
    )
    def test_accepted_forms(self, reference):
        assert parse_video_id(reference) == VIDEO_ID

    @pytest.mark.parametrize("reference", [None, "", "short", "https://vimeo.com/12345"])
    def test_rejected_forms(self, reference):
        assert parse_video_id(reference) is None

    def test_normalize_url(self):
        assert normalize_url(f"https://youtu.be/{VIDEO_ID}") == f"https://www.youtube.com/watch?v={VIDEO_ID}"
        assert normalize_url("not a url") == "not a url"

    @pytest.mark.parametrize(
        "reference, expected",
        [
            (VIDEO_ID, "videoId"),
            (f"https://www.youtube.com/watch?v={VIDEO_ID}", "watch"),
            (f"https://youtu.be/{VIDEO_ID}", "short"),
            (f"https://www.youtube.com/embed/{VIDEO_ID}", "embed"),
            (f"https://www.youtube.com/shorts/{VIDEO_ID}", "shorts"),
            ("https://example.com", "invalid"),
            ("", "invalid"),
        ],
    )
    def test_url_type(self, reference, expected):
        assert url_type(reference) == expected


class TestValidateReference:

    def test_valid_reference(self):
        result = validate_reference(f"https://youtu.be/{VIDEO_ID}")
        assert result.is_valid
        assert result.video_id == VIDEO_ID
        assert result.normalized_url == f"https://www.youtube.com/watch?v={VIDEO_ID}"

    @pytest.mark.parametrize(
        "reference, kind, error",
        [
            (None, FailureKind.MISSING_PARAMETERS, "Input must be a non-empty string"),
            ("   ", FailureKind.MISSING_PARAMETERS, "Input must be a non-empty string"),
            (42, FailureKind.MISSING_PARAMETERS, "Input must be a non-empty string"),
            ("https://example.com/watch", FailureKind.INVALID_URL, "Invalid YouTube URL format or video ID"),
        ],
    )
    def test_invalid_references(self, reference, kind, error):
        result = validate_reference(reference)
        assert not result.is_valid
        assert result.kind is kind
        assert result.error == error

    def test_require_video_id_raises(self):
        with pytest.raises(InvalidRequestError) as excinfo:
            require_video_id("https://example.com")
        assert excinfo.value.kind is FailureKind.INVALID_URL
        assert "valid YouTube URL" in excinfo.value.hint


class TestErrorTaxonomy:

    @pytest.mark.parametrize(
        "message, kind",
        [
            ("HTTP Error 429: Too Many Requests", FailureKind.RATE_LIMITED),
            ("Daily quota reached", FailureKind.QUOTA_EXCEEDED),
            ("ERROR: Private video. Sign in if you've been granted access", FailureKind.VIDEO_PRIVATE),
            ("Sign in to confirm your age", FailureKind.VIDEO_RESTRICTED),
            ("Subtitles are disabled for this video", FailureKind.NO_CAPTIONS_AVAILABLE),
            ("Video unavailable", FailureKind.VIDEO_NOT_FOUND),
            ("Requested format is not available", FailureKind.AUDIO_DOWNLOAD_FAILED),
            ("ffmpeg exited with code 1", FailureKind.TRANSCRIPTION_FAILED),
            ("whisper crashed", FailureKind.TRANSCRIPTION_FAILED),
            ("something odd", FailureKind.UNEXPECTED_ERROR),
        ],
    )
    def test_classify_error_message(self, message, kind):
        assert classify_error_message(message) is kind

    def test_classify_uses_default(self):
        assert classify_error_message("", default=FailureKind.AUDIO_DOWNLOAD_FAILED) is FailureKind.AUDIO_DOWNLOAD_FAILED
        assert classify_error_message("weird", default=FailureKind.VIDEO_NOT_FOUND) is FailureKind.VIDEO_NOT_FOUND

    def test_every_kind_has_a_hint(self):
        for kind in FailureKind:
            assert hint_for(kind)

    def test_suggested_fixes_are_copies(self):
        fixes = suggested_fixes_for(FailureKind.RATE_LIMITED)
        fixes.append("mutated")
        assert "mutated" not in suggested_fixes_for(FailureKind.RATE_LIMITED)
        assert suggested_fixes_for(FailureKind.INVALID_URL) == []

    def test_error_kinds(self):
        assert MetadataError("gone").kind is FailureKind.VIDEO_NOT_FOUND
        assert MetadataError("private", FailureKind.VIDEO_PRIVATE).kind is FailureKind.VIDEO_PRIVATE
        assert InvalidRequestError("missing").kind is FailureKind.MISSING_PARAMETERS
