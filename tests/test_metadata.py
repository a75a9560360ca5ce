"""
Unit tests for the yt-dlp metadata provider.
Uses a fake YoutubeDL; no network calls.
"""

import pytest
import yt_dlp

from transcript_gateway.core.errors import FailureKind, MetadataError
from transcript_gateway.providers.metadata import (
    YtDlpMetadataProvider,
    caption_languages,
    format_upload_date,
    metadata_from_info,
    minimal_metadata,
)

from conftest import VIDEO_ID

INFO = {
    "id": VIDEO_ID,
    "title": "Never Gonna Give You Up",
    "description": "Official video",
    "duration": 212.4,
    "channel": "Rick Astley",
    "upload_date": "20091025",
    "live_status": "not_live",
    "subtitles": {"en": [{}], "live_chat": [{}]},
    "automatic_captions": {"en-orig": [{}], "de-orig": [{}], "fr": [{}]},
    "thumbnails": [
        {"url": "https://i.ytimg.com/small.jpg", "width": 120, "height": 90},
        {"url": "https://i.ytimg.com/large.jpg", "width": 1280, "height": 720},
    ],
}


class FakeYDL:
    """Stands in for yt_dlp.YoutubeDL; results are consumed per player client."""

    def __init__(self, results):
        self.results = list(results)
        self.params = []

    def __call__(self, params):
        self.params.append(params)
        return self

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def extract_info(self, url, download=False):
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class TestInfoMapping:

    def test_metadata_from_info(self):
        metadata = metadata_from_info(VIDEO_ID, INFO)
        assert metadata.title == "Never Gonna Give You Up"
        assert metadata.duration == 212
        assert metadata.has_closed_captions
        assert metadata.available_languages == ("en", "de")
        assert metadata.publish_date == "2009-10-25"
        assert metadata.thumbnail_url == "https://i.ytimg.com/large.jpg"
        assert not metadata.is_live

    def test_defaults_for_sparse_info(self):
        metadata = metadata_from_info(VIDEO_ID, {"live_status": "is_upcoming"})
        assert metadata.title == "Unknown Title"
        assert metadata.channel_name == "Unknown Channel"
        assert metadata.is_upcoming
        assert not metadata.has_closed_captions

    def test_caption_languages_skip_translations(self):
        assert caption_languages({"automatic_captions": {"es": [{}], "es-orig": [{}]}}) == ["es"]

    def test_format_upload_date_passthrough(self):
        assert format_upload_date("2009") == "2009"
        assert format_upload_date(None) is None

    def test_minimal_metadata(self):
        metadata = minimal_metadata(VIDEO_ID)
        assert metadata.is_minimal
        assert not metadata.has_closed_captions
        assert metadata.available_languages == ()


class TestYtDlpMetadataProvider:

    @pytest.mark.asyncio
    async def test_first_client_success(self, settings):
        ydl = FakeYDL([INFO])
        provider = YtDlpMetadataProvider(settings, ydl_factory=ydl)

        metadata = await provider.get_metadata(VIDEO_ID)

        assert metadata.video_id == VIDEO_ID
        assert ydl.params[0]["skip_download"]
        assert ydl.params[0]["extractor_args"] == {"youtube": {"player_client": ["android"]}}

    @pytest.mark.asyncio
    async def test_falls_through_player_clients(self, settings):
        ydl = FakeYDL([yt_dlp.DownloadError("HTTP Error 403"), None, INFO])
        provider = YtDlpMetadataProvider(settings, ydl_factory=ydl)

        metadata = await provider.get_metadata(VIDEO_ID)

        assert metadata.title == "Never Gonna Give You Up"
        clients = [params["extractor_args"]["youtube"]["player_client"][0] for params in ydl.params]
        assert clients == ["android", "ios", "web"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "message, kind",
        [
            ("ERROR: Private video", FailureKind.VIDEO_PRIVATE),
            ("Sign in to confirm your age", FailureKind.VIDEO_RESTRICTED),
            ("Video unavailable", FailureKind.VIDEO_NOT_FOUND),
            ("HTTP Error 429", FailureKind.VIDEO_NOT_FOUND),
        ],
    )
    async def test_errors_are_classified(self, settings, message, kind):
        ydl = FakeYDL([yt_dlp.DownloadError(message)] * 3)
        provider = YtDlpMetadataProvider(settings, ydl_factory=ydl)

        with pytest.raises(MetadataError) as excinfo:
            await provider.get_metadata(VIDEO_ID)

        assert excinfo.value.kind is kind

    @pytest.mark.asyncio
    async def test_availability_never_raises(self, settings):
        ydl = FakeYDL([yt_dlp.DownloadError("Private video")] * 3)
        provider = YtDlpMetadataProvider(settings, ydl_factory=ydl)

        status = await provider.check_availability(VIDEO_ID)

        assert not status.is_available
        assert status.is_private
        assert status.error

    @pytest.mark.asyncio
    async def test_availability_flags_age_limit(self, settings):
        ydl = FakeYDL([dict(INFO, age_limit=18, availability="public")])
        provider = YtDlpMetadataProvider(settings, ydl_factory=ydl)

        status = await provider.check_availability(VIDEO_ID)

        assert status.is_available
        assert status.is_restricted
        assert not status.is_private

    def test_cookies_file_is_forwarded(self, settings):
        provider = YtDlpMetadataProvider(settings.model_copy(update={"cookies_file": "cookies.txt"}))
        assert provider._ydl_params("web")["cookiefile"] == "cookies.txt"
