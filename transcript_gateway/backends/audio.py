# transcript_gateway/backends/audio.py
"""
Audio-transcription technique: download the audio track, then speech-to-text.
Single responsibility: manage the temporary audio lifecycle around one
transcription call.

The temporary directory is removed on every exit path (success, failure,
exception). Audio under MIN_AUDIO_BYTES is rejected before transcription.
"""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol

import yt_dlp

from transcript_gateway.backends.base import (
    BackendFailure,
    BaseBackend,
    normalize_segments,
)
from transcript_gateway.backends.whisper import Transcriber, TranscriptionPayload
from transcript_gateway.config import GatewaySettings, get_settings
from transcript_gateway.core.errors import FailureKind, TranscriptionUnavailableError, classify_error_message
from transcript_gateway.core.language import detect_language_from_text
from transcript_gateway.core.schema import (
    AudioTranscriptionConfig,
    ExtractionOutcome,
    Technique,
)

AUDIO_CONFIDENCE = 0.95
MIN_AUDIO_BYTES = 1_000_000
# A language hint is only trusted when the caption match was this strong.
HINT_CONFIDENCE_THRESHOLD = 0.7
DETECTION_CONFIDENCE_THRESHOLD = 0.5


class AudioDownloader(Protocol):
    def download(self, video_id: str, target_dir: Path) -> Path:
        ...


class YtDlpAudioDownloader:
    """Downloads the best available audio-only stream with yt-dlp."""

    def __init__(
        self,
        settings: Optional[GatewaySettings] = None,
        ydl_factory: Callable[[Dict[str, Any]], Any] = yt_dlp.YoutubeDL,
    ) -> None:
        self._settings = settings or get_settings()
        self._ydl_factory = ydl_factory

    def _ydl_params(self, target_dir: Path) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "format": "bestaudio/best",
            "outtmpl": str(target_dir / "audio.%(ext)s"),
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
            "socket_timeout": self._settings.socket_timeout,
            "http_headers": {"User-Agent": self._settings.user_agent},
        }
        if self._settings.cookies_file:
            params["cookiefile"] = self._settings.cookies_file
        return params

    def download(self, video_id: str, target_dir: Path) -> Path:
        url = f"https://www.youtube.com/watch?v={video_id}"
        try:
            with self._ydl_factory(self._ydl_params(target_dir)) as ydl:
                info = ydl.extract_info(url, download=True)
                path = Path(ydl.prepare_filename(info)) if info else None
        except yt_dlp.DownloadError as exc:
            kind = classify_error_message(str(exc), default=FailureKind.AUDIO_DOWNLOAD_FAILED)
            raise BackendFailure(f"Audio download failed: {exc}", kind) from exc

        if path is None or not path.exists():
            # Post-processing may change the extension.
            candidates = sorted(target_dir.glob("audio.*"))
            if not candidates:
                raise BackendFailure(
                    "Audio download failed: no audio file was produced",
                    FailureKind.AUDIO_DOWNLOAD_FAILED,
                )
            path = candidates[0]
        return path


class AudioTranscriptionBackend(BaseBackend):
    """Audio-transcription backend; unavailable when no transcriber is configured."""

    technique = Technique.AUDIO_TRANSCRIPTION

    def __init__(
        self,
        transcriber: Optional[Transcriber],
        downloader: Optional[AudioDownloader] = None,
        settings: Optional[GatewaySettings] = None,
    ) -> None:
        self._transcriber = transcriber
        self._downloader = downloader or YtDlpAudioDownloader(settings)

    async def _extract(self, video_id: str, config: AudioTranscriptionConfig) -> ExtractionOutcome:
        if self._transcriber is None:
            raise TranscriptionUnavailableError("Transcription backend not configured for audio transcription")

        with tempfile.TemporaryDirectory(prefix="yt-audio-") as tmpdir:
            audio_path = await asyncio.to_thread(self._downloader.download, video_id, Path(tmpdir))
            audio_size = audio_path.stat().st_size

            if audio_size < MIN_AUDIO_BYTES:
                raise BackendFailure(
                    f"Audio too small ({audio_size} bytes) - likely not real content",
                    FailureKind.AUDIO_TOO_SMALL,
                    audio_size_bytes=audio_size,
                )

            hint = config.language_hint if config.match_confidence > HINT_CONFIDENCE_THRESHOLD else None
            payload = await self._transcribe(audio_path, hint, config, audio_size)

        if not payload.text:
            raise BackendFailure(
                "Whisper returned empty transcript",
                FailureKind.TRANSCRIPTION_FAILED,
                audio_size_bytes=audio_size,
            )

        segments = normalize_segments(payload.segments)
        return ExtractionOutcome(
            success=True,
            technique=self.technique,
            text=payload.text,
            segments=segments,
            language=self._resolve_language(payload, config),
            confidence=AUDIO_CONFIDENCE,
            audio_size_bytes=audio_size,
        )

    async def _transcribe(
        self,
        audio_path: Path,
        hint: Optional[str],
        config: AudioTranscriptionConfig,
        audio_size: int,
    ) -> TranscriptionPayload:
        try:
            return await asyncio.to_thread(
                self._transcriber.transcribe,
                str(audio_path),
                language=hint,
                model=config.model,
                word_timestamps=config.output_format == "words",
            )
        except BackendFailure:
            raise
        except Exception as exc:  # pylint: disable=broad-except
            raise BackendFailure(
                f"Transcription failed: {exc}",
                FailureKind.TRANSCRIPTION_FAILED,
                audio_size_bytes=audio_size,
            ) from exc

    @staticmethod
    def _resolve_language(payload: TranscriptionPayload, config: AudioTranscriptionConfig) -> str:
        if payload.language:
            return payload.language
        guess = detect_language_from_text(payload.text)
        if guess.confidence >= DETECTION_CONFIDENCE_THRESHOLD:
            return guess.language
        return config.language


# High-Level Intent
# audio.py is the last-resort technique in every strategy.
# Download and transcription are both blocking and run in worker threads.
# Audio size is reported on success and on the size and transcription failures.
# Without a configured Transcriber the technique fails with CAPABILITY_UNAVAILABLE instead of raising.
