# transcript_gateway/backends/whisper.py
"""
Local speech-to-text using openai-whisper.
Single responsibility: load a model once and transcribe an audio file.
Models cached module-level; GPU detection.
"""

from __future__ import annotations

import math
import threading
from typing import Any, Dict, List, NamedTuple, Optional, Protocol, Tuple


class TranscriptionPayload(NamedTuple):
    text: str
    language: Optional[str]
    segments: List[Dict[str, Any]]


class Transcriber(Protocol):
    """Speech-to-text capability injected into the audio backend."""

    def transcribe(
        self,
        audio_path: str,
        *,
        language: Optional[str],
        model: str,
        word_timestamps: bool,
    ) -> TranscriptionPayload:
        ...


# Module-level cache, keyed by (model name, device)
_MODELS: Dict[Tuple[str, str], Any] = {}
_MODELS_LOCK = threading.Lock()


def _default_device() -> str:
    import torch

    return "cuda" if torch.cuda.is_available() else "cpu"


def _load_model(model_name: str, device: Optional[str]) -> Any:
    import whisper

    device = device or _default_device()
    key = (model_name, device)
    with _MODELS_LOCK:
        if key not in _MODELS:
            _MODELS[key] = whisper.load_model(model_name, device=device)
        return _MODELS[key]


def _segment_confidence(segment: Dict[str, Any]) -> Optional[float]:
    avg_logprob = segment.get("avg_logprob")
    if avg_logprob is None:
        return None
    return max(0.0, min(1.0, math.exp(avg_logprob)))


class WhisperTranscriber:
    """Transcriber backed by a locally loaded whisper model."""

    def __init__(self, model: str = "base", device: Optional[str] = None) -> None:
        self.default_model = model
        self.device = device

    def transcribe(
        self,
        audio_path: str,
        *,
        language: Optional[str] = None,
        model: Optional[str] = None,
        word_timestamps: bool = False,
    ) -> TranscriptionPayload:
        whisper_model = _load_model(model or self.default_model, self.device)
        result = whisper_model.transcribe(
            audio_path,
            language=language,
            word_timestamps=word_timestamps,
            fp16=False,
        )

        segments = [
            {
                "text": segment.get("text", ""),
                "start": segment.get("start", 0.0),
                "end": segment.get("end", 0.0),
                "confidence": _segment_confidence(segment),
            }
            for segment in result.get("segments", [])
        ]
        return TranscriptionPayload(
            text=(result.get("text") or "").strip(),
            language=result.get("language"),
            segments=segments,
        )


# High-Level Intent
# whisper.py owns the heavy ML dependencies (whisper, torch); they are imported on first model load only.
# The audio backend depends on the Transcriber protocol, never on this module's internals.
# language=None lets whisper auto-detect; the audio backend decides when to pass a hint.
