# transcript_gateway/output/writer.py
"""
Artifact writer: persist a successful transcript to disk.

File name is <video_id> with an extension matching the encoding
(.txt, .srt, .json). Existing files are overwritten.
"""

from __future__ import annotations

from pathlib import Path

from transcript_gateway.core.schema import FinalResult, OutputEncoding

EXTENSIONS = {
    OutputEncoding.TEXT: ".txt",
    OutputEncoding.SUBTITLE: ".srt",
    OutputEncoding.STRUCTURED: ".json",
}


def write_transcript(result: FinalResult, out_dir: Path) -> Path:
    """Write the transcript and return its path. Raises ValueError for a failed result."""
    if not result.success or not result.video_id:
        raise ValueError("Only successful results with a video id can be written")

    out_dir.mkdir(parents=True, exist_ok=True)
    extension = EXTENSIONS[result.encoding or OutputEncoding.TEXT]
    path = out_dir / f"{result.video_id}{extension}"
    path.write_text(result.transcript, encoding="utf-8")
    return path
