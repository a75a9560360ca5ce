# transcript_gateway/cli/transcript.py
"""
CLI entrypoint for transcript acquisition.

Thin adapter: no business logic.
Responsibilities:
- Parse arguments
- Invoke the gateway
- Print or write the transcript
- Provide clear user feedback

All logging is structured JSON from the core.
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import typer

from transcript_gateway.config import get_settings
from transcript_gateway.core.errors import GatewayError
from transcript_gateway.core.formatter import format_error
from transcript_gateway.core.runner import AUTO, build_default_gateway, build_preferences
from transcript_gateway.output.writer import write_transcript


app = typer.Typer(
    name="transcript-gateway",
    help="Transcript Gateway: fetch YouTube transcripts with caption and audio fallbacks",
    no_args_is_help=True,
)


def _fail(message: str, hint: Optional[str] = None) -> None:
    typer.echo("")
    typer.echo(typer.style("✗ Transcript extraction failed", fg=typer.colors.RED, bold=True), err=True)
    typer.echo(f"Error: {message}", err=True)
    if hint:
        typer.echo(f"Hint: {hint}", err=True)
    sys.exit(1)


@app.command()
def fetch(
    reference: str = typer.Argument(..., help="YouTube video URL or 11-character video id"),
    lang: str = typer.Option("en", "--lang", "-l", help="Preferred transcript language"),
    output_format: str = typer.Option("text", "--format", "-f", help="text | subtitle | structured"),
    method: str = typer.Option(AUTO, "--method", "-m", help="auto or a technique name"),
    no_audio_fallback: bool = typer.Option(
        False, "--no-audio-fallback", help="Never fall back to audio transcription"
    ),
    out: Optional[str] = typer.Option(None, "--out", "-o", help="Write the transcript into this directory"),
    as_json: bool = typer.Option(False, "--json", help="Print the whole result envelope as JSON"),
) -> None:
    """
    Fetch the transcript of one video.
    """
    try:
        preferences = build_preferences(lang, output_format, not no_audio_fallback)
        gateway = build_default_gateway(get_settings())
        result = asyncio.run(gateway.resolve_transcript(reference, method, preferences))
    except KeyboardInterrupt:
        typer.echo("\nInterrupted by user.", err=True)
        sys.exit(1)
    except GatewayError as exc:
        if as_json:
            typer.echo(format_error(str(exc), exc.kind).model_dump_json(indent=2))
            sys.exit(1)
        _fail(str(exc), exc.hint)
        return
    except ValueError as exc:
        _fail(str(exc))
        return

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
        if not result.success:
            sys.exit(1)
        return

    if not result.success:
        _fail(result.error or "unknown error", result.hint)
        return

    if out:
        path = write_transcript(result, Path(out).expanduser())
        typer.echo(typer.style(f"✓ {result.message}", fg=typer.colors.GREEN, bold=True))
        typer.echo(f"Transcript written to: {path}")
        return

    typer.echo(result.transcript)


@app.command()
def info(
    reference: str = typer.Argument(..., help="YouTube video URL or 11-character video id"),
) -> None:
    """
    Show video metadata and availability.
    """
    gateway = build_default_gateway(get_settings())
    try:
        details = asyncio.run(gateway.video_info(reference))
    except GatewayError as exc:
        _fail(str(exc), exc.hint)
        return

    payload = {key: value.model_dump(mode="json") for key, value in details.items()}
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command()
def methods(
    reference: str = typer.Argument(..., help="YouTube video URL or 11-character video id"),
    lang: str = typer.Option("en", "--lang", "-l", help="Preferred transcript language"),
    no_audio_fallback: bool = typer.Option(
        False, "--no-audio-fallback", help="Never fall back to audio transcription"
    ),
) -> None:
    """
    List the techniques that would be tried, in order, with time estimates.
    """
    gateway = build_default_gateway(get_settings())
    try:
        preferences = build_preferences(lang, "text", not no_audio_fallback)
        plans = asyncio.run(gateway.describe_techniques(reference, preferences))
    except GatewayError as exc:
        _fail(str(exc), exc.hint)
        return

    if not plans:
        typer.echo("No extraction techniques available for this video.")
        return

    for index, plan in enumerate(plans, start=1):
        marker = " (recommended)" if plan.recommended else ""
        typer.echo(
            f"{index}. {plan.technique.value}{marker}: ~{plan.estimated_seconds:.1f}s, "
            f"language {plan.config.language} ({plan.config.language_match.kind.value})"
        )


if __name__ == "__main__":
    app()


# High-Level Intent
# cli/transcript.py is the thin adapter over TranscriptGateway.
# fetch prints the transcript (or the full envelope with --json) and exits 1 on failure.
# info and methods are read-only: metadata, availability and the advisory technique plan.
# Exit status is the only transport-level mapping done here.
