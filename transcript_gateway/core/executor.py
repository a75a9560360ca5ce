# transcript_gateway/core/executor.py
"""
Fallback executor: run techniques strictly in order until one is sufficient.

Responsibilities:
- Call each technique's backend exactly once, one at a time
- Accept the first successful outcome carrying more than SUFFICIENCY_THRESHOLD characters
- Record every rejected attempt with its reason, in attempt order

No technique is retried here; language retries live inside the backends.
"""

from __future__ import annotations

import logging
from logging import Logger
from typing import Mapping, Sequence

from transcript_gateway.backends.base import ExtractionBackend
from transcript_gateway.core.diagnostics.collector import AttemptCollector, ExecutionReport
from transcript_gateway.core.errors import FailureKind, classify_error_message
from transcript_gateway.core.schema import (
    SUFFICIENCY_THRESHOLD,
    ExtractionOutcome,
    Technique,
    TechniqueConfig,
)
from transcript_gateway.logging_core.logger import log_event

COMPONENT = "executor"


def is_sufficient(outcome: ExtractionOutcome) -> bool:
    return outcome.success and len(outcome.text) > SUFFICIENCY_THRESHOLD


def _failure_reason(outcome: ExtractionOutcome) -> str:
    if outcome.success:
        return f"insufficient content ({len(outcome.text)} chars)"

    reason = outcome.error or "unknown error"
    # Backends may already prefix their message with the technique name.
    prefix = f"{outcome.technique.value}: "
    return reason[len(prefix):] if reason.startswith(prefix) else reason


def _failure_kind(outcome: ExtractionOutcome) -> FailureKind:
    if outcome.success:
        return FailureKind.INSUFFICIENT_CONTENT
    return outcome.failure_kind or classify_error_message(outcome.error)


async def _attempt(
    backend: ExtractionBackend,
    technique: Technique,
    video_id: str,
    config: TechniqueConfig,
) -> ExtractionOutcome:
    try:
        return await backend.extract(video_id, config)
    except Exception as exc:  # pylint: disable=broad-except
        # A raising backend is recorded like any other failure.
        return ExtractionOutcome.failed(technique, str(exc), classify_error_message(str(exc)))


async def extract_with_fallback(
    video_id: str,
    techniques: Sequence[Technique],
    configs: Mapping[Technique, TechniqueConfig],
    backends: Mapping[Technique, ExtractionBackend],
    logger: Logger,
) -> ExecutionReport:
    """
    Try each technique in order and stop at the first sufficient outcome.

    Raises ValueError when a technique has no config (a caller bug); every
    other failure is recorded in the returned report.
    """
    collector = AttemptCollector(video_id)
    total = len(techniques)

    for index, technique in enumerate(techniques, start=1):
        config = configs.get(technique)
        if config is None:
            raise ValueError(f"No configuration built for technique {technique.value}")

        log_event(
            logger,
            logging.INFO,
            f"Attempting technique {index}/{total}",
            component=COMPONENT,
            technique=technique.value,
            event_type="attempt_start",
            metadata={"video_id": video_id, "language": config.language},
        )

        backend = backends.get(technique)
        if backend is None:
            outcome = ExtractionOutcome.failed(
                technique,
                "No backend configured for this technique",
                FailureKind.CAPABILITY_UNAVAILABLE,
            )
        else:
            outcome = await _attempt(backend, technique, video_id, config)

        if is_sufficient(outcome):
            collector.accept(technique, outcome)
            log_event(
                logger,
                logging.INFO,
                "Technique succeeded",
                component=COMPONENT,
                technique=technique.value,
                event_type="attempt_success",
                metadata={
                    "chars": len(outcome.text),
                    "segments": len(outcome.segments),
                    "language": outcome.language,
                    "elapsed_ms": round(outcome.elapsed_ms, 1),
                },
            )
            break

        failure = collector.add_failure(
            technique,
            _failure_kind(outcome),
            _failure_reason(outcome),
            warnings=outcome.warnings,
        )
        log_event(
            logger,
            logging.WARNING,
            "Technique failed",
            component=COMPONENT,
            technique=technique.value,
            event_type="attempt_failure",
            metadata={
                "reason": failure.reason,
                "kind": failure.kind.value,
                "audio_size_bytes": outcome.audio_size_bytes,
            },
        )

    report = collector.build_report()
    if not report.success:
        log_event(
            logger,
            logging.ERROR,
            "All extraction techniques failed",
            component=COMPONENT,
            event_type="all_failed",
            metadata={
                "video_id": video_id,
                "attempted": [technique.value for technique in report.attempted],
                "error": report.error_message,
            },
        )
    return report


# High-Level Intent
# executor.py is the fallback loop; its retry unit is "next technique", never "same technique again".
# Strictly sequential: technique N+1 is awaited only after technique N was rejected.
# Backend errors are data here: captured into the report, never raised past this boundary.
# The runner turns the report into the single FinalResult.
