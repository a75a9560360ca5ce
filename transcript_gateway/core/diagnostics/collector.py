# transcript_gateway/core/diagnostics/collector.py
"""
Attempt aggregation for the fallback executor.

Collects one entry per attempted technique and synthesizes the execution
report handed to the result normalizer.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from transcript_gateway.core.errors import FailureKind, suggested_fixes_for
from transcript_gateway.core.schema import ExtractionOutcome, Technique, TechniqueFailure

NO_TECHNIQUES_MESSAGE = "No extraction techniques available"


class ExecutionReport(BaseModel):
    """What the executor hands to the normalizer: one accepted outcome or every failure."""
    accepted: Optional[ExtractionOutcome] = None
    failures: List[TechniqueFailure] = Field(default_factory=list)
    attempted: List[Technique] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.accepted is not None

    @property
    def error_message(self) -> str:
        """Aggregated error naming each attempted technique with its reason."""
        if not self.failures:
            return NO_TECHNIQUES_MESSAGE
        return "; ".join(failure.describe() for failure in self.failures)

    @property
    def error_code(self) -> FailureKind:
        return FailureKind.ALL_TECHNIQUES_FAILED


class AttemptCollector:
    """
    Accumulates attempts in execution order.

    Thread-safe not required (attempts are strictly sequential).
    """

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        self._attempted: Dict[Technique, Optional[TechniqueFailure]] = {}
        self._accepted: Optional[ExtractionOutcome] = None
        self._warnings: List[str] = []

    def _register(self, technique: Technique) -> None:
        if technique in self._attempted:
            raise ValueError(f"Duplicate attempt for {technique.value}")
        if self._accepted is not None:
            raise ValueError("An outcome was already accepted; no further attempts allowed")
        self._attempted[technique] = None

    def add_failure(self, technique: Technique, kind: FailureKind, reason: str, warnings: List[str] | None = None) -> TechniqueFailure:
        self._register(technique)
        failure = TechniqueFailure(
            technique=technique,
            kind=kind,
            reason=reason,
            suggested_fixes=suggested_fixes_for(kind),
        )
        self._attempted[technique] = failure
        self._warnings.extend(warnings or [])
        return failure

    def accept(self, technique: Technique, outcome: ExtractionOutcome) -> None:
        """Record the accepted outcome under the technique that actually ran."""
        self._register(technique)
        if outcome.technique is not technique:
            outcome = outcome.model_copy(update={"technique": technique})
        self._accepted = outcome
        self._warnings.extend(outcome.warnings)

    @property
    def attempted(self) -> List[Technique]:
        return list(self._attempted)

    def build_report(self) -> ExecutionReport:
        return ExecutionReport(
            accepted=self._accepted,
            failures=[failure for failure in self._attempted.values() if failure is not None],
            attempted=self.attempted,
            warnings=list(dict.fromkeys(self._warnings)),
        )


# High-Level Intent
# Central aggregator for per-technique attempts.
# Each technique is recorded at most once; nothing is recorded after an outcome is accepted.
# Failures keep execution order, so the aggregated error lists techniques in the order they ran.
# An empty attempt list still yields a report with a fixed error message.
