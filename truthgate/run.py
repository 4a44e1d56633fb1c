# SPDX-License-Identifier: Apache-2.0
"""One complete truth gate run over a run's findings and execution records."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Sequence

from truthgate.config import DEFAULT_MAX_WORKERS, DEFAULT_MIN_COVERAGE
from truthgate.coverage.enforcement import enforce_coverage
from truthgate.coverage.outcome import RunOutcome, determine_run_outcome
from truthgate.foundation import RuntimeDeterminismProvider
from truthgate.guardrails.policy import GuardrailsPolicy
from truthgate.logger import get_logger
from truthgate.model.execution import ExecutionRecord
from truthgate.model.finding import EvaluationContext, Finding
from truthgate.truth.pipeline import PipelineResult, evaluate_findings

logger = get_logger(component="truth_run")


@dataclass(frozen=True)
class TruthRun:
    pipeline: PipelineResult
    outcome: RunOutcome

    def to_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome.to_dict(),
            "findings": [item.finding.to_dict() for item in self.pipeline.results],
            "decisions": [item.to_dict() for item in self.pipeline.decisions],
            "evaluationErrors": [item.to_dict() for item in self.pipeline.errors],
        }


def run_truth_pipeline(
    findings: Sequence[Finding],
    records: Sequence[ExecutionRecord],
    policy: GuardrailsPolicy,
    *,
    contexts: Optional[Mapping[str, EvaluationContext]] = None,
    provider: Optional[RuntimeDeterminismProvider] = None,
    min_coverage: float = DEFAULT_MIN_COVERAGE,
    strict: bool = False,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> TruthRun:
    """Evaluate findings and enforce coverage side by side, then merge.

    The two halves share no data, so coverage runs on its own thread while the
    findings are evaluated.
    """

    records = list(records)
    with ThreadPoolExecutor(max_workers=1) as executor:
        coverage_future = executor.submit(enforce_coverage, records, min_coverage, strict)
        pipeline = evaluate_findings(findings, policy, contexts=contexts, provider=provider, max_workers=max_workers)
        enforcement = coverage_future.result()

    outcome = determine_run_outcome(
        pipeline.final_findings,
        records,
        min_coverage,
        strict,
        evaluation_errors=pipeline.errors,
        enforcement=enforcement,
    )
    logger.info(
        "truth_run_complete",
        exit_code=outcome.exit_code,
        status=outcome.status,
        findings=len(findings),
        records=len(records),
        policy_version=policy.version,
    )
    return TruthRun(pipeline=pipeline, outcome=outcome)


__all__ = ["TruthRun", "run_truth_pipeline"]
