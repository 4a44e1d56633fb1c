# SPDX-License-Identifier: Apache-2.0
"""Truth reconciliation and the per-finding pipeline."""

from truthgate.truth.pipeline import (
    FindingEvaluationError,
    FindingTruth,
    PipelineResult,
    evaluate_finding,
    evaluate_findings,
    judgment_exit_code,
)
from truthgate.truth.reconciler import ReconciledFinding, evidence_intent_failed, finalize_finding_truth

__all__ = [
    "FindingEvaluationError",
    "FindingTruth",
    "PipelineResult",
    "ReconciledFinding",
    "evaluate_finding",
    "evaluate_findings",
    "evidence_intent_failed",
    "finalize_finding_truth",
    "judgment_exit_code",
]
