# SPDX-License-Identifier: Apache-2.0
"""Per-finding truth pipeline: guardrails, then reconciliation.

Findings share nothing but the read-only policy, so they are evaluated in a
thread pool when more than one worker is allowed. Results keep input order.
One finding that fails to evaluate is recorded and the rest carry on.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

from truthgate.exit_codes import ExitCode
from truthgate.foundation import RuntimeDeterminismProvider
from truthgate.guardrails.engine import apply_guardrails
from truthgate.guardrails.policy import GuardrailsPolicy
from truthgate.logger import get_logger
from truthgate.model.finding import EvaluationContext, Finding
from truthgate.model.status import TruthStatus
from truthgate.model.truth import GuardrailsResult, TruthDecision
from truthgate.truth.reconciler import finalize_finding_truth

logger = get_logger(component="truth_pipeline")

_REPORTABLE = {TruthStatus.CONFIRMED, TruthStatus.SUSPECTED}


@dataclass(frozen=True)
class FindingEvaluationError:
    finding_id: str
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {"findingId": self.finding_id, "error": self.error}


@dataclass(frozen=True)
class FindingTruth:
    finding: Finding
    guardrails: GuardrailsResult
    decision: TruthDecision

    def to_dict(self) -> Dict[str, Any]:
        return {"finding": self.finding.to_dict(), "decision": self.decision.to_dict()}


@dataclass(frozen=True)
class PipelineResult:
    results: Tuple[FindingTruth, ...]
    errors: Tuple[FindingEvaluationError, ...] = ()

    @property
    def final_findings(self) -> Tuple[Finding, ...]:
        return tuple(item.finding for item in self.results)

    @property
    def decisions(self) -> Tuple[TruthDecision, ...]:
        return tuple(item.decision for item in self.results)

    @property
    def judgment_exit_code(self) -> int:
        return judgment_exit_code(self.final_findings, self.errors)


def judgment_exit_code(findings: Iterable[Finding], errors: Sequence[FindingEvaluationError] = ()) -> int:
    code = ExitCode.SUCCESS
    if any(finding.status in _REPORTABLE for finding in findings):
        code = ExitCode.FINDINGS
    if errors:
        code = max(code, ExitCode.INCOMPLETE)
    return int(code)


def evaluate_finding(
    finding: Finding,
    policy: GuardrailsPolicy,
    context: Optional[EvaluationContext] = None,
    provider: Optional[RuntimeDeterminismProvider] = None,
) -> FindingTruth:
    baseline = finding.baseline()
    resolved = (context or EvaluationContext()).resolve(baseline)
    outcome = apply_guardrails(baseline, resolved, policy=policy)
    reconciled = finalize_finding_truth(
        outcome.finding,
        outcome.guardrails,
        baseline.confidence,
        baseline.confidence_level,
        context=resolved,
        provider=provider,
    )
    return FindingTruth(finding=reconciled.finding, guardrails=reconciled.finding.guardrails, decision=reconciled.decision)


def evaluate_findings(
    findings: Sequence[Finding],
    policy: GuardrailsPolicy,
    *,
    contexts: Optional[Mapping[str, EvaluationContext]] = None,
    provider: Optional[RuntimeDeterminismProvider] = None,
    max_workers: int = 1,
) -> PipelineResult:
    contexts = contexts or {}

    def worker(finding: Finding) -> Union[FindingTruth, FindingEvaluationError]:
        try:
            return evaluate_finding(finding, policy, contexts.get(finding.id), provider)
        except (ValueError, TypeError, KeyError) as exc:
            logger.error("finding_evaluation_failed", error=exc, finding_id=finding.id)
            return FindingEvaluationError(finding_id=finding.id, error=f"{type(exc).__name__}: {exc}")

    if max_workers <= 1 or len(findings) <= 1:
        outcomes = [worker(finding) for finding in findings]
    else:
        with ThreadPoolExecutor(max_workers=min(max_workers, len(findings))) as executor:
            outcomes = list(executor.map(worker, findings))

    results = tuple(item for item in outcomes if isinstance(item, FindingTruth))
    errors = tuple(item for item in outcomes if isinstance(item, FindingEvaluationError))
    logger.info("findings_evaluated", total=len(findings), evaluated=len(results), errors=len(errors))
    return PipelineResult(results=results, errors=errors)


__all__ = [
    "FindingEvaluationError",
    "FindingTruth",
    "PipelineResult",
    "evaluate_finding",
    "evaluate_findings",
    "judgment_exit_code",
]
