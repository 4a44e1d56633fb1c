# SPDX-License-Identifier: Apache-2.0
"""Truth reconciliation.

After guardrails have spoken, confidence must agree with the final status:

    CONFIRMED      no cap, but only when guardrails approved CONFIRMED
    SUSPECTED      <= 0.69 when guardrails downgraded or evidence intent failed
    INFORMATIONAL  <= 0.2
    IGNORED        == 0

Bands are recomputed after capping. Every reconciliation leaves at least one
reason code behind, including ``NO_RECONCILIATION_NEEDED``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from truthgate.foundation import RuntimeDeterminismProvider
from truthgate.logger import get_logger
from truthgate.model.finding import EvaluationContext, Finding
from truthgate.model.status import (
    CONFIDENCE_PRECISION,
    LOW_CEILING,
    MEDIUM_CEILING,
    ConfidenceLevel,
    TruthStatus,
    clamp_confidence,
    confidence_level,
)
from truthgate.model.truth import Contradiction, GuardrailsResult, ReconciliationRecord, TruthDecision

logger = get_logger(component="truth_reconciler")

NO_RECONCILIATION_NEEDED = "NO_RECONCILIATION_NEEDED"
STATUS_DOWNGRADED_BY_GUARDRAILS = "STATUS_DOWNGRADED_BY_GUARDRAILS"
CONFIDENCE_REDUCED_BY_GUARDRAILS = "CONFIDENCE_REDUCED_BY_GUARDRAILS"
CONFIDENCE_CAPPED_SUSPECTED = "CONFIDENCE_CAPPED_SUSPECTED"
CONFIDENCE_CAPPED_INFORMATIONAL = "CONFIDENCE_CAPPED_INFORMATIONAL"
CONFIDENCE_ZEROED_IGNORED = "CONFIDENCE_ZEROED_IGNORED"
CONFIDENCE_LEVEL_RECOMPUTED = "CONFIDENCE_LEVEL_RECOMPUTED"
CONTRADICTION_CONFIRMED_WITHOUT_GUARDRAILS = "CONTRADICTION_CONFIRMED_WITHOUT_GUARDRAILS"

EVIDENCE_RULE_ID = "CONTRADICT_EVIDENCE"
EVIDENCE_INTENT_PREFIX = "EVIDENCE_INTENT"


@dataclass(frozen=True)
class ReconciledFinding:
    finding: Finding
    decision: TruthDecision


def evidence_intent_failed(guardrails: GuardrailsResult, confidence_reasons: Tuple[str, ...] = ()) -> bool:
    if EVIDENCE_RULE_ID in guardrails.applied_rule_ids:
        return True
    return any(str(reason).startswith(EVIDENCE_INTENT_PREFIX) for reason in confidence_reasons)


def _cap(status: TruthStatus, confidence: float, guardrails: GuardrailsResult, intent_failed: bool) -> Tuple[float, Optional[str]]:
    match status:
        case TruthStatus.SUSPECTED if guardrails.downgraded or intent_failed:
            capped = clamp_confidence(confidence, ceiling=MEDIUM_CEILING)
            return capped, CONFIDENCE_CAPPED_SUSPECTED if capped < confidence else None
        case TruthStatus.INFORMATIONAL:
            capped = clamp_confidence(confidence, ceiling=LOW_CEILING)
            return capped, CONFIDENCE_CAPPED_INFORMATIONAL if capped < confidence else None
        case TruthStatus.IGNORED:
            return 0.0, CONFIDENCE_ZEROED_IGNORED if confidence > 0 else None
        case _:
            return confidence, None


def finalize_finding_truth(
    finding: Finding,
    guardrails: GuardrailsResult,
    initial_confidence: float,
    initial_level: ConfidenceLevel,
    *,
    context: Optional[EvaluationContext] = None,
    provider: Optional[RuntimeDeterminismProvider] = None,
) -> ReconciledFinding:
    """Settle one finding's final status and confidence.

    ``finding`` is the guardrails output. The returned finding is a new value
    carrying ``guardrails.reconciliation``; nothing is changed in place.
    """

    status = finding.status
    reasons: List[str] = []
    contradictions = list(guardrails.contradictions)

    if status is TruthStatus.CONFIRMED and guardrails.recommended_status is not TruthStatus.CONFIRMED:
        reasons.append(CONTRADICTION_CONFIRMED_WITHOUT_GUARDRAILS)
        contradictions.append(
            Contradiction(
                code=CONTRADICTION_CONFIRMED_WITHOUT_GUARDRAILS,
                message=f"Finding is CONFIRMED but guardrails recommended {guardrails.recommended_status.value}.",
            )
        )
        logger.audit(
            "confirmed_without_guardrails",
            actor="truth_reconciler",
            outcome="contradiction",
            finding_id=finding.id,
            recommended=guardrails.recommended_status.value,
        )

    if status.rank < guardrails.status_before.rank:
        reasons.append(STATUS_DOWNGRADED_BY_GUARDRAILS)

    confidence = clamp_confidence(finding.confidence)
    if confidence < initial_confidence:
        reasons.append(CONFIDENCE_REDUCED_BY_GUARDRAILS)

    confidence_reasons = context.confidence_reasons if context is not None else finding.confidence_reasons
    confidence, cap_reason = _cap(status, confidence, guardrails, evidence_intent_failed(guardrails, confidence_reasons))
    if cap_reason:
        reasons.append(cap_reason)

    level = confidence_level(confidence)
    if level is not initial_level:
        reasons.append(CONFIDENCE_LEVEL_RECOMPUTED)

    if not reasons:
        reasons.append(NO_RECONCILIATION_NEEDED)

    record = ReconciliationRecord(
        confidence_before=initial_confidence,
        confidence_after=confidence,
        confidence_level_before=initial_level,
        confidence_level_after=level,
        reasons=tuple(reasons),
    )
    final_guardrails = replace(guardrails, contradictions=tuple(contradictions), reconciliation=record)
    final_finding = replace(finding, confidence=confidence, confidence_level=level, guardrails=final_guardrails)
    decision = TruthDecision(
        finding_id=finding.id,
        final_status=status,
        confidence_before=initial_confidence,
        confidence_after=confidence,
        confidence_level_before=initial_level,
        confidence_level_after=level,
        reconciliation_reasons=tuple(reasons),
        contradictions_resolved=tuple(item.code for item in contradictions),
        confidence_delta=round(confidence - initial_confidence, CONFIDENCE_PRECISION),
        decided_at=provider.iso_now() if provider is not None else None,
    )
    logger.debug(
        "truth_reconciled",
        finding_id=finding.id,
        final_status=status.value,
        confidence_before=initial_confidence,
        confidence_after=confidence,
        reasons=list(reasons),
    )
    return ReconciledFinding(finding=final_finding, decision=decision)


__all__ = [
    "CONFIDENCE_CAPPED_INFORMATIONAL",
    "CONFIDENCE_CAPPED_SUSPECTED",
    "CONFIDENCE_LEVEL_RECOMPUTED",
    "CONFIDENCE_REDUCED_BY_GUARDRAILS",
    "CONFIDENCE_ZEROED_IGNORED",
    "CONTRADICTION_CONFIRMED_WITHOUT_GUARDRAILS",
    "NO_RECONCILIATION_NEEDED",
    "ReconciledFinding",
    "STATUS_DOWNGRADED_BY_GUARDRAILS",
    "evidence_intent_failed",
    "finalize_finding_truth",
]
