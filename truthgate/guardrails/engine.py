# SPDX-License-Identifier: Apache-2.0
"""Guardrails engine: turn fired rules into one recommendation per finding."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from truthgate.guardrails.evaluator import FiredRule, evaluate_rules, fired_rule_ids
from truthgate.guardrails.policy import GuardrailsPolicy, RuleAction
from truthgate.logger import get_logger
from truthgate.model.finding import EvaluationContext, Finding
from truthgate.model.status import CONFIDENCE_PRECISION, TruthStatus, clamp_confidence
from truthgate.model.truth import ConfidenceAdjustment, Contradiction, GuardrailsResult, RuleRef

logger = get_logger(component="guardrails")

ACTION_SEVERITY = {
    RuleAction.BLOCK: "BLOCK_CONFIRMED",
    RuleAction.DOWNGRADE: "DOWNGRADE",
    RuleAction.INFO: "INFORMATIONAL",
}


@dataclass(frozen=True)
class GuardrailsOutcome:
    finding: Finding
    guardrails: GuardrailsResult


def _rule_ref(fired: FiredRule) -> RuleRef:
    return RuleRef(
        code=fired.rule.id,
        category=fired.rule.category.value,
        action=fired.rule.action.value,
        severity=ACTION_SEVERITY[fired.rule.action],
        message=fired.outcome.message,
        target_status=fired.target_status,
    )


def apply_guardrails(
    finding: Finding,
    context: Optional[EvaluationContext] = None,
    *,
    policy: GuardrailsPolicy,
) -> GuardrailsOutcome:
    """Apply every policy rule to ``finding``.

    The finding is always judged from its pre-guardrails baseline, so feeding a
    finding that already went through the engine back in gives the same result.
    Multiple firing rules: the lowest target status wins, every fired rule is
    kept in ``applied_rules``, and confidence deltas add up without ever
    pushing confidence above where it started.
    """

    baseline = finding.baseline()
    resolved = (context or EvaluationContext()).resolve(baseline)
    fired = evaluate_rules(policy, baseline, resolved)

    recommended = TruthStatus.weakest(baseline.status, *(item.target_status for item in fired))
    contradictions = tuple(
        Contradiction(code=item.rule.id, message=item.outcome.message) for item in fired if item.records_contradiction
    )
    adjustments = tuple(
        ConfidenceAdjustment(reason=item.rule.id, delta=item.rule.confidence_delta, message=item.outcome.message)
        for item in fired
        if item.rule.confidence_delta != 0
    )
    requested_delta = sum(item.delta for item in adjustments)
    confidence_after = clamp_confidence(baseline.confidence + requested_delta, ceiling=baseline.confidence)

    guardrails = GuardrailsResult(
        applied_rules=tuple(_rule_ref(item) for item in fired),
        contradictions=contradictions,
        recommended_status=recommended,
        confidence_adjustments=adjustments,
        confidence_delta=round(confidence_after - baseline.confidence, CONFIDENCE_PRECISION),
        status_before=baseline.status,
        confidence_before=baseline.confidence,
        confidence_level_before=baseline.confidence_level,
        policy_version=policy.version,
        policy_source=policy.source.value,
        policy_fingerprint=policy.fingerprint,
    )
    updated = replace(baseline, status=recommended, confidence=confidence_after, guardrails=guardrails)

    logger.debug(
        "guardrails_applied",
        finding_id=finding.id,
        finding_type=finding.type,
        fired=list(fired_rule_ids(fired)),
        status_before=baseline.status.value,
        recommended=recommended.value,
        confidence_before=baseline.confidence,
        confidence_after=confidence_after,
    )
    return GuardrailsOutcome(finding=updated, guardrails=guardrails)


__all__ = ["ACTION_SEVERITY", "GuardrailsOutcome", "apply_guardrails"]
