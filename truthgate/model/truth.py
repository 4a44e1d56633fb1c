# SPDX-License-Identifier: Apache-2.0
"""Guardrails results and truth decisions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from truthgate.model.status import ConfidenceLevel, TruthStatus


@dataclass(frozen=True)
class RuleRef:
    code: str
    category: str
    action: str
    severity: str
    message: str
    target_status: TruthStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "ruleId": self.code,
            "category": self.category,
            "action": self.action,
            "severity": self.severity,
            "message": self.message,
            "targetStatus": self.target_status.value,
        }


@dataclass(frozen=True)
class Contradiction:
    code: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}


@dataclass(frozen=True)
class ConfidenceAdjustment:
    reason: str
    delta: float
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"reason": self.reason, "delta": self.delta, "message": self.message}


@dataclass(frozen=True)
class ReconciliationRecord:
    confidence_before: float
    confidence_after: float
    confidence_level_before: ConfidenceLevel
    confidence_level_after: ConfidenceLevel
    reasons: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidenceBefore": self.confidence_before,
            "confidenceAfter": self.confidence_after,
            "confidenceLevelBefore": self.confidence_level_before.value,
            "confidenceLevelAfter": self.confidence_level_after.value,
            "reasons": list(self.reasons),
        }


@dataclass(frozen=True)
class GuardrailsResult:
    applied_rules: Tuple[RuleRef, ...]
    contradictions: Tuple[Contradiction, ...]
    recommended_status: TruthStatus
    confidence_adjustments: Tuple[ConfidenceAdjustment, ...]
    confidence_delta: float
    status_before: TruthStatus
    confidence_before: float
    confidence_level_before: ConfidenceLevel
    policy_version: str
    policy_source: str
    policy_fingerprint: str
    reconciliation: Optional[ReconciliationRecord] = None

    @property
    def final_decision(self) -> TruthStatus:
        return self.recommended_status

    @property
    def applied_rule_ids(self) -> Tuple[str, ...]:
        return tuple(rule.code for rule in self.applied_rules)

    @property
    def downgraded(self) -> bool:
        return bool(self.applied_rules) or self.recommended_status.rank < self.status_before.rank

    def to_dict(self) -> Dict[str, Any]:
        return {
            "appliedRules": [rule.to_dict() for rule in self.applied_rules],
            "contradictions": [item.to_dict() for item in self.contradictions],
            "recommendedStatus": self.recommended_status.value,
            "finalDecision": self.final_decision.value,
            "confidenceAdjustments": [item.to_dict() for item in self.confidence_adjustments],
            "confidenceDelta": self.confidence_delta,
            "statusBefore": self.status_before.value,
            "confidenceBefore": self.confidence_before,
            "confidenceLevelBefore": self.confidence_level_before.value,
            "policyReport": {
                "version": self.policy_version,
                "source": self.policy_source,
                "fingerprint": self.policy_fingerprint,
                "appliedRuleIds": list(self.applied_rule_ids),
            },
            "reconciliation": self.reconciliation.to_dict() if self.reconciliation is not None else None,
        }


@dataclass(frozen=True)
class TruthDecision:
    """Write-once record of how one finding's truth was settled."""

    finding_id: str
    final_status: TruthStatus
    confidence_before: float
    confidence_after: float
    confidence_level_before: ConfidenceLevel
    confidence_level_after: ConfidenceLevel
    reconciliation_reasons: Tuple[str, ...]
    contradictions_resolved: Tuple[str, ...]
    confidence_delta: float
    decided_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "findingId": self.finding_id,
            "finalStatus": self.final_status.value,
            "confidenceBefore": self.confidence_before,
            "confidenceAfter": self.confidence_after,
            "confidenceLevelBefore": self.confidence_level_before.value,
            "confidenceLevelAfter": self.confidence_level_after.value,
            "reconciliationReasons": list(self.reconciliation_reasons),
            "contradictionsResolved": list(self.contradictions_resolved),
            "confidenceDelta": self.confidence_delta,
            "decidedAt": self.decided_at,
        }


__all__ = [
    "ConfidenceAdjustment",
    "Contradiction",
    "GuardrailsResult",
    "ReconciliationRecord",
    "RuleRef",
    "TruthDecision",
]
