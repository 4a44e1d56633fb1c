# SPDX-License-Identifier: Apache-2.0
"""Run-level guardrails report artifact."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from truthgate.foundation import RuntimeDeterminismProvider, SystemDeterminismProvider, canonical_json
from truthgate.guardrails.policy import GuardrailsPolicy
from truthgate.model.status import TruthStatus
from truthgate.truth.pipeline import FindingEvaluationError, FindingTruth
from truthgate.truth.reconciler import NO_RECONCILIATION_NEEDED

REPORT_SCHEMA = "guardrails_report.v1"
TOP_RULES_LIMIT = 10


def _finding_entry(item: FindingTruth) -> Dict[str, Any]:
    guardrails = item.guardrails
    return {
        "findingId": item.finding.id,
        "type": item.finding.type,
        "appliedRules": list(guardrails.applied_rule_ids),
        "contradictions": [entry.to_dict() for entry in guardrails.contradictions],
        "finalDecision": item.decision.final_status.value,
        "confidenceBefore": item.decision.confidence_before,
        "confidenceAfter": item.decision.confidence_after,
        "reconciliationReasons": list(item.decision.reconciliation_reasons),
    }


def build_guardrails_report(
    results: Sequence[FindingTruth],
    policy: GuardrailsPolicy,
    provider: Optional[RuntimeDeterminismProvider] = None,
    errors: Sequence[FindingEvaluationError] = (),
) -> Dict[str, Any]:
    clock = provider or SystemDeterminismProvider()
    rule_counts: Counter[str] = Counter(rule_id for item in results for rule_id in item.guardrails.applied_rule_ids)
    by_decision = {status.value: 0 for status in TruthStatus}
    for item in results:
        by_decision[item.decision.final_status.value] += 1
    top_rules = sorted(rule_counts.items(), key=lambda pair: (-pair[1], pair[0]))[:TOP_RULES_LIMIT]

    return {
        "schema": REPORT_SCHEMA,
        "generatedAt": clock.iso_now(),
        "policy": {"version": policy.version, "source": policy.source.value, "fingerprint": policy.fingerprint},
        "findings": [_finding_entry(item) for item in results],
        "evaluationErrors": [item.to_dict() for item in errors],
        "summary": {
            "total": len(results),
            "byFinalDecision": by_decision,
            "topRules": [{"ruleId": rule_id, "count": count} for rule_id, count in top_rules],
            "contradictions": sum(len(item.guardrails.contradictions) for item in results),
            "reconciliations": sum(
                1 for item in results if item.decision.reconciliation_reasons != (NO_RECONCILIATION_NEEDED,)
            ),
        },
    }


def write_guardrails_report(report: Dict[str, Any], path: Path | str) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(canonical_json(report) + "\n", encoding="utf-8")
    return target


__all__ = ["REPORT_SCHEMA", "TOP_RULES_LIMIT", "build_guardrails_report", "write_guardrails_report"]
