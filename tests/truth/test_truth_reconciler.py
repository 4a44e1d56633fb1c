# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from dataclasses import replace

import pytest

from truthgate.guardrails.engine import apply_guardrails
from truthgate.model import (
    ConfidenceLevel,
    EvaluationContext,
    EvidencePackage,
    NetworkSignals,
    Signals,
    TruthStatus,
    UiFeedback,
)
from truthgate.truth.reconciler import (
    CONFIDENCE_CAPPED_INFORMATIONAL,
    CONFIDENCE_CAPPED_SUSPECTED,
    CONFIDENCE_LEVEL_RECOMPUTED,
    CONFIDENCE_REDUCED_BY_GUARDRAILS,
    CONFIDENCE_ZEROED_IGNORED,
    CONTRADICTION_CONFIRMED_WITHOUT_GUARDRAILS,
    NO_RECONCILIATION_NEEDED,
    STATUS_DOWNGRADED_BY_GUARDRAILS,
    evidence_intent_failed,
    finalize_finding_truth,
)


def _reconcile(finding, policy, context=None, provider=None):
    outcome = apply_guardrails(finding, context, policy=policy)
    return finalize_finding_truth(
        outcome.finding,
        outcome.guardrails,
        finding.confidence,
        finding.confidence_level,
        context=context,
        provider=provider,
    )


def test_net_success_no_ui_settles_on_suspected_point_six(policy, net_success_finding) -> None:
    result = _reconcile(net_success_finding, policy)

    assert result.finding.status is TruthStatus.SUSPECTED
    assert result.finding.confidence == 0.6
    assert result.finding.confidence_level is ConfidenceLevel.MEDIUM
    assert result.decision.final_status is TruthStatus.SUSPECTED
    assert result.decision.confidence_before == 0.9
    assert result.decision.confidence_after == 0.6
    assert result.decision.confidence_delta == -0.3
    assert result.decision.reconciliation_reasons == (
        STATUS_DOWNGRADED_BY_GUARDRAILS,
        CONFIDENCE_REDUCED_BY_GUARDRAILS,
        CONFIDENCE_LEVEL_RECOMPUTED,
    )
    assert result.decision.contradictions_resolved == ("NET_SUCCESS_NO_UI",)


def test_reconciliation_record_is_attached(policy, net_success_finding) -> None:
    result = _reconcile(net_success_finding, policy)
    record = result.finding.guardrails.reconciliation
    assert record is not None
    assert record.confidence_before == 0.9
    assert record.confidence_after == 0.6
    assert record.confidence_level_before is ConfidenceLevel.HIGH
    assert record.confidence_level_after is ConfidenceLevel.MEDIUM
    assert record.reasons == result.decision.reconciliation_reasons


def test_suspected_downgrade_is_capped_at_medium_ceiling(policy, make_finding) -> None:
    finding = make_finding(
        confidence=0.95,
        signals=Signals(network=NetworkSignals(successful_requests=1)),
        evidence_package=EvidencePackage(is_complete=True),
    )
    result = _reconcile(finding, policy)
    # 0.95 - 0.3 = 0.65, already under the ceiling.
    assert result.finding.confidence == 0.65
    assert CONFIDENCE_CAPPED_SUSPECTED not in result.decision.reconciliation_reasons

    guarded = apply_guardrails(finding, policy=policy)
    high = replace(guarded.finding, confidence=0.85)
    capped = finalize_finding_truth(high, guarded.guardrails, 0.95, ConfidenceLevel.HIGH)
    assert capped.finding.confidence == 0.69
    assert CONFIDENCE_CAPPED_SUSPECTED in capped.decision.reconciliation_reasons


def test_informational_is_capped_at_low_ceiling(policy, make_finding) -> None:
    finding = make_finding(interaction_disabled=True, evidence_package=EvidencePackage(is_complete=True))
    result = _reconcile(finding, policy)
    # 0.9 - 0.5 = 0.4, capped to 0.2.
    assert result.finding.status is TruthStatus.INFORMATIONAL
    assert result.finding.confidence == 0.2
    assert result.finding.confidence_level is ConfidenceLevel.LOW
    assert CONFIDENCE_CAPPED_INFORMATIONAL in result.decision.reconciliation_reasons


def test_ignored_is_zeroed(policy, make_finding) -> None:
    result = _reconcile(make_finding(type="custom_claim"), policy)
    assert result.finding.status is TruthStatus.IGNORED
    assert result.finding.confidence == 0.0
    assert result.finding.confidence_level is ConfidenceLevel.UNPROVEN
    assert CONFIDENCE_ZEROED_IGNORED in result.decision.reconciliation_reasons


def test_noop_reconciliation_is_still_recorded(policy, make_finding) -> None:
    finding = make_finding(evidence_package=EvidencePackage(is_complete=True))
    result = _reconcile(finding, policy)
    assert result.finding.status is TruthStatus.CONFIRMED
    assert result.finding.confidence == 0.9
    assert result.decision.reconciliation_reasons == (NO_RECONCILIATION_NEEDED,)


def test_confirmed_without_guardrails_approval_is_recorded_not_corrected(policy, net_success_finding) -> None:
    guarded = apply_guardrails(net_success_finding, policy=policy)
    tampered = replace(guarded.finding, status=TruthStatus.CONFIRMED)

    result = finalize_finding_truth(tampered, guarded.guardrails, 0.9, ConfidenceLevel.HIGH)

    assert result.finding.status is TruthStatus.CONFIRMED
    assert result.decision.final_status is TruthStatus.CONFIRMED
    assert CONTRADICTION_CONFIRMED_WITHOUT_GUARDRAILS in result.decision.reconciliation_reasons
    assert CONTRADICTION_CONFIRMED_WITHOUT_GUARDRAILS in result.decision.contradictions_resolved
    codes = [item.code for item in result.finding.guardrails.contradictions]
    assert CONTRADICTION_CONFIRMED_WITHOUT_GUARDRAILS in codes


def test_evidence_intent_failure_caps_suspected_without_downgrade(policy, make_finding) -> None:
    finding = make_finding(
        status=TruthStatus.SUSPECTED,
        confidence=0.85,
        evidence_package=EvidencePackage(is_complete=True),
    )
    context = EvaluationContext(confidence_reasons=("EVIDENCE_INTENT_MISSING_SCREENSHOT",))
    result = _reconcile(finding, policy, context)
    assert result.finding.confidence == 0.69
    assert CONFIDENCE_CAPPED_SUSPECTED in result.decision.reconciliation_reasons


def test_suspected_without_downgrade_or_intent_failure_is_not_capped(policy, make_finding) -> None:
    finding = make_finding(
        status=TruthStatus.SUSPECTED,
        confidence=0.85,
        signals=Signals(feedback=UiFeedback(overall_score=0.1)),
    )
    result = _reconcile(finding, policy)
    assert result.finding.confidence == 0.85
    assert result.decision.reconciliation_reasons == (NO_RECONCILIATION_NEEDED,)


def test_evidence_intent_failed_detects_rule_and_reason(policy, make_finding) -> None:
    guarded = apply_guardrails(
        make_finding(evidence_package=EvidencePackage(is_complete=False, missing_evidence=("dom",))),
        policy=policy,
    )
    assert evidence_intent_failed(guarded.guardrails)

    clean = apply_guardrails(make_finding(evidence_package=EvidencePackage(is_complete=True)), policy=policy)
    assert not evidence_intent_failed(clean.guardrails)
    assert evidence_intent_failed(clean.guardrails, ("EVIDENCE_INTENT_UNMET",))


def test_decided_at_comes_from_injected_provider(policy, net_success_finding, provider) -> None:
    result = _reconcile(net_success_finding, policy, provider=provider)
    assert result.decision.decided_at == "2026-01-01T00:00:00Z"
    assert _reconcile(net_success_finding, policy).decision.decided_at is None


@pytest.mark.parametrize("confidence", [0.2, 0.55, 0.79, 0.8, 1.0])
def test_final_confidence_agrees_with_status(policy, make_finding, confidence: float) -> None:
    scenarios = [
        make_finding(confidence=confidence, signals=Signals(network=NetworkSignals(successful_requests=1))),
        make_finding(confidence=confidence, interaction_disabled=True, evidence_package=EvidencePackage(is_complete=True)),
        make_finding(confidence=confidence, type="custom_claim"),
    ]
    for finding in scenarios:
        result = _reconcile(finding, policy)
        status, value = result.finding.status, result.finding.confidence
        if status is TruthStatus.INFORMATIONAL:
            assert value <= 0.2
        if status is TruthStatus.IGNORED:
            assert value == 0
        if status is TruthStatus.SUSPECTED:
            assert value <= 0.69
        assert value <= confidence
