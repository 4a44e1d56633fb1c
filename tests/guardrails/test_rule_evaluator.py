# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import pytest

from truthgate.guardrails.evaluator import evaluate_rule, evaluate_rules, fired_rule_ids, rule_applies_to
from truthgate.model import (
    EvaluationContext,
    EvidencePackage,
    FindingFamily,
    NavigationSignals,
    NetworkSignals,
    Signals,
    TruthStatus,
    UiFeedback,
    UiSignals,
    finding_families,
)


def _rule(policy, rule_id: str):
    return next(rule for rule in policy.rules if rule.id == rule_id)


def _fired(policy, finding, context=None):
    context = (context or EvaluationContext()).resolve(finding)
    return {item.rule.id: item for item in evaluate_rules(policy, finding, context)}


@pytest.mark.parametrize(
    "tag, expected",
    [
        ("silent_failure", {FindingFamily.SILENT_FAILURE}),
        ("network_silent_failure", {FindingFamily.NETWORK, FindingFamily.SILENT_FAILURE}),
        ("view_switch_failure", {FindingFamily.VIEW_SWITCH}),
        ("informational", set()),
        ("route-mismatch", {FindingFamily.ROUTE}),
    ],
)
def test_finding_families_match_whole_tokens(tag: str, expected: set) -> None:
    assert finding_families(tag) == frozenset(expected)


def test_applies_to_matches_wildcard_exact_tag_and_family(policy, make_finding) -> None:
    evidence_rule = _rule(policy, "CONTRADICT_EVIDENCE")
    network_rule = _rule(policy, "NET_SUCCESS_NO_UI")
    routing_rule = _rule(policy, "SHALLOW_ROUTING")

    assert rule_applies_to(evidence_rule, make_finding(type="anything_at_all"))
    assert rule_applies_to(network_rule, make_finding(type="silent_failure"))
    assert rule_applies_to(network_rule, make_finding(type="network_silent_failure"))
    assert not rule_applies_to(routing_rule, make_finding(type="silent_failure"))


def test_network_success_without_ui_change_blocks(policy, net_success_finding) -> None:
    fired = _fired(policy, net_success_finding)
    assert list(fired) == ["NET_SUCCESS_NO_UI"]
    assert fired["NET_SUCCESS_NO_UI"].target_status is TruthStatus.SUSPECTED
    assert fired["NET_SUCCESS_NO_UI"].records_contradiction


def test_network_success_with_failures_does_not_fire(policy, make_finding) -> None:
    finding = make_finding(signals=Signals(network=NetworkSignals(successful_requests=2, failed_requests=1)))
    assert "NET_SUCCESS_NO_UI" not in _fired(policy, finding)


def test_guardrails_ignore_findings_that_are_not_confirmed(policy, make_finding) -> None:
    finding = make_finding(
        status=TruthStatus.SUSPECTED,
        confidence=0.6,
        signals=Signals(network=NetworkSignals(successful_requests=1)),
    )
    context = EvaluationContext().resolve(finding)
    assert not evaluate_rule(_rule(policy, "NET_SUCCESS_NO_UI"), finding, context).applies
    assert _fired(policy, finding) == {}


def test_analytics_only_traffic_is_informational(policy, make_finding) -> None:
    finding = make_finding(
        type="network_failure",
        signals=Signals(network=NetworkSignals(failed_requests=1, top_failed_urls=("https://x.test/analytics/collect",))),
    )
    fired = _fired(policy, finding)
    assert "ANALYTICS_ONLY" in fired
    assert fired["ANALYTICS_ONLY"].target_status is TruthStatus.INFORMATIONAL
    assert fired["ANALYTICS_ONLY"].records_contradiction


def test_hash_only_navigation_blocks(policy, make_finding) -> None:
    finding = make_finding(
        type="navigation_failure",
        evidence_package=EvidencePackage(
            is_complete=True,
            before_url="https://x.test/app#one",
            after_url="https://x.test/app#two",
        ),
    )
    assert "SHALLOW_ROUTING" in _fired(policy, finding)


def test_shallow_routing_signal_blocks_without_url_change(policy, make_finding) -> None:
    finding = make_finding(
        type="route_failure",
        signals=Signals(navigation=NavigationSignals(url_changed=False, shallow_routing=True)),
    )
    assert "SHALLOW_ROUTING" in _fired(policy, finding)


def test_ui_feedback_contradicts_silent_failure(policy, make_finding) -> None:
    finding = make_finding(signals=Signals(feedback=UiFeedback(overall_score=0.8)))
    fired = _fired(policy, finding)
    assert "UI_FEEDBACK_PRESENT" in fired
    assert "CONTRADICT_EVIDENCE" not in fired


def test_disabled_interaction_is_informational(policy, make_finding) -> None:
    finding = make_finding(interaction_disabled=True, signals=Signals(ui=UiSignals(has_dialog=False)))
    fired = _fired(policy, finding)
    assert fired["INTERACTION_BLOCKED"].target_status is TruthStatus.INFORMATIONAL
    assert not fired["INTERACTION_BLOCKED"].records_contradiction


def test_validation_message_contradicts_validation_failure(policy, make_finding) -> None:
    finding = make_finding(type="form_validation_failure", signals=Signals(ui=UiSignals(has_validation_message=True)))
    assert "VALIDATION_PRESENT" in _fired(policy, finding)


def test_incomplete_evidence_package_blocks_any_type(policy, make_finding) -> None:
    finding = make_finding(
        type="custom_claim",
        evidence_package=EvidencePackage(is_complete=False, missing_evidence=("screenshot",)),
    )
    fired = _fired(policy, finding)
    assert list(fired) == ["CONTRADICT_EVIDENCE"]
    assert fired["CONTRADICT_EVIDENCE"].target_status is TruthStatus.SUSPECTED
    assert "screenshot" in fired["CONTRADICT_EVIDENCE"].outcome.message


def test_no_evidence_and_no_signal_means_ignored(policy, make_finding) -> None:
    fired = _fired(policy, make_finding(type="custom_claim"))
    assert fired["CONTRADICT_EVIDENCE"].target_status is TruthStatus.IGNORED


def test_evidence_reference_without_signal_is_not_ignored(policy, make_finding) -> None:
    finding = make_finding(evidence={"screenshot": "before.png", "trace": "t.json"}, signals=Signals())
    assert "CONTRADICT_EVIDENCE" not in _fired(policy, finding)


def test_context_evidence_overrides_finding_evidence(policy, make_finding) -> None:
    finding = make_finding(type="custom_claim")
    context = EvaluationContext(evidence_package=EvidencePackage(is_complete=True))
    assert _fired(policy, finding, context) == {}


def test_view_switch_minor_change_blocks(policy, make_finding) -> None:
    finding = make_finding(
        type="view_switch_failure",
        signals=Signals(ui=UiSignals(text_changed=True)),
        evidence_package=EvidencePackage(is_complete=True, before_url="https://x.test/", after_url="https://x.test/"),
    )
    assert "VIEW_SWITCH_MINOR_CHANGE" in _fired(policy, finding)


def test_view_switch_analytics_only_is_informational(policy, make_finding) -> None:
    finding = make_finding(
        type="view_switch_failure",
        signals=Signals(network=NetworkSignals(observed_request_urls=("https://x.test/beacon",))),
        evidence_package=EvidencePackage(is_complete=True),
    )
    fired = _fired(policy, finding)
    assert fired["VIEW_SWITCH_ANALYTICS_ONLY"].target_status is TruthStatus.INFORMATIONAL


def test_view_switch_single_signal_is_ambiguous(policy, make_finding) -> None:
    finding = make_finding(
        type="view_switch",
        expectation_kind="VIEW_SWITCH_PROMISE",
        correlation_signal_count=1,
        signals=Signals(ui=UiSignals(dom_changed=True)),
        evidence_package=EvidencePackage(is_complete=True),
    )
    fired = _fired(policy, finding)
    assert list(fired) == ["VIEW_SWITCH_AMBIGUOUS"]
    assert fired["VIEW_SWITCH_AMBIGUOUS"].target_status is TruthStatus.SUSPECTED
    assert not fired["VIEW_SWITCH_AMBIGUOUS"].records_contradiction


def test_fired_rules_come_back_in_id_order(policy, make_finding) -> None:
    finding = make_finding(
        signals=Signals(ui=UiSignals(changed=True)),
        interaction_disabled=True,
        evidence_package=EvidencePackage(is_complete=False, missing_evidence=("network",)),
    )
    context = EvaluationContext().resolve(finding)
    ids = fired_rule_ids(evaluate_rules(policy, finding, context))
    assert ids == ("CONTRADICT_EVIDENCE", "INTERACTION_BLOCKED", "UI_FEEDBACK_PRESENT")
