# SPDX-License-Identifier: Apache-2.0
"""Rule evaluation: which guardrails fire for one finding.

Everything here is a pure function of (rule, finding, context). Each
evaluation type has one handler; handlers read their thresholds from the
rule's ``evaluation.conditions`` and fall back to the catalogue defaults.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional, Sequence, Tuple

from truthgate.guardrails.defaults import ANALYTICS_URL_PATTERNS
from truthgate.guardrails.policy import EvaluationType, GuardrailsPolicy, GuardrailsRule, RuleAction
from truthgate.model.finding import EvaluationContext, EvidencePackage, Finding, FindingFamily, Signals
from truthgate.model.status import TruthStatus

VIEW_SWITCH_PROMISE = "VIEW_SWITCH_PROMISE"
WILDCARD = "*"


@dataclass(frozen=True)
class RuleOutcome:
    applies: bool
    message: str = ""
    contradiction: bool = False
    signal_absent: bool = False


NOT_APPLIED = RuleOutcome(applies=False)


@dataclass(frozen=True)
class FiredRule:
    rule: GuardrailsRule
    outcome: RuleOutcome

    @property
    def target_status(self) -> TruthStatus:
        return target_status(self.rule, self.outcome)

    @property
    def records_contradiction(self) -> bool:
        match self.rule.action:
            case RuleAction.BLOCK:
                return True
            case RuleAction.INFO:
                return self.outcome.contradiction
            case _:
                return False


def target_status(rule: GuardrailsRule, outcome: RuleOutcome) -> TruthStatus:
    if outcome.signal_absent:
        return TruthStatus.IGNORED
    match rule.action:
        case RuleAction.INFO:
            return TruthStatus.INFORMATIONAL
        case _:
            return TruthStatus.SUSPECTED


def rule_applies_to(rule: GuardrailsRule, finding: Finding) -> bool:
    """``appliesTo`` matches the wildcard, the exact type tag, or one of its families."""

    families = {family.value for family in finding.families}
    return any(entry == WILDCARD or entry == finding.type or entry in families for entry in rule.applies_to)


def _is_analytics_url(url: str, patterns: Sequence[str]) -> bool:
    lowered = url.lower()
    return any(pattern.lower() in lowered for pattern in patterns)


def _is_view_switch(finding: Finding) -> bool:
    return FindingFamily.VIEW_SWITCH in finding.families or finding.expectation_kind == VIEW_SWITCH_PROMISE


def _urls(evidence: EvidencePackage | None) -> Tuple[str, str]:
    if evidence is None:
        return "", ""
    return evidence.before_url or "", evidence.after_url or ""


def _network_success_no_ui(rule: GuardrailsRule, finding: Finding, signals: Signals, evidence: EvidencePackage | None) -> RuleOutcome:
    if not finding.families & {FindingFamily.SILENT_FAILURE, FindingFamily.NETWORK}:
        return NOT_APPLIED
    network = signals.network
    min_success = int(rule.evaluation.condition("minSuccessfulRequests", 1))
    max_failed = int(rule.evaluation.condition("maxFailedRequests", 0))
    max_feedback = float(rule.evaluation.condition("maxUiFeedbackScore", 0.3))

    network_success = network.successful_requests >= min_success and network.failed_requests <= max_failed
    no_ui_change = not signals.ui.changed and signals.feedback.score < max_feedback
    no_errors = network.failed_requests == 0 and signals.console_errors == 0
    if network_success and no_ui_change and no_errors:
        return RuleOutcome(
            applies=True,
            message="Network request succeeded but no UI change observed. This is not a silent failure.",
            contradiction=True,
        )
    return NOT_APPLIED


def _analytics_only(rule: GuardrailsRule, finding: Finding, signals: Signals, evidence: EvidencePackage | None) -> RuleOutcome:
    if not finding.families & {FindingFamily.NETWORK, FindingFamily.SILENT_FAILURE}:
        return NOT_APPLIED
    patterns = tuple(rule.evaluation.condition("analyticsPatterns", ANALYTICS_URL_PATTERNS))
    max_requests = int(rule.evaluation.condition("maxRequests", 1))
    urls = signals.network.request_urls
    if urls and len(urls) <= max_requests and any(_is_analytics_url(url, patterns) for url in urls):
        return RuleOutcome(
            applies=True,
            message="Only analytics/beacon requests detected. These are not user promises.",
            contradiction=True,
        )
    return NOT_APPLIED


def _shallow_routing(rule: GuardrailsRule, finding: Finding, signals: Signals, evidence: EvidencePackage | None) -> RuleOutcome:
    if not finding.families & {FindingFamily.NAVIGATION, FindingFamily.ROUTE}:
        return NOT_APPLIED
    before, after = _urls(evidence)
    hash_only = bool(
        rule.evaluation.condition("hashOnly", True)
        and before
        and after
        and before.split("#")[0] == after.split("#")[0]
        and ("#" in before or "#" in after)
    )
    shallow = bool(
        rule.evaluation.condition("shallowRouting", True)
        and signals.navigation.shallow_routing
        and not signals.navigation.url_changed
    )
    if hash_only or shallow:
        return RuleOutcome(
            applies=True,
            message="Hash-only or shallow routing detected. Cannot confirm navigation without route verification.",
            contradiction=True,
        )
    return NOT_APPLIED


def _ui_feedback_present(rule: GuardrailsRule, finding: Finding, signals: Signals, evidence: EvidencePackage | None) -> RuleOutcome:
    if not finding.families & {FindingFamily.SILENT_FAILURE, FindingFamily.FEEDBACK_MISSING}:
        return NOT_APPLIED
    min_score = float(rule.evaluation.condition("minFeedbackScore", 0.5))
    ui = signals.ui
    has_feedback = (
        signals.feedback.score > min_score or ui.has_loading_indicator or ui.has_dialog or ui.has_error_signal or ui.changed
    )
    if has_feedback:
        return RuleOutcome(
            applies=True,
            message="UI feedback is present. This contradicts a silent failure claim.",
            contradiction=True,
        )
    return NOT_APPLIED


def _interaction_blocked(rule: GuardrailsRule, finding: Finding, signals: Signals, evidence: EvidencePackage | None) -> RuleOutcome:
    if FindingFamily.SILENT_FAILURE not in finding.families:
        return NOT_APPLIED
    blocked = (
        finding.interaction_disabled
        or (evidence is not None and evidence.interaction_disabled)
        or finding.evidence.get("interactionBlocked") is True
    )
    if blocked:
        return RuleOutcome(
            applies=True,
            message="Interaction was disabled/blocked. This is expected behavior, not a silent failure.",
        )
    return NOT_APPLIED


def _validation_present(rule: GuardrailsRule, finding: Finding, signals: Signals, evidence: EvidencePackage | None) -> RuleOutcome:
    if not finding.families & {FindingFamily.VALIDATION, FindingFamily.FORM}:
        return NOT_APPLIED
    if signals.ui.has_error_signal or signals.ui.has_validation_message or signals.feedback.validation_happened:
        return RuleOutcome(
            applies=True,
            message="Validation feedback is present. This contradicts a validation silent failure claim.",
            contradiction=True,
        )
    return NOT_APPLIED


def _contradict_evidence(rule: GuardrailsRule, finding: Finding, signals: Signals, evidence: EvidencePackage | None) -> RuleOutcome:
    if evidence is None:
        if (
            rule.evaluation.condition("ignoreWithoutEvidence", False)
            and not finding.evidence
            and not signals.has_observable_signal
        ):
            return RuleOutcome(
                applies=True,
                message="No evidence package, no evidence reference and no observable signal. Nothing supports this finding.",
                contradiction=True,
                signal_absent=True,
            )
        return NOT_APPLIED
    if not evidence.is_complete and evidence.missing_evidence:
        return RuleOutcome(
            applies=True,
            message=f"Evidence package is incomplete. Missing: {', '.join(evidence.missing_evidence)}",
            contradiction=True,
        )
    return NOT_APPLIED


def _view_switch_minor_change(rule: GuardrailsRule, finding: Finding, signals: Signals, evidence: EvidencePackage | None) -> RuleOutcome:
    if not _is_view_switch(finding):
        return NOT_APPLIED
    before, after = _urls(evidence)
    max_score = float(rule.evaluation.condition("maxFeedbackScore", 0.2))
    ui = signals.ui
    minor_change = (
        ui.text_changed
        and not ui.dom_changed
        and not ui.visible_changed
        and not ui.aria_changed
        and signals.feedback.score < max_score
    )
    if before == after and minor_change:
        return RuleOutcome(
            applies=True,
            message="URL unchanged and change is minor (e.g. button text only). Cannot confirm view switch.",
            contradiction=True,
        )
    return NOT_APPLIED


def _view_switch_analytics_only(rule: GuardrailsRule, finding: Finding, signals: Signals, evidence: EvidencePackage | None) -> RuleOutcome:
    if not _is_view_switch(finding):
        return NOT_APPLIED
    patterns = tuple(rule.evaluation.condition("analyticsPatterns", ANALYTICS_URL_PATTERNS))
    urls = signals.network.request_urls
    analytics_only = bool(urls) and all(_is_analytics_url(url, patterns) for url in urls)
    ui = signals.ui
    if analytics_only and not (ui.changed or ui.dom_changed or ui.visible_changed):
        return RuleOutcome(
            applies=True,
            message="Only analytics fired, no UI change. Cannot confirm view switch.",
            contradiction=True,
        )
    return NOT_APPLIED


def _view_switch_ambiguous(rule: GuardrailsRule, finding: Finding, signals: Signals, evidence: EvidencePackage | None) -> RuleOutcome:
    if not _is_view_switch(finding):
        return NOT_APPLIED
    has_promise = finding.expectation_kind == VIEW_SWITCH_PROMISE or finding.promise_type == "view_switch"
    signal_count = int(rule.evaluation.condition("signalCount", 1))
    if has_promise and finding.correlation_signal_count == signal_count:
        return RuleOutcome(
            applies=True,
            message="State change promise exists but UI outcome ambiguous (one signal only). Downgrading to SUSPECTED.",
        )
    return NOT_APPLIED


Handler = Callable[[GuardrailsRule, Finding, Signals, Optional[EvidencePackage]], RuleOutcome]

HANDLERS: Dict[EvaluationType, Handler] = {
    EvaluationType.NETWORK_SUCCESS_NO_UI: _network_success_no_ui,
    EvaluationType.ANALYTICS_ONLY: _analytics_only,
    EvaluationType.SHALLOW_ROUTING: _shallow_routing,
    EvaluationType.UI_FEEDBACK_PRESENT: _ui_feedback_present,
    EvaluationType.INTERACTION_BLOCKED: _interaction_blocked,
    EvaluationType.VALIDATION_PRESENT: _validation_present,
    EvaluationType.CONTRADICT_EVIDENCE: _contradict_evidence,
    EvaluationType.VIEW_SWITCH_MINOR_CHANGE: _view_switch_minor_change,
    EvaluationType.VIEW_SWITCH_ANALYTICS_ONLY: _view_switch_analytics_only,
    EvaluationType.VIEW_SWITCH_AMBIGUOUS: _view_switch_ambiguous,
}


def evaluate_rule(rule: GuardrailsRule, finding: Finding, context: EvaluationContext) -> RuleOutcome:
    """Evaluate one rule. Guardrails only ever challenge CONFIRMED claims."""

    if not finding.is_confirmed:
        return NOT_APPLIED
    signals = context.signals if context.signals is not None else finding.signals
    return HANDLERS[rule.evaluation.type](rule, finding, signals, context.evidence_package)


def evaluate_rules(policy: GuardrailsPolicy, finding: Finding, context: EvaluationContext) -> Tuple[FiredRule, ...]:
    fired = []
    for rule in policy.ordered_rules():
        if not rule_applies_to(rule, finding):
            continue
        outcome = evaluate_rule(rule, finding, context)
        if outcome.applies:
            fired.append(FiredRule(rule=rule, outcome=outcome))
    return tuple(fired)


def fired_rule_ids(fired: Iterable[FiredRule]) -> Tuple[str, ...]:
    return tuple(item.rule.id for item in fired)


__all__ = [
    "FiredRule",
    "HANDLERS",
    "NOT_APPLIED",
    "RuleOutcome",
    "VIEW_SWITCH_PROMISE",
    "evaluate_rule",
    "evaluate_rules",
    "fired_rule_ids",
    "rule_applies_to",
    "target_status",
]
