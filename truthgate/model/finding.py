# SPDX-License-Identifier: Apache-2.0
"""Findings and the sensor/evidence summaries attached to them.

Every type here is frozen. Pipeline stages build new values with
``dataclasses.replace`` instead of annotating findings in place, so the
input finding, the guardrails result and the truth decision stay independently
inspectable.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Mapping, Optional, Tuple

from truthgate.model.status import ConfidenceLevel, TruthStatus

if TYPE_CHECKING:
    from truthgate.model.truth import GuardrailsResult


class FindingFamily(str, Enum):
    SILENT_FAILURE = "silent_failure"
    NETWORK = "network"
    NAVIGATION = "navigation"
    ROUTE = "route"
    FEEDBACK_MISSING = "feedback_missing"
    VALIDATION = "validation"
    FORM = "form"
    VIEW_SWITCH = "view_switch"

    @property
    def tokens(self) -> Tuple[str, ...]:
        return tuple(self.value.split("_"))


_TOKEN_SPLIT = re.compile(r"[^a-z0-9]+")


def finding_families(tag: str) -> FrozenSet[FindingFamily]:
    """Classify a finding type tag, e.g. ``network_silent_failure`` -> {NETWORK, SILENT_FAILURE}.

    Matching is on whole tokens, so ``informational`` is not a ``form`` finding.
    """

    tokens = tuple(token for token in _TOKEN_SPLIT.split((tag or "").strip().lower()) if token)
    return frozenset(family for family in FindingFamily if _contains_run(tokens, family.tokens))


def _contains_run(tokens: Tuple[str, ...], run: Tuple[str, ...]) -> bool:
    width = len(run)
    return any(tokens[index : index + width] == run for index in range(len(tokens) - width + 1))


@dataclass(frozen=True)
class NetworkSignals:
    successful_requests: int = 0
    failed_requests: int = 0
    observed_request_urls: Tuple[str, ...] = ()
    top_failed_urls: Tuple[str, ...] = ()

    @property
    def request_urls(self) -> Tuple[str, ...]:
        return self.top_failed_urls or self.observed_request_urls

    def to_dict(self) -> Dict[str, Any]:
        return {
            "successfulRequests": self.successful_requests,
            "failedRequests": self.failed_requests,
            "observedRequestUrls": list(self.observed_request_urls),
            "topFailedUrls": list(self.top_failed_urls),
        }


@dataclass(frozen=True)
class UiSignals:
    changed: bool = False
    dom_changed: bool = False
    visible_changed: bool = False
    aria_changed: bool = False
    text_changed: bool = False
    has_loading_indicator: bool = False
    has_dialog: bool = False
    has_error_signal: bool = False
    has_validation_message: bool = False

    @property
    def any_change(self) -> bool:
        return self.changed or self.dom_changed or self.visible_changed or self.aria_changed or self.text_changed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "changed": self.changed,
            "domChanged": self.dom_changed,
            "visibleChanged": self.visible_changed,
            "ariaChanged": self.aria_changed,
            "textChanged": self.text_changed,
            "hasLoadingIndicator": self.has_loading_indicator,
            "hasDialog": self.has_dialog,
            "hasErrorSignal": self.has_error_signal,
            "hasValidationMessage": self.has_validation_message,
        }


@dataclass(frozen=True)
class UiFeedback:
    overall_score: Optional[float] = None
    validation_happened: bool = False

    @property
    def score(self) -> float:
        return self.overall_score or 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"overallUiFeedbackScore": self.overall_score, "validationHappened": self.validation_happened}


@dataclass(frozen=True)
class NavigationSignals:
    url_changed: bool = False
    shallow_routing: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"urlChanged": self.url_changed, "shallowRouting": self.shallow_routing}


@dataclass(frozen=True)
class ConsoleSignals:
    error_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"errorCount": self.error_count}


@dataclass(frozen=True)
class Signals:
    network: NetworkSignals = NetworkSignals()
    ui: UiSignals = UiSignals()
    feedback: UiFeedback = UiFeedback()
    navigation: NavigationSignals = NavigationSignals()
    console: Optional[ConsoleSignals] = None

    @property
    def console_errors(self) -> int:
        return self.console.error_count if self.console is not None else 0

    @property
    def has_observable_signal(self) -> bool:
        """True when any sensor saw anything at all."""
        return bool(
            self.network.successful_requests
            or self.network.failed_requests
            or self.network.request_urls
            or self.ui.any_change
            or self.ui.has_loading_indicator
            or self.ui.has_dialog
            or self.ui.has_error_signal
            or self.ui.has_validation_message
            or self.feedback.score > 0
            or self.feedback.validation_happened
            or self.navigation.url_changed
            or self.console_errors
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "network": self.network.to_dict(),
            "uiSignals": self.ui.to_dict(),
            "uiFeedback": self.feedback.to_dict(),
            "navigation": self.navigation.to_dict(),
            "console": self.console.to_dict() if self.console is not None else None,
        }


@dataclass(frozen=True)
class EvidencePackage:
    is_complete: bool = False
    missing_evidence: Tuple[str, ...] = ()
    before_url: str = ""
    after_url: str = ""
    interaction_disabled: bool = False
    signals: Optional[Signals] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isComplete": self.is_complete,
            "missingEvidence": list(self.missing_evidence),
            "before": {"url": self.before_url},
            "after": {"url": self.after_url},
            "interactionDisabled": self.interaction_disabled,
            "signals": self.signals.to_dict() if self.signals is not None else None,
        }


@dataclass(frozen=True)
class Finding:
    id: str
    type: str
    status: TruthStatus
    confidence: float
    confidence_level: ConfidenceLevel
    evidence: Mapping[str, Any] = field(default_factory=dict, hash=False)
    signals: Signals = Signals()
    evidence_package: Optional[EvidencePackage] = None
    promise_id: Optional[str] = None
    promise_type: Optional[str] = None
    expectation_kind: Optional[str] = None
    interaction_disabled: bool = False
    correlation_signal_count: int = 0
    confidence_reasons: Tuple[str, ...] = ()
    guardrails: Optional["GuardrailsResult"] = None

    def __post_init__(self) -> None:
        if not self.type:
            raise ValueError("invalid_finding_type")
        if isinstance(self.confidence, bool) or not 0.0 <= float(self.confidence) <= 1.0:
            raise ValueError(f"invalid_finding_confidence:{self.id}")
        object.__setattr__(self, "confidence", float(self.confidence))
        object.__setattr__(self, "status", TruthStatus(self.status))
        object.__setattr__(self, "confidence_level", ConfidenceLevel(self.confidence_level))
        object.__setattr__(self, "evidence", MappingProxyType(dict(self.evidence)))

    @property
    def families(self) -> FrozenSet[FindingFamily]:
        return finding_families(self.type)

    @property
    def is_confirmed(self) -> bool:
        return self.status is TruthStatus.CONFIRMED

    def baseline(self) -> "Finding":
        """Return the finding as it was before guardrails touched it."""

        if self.guardrails is None:
            return self
        return replace(
            self,
            status=self.guardrails.status_before,
            confidence=self.guardrails.confidence_before,
            confidence_level=self.guardrails.confidence_level_before,
            guardrails=None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "status": self.status.value,
            "confidence": self.confidence,
            "confidenceLevel": self.confidence_level.value,
            "evidence": dict(self.evidence),
            "signals": self.signals.to_dict(),
            "evidencePackage": self.evidence_package.to_dict() if self.evidence_package is not None else None,
            "promiseId": self.promise_id,
            "promiseType": self.promise_type,
            "expectationKind": self.expectation_kind,
            "interactionDisabled": self.interaction_disabled,
            "correlationSignalCount": self.correlation_signal_count,
            "confidenceReasons": list(self.confidence_reasons),
            "guardrails": self.guardrails.to_dict() if self.guardrails is not None else None,
        }


@dataclass(frozen=True)
class EvaluationContext:
    """What the guardrails see for one finding besides the finding itself."""

    evidence_package: Optional[EvidencePackage] = None
    signals: Optional[Signals] = None
    confidence_reasons: Tuple[str, ...] = ()
    promise_type: Optional[str] = None

    def resolve(self, finding: Finding) -> "EvaluationContext":
        """Fill unset fields from the finding, the same fallbacks every rule relies on."""

        evidence = self.evidence_package if self.evidence_package is not None else finding.evidence_package
        signals = self.signals
        if signals is None and evidence is not None:
            signals = evidence.signals
        if signals is None:
            signals = finding.signals
        return EvaluationContext(
            evidence_package=evidence,
            signals=signals,
            confidence_reasons=self.confidence_reasons or finding.confidence_reasons,
            promise_type=self.promise_type or finding.promise_type,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "evidencePackage": self.evidence_package.to_dict() if self.evidence_package is not None else None,
            "signals": self.signals.to_dict() if self.signals is not None else None,
            "confidenceReasons": list(self.confidence_reasons),
            "promiseType": self.promise_type,
        }


__all__ = [
    "ConsoleSignals",
    "EvaluationContext",
    "EvidencePackage",
    "Finding",
    "FindingFamily",
    "NavigationSignals",
    "NetworkSignals",
    "Signals",
    "UiFeedback",
    "UiSignals",
    "finding_families",
]
