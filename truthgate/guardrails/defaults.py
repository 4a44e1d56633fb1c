# SPDX-License-Identifier: Apache-2.0
"""Compiled-in guardrails policy.

It goes through the same validation as a custom policy file, so a bad edit
here fails the first load instead of reaching evaluation.
"""

from __future__ import annotations

from typing import Any, Dict

DEFAULT_POLICY_VERSION = "guardrails-default.v1"

ANALYTICS_URL_PATTERNS = (
    "/analytics",
    "/beacon",
    "/tracking",
    "/pixel",
    "google-analytics",
    "segment.io",
    "mixpanel",
)

DEFAULT_POLICY_DOCUMENT: Dict[str, Any] = {
    "version": DEFAULT_POLICY_VERSION,
    "description": "Mandatory guardrails preventing false CONFIRMED silent-failure findings.",
    "rules": [
        {
            "id": "NET_SUCCESS_NO_UI",
            "category": "network",
            "action": "BLOCK",
            "confidenceDelta": -0.3,
            "appliesTo": ["silent_failure", "network"],
            "mandatory": True,
            "trigger": "Network request succeeded with no failures and no UI change; the action did not fail silently.",
            "evaluation": {
                "type": "network_success_no_ui",
                "conditions": {"minSuccessfulRequests": 1, "maxFailedRequests": 0, "maxUiFeedbackScore": 0.3},
            },
        },
        {
            "id": "ANALYTICS_ONLY",
            "category": "network",
            "action": "INFO",
            "confidenceDelta": -0.4,
            "appliesTo": ["network", "silent_failure"],
            "mandatory": True,
            "trigger": "The only network traffic was an analytics/beacon request, which is not a user promise.",
            "evaluation": {
                "type": "analytics_only",
                "conditions": {"analyticsPatterns": list(ANALYTICS_URL_PATTERNS), "maxRequests": 1},
            },
        },
        {
            "id": "SHALLOW_ROUTING",
            "category": "navigation",
            "action": "BLOCK",
            "confidenceDelta": -0.2,
            "appliesTo": ["navigation", "route"],
            "mandatory": True,
            "trigger": "Hash-only or shallow routing cannot confirm a route change.",
            "evaluation": {"type": "shallow_routing", "conditions": {"hashOnly": True, "shallowRouting": True}},
        },
        {
            "id": "UI_FEEDBACK_PRESENT",
            "category": "ui-feedback",
            "action": "BLOCK",
            "confidenceDelta": -0.3,
            "appliesTo": ["silent_failure", "feedback_missing"],
            "mandatory": True,
            "trigger": "UI feedback was observed, contradicting a no-feedback claim.",
            "evaluation": {"type": "ui_feedback_present", "conditions": {"minFeedbackScore": 0.5}},
        },
        {
            "id": "INTERACTION_BLOCKED",
            "category": "state",
            "action": "INFO",
            "confidenceDelta": -0.5,
            "appliesTo": ["silent_failure"],
            "mandatory": True,
            "trigger": "The interaction target was disabled or blocked; doing nothing is expected behavior.",
            "evaluation": {"type": "interaction_blocked", "conditions": {}},
        },
        {
            "id": "VALIDATION_PRESENT",
            "category": "validation",
            "action": "BLOCK",
            "confidenceDelta": -0.3,
            "appliesTo": ["validation", "form"],
            "mandatory": True,
            "trigger": "Validation feedback was shown, contradicting a silent validation failure.",
            "evaluation": {"type": "validation_present", "conditions": {}},
        },
        {
            "id": "CONTRADICT_EVIDENCE",
            "category": "state",
            "action": "BLOCK",
            "confidenceDelta": -0.2,
            "appliesTo": ["*"],
            "mandatory": True,
            "trigger": "An incomplete evidence package cannot support a CONFIRMED claim.",
            "evaluation": {"type": "contradict_evidence", "conditions": {"ignoreWithoutEvidence": True}},
        },
        {
            "id": "VIEW_SWITCH_MINOR_CHANGE",
            "category": "state",
            "action": "BLOCK",
            "confidenceDelta": -0.2,
            "appliesTo": ["view_switch"],
            "mandatory": True,
            "trigger": "URL unchanged and only a minor change (e.g. button text) was observed.",
            "evaluation": {"type": "view_switch_minor_change", "conditions": {"maxFeedbackScore": 0.2}},
        },
        {
            "id": "VIEW_SWITCH_ANALYTICS_ONLY",
            "category": "state",
            "action": "INFO",
            "confidenceDelta": -0.4,
            "appliesTo": ["view_switch"],
            "mandatory": True,
            "trigger": "Only analytics fired and the UI did not change; the view switch cannot be confirmed.",
            "evaluation": {
                "type": "view_switch_analytics_only",
                "conditions": {"analyticsPatterns": list(ANALYTICS_URL_PATTERNS)},
            },
        },
        {
            "id": "VIEW_SWITCH_AMBIGUOUS",
            "category": "state",
            "action": "DOWNGRADE",
            "confidenceDelta": -0.1,
            "appliesTo": ["view_switch"],
            "mandatory": True,
            "trigger": "A view-switch promise exists but the outcome rests on a single signal.",
            "evaluation": {"type": "view_switch_ambiguous", "conditions": {"signalCount": 1}},
        },
    ],
}

__all__ = ["ANALYTICS_URL_PATTERNS", "DEFAULT_POLICY_DOCUMENT", "DEFAULT_POLICY_VERSION"]
