# SPDX-License-Identifier: Apache-2.0
"""Mandatory guardrails: policy, rule evaluation and the engine.

The run report lives in ``truthgate.guardrails.report`` and is imported from
there directly.
"""

from truthgate.guardrails.engine import GuardrailsOutcome, apply_guardrails
from truthgate.guardrails.evaluator import FiredRule, RuleOutcome, evaluate_rule, evaluate_rules, rule_applies_to
from truthgate.guardrails.policy import (
    EvaluationType,
    GuardrailsPolicy,
    GuardrailsRule,
    PolicyInvalid,
    PolicySource,
    PolicyStore,
    RuleAction,
    RuleCategory,
    default_policy,
    load_guardrails_policy,
    parse_policy_document,
)

__all__ = [
    "EvaluationType",
    "FiredRule",
    "GuardrailsOutcome",
    "GuardrailsPolicy",
    "GuardrailsRule",
    "PolicyInvalid",
    "PolicySource",
    "PolicyStore",
    "RuleAction",
    "RuleCategory",
    "RuleOutcome",
    "apply_guardrails",
    "default_policy",
    "evaluate_rule",
    "evaluate_rules",
    "load_guardrails_policy",
    "parse_policy_document",
    "rule_applies_to",
]
