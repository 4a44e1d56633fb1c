# SPDX-License-Identifier: Apache-2.0
"""Guardrails policy loading and validation.

A policy is validated once, when it is loaded, and never again: every rule
must be mandatory and no rule may raise confidence. A document that breaks
either law is rejected whole, before a single finding is evaluated.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from jsonschema import Draft202012Validator

from truthgate import SCHEMA_DIR
from truthgate.foundation import sha256_prefixed_digest
from truthgate.logger import get_logger

POLICY_SCHEMA_PATH = SCHEMA_DIR / "guardrails_policy.v1.json"

logger = get_logger(component="guardrails_policy")


class PolicyInvalid(ValueError):
    """Raised when a guardrails policy document is missing or invalid."""

    def __init__(self, errors: List[str], path: Optional[Path] = None) -> None:
        self.errors = list(errors)
        self.path = path
        where = f" ({path})" if path is not None else ""
        super().__init__(f"guardrails policy invalid{where}: " + "; ".join(self.errors))


class RuleCategory(str, Enum):
    NETWORK = "network"
    NAVIGATION = "navigation"
    UI_FEEDBACK = "ui-feedback"
    VALIDATION = "validation"
    STATE = "state"


class RuleAction(str, Enum):
    BLOCK = "BLOCK"
    DOWNGRADE = "DOWNGRADE"
    INFO = "INFO"


class EvaluationType(str, Enum):
    NETWORK_SUCCESS_NO_UI = "network_success_no_ui"
    ANALYTICS_ONLY = "analytics_only"
    SHALLOW_ROUTING = "shallow_routing"
    UI_FEEDBACK_PRESENT = "ui_feedback_present"
    INTERACTION_BLOCKED = "interaction_blocked"
    VALIDATION_PRESENT = "validation_present"
    CONTRADICT_EVIDENCE = "contradict_evidence"
    VIEW_SWITCH_MINOR_CHANGE = "view_switch_minor_change"
    VIEW_SWITCH_ANALYTICS_ONLY = "view_switch_analytics_only"
    VIEW_SWITCH_AMBIGUOUS = "view_switch_ambiguous"


class PolicySource(str, Enum):
    DEFAULT = "default"
    CUSTOM = "custom"


@dataclass(frozen=True)
class RuleEvaluation:
    type: EvaluationType
    conditions: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "conditions", MappingProxyType(dict(self.conditions)))

    def condition(self, key: str, default: Any) -> Any:
        value = self.conditions.get(key)
        return default if value is None else value

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "conditions": dict(self.conditions)}


@dataclass(frozen=True)
class GuardrailsRule:
    id: str
    category: RuleCategory
    action: RuleAction
    confidence_delta: float
    applies_to: Tuple[str, ...]
    evaluation: RuleEvaluation
    trigger: str = ""
    mandatory: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "category": self.category.value,
            "action": self.action.value,
            "confidenceDelta": self.confidence_delta,
            "appliesTo": list(self.applies_to),
            "mandatory": self.mandatory,
            "trigger": self.trigger,
            "evaluation": self.evaluation.to_dict(),
        }


@dataclass(frozen=True)
class GuardrailsPolicy:
    version: str
    source: PolicySource
    rules: Tuple[GuardrailsRule, ...]

    @property
    def fingerprint(self) -> str:
        return sha256_prefixed_digest({"version": self.version, "rules": [rule.to_dict() for rule in self.rules]})

    @property
    def rule_ids(self) -> Tuple[str, ...]:
        return tuple(rule.id for rule in self.rules)

    def ordered_rules(self) -> Tuple[GuardrailsRule, ...]:
        """Rules in evaluation order (by id)."""
        return tuple(sorted(self.rules, key=lambda rule: rule.id))

    def to_dict(self) -> Dict[str, Any]:
        return {"version": self.version, "rules": [rule.to_dict() for rule in self.rules]}

    def report(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "source": self.source.value,
            "fingerprint": self.fingerprint,
            "ruleCount": len(self.rules),
            "ruleIds": list(self.rule_ids),
        }


@lru_cache(maxsize=1)
def _policy_validator() -> Draft202012Validator:
    schema = json.loads(POLICY_SCHEMA_PATH.read_text(encoding="utf-8"))
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def _format_path(path: Any) -> str:
    rendered = ""
    for part in path:
        rendered += f"[{part}]" if isinstance(part, int) else (f".{part}" if rendered else str(part))
    return rendered or "<root>"


def _schema_errors(document: Any) -> List[str]:
    errors = sorted(_policy_validator().iter_errors(document), key=lambda error: list(map(str, error.absolute_path)))
    return [f"{_format_path(error.absolute_path)}: {error.message}" for error in errors]


def _semantic_errors(document: Mapping[str, Any]) -> List[str]:
    """Checks the schema cannot express (or that must hold even if the schema drifts)."""

    errors: List[str] = []
    seen: set[str] = set()
    for index, rule in enumerate(document.get("rules") or []):
        prefix = f"rules[{index}]"
        rule_id = str(rule.get("id") or "").strip()
        if rule_id in seen:
            errors.append(f"{prefix}.id: duplicate rule id {rule_id!r}")
        seen.add(rule_id)
        delta = rule.get("confidenceDelta")
        if isinstance(delta, bool) or not isinstance(delta, (int, float)) or not math.isfinite(delta) or delta > 0:
            errors.append(f"{prefix}.confidenceDelta must be a finite number <= 0")
        if rule.get("mandatory") is not True:
            errors.append(f"{prefix}.mandatory must be true")
    return errors


def _build_rule(raw: Mapping[str, Any]) -> GuardrailsRule:
    evaluation = raw["evaluation"]
    return GuardrailsRule(
        id=str(raw["id"]).strip(),
        category=RuleCategory(raw["category"]),
        action=RuleAction(raw["action"]),
        confidence_delta=float(raw["confidenceDelta"]),
        applies_to=tuple(str(item) for item in raw["appliesTo"]),
        evaluation=RuleEvaluation(
            type=EvaluationType(evaluation["type"]),
            conditions=dict(evaluation.get("conditions") or {}),
        ),
        trigger=str(raw.get("trigger") or ""),
        mandatory=True,
    )


def parse_policy_document(document: Any, *, source: PolicySource, path: Optional[Path] = None) -> GuardrailsPolicy:
    """Validate a decoded policy document and freeze it. All errors are reported together."""

    errors = _schema_errors(document)
    if not errors:
        errors = _semantic_errors(document)
    if errors:
        raise PolicyInvalid(errors, path)
    return GuardrailsPolicy(
        version=str(document["version"]),
        source=source,
        rules=tuple(_build_rule(rule) for rule in document["rules"]),
    )


@lru_cache(maxsize=1)
def default_policy() -> GuardrailsPolicy:
    from truthgate.guardrails.defaults import DEFAULT_POLICY_DOCUMENT

    return parse_policy_document(DEFAULT_POLICY_DOCUMENT, source=PolicySource.DEFAULT)


def _resolve(path: Path | str, base_dir: Path | str | None) -> Path:
    candidate = Path(path)
    if not candidate.is_absolute() and base_dir is not None:
        candidate = Path(base_dir) / candidate
    return candidate


def load_guardrails_policy(path: Path | str | None = None, base_dir: Path | str | None = None) -> GuardrailsPolicy:
    """Load the compiled-in default policy, or a custom one from ``path``."""

    if path is None:
        policy = default_policy()
    else:
        resolved = _resolve(path, base_dir)
        try:
            text = resolved.read_text(encoding="utf-8")
        except OSError as exc:
            raise PolicyInvalid([f"policy file unreadable: {exc.strerror or exc}"], resolved) from exc
        except UnicodeDecodeError as exc:
            raise PolicyInvalid([f"policy file is not UTF-8: byte {exc.start}"], resolved) from exc
        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise PolicyInvalid([f"invalid JSON at line {exc.lineno}: {exc.msg}"], resolved) from exc
        policy = parse_policy_document(document, source=PolicySource.CUSTOM, path=resolved)

    logger.audit(
        "guardrails_policy_loaded",
        actor="policy_store",
        outcome="ok",
        version=policy.version,
        source=policy.source.value,
        fingerprint=policy.fingerprint,
        rule_count=len(policy.rules),
    )
    return policy


class PolicyStore:
    """Per-run holder of loaded policies.

    One store belongs to one run; nothing is cached across stores, so two runs
    in the same process never see each other's policy.
    """

    def __init__(self, base_dir: Path | str | None = None) -> None:
        self.base_dir = Path(base_dir) if base_dir is not None else None
        self._loaded: Dict[str, GuardrailsPolicy] = {}

    def load(self, path: Path | str | None = None, base_dir: Path | str | None = None) -> GuardrailsPolicy:
        root = base_dir if base_dir is not None else self.base_dir
        key = str(_resolve(path, root).absolute()) if path is not None else "<default>"
        if key not in self._loaded:
            self._loaded[key] = load_guardrails_policy(path, root)
        return self._loaded[key]


__all__ = [
    "EvaluationType",
    "GuardrailsPolicy",
    "GuardrailsRule",
    "POLICY_SCHEMA_PATH",
    "PolicyInvalid",
    "PolicySource",
    "PolicyStore",
    "RuleAction",
    "RuleCategory",
    "RuleEvaluation",
    "default_policy",
    "load_guardrails_policy",
    "parse_policy_document",
]
