# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import copy
import json

import pytest

from truthgate.guardrails.defaults import DEFAULT_POLICY_DOCUMENT, DEFAULT_POLICY_VERSION
from truthgate.guardrails.policy import (
    EvaluationType,
    PolicyInvalid,
    PolicySource,
    PolicyStore,
    RuleAction,
    default_policy,
    load_guardrails_policy,
    parse_policy_document,
)


def _document() -> dict:
    return copy.deepcopy(DEFAULT_POLICY_DOCUMENT)


def test_default_policy_has_ten_mandatory_non_positive_rules() -> None:
    policy = default_policy()
    assert policy.version == DEFAULT_POLICY_VERSION
    assert policy.source is PolicySource.DEFAULT
    assert len(policy.rules) == 10
    assert all(rule.mandatory for rule in policy.rules)
    assert all(rule.confidence_delta <= 0 for rule in policy.rules)
    assert {rule.evaluation.type for rule in policy.rules} == set(EvaluationType)


def test_rules_evaluate_in_id_order() -> None:
    ids = [rule.id for rule in default_policy().ordered_rules()]
    assert ids == sorted(ids)


def test_load_without_path_returns_default() -> None:
    assert load_guardrails_policy() is default_policy()


def test_custom_policy_loads_relative_to_base_dir(tmp_path) -> None:
    document = _document()
    document["version"] = "custom.v2"
    document["rules"] = document["rules"][:2]
    (tmp_path / "policy.json").write_text(json.dumps(document), encoding="utf-8")

    policy = load_guardrails_policy("policy.json", base_dir=tmp_path)

    assert policy.version == "custom.v2"
    assert policy.source is PolicySource.CUSTOM
    assert policy.rule_ids == ("NET_SUCCESS_NO_UI", "ANALYTICS_ONLY")
    assert policy.rules[0].action is RuleAction.BLOCK


def test_positive_confidence_delta_rejects_whole_policy() -> None:
    document = _document()
    document["rules"][3]["confidenceDelta"] = 0.1
    with pytest.raises(PolicyInvalid, match=r"rules\[3\]\.confidenceDelta") as excinfo:
        parse_policy_document(document, source=PolicySource.CUSTOM)
    assert len(excinfo.value.errors) == 1


def test_non_mandatory_rule_rejected() -> None:
    document = _document()
    document["rules"][0]["mandatory"] = False
    with pytest.raises(PolicyInvalid, match=r"rules\[0\]\.mandatory"):
        parse_policy_document(document, source=PolicySource.CUSTOM)


@pytest.mark.parametrize(
    "field, value",
    [
        ("id", ""),
        ("category", "billing"),
        ("action", "ALLOW"),
        ("confidenceDelta", "-0.2"),
        ("appliesTo", "silent_failure"),
    ],
)
def test_structural_violations_rejected(field: str, value: object) -> None:
    document = _document()
    document["rules"][1][field] = value
    with pytest.raises(PolicyInvalid) as excinfo:
        parse_policy_document(document, source=PolicySource.CUSTOM)
    assert any(error.startswith(f"rules[1].{field}") for error in excinfo.value.errors)


def test_missing_field_and_unknown_evaluation_type_reported_together() -> None:
    document = _document()
    del document["rules"][0]["mandatory"]
    document["rules"][2]["evaluation"]["type"] = "always_true"
    with pytest.raises(PolicyInvalid) as excinfo:
        parse_policy_document(document, source=PolicySource.CUSTOM)
    assert len(excinfo.value.errors) == 2


def test_duplicate_rule_ids_rejected() -> None:
    document = _document()
    document["rules"][1]["id"] = document["rules"][0]["id"]
    with pytest.raises(PolicyInvalid, match="duplicate rule id"):
        parse_policy_document(document, source=PolicySource.CUSTOM)


def test_nan_delta_rejected() -> None:
    document = _document()
    document["rules"][0]["confidenceDelta"] = float("nan")
    with pytest.raises(PolicyInvalid, match="finite number"):
        parse_policy_document(document, source=PolicySource.CUSTOM)


def test_empty_rules_rejected() -> None:
    with pytest.raises(PolicyInvalid, match="rules"):
        parse_policy_document({"version": "v1", "rules": []}, source=PolicySource.CUSTOM)


def test_unreadable_and_malformed_files_raise_policy_invalid(tmp_path) -> None:
    with pytest.raises(PolicyInvalid, match="unreadable"):
        load_guardrails_policy(tmp_path / "missing.json")

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(PolicyInvalid, match="invalid JSON"):
        load_guardrails_policy(broken)


def test_fingerprint_is_stable_and_content_addressed() -> None:
    first = parse_policy_document(_document(), source=PolicySource.CUSTOM)
    second = parse_policy_document(_document(), source=PolicySource.CUSTOM)
    assert first.fingerprint == second.fingerprint
    assert first.fingerprint.startswith("sha256:")

    changed = _document()
    changed["rules"][0]["confidenceDelta"] = -0.25
    assert parse_policy_document(changed, source=PolicySource.CUSTOM).fingerprint != first.fingerprint


def test_policy_store_caches_per_instance(tmp_path) -> None:
    path = tmp_path / "policy.json"
    path.write_text(json.dumps(_document()), encoding="utf-8")

    store = PolicyStore(base_dir=tmp_path)
    assert store.load("policy.json") is store.load("policy.json")
    assert PolicyStore(base_dir=tmp_path).load("policy.json") is not store.load("policy.json")
    assert store.load() is default_policy()


def test_policy_file_that_is_not_utf8_is_invalid(tmp_path) -> None:
    latin = tmp_path / "latin.json"
    latin.write_bytes(b'{"version": "\xff\xfe"}')
    with pytest.raises(PolicyInvalid, match="not UTF-8: byte 13") as caught:
        load_guardrails_policy(latin)
    assert caught.value.errors == ["policy file is not UTF-8: byte 13"]
