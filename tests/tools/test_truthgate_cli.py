# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import copy
import json

import pytest

from tools import truthgate_cli
from truthgate.guardrails.defaults import DEFAULT_POLICY_DOCUMENT


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch) -> None:
    for name in ("TRUTHGATE_GUARDRAILS_POLICY", "TRUTHGATE_MIN_COVERAGE", "TRUTHGATE_STRICT_COVERAGE", "TRUTHGATE_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TRUTHGATE_FORCE_DETERMINISTIC_PROVIDER", "1")


def _write(path, payload) -> str:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def _inputs(tmp_path, observed: int = 10):
    findings = _write(
        tmp_path / "findings.json",
        [
            {
                "id": "f-1",
                "type": "silent_failure",
                "status": "CONFIRMED",
                "confidence": 0.9,
                "promiseId": "p0",
                "signals": {"network": {"successfulRequests": 1, "failedRequests": 0}, "uiSignals": {"changed": False}},
            }
        ],
    )
    records = [
        {"promiseId": f"p{index}", "attempted": True, "observed": index < observed, "skipped": False}
        for index in range(10)
    ]
    return findings, _write(tmp_path / "records.json", records)


def test_run_prints_outcome_and_writes_report(tmp_path, capsys) -> None:
    findings, records = _inputs(tmp_path)
    report_path = tmp_path / "reports" / "guardrails.json"

    code = truthgate_cli.main(["--findings", findings, "--records", records, "--report", str(report_path)])

    assert code == 20
    output = json.loads(capsys.readouterr().out)
    assert output["outcome"]["status"] == "FINDINGS"
    assert output["findings"][0]["status"] == "SUSPECTED"
    assert output["findings"][0]["confidence"] == 0.6
    report = json.loads(report_path.read_text(encoding="utf-8"))
    assert report["generatedAt"] == "2026-01-01T00:00:00Z"
    assert report["summary"]["topRules"] == [{"ruleId": "NET_SUCCESS_NO_UI", "count": 1}]


def test_low_coverage_exits_incomplete(tmp_path, capsys) -> None:
    findings, records = _inputs(tmp_path, observed=5)
    assert truthgate_cli.main(["--findings", findings, "--records", records]) == 30
    assert json.loads(capsys.readouterr().out)["outcome"]["status"] == "INCOMPLETE"


def test_min_coverage_flag_overrides_environment(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("TRUTHGATE_MIN_COVERAGE", "0.95")
    findings, records = _inputs(tmp_path, observed=5)
    assert truthgate_cli.main(["--findings", findings, "--records", records, "--min-coverage", "0.5"]) == 20


def test_invalid_policy_aborts_with_usage_error(tmp_path, capsys) -> None:
    findings, records = _inputs(tmp_path)
    document = copy.deepcopy(DEFAULT_POLICY_DOCUMENT)
    document["rules"][0]["confidenceDelta"] = 0.5
    policy = _write(tmp_path / "policy.json", document)

    code = truthgate_cli.main(["--findings", findings, "--records", records, "--policy", policy])

    assert code == 64
    captured = capsys.readouterr()
    assert "guardrails policy invalid" in captured.err
    assert captured.out == ""


def test_invalid_findings_document_is_a_usage_error(tmp_path, capsys) -> None:
    _, records = _inputs(tmp_path)
    findings = _write(tmp_path / "broken.json", [{"type": "silent_failure", "status": "CONFIRMED", "confidence": 2}])
    assert truthgate_cli.main(["--findings", findings, "--records", records]) == 64
    assert "findings[0].confidence" in capsys.readouterr().err


def test_missing_inputs_are_a_usage_error(capsys) -> None:
    assert truthgate_cli.main([]) == 64
    assert "--findings and --records are required" in capsys.readouterr().err


def test_validate_policy_only(tmp_path, capsys) -> None:
    policy = _write(tmp_path / "policy.json", DEFAULT_POLICY_DOCUMENT)
    assert truthgate_cli.main(["--validate-policy", policy]) == 0
    assert json.loads(capsys.readouterr().out)["policy"]["ruleCount"] == 10

    broken = _write(tmp_path / "broken.json", {"version": "x", "rules": []})
    assert truthgate_cli.main(["--validate-policy", broken]) == 64


def test_findings_file_that_is_not_utf8_is_a_usage_error(tmp_path, capsys) -> None:
    _, records = _inputs(tmp_path)
    findings = tmp_path / "findings.bin"
    findings.write_bytes(b"[\xff]")
    assert truthgate_cli.main(["--findings", str(findings), "--records", records]) == 64
    assert "not UTF-8" in capsys.readouterr().err


def test_policy_file_that_is_not_utf8_is_a_usage_error(tmp_path, capsys) -> None:
    findings, records = _inputs(tmp_path)
    policy = tmp_path / "policy.json"
    policy.write_bytes(b'{"version": "\xff\xfe"}')
    assert truthgate_cli.main(["--findings", findings, "--records", records, "--policy", str(policy)]) == 64
    assert "guardrails policy invalid" in capsys.readouterr().err
