# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from truthgate.coverage.truth import (
    CoverageStatus,
    calculate_coverage_truth,
    format_coverage_summary,
    get_coverage_status,
    is_legal_skip_reason,
    meets_coverage_threshold,
)
from truthgate.model.execution import ExecutionRecord, create_execution_record


def _mixed_records() -> list[ExecutionRecord]:
    records = [create_execution_record(f"observed-{index}", observed=True) for index in range(6)]
    records.append(create_execution_record("auth", skip_reason="auth_required"))
    records.append(create_execution_record("infra", skip_reason="infra_failure"))
    records.append(create_execution_record("timeout", skip_reason="timeout"))
    records.append(create_execution_record("silent", observed=False))
    return records


def test_coverage_formula_excludes_only_legal_skips() -> None:
    coverage = calculate_coverage_truth(_mixed_records())

    assert coverage.total == 10
    assert coverage.observed == 6
    assert coverage.attempted == 7
    assert coverage.skipped == 3
    assert coverage.legally_skipped == 2
    assert coverage.illegally_skipped == 1
    assert coverage.attempted_not_observed == 1
    assert coverage.coverage_ratio == 0.75
    assert coverage.coverage_percent == 75
    assert dict(coverage.skip_reasons) == {"timeout": 1}


def test_zero_records_give_zero_ratio() -> None:
    coverage = calculate_coverage_truth([])
    assert coverage.total == 0
    assert coverage.coverage_ratio == 0.0
    assert get_coverage_status(coverage, 0.9) == CoverageStatus.INCOMPLETE


def test_all_legally_skipped_has_empty_denominator() -> None:
    coverage = calculate_coverage_truth([create_execution_record("a", skip_reason="auth_required")])
    assert coverage.coverage_ratio == 0.0
    assert get_coverage_status(coverage, 0.9) == CoverageStatus.FAIL


def test_only_two_skip_reasons_are_legal() -> None:
    assert is_legal_skip_reason("auth_required")
    assert is_legal_skip_reason("infra_failure")
    for reason in ("timeout", "flaky", "AUTH_REQUIRED", "", None):
        assert not is_legal_skip_reason(reason)


def test_threshold_and_status() -> None:
    coverage = calculate_coverage_truth(_mixed_records())
    assert meets_coverage_threshold(coverage, 0.75)
    assert not meets_coverage_threshold(coverage, 0.9)
    assert get_coverage_status(coverage, 0.75) == CoverageStatus.PASS
    assert get_coverage_status(coverage, 0.9) == CoverageStatus.FAIL


def test_summary_lists_coverage_threshold_and_status() -> None:
    summary = format_coverage_summary(calculate_coverage_truth(_mixed_records()), 0.9)
    lines = summary.splitlines()
    assert lines[0] == "Coverage: 75% (6/8 observed)"
    assert lines[1] == "Threshold: 90%"
    assert lines[2] == "Status: FAIL"
    assert "Illegally skipped: 1 (timeout=1)" in lines
