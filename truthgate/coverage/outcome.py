# SPDX-License-Identifier: Apache-2.0
"""Final run outcome: judgment, coverage and consistency in one exit code."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from truthgate.config import DEFAULT_MIN_COVERAGE
from truthgate.coverage.consistency import ConsistencyResult, validate_execution_judgment_consistency
from truthgate.coverage.enforcement import (
    EnforcementResult,
    enforce_coverage,
    get_coverage_exit_code,
    merge_coverage_and_judgment_exit_code,
    should_override_judgments,
)
from truthgate.exit_codes import ExitCode
from truthgate.model.execution import ExecutionRecord
from truthgate.model.finding import Finding
from truthgate.truth.pipeline import FindingEvaluationError, judgment_exit_code


class RunStatus:
    SUCCESS = "SUCCESS"
    FINDINGS = "FINDINGS"
    INCOMPLETE = "INCOMPLETE"
    EVIDENCE_VIOLATION = "EVIDENCE_VIOLATION"


@dataclass(frozen=True)
class RunOutcome:
    exit_code: int
    status: str
    judgment_exit_code: int
    coverage_exit_code: int
    coverage: EnforcementResult
    consistency: ConsistencyResult
    failure_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "exitCode": self.exit_code,
            "status": self.status,
            "judgmentExitCode": self.judgment_exit_code,
            "coverageExitCode": self.coverage_exit_code,
            "coverage": self.coverage.to_dict(),
            "consistency": self.consistency.to_dict(),
            "failureReason": self.failure_reason,
        }


def determine_run_outcome(
    final_findings: Sequence[Finding],
    records: Sequence[ExecutionRecord],
    min_coverage: float = DEFAULT_MIN_COVERAGE,
    strict: bool = False,
    *,
    evaluation_errors: Sequence[FindingEvaluationError] = (),
    enforcement: Optional[EnforcementResult] = None,
) -> RunOutcome:
    """Combine the three verdicts on a run.

    A broken evidence chain beats everything else. Otherwise the worse of the
    judgment and coverage codes is the exit code.
    """

    coverage = enforcement if enforcement is not None else enforce_coverage(records, min_coverage, strict)
    consistency = validate_execution_judgment_consistency(records, final_findings)
    judgment = judgment_exit_code(final_findings, evaluation_errors)
    coverage_code = get_coverage_exit_code(coverage)
    if not coverage.overrides_judgment and coverage.passed:
        coverage_code = int(ExitCode.SUCCESS)

    if not consistency.valid:
        first = consistency.violations[0]
        return RunOutcome(
            exit_code=int(ExitCode.EVIDENCE_VIOLATION),
            status=RunStatus.EVIDENCE_VIOLATION,
            judgment_exit_code=judgment,
            coverage_exit_code=coverage_code,
            coverage=coverage,
            consistency=consistency,
            failure_reason=f"{first.type}: {first.message}",
        )

    exit_code = merge_coverage_and_judgment_exit_code(judgment, coverage_code)
    if exit_code == ExitCode.SUCCESS:
        status, reason = RunStatus.SUCCESS, None
    elif exit_code == ExitCode.FINDINGS:
        status, reason = RunStatus.FINDINGS, None
    else:
        status = RunStatus.INCOMPLETE
        if should_override_judgments(coverage, judgment) or coverage_code > judgment:
            reason = coverage.failure_reason
        else:
            reason = f"{len(evaluation_errors)} finding(s) failed evaluation"
    return RunOutcome(
        exit_code=exit_code,
        status=status,
        judgment_exit_code=judgment,
        coverage_exit_code=coverage_code,
        coverage=coverage,
        consistency=consistency,
        failure_reason=reason,
    )


__all__ = ["RunOutcome", "RunStatus", "determine_run_outcome"]
