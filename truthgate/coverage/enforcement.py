# SPDX-License-Identifier: Apache-2.0
"""Coverage gate and exit-code merge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from truthgate.config import DEFAULT_MIN_COVERAGE
from truthgate.coverage.truth import CoverageStatus, CoverageTruth, calculate_coverage_truth, get_coverage_status
from truthgate.exit_codes import ExitCode
from truthgate.logger import get_logger
from truthgate.model.execution import ExecutionRecord

logger = get_logger(component="coverage_gate")

_STATUS_EXIT_CODES = {
    CoverageStatus.PASS: ExitCode.SUCCESS,
    CoverageStatus.FAIL: ExitCode.INCOMPLETE,
    CoverageStatus.INCOMPLETE: ExitCode.INCOMPLETE,
}


@dataclass(frozen=True)
class EnforcementResult:
    passed: bool
    status: str
    coverage_truth: CoverageTruth
    overrides_judgment: bool
    failure_reason: Optional[str] = None
    min_coverage: float = DEFAULT_MIN_COVERAGE
    strict: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "status": self.status,
            "coverageTruth": self.coverage_truth.to_dict(),
            "overridesJudgment": self.overrides_judgment,
            "failureReason": self.failure_reason,
            "minCoverage": self.min_coverage,
            "strict": self.strict,
        }


def enforce_coverage(
    records: Iterable[ExecutionRecord],
    min_coverage: float = DEFAULT_MIN_COVERAGE,
    strict: bool = False,
) -> EnforcementResult:
    """Apply the minimum-coverage threshold to a run.

    FAIL always overrides the judgment. INCOMPLETE (no records at all) only
    overrides it, and only fails the gate, when ``strict`` is set.
    """

    if not 0.0 <= float(min_coverage) <= 1.0:
        raise ValueError(f"invalid_min_coverage:{min_coverage}")
    coverage = calculate_coverage_truth(records)
    status = get_coverage_status(coverage, min_coverage)

    match status:
        case CoverageStatus.PASS:
            result = EnforcementResult(True, status, coverage, False, None, min_coverage, strict)
        case CoverageStatus.INCOMPLETE:
            reason = "no execution records: coverage cannot be determined"
            result = EnforcementResult(not strict, status, coverage, strict, reason, min_coverage, strict)
        case _:
            reason = f"coverage {coverage.coverage_ratio:.2%} below threshold {min_coverage:.2%}"
            result = EnforcementResult(False, status, coverage, True, reason, min_coverage, strict)

    if result.overrides_judgment:
        logger.audit(
            "coverage_gate_override",
            actor="coverage_gate",
            outcome=status,
            coverage_ratio=coverage.coverage_ratio,
            min_coverage=min_coverage,
            strict=strict,
            reason=result.failure_reason,
        )
    return result


def get_coverage_exit_code(result: EnforcementResult) -> int:
    return int(_STATUS_EXIT_CODES[result.status])


def merge_coverage_and_judgment_exit_code(judgment_exit_code: int, coverage_exit_code: int) -> int:
    """The worse outcome wins."""
    return max(int(judgment_exit_code), int(coverage_exit_code))


def should_override_judgments(result: EnforcementResult, judgment_exit_code: int) -> bool:
    return result.overrides_judgment and int(judgment_exit_code) == ExitCode.SUCCESS


__all__ = [
    "EnforcementResult",
    "enforce_coverage",
    "get_coverage_exit_code",
    "merge_coverage_and_judgment_exit_code",
    "should_override_judgments",
]
