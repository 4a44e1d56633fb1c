# SPDX-License-Identifier: Apache-2.0
"""Coverage truth over a run's execution records.

coverage_ratio = observed / (total - legally_skipped), 0 when the denominator
is 0. Only the reasons in ``LEGAL_SKIP_REASONS`` leave the denominator; every
other skip still counts against coverage.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional

from truthgate.model.execution import ExecutionRecord, ExecutionState

LEGAL_SKIP_REASONS = frozenset({"auth_required", "infra_failure"})


class CoverageStatus:
    PASS = "PASS"
    FAIL = "FAIL"
    INCOMPLETE = "INCOMPLETE"


@dataclass(frozen=True)
class CoverageTruth:
    total: int
    observed: int
    attempted: int
    skipped: int
    legally_skipped: int
    illegally_skipped: int
    attempted_not_observed: int
    coverage_ratio: float
    skip_reasons: Mapping[str, int] = field(default_factory=dict, hash=False)

    @property
    def coverage_percent(self) -> int:
        return int(round(self.coverage_ratio * 100))

    @property
    def denominator(self) -> int:
        return self.total - self.legally_skipped

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "observed": self.observed,
            "attempted": self.attempted,
            "skipped": self.skipped,
            "legallySkipped": self.legally_skipped,
            "illegallySkipped": self.illegally_skipped,
            "attemptedNotObserved": self.attempted_not_observed,
            "coverageRatio": self.coverage_ratio,
            "coveragePercent": self.coverage_percent,
            "skipReasons": dict(sorted(self.skip_reasons.items())),
        }


def is_legal_skip_reason(reason: Optional[str]) -> bool:
    return reason in LEGAL_SKIP_REASONS


def calculate_coverage_truth(records: Iterable[ExecutionRecord]) -> CoverageTruth:
    total = observed = attempted = skipped = legally = not_observed = 0
    illegal: Counter[str] = Counter()
    for record in records:
        total += 1
        if record.attempted:
            attempted += 1
        match record.state:
            case ExecutionState.ATTEMPTED_AND_OBSERVED:
                observed += 1
            case ExecutionState.ATTEMPTED_NOT_OBSERVED:
                not_observed += 1
            case ExecutionState.SKIPPED:
                skipped += 1
                if is_legal_skip_reason(record.skip_reason):
                    legally += 1
                else:
                    illegal[record.skip_reason or "unknown"] += 1

    denominator = total - legally
    return CoverageTruth(
        total=total,
        observed=observed,
        attempted=attempted,
        skipped=skipped,
        legally_skipped=legally,
        illegally_skipped=sum(illegal.values()),
        attempted_not_observed=not_observed,
        coverage_ratio=observed / denominator if denominator > 0 else 0.0,
        skip_reasons=dict(illegal),
    )


def meets_coverage_threshold(coverage: CoverageTruth, min_coverage: float) -> bool:
    return coverage.total > 0 and coverage.coverage_ratio >= min_coverage


def get_coverage_status(coverage: CoverageTruth, min_coverage: float) -> str:
    if coverage.total == 0:
        return CoverageStatus.INCOMPLETE
    if meets_coverage_threshold(coverage, min_coverage):
        return CoverageStatus.PASS
    return CoverageStatus.FAIL


def format_coverage_summary(coverage: CoverageTruth, min_coverage: float) -> str:
    lines = [
        f"Coverage: {coverage.coverage_percent}% ({coverage.observed}/{coverage.denominator} observed)",
        f"Threshold: {int(round(min_coverage * 100))}%",
        f"Status: {get_coverage_status(coverage, min_coverage)}",
    ]
    if coverage.legally_skipped:
        lines.append(f"Legally skipped: {coverage.legally_skipped}")
    if coverage.illegally_skipped:
        reasons = ", ".join(f"{reason}={count}" for reason, count in sorted(coverage.skip_reasons.items()))
        lines.append(f"Illegally skipped: {coverage.illegally_skipped} ({reasons})")
    if coverage.attempted_not_observed:
        lines.append(f"Attempted, not observed: {coverage.attempted_not_observed}")
    return "\n".join(lines)


__all__ = [
    "CoverageStatus",
    "CoverageTruth",
    "LEGAL_SKIP_REASONS",
    "calculate_coverage_truth",
    "format_coverage_summary",
    "get_coverage_status",
    "is_legal_skip_reason",
    "meets_coverage_threshold",
]
