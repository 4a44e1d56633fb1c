# SPDX-License-Identifier: Apache-2.0
"""Coverage truth, the coverage gate and run outcome."""

from truthgate.coverage.consistency import (
    ConsistencyResult,
    ConsistencyViolation,
    ConsistencyViolationError,
    enforce_execution_judgment_consistency,
    format_consistency_summary,
    get_consistency_statistics,
    validate_execution_judgment_consistency,
)
from truthgate.coverage.enforcement import (
    EnforcementResult,
    enforce_coverage,
    get_coverage_exit_code,
    merge_coverage_and_judgment_exit_code,
    should_override_judgments,
)
from truthgate.coverage.truth import (
    LEGAL_SKIP_REASONS,
    CoverageStatus,
    CoverageTruth,
    calculate_coverage_truth,
    format_coverage_summary,
    get_coverage_status,
    is_legal_skip_reason,
    meets_coverage_threshold,
)

__all__ = [
    "ConsistencyResult",
    "ConsistencyViolation",
    "ConsistencyViolationError",
    "CoverageStatus",
    "CoverageTruth",
    "EnforcementResult",
    "LEGAL_SKIP_REASONS",
    "calculate_coverage_truth",
    "enforce_coverage",
    "enforce_execution_judgment_consistency",
    "format_consistency_summary",
    "format_coverage_summary",
    "get_consistency_statistics",
    "get_coverage_exit_code",
    "get_coverage_status",
    "is_legal_skip_reason",
    "meets_coverage_threshold",
    "merge_coverage_and_judgment_exit_code",
    "should_override_judgments",
    "validate_execution_judgment_consistency",
]
