# SPDX-License-Identifier: Apache-2.0
"""Cross-checks between execution records and the findings judged on them.

A judgment about a promise that was skipped, or never recorded at all, means
the evidence chain is broken. Those runs end as EVIDENCE_VIOLATION.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from truthgate.model.execution import ExecutionRecord, validate_execution_record
from truthgate.model.finding import Finding
from truthgate.model.status import TruthStatus

JUDGMENT_FOR_SKIPPED = "JUDGMENT_FOR_SKIPPED"
JUDGMENT_WITHOUT_EXECUTION = "JUDGMENT_WITHOUT_EXECUTION"
CONFIRMED_WITHOUT_ATTEMPT = "CONFIRMED_WITHOUT_ATTEMPT"
DUPLICATE_EXECUTION_RECORD = "DUPLICATE_EXECUTION_RECORD"
INVALID_EXECUTION_RECORD = "INVALID_EXECUTION_RECORD"


class ConsistencyViolationError(ValueError):
    def __init__(self, violations: Sequence["ConsistencyViolation"]) -> None:
        self.violations = tuple(violations)
        super().__init__("execution/judgment consistency violated: " + "; ".join(item.message for item in self.violations))


@dataclass(frozen=True)
class ConsistencyViolation:
    type: str
    promise_id: str
    message: str
    finding_id: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "promiseId": self.promise_id, "findingId": self.finding_id, "message": self.message}


@dataclass(frozen=True)
class ConsistencyResult:
    valid: bool
    violations: Tuple[ConsistencyViolation, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "violations": [item.to_dict() for item in self.violations]}


def validate_execution_judgment_consistency(
    records: Iterable[ExecutionRecord], findings: Iterable[Finding]
) -> ConsistencyResult:
    violations: List[ConsistencyViolation] = []
    by_promise: Dict[str, ExecutionRecord] = {}
    for record in records:
        errors = validate_execution_record(record)
        if errors:
            violations.append(
                ConsistencyViolation(INVALID_EXECUTION_RECORD, str(record.promise_id), "; ".join(errors))
            )
            continue
        if record.promise_id in by_promise:
            violations.append(
                ConsistencyViolation(
                    DUPLICATE_EXECUTION_RECORD,
                    record.promise_id,
                    f"duplicate execution record for promise {record.promise_id}",
                )
            )
            continue
        by_promise[record.promise_id] = record

    for finding in findings:
        if not finding.promise_id:
            continue
        record = by_promise.get(finding.promise_id)
        if record is None:
            violations.append(
                ConsistencyViolation(
                    JUDGMENT_WITHOUT_EXECUTION,
                    finding.promise_id,
                    f"finding {finding.id} judges promise {finding.promise_id} which has no execution record",
                    finding.id,
                )
            )
        elif record.skipped:
            violations.append(
                ConsistencyViolation(
                    JUDGMENT_FOR_SKIPPED,
                    finding.promise_id,
                    f"finding {finding.id} judges promise {finding.promise_id} which was skipped ({record.skip_reason})",
                    finding.id,
                )
            )
        elif finding.status is TruthStatus.CONFIRMED and not record.attempted:
            violations.append(
                ConsistencyViolation(
                    CONFIRMED_WITHOUT_ATTEMPT,
                    finding.promise_id,
                    f"finding {finding.id} is CONFIRMED but promise {finding.promise_id} was never attempted",
                    finding.id,
                )
            )
    return ConsistencyResult(valid=not violations, violations=tuple(violations))


def enforce_execution_judgment_consistency(records: Iterable[ExecutionRecord], findings: Iterable[Finding]) -> None:
    result = validate_execution_judgment_consistency(records, findings)
    if not result.valid:
        raise ConsistencyViolationError(result.violations)


def get_consistency_statistics(result: ConsistencyResult) -> Dict[str, Any]:
    by_type = Counter(item.type for item in result.violations)
    return {"valid": result.valid, "totalViolations": len(result.violations), "byType": dict(sorted(by_type.items()))}


def format_consistency_summary(result: ConsistencyResult) -> str:
    if result.valid:
        return "Consistency: OK"
    lines = [f"Consistency: {len(result.violations)} violation(s)"]
    lines.extend(f"  {item.type}: {item.message}" for item in result.violations)
    return "\n".join(lines)


__all__ = [
    "CONFIRMED_WITHOUT_ATTEMPT",
    "ConsistencyResult",
    "ConsistencyViolation",
    "ConsistencyViolationError",
    "DUPLICATE_EXECUTION_RECORD",
    "INVALID_EXECUTION_RECORD",
    "JUDGMENT_FOR_SKIPPED",
    "JUDGMENT_WITHOUT_EXECUTION",
    "enforce_execution_judgment_consistency",
    "format_consistency_summary",
    "get_consistency_statistics",
    "validate_execution_judgment_consistency",
]
