# SPDX-License-Identifier: Apache-2.0
"""Execution records: what happened to each promise during observation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence


class ExecutionCompletenessError(ValueError):
    """Raised when a promise has no execution record."""


class ExecutionState(str, Enum):
    ATTEMPTED_AND_OBSERVED = "ATTEMPTED_AND_OBSERVED"
    ATTEMPTED_NOT_OBSERVED = "ATTEMPTED_NOT_OBSERVED"
    SKIPPED = "SKIPPED"
    NOT_ATTEMPTED = "NOT_ATTEMPTED"


@dataclass(frozen=True)
class ExecutionRecord:
    promise_id: str
    attempted: bool
    observed: bool
    skipped: bool
    skip_reason: Optional[str] = None

    @property
    def state(self) -> ExecutionState:
        if self.skipped:
            return ExecutionState.SKIPPED
        if self.attempted and self.observed:
            return ExecutionState.ATTEMPTED_AND_OBSERVED
        if self.attempted:
            return ExecutionState.ATTEMPTED_NOT_OBSERVED
        return ExecutionState.NOT_ATTEMPTED

    @property
    def complete(self) -> bool:
        return self.state is ExecutionState.ATTEMPTED_AND_OBSERVED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "promiseId": self.promise_id,
            "attempted": self.attempted,
            "observed": self.observed,
            "skipped": self.skipped,
            "skipReason": self.skip_reason,
            "state": self.state.value,
        }


def create_execution_record(promise_id: str, observed: Optional[bool] = None, skip_reason: Optional[str] = None) -> ExecutionRecord:
    """Build a record from one observation outcome.

    A skip reason wins over an observation. A promise with neither was still
    attempted, it just produced nothing observable.
    """

    if skip_reason:
        return ExecutionRecord(promise_id=promise_id, attempted=False, observed=False, skipped=True, skip_reason=skip_reason)
    return ExecutionRecord(promise_id=promise_id, attempted=True, observed=bool(observed), skipped=False)


def create_execution_records(
    promise_ids: Iterable[str],
    observations: Iterable[Mapping[str, Any]] = (),
    skips: Iterable[Mapping[str, Any]] = (),
) -> List[ExecutionRecord]:
    observed_by_id: Dict[str, bool] = {}
    for item in observations:
        observed = item.get("observed")
        if not isinstance(observed, bool):
            raise ValueError(f"invalid_observation:{item.get('promiseId')}: observed must be a boolean, got {observed!r}")
        observed_by_id[str(item.get("promiseId"))] = observed
    skip_by_id = {str(item.get("promiseId")): str(item.get("reason") or "unknown") for item in skips}
    return [
        create_execution_record(promise_id, observed=observed_by_id.get(promise_id), skip_reason=skip_by_id.get(promise_id))
        for promise_id in promise_ids
    ]


def validate_execution_record(record: ExecutionRecord) -> List[str]:
    errors: List[str] = []
    if not record.promise_id or not str(record.promise_id).strip():
        errors.append("promiseId must be a non-empty string")
    if record.skipped and record.attempted:
        errors.append(f"{record.promise_id}: skipped record cannot be attempted")
    if record.observed and not record.attempted:
        errors.append(f"{record.promise_id}: observed record must be attempted")
    if record.skipped and not record.skip_reason:
        errors.append(f"{record.promise_id}: skipped record requires skipReason")
    if not record.skipped and record.skip_reason:
        errors.append(f"{record.promise_id}: skipReason set on a record that was not skipped")
    return errors


def validate_execution_completeness(promise_ids: Iterable[str], records: Sequence[ExecutionRecord]) -> None:
    recorded = {record.promise_id for record in records}
    missing = sorted(promise_id for promise_id in promise_ids if promise_id not in recorded)
    if missing:
        raise ExecutionCompletenessError(f"Execution completeness violation: no record for {', '.join(missing)}")


__all__ = [
    "ExecutionCompletenessError",
    "ExecutionRecord",
    "ExecutionState",
    "create_execution_record",
    "create_execution_records",
    "validate_execution_completeness",
    "validate_execution_record",
]
