# SPDX-License-Identifier: Apache-2.0
"""Truth statuses and confidence bands."""

from __future__ import annotations

from enum import Enum


class TruthStatus(str, Enum):
    CONFIRMED = "CONFIRMED"
    SUSPECTED = "SUSPECTED"
    INFORMATIONAL = "INFORMATIONAL"
    IGNORED = "IGNORED"

    @property
    def rank(self) -> int:
        """Claim strength; higher claims more."""
        return _STATUS_RANK[self]

    @classmethod
    def weakest(cls, *statuses: "TruthStatus") -> "TruthStatus":
        return min(statuses, key=lambda status: status.rank)


_STATUS_RANK = {
    TruthStatus.IGNORED: 0,
    TruthStatus.INFORMATIONAL: 1,
    TruthStatus.SUSPECTED: 2,
    TruthStatus.CONFIRMED: 3,
}


class ConfidenceLevel(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
    UNPROVEN = "UNPROVEN"


HIGH_FLOOR = 0.8
MEDIUM_FLOOR = 0.5
LOW_FLOOR = 0.2

# Band ceilings used when reconciliation caps a downgraded finding.
MEDIUM_CEILING = 0.69
LOW_CEILING = 0.2


def confidence_level(confidence: float) -> ConfidenceLevel:
    if confidence >= HIGH_FLOOR:
        return ConfidenceLevel.HIGH
    if confidence >= MEDIUM_FLOOR:
        return ConfidenceLevel.MEDIUM
    if confidence >= LOW_FLOOR:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.UNPROVEN


CONFIDENCE_PRECISION = 4


def clamp_confidence(value: float, ceiling: float = 1.0) -> float:
    """Clamp into [0, ceiling] and round away float noise (0.9 - 0.3 is 0.6)."""

    return round(min(ceiling, max(0.0, float(value))), CONFIDENCE_PRECISION)


__all__ = [
    "TruthStatus",
    "ConfidenceLevel",
    "confidence_level",
    "clamp_confidence",
    "CONFIDENCE_PRECISION",
    "HIGH_FLOOR",
    "MEDIUM_FLOOR",
    "LOW_FLOOR",
    "MEDIUM_CEILING",
    "LOW_CEILING",
]
