# SPDX-License-Identifier: Apache-2.0
"""Immutable data model for findings, truth decisions and execution records."""

from truthgate.model.execution import (
    ExecutionCompletenessError,
    ExecutionRecord,
    ExecutionState,
    create_execution_record,
    create_execution_records,
    validate_execution_completeness,
    validate_execution_record,
)
from truthgate.model.finding import (
    ConsoleSignals,
    EvaluationContext,
    EvidencePackage,
    Finding,
    FindingFamily,
    NavigationSignals,
    NetworkSignals,
    Signals,
    UiFeedback,
    UiSignals,
    finding_families,
)
from truthgate.model.status import ConfidenceLevel, TruthStatus, clamp_confidence, confidence_level
from truthgate.model.truth import (
    ConfidenceAdjustment,
    Contradiction,
    GuardrailsResult,
    ReconciliationRecord,
    RuleRef,
    TruthDecision,
)

__all__ = [
    "ConfidenceAdjustment",
    "ConfidenceLevel",
    "ConsoleSignals",
    "Contradiction",
    "EvaluationContext",
    "EvidencePackage",
    "ExecutionCompletenessError",
    "ExecutionRecord",
    "ExecutionState",
    "Finding",
    "FindingFamily",
    "GuardrailsResult",
    "NavigationSignals",
    "NetworkSignals",
    "ReconciliationRecord",
    "RuleRef",
    "Signals",
    "TruthDecision",
    "TruthStatus",
    "UiFeedback",
    "UiSignals",
    "clamp_confidence",
    "confidence_level",
    "create_execution_record",
    "create_execution_records",
    "finding_families",
    "validate_execution_completeness",
    "validate_execution_record",
]
