# SPDX-License-Identifier: Apache-2.0
"""Boundary parsing for findings and execution-record documents.

Documents are validated with pydantic and turned into the frozen model
types. Anything that fails validation is an ``IngestError`` and never reaches
evaluation.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from truthgate.model.execution import ExecutionRecord, create_execution_records
from truthgate.model.finding import (
    ConsoleSignals,
    EvidencePackage,
    Finding,
    NavigationSignals,
    NetworkSignals,
    Signals,
    UiFeedback,
    UiSignals,
)
from truthgate.model.status import ConfidenceLevel, TruthStatus, confidence_level


class IngestError(ValueError):
    def __init__(self, errors: List[str], source: Optional[str] = None) -> None:
        self.errors = list(errors)
        self.source = source
        where = f" ({source})" if source else ""
        super().__init__(f"input document invalid{where}: " + "; ".join(self.errors))


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class NetworkDoc(_Document):
    successful_requests: int = Field(default=0, ge=0)
    failed_requests: int = Field(default=0, ge=0)
    observed_request_urls: List[str] = Field(default_factory=list)
    top_failed_urls: List[str] = Field(default_factory=list)


class UiSignalsDoc(_Document):
    changed: bool = False
    dom_changed: bool = False
    visible_changed: bool = False
    aria_changed: bool = False
    text_changed: bool = False
    has_loading_indicator: bool = False
    has_dialog: bool = False
    has_error_signal: bool = False
    has_validation_message: bool = False


class UiFeedbackDoc(_Document):
    overall_score: Optional[float] = Field(default=None, alias="overallUiFeedbackScore", ge=0)
    validation_happened: bool = False


class NavigationDoc(_Document):
    url_changed: bool = False
    shallow_routing: bool = False


class ConsoleDoc(_Document):
    error_count: int = Field(default=0, ge=0)


class SignalsDoc(_Document):
    network: NetworkDoc = Field(default_factory=NetworkDoc)
    ui: UiSignalsDoc = Field(default_factory=UiSignalsDoc, alias="uiSignals")
    feedback: UiFeedbackDoc = Field(default_factory=UiFeedbackDoc, alias="uiFeedback")
    navigation: NavigationDoc = Field(default_factory=NavigationDoc)
    console: Optional[ConsoleDoc] = None

    def to_model(self) -> Signals:
        return Signals(
            network=NetworkSignals(
                successful_requests=self.network.successful_requests,
                failed_requests=self.network.failed_requests,
                observed_request_urls=tuple(self.network.observed_request_urls),
                top_failed_urls=tuple(self.network.top_failed_urls),
            ),
            ui=UiSignals(**self.ui.model_dump()),
            feedback=UiFeedback(
                overall_score=self.feedback.overall_score,
                validation_happened=self.feedback.validation_happened,
            ),
            navigation=NavigationSignals(**self.navigation.model_dump()),
            console=ConsoleSignals(error_count=self.console.error_count) if self.console is not None else None,
        )


class PageDoc(_Document):
    url: str = ""


class EvidencePackageDoc(_Document):
    is_complete: bool = False
    missing_evidence: List[str] = Field(default_factory=list)
    before: PageDoc = Field(default_factory=PageDoc)
    after: PageDoc = Field(default_factory=PageDoc)
    interaction_disabled: bool = False
    signals: Optional[SignalsDoc] = None

    def to_model(self) -> EvidencePackage:
        return EvidencePackage(
            is_complete=self.is_complete,
            missing_evidence=tuple(self.missing_evidence),
            before_url=self.before.url,
            after_url=self.after.url,
            interaction_disabled=self.interaction_disabled,
            signals=self.signals.to_model() if self.signals is not None else None,
        )


class PriorGuardrailsDoc(_Document):
    status_before: TruthStatus
    confidence_before: float = Field(ge=0, le=1)
    confidence_level_before: ConfidenceLevel


class FindingDoc(_Document):
    id: Optional[str] = None
    type: str = Field(min_length=1)
    status: TruthStatus
    confidence: float = Field(ge=0, le=1)
    confidence_level: Optional[ConfidenceLevel] = None
    evidence: Dict[str, Any] = Field(default_factory=dict)
    signals: SignalsDoc = Field(default_factory=SignalsDoc)
    evidence_package: Optional[EvidencePackageDoc] = None
    promise_id: Optional[str] = None
    promise_type: Optional[str] = None
    expectation_kind: Optional[str] = None
    interaction_disabled: bool = False
    correlation_signal_count: int = Field(default=0, ge=0)
    confidence_reasons: List[str] = Field(default_factory=list)
    guardrails: Optional[PriorGuardrailsDoc] = None

    def to_model(self, index: int) -> Finding:
        status, confidence, level = self.status, self.confidence, self.confidence_level
        if self.guardrails is not None:
            # Already-finalized output: evaluate from its pre-guardrails state.
            status = self.guardrails.status_before
            confidence = self.guardrails.confidence_before
            level = self.guardrails.confidence_level_before
        return Finding(
            id=self.id or f"finding-{index}",
            type=self.type,
            status=status,
            confidence=confidence,
            confidence_level=level or confidence_level(confidence),
            evidence=self.evidence,
            signals=self.signals.to_model(),
            evidence_package=self.evidence_package.to_model() if self.evidence_package is not None else None,
            promise_id=self.promise_id,
            promise_type=self.promise_type,
            expectation_kind=self.expectation_kind,
            interaction_disabled=self.interaction_disabled,
            correlation_signal_count=self.correlation_signal_count,
            confidence_reasons=tuple(self.confidence_reasons),
        )


class ExecutionRecordDoc(_Document):
    promise_id: str
    attempted: bool = False
    observed: bool = False
    skipped: bool = False
    skip_reason: Optional[str] = None

    def to_model(self) -> ExecutionRecord:
        return ExecutionRecord(
            promise_id=self.promise_id,
            attempted=self.attempted,
            observed=self.observed,
            skipped=self.skipped,
            skip_reason=self.skip_reason,
        )


def _format_validation_error(prefix: str, exc: ValidationError) -> List[str]:
    errors = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        errors.append(f"{prefix}.{location}: {item.get('msg')}" if location else f"{prefix}: {item.get('msg')}")
    return errors


def _items(document: Any, key: str, source: Optional[str]) -> List[Any]:
    if isinstance(document, dict):
        document = document.get(key)
    if not isinstance(document, list):
        raise IngestError([f"expected a list or an object with a {key!r} list"], source)
    return document


def parse_findings(document: Any, source: Optional[str] = None) -> List[Finding]:
    """Parse a findings document: a list, or ``{"findings": [...]}``."""

    findings: List[Finding] = []
    errors: List[str] = []
    for index, raw in enumerate(_items(document, "findings", source)):
        try:
            findings.append(FindingDoc.model_validate(raw).to_model(index))
        except ValidationError as exc:
            errors.extend(_format_validation_error(f"findings[{index}]", exc))
        except ValueError as exc:
            errors.append(f"findings[{index}]: {exc}")
    if errors:
        raise IngestError(errors, source)
    return findings


def parse_execution_records(document: Any, source: Optional[str] = None) -> List[ExecutionRecord]:
    """Parse execution records.

    Accepts a record list, ``{"records": [...]}``, or raw observation output
    ``{"promises": [...], "observations": [...], "skips": [...]}``.
    """

    if isinstance(document, dict) and "promises" in document:
        promises = document.get("promises")
        if not isinstance(promises, list) or not all(isinstance(item, str) for item in promises):
            raise IngestError(["promises must be a list of promise ids"], source)
        observations = document.get("observations") or []
        skips = document.get("skips") or []
        if not all(isinstance(item, dict) for item in [*observations, *skips]):
            raise IngestError(["observations and skips must be lists of objects"], source)
        try:
            return create_execution_records(promises, observations, skips)
        except ValueError as exc:
            raise IngestError([str(exc)], source) from exc

    records: List[ExecutionRecord] = []
    errors: List[str] = []
    for index, raw in enumerate(_items(document, "records", source)):
        try:
            records.append(ExecutionRecordDoc.model_validate(raw).to_model())
        except ValidationError as exc:
            errors.extend(_format_validation_error(f"records[{index}]", exc))
    if errors:
        raise IngestError(errors, source)
    return records


def read_json_document(path: Path | str) -> Any:
    target = Path(path)
    try:
        return json.loads(target.read_text(encoding="utf-8"))
    except OSError as exc:
        raise IngestError([f"unreadable: {exc.strerror or exc}"], str(target)) from exc
    except UnicodeDecodeError as exc:
        raise IngestError([f"not UTF-8: byte {exc.start}"], str(target)) from exc
    except json.JSONDecodeError as exc:
        raise IngestError([f"invalid JSON at line {exc.lineno}: {exc.msg}"], str(target)) from exc


def load_findings(path: Path | str) -> List[Finding]:
    return parse_findings(read_json_document(path), source=str(path))


def load_execution_records(path: Path | str) -> List[ExecutionRecord]:
    return parse_execution_records(read_json_document(path), source=str(path))


__all__ = [
    "ExecutionRecordDoc",
    "FindingDoc",
    "IngestError",
    "load_execution_records",
    "load_findings",
    "parse_execution_records",
    "parse_findings",
    "read_json_document",
]
