# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import os
import tempfile
from typing import Any, Callable

import pytest

# Loggers are created at import time, so the log dir must be set before truthgate loads.
os.environ.setdefault("TRUTHGATE_LOG_DIR", tempfile.mkdtemp(prefix="truthgate-logs-"))

from truthgate.foundation import SeededDeterminismProvider  # noqa: E402
from truthgate.guardrails.policy import default_policy  # noqa: E402
from truthgate.model import (  # noqa: E402
    Finding,
    NetworkSignals,
    Signals,
    TruthStatus,
    UiSignals,
    confidence_level,
)


def build_finding(**overrides: Any) -> Finding:
    fields: dict[str, Any] = {
        "id": "f-1",
        "type": "silent_failure",
        "status": TruthStatus.CONFIRMED,
        "confidence": 0.9,
        "signals": Signals(),
    }
    fields.update(overrides)
    fields.setdefault("confidence_level", confidence_level(fields["confidence"]))
    return Finding(**fields)


@pytest.fixture
def make_finding() -> Callable[..., Finding]:
    return build_finding


@pytest.fixture
def net_success_finding() -> Finding:
    return build_finding(
        signals=Signals(
            network=NetworkSignals(successful_requests=1, failed_requests=0),
            ui=UiSignals(changed=False),
        ),
    )


@pytest.fixture
def policy():
    return default_policy()


@pytest.fixture
def provider() -> SeededDeterminismProvider:
    return SeededDeterminismProvider()
