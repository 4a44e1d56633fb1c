# SPDX-License-Identifier: Apache-2.0
"""Process exit codes for a truth gate run. Higher is worse."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    FINDINGS = 20
    INCOMPLETE = 30
    EVIDENCE_VIOLATION = 50
    USAGE_ERROR = 64


__all__ = ["ExitCode"]
