# SPDX-License-Identifier: Apache-2.0
"""Foundation primitives shared by the guardrails and coverage layers."""

from truthgate.foundation.canonical import canonical_json, canonical_json_bytes, sha256_prefixed_digest
from truthgate.foundation.determinism import (
    RuntimeDeterminismProvider,
    SeededDeterminismProvider,
    SystemDeterminismProvider,
    default_provider,
)

__all__ = [
    "RuntimeDeterminismProvider",
    "SeededDeterminismProvider",
    "SystemDeterminismProvider",
    "canonical_json",
    "canonical_json_bytes",
    "default_provider",
    "sha256_prefixed_digest",
]
