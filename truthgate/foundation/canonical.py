# SPDX-License-Identifier: Apache-2.0
"""Canonical JSON and digest helpers for replay-safe truth artifacts."""

from __future__ import annotations

import json
from hashlib import sha256
from typing import Any


def canonical_json(payload: Any) -> str:
    """Return canonical JSON text for a payload.

    Sorted keys and compact separators keep the text stable across runs, so
    two equal decisions always serialize to the same bytes.
    """

    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def canonical_json_bytes(payload: Any) -> bytes:
    return canonical_json(payload).encode("utf-8")


def sha256_prefixed_digest(payload: bytes | str | Any) -> str:
    """Return ``sha256:<hex>`` for bytes, text, or a JSON-able structure."""

    if isinstance(payload, (bytes, bytearray)):
        material = bytes(payload)
    elif isinstance(payload, str):
        material = payload.encode("utf-8")
    else:
        material = canonical_json_bytes(payload)
    return f"sha256:{sha256(material).hexdigest()}"


__all__ = ["canonical_json", "canonical_json_bytes", "sha256_prefixed_digest"]
