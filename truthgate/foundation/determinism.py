# SPDX-License-Identifier: Apache-2.0
"""Injected clock providers.

Evaluation code never reads the wall clock directly. Anything that stamps a
time on a truth artifact takes a provider, so a seeded provider can replay a
run byte for byte.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Mapping, Protocol

TRUTHY_VALUES = frozenset({"1", "true", "yes", "on"})


class RuntimeDeterminismProvider(Protocol):
    """Clock interface for replay-safe truth decisions."""

    @property
    def deterministic(self) -> bool: ...

    def now_utc(self) -> datetime: ...

    def iso_now(self) -> str: ...


class SystemDeterminismProvider:
    """Live provider (non-deterministic)."""

    deterministic = False

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)

    def iso_now(self) -> str:
        return self.now_utc().replace(microsecond=0).isoformat().replace("+00:00", "Z")


class SeededDeterminismProvider:
    """Fixed-clock provider for strict replay and tests."""

    deterministic = True

    def __init__(self, seed: str = "truthgate", fixed_now: datetime | None = None) -> None:
        self.seed = str(seed)
        base = fixed_now or datetime(2026, 1, 1, tzinfo=timezone.utc)
        self._now = base.astimezone(timezone.utc)

    def now_utc(self) -> datetime:
        return self._now

    def iso_now(self) -> str:
        return self._now.replace(microsecond=0).isoformat().replace("+00:00", "Z")


def default_provider(environ: Mapping[str, str] | None = None) -> RuntimeDeterminismProvider:
    env = os.environ if environ is None else environ
    if env.get("TRUTHGATE_FORCE_DETERMINISTIC_PROVIDER", "").strip().lower() in TRUTHY_VALUES:
        return SeededDeterminismProvider(seed=env.get("TRUTHGATE_DETERMINISTIC_SEED", "").strip() or "truthgate")
    return SystemDeterminismProvider()


__all__ = [
    "TRUTHY_VALUES",
    "RuntimeDeterminismProvider",
    "SystemDeterminismProvider",
    "SeededDeterminismProvider",
    "default_provider",
]
