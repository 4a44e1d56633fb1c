# SPDX-License-Identifier: Apache-2.0
"""Environment-driven settings for a truth gate run."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from truthgate.foundation.determinism import TRUTHY_VALUES

DEFAULT_MIN_COVERAGE = 0.9
DEFAULT_MAX_WORKERS = 4
DEFAULT_LOG_DIR = Path("data/logs")

_FALSY = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class TruthGateSettings:
    policy_path: Optional[Path] = None
    min_coverage: float = DEFAULT_MIN_COVERAGE
    strict_coverage: bool = False
    max_workers: int = DEFAULT_MAX_WORKERS
    log_dir: Path = DEFAULT_LOG_DIR


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in TRUTHY_VALUES:
        return True
    if value in _FALSY:
        return False
    raise ValueError(f"invalid_setting:{name}")


def _ratio(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"invalid_setting:{name}") from exc
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"invalid_setting:{name}")
    return value


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"invalid_setting:{name}") from exc
    if value <= 0:
        raise ValueError(f"invalid_setting:{name}")
    return value


def resolve_log_dir(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    return Path((env.get("TRUTHGATE_LOG_DIR") or "").strip() or DEFAULT_LOG_DIR)


def load_settings(environ: Mapping[str, str] | None = None) -> TruthGateSettings:
    env = os.environ if environ is None else environ
    policy_raw = (env.get("TRUTHGATE_GUARDRAILS_POLICY") or "").strip()
    return TruthGateSettings(
        policy_path=Path(policy_raw) if policy_raw else None,
        min_coverage=_ratio(env, "TRUTHGATE_MIN_COVERAGE", DEFAULT_MIN_COVERAGE),
        strict_coverage=_flag(env, "TRUTHGATE_STRICT_COVERAGE", False),
        max_workers=_positive_int(env, "TRUTHGATE_MAX_WORKERS", DEFAULT_MAX_WORKERS),
        log_dir=resolve_log_dir(env),
    )


__all__ = ["TruthGateSettings", "load_settings", "resolve_log_dir", "DEFAULT_LOG_DIR", "DEFAULT_MIN_COVERAGE", "DEFAULT_MAX_WORKERS"]
