# SPDX-License-Identifier: Apache-2.0
"""Truth gate over a run's findings and execution records."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Iterable

try:
    from truthgate.config import load_settings
except ModuleNotFoundError:  # pragma: no cover - direct script execution
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    from truthgate.config import load_settings

from truthgate.exit_codes import ExitCode
from truthgate.foundation import default_provider
from truthgate.guardrails.policy import PolicyInvalid, PolicyStore
from truthgate.guardrails.report import build_guardrails_report, write_guardrails_report
from truthgate.ingest import IngestError, load_execution_records, load_findings
from truthgate.run import run_truth_pipeline


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Decide whether a run's findings and coverage can be trusted.")
    parser.add_argument("--findings", type=Path, help="JSON list of findings (or {\"findings\": [...]})")
    parser.add_argument("--records", type=Path, help="JSON list of execution records (or {\"records\": [...]})")
    parser.add_argument("--policy", type=Path, help="Custom guardrails policy JSON (default: compiled-in policy)")
    parser.add_argument("--base-dir", type=Path, help="Directory relative policy paths resolve against")
    parser.add_argument("--min-coverage", type=float, help="Minimum coverage ratio in [0, 1]")
    parser.add_argument("--strict", action="store_true", default=None, help="INCOMPLETE coverage fails the run")
    parser.add_argument("--report", type=Path, help="Write the guardrails report to this path")
    parser.add_argument("--max-workers", type=int, help="Worker threads for per-finding evaluation")
    parser.add_argument("--validate-policy", type=Path, metavar="POLICY", help="Only validate a policy file and exit")
    return parser


def _usage_error(message: str) -> int:
    print(message, file=sys.stderr)
    return int(ExitCode.USAGE_ERROR)


def main(argv: Iterable[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = load_settings()
    except ValueError as exc:
        return _usage_error(str(exc))

    store = PolicyStore(base_dir=args.base_dir)
    if args.validate_policy is not None:
        try:
            policy = store.load(args.validate_policy)
        except PolicyInvalid as exc:
            return _usage_error(str(exc))
        print(json.dumps({"ok": True, "policy": policy.report()}, indent=2, sort_keys=True))
        return int(ExitCode.SUCCESS)

    if args.findings is None or args.records is None:
        return _usage_error("--findings and --records are required")

    min_coverage = args.min_coverage if args.min_coverage is not None else settings.min_coverage
    if not 0.0 <= min_coverage <= 1.0:
        return _usage_error(f"--min-coverage must be within [0, 1], got {min_coverage}")
    max_workers = args.max_workers if args.max_workers is not None else settings.max_workers
    if max_workers <= 0:
        return _usage_error(f"--max-workers must be positive, got {max_workers}")
    strict = args.strict if args.strict is not None else settings.strict_coverage

    # The policy is loaded before any input is read so a bad policy aborts the run.
    try:
        policy = store.load(args.policy if args.policy is not None else settings.policy_path)
    except PolicyInvalid as exc:
        return _usage_error(str(exc))

    try:
        findings = load_findings(args.findings)
        records = load_execution_records(args.records)
    except IngestError as exc:
        return _usage_error(str(exc))

    provider = default_provider()
    run = run_truth_pipeline(
        findings,
        records,
        policy,
        provider=provider,
        min_coverage=min_coverage,
        strict=strict,
        max_workers=max_workers,
    )

    if args.report is not None:
        report = build_guardrails_report(run.pipeline.results, policy, provider, run.pipeline.errors)
        write_guardrails_report(report, args.report)

    print(json.dumps(run.to_dict(), indent=2, sort_keys=True))
    return run.outcome.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
