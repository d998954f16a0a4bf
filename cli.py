"""
lex-preprocessing: Data-quality driven preprocessing

CLI interface for inspecting and cleaning training datasets.

Usage:
    lex-preprocessing analyze <dataset.csv> [OPTIONS]
    lex-preprocessing clean <dataset.csv> [OPTIONS]
"""

from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
from pathlib import Path

from lex_preprocessing import (
    CancellationToken,
    CsvDataProvider,
    FailurePolicy,
    IncrementalOrchestrator,
    InvalidConfigError,
    LexPreprocessingError,
    OutlierMethod,
    QualityConfig,
    QualityDetector,
    RuleApplicationProgress,
    RuleDiscovery,
    Severity,
    save_lineage,
)


def _build_config(args: argparse.Namespace) -> QualityConfig:
    builder = QualityConfig.builder()
    if args.label:
        builder.label_column(args.label)
    builder.outlier_method(OutlierMethod(args.outlier_method))
    builder.min_actionable_severity(Severity(args.min_severity))
    builder.n_jobs(args.jobs)
    if getattr(args, "max_iterations", None) is not None:
        builder.max_incremental_iterations(args.max_iterations)
    if getattr(args, "fail_fast", False):
        builder.failure_policy(FailurePolicy.FAIL_FAST)
    if getattr(args, "time_budget", None) is not None:
        builder.time_budget_seconds(args.time_budget)
    try:
        return builder.build()
    except ValueError as e:
        raise InvalidConfigError(str(e)) from e


def cmd_analyze(args: argparse.Namespace) -> int:
    """Report quality issues and the rules that would fix them."""
    dataset_path = Path(args.input)

    if not dataset_path.exists():
        print(f"Error: Dataset file not found: {dataset_path}")
        return 1

    config = _build_config(args)
    provider = CsvDataProvider(dataset_path)
    snapshot = provider.load()
    label = provider.select_label(snapshot, config.label_column)

    issues = QualityDetector(config).detect(snapshot, label)
    actionable = [i for i in issues if i.severity >= config.min_actionable_severity]
    rules = RuleDiscovery(config).discover(actionable)

    if args.json:
        payload = {
            "rows": snapshot.row_count,
            "columns": snapshot.column_names,
            "issues": [i.to_dict() for i in issues],
            "rules": [r.to_dict() for r in rules],
        }
        print(json.dumps(payload, indent=2, default=str))
        return 0

    print(f"Loaded {snapshot.row_count} rows, {len(snapshot.columns)} columns")
    if not issues:
        print("\nNo quality issues found.")
        return 0

    print(f"\nQuality issues ({len(issues)}):")
    for issue in issues:
        print(f"  - {issue}")
        if issue.suggested_fix:
            print(f"      fix: {issue.suggested_fix}")

    print(f"\nProposed rules ({len(rules)}):")
    for rule in rules:
        print(f"  {rule.priority:3d}  {rule.id:40s} {rule.description}")

    return 0


def cmd_clean(args: argparse.Namespace) -> int:
    """Clean a dataset incrementally and write the result plus lineage."""
    dataset_path = Path(args.input)

    if not dataset_path.exists():
        print(f"Error: Dataset file not found: {dataset_path}")
        return 1

    config = _build_config(args)
    provider = CsvDataProvider(dataset_path)
    snapshot = provider.load()
    label = provider.select_label(snapshot, config.label_column)
    print(f"Loaded {snapshot.row_count} rows, {len(snapshot.columns)} columns")

    def on_progress(update: RuleApplicationProgress) -> None:
        pct = f"{update.percentage:.0%}"
        print(f"  [{pct:>4}] {update.message}")

    token = CancellationToken()
    orchestrator = (
        IncrementalOrchestrator.builder()
        .config(config)
        .on_progress(on_progress)
        .cancellation(token)
        .build()
    )

    # Ctrl-C stops at the next rule boundary instead of mid-rule
    previous_handler = signal.signal(signal.SIGINT, lambda *_: token.cancel())
    try:
        result = orchestrator.run(snapshot, label)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if token.cancelled:
        print("\n\nCleaning cancelled by user")

    print("\n" + "-" * 60)
    for record in result.history:
        bulk = record.result
        print(
            f"Iteration {record.iteration}: {bulk.successful_rules}/{bulk.total_rules} rules, "
            f"{bulk.total_rows_affected} rows affected"
        )
    status = "converged" if result.converged else "not converged"
    print(f"\nStatus: {status} ({result.stop_reason.value})")
    for warning in result.warnings:
        print(f"  remaining: {warning}")

    output_path = Path(args.output) if args.output else dataset_path.with_name(
        f"{dataset_path.stem}.clean.csv"
    )
    handoff = result.handoff()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    handoff.frame.to_csv(output_path, index=False)

    lineage_path = Path(args.lineage) if args.lineage else output_path.with_suffix(".lineage.json")
    save_lineage(handoff, lineage_path)

    print(f"\nCleaned data saved to: {output_path}")
    print(f"Lineage saved to: {lineage_path}")
    return 0 if result.converged else 2


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="lex-preprocessing: Data-quality driven preprocessing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("input", help="Input CSV file")
    common.add_argument("-l", "--label", help="Label column name")
    common.add_argument(
        "--min-severity",
        choices=[s.value for s in Severity],
        default=Severity.LOW.value,
        help="Lowest severity that requires a fix",
    )
    common.add_argument(
        "--outlier-method",
        choices=[m.value for m in OutlierMethod],
        default=OutlierMethod.IQR.value,
        help="Outlier detection method",
    )
    common.add_argument("-j", "--jobs", type=int, default=1, help="Parallel detection workers")
    common.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    # Analyze command
    analyze_parser = subparsers.add_parser(
        "analyze", parents=[common], help="Report quality issues"
    )
    analyze_parser.add_argument("--json", action="store_true", help="Print issues as JSON")

    # Clean command
    clean_parser = subparsers.add_parser("clean", parents=[common], help="Clean a dataset")
    clean_parser.add_argument("-o", "--output", help="Output CSV path")
    clean_parser.add_argument("--lineage", help="Lineage JSON path")
    clean_parser.add_argument(
        "--max-iterations", type=int, default=None, help="Maximum cleaning iterations"
    )
    clean_parser.add_argument(
        "--fail-fast", action="store_true", help="Stop at the first failed rule"
    )
    clean_parser.add_argument(
        "--time-budget", type=float, default=None, help="Seconds allowed per iteration"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "analyze":
            return cmd_analyze(args)
        elif args.command == "clean":
            return cmd_clean(args)
    except LexPreprocessingError as e:
        print(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
