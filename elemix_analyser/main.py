#!/usr/bin/env python3
"""
Main entry point for template checking.

Usage:
    elemix-check [path]
    python3 -m elemix_analyser.main [path] --mode serve
"""

import argparse
import sys
from pathlib import Path

from .checker import TemplateChecker
from .config import ConfigError, load_config
from .logging import configure_logging
from .reporter import TemplateReporter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check Elemix component templates against component declarations")
    parser.add_argument('target_path', nargs='?', default='src', help='Target directory to check (default: src)')
    parser.add_argument('--format', choices=['console', 'json'], default='console', help='Output format')
    parser.add_argument('--mode', choices=['build', 'serve'], default='build',
                        help='build: any diagnostic aborts (exit 1); serve: report only')
    parser.add_argument('--config', type=Path, help='Path to elemix.config.json')
    parser.add_argument('--output', default='test-results/elemix-check.json', help='JSON report file')
    parser.add_argument('--verbose', action='store_true', help='Log analyser internals')
    parser.add_argument('--log-file', type=Path, help='Also write logs to this file')
    return parser


def main(argv=None):
    """Main entry point for template checking."""
    args = build_parser().parse_args(argv)
    configure_logging(verbose=args.verbose, log_file=args.log_file)

    try:
        config = load_config(Path(args.target_path), args.config)
    except ConfigError as exc:
        print(f"[elemix-analyser]: {exc}", file=sys.stderr)
        sys.exit(2)

    # Run checks
    checker = TemplateChecker(args.target_path, config)
    results = checker.run_all_checks()

    # Report results
    reporter = TemplateReporter(args.output, checker.path_helper)
    success = reporter.report_results(results, format_type=args.format, mode=args.mode)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
