#!/usr/bin/env python3
"""
Template check reporting module.

Handles result reporting, JSON output generation, and console summaries.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Optional

from .models import CheckResults, Diagnostic, DiagnosticCode
from .utils import PathHelper

REPORT_PREFIX = "[elemix-analyser]"


def format_diagnostic(diagnostic: Diagnostic, path_helper: Optional[PathHelper] = None) -> str:
    """One console line per diagnostic, with one-based line and column."""
    if diagnostic.file_path and diagnostic.line is not None:
        file_name = path_helper.display_path(Path(diagnostic.file_path)) if path_helper else diagnostic.file_path
        return (
            f"{REPORT_PREFIX}: {file_name} ({diagnostic.line + 1},{diagnostic.character + 1}): "
            f"[TS{diagnostic.code}] {diagnostic.message}"
        )
    return f"[{diagnostic.code}] {diagnostic.message}"


class TemplateReporter:
    """Handles reporting of template check results."""

    def __init__(self, output_file: str = "test-results/elemix-check.json", path_helper: Optional[PathHelper] = None):
        self.output_file = Path(output_file)
        self.path_helper = path_helper

    def report_results(self, results: CheckResults, format_type: str = "console", mode: str = "build") -> bool:
        """Report results to both JSON file and console. Returns True if the build may continue."""
        # Ensure output directory exists
        self.output_file.parent.mkdir(parents=True, exist_ok=True)

        # Write detailed JSON report
        self._write_json_report(results)

        # Display results based on format
        if format_type == "json":
            self._display_json_output(results)
        else:
            self._display_console_summary(results)

        if mode == "build" and results.diagnostics:
            print()
            print(f"{REPORT_PREFIX}: Build Aborted: {len(results.diagnostics)} template error(s) found")
            return False
        return True

    def _write_json_report(self, results: CheckResults) -> None:
        """Write detailed JSON report to file."""
        report_data = results.to_dict()
        report_data["timestamp"] = datetime.now().isoformat()

        with open(self.output_file, 'w') as f:
            json.dump(report_data, f, indent=2, default=str)

    def _display_console_summary(self, results: CheckResults) -> None:
        """Display diagnostics and summary information on console."""
        for diagnostic in results.diagnostics:
            print(format_diagnostic(diagnostic, self.path_helper))

        if not results.diagnostics:
            print(f"✅ Template check passed! ({results.components} components in {results.files} files)")
            print(f"Detailed report: {self.output_file}")
            return

        print()
        print("📊 Summary:")
        print("=" * 72)
        print(f"• Total errors: {len(results.errors)}")
        print(f"• Files checked: {results.files}")
        print(f"• Components found: {results.components}")
        print()

        code_summary = results.get_summary_by_code()
        if code_summary:
            print("🔍 By diagnostic code:")
            for code, count in sorted(code_summary.items(), reverse=True):
                print(f"  • TS{code} {_code_label(code)}: {count}")
            print()

        file_summary = results.get_summary_by_file()
        if file_summary:
            print("📁 By file:")
            for file_path, count in sorted(file_summary.items(), key=lambda x: x[1], reverse=True):
                name = self.path_helper.display_path(Path(file_path)) if self.path_helper else file_path
                print(f"  • {name}: {count}")
            print()

        print("📋 Detailed results:")
        print("-" * 72)
        print(f"Full report: {self.output_file}")
        print()

    def _display_json_output(self, results: CheckResults) -> None:
        """Display results in JSON format."""
        report_data = results.to_dict()
        report_data["timestamp"] = datetime.now().isoformat()
        print(json.dumps(report_data, indent=2, default=str))


def _code_label(code: int) -> str:
    try:
        return DiagnosticCode(code).name.lower().replace("_", " ")
    except ValueError:
        return "host"
