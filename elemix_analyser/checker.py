#!/usr/bin/env python3
"""
Main template checker orchestration.

Coordinates parsing, declaration extraction, usage scanning and the
diagnostic pipeline for a whole source tree.
"""

import time
from pathlib import Path
from typing import List, Optional

from .config import AnalyserConfig, load_config
from .declarations import DeclarationExtractor
from .logging import get_logger
from .models import CheckResults, Diagnostic
from .program import Program
from .registry import MetadataRegistry
from .rules import ImportRuleChecker
from .template_scanner import TemplateScanner
from .utils import PathHelper
from .validator import ValidationContext, run_pipeline

logger = get_logger(__name__)


def populate_registry(program: Program, registry: MetadataRegistry) -> None:
    """Extract declarations and scan usages of every file into `registry`."""
    extractor = DeclarationExtractor(program.config, program.oracle)
    scanner = TemplateScanner(program.config)
    registry.reset()
    for source_file in program.source_files():
        registry.publish_declarations(source_file.path, extractor.extract_from_file(source_file))
        registry.set_file_scan(source_file.path, scanner.scan_source_file(source_file))


def collect_diagnostics(program: Program, registry: MetadataRegistry) -> List[Diagnostic]:
    """Run the diagnostic pipeline once over the whole program."""
    host_diagnostics: List[Diagnostic] = []
    if program.config.report_unused_imports:
        import_checker = ImportRuleChecker(registry, program)
        for source_file in program.source_files():
            host_diagnostics.extend(import_checker.find_unused_imports(source_file.path))
    context = ValidationContext(registry=registry, program=program, oracle=program.oracle)
    return run_pipeline(host_diagnostics, context)


def run_diagnostics(program: Program, registry: MetadataRegistry) -> int:
    """Build-time entry point: populate the registry, validate, and return the diagnostic count."""
    populate_registry(program, registry)
    return len(collect_diagnostics(program, registry))


class TemplateChecker:
    """Main template checker that orchestrates all rule checking."""

    def __init__(self, target_path: str = "src", config: Optional[AnalyserConfig] = None):
        self.config = config or load_config(Path(target_path))
        self.path_helper = PathHelper(target_path, self.config.exclude_paths)
        self.registry = MetadataRegistry()
        self.program: Optional[Program] = None

    def run_all_checks(self) -> CheckResults:
        """Run all template checks and return results."""
        start_time = time.time()
        results = CheckResults(target_path=str(self.path_helper.target_path))

        if not self.path_helper.target_path.exists():
            logger.warning("Target path %s does not exist", self.path_helper.target_path)
            results.execution_time = time.time() - start_time
            return results

        # Single pass: parse every file, then extract and scan
        self.program = Program.from_directory(self.path_helper.target_path, self.config, self.path_helper)
        populate_registry(self.program, self.registry)

        for diagnostic in collect_diagnostics(self.program, self.registry):
            results.add_diagnostic(diagnostic)

        results.files = len(self.program)
        results.components = len(self.registry.components)
        results.execution_time = time.time() - start_time
        logger.debug("Checked %d files, %d components, %d diagnostics",
                     results.files, results.components, len(results.diagnostics))
        return results


__all__ = ["TemplateChecker", "collect_diagnostics", "populate_registry", "run_diagnostics"]
