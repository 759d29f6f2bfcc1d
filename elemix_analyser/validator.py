#!/usr/bin/env python3
"""
Diagnostic pipeline.

Validation is a fixed sequence of stages. Each stage is a plain function
``(prior_diagnostics, context) -> diagnostics`` scoped to one file: it may
drop diagnostics from the prior list (suppression) or append its own. The
pipeline runs every stage for every file; a stage that fails on a file is
logged and skipped for that file, keeping everything found so far.
"""

from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Sequence

from .logging import get_logger
from .models import Diagnostic
from .positions import line_and_character
from .program import Program
from .registry import MetadataRegistry
from .rules import ImportRuleChecker, NameRuleChecker, PropRuleChecker, TypeRuleChecker
from .types import TypeOracle

logger = get_logger(__name__)


@dataclass
class ValidationContext:
    """What a stage may look at. `file_path` limits a run to one file."""
    registry: MetadataRegistry
    program: Program
    oracle: TypeOracle
    file_path: Optional[str] = None

    def for_file(self, file_path: str) -> "ValidationContext":
        return replace(self, file_path=file_path)

    def file_paths(self) -> List[str]:
        """Files covered by this context, in program order."""
        if self.file_path is not None:
            return [self.file_path]
        paths = [source_file.path for source_file in self.program.source_files()]
        for path in self.registry.files:
            if path not in paths:
                paths.append(path)
        return paths


Stage = Callable[[List[Diagnostic], ValidationContext], List[Diagnostic]]


def suppress_template_imports(prior: List[Diagnostic], context: ValidationContext) -> List[Diagnostic]:
    """Drop host unused-import diagnostics for components used only in templates."""
    return ImportRuleChecker(context.registry, context.program).suppress_unused_imports(prior, context.file_path)


def check_imports(prior: List[Diagnostic], context: ValidationContext) -> List[Diagnostic]:
    checker = ImportRuleChecker(context.registry, context.program)
    return prior + checker.check_unimported_usages(context.file_path)


def check_names(prior: List[Diagnostic], context: ValidationContext) -> List[Diagnostic]:
    checker = NameRuleChecker(context.registry)
    return prior + checker.check_multiword_names(context.file_path) + checker.check_duplicated_names(context.file_path)


def check_props(prior: List[Diagnostic], context: ValidationContext) -> List[Diagnostic]:
    checker = PropRuleChecker(context.registry)
    return (
        prior
        + checker.check_required_props(context.file_path)
        + checker.check_unknown_attributes(context.file_path)
        + checker.check_duplicated_attributes(context.file_path)
    )


def check_types(prior: List[Diagnostic], context: ValidationContext) -> List[Diagnostic]:
    checker = TypeRuleChecker(context.registry, context.oracle)
    return prior + checker.check_binding_types(context.file_path)


DEFAULT_PIPELINE: Sequence[Stage] = (
    suppress_template_imports,
    check_imports,
    check_names,
    check_props,
    check_types,
)


def run_pipeline(
    prior: Iterable[Diagnostic],
    context: ValidationContext,
    stages: Sequence[Stage] = DEFAULT_PIPELINE
) -> List[Diagnostic]:
    """Run every stage for every file of the context and locate the results."""
    diagnostics = list(prior)
    for file_path in context.file_paths():
        file_context = context.for_file(file_path)
        for stage in stages:
            try:
                diagnostics = stage(diagnostics, file_context)
            except Exception as exc:
                logger.warning("Stage %s failed for %s: %s", stage.__name__, file_path, exc)
    locate_diagnostics(diagnostics, context.program)
    return diagnostics


def locate_diagnostics(diagnostics: Iterable[Diagnostic], program: Program) -> None:
    """Fill in zero-based line and character from each diagnostic's start offset."""
    for diagnostic in diagnostics:
        if diagnostic.start is None or diagnostic.line is not None:
            continue
        source_file = program.get_source_file(diagnostic.file_path)
        if source_file is not None:
            diagnostic.line, diagnostic.character = line_and_character(source_file.text, diagnostic.start)


__all__ = [
    "DEFAULT_PIPELINE",
    "Stage",
    "ValidationContext",
    "check_imports",
    "check_names",
    "check_props",
    "check_types",
    "locate_diagnostics",
    "run_pipeline",
    "suppress_template_imports",
]
