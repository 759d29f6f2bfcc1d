#!/usr/bin/env python3
"""
Component import rules.

Handles checking that components used in templates are imported, and keeps
the host's "declared but never used" diagnostics quiet for imports that are
only referenced from template markup.
"""

import re
from typing import Iterable, List, Optional

from ..logging import get_logger
from ..models import Diagnostic, DiagnosticCode
from ..program import Program
from ..registry import MetadataRegistry
from ..shared.typescript_parser import Import, SourceFile

logger = get_logger(__name__)

QUOTED_NAME_PATTERN = re.compile(r"'([^']+)'")

UNUSED_DECLARATION_MESSAGE = "'{name}' is declared but its value is never read."
UNUSED_IMPORT_DECLARATION_MESSAGE = "All imports in import declaration are unused."

SUPPRESSIBLE_CODES = {
    DiagnosticCode.UNUSED_DECLARATION.value,
    DiagnosticCode.UNUSED_IMPORT_DECLARATION.value,
}


class ImportRuleChecker:
    """Checker for template component imports."""

    def __init__(self, registry: MetadataRegistry, program: Program):
        self.registry = registry
        self.program = program

    def check_unimported_usages(self, file_path: str) -> List[Diagnostic]:
        """Check that every used component exists and is imported or defined in the file."""
        errors = []
        source_file = self.program.get_source_file(file_path)
        if source_file is None:
            return errors

        for used in self.registry.used_components.get(file_path, []):
            if self.registry.find_component(used.name) is None:
                errors.append(Diagnostic.create_error(
                    file_path=file_path,
                    start=used.start,
                    length=len(used.name),
                    message=f"Component <{used.name}> does not exist.",
                    code=DiagnosticCode.UNKNOWN_COMPONENT
                ))
                continue

            if source_file.import_for(used.name) is None and not source_file.defines_class(used.name):
                errors.append(Diagnostic.create_error(
                    file_path=file_path,
                    start=used.start,
                    length=len(used.name),
                    message=f"Component <{used.name}> is used in template but not imported.",
                    code=DiagnosticCode.NOT_IMPORTED
                ))

        return errors

    def suppress_unused_imports(self, diagnostics: Iterable[Diagnostic], file_path: str) -> List[Diagnostic]:
        """Drop host unused-import diagnostics of `file_path` for names used in its templates."""
        used_names = set(self.registry.used_names(file_path))
        if not used_names:
            return list(diagnostics)

        source_file = self.program.get_source_file(file_path)
        kept = []
        for diagnostic in diagnostics:
            if diagnostic.file_path == file_path and diagnostic.code in SUPPRESSIBLE_CODES:
                if self._is_template_usage(diagnostic, used_names, source_file):
                    logger.debug("Suppressed TS%d in %s: %s", diagnostic.code, file_path, diagnostic.message)
                    continue
            kept.append(diagnostic)
        return kept

    def _is_template_usage(self, diagnostic: Diagnostic, used_names: set, source_file: Optional[SourceFile]) -> bool:
        match = QUOTED_NAME_PATTERN.search(diagnostic.message)
        if match:
            return match.group(1) in used_names
        if source_file is None or diagnostic.start is None:
            return False
        # Whole-statement diagnostic: suppress when the statement binds a used name
        for imp in source_file.imports:
            if imp.start <= diagnostic.start < imp.end and imp.name in used_names:
                return True
        return False

    def find_unused_imports(self, file_path: str) -> List[Diagnostic]:
        """Host-style unused-import diagnostics for one file.

        A statement whose bindings are all unused yields one whole-statement
        diagnostic when it has several bindings, otherwise each unused
        binding is reported at its name.
        """
        source_file = self.program.get_source_file(file_path)
        if source_file is None:
            return []

        used = source_file.used_identifiers()
        statements = {}
        for imp in source_file.imports:
            statements.setdefault((imp.start, imp.end), []).append(imp)

        errors = []
        for (start, end), bindings in statements.items():
            unused = [imp for imp in bindings if imp.name not in used]
            if not unused:
                continue
            if len(unused) == len(bindings) and len(bindings) > 1:
                errors.append(Diagnostic.create_error(
                    file_path=file_path,
                    start=start,
                    length=end - start,
                    message=UNUSED_IMPORT_DECLARATION_MESSAGE,
                    code=DiagnosticCode.UNUSED_IMPORT_DECLARATION
                ))
                continue
            for imp in unused:
                errors.append(Diagnostic.create_error(
                    file_path=file_path,
                    start=_binding_offset(source_file, imp),
                    length=len(imp.name),
                    message=UNUSED_DECLARATION_MESSAGE.format(name=imp.name),
                    code=DiagnosticCode.UNUSED_DECLARATION
                ))
        return errors


def _binding_offset(source_file: SourceFile, imp: Import) -> int:
    """Offset of the local name of an import binding inside its statement."""
    statement = source_file.text[imp.start:imp.end]
    specifier_start = statement.rfind(imp.from_path)
    if specifier_start > 0:
        statement = statement[:specifier_start - 1]
    matches = list(re.finditer(r'(?<![\w$])' + re.escape(imp.name) + r'(?![\w$])', statement))
    if not matches:
        return imp.start
    # The local name follows `as` for aliases, so the last occurrence wins
    return imp.start + matches[-1].start()
