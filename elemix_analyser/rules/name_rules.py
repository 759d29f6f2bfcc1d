#!/usr/bin/env python3
"""
Component naming rules.
"""

from typing import List

from ..models import ComponentDeclaration, Diagnostic, DiagnosticCode
from ..registry import MetadataRegistry


class NameRuleChecker:
    """Checker for component naming conventions."""

    def __init__(self, registry: MetadataRegistry):
        self.registry = registry

    def check_multiword_names(self, file_path: str) -> List[Diagnostic]:
        """Check that components declared in a file have multiword names."""
        errors = []
        for declaration in self.registry.declarations_for(file_path):
            if not declaration.is_multiword:
                errors.append(self._name_error(
                    declaration,
                    f'Component <{declaration.name}> must have a multiword name (e.g., "UserCard").',
                    DiagnosticCode.NON_MULTIWORD_NAME
                ))
        return errors

    def check_duplicated_names(self, file_path: str) -> List[Diagnostic]:
        """Report each occurrence of a duplicated component name at its own declaration."""
        errors = []
        for declaration in self.registry.declarations_for(file_path):
            if declaration.is_duplicated:
                errors.append(self._name_error(
                    declaration,
                    f'Duplicated component name detected: "<{declaration.name}>"',
                    DiagnosticCode.DUPLICATED_NAME
                ))
        return errors

    def _name_error(self, declaration: ComponentDeclaration, message: str, code: DiagnosticCode) -> Diagnostic:
        file_path, start = declaration.source_location
        return Diagnostic.create_error(
            file_path=file_path,
            start=start,
            length=len(declaration.name),
            message=message,
            code=code
        )
