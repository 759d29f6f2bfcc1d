#!/usr/bin/env python3
"""
Component declaration extraction.

A class is a component when its base class is imported from the framework
module, directly (`extends Component`), through an alias
(`import { Component as Base }`) or a namespace (`extends ui.Component`), or
when it carries the framework's registration decorator. Its first generic
type argument is the props contract and its second the emits contract.
"""

import re
from typing import Iterable, List

from .config import AnalyserConfig
from .logging import get_logger
from .models import ComponentDeclaration, PropDeclaration
from .shared.typescript_parser import ClassDeclaration, SourceFile
from .template_scanner import find_slots
from .types import TypeHandle, TypeOracle

logger = get_logger(__name__)

NAME_SEGMENT_PATTERN = re.compile(r'[A-Z][a-z]+')


def is_multiword(name: str) -> bool:
    """Check if a component name has at least two capitalized segments (e.g. UserCard)."""
    return len(NAME_SEGMENT_PATTERN.findall(name)) >= 2


def mark_duplicated_components(declarations: List[ComponentDeclaration]) -> None:
    """Flag every declaration whose name is declared more than once."""
    counts = {}
    for declaration in declarations:
        counts[declaration.name] = counts.get(declaration.name, 0) + 1
    for declaration in declarations:
        declaration.is_duplicated = counts[declaration.name] > 1


class DeclarationExtractor:
    """Extracts component contracts from parsed source files."""

    def __init__(self, config: AnalyserConfig, oracle: TypeOracle):
        self.config = config
        self.oracle = oracle

    def extract_declarations(self, source_files: Iterable[SourceFile]) -> List[ComponentDeclaration]:
        """Extract declarations from all files and mark duplicated names."""
        declarations = []
        for source_file in source_files:
            declarations.extend(self.extract_from_file(source_file))
        mark_duplicated_components(declarations)
        return declarations

    def extract_from_file(self, source_file: SourceFile) -> List[ComponentDeclaration]:
        """Extract declarations from one file. Duplicate flags are left unset."""
        declarations = []
        for class_declaration in source_file.classes:
            if not self.is_component_class(source_file, class_declaration):
                continue
            arguments = class_declaration.type_arguments
            declarations.append(ComponentDeclaration(
                name=class_declaration.name,
                file_path=source_file.path,
                start=class_declaration.name_start,
                props=self._contract(arguments[0], source_file) if len(arguments) > 0 else [],
                emits=self._contract(arguments[1], source_file) if len(arguments) > 1 else [],
                slots=find_slots(source_file, class_declaration),
                is_multiword=is_multiword(class_declaration.name)
            ))
        return declarations

    def is_component_class(self, source_file: SourceFile, class_declaration: ClassDeclaration) -> bool:
        """Check if a class extends a framework class or is registered with the framework decorator."""
        if class_declaration.base and self._from_framework(source_file, class_declaration.base):
            return True
        for decorator in class_declaration.decorators:
            imp = source_file.import_for(decorator.split('.')[0])
            if imp is None or not self.config.is_framework_module(imp.from_path):
                continue
            decorator_name = decorator.split('.')[-1] if imp.import_type == 'namespace' else imp.imported_name
            if decorator_name == self.config.component_decorator:
                return True
        if class_declaration.base:
            logger.debug("Skipping class %s: base %s is not a framework class",
                         class_declaration.name, class_declaration.base)
        return False

    def _from_framework(self, source_file: SourceFile, base: str) -> bool:
        head, _, member = base.partition('.')
        imp = source_file.import_for(head)
        if imp is None or not self.config.is_framework_module(imp.from_path):
            return False
        if member:
            return imp.import_type == 'namespace'
        return imp.import_type != 'namespace'

    def _contract(self, type_text: str, source_file: SourceFile) -> List[PropDeclaration]:
        handle = TypeHandle(type_text, source_file.path)
        return [
            PropDeclaration(
                key=member.name,
                display_type=self.oracle.display(member.type),
                type_handle=member.type,
                optional=member.optional
            )
            for member in self.oracle.members(handle)
        ]


__all__ = ["DeclarationExtractor", "is_multiword", "mark_duplicated_components"]
