#!/usr/bin/env python3
"""
Shared utilities for TypeScript code analysis.

This module provides the source model used by the declaration extractor and
the template scanner: imports, classes, marker templates and declarations.
"""

from .typescript_parser import (
    ClassDeclaration,
    Import,
    SourceFile,
    TaggedTemplate,
    TemplateSpan,
    TypeScriptParser,
    VariableDeclaration,
)

__all__ = [
    "ClassDeclaration",
    "Import",
    "SourceFile",
    "TaggedTemplate",
    "TemplateSpan",
    "TypeScriptParser",
    "VariableDeclaration",
]
