"""Elemix template analysis package."""

from .checker import TemplateChecker, run_diagnostics
from .config import AnalyserConfig, load_config
from .models import (
    CheckResults,
    ComponentDeclaration,
    Diagnostic,
    DiagnosticCode,
    PropDeclaration,
    Severity,
    TemplateExpressionBinding,
    UsedComponent,
)
from .program import Program
from .registry import MetadataRegistry
from .service import TemplateLanguageService

__all__ = [
    "AnalyserConfig",
    "CheckResults",
    "ComponentDeclaration",
    "Diagnostic",
    "DiagnosticCode",
    "MetadataRegistry",
    "Program",
    "PropDeclaration",
    "Severity",
    "TemplateChecker",
    "TemplateExpressionBinding",
    "TemplateLanguageService",
    "UsedComponent",
    "load_config",
    "run_diagnostics",
]
