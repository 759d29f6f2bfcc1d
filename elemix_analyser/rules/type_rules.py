#!/usr/bin/env python3
"""
Binding type rules.

Asks the type oracle whether the expression bound to a prop or emit is
assignable to the declared type.
"""

from typing import List, Optional

from ..logging import get_logger
from ..models import BindingKind, Diagnostic, DiagnosticCode, PropDeclaration, TemplateExpressionBinding
from ..positions import binding_key_offset
from ..registry import MetadataRegistry
from ..types import TypeOracle

logger = get_logger(__name__)


class TypeRuleChecker:
    """Checker for prop and emit binding types."""

    def __init__(self, registry: MetadataRegistry, oracle: TypeOracle):
        self.registry = registry
        self.oracle = oracle

    def check_binding_types(self, file_path: str) -> List[Diagnostic]:
        """Check every actionable binding in a file; oracle failures skip that binding only."""
        errors = []
        for scan in self.registry.template_scans(file_path):
            for binding in scan.bindings:
                if not binding.is_actionable:
                    continue
                try:
                    error = self._check_binding(file_path, scan.template_start, binding)
                except Exception as exc:
                    logger.warning(
                        "Type check skipped for %s on <%s> in %s: %s",
                        binding.key, binding.component, file_path, exc
                    )
                    continue
                if error is not None:
                    errors.append(error)
        return errors

    def _check_binding(self, file_path: str, template_start: int,
                       binding: TemplateExpressionBinding) -> Optional[Diagnostic]:
        declaration = self.registry.find_component(binding.component)
        if declaration is None:
            return None
        is_prop = binding.binding_kind == BindingKind.PROP
        declared: Optional[PropDeclaration] = (
            declaration.find_prop(binding.key) if is_prop else declaration.find_emit(binding.key)
        )
        if declared is None or declared.type_handle is None or binding.bound_expression is None:
            return None

        provided = self.oracle.type_of_expression(binding.bound_expression)
        if self.oracle.is_assignable(provided, declared.type_handle):
            return None

        label = f"prop ':{binding.key}'" if is_prop else f"emit '@emits:{binding.key}'"
        return Diagnostic.create_error(
            file_path=file_path,
            start=binding_key_offset(template_start, binding),
            length=len(binding.key),
            message=(
                f"Type mismatch for {label} on <{binding.component}>. "
                f"Expected {declared.display_type}, but got {self.oracle.display(provided)}."
            ),
            code=DiagnosticCode.PROP_TYPE_MISMATCH if is_prop else DiagnosticCode.EMIT_TYPE_MISMATCH
        )
