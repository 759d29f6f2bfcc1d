#!/usr/bin/env python3
"""
Component prop and emit attribute rules.

Checks each component tag in a file's templates against the declaration of
that component: required props present, no undeclared props or emits, no
attribute bound twice on the same tag.
"""

from typing import List

from ..models import AttributeToken, BindingKind, Diagnostic, DiagnosticCode, TagToken, TemplateScan
from ..positions import body_offset, tag_name_offset
from ..registry import MetadataRegistry


def attribute_label(kind: BindingKind, key: str) -> str:
    """Attribute as written in templates: `:key` or `@emits:key`."""
    return f":{key}" if kind == BindingKind.PROP else f"@emits:{key}"


class PropRuleChecker:
    """Checker for prop and emit attributes on component tags."""

    def __init__(self, registry: MetadataRegistry):
        self.registry = registry

    def check_required_props(self, file_path: str) -> List[Diagnostic]:
        """Check that every non-optional prop is provided, once per missing prop."""
        errors = []
        for scan, tag in self._component_tags(file_path):
            declaration = self.registry.find_component(tag.name)
            if declaration is None:
                continue
            for prop in declaration.required_props():
                if prop.key in tag.props:
                    continue
                errors.append(Diagnostic.create_error(
                    file_path=file_path,
                    start=tag_name_offset(scan.template_start, tag.start),
                    length=len(tag.name),
                    message=f"Component <{tag.name}> is missing required prop ':{prop.key}'.",
                    code=DiagnosticCode.MISSING_REQUIRED_PROP
                ))
        return errors

    def check_unknown_attributes(self, file_path: str) -> List[Diagnostic]:
        """Check that first-seen prop and emit keys are declared by the component."""
        errors = []
        for scan, tag in self._component_tags(file_path):
            declaration = self.registry.find_component(tag.name)
            if declaration is None:
                continue
            for attribute in _first_seen(tag):
                if attribute.kind == BindingKind.PROP and declaration.find_prop(attribute.key) is None:
                    errors.append(self._attribute_error(
                        scan, attribute,
                        f"Component <{tag.name}> does not declare prop ':{attribute.key}'.",
                        DiagnosticCode.UNKNOWN_PROP
                    ))
                elif attribute.kind == BindingKind.EMIT and declaration.find_emit(attribute.key) is None:
                    errors.append(self._attribute_error(
                        scan, attribute,
                        f"Component <{tag.name}> does not declare emit '@emits:{attribute.key}'.",
                        DiagnosticCode.UNKNOWN_EMIT
                    ))
        return errors

    def check_duplicated_attributes(self, file_path: str) -> List[Diagnostic]:
        """Report each prop or emit key bound more than once on a tag, once per key."""
        errors = []
        for scan, tag in self._component_tags(file_path):
            reported = set()
            for attribute in tag.duplicate_props + tag.duplicate_emits:
                if (attribute.kind, attribute.key) in reported:
                    continue
                reported.add((attribute.kind, attribute.key))
                kind_name = "prop" if attribute.kind == BindingKind.PROP else "emit"
                errors.append(self._attribute_error(
                    scan, attribute,
                    f"Duplicated {kind_name} declaration '{attribute_label(attribute.kind, attribute.key)}' on <{tag.name}>.",
                    DiagnosticCode.DUPLICATED_BINDING
                ))
        return errors

    def _component_tags(self, file_path: str):
        for scan in self.registry.template_scans(file_path):
            for tag in scan.component_tags():
                yield scan, tag

    def _attribute_error(self, scan: TemplateScan, attribute: AttributeToken, message: str,
                         code: DiagnosticCode) -> Diagnostic:
        return Diagnostic.create_error(
            file_path=scan.file_path,
            start=body_offset(scan.template_start, attribute.start),
            length=attribute.length,
            message=message,
            code=code
        )


def _first_seen(tag: TagToken) -> List[AttributeToken]:
    duplicates = {id(attribute) for attribute in tag.duplicate_props + tag.duplicate_emits}
    return [attribute for attribute in tag.attributes if id(attribute) not in duplicates]
