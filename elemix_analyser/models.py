#!/usr/bin/env python3
"""
Data models for template analysis.

Contains the declaration, usage, binding and diagnostic structures shared by
the extractor, the template scanner and the rule checkers.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple


COMPONENT_NAME_PATTERN = re.compile(r"[A-Z][A-Za-z0-9]*")


class Severity(Enum):
    """Diagnostic severity levels."""
    ERROR = "error"
    WARNING = "warning"


class DiagnosticCode(Enum):
    """Stable numeric diagnostic codes consumed by quick-fix tooling."""
    NOT_IMPORTED = 9999
    PROP_TYPE_MISMATCH = 9998
    MISSING_REQUIRED_PROP = 9997
    NON_MULTIWORD_NAME = 9996
    DUPLICATED_NAME = 9995
    EMIT_TYPE_MISMATCH = 9994
    UNKNOWN_EMIT = 9993
    DUPLICATED_BINDING = 9992
    UNKNOWN_COMPONENT = 9991
    UNKNOWN_PROP = 9990

    # Host analysis
    UNUSED_DECLARATION = 6133
    UNUSED_IMPORT_DECLARATION = 6192


class BindingKind(Enum):
    """Kind of attribute a template expression is bound to."""
    PROP = "prop"
    EMIT = "emit"


@dataclass
class PropDeclaration:
    """A declared prop or emit of a component contract."""
    key: str
    display_type: str
    type_handle: Any = None  # opaque, only handed back to the type oracle
    optional: bool = False


@dataclass
class ComponentDeclaration:
    """A class recognized as a component, with its contract."""
    name: str
    file_path: str
    start: int
    props: List[PropDeclaration] = field(default_factory=list)
    emits: List[PropDeclaration] = field(default_factory=list)
    slots: List[str] = field(default_factory=list)
    is_multiword: bool = False
    is_duplicated: bool = False

    @property
    def source_location(self) -> Tuple[str, int]:
        """File and offset of the class name token."""
        return self.file_path, self.start

    def find_prop(self, key: str) -> Optional[PropDeclaration]:
        for prop in self.props:
            if prop.key == key:
                return prop
        return None

    def find_emit(self, key: str) -> Optional[PropDeclaration]:
        for emit in self.emits:
            if emit.key == key:
                return emit
        return None

    def required_props(self) -> List[PropDeclaration]:
        return [prop for prop in self.props if not prop.optional]


@dataclass
class UsedComponent:
    """One `<ComponentName` occurrence inside a template."""
    name: str
    start: int
    end: int
    file_path: str
    import_specifier: Optional[str] = None


@dataclass
class TemplateExpressionBinding:
    """An embedded expression placeholder and the attribute it binds to.

    Offsets are relative to the template literal's opening backtick:
    ``relative_start`` points at the ``${`` marker, ``relative_end`` just past
    the closing ``}`` and ``key_start`` at the first character of the key.
    """
    relative_start: int
    relative_end: int
    bound_expression: Any = None
    component: Optional[str] = None
    binding_kind: Optional[BindingKind] = None
    key: Optional[str] = None
    quoted: bool = False
    key_start: Optional[int] = None

    @property
    def is_actionable(self) -> bool:
        return bool(self.component) and bool(self.key)


@dataclass
class AttributeToken:
    """A `:key=` or `@emits:key=` attribute of a tag."""
    kind: BindingKind
    key: str
    start: int  # relative to the template body, at the sigil
    length: int  # sigil + key


@dataclass
class TagToken:
    """An opening tag found by the template tokenizer."""
    name: str
    start: int  # relative to the template body, at '<'
    attributes: List[AttributeToken] = field(default_factory=list)
    props: Set[str] = field(default_factory=set)
    emits: Set[str] = field(default_factory=set)
    duplicate_props: List[AttributeToken] = field(default_factory=list)
    duplicate_emits: List[AttributeToken] = field(default_factory=list)
    static_attributes: Dict[str, str] = field(default_factory=dict)
    self_closing: bool = False

    @property
    def is_component(self) -> bool:
        return COMPONENT_NAME_PATTERN.fullmatch(self.name) is not None

    def add_attribute(self, attribute: AttributeToken) -> None:
        """Record an attribute, keeping first-seen keys and duplicates apart."""
        seen = self.props if attribute.kind == BindingKind.PROP else self.emits
        duplicates = self.duplicate_props if attribute.kind == BindingKind.PROP else self.duplicate_emits
        if attribute.key in seen:
            duplicates.append(attribute)
        else:
            seen.add(attribute.key)
        self.attributes.append(attribute)


@dataclass
class TemplateScan:
    """Tokenization result for one marker template."""
    file_path: str
    tag_start: int  # absolute offset of the marker identifier
    template_start: int  # absolute offset of the opening backtick
    body_start: int  # absolute offset right after the backtick
    tags: List[TagToken] = field(default_factory=list)
    bindings: List[TemplateExpressionBinding] = field(default_factory=list)
    is_nested: bool = False

    def component_tags(self) -> List[TagToken]:
        return [tag for tag in self.tags if tag.is_component]


@dataclass
class FileScan:
    """Usages and template scans for one source file."""
    file_path: str
    used_components: List[UsedComponent] = field(default_factory=list)
    templates: List[TemplateScan] = field(default_factory=list)


@dataclass
class Diagnostic:
    """A positioned diagnostic."""
    file_path: Optional[str]
    start: Optional[int]
    length: int
    message: str
    code: int
    severity: Severity = Severity.ERROR
    line: Optional[int] = None
    character: Optional[int] = None

    @classmethod
    def create_error(
        cls,
        file_path: Optional[str],
        start: Optional[int],
        length: int,
        message: str,
        code: DiagnosticCode
    ) -> "Diagnostic":
        """Create a diagnostic with ERROR severity."""
        return cls(
            file_path=file_path,
            start=start,
            length=length,
            message=message,
            code=code.value,
            severity=Severity.ERROR
        )

    @property
    def end(self) -> Optional[int]:
        if self.start is None:
            return None
        return self.start + self.length

    def to_dict(self) -> Dict:
        """Convert diagnostic to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "severity": self.severity.value,
            "message": self.message,
            "file": self.file_path,
            "start": self.start,
            "length": self.length,
            "line": self.line,
            "character": self.character,
        }


@dataclass
class CheckResults:
    """Results of a template check run."""
    diagnostics: List[Diagnostic] = field(default_factory=list)
    components: int = 0
    files: int = 0
    execution_time: float = 0.0
    target_path: str = "src"

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    def add_diagnostic(self, diagnostic: Diagnostic) -> None:
        self.diagnostics.append(diagnostic)

    def get_summary_by_code(self) -> Dict[int, int]:
        """Get count of diagnostics by code."""
        summary = {}
        for diagnostic in self.diagnostics:
            summary[diagnostic.code] = summary.get(diagnostic.code, 0) + 1
        return summary

    def get_summary_by_file(self) -> Dict[str, int]:
        """Get count of diagnostics by file."""
        summary = {}
        for diagnostic in self.diagnostics:
            if diagnostic.file_path:
                summary[diagnostic.file_path] = summary.get(diagnostic.file_path, 0) + 1
        return summary

    def has_errors(self) -> bool:
        """Check if there are any errors (not warnings)."""
        return len(self.errors) > 0

    def to_dict(self) -> Dict:
        """Convert results to dictionary for JSON serialization."""
        return {
            "timestamp": None,  # Will be set by reporter
            "target_path": self.target_path,
            "execution_time": self.execution_time,
            "summary": {
                "files": self.files,
                "components": self.components,
                "total_errors": len(self.errors),
                "total_warnings": len(self.warnings),
                "by_code": {str(code): count for code, count in self.get_summary_by_code().items()},
                "by_file": self.get_summary_by_file(),
            },
            "diagnostics": [d.to_dict() for d in self.diagnostics]
        }
