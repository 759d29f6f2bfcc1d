#!/usr/bin/env python3
"""
Interactive language-service facade.

Editor integrations keep one `TemplateLanguageService` per project. Each edit
is fed through `update_file`, which re-parses the file and refreshes its
declarations and usages in the registry; the query methods then answer from
the registry:

- semantic diagnostics (host diagnostics passed through the pipeline),
- completions inside templates (component tags, `:prop` attributes) plus a
  new-component snippet,
- hover text for a component tag (props, slots, import line),
- "import component" quick fixes for unimported usages.
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .checker import populate_registry
from .declarations import DeclarationExtractor
from .logging import get_logger
from .models import Diagnostic, DiagnosticCode
from .program import Program
from .registry import MetadataRegistry
from .rules import ImportRuleChecker
from .shared.typescript_parser import SourceFile, TaggedTemplate
from .template_scanner import TemplateScanner
from .validator import ValidationContext, run_pipeline

logger = get_logger(__name__)

CURSOR_TAG_PATTERN = re.compile(r'^<\s*([A-Z][A-Za-z0-9]*)')
NOT_IMPORTED_PATTERN = re.compile(r'Component <(.*?)> is used in template but not imported')

NEW_COMPONENT_SNIPPET = """import {{ Component, html, type Template }} from '{framework}';
import {{ component }} from '{framework}/decorators';

@component()
export class {name} extends Component {{
    template(): Template {{
        return html``;
    }}
}}"""


@dataclass
class CompletionEntry:
    name: str
    kind: str
    insert_text: str
    sort_text: str = "0"
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class QuickInfo:
    text: str
    start: int
    length: int


@dataclass
class TextChange:
    start: int
    length: int
    new_text: str


@dataclass
class CodeFix:
    fix_name: str
    description: str
    file_path: str
    changes: List[TextChange] = field(default_factory=list)


def find_component_at_cursor(template_text: str, relative_offset: int) -> Tuple[Optional[str], bool]:
    """Component tag around a cursor in template text, and whether the cursor is inside that tag.

    Returns ``(None, False)`` when the nearest preceding tag is not a
    component tag.
    """
    if relative_offset < 0 or relative_offset > len(template_text):
        return None, False
    before = template_text[:relative_offset]
    open_angle = before.rfind('<')
    if open_angle == -1:
        return None, False
    close_angle = template_text.find('>', open_angle)
    fragment = template_text[open_angle:close_angle + 1] if close_angle != -1 else template_text[open_angle:]
    match = CURSOR_TAG_PATTERN.match(fragment)
    if not match:
        return None, False
    inside_tag = close_angle == -1 or relative_offset <= close_angle
    return match.group(1), inside_tag


def import_path(from_file: str, to_file: str) -> str:
    """Relative module specifier from one source file to another, without extension."""
    relative = os.path.relpath(to_file, os.path.dirname(from_file) or '.').replace(os.sep, '/')
    relative = re.sub(r'\.[tj]sx?$', '', relative)
    if not relative.startswith('.'):
        relative = './' + relative
    return relative


def import_insertion_offset(source_file: SourceFile) -> int:
    """Offset right after the last import statement, or 0."""
    offset = 0
    for imp in source_file.imports:
        end = imp.end
        while end > imp.start and source_file.text[end - 1].isspace():
            end -= 1
        offset = max(offset, end)
    return offset


class TemplateLanguageService:
    """Per-project facade answering editor queries from the metadata registry."""

    def __init__(self, program: Program, registry: Optional[MetadataRegistry] = None):
        self.program = program
        self.registry = registry or MetadataRegistry()
        self.extractor = DeclarationExtractor(program.config, program.oracle)
        self.scanner = TemplateScanner(program.config)
        populate_registry(self.program, self.registry)

    # File lifecycle

    def update_file(self, file_path: str, text: str) -> SourceFile:
        """Re-parse one file and refresh its declarations and usages."""
        source_file = self.program.add_file(file_path, text)
        self.registry.publish_declarations(source_file.path, self.extractor.extract_from_file(source_file))
        self.registry.set_file_scan(source_file.path, self.scanner.scan_source_file(source_file))
        logger.debug("Rescanned %s", source_file.path)
        return source_file

    def remove_file(self, file_path: str) -> None:
        source_file = self.program.get_source_file(file_path)
        if source_file is None:
            return
        self.registry.remove_file(source_file.path)
        self.program.remove_file(source_file.path)

    # Queries

    def get_semantic_diagnostics(
        self,
        file_path: str,
        host_diagnostics: Optional[Iterable[Diagnostic]] = None
    ) -> List[Diagnostic]:
        """Diagnostics for one file: host diagnostics after suppression, plus template diagnostics."""
        source_file = self.program.get_source_file(file_path)
        if source_file is None:
            return list(host_diagnostics or [])
        if host_diagnostics is None:
            host_diagnostics = []
            if self.program.config.report_unused_imports:
                host_diagnostics = ImportRuleChecker(self.registry, self.program).find_unused_imports(source_file.path)
        context = ValidationContext(
            registry=self.registry,
            program=self.program,
            oracle=self.program.oracle,
            file_path=source_file.path
        )
        return run_pipeline(host_diagnostics, context)

    def get_completions(self, file_path: str, offset: int) -> List[CompletionEntry]:
        """Completion entries at a cursor offset."""
        source_file = self.program.get_source_file(file_path)
        if source_file is None:
            return []

        entries = []
        template = self.template_at(source_file, offset)
        if template is not None:
            for component in self.registry.components:
                insert_text = f"<{component.name}></{component.name}>" if component.slots else f"<{component.name} />"
                entries.append(CompletionEntry(
                    name=component.name,
                    kind="class",
                    insert_text=insert_text,
                    data={"is_component": True, "name": component.name, "file": component.file_path}
                ))

            name, inside_tag = find_component_at_cursor(template.body, offset - template.body_start)
            component = self.registry.find_component(name) if name and inside_tag else None
            if component is not None:
                for prop in component.props:
                    entries.append(CompletionEntry(
                        name=f":{prop.key}",
                        kind="property",
                        insert_text=f":{prop.key}=${{}}"
                    ))

        class_name = os.path.splitext(os.path.basename(source_file.path))[0]
        entries.append(CompletionEntry(
            name="component~",
            kind="class",
            insert_text=NEW_COMPONENT_SNIPPET.format(framework=self.program.config.framework_module, name=class_name)
        ))
        return entries

    def get_quick_info(self, file_path: str, offset: int) -> Optional[QuickInfo]:
        """Hover text for the component tag under the cursor."""
        source_file = self.program.get_source_file(file_path)
        template = self.template_at(source_file, offset) if source_file else None
        if template is None:
            return None

        relative = offset - template.body_start
        name, inside_tag = find_component_at_cursor(template.body, relative)
        component = self.registry.find_component(name) if name and inside_tag else None
        if component is None:
            return None

        lines = [f"(alias) class {component.name}", ""]
        if component.props:
            lines.append("Props:")
            for prop in component.props:
                lines.append(f"  • {prop.key}{'?' if prop.optional else ''}: {prop.display_type}")
        if component.slots:
            lines.append("Slots:")
            for slot in component.slots:
                lines.append(f"  • {slot}")
        lines.append("")
        lines.append(f"import {{ {component.name} }} from '{import_path(source_file.path, component.file_path)}';")

        name_start = template.body.rfind('<', 0, relative) + 1
        name_start += len(template.body[name_start:]) - len(template.body[name_start:].lstrip())
        return QuickInfo(text="\n".join(lines), start=template.body_start + name_start, length=len(component.name))

    def get_code_fixes(self, file_path: str, start: int, end: int, error_codes: Iterable[int]) -> List[CodeFix]:
        """Quick fixes that add an import for each unimported usage covering [start, end]."""
        if DiagnosticCode.NOT_IMPORTED.value not in set(error_codes):
            return []
        source_file = self.program.get_source_file(file_path)
        if source_file is None:
            return []

        insertion = import_insertion_offset(source_file)
        prefix = '' if insertion == 0 or source_file.text[insertion - 1] == '\n' else '\n'

        fixes = []
        fixed = set()
        for diagnostic in self.get_semantic_diagnostics(file_path, host_diagnostics=[]):
            if diagnostic.code != DiagnosticCode.NOT_IMPORTED.value or diagnostic.start is None:
                continue
            if not (diagnostic.start <= start and diagnostic.end >= end):
                continue
            match = NOT_IMPORTED_PATTERN.search(diagnostic.message)
            if not match or match.group(1) in fixed:
                continue
            name = match.group(1)
            fixed.add(name)
            component = self.registry.find_component(name)
            if component is None:
                continue
            specifier = import_path(source_file.path, component.file_path)
            fixes.append(CodeFix(
                fix_name="importComponent",
                description=f"Import component {name}",
                file_path=source_file.path,
                changes=[TextChange(
                    start=insertion,
                    length=0,
                    new_text=f"{prefix}import {{ {name} }} from '{specifier}';"
                )]
            ))
        return fixes

    def template_at(self, source_file: SourceFile, offset: int) -> Optional[TaggedTemplate]:
        """Innermost marker template whose literal text contains `offset`."""
        found = None
        for template in source_file.templates:
            if template.body_start <= offset < template.end and (found is None or template.start > found.start):
                found = template
        if found is None:
            return None
        for span in found.spans:
            if span.start < offset < span.end:
                # Inside embedded code, not template text
                return None
        return found


__all__ = [
    "CodeFix",
    "CompletionEntry",
    "QuickInfo",
    "TemplateLanguageService",
    "TextChange",
    "find_component_at_cursor",
    "import_insertion_offset",
    "import_path",
]
