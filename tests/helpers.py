"""
Test helpers for template analysis tests.

Builds in-memory programs from TypeScript snippets and runs the analyser
over them.
"""

import re
from typing import Dict, List, Optional, Tuple

from elemix_analyser.checker import collect_diagnostics, populate_registry
from elemix_analyser.config import AnalyserConfig
from elemix_analyser.models import Diagnostic
from elemix_analyser.program import Program
from elemix_analyser.registry import MetadataRegistry

PLACEHOLDER_PATTERN = re.compile(r'\$\{[^}]*\}')

USER_CARD = """
import { Component, html } from '@neuralfog/elemix';

type Props = {
    name: string;
    age?: number;
};

type Emits = {
    selected: (id: string) => void;
};

export class UserCard extends Component<Props, Emits> {
    template() {
        return html`<div class="card"><slot></slot><slot name="footer"></slot></div>`;
    }
}
"""


def build_program(files: Dict[str, str], config: Optional[AnalyserConfig] = None) -> Program:
    """Create a program from {path: source} without touching the filesystem."""
    program = Program(config)
    for path, text in files.items():
        program.add_file(path, text.strip() + "\n")
    return program


def analyse(files: Dict[str, str], config: Optional[AnalyserConfig] = None
            ) -> Tuple[Program, MetadataRegistry, List[Diagnostic]]:
    """Run extraction, scanning and the full diagnostic pipeline."""
    program = build_program(files, config)
    registry = MetadataRegistry()
    populate_registry(program, registry)
    return program, registry, collect_diagnostics(program, registry)


def codes(diagnostics: List[Diagnostic], file_path: Optional[str] = None) -> List[int]:
    return [d.code for d in diagnostics if file_path is None or d.file_path == file_path]


def with_code(diagnostics: List[Diagnostic], code: int) -> List[Diagnostic]:
    return [d for d in diagnostics if d.code == code]


def placeholders_of(body: str) -> List[Tuple[int, int]]:
    """Placeholder regions of a template body written with simple `${...}` expressions."""
    return [(m.start(), m.end()) for m in PLACEHOLDER_PATTERN.finditer(body)]
