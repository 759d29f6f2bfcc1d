"""
Tests for the diagnostic pipeline.
"""

import logging

from helpers import USER_CARD, build_program

from elemix_analyser.checker import populate_registry
from elemix_analyser.models import Diagnostic, DiagnosticCode
from elemix_analyser.registry import MetadataRegistry
from elemix_analyser.validator import (
    DEFAULT_PIPELINE,
    ValidationContext,
    check_imports,
    check_names,
    run_pipeline,
    suppress_template_imports,
)

UNIMPORTED_APP = """
import { Component, html } from '@neuralfog/elemix';

export class AppShell extends Component {
    template() {
        return html`<UserCard :name=${'Ada'}></UserCard>`;
    }
}
"""

SHORT_NAME = """
import { Component } from '@neuralfog/elemix';

export class Card extends Component {}
"""


def make_context(files, file_path=None):
    program = build_program(files)
    registry = MetadataRegistry()
    populate_registry(program, registry)
    return ValidationContext(registry=registry, program=program, oracle=program.oracle, file_path=file_path)


class TestRunPipeline:
    """Test suite for stage sequencing."""

    def test_default_pipeline_order(self):
        assert [stage.__name__ for stage in DEFAULT_PIPELINE] == [
            "suppress_template_imports",
            "check_imports",
            "check_names",
            "check_props",
            "check_types",
        ]

    def test_runs_every_file(self):
        context = make_context({
            "src/user-card.ts": USER_CARD,
            "src/app-shell.ts": UNIMPORTED_APP,
            "src/card.ts": SHORT_NAME,
        })

        diagnostics = run_pipeline([], context)

        assert [(d.file_path, d.code) for d in diagnostics] == [
            ("src/app-shell.ts", 9999),
            ("src/card.ts", 9996),
        ]

    def test_file_scoped_context(self):
        context = make_context({
            "src/user-card.ts": USER_CARD,
            "src/app-shell.ts": UNIMPORTED_APP,
            "src/card.ts": SHORT_NAME,
        }, file_path="src/card.ts")

        diagnostics = run_pipeline([], context)

        assert [d.code for d in diagnostics] == [9996]

    def test_failing_stage_keeps_other_results(self, caplog):
        context = make_context({
            "src/user-card.ts": USER_CARD,
            "src/app-shell.ts": UNIMPORTED_APP,
            "src/card.ts": SHORT_NAME,
        })

        def explode(prior, stage_context):
            raise ValueError("stage failure")

        with caplog.at_level(logging.WARNING, logger="elemix_analyser"):
            diagnostics = run_pipeline([], context, stages=(check_imports, explode, check_names))

        assert sorted(d.code for d in diagnostics) == [9996, 9999]
        assert "Stage explode failed" in caplog.text

    def test_diagnostics_are_located(self):
        context = make_context({"src/card.ts": SHORT_NAME})

        [diagnostic] = run_pipeline([], context)

        assert (diagnostic.line, diagnostic.character) == (2, len("export class "))

    def test_prior_diagnostics_pass_through(self):
        context = make_context({"src/card.ts": SHORT_NAME})
        foreign = Diagnostic(file_path="src/other.ts", start=None, length=0, message="host error", code=2304)

        diagnostics = run_pipeline([foreign], context)

        assert diagnostics[0] is foreign
        assert foreign.line is None


class TestSuppressionStage:
    """Test suite for the suppression stage on its own."""

    def test_drops_only_matching_names(self):
        context = make_context({
            "src/user-card.ts": USER_CARD,
            "src/app-shell.ts": UNIMPORTED_APP,
        }, file_path="src/app-shell.ts")
        used = Diagnostic.create_error(
            "src/app-shell.ts", 0, 8, "'UserCard' is declared but its value is never read.",
            DiagnosticCode.UNUSED_DECLARATION
        )
        unused = Diagnostic.create_error(
            "src/app-shell.ts", 0, 8, "'TodoItem' is declared but its value is never read.",
            DiagnosticCode.UNUSED_DECLARATION
        )
        elsewhere = Diagnostic.create_error(
            "src/user-card.ts", 0, 8, "'UserCard' is declared but its value is never read.",
            DiagnosticCode.UNUSED_DECLARATION
        )

        kept = suppress_template_imports([used, unused, elsewhere], context)

        assert kept == [unused, elsewhere]
