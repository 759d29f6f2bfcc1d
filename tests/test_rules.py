"""
Tests for template validation rules.

Each rule is exercised through the full pipeline on small in-memory
projects; offsets are checked against the source text.
"""

import logging

from helpers import USER_CARD, analyse, codes, with_code

from elemix_analyser.config import AnalyserConfig
from elemix_analyser.models import DiagnosticCode
from elemix_analyser.rules import TypeRuleChecker

APP_PATH = "src/app-shell.ts"
CARD_IMPORT = "import { UserCard } from './user-card';"


def app(template, imports=CARD_IMPORT, fields="userName = 'Ada';"):
    return f"""
import {{ Component, html }} from '@neuralfog/elemix';
{imports}

export class AppShell extends Component {{
    {fields}

    template() {{
        return html`{template}`;
    }}
}}
"""


def analyse_app(template, **kwargs):
    config = kwargs.pop("config", None)
    program, registry, diagnostics = analyse(
        {"src/user-card.ts": USER_CARD, APP_PATH: app(template, **kwargs)}, config
    )
    return program.get_source_file(APP_PATH).text, diagnostics


class TestValidUsage:
    """Test suite for templates that produce no diagnostics."""

    def test_imported_component_with_props(self):
        _, diagnostics = analyse_app('<UserCard :name=${this.userName}></UserCard>')

        assert diagnostics == []

    def test_component_defined_in_same_file(self):
        _, _, diagnostics = analyse({"src/app-shell.ts": """
import { Component, html } from '@neuralfog/elemix';

export class LocalCard extends Component {}

export class AppShell extends Component {
    template() {
        return html`<LocalCard></LocalCard>`;
    }
}
        """})

        assert diagnostics == []

    def test_lowercase_tags_are_not_components(self):
        _, diagnostics = analyse_app('<div :title=${this.userName}><user-card></user-card></div>')

        assert codes(diagnostics, APP_PATH) == [DiagnosticCode.UNUSED_DECLARATION.value]


class TestImportRules:
    """Test suite for unimported and unknown components."""

    def test_not_imported(self):
        text, diagnostics = analyse_app('<UserCard :name=${this.userName}></UserCard>', imports="")

        [diagnostic] = diagnostics
        assert diagnostic.code == 9999
        assert diagnostic.message == "Component <UserCard> is used in template but not imported."
        assert diagnostic.start == text.index("<UserCard") + 1
        assert diagnostic.length == len("UserCard")
        assert (diagnostic.line, diagnostic.character) == (7, 21)

    def test_unknown_component(self):
        text, diagnostics = analyse_app('<GhostCard></GhostCard>')

        unknown = with_code(diagnostics, DiagnosticCode.UNKNOWN_COMPONENT.value)
        assert [d.message for d in unknown] == ["Component <GhostCard> does not exist."]
        assert unknown[0].start == text.index("<GhostCard") + 1
        assert with_code(diagnostics, DiagnosticCode.NOT_IMPORTED.value) == []

    def test_every_usage_is_reported(self):
        text, diagnostics = analyse_app(
            '<UserCard :name=${this.userName}></UserCard><UserCard :name=${this.userName}></UserCard>',
            imports=""
        )

        starts = [d.start for d in with_code(diagnostics, 9999)]
        assert starts == [text.index("<UserCard") + 1, text.rindex("<UserCard") + 1]


class TestUnusedImportSuppression:
    """Test suite for host unused-import diagnostics."""

    def test_single_unused_import_is_reported_at_its_name(self):
        _, _, diagnostics = analyse({"src/view.ts": """
import { html } from '@neuralfog/elemix';
import { TodoItem } from './todo-item';

export const view = html`<div></div>`;
        """})

        [diagnostic] = diagnostics
        assert diagnostic.code == 6133
        assert diagnostic.message == "'TodoItem' is declared but its value is never read."
        assert diagnostic.line == 1
        assert diagnostic.character == len("import { ")

    def test_whole_statement_unused(self):
        program, _, diagnostics = analyse({"src/view.ts": """
import { html } from '@neuralfog/elemix';
import { UserCard, TodoItem } from './components';

export const view = html`<div></div>`;
        """})

        [diagnostic] = diagnostics
        assert diagnostic.code == 6192
        assert diagnostic.message == "All imports in import declaration are unused."
        assert diagnostic.start == program.get_source_file("src/view.ts").text.index("import { UserCard")

    def test_template_usage_suppresses_both_forms(self):
        _, _, diagnostics = analyse({
            "src/user-card.ts": USER_CARD,
            "src/view.ts": """
import { html } from '@neuralfog/elemix';
import { UserCard, TodoItem } from './components';

export const view = html`<UserCard :name=${'Ada'}></UserCard>`;
            """,
            "src/app-shell.ts": app('<UserCard :name=${this.userName}></UserCard>'),
        })

        assert diagnostics == []

    def test_partially_used_statement(self):
        _, _, diagnostics = analyse({"src/view.ts": """
import { html, Component } from '@neuralfog/elemix';

export const view = html`<div></div>`;
        """})

        assert [d.message for d in diagnostics] == ["'Component' is declared but its value is never read."]

    def test_reporting_can_be_disabled(self):
        _, _, diagnostics = analyse(
            {"src/view.ts": "import { TodoItem } from './todo-item';"},
            AnalyserConfig(report_unused_imports=False)
        )

        assert diagnostics == []


class TestNameRules:
    """Test suite for component naming."""

    def test_non_multiword_name(self):
        program, _, diagnostics = analyse({"src/card.ts": """
import { Component } from '@neuralfog/elemix';

export class Card extends Component {}
        """})

        [diagnostic] = diagnostics
        assert diagnostic.code == 9996
        assert diagnostic.message == 'Component <Card> must have a multiword name (e.g., "UserCard").'
        assert diagnostic.start == program.get_source_file("src/card.ts").text.index("Card")
        assert diagnostic.length == 4

    def test_duplicated_name_reported_at_each_declaration(self):
        program, _, diagnostics = analyse({
            "src/a/user-card.ts": USER_CARD,
            "src/b/user-card.ts": USER_CARD,
        })

        duplicated = with_code(diagnostics, DiagnosticCode.DUPLICATED_NAME.value)
        assert [d.file_path for d in duplicated] == ["src/a/user-card.ts", "src/b/user-card.ts"]
        assert duplicated[0].message == 'Duplicated component name detected: "<UserCard>"'
        text = program.get_source_file("src/a/user-card.ts").text
        assert duplicated[0].start == text.index("UserCard")


class TestPropRules:
    """Test suite for prop and emit attributes."""

    def test_missing_required_prop(self):
        text, diagnostics = analyse_app('<UserCard></UserCard>')

        [diagnostic] = diagnostics
        assert diagnostic.code == 9997
        assert diagnostic.message == "Component <UserCard> is missing required prop ':name'."
        assert diagnostic.start == text.index("<UserCard") + 1
        assert diagnostic.length == len("UserCard")

    def test_optional_props_are_not_required(self):
        _, diagnostics = analyse_app("<UserCard :name=${this.userName}></UserCard>")

        assert with_code(diagnostics, 9997) == []

    def test_unknown_prop(self):
        text, diagnostics = analyse_app('<UserCard :name=${this.userName} :nickname=${this.userName}></UserCard>')

        [diagnostic] = diagnostics
        assert diagnostic.code == 9990
        assert diagnostic.message == "Component <UserCard> does not declare prop ':nickname'."
        assert diagnostic.start == text.index(":nickname")
        assert diagnostic.length == len(":nickname")

    def test_unknown_emit(self):
        text, diagnostics = analyse_app(
            '<UserCard :name=${this.userName} @emits:clicked=${() => this.go()}></UserCard>'
        )

        [diagnostic] = diagnostics
        assert diagnostic.code == 9993
        assert diagnostic.message == "Component <UserCard> does not declare emit '@emits:clicked'."
        assert diagnostic.start == text.index("@emits:clicked")
        assert diagnostic.length == len("@emits:clicked")

    def test_duplicated_prop_reported_once(self):
        text, diagnostics = analyse_app(
            '<UserCard :name=${this.userName} :name=${this.userName} :name=${this.userName}></UserCard>'
        )

        [diagnostic] = diagnostics
        assert diagnostic.code == 9992
        assert diagnostic.message == "Duplicated prop declaration ':name' on <UserCard>."
        first = text.index(":name=")
        assert diagnostic.start == text.index(":name=", first + 1)

    def test_duplicated_emit(self):
        _, diagnostics = analyse_app(
            '<UserCard :name=${this.userName} @emits:selected=${this.pick} @emits:selected=${this.pick}></UserCard>',
            fields="userName = 'Ada';\n    pick = (id: string) => id;"
        )

        assert [d.message for d in diagnostics] == ["Duplicated emit declaration '@emits:selected' on <UserCard>."]


class TestTypeRules:
    """Test suite for binding type checks."""

    def test_prop_type_mismatch_unquoted(self):
        text, diagnostics = analyse_app('<UserCard :name=${this.userAge}></UserCard>', fields="userAge = 42;")

        [diagnostic] = diagnostics
        assert diagnostic.code == 9998
        assert diagnostic.message == "Type mismatch for prop ':name' on <UserCard>. Expected string, but got number."
        assert diagnostic.start == text.index("name=${this.userAge}")
        assert diagnostic.length == len("name")

    def test_prop_type_mismatch_quoted(self):
        text, diagnostics = analyse_app('<UserCard :name="${this.userAge}"></UserCard>', fields="userAge = 42;")

        [diagnostic] = diagnostics
        assert diagnostic.code == 9998
        assert diagnostic.start == text.index('name="${this.userAge}"')

    def test_emit_type_mismatch(self):
        text, diagnostics = analyse_app(
            '<UserCard :name=${this.userName} @emits:selected=${this.count}></UserCard>',
            fields="userName = 'Ada';\n    count = 3;"
        )

        [diagnostic] = diagnostics
        assert diagnostic.code == 9994
        assert diagnostic.message == (
            "Type mismatch for emit '@emits:selected' on <UserCard>. Expected (id: string) => void, but got number."
        )
        assert diagnostic.start == text.index("selected=${this.count}")

    def test_unresolved_expression_is_not_reported(self):
        _, diagnostics = analyse_app('<UserCard :name=${this.missing}></UserCard>')

        assert diagnostics == []

    def test_literal_bindings(self):
        _, diagnostics = analyse_app("<UserCard :name=${'Ada'} :age=${'old'}></UserCard>")

        assert codes(diagnostics) == [9998]

    def test_oracle_failure_skips_binding(self, caplog):
        program, registry, _ = analyse(
            {"src/user-card.ts": USER_CARD, APP_PATH: app('<UserCard :name=${this.userName}></UserCard>')}
        )

        class FailingOracle:
            def type_of_expression(self, expression):
                raise RuntimeError("no type information")

        with caplog.at_level(logging.WARNING, logger="elemix_analyser"):
            errors = TypeRuleChecker(registry, FailingOracle()).check_binding_types(APP_PATH)

        assert errors == []
        assert "Type check skipped" in caplog.text
