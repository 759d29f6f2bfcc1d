"""
Tests for template tokenization and usage scanning.
"""

from helpers import build_program, placeholders_of

from elemix_analyser.config import AnalyserConfig
from elemix_analyser.models import BindingKind
from elemix_analyser.template_scanner import (
    DEFAULT_SLOT,
    TemplateScanner,
    TemplateTokenizer,
    TokenizerState,
    find_slots,
)


def tokenize(body):
    tokenizer = TemplateTokenizer(body, placeholders_of(body))
    tokenizer.tokenize()
    return tokenizer


APP_SHELL = """
import { Component, html } from '@neuralfog/elemix';
import { UserCard } from './user-card';

export class AppShell extends Component {
    userName = 'Ada';

    template() {
        return html`<UserCard :name="${this.userName}"></UserCard>`;
    }
}
"""


class TestTemplateTokenizer:
    """Test suite for the template state machine."""

    def test_quoted_prop_binding(self):
        tokenizer = tokenize('<UserCard :name="${this.userName}"></UserCard>')

        [tag] = tokenizer.tags
        assert tag.name == "UserCard"
        assert tag.start == 0
        bound = tokenizer.bound[0]
        assert bound.quoted is True
        assert bound.attribute.kind == BindingKind.PROP
        assert bound.attribute.key == "name"
        assert bound.attribute.start == 10
        assert bound.attribute.length == len(":name")

    def test_unquoted_prop_binding(self):
        tokenizer = tokenize('<UserCard :name=${name}></UserCard>')

        assert tokenizer.bound[0].quoted is False
        assert tokenizer.bound[0].attribute.key == "name"
        assert tokenizer.state == TokenizerState.TEXT

    def test_emit_binding(self):
        tokenizer = tokenize('<UserCard @emits:selected=${this.onSelected}></UserCard>')

        attribute = tokenizer.bound[0].attribute
        assert attribute.kind == BindingKind.EMIT
        assert attribute.key == "selected"
        assert attribute.length == len("@emits:selected")
        assert tokenizer.tags[0].emits == {"selected"}

    def test_text_placeholders_are_not_bound(self):
        tokenizer = tokenize('<div>${this.label}</div><UserCard>${count}</UserCard>')

        assert tokenizer.bound == {}
        assert [tag.name for tag in tokenizer.tags] == ["div", "UserCard"]

    def test_other_attributes_are_not_bound(self):
        tokenizer = tokenize('<UserCard class=${classes} data-id="${id}"></UserCard>')

        assert tokenizer.bound == {}
        assert tokenizer.tags[0].props == set()

    def test_whitespace_before_placeholder_prevents_binding(self):
        spaced_value = tokenize('<UserCard :name="a ${name}"></UserCard>')
        detached_value = tokenize('<UserCard :name= ${name}></UserCard>')

        assert spaced_value.bound == {}
        assert detached_value.bound == {}

    def test_placeholder_after_literal_text_in_quoted_value(self):
        tokenizer = tokenize('<UserCard :name="a${name}"></UserCard>')

        assert tokenizer.bound[0].quoted is True

    def test_duplicated_attributes(self):
        tokenizer = tokenize('<UserCard :name=${a} :name=${b} :age=${c}></UserCard>')

        tag = tokenizer.tags[0]
        assert tag.props == {"name", "age"}
        assert [attribute.key for attribute in tag.duplicate_props] == ["name"]
        assert sorted(tokenizer.bound) == [0, 1, 2]

    def test_valueless_attribute_before_binding(self):
        tokenizer = tokenize('<UserCard disabled :name=${name}></UserCard>')

        assert tokenizer.bound[0].attribute.key == "name"

    def test_static_attributes_and_self_closing(self):
        tokenizer = tokenize('<slot name="footer"></slot><UserCard />')

        slot, card = tokenizer.tags
        assert slot.static_attributes == {"name": "footer"}
        assert not slot.is_component
        assert card.is_component
        assert card.self_closing

    def test_comments_are_skipped(self):
        tokenizer = tokenize('<!-- <FakeCard :a=${x}> --><RealCard></RealCard>')

        assert [tag.name for tag in tokenizer.tags] == ["RealCard"]
        assert tokenizer.bound == {}

    def test_closing_tags_are_not_usages(self):
        tokenizer = tokenize('</UserCard><UserCard></UserCard>')

        assert len(tokenizer.tags) == 1


class TestTemplateScanner:
    """Test suite for file-level scanning."""

    def test_used_component_offsets(self):
        program = build_program({"src/app-shell.ts": APP_SHELL})
        source_file = program.get_source_file("src/app-shell.ts")

        scan = TemplateScanner().scan_source_file(source_file)

        [used] = scan.used_components
        assert used.name == "UserCard"
        assert used.start == source_file.text.index("<UserCard") + 1
        assert used.end == used.start + len("UserCard")
        assert used.import_specifier == "./user-card"

    def test_binding_offsets_are_relative_to_backtick(self):
        program = build_program({"src/app-shell.ts": APP_SHELL})
        source_file = program.get_source_file("src/app-shell.ts")

        [template_scan] = TemplateScanner().scan_source_file(source_file).templates
        [binding] = template_scan.bindings

        assert binding.component == "UserCard"
        assert binding.key == "name"
        assert binding.quoted is True
        assert binding.relative_start == 18
        assert binding.key_start == 12
        backtick = template_scan.template_start
        assert source_file.text[backtick + binding.key_start:].startswith("name=")
        assert source_file.text[backtick + binding.relative_start:].startswith("${this.userName}")
        assert binding.bound_expression.text == "this.userName"
        assert binding.bound_expression.start == source_file.text.index("this.userName")
        assert binding.bound_expression.class_name == "AppShell"

    def test_nested_templates_report_each_usage_once(self):
        program = build_program({"src/todo.ts": """
import { html } from '@neuralfog/elemix';

const view = html`<TodoList>${items.map((item) => html`<TodoItem :item=${item}></TodoItem>`)}</TodoList>`;
        """})
        source_file = program.get_source_file("src/todo.ts")

        scan = TemplateScanner().scan_source_file(source_file)

        assert [used.name for used in scan.used_components] == ["TodoList", "TodoItem"]
        outer, inner = scan.templates
        assert outer.bindings == []
        assert not outer.is_nested
        assert inner.is_nested
        assert inner.bindings[0].component == "TodoItem"
        assert inner.bindings[0].bound_expression.class_name is None

    def test_bindings_on_lowercase_tags_have_no_component(self):
        program = build_program({"src/view.ts": "const view = html`<div :title=${title}></div>`;"})
        source_file = program.get_source_file("src/view.ts")

        [template_scan] = TemplateScanner().scan_source_file(source_file).templates

        assert template_scan.bindings[0].component is None
        assert not template_scan.bindings[0].is_actionable

    def test_custom_template_tag(self):
        config = AnalyserConfig(template_tag="tpl")
        program = build_program({"src/view.ts": """
const a = tpl`<UserCard></UserCard>`;
const b = html`<OtherCard></OtherCard>`;
        """}, config)

        scan = TemplateScanner(config).scan_source_file(program.get_source_file("src/view.ts"))

        assert [used.name for used in scan.used_components] == ["UserCard"]


class TestFindSlots:
    """Test suite for slot discovery."""

    def test_default_and_named_slots(self):
        program = build_program({"src/layout.ts": """
import { Component, html } from '@neuralfog/elemix';

export class PageLayout extends Component {
    template() {
        return html`<header><slot name="header"></slot></header><slot></slot><slot name="header"></slot>`;
    }
}

const outside = html`<slot name="ignored"></slot>`;
        """})
        source_file = program.get_source_file("src/layout.ts")

        slots = find_slots(source_file, source_file.classes[0])

        assert slots == ["header", DEFAULT_SLOT]
