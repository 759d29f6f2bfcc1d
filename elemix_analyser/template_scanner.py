#!/usr/bin/env python3
"""
Template usage scanning.

Tokenizes every marker-tagged template of a source file and reports:
- the component tags it uses (`UsedComponent`, absolute offsets),
- the attribute each embedded expression placeholder is bound to
  (`TemplateExpressionBinding`, offsets relative to the template).

Tokenization is an explicit state machine over the template body. Placeholder
regions are treated as atomic markers: their text is never tokenized, and
the state the machine is in when it reaches one decides what the placeholder
is bound to. A nested marker template lives inside a placeholder of its
parent, so each tag is seen by exactly one template.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .config import AnalyserConfig
from .logging import get_logger
from .models import (
    AttributeToken,
    BindingKind,
    FileScan,
    TagToken,
    TemplateExpressionBinding,
    TemplateScan,
    UsedComponent,
)
from .positions import BACKTICK_WIDTH, tag_name_offset
from .shared.typescript_parser import ClassDeclaration, SourceFile, TaggedTemplate
from .types import ExpressionRef

logger = get_logger(__name__)

PROP_ATTRIBUTE_PATTERN = re.compile(r':(\w+)')
EMIT_ATTRIBUTE_PATTERN = re.compile(r'@emits:(\w+)')

SLOT_TAG = "slot"
DEFAULT_SLOT = "default"


class TokenizerState(Enum):
    """States of the template tokenizer."""
    TEXT = "text"
    IN_TAG_NAME = "in_tag_name"
    IN_ATTR_LIST = "in_attr_list"
    IN_ATTR_KEY = "in_attr_key"
    AWAITING_VALUE = "awaiting_value"
    IN_QUOTED_VALUE = "in_quoted_value"
    IN_UNQUOTED_VALUE = "in_unquoted_value"
    IN_COMMENT = "in_comment"
    IN_CLOSING_TAG = "in_closing_tag"


@dataclass
class BoundPlaceholder:
    """A placeholder that is the value of a prop or emit attribute."""
    index: int
    tag: TagToken
    attribute: AttributeToken
    quoted: bool


class TemplateTokenizer:
    """
    State machine over one template body.

    `placeholders` are (start, end) regions relative to the body, in order.
    After `tokenize()`, `tags` holds every opening tag (lowercase ones too)
    and `bound` maps placeholder indices to the attribute they are bound to.
    """

    def __init__(self, body: str, placeholders: List[Tuple[int, int]]):
        self.body = body
        self.placeholders = placeholders
        self.tags: List[TagToken] = []
        self.bound: Dict[int, BoundPlaceholder] = {}

        self.state = TokenizerState.TEXT
        self.tag: Optional[TagToken] = None
        self.name_start = 0
        self.key_start = 0
        self.key_has_placeholder = False
        self.attribute: Optional[AttributeToken] = None
        self.static_key: Optional[str] = None
        self.value_start = 0
        self.quote = ''
        self.value_detached = False  # whitespace between '=' and the value
        self.value_spaced = False  # whitespace inside the value so far
        self.value_has_placeholder = False

        self._handlers = {
            TokenizerState.TEXT: self._text,
            TokenizerState.IN_COMMENT: self._comment,
            TokenizerState.IN_CLOSING_TAG: self._closing_tag,
            TokenizerState.IN_TAG_NAME: self._tag_name,
            TokenizerState.IN_ATTR_LIST: self._attr_list,
            TokenizerState.IN_ATTR_KEY: self._attr_key,
            TokenizerState.AWAITING_VALUE: self._awaiting_value,
            TokenizerState.IN_QUOTED_VALUE: self._quoted_value,
            TokenizerState.IN_UNQUOTED_VALUE: self._unquoted_value,
        }

    def tokenize(self) -> List[TagToken]:
        starts = {start: (index, end) for index, (start, end) in enumerate(self.placeholders)}
        i = 0
        while i < len(self.body):
            if i in starts:
                index, end = starts[i]
                self._on_placeholder(index, i)
                i = max(end, i + 1)
                continue
            i = self._handlers[self.state](i)
        if self.state == TokenizerState.IN_TAG_NAME:
            self._end_tag_name(len(self.body))
        return self.tags

    # Character handlers; each returns the next offset to process.

    def _text(self, i: int) -> int:
        body = self.body
        if body.startswith('<!--', i):
            self.state = TokenizerState.IN_COMMENT
            return i + 4
        if body[i] == '<' and i + 1 < len(body):
            if body[i + 1] == '/':
                self.state = TokenizerState.IN_CLOSING_TAG
                return i + 2
            if body[i + 1].isalpha():
                self.tag = TagToken(name='', start=i)
                self.name_start = i + 1
                self.state = TokenizerState.IN_TAG_NAME
                return i + 1
        return i + 1

    def _comment(self, i: int) -> int:
        if self.body.startswith('-->', i):
            self.state = TokenizerState.TEXT
            return i + 3
        return i + 1

    def _closing_tag(self, i: int) -> int:
        if self.body[i] == '>':
            self.state = TokenizerState.TEXT
        return i + 1

    def _tag_name(self, i: int) -> int:
        ch = self.body[i]
        if ch.isalnum() or ch in '-_':
            return i + 1
        self._end_tag_name(i)
        return i

    def _attr_list(self, i: int) -> int:
        ch = self.body[i]
        if ch.isspace():
            return i + 1
        if ch == '>':
            self.state = TokenizerState.TEXT
            return i + 1
        if self.body.startswith('/>', i):
            self.tag.self_closing = True
            self.state = TokenizerState.TEXT
            return i + 2
        self._start_key(i)
        return i

    def _attr_key(self, i: int) -> int:
        ch = self.body[i]
        if ch == '=':
            self._end_key(i)
            self.state = TokenizerState.AWAITING_VALUE
            return i + 1
        if ch.isspace() or ch == '>' or self.body.startswith('/>', i):
            # Attribute without a value
            self.state = TokenizerState.IN_ATTR_LIST
            return i
        return i + 1

    def _awaiting_value(self, i: int) -> int:
        ch = self.body[i]
        if ch.isspace():
            self.value_detached = True
            return i + 1
        if ch in '"\'':
            self.quote = ch
            self.value_start = i + 1
            self.state = TokenizerState.IN_QUOTED_VALUE
            return i + 1
        if ch == '>' or self.body.startswith('/>', i):
            self.state = TokenizerState.IN_ATTR_LIST
            return i
        self.value_start = i
        self.state = TokenizerState.IN_UNQUOTED_VALUE
        return i + 1

    def _quoted_value(self, i: int) -> int:
        ch = self.body[i]
        if ch == self.quote:
            self._end_value(i)
            self.state = TokenizerState.IN_ATTR_LIST
            return i + 1
        if ch.isspace():
            self.value_spaced = True
        return i + 1

    def _unquoted_value(self, i: int) -> int:
        ch = self.body[i]
        if ch.isspace() or ch == '>' or self.body.startswith('/>', i):
            self._end_value(i)
            self.state = TokenizerState.IN_ATTR_LIST
            return i
        return i + 1

    def _on_placeholder(self, index: int, i: int) -> None:
        state = self.state
        if state == TokenizerState.IN_TAG_NAME:
            self._end_tag_name(i)
        elif state == TokenizerState.IN_ATTR_LIST:
            # Spread-like `${...}` in attribute position
            self._start_key(i)
            self.key_has_placeholder = True
        elif state == TokenizerState.IN_ATTR_KEY:
            self.key_has_placeholder = True
        elif state == TokenizerState.AWAITING_VALUE:
            self._bind(index, quoted=False)
            self.value_start = i
            self.value_has_placeholder = True
            self.state = TokenizerState.IN_UNQUOTED_VALUE
        elif state == TokenizerState.IN_QUOTED_VALUE:
            if not self.value_spaced:
                self._bind(index, quoted=True)
            self.value_has_placeholder = True
        elif state == TokenizerState.IN_UNQUOTED_VALUE:
            self._bind(index, quoted=False)
            self.value_has_placeholder = True

    # Transitions

    def _end_tag_name(self, i: int) -> None:
        self.tag.name = self.body[self.name_start:i]
        self.tags.append(self.tag)
        self.state = TokenizerState.IN_ATTR_LIST

    def _start_key(self, i: int) -> None:
        self.key_start = i
        self.key_has_placeholder = False
        self.attribute = None
        self.static_key = None
        self.value_detached = False
        self.value_spaced = False
        self.value_has_placeholder = False
        self.state = TokenizerState.IN_ATTR_KEY

    def _end_key(self, i: int) -> None:
        if self.key_has_placeholder:
            return
        key_text = self.body[self.key_start:i]
        for kind, pattern in ((BindingKind.PROP, PROP_ATTRIBUTE_PATTERN), (BindingKind.EMIT, EMIT_ATTRIBUTE_PATTERN)):
            match = pattern.fullmatch(key_text)
            if match:
                self.attribute = AttributeToken(kind=kind, key=match.group(1), start=self.key_start, length=len(key_text))
                self.tag.add_attribute(self.attribute)
                return
        self.static_key = key_text

    def _end_value(self, i: int) -> None:
        if self.static_key and not self.value_has_placeholder:
            self.tag.static_attributes.setdefault(self.static_key, self.body[self.value_start:i])

    def _bind(self, index: int, quoted: bool) -> None:
        if self.attribute is None or self.value_detached:
            return
        self.bound[index] = BoundPlaceholder(index=index, tag=self.tag, attribute=self.attribute, quoted=quoted)


def tokenize_template(template: TaggedTemplate) -> TemplateTokenizer:
    tokenizer = TemplateTokenizer(template.body, template.placeholders())
    tokenizer.tokenize()
    return tokenizer


class TemplateScanner:
    """Scans marker templates for component usages and expression bindings."""

    def __init__(self, config: Optional[AnalyserConfig] = None):
        self.config = config or AnalyserConfig()

    def scan_source_file(self, source_file: SourceFile) -> FileScan:
        """Scan every marker template of a file.

        Used components are ordered by source offset. Each tag belongs to
        exactly one template, so a nested template never repeats a usage
        already reported for its parent.
        """
        scans = [self.scan_template(source_file, template) for template in source_file.templates]

        used_components = []
        for scan in scans:
            for tag in scan.component_tags():
                start = tag_name_offset(scan.template_start, tag.start)
                imp = source_file.import_for(tag.name)
                used_components.append(UsedComponent(
                    name=tag.name,
                    start=start,
                    end=start + len(tag.name),
                    file_path=source_file.path,
                    import_specifier=imp.from_path if imp else None
                ))
        used_components.sort(key=lambda used: used.start)

        if scans:
            logger.debug("Scanned %d templates in %s (%d usages)", len(scans), source_file.path, len(used_components))
        return FileScan(file_path=source_file.path, used_components=used_components, templates=scans)

    def scan_template(self, source_file: SourceFile, template: TaggedTemplate) -> TemplateScan:
        """Tokenize one template and resolve its placeholder bindings."""
        tokenizer = tokenize_template(template)
        enclosing_class = source_file.class_at(template.start)

        bindings = []
        for index in sorted(tokenizer.bound):
            bound = tokenizer.bound[index]
            span = template.spans[index]
            attribute = bound.attribute
            bindings.append(TemplateExpressionBinding(
                relative_start=span.start - template.start,
                relative_end=span.end - template.start,
                bound_expression=ExpressionRef(
                    text=span.expression,
                    start=span.expression_start,
                    end=span.expression_start + len(span.expression),
                    file_path=source_file.path,
                    class_name=enclosing_class.name if enclosing_class else None
                ),
                component=bound.tag.name if bound.tag.is_component else None,
                binding_kind=attribute.kind,
                key=attribute.key,
                quoted=bound.quoted,
                key_start=BACKTICK_WIDTH + attribute.start + attribute.length - len(attribute.key)
            ))

        return TemplateScan(
            file_path=source_file.path,
            tag_start=template.tag_start,
            template_start=template.start,
            body_start=template.body_start,
            tags=tokenizer.tags,
            bindings=bindings,
            is_nested=template.is_nested
        )


def find_slots(source_file: SourceFile, class_declaration: ClassDeclaration) -> List[str]:
    """Slot names declared by `<slot>` tags in a class's templates, first-seen order."""
    slots: List[str] = []
    for template in source_file.templates:
        if not class_declaration.contains(template.start):
            continue
        for tag in tokenize_template(template).tags:
            if tag.name != SLOT_TAG:
                continue
            name = tag.static_attributes.get("name") or DEFAULT_SLOT
            if name not in slots:
                slots.append(name)
    return slots


__all__ = [
    "BoundPlaceholder",
    "TemplateScanner",
    "TemplateTokenizer",
    "TokenizerState",
    "find_slots",
    "tokenize_template",
]
