#!/usr/bin/env python3
"""
Diagnostic position mapping.

Every conversion from a template-relative offset to an absolute source offset
goes through this module, so the scanner and the rule checkers agree on where
a diagnostic starts.
"""

from typing import Tuple

from .models import TemplateExpressionBinding

# Width of the opening backtick of a template literal.
BACKTICK_WIDTH = 1
# Width of the '<' that opens a tag.
TAG_OPEN_WIDTH = 1
# Characters between a key and a quoted placeholder: '="'.
VALUE_PREFIX_WIDTH = 2


def to_absolute(node_start: int, relative_offset: int) -> int:
    """Convert an offset relative to a node into an absolute source offset."""
    return node_start + relative_offset


def body_offset(template_start: int, relative_to_body: int) -> int:
    """Absolute offset of a position given relative to the template body."""
    return to_absolute(template_start, BACKTICK_WIDTH + relative_to_body)


def tag_name_offset(template_start: int, relative_tag_start: int) -> int:
    """Absolute offset of a tag's name, from the body-relative offset of its '<'."""
    return body_offset(template_start, relative_tag_start + TAG_OPEN_WIDTH)


def binding_key_offset(template_start: int, binding: TemplateExpressionBinding) -> int:
    """Absolute offset of the attribute key a binding belongs to.

    For a placeholder directly after the value opener this is
    ``template_start + relative_start - len(key) - 2 + (0 if quoted else 1)``;
    the tokenizer records ``key_start`` so values such as ``"a${x}"`` map
    exactly as well.
    """
    if binding.key_start is not None:
        return to_absolute(template_start, binding.key_start)
    key_length = len(binding.key or "")
    shift = 0 if binding.quoted else 1
    return to_absolute(template_start, binding.relative_start - key_length - VALUE_PREFIX_WIDTH + shift)


def line_and_character(text: str, offset: int) -> Tuple[int, int]:
    """Zero-based line and character for an offset into `text`."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset)
    line_start = text.rfind("\n", 0, offset) + 1
    return line, offset - line_start
