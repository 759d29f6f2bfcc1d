#!/usr/bin/env python3
"""
Type oracle for template bindings.

The rule checkers only ever ask four questions about types: what members a
declared contract has, what type a placeholder expression has, whether one
type is assignable to another, and how to print a type. `TypeOracle` is that
capability; `TextTypeOracle` answers it from declaration text collected by
the parser.

Answers are deliberately one-sided: when a type cannot be resolved the
oracle reports it as assignable, so a mismatch is only raised when both
sides are understood.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Optional, Protocol

from .shared.typescript_parser import IDENTIFIER, SourceFile, split_top_level

if TYPE_CHECKING:
    from .program import Program

PRIMITIVES = {"string", "number", "boolean", "bigint", "symbol", "null", "undefined", "void", "never"}
TOP_TYPES = {"any", "unknown"}

NAMED_TYPE_PATTERN = re.compile(r'^(' + IDENTIFIER + r'(?:\.' + IDENTIFIER + r')*)\s*(?:<(.*)>)?$', re.DOTALL)
MEMBER_PATTERN = re.compile(
    r'^(?:readonly\s+)?(?:(["\'])(?P<quoted>.+?)\1|(?P<name>' + IDENTIFIER + r'))\s*(?P<optional>\?)?\s*'
)
STRING_LITERAL_PATTERN = re.compile(r'^(["\'])(?:\\.|(?!\1).)*\1$', re.DOTALL)
NUMBER_LITERAL_PATTERN = re.compile(r'^-?(?:0[xXbBoO][\da-fA-F_]+|\d[\d_]*(?:\.\d*)?(?:[eE][+-]?\d+)?|\.\d+)n?$')
ARROW_FUNCTION_PATTERN = re.compile(r'^(?:async\s+)?(?:\([^()]*\)|' + IDENTIFIER + r')\s*(?::[^=]+)?=>', re.DOTALL)
COMPARISON_PATTERN = re.compile(r"===|!==|==|!=|\s[<>]=?\s|\binstanceof\b|\bin\b")
LOGICAL_PATTERN = re.compile(r"\?(?![.?])|\?\?|&&|\|\|")
CAST_PATTERN = re.compile(r'^(.*\S)\s+(?:as|satisfies)\s+([^()]+)$', re.DOTALL)

MAX_DEPTH = 8


@dataclass(frozen=True)
class TypeHandle:
    """Opaque reference to a type: its text and the file that spells it."""
    text: str
    file_path: Optional[str] = None


@dataclass(frozen=True)
class ExpressionRef:
    """Opaque reference to a placeholder expression."""
    text: str
    start: int
    end: int
    file_path: str
    class_name: Optional[str] = None


@dataclass
class TypeMember:
    """A property of an object-like type."""
    name: str
    type: TypeHandle
    optional: bool = False


class TypeOracle(Protocol):
    """Capability interface the rule checkers use for every type question."""

    def members(self, handle: TypeHandle) -> List[TypeMember]:
        ...

    def type_of_expression(self, expression: ExpressionRef) -> TypeHandle:
        ...

    def is_assignable(self, source: TypeHandle, target: TypeHandle) -> bool:
        ...

    def display(self, handle: TypeHandle) -> str:
        ...


class TextTypeOracle:
    """TypeOracle over the declarations parsed into a Program."""

    def __init__(self, program: "Program"):
        self.program = program

    # Members

    def members(self, handle: TypeHandle) -> List[TypeMember]:
        """Members of an object type, interface, alias or intersection, in declaration order."""
        return self._members(normalize(handle.text), handle.file_path, 0)

    def _members(self, text: str, file_path: Optional[str], depth: int) -> List[TypeMember]:
        if depth > MAX_DEPTH or not text:
            return []
        text = _strip_parens(text)
        parts = [part.strip() for part in split_top_level(text, '&') if part.strip()]
        if len(parts) > 1:
            merged: List[TypeMember] = []
            for part in parts:
                for member in self._members(part, file_path, depth + 1):
                    merged = [m for m in merged if m.name != member.name]
                    merged.append(member)
            return merged

        if text.startswith('{'):
            return _object_members(text, file_path)

        for wrapper in ('Partial', 'Readonly', 'Required'):
            match = re.match(wrapper + r'\s*<(.*)>$', text, re.DOTALL)
            if match:
                members = self._members(match.group(1).strip(), file_path, depth + 1)
                if wrapper == 'Partial':
                    return [TypeMember(m.name, m.type, True) for m in members]
                if wrapper == 'Required':
                    return [TypeMember(m.name, m.type, False) for m in members]
                return members

        resolved = self._resolve_named(text, file_path)
        if resolved is None:
            return []
        return self._members(normalize(resolved.text), resolved.file_path, depth + 1)

    # Expressions

    def type_of_expression(self, expression: ExpressionRef) -> TypeHandle:
        """Infer the type of a placeholder expression; unknown shapes infer `any`."""
        return self._infer(expression.text.strip(), expression, 0)

    def _infer(self, text: str, expression: ExpressionRef, depth: int) -> TypeHandle:
        file_path = expression.file_path
        if depth > MAX_DEPTH or not text:
            return TypeHandle("any", file_path)
        text = _strip_parens(text)

        cast = CAST_PATTERN.match(text)
        if cast and _balanced(cast.group(1)):
            if cast.group(2).strip() == 'const':
                return self._infer(cast.group(1), expression, depth + 1)
            return TypeHandle(normalize(cast.group(2)), file_path)

        if STRING_LITERAL_PATTERN.match(text):
            return TypeHandle('"' + text[1:-1] + '"', file_path)
        if text.startswith('`') and text.endswith('`'):
            return TypeHandle("string", file_path)
        if NUMBER_LITERAL_PATTERN.match(text):
            return TypeHandle("bigint" if text.endswith('n') else text.replace('_', ''), file_path)
        if text in ('true', 'false', 'null', 'undefined'):
            return TypeHandle(text, file_path)
        if ARROW_FUNCTION_PATTERN.match(text) or re.match(r'^(?:async\s+)?function\b', text):
            return TypeHandle("(...args: any[]) => any", file_path)
        if text.startswith('[') and text.endswith(']'):
            return self._infer_array(text, expression, depth)
        if text.startswith('{') and text.endswith('}'):
            return TypeHandle("object", file_path)
        if _has_top_level(text, LOGICAL_PATTERN):
            return TypeHandle("any", file_path)
        if text.startswith('!') or _has_top_level(text, COMPARISON_PATTERN):
            return TypeHandle("boolean", file_path)
        if text.startswith('typeof '):
            return TypeHandle("string", file_path)

        return self._infer_reference(text, expression, depth)

    def _infer_array(self, text: str, expression: ExpressionRef, depth: int) -> TypeHandle:
        inner = text[1:-1].strip()
        elements = [e.strip() for e in split_top_level(inner, ',') if e.strip()]
        if not elements:
            return TypeHandle("any[]", expression.file_path)
        element_types = []
        for element in elements:
            element_type = widen(self._infer(element, expression, depth + 1).text)
            if element_type not in element_types:
                element_types.append(element_type)
        if len(element_types) == 1:
            element_text = element_types[0]
        else:
            element_text = '(' + ' | '.join(element_types) + ')'
        return TypeHandle(element_text + '[]', expression.file_path)

    def _infer_reference(self, text: str, expression: ExpressionRef, depth: int) -> TypeHandle:
        """Identifiers, `this.member` and property chains."""
        file_path = expression.file_path
        path = [part.strip() for part in re.split(r'\??\.', text)]
        if not all(re.fullmatch(IDENTIFIER, part) for part in path):
            return TypeHandle("any", file_path)

        source_file = self.program.get_source_file(file_path)
        if source_file is None:
            return TypeHandle("any", file_path)

        if path[0] == 'this':
            if len(path) < 2 or expression.class_name is None:
                return TypeHandle("any", file_path)
            current = self._class_field_type(source_file, expression.class_name, path[1], expression, depth)
            rest = path[2:]
        else:
            current = self._variable_type(source_file, path[0], expression, depth)
            rest = path[1:]

        for name in rest:
            if current is None:
                break
            if name == 'length' and (current.text.endswith('[]') or current.text == 'string'):
                current = TypeHandle("number", file_path)
                continue
            member = next((m for m in self.members(current) if m.name == name), None)
            current = member.type if member is not None else None

        return current if current is not None else TypeHandle("any", file_path)

    def _class_field_type(self, source_file: SourceFile, class_name: str, name: str,
                          expression: ExpressionRef, depth: int) -> Optional[TypeHandle]:
        for cls in source_file.classes:
            if cls.name == class_name and name in cls.fields:
                declaration = cls.fields[name]
                if declaration.type_text:
                    return TypeHandle(normalize(declaration.type_text), source_file.path)
                if declaration.initializer:
                    return TypeHandle(widen(self._infer(declaration.initializer, expression, depth + 1).text),
                                      source_file.path)
        return None

    def _variable_type(self, source_file: SourceFile, name: str,
                       expression: ExpressionRef, depth: int) -> Optional[TypeHandle]:
        declaration = source_file.lookup_variable(name, expression.start)
        if declaration is None:
            return None
        if declaration.type_text:
            return TypeHandle(normalize(declaration.type_text), source_file.path)
        if declaration.initializer:
            return self._infer(declaration.initializer, expression, depth + 1)
        return None

    # Assignability

    def is_assignable(self, source: TypeHandle, target: TypeHandle) -> bool:
        """Whether a value of `source` type may be bound where `target` is declared."""
        return self._assignable(normalize(source.text), source.file_path,
                                normalize(target.text), target.file_path, 0)

    def _assignable(self, source: str, source_file: Optional[str],
                    target: str, target_file: Optional[str], depth: int) -> bool:
        source, target = _strip_parens(source), _strip_parens(target)
        if depth > MAX_DEPTH:
            return True
        if source == target or target in TOP_TYPES or source in TOP_TYPES or source == 'never':
            return True

        source_union = _union_parts(source)
        if len(source_union) > 1:
            return all(self._assignable(part, source_file, target, target_file, depth + 1) for part in source_union)
        target_union = _union_parts(target)
        if len(target_union) > 1:
            return any(self._assignable(source, source_file, part, target_file, depth + 1) for part in target_union)

        if target == 'boolean':
            return source in ('true', 'false', 'boolean') or not _is_known(source)
        if target == 'void':
            return source in ('undefined', 'void') or not _is_known(source)

        if literal_kind(source) is not None:
            if literal_kind(target) is not None:
                return _same_literal(source, target)
            if target in PRIMITIVES:
                return literal_kind(source) == target
            if target in ('object', 'Function') or _is_array(target) or _is_function(target):
                return False

        if _is_array(source) and _is_array(target):
            return self._assignable(_element_type(source), source_file, _element_type(target), target_file, depth + 1)
        if _is_function(source) and (_is_function(target) or target == 'Function'):
            return True
        if target == 'object':
            return source not in PRIMITIVES and literal_kind(source) is None

        expanded_target = self._resolve_named(target, target_file)
        if expanded_target is not None:
            return self._assignable(source, source_file, normalize(expanded_target.text),
                                    expanded_target.file_path, depth + 1)
        expanded_source = self._resolve_named(source, source_file)
        if expanded_source is not None:
            return self._assignable(normalize(expanded_source.text), expanded_source.file_path,
                                    target, target_file, depth + 1)

        return not (_is_known(source) and _is_known(target))

    def display(self, handle: TypeHandle) -> str:
        return normalize(handle.text)

    # Resolution

    def _resolve_named(self, text: str, file_path: Optional[str]) -> Optional[TypeHandle]:
        """Expand a named type to its declaration, following imports."""
        match = NAMED_TYPE_PATTERN.match(text)
        if not match or text in PRIMITIVES or text in TOP_TYPES:
            return None
        name = match.group(1).split('.')[-1]
        if name in ('Array', 'ReadonlyArray'):
            return None

        source_file = self.program.get_source_file(file_path) if file_path else None
        if source_file is not None:
            if name in source_file.type_declarations:
                return TypeHandle(source_file.type_declarations[name], source_file.path)
            imp = source_file.import_for(match.group(1).split('.')[0])
            if imp is not None:
                target = self.program.resolve_module(source_file.path, imp.from_path)
                imported_name = imp.imported_name if '.' not in match.group(1) else name
                if target is not None and imported_name in target.type_declarations:
                    return TypeHandle(target.type_declarations[imported_name], target.path)

        for candidate in self.program.source_files():
            if name in candidate.type_declarations:
                return TypeHandle(candidate.type_declarations[name], candidate.path)
        return None


def normalize(text: str) -> str:
    """Collapse whitespace and drop a leading union bar."""
    text = re.sub(r'\s+', ' ', text or '').strip().rstrip(';').strip()
    if text.startswith('|'):
        text = text[1:].strip()
    return text


def widen(text: str) -> str:
    """Widen a literal type to its primitive."""
    return literal_kind(text) or text


def literal_kind(text: str) -> Optional[str]:
    if STRING_LITERAL_PATTERN.match(text) or (text.startswith('`') and text.endswith('`')):
        return "string"
    if NUMBER_LITERAL_PATTERN.match(text):
        return "bigint" if text.endswith('n') else "number"
    if text in ('true', 'false'):
        return "boolean"
    return None


def _same_literal(a: str, b: str) -> bool:
    if STRING_LITERAL_PATTERN.match(a) and STRING_LITERAL_PATTERN.match(b):
        return a[1:-1] == b[1:-1]
    return a == b


def _is_known(text: str) -> bool:
    """Whether a type is fully understood without resolving names."""
    if text in PRIMITIVES or text in ('object', 'Function') or literal_kind(text) is not None:
        return True
    if _is_array(text):
        return _is_known(_element_type(text))
    return _is_function(text)


def _is_array(text: str) -> bool:
    return (text.endswith('[]') or re.match(r'^(?:Readonly)?Array\s*<.*>$', text) is not None
            or text.startswith('readonly '))


def _element_type(text: str) -> str:
    if text.startswith('readonly '):
        text = text[len('readonly '):].strip()
    if text.endswith('[]'):
        return _strip_parens(text[:-2].strip())
    match = re.match(r'^(?:Readonly)?Array\s*<(.*)>$', text, re.DOTALL)
    return match.group(1).strip() if match else 'any'


def _is_function(text: str) -> bool:
    if text.startswith('(') and _has_top_level(text, re.compile(r'=>')):
        return True
    return text.startswith('new ') or re.match(r'^<[^>]*>\s*\(', text) is not None


def _union_parts(text: str) -> List[str]:
    return [part.strip() for part in split_top_level(text, '|') if part.strip()]


def _strip_parens(text: str) -> str:
    text = text.strip()
    while text.startswith('(') and text.endswith(')') and _matching_paren(text) == len(text) - 1:
        text = text[1:-1].strip()
    return text


def _matching_paren(text: str) -> int:
    depth = 0
    for i, c in enumerate(text):
        if c == '(':
            depth += 1
        elif c == ')':
            depth -= 1
            if depth == 0:
                return i
    return -1


def _balanced(text: str) -> bool:
    depth = 0
    for c in text:
        if c in '([{':
            depth += 1
        elif c in ')]}':
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def _has_top_level(text: str, pattern: "re.Pattern") -> bool:
    """Whether `pattern` matches outside brackets and string literals."""
    depth = 0
    quote = ''
    masked = []
    for c in text:
        if quote:
            masked.append(' ')
            if c == quote:
                quote = ''
            continue
        if c in '"\'`':
            quote = c
            masked.append(' ')
            continue
        if c in '([{':
            depth += 1
        elif c in ')]}':
            depth -= 1
        masked.append(c if depth == 0 else ' ')
    return pattern.search(''.join(masked)) is not None


def _object_members(text: str, file_path: Optional[str]) -> List[TypeMember]:
    """Members of an object type literal `{ ... }`."""
    body = text[1:text.rfind('}')] if '}' in text else text[1:]
    body = re.sub(r'/\*.*?\*/', ' ', body, flags=re.DOTALL)
    body = re.sub(r'(^|\s)//[^\n]*', ' ', body)

    members: List[TypeMember] = []
    for entry in _member_entries(body):
        match = MEMBER_PATTERN.match(entry)
        if not match:
            continue
        name = match.group('quoted') or match.group('name')
        rest = entry[match.end():].strip()
        optional = bool(match.group('optional'))
        if rest.startswith('('):
            close = _matching_paren(rest)
            if close == -1:
                continue
            returns = rest[close + 1:].strip()
            returns = returns[1:].strip() if returns.startswith(':') else 'void'
            type_text = rest[:close + 1] + ' => ' + returns
        elif rest.startswith(':'):
            type_text = normalize(rest[1:])
        else:
            continue
        if 'undefined' in _union_parts(type_text):
            optional = True
        members = [m for m in members if m.name != name]
        members.append(TypeMember(name=name, type=TypeHandle(type_text, file_path), optional=optional))
    return members


def _member_entries(body: str) -> List[str]:
    """Split an object type body into member texts."""
    entries: List[str] = []
    depth = 0
    current = ''
    for c in body:
        if c in '{([<':
            depth += 1
        elif c == '>' and current.endswith('='):
            pass
        elif c in '})]>':
            depth -= 1
        if c in ';,\n' and depth == 0:
            entries.append(current)
            current = ''
            continue
        current += c
    entries.append(current)

    merged: List[str] = []
    for entry in (e.strip() for e in entries):
        if not entry:
            continue
        if merged and (entry[0] in '|&' or merged[-1][-1] in '|&:' or merged[-1].endswith('=>')):
            merged[-1] = merged[-1] + ' ' + entry
        else:
            merged.append(entry)
    return [entry for entry in merged if not entry.startswith('[')]


__all__ = [
    "ExpressionRef",
    "TextTypeOracle",
    "TypeHandle",
    "TypeMember",
    "TypeOracle",
    "normalize",
    "widen",
]
