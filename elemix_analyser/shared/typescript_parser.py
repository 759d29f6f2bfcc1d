#!/usr/bin/env python3
"""
Shared TypeScript parsing utilities.

This module turns a TypeScript file into a lightweight source model: import
bindings, class declarations with their heritage clause, marker-tagged
template literals with their placeholder spans, and the type and variable
declarations needed to answer simple type questions.

A single character-level pass builds a *code mask* of the file in which
comments, string contents and template literal text are blanked out while
offsets are preserved. Structural regexes run against the mask so that
markup inside templates is never mistaken for code.
"""

import bisect
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

IDENTIFIER = r'[A-Za-z_$][\w$]*'

_DECORATOR = r'@' + IDENTIFIER + r'(?:\.' + IDENTIFIER + r')*\s*(?:\((?:[^()]|\([^()]*\))*\))?\s*'

CLASS_PATTERN = re.compile(
    r'((?:' + _DECORATOR + r')*)'
    r'(?:export\s+)?(?:default\s+)?(?:declare\s+)?(?:abstract\s+)?'
    r'\bclass\s+(' + IDENTIFIER + r')'
)

IMPORT_PATTERN = re.compile(
    r'\bimport\s+(type\s+)?'
    r'(?:(' + IDENTIFIER + r')\s*,?\s*)?'
    r'(?:\{([^{}]*)\}|\*\s*as\s+(' + IDENTIFIER + r'))?'
    r'\s*from\s*(["\'])([^"\'\n]+)\5\s*;?',
    re.MULTILINE
)

INTERFACE_PATTERN = re.compile(
    r'\b(?:export\s+)?(?:declare\s+)?interface\s+(' + IDENTIFIER + r')\s*(?:<[^{]*?>)?\s*'
    r'(?:extends\s+([^{]+?))?\s*\{'
)

TYPE_ALIAS_PATTERN = re.compile(
    r'\b(?:export\s+)?(?:declare\s+)?type\s+(' + IDENTIFIER + r')\s*(?:<[^=]*?>)?\s*=\s*'
)

VARIABLE_PATTERN = re.compile(
    r'\b(?:const|let|var)\s+(' + IDENTIFIER + r')\s*(?::\s*([^=;\n]+?))?\s*(?:=\s*([^;\n]+))?(?=;|\n|$)',
    re.MULTILINE
)

FIELD_PATTERN = re.compile(
    r'^\s*(?:(?:public|private|protected|readonly|static|declare|override|accessor)\s+)*'
    r'(' + IDENTIFIER + r')\s*[?!]?\s*(?::\s*([^=;]+?))?\s*(?:=\s*(.+?))?\s*;?\s*$',
    re.DOTALL
)

IDENTIFIER_PATTERN = re.compile(IDENTIFIER)

_REGEX_PRECEDERS = set('(,=:[!&|?{};+-*%<>~^')
_REGEX_KEYWORDS = {'return', 'typeof', 'case', 'do', 'else', 'in', 'of', 'delete', 'void', 'throw', 'yield', 'await'}


@dataclass
class Import:
    """Represents one binding introduced by an import statement."""
    name: str
    from_path: str
    file_path: str
    line_number: int
    import_type: str  # 'default', 'named', 'namespace', 'type'
    original_name: Optional[str] = None  # For aliased imports
    start: int = 0  # statement start
    end: int = 0  # statement end

    @property
    def imported_name(self) -> str:
        """Name exported by the source module."""
        return self.original_name or self.name


@dataclass
class TemplateSpan:
    """A `${ ... }` placeholder of a template literal (absolute offsets)."""
    start: int  # at '$'
    end: int  # just past '}'
    expression: str
    expression_start: int


@dataclass
class TaggedTemplate:
    """A template literal tagged with the marker identifier."""
    index: int
    tag: str
    tag_start: int
    start: int  # opening backtick
    end: int = 0  # just past the closing backtick
    spans: List[TemplateSpan] = field(default_factory=list)
    parent: Optional[int] = None  # index of the enclosing marker template
    body: str = ""

    @property
    def body_start(self) -> int:
        return self.start + 1

    @property
    def is_nested(self) -> bool:
        return self.parent is not None

    def placeholders(self) -> List[Tuple[int, int]]:
        """Placeholder regions relative to the body start."""
        return [(span.start - self.body_start, span.end - self.body_start) for span in self.spans]


@dataclass
class VariableDeclaration:
    """A variable or class field with its declared type or initializer."""
    name: str
    start: int
    type_text: Optional[str] = None
    initializer: Optional[str] = None


@dataclass
class ClassDeclaration:
    """A class declaration and its heritage clause."""
    name: str
    name_start: int
    start: int
    base: Optional[str] = None
    type_arguments: List[str] = field(default_factory=list)
    decorators: List[str] = field(default_factory=list)
    body_start: int = 0
    body_end: int = 0
    fields: Dict[str, VariableDeclaration] = field(default_factory=dict)

    def contains(self, offset: int) -> bool:
        return self.body_start <= offset < self.body_end


@dataclass
class SourceFile:
    """Parsed view of one TypeScript file."""
    path: str
    text: str
    code: str = ""
    imports: List[Import] = field(default_factory=list)
    classes: List[ClassDeclaration] = field(default_factory=list)
    templates: List[TaggedTemplate] = field(default_factory=list)
    type_declarations: Dict[str, str] = field(default_factory=dict)
    variables: Dict[str, List[VariableDeclaration]] = field(default_factory=dict)
    _line_starts: List[int] = field(default_factory=list, repr=False)

    def line_and_character(self, offset: int) -> Tuple[int, int]:
        """Zero-based line and character of an offset."""
        if not self._line_starts:
            self._line_starts = [0] + [m.end() for m in re.finditer(r'\n', self.text)]
        line = bisect.bisect_right(self._line_starts, offset) - 1
        return line, offset - self._line_starts[line]

    def import_for(self, name: str) -> Optional[Import]:
        """Import binding whose local name is `name`."""
        for imp in self.imports:
            if imp.name == name:
                return imp
        return None

    def defines_class(self, name: str) -> bool:
        return any(cls.name == name for cls in self.classes)

    def class_at(self, offset: int) -> Optional[ClassDeclaration]:
        """Innermost class whose body contains the offset."""
        found = None
        for cls in self.classes:
            if cls.contains(offset) and (found is None or cls.body_start > found.body_start):
                found = cls
        return found

    def lookup_variable(self, name: str, offset: int) -> Optional[VariableDeclaration]:
        """Closest declaration of `name` before `offset`, else the first one."""
        candidates = self.variables.get(name)
        if not candidates:
            return None
        preceding = [v for v in candidates if v.start < offset]
        return preceding[-1] if preceding else candidates[0]

    def used_identifiers(self) -> Set[str]:
        """Identifiers referenced in code outside import statements."""
        import_ranges = sorted({(imp.start, imp.end) for imp in self.imports})
        used = set()
        for match in IDENTIFIER_PATTERN.finditer(self.code):
            if any(start <= match.start() < end for start, end in import_ranges):
                continue
            used.add(match.group(0))
        return used


class _SourceLexer:
    """Single pass over the source that builds the code mask and finds templates."""

    def __init__(self, text: str, template_tag: str):
        self.text = text
        self.length = len(text)
        self.template_tag = template_tag
        self.mask = list(text)
        self.templates: List[TaggedTemplate] = []

    def run(self) -> Tuple[str, List[TaggedTemplate]]:
        self._scan_code(0, stop_at_brace=False, enclosing=None)
        return ''.join(self.mask), self.templates

    def _blank(self, start: int, end: int) -> None:
        for i in range(max(start, 0), min(end, self.length)):
            if self.mask[i] not in '\r\n':
                self.mask[i] = ' '

    def _scan_code(self, pos: int, stop_at_brace: bool, enclosing: Optional[int]) -> int:
        """Scan code from `pos`; returns the offset of the unmatched '}' when
        `stop_at_brace` is set, otherwise the end of the text."""
        text = self.text
        depth = 0
        prev = ''
        prev_word = ''
        while pos < self.length:
            ch = text[pos]
            nxt = text[pos + 1] if pos + 1 < self.length else ''

            if ch == '/' and nxt == '/':
                end = text.find('\n', pos)
                end = self.length if end == -1 else end
                self._blank(pos, end)
                pos = end
                continue
            if ch == '/' and nxt == '*':
                end = text.find('*/', pos + 2)
                end = self.length if end == -1 else end + 2
                self._blank(pos, end)
                pos = end
                continue
            if ch in '"\'':
                end = self._skip_string(pos, ch)
                self._blank(pos + 1, end - 1)
                prev, prev_word = ch, ''
                pos = end
                continue
            if ch == '`':
                pos = self._scan_template(pos, enclosing)
                prev, prev_word = '`', ''
                continue
            if ch == '/' and (prev == '' or prev in _REGEX_PRECEDERS or prev_word in _REGEX_KEYWORDS):
                end = self._skip_regex(pos)
                self._blank(pos + 1, end)
                prev, prev_word = '/', ''
                pos = end
                continue

            if ch == '{':
                depth += 1
            elif ch == '}':
                if depth == 0 and stop_at_brace:
                    return pos
                depth -= 1

            if ch.isalnum() or ch in '_$':
                word_end = pos
                while word_end < self.length and (text[word_end].isalnum() or text[word_end] in '_$'):
                    word_end += 1
                prev_word = text[pos:word_end]
                prev = text[word_end - 1]
                pos = word_end
                continue
            if not ch.isspace():
                prev, prev_word = ch, ''
            pos += 1
        return pos

    def _skip_string(self, pos: int, quote: str) -> int:
        i = pos + 1
        while i < self.length:
            c = self.text[i]
            if c == '\\':
                i += 2
                continue
            if c == quote:
                return i + 1
            if c == '\n':
                return i
            i += 1
        return self.length

    def _skip_regex(self, pos: int) -> int:
        i = pos + 1
        in_class = False
        while i < self.length:
            c = self.text[i]
            if c == '\\':
                i += 2
                continue
            if c == '\n':
                return i
            if c == '[':
                in_class = True
            elif c == ']':
                in_class = False
            elif c == '/' and not in_class:
                i += 1
                while i < self.length and self.text[i].isalpha():
                    i += 1
                return i
            i += 1
        return self.length

    def _tag_before(self, pos: int) -> Tuple[str, int]:
        """Identifier immediately preceding a backtick (the template tag)."""
        i = pos - 1
        while i >= 0 and self.text[i] in ' \t':
            i -= 1
        end = i + 1
        while i >= 0 and (self.text[i].isalnum() or self.text[i] in '_$'):
            i -= 1
        start = i + 1
        if start == end or (i >= 0 and self.text[i] == '.'):
            return '', end
        return self.text[start:end], start

    def _scan_template(self, pos: int, enclosing: Optional[int]) -> int:
        """Scan a template literal starting at its backtick; returns the offset past its end."""
        tag, tag_start = self._tag_before(pos)
        template = None
        inner_enclosing = enclosing
        if tag == self.template_tag:
            template = TaggedTemplate(
                index=len(self.templates),
                tag=tag,
                tag_start=tag_start,
                start=pos,
                parent=enclosing
            )
            self.templates.append(template)
            inner_enclosing = template.index

        text = self.text
        spans: List[TemplateSpan] = []
        text_start = pos + 1
        i = pos + 1
        body_end = self.length
        closed = False
        while i < self.length:
            c = text[i]
            if c == '\\':
                i += 2
                continue
            if c == '`':
                body_end = i
                closed = True
                break
            if c == '$' and i + 1 < self.length and text[i + 1] == '{':
                self._blank(text_start, i + 2)
                close = self._scan_code(i + 2, stop_at_brace=True, enclosing=inner_enclosing)
                raw_expression = text[i + 2:close]
                leading = len(raw_expression) - len(raw_expression.lstrip())
                spans.append(TemplateSpan(
                    start=i,
                    end=min(close + 1, self.length),
                    expression=raw_expression.strip(),
                    expression_start=i + 2 + leading
                ))
                self._blank(close, close + 1)
                i = close + 1
                text_start = i
                continue
            i += 1
        self._blank(text_start, body_end)
        end = body_end + 1 if closed else self.length

        if template is not None:
            template.end = end
            template.spans = spans
            template.body = text[pos + 1:body_end]
        return end


class TypeScriptParser:
    """
    Lightweight TypeScript parser for template analysis.

    Extracts imports, classes, marker templates and simple type/variable
    declarations from TypeScript files.
    """

    def __init__(self, template_tag: str = "html"):
        self.template_tag = template_tag

    def parse(self, text: str, path: str) -> SourceFile:
        """Parse file content into a SourceFile."""
        code, templates = _SourceLexer(text, self.template_tag).run()
        source_file = SourceFile(path=path, text=text, code=code, templates=templates)
        source_file.imports = self.extract_imports(source_file)
        source_file.classes = self.extract_classes(source_file)
        source_file.type_declarations = self.extract_type_declarations(source_file)
        source_file.variables = self.extract_variables(source_file)
        return source_file

    def extract_imports(self, source_file: SourceFile) -> List[Import]:
        """Extract import bindings, including aliases, defaults and namespaces."""
        imports = []
        text, code = source_file.text, source_file.code

        for match in IMPORT_PATTERN.finditer(text):
            if code[match.start()] != 'i':
                # Inside a comment, string or template
                continue
            is_type_only = bool(match.group(1))
            default_name = match.group(2)
            named = match.group(3)
            namespace = match.group(4)
            from_path = match.group(6)
            if default_name is None and named is None and namespace is None:
                continue
            line_number = source_file.line_and_character(match.start())[0] + 1

            def add(name: str, import_type: str, original_name: Optional[str] = None) -> None:
                imports.append(Import(
                    name=name,
                    from_path=from_path,
                    file_path=source_file.path,
                    line_number=line_number,
                    import_type=import_type,
                    original_name=original_name,
                    start=match.start(),
                    end=match.end()
                ))

            if default_name:
                add(default_name, 'type' if is_type_only else 'default')
            if namespace:
                add(namespace, 'namespace')
            if named:
                for import_name in named.split(','):
                    import_name = re.sub(r'/\*.*?\*/|//[^\n]*', '', import_name).strip()
                    if not import_name:
                        continue

                    # Handle inline type imports: type Foo
                    import_type = 'type' if is_type_only else 'named'
                    if import_name.startswith('type '):
                        import_type = 'type'
                        import_name = import_name[5:].strip()

                    # Handle 'as' aliases: foo as bar
                    original_name = None
                    alias_parts = re.split(r'\s+as\s+', import_name)
                    if len(alias_parts) == 2:
                        original_name, import_name = alias_parts[0].strip(), alias_parts[1].strip()

                    add(import_name, import_type, original_name)

        return imports

    def extract_classes(self, source_file: SourceFile) -> List[ClassDeclaration]:
        """Extract class declarations with base class, type arguments and decorators."""
        classes = []
        text, code = source_file.text, source_file.code

        for match in CLASS_PATTERN.finditer(code):
            name = match.group(2)
            decorators = re.findall(r'@(' + IDENTIFIER + r'(?:\.' + IDENTIFIER + r')*)', match.group(1) or '')
            declaration = ClassDeclaration(
                name=name,
                name_start=match.start(2),
                start=match.start(),
                decorators=decorators
            )

            pos = _skip_whitespace(code, match.end())
            if pos < len(code) and code[pos] == '<':
                pos = _skip_whitespace(code, _matching_angle(code, pos)[0])

            extends_match = re.compile(
                r'extends\s+(' + IDENTIFIER + r'(?:\s*\.\s*' + IDENTIFIER + r')*)\s*'
            ).match(code, pos)
            if extends_match:
                declaration.base = re.sub(r'\s+', '', extends_match.group(1))
                pos = extends_match.end()
                if pos < len(code) and code[pos] == '<':
                    pos, argument_ranges = _matching_angle(code, pos)
                    declaration.type_arguments = [text[start:end].strip() for start, end in argument_ranges]

            body_start = _find_body_start(code, pos)
            if body_start == -1:
                continue
            declaration.body_start = body_start
            declaration.body_end = _matching_brace(code, body_start)
            declaration.fields = self._extract_fields(source_file, declaration)
            classes.append(declaration)

        return classes

    def _extract_fields(self, source_file: SourceFile, declaration: ClassDeclaration) -> Dict[str, VariableDeclaration]:
        fields = {}
        for start, end in _top_level_statements(source_file.code, declaration.body_start + 1, declaration.body_end - 1):
            statement = source_file.code[start:end]
            if '(' in statement.split('=', 1)[0]:
                # Method or constructor header
                continue
            match = FIELD_PATTERN.match(statement)
            if not match:
                continue
            raw = source_file.text[start:end]
            raw_match = FIELD_PATTERN.match(raw) or match
            name = match.group(1)
            fields[name] = VariableDeclaration(
                name=name,
                start=start + match.start(1),
                type_text=_clean(raw_match.group(2)),
                initializer=_clean(raw_match.group(3))
            )
        return fields

    def extract_type_declarations(self, source_file: SourceFile) -> Dict[str, str]:
        """Extract interface bodies and type alias right-hand sides by name."""
        declarations = {}
        text, code = source_file.text, source_file.code

        for match in INTERFACE_PATTERN.finditer(code):
            brace = match.end() - 1
            close = _matching_brace(code, brace)
            body = text[brace:close]
            bases = [b.strip() for b in split_top_level(match.group(2) or '', ',') if b.strip()]
            declarations.setdefault(match.group(1), ' & '.join(bases + [body]))

        for match in TYPE_ALIAS_PATTERN.finditer(code):
            end = _type_expression_end(code, match.end())
            declarations.setdefault(match.group(1), text[match.end():end].strip())

        return declarations

    def extract_variables(self, source_file: SourceFile) -> Dict[str, List[VariableDeclaration]]:
        """Extract variable declarations with declared type or initializer."""
        variables: Dict[str, List[VariableDeclaration]] = {}
        text, code = source_file.text, source_file.code

        for match in VARIABLE_PATTERN.finditer(code):
            raw_match = VARIABLE_PATTERN.match(text, match.start())
            type_text = raw_match.group(2) if raw_match and raw_match.group(1) == match.group(1) else match.group(2)
            initializer = raw_match.group(3) if raw_match and raw_match.group(1) == match.group(1) else match.group(3)
            variables.setdefault(match.group(1), []).append(VariableDeclaration(
                name=match.group(1),
                start=match.start(1),
                type_text=_clean(type_text),
                initializer=_clean(initializer)
            ))

        return variables


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().rstrip(';').strip()
    return value or None


def _skip_whitespace(code: str, pos: int) -> int:
    while pos < len(code) and code[pos].isspace():
        pos += 1
    return pos


def _matching_angle(code: str, pos: int) -> Tuple[int, List[Tuple[int, int]]]:
    """Match a '<' at `pos`; returns the offset past the closing '>' and the
    ranges of the top-level comma separated arguments."""
    depth = 0
    arguments = []
    arg_start = pos + 1
    i = pos
    while i < len(code):
        c = code[i]
        if c in '<({[':
            depth += 1
        elif c == '>' and i > 0 and code[i - 1] == '=':
            # Arrow of a function type
            pass
        elif c in '>)}]':
            depth -= 1
            if depth == 0:
                arguments.append((arg_start, i))
                return i + 1, [(s, e) for s, e in arguments if code[s:e].strip()]
        elif c == ',' and depth == 1:
            arguments.append((arg_start, i))
            arg_start = i + 1
        i += 1
    return len(code), []


def _find_body_start(code: str, pos: int) -> int:
    """Offset of the '{' opening a class body, skipping an implements clause."""
    depth = 0
    for i in range(pos, len(code)):
        c = code[i]
        if c == '<':
            depth += 1
        elif c == '>' and code[i - 1] != '=':
            depth -= 1
        elif c == '{' and depth <= 0:
            return i
        elif c in ';)' and depth <= 0:
            return -1
    return -1


def _matching_brace(code: str, pos: int) -> int:
    """Offset just past the '}' matching the '{' at `pos`."""
    depth = 0
    for i in range(pos, len(code)):
        if code[i] == '{':
            depth += 1
        elif code[i] == '}':
            depth -= 1
            if depth == 0:
                return i + 1
    return len(code)


def _top_level_statements(code: str, start: int, end: int) -> List[Tuple[int, int]]:
    """Ranges of depth-0 statements in code[start:end], split on ';' and newlines."""
    statements = []
    depth = 0
    stmt_start = start
    for i in range(start, end):
        c = code[i]
        if c in '{([':
            depth += 1
        elif c in '})]':
            depth -= 1
            if depth == 0 and c == '}':
                stmt_start = i + 1
                continue
        elif c in ';\n' and depth == 0:
            if code[stmt_start:i].strip():
                statements.append((stmt_start, i))
            stmt_start = i + 1
    if depth == 0 and code[stmt_start:end].strip():
        statements.append((stmt_start, end))
    return statements


def _type_expression_end(code: str, pos: int) -> int:
    """End offset of a type expression starting at `pos` (type alias right-hand side)."""
    depth = 0
    i = pos
    while i < len(code):
        c = code[i]
        if c in '{([<':
            depth += 1
        elif c == '>' and code[i - 1] == '=':
            pass
        elif c in '})]>':
            depth -= 1
        elif c == ';' and depth <= 0:
            return i
        elif c == '\n' and depth <= 0:
            before = code[pos:i].rstrip()
            after = code[i:].lstrip()
            if before and before[-1] not in '|&=,' and not (after[:1] in ('|', '&')):
                return i
        i += 1
    return len(code)


def split_top_level(value: str, separator: str) -> List[str]:
    """Split on a separator outside of brackets, braces, parens and angle brackets."""
    parts = []
    depth = 0
    current = ''
    i = 0
    while i < len(value):
        c = value[i]
        if c in '{([<':
            depth += 1
        elif c == '>' and i > 0 and value[i - 1] == '=':
            pass
        elif c in '})]>':
            depth -= 1
        if value.startswith(separator, i) and depth == 0:
            parts.append(current)
            current = ''
            i += len(separator)
            continue
        current += c
        i += 1
    parts.append(current)
    return parts


