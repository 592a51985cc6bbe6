"""Edge predicate language.

Predicates are small boolean expressions over the run's accumulated
variables, for example::

    screen.output contains 'approved' and not (screen.output contains 'not approved')
    review.turns <= 3 or input.priority in ['high', 'urgent']

Supported syntax:

* literals: single or double quoted strings, integers, floats, ``true``,
  ``false``, ``null`` and lists ``[a, b, ...]``
* references: dotted paths (``node.output``, ``input.text``); identifiers
  may contain hyphens so node ids like ``junior-screen`` work
* comparison: ``== != < <= > >=``
* string and collection tests: ``contains``, ``not contains``,
  ``startswith``, ``endswith``, ``matches`` (regex search), ``in``, ``not in``
* boolean logic: ``and``, ``or``, ``not`` and parentheses

References to missing values resolve to ``null``. Tests against ``null``
are false (except ``==``/``!=``), mirroring rule conditions elsewhere in
the platform. Expressions are parsed once when a workflow is loaded; they
never execute arbitrary code.
"""

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..exceptions import ExpressionError

_TOKEN_SPEC = [
    ("WS", r"\s+"),
    ("STRING", r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\""),
    ("NUMBER", r"-?\d+(?:\.\d+)?(?![A-Za-z_])"),
    ("OP", r"==|!=|<=|>=|<|>"),
    ("LPAREN", r"\("),
    ("RPAREN", r"\)"),
    ("LBRACKET", r"\["),
    ("RBRACKET", r"\]"),
    ("COMMA", r","),
    ("NAME", r"[A-Za-z_][A-Za-z0-9_-]*(?:\.[A-Za-z0-9_][A-Za-z0-9_-]*)*"),
]
_TOKEN_RE = re.compile("|".join(f"(?P<{kind}>{pattern})" for kind, pattern in _TOKEN_SPEC))
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}

_CONSTANTS = {"true": True, "false": False, "null": None, "none": None}
_WORD_OPERATORS = {"contains", "startswith", "endswith", "matches", "in"}
KEYWORDS = frozenset({"and", "or", "not", *_WORD_OPERATORS, *_CONSTANTS})


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    position: int


def tokenize(source: str) -> list[Token]:
    tokens = []
    position = 0
    while position < len(source):
        match = _TOKEN_RE.match(source, position)
        if match is None:
            raise ExpressionError(source, f"unexpected character {source[position]!r}", position)
        kind = match.lastgroup or ""
        if kind != "WS":
            tokens.append(Token(kind, match.group(), position))
        position = match.end()
    return tokens


def _unquote(literal: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), m.group(1)), literal[1:-1])


# === AST ===


class _Node:
    def evaluate(self, scope: Mapping[str, Any]) -> Any:
        raise NotImplementedError

    def references(self) -> set[tuple[str, ...]]:
        return set()


@dataclass(frozen=True)
class Literal(_Node):
    value: Any

    def evaluate(self, scope: Mapping[str, Any]) -> Any:
        return self.value


@dataclass(frozen=True)
class ListLiteral(_Node):
    items: tuple[_Node, ...]

    def evaluate(self, scope: Mapping[str, Any]) -> Any:
        return [item.evaluate(scope) for item in self.items]

    def references(self) -> set[tuple[str, ...]]:
        return set().union(*(item.references() for item in self.items))


@dataclass(frozen=True)
class Reference(_Node):
    path: tuple[str, ...]

    def evaluate(self, scope: Mapping[str, Any]) -> Any:
        return resolve_path(scope, self.path)

    def references(self) -> set[tuple[str, ...]]:
        return {self.path}


@dataclass(frozen=True)
class Not(_Node):
    operand: _Node

    def evaluate(self, scope: Mapping[str, Any]) -> Any:
        return not self.operand.evaluate(scope)

    def references(self) -> set[tuple[str, ...]]:
        return self.operand.references()


@dataclass(frozen=True)
class BoolOp(_Node):
    op: str
    operands: tuple[_Node, ...]

    def evaluate(self, scope: Mapping[str, Any]) -> Any:
        if self.op == "and":
            return all(operand.evaluate(scope) for operand in self.operands)
        return any(operand.evaluate(scope) for operand in self.operands)

    def references(self) -> set[tuple[str, ...]]:
        return set().union(*(operand.references() for operand in self.operands))


@dataclass(frozen=True)
class Compare(_Node):
    op: str
    left: _Node
    right: _Node
    source: str

    def evaluate(self, scope: Mapping[str, Any]) -> Any:
        return _compare(self.op, self.left.evaluate(scope), self.right.evaluate(scope), self.source)

    def references(self) -> set[tuple[str, ...]]:
        return self.left.references() | self.right.references()


def resolve_path(scope: Mapping[str, Any], path: Sequence[str]) -> Any:
    """Walk a dotted path through mappings and sequences; missing parts give None."""
    current: Any = scope
    for segment in path:
        if isinstance(current, Mapping):
            current = current.get(segment)
        elif isinstance(current, list | tuple) and segment.isdigit():
            index = int(segment)
            current = current[index] if index < len(current) else None
        else:
            return None
        if current is None:
            return None
    return current


def _as_number(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return float(value.strip()) if "." in value else int(value.strip())
        except ValueError:
            return value
    return value


def _compare(op: str, left: Any, right: Any, source: str) -> bool:
    if op == "==":
        return left == right or (_as_number(left) == _as_number(right) and left is not None)
    if op == "!=":
        return not _compare("==", left, right, source)

    if left is None or right is None:
        return False

    if op in ("<", "<=", ">", ">="):
        a, b = _as_number(left), _as_number(right)
        try:
            if op == "<":
                return a < b
            if op == "<=":
                return a <= b
            if op == ">":
                return a > b
            return a >= b
        except TypeError:
            raise ExpressionError(
                source, f"cannot compare {type(left).__name__} with {type(right).__name__}"
            ) from None

    if op in ("contains", "not contains"):
        found = _contains(left, right)
        return found if op == "contains" else not found
    if op in ("in", "not in"):
        found = _contains(right, left)
        return found if op == "in" else not found
    if op == "startswith":
        return str(left).startswith(str(right))
    if op == "endswith":
        return str(left).endswith(str(right))
    if op == "matches":
        try:
            return re.search(str(right), str(left)) is not None
        except re.error as e:
            raise ExpressionError(source, f"invalid regular expression: {e}") from None
    raise ExpressionError(source, f"unknown operator '{op}'")


def _contains(container: Any, item: Any) -> bool:
    if isinstance(container, str):
        return str(item) in container
    if isinstance(container, Mapping | list | tuple | set | frozenset):
        return item in container
    return str(item) in str(container)


# === Parser ===


class _Parser:
    def __init__(self, source: str):
        self.source = source
        self.tokens = tokenize(source)
        self.index = 0

    def parse(self) -> _Node:
        if not self.tokens:
            raise ExpressionError(self.source, "empty expression")
        node = self._parse_or()
        token = self._peek()
        if token is not None:
            raise ExpressionError(self.source, f"unexpected '{token.value}'", token.position)
        return node

    def _peek(self, offset: int = 0) -> Token | None:
        index = self.index + offset
        return self.tokens[index] if index < len(self.tokens) else None

    def _advance(self) -> Token:
        token = self._peek()
        if token is None:
            raise ExpressionError(self.source, "unexpected end of expression", len(self.source))
        self.index += 1
        return token

    def _expect(self, kind: str) -> Token:
        token = self._advance()
        if token.kind != kind:
            raise ExpressionError(
                self.source, f"expected {kind.lower()}, got '{token.value}'", token.position
            )
        return token

    def _at_keyword(self, word: str, offset: int = 0) -> bool:
        token = self._peek(offset)
        return token is not None and token.kind == "NAME" and token.value.lower() == word

    def _parse_or(self) -> _Node:
        operands = [self._parse_and()]
        while self._at_keyword("or"):
            self._advance()
            operands.append(self._parse_and())
        return operands[0] if len(operands) == 1 else BoolOp("or", tuple(operands))

    def _parse_and(self) -> _Node:
        operands = [self._parse_not()]
        while self._at_keyword("and"):
            self._advance()
            operands.append(self._parse_not())
        return operands[0] if len(operands) == 1 else BoolOp("and", tuple(operands))

    def _parse_not(self) -> _Node:
        if self._at_keyword("not"):
            self._advance()
            return Not(self._parse_not())
        return self._parse_comparison()

    def _parse_comparison(self) -> _Node:
        left = self._parse_operand()
        op_token = self._peek()
        op = self._comparison_operator()
        if op is None:
            return left
        right = self._parse_operand()
        if op == "matches" and isinstance(right, Literal):
            try:
                re.compile(str(right.value))
            except re.error as e:
                raise ExpressionError(
                    self.source, f"invalid regular expression: {e}", op_token.position
                ) from None
        return Compare(op, left, right, self.source)

    def _comparison_operator(self) -> str | None:
        token = self._peek()
        if token is None:
            return None
        if token.kind == "OP":
            self._advance()
            return token.value
        if token.kind != "NAME":
            return None
        word = token.value.lower()
        if word in _WORD_OPERATORS:
            self._advance()
            return word
        if word == "not" and (self._at_keyword("contains", 1) or self._at_keyword("in", 1)):
            self._advance()
            return f"not {self._advance().value.lower()}"
        return None

    def _parse_operand(self) -> _Node:
        token = self._advance()
        if token.kind == "STRING":
            return Literal(_unquote(token.value))
        if token.kind == "NUMBER":
            return Literal(float(token.value) if "." in token.value else int(token.value))
        if token.kind == "LPAREN":
            node = self._parse_or()
            self._expect("RPAREN")
            return node
        if token.kind == "LBRACKET":
            items: list[_Node] = []
            if self._peek() is not None and self._peek().kind == "RBRACKET":
                self._advance()
                return ListLiteral(())
            while True:
                items.append(self._parse_operand())
                closing = self._advance()
                if closing.kind == "RBRACKET":
                    return ListLiteral(tuple(items))
                if closing.kind != "COMMA":
                    raise ExpressionError(
                        self.source, f"expected ',' or ']', got '{closing.value}'", closing.position
                    )
        if token.kind == "NAME":
            word = token.value.lower()
            if word in _CONSTANTS:
                return Literal(_CONSTANTS[word])
            if word in KEYWORDS:
                raise ExpressionError(
                    self.source, f"unexpected keyword '{token.value}'", token.position
                )
            return Reference(tuple(token.value.split(".")))
        raise ExpressionError(self.source, f"unexpected '{token.value}'", token.position)


@dataclass(frozen=True)
class Expression:
    """A compiled predicate, reusable across runs."""

    source: str
    root: _Node

    @property
    def references(self) -> frozenset[tuple[str, ...]]:
        """Every dotted path the expression reads."""
        return frozenset(self.root.references())

    @property
    def root_names(self) -> frozenset[str]:
        return frozenset(path[0] for path in self.references)

    @property
    def is_constant(self) -> bool:
        return not self.references

    def evaluate(self, scope: Mapping[str, Any]) -> bool:
        """Evaluate against a variable scope.

        Raises:
            ExpressionError: If a comparison is not defined for the operand types
        """
        return bool(self.root.evaluate(scope))


def compile_expression(source: str) -> Expression:
    """Parse a predicate.

    Raises:
        ExpressionError: If the expression is not valid
    """
    return Expression(source=source, root=_Parser(source).parse())


# === Templates ===

_PLACEHOLDER = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")
_PATH = re.compile(r"^[A-Za-z_][A-Za-z0-9_-]*(?:\.[A-Za-z0-9_][A-Za-z0-9_-]*)*$")


def template_references(template: str) -> list[tuple[str, ...]]:
    """Dotted paths used by ``{{ path }}`` placeholders.

    Raises:
        ExpressionError: If a placeholder is not a plain dotted path
    """
    paths = []
    for match in _PLACEHOLDER.finditer(template):
        path = match.group(1)
        if not _PATH.match(path):
            raise ExpressionError(
                template, f"invalid placeholder '{{{{ {path} }}}}'", match.start()
            )
        paths.append(tuple(path.split(".")))
    return paths


def render_template(template: str, scope: Mapping[str, Any]) -> str:
    """Replace ``{{ path }}`` placeholders with values from ``scope``.

    Missing values render as an empty string.
    """

    def substitute(match: re.Match) -> str:
        value = resolve_path(scope, match.group(1).split("."))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(substitute, template)
