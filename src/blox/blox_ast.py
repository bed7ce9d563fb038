"""
Defines the abstract syntax tree (AST) node structure for the Blox language.

Every syntactic construct is a frozen dataclass deriving from `Node`. Nodes are
built bottom-up by the parser, own their children exclusively, and are never
mutated afterwards. Every node carries a `span` covering the source text it was
parsed from; a parent's span always contains the spans of its children.

Class hierarchy:
    Node
        SourceFile, Block, ImportedSymbol, ElseIf, Else, Argument, ObjectMember
        Statement: Definition, Binding, Import, ExpressionStatement
        Expression: UnaryExpression, BinaryExpression
            Term: IfExpression, ArrayIndex, ArraySlice, ObjectIndex,
                  FunctionCall, MethodCall, Lambda, GroupTerm
                Value: Identifier, Array, Object
                    Literal: Boolean, Number, String, Symbol

Each node tracks:
    kind (str): snake_case name of the construct (e.g. "binary_expression").
    span (Span): start and end positions in the source.

Usage:
    Nodes are normally produced by `blox.blox_parser.parse`. They compare by
    structure (spans included), hash, and convert to plain dictionaries with
    `to_dict()` for JSON output.

Example:
    node = Binding(name=Identifier(name="x", span=s1), value=Number(text="1", span=s2), span=s)
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar

from blox.blox_location import Span

ASTDict = dict[str, Any]


class UnaryOperator(Enum):
    NEGATE = "-"
    NOT = "!"

    @property
    def title(self) -> str:
        return self.name.title().replace("_", "")


class BinaryOperator(Enum):
    MULTIPLY = "*"
    DIVIDE = "/"
    CONCATENATE = "++"
    ADD = "+"
    SUBTRACT = "-"
    EQUAL = "=="
    NOT_EQUAL = "!="
    LESS_THAN = "<"
    LESS_OR_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_OR_EQUAL = ">="
    ASSIGNMENT = "="
    APPEND = "<<"

    @property
    def title(self) -> str:
        return self.name.title().replace("_", "")


def _serialize(value: Any) -> Any:
    if isinstance(value, Node):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_serialize(v) for v in value]
    if isinstance(value, Enum):
        return value.name
    return value


@dataclass(frozen=True, kw_only=True)
class Node:
    """Base class for every AST node.

    Attributes:
        kind (ClassVar[str]): The construct name used in serialized output.
        span (Span): Source range the node was parsed from.
    """

    kind: ClassVar[str] = "node"
    span: Span = Span()

    def to_dict(self) -> ASTDict:
        """Converts the node (and all descendants) into nested dictionaries.

        Child nodes become dictionaries, tuples become lists and operators
        become their enum names. The result only contains JSON types.
        """
        data: ASTDict = {"kind": self.kind, "span": self.span.to_dict()}
        for f in fields(self):
            if f.name != "span":
                data[f.name] = _serialize(getattr(self, f.name))
        return data


@dataclass(frozen=True, kw_only=True)
class Statement(Node):
    pass


@dataclass(frozen=True, kw_only=True)
class Expression(Node):
    pass


@dataclass(frozen=True, kw_only=True)
class Term(Expression):
    pass


@dataclass(frozen=True, kw_only=True)
class Value(Term):
    pass


@dataclass(frozen=True, kw_only=True)
class Literal(Value):
    pass


# ── Values ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True, kw_only=True)
class Identifier(Value):
    kind: ClassVar[str] = "identifier"
    name: str


@dataclass(frozen=True, kw_only=True)
class Boolean(Literal):
    kind: ClassVar[str] = "boolean"
    value: bool


@dataclass(frozen=True, kw_only=True)
class Number(Literal):
    """A numeric literal, kept as written (`-5`, `3.25`)."""

    kind: ClassVar[str] = "number"
    text: str

    @property
    def value(self) -> Decimal:
        return Decimal(self.text)


@dataclass(frozen=True, kw_only=True)
class String(Literal):
    """A quoted string. `text` excludes the quotes; escapes are not decoded."""

    kind: ClassVar[str] = "string"
    text: str
    quote: str = '"'


@dataclass(frozen=True, kw_only=True)
class Symbol(Literal):
    kind: ClassVar[str] = "symbol"
    name: str


@dataclass(frozen=True, kw_only=True)
class Array(Value):
    kind: ClassVar[str] = "array"
    members: tuple[Expression, ...] = ()


@dataclass(frozen=True, kw_only=True)
class ObjectMember(Node):
    kind: ClassVar[str] = "object_member"
    key: Identifier
    value: Expression


@dataclass(frozen=True, kw_only=True)
class Object(Value):
    kind: ClassVar[str] = "object"
    members: tuple[ObjectMember, ...] = ()


# ── Terms ───────────────────────────────────────────────────────────────────


@dataclass(frozen=True, kw_only=True)
class Block(Node):
    kind: ClassVar[str] = "block"
    statements: tuple[Statement, ...] = ()


@dataclass(frozen=True, kw_only=True)
class ElseIf(Node):
    kind: ClassVar[str] = "else_if"
    condition: Expression
    body: Block


@dataclass(frozen=True, kw_only=True)
class Else(Node):
    kind: ClassVar[str] = "else"
    body: Block


@dataclass(frozen=True, kw_only=True)
class IfExpression(Term):
    kind: ClassVar[str] = "if_expression"
    condition: Expression
    body: Block
    else_ifs: tuple[ElseIf, ...] = ()
    else_branch: Else | None = None


@dataclass(frozen=True, kw_only=True)
class Argument(Node):
    kind: ClassVar[str] = "argument"
    name: Identifier
    value: Expression


@dataclass(frozen=True, kw_only=True)
class FunctionCall(Term):
    kind: ClassVar[str] = "function_call"
    name: Identifier
    arguments: tuple[Argument, ...] = ()


@dataclass(frozen=True, kw_only=True)
class MethodCall(Term):
    """`base.name(arg: value, ...)`."""

    kind: ClassVar[str] = "method_call"
    base: Expression
    name: Identifier
    arguments: tuple[Argument, ...] = ()


@dataclass(frozen=True, kw_only=True)
class ArrayIndex(Term):
    kind: ClassVar[str] = "array_index"
    base: Expression
    index: Expression


@dataclass(frozen=True, kw_only=True)
class ArraySlice(Term):
    """`base[start..end]`; either bound may be omitted."""

    kind: ClassVar[str] = "array_slice"
    base: Expression
    start: Expression | None = None
    end: Expression | None = None


@dataclass(frozen=True, kw_only=True)
class ObjectIndex(Term):
    kind: ClassVar[str] = "object_index"
    base: Expression
    index: Identifier


@dataclass(frozen=True, kw_only=True)
class Lambda(Term):
    kind: ClassVar[str] = "lambda"
    parameters: tuple[Identifier, ...] = ()
    body: Expression


@dataclass(frozen=True, kw_only=True)
class GroupTerm(Term):
    kind: ClassVar[str] = "group_term"
    expression: Expression


# ── Operators ───────────────────────────────────────────────────────────────


@dataclass(frozen=True, kw_only=True)
class UnaryExpression(Expression):
    kind: ClassVar[str] = "unary_expression"
    operator: UnaryOperator
    operand: Term


@dataclass(frozen=True, kw_only=True)
class BinaryExpression(Expression):
    kind: ClassVar[str] = "binary_expression"
    operator: BinaryOperator
    lhs: Expression
    rhs: Expression


# ── Statements ──────────────────────────────────────────────────────────────


@dataclass(frozen=True, kw_only=True)
class Definition(Statement):
    kind: ClassVar[str] = "definition"
    name: Identifier
    parameters: tuple[Identifier, ...] = ()
    body: Block


@dataclass(frozen=True, kw_only=True)
class Binding(Statement):
    kind: ClassVar[str] = "binding"
    name: Identifier
    value: Expression


@dataclass(frozen=True, kw_only=True)
class ImportedSymbol(Node):
    kind: ClassVar[str] = "imported_symbol"
    identifier: Identifier
    alias: Identifier | None = None


@dataclass(frozen=True, kw_only=True)
class Import(Statement):
    kind: ClassVar[str] = "import"
    symbols: tuple[ImportedSymbol, ...]
    path: String


@dataclass(frozen=True, kw_only=True)
class ExpressionStatement(Statement):
    kind: ClassVar[str] = "expression_statement"
    expression: Expression


@dataclass(frozen=True, kw_only=True)
class SourceFile(Node):
    kind: ClassVar[str] = "source_file"
    statements: tuple[Statement, ...] = ()


# ── Traversal ───────────────────────────────────────────────────────────────


def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yields the direct children of a node, in field order."""
    for f in fields(node):
        value = getattr(node, f.name)
        if isinstance(value, Node):
            yield value
        elif isinstance(value, tuple):
            for item in value:
                if isinstance(item, Node):
                    yield item


def walk(node: Node) -> Iterator[Node]:
    """Yields the node and all of its descendants, depth-first, parents first."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_child_nodes(current))))
