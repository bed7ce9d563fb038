"""
Blox Language Parser

Parses Blox source tokens into an immutable abstract syntax tree (AST).

This module implements a recursive-descent parser with an embedded
precedence-climbing loop for binary operators. It pulls tokens lazily from the
lexer through a small lookahead buffer and builds `blox.blox_ast` nodes
bottom-up, each annotated with the source span it was parsed from.

Supported Constructs
--------------------
- Statements:
    * Bindings: `let x = 1`
    * Definitions: `def add(a, b) { a + b }`
    * Imports: `import { a, b as c } from "lib"`
    * Expression statements

- Expressions (tightest first):
    * `.field`, `.method(arg: value)`
    * unary `-` and `!`, `[index]`, `[start..end]`, `*`, `/`
    * `++`, `+`, `-`, `==`, `!=`, `<`, `<=`, `>`, `>=`
    * `=` (assignment), `<<` (append)
  All binary operators are left-associative.

- Terms:
    * `if` / `else if` / `else` expressions
    * Function calls with named arguments: `f(a: 1, b: 2)`
    * Lambdas: `|x, y| x + y`
    * Parenthesized expressions
    * Literals, identifiers, arrays and objects

Parser Behavior
---------------
- Fails fast: the first problem raises a `ParseError`, no partial tree is returned.
- `-` and `!` are unary only where a term is expected.
- A signed number token in continuation position (`1-5`) is only split when it
  starts on the line where the previous token ends; `-5` at the start of a
  line begins a new statement.
- A symbol token where a colon is required (`f(a:b)`) is split into `:` and `b`.
- Terms nest at most `MAX_NESTING_DEPTH` levels deep. Deeper input fails with
  an `UnexpectedTokenError` instead of exhausting the Python stack.

Entry Points
------------
- `parse()`: Parse a full source file into a `SourceFile` node.
- `parse_expression()`: Parse a single expression spanning the whole input.

Raises
------
LexicalError
    Raised when the lexer meets an unrecognized character or an unterminated string.
UnexpectedTokenError
    Raised when a required token is missing or an unexpected token appears.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from typing import TypeVar

from blox.blox_ast import (
    Argument,
    Array,
    ArrayIndex,
    ArraySlice,
    BinaryExpression,
    BinaryOperator,
    Binding,
    Block,
    Boolean,
    Definition,
    Else,
    ElseIf,
    Expression,
    ExpressionStatement,
    FunctionCall,
    GroupTerm,
    Identifier,
    IfExpression,
    Import,
    ImportedSymbol,
    Lambda,
    MethodCall,
    Number,
    Object,
    ObjectIndex,
    ObjectMember,
    SourceFile,
    Statement,
    String,
    Symbol,
    Term,
    UnaryExpression,
    UnaryOperator,
    Value,
)
from blox.blox_constants import (
    BINARY_PRECEDENCE,
    KEYWORDS,
    LOWEST_PRECEDENCE,
    MAX_NESTING_DEPTH,
    TERM_START,
    UNARY_OPERATORS,
    describe,
)
from blox.blox_errors import UnexpectedTokenError
from blox.blox_lexer import CharacterStream, Lexer, Token
from blox.blox_location import Position, Span

logger = logging.getLogger(__name__)

T = TypeVar("T")

BINARY_OPERATORS: dict[str, BinaryOperator] = {
    "MULT": BinaryOperator.MULTIPLY,
    "DIV": BinaryOperator.DIVIDE,
    "CONCAT": BinaryOperator.CONCATENATE,
    "PLUS": BinaryOperator.ADD,
    "SUB": BinaryOperator.SUBTRACT,
    "EQ": BinaryOperator.EQUAL,
    "NE": BinaryOperator.NOT_EQUAL,
    "LT": BinaryOperator.LESS_THAN,
    "LE": BinaryOperator.LESS_OR_EQUAL,
    "GT": BinaryOperator.GREATER_THAN,
    "GE": BinaryOperator.GREATER_OR_EQUAL,
    "ASSIGN": BinaryOperator.ASSIGNMENT,
    "APPEND": BinaryOperator.APPEND,
}

PREFIX_OPERATORS: dict[str, UnaryOperator] = {
    "SUB": UnaryOperator.NEGATE,
    "NOT": UnaryOperator.NOT,
}

EXPRESSION_START = TERM_START | UNARY_OPERATORS


def span_of(start: Token | Span | Position, end: Token | Span | Position) -> Span:
    """Builds the span running from the start of `start` to the end of `end`."""
    first = start if isinstance(start, Position) else start.start
    last = end if isinstance(end, Position) else end.end
    return Span(first, last)


class Parser:
    """
    Blox Parser Class

    Transforms a stream of lexical tokens into a `SourceFile` tree. Tokens are
    pulled lazily; the parser never looks further ahead than the token after
    the current one.

    Attributes
    ----------
    filename : str
        Source name reported in errors.
    previous : Token | None
        The most recently consumed token, used to place end-of-input errors.

    Methods
    -------
    parse() -> SourceFile
        Parse statements until end of input.
    parse_statement() -> Statement
        Parse one binding, definition, import or expression statement.
    parse_block() -> Block
        Parse a `{}`-enclosed list of statements.
    parse_expression(min_precedence) -> Expression
        Precedence-climbing parse of a full expression.
    parse_term() -> Term
        Parse one primary term and its postfix chain.

    Raises
    ------
    UnexpectedTokenError
        When an invalid construct or malformed syntax is encountered.
    """

    def __init__(self, tokens: Iterable[Token], filename: str = "<input>") -> None:
        self.filename = filename
        self.previous: Token | None = None
        self._tokens: Iterator[Token] = iter(tokens)
        self._lookahead: list[Token] = []
        self.depth = 0

    # -- Navigation helpers ------------------------------------------------

    def current(self) -> Token:
        return self.peek(0)

    def peek(self, offset: int = 1) -> Token:
        """Looks ahead `offset` tokens without consuming. Past the end, returns EOF."""
        while len(self._lookahead) <= offset:
            if self._lookahead and self._lookahead[-1].type == "EOF":
                return self._lookahead[-1]
            token = next(self._tokens, None)
            if token is None:
                if self._lookahead:
                    here = self._lookahead[-1].end
                else:
                    here = self.previous.end if self.previous else Position()
                token = Token("EOF", "", here, here)
            self._lookahead.append(token)
        return self._lookahead[offset]

    def advance(self) -> Token:
        """Consumes and returns the current token. EOF is never consumed."""
        tok = self.current()
        if tok.type != "EOF":
            self._lookahead.pop(0)
            self.previous = tok
        return tok

    def at(self, *types: str) -> bool:
        return self.current().type in types

    def match(self, *types: str) -> Token | None:
        if self.at(*types):
            return self.advance()
        return None

    def expect(self, *types: str) -> Token:
        tok = self.match(*types)
        if tok is None:
            raise self.error(types)
        return tok

    def at_end(self) -> bool:
        return self.at("EOF")

    def error(self, expected: Iterable[str]) -> UnexpectedTokenError:
        """Builds an error for the current token, given the acceptable token types.

        An error at end of input is placed right after the last consumed token,
        so `let x = ` points at the missing value rather than trailing blanks.
        """
        found = self.current()
        expected = tuple(dict.fromkeys(expected))
        position = found.start
        if found.type == "EOF" and self.previous is not None:
            position = self.previous.end
        found_text = describe("EOF") if found.type == "EOF" else repr(found.value)
        message = f"Expected {self.describe_expected(expected)}, found {found_text}"
        return UnexpectedTokenError(message, position, self.filename, expected, found)

    def nesting_error(self) -> UnexpectedTokenError:
        tok = self.current()
        return UnexpectedTokenError(
            f"Nesting too deep (more than {MAX_NESTING_DEPTH} levels)",
            tok.start,
            self.filename,
            found=tok,
        )

    @staticmethod
    def describe_expected(expected: tuple[str, ...]) -> str:
        names = sorted({describe(t) for t in expected})
        if len(names) == 1:
            return names[0]
        return "one of " + ", ".join(names)

    # -- Context-sensitive token splitting ---------------------------------

    def split_signed_number(self) -> None:
        """Turns a `-5` token at the cursor into `-` followed by `5`."""
        tok = self.current()
        minus_end = tok.start.advance(1)
        self._lookahead[0:1] = [
            Token("SUB", "-", tok.start, minus_end),
            Token("NUMBER", tok.value[1:], minus_end, tok.end),
        ]

    def continues_with_signed_number(self, tok: Token) -> bool:
        """True for a `-5` token on the same line as the operand before it."""
        return (
            tok.type == "NUMBER"
            and tok.value.startswith("-")
            and self.previous is not None
            and tok.start.line == self.previous.end.line
        )

    def expect_colon(self) -> Token:
        """Consumes a `:`, splitting a symbol token such as `:b` into `:` and `b`."""
        tok = self.current()
        if tok.type == "SYMBOL":
            colon_end = tok.start.advance(1)
            word = tok.value[1:]
            self._lookahead[0:1] = [
                Token("COLON", ":", tok.start, colon_end),
                Token(KEYWORDS.get(word, "IDENT"), word, colon_end, tok.end),
            ]
        return self.expect("COLON")

    # -- Shared list helpers -----------------------------------------------

    def parse_separated(
        self, parse_item: Callable[[], T], close: str, trailing_comma: bool = False
    ) -> tuple[list[T], Token]:
        """Parses comma-separated items up to and including the `close` token.

        Returns:
            tuple[list[T], Token]: The items and the closing token.
        """
        items: list[T] = []
        if not self.at(close):
            while True:
                items.append(parse_item())
                if not self.match("COMMA"):
                    break
                if trailing_comma and self.at(close):
                    break
        if not self.at(close):
            raise self.error(["COMMA", close] if items else [close])
        return items, self.advance()

    def parse_identifier(self) -> Identifier:
        tok = self.expect("IDENT")
        return Identifier(name=tok.value, span=tok.span)

    def parse_parameters(self, close: str) -> tuple[list[Identifier], Token]:
        return self.parse_separated(self.parse_identifier, close)

    def parse_argument(self) -> Argument:
        """Parse a named argument `name: value`. Positional arguments are rejected."""
        name = self.parse_identifier()
        self.expect_colon()
        value = self.parse_expression()
        return Argument(name=name, value=value, span=span_of(name.span, value.span))

    def parse_arguments(self) -> tuple[tuple[Argument, ...], Token]:
        self.expect("LPAREN")
        arguments, close = self.parse_separated(self.parse_argument, "RPAREN")
        return tuple(arguments), close

    # -- Top-level ---------------------------------------------------------

    def parse(self) -> SourceFile:
        """Parse a full Blox source file and return its `SourceFile` node."""
        statements: list[Statement] = []
        while not self.at_end():
            statements.append(self.parse_statement())
        end = self.current().end
        logger.debug("parsed %d statements from %s", len(statements), self.filename)
        return SourceFile(statements=tuple(statements), span=Span(Position(), end))

    # -- Statement parsing -------------------------------------------------

    def parse_statement(self) -> Statement:
        """Parse a single top-level or block-level Blox statement."""
        tok = self.current()
        if tok.type == "LET":
            return self.parse_binding()
        if tok.type == "DEF":
            return self.parse_definition()
        if tok.type == "IMPORT":
            return self.parse_import()
        expression = self.parse_expression()
        return ExpressionStatement(expression=expression, span=expression.span)

    def parse_binding(self) -> Binding:
        """Parse `let name = value`."""
        let_tok = self.expect("LET")
        name = self.parse_identifier()
        self.expect("ASSIGN")
        value = self.parse_expression()
        return Binding(name=name, value=value, span=span_of(let_tok, value.span))

    def parse_definition(self) -> Definition:
        """Parse `def name(params) { body }`."""
        def_tok = self.expect("DEF")
        name = self.parse_identifier()
        self.expect("LPAREN")
        parameters, _ = self.parse_parameters("RPAREN")
        body = self.parse_block()
        return Definition(
            name=name,
            parameters=tuple(parameters),
            body=body,
            span=span_of(def_tok, body.span),
        )

    def parse_imported_symbol(self) -> ImportedSymbol:
        identifier = self.parse_identifier()
        alias = None
        if self.match("AS"):
            alias = self.parse_identifier()
        end = alias.span if alias else identifier.span
        return ImportedSymbol(
            identifier=identifier, alias=alias, span=span_of(identifier.span, end)
        )

    def parse_import(self) -> Import:
        """Parse `import { a, b as c } from "path"`. At least one symbol is required."""
        import_tok = self.expect("IMPORT")
        self.expect("LBRACE")
        symbols = [self.parse_imported_symbol()]
        while self.match("COMMA"):
            symbols.append(self.parse_imported_symbol())
        if not self.at("RBRACE"):
            raise self.error(["COMMA", "RBRACE"])
        self.advance()
        self.expect("FROM")
        path_tok = self.expect("STRING")
        path = self.string_literal(path_tok)
        return Import(
            symbols=tuple(symbols), path=path, span=span_of(import_tok, path_tok)
        )

    def parse_block(self) -> Block:
        """Parse a `{}`-enclosed block of Blox statements."""
        open_tok = self.expect("LBRACE")
        statements: list[Statement] = []
        while not self.at("RBRACE"):
            if self.at_end():
                raise self.error(["RBRACE"])
            statements.append(self.parse_statement())
        close_tok = self.advance()
        return Block(statements=tuple(statements), span=span_of(open_tok, close_tok))

    # -- Expression parsing ------------------------------------------------

    def parse_expression(self, min_precedence: int = LOWEST_PRECEDENCE) -> Expression:
        """Precedence-climbing parse of a binary expression.

        Operators binding at least as tightly as `min_precedence` are folded
        into the left operand; the right operand is parsed one level higher, so
        operators of equal strength associate to the left.
        """
        lhs = self.parse_unary()
        while True:
            tok = self.current()
            if self.continues_with_signed_number(tok):
                self.split_signed_number()
                tok = self.current()
            precedence = BINARY_PRECEDENCE.get(tok.type)
            if precedence is None or precedence < min_precedence:
                return lhs
            self.advance()
            rhs = self.parse_expression(precedence + 1)
            lhs = BinaryExpression(
                operator=BINARY_OPERATORS[tok.type],
                lhs=lhs,
                rhs=rhs,
                span=span_of(lhs.span, rhs.span),
            )

    def parse_unary(self) -> Expression:
        """Parse `-term`, `!term` or a plain term."""
        tok = self.current()
        if tok.type in PREFIX_OPERATORS:
            self.advance()
            operand = self.parse_term()
            return UnaryExpression(
                operator=PREFIX_OPERATORS[tok.type],
                operand=operand,
                span=span_of(tok, operand.span),
            )
        return self.parse_term(EXPRESSION_START)

    def parse_term(self, expected: Iterable[str] = TERM_START) -> Term:
        """Parse a primary term, then apply postfix indexing greedily."""
        self.depth += 1
        try:
            if self.depth > MAX_NESTING_DEPTH:
                raise self.nesting_error()
            tok = self.current()
            term: Term
            if tok.type == "IF":
                term = self.parse_if()
            elif tok.type == "IDENT" and self.peek().type == "LPAREN":
                term = self.parse_function_call()
            elif tok.type == "PIPE":
                term = self.parse_lambda()
            elif tok.type == "LPAREN":
                term = self.parse_group()
            elif tok.type in TERM_START:
                term = self.parse_value()
            else:
                raise self.error(expected)
            return self.parse_postfix(term)
        finally:
            self.depth -= 1

    def parse_postfix(self, term: Term) -> Term:
        """Apply `.field`, `.method(...)`, `[index]` and `[start..end]` left to right."""
        while True:
            if self.match("DOT"):
                name = self.parse_identifier()
                if self.at("LPAREN"):
                    arguments, close = self.parse_arguments()
                    term = MethodCall(
                        base=term,
                        name=name,
                        arguments=arguments,
                        span=span_of(term.span, close),
                    )
                else:
                    term = ObjectIndex(
                        base=term, index=name, span=span_of(term.span, name.span)
                    )
            elif self.match("LBRACK"):
                term = self.parse_index(term)
            else:
                return term

    def parse_index(self, base: Term) -> Term:
        """Parse the inside of `base[...]` after the opening bracket."""
        start = None
        if not self.at("DOTDOT"):
            start = self.parse_expression()
            if self.at("RBRACK"):
                close = self.advance()
                return ArrayIndex(base=base, index=start, span=span_of(base.span, close))
        self.expect("DOTDOT", "RBRACK")
        end = None
        if not self.at("RBRACK"):
            end = self.parse_expression()
        close = self.expect("RBRACK")
        return ArraySlice(base=base, start=start, end=end, span=span_of(base.span, close))

    def parse_if(self) -> IfExpression:
        """Parse `if cond {..}`, any `else if cond {..}` clauses and an optional `else {..}`."""
        if_tok = self.expect("IF")
        condition = self.parse_expression()
        body = self.parse_block()
        else_ifs: list[ElseIf] = []
        else_branch = None
        while self.at("ELSE"):
            else_tok = self.advance()
            if self.match("IF"):
                elif_condition = self.parse_expression()
                elif_body = self.parse_block()
                else_ifs.append(
                    ElseIf(
                        condition=elif_condition,
                        body=elif_body,
                        span=span_of(else_tok, elif_body.span),
                    )
                )
            else:
                else_body = self.parse_block()
                else_branch = Else(body=else_body, span=span_of(else_tok, else_body.span))
                break
        last = else_branch or (else_ifs[-1] if else_ifs else body)
        return IfExpression(
            condition=condition,
            body=body,
            else_ifs=tuple(else_ifs),
            else_branch=else_branch,
            span=span_of(if_tok, last.span),
        )

    def parse_function_call(self) -> FunctionCall:
        name = self.parse_identifier()
        arguments, close = self.parse_arguments()
        return FunctionCall(name=name, arguments=arguments, span=span_of(name.span, close))

    def parse_lambda(self) -> Lambda:
        """Parse `|params| expression`."""
        open_tok = self.expect("PIPE")
        parameters, _ = self.parse_parameters("PIPE")
        body = self.parse_expression()
        return Lambda(
            parameters=tuple(parameters), body=body, span=span_of(open_tok, body.span)
        )

    def parse_group(self) -> GroupTerm:
        open_tok = self.expect("LPAREN")
        expression = self.parse_expression()
        close_tok = self.expect("RPAREN")
        return GroupTerm(expression=expression, span=span_of(open_tok, close_tok))

    def parse_value(self) -> Value:
        """Parse a literal, identifier, array or object."""
        tok = self.current()
        if tok.type == "LBRACK":
            return self.parse_array()
        if tok.type == "LBRACE":
            return self.parse_object()
        tok = self.advance()
        if tok.type == "IDENT":
            return Identifier(name=tok.value, span=tok.span)
        if tok.type == "NUMBER":
            return Number(text=tok.value, span=tok.span)
        if tok.type == "STRING":
            return self.string_literal(tok)
        if tok.type == "SYMBOL":
            return Symbol(name=tok.value[1:], span=tok.span)
        return Boolean(value=tok.type == "TRUE", span=tok.span)

    @staticmethod
    def string_literal(tok: Token) -> String:
        return String(text=tok.value[1:-1], quote=tok.value[0], span=tok.span)

    def parse_array(self) -> Array:
        open_tok = self.expect("LBRACK")
        members, close = self.parse_separated(self.parse_expression, "RBRACK")
        return Array(members=tuple(members), span=span_of(open_tok, close))

    def parse_object_member(self) -> ObjectMember:
        key = self.parse_identifier()
        self.expect_colon()
        value = self.parse_expression()
        return ObjectMember(key=key, value=value, span=span_of(key.span, value.span))

    def parse_object(self) -> Object:
        """Parse `{ key: value, ... }`; a single trailing comma is allowed."""
        open_tok = self.expect("LBRACE")
        members, close = self.parse_separated(
            self.parse_object_member, "RBRACE", trailing_comma=True
        )
        return Object(members=tuple(members), span=span_of(open_tok, close))


def _parser_for(source: str, filename: str) -> Parser:
    logger.debug("parsing %s (%d characters)", filename, len(source))
    return Parser(Lexer(CharacterStream(source), filename), filename)


def parse(source: str, filename: str = "<input>") -> SourceFile:
    """Parse Blox source text into a `SourceFile` tree.

    Args:
        source (str): The Blox program.
        filename (str): Name used in error messages.

    Returns:
        SourceFile: The root of the syntax tree.

    Raises:
        LexicalError: On an unrecognized character or unterminated string.
        UnexpectedTokenError: On any syntax error, or terms nested deeper than
            `MAX_NESTING_DEPTH`.
    """
    parser = _parser_for(source, filename)
    try:
        return parser.parse()
    except RecursionError:
        raise parser.nesting_error() from None


def parse_expression(source: str, filename: str = "<input>") -> Expression:
    """Parse source text consisting of exactly one expression."""
    parser = _parser_for(source, filename)
    try:
        expression = parser.parse_expression()
    except RecursionError:
        raise parser.nesting_error() from None
    if not parser.at_end():
        raise parser.error(["EOF", *BINARY_PRECEDENCE])
    return expression
