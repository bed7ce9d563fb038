"""
Error types raised by the Blox front-end.

Classes:
    ErrorKind: Distinguishes lexical failures from syntax failures.
    ParseError: Base class for every lexer and parser failure. Subclasses the
        built-in `SyntaxError` and fills its `filename`/`lineno`/`offset`, so a
        standard traceback points at the offending Blox source location.
    LexicalError: An unrecognized character or an unterminated string.
    UnexpectedTokenError: A required token or production was missing or an
        unexpected token was found.
    ParameterError: A parameter list repeats a name. Raised by the validation
        pass, never by the parser.

Every parse error is positional and deterministic: the first failure aborts
the parse and is raised to the caller.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING, Any

from blox.blox_location import Position

if TYPE_CHECKING:  # pragma: no cover
    from blox.blox_lexer import Token


class ErrorKind(Enum):
    LEXICAL = "lexical"
    SYNTAX = "syntax"


class ParseError(SyntaxError):
    """Base class for failures while turning Blox source into a tree.

    Args:
        message (str): Human-readable description of the failure.
        position (Position): Where the failure was detected.
        filename (str): Name of the source, used in diagnostics.
        expected (Iterable[str]): Token types that would have been accepted.
        found (Token | None): The token actually found, if any.

    Attributes:
        kind (ErrorKind): LEXICAL or SYNTAX.
        message (str): The description, without location prefix.
        position (Position): Offset, line and column of the failure.
        filename (str): Source name.
        expected (tuple[str, ...]): Acceptable token types.
        found (Token | None): Offending token.
    """

    kind: ErrorKind = ErrorKind.SYNTAX

    def __init__(
        self,
        message: str,
        position: Position,
        filename: str = "<input>",
        expected: Iterable[str] = (),
        found: Token | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.position = position
        self.filename = filename
        self.lineno = position.line
        self.offset = position.column
        self.expected: tuple[str, ...] = tuple(expected)
        self.found = found

    def __str__(self) -> str:
        return f"{self.filename}:{self.position.line}:{self.position.column}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "filename": self.filename,
            "position": self.position.to_dict(),
            "expected": list(self.expected),
            "found": self.found.type if self.found is not None else None,
        }


class LexicalError(ParseError):
    kind = ErrorKind.LEXICAL


class UnexpectedTokenError(ParseError):
    kind = ErrorKind.SYNTAX


class ParameterError(Exception):
    """Raised when a definition or lambda repeats a parameter name.

    Attributes:
        duplicates (list[Any]): The repeated `Identifier` nodes, in source order.

    Example:
        raise ParameterError("Duplicate parameter 'x'", [identifier])
    """

    def __init__(self, message: str, duplicates: list[Any] | None = None):
        super().__init__(message)
        self.duplicates = duplicates or []
