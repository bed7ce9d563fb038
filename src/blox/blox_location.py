"""Source positions and spans attached to tokens, AST nodes and errors."""

from dataclasses import dataclass
from typing import TypedDict


class PositionDict(TypedDict):
    offset: int
    line: int
    column: int


class SpanDict(TypedDict):
    start: PositionDict
    end: PositionDict


@dataclass(frozen=True, order=True)
class Position:
    """A point in the source text.

    Attributes:
        offset (int): 0-based character offset into the source.
        line (int): 1-based line number.
        column (int): 1-based column number.
    """

    offset: int = 0
    line: int = 1
    column: int = 1

    def advance(self, count: int) -> "Position":
        """Returns the position `count` characters further along the same line."""
        return Position(self.offset + count, self.line, self.column + count)

    def to_dict(self) -> PositionDict:
        return {"offset": self.offset, "line": self.line, "column": self.column}

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Span:
    """A half-open range of source text, from `start` up to `end`."""

    start: Position = Position()
    end: Position = Position()

    def contains(self, other: "Span") -> bool:
        return (
            self.start.offset <= other.start.offset
            and other.end.offset <= self.end.offset
        )

    def to_dict(self) -> SpanDict:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"
