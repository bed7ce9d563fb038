"""
Lexical analyzer for the Blox language.

This module converts raw source text into a lazy stream of tokens:

Classes:
    CharacterStream: Stream abstraction for reading characters with offset/line/column tracking.
    Token: A single token with type, raw lexeme, and start/end positions.
    Lexer: Pulls tokens out of a CharacterStream, one at a time.

Features:
    - Skips whitespace and single-line comments (`#`)
    - Longest-match recognition of operators (`==` over `=`, `++` over `+`)
    - Recognizes:
        * Identifiers and keywords (`let def import from as if else true false`)
        * Numbers with an optional leading sign (`-5`, `3.25`)
        * Strings in single or double quotes, escaped quotes kept as written
        * Symbols (`:name`)
        * Operators and punctuation

Raises:
    LexicalError: On an unrecognized character or an unterminated string.

Example:
    >>> lexer = Lexer(CharacterStream("let x = 42"))
    >>> lexer.next_token()
    Token(LET, 'let', 1:1)

Exports:
    - CharacterStream
    - Token
    - Lexer
    - tokenize
    - token_hashmap
"""

from collections.abc import Iterator
from typing import Any

from blox.blox_constants import (
    COMMENT,
    DIGITS,
    IDENT_CHARS,
    IDENT_START,
    KEYWORDS,
    LETTERS,
    MAX_OPERATOR_LENGTH,
    OPERATORS,
    QUOTES,
    WHITESPACE,
    token_hashmap,
)
from blox.blox_errors import LexicalError
from blox.blox_location import Position, Span


class CharacterStream:
    """
    A utility for reading characters from a string source with position tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
        column (int): Current column number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1, column: int = 1):
        self.source = source
        self.position = position
        self.line = line
        self.column = column

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """
        Returns the character at the given offset from the current position without advancing.

        Returns:
            str: The character at the offset, or an empty string if out of bounds.
        """
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def location(self) -> Position:
        """Returns the current position as an immutable `Position`."""
        return Position(self.position, self.line, self.column)

    def rewind(self) -> None:
        """Moves the stream back to the start of the source."""
        self.position = 0
        self.line = 1
        self.column = 1

    def end_of_file(self) -> bool:
        return self.position >= len(self.source)


class Token:
    """Represents a single lexical token in the Blox language.

    Attributes:
        type (str): The canonical token type (e.g. 'IDENT', 'NUMBER', 'EOF').
        value (str): The raw lexeme as written in the source (quotes, sign and
            symbol colon included).
        start (Position): Where the token begins.
        end (Position): Just past the last character of the token.
    """

    def __init__(
        self,
        type_: str,
        value: str,
        start: Position | None = None,
        end: Position | None = None,
    ):
        self.type = type_
        self.value = value
        self.start = start or Position()
        self.end = end or self.start.advance(len(value))

    @property
    def line(self) -> int:
        return self.start.line

    @property
    def col(self) -> int:
        return self.start.column

    @property
    def span(self) -> Span:
        return Span(self.start, self.end)

    def __repr__(self) -> str:
        return f"Token({self.type}, {self.value!r}, {self.start})"

    def __eq__(self, other: Any) -> bool:
        return (
            isinstance(other, Token)
            and self.type == other.type
            and self.value == other.value
            and self.start == other.start
            and self.end == other.end
        )

    def __hash__(self) -> int:
        return hash((self.type, self.value, self.start, self.end))


class Lexer:
    """Lexical analyzer for the Blox language.

    The Lexer takes a CharacterStream and converts it into Token objects on
    demand. Iterating a Lexer yields tokens up to and including a single EOF
    token; `reset()` starts over from the beginning of the source.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        filename (str): Source name reported in errors.
    """

    def __init__(self, stream: CharacterStream, filename: str = "<input>") -> None:
        self.stream = stream
        self.filename = filename

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type == "EOF":
                return

    def reset(self) -> None:
        self.stream.rewind()

    def peek(self, offset: int = 0) -> str:
        return self.stream.peek(offset)

    def advance(self) -> str:
        return self.stream.next()

    def error(self, message: str, position: Position) -> LexicalError:
        return LexicalError(message, position, self.filename)

    def skip_whitespace(self) -> None:
        """Skips all whitespace and comments in the stream."""
        while not self.stream.end_of_file():
            if self.peek() in WHITESPACE:
                self.advance()
            elif self.peek() == COMMENT:
                self.skip_comment()
            else:
                break

    def skip_comment(self) -> None:
        """Advances through the stream until the end of a comment line."""
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def consume(self, type_: str, count: int) -> Token:
        """Consumes `count` characters as a single token of the given type."""
        start = self.stream.location()
        value = "".join(self.advance() for _ in range(count))
        return Token(type_, value, start, self.stream.location())

    def match_operator(self) -> Token | None:
        """Attempts to match the longest valid operator from the current position.

        Returns:
            Token | None: A Token if a match is found, otherwise None.
        """
        match_len = 0
        candidate = ""

        for i in range(MAX_OPERATOR_LENGTH):
            ch = self.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in OPERATORS:
                match_len = i + 1

        if match_len:
            return self.consume(OPERATORS[candidate[:match_len]], match_len)
        return None

    def read_identifier(self) -> Token:
        length = 0
        while self.peek(length) != "" and self.peek(length) in IDENT_CHARS:
            length += 1
        word = self.stream.source[self.stream.position : self.stream.position + length]
        return self.consume(KEYWORDS.get(word, "IDENT"), length)

    def read_number(self) -> Token:
        """Reads `-?[0-9]+(.[0-9]+)?`. A dot not followed by a digit is left alone."""
        length = 1 if self.peek() == "-" else 0
        while self.is_digit(self.peek(length)):
            length += 1
        if self.peek(length) == "." and self.is_digit(self.peek(length + 1)):
            length += 1
            while self.is_digit(self.peek(length)):
                length += 1
        return self.consume("NUMBER", length)

    def read_string(self) -> Token:
        """Reads a quoted string. `\\"` (or `\\'`) does not close it and is kept as written."""
        start = self.stream.location()
        quote = self.peek()
        length = 1
        while True:
            ch = self.peek(length)
            if ch == "":
                raise self.error("Unterminated string literal", start)
            if ch == "\\" and self.peek(length + 1) == quote:
                length += 2
            elif ch == quote:
                return self.consume("STRING", length + 1)
            else:
                length += 1

    def symbol_length(self) -> int:
        """Length of a `:name` symbol at the current position, or 0 if there is none.

        A letter run that continues into a digit or underscore is an identifier,
        so `:b1` is a colon followed by `b1` rather than the symbol `:b`.
        """
        length = 1
        while self.peek(length) != "" and self.peek(length) in LETTERS:
            length += 1
        if length == 1 or (self.peek(length) != "" and self.peek(length) in IDENT_CHARS):
            return 0
        return length

    @staticmethod
    def is_digit(ch: str) -> bool:
        return ch != "" and ch in DIGITS

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Returns:
            Token: The next token, or an EOF token once the source is exhausted.

        Raises:
            LexicalError: On an unrecognized character or an unterminated string.
        """
        self.skip_whitespace()

        if self.stream.end_of_file():
            here = self.stream.location()
            return Token("EOF", "", here, here)

        ch = self.peek()

        # 1. Identifier or keyword
        if ch in IDENT_START:
            return self.read_identifier()

        # 2. Number, signed when the minus touches a digit
        if self.is_digit(ch) or (ch == "-" and self.is_digit(self.peek(1))):
            return self.read_number()

        # 3. String
        if ch in QUOTES:
            return self.read_string()

        # 4. Symbol
        if ch == ":":
            length = self.symbol_length()
            if length:
                return self.consume("SYMBOL", length)

        # 5. Compound or single-character operator
        token = self.match_operator()
        if token:
            return token

        raise self.error(f"Unexpected character {ch!r}", self.stream.location())


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Lexes the whole source, returning every token including the final EOF."""
    return list(Lexer(CharacterStream(source), filename))


__all__ = ["CharacterStream", "Lexer", "Token", "token_hashmap", "tokenize"]
