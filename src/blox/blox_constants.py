"""
Token inventory for the Blox language.

The lexer and parser share these tables so the surface syntax is defined in one
place:

    KEYWORDS: reserved words mapped to their token types.
    OPERATORS: punctuation and operator lexemes mapped to their token types.
        The lexer matches them longest-first, so `==` wins over `=`.
    token_hashmap: union of both tables, keyed by lexeme.
    BINARY_PRECEDENCE: binding strength of every binary operator token.
    TERM_START: token types that can begin a term.
    TOKEN_DESCRIPTIONS: human-readable names used in error messages.
"""

import string

LETTERS = string.ascii_letters
IDENT_START = LETTERS + "_"
IDENT_CHARS = IDENT_START + string.digits
DIGITS = string.digits
WHITESPACE = " \t\r\n\f\v"
QUOTES = "\"'"
COMMENT = "#"

KEYWORDS: dict[str, str] = {
    "let": "LET",
    "def": "DEF",
    "import": "IMPORT",
    "from": "FROM",
    "as": "AS",
    "if": "IF",
    "else": "ELSE",
    "true": "TRUE",
    "false": "FALSE",
}

OPERATORS: dict[str, str] = {
    # punctuation
    "{": "LBRACE",
    "}": "RBRACE",
    "(": "LPAREN",
    ")": "RPAREN",
    "[": "LBRACK",
    "]": "RBRACK",
    ",": "COMMA",
    ":": "COLON",
    ".": "DOT",
    "..": "DOTDOT",
    "|": "PIPE",
    # operators
    "-": "SUB",
    "!": "NOT",
    "*": "MULT",
    "/": "DIV",
    "++": "CONCAT",
    "+": "PLUS",
    "==": "EQ",
    "!=": "NE",
    ">=": "GE",
    ">": "GT",
    "<=": "LE",
    "<": "LT",
    "=": "ASSIGN",
    "<<": "APPEND",
}

token_hashmap: dict[str, str] = {**KEYWORDS, **OPERATORS}

MAX_OPERATOR_LENGTH = max(len(op) for op in OPERATORS)

# Higher binds tighter. Every binary operator is left-associative.
BINARY_PRECEDENCE: dict[str, int] = {
    "MULT": 3,
    "DIV": 3,
    "CONCAT": 2,
    "PLUS": 2,
    "SUB": 2,
    "EQ": 2,
    "NE": 2,
    "LT": 2,
    "LE": 2,
    "GT": 2,
    "GE": 2,
    "ASSIGN": 1,
    "APPEND": 1,
}

LOWEST_PRECEDENCE = min(BINARY_PRECEDENCE.values())

# Deepest chain of terms nested inside one another, e.g. `((1))` is 3.
MAX_NESTING_DEPTH = 100

UNARY_OPERATORS: frozenset[str] = frozenset({"SUB", "NOT"})

LITERAL_TOKENS: frozenset[str] = frozenset(
    {"NUMBER", "STRING", "SYMBOL", "TRUE", "FALSE"}
)

TERM_START: frozenset[str] = LITERAL_TOKENS | {
    "IF",
    "IDENT",
    "PIPE",
    "LPAREN",
    "LBRACK",
    "LBRACE",
}

TOKEN_DESCRIPTIONS: dict[str, str] = {
    "IDENT": "identifier",
    "NUMBER": "number",
    "STRING": "string",
    "SYMBOL": "symbol",
    "EOF": "end of input",
    **{kind: f"'{lexeme}'" for lexeme, kind in token_hashmap.items()},
}


def describe(token_type: str) -> str:
    """Returns the human-readable name of a token type."""
    return TOKEN_DESCRIPTIONS.get(token_type, token_type)
