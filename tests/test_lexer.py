import pytest
from hypothesis import given
from hypothesis import strategies as st

from blox.blox_constants import KEYWORDS, OPERATORS
from blox.blox_errors import ErrorKind, LexicalError
from blox.blox_lexer import CharacterStream, Lexer, Token, tokenize
from blox.blox_location import Position


def types(source: str) -> list[str]:
    return [tok.type for tok in tokenize(source)][:-1]


def values(source: str) -> list[str]:
    return [tok.value for tok in tokenize(source)][:-1]


def test_punctuation_tokens() -> None:
    code = "{ } ( ) [ ] , : . .. |"
    assert types(code) == [
        "LBRACE",
        "RBRACE",
        "LPAREN",
        "RPAREN",
        "LBRACK",
        "RBRACK",
        "COMMA",
        "COLON",
        "DOT",
        "DOTDOT",
        "PIPE",
    ]


@pytest.mark.parametrize("lexeme, kind", sorted(OPERATORS.items()))  # type: ignore[misc]
def test_every_operator_alone(lexeme: str, kind: str) -> None:
    assert types(lexeme) == [kind]


@pytest.mark.parametrize("word, kind", sorted(KEYWORDS.items()))  # type: ignore[misc]
def test_keywords(word: str, kind: str) -> None:
    assert types(word) == [kind]


@pytest.mark.parametrize(  # type: ignore[misc]
    "code, expected",
    [
        ("==", ["EQ"]),
        ("= =", ["ASSIGN", "ASSIGN"]),
        ("++", ["CONCAT"]),
        ("+++", ["CONCAT", "PLUS"]),
        ("<<=", ["APPEND", "ASSIGN"]),
        ("<=", ["LE"]),
        ("!=", ["NE"]),
        ("!x", ["NOT", "IDENT"]),
        ("...", ["DOTDOT", "DOT"]),
        ("a>=b", ["IDENT", "GE", "IDENT"]),
    ],
)
def test_longest_match(code: str, expected: list[str]) -> None:
    assert types(code) == expected


def test_keyword_prefix_is_identifier() -> None:
    assert types("letter iffy define _as true_") == ["IDENT"] * 5


def test_identifiers() -> None:
    assert values("foo _bar baz9 A_b_1") == ["foo", "_bar", "baz9", "A_b_1"]
    assert types("foo _bar baz9 A_b_1") == ["IDENT"] * 4


@pytest.mark.parametrize(  # type: ignore[misc]
    "code, expected",
    [
        ("0", ["0"]),
        ("123", ["123"]),
        ("3.25", ["3.25"]),
        ("-5", ["-5"]),
        ("-0.5", ["-0.5"]),
        ("007", ["007"]),
    ],
)
def test_numbers(code: str, expected: list[str]) -> None:
    assert types(code) == ["NUMBER"]
    assert values(code) == expected


def test_dot_without_fraction_is_not_part_of_number() -> None:
    assert types("1.") == ["NUMBER", "DOT"]
    assert types("1.x") == ["NUMBER", "DOT", "IDENT"]
    assert types("1..2") == ["NUMBER", "DOTDOT", "NUMBER"]


def test_minus_sign_only_binds_to_adjacent_digit() -> None:
    assert types("- 5") == ["SUB", "NUMBER"]
    assert types("-x") == ["SUB", "IDENT"]
    assert types("1-5") == ["NUMBER", "NUMBER"]
    assert values("1-5") == ["1", "-5"]
    assert types("--5") == ["SUB", "NUMBER"]


def test_string_tokens_keep_quotes() -> None:
    assert types("\"hi\" 'there'") == ["STRING", "STRING"]
    assert values("\"hi\" 'there'") == ['"hi"', "'there'"]


def test_string_escaped_quote_is_kept() -> None:
    assert values(r'"say \"hi\""') == [r'"say \"hi\""']
    assert values(r"'it\'s'") == [r"'it\'s'"]


def test_other_quote_inside_string() -> None:
    assert values("\"it's\"") == ["\"it's\""]


def test_string_may_span_lines() -> None:
    tokens = tokenize('"a\nb" x')
    assert tokens[0].value == '"a\nb"'
    assert tokens[1].start == Position(6, 2, 4)


def test_unterminated_string() -> None:
    with pytest.raises(LexicalError) as excinfo:
        tokenize('let s = "abc')
    err = excinfo.value
    assert err.kind is ErrorKind.LEXICAL
    assert err.position == Position(8, 1, 9)
    assert "Unterminated string" in err.message


def test_symbols() -> None:
    assert types(":ok :Value") == ["SYMBOL", "SYMBOL"]
    assert values(":ok :Value") == [":ok", ":Value"]


@pytest.mark.parametrize(  # type: ignore[misc]
    "code, expected",
    [
        (":b1", ["COLON", "IDENT"]),
        (":b_c", ["COLON", "IDENT"]),
        (": b", ["COLON", "IDENT"]),
        (":1", ["COLON", "NUMBER"]),
        (":", ["COLON"]),
        ("a:b", ["IDENT", "SYMBOL"]),
    ],
)
def test_symbol_boundaries(code: str, expected: list[str]) -> None:
    assert types(code) == expected


def test_comments_and_whitespace_are_skipped() -> None:
    code = "# heading\nlet x = 1 # trailing\n\t# indented\n"
    assert types(code) == ["LET", "IDENT", "ASSIGN", "NUMBER"]


def test_comment_marker_inside_string() -> None:
    assert values('"# not a comment"') == ['"# not a comment"']


def test_positions() -> None:
    tokens = tokenize("let x =\n  42")
    assert [(t.line, t.col) for t in tokens] == [(1, 1), (1, 5), (1, 7), (2, 3), (2, 5)]
    assert tokens[3].start.offset == 10
    assert tokens[3].end == Position(12, 2, 5)


def test_eof_token() -> None:
    tokens = tokenize("  ")
    assert len(tokens) == 1
    assert tokens[0].type == "EOF"
    assert tokens[0].start == Position(2, 1, 3)


def test_eof_is_repeated() -> None:
    lexer = Lexer(CharacterStream("x"))
    assert lexer.next_token().type == "IDENT"
    assert lexer.next_token().type == "EOF"
    assert lexer.next_token().type == "EOF"


@pytest.mark.parametrize("ch", ["@", "$", "%", "&", "^", "~", "?", ";", "é"])  # type: ignore[misc]
def test_unexpected_character(ch: str) -> None:
    with pytest.raises(LexicalError) as excinfo:
        tokenize(f"x {ch}")
    assert excinfo.value.position == Position(2, 1, 3)
    assert repr(ch) in excinfo.value.message


def test_lexer_is_lazy() -> None:
    lexer = Lexer(CharacterStream("a b @"))
    stream = iter(lexer)
    assert next(stream).value == "a"
    assert next(stream).value == "b"
    with pytest.raises(LexicalError):
        next(stream)


def test_reset_restarts_from_the_beginning() -> None:
    lexer = Lexer(CharacterStream("a + b"))
    first = list(lexer)
    lexer.reset()
    assert list(lexer) == first


def test_error_carries_filename() -> None:
    with pytest.raises(LexicalError) as excinfo:
        tokenize("?", "main.blox")
    assert str(excinfo.value).startswith("main.blox:1:1: ")


def test_token_repr_and_equality() -> None:
    tok = Token("IDENT", "x", Position(0, 1, 1))
    assert repr(tok) == "Token(IDENT, 'x', 1:1)"
    assert tok == Token("IDENT", "x", Position(0, 1, 1), Position(1, 1, 2))
    assert tok != Token("IDENT", "y", Position(0, 1, 1))
    assert hash(tok) == hash(Token("IDENT", "x"))


def test_character_stream_reads_past_end() -> None:
    stream = CharacterStream("a")
    assert stream.next() == "a"
    assert stream.peek() == ""
    with pytest.raises(EOFError):
        stream.next()


@given(st.text(max_size=80))  # type: ignore[misc]
def test_lexer_never_crashes_unexpectedly(source: str) -> None:
    try:
        tokens = tokenize(source)
    except LexicalError:
        return
    assert tokens[-1].type == "EOF"
    offsets = [t.start.offset for t in tokens]
    assert offsets == sorted(offsets)


@given(st.from_regex(r"[A-Za-z_][A-Za-z0-9_]{0,10}", fullmatch=True))  # type: ignore[misc]
def test_identifier_or_keyword(word: str) -> None:
    tokens = tokenize(word)
    assert len(tokens) == 2
    assert tokens[0].type == KEYWORDS.get(word, "IDENT")
    assert tokens[0].value == word
