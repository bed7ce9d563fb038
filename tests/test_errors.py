import threading

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from blox.blox_constants import MAX_NESTING_DEPTH
from blox.blox_errors import (
    ErrorKind,
    LexicalError,
    ParameterError,
    ParseError,
    UnexpectedTokenError,
)
from blox.blox_location import Position
from blox.blox_parser import Parser, parse, parse_expression
from blox.blox_visitor import dump


def test_error_at_end_of_input_points_after_last_token() -> None:
    with pytest.raises(UnexpectedTokenError) as excinfo:
        parse("let x = ")
    err = excinfo.value
    assert err.position == Position(7, 1, 8)
    assert err.kind is ErrorKind.SYNTAX
    assert err.found is not None and err.found.type == "EOF"
    assert err.message.endswith("found end of input")


def test_error_at_end_of_input_across_lines() -> None:
    with pytest.raises(UnexpectedTokenError) as excinfo:
        parse("def f(a) {\n  a +\n\n")
    assert excinfo.value.position == Position(16, 2, 6)


def test_error_on_unexpected_token() -> None:
    with pytest.raises(UnexpectedTokenError) as excinfo:
        parse("let 1 = 2")
    err = excinfo.value
    assert err.position == Position(4, 1, 5)
    assert err.expected == ("IDENT",)
    assert err.message == "Expected identifier, found '1'"


def test_message_lists_alternatives() -> None:
    with pytest.raises(UnexpectedTokenError) as excinfo:
        parse("[1 2]")
    assert excinfo.value.message == "Expected one of ',', ']', found '2'"


def test_positional_argument_error() -> None:
    with pytest.raises(UnexpectedTokenError) as excinfo:
        parse("print(42)")
    assert excinfo.value.position == Position(6, 1, 7)
    assert excinfo.value.message == "Expected identifier, found '42'"


def test_unterminated_array() -> None:
    with pytest.raises(UnexpectedTokenError) as excinfo:
        parse("let a = [1, 2")
    assert excinfo.value.position == Position(13, 1, 14)
    assert set(excinfo.value.expected) == {"COMMA", "RBRACK"}


def test_lexical_errors_are_parse_errors() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse("let a = 1 @ 2")
    assert isinstance(excinfo.value, LexicalError)
    assert excinfo.value.kind is ErrorKind.LEXICAL
    assert excinfo.value.position == Position(10, 1, 11)


def test_parse_error_is_a_syntax_error() -> None:
    with pytest.raises(SyntaxError) as excinfo:
        parse("let", "prog.blox")
    err = excinfo.value
    assert err.filename == "prog.blox"
    assert err.lineno == 1
    assert err.offset == 4


def test_str_includes_location() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse("a +\n)", "main.blox")
    assert str(excinfo.value) == "main.blox:2:1: Expected one of " + ", ".join(
        sorted(
            [
                "'!'",
                "'('",
                "'-'",
                "'['",
                "'if'",
                "'false'",
                "'true'",
                "'{'",
                "'|'",
                "identifier",
                "number",
                "string",
                "symbol",
            ]
        )
    ) + ", found ')'"


def test_default_filename() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse("?")
    assert str(excinfo.value).startswith("<input>:1:1: ")


def test_error_to_dict() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse("let x 1")
    assert excinfo.value.to_dict() == {
        "kind": "syntax",
        "message": "Expected '=', found '1'",
        "filename": "<input>",
        "position": {"offset": 6, "line": 1, "column": 7},
        "expected": ["ASSIGN"],
        "found": "NUMBER",
    }


def test_lexical_error_to_dict_has_no_token() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse('"open')
    d = excinfo.value.to_dict()
    assert d["kind"] == "lexical"
    assert d["found"] is None
    assert d["expected"] == []


def test_parameter_error_details() -> None:
    err = ParameterError("Duplicate parameters", ["a"])
    assert err.duplicates == ["a"]
    assert str(err) == "Duplicate parameters"
    assert ParameterError("x").duplicates == []


def test_errors_are_deterministic() -> None:
    messages = set()
    for _ in range(3):
        with pytest.raises(ParseError) as excinfo:
            parse("def f(a b) {}")
        messages.add(str(excinfo.value))
    assert len(messages) == 1


def test_independent_parses_in_threads() -> None:
    sources = [f"let v{i} = {i} * (x + {i})" for i in range(20)]
    results: dict[int, str] = {}

    def work(i: int) -> None:
        results[i] = dump(parse(sources[i]))

    threads = [threading.Thread(target=work, args=(i,)) for i in range(len(sources))]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert results == {i: dump(parse(s)) for i, s in enumerate(sources)}


BLOX_ALPHABET = st.sampled_from(
    list("abcxyz019 \n\t{}()[],:.|-!*/+=<>\"'#_") + ["let ", "def ", "if ", "else ", "..", "import "]
)


@settings(max_examples=300)  # type: ignore[misc]
@given(st.lists(BLOX_ALPHABET, max_size=40).map("".join))  # type: ignore[misc]
def test_random_input_fails_only_with_parse_error(source: str) -> None:
    try:
        tree = parse(source)
    except ParseError as err:
        assert 0 <= err.position.offset <= len(source)
        return
    assert tree.span.end.offset <= len(source)
    assert parse(source) == tree


@given(st.text(max_size=60))  # type: ignore[misc]
def test_arbitrary_text_fails_only_with_parse_error(source: str) -> None:
    try:
        parse(source)
    except ParseError:
        pass


# ── Nesting depth ───────────────────────────────────────────────────────────


def nested_groups(depth: int) -> str:
    return "(" * depth + "1" + ")" * depth


def nested_arrays(depth: int) -> str:
    return "[" * depth + "]" * depth


def test_nesting_up_to_the_limit_parses() -> None:
    # each group adds a term around the innermost `1`
    groups = parse(nested_groups(MAX_NESTING_DEPTH - 1))
    assert dump(groups).startswith("Group(Group(")
    arrays = parse(nested_arrays(MAX_NESTING_DEPTH))
    assert dump(arrays).count("[") == MAX_NESTING_DEPTH


def test_depth_is_released_after_each_term() -> None:
    source = "\n".join([nested_groups(MAX_NESTING_DEPTH - 1)] * 3)
    assert len(parse(source).statements) == 3


@pytest.mark.parametrize(  # type: ignore[misc]
    "source",
    [
        nested_groups(300),
        nested_arrays(300),
        nested_groups(MAX_NESTING_DEPTH),
        "(" * 1000,
        "[" * 1000,
        "let a = " + "{k: " * 300,
        "f(a: " * 300,
        "if a { " * 300,
    ],
)
def test_too_deep_nesting_is_a_parse_error(source: str) -> None:
    with pytest.raises(UnexpectedTokenError) as excinfo:
        parse(source)
    assert excinfo.value.message.startswith("Nesting too deep")
    assert excinfo.value.kind is ErrorKind.SYNTAX
    assert 0 < excinfo.value.position.offset < len(source)


def test_too_deep_nesting_points_at_first_token_past_the_limit() -> None:
    with pytest.raises(UnexpectedTokenError) as excinfo:
        parse(nested_groups(300), "deep.blox")
    assert excinfo.value.position == Position(MAX_NESTING_DEPTH, 1, MAX_NESTING_DEPTH + 1)
    assert str(excinfo.value).startswith(f"deep.blox:1:{MAX_NESTING_DEPTH + 1}: Nesting too deep")


def test_too_deep_single_expression() -> None:
    with pytest.raises(UnexpectedTokenError):
        parse_expression(nested_arrays(300))


def test_recursion_error_becomes_parse_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def exhausted(self: Parser, *args: object) -> None:
        raise RecursionError("maximum recursion depth exceeded")

    monkeypatch.setattr(Parser, "parse_term", exhausted)
    with pytest.raises(UnexpectedTokenError) as excinfo:
        parse("x + 1")
    assert excinfo.value.message.startswith("Nesting too deep")
    assert excinfo.value.position == Position(0, 1, 1)
    with pytest.raises(UnexpectedTokenError):
        parse_expression("x")
