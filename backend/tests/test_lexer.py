"""Unit tests for the lexer: token kinds, literals and lexical errors."""

from backend.blazescript.errors import ExpectedCharError, IllegalCharError
from backend.blazescript.lexer import tokenize
from backend.blazescript.tokens import TokenKind


def kinds(text):
    tokens, errors = tokenize("<test>", text)
    assert errors is None
    return [tok.kind for tok in tokens]


def test_declaration_tokens():
    tokens, errors = tokenize("<test>", "val x: Int = 2 + 3 * 4")
    assert errors is None
    assert [(tok.kind, tok.value) for tok in tokens] == [
        (TokenKind.KEYWORD, "val"),
        (TokenKind.IDENTIFIER, "x"),
        (TokenKind.COLON, None),
        (TokenKind.IDENTIFIER, "Int"),
        (TokenKind.EQUALS, None),
        (TokenKind.INT, 2),
        (TokenKind.PLUS, None),
        (TokenKind.INT, 3),
        (TokenKind.MULTIPLY, None),
        (TokenKind.INT, 4),
        (TokenKind.EOF, None),
    ]


def test_two_character_operators():
    assert kinds("== != <= >= => < > = !") == [
        TokenKind.DOUBLE_EQUALS,
        TokenKind.NOT_EQUALS,
        TokenKind.LESS_THAN_EQUALS,
        TokenKind.GREATER_THAN_EQUALS,
        TokenKind.ARROW,
        TokenKind.LESS_THAN,
        TokenKind.GREATER_THAN,
        TokenKind.EQUALS,
        TokenKind.KEYWORD,
        TokenKind.EOF,
    ]


def test_bang_and_doubled_symbols_are_keywords():
    tokens, _ = tokenize("<test>", "! a && b || c")
    values = [tok.value for tok in tokens if tok.kind == TokenKind.KEYWORD]
    assert values == ["not", "and", "or"]


def test_lone_ampersand_is_expected_char_error():
    tokens, errors = tokenize("<test>", "1 & 2")
    assert tokens is None
    assert len(errors) == 1
    assert isinstance(errors[0], ExpectedCharError)
    assert "'&'" in errors[0].details


def test_numbers_int_and_float():
    tokens, _ = tokenize("<test>", "42 3.5 7.")
    assert (tokens[0].kind, tokens[0].value) == (TokenKind.INT, 42)
    assert (tokens[1].kind, tokens[1].value) == (TokenKind.FLOAT, 3.5)
    assert (tokens[2].kind, tokens[2].value) == (TokenKind.FLOAT, 7.0)


def test_second_dot_ends_number():
    tokens, errors = tokenize("<test>", "1.2.3")
    # the stray '.' is not a valid token on its own
    assert tokens is None
    assert isinstance(errors[0], IllegalCharError)
    assert errors[0].pos_start.column == 3


def test_identifiers_allow_underscore_and_digits():
    tokens, _ = tokenize("<test>", "_tmp1 while2 while")
    assert [(t.kind, t.value) for t in tokens[:3]] == [
        (TokenKind.IDENTIFIER, "_tmp1"),
        (TokenKind.IDENTIFIER, "while2"),
        (TokenKind.KEYWORD, "while"),
    ]


def test_string_escapes():
    tokens, _ = tokenize("<test>", r'"a\nb\tc\"d\\e\q"')
    assert tokens[0].kind == TokenKind.STRING
    assert tokens[0].value == 'a\nb\tc"d\\eq'


def test_unterminated_string_is_error():
    tokens, errors = tokenize("<test>", '"never closed')
    assert tokens is None
    assert isinstance(errors[0], ExpectedCharError)


def test_char_literal():
    tokens, _ = tokenize("<test>", "'z'")
    assert (tokens[0].kind, tokens[0].value) == (TokenKind.CHAR, "z")


def test_char_literal_needs_closing_quote():
    _, errors = tokenize("<test>", "'ab'")
    assert isinstance(errors[0], ExpectedCharError)
    _, errors = tokenize("<test>", "'")
    assert isinstance(errors[0], ExpectedCharError)


def test_illegal_character_stops_lexing():
    tokens, errors = tokenize("<test>", "1 + $ + @")
    assert tokens is None
    assert len(errors) == 1
    assert isinstance(errors[0], IllegalCharError)
    assert errors[0].details == "'$'"
    assert errors[0].to_dict()["column"] == 5


def test_newlines_and_semicolons_separate_statements():
    assert kinds("1\r\n2;3") == [
        TokenKind.INT,
        TokenKind.NEWLINE,
        TokenKind.INT,
        TokenKind.NEWLINE,
        TokenKind.INT,
        TokenKind.EOF,
    ]


def test_positions_track_lines():
    tokens, _ = tokenize("<test>", "1\n  foo")
    foo = tokens[2]
    assert foo.pos_start.line == 1
    assert foo.pos_start.column == 2
    assert foo.pos_end.column == 5


def test_overlong_int_literal_is_lexical_error():
    tokens, errors = tokenize("<test>", "1" * 4001)
    assert tokens is None
    assert isinstance(errors[0], IllegalCharError)
    assert "4000 digits" in errors[0].details


def test_leading_zeros_do_not_count_toward_literal_length():
    tokens, errors = tokenize("<test>", "0" * 10 + "7")
    assert errors is None
    assert tokens[0].value == 7
