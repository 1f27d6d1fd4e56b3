"""
Kestrel Scanner Tests

Tests for the table-driven and the handcoded scanners.
"""

import pytest

from kestrel.compiler.errors import KestrelError
from kestrel.compiler.tokens import Token, TokenType
from kestrel.scanner import (
    Dfa, HandcodedScanner, ScannerGenerator, TableDrivenScanner, TokenClassification,
    standard_dfa, standard_scanner,
)

SCANNERS = [
    pytest.param(standard_scanner, id="table"),
    pytest.param(HandcodedScanner, id="handcoded"),
]

PROGRAM = '''let fiveTen = 55;
\tlet ten = 10;

\tlet add = fn(x, y) {
\t    x + y;
\t};

\tlet result = add(five, ten);

\t==
\t!=
\t<=
\t>=
\t!
\treturn
\t[]
\t:

\t>
\t<
\t/
\t-
\t*

\t&&
\t||

\tif
\telse
\ttrue
\tfalse

\t"test1T EST2"
\t'''

PROGRAM_TOKENS = [
    (TokenType.LET, "let"),
    (TokenType.IDENT, "fiveTen"),
    (TokenType.ASSIGN, "="),
    (TokenType.INT, "55"),
    (TokenType.SEMICOLON, ";"),
    (TokenType.LET, "let"),
    (TokenType.IDENT, "ten"),
    (TokenType.ASSIGN, "="),
    (TokenType.INT, "10"),
    (TokenType.SEMICOLON, ";"),
    (TokenType.LET, "let"),
    (TokenType.IDENT, "add"),
    (TokenType.ASSIGN, "="),
    (TokenType.FUNCTION, "fn"),
    (TokenType.LPAREN, "("),
    (TokenType.IDENT, "x"),
    (TokenType.COMMA, ","),
    (TokenType.IDENT, "y"),
    (TokenType.RPAREN, ")"),
    (TokenType.LBRACE, "{"),
    (TokenType.IDENT, "x"),
    (TokenType.PLUS, "+"),
    (TokenType.IDENT, "y"),
    (TokenType.SEMICOLON, ";"),
    (TokenType.RBRACE, "}"),
    (TokenType.SEMICOLON, ";"),
    (TokenType.LET, "let"),
    (TokenType.IDENT, "result"),
    (TokenType.ASSIGN, "="),
    (TokenType.IDENT, "add"),
    (TokenType.LPAREN, "("),
    (TokenType.IDENT, "five"),
    (TokenType.COMMA, ","),
    (TokenType.IDENT, "ten"),
    (TokenType.RPAREN, ")"),
    (TokenType.SEMICOLON, ";"),
    (TokenType.EQUALS, "=="),
    (TokenType.NOT_EQUALS, "!="),
    (TokenType.LESS_EQUAL, "<="),
    (TokenType.GREATER_EQUAL, ">="),
    (TokenType.BANG, "!"),
    (TokenType.RETURN, "return"),
    (TokenType.LBRACKET, "["),
    (TokenType.RBRACKET, "]"),
    (TokenType.COLON, ":"),
    (TokenType.GT, ">"),
    (TokenType.LT, "<"),
    (TokenType.SLASH, "/"),
    (TokenType.MINUS, "-"),
    (TokenType.ASTERISK, "*"),
    (TokenType.AND, "&&"),
    (TokenType.OR, "||"),
    (TokenType.IF, "if"),
    (TokenType.ELSE, "else"),
    (TokenType.TRUE, "true"),
    (TokenType.FALSE, "false"),
    (TokenType.STRING, '"test1T EST2"'),
    (TokenType.EOF, ""),
]


def kinds_and_literals(tokens):
    return [(t.type, t.literal) for t in tokens]


class TestTokens:

    def test_position_ignored_by_equality(self):
        assert Token(TokenType.INT, "5", 3) == Token(TokenType.INT, "5", 9)

    def test_display_names(self):
        assert str(TokenType.LESS_EQUAL) == "<="
        assert TokenType.LET.display_name == "LET"

    def test_keyword(self):
        assert Token(TokenType.LET, "let").is_keyword()
        assert not Token(TokenType.IDENT, "lets").is_keyword()


class TestStandardGrammar:
    """Both scanners on the standard lexical grammar."""

    @pytest.mark.parametrize("make_scanner", SCANNERS)
    def test_let_statement(self, make_scanner):
        tokens = make_scanner("let fiveTen = 55;").tokenize()
        assert tokens == [
            Token(TokenType.LET, "let"),
            Token(TokenType.IDENT, "fiveTen"),
            Token(TokenType.ASSIGN, "="),
            Token(TokenType.INT, "55"),
            Token(TokenType.SEMICOLON, ";"),
            Token(TokenType.EOF, ""),
        ]

    @pytest.mark.parametrize("make_scanner", SCANNERS)
    def test_program(self, make_scanner):
        assert kinds_and_literals(make_scanner(PROGRAM).tokenize()) == PROGRAM_TOKENS

    @pytest.mark.parametrize("make_scanner", SCANNERS)
    def test_eof_repeats(self, make_scanner):
        scanner = make_scanner("  ")
        for _ in range(3):
            assert scanner.next_token() == Token(TokenType.EOF, "")

    @pytest.mark.parametrize("make_scanner", SCANNERS)
    def test_positions(self, make_scanner):
        tokens = make_scanner("let x =  1").tokenize()
        assert [t.position for t in tokens] == [0, 4, 6, 9, 10]

    @pytest.mark.parametrize("make_scanner", SCANNERS)
    @pytest.mark.parametrize("source,expected", [
        ("@", [(TokenType.ILLEGAL, "@")]),
        ("&", [(TokenType.ILLEGAL, "&")]),
        ("a | b", [(TokenType.IDENT, "a"), (TokenType.ILLEGAL, "|"), (TokenType.IDENT, "b")]),
        ("Abc", [(TokenType.ILLEGAL, "A"), (TokenType.IDENT, "bc")]),
        ('"abc', [(TokenType.ILLEGAL, '"'), (TokenType.IDENT, "abc")]),
        ('"a_b"', [
            (TokenType.ILLEGAL, '"'),
            (TokenType.IDENT, "a"),
            (TokenType.ILLEGAL, "_"),
            (TokenType.IDENT, "b"),
            (TokenType.ILLEGAL, '"'),
        ]),
    ])
    def test_illegal_input(self, make_scanner, source, expected):
        tokens = make_scanner(source).tokenize()
        assert kinds_and_literals(tokens) == expected + [(TokenType.EOF, "")]

    @pytest.mark.parametrize("source", [
        "a1",
        "x<=y",
        "!==",
        "lets letx le",
        '"hi there" 42',
        "fn(a) { a * 2 }",
        "{\"k\": [1, 2]}[0]",
        "é€\f",
        "iff elsee truefalse",
    ])
    def test_scanners_agree(self, source):
        table = standard_scanner(source).tokenize()
        handcoded = HandcodedScanner(source).tokenize()
        assert kinds_and_literals(table) == kinds_and_literals(handcoded)

    def test_longest_match(self):
        tokens = standard_scanner("<=<").tokenize()
        assert kinds_and_literals(tokens) == [
            (TokenType.LESS_EQUAL, "<="),
            (TokenType.LT, "<"),
            (TokenType.EOF, ""),
        ]

    def test_keyword_beats_identifier(self):
        assert standard_dfa().match("let") == TokenType.LET
        assert standard_dfa().match("lets") == TokenType.IDENT

    def test_standard_dfa_is_cached(self):
        assert standard_dfa() is standard_dfa()


class TestGeneratedScanners:
    """Scanners generated from custom classifications."""

    def test_precedence_conflict(self):
        generator = ScannerGenerator([
            TokenClassification("a", "FIRST", 2),
            TokenClassification("aa*", "SECOND", 1),
        ])
        assert generator.scanner("a").next_token() == Token("FIRST", "a")
        assert generator.scanner("aa").next_token() == Token("SECOND", "aa")

    def test_rollback(self):
        generator = ScannerGenerator([
            TokenClassification("a", "A"),
            TokenClassification("abc", "ABC"),
        ])
        assert kinds_and_literals(generator.scanner("abd").tokenize()) == [
            ("A", "a"),
            (TokenType.ILLEGAL, "b"),
            (TokenType.ILLEGAL, "d"),
            (TokenType.EOF, ""),
        ]
        assert kinds_and_literals(generator.scanner("abcabc").tokenize()) == [
            ("ABC", "abc"),
            ("ABC", "abc"),
            (TokenType.EOF, ""),
        ]

    def test_unminimized_dfa_scans_the_same(self):
        classifications = [
            TokenClassification("(a|b)*c", "X"),
            TokenClassification("ab", "Y", 2),
        ]
        minimized = ScannerGenerator(classifications).generate()
        full = ScannerGenerator(classifications, minimize=False).generate()
        for source in ["abc", "ab", "bbac ab", "abab", "c"]:
            assert kinds_and_literals(TableDrivenScanner(source, minimized).tokenize()) == \
                kinds_and_literals(TableDrivenScanner(source, full).tokenize())

    def test_empty_classifications_rejected(self):
        with pytest.raises(ValueError):
            ScannerGenerator([])

    def test_accepting_state_without_kind(self):
        dfa = Dfa(transitions={"a": {0: 1}}, accepting_states=[1])
        with pytest.raises(KestrelError):
            TableDrivenScanner("a", dfa).next_token()
