# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the MCPU assembler lexer.
#
# Test coverage includes:
#   - Words, hex literals and statement terminators
#   - Token offsets, lines and columns
#   - Semicolon and line-break terminator modes
#   - Separator handling and end-of-input flushing
#   - Error conditions (illegal characters, malformed literals)
# =============================================================================

import pytest
from mcpu.assembler.lexer import Lexer, TokenType, Token, tokenize
from mcpu.errors import LexError


# =============================================================================
# Helper Function
# =============================================================================

def kinds(source: str, terminator: str = ";") -> list:
    """Return (type, value) pairs for compact assertions."""
    return [(t.type, t.value) for t in tokenize(source, "<test>", terminator)]


W = TokenType.WORD
N = TokenType.NUMBER
END = TokenType.END_OF_STATEMENT


# =============================================================================
# Basic Token Recognition Tests
# =============================================================================

class TestBasicTokens:
    """Test basic token recognition for simple inputs."""

    def test_empty_source(self):
        assert tokenize("") == []

    def test_push_add_statement_count(self):
        """Two statements produce exactly five tokens."""
        tokens = tokenize("PUSH 0x8;ADD;")
        assert len(tokens) == 5
        assert [t.type for t in tokens] == [W, N, END, W, END]

    def test_push_add_offsets(self):
        tokens = tokenize("PUSH 0x8;ADD;")
        assert [t.offset for t in tokens] == [0, 5, 8, 9, 12]

    def test_declare_word(self):
        assert kinds("DW A 0xFF;") == [(W, "DW"), (W, "A"), (N, 0xFF), (END, None)]

    def test_jump_condition_is_a_word(self):
        assert kinds("JP eq;") == [(W, "JP"), (W, "eq"), (END, None)]

    def test_words_keep_case(self):
        assert kinds("push Label1;") == [(W, "push"), (W, "Label1"), (END, None)]

    def test_word_may_start_with_digit(self):
        assert kinds("1A;") == [(W, "1A"), (END, None)]

    def test_lone_zero_is_a_word(self):
        assert kinds("0;") == [(W, "0"), (END, None)]

    def test_uppercase_prefix_is_not_a_literal(self):
        """Only the lowercase '0x' prefix introduces a literal."""
        assert kinds("0X1;") == [(W, "0X1"), (END, None)]


# =============================================================================
# Hex Literal Tests
# =============================================================================

class TestHexLiterals:
    """Test 0xHH literal parsing."""

    @pytest.mark.parametrize("text,value", [
        ("0x0", 0),
        ("0x8", 8),
        ("0x0A", 10),
        ("0xff", 255),
        ("0xFF", 255),
        ("0xaB", 0xAB),
        ("0x007", 7),
    ])
    def test_literal_values(self, text, value):
        tokens = tokenize(f"PUSH {text};")
        assert tokens[1].type == N
        assert tokens[1].value == value

    def test_literal_offset_is_prefix_position(self):
        tokens = tokenize("PUSH 0x8;")
        assert tokens[1].offset == 5

    def test_literal_too_large(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("PUSH 0x100;")
        assert exc_info.value.position == 5
        assert "does not fit in a byte" in str(exc_info.value)

    def test_prefix_without_digits_before_terminator(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("PUSH 0x;")
        assert exc_info.value.position == 7
        assert exc_info.value.character == ";"

    def test_prefix_without_digits_before_space(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("PUSH 0x ;")
        assert exc_info.value.position == 7

    def test_prefix_at_end_of_input(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("PUSH 0x")
        assert "end of input" in str(exc_info.value)

    def test_non_hex_digit_in_literal(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("PUSH 0x1G;")
        assert exc_info.value.position == 8
        assert exc_info.value.character == "G"


# =============================================================================
# Separator and Terminator Tests
# =============================================================================

class TestSeparators:
    """Test spaces, terminators and end of input."""

    def test_repeated_spaces_emit_nothing(self):
        assert kinds("PUSH   0x1;") == [(W, "PUSH"), (N, 1), (END, None)]

    def test_leading_space(self):
        assert kinds(" HALT;") == [(W, "HALT"), (END, None)]

    def test_each_terminator_is_a_statement_end(self):
        assert kinds("HALT;;") == [(W, "HALT"), (END, None), (END, None)]

    def test_pending_word_flushed_at_end(self):
        assert kinds("HALT") == [(W, "HALT")]

    def test_pending_literal_flushed_at_end(self):
        assert kinds("PUSH 0x2") == [(W, "PUSH"), (N, 2)]

    def test_end_of_statement_offset(self):
        tokens = tokenize("HALT;")
        assert tokens[1].offset == 4


class TestLineMode:
    """Test line-break terminated statements."""

    def test_push_add_statement_count(self):
        tokens = tokenize("PUSH 0x8\nADD\n", terminator="\n")
        assert len(tokens) == 5
        assert [t.type for t in tokens] == [W, N, END, W, END]

    def test_line_and_column_tracking(self):
        tokens = tokenize("PUSH 0x8\nADD\n", terminator="\n")
        add = tokens[3]
        assert add.line == 2
        assert add.column == 1
        assert add.offset == 9

    def test_crlf_line_endings(self):
        assert kinds("HALT\r\nHALT\r\n", "\n") == [
            (W, "HALT"), (END, None), (W, "HALT"), (END, None),
        ]

    def test_lone_carriage_return_is_illegal(self):
        with pytest.raises(LexError):
            tokenize("HALT\rHALT\n", terminator="\n")

    def test_semicolon_is_illegal_in_line_mode(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("HALT;\n", terminator="\n")
        assert exc_info.value.character == ";"

    def test_invalid_terminator(self):
        with pytest.raises(ValueError):
            Lexer("HALT;", terminator=",")


# =============================================================================
# Error Tests
# =============================================================================

class TestLexErrors:
    """Test illegal characters and error formatting."""

    @pytest.mark.parametrize("source,position,char", [
        ("PUSH -0x1;", 5, "-"),
        ("HALT\t;", 4, "\t"),
        ("PUSH A_B;", 6, "_"),
        ("PUSH #1;", 5, "#"),
    ])
    def test_illegal_characters(self, source, position, char):
        with pytest.raises(LexError) as exc_info:
            tokenize(source)
        assert exc_info.value.position == position
        assert exc_info.value.character == char

    def test_newline_in_semicolon_mode(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("HALT;\nHALT;")
        assert exc_info.value.position == 5
        assert "newline" in str(exc_info.value)
        assert "hint:" in str(exc_info.value)

    def test_error_message_format(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("PUSH -0x1;", "prog.asm")
        lines = str(exc_info.value).split("\n")
        assert lines[0] == (
            "prog.asm:1:6: error: unexpected character '-' at position 5"
        )
        assert lines[1] == "    PUSH -0x1;"
        assert lines[2] == "         ^"

    def test_error_location_on_second_line(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("HALT\nPUSH $1\n", terminator="\n")
        location = exc_info.value.location
        assert location.line == 2
        assert location.column == 6
        assert location.offset == 10


# =============================================================================
# Token Tests
# =============================================================================

class TestToken:
    """Test Token helpers."""

    def test_repr(self):
        assert repr(Token(TokenType.NUMBER, 8, 5)) == "Token(NUMBER, $08, @5)"
        assert repr(Token(TokenType.WORD, "PUSH", 0)) == "Token(WORD, 'PUSH', @0)"
        assert repr(Token(TokenType.END_OF_STATEMENT, None, 8)) == "Token(END_OF_STATEMENT, @8)"

    def test_text(self):
        assert Token(TokenType.NUMBER, 8, 0).text == "0x08"
        assert Token(TokenType.WORD, "eq", 0).text == "eq"
        assert Token(TokenType.END_OF_STATEMENT, None, 0).text == ""

    def test_describe(self):
        assert Token(TokenType.NUMBER, 255, 0).describe() == "number 0xFF"
        assert Token(TokenType.WORD, "A", 0).describe() == "word 'A'"
        assert Token(TokenType.END_OF_STATEMENT, None, 0).describe() == "end of statement"

    def test_tokens_are_immutable(self):
        token = Token(TokenType.WORD, "A", 0)
        with pytest.raises(AttributeError):
            token.value = "B"
