# =============================================================================
# test_scanner.py - Scanner Unit Tests
# =============================================================================
# Tests for the character cursor underneath the lexer.
#
# Test coverage includes:
#   - Start position and end-of-input behaviour
#   - Line/column/offset tracking across newlines
#   - Lookahead without consumption
# =============================================================================

from swiftlet.errors import SourceLoc
from swiftlet.frontend.scanner import Scanner


class TestScannerPosition:
    """Test position tracking as characters are consumed."""

    def test_start_position(self):
        """A fresh scanner sits at line 1, column 1, offset 0."""
        scanner = Scanner("abc")
        assert scanner.source_loc == SourceLoc(1, 1, 0)
        assert scanner.current_char == "a"

    def test_consume_advances_column(self):
        """Ordinary characters move one column to the right."""
        scanner = Scanner("abc")
        scanner.consume_char()
        scanner.consume_char()
        assert scanner.current_char == "c"
        assert scanner.source_loc == SourceLoc(1, 3, 2)

    def test_newline_resets_column(self):
        """A newline moves to column 1 of the next line."""
        scanner = Scanner("a\nb")
        scanner.consume_char()
        scanner.consume_char()
        assert scanner.current_char == "b"
        assert scanner.source_loc == SourceLoc(2, 1, 2)

    def test_offset_counts_every_character(self):
        """The offset grows by one per character, newlines included."""
        scanner = Scanner("\n\n\nx")
        for _ in range(3):
            scanner.consume_char()
        assert scanner.source_loc.offset == 3
        assert scanner.source_loc.line == 4


class TestScannerEndOfInput:
    """Test behaviour at the end of the source."""

    def test_empty_source(self):
        """An empty source has no current character."""
        assert Scanner("").current_char is None

    def test_consume_past_end_is_harmless(self):
        """Consuming at the end of input leaves the position unchanged."""
        scanner = Scanner("x")
        scanner.consume_char()
        end = scanner.source_loc
        scanner.consume_char()
        assert scanner.current_char is None
        assert scanner.source_loc == end

    def test_peek_does_not_consume(self):
        """peek_char looks ahead without moving the cursor."""
        scanner = Scanner("->")
        assert scanner.peek_char() == ">"
        assert scanner.current_char == "-"
        assert scanner.peek_char(5) is None
