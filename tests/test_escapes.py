"""
Tests for match-context escape decoding.
"""

from auditlens.ingest.escapes import decode_match_context


class TestDecodeMatchContext:
    """Test decode_match_context."""

    def test_newline_escape(self) -> None:
        """Test \\n becomes a real newline."""
        assert decode_match_context("line1\\nline2") == "line1\nline2"

    def test_crlf_is_one_newline(self) -> None:
        """Test \\r\\n collapses to a single newline."""
        assert decode_match_context("a\\r\\nb") == "a\nb"

    def test_tab_and_quote(self) -> None:
        """Test tab and quote escapes."""
        assert decode_match_context('key\\t\\"value\\"') == 'key\t"value"'

    def test_backslash_space(self) -> None:
        """Test backslash-space becomes a plain space."""
        assert decode_match_context("50\\ off") == "50 off"

    def test_double_backslash(self) -> None:
        """Test \\\\ decodes to one backslash."""
        assert decode_match_context("C:\\\\Users\\\\admin") == "C:\\Users\\admin"

    def test_regex_metacharacters(self) -> None:
        """Test escaped regex metacharacters are unescaped."""
        assert decode_match_context("pass\\(word\\)\\.txt\\*") == "pass(word).txt*"

    def test_other_escapes_untouched(self) -> None:
        """Test escapes outside the allow-list are kept."""
        assert decode_match_context("a\\=b") == "a\\=b"

    def test_blank_lines_collapsed(self) -> None:
        """Test runs of blank lines become one newline."""
        assert decode_match_context("a\\n\\n \\n\\nb") == "a\nb"

    def test_trimmed(self) -> None:
        """Test outer whitespace is removed."""
        assert decode_match_context("  \\n value \\n ") == "value"

    def test_empty(self) -> None:
        """Test empty input."""
        assert decode_match_context("") == ""
