"""Tests for shared sanitizers and format checks."""

import pytest
from folio.validation.common import (
    FieldErrors,
    clean_line,
    clean_text,
    host_matches,
    is_email,
    is_hex_color,
    is_link,
)


class TestCleanLine:
    def test_strips_tags_and_collapses_whitespace(self):
        assert clean_line("  <em>Hello</em>\t  world ") == "Hello world"

    def test_drops_script_blocks_entirely(self):
        assert clean_line("Hi<script>steal()</script>") == "Hi"

    def test_removes_control_characters(self):
        assert clean_line("a\x00b\x07c") == "abc"


class TestCleanText:
    def test_keeps_markdown_and_newlines(self):
        text = "# Title\n\n- item [link](https://a.org)"
        assert clean_text(text) == text

    def test_removes_event_handlers_and_js_urls(self):
        cleaned = clean_text('<img src="x.png" onerror="alert(1)"> [x](javascript:alert(1))')
        assert "onerror" not in cleaned
        assert "javascript:" not in cleaned

    def test_normalizes_line_endings(self):
        assert clean_text("a\r\nb\rc") == "a\nb\nc"

    def test_spliced_script_scheme_is_removed(self):
        assert clean_text("[x](javajavascript:script:alert(1))") == "[x](alert(1))"

    def test_is_idempotent(self):
        for text in (
            "javajavascript:script:",
            '<img src=x o onerror="a"nload="b">',
            "<scr<script></script>ipt>x",
        ):
            once = clean_text(text)
            assert clean_text(once) == once, text


class TestFormats:
    @pytest.mark.parametrize("value", ["#FFF", "#abc", "#3B82F6"])
    def test_hex_colors(self, value):
        assert is_hex_color(value)

    @pytest.mark.parametrize("value", ["FFF", "#GGG", "#12345", "rgb(0,0,0)"])
    def test_bad_hex_colors(self, value):
        assert not is_hex_color(value)

    def test_long_form_only(self):
        assert not is_hex_color("#FFF", allow_short=False)

    def test_links(self):
        assert is_link("#about")
        assert is_link("/blog/post")
        assert is_link("tel:+84123456789")
        assert not is_link("about")

    def test_email(self):
        assert is_email("someone@gmail.com")
        assert not is_email("someone@")

    def test_host_matches_subdomains(self):
        assert host_matches("https://github.com/x", "github.com")
        assert host_matches("https://gist.github.com/x", "github.com")
        assert not host_matches("https://github.com.evil.io/x", "github.com")
        assert not host_matches("github.com/x", "github.com")


class TestFieldErrors:
    def test_first_error_per_field_wins(self):
        errors = FieldErrors()
        errors.add("title.vi", "first")
        errors.add("title.vi", "second")
        assert errors.as_dict() == {"title.vi": "first"}

    def test_result(self):
        errors = FieldErrors()
        assert errors.result("value").sanitized == "value"
        errors.add("x", "bad")
        result = errors.result("value")
        assert result.valid is False
        assert result.sanitized is None
