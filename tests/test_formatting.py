"""Tests for parse-mode helpers, escaping and text layout."""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sdk.formatting import (
    ParseMode,
    bold,
    bullet_list,
    code_block,
    escape,
    escape_html,
    escape_markdown_v2,
    italic,
    link,
    mention,
    numbered_list,
    spoiler,
    split_text,
    strip_formatting,
    truncate,
    underline,
    validate_parse_mode,
)


# ── Parse modes and escaping ─────────────────────────────────────────────────


class TestEscaping:
    def test_markdown_v2(self) -> None:
        assert escape_markdown_v2("1.5 + (2) = 3.5!") == "1\\.5 \\+ \\(2\\) \\= 3\\.5\\!"

    def test_html(self) -> None:
        assert escape_html("<a href='x'>&</a>") == "&lt;a href=&#x27;x&#x27;&gt;&amp;&lt;/a&gt;"

    def test_legacy_markdown(self) -> None:
        assert escape("snake_case *x*", ParseMode.MARKDOWN) == "snake\\_case \\*x\\*"

    def test_accepts_mode_string(self) -> None:
        assert escape("<b>", "HTML") == "&lt;b&gt;"

    @pytest.mark.parametrize("raw,expected", [
        ("HTML", ParseMode.HTML),
        ("Markdown", ParseMode.MARKDOWN),
        ("bogus", ParseMode.MARKDOWN_V2),
        ("", None),
        (None, None),
    ])
    def test_validate_parse_mode(self, raw, expected) -> None:
        assert validate_parse_mode(raw) == expected


# ── Styling ──────────────────────────────────────────────────────────────────


class TestStyling:
    def test_bold_escapes_content(self) -> None:
        assert bold("v1.0") == "*v1\\.0*"
        assert bold("a<b", ParseMode.HTML) == "<b>a&lt;b</b>"

    def test_italic_and_spoiler(self) -> None:
        assert italic("hi", ParseMode.HTML) == "<i>hi</i>"
        assert spoiler("secret") == "||secret||"
        assert spoiler("secret", ParseMode.HTML) == '<span class="tg-spoiler">secret</span>'

    def test_unsupported_style_in_legacy_markdown(self) -> None:
        assert underline("a_b", ParseMode.MARKDOWN) == "a\\_b"

    def test_code_block(self) -> None:
        assert code_block("x = 1", "python", ParseMode.HTML) == '<pre class="language-python"><code>x = 1</code></pre>'
        assert code_block("x = 1") == "```\nx \\= 1\n```"

    def test_link_and_mention(self) -> None:
        assert link("docs", "https://x.example", ParseMode.HTML) == '<a href="https://x.example">docs</a>'
        assert mention("Ann", 7) == "[Ann](tg://user?id=7)"

    def test_lists(self) -> None:
        assert bullet_list(["a", "b"]) == "\\• a\n\\• b"
        assert numbered_list(["a", "b"], ParseMode.HTML) == "1. a\n2. b"
        assert numbered_list(["a"]) == "1\\. a"


# ── Layout ───────────────────────────────────────────────────────────────────


class TestLayout:
    def test_truncate(self) -> None:
        assert truncate("hello world", 8) == "hello..."
        assert truncate("short", 10) == "short"

    def test_split_on_spaces(self) -> None:
        assert split_text("aaa bbb ccc", 7) == ["aaa bbb", "ccc"]

    def test_split_hard_splits_long_words(self) -> None:
        assert split_text("abcdefghij", 4) == ["abcd", "efgh", "ij"]

    def test_split_short_text(self) -> None:
        assert split_text("hi") == ["hi"]

    def test_split_rejects_zero(self) -> None:
        with pytest.raises(ValueError):
            split_text("abc", 0)

    def test_strip_formatting(self) -> None:
        assert strip_formatting("*bold* and _it_ \\.") == "bold and it ."
        assert strip_formatting("<b>a &amp; b</b>") == "a & b"
        assert strip_formatting("[docs](https://x.example)") == "docs"
