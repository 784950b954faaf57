"""Text formatting helpers for the three Bot API parse modes.

Every styling helper escapes its input for the chosen mode, so user-supplied
text can be embedded safely::

    text = bold("Order #42", ParseMode.HTML) + " shipped"
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Optional


class ParseMode(str, Enum):
    MARKDOWN_V2 = "MarkdownV2"
    HTML = "HTML"
    MARKDOWN = "Markdown"


DEFAULT_PARSE_MODE = ParseMode.MARKDOWN_V2

_MARKDOWN_V2_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")
_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def is_valid_parse_mode(mode: str) -> bool:
    return mode in {m.value for m in ParseMode}


def validate_parse_mode(mode: Optional[str]) -> Optional[ParseMode]:
    """Normalise *mode*; unknown values fall back to MarkdownV2, empty to ``None``."""
    if not mode:
        return None
    return ParseMode(mode) if is_valid_parse_mode(mode) else DEFAULT_PARSE_MODE


# ── Escaping ─────────────────────────────────────────────────────────────────


def escape_markdown_v2(text: str) -> str:
    return _MARKDOWN_V2_SPECIAL.sub(r"\\\1", text)


def escape_html(text: str) -> str:
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#x27;")
    )


def escape_markdown(text: str) -> str:
    """Escape for the legacy ``Markdown`` mode."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def escape(text: str, mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    mode = ParseMode(mode)
    if mode is ParseMode.HTML:
        return escape_html(text)
    if mode is ParseMode.MARKDOWN:
        return escape_markdown(text)
    return escape_markdown_v2(text)


# ── Styling ──────────────────────────────────────────────────────────────────

# (MarkdownV2 open, close), (HTML open, close), (Markdown open, close); None = unsupported
_STYLES: dict[str, tuple] = {
    "bold": (("*", "*"), ("<b>", "</b>"), ("*", "*")),
    "italic": (("_", "_"), ("<i>", "</i>"), ("_", "_")),
    "underline": (("__", "__"), ("<u>", "</u>"), None),
    "strikethrough": (("~", "~"), ("<s>", "</s>"), None),
    "spoiler": (("||", "||"), ('<span class="tg-spoiler">', "</span>"), None),
    "code": (("`", "`"), ("<code>", "</code>"), ("`", "`")),
}
_MODE_INDEX = {ParseMode.MARKDOWN_V2: 0, ParseMode.HTML: 1, ParseMode.MARKDOWN: 2}


def _style(name: str, text: str, mode: ParseMode) -> str:
    mode = ParseMode(mode)
    markers = _STYLES[name][_MODE_INDEX[mode]]
    escaped = escape(text, mode)
    if markers is None:
        return escaped
    return f"{markers[0]}{escaped}{markers[1]}"


def bold(text: str, mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    return _style("bold", text, mode)


def italic(text: str, mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    return _style("italic", text, mode)


def underline(text: str, mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    """Underline; legacy Markdown has no underline and gets escaped plain text."""
    return _style("underline", text, mode)


def strikethrough(text: str, mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    return _style("strikethrough", text, mode)


def spoiler(text: str, mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    return _style("spoiler", text, mode)


def code(text: str, mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    return _style("code", text, mode)


def code_block(text: str, language: Optional[str] = None, mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    mode = ParseMode(mode)
    if mode is ParseMode.HTML:
        lang = f' class="language-{escape_html(language)}"' if language else ""
        return f"<pre{lang}><code>{escape_html(text)}</code></pre>"
    if mode is ParseMode.MARKDOWN:
        return f"```\n{escape_markdown(text)}\n```"
    lang = escape_markdown_v2(language) if language else ""
    return f"```{lang}\n{escape_markdown_v2(text)}\n```"


def link(text: str, url: str, mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    mode = ParseMode(mode)
    if mode is ParseMode.HTML:
        return f'<a href="{escape_html(url)}">{escape_html(text)}</a>'
    if mode is ParseMode.MARKDOWN:
        return f"[{escape_markdown(text)}]({url})"
    return f"[{escape_markdown_v2(text)}]({escape_markdown_v2(url)})"


def mention(text: str, user_id: int, mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    """Inline mention of a user by id."""
    mode = ParseMode(mode)
    url = f"tg://user?id={user_id}"
    if mode is ParseMode.HTML:
        return f'<a href="{url}">{escape_html(text)}</a>'
    if mode is ParseMode.MARKDOWN:
        return f"[{escape_markdown(text)}]({url})"
    return f"[{escape_markdown_v2(text)}]({url})"


# ── Layout ───────────────────────────────────────────────────────────────────


def bullet_list(items: list[str], mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    bullet = "\\•" if ParseMode(mode) is ParseMode.MARKDOWN_V2 else "•"
    return "\n".join(f"{bullet} {item}" for item in items)


def numbered_list(items: list[str], mode: ParseMode = DEFAULT_PARSE_MODE) -> str:
    dot = "\\." if ParseMode(mode) is ParseMode.MARKDOWN_V2 else "."
    return "\n".join(f"{index}{dot} {item}" for index, item in enumerate(items, start=1))


def truncate(text: str, max_length: int, suffix: str = "...") -> str:
    if len(text) <= max_length:
        return text
    return text[: max(max_length - len(suffix), 0)] + suffix


def split_text(text: str, max_length: int = 4096) -> list[str]:
    """Split *text* on spaces into chunks of at most *max_length* characters.

    Words longer than *max_length* are hard-split.
    """
    if max_length < 1:
        raise ValueError("max_length must be at least 1")
    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    current = ""
    for word in text.split(" "):
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_length:
            current = candidate
            continue
        if current:
            chunks.append(current)
        while len(word) > max_length:
            chunks.append(word[:max_length])
            word = word[max_length:]
        current = word
    if current:
        chunks.append(current)
    return chunks


_STRIP_PATTERNS = [
    (re.compile(r"```[^\n`]*\n(.*?)\n```", re.DOTALL), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"\|\|([^|]+)\|\|"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"_([^_]+)_"), r"\1"),
    (re.compile(r"~([^~]+)~"), r"\1"),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"<[^>]+>"), ""),
    (re.compile(r"\\([_*\[\]()~`>#+\-=|{}.!\\])"), r"\1"),
]


def strip_formatting(text: str) -> str:
    """Remove Markdown / HTML markup, leaving the plain text."""
    for pattern, replacement in _STRIP_PATTERNS:
        text = pattern.sub(replacement, text)
    return (
        text.replace("&lt;", "<")
        .replace("&gt;", ">")
        .replace("&quot;", '"')
        .replace("&#x27;", "'")
        .replace("&amp;", "&")
    )
