"""Keyboard builders and ready-made reply markups.

Builders collect buttons into the *current* row; :meth:`row` closes it and
starts a new one.  ``build()`` returns the typed markup models from
:mod:`sdk.models`, ready to pass as ``reply_markup``.

Usage::

    markup = (
        InlineKeyboardBuilder()
        .callback("Yes", "yes").callback("No", "no")
        .row()
        .url("Docs", "https://core.telegram.org/bots/api")
        .build()
    )
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from sdk.models import (
    CallbackGame,
    ForceReply,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    KeyboardButtonPollType,
    KeyboardButtonRequestChat,
    KeyboardButtonRequestUsers,
    LoginUrl,
    ReplyKeyboardMarkup,
    ReplyKeyboardRemove,
    SwitchInlineQueryChosenChat,
    WebAppInfo,
)


class _RowBuilder:
    """Shared row bookkeeping for both keyboard builders."""

    def __init__(self) -> None:
        self._rows: list[list] = []
        self._current: list = []

    def _add(self, button) -> "_RowBuilder":
        self._current.append(button)
        return self

    def row(self, *buttons) -> "_RowBuilder":
        """Close the current row; *buttons*, if given, form a row of their own."""
        if self._current:
            self._rows.append(self._current)
            self._current = []
        if buttons:
            self._rows.append(list(buttons))
        return self

    def _layout(self) -> list[list]:
        rows = [list(r) for r in self._rows]
        if self._current:
            rows.append(list(self._current))
        return rows

    @property
    def row_count(self) -> int:
        return len(self._layout())

    @property
    def last_row_button_count(self) -> int:
        rows = self._layout()
        return len(rows[-1]) if rows else 0


class InlineKeyboardBuilder(_RowBuilder):
    """Fluent builder for :class:`~sdk.models.InlineKeyboardMarkup`."""

    def url(self, text: str, url: str) -> "InlineKeyboardBuilder":
        return self._add(InlineKeyboardButton(text=text, url=url))

    def callback(self, text: str, callback_data: str) -> "InlineKeyboardBuilder":
        return self._add(InlineKeyboardButton(text=text, callback_data=callback_data))

    def web_app(self, text: str, url: str) -> "InlineKeyboardBuilder":
        return self._add(InlineKeyboardButton(text=text, web_app=WebAppInfo(url=url)))

    def login_url(self, text: str, login_url: LoginUrl) -> "InlineKeyboardBuilder":
        return self._add(InlineKeyboardButton(text=text, login_url=login_url))

    def switch_inline_query(self, text: str, query: str = "") -> "InlineKeyboardBuilder":
        return self._add(InlineKeyboardButton(text=text, switch_inline_query=query))

    def switch_inline_query_current_chat(self, text: str, query: str = "") -> "InlineKeyboardBuilder":
        return self._add(InlineKeyboardButton(text=text, switch_inline_query_current_chat=query))

    def switch_inline_query_chosen_chat(self, text: str, chosen: SwitchInlineQueryChosenChat) -> "InlineKeyboardBuilder":
        return self._add(InlineKeyboardButton(text=text, switch_inline_query_chosen_chat=chosen))

    def callback_game(self, text: str) -> "InlineKeyboardBuilder":
        return self._add(InlineKeyboardButton(text=text, callback_game=CallbackGame()))

    def pay(self, text: str) -> "InlineKeyboardBuilder":
        return self._add(InlineKeyboardButton(text=text, pay=True))

    def clear(self) -> "InlineKeyboardBuilder":
        self._rows, self._current = [], []
        return self

    def build(self) -> InlineKeyboardMarkup:
        return InlineKeyboardMarkup(inline_keyboard=self._layout())


class ReplyKeyboardBuilder(_RowBuilder):
    """Fluent builder for :class:`~sdk.models.ReplyKeyboardMarkup`."""

    def __init__(self) -> None:
        super().__init__()
        self._options: dict = {}

    def text(self, text: str) -> "ReplyKeyboardBuilder":
        return self._add(KeyboardButton(text=text))

    def request_contact(self, text: str) -> "ReplyKeyboardBuilder":
        return self._add(KeyboardButton(text=text, request_contact=True))

    def request_location(self, text: str) -> "ReplyKeyboardBuilder":
        return self._add(KeyboardButton(text=text, request_location=True))

    def request_poll(self, text: str, poll_type: Optional[str] = None) -> "ReplyKeyboardBuilder":
        """*poll_type* is ``"quiz"``, ``"regular"`` or ``None`` for any."""
        return self._add(KeyboardButton(text=text, request_poll=KeyboardButtonPollType(type=poll_type)))

    def request_users(self, text: str, request: KeyboardButtonRequestUsers) -> "ReplyKeyboardBuilder":
        return self._add(KeyboardButton(text=text, request_users=request))

    def request_chat(self, text: str, request: KeyboardButtonRequestChat) -> "ReplyKeyboardBuilder":
        return self._add(KeyboardButton(text=text, request_chat=request))

    def web_app(self, text: str, url: str) -> "ReplyKeyboardBuilder":
        return self._add(KeyboardButton(text=text, web_app=WebAppInfo(url=url)))

    # ── options ──────────────────────────────────────────────────────────

    def persistent(self, value: bool = True) -> "ReplyKeyboardBuilder":
        self._options["is_persistent"] = value
        return self

    def resize(self, value: bool = True) -> "ReplyKeyboardBuilder":
        self._options["resize_keyboard"] = value
        return self

    def one_time(self, value: bool = True) -> "ReplyKeyboardBuilder":
        self._options["one_time_keyboard"] = value
        return self

    def placeholder(self, text: str) -> "ReplyKeyboardBuilder":
        self._options["input_field_placeholder"] = text
        return self

    def selective(self, value: bool = True) -> "ReplyKeyboardBuilder":
        self._options["selective"] = value
        return self

    def clear(self) -> "ReplyKeyboardBuilder":
        self._rows, self._current, self._options = [], [], {}
        return self

    def build(self) -> ReplyKeyboardMarkup:
        return ReplyKeyboardMarkup(keyboard=self._layout(), **self._options)


# ── Ready-made markups ───────────────────────────────────────────────────────


def remove_keyboard(selective: bool = False) -> ReplyKeyboardRemove:
    return ReplyKeyboardRemove(selective=selective)


def force_reply(placeholder: Optional[str] = None, selective: bool = False) -> ForceReply:
    return ForceReply(input_field_placeholder=placeholder, selective=selective)


def url_keyboard(buttons: Iterable[tuple[str, str]]) -> InlineKeyboardMarkup:
    """One URL button per row from ``(text, url)`` pairs."""
    builder = InlineKeyboardBuilder()
    for text, url in buttons:
        builder.url(text, url).row()
    return builder.build()


def callback_keyboard(buttons: Iterable[tuple[str, str]]) -> InlineKeyboardMarkup:
    """One callback button per row from ``(text, callback_data)`` pairs."""
    builder = InlineKeyboardBuilder()
    for text, data in buttons:
        builder.callback(text, data).row()
    return builder.build()


def text_keyboard(
    labels: Sequence[str],
    columns: int = 2,
    resize: Optional[bool] = None,
    one_time: Optional[bool] = None,
    placeholder: Optional[str] = None,
) -> ReplyKeyboardMarkup:
    """Lay *labels* out as text buttons, *columns* per row."""
    if columns < 1:
        raise ValueError("columns must be at least 1")
    builder = ReplyKeyboardBuilder()
    if resize is not None:
        builder.resize(resize)
    if one_time is not None:
        builder.one_time(one_time)
    if placeholder:
        builder.placeholder(placeholder)
    for start in range(0, len(labels), columns):
        builder.row(*(KeyboardButton(text=label) for label in labels[start:start + columns]))
    return builder.build()


def pagination_keyboard(
    current_page: int,
    total_pages: int,
    prefix: str = "page",
    show_first_last: bool = True,
    show_numbers: bool = True,
    max_buttons: int = 5,
) -> InlineKeyboardMarkup:
    """A single row of navigation buttons with ``<prefix>:<page>`` callback data.

    The current page is shown in brackets, e.g. ``[3]``.
    """
    buttons: list[InlineKeyboardButton] = []

    def _button(text: str, page: int) -> None:
        buttons.append(InlineKeyboardButton(text=text, callback_data=f"{prefix}:{page}"))

    if show_first_last and current_page > 1:
        _button("⏮️", 1)
    if current_page > 1:
        _button("◀️", current_page - 1)
    if show_numbers and total_pages > 1:
        start = max(1, current_page - max_buttons // 2)
        end = min(total_pages, start + max_buttons - 1)
        for page in range(start, end + 1):
            _button(f"[{page}]" if page == current_page else str(page), page)
    if current_page < total_pages:
        _button("▶️", current_page + 1)
    if show_first_last and current_page < total_pages:
        _button("⏭️", total_pages)

    builder = InlineKeyboardBuilder()
    if buttons:
        builder.row(*buttons)
    return builder.build()


def confirmation_keyboard(
    confirm_text: str = "✅ Yes",
    cancel_text: str = "❌ No",
    confirm_data: str = "confirm",
    cancel_data: str = "cancel",
) -> InlineKeyboardMarkup:
    return InlineKeyboardBuilder().callback(confirm_text, confirm_data).callback(cancel_text, cancel_data).build()
