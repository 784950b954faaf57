"""Tests for keyboard builders and ready-made markups."""

import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sdk.keyboards import (
    InlineKeyboardBuilder,
    ReplyKeyboardBuilder,
    callback_keyboard,
    confirmation_keyboard,
    force_reply,
    pagination_keyboard,
    remove_keyboard,
    text_keyboard,
    url_keyboard,
)


def _texts(markup) -> list[list[str]]:
    rows = getattr(markup, "inline_keyboard", None) or markup.keyboard
    return [[button.text for button in row] for row in rows]


# ── Builders ─────────────────────────────────────────────────────────────────


class TestInlineKeyboardBuilder:
    def test_buttons_share_row_until_row_called(self) -> None:
        builder = InlineKeyboardBuilder().callback("A", "a").callback("B", "b").row().url("C", "https://c.example")
        assert builder.row_count == 2
        assert builder.last_row_button_count == 1
        assert _texts(builder.build()) == [["A", "B"], ["C"]]

    def test_row_with_buttons(self) -> None:
        builder = InlineKeyboardBuilder().callback("A", "a")
        builder.row(*InlineKeyboardBuilder().callback("X", "x").callback("Y", "y").build().inline_keyboard[0])
        assert _texts(builder.build()) == [["A"], ["X", "Y"]]

    def test_button_fields(self) -> None:
        markup = (
            InlineKeyboardBuilder()
            .web_app("App", "https://app.example")
            .switch_inline_query("Share", "q")
            .pay("Pay")
            .callback_game("Play")
            .build()
        )
        app, share, pay, play = markup.inline_keyboard[0]
        assert app.web_app.url == "https://app.example"
        assert share.switch_inline_query == "q"
        assert pay.pay is True
        assert play.callback_game is not None

    def test_clear(self) -> None:
        builder = InlineKeyboardBuilder().callback("A", "a").row().callback("B", "b")
        assert builder.clear().row_count == 0
        assert builder.build().inline_keyboard == []

    def test_empty_row_call_is_noop(self) -> None:
        assert InlineKeyboardBuilder().row().row().row_count == 0


class TestReplyKeyboardBuilder:
    def test_options(self) -> None:
        markup = (
            ReplyKeyboardBuilder()
            .text("One").request_contact("Phone").row()
            .request_location("Where").request_poll("Quiz", "quiz")
            .resize().one_time().placeholder("Pick").persistent()
            .build()
        )
        assert _texts(markup) == [["One", "Phone"], ["Where", "Quiz"]]
        assert markup.resize_keyboard is True
        assert markup.one_time_keyboard is True
        assert markup.input_field_placeholder == "Pick"
        assert markup.is_persistent is True
        assert markup.keyboard[0][1].request_contact is True
        assert markup.keyboard[1][1].request_poll.type == "quiz"

    def test_clear_resets_options(self) -> None:
        markup = ReplyKeyboardBuilder().text("x").resize().clear().build()
        assert markup.keyboard == []
        assert markup.resize_keyboard is None


# ── Ready-made markups ───────────────────────────────────────────────────────


class TestReadyMade:
    def test_url_keyboard_one_per_row(self) -> None:
        markup = url_keyboard([("Site", "https://a.example"), ("Docs", "https://b.example")])
        assert _texts(markup) == [["Site"], ["Docs"]]
        assert markup.inline_keyboard[1][0].url == "https://b.example"

    def test_callback_keyboard_one_per_row(self) -> None:
        markup = callback_keyboard([("Yes", "y"), ("No", "n")])
        assert [[b.callback_data for b in row] for row in markup.inline_keyboard] == [["y"], ["n"]]

    def test_text_keyboard_columns(self) -> None:
        markup = text_keyboard(["a", "b", "c", "d", "e"], columns=2, resize=True)
        assert _texts(markup) == [["a", "b"], ["c", "d"], ["e"]]
        assert markup.resize_keyboard is True

    def test_text_keyboard_rejects_zero_columns(self) -> None:
        with pytest.raises(ValueError):
            text_keyboard(["a"], columns=0)

    def test_remove_and_force_reply(self) -> None:
        assert remove_keyboard(selective=True).selective is True
        reply = force_reply("Type here")
        assert reply.force_reply is True
        assert reply.input_field_placeholder == "Type here"

    def test_confirmation(self) -> None:
        markup = confirmation_keyboard()
        assert [(b.text, b.callback_data) for b in markup.inline_keyboard[0]] == [("✅ Yes", "confirm"), ("❌ No", "cancel")]


class TestPagination:
    def test_middle_page(self) -> None:
        markup = pagination_keyboard(3, 10)
        row = markup.inline_keyboard[0]
        assert [b.text for b in row] == ["⏮️", "◀️", "1", "2", "[3]", "4", "5", "▶️", "⏭️"]
        assert row[0].callback_data == "page:1"
        assert row[-1].callback_data == "page:10"

    def test_first_page_has_no_back_buttons(self) -> None:
        row = pagination_keyboard(1, 3, prefix="p").inline_keyboard[0]
        assert [b.text for b in row] == ["[1]", "2", "3", "▶️", "⏭️"]
        assert row[3].callback_data == "p:2"

    def test_last_page_without_numbers(self) -> None:
        row = pagination_keyboard(4, 4, show_numbers=False, show_first_last=False).inline_keyboard[0]
        assert [b.text for b in row] == ["◀️"]

    def test_single_page_is_empty(self) -> None:
        assert pagination_keyboard(1, 1).inline_keyboard == []
