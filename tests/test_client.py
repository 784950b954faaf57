"""Tests for TelegramClient, its retry policy and the SDK exceptions."""

import sys
import os
from unittest.mock import patch, AsyncMock, MagicMock

import pytest
import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sdk.client import TelegramClient, _payload
from sdk.exceptions import APIException, NetworkError, RequestTimeoutError, TelegramBotError
from sdk.keyboards import InlineKeyboardBuilder
from sdk.models import Message, User
from sdk.ratelimit import RateLimiter


def _response(body: dict | None, status: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if body is None:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = body
    return resp


def _client(**kwargs) -> TelegramClient:
    kwargs.setdefault("enable_rate_limit", False)
    return TelegramClient("123:abc", **kwargs)


_MESSAGE = {"message_id": 5, "date": 0, "chat": {"id": 42, "type": "private"}, "text": "hello"}


# ── APIException ─────────────────────────────────────────────────────────────


class TestAPIException:
    """Validate the API error type."""

    def test_attributes(self) -> None:
        exc = APIException(403, {"description": "Forbidden"})
        assert exc.status_code == 403
        assert exc.description == "Forbidden"
        assert "403" in str(exc)
        assert "Forbidden" in str(exc)
        assert exc.code == "TELEGRAM_API_ERROR"

    def test_default_body(self) -> None:
        exc = APIException(500)
        assert exc.response_body == {}
        assert "Unknown error" in str(exc)

    def test_rate_limit(self) -> None:
        exc = APIException(429, {"description": "Too Many Requests", "parameters": {"retry_after": 7}})
        assert exc.is_rate_limit_error()
        assert exc.retry_after == 7

    def test_chat_migration(self) -> None:
        exc = APIException(400, {"description": "migrated", "parameters": {"migrate_to_chat_id": -100123}})
        assert exc.is_chat_migration_error()
        assert exc.migrate_to_chat_id == -100123
        assert not APIException(400, {"description": "bad"}).is_chat_migration_error()

    def test_hierarchy(self) -> None:
        assert issubclass(APIException, TelegramBotError)
        assert issubclass(RequestTimeoutError, NetworkError)
        assert RequestTimeoutError().code == "TIMEOUT_ERROR"


# ── Construction ─────────────────────────────────────────────────────────────


class TestClientInit:
    def test_base_url(self) -> None:
        c = TelegramClient("123:abc", api_url="https://api.example.com/")
        assert c._base_url == "https://api.example.com/bot123:abc"

    def test_defaults(self) -> None:
        c = TelegramClient("123:abc")
        assert c._timeout == 30
        assert c._max_retries == 3
        assert isinstance(c._rate_limiter, RateLimiter)

    def test_rate_limit_disabled(self) -> None:
        assert _client()._rate_limiter is None

    def test_file_url(self) -> None:
        assert _client().file_url("docs/a.pdf") == "https://api.telegram.org/file/bot123:abc/docs/a.pdf"


# ── Payload building ─────────────────────────────────────────────────────────


class TestPayload:
    def test_drops_none(self) -> None:
        assert _payload(chat_id=1, text="x", parse_mode=None) == {"chat_id": 1, "text": "x"}

    def test_serialises_models(self) -> None:
        markup = InlineKeyboardBuilder().callback("Go", "go").build()
        body = _payload(reply_markup=markup)
        assert body == {"reply_markup": {"inline_keyboard": [[{"text": "Go", "callback_data": "go"}]]}}


# ── call() ───────────────────────────────────────────────────────────────────


class TestCall:
    """Validate the transport and its retry policy."""

    @pytest.mark.asyncio
    @patch("sdk.client.requests.post")
    async def test_success_returns_result(self, mock_post: MagicMock) -> None:
        mock_post.return_value = _response({"ok": True, "result": {"id": 1}})
        result = await _client().call("getMe")
        assert result == {"id": 1}
        args, kwargs = mock_post.call_args
        assert args[0] == "https://api.telegram.org/bot123:abc/getMe"
        assert kwargs["timeout"] == 30

    @pytest.mark.asyncio
    @patch("sdk.client.requests.post")
    async def test_api_error_raises(self, mock_post: MagicMock) -> None:
        mock_post.return_value = _response({"ok": False, "error_code": 401, "description": "Unauthorized"}, 401)
        with pytest.raises(APIException) as exc_info:
            await _client().call("getMe")
        assert exc_info.value.status_code == 401
        assert mock_post.call_count == 1

    @pytest.mark.asyncio
    @patch("sdk.client.requests.post")
    async def test_non_json_body_uses_http_status(self, mock_post: MagicMock) -> None:
        mock_post.return_value = _response(None, 502)
        with pytest.raises(APIException) as exc_info:
            await _client().call("getMe")
        assert exc_info.value.status_code == 502
        assert exc_info.value.description == "Unknown error"

    @pytest.mark.asyncio
    @patch("sdk.client.asyncio.sleep", new_callable=AsyncMock)
    @patch("sdk.client.requests.post")
    async def test_rate_limit_retried_after_delay(self, mock_post: MagicMock, mock_sleep: AsyncMock) -> None:
        mock_post.side_effect = [
            _response({"ok": False, "error_code": 429, "description": "Too Many Requests", "parameters": {"retry_after": 4}}, 429),
            _response({"ok": True, "result": True}),
        ]
        assert await _client().call("sendChatAction", {"chat_id": 1, "action": "typing"}) is True
        mock_sleep.assert_awaited_once_with(4)

    @pytest.mark.asyncio
    @patch("sdk.client.asyncio.sleep", new_callable=AsyncMock)
    @patch("sdk.client.requests.post")
    async def test_rate_limit_gives_up_after_max_retries(self, mock_post: MagicMock, mock_sleep: AsyncMock) -> None:
        mock_post.return_value = _response(
            {"ok": False, "error_code": 429, "description": "Too Many Requests", "parameters": {"retry_after": 1}}, 429,
        )
        with pytest.raises(APIException) as exc_info:
            await _client(max_retries=2).call("getMe")
        assert exc_info.value.is_rate_limit_error()
        assert mock_post.call_count == 3
        assert mock_sleep.await_count == 2

    @pytest.mark.asyncio
    @patch("sdk.client.asyncio.sleep", new_callable=AsyncMock)
    @patch("sdk.client.requests.post")
    async def test_network_error_retried_with_growing_delay(self, mock_post: MagicMock, mock_sleep: AsyncMock) -> None:
        mock_post.side_effect = [
            requests.ConnectionError("down"),
            requests.ConnectionError("down"),
            _response({"ok": True, "result": True}),
        ]
        assert await _client().call("getMe") is True
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1, 2]

    @pytest.mark.asyncio
    @patch("sdk.client.asyncio.sleep", new_callable=AsyncMock)
    @patch("sdk.client.requests.post")
    async def test_network_error_raised_after_retries(self, mock_post: MagicMock, mock_sleep: AsyncMock) -> None:
        mock_post.side_effect = requests.ConnectionError("down")
        with pytest.raises(NetworkError) as exc_info:
            await _client(max_retries=1).call("getMe")
        assert not isinstance(exc_info.value, RequestTimeoutError)
        assert isinstance(exc_info.value.original_error, requests.ConnectionError)

    @pytest.mark.asyncio
    @patch("sdk.client.asyncio.sleep", new_callable=AsyncMock)
    @patch("sdk.client.requests.post")
    async def test_timeout_raises_timeout_error(self, mock_post: MagicMock, mock_sleep: AsyncMock) -> None:
        mock_post.side_effect = requests.Timeout("slow")
        with pytest.raises(RequestTimeoutError):
            await _client(max_retries=0).call("getMe")
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    @patch("sdk.client.requests.post")
    async def test_rate_limiter_consulted(self, mock_post: MagicMock) -> None:
        mock_post.return_value = _response({"ok": True, "result": True})
        limiter = MagicMock()
        limiter.wait_if_needed = AsyncMock(return_value=0.0)
        await TelegramClient("123:abc", rate_limiter=limiter).call("getMe")
        limiter.wait_if_needed.assert_awaited_once()


# ── Typed methods ────────────────────────────────────────────────────────────


class TestMethods:
    @pytest.mark.asyncio
    async def test_get_me(self) -> None:
        c = _client()
        with patch.object(c, "call", new_callable=AsyncMock, return_value={"id": 1, "is_bot": True, "first_name": "Bot", "username": "b_bot"}):
            me = await c.get_me()
        assert isinstance(me, User)
        assert me.username == "b_bot"

    @pytest.mark.asyncio
    async def test_send_message_payload(self) -> None:
        c = _client()
        with patch.object(c, "call", new_callable=AsyncMock, return_value=_MESSAGE) as mock_call:
            msg = await c.send_message(42, "hello", parse_mode="HTML", reply_to_message_id=3)
        assert isinstance(msg, Message)
        method, payload = mock_call.call_args.args
        assert method == "sendMessage"
        assert payload == {"chat_id": 42, "text": "hello", "parse_mode": "HTML", "reply_parameters": {"message_id": 3}}

    @pytest.mark.asyncio
    async def test_get_updates_parses_list(self) -> None:
        c = _client()
        with patch.object(c, "call", new_callable=AsyncMock, return_value=[{"update_id": 9, "message": _MESSAGE}]) as mock_call:
            updates = await c.get_updates(offset=9, timeout=25)
        assert updates[0].update_id == 9
        assert mock_call.call_args.args == ("getUpdates", {"offset": 9, "timeout": 25})

    @pytest.mark.asyncio
    async def test_get_raw_updates_skips_validation(self) -> None:
        c = _client()
        raw = [{"update_id": 9, "message": {"message_id": 1}}]
        with patch.object(c, "call", new_callable=AsyncMock, return_value=raw):
            assert await c.get_raw_updates(offset=9) == raw

    @pytest.mark.asyncio
    async def test_edit_inline_message_returns_bool(self) -> None:
        c = _client()
        with patch.object(c, "call", new_callable=AsyncMock, return_value=True):
            assert await c.edit_message_text("new", inline_message_id="abc") is True

    @pytest.mark.asyncio
    async def test_get_chat_member(self) -> None:
        c = _client()
        member = {"status": "creator", "user": {"id": 5, "is_bot": False, "first_name": "O"}}
        with patch.object(c, "call", new_callable=AsyncMock, return_value=member) as mock_call:
            result = await c.get_chat_member(-100, 5)
        assert result.is_admin
        assert mock_call.call_args.args == ("getChatMember", {"chat_id": -100, "user_id": 5})
