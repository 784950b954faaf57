"""Tests for the long-polling loop."""

import sys
import os
import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dispatch import polling
from dispatch.polling import poll_once, run_polling
from sdk.exceptions import NetworkError


def _updates(*ids: int) -> list[dict]:
    return [{"update_id": i} for i in ids]


def _client(batches) -> MagicMock:
    client = MagicMock()
    client.get_raw_updates = AsyncMock(side_effect=batches)
    client.delete_webhook = AsyncMock(return_value=True)
    return client


async def _drain() -> None:
    while polling._tasks:
        await asyncio.gather(*list(polling._tasks))


# ── poll_once ────────────────────────────────────────────────────────────────


class TestPollOnce:
    @pytest.mark.asyncio
    async def test_returns_next_offset_and_dispatches(self) -> None:
        dispatcher = MagicMock()
        dispatcher.process_update = AsyncMock()
        client = _client([_updates(5, 6)])

        offset = await poll_once(dispatcher, client, offset=5, timeout=10)
        await _drain()

        assert offset == 7
        client.get_raw_updates.assert_awaited_once_with(offset=5, timeout=10, allowed_updates=None)
        assert [c.args[0].update_id for c in dispatcher.process_update.await_args_list] == [5, 6]

    @pytest.mark.asyncio
    async def test_empty_batch_keeps_offset(self) -> None:
        client = _client([[]])
        assert await poll_once(MagicMock(), client, offset=3) == 3

    @pytest.mark.asyncio
    async def test_escaped_failure_is_logged(self) -> None:
        dispatcher = MagicMock()
        dispatcher.process_update = AsyncMock(side_effect=RuntimeError("middleware down"))
        client = _client([_updates(1)])

        with patch("dispatch.polling.logger") as mock_logger:
            await poll_once(dispatcher, client)
            await _drain()

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["extra"] == {"update_id": 1, "error": "middleware down"}

    @pytest.mark.asyncio
    async def test_malformed_update_is_skipped(self) -> None:
        dispatcher = MagicMock()
        dispatcher.process_update = AsyncMock()
        good = {"update_id": 1, "message": {"message_id": 1, "date": 0, "chat": {"id": 42, "type": "private"}, "text": "hi"}}
        no_chat = {"update_id": 2, "message": {"message_id": 2, "date": 0, "text": "hi"}}
        client = _client([[good, no_chat, {"update_id": 3}]])

        with patch("dispatch.polling.logger") as mock_logger:
            offset = await poll_once(dispatcher, client)
            await _drain()

        assert offset == 4
        assert [c.args[0].update_id for c in dispatcher.process_update.await_args_list] == [1, 3]
        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.kwargs["extra"]["update_id"] == 2

    @pytest.mark.asyncio
    async def test_malformed_update_without_id_keeps_offset(self) -> None:
        dispatcher = MagicMock()
        dispatcher.process_update = AsyncMock()
        client = _client([[{"update_id": "x"}, "garbage"]])

        with patch("dispatch.polling.logger"):
            offset = await poll_once(dispatcher, client, offset=7)

        assert offset == 7
        dispatcher.process_update.assert_not_awaited()


# ── run_polling ──────────────────────────────────────────────────────────────


class TestRunPolling:
    @pytest.mark.asyncio
    async def test_backs_off_on_api_errors(self) -> None:
        dispatcher = MagicMock()
        dispatcher.process_update = AsyncMock()
        client = _client([NetworkError("down"), _updates(1), asyncio.CancelledError()])

        with patch("dispatch.polling.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(asyncio.CancelledError):
                await run_polling(dispatcher, client)
        await _drain()

        client.delete_webhook.assert_awaited_once()
        mock_sleep.assert_awaited_once_with(polling.RETRY_DELAY)
        assert client.get_raw_updates.await_args_list[-1].kwargs["offset"] == 2

    @pytest.mark.asyncio
    async def test_loop_survives_malformed_batch(self) -> None:
        dispatcher = MagicMock()
        dispatcher.process_update = AsyncMock()
        good = {"update_id": 1, "message": {"message_id": 1, "date": 0, "chat": {"id": 42, "type": "private"}}}
        bad = {"update_id": 2, "message": {"message_id": 2, "date": 0}}
        client = _client([[good, bad], _updates(3), asyncio.CancelledError()])

        with patch("dispatch.polling.logger"):
            with pytest.raises(asyncio.CancelledError):
                await run_polling(dispatcher, client)
            await _drain()

        assert [c.kwargs["offset"] for c in client.get_raw_updates.await_args_list] == [None, 3, 4]
        assert [c.args[0].update_id for c in dispatcher.process_update.await_args_list] == [1, 3]

    @pytest.mark.asyncio
    async def test_keep_webhook(self) -> None:
        client = _client([asyncio.CancelledError()])
        with pytest.raises(asyncio.CancelledError):
            await run_polling(MagicMock(), client, drop_webhook=False)
        client.delete_webhook.assert_not_awaited()
