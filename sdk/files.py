"""File download helpers and MIME predicates.

:class:`FileHelper` resolves a ``file_id`` through ``getFile`` and downloads
the content from the Bot API file endpoint with ``requests`` (offloaded to a
worker thread, like every other blocking call in the SDK).
"""

from __future__ import annotations

import asyncio
import json
import os
from typing import Any, Optional

import requests

from core.logger import HookbotLogger
from sdk.client import TelegramClient
from sdk.exceptions import FileError
from sdk.models import File, Message

logger = HookbotLogger.get_logger()

_MIME_TYPES: dict[str, str] = {
    "jpg": "image/jpeg", "jpeg": "image/jpeg", "png": "image/png", "gif": "image/gif",
    "webp": "image/webp", "svg": "image/svg+xml", "bmp": "image/bmp",
    "mp3": "audio/mpeg", "wav": "audio/wav", "ogg": "audio/ogg", "m4a": "audio/mp4",
    "aac": "audio/aac", "flac": "audio/flac",
    "mp4": "video/mp4", "mov": "video/quicktime", "webm": "video/webm", "mkv": "video/x-matroska",
    "avi": "video/x-msvideo",
    "pdf": "application/pdf", "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "txt": "text/plain", "html": "text/html", "csv": "text/csv",
    "json": "application/json", "xml": "application/xml",
    "zip": "application/zip", "rar": "application/vnd.rar", "7z": "application/x-7z-compressed",
    "tar": "application/x-tar", "gz": "application/gzip",
}

_DOCUMENT_TYPES = frozenset({
    "application/pdf", "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain", "text/html", "text/csv", "application/json", "application/xml",
})

_ARCHIVE_TYPES = frozenset({
    "application/zip", "application/vnd.rar", "application/x-7z-compressed",
    "application/x-tar", "application/gzip",
})

# Media the Bot API renders natively when sent through sendPhoto / sendAudio / sendVideo
_NATIVE_MEDIA_TYPES = frozenset({
    "image/jpeg", "image/png", "image/gif", "image/webp",
    "audio/mpeg", "audio/wav", "audio/ogg", "video/mp4", "video/webm",
})

# Bot API upload ceiling for media sent by URL / multipart
MAX_MEDIA_SIZE = 50 * 1024 * 1024

_CHUNK_SIZE = 64 * 1024


class FileHelper:
    """Resolve and download files the bot has received."""

    def __init__(self, client: TelegramClient, timeout: int = 30) -> None:
        self._client = client
        self._timeout = timeout

    async def get_file_info(self, file_id: str) -> File:
        return await self._client.get_file(file_id)

    def download_url(self, file_path: str) -> str:
        return self._client.file_url(file_path)

    async def download(self, file_id: str, max_size: Optional[int] = None) -> bytes:
        """Download the file behind *file_id*.

        Raises:
            FileError: No download path, the file exceeds *max_size*, or the
                file endpoint answered with a non-2xx status.
        """
        info = await self.get_file_info(file_id)
        if not info.file_path:
            raise FileError("File path not available", file_id)
        if max_size is not None and info.file_size and info.file_size > max_size:
            raise FileError(f"File size ({info.file_size}) exceeds maximum allowed size ({max_size})", file_id)

        url = self.download_url(info.file_path)
        try:
            content = await asyncio.to_thread(self._fetch, url, file_id, max_size)
        except requests.RequestException as exc:
            logger.error("File download failed", extra={"file_id": file_id, "error": str(exc)})
            raise FileError(f"Failed to download file: {exc}", file_id) from exc
        logger.debug("File downloaded", extra={"file_id": file_id, "size": len(content)})
        return content

    def _fetch(self, url: str, file_id: str, max_size: Optional[int]) -> bytes:
        """Stream the body, stopping as soon as it passes *max_size*."""
        response = requests.get(url, timeout=self._timeout, stream=True)
        try:
            if not response.ok:
                logger.warning("File download rejected", extra={"file_id": file_id, "status_code": response.status_code})
                raise FileError(f"Failed to download file: {response.status_code} {response.reason}", file_id)
            chunks: list[bytes] = []
            size = 0
            for chunk in response.iter_content(chunk_size=_CHUNK_SIZE):
                size += len(chunk)
                if max_size is not None and size > max_size:
                    raise FileError(f"File size exceeds maximum allowed size ({max_size})", file_id)
                chunks.append(chunk)
            return b"".join(chunks)
        finally:
            response.close()

    async def download_text(self, file_id: str, encoding: str = "utf-8", max_size: Optional[int] = None) -> str:
        content = await self.download(file_id, max_size)
        try:
            return content.decode(encoding)
        except UnicodeDecodeError as exc:
            raise FileError(f"File is not valid {encoding} text: {exc}", file_id) from exc

    async def download_json(self, file_id: str, max_size: Optional[int] = None) -> Any:
        text = await self.download_text(file_id, max_size=max_size)
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise FileError(f"File is not valid JSON: {exc}", file_id) from exc


# ── Message inspection ───────────────────────────────────────────────────────


def extract_file(message: Message) -> Optional[dict[str, Any]]:
    """Return ``file_id``/size/MIME info for the first attachment of *message*.

    Photos resolve to their largest size.
    """
    if message.photo:
        largest = max(message.photo, key=lambda p: p.file_size or 0)
        return {
            "file_id": largest.file_id,
            "file_unique_id": largest.file_unique_id,
            "file_size": largest.file_size,
            "mime_type": "image/jpeg",
        }
    for attr in ("audio", "document", "video", "voice"):
        media = getattr(message, attr)
        if media is not None:
            return {
                "file_id": media.file_id,
                "file_unique_id": media.file_unique_id,
                "file_size": media.file_size,
                "mime_type": media.mime_type,
                "file_name": getattr(media, "file_name", None),
            }
    return None


# ── MIME helpers ─────────────────────────────────────────────────────────────


def file_extension(filename: str) -> str:
    return os.path.splitext(filename)[1].lstrip(".").lower()


def mime_type_for(filename: str) -> str:
    """Guess the MIME type from the extension; ``application/octet-stream`` if unknown."""
    return _MIME_TYPES.get(file_extension(filename), "application/octet-stream")


def is_image(mime_type: str) -> bool:
    return mime_type.startswith("image/")


def is_audio(mime_type: str) -> bool:
    return mime_type.startswith("audio/")


def is_video(mime_type: str) -> bool:
    return mime_type.startswith("video/")


def is_document(mime_type: str) -> bool:
    return mime_type in _DOCUMENT_TYPES


def is_archive(mime_type: str) -> bool:
    return mime_type in _ARCHIVE_TYPES


def should_send_as_document(file_size: int, mime_type: str) -> bool:
    if file_size > MAX_MEDIA_SIZE:
        return True
    return mime_type not in _NATIVE_MEDIA_TYPES


def format_file_size(size: int) -> str:
    """Human-readable size, e.g. ``1.5 MB``."""
    units = ("B", "KB", "MB", "GB", "TB")
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1
    return f"{int(value)} {units[index]}" if index == 0 else f"{value:.1f} {units[index]}"
