"""seo_scout.progress: server-sent-event channels and the progress emitter.

One crawl owns one channel and one :class:`ProgressEmitter`; nothing here is
shared between concurrent crawls.
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Dict, Mapping, Optional, Protocol

from aiohttp import web

from seo_scout.logger import get_logger
from seo_scout.models import ProgressEvent

log = get_logger("progress")


def format_event(payload: Mapping[str, Any]) -> str:
    """Render one server-sent event: ``data: <json>\\n\\n``."""
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def parse_event(line: str) -> Dict[str, Any]:
    """Inverse of :func:`format_event` for a single event block."""
    text = line.strip()
    if not text.startswith("data:"):
        raise ValueError(f"not an SSE data line: {line!r}")
    return json.loads(text[len("data:"):].strip())


class Channel(Protocol):
    @property
    def closed(self) -> bool: ...

    async def send(self, text: str) -> None: ...

    async def close(self) -> None: ...


class QueueChannel:
    """In-process channel: events are queued and read with ``async for``."""

    _EOF = None

    def __init__(self) -> None:
        self._queue: asyncio.Queue[Optional[str]] = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, text: str) -> None:
        if self._closed:
            raise ConnectionResetError("channel closed")
        await self._queue.put(text)

    async def close(self) -> None:
        self.close_nowait()

    def close_nowait(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(self._EOF)

    async def __aiter__(self) -> AsyncIterator[str]:
        while True:
            item = await self._queue.get()
            if item is self._EOF:
                return
            yield item


class StreamResponseChannel:
    """Channel writing to an aiohttp ``StreamResponse`` (``text/event-stream``)."""

    def __init__(self, request: web.Request, response: web.StreamResponse) -> None:
        self.request = request
        self.response = response
        self._closed = False

    @property
    def closed(self) -> bool:
        transport = self.request.transport
        return self._closed or transport is None or transport.is_closing()

    async def send(self, text: str) -> None:
        await self.response.write(text.encode("utf-8"))

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        transport = self.request.transport
        if transport is not None and not transport.is_closing():
            await self.response.write_eof()


class ProgressEmitter:
    """Publishes progress/complete/error events; never raises on a dead channel."""

    def __init__(self, channel: Channel) -> None:
        self.channel = channel
        self.disconnected = False
        self.terminated = False

    def is_disconnected(self) -> bool:
        return self.disconnected or self.channel.closed

    async def _emit(self, payload: Mapping[str, Any]) -> bool:
        if self.is_disconnected():
            log.debug("Channel closed, dropping %s event", payload.get("type"))
            return False
        try:
            await self.channel.send(format_event(payload))
        except ConnectionError as exc:
            self.disconnected = True
            log.warning("Progress consumer disconnected: %s", exc)
            return False
        return True

    async def progress(self, event: ProgressEvent) -> bool:
        return await self._emit(event.to_dict())

    async def complete(self, payload: Mapping[str, Any]) -> bool:
        if self.terminated:
            log.debug("Terminal event already sent, dropping complete")
            return False
        self.terminated = True
        return await self._emit({"type": "complete", **payload})

    async def error(self, message: str, debug_info: Mapping[str, Any]) -> bool:
        if self.terminated:
            log.debug("Terminal event already sent, dropping error")
            return False
        self.terminated = True
        return await self._emit({"type": "error", "error": message, "debugInfo": dict(debug_info)})

    async def close(self) -> None:
        try:
            await self.channel.close()
        except ConnectionError as exc:
            log.debug("Error while closing channel: %s", exc)


__all__ = [
    "Channel",
    "QueueChannel",
    "StreamResponseChannel",
    "ProgressEmitter",
    "format_event",
    "parse_event",
]
