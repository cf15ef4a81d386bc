"""Slot feeds from a geyser gRPC endpoint and a shredstream proxy."""

from __future__ import annotations

import logging
import os
import time
from collections.abc import AsyncIterator, Callable
from urllib.parse import urlsplit

import grpc
from dotenv import find_dotenv, load_dotenv

from slotrace.entries import EntryDecodeError, decode_entries
from slotrace.wire import (
    GEYSER_SUBSCRIBE,
    PROCESSED,
    SHREDSTREAM_SUBSCRIBE_ENTRIES,
    UpdateKind,
    WireError,
    build_ping_request,
    build_subscribe_request,
    parse_shred_entry,
    parse_subscribe_update,
)

logger = logging.getLogger(__name__)


def require_env(name: str) -> str:
    """Return the environment variable ``name``, loading a ``.env`` file first."""
    load_dotenv(find_dotenv(usecwd=True))
    value = os.environ.get(name)
    if value is None:
        raise RuntimeError(f"{name} must be set")
    return value


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _open_channel(url: str) -> grpc.aio.Channel:
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ValueError(f"unsupported endpoint URL: {url!r}")
    host = parts.netloc.rsplit("@", 1)[-1]
    if parts.port is None:
        host += ":443" if parts.scheme == "https" else ":80"
    if parts.scheme == "https":
        return grpc.aio.secure_channel(host, grpc.ssl_channel_credentials())
    return grpc.aio.insecure_channel(host)


async def grpc_slots(url: str) -> AsyncIterator[tuple[int, int]]:
    """Yield (slot, epoch milliseconds) whenever a new transaction slot shows up.

    Answers server pings; ends after logging when the stream fails.
    """
    async with _open_channel(url) as channel:
        call = channel.stream_stream(GEYSER_SUBSCRIBE)()
        last_slot = 0
        try:
            await call.write(build_subscribe_request(PROCESSED))
            while (message := await call.read()) is not grpc.aio.EOF:
                update = parse_subscribe_update(message)
                if update.kind is UpdateKind.TRANSACTION and update.slot != last_slot:
                    last_slot = update.slot
                    yield update.slot, _now_ms()
                elif update.kind is UpdateKind.PING:
                    try:
                        await call.write(build_ping_request(1))
                    except (grpc.RpcError, RuntimeError):
                        pass
        except (grpc.aio.AioRpcError, WireError) as exc:
            logger.error("Error: %r", exc)
        finally:
            call.cancel()


async def shred_slots(
    url: str,
    on_decode_error: Callable[[EntryDecodeError], None] | None = None,
) -> AsyncIterator[tuple[int, int]]:
    """Yield (slot, epoch milliseconds) the first time a slot's entries decode.

    Undecodable batches are skipped after going to ``on_decode_error``.
    """
    async with _open_channel(url) as channel:
        processed: set[int] = set()
        async for message in channel.unary_stream(SHREDSTREAM_SUBSCRIBE_ENTRIES)(b""):
            entry = parse_shred_entry(message)
            try:
                decode_entries(entry.entries)
            except EntryDecodeError as exc:
                if on_decode_error is not None:
                    on_decode_error(exc)
                continue
            if entry.slot not in processed:
                processed.add(entry.slot)
                yield entry.slot, _now_ms()