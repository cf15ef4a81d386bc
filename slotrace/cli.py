"""Commands that watch the slot feeds and compare how quickly they deliver."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
import time
from collections.abc import AsyncIterable
from typing import TextIO

from slotrace.clients import grpc_slots, require_env, shred_slots
from slotrace.stats import SlotRace, Source, Stats, format_log

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 30.0

_DONE = object()


async def _pump(source: Source, feed: AsyncIterable[tuple[int, int]], queue: asyncio.Queue) -> None:
    try:
        async for slot, timestamp in feed:
            queue.put_nowait((source, slot, timestamp))
    except Exception as exc:  # a failing feed only ends its own side of the race
        logger.error("%s feed stopped: %s", source.value, exc)
    finally:
        queue.put_nowait(_DONE)


async def compare(
    grpc_source: AsyncIterable[tuple[int, int]],
    shred_source: AsyncIterable[tuple[int, int]],
    duration: float = DEFAULT_DURATION,
    out: TextIO | None = None,
) -> Stats:
    """Race two slot feeds for ``duration`` seconds and print the comparison.

    The time limit is checked after each received slot; the race also ends
    when both feeds have closed.
    """
    stream = out if out is not None else sys.stdout

    def say(message: str) -> None:
        print(format_log(message), file=stream, flush=True)

    say("Starting GRPC and SHRED service performance comparison...")
    say(f"Test duration: {duration:g} seconds")
    say("Test endpoints: GRPC, SHRED")

    queue: asyncio.Queue = asyncio.Queue()
    tasks = [
        asyncio.create_task(_pump(Source.GRPC, grpc_source, queue)),
        asyncio.create_task(_pump(Source.SHRED, shred_source, queue)),
    ]
    race = SlotRace()
    started = time.monotonic()
    open_feeds = len(tasks)
    try:
        while open_feeds:
            item = await queue.get()
            if item is _DONE:
                open_feeds -= 1
                continue
            source, slot, timestamp = item
            if race.observe(source, slot, timestamp):
                say("All endpoints have received the first slot, starting official statistics...")
            if time.monotonic() - started >= duration:
                break
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    for line in race.stats.summary_lines():
        say(line)
    return race.stats


def main(argv: list[str] | None = None) -> int:
    """Compare the gRPC and shredstream endpoints named by GRPC_URL and SHRED_URL."""
    parser = argparse.ArgumentParser(
        prog="slotrace", description="Compare slot delivery of gRPC and shredstream endpoints."
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=DEFAULT_DURATION,
        help="seconds to run the comparison (default: %(default)s)",
    )
    args = parser.parse_args(argv)
    try:
        grpc_url = require_env("GRPC_URL")
        shred_url = require_env("SHRED_URL")
    except RuntimeError as exc:
        print(exc, file=sys.stderr)
        return 1
    asyncio.run(compare(grpc_slots(grpc_url), shred_slots(shred_url), args.duration))
    return 0


def _configure_logging() -> None:
    level = os.environ.get("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(levelname)-5s %(name)s > %(message)s")


async def _log_grpc(url: str) -> None:
    async for slot, timestamp in grpc_slots(url):
        logger.info("Slot: %d, Timestamp: %d", slot, timestamp)


def grpc_main(argv: list[str] | None = None) -> int:
    """Log each new slot seen on the gRPC endpoint named by GRPC_URL."""
    argparse.ArgumentParser(
        prog="slotrace-grpc", description="Log new slots from a gRPC endpoint."
    ).parse_args(argv)
    _configure_logging()
    try:
        url = require_env("GRPC_URL")
    except RuntimeError as exc:
        print(exc, file=sys.stderr)
        return 1
    asyncio.run(_log_grpc(url))
    return 0


async def _print_shred(url: str) -> None:
    def report(exc: Exception) -> None:
        print(f"Deserialization failed with err: {exc}", flush=True)

    async for slot, timestamp in shred_slots(url, report):
        print(f"Slot: {slot}, Timestamp: {timestamp}", flush=True)


def shred_main(argv: list[str] | None = None) -> int:
    """Print each new slot seen on the shredstream proxy named by SHRED_URL."""
    argparse.ArgumentParser(
        prog="slotrace-shred", description="Print new slots from a shredstream proxy."
    ).parse_args(argv)
    try:
        url = require_env("SHRED_URL")
    except RuntimeError as exc:
        print(exc, file=sys.stderr)
        return 1
    asyncio.run(_print_shred(url))
    return 0