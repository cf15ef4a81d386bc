"""Bookkeeping for the race between two slot feeds."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from datetime import datetime

HEADER = "===== Endpoint Performance Comparison ====="


class Source(enum.Enum):
    """A feed that reports newly seen slots."""

    GRPC = "GRPC"
    SHRED = "SHRED"

    @property
    def other(self) -> "Source":
        return Source.SHRED if self is Source.GRPC else Source.GRPC


def _ratio(numerator: int, denominator: int) -> float:
    return numerator / denominator if denominator else math.nan


def _number(value: float) -> str:
    if math.isnan(value):
        return f"{'NaN':>6}"
    return f"{value:6.2f}"


@dataclass
class Stats:
    """Counts of which feed won each slot and how far the loser trailed."""

    grpc_first: int = 0
    shred_first: int = 0
    grpc_delay_sum: int = 0
    shred_delay_sum: int = 0
    grpc_delay_count: int = 0
    shred_delay_count: int = 0

    def record(self, winner: Source, delay_ms: int) -> None:
        """Count a slot won by ``winner``; the other feed trailed by ``delay_ms``."""
        if delay_ms < 0:
            raise ValueError("delay must not be negative")
        if winner is Source.GRPC:
            self.grpc_first += 1
            self.shred_delay_sum += delay_ms
            self.shred_delay_count += 1
        else:
            self.shred_first += 1
            self.grpc_delay_sum += delay_ms
            self.grpc_delay_count += 1

    def summary_lines(self) -> list[str]:
        """The comparison report, one message per line, without log prefixes."""
        total = self.grpc_first + self.shred_first
        rows = (
            ("GRPC   ", self.grpc_first, self.grpc_delay_sum, self.grpc_delay_count),
            ("SHRED  ", self.shred_first, self.shred_delay_sum, self.shred_delay_count),
        )
        lines = [HEADER]
        for label, first, delay_sum, delay_count in rows:
            percent = _ratio(first, total) * 100.0
            behind = delay_sum / delay_count if delay_count else 0.0
            overall = _ratio(delay_sum, total)
            lines.append(
                f"{label}: First received {_number(percent)}%, "
                f"avg delay when behind {_number(behind)}ms, "
                f"overall avg delay {_number(overall)}ms"
            )
        return lines


@dataclass
class SlotRace:
    """Matches slots reported by both feeds and scores who saw them first."""

    stats: Stats = field(default_factory=Stats)
    started: bool = False
    _seen: dict[Source, dict[int, int]] = field(
        default_factory=lambda: {source: {} for source in Source},
        init=False,
        repr=False,
    )

    def observe(self, source: Source, slot: int, timestamp: int) -> bool:
        """Note that ``source`` saw ``slot`` at ``timestamp`` (milliseconds).

        Returns True only for the observation that completed the very first
        pair, i.e. when statistics start being collected.
        """
        self._seen[source][slot] = timestamp
        other_ts = self._seen[source.other].get(slot)
        if other_ts is None:
            return False
        diff = timestamp - other_ts
        if diff < 0:
            self.stats.record(source, -diff)
        else:
            self.stats.record(source.other, diff)
        just_started = not self.started
        self.started = True
        return just_started


def format_log(message: str, now: datetime | None = None) -> str:
    """Prefix ``message`` with a millisecond clock time and the INFO level."""
    moment = now if now is not None else datetime.now()
    return f"[{moment:%H:%M:%S}.{moment.microsecond // 1000:03d}] INFO: {message}"