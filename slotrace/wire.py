"""Protobuf wire encoding for the geyser and shredstream messages in use."""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass

PROCESSED, CONFIRMED, FINALIZED = 0, 1, 2

GEYSER_SUBSCRIBE = "/geyser.Geyser/Subscribe"
SHREDSTREAM_SUBSCRIBE_ENTRIES = "/shredstream.ShredstreamProxy/SubscribeEntries"

_VARINT, _FIXED64, _LEN, _FIXED32 = 0, 1, 2, 5
_MASK64 = (1 << 64) - 1


class WireError(ValueError):
    """Raised when bytes are not a valid protobuf message."""


def encode_varint(value: int) -> bytes:
    """Encode a non-negative integer below 2**64 as a base-128 varint."""
    if not 0 <= value <= _MASK64:
        raise ValueError(f"varint out of range: {value}")
    out = bytearray()
    while value > 0x7F:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    out.append(value)
    return bytes(out)


def decode_varint(data: bytes, offset: int = 0) -> tuple[int, int]:
    """Decode a varint at ``offset``; return the value and the offset after it."""
    result = 0
    window = data[offset : offset + 10]
    for index, byte in enumerate(window):
        result |= (byte & 0x7F) << (7 * index)
        if not byte & 0x80:
            return result & _MASK64, offset + index + 1
    raise WireError("varint longer than 10 bytes" if len(window) == 10 else "truncated varint")


def _take(data: bytes, offset: int, size: int) -> tuple[bytes, int]:
    end = offset + size
    if end > len(data):
        raise WireError("truncated field")
    return bytes(data[offset:end]), end


def iter_fields(data: bytes) -> Iterator[tuple[int, int, int | bytes]]:
    """Yield (field number, wire type, value); length-delimited values are bytes."""
    offset = 0
    while offset < len(data):
        key, offset = decode_varint(data, offset)
        number, wire_type = key >> 3, key & 0x07
        if number == 0:
            raise WireError("field number 0 is invalid")
        if wire_type == _VARINT:
            value, offset = decode_varint(data, offset)
        elif wire_type == _LEN:
            length, offset = decode_varint(data, offset)
            value, offset = _take(data, offset, length)
        elif wire_type in (_FIXED64, _FIXED32):
            raw, offset = _take(data, offset, 8 if wire_type == _FIXED64 else 4)
            value = int.from_bytes(raw, "little")
        else:
            raise WireError(f"unsupported wire type {wire_type}")
        yield number, wire_type, value


def _varint_field(number: int, value: int) -> bytes:
    return encode_varint(number << 3 | _VARINT) + encode_varint(value & _MASK64)


def _len_field(number: int, payload: bytes) -> bytes:
    return encode_varint(number << 3 | _LEN) + encode_varint(len(payload)) + payload


def build_subscribe_request(commitment: int = PROCESSED) -> bytes:
    """A subscription to non-vote, successful transactions under filter "client"."""
    tx_filter = _varint_field(1, 0) + _varint_field(2, 0)
    map_entry = _len_field(1, b"client") + _len_field(2, tx_filter)
    return _len_field(3, map_entry) + _varint_field(6, int(commitment))


def build_ping_request(ping_id: int = 1) -> bytes:
    """A subscription request that only carries a ping with ``ping_id``."""
    return _len_field(9, _varint_field(1, ping_id) if ping_id else b"")


class UpdateKind(enum.IntEnum):
    """Which member of a subscription update's oneof is set."""

    NONE = 0
    ACCOUNT = 2
    SLOT = 3
    TRANSACTION = 4
    BLOCK = 5
    PING = 6
    BLOCK_META = 7
    ENTRY = 8
    PONG = 9
    TRANSACTION_STATUS = 10


@dataclass(frozen=True)
class SubscribeUpdate:
    """The parts of a subscription update the slot race looks at."""

    kind: UpdateKind
    slot: int | None = None
    filters: tuple[str, ...] = ()


def _check(ok: bool, message: str) -> None:
    if not ok:
        raise WireError(message)


def parse_subscribe_update(data: bytes) -> SubscribeUpdate:
    """Parse a subscription update; transaction updates carry their slot."""
    kind, payload, filters = UpdateKind.NONE, b"", []
    for number, wire_type, value in iter_fields(data):
        if number == 1 or number in UpdateKind.__members__.values():
            _check(wire_type == _LEN, f"field {number} must be length-delimited")
        if number == 1:
            try:
                filters.append(value.decode("utf-8"))
            except UnicodeDecodeError as exc:
                raise WireError("filter name is not valid UTF-8") from exc
        elif number in UpdateKind.__members__.values() and number != UpdateKind.NONE:
            kind, payload = UpdateKind(number), value
    slot = None
    if kind is UpdateKind.TRANSACTION:
        slot = 0
        for number, wire_type, value in iter_fields(payload):
            if number == 2:
                _check(wire_type == _VARINT, "transaction slot must be a varint")
                slot = value
    return SubscribeUpdate(kind=kind, slot=slot, filters=tuple(filters))


@dataclass(frozen=True)
class ShredEntry:
    """A batch of serialized ledger entries for one slot."""

    slot: int
    entries: bytes = b""


def encode_shred_entry(slot: int, entries: bytes) -> bytes:
    """Encode a shredstream entry message."""
    return (_varint_field(1, slot) if slot else b"") + (
        _len_field(2, bytes(entries)) if entries else b""
    )


def parse_shred_entry(data: bytes) -> ShredEntry:
    """Parse a shredstream entry message."""
    slot, entries = 0, b""
    for number, wire_type, value in iter_fields(data):
        if number == 1:
            _check(wire_type == _VARINT, "slot must be a varint")
            slot = value
        elif number == 2:
            _check(wire_type == _LEN, "field 2 must be length-delimited")
            entries = value
    return ShredEntry(slot=slot, entries=entries)