"""Decoding of bincode-serialized ledger entries from a shredstream."""

from __future__ import annotations

from dataclasses import dataclass


class EntryDecodeError(ValueError):
    """Raised when bytes are not a valid list of ledger entries."""


@dataclass(frozen=True)
class Entry:
    """One ledger entry; transactions are kept in their serialized form."""

    num_hashes: int
    hash: bytes
    transactions: tuple[bytes, ...] = ()


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = bytes(data)
        self.pos = 0

    def take(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            raise EntryDecodeError("unexpected end of input")
        chunk, self.pos = self.data[self.pos : end], end
        return chunk

    def u64(self) -> int:
        return int.from_bytes(self.take(8), "little")

    def short_len(self) -> int:
        """Read a compact-u16 length prefix."""
        value = 0
        for index in range(3):
            byte = self.take(1)[0]
            if byte == 0 and index > 0:
                raise EntryDecodeError("non-canonical compact-u16 length")
            value |= (byte & 0x7F) << (7 * index)
            if not byte & 0x80:
                if value > 0xFFFF:
                    raise EntryDecodeError("compact-u16 length overflows")
                return value
        raise EntryDecodeError("compact-u16 length longer than 3 bytes")

    def skip_vec(self, item_size: int = 1) -> None:
        self.take(self.short_len() * item_size)


def _read_transaction(reader: _Reader) -> bytes:
    start = reader.pos
    reader.skip_vec(64)  # signatures
    prefix = reader.take(1)[0]
    versioned = bool(prefix & 0x80)
    if versioned and prefix & 0x7F:
        raise EntryDecodeError(f"unsupported message version {prefix & 0x7F}")
    reader.take(3 if versioned else 2)  # rest of header
    reader.skip_vec(32)  # account keys
    reader.take(32)  # recent blockhash
    for _ in range(reader.short_len()):  # instructions
        reader.take(1)
        reader.skip_vec()
        reader.skip_vec()
    if versioned:
        for _ in range(reader.short_len()):  # address table lookups
            reader.take(32)
            reader.skip_vec()
            reader.skip_vec()
    return reader.data[start : reader.pos]


def decode_entries(data: bytes) -> list[Entry]:
    """Decode a bincode list of entries; trailing bytes are ignored."""
    reader = _Reader(data)
    entries = []
    for _ in range(reader.u64()):
        num_hashes, entry_hash = reader.u64(), reader.take(32)
        transactions = tuple(_read_transaction(reader) for _ in range(reader.u64()))
        entries.append(Entry(num_hashes, entry_hash, transactions))
    return entries