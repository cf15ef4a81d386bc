import struct

import pytest

from slotrace.entries import Entry, EntryDecodeError, decode_entries


def _u64(value):
    return struct.pack("<Q", value)


def _legacy_tx():
    return (
        b"\x01" + b"\x11" * 64          # one signature
        + b"\x01\x00\x01"               # message header
        + b"\x02" + b"\x22" * 64        # two account keys
        + b"\x33" * 32                  # recent blockhash
        + b"\x01" + b"\x01" + b"\x01\x00" + b"\x02\x07\x08"  # one instruction
    )


def _v0_tx():
    return (
        b"\x01" + b"\x44" * 64
        + b"\x80" + b"\x01\x00\x00"
        + b"\x01" + b"\x55" * 32
        + b"\x66" * 32
        + b"\x00"                       # no instructions
        + b"\x01" + b"\x77" * 32 + b"\x01\x00" + b"\x00"  # one lookup
    )


def _entry_bytes(num_hashes, entry_hash, txs):
    return _u64(num_hashes) + entry_hash + _u64(len(txs)) + b"".join(txs)


def test_empty_list():
    assert decode_entries(_u64(0)) == []


def test_entry_without_transactions():
    entry_hash = bytes(range(32))
    data = _u64(1) + _entry_bytes(12, entry_hash, [])
    assert decode_entries(data) == [Entry(num_hashes=12, hash=entry_hash, transactions=())]


def test_legacy_and_v0_transactions_are_split_exactly():
    legacy, v0 = _legacy_tx(), _v0_tx()
    data = _u64(2) + _entry_bytes(1, b"\xaa" * 32, [legacy, v0]) + _entry_bytes(
        2, b"\xbb" * 32, [legacy]
    )
    entries = decode_entries(data)
    assert [entry.transactions for entry in entries] == [(legacy, v0), (legacy,)]
    assert [entry.num_hashes for entry in entries] == [1, 2]


def test_trailing_bytes_are_ignored():
    data = _u64(1) + _entry_bytes(3, b"\x01" * 32, []) + b"extra"
    assert decode_entries(data) == [Entry(3, b"\x01" * 32)]


def test_multi_byte_signature_count():
    tx = b"\x80\x01" + b"\x09" * (128 * 64) + _legacy_tx()[65:]
    entries = decode_entries(_u64(1) + _entry_bytes(0, b"\x00" * 32, [tx]))
    assert entries[0].transactions == (tx,)


def test_truncated_input():
    data = _u64(1) + _entry_bytes(1, b"\x00" * 32, [_legacy_tx()])
    with pytest.raises(EntryDecodeError):
        decode_entries(data[:-1])


def test_missing_length_prefix():
    with pytest.raises(EntryDecodeError):
        decode_entries(b"\x01\x00")


def test_unsupported_message_version():
    tx = bytearray(_v0_tx())
    tx[65] = 0x81
    with pytest.raises(EntryDecodeError):
        decode_entries(_u64(1) + _entry_bytes(0, b"\x00" * 32, [bytes(tx)]))


def test_non_canonical_short_vec():
    tx = b"\x80\x00" + _legacy_tx()[1:]
    with pytest.raises(EntryDecodeError):
        decode_entries(_u64(1) + _entry_bytes(0, b"\x00" * 32, [tx]))


def test_short_vec_longer_than_three_bytes():
    tx = b"\x80\x80\x80\x01"
    with pytest.raises(EntryDecodeError):
        decode_entries(_u64(1) + _entry_bytes(0, b"\x00" * 32, [tx]))


def test_error_is_value_error():
    with pytest.raises(ValueError):
        decode_entries(b"")