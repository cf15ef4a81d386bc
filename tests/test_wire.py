import pytest

from slotrace.wire import (
    CONFIRMED,
    PROCESSED,
    ShredEntry,
    SubscribeUpdate,
    UpdateKind,
    WireError,
    build_ping_request,
    build_subscribe_request,
    decode_varint,
    encode_shred_entry,
    encode_varint,
    iter_fields,
    parse_shred_entry,
    parse_subscribe_update,
)


def _len_field(number, payload):
    return encode_varint(number << 3 | 2) + encode_varint(len(payload)) + payload


def _varint_field(number, value):
    return encode_varint(number << 3) + encode_varint(value)


def test_varint_known_encoding():
    assert encode_varint(300) == b"\xac\x02"


@pytest.mark.parametrize("value", [0, 1, 127, 128, 300, 2**32, 2**63, 2**64 - 1])
def test_varint_round_trip(value):
    encoded = encode_varint(value)
    assert decode_varint(encoded) == (value, len(encoded))


def test_decode_varint_at_offset():
    data = b"xyz" + encode_varint(4242) + b"tail"
    value, end = decode_varint(data, 3)
    assert value == 4242
    assert data[end:] == b"tail"


def test_encode_varint_rejects_negative():
    with pytest.raises(ValueError):
        encode_varint(-1)


def test_decode_varint_truncated():
    with pytest.raises(WireError):
        decode_varint(b"\x80\x80")


def test_decode_varint_too_long():
    with pytest.raises(WireError):
        decode_varint(b"\xff" * 10 + b"\x01")


def test_subscribe_request_bytes():
    assert build_subscribe_request(PROCESSED) == (
        b"\x1a\x0e\x0a\x06client\x12\x04\x08\x00\x10\x00\x30\x00"
    )


def test_subscribe_request_commitment_is_last_value():
    data = build_subscribe_request(CONFIRMED)
    *_, (number, wire_type, value) = iter_fields(data)
    assert value == CONFIRMED
    assert data.startswith(build_subscribe_request(PROCESSED)[:-1])


def test_ping_request_bytes():
    assert build_ping_request(1) == b"\x4a\x02\x08\x01"


def test_ping_request_zero_id_has_empty_body():
    [(_, _, payload)] = list(iter_fields(build_ping_request(0)))
    assert payload == b""


def test_ping_request_negative_id_round_trips_as_64_bit():
    [(_, _, payload)] = list(iter_fields(build_ping_request(-5)))
    [(_, _, value)] = list(iter_fields(payload))
    assert value == (-5) & (2**64 - 1)


def test_iter_fields_mixed_types():
    data = (
        _varint_field(1, 77)
        + encode_varint(2 << 3 | 1) + (9).to_bytes(8, "little")
        + _len_field(3, b"abc")
        + encode_varint(4 << 3 | 5) + (11).to_bytes(4, "little")
    )
    values = [value for _, _, value in iter_fields(data)]
    assert values == [77, 9, b"abc", 11]


def test_iter_fields_rejects_group_wire_type():
    with pytest.raises(WireError):
        list(iter_fields(encode_varint(1 << 3 | 3)))


def test_iter_fields_rejects_truncated_length():
    with pytest.raises(WireError):
        list(iter_fields(encode_varint(1 << 3 | 2) + encode_varint(5) + b"ab"))


def test_iter_fields_rejects_field_zero():
    with pytest.raises(WireError):
        list(iter_fields(b"\x00\x00"))


def test_parse_transaction_update():
    tx = _len_field(1, b"opaque") + _varint_field(2, 312_000_123)
    data = _len_field(1, b"client") + _len_field(UpdateKind.TRANSACTION, tx)
    update = parse_subscribe_update(data)
    assert update == SubscribeUpdate(
        kind=UpdateKind.TRANSACTION, slot=312_000_123, filters=("client",)
    )


def test_parse_transaction_update_without_slot_defaults_to_zero():
    update = parse_subscribe_update(_len_field(UpdateKind.TRANSACTION, b""))
    assert update.slot == 0


@pytest.mark.parametrize("kind", [UpdateKind.PING, UpdateKind.PONG, UpdateKind.SLOT])
def test_parse_other_updates(kind):
    update = parse_subscribe_update(_len_field(kind, b""))
    assert update.kind is kind
    assert update.slot is None


def test_parse_empty_update():
    assert parse_subscribe_update(b"").kind is UpdateKind.NONE


def test_parse_update_last_oneof_wins():
    data = _len_field(UpdateKind.PING, b"") + _len_field(UpdateKind.PONG, b"")
    assert parse_subscribe_update(data).kind is UpdateKind.PONG


def test_parse_update_skips_unknown_fields():
    data = _varint_field(11, 5) + _len_field(UpdateKind.PING, b"")
    assert parse_subscribe_update(data).kind is UpdateKind.PING


def test_parse_update_wrong_wire_type():
    with pytest.raises(WireError):
        parse_subscribe_update(_varint_field(UpdateKind.TRANSACTION, 1))


def test_shred_entry_round_trip():
    entry = ShredEntry(slot=987_654, entries=b"\x00\x01\x02")
    assert parse_shred_entry(encode_shred_entry(entry.slot, entry.entries)) == entry


def test_shred_entry_defaults_are_omitted():
    assert encode_shred_entry(0, b"") == b""
    assert parse_shred_entry(b"") == ShredEntry(slot=0, entries=b"")


def test_shred_entry_rejects_bad_slot_type():
    with pytest.raises(WireError):
        parse_shred_entry(_len_field(1, b"x"))