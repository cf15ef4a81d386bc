# slotrace

slotrace measures which of two live Solana data feeds tells you about a new
slot first:

- a Geyser gRPC subscription to non-vote, successful transactions at
  `processed` commitment, and
- a shredstream proxy streaming ledger entries.

Each feed reports a slot the moment its first usable message for that slot
arrives, stamped with the current Unix time in milliseconds. When both feeds
have reported the same slot, the earlier one gets a win and the later one's
delay is added to its total.

## Installing

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Configuration

Endpoints come from the environment. Before reading them, each command loads a
`.env` file, searching from the working directory upwards; variables already
set in the environment are kept.

```
GRPC_URL=https://grpc.example.com:443
SHRED_URL=http://localhost:9999
```

Endpoint URLs must use `http` (plain connection) or `https` (TLS with the
system's default root certificates). Without a port, 80 or 443 is used.

If a variable a command needs is not set, the command prints
`<NAME> must be set` to standard error and exits with status 1.

## Commands

### `slotrace`

Runs both feeds side by side, by default for 30 seconds, then prints a summary:

```
[12:00:30.004] INFO: ===== Endpoint Performance Comparison =====
[12:00:30.004] INFO: GRPC   : First received  41.18%, avg delay when behind  12.40ms, overall avg delay   7.29ms
[12:00:30.004] INFO: SHRED  : First received  58.82%, avg delay when behind   9.75ms, overall avg delay   4.01ms
```

- *First received*: share of shared slots this feed reported first.
- *avg delay when behind*: mean lag over the slots this feed lost (0.00 if it
  never lost one).
- *overall avg delay*: total lag divided by all shared slots.

If no slot was seen by both feeds, the percentages and overall averages are
shown as `NaN`.

Options:

- `--duration SECONDS`: how long to run the comparison (default 30).

The time limit is checked each time a slot arrives, so the summary appears
with the first slot after the limit. The comparison also ends early when both
feeds have closed; a feed that fails is logged and only its side stops.

### `slotrace-grpc`

Follows only the gRPC feed and logs `Slot: <slot>, Timestamp: <ms>` each time
the slot of incoming transactions changes. Pings from the server are answered
so the stream stays open. Stream errors are logged and end the command. The
log level is taken from `LOG_LEVEL` (default `INFO`).

### `slotrace-shred`

Follows only the shredstream proxy and prints `Slot: <slot>, Timestamp: <ms>`
the first time a slot's entries decode. Batches whose entries cannot be
decoded are reported as `Deserialization failed with err: ...` and skipped.

## Using it as a library

- `slotrace.stats.SlotRace` holds the comparison logic and needs no network.
  Feed it observations with `observe(source, slot, timestamp)`, where `source`
  is `Source.GRPC` or `Source.SHRED`; it returns `True` for the observation
  that completes the first shared slot. Its `stats` attribute is a `Stats`
  whose `summary_lines()` gives the report text.
- `slotrace.cli.compare(grpc_source, shred_source, duration, out)` runs the
  same race over any two async iterables of `(slot, timestamp)` pairs, which
  makes it easy to replay recorded data, and returns the final `Stats`.
- `slotrace.clients.grpc_slots(url)` and
  `slotrace.clients.shred_slots(url, on_decode_error)` are the live feeds as
  async generators of `(slot, timestamp)`.
- `slotrace.wire` encodes and parses the few protobuf messages involved
  (subscription and ping requests, subscription updates, shredstream entries)
  without generated code.
- `slotrace.entries.decode_entries(data)` decodes a bincode-serialized list of
  ledger entries, keeping each transaction as raw bytes; it raises
  `EntryDecodeError` on malformed input.

## What it does not do

- It sends no credentials: there is no way to pass an access token or other
  request headers to either endpoint.
- It does not reconnect. When a feed's stream ends or fails, that feed stops.
- It does not interpret transactions. Entries are only checked to be
  well-formed; signatures, accounts and instructions are not decoded further.
- It keeps no history: results are printed once at the end and not stored.