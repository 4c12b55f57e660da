"""Vortex driver protocol constants.

Single source of truth for operation codes and record layouts.
Keep this file stable. The workload generator and every driver must remain synchronized.
"""
from __future__ import annotations

import struct

# Operation codes, from `Operation` in the ledger state machine.
OP_CREATE_ACCOUNTS = 129
OP_CREATE_TRANSFERS = 130
OP_LOOKUP_ACCOUNTS = 131
OP_LOOKUP_TRANSFERS = 132
OP_GET_ACCOUNT_TRANSFERS = 133
OP_GET_ACCOUNT_BALANCES = 134
OP_QUERY_ACCOUNTS = 135
OP_QUERY_TRANSFERS = 136

# Request header: [Operation(1) | Count(4)] = 5 bytes
REQ_HEADER_FMT = "<BI"
REQ_HEADER_LEN = 5

# Response header: [Count(4)] = 4 bytes
RESP_HEADER_FMT = "<I"
RESP_HEADER_LEN = 4

U128_LEN = 16

# Layouts are (field, struct code) pairs in wire order.
# "16s" fields are 128-bit values carried as opaque little-endian blobs.
ACCOUNT_LAYOUT: tuple[tuple[str, str], ...] = (
    ("id", "16s"),
    ("debits_pending", "16s"),
    ("debits_posted", "16s"),
    ("credits_pending", "16s"),
    ("credits_posted", "16s"),
    ("user_data_128", "16s"),
    ("user_data_64", "Q"),
    ("user_data_32", "I"),
    ("reserved", "I"),
    ("ledger", "I"),
    ("code", "H"),
    ("flags", "H"),
    ("timestamp", "Q"),
)

# Client-owned on create: balances are computed and the timestamp is assigned by the server.
ACCOUNT_INPUT_IGNORED = frozenset(
    {"debits_pending", "debits_posted", "credits_pending", "credits_posted", "reserved", "timestamp"}
)

# `amount` is two u64 words, low word first, which is the same 16 bytes as a little-endian u128.
TRANSFER_LAYOUT: tuple[tuple[str, str], ...] = (
    ("id", "16s"),
    ("debit_account_id", "16s"),
    ("credit_account_id", "16s"),
    ("amount", "16s"),
    ("pending_id", "16s"),
    ("user_data_128", "16s"),
    ("user_data_64", "Q"),
    ("user_data_32", "I"),
    ("timeout", "I"),
    ("ledger", "I"),
    ("code", "H"),
    ("flags", "H"),
    ("timestamp", "Q"),
)

TRANSFER_INPUT_IGNORED: frozenset[str] = frozenset()

ID_LAYOUT: tuple[tuple[str, str], ...] = (("id", "16s"),)

CREATE_RESULT_LAYOUT: tuple[tuple[str, str], ...] = (
    ("index", "I"),
    ("result", "I"),
)

ACCOUNT_REC_LEN = 128
TRANSFER_REC_LEN = 128
ID_REC_LEN = 16
CREATE_RESULT_REC_LEN = 8


def layout_format(layout: tuple[tuple[str, str], ...]) -> str:
    """Little-endian struct format for a whole record, no padding."""
    return "<" + "".join(code for _, code in layout)


def layout_size(layout: tuple[tuple[str, str], ...]) -> int:
    return struct.calcsize(layout_format(layout))


# Checked once at import; a layout edit that changes a record size must fail loudly.
for _layout, _expected in (
    (ACCOUNT_LAYOUT, ACCOUNT_REC_LEN),
    (TRANSFER_LAYOUT, TRANSFER_REC_LEN),
    (ID_LAYOUT, ID_REC_LEN),
    (CREATE_RESULT_LAYOUT, CREATE_RESULT_REC_LEN),
):
    if layout_size(_layout) != _expected:
        raise AssertionError(f"record layout is {layout_size(_layout)} bytes, expected {_expected}")

if struct.calcsize(REQ_HEADER_FMT) != REQ_HEADER_LEN:
    raise AssertionError("request header size mismatch")
