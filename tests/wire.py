"""
wire.py - Request builders and response parsers for driver tests

Builds request streams and parses response streams with the same layout
tables the driver uses, so tests speak the wire format directly.
"""

import io
import struct

from vortex_core.protocol import (
    ACCOUNT_LAYOUT,
    CREATE_RESULT_REC_LEN,
    TRANSFER_LAYOUT,
)
from vortex_driver import records
from vortex_driver.framing import FramedReader, FramedWriter


def u128(value: int) -> bytes:
    return value.to_bytes(16, "little")


def make_account(account_id, ledger=1, code=1, flags=0, **fields) -> dict:
    rec = {
        "id": account_id if isinstance(account_id, bytes) else u128(account_id),
        "debits_pending": bytes(16),
        "debits_posted": bytes(16),
        "credits_pending": bytes(16),
        "credits_posted": bytes(16),
        "user_data_128": bytes(16),
        "user_data_64": 0,
        "user_data_32": 0,
        "reserved": 0,
        "ledger": ledger,
        "code": code,
        "flags": flags,
        "timestamp": 0,
    }
    rec.update(fields)
    return rec


def make_transfer(transfer_id, debit, credit, amount, ledger=1, code=1, flags=0, **fields) -> dict:
    rec = {
        "id": u128(transfer_id),
        "debit_account_id": u128(debit),
        "credit_account_id": u128(credit),
        "amount": u128(amount),
        "pending_id": bytes(16),
        "user_data_128": bytes(16),
        "user_data_64": 0,
        "user_data_32": 0,
        "timeout": 0,
        "ledger": ledger,
        "code": code,
        "flags": flags,
        "timestamp": 0,
    }
    rec.update(fields)
    return rec


def request(op_code: int, layout, batch) -> bytes:
    """Encode one request: [u8 op][u32 count][count x record]."""
    out = io.BytesIO()
    writer = FramedWriter(out)
    size = struct.calcsize("<" + "".join(code for _, code in layout))
    writer.begin(5 + size * len(batch))
    writer.u8(op_code)
    writer.u32(len(batch))
    for rec in batch:
        records.encode(writer, layout, rec)
    writer.flush()
    return out.getvalue()


def id_request(op_code: int, ids) -> bytes:
    return struct.pack("<BI", op_code, len(ids)) + b"".join(ids)


def parse_outcomes(data: bytes) -> list:
    (count,) = struct.unpack_from("<I", data, 0)
    assert len(data) == 4 + count * CREATE_RESULT_REC_LEN
    return [struct.unpack_from("<II", data, 4 + i * 8) for i in range(count)]


def parse_records(data: bytes, layout) -> list:
    reader = FramedReader(io.BytesIO(data))
    reader.begin(4)
    count = reader.u32()
    reader.begin(len(data) - 4)
    found = [records.decode(reader, layout) for _ in range(count)]
    assert reader.remaining == 0
    return found


def parse_accounts(data: bytes) -> list:
    return parse_records(data, ACCOUNT_LAYOUT)


def parse_transfers(data: bytes) -> list:
    return parse_records(data, TRANSFER_LAYOUT)


