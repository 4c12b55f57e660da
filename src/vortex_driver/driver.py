"""Request loop: read one operation, run it against the ledger client, write the results."""
from __future__ import annotations

import time
from typing import Callable

import click

from vortex_core import operations
from vortex_core.errors import ClientError, EndOfStream, ProtocolError
from vortex_core.operations import Operation
from vortex_core.protocol import (
    ACCOUNT_INPUT_IGNORED,
    ACCOUNT_LAYOUT,
    CREATE_RESULT_LAYOUT,
    ID_LAYOUT,
    REQ_HEADER_LEN,
    RESP_HEADER_LEN,
    TRANSFER_INPUT_IGNORED,
    TRANSFER_LAYOUT,
)

from . import records
from .client import LedgerClient
from .framing import FramedReader, FramedWriter
from .trace import SessionTrace


class Driver:
    def __init__(
        self,
        client: LedgerClient,
        reader: FramedReader,
        writer: FramedWriter,
        trace: SessionTrace | None = None,
        verbose: bool = False,
    ):
        self.client = client
        self.reader = reader
        self.writer = writer
        self.trace = trace
        self.verbose = verbose

        self._handlers: dict[int, Callable[[Operation, int], int]] = {
            operations.CREATE_ACCOUNTS.code: self.create_accounts,
            operations.CREATE_TRANSFERS.code: self.create_transfers,
            operations.LOOKUP_ACCOUNTS.code: self.lookup_accounts,
            operations.LOOKUP_TRANSFERS.code: self.lookup_transfers,
        }

    def run(self) -> int:
        """Serve requests until the input ends cleanly. Returns the number of requests served."""
        served = 0
        while self.next():
            served += 1
        return served

    def next(self) -> bool:
        """Read the next operation, run it, write the results back.

        Returns False when the input is closed at a request boundary.
        """
        try:
            self.reader.begin(REQ_HEADER_LEN)  # operation + count
        except EndOfStream as e:
            if e.received == 0:
                return False
            raise
        op = operations.from_code(self.reader.u8())
        count = self.reader.u32()

        handler = self._handlers.get(op.code)
        if handler is None:
            raise ProtocolError(f"unsupported operation: {op.name}")

        started = time.perf_counter()
        written = handler(op, count)
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        if self.trace is not None:
            self.trace.record(op.name, count, written, elapsed_ms)
        if self.verbose:
            click.echo(f"op={op.name} count={count} results={written} ms={elapsed_ms:.3f}", err=True)
        return True

    # --- create family: sparse (index, result) outcomes ---

    def create_accounts(self, op: Operation, count: int) -> int:
        batch = self._read_records(op, count, ACCOUNT_LAYOUT, ACCOUNT_INPUT_IGNORED)
        return self._write_outcomes(op, count, self.client.create_accounts(batch))

    def create_transfers(self, op: Operation, count: int) -> int:
        batch = self._read_records(op, count, TRANSFER_LAYOUT, TRANSFER_INPUT_IGNORED)
        return self._write_outcomes(op, count, self.client.create_transfers(batch))

    # --- lookup family: one full record per id found ---

    def lookup_accounts(self, op: Operation, count: int) -> int:
        ids = self._read_ids(op, count)
        found = self.client.lookup_accounts(ids)
        return self._write_found(op, ids, found, ACCOUNT_LAYOUT, zeroed=("reserved",))

    def lookup_transfers(self, op: Operation, count: int) -> int:
        ids = self._read_ids(op, count)
        found = self.client.lookup_transfers(ids)
        return self._write_found(op, ids, found, TRANSFER_LAYOUT)

    # --- helpers ---

    def _read_records(self, op: Operation, count: int, layout, ignored) -> list[dict]:
        self.reader.begin(op.event_size() * count)
        return [records.decode(self.reader, layout, ignored) for _ in range(count)]

    def _read_ids(self, op: Operation, count: int) -> list[bytes]:
        self.reader.begin(op.event_size() * count)
        return [records.decode(self.reader, ID_LAYOUT)["id"] for _ in range(count)]

    def _write_outcomes(self, op: Operation, count: int, results: list[tuple[int, int]]) -> int:
        for index, _ in results:
            if not 0 <= index < count:
                raise ClientError(f"{op.name}: result index {index} outside batch of {count}")

        self.writer.begin(RESP_HEADER_LEN + op.result_size() * len(results))
        self.writer.u32(len(results))
        for index, result in results:
            records.encode(self.writer, CREATE_RESULT_LAYOUT, {"index": index, "result": result})
        self.writer.flush()
        return len(results)

    def _write_found(self, op: Operation, ids: list[bytes], found: list[dict], layout, zeroed=()) -> int:
        # Results are written in client order; the wire carries no index to re-match them.
        if len(found) > len(ids):
            raise ClientError(f"{op.name}: {len(found)} records returned for {len(ids)} ids")
        requested = set(ids)
        for record in found:
            if record.get("id") not in requested:
                raise ClientError(f"{op.name}: returned id {record.get('id')!r} was not requested")

        self.writer.begin(RESP_HEADER_LEN + op.result_size() * len(found))
        self.writer.u32(len(found))
        for record in found:
            records.encode(self.writer, layout, record, zeroed)
        self.writer.flush()
        return len(found)
