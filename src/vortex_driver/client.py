"""Ledger client boundary.

The dispatcher talks to anything shaped like `LedgerClient`. Record dicts are
keyed by layout field name and carry 128-bit fields as 16-byte blobs;
`TigerBeetleClient` converts those to and from the ints the TigerBeetle
Python client expects.
"""
from __future__ import annotations

from typing import Any, Protocol, Sequence

import tigerbeetle as tb

from vortex_core import u128
from vortex_core.errors import ClientError

Record = dict[str, Any]

ACCOUNT_U128_FIELDS = ("id", "debits_pending", "debits_posted", "credits_pending", "credits_posted", "user_data_128")
ACCOUNT_SCALAR_FIELDS = ("user_data_64", "user_data_32", "ledger", "code", "flags", "timestamp")

TRANSFER_U128_FIELDS = ("id", "debit_account_id", "credit_account_id", "amount", "pending_id", "user_data_128")
TRANSFER_SCALAR_FIELDS = ("user_data_64", "user_data_32", "timeout", "ledger", "code", "flags", "timestamp")


class LedgerClient(Protocol):
    def create_accounts(self, accounts: Sequence[Record]) -> list[tuple[int, int]]:
        """Submit accounts; return (index, result) for every account that was not created."""
        ...

    def create_transfers(self, transfers: Sequence[Record]) -> list[tuple[int, int]]:
        """Submit transfers; return (index, result) for every transfer that was not created."""
        ...

    def lookup_accounts(self, ids: Sequence[bytes]) -> list[Record]:
        """Return the accounts that exist, omitting missing ids."""
        ...

    def lookup_transfers(self, ids: Sequence[bytes]) -> list[Record]:
        """Return the transfers that exist, omitting missing ids."""
        ...


def _to_record(obj: Any, u128_fields: tuple[str, ...], scalar_fields: tuple[str, ...]) -> Record:
    record: Record = {name: u128.from_int(int(getattr(obj, name))) for name in u128_fields}
    for name in scalar_fields:
        record[name] = int(getattr(obj, name))
    return record


def account_to_record(account: Any) -> Record:
    return _to_record(account, ACCOUNT_U128_FIELDS, ACCOUNT_SCALAR_FIELDS)


def transfer_to_record(transfer: Any) -> Record:
    return _to_record(transfer, TRANSFER_U128_FIELDS, TRANSFER_SCALAR_FIELDS)


def record_to_account(record: Record) -> tb.Account:
    # Balances and timestamp are left to the server.
    return tb.Account(
        id=u128.to_int(record["id"]),
        debits_pending=0,
        debits_posted=0,
        credits_pending=0,
        credits_posted=0,
        user_data_128=u128.to_int(record["user_data_128"]),
        user_data_64=record["user_data_64"],
        user_data_32=record["user_data_32"],
        ledger=record["ledger"],
        code=record["code"],
        flags=record["flags"],
        timestamp=0,
    )


def record_to_transfer(record: Record) -> tb.Transfer:
    return tb.Transfer(
        id=u128.to_int(record["id"]),
        debit_account_id=u128.to_int(record["debit_account_id"]),
        credit_account_id=u128.to_int(record["credit_account_id"]),
        amount=u128.to_int(record["amount"]),
        pending_id=u128.to_int(record["pending_id"]),
        user_data_128=u128.to_int(record["user_data_128"]),
        user_data_64=record["user_data_64"],
        user_data_32=record["user_data_32"],
        timeout=record["timeout"],
        ledger=record["ledger"],
        code=record["code"],
        flags=record["flags"],
        timestamp=record["timestamp"],
    )


class TigerBeetleClient:
    """`LedgerClient` over `tigerbeetle.ClientSync`. Close it to let the cluster see the disconnect."""

    def __init__(self, cluster_id: int, replica_addresses: Sequence[str]):
        self.cluster_id = cluster_id
        self.replica_addresses = list(replica_addresses)
        self._client = tb.ClientSync(
            cluster_id=cluster_id,
            replica_addresses=",".join(self.replica_addresses),
        )

    def __enter__(self) -> "TigerBeetleClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _call(self, name: str, batch: list) -> list:
        if self._client is None:
            raise ClientError(f"{name}: client is closed")
        try:
            return getattr(self._client, name)(batch)
        except Exception as e:
            raise ClientError(f"{name}: {e}") from e

    def create_accounts(self, accounts: Sequence[Record]) -> list[tuple[int, int]]:
        results = self._call("create_accounts", [record_to_account(r) for r in accounts])
        return _failures("create_accounts", results, len(accounts), tb.CreateAccountStatus.CREATED)

    def create_transfers(self, transfers: Sequence[Record]) -> list[tuple[int, int]]:
        results = self._call("create_transfers", [record_to_transfer(r) for r in transfers])
        return _failures("create_transfers", results, len(transfers), tb.CreateTransferStatus.CREATED)

    def lookup_accounts(self, ids: Sequence[bytes]) -> list[Record]:
        found = self._call("lookup_accounts", [u128.to_int(i) for i in ids])
        return [account_to_record(a) for a in found]

    def lookup_transfers(self, ids: Sequence[bytes]) -> list[Record]:
        found = self._call("lookup_transfers", [u128.to_int(i) for i in ids])
        return [transfer_to_record(t) for t in found]


def _failures(name: str, results: Sequence[Any], count: int, created: int) -> list[tuple[int, int]]:
    """Reduce one status per event to the sparse (index, status) pairs for events not created."""
    if len(results) != count:
        raise ClientError(f"{name}: {len(results)} results for {count} events")
    try:
        return [(index, int(r.status)) for index, r in enumerate(results) if r.status != created]
    except AttributeError as e:
        raise ClientError(f"{name}: unexpected result shape: {e}") from e
