"""Operation registry: op code -> record sizes.

Pure lookup, no state. Unsupported operations are known by name so errors can say which one.
"""
from __future__ import annotations

from dataclasses import dataclass

from vortex_core.errors import ProtocolError
from vortex_core.protocol import (
    ACCOUNT_REC_LEN,
    CREATE_RESULT_REC_LEN,
    ID_REC_LEN,
    OP_CREATE_ACCOUNTS,
    OP_CREATE_TRANSFERS,
    OP_GET_ACCOUNT_BALANCES,
    OP_GET_ACCOUNT_TRANSFERS,
    OP_LOOKUP_ACCOUNTS,
    OP_LOOKUP_TRANSFERS,
    OP_QUERY_ACCOUNTS,
    OP_QUERY_TRANSFERS,
    TRANSFER_REC_LEN,
)


@dataclass(frozen=True)
class Operation:
    code: int
    name: str
    supported: bool
    _event_size: int = 0
    _result_size: int = 0

    def event_size(self) -> int:
        """Byte size of one input record."""
        if not self.supported:
            raise ProtocolError(f"unsupported operation: {self.name}")
        return self._event_size

    def result_size(self) -> int:
        """Byte size of one output record."""
        if not self.supported:
            raise ProtocolError(f"unsupported operation: {self.name}")
        return self._result_size


CREATE_ACCOUNTS = Operation(OP_CREATE_ACCOUNTS, "create_accounts", True, ACCOUNT_REC_LEN, CREATE_RESULT_REC_LEN)
CREATE_TRANSFERS = Operation(OP_CREATE_TRANSFERS, "create_transfers", True, TRANSFER_REC_LEN, CREATE_RESULT_REC_LEN)
LOOKUP_ACCOUNTS = Operation(OP_LOOKUP_ACCOUNTS, "lookup_accounts", True, ID_REC_LEN, ACCOUNT_REC_LEN)
LOOKUP_TRANSFERS = Operation(OP_LOOKUP_TRANSFERS, "lookup_transfers", True, ID_REC_LEN, TRANSFER_REC_LEN)

# The workload generator does not emit these yet.
GET_ACCOUNT_TRANSFERS = Operation(OP_GET_ACCOUNT_TRANSFERS, "get_account_transfers", False)
GET_ACCOUNT_BALANCES = Operation(OP_GET_ACCOUNT_BALANCES, "get_account_balances", False)
QUERY_ACCOUNTS = Operation(OP_QUERY_ACCOUNTS, "query_accounts", False)
QUERY_TRANSFERS = Operation(OP_QUERY_TRANSFERS, "query_transfers", False)

BY_CODE: dict[int, Operation] = {
    op.code: op
    for op in (
        CREATE_ACCOUNTS,
        CREATE_TRANSFERS,
        LOOKUP_ACCOUNTS,
        LOOKUP_TRANSFERS,
        GET_ACCOUNT_TRANSFERS,
        GET_ACCOUNT_BALANCES,
        QUERY_ACCOUNTS,
        QUERY_TRANSFERS,
    )
}


def from_code(code: int) -> Operation:
    op = BY_CODE.get(code)
    if op is None:
        raise ProtocolError(f"invalid operation: {code}")
    return op
