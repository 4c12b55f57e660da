import random
import sys
from pathlib import Path

from vortex_core import operations
from vortex_core import u128
from vortex_core.protocol import ACCOUNT_LAYOUT, ID_LAYOUT, REQ_HEADER_LEN, TRANSFER_LAYOUT
from vortex_driver import records
from vortex_driver.framing import FramedWriter


def write_request(writer: FramedWriter, op, layout, batch: list[dict]) -> None:
    writer.begin(REQ_HEADER_LEN + op.event_size() * len(batch))
    writer.u8(op.code)
    writer.u32(len(batch))
    for rec in batch:
        records.encode(writer, layout, rec)
    writer.flush()


def account(account_id: int, ledger: int = 1) -> dict:
    zero = bytes(16)
    return {
        "id": u128.from_int(account_id),
        "debits_pending": zero,
        "debits_posted": zero,
        "credits_pending": zero,
        "credits_posted": zero,
        "user_data_128": u128.from_int(random.getrandbits(128)),
        "user_data_64": random.getrandbits(64),
        "user_data_32": random.getrandbits(32),
        "reserved": 0,
        "ledger": ledger,
        "code": 1,
        "flags": 0,
        "timestamp": 0,
    }


def transfer(transfer_id: int, debit: int, credit: int, amount: int, ledger: int = 1) -> dict:
    return {
        "id": u128.from_int(transfer_id),
        "debit_account_id": u128.from_int(debit),
        "credit_account_id": u128.from_int(credit),
        "amount": u128.from_int(amount),
        "pending_id": bytes(16),
        "user_data_128": bytes(16),
        "user_data_64": 0,
        "user_data_32": 0,
        "timeout": 0,
        "ledger": ledger,
        "code": 1,
        "flags": 0,
        "timestamp": 0,
    }


def generate_workload(out_path: str, accounts: int, transfers: int, seed: int | None = None) -> Path:
    random.seed(seed)
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)

    account_ids = [random.getrandbits(127) + 1 for _ in range(accounts)]
    transfer_ids = [random.getrandbits(127) + 1 for _ in range(transfers)]

    with open(out, "wb") as f:
        writer = FramedWriter(f)

        # 1. Accounts
        write_request(writer, operations.CREATE_ACCOUNTS, ACCOUNT_LAYOUT, [account(i) for i in account_ids])

        # 2. Transfers between random pairs; some amounts are zero so the client rejects them.
        batch = []
        for tid in transfer_ids:
            debit, credit = random.sample(account_ids, 2)
            amount = random.choice([0, random.randint(1, 1000)])
            batch.append(transfer(tid, debit, credit, amount))
        write_request(writer, operations.CREATE_TRANSFERS, TRANSFER_LAYOUT, batch)

        # 3. Lookups, including one id that was never created.
        missing = u128.from_int(0xFFFF_FFFF)
        ids = [{"id": u128.from_int(i)} for i in account_ids] + [{"id": missing}]
        write_request(writer, operations.LOOKUP_ACCOUNTS, ID_LAYOUT, ids)
        ids = [{"id": u128.from_int(i)} for i in transfer_ids] + [{"id": missing}]
        write_request(writer, operations.LOOKUP_TRANSFERS, ID_LAYOUT, ids)

    print(f"GENERATED: {out}")
    return out


if __name__ == "__main__":
    # Usage:
    #   python tools/gen_workload.py OUT_FILE [--accounts N] [--transfers N] [--seed N]
    #   vortex-driver 0 3000 < OUT_FILE > results.bin

    args = [a for a in sys.argv[1:] if a]

    def pop_int(arg_list: list[str], flag: str, default: int | None) -> tuple[int | None, list[str]]:
        """Remove an integer option from an argv-style list."""
        if flag not in arg_list:
            return default, arg_list
        i = arg_list.index(flag)
        if i + 1 >= len(arg_list):
            raise SystemExit(f"{flag} requires a value")
        return int(arg_list[i + 1]), arg_list[:i] + arg_list[i + 2:]

    n_accounts, args = pop_int(args, "--accounts", 8)
    n_transfers, args = pop_int(args, "--transfers", 8)
    seed, args = pop_int(args, "--seed", None)

    if n_accounts < 2:
        raise SystemExit("--accounts must be at least 2")

    out = args[0] if args else "workload.bin"
    generate_workload(out, n_accounts, n_transfers, seed)
