import io
import struct
import subprocess
import sys

import pandas as pd
import pytest
from click.testing import CliRunner

from vortex_core.errors import StartupError
from vortex_core.protocol import ACCOUNT_LAYOUT, OP_CREATE_ACCOUNTS, OP_LOOKUP_ACCOUNTS
from vortex_driver import cli

from tests.fake_ledger import FakeLedgerClient
from tests.wire import id_request, make_account, parse_accounts, request, u128


def run_cli(args):
    return subprocess.run(
        [sys.executable, "-m", "vortex_driver.cli", *args],
        input=b"",
        capture_output=True,
        check=False,
    )


def test_rejects_non_decimal_cluster_id():
    r = run_cli(["0x10", "3000"])
    assert r.returncode == 2, r.stderr
    assert b"CLUSTER_ID" in r.stderr
    assert r.stdout == b""


def test_rejects_empty_replica_list():
    r = run_cli(["0", ",,"])
    assert r.returncode == 2, r.stderr
    assert b"at least one address" in r.stderr


def test_requires_two_arguments():
    r = run_cli(["0"])
    assert r.returncode == 2


@pytest.mark.parametrize("text, value", [("0", 0), ("42", 42), (str(2**128 - 1), 2**128 - 1)])
def test_parse_cluster_id(text, value):
    assert cli.parse_cluster_id(text) == value


@pytest.mark.parametrize("text", ["", "-1", "+1", " 1", "1e3", str(2**128)])
def test_parse_cluster_id_rejects(text):
    with pytest.raises(StartupError):
        cli.parse_cluster_id(text)


def test_parse_replicas():
    assert cli.parse_replicas("3000") == ["3000"]
    assert cli.parse_replicas("127.0.0.1:3000, 127.0.0.1:3001,") == ["127.0.0.1:3000", "127.0.0.1:3001"]


def test_big_endian_host_rejected():
    cli.check_byte_order("little")
    with pytest.raises(StartupError, match="big"):
        cli.check_byte_order("big")


@pytest.fixture
def fake_client(monkeypatch):
    clients = []

    def factory(cluster_id, replicas):
        c = FakeLedgerClient()
        c.cluster_id = cluster_id
        c.replicas = list(replicas)
        clients.append(c)
        return c

    monkeypatch.setattr(cli, "TigerBeetleClient", factory)
    return clients


def test_main_serves_until_input_ends(fake_client, tmp_path):
    trace = tmp_path / "trace.parquet"
    data = request(OP_CREATE_ACCOUNTS, ACCOUNT_LAYOUT, [make_account(7)])
    data += id_request(OP_LOOKUP_ACCOUNTS, [u128(7)])

    result = CliRunner().invoke(cli.main, ["5", "3000,3001", "--trace", str(trace)], input=data)

    assert result.exit_code == 0, result.output
    (client,) = fake_client
    assert client.cluster_id == 5
    assert client.replicas == ["3000", "3001"]
    assert client.closed
    assert len(pd.read_parquet(trace)) == 2


def test_run_driver_writes_responses(fake_client):
    out = io.BytesIO()
    data = request(OP_CREATE_ACCOUNTS, ACCOUNT_LAYOUT, [make_account(7)])
    data += id_request(OP_LOOKUP_ACCOUNTS, [u128(7)])

    assert cli.run_driver(0, ["3000"], io.BytesIO(data), out) == 2
    response = out.getvalue()
    assert response[:4] == b"\x00\x00\x00\x00"
    (account,) = parse_accounts(response[4:])
    assert account["id"] == u128(7)


def test_main_fatal_error_exits_one_and_closes_client(fake_client, tmp_path):
    trace = tmp_path / "trace.parquet"
    data = id_request(OP_LOOKUP_ACCOUNTS, [u128(1)]) + struct.pack("<BI", 0xFF, 0)

    result = CliRunner().invoke(cli.main, ["0", "3000", "--trace", str(trace)], input=data)

    assert result.exit_code == 1
    assert "FATAL: E_PROTOCOL" in result.output
    assert "invalid operation: 255" in result.output
    assert fake_client[0].closed
    # requests completed before the failure are still traced
    assert len(pd.read_parquet(trace)) == 1


def test_unexpected_exception_is_named_on_fatal_line(monkeypatch):
    def factory(cluster_id, replicas):
        raise MemoryError()

    monkeypatch.setattr(cli, "TigerBeetleClient", factory)
    result = CliRunner().invoke(cli.main, ["0", "3000"], input=b"")

    assert result.exit_code == 1
    assert "FATAL: MemoryError" in result.output


def test_client_runtime_error_exits_one_and_closes_client(monkeypatch):
    class FailingClient(FakeLedgerClient):
        def lookup_accounts(self, ids):
            raise RuntimeError("replica went away")

    clients = []

    def factory(cluster_id, replicas):
        clients.append(FailingClient())
        return clients[-1]

    monkeypatch.setattr(cli, "TigerBeetleClient", factory)
    result = CliRunner().invoke(cli.main, ["0", "3000"], input=id_request(OP_LOOKUP_ACCOUNTS, [u128(1)]))

    assert result.exit_code == 1
    assert "FATAL: RuntimeError: replica went away" in result.output
    assert clients[0].closed


def test_run_driver_without_trace_path_passes_no_trace(fake_client, monkeypatch):
    seen = []
    real_driver = cli.Driver

    def spy(*args, **kwargs):
        seen.append(kwargs.get("trace"))
        return real_driver(*args, **kwargs)

    monkeypatch.setattr(cli, "Driver", spy)
    cli.run_driver(0, ["3000"], io.BytesIO(id_request(OP_LOOKUP_ACCOUNTS, [u128(1)])), io.BytesIO())
    assert seen == [None]
