"""
conftest.py - Shared pytest fixtures for driver tests

- ledger: a fresh in-memory FakeLedgerClient
- run: feeds request bytes through a Driver and returns the response bytes
"""

import io

import pytest

from vortex_driver.driver import Driver
from vortex_driver.framing import FramedReader, FramedWriter

from tests.fake_ledger import FakeLedgerClient


@pytest.fixture
def ledger():
    return FakeLedgerClient()


@pytest.fixture
def run(ledger):
    """Run the driver over `data` until the input ends; return the response bytes."""

    def _run(data: bytes) -> bytes:
        out = io.BytesIO()
        Driver(ledger, FramedReader(io.BytesIO(data)), FramedWriter(out)).run()
        return out.getvalue()

    return _run
