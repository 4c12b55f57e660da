"""Vortex Driver - binary protocol codec and dispatcher for ledger client conformance runs."""
from .driver import Driver
from .framing import FramedReader, FramedWriter

__all__ = ["Driver", "FramedReader", "FramedWriter"]
