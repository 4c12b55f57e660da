"""Vortex Core - Shared protocol layouts, operation registry and errors."""
from .errors import (
    ClientError,
    DriverError,
    EndOfStream,
    FramingError,
    ProtocolError,
    StartupError,
)
from .operations import Operation, from_code

__all__ = [
    "ClientError",
    "DriverError",
    "EndOfStream",
    "FramingError",
    "ProtocolError",
    "StartupError",
    "Operation",
    "from_code",
]
