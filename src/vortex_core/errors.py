ERRORS = {
  "E_STARTUP": "Driver cannot start",
  "E_FRAMING": "Read or write buffer discipline violated",
  "E_PROTOCOL": "Operation not accepted by the driver protocol",
  "E_EOF": "Input closed before the declared bytes arrived",
  "E_CLIENT": "Ledger client batch failed",
}


class DriverError(Exception):
    """Base for every fatal driver condition. None of these are recoverable."""

    code = "E_DRIVER"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"{self.code} {ERRORS.get(self.code, '')}: {detail}")


class StartupError(DriverError):
    code = "E_STARTUP"


class FramingError(DriverError):
    code = "E_FRAMING"


class ProtocolError(DriverError):
    code = "E_PROTOCOL"


class EndOfStream(DriverError):
    code = "E_EOF"

    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(f"expected {expected} bytes, received {received}")


class ClientError(DriverError):
    code = "E_CLIENT"
