"""
Typed exception hierarchy for the stock-control kernel.

Most conditions in this system are NOT exceptions.  Failed barcode
validation, unit-type mismatches, division-by-zero guards and misuse of a
finished scan session are reported as result values (``BarcodeValidation``,
``ConversionResult``, ``0``, ``None``) that callers branch on.  Exceptions
are reserved for programming errors at the call boundary (malformed input
to a generator, invalid configuration) and for the strict service helpers
that explicitly ask for one.

Every exception carries a class-level ``code`` for machine-readable
identification and stores its context as attributes:

    StockKernelError (base)
    |
    +-- BarcodeError
    |   +-- InvalidBarcodeInputError
    |
    +-- ConfigurationError
    |
    +-- ScanSessionError
        +-- SessionNotFoundError

Code                      | When raised
--------------------------|-----------------------------------------------
INVALID_BARCODE_INPUT     | Check-digit / barcode generation given bad input
CONFIGURATION_INVALID     | Config file or dict fails validation
SESSION_NOT_FOUND         | Strict lookup of an unknown scan session
"""


class StockKernelError(Exception):
    """
    Base exception for all stock-control kernel errors.

    All subclasses must define a ``code`` class attribute.
    """

    code: str = "STOCK_KERNEL_ERROR"


# Barcode exceptions


class BarcodeError(StockKernelError):
    """Base exception for barcode errors."""

    code: str = "BARCODE_ERROR"


class InvalidBarcodeInputError(BarcodeError, ValueError):
    """Input to a barcode generator or check-digit routine is malformed."""

    code: str = "INVALID_BARCODE_INPUT"

    def __init__(self, value: str, reason: str):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid barcode input {value!r}: {reason}")


# Configuration exceptions


class ConfigurationError(StockKernelError, ValueError):
    """Configuration failed validation."""

    code: str = "CONFIGURATION_INVALID"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid configuration for {field}: {reason}")


# Scan session exceptions


class ScanSessionError(StockKernelError):
    """Base exception for scan session errors."""

    code: str = "SCAN_SESSION_ERROR"


class SessionNotFoundError(ScanSessionError):
    """No scan session exists with the given id."""

    code: str = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Scan session not found: {session_id}")
