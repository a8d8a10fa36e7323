"""
stock_engines.barcode.generator -- Internal barcode synthesis.

Responsibility:
    Mint barcodes for things that arrive without one: internal SKUs
    (checksum-valid UPC-A in the in-store number system), batch/lot labels
    and storage-location labels.

Architecture position:
    Engines -- pure apart from the injected random source.

Invariants enforced:
    - Internal SKU barcodes are 12 digits and pass UPC-A validation.
    - Batch barcodes are ``BATCH`` followed by exactly 6 digits and are a
      deterministic function of (item id, batch number).
    - Randomness comes only from the ``random.Random`` passed in, so a
      seeded generator reproduces its output.
"""

from __future__ import annotations

import random

from stock_kernel.exceptions import InvalidBarcodeInputError
from stock_kernel.logging_config import get_logger
from stock_engines.barcode.symbology import generate_upca_check_digit

logger = get_logger("engines.barcode.generator")

INTERNAL_PREFIX = "2"
BATCH_HASH_MODULUS = 1_000_000


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


def string_hash(text: str) -> int:
    """
    31-multiplier rolling hash over UTF-16 code units, wrapped to a
    signed 32-bit integer after every step.
    """
    data = text.encode("utf-16-le")
    h = 0
    for i in range(0, len(data), 2):
        code_unit = data[i] | (data[i + 1] << 8)
        h = _to_int32(h * 31 + code_unit)
    return h


class BarcodeGenerator:
    """Generates internal SKU, batch and location barcodes."""

    def __init__(
        self,
        rng: random.Random | None = None,
        default_prefix: str = INTERNAL_PREFIX,
    ):
        self._rng = rng if rng is not None else random.Random()
        self._default_prefix = default_prefix

    def internal_barcode(self, prefix: str | None = None) -> str:
        """
        A new UPC-A for an item without a manufacturer barcode.

        ``prefix`` (one digit, the generator's default when omitted) +
        5-digit manufacturer code + 5-digit product code, completed with
        its check digit.
        """
        if prefix is None:
            prefix = self._default_prefix
        if len(prefix) != 1 or not (prefix.isascii() and prefix.isdigit()):
            raise InvalidBarcodeInputError(prefix, "internal barcode prefix must be one digit")
        manufacturer = f"{self._rng.randrange(100_000):05d}"
        product = f"{self._rng.randrange(100_000):05d}"
        code = generate_upca_check_digit(prefix + manufacturer + product)
        logger.debug("internal_barcode_generated", extra={"barcode": code})
        return code

    @staticmethod
    def batch_barcode(item_id: str, batch_number: str) -> str:
        """``BATCH`` + 6 digits derived from ``"<item_id>-<batch_number>"``."""
        digest = abs(string_hash(f"{item_id}-{batch_number}")) % BATCH_HASH_MODULUS
        return f"BATCH{digest:06d}"

    @staticmethod
    def location_barcode(
        location_id: str,
        zone: str | None = None,
        shelf: str | None = None,
    ) -> str:
        """
        ``LOC`` + location id (zero-padded to 3), then ``Z`` + zone
        (padded to 2) and ``S`` + shelf (padded to 3) when given.
        """
        code = f"LOC{location_id.rjust(3, '0')}"
        if zone:
            code += f"Z{zone.rjust(2, '0')}"
        if shelf:
            code += f"S{shelf.rjust(3, '0')}"
        return code
