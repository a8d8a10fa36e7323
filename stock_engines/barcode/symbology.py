"""
stock_engines.barcode.symbology -- Barcode format detection and check digits.

Responsibility:
    Recognize the symbology of a decoded barcode string, verify the GS1
    mod-10 check digit of UPC-A and EAN-13 codes, complete an 11-digit
    UPC-A with its check digit, clean and pretty-print codes, and convert
    between UPC-A and its zero-suppressed UPC-E form.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Detection is ordered by specificity: UPC-A, UPC-E, EAN-13, EAN-8,
      CODE-39, CODABAR, ITF, CODE-128.  An 8-digit code is always UPC-E
      and any other all-digit code matches CODE-39 first, so EAN-8 and
      ITF are listed for completeness and never returned.
    - Check digits use the GS1 weighting: 3, 1, 3, ... starting from the
      rightmost data digit.  One routine serves UPC-A (11 data digits) and
      EAN-13 (12 data digits).
    - A code produced by ``generate_upca_check_digit`` always validates.

Failure modes:
    - ``validate_barcode`` never raises; failures come back as
      ``BarcodeValidation(is_valid=False, error=...)``.
    - ``generate_upca_check_digit`` raises ``InvalidBarcodeInputError`` on
      anything other than exactly 11 digits.
    - UPC-A/UPC-E conversion returns ``None`` for codes that are invalid or
      cannot be zero-suppressed.

Notes:
    CODE-39, CODABAR, ITF and CODE-128 are accepted on pattern alone; their
    optional check characters are not verified.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from stock_kernel.domain.scanning import BarcodeFormat
from stock_kernel.exceptions import InvalidBarcodeInputError
from stock_kernel.logging_config import get_logger

logger = get_logger("engines.barcode")

# Tested in this order against the trimmed code.
FORMAT_PATTERNS: tuple[tuple[BarcodeFormat, re.Pattern[str]], ...] = (
    (BarcodeFormat.UPC_A, re.compile(r"\d{12}", re.ASCII)),
    (BarcodeFormat.UPC_E, re.compile(r"\d{8}", re.ASCII)),
    (BarcodeFormat.EAN_13, re.compile(r"\d{13}", re.ASCII)),
    (BarcodeFormat.EAN_8, re.compile(r"\d{8}", re.ASCII)),
    (BarcodeFormat.CODE_39, re.compile(r"[0-9A-Z\-.$/+%*\s]+", re.ASCII)),
    (BarcodeFormat.CODABAR, re.compile(r"[0-9\-$:.+/]+", re.ASCII)),
    (BarcodeFormat.ITF, re.compile(r"\d+", re.ASCII)),
    (BarcodeFormat.CODE_128, re.compile(r"[\x20-\x7F]+", re.ASCII)),
)

_DIGITS = re.compile(r"\d+", re.ASCII)
_SEPARATORS = re.compile(r"[\s\-]", re.ASCII)


@dataclass(frozen=True)
class BarcodeValidation:
    """Result of validating a barcode; ``error`` is set only when invalid."""

    is_valid: bool
    format: BarcodeFormat
    error: str | None = None


# =============================================================================
# Detection and validation
# =============================================================================


def detect_format(code: str) -> BarcodeFormat:
    """Symbology of ``code`` by pattern, or ``UNKNOWN``."""
    cleaned = code.strip()
    for barcode_format, pattern in FORMAT_PATTERNS:
        if pattern.fullmatch(cleaned):
            return barcode_format
    return BarcodeFormat.UNKNOWN


def gs1_check_digit(data: str) -> int:
    """
    GS1 mod-10 check digit for a string of data digits.

    Digits are weighted 3, 1, 3, ... from the rightmost data digit; the
    check digit brings the weighted sum up to a multiple of ten.
    """
    total = sum(
        int(digit) * (3 if position % 2 == 0 else 1)
        for position, digit in enumerate(reversed(data))
    )
    return (10 - total % 10) % 10


def _has_valid_check_digit(code: str, length: int) -> bool:
    if len(code) != length or not _DIGITS.fullmatch(code):
        return False
    return int(code[-1]) == gs1_check_digit(code[:-1])


def validate_upca_checksum(code: str) -> bool:
    """True if ``code`` is 12 digits ending in the correct check digit."""
    return _has_valid_check_digit(code, 12)


def validate_ean13_checksum(code: str) -> bool:
    """True if ``code`` is 13 digits ending in the correct check digit."""
    return _has_valid_check_digit(code, 13)


def validate_barcode(code: str) -> BarcodeValidation:
    """
    Detect the format of ``code`` and verify its check digit where the
    symbology has one we verify (UPC-A, EAN-13).
    """
    cleaned = code.strip()
    barcode_format = detect_format(cleaned)

    match barcode_format:
        case BarcodeFormat.UNKNOWN:
            result = BarcodeValidation(False, barcode_format, "Unknown barcode format")
        case BarcodeFormat.UPC_A:
            valid = validate_upca_checksum(cleaned)
            result = BarcodeValidation(
                valid, barcode_format, None if valid else "Invalid UPC-A checksum",
            )
        case BarcodeFormat.EAN_13:
            valid = validate_ean13_checksum(cleaned)
            result = BarcodeValidation(
                valid, barcode_format, None if valid else "Invalid EAN-13 checksum",
            )
        case _:
            result = BarcodeValidation(True, barcode_format)

    if not result.is_valid:
        logger.debug("barcode_invalid", extra={
            "barcode": cleaned,
            "format": barcode_format.value,
            "error": result.error,
        })
    return result


def generate_upca_check_digit(code11: str) -> str:
    """
    Complete an 11-digit UPC-A body with its check digit.

    Raises:
        InvalidBarcodeInputError: If ``code11`` is not exactly 11 digits.
    """
    if len(code11) != 11 or not _DIGITS.fullmatch(code11):
        raise InvalidBarcodeInputError(
            code11, "UPC-A code must be 11 digits for check digit generation",
        )
    return f"{code11}{gs1_check_digit(code11)}"


# =============================================================================
# Presentation
# =============================================================================


def clean_barcode(raw: str) -> str:
    """Strip whitespace and hyphens from scanner or keyboard input."""
    return _SEPARATORS.sub("", raw)


def format_for_display(code: str) -> str:
    """
    Group digits the way they are printed under the bars.

    UPC-A ``X XXXXX XXXXX X``, EAN-13 ``X XXXXXX XXXXXX``, UPC-E
    ``X XXXXXX X``.  Other formats are returned unchanged.
    """
    cleaned = code.strip()
    match detect_format(cleaned):
        case BarcodeFormat.UPC_A:
            return f"{cleaned[0]} {cleaned[1:6]} {cleaned[6:11]} {cleaned[11]}"
        case BarcodeFormat.EAN_13:
            return f"{cleaned[0]} {cleaned[1:7]} {cleaned[7:13]}"
        case BarcodeFormat.UPC_E:
            return f"{cleaned[0]} {cleaned[1:7]} {cleaned[7]}"
        case _:
            return code


# =============================================================================
# UPC-A <-> UPC-E
# =============================================================================


def upca_to_upce(code12: str) -> str | None:
    """
    Zero-suppress a UPC-A code into its 8-digit UPC-E form.

    Only number systems 0 and 1 have a UPC-E form, and only when the
    manufacturer and product digits follow one of the four suppression
    patterns.  Returns ``None`` otherwise, or when ``code12`` is not a
    valid UPC-A.
    """
    if not validate_upca_checksum(code12):
        return None
    number_system, check = code12[0], code12[11]
    if number_system not in "01":
        return None

    manufacturer = code12[1:6]
    product = code12[6:11]

    if manufacturer[3:] == "00" and manufacturer[2] in "012" and product[:2] == "00":
        body = manufacturer[:2] + product[2:] + manufacturer[2]
    elif manufacturer[3:] == "00" and product[:3] == "000":
        body = manufacturer[:3] + product[3:] + "3"
    elif manufacturer[4] == "0" and product[:4] == "0000":
        body = manufacturer[:4] + product[4] + "4"
    elif product[:4] == "0000" and product[4] in "56789":
        body = manufacturer + product[4]
    else:
        return None

    return f"{number_system}{body}{check}"


def upce_to_upca(code8: str) -> str | None:
    """
    Expand an 8-digit UPC-E code to its 12-digit UPC-A form.

    The last body digit selects how the suppressed zeros are restored.
    Returns ``None`` for malformed input, number systems other than 0/1,
    or a check digit that does not match the expanded code.
    """
    if len(code8) != 8 or not _DIGITS.fullmatch(code8):
        return None
    number_system, body, check = code8[0], code8[1:7], code8[7]
    if number_system not in "01":
        return None

    match body[5]:
        case "0" | "1" | "2":
            manufacturer = body[:2] + body[5] + "00"
            product = "00" + body[2:5]
        case "3":
            manufacturer = body[:3] + "00"
            product = "000" + body[3:5]
        case "4":
            manufacturer = body[:4] + "0"
            product = "0000" + body[4]
        case _:
            manufacturer = body[:5]
            product = "0000" + body[5]

    data = f"{number_system}{manufacturer}{product}"
    if gs1_check_digit(data) != int(check):
        return None
    return f"{data}{check}"
