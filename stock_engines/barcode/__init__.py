"""
Barcode engines: symbology detection/validation and internal barcode generation.
"""

from stock_engines.barcode.generator import BarcodeGenerator, string_hash
from stock_engines.barcode.symbology import (
    BarcodeValidation,
    clean_barcode,
    detect_format,
    format_for_display,
    generate_upca_check_digit,
    gs1_check_digit,
    upca_to_upce,
    upce_to_upca,
    validate_barcode,
    validate_ean13_checksum,
    validate_upca_checksum,
)

__all__ = [
    "BarcodeGenerator",
    "BarcodeValidation",
    "clean_barcode",
    "detect_format",
    "format_for_display",
    "generate_upca_check_digit",
    "gs1_check_digit",
    "string_hash",
    "upca_to_upce",
    "upce_to_upca",
    "validate_barcode",
    "validate_ean13_checksum",
    "validate_upca_checksum",
]
