"""
Tests for barcode format detection, check digits and display helpers.

Covers:
- Ordered format detection
- UPC-A and EAN-13 check digit validation
- Check digit generation
- Cleaning and display formatting
- UPC-A <-> UPC-E zero suppression
"""

import pytest

from stock_engines.barcode.symbology import (
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
from stock_kernel.domain.scanning import BarcodeFormat
from stock_kernel.exceptions import InvalidBarcodeInputError


class TestDetectFormat:

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("036000291452", BarcodeFormat.UPC_A),
            ("04252614", BarcodeFormat.UPC_E),
            ("4006381333931", BarcodeFormat.EAN_13),
            ("ABC-123", BarcodeFormat.CODE_39),
            ("BATCH012345", BarcodeFormat.CODE_39),
            ("12:34", BarcodeFormat.CODABAR),
            ("1234567890", BarcodeFormat.CODE_39),
            ("hello world", BarcodeFormat.CODE_128),
            ("  036000291452  ", BarcodeFormat.UPC_A),
        ],
    )
    def test_detects(self, code, expected):
        assert detect_format(code) is expected

    def test_eight_digits_is_upc_e_not_ean_8(self):
        assert detect_format("96385074") is BarcodeFormat.UPC_E

    @pytest.mark.parametrize("code", ["", "   ", "café", "tab\x7fok☃"])
    def test_unknown(self, code):
        assert detect_format(code) is BarcodeFormat.UNKNOWN

    @pytest.mark.parametrize("code", [
        "０３６０００２９１４５２",  # fullwidth
        "٠٣٦٠٠٠٢٩١٤٥٢",  # Arabic-Indic
        "४००६३८१३३३९३१",  # Devanagari
    ])
    def test_non_ascii_digits_are_not_numeric_symbologies(self, code):
        assert detect_format(code) is BarcodeFormat.UNKNOWN


class TestChecksums:

    def test_known_upc_a(self):
        assert validate_upca_checksum("036000291452") is True

    def test_flipped_check_digit_fails(self):
        assert validate_upca_checksum("036000291453") is False

    def test_known_ean_13(self):
        assert validate_ean13_checksum("4006381333931") is True
        assert validate_ean13_checksum("4006381333932") is False

    def test_wrong_length(self):
        assert validate_upca_checksum("03600029145") is False
        assert validate_ean13_checksum("036000291452") is False

    def test_gs1_check_digit(self):
        assert gs1_check_digit("03600029145") == 2
        assert gs1_check_digit("400638133393") == 1


class TestValidateBarcode:

    def test_valid_upc_a(self):
        result = validate_barcode("036000291452")

        assert result.is_valid is True
        assert result.format is BarcodeFormat.UPC_A
        assert result.error is None

    def test_invalid_upc_a(self):
        result = validate_barcode("036000291453")

        assert result.is_valid is False
        assert result.error == "Invalid UPC-A checksum"

    def test_invalid_ean_13(self):
        result = validate_barcode("4006381333932")

        assert result.is_valid is False
        assert result.format is BarcodeFormat.EAN_13
        assert result.error == "Invalid EAN-13 checksum"

    def test_unknown_is_invalid(self):
        result = validate_barcode("")

        assert result.is_valid is False
        assert result.format is BarcodeFormat.UNKNOWN
        assert result.error == "Unknown barcode format"

    def test_other_formats_accepted_without_checksum(self):
        result = validate_barcode("LOC001Z01")

        assert result.is_valid is True
        assert result.format is BarcodeFormat.CODE_39

    def test_fullwidth_upc_a_rejected(self):
        result = validate_barcode("０３６０００２９１４５２")

        assert result.is_valid is False
        assert result.format is BarcodeFormat.UNKNOWN
        assert validate_upca_checksum("０３６０００２９１４５２") is False

    def test_never_raises(self):
        for code in ["", "x" * 500, "\x00", "12345678901234567890"]:
            validate_barcode(code)


class TestGenerateCheckDigit:

    def test_completes_code(self):
        assert generate_upca_check_digit("03600029145") == "036000291452"

    def test_generated_code_validates(self):
        assert validate_barcode(generate_upca_check_digit("21234567890")).is_valid

    @pytest.mark.parametrize("code", ["0360002914", "036000291452", "0360002914A", "０３６０００２９１４５"])
    def test_rejects_bad_input(self, code):
        with pytest.raises(InvalidBarcodeInputError) as exc_info:
            generate_upca_check_digit(code)

        assert exc_info.value.code == "INVALID_BARCODE_INPUT"
        assert isinstance(exc_info.value, ValueError)


class TestDisplay:

    def test_clean_then_format_upc_a(self):
        assert format_for_display(clean_barcode(" 036-000291452 ")) == "0 36000 29145 2"

    def test_clean_strips_whitespace_and_hyphens(self):
        assert clean_barcode("\t40-0638 1333931\n") == "4006381333931"

    def test_format_ean_13(self):
        assert format_for_display("4006381333931") == "4 006381 333931"

    def test_format_upc_e(self):
        assert format_for_display("04252614") == "0 425261 4"

    def test_other_formats_unchanged(self):
        assert format_for_display("BATCH012345") == "BATCH012345"


class TestUpcE:

    @pytest.mark.parametrize(
        "upc_e,upc_a",
        [
            ("04252614", "042100005264"),
            ("01234531", "012300000451"),
            ("01234543", "012340000053"),
            ("01234565", "012345000065"),
        ],
    )
    def test_expand_and_compress(self, upc_e, upc_a):
        assert upce_to_upca(upc_e) == upc_a
        assert upca_to_upce(upc_a) == upc_e

    def test_expanded_code_is_valid_upc_a(self):
        assert validate_upca_checksum(upce_to_upca("04252614"))

    def test_not_compressible(self):
        assert upca_to_upce("036000291452") is None

    def test_invalid_upc_a_rejected(self):
        assert upca_to_upce("042100005265") is None

    def test_number_system_must_be_zero_or_one(self):
        assert upce_to_upca("24252614") is None

    def test_upc_e_check_digit_mismatch(self):
        assert upce_to_upca("04252615") is None

    def test_malformed_upc_e(self):
        assert upce_to_upca("0425261") is None
        assert upce_to_upca("0425261A") is None
        assert upce_to_upca("٠٤٢٥٢٦١٤") is None
