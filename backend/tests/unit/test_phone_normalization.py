import pytest

from aura.core.exceptions import InvalidPhoneException
from aura.utils.phone import (
    is_valid_phone,
    legacy_phone_variants,
    mask_phone,
    normalize_phone,
)

pytestmark = pytest.mark.unit


class TestNormalizePhone:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("01012345678", "+201012345678"),
            ("+201012345678", "+201012345678"),
            ("1012345678", "+201012345678"),
            ("010 1234 5678", "+201012345678"),
            ("010-1234-5678", "+201012345678"),
            ("+20 101 234 5678", "+201012345678"),
            ("(010) 1234 5678", "+201012345678"),
            ("0223456789", "+200223456789"),
            ("+14155550123", "+14155550123"),
        ],
    )
    def test_recognized_shapes(self, raw: str, expected: str) -> None:
        assert normalize_phone(raw) == expected

    def test_bare_international_digits_get_a_plus(self) -> None:
        assert normalize_phone("447911123456") == "+447911123456"

    def test_plus_in_the_middle_is_ignored(self) -> None:
        assert normalize_phone("20+1012345678") == "+201012345678"

    @pytest.mark.parametrize(
        "raw",
        [
            "٠١٠١٢٣٤٥٦٧٨",  # Arabic-Indic
            "۰۱۰۱۲۳۴۵۶۷۸",  # Extended Arabic-Indic
            "０１０１２３４５６７８",  # Fullwidth
            "＋２０１０１２３４５６７８",
            "+٢٠ ١٠١ ٢٣٤ ٥٦٧٨",
            "٠١٠-1234-5678",
        ],
    )
    def test_non_ascii_digits_share_the_ascii_identity(self, raw: str) -> None:
        normalized = normalize_phone(raw)
        assert normalized == "+201012345678"
        assert normalized.isascii()
        assert is_valid_phone(raw)

    @pytest.mark.parametrize(
        "raw",
        ["123", "", "   ", "abc", None, "+123", "+1234567890123456789", "123456"],
    )
    def test_unrecognized_input_raises(self, raw) -> None:
        with pytest.raises(InvalidPhoneException) as exc_info:
            normalize_phone(raw)
        assert exc_info.value.code == "INVALID_PHONE"
        assert exc_info.value.status_code == 400

    @pytest.mark.parametrize(
        "raw",
        [
            "01012345678",
            "+201012345678",
            "1012345678",
            "0223456789",
            "447911123456",
            "+14155550123",
            "010 1234 5678",
        ],
    )
    def test_normalization_is_idempotent(self, raw: str) -> None:
        once = normalize_phone(raw)
        assert normalize_phone(once) == once

    def test_country_code_is_configurable(self) -> None:
        assert normalize_phone("05012345678", country_code="966") == "+9665012345678"
        assert normalize_phone("5012345678", country_code="966") == "+9665012345678"

    def test_canonical_length_bounds(self) -> None:
        assert normalize_phone("+1234567") == "+1234567"
        assert normalize_phone("+12345678901234567") == "+12345678901234567"


class TestIsValidPhone:
    @pytest.mark.parametrize(
        "raw",
        ["01012345678", "+201012345678", "1012345678", "0223456789", "+14155550123"],
    )
    def test_accepts_recognized_shapes(self, raw: str) -> None:
        assert is_valid_phone(raw) is True

    @pytest.mark.parametrize(
        "raw",
        ["123", "", None, "+123", "+1234567890123456789", "447911123456", "abc"],
    )
    def test_rejects_everything_else(self, raw) -> None:
        assert is_valid_phone(raw) is False

    @pytest.mark.parametrize(
        "raw",
        ["01012345678", "+201012345678", "1012345678", "9912345678", "09912345678"],
    )
    def test_normalize_is_total_on_valid_input(self, raw: str) -> None:
        assert is_valid_phone(raw)
        normalized = normalize_phone(raw)
        assert normalized.startswith("+")
        assert 8 <= len(normalized) <= 18


class TestLegacyVariants:
    def test_canonical_phone_variants(self) -> None:
        assert legacy_phone_variants("+201012345678") == ("+201012345678", "201012345678")

    def test_bare_phone_variants(self) -> None:
        assert legacy_phone_variants("201012345678") == ("201012345678", "+201012345678")

    def test_blank_input_has_no_variants(self) -> None:
        assert legacy_phone_variants("  ") == ()


def test_mask_phone_keeps_prefix_and_last_four() -> None:
    assert mask_phone("+201012345678") == "+20******5678"
    assert mask_phone(None) == "***"
