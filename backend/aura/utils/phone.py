"""
Phone number validation and canonicalization.

Every phone entering the verification flow is rewritten to one canonical
``+<countrycode><subscriber>`` form so that a number typed as
``010 1234 5678``, ``01012345678`` or ``+20 101 234 5678`` maps to the same
identity key. National numbers without a country code are assumed to belong
to ``country_code`` (Egypt by default); deployments outside a single country
must configure it.
"""

import re
from typing import Tuple
import unicodedata

from aura.core.exceptions import InvalidPhoneException

DEFAULT_COUNTRY_CODE = "20"

MIN_INTERNATIONAL_LENGTH = 8  # "+" plus at least 7 digits
MAX_INTERNATIONAL_LENGTH = 18

_NON_DIGITS = re.compile(r"\D", re.ASCII)
_NON_PHONE_CHARS = re.compile(r"[^\d+]", re.ASCII)


def _ascii_digits(raw: str) -> str:
    """Fold fullwidth forms and every Unicode decimal digit (e.g. Arabic-Indic) to ASCII."""
    folded = unicodedata.normalize("NFKC", raw)
    return "".join(str(unicodedata.decimal(c)) if c.isdecimal() else c for c in folded)


def _split(raw: str | None) -> Tuple[bool, str]:
    """Return (had leading plus, digits only) for raw user input."""
    stripped = _NON_PHONE_CHARS.sub("", _ascii_digits(raw or ""))
    return stripped.startswith("+"), _NON_DIGITS.sub("", stripped)


def _within_international_bounds(candidate: str) -> bool:
    return MIN_INTERNATIONAL_LENGTH <= len(candidate) <= MAX_INTERNATIONAL_LENGTH


def _national_to_international(digits: str, country_code: str) -> str | None:
    # 0 + 10 digits, e.g. 01012345678
    if len(digits) == 11 and digits.startswith("0"):
        return f"+{country_code}{digits[1:]}"
    # Bare subscriber number (1XXXXXXXXX) or any other 10 digit national number
    if len(digits) == 10:
        return f"+{country_code}{digits}"
    return None


def is_valid_phone(raw: str | None, country_code: str = DEFAULT_COUNTRY_CODE) -> bool:
    """
    Return True when ``raw`` matches a recognized phone shape.

    Accepts ``+``-prefixed numbers of 8-18 characters and national 10 digit
    or 0-prefixed 11 digit numbers. Bare international digits are rejected
    here even though ``normalize_phone`` will still accept them.
    """
    has_plus, digits = _split(raw)
    if not digits:
        return False
    if has_plus:
        return _within_international_bounds(f"+{digits}")
    return _national_to_international(digits, country_code) is not None


def normalize_phone(raw: str | None, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """
    Canonicalize ``raw`` to ``+<countrycode><subscriber>``.

    Normalization is idempotent: feeding the result back in returns it
    unchanged.

    Raises:
        InvalidPhoneException: if the cleaned input has no digits, or the
            result would fall outside 8-18 characters.
    """
    has_plus, digits = _split(raw)
    if not digits:
        raise InvalidPhoneException(raw)

    if has_plus:
        candidate = f"+{digits}"
        if not _within_international_bounds(candidate):
            raise InvalidPhoneException(raw)
        return candidate

    national = _national_to_international(digits, country_code)
    if national is not None:
        return national

    # Best effort: treat remaining digits as an international number missing its "+"
    candidate = f"+{digits}"
    if not _within_international_bounds(candidate):
        raise InvalidPhoneException(raw)
    return candidate


def legacy_phone_variants(raw: str) -> Tuple[str, ...]:
    """
    Return the stored formats a phone may have been saved under.

    Rows written before phone normalization existed may hold the number
    with or without its leading ``+``. Used by the administrative clear as a
    migration shim only.
    """
    value = (raw or "").strip()
    if not value:
        return ()
    bare = value.lstrip("+")
    variants = [value, f"+{bare}", bare]
    return tuple(dict.fromkeys(v for v in variants if v and v != "+"))


def mask_phone(phone: str | None) -> str:
    """Mask all but the country prefix and the last four digits for logging."""
    if not phone:
        return "***"
    if len(phone) <= 7:
        return "***" + phone[-2:]
    return phone[:3] + "*" * (len(phone) - 7) + phone[-4:]
