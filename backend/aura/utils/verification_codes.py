"""One-time verification code generation."""

import secrets

CODE_LENGTH = 6
_LOWEST_CODE = 10 ** (CODE_LENGTH - 1)
_CODE_SPAN = 9 * _LOWEST_CODE  # 900000 possible codes


def generate_verification_code() -> str:
    """Return a uniformly random six digit code in [100000, 999999] from the OS CSPRNG."""
    return str(_LOWEST_CODE + secrets.randbelow(_CODE_SPAN))


def is_well_formed_code(candidate: str | None) -> bool:
    if not candidate or len(candidate) != CODE_LENGTH:
        return False
    return candidate.isascii() and candidate.isdigit()
