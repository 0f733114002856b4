"""Phone number helpers shared by search, conversation and contact code."""

from __future__ import annotations

import string

# Characters allowed in a phone number besides digits
PHONE_PUNCTUATION = frozenset("+-(). ")

# Stored identifiers carry country codes and formatting; compare this many
# trailing digits.
PHONE_SUFFIX_DIGITS = 10


def is_phone_like(value: str) -> bool:
    """Return True if ``value`` only holds digits and phone punctuation.

    At least one digit is required, so ``"()"`` is not a phone number.
    """
    has_digit = False
    for ch in value:
        if ch in string.digits:
            has_digit = True
        elif ch not in PHONE_PUNCTUATION:
            return False
    return has_digit


def digits_only(value: str) -> str:
    """Strip everything but ASCII digits."""
    return "".join(ch for ch in value if ch in string.digits)


def phone_suffix(value: str) -> str:
    """Last digits of a phone number, used to compare differently formatted numbers."""
    return digits_only(value)[-PHONE_SUFFIX_DIGITS:]
