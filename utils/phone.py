import re

_STRIP = re.compile(r"[\s\-\.\(\)]")


def normalize_phone(value: str) -> str:
    """
    Canonical form of a phone number for customer lookup.

    Removes spaces, dashes, dots and parentheses; keeps a leading "+".
    No other matching is attempted: two numbers are the same customer only
    when their normalized forms are equal.
    """
    return _STRIP.sub("", (value or "").strip())


def is_valid_phone(value: str) -> bool:
    normalized = normalize_phone(value)
    return bool(re.fullmatch(r"\+?\d{6,20}", normalized))
