"""Name normalisation helpers"""

import re


def to_title_case(value: str | None) -> str | None:
    """Collapse whitespace and capitalise the first letter of each word"""
    if value is None or not value.strip():
        return value
    words = value.strip().lower().split()
    return " ".join(word[0].upper() + word[1:] for word in words)


def only_digits(value: str | None) -> str:
    """Strip every non-digit character (documents, phone numbers)"""
    return re.sub(r"\D", "", value or "")
