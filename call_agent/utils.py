"""Shared utilities used across the call agent."""

import re


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("98765 43210")
        '9876543210'
        >>> normalize_phone("+91 (987) 654-3210")
        '+919876543210'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def normalize_utterance(value: str) -> str:
    """Lower-case and collapse whitespace so keyword checks see one canonical form."""
    return re.sub(r"\s+", " ", value.strip().lower())


def contains_keyword(text: str, keyword: str) -> bool:
    """Check whether ``keyword`` occurs as a whole word in already-normalized ``text``.

    Latin keywords must start and end on a word boundary, allowing only a
    plural "s"/"es", so "bye" does not fire on "Byers" while "price" still
    matches "prices". Longer forms ("booking", "tracking") are listed as
    keywords of their own. Keywords in other scripts match as plain
    substrings, since Indic vowel signs are not word characters to the
    regex engine.
    """
    keyword = keyword.lower()
    if not keyword:
        return False
    if keyword.isascii():
        pattern = r"(?<![a-z0-9])" + re.escape(keyword) + r"(?:e?s)?(?![a-z0-9])"
        return re.search(pattern, text) is not None
    return keyword in text
