"""Script-based language detection and caller language selection."""

import re
from typing import Optional

from call_agent.schemas.conversation_schema import Language
from call_agent.utils import contains_keyword, normalize_utterance

_DEVANAGARI = re.compile(r"[\u0900-\u097F]")
_TELUGU = re.compile(r"[\u0C00-\u0C7F]")

KEYPAD_LANGUAGES: dict[str, Language] = {
    "1": Language.HINDI,
    "2": Language.ENGLISH,
    "3": Language.TELUGU,
}

SPOKEN_LANGUAGE_NAMES: dict[Language, tuple[str, ...]] = {
    Language.HINDI: ("hindi", "हिंदी", "हिन्दी", "हिंदी में"),
    Language.ENGLISH: ("english", "अंग्रेज़ी", "अंग्रेजी", "ఇంగ్లీష్"),
    Language.TELUGU: ("telugu", "తెలుగు", "तेलुगु"),
}


def detect_language(text: str, default: Language = Language.ENGLISH) -> Language:
    """Guess the language of ``text`` from its script.

    Devanagari means Hindi and Telugu script means Telugu. Latin text falls
    back to ``default``, since romanized Hindi is common on chat channels.
    """
    if _TELUGU.search(text):
        return Language.TELUGU
    if _DEVANAGARI.search(text):
        return Language.HINDI
    return default


def select_language(
    digits: Optional[str] = None, utterance: Optional[str] = None
) -> Optional[Language]:
    """Resolve a caller's language choice from a keypress or a spoken name.

    Returns None when the input names no supported language.
    """
    if digits:
        choice = KEYPAD_LANGUAGES.get(digits.strip()[:1])
        if choice is not None:
            return choice
    if utterance:
        normalized = normalize_utterance(utterance)
        for language, names in SPOKEN_LANGUAGE_NAMES.items():
            if any(contains_keyword(normalized, name) for name in names):
                return language
        # A caller who simply speaks in a script other than Latin has chosen it
        if _TELUGU.search(utterance):
            return Language.TELUGU
        if _DEVANAGARI.search(utterance):
            return Language.HINDI
    return None
