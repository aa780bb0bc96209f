"""
Keyword rule tables for the intent resolver's rule-based fallback.

Each category keeps one keyword list per language. Lists are maintained
independently: a Hindi keyword is not a transliteration of an English one,
and a language without a list simply never matches that category.

Rules are evaluated in declaration order. ``priority`` can lift a rule
ahead of earlier ones; equal priorities keep declaration order.
"""

from dataclasses import dataclass, field

from call_agent.schemas.conversation_schema import Language
from call_agent.schemas.intent_schema import IntentLabel
from call_agent.utils import contains_keyword


@dataclass(frozen=True)
class IntentRule:
    """One intent category and its per-language keyword tables."""

    label: IntentLabel
    keywords: dict[str, tuple[str, ...]] = field(default_factory=dict)
    priority: int = 0

    def matches(self, normalized: str, language: Language) -> bool:
        return any(
            contains_keyword(normalized, kw) for kw in self.keywords.get(language.value, ())
        )

    def matches_any_language(self, normalized: str) -> bool:
        return any(
            contains_keyword(normalized, kw) for words in self.keywords.values() for kw in words
        )


INTENT_RULES: list[IntentRule] = [
    IntentRule(
        label=IntentLabel.BOOKING,
        keywords={
            "en": ("appointment", "booking", "book", "booked", "schedule", "meet",
                   "meeting", "photoshoot", "reserve", "reservation"),
            "hi": ("अपॉइंटमेंट", "बुकिंग", "बुक", "मिलना", "समय", "फोटोशूट"),
            "te": ("అపాయింట్‌మెంట్", "బుకింగ్", "బుక్", "ఫోటోషూట్", "సమయం"),
        },
    ),
    IntentRule(
        label=IntentLabel.TRACKING,
        keywords={
            "en": ("track", "tracking", "order", "status", "where is", "delivery",
                   "delivered", "shipped"),
            "hi": ("ट्रैक", "ऑर्डर", "स्थिति", "कहाँ", "डिलीवरी"),
            "te": ("ట్రాక్", "ఆర్డర్", "స్థితి", "ఎక్కడ", "డెలివరీ"),
        },
    ),
    IntentRule(
        label=IntentLabel.PRICING,
        keywords={
            "en": ("price", "pricing", "cost", "fee", "how much", "charge", "rate"),
            "hi": ("कीमत", "दाम", "फीस", "पैसा", "चार्ज", "कितना"),
            "te": ("ధర", "ఖర్చు", "ఫీజు", "ఎంత", "చార్జ్"),
        },
    ),
    IntentRule(
        label=IntentLabel.GOODBYE,
        keywords={
            "en": ("goodbye", "bye", "thank you", "thanks", "exit", "end call",
                   "hang up"),
            "hi": ("अलविदा", "धन्यवाद", "शुक्रिया", "बाय", "फोन रखो"),
            "te": ("వీడ్కోలు", "ధన్యవాదాలు", "బై", "సెలవు"),
        },
    ),
    IntentRule(
        label=IntentLabel.HELP,
        keywords={
            "en": ("help", "assist", "information", "support", "tell me", "menu",
                   "options"),
            "hi": ("मदद", "सहायता", "जानकारी", "बताओ", "बताइए"),
            "te": ("సహాయం", "సమాచారం", "చెప్పండి", "మెనూ"),
        },
    ),
    IntentRule(
        label=IntentLabel.CONFIRM,
        keywords={
            "en": ("yes", "yeah", "correct", "confirm", "okay", "sure"),
            "hi": ("हाँ", "हां", "जी", "ठीक है", "सही"),
            "te": ("అవును", "సరే", "సరైనది"),
        },
    ),
]


def ordered_rules(rules: list[IntentRule]) -> list[IntentRule]:
    """Highest priority first; ``sorted`` is stable so ties keep declaration order."""
    return sorted(rules, key=lambda rule: -rule.priority)


def rule_for(label: IntentLabel, rules: list[IntentRule] = INTENT_RULES) -> IntentRule:
    for rule in rules:
        if rule.label == label:
            return rule
    raise KeyError(f"No keyword rule for intent '{label.value}'")
