"""
Cascading intent resolution.

An utterance is run through an ordered list of strategies until one
resolves it:

    language model -> keyword rules -> service keywords -> default

Each strategy returns a tagged Resolution, either ``Resolved(intent)`` or
``Unavailable(strategy, reason)``, so degradations are explicit and logged
with their cause instead of being hidden in exception handling. The
default strategy always resolves, so the cascade always yields an intent.

Entity extraction runs on the raw utterance no matter which strategy wins.
"""

import asyncio
import re
from typing import Optional, Protocol

from call_agent.config import settings
from call_agent.conversation.intent_rules import INTENT_RULES, IntentRule, ordered_rules
from call_agent.logging_context import get_session_logger
from call_agent.prompts.prompt_templates import build_intent_prompt
from call_agent.schemas.conversation_schema import Language
from call_agent.schemas.intent_schema import (
    Entities,
    Intent,
    IntentLabel,
    IntentSource,
    Resolution,
    Resolved,
    Unavailable,
)
from call_agent.schemas.session_schema import Session
from call_agent.services.llm_client import OpenRouterClient, ProviderStatus
from call_agent.services.throttle import RequestThrottle, ThrottleClosedError
from call_agent.tools.services import ServiceCatalog, default_catalog
from call_agent.utils import normalize_utterance

logger = get_session_logger(__name__)

LANGUAGE_MODEL_CONFIDENCE = 0.9
KEYWORD_RULE_CONFIDENCE = 0.8
SERVICE_KEYWORD_CONFIDENCE = 0.7
DEFAULT_CONFIDENCE = 0.2

_PHONE_RE = re.compile(r"(?<![\d+])\+?\d{10,15}(?!\d)")
_DATE_RE = re.compile(r"\b\d{1,2}[-/.]\d{1,2}[-/.]\d{4}\b")
_ORDER_RE = re.compile(r"\b\d{4,}\b")
_DIGIT_GAP_RE = re.compile(r"(?<=\d)[\s-](?=\d)")

_INTENT_LINE_RE = re.compile(r"^\s*INTENT\s*:\s*([A-Za-z_]+)", re.IGNORECASE | re.MULTILINE)
_REPLY_LINE_RE = re.compile(r"^\s*REPLY\s*:\s*(.+)$", re.IGNORECASE | re.MULTILINE)

_STATUS_REASONS = {
    ProviderStatus.RATE_LIMITED: "rate_limited",
    ProviderStatus.TIMEOUT: "timeout",
    ProviderStatus.UNAVAILABLE: "unavailable",
    ProviderStatus.DISABLED: "disabled",
}


def extract_entities(utterance: str) -> Entities:
    """Pull phone numbers, dd/mm/yyyy dates, and order numbers from raw text.

    Spoken phone numbers often arrive in groups ("98765 43210"), so phone
    matching runs on a copy with single spaces or dashes between digits
    removed.
    """
    compact = _DIGIT_GAP_RE.sub("", utterance)
    return Entities(
        phone_numbers=_PHONE_RE.findall(compact),
        dates=_DATE_RE.findall(utterance),
        order_numbers=_ORDER_RE.findall(utterance),
    )


def parse_model_reply(text: str) -> Optional[tuple[IntentLabel, Optional[str]]]:
    """Parse the classifier's ``INTENT:``/``REPLY:`` lines.

    A reply that is nothing but a bare label is accepted too. Returns None
    when no known label can be found.
    """
    match = _INTENT_LINE_RE.search(text)
    if match:
        raw_label = match.group(1)
    else:
        raw_label = text.strip().strip(".!").lower()
    try:
        label = IntentLabel(raw_label.strip().lower())
    except ValueError:
        return None
    answer = None
    reply = _REPLY_LINE_RE.search(text)
    if label == IntentLabel.GENERAL and reply:
        answer = reply.group(1).strip() or None
    return label, answer


class IntentStrategy(Protocol):
    name: str

    async def attempt(
        self, utterance: str, language: Language, session: Optional[Session]
    ) -> Resolution: ...


class LanguageModelStrategy:
    """Classify through the external provider, serialized by the throttle."""

    name = "language_model"

    def __init__(
        self,
        client: OpenRouterClient,
        throttle: RequestThrottle,
        catalog: ServiceCatalog = default_catalog,
        history_turns: Optional[int] = None,
    ) -> None:
        self.client = client
        self.throttle = throttle
        self.catalog = catalog
        self.history_turns = history_turns or settings.provider.history_turns

    async def attempt(
        self, utterance: str, language: Language, session: Optional[Session]
    ) -> Resolution:
        if not self.client.enabled:
            return Unavailable(self.name, "disabled")

        service_names = [
            self.catalog.display_name(sid, Language.ENGLISH) for sid in self.catalog.active_ids()
        ]
        prompt = build_intent_prompt(service_names, language.value)
        history = session.recent_history(self.history_turns) if session else []

        try:
            result = await self.throttle.run(
                lambda: self.client.complete(prompt, utterance, history)
            )
        except asyncio.TimeoutError:
            return Unavailable(self.name, "timeout")
        except ThrottleClosedError:
            return Unavailable(self.name, "unavailable")

        if result.status != ProviderStatus.OK:
            return Unavailable(self.name, _STATUS_REASONS.get(result.status, "unavailable"))

        parsed = parse_model_reply(result.text)
        if parsed is None:
            return Unavailable(self.name, "unparseable")
        label, answer = parsed
        return Resolved(
            Intent(
                label=label,
                confidence=LANGUAGE_MODEL_CONFIDENCE,
                source=IntentSource.LANGUAGE_MODEL,
                answer=answer,
            )
        )


class KeywordRuleStrategy:
    """First matching rule table for the active language wins."""

    name = "keyword_rule"

    def __init__(self, rules: Optional[list[IntentRule]] = None) -> None:
        self.rules = ordered_rules(rules if rules is not None else INTENT_RULES)

    async def attempt(
        self, utterance: str, language: Language, session: Optional[Session]
    ) -> Resolution:
        normalized = normalize_utterance(utterance)
        for rule in self.rules:
            if rule.matches(normalized, language):
                return Resolved(
                    Intent(
                        label=rule.label,
                        confidence=KEYWORD_RULE_CONFIDENCE,
                        source=IntentSource.KEYWORD_RULE,
                    )
                )
        return Unavailable(self.name, "no_match")


class ServiceKeywordStrategy:
    """Mentioning a catalog service is read as a booking request."""

    name = "service_keyword"

    def __init__(self, catalog: ServiceCatalog = default_catalog) -> None:
        self.catalog = catalog

    async def attempt(
        self, utterance: str, language: Language, session: Optional[Session]
    ) -> Resolution:
        service_id = self.catalog.match(utterance, language)
        if service_id is None:
            return Unavailable(self.name, "no_match")
        return Resolved(
            Intent(
                label=IntentLabel.BOOKING,
                confidence=SERVICE_KEYWORD_CONFIDENCE,
                source=IntentSource.SERVICE_KEYWORD,
                service_id=service_id,
            )
        )


class DefaultStrategy:
    name = "default"

    async def attempt(
        self, utterance: str, language: Language, session: Optional[Session]
    ) -> Resolution:
        return Resolved(
            Intent(
                label=IntentLabel.GENERAL,
                confidence=DEFAULT_CONFIDENCE,
                source=IntentSource.DEFAULT,
            )
        )


async def resolve_cascade(
    strategies: list[IntentStrategy],
    utterance: str,
    language: Language,
    session: Optional[Session] = None,
) -> Intent:
    """Run strategies in order and return the first resolved intent, with entities."""
    entities = extract_entities(utterance)
    for strategy in strategies:
        resolution = await strategy.attempt(utterance, language, session)
        if isinstance(resolution, Resolved):
            intent = resolution.intent.model_copy(update={"entities": entities})
            logger.debug(
                "Intent resolved: %s (%.1f via %s)",
                intent.label.value,
                intent.confidence,
                intent.source.value,
            )
            return intent
        if resolution.strategy == LanguageModelStrategy.name and resolution.reason != "disabled":
            logger.warning("Language model unavailable (%s), falling back", resolution.reason)
        else:
            logger.debug("Strategy %s skipped: %s", resolution.strategy, resolution.reason)

    logger.warning("No strategy resolved the utterance, using default intent")
    return Intent(
        label=IntentLabel.GENERAL,
        confidence=DEFAULT_CONFIDENCE,
        entities=entities,
        source=IntentSource.DEFAULT,
    )


class IntentResolver:
    """
    Resolves caller intent with graceful degradation.

    Without a provider client the cascade starts at the keyword rules,
    which keeps tests and offline demos fully deterministic.
    """

    def __init__(
        self,
        client: Optional[OpenRouterClient] = None,
        throttle: Optional[RequestThrottle] = None,
        catalog: ServiceCatalog = default_catalog,
        rules: Optional[list[IntentRule]] = None,
        strategies: Optional[list[IntentStrategy]] = None,
    ) -> None:
        if strategies is None:
            strategies = []
            if client is not None and throttle is not None:
                strategies.append(LanguageModelStrategy(client, throttle, catalog))
            strategies.extend([
                KeywordRuleStrategy(rules),
                ServiceKeywordStrategy(catalog),
                DefaultStrategy(),
            ])
        self.strategies = strategies

    async def resolve(
        self, utterance: str, language: Language, session: Optional[Session] = None
    ) -> Intent:
        return await resolve_cascade(self.strategies, utterance, language, session)
