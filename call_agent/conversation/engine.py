"""
Per-turn conversation orchestration.

One ConversationEngine serves every call in the process. A turn flows:

    SessionStore.find -> IntentResolver.resolve (may await the provider)
    -> re-check the session still exists -> DialogStateMachine.transition
    -> BookingSlotFiller (booking sub-states) -> ResponseComposer.compose
    -> commit to the SessionStore (or end the session) -> publish booking

Everything after the resolver await runs without yielding, so a turn's
decision and its commit can never interleave with another coroutine.
"""

import asyncio
from datetime import datetime
from typing import Callable, Optional

from call_agent.config import settings
from call_agent.conversation.intent_resolver import KEYWORD_RULE_CONFIDENCE, IntentResolver
from call_agent.conversation.intent_rules import rule_for
from call_agent.conversation.language import detect_language, select_language
from call_agent.conversation.response_composer import ResponseComposer
from call_agent.conversation.session_store import DuplicateSessionError, SessionStore
from call_agent.conversation.slot_manager import BookingSlotFiller
from call_agent.conversation.state_machine import (
    DialogEffect,
    DialogInvariantError,
    DialogStateMachine,
)
from call_agent.logging_context import get_session_logger, session_context
from call_agent.schemas.conversation_schema import (
    Channel,
    DialogState,
    Language,
    Reply,
    Speaker,
    Turn,
    TurnResponse,
)
from call_agent.schemas.intent_schema import Intent, IntentLabel, IntentSource
from call_agent.schemas.session_schema import Session, SessionPatch, SlotKind, SlotValue
from call_agent.services.llm_client import OpenRouterClient
from call_agent.services.throttle import RequestThrottle
from call_agent.tools.booking import BookingLedger, BookingSink
from call_agent.tools.orders import OrderDirectory
from call_agent.tools.services import ServiceCatalog, default_catalog
from call_agent.utils import normalize_utterance

logger = get_session_logger(__name__)


class ConversationEngine:
    """
    Orchestrates sessions, intent resolution, dialog flow, and replies.

    Collaborators are injectable; anything left out gets an in-memory
    default. Without a provider client, intents come from the keyword
    cascade only.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        resolver: Optional[IntentResolver] = None,
        machine: Optional[DialogStateMachine] = None,
        filler: Optional[BookingSlotFiller] = None,
        composer: Optional[ResponseComposer] = None,
        orders: Optional[OrderDirectory] = None,
        sink: Optional[BookingSink] = None,
        catalog: ServiceCatalog = default_catalog,
        client: Optional[OpenRouterClient] = None,
        throttle: Optional[RequestThrottle] = None,
        now: Callable[[], datetime] = datetime.now,
        development: Optional[bool] = None,
    ) -> None:
        self.store = store or SessionStore()
        self.client = client
        self.throttle = throttle
        self.resolver = resolver or IntentResolver(client=client, throttle=throttle, catalog=catalog)
        self.machine = machine or DialogStateMachine()
        self.sink = sink if sink is not None else BookingLedger()
        self.filler = filler or BookingSlotFiller(catalog=catalog, sink=self.sink)
        self.composer = composer or ResponseComposer(catalog=catalog)
        self.orders = orders or OrderDirectory()
        self.default_language = Language(settings.business.default_language)
        self.development = settings.is_development if development is None else development
        self._now = now
        self._goodbye_rule = rule_for(IntentLabel.GOODBYE)
        self._sweeper: Optional[asyncio.Task] = None

    @classmethod
    def from_settings(cls, **overrides) -> "ConversationEngine":
        """Build an engine wired to the configured provider, if one is enabled."""
        if settings.provider.enabled and "client" not in overrides:
            overrides["client"] = OpenRouterClient(settings.provider)
            overrides.setdefault(
                "throttle",
                RequestThrottle(
                    min_interval=settings.provider.min_interval_ms / 1000,
                    timeout=settings.provider.timeout_seconds,
                ),
            )
        return cls(**overrides)

    async def start(self) -> None:
        """Start the throttle worker and the periodic session sweep."""
        if self.throttle is not None:
            self.throttle.start()
        if self._sweeper is None:
            self._sweeper = asyncio.get_running_loop().create_task(self.store.run_sweeper())
        logger.info("Conversation engine started (%s)", settings.agent_name)

    async def close(self) -> None:
        if self._sweeper is not None:
            self._sweeper.cancel()
            try:
                await self._sweeper
            except asyncio.CancelledError:
                pass
            self._sweeper = None
        if self.throttle is not None:
            await self.throttle.close()
        if self.client is not None:
            await self.client.aclose()
        logger.info("Conversation engine stopped")

    def start_session(
        self,
        session_id: str,
        caller_address: str = "",
        channel: Channel = Channel.VOICE,
        language: Optional[Language] = None,
        first_message: Optional[str] = None,
    ) -> TurnResponse:
        """
        Create a session and return its welcome reply.

        Voice sessions start at language selection. Chat sessions go
        straight to the main menu in the given language, the language
        detected from ``first_message``, or the configured default.
        """
        if channel == Channel.CHAT and language is None and first_message:
            language = detect_language(first_message, self.default_language)
        with session_context(session_id):
            try:
                session = self.store.create(
                    session_id, caller_address, channel=channel, language=language
                )
            except DuplicateSessionError:
                logger.warning("Session %s already active, ignoring new start", session_id)
                return TurnResponse.invalid_request(session_id, "session_exists")

            reply = self.composer.welcome(session.state, session.language, self._now())
            self.store.append_history(session_id, Speaker.AGENT, reply.text)
        return TurnResponse.from_reply(session_id, reply, session.state, session_ended=False)

    def end_session(self, session_id: str) -> bool:
        """Transport signalled the call is over. Safe to call more than once."""
        return self.store.end(session_id)

    async def handle_turn(self, turn: Turn) -> TurnResponse:
        with session_context(turn.session_id):
            return await self._handle_turn(turn)

    async def _handle_turn(self, turn: Turn) -> TurnResponse:
        session = self.store.find(turn.session_id)
        if session is None:
            logger.warning("Turn for unknown session %s", turn.session_id)
            return TurnResponse.invalid_request(turn.session_id, "session_not_found")

        try:
            return await self._process(session, turn)
        except DialogInvariantError:
            if self.development:
                raise
            logger.exception("Dialog invariant violated, ending call")
            self.store.end(session.id)
            reply = self.composer.technical_difficulty(session.language)
            return TurnResponse.from_reply(session.id, reply, DialogState.GOODBYE, session_ended=True)

    async def _process(self, session: Session, turn: Turn) -> TurnResponse:
        if session.state == DialogState.LANGUAGE_SELECTION:
            return self._select_language(session, turn)

        utterance = (turn.utterance or "").strip()
        if not utterance:
            logger.info("Empty utterance in state %s", session.state.value)
            return TurnResponse.invalid_request(session.id, "empty_input")

        self.store.append_history(session.id, Speaker.USER, utterance)
        intent = await self.resolver.resolve(utterance, session.language, session)

        current = self.store.find(session.id)
        if current is None:
            logger.info("Session ended while resolving intent, discarding result")
            return TurnResponse.invalid_request(session.id, "session_ended")

        result = self.machine.transition(current, intent)
        effects = list(result.effects)
        patch = {"state": result.new_state, "unclear_count": result.unclear_count}
        reply_slots = current.slot_values()
        retry_reason = None
        event = None

        if effects == [DialogEffect.ASK_SLOT]:
            filled = self.filler.fill(current, utterance, intent)
            effects = [filled.effect]
            retry_reason = filled.retry_reason
            patch.update(state=filled.state, slots=filled.slots)
            reply_slots = {name: slot.value for name, slot in filled.slots.items()}
            if filled.event is not None:
                event = filled.event
                reply_slots = dict(event.slots)
                patch["completed_booking_ids"] = current.completed_booking_ids + [event.booking_id]
        elif DialogEffect.START_BOOKING in effects:
            # A service named in the booking request is kept for the service step
            patch["slots"] = {}
            if intent.service_id:
                patch["slots"]["service_id"] = SlotValue(
                    kind=SlotKind.SERVICE, raw=utterance, value=intent.service_id
                )
            reply_slots = {}

        order_status = None
        if DialogEffect.REPORT_ORDER_STATUS in effects and result.order_number:
            order_status = self.orders.status(result.order_number, current.language)

        new_state = patch["state"]
        reply = self.composer.compose(
            new_state,
            intent,
            reply_slots,
            current.language,
            effects,
            order_status=order_status,
            retry_reason=retry_reason,
            booking_id=event.booking_id if event is not None else None,
        )

        if result.ends_call:
            self.store.end(current.id)
        else:
            self.store.update(current.id, SessionPatch(**patch))
            self.store.append_history(current.id, Speaker.AGENT, reply.text)

        if event is not None:
            logger.info("Booking completed: %s", event.booking_id)
            self.filler.publish(event)

        return TurnResponse.from_reply(current.id, reply, new_state, session_ended=result.ends_call)

    def _select_language(self, session: Session, turn: Turn) -> TurnResponse:
        if turn.utterance:
            self.store.append_history(session.id, Speaker.USER, turn.utterance)
            if self._goodbye_rule.matches_any_language(normalize_utterance(turn.utterance)):
                return self._hang_up_before_language(session, turn.utterance)

        language = select_language(turn.digits, turn.utterance)
        if language is None:
            language = (
                detect_language(turn.utterance, self.default_language)
                if turn.utterance
                else self.default_language
            )
            logger.info("No language choice recognized, using %s", language.value)

        result = self.machine.choose_language(session, language)
        self.store.update(
            session.id,
            SessionPatch(language=language, state=result.new_state, unclear_count=0),
        )
        reply: Reply = self.composer.compose(
            result.new_state, None, {}, language, result.effects
        )
        self.store.append_history(session.id, Speaker.AGENT, reply.text)
        return TurnResponse.from_reply(session.id, reply, result.new_state, session_ended=False)

    def _hang_up_before_language(self, session: Session, utterance: str) -> TurnResponse:
        """Goodbye said instead of a language choice: say goodbye in the script used."""
        intent = Intent(
            label=IntentLabel.GOODBYE,
            confidence=KEYWORD_RULE_CONFIDENCE,
            source=IntentSource.KEYWORD_RULE,
        )
        result = self.machine.transition(session, intent)
        language = detect_language(utterance, Language.ENGLISH)
        reply = self.composer.compose(result.new_state, intent, {}, language, result.effects)
        self.store.end(session.id)
        logger.info("Caller hung up during language selection")
        return TurnResponse.from_reply(
            session.id, reply, result.new_state, session_ended=result.ends_call
        )
