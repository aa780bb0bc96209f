"""Shared test fixtures and helpers."""

from datetime import date, datetime
from typing import Optional

import pytest

from call_agent.conversation.engine import ConversationEngine
from call_agent.conversation.intent_resolver import IntentResolver
from call_agent.conversation.response_composer import ResponseComposer
from call_agent.conversation.session_store import SessionStore
from call_agent.conversation.slot_manager import BookingSlotFiller
from call_agent.conversation.state_machine import DialogStateMachine
from call_agent.schemas.conversation_schema import Channel, DialogState, Language, Turn
from call_agent.schemas.intent_schema import Entities, Intent, IntentLabel, IntentSource
from call_agent.schemas.session_schema import Session, SlotKind, SlotValue
from call_agent.services.llm_client import ProviderResult, ProviderStatus
from call_agent.tools.booking import BookingLedger
from call_agent.tools.orders import OrderDirectory
from call_agent.tools.services import ServiceCatalog

# Wednesday
TODAY = date(2026, 3, 11)
NOON = datetime(2026, 3, 11, 12, 30)


class FakeClock:
    """Monotonic clock whose time only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeProvider:
    """Stands in for OpenRouterClient: returns queued results in order."""

    def __init__(self, *results: ProviderResult, enabled: bool = True) -> None:
        self.results = list(results)
        self.enabled = enabled
        self.calls: list[tuple[str, str, list[str]]] = []

    async def complete(self, system_prompt, user_utterance, history=None) -> ProviderResult:
        self.calls.append((system_prompt, user_utterance, list(history or [])))
        if not self.results:
            return ProviderResult(status=ProviderStatus.UNAVAILABLE)
        return self.results.pop(0)

    async def aclose(self) -> None:
        pass


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def catalog():
    return ServiceCatalog()


@pytest.fixture
def store(clock):
    return SessionStore(history_cap=10, clock=clock)


@pytest.fixture
def ledger():
    return BookingLedger()


@pytest.fixture
def machine():
    return DialogStateMachine(max_unclear=2)


@pytest.fixture
def filler(catalog, ledger):
    return BookingSlotFiller(catalog=catalog, sink=ledger, today=lambda: TODAY,
                             advance_booking_days=30)


@pytest.fixture
def composer(catalog):
    return ResponseComposer(catalog=catalog)


@pytest.fixture
def resolver(catalog):
    return IntentResolver(catalog=catalog)


@pytest.fixture
def engine(store, resolver, machine, filler, composer, ledger, catalog):
    return ConversationEngine(
        store=store,
        resolver=resolver,
        machine=machine,
        filler=filler,
        composer=composer,
        orders=OrderDirectory(),
        sink=ledger,
        catalog=catalog,
        now=lambda: NOON,
        development=False,
    )


def make_session(
    state: DialogState = DialogState.MAIN_MENU,
    language: Language = Language.ENGLISH,
    slots: Optional[dict[str, str]] = None,
    unclear_count: int = 0,
    session_id: str = "CA-TEST",
) -> Session:
    """Helper to build a Session with plain string slot values."""
    kinds = {
        "name": SlotKind.TEXT,
        "service_id": SlotKind.SERVICE,
        "contact_number": SlotKind.PHONE,
        "preferred_date": SlotKind.DATE,
        "preferred_time": SlotKind.TIME,
    }
    return Session(
        id=session_id,
        caller_address="+919876543210",
        channel=Channel.CHAT,
        language=language,
        state=state,
        slots={
            name: SlotValue(kind=kinds[name], raw=value, value=value)
            for name, value in (slots or {}).items()
        },
        unclear_count=unclear_count,
    )


def make_intent(
    label: IntentLabel,
    answer: Optional[str] = None,
    order_numbers: Optional[list[str]] = None,
    phone_numbers: Optional[list[str]] = None,
) -> Intent:
    """Helper to build an Intent as the keyword cascade would."""
    return Intent(
        label=label,
        confidence=0.8,
        source=IntentSource.KEYWORD_RULE,
        answer=answer,
        entities=Entities(
            order_numbers=order_numbers or [],
            phone_numbers=phone_numbers or [],
        ),
    )


def say(session_id: str, text: str) -> Turn:
    return Turn(session_id=session_id, utterance=text)


def press(session_id: str, digits: str) -> Turn:
    return Turn(session_id=session_id, digits=digits)
