"""
Slot-filling for the booking flow: one slot per booking sub-state.

Slots are collected in a fixed order (name -> service -> contact number ->
preferred date). Each turn's utterance is parsed as the value of the slot
owned by the current sub-state. A value that cannot be parsed re-prompts
the same slot; it never advances the state and never counts toward the
dialog's unclear limit. A preferred time is optional and is picked up
from the date utterance when present.

Usage:
    filler = BookingSlotFiller()
    result = filler.fill(session, "My name is Asha", intent)
    assert result.state == DialogState.BOOKING_SERVICE
"""

import logging
import re
import time
import uuid
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, Optional

from call_agent.config import settings
from call_agent.conversation.state_machine import DialogEffect, DialogInvariantError
from call_agent.schemas.booking_schema import BookingEvent
from call_agent.schemas.conversation_schema import DialogState
from call_agent.schemas.intent_schema import Intent
from call_agent.schemas.session_schema import Session, SlotKind, SlotValue
from call_agent.tools.booking import BookingSink
from call_agent.tools.services import ServiceCatalog, default_catalog
from call_agent.utils import normalize_phone, normalize_utterance

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2

_NAME_LEAD_INS = re.compile(
    r"^(?:my name is|my name's|name is|i am|i'm|this is|call me|it's|it is|मेरा नाम|నా పేరు)\s*",
    re.IGNORECASE,
)
_NAME_TRAILERS = re.compile(r"\s*(?:है|हूँ|हूं|అండి|అని)$")

_ISO_DATE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
_DMY_DATE = re.compile(r"\b(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})\b")
_TIME_12H = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm|a\.m\.|p\.m\.)(?![a-z])", re.IGNORECASE)
_TIME_24H = re.compile(r"\b([01]?\d|2[0-3]):([0-5]\d)\b")
_TIME_HI = re.compile(r"(\d{1,2})\s*बजे")

# Longest phrases first so "day after tomorrow" wins over "tomorrow"
RELATIVE_DAYS: list[tuple[str, int]] = [
    ("day after tomorrow", 2),
    ("tomorrow", 1),
    ("today", 0),
    ("परसों", 2),
    ("कल", 1),
    ("आज", 0),
    ("ఎల్లుండి", 2),
    ("రేపు", 1),
    ("ఈ రోజు", 0),
    ("ఈరోజు", 0),
]

WEEKDAYS: dict[str, int] = {
    "monday": 0, "tuesday": 1, "wednesday": 2, "thursday": 3,
    "friday": 4, "saturday": 5, "sunday": 6,
    "सोमवार": 0, "मंगलवार": 1, "बुधवार": 2, "गुरुवार": 3,
    "शुक्रवार": 4, "शनिवार": 5, "रविवार": 6,
    "సోమవారం": 0, "మంగళవారం": 1, "బుధవారం": 2, "గురువారం": 3,
    "శుక్రవారం": 4, "శనివారం": 5, "ఆదివారం": 6,
}


@dataclass(frozen=True)
class SlotDefinition:
    """Schema for a single booking slot."""

    name: str
    state: DialogState
    kind: SlotKind
    display_name: str


@dataclass
class SlotFillResult:
    state: DialogState
    slots: dict[str, SlotValue]
    effect: DialogEffect
    retry_reason: Optional[str] = None
    event: Optional[BookingEvent] = None


def parse_name(text: str) -> Optional[str]:
    """Strip conversational lead-ins and title-case what is left."""
    value = text.strip().strip(".!,?")
    value = _NAME_LEAD_INS.sub("", value)
    value = _NAME_TRAILERS.sub("", value).strip(" .,!")
    if len(value) < MIN_NAME_LENGTH:
        return None
    return " ".join(word.capitalize() for word in value.split())


def parse_time(text: str) -> Optional[str]:
    """Find a clock time in ``text`` and return it as HH:MM."""
    match = _TIME_12H.search(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if not 1 <= hour <= 12 or minute > 59:
            return None
        meridiem = match.group(3).lower()[0]
        if meridiem == "p" and hour != 12:
            hour += 12
        elif meridiem == "a" and hour == 12:
            hour = 0
        return f"{hour:02d}:{minute:02d}"
    match = _TIME_24H.search(text)
    if match:
        return f"{int(match.group(1)):02d}:{match.group(2)}"
    match = _TIME_HI.search(text)
    if match and 1 <= int(match.group(1)) <= 12:
        return f"{int(match.group(1)):02d}:00"
    return None


def parse_date(text: str, today: date) -> Optional[date]:
    """Parse an explicit, relative, or weekday date. Does not check the booking window."""
    match = _ISO_DATE.search(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        return _safe_date(year, month, day)
    match = _DMY_DATE.search(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        return _safe_date(year, month, day)

    normalized = normalize_utterance(text)
    for phrase, offset in RELATIVE_DAYS:
        if phrase in normalized:
            return today + timedelta(days=offset)
    for name, weekday in WEEKDAYS.items():
        if name in normalized:
            ahead = (weekday - today.weekday()) % 7 or 7
            return today + timedelta(days=ahead)
    return None


def _safe_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def generate_booking_id() -> str:
    return f"BK-{int(time.time() * 1000):x}-{uuid.uuid4().hex[:6].upper()}"


class BookingSlotFiller:
    """
    Collects booking slots for the booking sub-states.

    ``fill`` is side-effect free: it returns the next state, the updated
    slots, and, once the last slot is accepted, the completed BookingEvent.
    The engine commits the session first and then calls ``publish``.
    """

    SLOT_DEFINITIONS: list[SlotDefinition] = [
        SlotDefinition("name", DialogState.BOOKING_START, SlotKind.TEXT, "name"),
        SlotDefinition("service_id", DialogState.BOOKING_SERVICE, SlotKind.SERVICE, "service"),
        SlotDefinition("contact_number", DialogState.BOOKING_CONTACT, SlotKind.PHONE,
                       "contact number"),
        SlotDefinition("preferred_date", DialogState.BOOKING_DATE, SlotKind.DATE,
                       "preferred date"),
    ]

    def __init__(
        self,
        catalog: ServiceCatalog = default_catalog,
        sink: Optional[BookingSink] = None,
        today: Callable[[], date] = date.today,
        advance_booking_days: Optional[int] = None,
    ) -> None:
        self.catalog = catalog
        self.sink = sink
        self._today = today
        self.advance_booking_days = advance_booking_days or settings.dialog.advance_booking_days

    def definition_for(self, state: DialogState) -> SlotDefinition:
        for defn in self.SLOT_DEFINITIONS:
            if defn.state == state:
                return defn
        raise DialogInvariantError(f"No booking slot is collected in state '{state.value}'")

    def next_missing(self, slots: dict[str, SlotValue]) -> Optional[SlotDefinition]:
        """The first slot in collection order that has no value yet."""
        for defn in self.SLOT_DEFINITIONS:
            if defn.name not in slots:
                return defn
        return None

    def is_complete(self, slots: dict[str, SlotValue]) -> bool:
        return self.next_missing(slots) is None

    def fill(self, session: Session, utterance: str, intent: Intent) -> SlotFillResult:
        """Parse ``utterance`` as the current sub-state's slot and advance."""
        defn = self.definition_for(session.state)
        slots = dict(session.slots)

        if defn.name not in slots:
            parsed, reason = self._parse(defn, utterance, intent)
            if parsed is None:
                logger.debug("Slot '%s' not accepted (%s): %r", defn.name, reason, utterance)
                return SlotFillResult(
                    session.state, slots, DialogEffect.RETRY_SLOT, retry_reason=reason
                )
            slots[defn.name] = parsed
            logger.debug("Slot '%s' set to '%s'", defn.name, parsed.value)
            if defn.name == "preferred_date":
                preferred_time = parse_time(utterance)
                if preferred_time:
                    slots["preferred_time"] = SlotValue(
                        kind=SlotKind.TIME, raw=utterance, value=preferred_time
                    )

        following = self.next_missing(slots)
        if following is not None:
            return SlotFillResult(following.state, slots, DialogEffect.ASK_SLOT)

        event = BookingEvent(
            booking_id=generate_booking_id(),
            session_id=session.id,
            caller_address=session.caller_address,
            language=session.language,
            slots={name: slot.value for name, slot in slots.items()},
        )
        return SlotFillResult(DialogState.MAIN_MENU, {}, DialogEffect.BOOKING_COMPLETE, event=event)

    def publish(self, event: BookingEvent) -> bool:
        """Hand a completed booking to the sink. Failures are logged, not retried."""
        if self.sink is None:
            logger.warning("No booking sink configured, booking %s not delivered", event.booking_id)
            return False
        try:
            self.sink.emit(event)
        except Exception:
            logger.exception("Booking sink failed for %s", event.booking_id)
            return False
        return True

    def _parse(
        self, defn: SlotDefinition, utterance: str, intent: Intent
    ) -> tuple[Optional[SlotValue], Optional[str]]:
        raw = utterance.strip()
        if not raw:
            return None, "empty"

        if defn.kind == SlotKind.TEXT:
            name = parse_name(raw)
            if name is None:
                return None, "unrecognized"
            return SlotValue(kind=defn.kind, raw=raw, value=name), None

        if defn.kind == SlotKind.SERVICE:
            service_id = self.catalog.match(raw)
            if service_id is None:
                return None, "unknown_service"
            return SlotValue(kind=defn.kind, raw=raw, value=service_id), None

        if defn.kind == SlotKind.PHONE:
            phones = intent.entities.phone_numbers
            value = normalize_phone(phones[0]) if phones else raw
            return SlotValue(kind=defn.kind, raw=raw, value=value), None

        if defn.kind == SlotKind.DATE:
            today = self._today()
            parsed = parse_date(raw, today)
            if parsed is None:
                return None, "unrecognized"
            if not today <= parsed <= today + timedelta(days=self.advance_booking_days):
                return None, "out_of_range"
            return SlotValue(kind=defn.kind, raw=raw, value=parsed.isoformat()), None

        raise DialogInvariantError(f"Unsupported slot kind '{defn.kind.value}'")
