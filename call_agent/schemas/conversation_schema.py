"""Conversation-level enums and the transport-facing turn schemas."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Language(str, Enum):
    ENGLISH = "en"
    HINDI = "hi"
    TELUGU = "te"


class Channel(str, Enum):
    VOICE = "voice"
    CHAT = "chat"


class Speaker(str, Enum):
    AGENT = "agent"
    USER = "user"


class DialogState(str, Enum):
    """Every node the dialog can be in. Nothing outside this set is reachable."""

    LANGUAGE_SELECTION = "language_selection"
    MAIN_MENU = "main_menu"
    BOOKING_START = "booking_start"
    BOOKING_SERVICE = "booking_service"
    BOOKING_CONTACT = "booking_contact"
    BOOKING_DATE = "booking_date"
    TRACKING_START = "tracking_start"
    PRICING = "pricing"
    GOODBYE = "goodbye"


BOOKING_STATES: frozenset[DialogState] = frozenset({
    DialogState.BOOKING_START,
    DialogState.BOOKING_SERVICE,
    DialogState.BOOKING_CONTACT,
    DialogState.BOOKING_DATE,
})

TERMINAL_STATES: frozenset[DialogState] = frozenset({
    DialogState.PRICING,
    DialogState.GOODBYE,
})


class InputMode(str, Enum):
    SPEECH = "speech"
    KEYPAD = "keypad"
    NONE = "none"


class InputDirective(BaseModel):
    """What the transport should gather next, independent of markup format."""

    input_mode: InputMode
    timeout_seconds: int = 0
    next_route_key: str = ""
    hints: list[str] = Field(default_factory=list)
    hangup: bool = False


class Reply(BaseModel):
    """Rendered agent reply: spoken text plus the next-input directive."""

    text: str
    directive: InputDirective


class Turn(BaseModel):
    """One inbound turn from the transport."""

    session_id: str
    caller_address: str = ""
    utterance: Optional[str] = None
    digits: Optional[str] = None


class TurnResponse(BaseModel):
    """Abstract response tuple handed back to the transport."""

    ok: bool = True
    session_id: str
    spoken_text: str = ""
    input_mode: InputMode = InputMode.NONE
    timeout_seconds: int = 0
    next_route_key: str = ""
    hints: list[str] = Field(default_factory=list)
    hangup: bool = False
    session_ended: bool = False
    state: Optional[DialogState] = None
    error: Optional[str] = None

    @classmethod
    def from_reply(
        cls,
        session_id: str,
        reply: Reply,
        state: Optional[DialogState],
        session_ended: bool,
    ) -> "TurnResponse":
        return cls(
            session_id=session_id,
            spoken_text=reply.text,
            input_mode=reply.directive.input_mode,
            timeout_seconds=reply.directive.timeout_seconds,
            next_route_key=reply.directive.next_route_key,
            hints=list(reply.directive.hints),
            hangup=reply.directive.hangup,
            session_ended=session_ended,
            state=state,
        )

    @classmethod
    def invalid_request(cls, session_id: str, error: str) -> "TurnResponse":
        return cls(ok=False, session_id=session_id, error=error)
