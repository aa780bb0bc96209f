from call_agent.conversation.engine import ConversationEngine
from call_agent.conversation.intent_resolver import IntentResolver
from call_agent.conversation.response_composer import ResponseComposer
from call_agent.conversation.session_store import (
    DuplicateSessionError,
    SessionNotFoundError,
    SessionStore,
)
from call_agent.conversation.slot_manager import BookingSlotFiller
from call_agent.conversation.state_machine import (
    DialogEffect,
    DialogInvariantError,
    DialogStateMachine,
)

__all__ = [
    "ConversationEngine",
    "IntentResolver",
    "ResponseComposer",
    "SessionStore",
    "SessionNotFoundError",
    "DuplicateSessionError",
    "BookingSlotFiller",
    "DialogStateMachine",
    "DialogEffect",
    "DialogInvariantError",
]
