"""
Finite state machine for deterministic dialog flow control.

Maps (current state, resolved intent) to (next state, effects). Every
main-menu route is an explicit Transition; booking sub-states are handed
to the slot filler, and goodbye pre-empts from every state.

Usage:
    machine = DialogStateMachine()
    result = machine.transition(session, intent)
    assert result.new_state == DialogState.BOOKING_START
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from call_agent.config import settings
from call_agent.schemas.conversation_schema import (
    BOOKING_STATES,
    TERMINAL_STATES,
    DialogState,
    Language,
)
from call_agent.schemas.intent_schema import Intent, IntentLabel
from call_agent.schemas.session_schema import Session

logger = logging.getLogger(__name__)


class DialogEffect(str, Enum):
    """Side effects of a turn, rendered in order by the response composer."""

    LANGUAGE_SELECTED = "language_selected"
    SHOW_MENU = "show_menu"
    START_BOOKING = "start_booking"
    ASK_SLOT = "ask_slot"
    RETRY_SLOT = "retry_slot"
    BOOKING_COMPLETE = "booking_complete"
    ASK_ORDER_NUMBER = "ask_order_number"
    ORDER_NOT_FOUND = "order_not_found"
    REPORT_ORDER_STATUS = "report_order_status"
    LIST_PRICES = "list_prices"
    SHOW_HELP = "show_help"
    ANSWER_QUESTION = "answer_question"
    CLARIFY = "clarify"
    ESCALATE = "escalate"
    END_CALL = "end_call"


@dataclass(frozen=True)
class Transition:
    """A single main-menu route."""

    label: IntentLabel
    to_state: DialogState
    effects: tuple[DialogEffect, ...]


@dataclass
class TransitionResult:
    new_state: DialogState
    effects: list[DialogEffect] = field(default_factory=list)
    unclear_count: int = 0
    language: Optional[Language] = None
    order_number: Optional[str] = None

    @property
    def ends_call(self) -> bool:
        return DialogEffect.END_CALL in self.effects


class DialogInvariantError(Exception):
    """Raised when the dialog reaches a state it has no handling for."""


class DialogStateMachine:
    """
    Deterministic dialog controller.

    Holds no per-call state of its own: everything it needs comes from the
    session passed in, and everything it decides comes back in the
    TransitionResult for the engine to commit.
    """

    MAIN_MENU_TRANSITIONS: list[Transition] = [
        Transition(IntentLabel.BOOKING, DialogState.BOOKING_START,
                   (DialogEffect.START_BOOKING,)),
        Transition(IntentLabel.TRACKING, DialogState.TRACKING_START,
                   (DialogEffect.ASK_ORDER_NUMBER,)),
        Transition(IntentLabel.PRICING, DialogState.PRICING,
                   (DialogEffect.LIST_PRICES, DialogEffect.END_CALL)),
        Transition(IntentLabel.HELP, DialogState.MAIN_MENU,
                   (DialogEffect.SHOW_HELP,)),
        Transition(IntentLabel.CONFIRM, DialogState.MAIN_MENU,
                   (DialogEffect.SHOW_MENU,)),
    ]

    def __init__(self, max_unclear: Optional[int] = None) -> None:
        self.max_unclear = max_unclear or settings.dialog.max_unclear_per_state

    def choose_language(self, session: Session, language: Language) -> TransitionResult:
        """Leave language selection for the main menu in the chosen language."""
        if session.state != DialogState.LANGUAGE_SELECTION:
            raise DialogInvariantError(
                f"Language chosen outside language selection (state '{session.state.value}')"
            )
        logger.debug("Language selected: %s", language.value)
        return TransitionResult(
            new_state=DialogState.MAIN_MENU,
            effects=[DialogEffect.LANGUAGE_SELECTED],
            language=language,
        )

    def transition(self, session: Session, intent: Intent) -> TransitionResult:
        """
        Decide the next state for a resolved intent.

        Raises:
            DialogInvariantError: If the session's state has no handler.
        """
        state = session.state
        if intent.label == IntentLabel.GOODBYE:
            result = TransitionResult(DialogState.GOODBYE, [DialogEffect.END_CALL])
        elif state == DialogState.MAIN_MENU:
            result = self._from_main_menu(session, intent)
        elif state in BOOKING_STATES:
            result = TransitionResult(state, [DialogEffect.ASK_SLOT], session.unclear_count)
        elif state == DialogState.TRACKING_START:
            result = self._from_tracking(session, intent)
        else:
            reason = "terminal" if state in TERMINAL_STATES else "unhandled"
            raise DialogInvariantError(
                f"No transition from {reason} state '{state.value}' "
                f"with intent '{intent.label.value}'"
            )

        logger.debug(
            "State transition: %s -> %s (intent: %s, effects: %s)",
            state.value,
            result.new_state.value,
            intent.label.value,
            [e.value for e in result.effects],
        )
        return result

    def _from_main_menu(self, session: Session, intent: Intent) -> TransitionResult:
        if intent.label == IntentLabel.TRACKING and intent.entities.order_numbers:
            return self._report_order(intent.entities.order_numbers[0])

        for t in self.MAIN_MENU_TRANSITIONS:
            if t.label == intent.label:
                return TransitionResult(t.to_state, list(t.effects))

        if intent.answer:
            return TransitionResult(DialogState.MAIN_MENU, [DialogEffect.ANSWER_QUESTION])
        return self._unclear(session, [DialogEffect.CLARIFY])

    def _from_tracking(self, session: Session, intent: Intent) -> TransitionResult:
        if intent.entities.order_numbers:
            return self._report_order(intent.entities.order_numbers[0])
        return self._unclear(session, [DialogEffect.ORDER_NOT_FOUND])

    def _report_order(self, order_number: str) -> TransitionResult:
        return TransitionResult(
            DialogState.GOODBYE,
            [DialogEffect.REPORT_ORDER_STATUS, DialogEffect.END_CALL],
            order_number=order_number,
        )

    def _unclear(self, session: Session, effects: list[DialogEffect]) -> TransitionResult:
        """Count an unclear turn; at the cap, escalate to the full main menu."""
        count = session.unclear_count + 1
        if count >= self.max_unclear:
            logger.info(
                "Unclear limit reached in %s (%d), escalating", session.state.value, count
            )
            return TransitionResult(DialogState.MAIN_MENU, [DialogEffect.ESCALATE])
        return TransitionResult(session.state, effects, unclear_count=count)
