"""Tests for the dialog state machine."""

import pytest

from call_agent.conversation.state_machine import (
    DialogEffect,
    DialogInvariantError,
    DialogStateMachine,
)
from call_agent.schemas.conversation_schema import DialogState, Language
from call_agent.schemas.intent_schema import IntentLabel
from tests.conftest import make_intent, make_session


class TestLanguageSelection:
    def test_choose_language_goes_to_main_menu(self, machine):
        session = make_session(DialogState.LANGUAGE_SELECTION)
        result = machine.choose_language(session, Language.TELUGU)
        assert result.new_state == DialogState.MAIN_MENU
        assert result.effects == [DialogEffect.LANGUAGE_SELECTED]
        assert result.language == Language.TELUGU

    def test_choose_language_outside_selection_rejected(self, machine):
        with pytest.raises(DialogInvariantError):
            machine.choose_language(make_session(DialogState.MAIN_MENU), Language.ENGLISH)


class TestMainMenuRouting:
    @pytest.mark.parametrize("label,state,effects", [
        (IntentLabel.BOOKING, DialogState.BOOKING_START, [DialogEffect.START_BOOKING]),
        (IntentLabel.TRACKING, DialogState.TRACKING_START, [DialogEffect.ASK_ORDER_NUMBER]),
        (IntentLabel.PRICING, DialogState.PRICING,
         [DialogEffect.LIST_PRICES, DialogEffect.END_CALL]),
        (IntentLabel.HELP, DialogState.MAIN_MENU, [DialogEffect.SHOW_HELP]),
        (IntentLabel.CONFIRM, DialogState.MAIN_MENU, [DialogEffect.SHOW_MENU]),
        (IntentLabel.GOODBYE, DialogState.GOODBYE, [DialogEffect.END_CALL]),
    ])
    def test_routes(self, machine, label, state, effects):
        result = machine.transition(make_session(), make_intent(label))
        assert result.new_state == state
        assert result.effects == effects

    def test_pricing_ends_call(self, machine):
        result = machine.transition(make_session(), make_intent(IntentLabel.PRICING))
        assert result.ends_call

    def test_tracking_with_order_number_reports_directly(self, machine):
        intent = make_intent(IntentLabel.TRACKING, order_numbers=["100234"])
        result = machine.transition(make_session(), intent)
        assert result.new_state == DialogState.GOODBYE
        assert result.effects == [DialogEffect.REPORT_ORDER_STATUS, DialogEffect.END_CALL]
        assert result.order_number == "100234"

    def test_general_with_answer(self, machine):
        intent = make_intent(IntentLabel.GENERAL, answer="We open at 10 AM.")
        result = machine.transition(make_session(), intent)
        assert result.new_state == DialogState.MAIN_MENU
        assert result.effects == [DialogEffect.ANSWER_QUESTION]
        assert result.unclear_count == 0

    def test_recognized_intent_resets_unclear_count(self, machine):
        session = make_session(unclear_count=1)
        result = machine.transition(session, make_intent(IntentLabel.HELP))
        assert result.unclear_count == 0


class TestUnclear:
    def test_first_unclear_clarifies(self, machine):
        result = machine.transition(make_session(), make_intent(IntentLabel.GENERAL))
        assert result.new_state == DialogState.MAIN_MENU
        assert result.effects == [DialogEffect.CLARIFY]
        assert result.unclear_count == 1

    def test_limit_escalates_and_resets(self, machine):
        session = make_session(unclear_count=1)
        result = machine.transition(session, make_intent(IntentLabel.GENERAL))
        assert result.new_state == DialogState.MAIN_MENU
        assert result.effects == [DialogEffect.ESCALATE]
        assert result.unclear_count == 0

    def test_higher_limit_allows_more_retries(self):
        machine = DialogStateMachine(max_unclear=3)
        session = make_session(unclear_count=1)
        result = machine.transition(session, make_intent(IntentLabel.GENERAL))
        assert result.effects == [DialogEffect.CLARIFY]
        assert result.unclear_count == 2


class TestTracking:
    def test_order_number_reports_status(self, machine):
        session = make_session(DialogState.TRACKING_START)
        intent = make_intent(IntentLabel.GENERAL, order_numbers=["100235"])
        result = machine.transition(session, intent)
        assert result.new_state == DialogState.GOODBYE
        assert result.order_number == "100235"
        assert result.ends_call

    def test_missing_order_number_asks_again(self, machine):
        session = make_session(DialogState.TRACKING_START)
        result = machine.transition(session, make_intent(IntentLabel.GENERAL))
        assert result.new_state == DialogState.TRACKING_START
        assert result.effects == [DialogEffect.ORDER_NOT_FOUND]
        assert result.unclear_count == 1

    def test_repeated_missing_order_number_escalates(self, machine):
        session = make_session(DialogState.TRACKING_START, unclear_count=1)
        result = machine.transition(session, make_intent(IntentLabel.GENERAL))
        assert result.new_state == DialogState.MAIN_MENU
        assert result.effects == [DialogEffect.ESCALATE]

    def test_goodbye_preempts_tracking(self, machine):
        session = make_session(DialogState.TRACKING_START)
        result = machine.transition(session, make_intent(IntentLabel.GOODBYE))
        assert result.new_state == DialogState.GOODBYE


class TestBookingStates:
    @pytest.mark.parametrize("state", [
        DialogState.BOOKING_START,
        DialogState.BOOKING_SERVICE,
        DialogState.BOOKING_CONTACT,
        DialogState.BOOKING_DATE,
    ])
    def test_booking_states_hand_off_to_slot_filler(self, machine, state):
        result = machine.transition(make_session(state), make_intent(IntentLabel.PRICING))
        assert result.new_state == state
        assert result.effects == [DialogEffect.ASK_SLOT]

    def test_booking_keeps_unclear_count(self, machine):
        session = make_session(DialogState.BOOKING_DATE, unclear_count=1)
        result = machine.transition(session, make_intent(IntentLabel.GENERAL))
        assert result.unclear_count == 1

    def test_goodbye_preempts_booking(self, machine):
        session = make_session(DialogState.BOOKING_CONTACT, slots={"name": "Asha"})
        result = machine.transition(session, make_intent(IntentLabel.GOODBYE))
        assert result.new_state == DialogState.GOODBYE
        assert result.ends_call


class TestInvariants:
    @pytest.mark.parametrize("state", [
        DialogState.LANGUAGE_SELECTION,
        DialogState.PRICING,
    ])
    def test_unhandled_state_raises(self, machine, state):
        with pytest.raises(DialogInvariantError):
            machine.transition(make_session(state), make_intent(IntentLabel.HELP))

    def test_goodbye_from_any_state(self, machine):
        for state in DialogState:
            result = machine.transition(make_session(state), make_intent(IntentLabel.GOODBYE))
            assert result.new_state == DialogState.GOODBYE
