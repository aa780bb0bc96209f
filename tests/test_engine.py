"""End-to-end conversation tests through the ConversationEngine."""

import pytest

from call_agent.conversation.engine import ConversationEngine
from call_agent.prompts.messages import render
from call_agent.schemas.conversation_schema import (
    Channel,
    DialogState,
    InputMode,
    Language,
    Speaker,
)
from call_agent.schemas.intent_schema import Intent, IntentLabel, IntentSource
from tests.conftest import NOON, press, say


async def _to_main_menu(engine, session_id="CA1", digits="2"):
    engine.start_session(session_id, "+919876543210")
    return await engine.handle_turn(press(session_id, digits))


async def _book(engine, session_id="CA1"):
    """Drive a full booking and return the final response."""
    await _to_main_menu(engine, session_id)
    await engine.handle_turn(say(session_id, "I want to book an appointment"))
    await engine.handle_turn(say(session_id, "My name is Asha"))
    await engine.handle_turn(say(session_id, "portrait"))
    await engine.handle_turn(say(session_id, "98765 43210"))
    return await engine.handle_turn(say(session_id, "tomorrow at 5 pm"))


# ── Tests: session start ─────────────────────────────────────────────


class TestStartSession:
    def test_voice_session_asks_for_language(self, engine):
        response = engine.start_session("CA1", "+919876543210")
        assert response.ok
        assert response.state == DialogState.LANGUAGE_SELECTION
        assert response.input_mode == InputMode.KEYPAD
        assert render("language_prompt", Language.TELUGU) in response.spoken_text

    def test_chat_session_detects_language(self, engine, store):
        response = engine.start_session(
            "CH1", "chat-user", channel=Channel.CHAT, first_message="నమస్కారం"
        )
        assert response.state == DialogState.MAIN_MENU
        assert response.input_mode == InputMode.SPEECH
        assert store.get("CH1").language == Language.TELUGU

    def test_duplicate_session_rejected(self, engine):
        engine.start_session("CA1", "+919876543210")
        response = engine.start_session("CA1", "+919876543210")
        assert not response.ok
        assert response.error == "session_exists"

    def test_welcome_recorded_in_history(self, engine, store):
        engine.start_session("CA1", "+919876543210")
        history = store.get("CA1").history
        assert len(history) == 1
        assert history[0].speaker == Speaker.AGENT


# ── Tests: language selection ────────────────────────────────────────


class TestLanguageSelection:
    @pytest.mark.asyncio
    async def test_keypad_choice(self, engine, store):
        response = await _to_main_menu(engine, digits="3")
        assert response.state == DialogState.MAIN_MENU
        assert response.spoken_text == render("main_menu", Language.TELUGU)
        assert store.get("CA1").language == Language.TELUGU

    @pytest.mark.asyncio
    async def test_spoken_choice(self, engine, store):
        engine.start_session("CA1", "+919876543210")
        await engine.handle_turn(say("CA1", "English please"))
        assert store.get("CA1").language == Language.ENGLISH

    @pytest.mark.asyncio
    async def test_unrecognized_choice_uses_default(self, engine, store):
        engine.start_session("CA1", "+919876543210")
        response = await engine.handle_turn(press("CA1", "9"))
        assert response.state == DialogState.MAIN_MENU
        assert store.get("CA1").language == Language.HINDI

    @pytest.mark.asyncio
    async def test_goodbye_instead_of_choice_ends_call(self, engine, store):
        engine.start_session("CA1", "+919876543210")
        response = await engine.handle_turn(say("CA1", "goodbye"))
        assert response.state == DialogState.GOODBYE
        assert response.hangup
        assert response.session_ended
        assert render("goodbye", Language.ENGLISH) in response.spoken_text
        assert "CA1" not in store

    @pytest.mark.asyncio
    async def test_hindi_goodbye_answered_in_hindi(self, engine, store):
        engine.start_session("CA1", "+919876543210")
        response = await engine.handle_turn(say("CA1", "धन्यवाद"))
        assert response.session_ended
        assert render("goodbye", Language.HINDI) in response.spoken_text
        assert "CA1" not in store


# ── Tests: main flows ────────────────────────────────────────────────


class TestBookingFlow:
    @pytest.mark.asyncio
    async def test_full_booking(self, engine, store, ledger):
        response = await _book(engine)
        assert response.state == DialogState.MAIN_MENU
        assert "Thank you Asha!" in response.spoken_text
        assert not response.hangup
        assert len(ledger) == 1
        event = ledger.all()[0]
        assert event.booking_id in response.spoken_text
        assert "2026-03-12 at 17:00" in response.spoken_text
        assert "9876543210" in response.spoken_text
        assert event.slots == {
            "name": "Asha",
            "service_id": "portrait_session",
            "contact_number": "9876543210",
            "preferred_date": "2026-03-12",
            "preferred_time": "17:00",
        }
        session = store.get("CA1")
        assert session.slots == {}
        assert session.completed_booking_ids == [event.booking_id]

    @pytest.mark.asyncio
    async def test_steps_through_booking_states(self, engine):
        await _to_main_menu(engine)
        states = []
        for text in ["book a session", "Asha", "wedding", "9876543210"]:
            states.append((await engine.handle_turn(say("CA1", text))).state)
        assert states == [
            DialogState.BOOKING_START,
            DialogState.BOOKING_SERVICE,
            DialogState.BOOKING_CONTACT,
            DialogState.BOOKING_DATE,
        ]

    @pytest.mark.asyncio
    async def test_confirm_after_booking_does_not_emit_again(self, engine, ledger):
        await _book(engine)
        response = await engine.handle_turn(say("CA1", "yes"))
        assert response.state == DialogState.MAIN_MENU
        assert len(ledger) == 1

    @pytest.mark.asyncio
    async def test_invalid_service_reprompts(self, engine, store):
        await _to_main_menu(engine)
        await engine.handle_turn(say("CA1", "book a session"))
        await engine.handle_turn(say("CA1", "Asha"))
        response = await engine.handle_turn(say("CA1", "something nice"))
        assert response.state == DialogState.BOOKING_SERVICE
        assert render("booking_unknown_service", Language.ENGLISH) in response.spoken_text
        assert store.get("CA1").unclear_count == 0

    @pytest.mark.asyncio
    async def test_service_named_up_front_is_kept(self, engine):
        await _to_main_menu(engine)
        first = await engine.handle_turn(say("CA1", "wedding shoot"))
        assert first.state == DialogState.BOOKING_START
        response = await engine.handle_turn(say("CA1", "Asha"))
        assert response.state == DialogState.BOOKING_CONTACT

    @pytest.mark.asyncio
    async def test_goodbye_mid_booking_discards_slots(self, engine, store, ledger):
        await _to_main_menu(engine)
        await engine.handle_turn(say("CA1", "book a session"))
        await engine.handle_turn(say("CA1", "Asha"))
        response = await engine.handle_turn(say("CA1", "bye"))
        assert response.hangup
        assert response.session_ended
        assert "CA1" not in store
        assert len(ledger) == 0

    @pytest.mark.asyncio
    async def test_name_containing_bye_keeps_booking(self, engine, store):
        await _to_main_menu(engine)
        await engine.handle_turn(say("CA1", "book a session"))
        response = await engine.handle_turn(say("CA1", "My name is Byers"))
        assert response.state == DialogState.BOOKING_SERVICE
        assert not response.session_ended
        assert store.get("CA1").slots["name"].value == "Byers"

    @pytest.mark.asyncio
    async def test_hindi_booking_prompt(self, engine):
        await _to_main_menu(engine, digits="1")
        response = await engine.handle_turn(say("CA1", "मुझे बुकिंग करनी है"))
        assert response.state == DialogState.BOOKING_START
        assert response.spoken_text == render("booking_get_name", Language.HINDI)


class TestPricingFlow:
    @pytest.mark.asyncio
    async def test_pricing_lists_prices_and_hangs_up(self, engine, store):
        await _to_main_menu(engine)
        response = await engine.handle_turn(say("CA1", "what are your prices"))
        assert response.state == DialogState.PRICING
        assert "₹35000" in response.spoken_text
        assert response.hangup
        assert response.session_ended
        assert "CA1" not in store


class TestTrackingFlow:
    @pytest.mark.asyncio
    async def test_asks_for_order_number_then_reports(self, engine, store):
        await _to_main_menu(engine)
        first = await engine.handle_turn(say("CA1", "track my order"))
        assert first.state == DialogState.TRACKING_START
        response = await engine.handle_turn(say("CA1", "it is 100235"))
        assert response.state == DialogState.GOODBYE
        assert "ready for pickup" in response.spoken_text
        assert response.hangup
        assert "CA1" not in store

    @pytest.mark.asyncio
    async def test_order_number_in_first_request(self, engine):
        await _to_main_menu(engine)
        response = await engine.handle_turn(say("CA1", "where is my order 100234"))
        assert response.state == DialogState.GOODBYE
        assert "100234" in response.spoken_text

    @pytest.mark.asyncio
    async def test_missing_order_number_reprompts(self, engine):
        await _to_main_menu(engine)
        await engine.handle_turn(say("CA1", "track my order"))
        response = await engine.handle_turn(say("CA1", "I don't have it"))
        assert response.state == DialogState.TRACKING_START
        assert render("tracking_not_found", Language.ENGLISH) in response.spoken_text


class TestUnclearFlow:
    @pytest.mark.asyncio
    async def test_clarify_then_escalate(self, engine, store):
        await _to_main_menu(engine)
        first = await engine.handle_turn(say("CA1", "blah blah"))
        assert render("menu_hint", Language.ENGLISH) in first.spoken_text
        assert store.get("CA1").unclear_count == 1
        second = await engine.handle_turn(say("CA1", "blah blah"))
        assert second.state == DialogState.MAIN_MENU
        assert render("main_menu", Language.ENGLISH) in second.spoken_text
        assert store.get("CA1").unclear_count == 0


# ── Tests: invalid requests and failures ─────────────────────────────


class TestInvalidRequests:
    @pytest.mark.asyncio
    async def test_unknown_session(self, engine):
        response = await engine.handle_turn(say("nobody", "hello"))
        assert not response.ok
        assert response.error == "session_not_found"

    @pytest.mark.asyncio
    async def test_empty_utterance(self, engine, store):
        await _to_main_menu(engine)
        response = await engine.handle_turn(say("CA1", "   "))
        assert response.error == "empty_input"
        assert store.get("CA1").state == DialogState.MAIN_MENU

    @pytest.mark.asyncio
    async def test_ended_session_rejects_turns(self, engine):
        await _to_main_menu(engine)
        assert engine.end_session("CA1") is True
        assert engine.end_session("CA1") is False
        response = await engine.handle_turn(say("CA1", "hello"))
        assert response.error == "session_not_found"

    @pytest.mark.asyncio
    async def test_result_discarded_when_session_ends_mid_turn(
        self, store, machine, filler, composer, ledger, catalog
    ):
        class EndingResolver:
            async def resolve(self, utterance, language, session=None):
                store.end(session.id)
                return Intent(label=IntentLabel.BOOKING, confidence=0.8,
                              source=IntentSource.KEYWORD_RULE)

        engine = ConversationEngine(
            store=store, resolver=EndingResolver(), machine=machine, filler=filler,
            composer=composer, sink=ledger, catalog=catalog, now=lambda: NOON,
            development=False,
        )
        engine.start_session("CA1", "chat", channel=Channel.CHAT, language=Language.ENGLISH)
        response = await engine.handle_turn(say("CA1", "book"))
        assert response.error == "session_ended"
        assert "CA1" not in store


class TestInvariantFailures:
    @pytest.mark.asyncio
    async def test_unhandled_state_ends_call_politely(self, engine, store):
        store.create("CA1", "+919876543210", language=Language.HINDI, state=DialogState.PRICING)
        response = await engine.handle_turn(say("CA1", "help"))
        assert response.ok
        assert response.state == DialogState.GOODBYE
        assert response.hangup
        assert render("technical_difficulty", Language.HINDI) in response.spoken_text
        assert "CA1" not in store

    @pytest.mark.asyncio
    async def test_development_mode_raises(self, engine, store):
        from call_agent.conversation.state_machine import DialogInvariantError

        engine.development = True
        store.create("CA1", "+919876543210", state=DialogState.PRICING)
        with pytest.raises(DialogInvariantError):
            await engine.handle_turn(say("CA1", "help"))


class TestInvariantsAcrossTurns:
    @pytest.mark.asyncio
    async def test_state_always_a_dialog_state(self, engine):
        responses = [await _to_main_menu(engine)]
        for text in ["help", "blah", "book", "Asha", "print", "9876543210", "friday"]:
            responses.append(await engine.handle_turn(say("CA1", text)))
        assert all(isinstance(r.state, DialogState) for r in responses)

    @pytest.mark.asyncio
    async def test_history_records_both_speakers(self, engine, store):
        await _to_main_menu(engine)
        await engine.handle_turn(say("CA1", "help"))
        speakers = [entry.speaker for entry in store.get("CA1").history]
        assert speakers[-2:] == [Speaker.USER, Speaker.AGENT]


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_and_close(self, engine):
        await engine.start()
        assert engine._sweeper is not None
        await engine.close()
        assert engine._sweeper is None
