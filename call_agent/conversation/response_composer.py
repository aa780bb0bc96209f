"""
Renders dialog decisions into spoken text and a next-input directive.

Composition is pure: the same state, effects, slots, and language always
produce the same Reply. The only external data read is the service
catalog (for service names and prices) and business details from
configuration.
"""

from datetime import datetime
from typing import Optional

from call_agent.config import settings
from call_agent.conversation.state_machine import DialogEffect
from call_agent.prompts.messages import render
from call_agent.schemas.conversation_schema import (
    DialogState,
    InputDirective,
    InputMode,
    Language,
    Reply,
)
from call_agent.schemas.intent_schema import Intent
from call_agent.tools.services import ServiceCatalog, default_catalog

PRICING_SERVICE_LIMIT = 3

ROUTE_LANGUAGE_SELECT = "language_select"
ROUTE_PROCESS_INTENT = "process_intent"
ROUTE_HANDLE_BOOKING = "handle_booking"
ROUTE_HANDLE_TRACKING = "handle_tracking"

STATE_HINTS: dict[DialogState, list[str]] = {
    DialogState.MAIN_MENU: ["booking", "appointment", "price", "wedding", "photo"],
    DialogState.BOOKING_START: ["name", "my name is", "I am", "call me"],
    DialogState.BOOKING_SERVICE: ["wedding", "portrait", "birthday", "product", "photo"],
    DialogState.BOOKING_CONTACT: ["phone", "number", "mobile"],
    DialogState.BOOKING_DATE: ["today", "tomorrow", "Monday", "Saturday"],
    DialogState.TRACKING_START: ["order", "number", "tracking"],
}

STATE_ROUTES: dict[DialogState, str] = {
    DialogState.LANGUAGE_SELECTION: ROUTE_LANGUAGE_SELECT,
    DialogState.MAIN_MENU: ROUTE_PROCESS_INTENT,
    DialogState.BOOKING_START: ROUTE_HANDLE_BOOKING,
    DialogState.BOOKING_SERVICE: ROUTE_HANDLE_BOOKING,
    DialogState.BOOKING_CONTACT: ROUTE_HANDLE_BOOKING,
    DialogState.BOOKING_DATE: ROUTE_HANDLE_BOOKING,
    DialogState.TRACKING_START: ROUTE_HANDLE_TRACKING,
}


def greeting_key(hour: int) -> str:
    if hour < 12:
        return "greeting_morning"
    if hour < 17:
        return "greeting_afternoon"
    return "greeting_evening"


def directive_for(state: DialogState, hangup: bool = False) -> InputDirective:
    """What the transport should gather after a reply that leaves the dialog in ``state``."""
    dialog = settings.dialog
    if hangup or state not in STATE_ROUTES:
        return InputDirective(input_mode=InputMode.NONE, hangup=True)
    if state == DialogState.LANGUAGE_SELECTION:
        return InputDirective(
            input_mode=InputMode.KEYPAD,
            timeout_seconds=dialog.keypad_timeout_seconds,
            next_route_key=ROUTE_LANGUAGE_SELECT,
        )
    timeout = (
        dialog.contact_timeout_seconds
        if state == DialogState.BOOKING_CONTACT
        else dialog.speech_timeout_seconds
    )
    return InputDirective(
        input_mode=InputMode.SPEECH,
        timeout_seconds=timeout,
        next_route_key=STATE_ROUTES[state],
        hints=list(STATE_HINTS.get(state, [])),
    )


def pricing_summary(language: Language, catalog: ServiceCatalog = default_catalog) -> str:
    """First few active services with their starting price."""
    items = [
        render("pricing_item", language, service=s["name"], price=s["base_price"])
        for s in catalog.summaries(language, limit=PRICING_SERVICE_LIMIT)
        if s["base_price"] is not None
    ]
    return " ".join([
        render("pricing_intro", language),
        ", ".join(items) + ".",
        render("pricing_outro", language),
    ])


class ResponseComposer:
    """Maps (state, effects, slots, language) to a Reply."""

    def __init__(self, catalog: ServiceCatalog = default_catalog) -> None:
        self.catalog = catalog

    def welcome(self, state: DialogState, language: Language, now: Optional[datetime] = None) -> Reply:
        """
        First reply of a session.

        At language selection the greeting and keypad prompt are read in
        every supported language, since the caller's language is not known yet.
        """
        key = greeting_key((now or datetime.now()).hour)
        if state == DialogState.LANGUAGE_SELECTION:
            languages = list(Language)
            text = " ".join(
                [render(key, lang) for lang in languages]
                + [render("language_prompt", lang) for lang in languages]
            )
        else:
            text = f"{render(key, language)} {render('main_menu', language)}"
        return Reply(text=text, directive=directive_for(state))

    def technical_difficulty(self, language: Language) -> Reply:
        """Apology read in English and the caller's language, then hang up."""
        languages = [Language.ENGLISH] if language == Language.ENGLISH else [Language.ENGLISH, language]
        text = " ".join(render("technical_difficulty", lang) for lang in languages)
        return Reply(text=text, directive=directive_for(DialogState.GOODBYE, hangup=True))

    def compose(
        self,
        state: DialogState,
        intent: Optional[Intent],
        slots: dict[str, str],
        language: Language,
        effects: list[DialogEffect],
        order_status: Optional[str] = None,
        retry_reason: Optional[str] = None,
        booking_id: Optional[str] = None,
    ) -> Reply:
        """Render every effect in order and attach the directive for ``state``."""
        parts: list[str] = []
        for effect in effects:
            parts.extend(self._render_effect(effect, state, intent, slots, language,
                                             order_status, retry_reason, booking_id))
        hangup = DialogEffect.END_CALL in effects
        return Reply(text=" ".join(p for p in parts if p), directive=directive_for(state, hangup))

    def _render_effect(
        self,
        effect: DialogEffect,
        state: DialogState,
        intent: Optional[Intent],
        slots: dict[str, str],
        language: Language,
        order_status: Optional[str],
        retry_reason: Optional[str],
        booking_id: Optional[str],
    ) -> list[str]:
        if effect in (DialogEffect.LANGUAGE_SELECTED, DialogEffect.SHOW_MENU):
            return [render("main_menu", language)]
        if effect == DialogEffect.START_BOOKING:
            return [render("booking_get_name", language)]
        if effect == DialogEffect.ASK_SLOT:
            return [self._slot_prompt(state, slots, language)]
        if effect == DialogEffect.RETRY_SLOT:
            return self._retry_prompt(state, slots, language, retry_reason)
        if effect == DialogEffect.BOOKING_COMPLETE:
            return [self._booking_confirmation(slots, language, booking_id),
                    render("main_menu", language)]
        if effect == DialogEffect.ASK_ORDER_NUMBER:
            return [render("tracking_start", language)]
        if effect == DialogEffect.ORDER_NOT_FOUND:
            return [render("tracking_not_found", language)]
        if effect == DialogEffect.REPORT_ORDER_STATUS:
            return [order_status or ""]
        if effect == DialogEffect.LIST_PRICES:
            return [pricing_summary(language, self.catalog)]
        if effect == DialogEffect.SHOW_HELP:
            return [
                render("business_info", language),
                render("working_hours", language),
                render("main_menu", language),
            ]
        if effect == DialogEffect.ANSWER_QUESTION:
            answer = intent.answer if intent is not None else None
            return [answer or "", render("anything_else", language)]
        if effect == DialogEffect.CLARIFY:
            return [render("not_understood", language), render("menu_hint", language)]
        if effect == DialogEffect.ESCALATE:
            return [render("not_understood", language), render("main_menu", language)]
        if effect == DialogEffect.END_CALL:
            return [render("goodbye", language)]
        return []

    def _booking_confirmation(
        self, slots: dict[str, str], language: Language, booking_id: Optional[str]
    ) -> str:
        """Read back the booking id, service, date, optional time and callback number."""
        when = slots.get("preferred_date", "")
        if slots.get("preferred_time"):
            when = render("booking_date_time", language, date=when, time=slots["preferred_time"])
        return render(
            "booking_confirm",
            language,
            name=slots.get("name", ""),
            booking_id=booking_id or "",
            service=self._service_name(slots.get("service_id"), language),
            when=when,
            contact=slots.get("contact_number", ""),
        )

    def _slot_prompt(self, state: DialogState, slots: dict[str, str], language: Language) -> str:
        if state == DialogState.BOOKING_START:
            return render("booking_get_name", language)
        if state == DialogState.BOOKING_SERVICE:
            return render("booking_get_service", language, name=slots.get("name", ""))
        if state == DialogState.BOOKING_CONTACT:
            return render(
                "booking_get_contact",
                language,
                service=self._service_name(slots.get("service_id"), language),
            )
        if state == DialogState.BOOKING_DATE:
            return render("booking_get_date", language)
        return render("main_menu", language)

    def _retry_prompt(
        self,
        state: DialogState,
        slots: dict[str, str],
        language: Language,
        retry_reason: Optional[str],
    ) -> list[str]:
        if retry_reason == "unknown_service":
            lead = render("booking_unknown_service", language)
        elif retry_reason == "out_of_range":
            lead = render(
                "booking_date_out_of_range",
                language,
                days=settings.dialog.advance_booking_days,
            )
        else:
            lead = render("booking_retry", language)
        return [lead, self._slot_prompt(state, slots, language)]

    def _service_name(self, service_id: Optional[str], language: Language) -> str:
        if service_id and self.catalog.is_active(service_id):
            return self.catalog.display_name(service_id, language)
        return service_id or ""
