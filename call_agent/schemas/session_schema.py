"""Per-call session state and the validated patch used to mutate it."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from call_agent.schemas.conversation_schema import (
    Channel,
    DialogState,
    Language,
    Speaker,
)

BOOKING_SLOT_NAMES: tuple[str, ...] = (
    "name",
    "service_id",
    "contact_number",
    "preferred_date",
    "preferred_time",
)


class SlotKind(str, Enum):
    """Type tag for a collected slot value."""

    TEXT = "text"
    SERVICE = "service"
    PHONE = "phone"
    DATE = "date"
    TIME = "time"


class SlotValue(BaseModel):
    """A single collected slot: the raw utterance and its accepted value."""

    model_config = ConfigDict(frozen=True)

    kind: SlotKind
    raw: str
    value: str = Field(min_length=1)


@dataclass
class HistoryEntry:
    speaker: Speaker
    text: str
    timestamp: float


@dataclass
class Session:
    """
    One active call or chat conversation.

    Lives only in the SessionStore; every field except ``id`` changes
    through a SessionPatch or one of the store's dedicated setters.
    """

    id: str
    caller_address: str
    channel: Channel = Channel.VOICE
    language: Language = Language.HINDI
    state: DialogState = DialogState.LANGUAGE_SELECTION
    slots: dict[str, SlotValue] = field(default_factory=dict)
    history: list[HistoryEntry] = field(default_factory=list)
    unclear_count: int = 0
    completed_booking_ids: list[str] = field(default_factory=list)
    created_at: float = 0.0
    last_activity_at: float = 0.0

    def slot_values(self) -> dict[str, str]:
        """Flat name -> accepted value view of the collected slots."""
        return {name: slot.value for name, slot in self.slots.items()}

    def recent_history(self, turns: int) -> list[str]:
        return [f"{entry.speaker.value}: {entry.text}" for entry in self.history[-turns:]]


class SessionPatch(BaseModel):
    """
    Partial session update, validated before it is merged.

    Unknown fields are rejected, so a typo can never introduce a stray
    attribute on the session.
    """

    model_config = ConfigDict(extra="forbid")

    caller_address: Optional[str] = None
    language: Optional[Language] = None
    state: Optional[DialogState] = None
    slots: Optional[dict[str, SlotValue]] = None
    unclear_count: Optional[int] = Field(default=None, ge=0)
    completed_booking_ids: Optional[list[str]] = None

    @field_validator("slots")
    @classmethod
    def _known_slot_names(
        cls, value: Optional[dict[str, SlotValue]]
    ) -> Optional[dict[str, SlotValue]]:
        if value is None:
            return value
        unknown = sorted(set(value) - set(BOOKING_SLOT_NAMES))
        if unknown:
            raise ValueError(f"Unknown slot names: {unknown}")
        return value

    def apply_to(self, session: Session) -> None:
        """Copy every explicitly-set, non-null field onto ``session``."""
        for name in self.model_fields_set:
            value = getattr(self, name)
            if value is None:
                continue
            if name == "slots":
                value = dict(value)
            elif name == "completed_booking_ids":
                value = list(value)
            setattr(session, name, value)
