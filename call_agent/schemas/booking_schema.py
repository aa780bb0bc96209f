"""Booking completion event handed to the persistence collaborator."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from call_agent.schemas.conversation_schema import Language


class BookingEvent(BaseModel):
    """Emitted once per completed booking."""

    booking_id: str
    session_id: str
    caller_address: str
    language: Language
    slots: dict[str, str]
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def customer_name(self) -> str:
        return self.slots.get("name", "")

    @property
    def service_id(self) -> str:
        return self.slots.get("service_id", "")
