"""Intent labels, extracted entities, and the tagged results of resolver strategies."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field


class IntentLabel(str, Enum):
    """Coarse classification of what the caller wants this turn."""

    BOOKING = "booking"
    TRACKING = "tracking"
    PRICING = "pricing"
    GOODBYE = "goodbye"
    HELP = "help"
    CONFIRM = "confirm"
    GENERAL = "general"


class IntentSource(str, Enum):
    LANGUAGE_MODEL = "language_model"
    KEYWORD_RULE = "keyword_rule"
    SERVICE_KEYWORD = "service_keyword"
    DEFAULT = "default"


class Entities(BaseModel):
    """Regex-extracted values found in the raw utterance."""

    phone_numbers: list[str] = Field(default_factory=list)
    dates: list[str] = Field(default_factory=list)
    order_numbers: list[str] = Field(default_factory=list)


class Intent(BaseModel):
    label: IntentLabel
    confidence: float = Field(ge=0.0, le=1.0)
    entities: Entities = Field(default_factory=Entities)
    source: IntentSource = IntentSource.DEFAULT
    answer: Optional[str] = None
    service_id: Optional[str] = None

    @property
    def is_unclear(self) -> bool:
        """A general label with no informational answer attached."""
        return self.label == IntentLabel.GENERAL and not self.answer


@dataclass(frozen=True)
class Resolved:
    intent: Intent


@dataclass(frozen=True)
class Unavailable:
    strategy: str
    reason: str


Resolution = Union[Resolved, Unavailable]
