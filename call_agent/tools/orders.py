"""
Mock order status lookup.

In production, this would query the studio's order management system for
print, album, and edit jobs. Order numbers are digit runs so callers can
read them out or key them in.
"""

import logging
from typing import Optional, TypedDict

from call_agent.schemas.conversation_schema import Language

logger = logging.getLogger(__name__)

ORDER_STATUSES = ("pending", "processing", "ready", "delivered", "cancelled")


class OrderRecord(TypedDict):
    """Order record stored in the system."""

    order_number: str
    customer_name: str
    phone: str
    service_id: str
    status: str
    notes: str


STATUS_MESSAGES: dict[str, dict[str, str]] = {
    "pending": {
        "en": "Your order {order} has been received and is waiting to be processed.",
        "hi": "आपका ऑर्डर {order} मिल गया है और प्रोसेसिंग का इंतज़ार कर रहा है।",
        "te": "మీ ఆర్డర్ {order} అందింది, ప్రాసెసింగ్ కోసం వేచి ఉంది.",
    },
    "processing": {
        "en": "Your order {order} is currently being processed. We will call you once it is ready.",
        "hi": "आपका ऑर्डर {order} अभी तैयार हो रहा है। तैयार होने पर हम आपको कॉल करेंगे।",
        "te": "మీ ఆర్డర్ {order} ప్రస్తుతం సిద్ధమవుతోంది. సిద్ధమైన తర్వాత మేము కాల్ చేస్తాము.",
    },
    "ready": {
        "en": "Good news! Your order {order} is ready for pickup at the studio.",
        "hi": "खुशखबरी! आपका ऑर्डर {order} स्टूडियो से लेने के लिए तैयार है।",
        "te": "శుభవార్త! మీ ఆర్డర్ {order} స్టూడియోలో తీసుకోవడానికి సిద్ధంగా ఉంది.",
    },
    "delivered": {
        "en": "Your order {order} has already been delivered. Thank you for choosing us.",
        "hi": "आपका ऑर्डर {order} डिलीवर हो चुका है। हमें चुनने के लिए धन्यवाद।",
        "te": "మీ ఆర్డర్ {order} ఇప్పటికే డెలివర్ అయింది. మమ్మల్ని ఎంచుకున్నందుకు ధన్యవాదాలు.",
    },
    "cancelled": {
        "en": "Your order {order} has been cancelled. Please call the studio for details.",
        "hi": "आपका ऑर्डर {order} रद्द कर दिया गया है। जानकारी के लिए स्टूडियो को कॉल करें।",
        "te": "మీ ఆర్డర్ {order} రద్దు చేయబడింది. వివరాల కోసం స్టూడియోకు కాల్ చేయండి.",
    },
}

_SAMPLE_ORDERS: dict[str, OrderRecord] = {
    "100234": {
        "order_number": "100234",
        "customer_name": "Rahul Sharma",
        "phone": "+919876543210",
        "service_id": "wedding_photography",
        "status": "processing",
        "notes": "Album of 200 photos with video highlights.",
    },
    "100235": {
        "order_number": "100235",
        "customer_name": "Priya Patel",
        "phone": "+919876543211",
        "service_id": "portrait_session",
        "status": "ready",
        "notes": "Family portrait, 10 prints in 8x10.",
    },
}


class OrderDirectory:
    """In-memory order lookup with localized status messages."""

    def __init__(self, orders: Optional[dict[str, OrderRecord]] = None) -> None:
        source = orders if orders is not None else _SAMPLE_ORDERS
        self._orders: dict[str, OrderRecord] = {k: dict(v) for k, v in source.items()}

    def lookup(self, order_number: str) -> Optional[OrderRecord]:
        """Look up an order by number. Returns None if not found."""
        record = self._orders.get(order_number.strip())
        if record:
            logger.debug("Order found: %s (%s)", order_number, record["status"])
        return record

    def status(self, order_number: str, language: Language) -> str:
        """Spoken status for an order. Unknown orders get the generic processing text."""
        record = self.lookup(order_number)
        status = record["status"] if record else "processing"
        if record is None:
            logger.info("Order %s not in directory, using generic status", order_number)
        messages = STATUS_MESSAGES.get(status, STATUS_MESSAGES["processing"])
        template = messages.get(language.value) or messages["en"]
        return template.format(order=order_number)

    def set_status(self, order_number: str, status: str) -> None:
        """Update an order's status (used by tests and the console demo)."""
        if status not in ORDER_STATUSES:
            raise ValueError(f"Unknown order status: {status!r}")
        if order_number not in self._orders:
            raise KeyError(order_number)
        self._orders[order_number]["status"] = status
        logger.info("Order %s status set to %s", order_number, status)
