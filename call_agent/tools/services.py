"""Studio service catalog with per-language names, keywords, and base prices.

Read-only business data. The resolver uses it for service-keyword intent
matching and the booking flow uses it to validate the chosen service.
"""

import logging
from typing import Optional

from call_agent.schemas.conversation_schema import Language
from call_agent.utils import contains_keyword, normalize_utterance

logger = logging.getLogger(__name__)

SERVICE_CATALOG: dict[str, dict] = {
    "wedding_photography": {
        "names": {
            "en": "Wedding Photography & Videography",
            "hi": "शादी की फोटोग्राफी और वीडियोग्राफी",
            "te": "పెళ్లి ఫోటోగ్రఫీ మరియు వీడియోగ్రఫీ",
        },
        "keywords": {
            "en": ["wedding", "marriage", "shaadi", "videography", "pre-wedding",
                   "reception", "ceremony"],
            "hi": ["शादी", "विवाह", "वीडियो", "प्री-वेडिंग", "रिसेप्शन"],
            "te": ["పెళ్లి", "వివాహం", "వీడియో", "రిసెప్షన్"],
        },
        "base_price": 35000,
        "duration_minutes": 480,
        "active": True,
    },
    "portrait_session": {
        "names": {
            "en": "Portrait & Family Photography",
            "hi": "पोर्ट्रेट और पारिवारिक फोटोग्राफी",
            "te": "పోర్ట్రెయిట్ మరియు కుటుంబ ఫోటోగ్రఫీ",
        },
        "keywords": {
            "en": ["portrait", "individual", "family", "couple", "headshot", "studio",
                   "outdoor"],
            "hi": ["पोर्ट्रेट", "व्यक्तिगत", "पारिवारिक", "जोड़े", "स्टूडियो", "आउटडोर"],
            "te": ["పోర్ట్రెయిట్", "కుటుంబ", "జంట", "స్టూడియో"],
        },
        "base_price": 2500,
        "duration_minutes": 90,
        "active": True,
    },
    "birthday_events": {
        "names": {
            "en": "Birthday & Event Photography",
            "hi": "जन्मदिन और इवेंट फोटोग्राफी",
            "te": "పుట్టినరోజు మరియు ఈవెంట్ ఫోటోగ్రఫీ",
        },
        "keywords": {
            "en": ["birthday", "party", "celebration", "anniversary", "corporate",
                   "event", "cake cutting"],
            "hi": ["जन्मदिन", "पार्टी", "सालगिरह", "कॉर्पोरेट", "इवेंट", "केक"],
            "te": ["పుట్టినరోజు", "పార్టీ", "వార్షికోత్సవం", "ఈవెంట్"],
        },
        "base_price": 5000,
        "duration_minutes": 180,
        "active": True,
    },
    "product_commercial": {
        "names": {
            "en": "Product & Commercial Photography",
            "hi": "प्रोडक्ट और कमर्शियल फोटोग्राफी",
            "te": "ప్రొడక్ట్ మరియు కమర్షియల్ ఫోటోగ్రఫీ",
        },
        "keywords": {
            "en": ["product", "business", "commercial", "catalog", "catalogue", "ecommerce",
                   "marketing", "jewelry", "jewellery", "clothing"],
            "hi": ["प्रोडक्ट", "व्यापार", "कैटलॉग", "ई-कॉमर्स", "मार्केटिंग", "ज्वेलरी"],
            "te": ["ప్రొడక్ట్", "వ్యాపార", "కేటలాగ్", "నగలు"],
        },
        "base_price": 3000,
        "duration_minutes": 120,
        "active": True,
    },
    "photo_printing_frames": {
        "names": {
            "en": "Photo Printing & Custom Frames",
            "hi": "फोटो प्रिंटिंग और कस्टम फ्रेम",
            "te": "ఫోటో ప్రింటింగ్ మరియు కస్టమ్ ఫ్రేములు",
        },
        "keywords": {
            "en": ["printing", "print", "frame", "canvas", "album", "lamination"],
            "hi": ["प्रिंटिंग", "फ्रेम", "कैनवास", "एल्बम"],
            "te": ["ప్రింటింగ్", "ఫ్రేమ్", "ఆల్బమ్"],
        },
        "base_price": 50,
        "duration_minutes": 60,
        "active": True,
    },
    "passport_documents": {
        "names": {
            "en": "Passport & Document Photography",
            "hi": "पासपोर्ट और दस्तावेज़ फोटोग्राफी",
            "te": "పాస్‌పోర్ట్ మరియు డాక్యుమెంట్ ఫోటోలు",
        },
        "keywords": {
            "en": ["passport", "visa", "document", "id card", "aadhar", "license"],
            "hi": ["पासपोर्ट", "वीज़ा", "दस्तावेज़", "आधार", "लाइसेंस"],
            "te": ["పాస్‌పోర్ట్", "వీసా", "ఆధార్", "లైసెన్స్"],
        },
        "base_price": 200,
        "duration_minutes": 15,
        "active": True,
    },
    "maternity_newborn": {
        "names": {
            "en": "Maternity & Newborn Photography",
            "hi": "मैटर्निटी और नवजात फोटोग्राफी",
            "te": "మెటర్నిటీ మరియు నవజాత శిశువు ఫోటోగ్రఫీ",
        },
        "keywords": {
            "en": ["maternity", "newborn", "baby", "pregnancy"],
            "hi": ["मैटर्निटी", "नवजात", "बच्चा", "गर्भावस्था"],
            "te": ["మెటర్నిటీ", "నవజాత", "శిశువు", "బిడ్డ"],
        },
        "base_price": 6000,
        "duration_minutes": 120,
        "active": True,
    },
}


class ServiceCatalog:
    """Read-only view over a service catalog mapping.

    Iteration order is the mapping's insertion order, which is also the
    match priority when an utterance mentions more than one service.
    """

    def __init__(self, services: Optional[dict[str, dict]] = None) -> None:
        self._services = services if services is not None else SERVICE_CATALOG

    def active_ids(self) -> list[str]:
        return [sid for sid, info in self._services.items() if info.get("active", True)]

    def is_active(self, service_id: str) -> bool:
        info = self._services.get(service_id)
        return bool(info) and info.get("active", True)

    def display_name(self, service_id: str, language: Language) -> str:
        names = self._services[service_id]["names"]
        return names.get(language.value) or names["en"]

    def base_price(self, service_id: str) -> Optional[int]:
        return self._services[service_id].get("base_price")

    def keywords(self, service_id: str, language: Optional[Language] = None) -> list[str]:
        """Keywords for one language, or for every language when none is given."""
        table = self._services[service_id]["keywords"]
        if language is not None:
            return list(table.get(language.value, []))
        return [kw for words in table.values() for kw in words]

    def match(self, text: str, language: Optional[Language] = None) -> Optional[str]:
        """Match an utterance to an active service ID. Returns None if no match."""
        normalized = normalize_utterance(text)
        for sid in self.active_ids():
            if any(contains_keyword(normalized, kw) for kw in self.keywords(sid, language)):
                return sid
        return None

    def summaries(self, language: Language, limit: Optional[int] = None) -> list[dict]:
        """Active services with localized name and base price."""
        ids = self.active_ids()
        if limit is not None:
            ids = ids[:limit]
        return [
            {
                "id": sid,
                "name": self.display_name(sid, language),
                "base_price": self.base_price(sid),
            }
            for sid in ids
        ]


default_catalog = ServiceCatalog()
