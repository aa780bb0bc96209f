"""
Spoken message templates, keyed by message and language.

Every key carries an English, Hindi, and Telugu variant. Business values
({business}, {address}, {phone}, {hours}) are filled from configuration by
``render``; anything else must be passed by the caller.
"""

from call_agent.config import settings
from call_agent.schemas.conversation_schema import Language

MESSAGES: dict[str, dict[str, str]] = {
    "greeting_morning": {
        "en": "Good morning! Welcome to {business}.",
        "hi": "सुप्रभात! {business} में आपका स्वागत है।",
        "te": "శుభోదయం! {business}కు స్వాగతం.",
    },
    "greeting_afternoon": {
        "en": "Good afternoon! Welcome to {business}.",
        "hi": "नमस्ते! {business} में आपका स्वागत है।",
        "te": "నమస్కారం! {business}కు స్వాగతం.",
    },
    "greeting_evening": {
        "en": "Good evening! Welcome to {business}.",
        "hi": "शुभ संध्या! {business} में आपका स्वागत है।",
        "te": "శుభ సాయంత్రం! {business}కు స్వాగతం.",
    },
    "language_prompt": {
        "en": "Press 1 for Hindi, 2 for English, 3 for Telugu.",
        "hi": "हिंदी के लिए 1, अंग्रेजी के लिए 2, तेलुगु के लिए 3 दबाएं।",
        "te": "హిందీ కోసం 1, ఇంగ్లీష్ కోసం 2, తెలుగు కోసం 3 నొక్కండి.",
    },
    "main_menu": {
        "en": "How can I help you? Say book appointment, track order, get pricing, or goodbye.",
        "hi": "मैं आपकी कैसे सहायता करूं? बुकिंग, ऑर्डर ट्रैक, कीमत, या अलविदा कहें।",
        "te": "నేను మీకు ఎలా సహాయం చేయగలను? బుకింగ్, ఆర్డర్ ట్రాక్, ధర, లేదా వీడ్కోలు అని చెప్పండి.",
    },
    "menu_hint": {
        "en": "You can say booking, tracking, pricing, or goodbye.",
        "hi": "आप बुकिंग, ट्रैकिंग, कीमत, या अलविदा कह सकते हैं।",
        "te": "మీరు బుకింగ్, ట్రాకింగ్, ధర, లేదా వీడ్కోలు అని చెప్పవచ్చు.",
    },
    "anything_else": {
        "en": "Is there anything else I can help you with?",
        "hi": "क्या मैं आपकी और कोई मदद कर सकता हूं?",
        "te": "ఇంకా ఏమైనా సహాయం కావాలా?",
    },
    "not_understood": {
        "en": "Sorry, I did not understand. Please try again.",
        "hi": "माफ़ करें, समझ नहीं आया। फिर से कोशिश करें।",
        "te": "క్షమించండి, నాకు అర్థం కాలేదు. దయచేసి మళ్ళీ ప్రయత్నించండి.",
    },
    "goodbye": {
        "en": "Thank you for calling {business}. Have a great day!",
        "hi": "{business} को कॉल करने के लिए धन्यवाद। शुभ दिन!",
        "te": "{business}కు కాల్ చేసినందుకు ధన్యవాదాలు. మీ రోజు శుభంగా ఉండాలి!",
    },
    "business_info": {
        "en": "{business} is located at {address}. You can reach us at {phone}.",
        "hi": "{business} {address} में है। फोन {phone}।",
        "te": "{business} {address}లో ఉంది. మమ్మల్ని {phone}లో సంప్రదించవచ్చు.",
    },
    "working_hours": {
        "en": "We are open {hours}.",
        "hi": "हमारा समय: {hours}।",
        "te": "మా పని వేళలు: {hours}.",
    },
    "booking_get_name": {
        "en": "I can help you book a photography session. May I have your name please?",
        "hi": "मैं फोटोग्राफी सेशन बुक करने में मदद करूंगा। आपका नाम क्या है?",
        "te": "ఫోటోగ్రఫీ సెషన్ బుక్ చేయడంలో నేను సహాయం చేస్తాను. మీ పేరు చెప్పండి?",
    },
    "booking_get_service": {
        "en": "Thank you {name}. Which service? Say wedding, portrait, birthday, product photography, or photo printing.",
        "hi": "धन्यवाद {name}। कौन सी सेवा? शादी, पोर्ट्रेट, जन्मदिन, प्रोडक्ट फोटोग्राफी, या प्रिंटिंग?",
        "te": "ధన్యవాదాలు {name}. ఏ సేవ కావాలి? పెళ్లి, పోర్ట్రెయిట్, పుట్టినరోజు, ప్రొడక్ట్ ఫోటోగ్రఫీ, లేదా ప్రింటింగ్?",
    },
    "booking_get_contact": {
        "en": "{service} selected. Please provide your phone number.",
        "hi": "{service} सेवा चुनी गई। कृपया अपना फोन नंबर बताएं।",
        "te": "{service} ఎంచుకున్నారు. దయచేసి మీ ఫోన్ నంబర్ చెప్పండి.",
    },
    "booking_get_date": {
        "en": "Which date would you prefer? You can say tomorrow, a weekday, or a date.",
        "hi": "कौन सी तारीख पसंद करेंगे? आप कल, कोई दिन, या तारीख बता सकते हैं।",
        "te": "ఏ తేదీ కావాలి? రేపు, వారం రోజు, లేదా తేదీ చెప్పవచ్చు.",
    },
    "booking_retry": {
        "en": "Sorry, I did not catch that.",
        "hi": "माफ़ करें, मैं समझ नहीं पाया।",
        "te": "క్షమించండి, నాకు అర్థం కాలేదు.",
    },
    "booking_unknown_service": {
        "en": "Sorry, I could not find that service.",
        "hi": "माफ़ करें, वह सेवा नहीं मिली।",
        "te": "క్షమించండి, ఆ సేవ దొరకలేదు.",
    },
    "booking_date_out_of_range": {
        "en": "We can only book within the next {days} days.",
        "hi": "हम केवल अगले {days} दिनों के भीतर बुकिंग कर सकते हैं।",
        "te": "మేము రాబోయే {days} రోజుల్లో మాత్రమే బుక్ చేయగలము.",
    },
    "booking_confirm": {
        "en": "Thank you {name}! Your booking {booking_id} for {service} on {when} is noted. Our team will call you on {contact}.",
        "hi": "धन्यवाद {name}! {when} को {service} के लिए आपकी बुकिंग {booking_id} दर्ज हो गई है। हमारी टीम आपको {contact} पर कॉल करेगी।",
        "te": "ధన్యవాదాలు {name}! {when}న {service} కోసం మీ బుకింగ్ {booking_id} నమోదైంది. మా టీమ్ మీకు {contact} నంబర్‌కు కాల్ చేస్తుంది.",
    },
    "booking_date_time": {
        "en": "{date} at {time}",
        "hi": "{date}, {time} बजे",
        "te": "{date}, {time} గంటలకు",
    },
    "tracking_start": {
        "en": "Please tell me your order number to track your order.",
        "hi": "ऑर्डर ट्रैक करने के लिए ऑर्डर नंबर बताएं।",
        "te": "మీ ఆర్డర్ ట్రాక్ చేయడానికి ఆర్డర్ నంబర్ చెప్పండి.",
    },
    "tracking_not_found": {
        "en": "Order number not found. Please check and try again.",
        "hi": "ऑर्डर नंबर नहीं मिला। फिर से चेक करें।",
        "te": "ఆర్డర్ నంబర్ దొరకలేదు. దయచేసి చూసి మళ్ళీ ప్రయత్నించండి.",
    },
    "pricing_intro": {
        "en": "Our main services:",
        "hi": "हमारी मुख्य सेवाएं:",
        "te": "మా ముఖ్య సేవలు:",
    },
    "pricing_item": {
        "en": "{service} starting from ₹{price}",
        "hi": "{service} ₹{price} से शुरू",
        "te": "{service} ₹{price} నుండి ప్రారంభం",
    },
    "pricing_outro": {
        "en": "Call for detailed information.",
        "hi": "विस्तार के लिए कॉल करें।",
        "te": "పూర్తి వివరాల కోసం కాల్ చేయండి.",
    },
    "technical_difficulty": {
        "en": "Sorry, we are having technical difficulties. Please call again later.",
        "hi": "क्षमा करें, तकनीकी समस्या है। कृपया बाद में कॉल करें।",
        "te": "క్షమించండి, సాంకేతిక సమస్య ఉంది. దయచేసి తర్వాత కాల్ చేయండి.",
    },
}


def render(key: str, language: Language, **values: object) -> str:
    """Fill the template for ``key`` in ``language``, falling back to English."""
    templates = MESSAGES[key]
    template = templates.get(language.value) or templates["en"]
    biz = settings.business
    return template.format(
        business=biz.name,
        address=biz.address,
        phone=biz.phone,
        hours=biz.hours,
        **values,
    )
