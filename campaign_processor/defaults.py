"""Built-in category, template and shortener defaults.

Any of these can be overridden by a JSON or YAML file passed to
:func:`campaign_processor.config.load_campaign_config`.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

BUSINESS_TYPES = ("plumbing", "landscaping", "general")

# Common spellings that are silently corrected to a canonical category.
CATEGORY_SYNONYMS: Mapping[str, str] = {
    "plumber": "plumbing",
    "plumbers": "plumbing",
    "landscape": "landscaping",
    "landscaper": "landscaping",
    "landscapers": "landscaping",
    "garden": "landscaping",
    "gardening": "landscaping",
    "other": "general",
    "misc": "general",
    "service": "general",
}

DEMO_SITES: Dict[str, List[Dict[str, str]]] = {
    "plumbing": [
        {"url": "https://plumbing-classic.netlify.app/", "display_name": "Classic Plumbing"},
        {"url": "https://plumbing-modern.netlify.app/", "display_name": "Modern Plumbing"},
        {"url": "https://plumbing-emergency.netlify.app/", "display_name": "24/7 Emergency"},
        {"url": "https://plumbing-family.netlify.app/", "display_name": "Family Owned"},
    ],
    "landscaping": [
        {"url": "https://landscaping-green.netlify.app/", "display_name": "Green Spaces"},
        {"url": "https://landscaping-premium.netlify.app/", "display_name": "Premium Gardens"},
        {"url": "https://landscaping-lawn.netlify.app/", "display_name": "Lawn Care Pro"},
        {"url": "https://landscaping-design.netlify.app/", "display_name": "Garden Design Studio"},
    ],
    "general": [
        {"url": "https://local-business-clean.netlify.app/", "display_name": "Clean & Simple"},
        {"url": "https://local-business-bold.netlify.app/", "display_name": "Bold Services"},
        {"url": "https://local-business-trust.netlify.app/", "display_name": "Trusted Local"},
        {"url": "https://local-business-pro.netlify.app/", "display_name": "Pro Services"},
    ],
}

MESSAGE_TEMPLATES: Dict[str, Any] = {
    "whatsapp": {
        "greeting": "Hi {company} team!",
        "intro": (
            "I build websites for {business_type} businesses in {city} and put together "
            "a few free demo sites with your details already filled in."
        ),
        "demo_section_header": "Take a look:",
        "demo_link_format": "- {display_name}: {short_url}",
    },
    "business_type_customization": {
        "plumbing": {
            "intro": (
                "Most people in {city} search for a plumber on their phone, so I made a few "
                "demo sites showing how {company} could look when they do."
            ),
            "demo_section_header": "Your plumbing demos:",
        },
        "landscaping": {
            "intro": (
                "Landscaping is all about the photos, so I built a few demo sites for "
                "{company} that show off your work to homeowners in {city}."
            ),
            "demo_section_header": "Your landscaping demos:",
        },
    },
}

SHORTENER_URL_ENV = "SHORTENER_URL"

SHORTENER: Dict[str, Any] = {
    "base_url": "https://websites-links.netlify.app",
    "bulk_endpoint": "/api/bulk-upload",
    "timeout_seconds": 60.0,
    "connection_test_timeout_seconds": 10.0,
    "max_attempts": 3,
    "retry_delay_seconds": 2.0,
    "user_agent": "CSV-Campaign-Processor/1.0",
    "origin": "http://localhost:5173",
    "test_connection": True,
}
