"""Shared fixtures for the campaign processor test-suite."""
from __future__ import annotations

from typing import Callable, Dict, List, Tuple

import pytest

from campaign_processor import defaults
from campaign_processor.config import (
    CampaignConfig,
    MessageTemplates,
    ShortenerSettings,
    SiteConfig,
    parse_business_types,
    parse_message_templates,
)
from campaign_processor.models import Prospect


class RecordingReporter:
    """Reporter that keeps every event instead of logging it."""

    def __init__(self) -> None:
        self.events: List[Tuple[str, str]] = []

    def stage(self, title: str) -> None:
        self.events.append(("stage", title))

    def info(self, message: str) -> None:
        self.events.append(("info", message))

    def success(self, message: str) -> None:
        self.events.append(("success", message))

    def warning(self, message: str) -> None:
        self.events.append(("warning", message))

    def error(self, message: str) -> None:
        self.events.append(("error", message))

    def messages(self, level: str) -> List[str]:
        return [message for event_level, message in self.events if event_level == level]


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def business_types() -> Dict[str, List[SiteConfig]]:
    return parse_business_types(
        {
            "plumbing": [
                {"url": "https://plumbing-1.example.com/", "display_name": "Classic"},
                {"url": "https://plumbing-2.example.com/", "display_name": "Modern"},
                {"url": "https://plumbing-3.example.com/", "display_name": "Emergency"},
                {"url": "https://plumbing-4.example.com/", "display_name": "Family"},
            ],
            "landscaping": [
                {"url": "https://landscaping-1.example.com/", "display_name": "Green"},
                {"url": "https://landscaping-2.example.com/?theme=dark", "display_name": "Premium"},
            ],
            "general": [
                {"url": "https://general-1.example.com/", "display_name": "Simple"},
            ],
        }
    )


@pytest.fixture
def templates() -> MessageTemplates:
    return parse_message_templates(
        {
            "whatsapp": {
                "greeting": "Hi {company}!",
                "intro": "Websites for {business_type} businesses in {city}.",
                "demo_section_header": "Demos:",
                "demo_link_format": "- {display_name}: {short_url}",
            },
            "business_type_customization": {
                "plumbing": {
                    "intro": "Plumbers in {city} need {company} online.",
                    "demo_section_header": "Plumbing demos:",
                },
            },
        }
    )


@pytest.fixture
def shortener_settings() -> ShortenerSettings:
    return ShortenerSettings(base_url="https://short.test", retry_delay_seconds=0.0)


@pytest.fixture
def campaign_config(business_types, templates, shortener_settings) -> CampaignConfig:
    return CampaignConfig(
        business_types=business_types,
        templates=templates,
        synonyms=dict(defaults.CATEGORY_SYNONYMS),
        shortener=shortener_settings,
    )


@pytest.fixture
def make_prospect() -> Callable[..., Prospect]:
    def factory(
        row: int = 1,
        *,
        company: str = "Smith Plumbing",
        city: str = "Austin",
        phone: str = "(555) 123-4567",
        business_type: str = "plumbing",
    ) -> Prospect:
        return Prospect(
            id=f"prospect_{row:04d}",
            company=company,
            city=city,
            phone=phone,
            business_type=business_type,
            original_row=row,
        )

    return factory
