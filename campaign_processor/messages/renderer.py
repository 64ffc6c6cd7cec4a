"""Rendering of WhatsApp outreach messages from templates."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from ..config import MessageTemplates
from ..errors import NoLinksForProspectError
from ..models import ERROR_PREFIX, DemoLink, ProspectLinkGroup, Prospect, RenderedProspect
from ..reporting import PipelineReporter, resolve_reporter

LOGGER = logging.getLogger(__name__)

LINE_BREAK = "\n"
PART_SEPARATOR = "\n\n"
PREVIEW_LENGTH = 200
SMS_PART_LENGTH = 160


@dataclass
class MessagePreview:
    company: str
    business_type: str
    message_preview: str
    message_length: int
    demo_urls_count: int
    estimated_sms_parts: int


@dataclass
class MessageValidation:
    total_messages: int = 0
    valid_messages: int = 0
    messages_with_errors: int = 0
    average_length: int = 0
    length_distribution: Dict[str, int] = field(
        default_factory=lambda: {"short": 0, "medium": 0, "long": 0, "very_long": 0}
    )
    url_count_distribution: Dict[int, int] = field(default_factory=dict)
    errors: List[str] = field(default_factory=list)


@dataclass
class CategoryStatistics:
    count: int = 0
    total_characters: int = 0
    total_links: int = 0

    @property
    def avg_characters(self) -> int:
        return round(self.total_characters / self.count) if self.count else 0

    @property
    def avg_links(self) -> float:
        return round(self.total_links / self.count, 2) if self.count else 0.0


@dataclass
class MessageStatistics:
    total_prospects: int = 0
    total_characters: int = 0
    total_demo_links: int = 0
    business_type_breakdown: Dict[str, CategoryStatistics] = field(default_factory=dict)
    longest_message: Optional[MessagePreview] = None
    shortest_message: Optional[MessagePreview] = None

    @property
    def average_characters(self) -> int:
        return round(self.total_characters / self.total_prospects) if self.total_prospects else 0

    @property
    def average_demo_links(self) -> float:
        return round(self.total_demo_links / self.total_prospects, 2) if self.total_prospects else 0.0


def replace_template_variables(template: str, variables: Mapping[str, object]) -> str:
    """Replace every literal ``{name}`` token with its value.

    Unknown tokens and any other braces are left untouched.
    """

    result = template
    for key, value in variables.items():
        result = result.replace("{" + key + "}", "" if value is None else str(value))
    return result


def _prospect_variables(prospect: Prospect) -> Dict[str, str]:
    return {
        "company": prospect.company,
        "city": prospect.city,
        "phone": prospect.phone,
        "business_type": prospect.business_type,
    }


def render_message(
    prospect: Prospect,
    group: Optional[ProspectLinkGroup],
    templates: MessageTemplates,
) -> str:
    """Render the WhatsApp message for one prospect.

    Raises :class:`NoLinksForProspectError` when the prospect has no links.
    """

    if group is None or not group.urls:
        raise NoLinksForProspectError(prospect.id)

    category = prospect.business_type
    variables = _prospect_variables(prospect)

    greeting = replace_template_variables(templates.part(category, "greeting"), variables)
    intro = replace_template_variables(templates.part(category, "intro"), variables)

    link_format = templates.part(category, "demo_link_format")
    link_lines = [
        replace_template_variables(
            link_format,
            {**variables, "display_name": link.display_name, "short_url": link.short_url or link.original_url},
        )
        for link in group.urls
    ]
    header = replace_template_variables(templates.part(category, "demo_section_header"), variables)
    link_section = LINE_BREAK.join(line for line in [header, *link_lines] if line.strip())

    parts = [greeting, intro, link_section]
    return PART_SEPARATOR.join(part for part in parts if part and part.strip())


def generate_messages(
    prospects: Sequence[Prospect],
    groups: Mapping[str, ProspectLinkGroup],
    templates: MessageTemplates,
    *,
    reporter: Optional[PipelineReporter] = None,
) -> List[RenderedProspect]:
    """Render one message per prospect; failures become ``ERROR:`` messages."""

    reporter = resolve_reporter(reporter)
    rendered: List[RenderedProspect] = []
    error_count = 0

    for prospect in prospects:
        group = groups.get(prospect.id)
        try:
            message = render_message(prospect, group, templates)
            demo_urls = [
                DemoLink(display_name=link.display_name, short_url=link.short_url or link.original_url)
                for link in group.urls  # type: ignore[union-attr]
            ]
        except Exception as exc:
            LOGGER.debug("Rendering failed for %s", prospect.id, exc_info=True)
            reporter.error(f"Error generating message for {prospect.company}: {exc}")
            rendered.append(
                RenderedProspect(
                    prospect=prospect,
                    whatsapp_message=f"{ERROR_PREFIX} Could not generate message - {exc}",
                    demo_urls=[],
                )
            )
            error_count += 1
            continue
        rendered.append(RenderedProspect(prospect=prospect, whatsapp_message=message, demo_urls=demo_urls))

    reporter.success(f"Generated {len(rendered) - error_count} WhatsApp messages")
    if error_count:
        reporter.warning(f"{error_count} messages had errors")
    return rendered


def _preview(result: RenderedProspect) -> MessagePreview:
    message = result.whatsapp_message
    return MessagePreview(
        company=result.prospect.company,
        business_type=result.prospect.business_type,
        message_preview=f"{message[:PREVIEW_LENGTH]}...",
        message_length=len(message),
        demo_urls_count=len(result.demo_urls),
        estimated_sms_parts=math.ceil(len(message) / SMS_PART_LENGTH),
    )


def message_previews(results: Sequence[RenderedProspect], count: int = 3) -> List[MessagePreview]:
    return [_preview(result) for result in results[: max(count, 0)]]


def validate_messages(results: Sequence[RenderedProspect]) -> MessageValidation:
    """Check rendered messages for errors, length and missing personalisation."""

    validation = MessageValidation(total_messages=len(results))
    total_length = 0

    for result in results:
        message = result.whatsapp_message
        company = result.prospect.company
        length = len(message)
        total_length += length

        if result.has_error:
            validation.messages_with_errors += 1
            validation.errors.append(f"{company}: {message}")
        else:
            validation.valid_messages += 1

        if length < 500:
            validation.length_distribution["short"] += 1
        elif length < 1000:
            validation.length_distribution["medium"] += 1
        elif length < 2000:
            validation.length_distribution["long"] += 1
        else:
            validation.length_distribution["very_long"] += 1

        url_count = len(result.demo_urls)
        validation.url_count_distribution[url_count] = validation.url_count_distribution.get(url_count, 0) + 1

        if company not in message:
            validation.errors.append(f"{company}: Message doesn't include company name")
        if result.prospect.city not in message:
            validation.errors.append(f"{company}: Message doesn't include city name")
        if result.demo_urls and not any(link.short_url in message for link in result.demo_urls):
            validation.errors.append(f"{company}: Message doesn't include any demo links")

    if results:
        validation.average_length = round(total_length / len(results))
    return validation


def message_statistics(results: Sequence[RenderedProspect]) -> MessageStatistics:
    stats = MessageStatistics(total_prospects=len(results))

    for result in results:
        length = len(result.whatsapp_message)
        links = len(result.demo_urls)
        stats.total_characters += length
        stats.total_demo_links += links

        breakdown = stats.business_type_breakdown.setdefault(result.prospect.business_type, CategoryStatistics())
        breakdown.count += 1
        breakdown.total_characters += length
        breakdown.total_links += links

        if stats.longest_message is None or length > stats.longest_message.message_length:
            stats.longest_message = _preview(result)
        if stats.shortest_message is None or length < stats.shortest_message.message_length:
            stats.shortest_message = _preview(result)
    return stats


__all__ = [
    "MessagePreview",
    "MessageStatistics",
    "MessageValidation",
    "generate_messages",
    "message_previews",
    "message_statistics",
    "render_message",
    "replace_template_variables",
    "validate_messages",
]
