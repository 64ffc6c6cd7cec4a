"""Generation of personalised demo-site links for prospects."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Set
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from ..config import SiteConfig
from ..errors import InvalidBaseURLError, LinkGenerationError, NoLinksConfiguredError, UnknownCategoryError
from ..models import LinkMapping, LinkMetadata, Prospect
from ..reporting import PipelineReporter, report_errors, resolve_reporter

LOGGER = logging.getLogger(__name__)

PERSONALISATION_KEYS = ("company", "city", "phone")


@dataclass
class LinkValidation:
    total_urls: int = 0
    valid_urls: int = 0
    invalid_urls: int = 0
    prospects_with_urls: int = 0
    business_types: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)


def _is_absolute_url(url: str) -> bool:
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme and parts.netloc)


def personalise_url(base_url: str, company: str, city: str, phone: str) -> str:
    """Set the ``company``, ``city`` and ``phone`` query parameters on ``base_url``.

    Existing values for those keys are overwritten in place (duplicates are
    dropped) and missing keys are appended in that order; every other
    parameter and the fragment are preserved.
    """

    if not _is_absolute_url(base_url):
        raise InvalidBaseURLError(base_url)
    parts = urlsplit(base_url)

    values = dict(zip(PERSONALISATION_KEYS, (company, city, phone)))
    query = []
    seen: Set[str] = set()
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key in values:
            if key in seen:
                continue
            seen.add(key)
            value = values[key]
        query.append((key, value))
    for key in PERSONALISATION_KEYS:
        if key not in seen:
            query.append((key, values[key]))

    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", urlencode(query), parts.fragment))


def generate_links_for_prospect(
    prospect: Prospect,
    business_types: Mapping[str, Sequence[SiteConfig]],
) -> List[LinkMapping]:
    """Return one :class:`LinkMapping` per configured demo site, in configured order."""

    if prospect.business_type not in business_types:
        raise UnknownCategoryError(prospect.business_type)
    sites = business_types[prospect.business_type]
    if not sites:
        raise NoLinksConfiguredError(prospect.business_type)

    return [
        LinkMapping(
            original_url=personalise_url(site.url, prospect.company, prospect.city, prospect.phone),
            metadata=LinkMetadata(
                prospect_id=prospect.id,
                business_type=prospect.business_type,
                site_index=index,
                site_display_name=site.display_name,
                company=prospect.company,
            ),
        )
        for index, site in enumerate(sites)
    ]


def generate_links(
    prospects: Iterable[Prospect],
    business_types: Mapping[str, Sequence[SiteConfig]],
    *,
    reporter: Optional[PipelineReporter] = None,
) -> List[LinkMapping]:
    """Generate links for every prospect, skipping prospects whose category is misconfigured."""

    reporter = resolve_reporter(reporter)
    mappings: List[LinkMapping] = []
    prospect_count = 0
    for prospect in prospects:
        prospect_count += 1
        try:
            mappings.extend(generate_links_for_prospect(prospect, business_types))
        except LinkGenerationError as exc:
            LOGGER.debug("Link generation failed for %s", prospect.id, exc_info=True)
            reporter.error(f"Error generating URLs for {prospect.company}: {exc}")

    reporter.success(f"Generated {len(mappings)} personalized URLs for {prospect_count} prospects")
    for business_type, count in Counter(m.metadata.business_type for m in mappings).items():
        reporter.info(f"  {business_type}: {count} URLs")
    return mappings


def validate_link_generation(
    mappings: Sequence[LinkMapping],
    *,
    reporter: Optional[PipelineReporter] = None,
) -> LinkValidation:
    validation = LinkValidation(total_urls=len(mappings))
    prospect_ids: Set[str] = set()
    business_types: List[str] = []

    for index, mapping in enumerate(mappings, start=1):
        if not _is_absolute_url(mapping.original_url):
            validation.invalid_urls += 1
            validation.errors.append(f"URL {index}: Invalid URL {mapping.original_url}")
            continue
        validation.valid_urls += 1
        prospect_ids.add(mapping.metadata.prospect_id)
        if mapping.metadata.business_type not in business_types:
            business_types.append(mapping.metadata.business_type)

    validation.prospects_with_urls = len(prospect_ids)
    validation.business_types = business_types

    if reporter is not None:
        reporter.info(
            f"Generated {validation.valid_urls} valid URLs for {validation.prospects_with_urls} prospects"
        )
        report_errors(
            reporter,
            validation.errors,
            title=f"{validation.invalid_urls} invalid URLs found",
        )
    return validation


__all__ = [
    "LinkValidation",
    "generate_links",
    "generate_links_for_prospect",
    "personalise_url",
    "validate_link_generation",
]
