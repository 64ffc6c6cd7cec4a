"""Grouping of generated links per prospect and joining of shortener results."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from ..models import GroupedLink, LinkMapping, ProspectLinkGroup, ShortenResult
from ..reporting import PipelineReporter, report_errors, resolve_reporter


@dataclass
class JoinReport:
    """Outcome of :func:`join_short_urls`."""

    updated: int = 0
    fallback: int = 0
    missing_urls: List[str] = field(default_factory=list)


def group_links_by_prospect(mappings: Iterable[LinkMapping]) -> Dict[str, ProspectLinkGroup]:
    """Partition links by prospect id, keeping encounter order within each group.

    Prospects without links do not appear in the result.
    """

    grouped: Dict[str, ProspectLinkGroup] = {}
    for mapping in mappings:
        metadata = mapping.metadata
        group = grouped.get(metadata.prospect_id)
        if group is None:
            group = ProspectLinkGroup(
                prospect_id=metadata.prospect_id,
                company=metadata.company,
                business_type=metadata.business_type,
            )
            grouped[metadata.prospect_id] = group
        group.urls.append(
            GroupedLink(
                original_url=mapping.original_url,
                display_name=metadata.site_display_name,
                site_index=metadata.site_index,
            )
        )
    return grouped


def _build_lookup(results: Iterable[ShortenResult]) -> Dict[str, str]:
    lookup: Dict[str, str] = {}
    for result in results:
        short_url = result.short_url
        if short_url and result.original_url not in lookup:
            lookup[result.original_url] = short_url
    return lookup


def join_short_urls(
    groups: Mapping[str, ProspectLinkGroup],
    results: Iterable[ShortenResult],
    *,
    reporter: Optional[PipelineReporter] = None,
) -> JoinReport:
    """Fill ``short_url`` on every grouped link from the shortener results.

    Links are matched by exact ``original_url``. A link without a successful
    result keeps its original URL as the short URL and is counted in
    :attr:`JoinReport.fallback`.
    """

    reporter = resolve_reporter(reporter)
    lookup = _build_lookup(results)
    report = JoinReport()

    for group in groups.values():
        for link in group.urls:
            short_url = lookup.get(link.original_url)
            if short_url:
                link.short_url = short_url
                report.updated += 1
            else:
                link.short_url = link.original_url
                report.fallback += 1
                report.missing_urls.append(link.original_url)

    reporter.success(f"Updated {report.updated} URLs with short versions")
    if report.fallback:
        report_errors(
            reporter,
            [f"No short URL found for: {url}" for url in report.missing_urls],
            limit=5,
            title=f"{report.fallback} URLs failed to shorten (using original URLs)",
        )
    return report


__all__ = ["JoinReport", "group_links_by_prospect", "join_short_urls"]
