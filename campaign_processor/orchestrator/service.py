"""Campaign pipeline that sequences parsing, link generation, shortening and rendering."""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..config import CampaignConfig
from ..ingestion import (
    ParseReport,
    ProspectSummary,
    detailed_output_path,
    export_campaign,
    load_rows,
    parse_prospects,
    summarize_prospects,
    write_detailed_json,
)
from ..links import JoinReport, generate_links, group_links_by_prospect, join_short_urls, validate_link_generation
from ..links.generator import LinkValidation
from ..messages import generate_messages, message_statistics, validate_messages
from ..messages.renderer import MessageStatistics, MessageValidation
from ..models import LinkMapping, ProspectLinkGroup, RenderedProspect
from ..reporting import PipelineReporter, report_errors, resolve_reporter
from ..shortener import (
    BulkUploadValidation,
    ShortenerClient,
    ShortenOutcome,
    create_fallback_results,
    validate_bulk_upload_results,
)

LOGGER = logging.getLogger(__name__)

ShortenerFactory = Callable[[], ShortenerClient]


@dataclass
class PipelineResult:
    """Everything produced by one run of :class:`CampaignPipeline`."""

    parse_report: ParseReport
    summary: ProspectSummary
    dry_run: bool = False
    links: List[LinkMapping] = field(default_factory=list)
    link_validation: Optional[LinkValidation] = None
    groups: Dict[str, ProspectLinkGroup] = field(default_factory=dict)
    shorten_outcome: Optional[ShortenOutcome] = None
    shorten_validation: Optional[BulkUploadValidation] = None
    join_report: Optional[JoinReport] = None
    messages: List[RenderedProspect] = field(default_factory=list)
    message_validation: Optional[MessageValidation] = None
    statistics: Optional[MessageStatistics] = None
    output_path: Optional[Path] = None
    detailed_path: Optional[Path] = None
    elapsed_seconds: float = 0.0


class CampaignPipeline:
    """Runs the four pipeline stages over one input file and exports the result."""

    def __init__(
        self,
        config: CampaignConfig,
        *,
        shortener_factory: Optional[ShortenerFactory] = None,
        reporter: Optional[PipelineReporter] = None,
    ) -> None:
        self._config = config
        self._reporter = resolve_reporter(reporter)
        self._shortener_factory = shortener_factory or (
            lambda: ShortenerClient(config.shortener, reporter=self._reporter)
        )

    @property
    def config(self) -> CampaignConfig:
        return self._config

    def run(
        self,
        input_path: str | Path,
        output_path: str | Path,
        *,
        fallback_business_type: Optional[str] = None,
        dry_run: bool = False,
        skip_shortener: bool = False,
        escape_newlines: bool = False,
    ) -> PipelineResult:
        started = time.monotonic()
        reporter = self._reporter

        reporter.stage("Step 1: Parsing input file")
        reporter.info(f"Parsing input file: {input_path}")
        rows = load_rows(input_path)
        parse_report = parse_prospects(
            rows,
            fallback_business_type=fallback_business_type,
            synonyms=self._config.synonyms,
            reporter=reporter,
        )
        summary = summarize_prospects(parse_report.prospects)
        if summary.used_fallback_type:
            reporter.info(
                f"{summary.used_fallback_type} prospects used fallback business type: {fallback_business_type}"
            )
        result = PipelineResult(parse_report=parse_report, summary=summary, dry_run=dry_run)

        if dry_run:
            reporter.success("Dry run completed successfully")
            result.elapsed_seconds = time.monotonic() - started
            return result

        reporter.stage("Step 2: Generating demo URLs")
        result.links = generate_links(parse_report.prospects, self._config.business_types, reporter=reporter)
        result.link_validation = validate_link_generation(result.links, reporter=reporter)
        result.groups = group_links_by_prospect(result.links)

        result.shorten_outcome = self._shorten(result.links, skip_shortener=skip_shortener)
        result.shorten_validation = validate_bulk_upload_results(result.shorten_outcome.results, result.links)
        reporter.info(f"Processed {result.shorten_validation.successful} URLs successfully")
        if result.shorten_validation.failed:
            reporter.warning(f"{result.shorten_validation.failed} URLs failed to shorten")
        result.join_report = join_short_urls(result.groups, result.shorten_outcome.results, reporter=reporter)

        reporter.stage("Step 4: Generating WhatsApp messages")
        result.messages = generate_messages(
            parse_report.prospects,
            result.groups,
            self._config.templates,
            reporter=reporter,
        )
        result.message_validation = validate_messages(result.messages)
        result.statistics = message_statistics(result.messages)
        reporter.info(f"Generated {result.message_validation.valid_messages} valid messages")
        reporter.info(f"Average message length: {result.message_validation.average_length} characters")
        if result.message_validation.messages_with_errors:
            report_errors(
                reporter,
                result.message_validation.errors,
                limit=5,
                title=f"{result.message_validation.messages_with_errors} messages had errors",
            )
        self._report_statistics(result.statistics)

        reporter.stage("Step 5: Exporting campaign file")
        result.output_path = export_campaign(result.messages, output_path, escape_newlines=escape_newlines)
        reporter.success(f"Exported {len(result.messages)} records to {result.output_path}")
        result.detailed_path = write_detailed_json(result.messages, detailed_output_path(output_path))
        reporter.info(f"Detailed data saved to {result.detailed_path}")

        result.elapsed_seconds = time.monotonic() - started
        return result

    def _report_statistics(self, stats: MessageStatistics) -> None:
        reporter = self._reporter
        reporter.info("Message Statistics:")
        reporter.info(f"  Total characters: {stats.total_characters:,}")
        reporter.info(f"  Average demo links per message: {stats.average_demo_links}")
        for business_type, breakdown in stats.business_type_breakdown.items():
            reporter.info(
                f"  {business_type}: {breakdown.count} messages, "
                f"avg {breakdown.avg_characters} chars, {breakdown.avg_links} links"
            )
        if stats.longest_message is not None and stats.shortest_message is not None:
            reporter.info(
                f"  Longest: {stats.longest_message.company} ({stats.longest_message.message_length} chars)"
            )
            reporter.info(
                f"  Shortest: {stats.shortest_message.company} ({stats.shortest_message.message_length} chars)"
            )

    def _shorten(self, links: List[LinkMapping], *, skip_shortener: bool) -> ShortenOutcome:
        if skip_shortener:
            self._reporter.warning("Skipping URL shortener (using original URLs)...")
            return ShortenOutcome(results=create_fallback_results(links), fallback=True, reason="skipped")

        self._reporter.stage("Step 3: Shortening URLs")
        if not links:
            self._reporter.warning("No URLs to shorten")
            return ShortenOutcome(results=[])
        LOGGER.debug("Shortening %d links", len(links))
        with self._shortener_factory() as client:
            return client.shorten(links)
