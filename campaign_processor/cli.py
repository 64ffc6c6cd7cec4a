"""Command line interface for running the campaign pipeline."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from . import defaults
from .config import load_campaign_config
from .errors import CampaignProcessorError
from .factory import build_pipeline
from .messages import message_previews
from .orchestrator import PipelineResult

LOGGER = logging.getLogger(__name__)

DEFAULT_OUTPUT = "output/campaign-ready.csv"


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Turn a prospects spreadsheet into a WhatsApp campaign with personalised demo links",
    )
    parser.add_argument("-i", "--input", required=True, help="Path to the prospects spreadsheet (CSV, TSV or Excel)")
    parser.add_argument(
        "-o",
        "--output",
        default=DEFAULT_OUTPUT,
        help=f"Path of the campaign file to write (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "-t",
        "--business-type",
        choices=list(defaults.BUSINESS_TYPES),
        default="general",
        help="Fallback business type for rows without a business_type value",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and validate only, do not generate URLs or messages",
    )
    parser.add_argument(
        "--skip-shortener",
        action="store_true",
        help="Skip URL shortening and use the original URLs",
    )
    parser.add_argument(
        "--preview",
        type=int,
        default=3,
        help="Show a preview of the first N generated messages (0 to disable)",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Optional configuration file (YAML or JSON) overriding categories, templates or shortener settings",
    )
    parser.add_argument(
        "--shortener-url",
        default=None,
        help=f"Base URL of the shortener service (overrides the config file and ${defaults.SHORTENER_URL_ENV})",
    )
    parser.add_argument(
        "--escape-newlines",
        action="store_true",
        help="Write line breaks inside messages as literal \\n sequences",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def print_previews(result: PipelineResult, count: int) -> None:
    previews = message_previews(result.messages, count)
    if not previews:
        return
    print(f"\nPreview of first {len(previews)} messages:")
    for index, preview in enumerate(previews, start=1):
        print(f"\n{index}. {preview.company} ({preview.business_type})")
        print(f"   Message length: {preview.message_length} chars, URLs: {preview.demo_urls_count}")
        print(f'   "{preview.message_preview}"')


def print_summary(result: PipelineResult) -> None:
    summary = result.summary
    if result.dry_run:
        print("\nDry run completed successfully!")
        print(f"   Valid prospects: {summary.total}, invalid rows: {result.parse_report.invalid_rows}")
        for business_type, count in summary.by_business_type.items():
            print(f"   {business_type}: {count} prospects")
        return

    valid_messages = result.message_validation.valid_messages if result.message_validation else 0
    total_links = result.statistics.total_demo_links if result.statistics else 0
    print("\nProcessing completed successfully!")
    print(f"   Processed {summary.total} prospects in {round(result.elapsed_seconds)}s")
    print(f"   Generated {total_links} demo links")
    print(f"   Created {valid_messages} WhatsApp messages")
    if result.shorten_outcome is not None and result.shorten_outcome.fallback:
        print(f"   Links were not shortened ({result.shorten_outcome.reason})")
    print(f"   Output saved to: {result.output_path}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(levelname)s %(message)s",
    )

    try:
        config = load_campaign_config(args.config)
        pipeline = build_pipeline(config, shortener_url=args.shortener_url)
        result = pipeline.run(
            args.input,
            args.output,
            fallback_business_type=args.business_type,
            dry_run=args.dry_run,
            skip_shortener=args.skip_shortener,
            escape_newlines=args.escape_newlines,
        )
    except CampaignProcessorError as exc:
        LOGGER.error("Processing failed: %s", exc)
        LOGGER.debug("Failure details", exc_info=True)
        return 1
    except KeyboardInterrupt:
        LOGGER.warning("Interrupted, shutting down")
        return 130

    if not result.dry_run and args.preview > 0:
        print_previews(result, args.preview)
    print_summary(result)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
