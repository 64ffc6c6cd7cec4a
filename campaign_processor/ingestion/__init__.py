"""Utilities for importing, validating, and exporting prospect data."""
from __future__ import annotations

from .exporters import campaign_to_dataframe, detailed_output_path, export_campaign, write_detailed_json
from .loaders import load_rows
from .validation import ParseReport, ProspectSummary, parse_prospects, summarize_prospects, validate_row

__all__ = [
    "ParseReport",
    "ProspectSummary",
    "campaign_to_dataframe",
    "detailed_output_path",
    "export_campaign",
    "load_rows",
    "parse_prospects",
    "summarize_prospects",
    "validate_row",
    "write_detailed_json",
]
