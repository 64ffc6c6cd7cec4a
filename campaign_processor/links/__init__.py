"""Personalised link generation, grouping and result joining."""

from .generator import generate_links, generate_links_for_prospect, personalise_url, validate_link_generation
from .grouping import JoinReport, group_links_by_prospect, join_short_urls

__all__ = [
    "JoinReport",
    "generate_links",
    "generate_links_for_prospect",
    "group_links_by_prospect",
    "join_short_urls",
    "personalise_url",
    "validate_link_generation",
]
