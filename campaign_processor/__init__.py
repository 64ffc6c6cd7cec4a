"""Top-level package for the WhatsApp campaign processor."""

from . import models  # noqa: F401
from .config import CampaignConfig, load_campaign_config  # noqa: F401
from .models import (
    DemoLink,
    GroupedLink,
    LinkMapping,
    LinkMetadata,
    Prospect,
    ProspectLinkGroup,
    RenderedProspect,
    ShortenResult,
    ShortUrlData,
)
from .orchestrator import CampaignPipeline, PipelineResult  # noqa: F401

__version__ = "1.0.0"

__all__ = [
    "CampaignConfig",
    "CampaignPipeline",
    "DemoLink",
    "GroupedLink",
    "LinkMapping",
    "LinkMetadata",
    "PipelineResult",
    "Prospect",
    "ProspectLinkGroup",
    "RenderedProspect",
    "ShortenResult",
    "ShortUrlData",
    "load_campaign_config",
    "ingestion",
    "links",
    "shortener",
    "messages",
    "orchestrator",
]
