"""Factory helpers for constructing pipeline collaborators from configuration."""
from __future__ import annotations

import time
from dataclasses import replace
from typing import Callable, Optional

import httpx

from .config import CampaignConfig, ShortenerSettings
from .orchestrator import CampaignPipeline
from .reporting import PipelineReporter
from .retry import RetryPolicy
from .shortener import ShortenerClient


def build_retry_policy(
    settings: ShortenerSettings,
    *,
    sleep: Optional[Callable[[float], None]] = None,
) -> RetryPolicy:
    return RetryPolicy(
        max_attempts=settings.max_attempts,
        delay_seconds=settings.retry_delay_seconds,
        sleep=sleep or time.sleep,
    )


def build_shortener_client(
    settings: ShortenerSettings,
    *,
    http_client: Optional[httpx.Client] = None,
    reporter: Optional[PipelineReporter] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> ShortenerClient:
    """Instantiate a :class:`ShortenerClient` for the configured endpoint."""

    return ShortenerClient(
        settings,
        http_client=http_client,
        retry_policy=build_retry_policy(settings, sleep=sleep),
        reporter=reporter,
    )


def build_pipeline(
    config: CampaignConfig,
    *,
    shortener_url: Optional[str] = None,
    http_client: Optional[httpx.Client] = None,
    reporter: Optional[PipelineReporter] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> CampaignPipeline:
    """Build a :class:`CampaignPipeline`, optionally overriding the shortener URL."""

    if shortener_url:
        config = replace(config, shortener=replace(config.shortener, base_url=shortener_url))

    settings = config.shortener
    return CampaignPipeline(
        config,
        shortener_factory=lambda: build_shortener_client(
            settings,
            http_client=http_client,
            reporter=reporter,
            sleep=sleep,
        ),
        reporter=reporter,
    )
