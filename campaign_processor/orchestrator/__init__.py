"""Workflow orchestration for coordinating ingestion, link processing, and export."""

from .service import CampaignPipeline, PipelineResult

__all__ = ["CampaignPipeline", "PipelineResult"]
