"""Deterministic scoring passes applied after AI enrichment."""

from mail_cache_engine.scoring.advanced import apply_advanced_scoring
from mail_cache_engine.scoring.attachments import process_attachments
from mail_cache_engine.scoring.categorization import categorize
from mail_cache_engine.scoring.context import ScoringContext
from mail_cache_engine.scoring.pipeline import SCORING_PASSES, ScoringPass, run_scoring_passes
from mail_cache_engine.scoring.sentiment import apply_sentiment_analysis, apply_temporal_decay

__all__ = [
    "SCORING_PASSES",
    "ScoringContext",
    "ScoringPass",
    "apply_advanced_scoring",
    "apply_sentiment_analysis",
    "apply_temporal_decay",
    "categorize",
    "process_attachments",
    "run_scoring_passes",
]
