"""The ordered scoring pipeline.

Each pass is a pure function of a message and the scoring context. Later
passes read fields written by earlier ones, which ``requires`` records, so the
order of ``SCORING_PASSES`` is part of the contract.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import NamedTuple

import structlog

from mail_cache_engine.models import CachedMessage
from mail_cache_engine.scoring.advanced import apply_advanced_scoring
from mail_cache_engine.scoring.attachments import process_attachments
from mail_cache_engine.scoring.categorization import categorize
from mail_cache_engine.scoring.context import ScoringContext, clamp
from mail_cache_engine.scoring.sentiment import apply_sentiment_analysis

logger = structlog.get_logger()

PassFn = Callable[[CachedMessage, ScoringContext], CachedMessage]

SCORE_FIELDS = ("importance_score", "spam_score", "urgency_score", "deletable_score", "priority_score")


class ScoringPass(NamedTuple):
    name: str
    requires: frozenset[str]
    apply: PassFn


SCORING_PASSES: tuple[ScoringPass, ...] = (
    ScoringPass(
        "advanced",
        frozenset({"importance_score", "spam_score", "category", "sentiment", "action_items", "deadlines"}),
        apply_advanced_scoring,
    ),
    ScoringPass(
        "categorization",
        frozenset({"deletable_score", "urgency_score", "priority_label", "labels"}),
        categorize,
    ),
    ScoringPass(
        "attachments",
        frozenset({"attachments", "labels", "deletable_score", "importance_score", "spam_score"}),
        process_attachments,
    ),
    ScoringPass(
        "sentiment_decay",
        frozenset({"sentiment", "priority_score", "urgency_score", "date"}),
        apply_sentiment_analysis,
    ),
)


def clamp_scores(message: CachedMessage) -> CachedMessage:
    return message.model_copy(update={name: clamp(getattr(message, name)) for name in SCORE_FIELDS})


def run_scoring_passes(
    message: CachedMessage,
    context: ScoringContext,
    passes: Sequence[ScoringPass] = SCORING_PASSES,
) -> CachedMessage:
    """Apply passes in order, clamping every score to [0, 1] after each one."""
    for scoring_pass in passes:
        message = clamp_scores(scoring_pass.apply(message, context))
        logger.debug(
            "scoring_pass_applied",
            scoring_pass=scoring_pass.name,
            message_id=message.id,
            priority=message.priority_score,
        )
    return message
