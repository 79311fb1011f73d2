"""Keyword tone analysis and temporal decay.

Tone analysis only runs when the message has no sentiment yet. Decay runs for
every dated message older than three days: the priority score is multiplied by
``exp(-0.1 * (age_days - 3))`` but never drops below 30% of its value before
decay.
"""

from __future__ import annotations

import math
import re

from mail_cache_engine.models import CachedMessage, PriorityLabel, Sentiment, SentimentMetadata
from mail_cache_engine.scoring.context import ScoringContext, as_utc, clamp

POSITIVE_WORDS = (
    "thank", "thanks", "appreciate", "good", "great", "excellent", "awesome",
    "happy", "pleased", "glad", "congratulations", "well done", "success",
)
NEGATIVE_WORDS = (
    "issue", "problem", "error", "mistake", "fault", "wrong", "bad", "poor",
    "sorry", "apology", "unfortunate", "regret", "concern", "disappointing",
)
URGENT_WORDS = (
    "urgent", "immediately", "asap", "emergency", "critical", "important",
    "deadline", "priority", "crucial", "vital", "urgent attention",
)

DECAY_GRACE_DAYS = 3
DECAY_RATE = 0.1
DECAY_FLOOR = 0.3


def _count(words: tuple[str, ...], text: str) -> int:
    return sum(len(re.findall(rf"\b{re.escape(word)}\b", text)) for word in words)


def analyze_tone(text: str) -> SentimentMetadata:
    """Classify the tone of text by counting positive, negative and urgent words."""
    lowered = text.lower()
    positive = _count(POSITIVE_WORDS, lowered)
    negative = _count(NEGATIVE_WORDS, lowered)
    urgent = _count(URGENT_WORDS, lowered)

    emotional_content = [
        name for name, count in (("positive", positive), ("negative", negative), ("urgent", urgent)) if count
    ]

    if urgent > max(positive, negative):
        tone = "urgent"
    elif positive > negative * 1.5:
        tone = "positive"
    elif negative > positive * 1.5:
        tone = "negative"
    else:
        tone = "neutral"

    word_count = len(text.split())
    density = (positive + negative + urgent) / word_count if word_count else 0.0
    if density > 0.1:
        intensity = "high"
    elif density > 0.05:
        intensity = "moderate"
    else:
        intensity = "low"

    return SentimentMetadata(tone=tone, intensity=intensity, emotional_content=emotional_content)


def decay_factor(age_days: float) -> float:
    return math.exp(-DECAY_RATE * (age_days - DECAY_GRACE_DAYS))


def apply_temporal_decay(message: CachedMessage, context: ScoringContext) -> CachedMessage:
    if message.date is None:
        return message

    age_days = (as_utc(context.now) - as_utc(message.date)).total_seconds() / 86400
    if age_days <= DECAY_GRACE_DAYS:
        return message

    factor = decay_factor(age_days)
    before = message.priority_score
    priority = clamp(max(before * factor, before * DECAY_FLOOR))
    return message.model_copy(
        update={
            "priority_score": priority,
            "priority_label": PriorityLabel.for_score(priority).value,
            "decay_factor": factor,
            "decay_applied": True,
        }
    )


def apply_sentiment_analysis(message: CachedMessage, context: ScoringContext) -> CachedMessage:
    if not message.sentiment:
        text = " ".join((message.auto_summary or "", message.short_summary or "", message.title or ""))
        metadata = analyze_tone(text)
        urgency = message.urgency_score
        importance = message.importance_score

        if metadata.tone == "urgent":
            urgency = min(urgency + 0.2 if urgency else 0.7, 1.0)
            importance = min(importance + 0.1, 1.0)
        elif metadata.tone == "negative" and metadata.intensity == "high":
            importance = min(importance + 0.1, 1.0)

        message = message.model_copy(
            update={
                "sentiment": Sentiment.canonical(metadata.tone).value,
                "sentiment_metadata": metadata,
                "urgency_score": clamp(urgency),
                "importance_score": clamp(importance),
            }
        )

    return apply_temporal_decay(message, context)
