"""Advanced scoring: urgency, deletability and the composite priority.

Reads the model's importance, spam, category, sentiment, action items and
deadlines. Writes urgency, deletable and priority scores and the priority tier;
importance is raised for internal mail and for urgent or negative sentiment,
and the raise is recorded in ``importance_boost`` so a repeated run replaces
it instead of adding to it.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from dateutil import parser as date_parser

from mail_cache_engine.models import CachedMessage, PriorityLabel
from mail_cache_engine.scoring.context import ScoringContext, as_utc, clamp
from mail_cache_engine.utils import contains_any, extract_domain

URGENT_ACTION_TERMS = ("urgent", "immediately", "asap", "today", "now", "deadline")
IMMINENT_DEADLINE_TERMS = ("today", "tomorrow", "asap", "immediately", "urgent")
DELETABLE_CATEGORIES = {"promotional", "notification", "confirmation", "newsletter", "invoice"}
INVOICE_TERMS = ("invoice", "receipt", "payment confirmation", "bill", "statement")
DELETABLE_LABELS = {"Promotional", "Notification", "Confirmation", "Newsletter"}

IMMINENT_WINDOW = timedelta(days=2)


def parse_deadline(text: str, now: datetime) -> datetime | None:
    """Parse a free-form deadline, resolving partial dates against now."""
    try:
        parsed = date_parser.parse(text, default=now.replace(tzinfo=None))
    except (ValueError, OverflowError):
        return None
    return as_utc(parsed)


def is_imminent(deadline: str, now: datetime) -> bool:
    """A deadline is imminent if it falls within two days of now (past ones included)."""
    parsed = parse_deadline(deadline, now)
    if parsed is not None:
        return parsed <= as_utc(now) + IMMINENT_WINDOW
    return contains_any(deadline, IMMINENT_DEADLINE_TERMS)


def priority_score(importance: float, urgency: float, deletable: float) -> float:
    return clamp(0.7 * importance + 0.3 * urgency - 0.5 * deletable)


def apply_advanced_scoring(message: CachedMessage, context: ScoringContext) -> CachedMessage:
    # importance_boost is what this pass added last time.
    base_importance = clamp(message.importance_score - message.importance_boost)
    importance = base_importance
    urgency = 0.0
    deletable = 0.0

    if message.action_items:
        urgency += min(len(message.action_items) * 0.05, 0.3)
        if any(contains_any(item, URGENT_ACTION_TERMS) for item in message.action_items):
            urgency += 0.1

    if message.deadlines:
        urgency += 0.2
        if any(is_imminent(deadline, context.now) for deadline in message.deadlines):
            urgency += 0.3

    sender_domain = extract_domain(message.sender)
    if sender_domain and sender_domain == extract_domain(message.to):
        importance = min(importance + 0.1, 1.0)

    sentiment = (message.sentiment or "").lower()
    if sentiment == "urgent":
        urgency += 0.3
        importance = min(importance + 0.2, 1.0)
    elif sentiment == "negative":
        importance = min(importance + 0.1, 1.0)

    if message.category and message.category.lower() in DELETABLE_CATEGORIES:
        deletable += 0.3

    if contains_any(message.title, INVOICE_TERMS) or contains_any(message.short_summary, INVOICE_TERMS):
        deletable += 0.35

    deletable += 0.15 * sum(1 for label in message.labels if label in DELETABLE_LABELS)
    deletable += message.spam_score * 0.4

    deletable = clamp(deletable)
    urgency = clamp(urgency)
    priority = priority_score(importance, urgency, deletable)

    return message.model_copy(
        update={
            "importance_score": clamp(importance),
            "importance_boost": clamp(importance) - base_importance,
            "urgency_score": urgency,
            "deletable_score": deletable,
            "priority_score": priority,
            "priority_label": PriorityLabel.for_score(priority).value,
        }
    )
