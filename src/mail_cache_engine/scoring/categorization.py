"""Keyword and sender heuristics that grow the message's label set.

Reads title, short and extended summaries, action items, deadlines, sender,
urgency, deletable score and priority tier. Appends labels, may add to the
deletable score for invoices and backfills ``category`` when the model gave
none.
"""

from __future__ import annotations

from mail_cache_engine.models import CachedMessage
from mail_cache_engine.scoring.context import ScoringContext, clamp
from mail_cache_engine.utils import contains_any, extract_domain

PROMOTIONAL_KEYWORDS = (
    "offer", "discount", "promotion", "sale", "deal", "coupon", "save",
    "limited time", "exclusive", "buy now", "off", "free", "promo",
)
NEWSLETTER_KEYWORDS = (
    "newsletter", "digest", "weekly", "monthly", "update", "bulletin",
    "roundup", "recap", "summary", "edition",
)
FINANCIAL_KEYWORDS = (
    "invoice", "payment", "transaction", "receipt", "order", "subscription",
    "credit card", "billing", "statement", "paid", "purchase", "tax",
    "refund", "balance", "account", "finance", "bank", "money",
)
INVOICE_KEYWORDS = ("invoice", "bill", "receipt", "statement", "payment confirmation")
RESPONSE_KEYWORDS = (
    "let me know", "please respond", "reply", "response", "get back to me",
    "what do you think", "your thoughts", "your opinion",
)
SOCIAL_KEYWORDS = (
    "connect", "connection", "friend", "following", "follower", "liked", "commented",
    "shared", "social media", "network", "community", "profile", "group",
)
SOCIAL_SENDERS = (
    "facebook", "instagram", "linkedin", "twitter", "tiktok", "snapchat", "pinterest",
    "youtube", "reddit", "discord", "slack",
)
EVENT_KEYWORDS = (
    "invitation", "invite", "event", "party", "celebration", "gathering",
    "meeting", "webinar", "conference", "workshop", "join us", "calendar",
    "schedule", "agenda", "rsvp", "attend", "save the date",
)
SURVEY_KEYWORDS = (
    "survey", "feedback", "questionnaire", "opinion", "rate", "rating",
    "review", "satisfaction", "poll", "evaluation", "assessment", "how did we do",
)
NOTIFICATION_KEYWORDS = (
    "notification", "alert", "update", "status", "changed", "activity",
    "notice", "reminder", "notify", "fyi", "attention",
)
NOTIFICATION_SENDERS = (
    "noreply", "no-reply", "donotreply", "notification", "alert", "system",
    "updates", "info",
)
FOLLOWUP_KEYWORDS = (
    "follow up", "following up", "checking in", "reminder", "as discussed",
    "as promised", "as mentioned", "as requested",
)
CONFIRMATION_KEYWORDS = (
    "confirmation", "confirmed", "verify", "verified", "complete", "completed",
    "success", "successful", "approved", "processed", "received", "thank you for",
    "order confirmed", "booking confirmed", "reservation confirmed", "registered",
)
BUSINESS_KEYWORDS = (
    "business", "company", "corporate", "client", "project", "deadline", "contract",
    "proposal", "agreement", "meeting", "vendor", "partner", "stakeholder", "roi",
    "kpi", "metrics", "performance", "professional", "report", "quarterly",
)
FREE_MAIL_DOMAINS = ("gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "aol.com", "icloud.com")
PERSONAL_KEYWORDS = (
    "personal", "family", "friend", "private", "home", "birthday", "anniversary",
    "vacation", "holiday", "gift", "congratulations", "best wishes", "regards",
    "love", "miss you", "thinking of you", "visit", "dinner", "lunch",
)


def _mentions(message: CachedMessage, keywords: tuple[str, ...]) -> bool:
    return contains_any(message.short_summary, keywords) or contains_any(message.title, keywords)


def categorize(message: CachedMessage, context: ScoringContext) -> CachedMessage:
    labels = list(message.labels)
    # Insertion-ordered; the first entry backfills the primary category.
    detected: dict[str, None] = {}
    deletable = message.deletable_score

    def detect(label: str, hit: bool) -> None:
        if hit and label not in labels:
            labels.append(label)
            detected[label] = None

    if message.category and message.category not in labels:
        labels.append(message.category)
        detected[message.category] = None

    detect(
        "Promotional",
        _mentions(message, PROMOTIONAL_KEYWORDS) or 0.3 < message.spam_score < 0.7,
    )
    detect("Newsletter", _mentions(message, NEWSLETTER_KEYWORDS))

    if _mentions(message, FINANCIAL_KEYWORDS) and "Financial" not in labels:
        detect("Financial", True)
        if _mentions(message, INVOICE_KEYWORDS):
            labels.append("Invoice")
            deletable += 0.4

    if message.action_items:
        labels.append("Action Required")
        needs_response = contains_any(message.auto_summary, RESPONSE_KEYWORDS) or any(
            contains_any(item, RESPONSE_KEYWORDS) for item in message.action_items
        )
        if needs_response:
            labels.append("Response Needed")

    if message.deadlines or message.urgency_score > 0.6:
        labels.append("Time Sensitive")

    detect(
        "Social",
        _mentions(message, SOCIAL_KEYWORDS) or contains_any(message.sender, SOCIAL_SENDERS),
    )
    detect("Event", _mentions(message, EVENT_KEYWORDS))
    detect("Survey", _mentions(message, SURVEY_KEYWORDS))
    detect(
        "Notification",
        _mentions(message, NOTIFICATION_KEYWORDS) or contains_any(message.sender, NOTIFICATION_SENDERS),
    )

    if _mentions(message, FOLLOWUP_KEYWORDS):
        labels.append("Follow-up")

    detect("Confirmation", _mentions(message, CONFIRMATION_KEYWORDS))

    sender_domain = extract_domain(message.sender)
    likely_business = bool(sender_domain) and not contains_any(sender_domain, FREE_MAIL_DOMAINS)
    if "Personal" not in detected:
        detect("Business", _mentions(message, BUSINESS_KEYWORDS) or likely_business)

    from_contact = bool(context.contacts) and bool(message.sender) and message.sender in context.contacts
    if "Business" not in detected:
        detect("Personal", _mentions(message, PERSONAL_KEYWORDS) or from_contact)

    if not message.action_items and not detected:
        labels.append("Information")

    if message.priority_label in ("Critical", "High"):
        labels.append("Important")

    category = message.category
    if not category and detected:
        category = next(iter(detected))

    return message.model_copy(
        update={
            "labels": list(dict.fromkeys(labels)),
            "deletable_score": clamp(deletable),
            "category": category,
        }
    )
