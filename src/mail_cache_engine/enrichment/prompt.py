"""Prompt construction for message enrichment."""

from __future__ import annotations

import json

from mail_cache_engine.models import CachedMessage, UserContext
from mail_cache_engine.utils import html_to_text

SYSTEM_INSTRUCTIONS = (
    "You are an expert email analyzer with deep understanding of business and personal "
    "communications. Identify key information, action items, deadlines, and provide "
    "detailed, structured summaries."
)

_PROMPT_TEMPLATE = """\
Analyze this email comprehensively and provide the following structured information:

1. Extended Summary (under 2500 characters) - Comprehensive summary capturing all important details and context
2. Short Summary (under 500 characters) - Concise version highlighting only the most critical points
3. Action Items - List of specific actions required, if any, with deadlines when mentioned
4. Key People - People mentioned in the email who appear significant
5. Deadlines - Any dates or timeframes mentioned that require attention
6. Importance Score - From 0 to 1, where:
   - 0.8-1.0: Critical/urgent messages requiring immediate action
   - 0.6-0.8: Important business or personal communications
   - 0.4-0.6: Routine information that should be read
   - 0.2-0.4: Low priority, informational content
   - 0.0-0.2: Likely promotional or automated messages
7. Spam Score - From 0 to 1, where 0 is definitely legitimate and 1 is certainly spam
8. Category - Classify as: Promotional, Newsletter, Social, Event, Survey, Notification, Confirmation, Business, Personal, Financial, or Other
9. Sentiment - Overall tone: Positive, Negative, Neutral, or Urgent

Your response must be a valid plain JSON object with these exact fields: extendedSummary, shortSummary, actionItems, keyPeople, deadlines, importanceScore, spamScore, category, sentiment
Example response format:
{{
  "extendedSummary": "Comprehensive summary text...",
  "shortSummary": "Brief summary text...",
  "actionItems": ["Action 1 by date", "Action 2"],
  "keyPeople": ["John Smith", "Sarah Jones"],
  "deadlines": ["2025-07-15", "Next week"],
  "importanceScore": 0.75,
  "spamScore": 0.1,
  "category": "Business",
  "sentiment": "Positive"
}}

EMAIL CONTENT:
SUBJECT: {subject}
FROM: {sender}
DATE: {date}
{body}
"""


def message_body_text(message: CachedMessage, limit: int) -> str:
    """Plain text of the message body, HTML preferred, truncated to limit characters."""
    if message.html_body:
        text = html_to_text(message.html_body)
    else:
        text = message.text_body or ""
    return text[:limit]


def build_enrichment_prompt(message: CachedMessage, *, body_char_limit: int = 15000) -> str:
    return _PROMPT_TEMPLATE.format(
        subject=message.title or "No Subject",
        sender=message.sender or "Unknown Sender",
        date=message.date.isoformat() if message.date else "Unknown Date",
        body=message_body_text(message, body_char_limit),
    )


def build_context_blocks(message: CachedMessage, user_context: UserContext) -> dict[str, str]:
    """Named context blocks sent alongside the prompt, in order."""
    metadata = {
        "from": message.sender,
        "to": message.to,
        "cc": message.cc,
        "date": message.date.isoformat() if message.date else None,
        "subject": message.title,
    }
    return {
        "known contacts": user_context.contacts_block(),
        "general knowledge": user_context.knowledge_block(),
        "email metadata": json.dumps(metadata),
    }
