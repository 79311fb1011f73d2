"""Gmail mail source adapter."""

from mail_cache_engine.gmail.client import GmailClient, gmail_source_factory
from mail_cache_engine.gmail.parsing import message_to_fetched_message

__all__ = ["GmailClient", "gmail_source_factory", "message_to_fetched_message"]
