"""Helpers for parsing Gmail API messages into internal models."""

from __future__ import annotations

import base64
import binascii
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any

from mail_cache_engine.models import AttachmentInfo, FetchedMessage
from mail_cache_engine.utils import html_to_text


def _header_map(message: dict[str, Any]) -> dict[str, str]:
    payload = message.get("payload") or {}
    headers = payload.get("headers") or []
    result: dict[str, str] = {}
    for h in headers:
        name = h.get("name")
        value = h.get("value")
        if isinstance(name, str) and isinstance(value, str):
            # Gmail can include duplicates; keep the first for now.
            result.setdefault(name.lower(), value)
    return result


def _parse_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _decode_body(data: str | None) -> str | None:
    if not data:
        return None
    try:
        padded = data + "=" * (-len(data) % 4)
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return None


def find_part_by_mime(part: dict[str, Any] | None, mime_type: str) -> str | None:
    """Depth-first search of a MIME tree for the first decodable part of mime_type."""
    if not part:
        return None
    body = part.get("body") or {}
    if part.get("mimeType") == mime_type and body.get("data"):
        decoded = _decode_body(body["data"])
        if decoded:
            return decoded
    for child in part.get("parts") or []:
        found = find_part_by_mime(child, mime_type)
        if found:
            return found
    return None


def extract_attachments(part: dict[str, Any] | None) -> list[AttachmentInfo]:
    """Collect every part that carries a file name, recursively."""
    attachments: list[AttachmentInfo] = []
    if not part:
        return attachments

    body = part.get("body")
    filename = part.get("filename")
    if filename and isinstance(body, dict):
        attachments.append(
            AttachmentInfo(
                id=str(body.get("attachmentId") or ""),
                filename=filename,
                mime_type=part.get("mimeType") or "application/octet-stream",
                size=int(body.get("size") or 0),
            )
        )

    for child in part.get("parts") or []:
        attachments.extend(extract_attachments(child))
    return attachments


def message_link(account_email: str | None, provider_id: str) -> str:
    authuser = account_email or "0"
    return f"https://mail.google.com/mail/u/0/?authuser={authuser}#inbox/{provider_id}"


def message_to_fetched_message(
    message: dict[str, Any],
    account_email: str | None = None,
) -> FetchedMessage:
    """Convert a Gmail API message (format=full) to FetchedMessage.

    When only one of the text/plain and text/html bodies is present the other
    is derived from it, so both are always populated (possibly empty).

    Args:
        message: Gmail API message dict.
        account_email: Mailbox address used to build the web link.

    Returns:
        FetchedMessage: Parsed message content.
    """

    hm = _header_map(message)
    payload = message.get("payload") or {}
    provider_id = str(message.get("id") or "")

    text_body = find_part_by_mime(payload, "text/plain")
    html_body = find_part_by_mime(payload, "text/html")
    if not text_body and not html_body:
        text_body, html_body = "", ""
    elif not text_body:
        text_body = html_to_text(html_body or "")
    elif not html_body:
        html_body = text_body

    return FetchedMessage(
        provider_id=provider_id,
        date=_parse_date(hm.get("date")),
        title=hm.get("subject") or "",
        sender=hm.get("from") or "",
        to=hm.get("to"),
        cc=hm.get("cc"),
        message_id=hm.get("message-id"),
        text_body=text_body or "",
        html_body=html_body or "",
        snippet=str(message.get("snippet") or ""),
        link=message_link(account_email, provider_id),
        attachments=extract_attachments(payload),
    )
