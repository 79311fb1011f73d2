"""Attachment analysis.

Reads the attachment list, labels, spam, importance and deletable scores.
Writes ``attachment_metadata``, per-type labels and the attachment-driven
score adjustments. Messages without attachments pass through unchanged.
"""

from __future__ import annotations

from mail_cache_engine.models import AttachmentMetadata, CachedMessage
from mail_cache_engine.scoring.context import ScoringContext, clamp
from mail_cache_engine.utils import contains_any

EXTENSION_TYPES = {
    "pdf": "document",
    "doc": "document",
    "docx": "document",
    "txt": "document",
    "rtf": "document",
    "odt": "document",
    "xls": "spreadsheet",
    "xlsx": "spreadsheet",
    "csv": "spreadsheet",
    "ods": "spreadsheet",
    "ppt": "presentation",
    "pptx": "presentation",
    "odp": "presentation",
    "jpg": "image",
    "jpeg": "image",
    "png": "image",
    "gif": "image",
    "bmp": "image",
    "svg": "image",
    "zip": "archive",
    "rar": "archive",
    "7z": "archive",
    "tar": "archive",
    "gz": "archive",
    "exe": "executable",
    "msi": "executable",
    "app": "executable",
    "dmg": "executable",
    "bat": "executable",
    "sh": "executable",
}

TYPE_LABELS = {
    "document": "Has Documents",
    "spreadsheet": "Has Spreadsheets",
    "presentation": "Has Presentations",
    "image": "Has Images",
    "archive": "Has Archives",
    "executable": "Has Executables",
}

INVOICE_FILENAME_TERMS = ("invoice", "receipt", "bill", "statement")


def attachment_type(filename: str) -> str:
    extension = filename.rsplit(".", 1)[-1].lower()
    return EXTENSION_TYPES.get(extension, "other")


def process_attachments(message: CachedMessage, context: ScoringContext) -> CachedMessage:
    if not message.attachments:
        return message

    types: list[str] = []
    total_size = 0
    for attachment in message.attachments:
        total_size += attachment.size
        if attachment.filename:
            kind = attachment_type(attachment.filename)
            if kind not in types:
                types.append(kind)

    metadata = AttachmentMetadata(
        count=len(message.attachments),
        types=types,
        total_size=total_size,
        has_documents="document" in types,
        has_spreadsheets="spreadsheet" in types,
        has_presentations="presentation" in types,
        has_images="image" in types,
        has_archives="archive" in types,
        has_executables="executable" in types,
    )

    labels = list(message.labels)
    labels.append("Has Attachments")
    spam = message.spam_score
    importance = message.importance_score
    deletable = message.deletable_score

    if any(contains_any(a.filename, INVOICE_FILENAME_TERMS) for a in message.attachments):
        labels.append("Invoice Attachment")
        deletable += 0.3

    labels.extend(TYPE_LABELS[kind] for kind in types if kind in TYPE_LABELS)

    if metadata.has_executables:
        spam = min(spam + 0.2, 1.0)

    business_documents = metadata.has_documents or metadata.has_spreadsheets or metadata.has_presentations
    if business_documents and importance < 0.7:
        importance = min(importance + 0.15, 0.85)

    return message.model_copy(
        update={
            "attachment_metadata": metadata,
            "labels": list(dict.fromkeys(labels)),
            "spam_score": clamp(spam),
            "importance_score": clamp(importance),
            "deletable_score": clamp(deletable),
        }
    )
