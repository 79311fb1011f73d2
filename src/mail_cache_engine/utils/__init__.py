"""Text helpers shared by the Gmail adapter, prompt builder and scoring passes."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

_ANGLE_ADDR_RE = re.compile(r"<([^>]+)>")
_BARE_ADDR_RE = re.compile(r"(\S+@\S+)")
_DOMAIN_RE = re.compile(r"@([^@]+)$")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")


def html_to_text(html: str) -> str:
    """Convert an HTML body to readable plain text.

    Images are dropped and link targets are kept in brackets after the link
    text so the language model can still see where a link points.
    """
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["img", "script", "style"]):
        tag.decompose()
    for link in soup.find_all("a"):
        href = link.get("href")
        if href and href != link.get_text(strip=True):
            link.append(f" [{href}]")
    text = soup.get_text("\n")
    lines = [line.strip() for line in text.splitlines()]
    return _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()


def extract_address(value: str | None) -> str | None:
    """Return the bare address of a header value like 'Name <a@b.com>'."""
    if not value:
        return None
    match = _ANGLE_ADDR_RE.search(value) or _BARE_ADDR_RE.search(value)
    return match.group(1).strip() if match else None


def extract_domain(value: str | None) -> str | None:
    """Return the lower-cased domain of a header value, or None."""
    address = extract_address(value)
    if not address:
        return None
    match = _DOMAIN_RE.search(address)
    return match.group(1).lower() if match else None


def contains_any(text: str | None, keywords: tuple[str, ...] | list[str]) -> bool:
    """Case-insensitive substring test against a keyword list."""
    if not text:
        return False
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)
