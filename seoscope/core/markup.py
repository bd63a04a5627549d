"""
Markup parsing helpers shared by the extraction engines.

Parsing must never raise: the lxml builder is tried first, then the stdlib
builder, and an empty document is the last resort.
"""

from __future__ import annotations

import structlog
from bs4 import BeautifulSoup

logger = structlog.get_logger(__name__)

PARSERS = ("lxml", "html.parser")


def make_soup(html: str | None) -> BeautifulSoup:
    """Parse arbitrary, possibly malformed markup."""
    markup = html or ""
    for parser in PARSERS:
        try:
            return BeautifulSoup(markup, parser)
        except Exception as e:
            logger.warning("HTML parse error", parser=parser, error=str(e))
    return BeautifulSoup("", "html.parser")


def visible_text(html: str | None) -> str:
    """Page text with script/style blocks and all tags removed, whitespace collapsed."""
    soup = make_soup(html)
    for tag in soup(["script", "style"]):
        tag.decompose()
    return " ".join(soup.get_text(separator=" ").split())


def collapse(text: str | None) -> str:
    return " ".join((text or "").split())
