"""Lossy markup-to-text conversion and chapter heading lookup."""

from __future__ import annotations

import warnings
from typing import Optional

from bs4 import BeautifulSoup, XMLParsedAsHTMLWarning

warnings.filterwarnings("ignore", category=XMLParsedAsHTMLWarning)

_HEADING_LEVELS = ("h1", "h2")


def strip_markup(markup: str) -> str:
    """Drop everything between ``<`` and ``>`` and collapse whitespace.

    Entities, comments and CDATA are not interpreted; ``&amp;`` survives
    as-is. Line breaks are not preserved, only the token sequence.
    """
    kept: list[str] = []
    in_tag = False
    for ch in markup:
        if ch == "<":
            in_tag = True
        elif ch == ">":
            in_tag = False
        elif not in_tag:
            kept.append(ch)
    return " ".join("".join(kept).split())


def extract_heading(markup: str) -> Optional[str]:
    """Return the text of the first <h1>, or failing that the first <h2>."""
    soup = BeautifulSoup(markup, "lxml")
    for level in _HEADING_LEVELS:
        tag = soup.find(level)
        if tag is None:
            continue
        text = strip_markup(tag.decode_contents())
        if text:
            return text
    return None


def chapter_title(markup: str, number: int) -> str:
    return extract_heading(markup) or f"Chapter {number}"
