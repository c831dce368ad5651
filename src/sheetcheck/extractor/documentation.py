"""
Locates the product documentation block and its two sheet links.
"""

from __future__ import annotations

import asyncio
from typing import AbstractSet, Iterable, Optional

import structlog
from bs4 import BeautifulSoup
from bs4.element import Tag

from sheetcheck.models import DocumentationLinks

logger = structlog.get_logger(__name__)

DOCUMENTATION_SECTION_CLASSES = ("page__content", "rte", "text-subtext", "product-documentation")
DOCUMENTATION_LINK_CLASS = "product-documentation__link"
SAFETY_SHEET_CLASSES = frozenset({DOCUMENTATION_LINK_CLASS, "product-documentation__link--safety-data-sheet"})
TECHNICAL_SHEET_CLASSES = frozenset({DOCUMENTATION_LINK_CLASS, "product-documentation__link--technical-data-sheet"})

HTML_PARSER = "html.parser"


def _class_names(tag: Tag) -> set[str]:
    value = tag.get("class")
    if value is None:
        return set()
    if isinstance(value, str):
        return set(value.split())
    return {name for item in value for name in item.split()}


def find_documentation_section(
    html: str,
    required_classes: Iterable[str] = DOCUMENTATION_SECTION_CLASSES,
) -> Optional[Tag]:
    """Return the first element carrying every class of *required_classes*."""
    soup = BeautifulSoup(html, HTML_PARSER)
    selector = "".join(f".{name}" for name in required_classes)
    return soup.select_one(selector)


def find_link(section: Tag, required_classes: AbstractSet[str]) -> Optional[str]:
    """Return the trimmed href of the first direct child ``<a>`` whose classes
    include *required_classes*, or None if there is none or its href is blank.
    """
    for anchor in section.find_all("a", recursive=False):
        if required_classes <= _class_names(anchor):
            href = anchor.get("href")
            if isinstance(href, list):
                href = " ".join(href)
            href = (href or "").strip()
            return href or None
    return None


class DocumentationExtractor:
    """Extracts the safety and technical sheet hrefs from page HTML."""

    name = "product_documentation"

    def __init__(
        self,
        section_classes: Iterable[str] = DOCUMENTATION_SECTION_CLASSES,
        safety_classes: AbstractSet[str] = SAFETY_SHEET_CLASSES,
        technical_classes: AbstractSet[str] = TECHNICAL_SHEET_CLASSES,
    ) -> None:
        self.section_classes = tuple(section_classes)
        self.safety_classes = frozenset(safety_classes)
        self.technical_classes = frozenset(technical_classes)

    def extract(self, html: str) -> Optional[DocumentationLinks]:
        """Return the sheet links, or None when the documentation section is absent."""
        section = find_documentation_section(html, self.section_classes)
        if section is None:
            return None
        return DocumentationLinks(
            safety_href=find_link(section, self.safety_classes),
            technical_href=find_link(section, self.technical_classes),
        )

    async def aextract(self, html: str) -> Optional[DocumentationLinks]:
        """Run :meth:`extract` in the default executor; parsing large pages is CPU-bound."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.extract, html)
