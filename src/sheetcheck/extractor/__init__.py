"""
HTML extraction of the product documentation links.
"""

from .documentation import (
    DOCUMENTATION_SECTION_CLASSES,
    SAFETY_SHEET_CLASSES,
    TECHNICAL_SHEET_CLASSES,
    DocumentationExtractor,
    find_documentation_section,
    find_link,
)

__all__ = [
    "DOCUMENTATION_SECTION_CLASSES",
    "SAFETY_SHEET_CLASSES",
    "TECHNICAL_SHEET_CLASSES",
    "DocumentationExtractor",
    "find_documentation_section",
    "find_link",
]
