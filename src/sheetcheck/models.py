"""
Core data structures shared by the validation pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Verdict(str, Enum):
    """Per-URL verdict."""

    OK = "OK"
    KO = "KO"


@dataclass(frozen=True)
class ValidationOutcome:
    """OK/KO verdict for one URL.

    ``comments`` is a ``" ; "``-joined list of reasons and is empty iff the
    verdict is OK.
    """

    url: str
    result: Verdict
    comments: str = ""

    @classmethod
    def ok(cls, url: str) -> ValidationOutcome:
        return cls(url=url, result=Verdict.OK, comments="")

    @classmethod
    def ko(cls, url: str, *reasons: str) -> ValidationOutcome:
        return cls(url=url, result=Verdict.KO, comments=COMMENT_SEPARATOR.join(reasons))

    def to_row(self) -> list[str]:
        return [self.url, self.result.value, self.comments]


COMMENT_SEPARATOR = " ; "


@dataclass(frozen=True)
class FetchedPage:
    """Rendered page returned by a page renderer."""

    html: str
    final_url: str
    redirected: bool = False


@dataclass(frozen=True)
class DocumentationLinks:
    """Hrefs of the two required sheets found in a documentation section."""

    safety_href: Optional[str] = None
    technical_href: Optional[str] = None


@dataclass(frozen=True)
class RunConfiguration:
    """Per-run switches consumed by the validation core."""

    validate_pdf_links: bool = True
    delay_ms: int = 200
    concurrency: int = 8

    def __post_init__(self) -> None:
        if self.delay_ms <= 0:
            raise ValueError("delay_ms must be a strictly positive integer")
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
