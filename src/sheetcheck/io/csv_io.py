"""
CSV input/output for batch runs.

Input: any CSV with a ``URL`` header column, comma or semicolon separated.
Output: ``URL;result;comments`` with one row per validated URL.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Iterable, List

import structlog

from sheetcheck.errors import CsvInputError
from sheetcheck.models import ValidationOutcome
from sheetcheck.utils.atomic import atomic_write_text

logger = structlog.get_logger(__name__)

URL_COLUMN = "url"
OUTPUT_HEADER = ["URL", "result", "comments"]


def detect_delimiter(first_line: str) -> str:
    """Pick the more frequent separator; ties go to comma, no separator at all to semicolon."""
    commas = first_line.count(",")
    semicolons = first_line.count(";")
    if semicolons > commas:
        return ";"
    if commas > 0:
        return ","
    return ";"


def parse_csv(content: str) -> List[List[str]]:
    """Parse *content* into rows, dropping rows whose cells are all blank."""
    content = content.lstrip("\ufeff").replace("\r\n", "\n")
    if content.count('"') % 2:
        raise CsvInputError("Malformed CSV file: unterminated quotes")

    first_line = next((line for line in content.split("\n") if line.strip()), "")
    reader = csv.reader(io.StringIO(content), delimiter=detect_delimiter(first_line), quotechar='"')
    try:
        rows = list(reader)
    except csv.Error as e:
        raise CsvInputError(f"Malformed CSV file: {e}") from e
    return [row for row in rows if any(value.strip() for value in row)]


def extract_urls(rows: List[List[str]]) -> List[str]:
    """Return the trimmed, de-duplicated values of the ``URL`` column in file order."""
    if not rows:
        raise CsvInputError("CSV file contains no data")

    header, data_rows = rows[0], rows[1:]
    try:
        column = [name.strip().lower() for name in header].index(URL_COLUMN)
    except ValueError:
        raise CsvInputError('Could not find a "URL" column in the CSV file') from None

    seen: dict[str, None] = {}
    for row in data_rows:
        value = row[column].strip() if column < len(row) else ""
        if value and value not in seen:
            seen[value] = None
    return list(seen)


def read_urls_from_csv(path: Path) -> List[str]:
    """Read the distinct candidate URLs from the CSV file at *path*."""
    try:
        content = Path(path).read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        raise CsvInputError(f"Input file not found: {path}") from None
    if "\ufffd" in content:
        logger.warning("Input is not valid UTF-8, undecodable bytes replaced", path=str(path))
    urls = extract_urls(parse_csv(content))
    logger.info("Input loaded", path=str(path), urls=len(urls))
    return urls


def serialize_results(outcomes: Iterable[ValidationOutcome], delimiter: str = ";") -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter, quotechar='"', lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(OUTPUT_HEADER)
    for outcome in outcomes:
        writer.writerow(outcome.to_row())
    return buffer.getvalue()


def write_results_csv(path: Path, outcomes: Iterable[ValidationOutcome], delimiter: str = ";") -> None:
    """Write *outcomes* to *path* atomically, creating parent directories."""
    atomic_write_text(Path(path), serialize_results(outcomes, delimiter))
    logger.info("Results written", path=str(path))
