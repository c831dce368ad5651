"""CSV input and output."""

from .csv_io import detect_delimiter, parse_csv, read_urls_from_csv, serialize_results, write_results_csv

__all__ = ["detect_delimiter", "parse_csv", "read_urls_from_csv", "serialize_results", "write_results_csv"]
