"""
Legacy TXT Package

Reads and writes the SOH-delimited text export of the previous bookkeeping
app. Imports deduplicate against the target account and create missing
categories on the fly.
"""

from .exporter import export_file, export_legacy_txt
from .importer import ImportResult, LegacyImporter
from .parser import ParsedRecord, ParseResult, parse_legacy_txt

__all__ = [
    "ImportResult",
    "LegacyImporter",
    "ParseResult",
    "ParsedRecord",
    "export_file",
    "export_legacy_txt",
    "parse_legacy_txt",
]
