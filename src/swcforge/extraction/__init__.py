"""Extraction module - Requirement text to structured records.

Exports:
- RequirementExtractor: Line-by-line pattern-based extractor
- ExtractionConfig: [extraction] config section
- parse_text: One-off extraction helper
- rows_to_text / csv_to_text: Flatten decoded tables into extractor input
"""

from swcforge.extraction.extractor import ExtractionConfig, RequirementExtractor, parse_text
from swcforge.extraction.tabular import csv_to_text, rows_to_text

__all__ = [
    "ExtractionConfig",
    "RequirementExtractor",
    "csv_to_text",
    "parse_text",
    "rows_to_text",
]
