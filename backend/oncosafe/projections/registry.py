"""Projection configuration.

A projection flattens fields out of a JSON document into columns of a
secondary table. The document stays the source of truth; the projection is
rebuilt from it on every write.
"""

from dataclasses import dataclass, field
from typing import Any, Callable


@dataclass
class FieldExtractor:
    """Maps a document field to a projection column.

    Args:
        target_column: Name of the column in the projection table.
        extractor: Function that extracts the value from the document.
    """

    target_column: str
    extractor: Callable[[dict], Any]


@dataclass
class ProjectionConfig:
    """How to derive one projection table row from a document."""

    name: str
    table_name: str
    extractors: list[FieldExtractor] = field(default_factory=list)

    def extract(self, document: dict) -> dict:
        """Extract all projection fields from a document.

        Args:
            document: The stored JSON document.

        Returns:
            Dictionary mapping column names to extracted values.
        """
        return {e.target_column: e.extractor(document) for e in self.extractors}
