"""
Row extraction from feed sections.

Flattens every item node of a section into an ordered column -> raw value
mapping, using the same column naming rules as schema inference.
"""

import logging
from typing import Dict, List

from feedsync.common.errors import InvalidArgumentError
from feedsync.document.tree import FeedDocument, FeedNode
from feedsync.ingest.models import FeedSchema, Row
from feedsync.ingest.schema_inference import child_columns

logger = logging.getLogger(__name__)


class RowExtractor:
    """Extracts raw rows for a table from a feed document."""

    def extract_rows(self, document: FeedDocument, table_name: str) -> List[Row]:
        """
        Extract the rows of one section.

        Args:
            document: Parsed feed
            table_name: Section tag (e.g. ``offers``)

        Returns:
            Rows in document order; empty items are dropped and an unknown
            section yields an empty list
        """
        if document is None:
            raise InvalidArgumentError("document must not be None")
        if table_name is None or not table_name.strip():
            raise InvalidArgumentError("table_name must not be blank")

        rows: List[Row] = []
        for section in document.sections_named(table_name):
            for item in section.children():
                row = self._item_to_row(item)
                if row:
                    rows.append(row)

        logger.debug(f"Extracted {len(rows)} row(s) from section {table_name}")
        return rows

    def extract_all(self, document: FeedDocument, schema: FeedSchema) -> Dict[str, List[Row]]:
        """Extract rows for every table of an inferred schema."""
        return {name: self.extract_rows(document, name) for name in schema.table_names}

    def _item_to_row(self, item: FeedNode) -> Row:
        row: Row = {}

        for attr_name, attr_value in item.attributes().items():
            row[attr_name.lower()] = attr_value

        if item.has_element_children():
            for column_name, child in child_columns(item):
                # Attributes of a child never overwrite existing entries
                for attr_name, attr_value in child.attributes().items():
                    row.setdefault(attr_name.lower(), attr_value)
                row[column_name] = child.text()
        else:
            text = item.text()
            if text:
                row[item.tag.lower()] = text

        return row
