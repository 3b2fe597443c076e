"""
Schema inference for catalog feeds.

Walks the sections under the feed's root section once and derives, per
section, an ordered and deduplicated list of typed columns.
"""

import logging
from typing import Dict, Iterator, List, Tuple

from feedsync.document.tree import FeedDocument, FeedNode
from feedsync.common.errors import InvalidArgumentError
from feedsync.ingest.models import Column, FeedSchema, SqlType, Table
from feedsync.ingest.type_detector import detect_sql_type

logger = logging.getLogger(__name__)

PARAM_TAG = "param"


def child_columns(item: FeedNode) -> Iterator[Tuple[str, FeedNode]]:
    """
    Yield (column_name, child) for the element children of an item node.

    Repeated ``<param>`` children are numbered ``param_0``, ``param_1``, ...
    in document order. The counter is local to the item.
    """
    param_index = 0
    for child in item.children():
        name = child.tag
        if name == PARAM_TAG:
            name = f"{PARAM_TAG}_{param_index}"
            param_index += 1
        yield name.lower(), child


class SchemaInferenceEngine:
    """
    Infers table definitions from a feed document.

    Every call to infer() starts from an empty state; nothing is carried
    over between documents.
    """

    def __init__(self, detect_child_types: bool = False):
        """
        Args:
            detect_child_types: Type child-element columns from their text
                instead of storing them as varchar
        """
        self.detect_child_types = detect_child_types

    def infer(self, document: FeedDocument) -> FeedSchema:
        """
        Infer one table per section that has at least one item node.

        Args:
            document: Parsed feed

        Returns:
            FeedSchema with tables in section order
        """
        if document is None:
            raise InvalidArgumentError("document must not be None")

        # section name -> column name -> type, both in first-seen order
        sections: Dict[str, Dict[str, SqlType]] = {}

        root = document.root_section()
        if root is None:
            logger.warning(
                f"Root section <{document.root_section_tag}> not found in {document.source or 'document'}")
            return FeedSchema()

        for section in root.children():
            name = section.tag
            if not name or not name.strip():
                continue
            if not section.has_element_children():
                continue

            columns = sections.setdefault(name, {})
            for item in section.children():
                self._collect_item_columns(item, columns)

        tables = tuple(
            Table(
                name=name,
                columns=tuple(Column(col, sql_type) for col, sql_type in columns.items()),
            )
            for name, columns in sections.items()
        )

        for table in tables:
            logger.debug(f"Inferred table {table.name}: {table.column_names}")
        logger.info(f"Inferred {len(tables)} table(s): {[t.name for t in tables]}")

        return FeedSchema(tables)

    def _collect_item_columns(self, item: FeedNode, columns: Dict[str, SqlType]) -> None:
        """Add the columns contributed by one item node (first occurrence wins)."""
        for attr_name, attr_value in item.attributes().items():
            columns.setdefault(attr_name.lower(), detect_sql_type(attr_value))

        if item.has_element_children():
            for column_name, child in child_columns(item):
                if column_name not in columns:
                    columns[column_name] = self._child_type(child)
        else:
            text = item.text()
            if text:
                columns.setdefault(item.tag.lower(), detect_sql_type(text))

    def _child_type(self, child: FeedNode) -> SqlType:
        if not self.detect_child_types or child.has_element_children():
            return SqlType.TEXT
        text = child.text()
        return detect_sql_type(text) if text else SqlType.TEXT

    def infer_table_names(self, document: FeedDocument) -> List[str]:
        """Convenience wrapper returning only the inferred table names."""
        return self.infer(document).table_names
