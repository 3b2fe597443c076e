"""
Feed document access.

Provides the typed tree view used by schema inference and row extraction,
and the readers that turn files, URLs or bytes into FeedDocuments.
"""

from feedsync.document.tree import FeedDocument, FeedNode, XmlNode
from feedsync.document.reader import parse_bytes, read_from_file, read_from_url

__all__ = [
    "FeedDocument",
    "FeedNode",
    "XmlNode",
    "parse_bytes",
    "read_from_file",
    "read_from_url",
]
