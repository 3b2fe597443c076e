"""
Feed retrieval and parsing.

Reads a feed from a local file, a URL or raw bytes into a FeedDocument.
The parser accepts a DOCTYPE but never loads external DTDs or expands
entities.
"""

import logging
from pathlib import Path
from typing import Optional, Union

import httpx
from lxml import etree

from feedsync.common.errors import FeedParseError, InvalidArgumentError
from feedsync.common.resilience import retry_feed_fetch
from feedsync.config.settings import get_settings
from feedsync.document.tree import FeedDocument

logger = logging.getLogger(__name__)


def _safe_parser() -> etree.XMLParser:
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        load_dtd=False,
        dtd_validation=False,
        huge_tree=False,
    )


def parse_bytes(
    data: bytes,
    source: str = "<bytes>",
    root_section: Optional[str] = None,
) -> FeedDocument:
    """
    Parse raw XML bytes.

    Args:
        data: XML content
        source: Label used in error messages and logs
        root_section: Tag of the root section (defaults to settings)

    Returns:
        Parsed FeedDocument

    Raises:
        FeedParseError: If the content is not well-formed XML
    """
    if data is None:
        raise InvalidArgumentError("document must not be None")

    section = root_section or get_settings().root_section
    try:
        root = etree.fromstring(data, parser=_safe_parser())
    except etree.XMLSyntaxError as e:
        raise FeedParseError(f"Failed to parse XML from {source}: {e}", source=source) from e

    if root is None:
        raise FeedParseError(f"Failed to parse XML from {source}: empty document", source=source)

    logger.debug(f"Parsed feed from {source} (root element <{root.tag}>)")
    return FeedDocument(root, root_section=section, source=source)


def read_from_file(
    path: Union[str, Path],
    root_section: Optional[str] = None,
) -> FeedDocument:
    """
    Read and parse a feed from the local filesystem.

    Raises:
        InvalidArgumentError: If path is blank
        FeedParseError: If the file cannot be read or parsed
    """
    if path is None or not str(path).strip():
        raise InvalidArgumentError("path must not be blank")

    xml_path = Path(path)
    try:
        data = xml_path.read_bytes()
    except OSError as e:
        raise FeedParseError(f"Failed to read XML file {xml_path}: {e}", source=str(xml_path)) from e

    logger.info(f"Read feed file {xml_path} ({len(data)} bytes)")
    return parse_bytes(data, source=str(xml_path), root_section=root_section)


def read_from_url(
    url: str,
    root_section: Optional[str] = None,
    timeout: Optional[float] = None,
    attempts: Optional[int] = None,
) -> FeedDocument:
    """
    Download and parse a feed over HTTP(S).

    Transport failures are retried with backoff; HTTP error statuses are not.

    Raises:
        InvalidArgumentError: If url is blank
        FeedParseError: If the download fails or the body cannot be parsed
    """
    if url is None or not str(url).strip():
        raise InvalidArgumentError("url must not be blank")

    settings = get_settings()
    timeout = settings.fetch_timeout if timeout is None else timeout
    attempts = settings.fetch_retries if attempts is None else attempts

    @retry_feed_fetch(attempts=attempts)
    def _download() -> bytes:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
        return response.content

    try:
        data = _download()
    except (httpx.HTTPError, OSError) as e:
        raise FeedParseError(f"Failed to download XML from {url}: {e}", source=url) from e

    logger.info(f"Downloaded feed from {url} ({len(data)} bytes)")
    return parse_bytes(data, source=url, root_section=root_section)
