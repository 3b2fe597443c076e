"""
Typed access to a parsed feed document.

Inference and extraction only need a node's tag, its element children,
its attributes and its trimmed text. FeedNode describes that capability
set and XmlNode implements it over an lxml element.
"""

from typing import Dict, Iterator, List, Optional, Protocol

from lxml import etree


class FeedNode(Protocol):
    """Read-only view of a document node."""

    @property
    def tag(self) -> str:
        ...

    def children(self) -> List["FeedNode"]:
        ...

    def attributes(self) -> Dict[str, str]:
        ...

    def text(self) -> str:
        ...

    def has_element_children(self) -> bool:
        ...


def _is_element(node) -> bool:
    # Comments and processing instructions have a non-string tag in lxml
    return isinstance(node.tag, str)


def _local_name(name: str) -> str:
    return etree.QName(name).localname


def _collect_text(element) -> str:
    parts = [element.text or ""]
    for child in element:
        if _is_element(child):
            parts.append(_collect_text(child))
        parts.append(child.tail or "")
    return "".join(parts)


class XmlNode:
    """FeedNode backed by an lxml element."""

    __slots__ = ("_element",)

    def __init__(self, element):
        self._element = element

    @property
    def tag(self) -> str:
        return _local_name(self._element.tag)

    def children(self) -> List["XmlNode"]:
        return [XmlNode(child) for child in self._element if _is_element(child)]

    def attributes(self) -> Dict[str, str]:
        return {
            _local_name(name): value
            for name, value in self._element.attrib.items()
        }

    def text(self) -> str:
        """Concatenated text of the node and its descendants, trimmed."""
        return _collect_text(self._element).strip()

    def has_element_children(self) -> bool:
        return any(_is_element(child) for child in self._element)

    def __repr__(self) -> str:
        return f"XmlNode({self.tag!r})"


class FeedDocument:
    """
    A parsed feed.

    The root section is the child of the document element whose tag equals
    ``root_section`` (``<yml_catalog><shop>...``). A document whose element
    is itself the root section is accepted as well.
    """

    def __init__(self, root_element, root_section: str = "shop", source: Optional[str] = None):
        self._root = root_element
        self.root_section_tag = root_section
        self.source = source

    @property
    def root(self) -> XmlNode:
        return XmlNode(self._root)

    def root_section(self) -> Optional[XmlNode]:
        root = self.root
        if root.tag == self.root_section_tag:
            return root
        for child in root.children():
            if child.tag == self.root_section_tag:
                return child
        return None

    def sections(self) -> Iterator[XmlNode]:
        """Direct children of the root section, in document order."""
        shop = self.root_section()
        if shop is None:
            return iter(())
        return iter(shop.children())

    def sections_named(self, name: str) -> List[XmlNode]:
        return [section for section in self.sections() if section.tag == name]

    def __repr__(self) -> str:
        return f"FeedDocument(source={self.source!r}, root_section={self.root_section_tag!r})"
