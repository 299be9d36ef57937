"""Tree-sitter helpers for reading JavaScript sources structurally."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

JAVASCRIPT = Language(tree_sitter_javascript.language())

_local = threading.local()


@dataclass
class ParsedSource:
    """A parsed JavaScript module together with its raw bytes."""

    root: Node
    source: bytes

    @property
    def has_error(self) -> bool:
        return self.root.has_error

    def text(self, node: Node) -> str:
        return self.source[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")

    def error_location(self) -> Optional[str]:
        for node in iter_nodes(self.root):
            if node.type == "ERROR" or node.is_missing:
                row, column = node.start_point
                return f"line {row + 1}, column {column + 1}"
        return None


def _get_parser() -> Parser:
    # Parsers are not shared between threads.
    parser = getattr(_local, "parser", None)
    if parser is None:
        parser = Parser(JAVASCRIPT)
        _local.parser = parser
    return parser


def parse_javascript(source: str) -> ParsedSource:
    source_bytes = source.encode("utf-8")
    tree = _get_parser().parse(source_bytes)
    return ParsedSource(root=tree.root_node, source=source_bytes)


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield ``node`` and its descendants in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def named_children(node: Node) -> List[Node]:
    return [child for child in node.named_children if child.type != "comment"]


def string_value(node: Optional[Node], parsed: ParsedSource) -> Optional[str]:
    """Return the value of a string literal, or ``None`` for anything else."""
    if node is None:
        return None
    if node.type == "string":
        return parsed.text(node)[1:-1]
    if node.type == "template_string":
        if any(child.type == "template_substitution" for child in node.children):
            return None
        return parsed.text(node)[1:-1]
    return None


def property_key(pair: Node, parsed: ParsedSource) -> Optional[str]:
    key = pair.child_by_field_name("key")
    if key is None:
        return None
    if key.type in {"property_identifier", "identifier", "number"}:
        return parsed.text(key)
    return string_value(key, parsed)


def object_properties(node: Node, parsed: ParsedSource) -> Dict[str, Node]:
    """Map property names of an object literal to their value nodes."""
    properties: Dict[str, Node] = {}
    for child in named_children(node):
        if child.type != "pair":
            continue
        key = property_key(child, parsed)
        value = child.child_by_field_name("value")
        if key is not None and value is not None:
            properties[key] = value
    return properties


def call_target(node: Node, parsed: ParsedSource) -> Optional[str]:
    """Return the callee text of a call expression, e.g. ``slice.build``."""
    callee = node.child_by_field_name("function")
    if callee is None:
        return None
    return parsed.text(callee).replace(" ", "").replace("\n", "")


def call_arguments(node: Node) -> List[Node]:
    arguments = node.child_by_field_name("arguments")
    if arguments is None:
        return []
    return named_children(arguments)


__all__ = [
    "JAVASCRIPT",
    "ParsedSource",
    "call_arguments",
    "call_target",
    "iter_nodes",
    "named_children",
    "object_properties",
    "parse_javascript",
    "property_key",
    "string_value",
]
