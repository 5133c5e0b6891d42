"""Local ``$ref`` resolution over a parsed document.

Resolution never raises: a dangling pointer leaves the referencing node as is,
and a cyclic chain stops at the last node reached before the repeat.
"""

import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import unquote

logger = logging.getLogger(__name__)

COMPOSITION_KEYWORDS = ("allOf", "oneOf", "anyOf")

SchemaVisitor = Callable[[str, Any], None]


def is_reference(node: Any) -> bool:
    return isinstance(node, dict) and isinstance(node.get("$ref"), str)


def decode_pointer_token(token: str) -> str:
    """Decode one JSON pointer token (percent-encoding, then ``~1`` and ``~0``)."""
    return unquote(token).replace("~1", "/").replace("~0", "~")


class RefResolver:
    """Cycle-safe, memoizing resolver for local JSON pointers.

    The cache maps a pointer string to the node its chain ends on. It is
    scoped to one document (one run); pass an explicit dict to share it
    between resolvers over the same tree.
    """

    def __init__(self, root: Any, cache: dict[str, Any] | None = None):
        self.root = root
        self.cache = {} if cache is None else cache

    def lookup(self, pointer: str) -> Any:
        """Return the node a local pointer designates, or ``None``."""
        if not isinstance(pointer, str) or not pointer.startswith("#"):
            return None
        if pointer == "#":
            return self.root
        if not pointer.startswith("#/"):
            return None

        node = self.root
        for raw_token in pointer[2:].split("/"):
            token = decode_pointer_token(raw_token)
            if isinstance(node, dict):
                if token not in node:
                    return None
                node = node[token]
            elif isinstance(node, list):
                if not token.isdigit() or int(token) >= len(node):
                    return None
                node = node[int(token)]
            else:
                return None
        return node

    def resolve(self, node: Any) -> Any:
        """Follow a ``$ref`` chain starting at ``node``.

        Returns ``node`` unchanged when it is not a reference or its pointer
        cannot be resolved.
        """
        if not is_reference(node):
            return node

        pointer = node["$ref"]
        if pointer in self.cache:
            resolved = self.cache[pointer]
        else:
            resolved = self._follow(pointer)
            self.cache[pointer] = resolved

        if resolved is None:
            logger.debug(f"Unresolved reference: {pointer}")
            return node
        return resolved

    def _follow(self, pointer: str) -> Any:
        seen = {pointer}
        current = self.lookup(pointer)
        if current is None:
            return None

        while is_reference(current):
            next_pointer = current["$ref"]
            if next_pointer in seen:
                logger.debug(f"Reference cycle detected at {next_pointer}")
                break
            seen.add(next_pointer)
            target = self.lookup(next_pointer)
            if target is None:
                break
            current = target
        return current

    def walk_schema(self, schema: Any, visitor: SchemaVisitor, seen: set[int] | None = None) -> None:
        """Visit every property reachable from ``schema``.

        Descends composition keywords, ``properties``, ``items`` and mapping
        ``additionalProperties``. ``seen`` holds identities of visited schema
        nodes and may be shared across calls to visit a node only once.
        """
        if seen is None:
            seen = set()

        node = self.resolve(schema)
        if not isinstance(node, dict) or id(node) in seen:
            return
        seen.add(id(node))

        for keyword in COMPOSITION_KEYWORDS:
            variants = node.get(keyword)
            if isinstance(variants, list):
                for variant in variants:
                    self.walk_schema(variant, visitor, seen)

        properties = node.get("properties")
        if isinstance(properties, dict):
            for name, property_schema in properties.items():
                visitor(name, property_schema)
                self.walk_schema(property_schema, visitor, seen)

        items = node.get("items")
        if isinstance(items, list):
            for item in items:
                self.walk_schema(item, visitor, seen)
        elif items is not None:
            self.walk_schema(items, visitor, seen)

        additional = node.get("additionalProperties")
        if isinstance(additional, dict):
            self.walk_schema(additional, visitor, seen)

    def schema_property_names(self, schema: Any) -> set[str]:
        names: set[str] = set()
        self.walk_schema(schema, lambda name, _schema: names.add(name))
        return names
