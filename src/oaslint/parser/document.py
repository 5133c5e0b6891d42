"""Document model: raw OpenAPI text to a canonical, read-only tree.

The tree uses one shape only (``dict`` / ``list`` / scalars). Mapping keys are
always the literal key text, so ``200:`` and ``"200":`` both produce ``"200"``,
and timestamps are left as strings. The literal source text of top-level
scalars is kept so checks can distinguish ``openapi: 3.10`` from ``3.1``.
"""

import logging
from typing import Any

import yaml

from oaslint.errors import ParseError
from oaslint.parser.refs import RefResolver

logger = logging.getLogger(__name__)

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class SpecLoader(yaml.SafeLoader):
    """Safe YAML loader that keeps mapping keys as their source text."""

    def construct_mapping(self, node, deep=False):
        if not isinstance(node, yaml.MappingNode):
            raise yaml.constructor.ConstructorError(
                None, None, f"expected a mapping node, but found {node.id}", node.start_mark
            )
        self.flatten_mapping(node)
        mapping = {}
        for key_node, value_node in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping", node.start_mark,
                    "found a non-scalar mapping key", key_node.start_mark
                )
            mapping[key_node.value] = self.construct_object(value_node, deep=deep)
        return mapping


SpecLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


class SpecDocument:
    """Parsed OpenAPI document for one validation run.

    Owns the run's reference resolver (and therefore its resolution cache).
    Checks must treat ``root`` as read-only.
    """

    def __init__(self, root: dict[str, Any], raw: str, literals: dict[str, str] | None = None):
        self.root = root
        self.raw = raw
        self._literals = dict(literals or {})
        self.resolver = RefResolver(root)

    def get(self, *keys: str, default: Any = None) -> Any:
        """Walk nested mappings by key, returning ``default`` on any miss."""
        node: Any = self.root
        for key in keys:
            if not isinstance(node, dict) or key not in node:
                return default
            node = node[key]
        return node

    @property
    def paths(self) -> dict[str, Any]:
        paths = self.root.get("paths")
        return paths if isinstance(paths, dict) else {}

    @property
    def title(self) -> str | None:
        title = self.get("info", "title")
        return str(title) if title is not None else None

    def literal(self, key: str) -> str | None:
        """Source text of a top-level scalar value, e.g. ``"3.10"`` for ``openapi: 3.10``."""
        return self._literals.get(key)

    def metadata(self) -> dict[str, Any]:
        """Document-level metadata handed to exporters."""
        metadata: dict[str, Any] = {}
        if self.title is not None:
            metadata["title"] = self.title
        return metadata

    def resolve(self, node: Any) -> Any:
        return self.resolver.resolve(node)


def parse(text: str) -> SpecDocument:
    """Parse raw YAML or JSON text into a :class:`SpecDocument`.

    Raises:
        ParseError: If the text is not well-formed or its root is not a mapping
    """
    loader = None
    try:
        loader = SpecLoader(text)
        node = loader.get_single_node()
        data = loader.construct_document(node) if node is not None else None
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        line = mark.line + 1 if mark is not None else None
        column = mark.column + 1 if mark is not None else None
        logger.debug(f"YAML parsing failed: {e}")
        raise ParseError(_describe_yaml_error(e), error=e, line=line, column=column) from e
    finally:
        if loader is not None:
            loader.dispose()

    if data is None:
        raise ParseError("Document is empty")
    if not isinstance(data, dict):
        raise ParseError(f"Document root must be a mapping, got {type(data).__name__}")

    literals = {
        key_node.value: value_node.value
        for key_node, value_node in node.value
        if isinstance(key_node, yaml.ScalarNode) and isinstance(value_node, yaml.ScalarNode)
    }
    return SpecDocument(data, text, literals)


def _describe_yaml_error(error: yaml.YAMLError) -> str:
    problem = getattr(error, "problem", None)
    context = getattr(error, "context", None)
    if problem and context:
        return f"{context}, {problem}"
    if problem:
        return str(problem)
    return str(error).splitlines()[0] if str(error) else type(error).__name__
