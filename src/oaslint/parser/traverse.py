"""Traversal helpers shared by checks."""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from oaslint.parser.document import SpecDocument

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

# Path item fields that are not operations.
PATH_ITEM_FIELDS = ("$ref", "summary", "description", "servers", "parameters")


@dataclass(frozen=True)
class Operation:
    """One operation of a path item."""
    path: str
    method: str
    operation: dict[str, Any]
    path_item: dict[str, Any]


@dataclass(frozen=True)
class HeaderLocation:
    """A header name and the dotted pointer it was declared at."""
    name: str
    pointer: str

    @property
    def is_response_header(self) -> bool:
        return ".responses." in self.pointer and ".headers." in self.pointer


def iter_path_items(document: SpecDocument) -> Iterator[tuple[str, dict[str, Any]]]:
    for path, path_item in document.paths.items():
        if isinstance(path_item, dict):
            yield path, path_item


def iter_operations(document: SpecDocument, methods: list[str] | None = None) -> Iterator[Operation]:
    """Yield operations in document order, optionally restricted to ``methods``."""
    wanted = [m.lower() for m in methods] if methods else None
    for path, path_item in iter_path_items(document):
        for key, operation in path_item.items():
            method = key.lower()
            if method not in HTTP_METHODS:
                continue
            if wanted is not None and method not in wanted:
                continue
            if isinstance(operation, dict):
                yield Operation(path, key, operation, path_item)


def operation_parameters(document: SpecDocument, operation: Operation) -> list[Any]:
    """Resolved path-level and operation-level parameters."""
    parameters: list[Any] = []
    for source in (operation.path_item.get("parameters"), operation.operation.get("parameters")):
        if isinstance(source, list):
            parameters.extend(document.resolve(parameter) for parameter in source)
    return parameters


def media_schemas(document: SpecDocument, holder: Any) -> Iterator[tuple[str, Any]]:
    """Yield ``(media_type, schema)`` for a request body or response."""
    resolved = document.resolve(holder)
    if not isinstance(resolved, dict):
        return
    content = resolved.get("content")
    if not isinstance(content, dict):
        return
    for media_type, media in content.items():
        if isinstance(media, dict) and media.get("schema") is not None:
            yield media_type, media["schema"]


def preferred_schema(document: SpecDocument, response: Any) -> Any:
    """Resolved schema of ``application/json`` content, else of the first media type."""
    resolved = document.resolve(response)
    content = resolved.get("content") if isinstance(resolved, dict) else None
    if not isinstance(content, dict) or not content:
        return None
    media = content.get("application/json")
    if media is None:
        media = next(iter(content.values()))
    if not isinstance(media, dict) or media.get("schema") is None:
        return None
    return document.resolve(media["schema"])


def collect_header_locations(document: SpecDocument) -> list[HeaderLocation]:
    """Request headers (``in: header`` parameters) and response header keys."""
    locations: list[HeaderLocation] = []
    for path, path_item in iter_path_items(document):
        for index, parameter in enumerate(_as_list(path_item.get("parameters"))):
            name = _header_parameter_name(document, parameter)
            if name is not None:
                locations.append(HeaderLocation(name, f"paths.{path}.parameters[{index}].name"))

        for key, operation in path_item.items():
            if key not in HTTP_METHODS or not isinstance(operation, dict):
                continue
            for index, parameter in enumerate(_as_list(operation.get("parameters"))):
                name = _header_parameter_name(document, parameter)
                if name is not None:
                    locations.append(
                        HeaderLocation(name, f"paths.{path}.{key}.parameters[{index}].name")
                    )

            responses = operation.get("responses")
            if not isinstance(responses, dict):
                continue
            for status_code, response in responses.items():
                headers = response.get("headers") if isinstance(response, dict) else None
                if not isinstance(headers, dict):
                    continue
                for header_name in headers:
                    locations.append(HeaderLocation(
                        header_name,
                        f"paths.{path}.{key}.responses.{status_code}.headers.{header_name}",
                    ))
    return locations


def _header_parameter_name(document: SpecDocument, parameter: Any) -> str | None:
    resolved = document.resolve(parameter)
    if isinstance(resolved, dict) and resolved.get("in") == "header" and isinstance(resolved.get("name"), str):
        return resolved["name"]
    return None


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []
