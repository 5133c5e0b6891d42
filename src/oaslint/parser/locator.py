"""Heuristic mapping from document coordinates back to raw text ranges.

The document tree does not retain source positions, so every lookup here is a
text scan. Two families exist: operation-anchored lookups (path + method) and
paths-block-anchored lookups (a top-level path key). All lookups return a
:class:`TextRange` and never raise; when nothing matches they return the
fallback range of the lookup's policy.

Sequential lookups (``next_*``) take and return a :class:`ScanCursor`. They
assume that structured entries and their textual occurrences correspond one
to one, in source order.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple


class TextRange(NamedTuple):
    """Half-open ``[start, end)`` range of offsets into the raw text."""
    start: int
    end: int

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start


class Fallback(str, Enum):
    """Range returned when a lookup finds nothing."""
    DOCUMENT_START = "document_start"    # (0, 0)
    WHOLE_DOCUMENT = "whole_document"    # (0, len(raw))


@dataclass(frozen=True)
class ScanCursor:
    """Monotonic scan position threaded between sequential lookups."""
    offset: int = 0

    def advance_to(self, offset: int) -> "ScanCursor":
        return ScanCursor(max(self.offset, offset))


class PositionLocator:
    """Locate document elements in the raw text they were parsed from."""

    def __init__(self, raw: str):
        self.raw = raw

    def fallback(self, policy: Fallback) -> TextRange:
        if policy == Fallback.WHOLE_DOCUMENT:
            return TextRange(0, len(self.raw))
        return TextRange(0, 0)

    # Operation-anchored family

    def path_key_offset(self, path: str) -> int | None:
        """Offset of a path key token anywhere in the text."""
        pattern = re.compile(
            rf"^[ \t]*([\"']?){re.escape(path)}\1[ \t]*:(?=[ \t]|$)", re.MULTILINE
        )
        match = pattern.search(self.raw)
        if match is None:
            return None
        return match.start() + match.group(0).index(path)

    def method_range(self, path: str, method: str) -> TextRange:
        """The method key of an operation. Falls back to the whole document."""
        offset = self._method_offset(path, method)
        if offset is None:
            return self.fallback(Fallback.WHOLE_DOCUMENT)
        return TextRange(offset, offset + len(method))

    def operation_anchor(self, path: str, method: str) -> int:
        """Offset from which leaf lookups inside an operation start."""
        offset = self._method_offset(path, method)
        if offset is not None:
            return offset
        path_offset = self.path_key_offset(path)
        return path_offset if path_offset is not None else 0

    def parameter_range(self, path: str, method: str, name: str) -> TextRange:
        """The value of a ``name: <parameter>`` entry near an operation.

        Searches after the method key first, then after the path key (for
        path-level parameters). Falls back to :meth:`method_range`.
        """
        escaped = re.escape(name)
        patterns = [
            re.compile(rf"\bname:[ \t]*(){escaped}(?![\w.-])"),
            re.compile(rf"[\"']?\bname[\"']?[ \t]*:[ \t]*([\"']){escaped}\1"),
        ]
        starts = [self.operation_anchor(path, method)]
        path_offset = self.path_key_offset(path)
        if path_offset is not None and path_offset not in starts:
            starts.append(path_offset)

        for start in starts:
            for pattern in patterns:
                match = pattern.search(self.raw, start)
                if match is not None:
                    offset = match.end() - len(name) - len(match.group(1))
                    return TextRange(offset, offset + len(name))
        return self.method_range(path, method)

    def parameters_block_range(self, path: str, method: str) -> TextRange:
        """The ``parameters`` key of an operation. Falls back to :meth:`method_range`."""
        block = self._operation_block(path, method)
        if block is not None:
            match = self._key_pattern("parameters").search(self.raw, block[0], block[1])
            if match is not None:
                offset = match.start("key")
                return TextRange(offset, offset + len("parameters"))
        return self.method_range(path, method)

    def ref_usage_range(self, path: str, method: str, ref: str) -> TextRange:
        """A ``$ref`` string used inside an operation.

        Falls back to the next ``$ref`` keyword after the operation, then to
        the document start.
        """
        anchor = self.operation_anchor(path, method)
        index = self.raw.find(ref, anchor)
        if index >= 0:
            return TextRange(index, index + len(ref))
        index = self.raw.find("$ref", anchor)
        if index >= 0:
            return TextRange(index, index + len("$ref"))
        return self.fallback(Fallback.DOCUMENT_START)

    def schema_usage_range(self, path: str, method: str, schema: object) -> TextRange:
        """Where an operation uses a schema: its ``$ref`` or the ``schema`` key."""
        if isinstance(schema, dict) and isinstance(schema.get("$ref"), str):
            return self.ref_usage_range(path, method, schema["$ref"])
        anchor = self.operation_anchor(path, method)
        match = self._key_pattern("schema").search(self.raw, anchor)
        if match is not None:
            offset = match.start("key")
            return TextRange(offset, offset + len("schema"))
        return self.fallback(Fallback.DOCUMENT_START)

    def response_code_range(self, path: str, method: str, code: str) -> TextRange:
        """A status code key under an operation's ``responses``.

        Falls back to the ``responses`` key, then to :meth:`method_range`.
        """
        block = self._operation_block(path, method)
        if block is None:
            return self.method_range(path, method)
        responses = self._key_pattern("responses").search(self.raw, block[0], block[1])
        if responses is None:
            return self.method_range(path, method)

        code_match = self._key_pattern(code).search(self.raw, responses.end(), block[1])
        if code_match is not None:
            offset = code_match.start("key")
            return TextRange(offset, offset + len(code))
        offset = responses.start("key")
        return TextRange(offset, offset + len("responses"))

    # Paths-block-anchored family

    def paths_block_offset(self) -> int:
        """Offset of the top-level ``paths`` key (0 when absent)."""
        match = re.compile(r"^([\"']?)paths\1[ \t]*:", re.MULTILINE).search(self.raw)
        if match is None:
            match = re.compile(r"^[ \t]*([\"'])paths\1[ \t]*:", re.MULTILINE).search(self.raw)
        return match.start() if match is not None else 0

    def paths_keyword_range(self) -> TextRange:
        """The top-level ``paths`` key itself. Falls back to the document start."""
        match = re.compile(r"^[ \t]*([\"']?)(?P<key>paths)\1[ \t]*:", re.MULTILINE).search(self.raw)
        if match is None:
            return self.fallback(Fallback.DOCUMENT_START)
        return TextRange(match.start("key"), match.end("key"))

    def path_key_range(self, path: str, fallback: Fallback = Fallback.DOCUMENT_START) -> TextRange:
        """A path key inside the ``paths`` block, ignoring earlier occurrences
        of the same text (for example inside a server URL)."""
        pattern = re.compile(
            rf"(?:^|\r?\n)[ \t]*([\"']?)(?P<key>{re.escape(path)})\1[ \t]*:", re.MULTILINE
        )
        match = pattern.search(self.raw, self.paths_block_offset())
        if match is None:
            return self.fallback(fallback)
        return TextRange(match.start("key"), match.end("key"))

    # Leaf and sequential lookups

    def key_range(self, key: str, start: int | None = None,
                  fallback: Fallback = Fallback.DOCUMENT_START) -> TextRange:
        """A mapping key, searched from ``start`` first and then globally."""
        needles = [f"\n{key}:", f"{key}:", f'\n"{key}":', f'"{key}":']
        starts = [start, 0] if start is not None and start > 0 else [0]
        for search_from in starts:
            for needle in needles:
                index = self.raw.find(needle, search_from)
                if index >= 0:
                    offset = index + needle.startswith("\n") + ('"' in needle)
                    return TextRange(offset, offset + len(key))
        return self.fallback(fallback)

    def top_level_key_range(self, key: str, fallback: Fallback = Fallback.WHOLE_DOCUMENT) -> TextRange:
        """A key at column zero (or the first quoted occurrence, for JSON)."""
        pattern = re.compile(rf"^([\"']?)(?P<key>{re.escape(key)})\1[ \t]*:", re.MULTILINE)
        match = pattern.search(self.raw)
        if match is None:
            match = re.compile(rf"([\"'])(?P<key>{re.escape(key)})\1[ \t]*:").search(self.raw)
        if match is None:
            return self.fallback(fallback)
        return TextRange(match.start("key"), match.end("key"))

    def text_range(self, needle: str, start: int = 0,
                   fallback: Fallback = Fallback.DOCUMENT_START) -> TextRange:
        """First literal occurrence of ``needle`` at or after ``start``."""
        if needle:
            index = self.raw.find(needle, max(start, 0))
            if index >= 0:
                return TextRange(index, index + len(needle))
        return self.fallback(fallback)

    def next_text(self, needle: str, cursor: ScanCursor,
                  fallback: Fallback = Fallback.DOCUMENT_START) -> tuple[TextRange, ScanCursor]:
        """Next occurrence of ``needle``; the cursor moves past the match."""
        if needle:
            index = self.raw.find(needle, cursor.offset)
            if index >= 0:
                found = TextRange(index, index + len(needle))
                return found, cursor.advance_to(found.end)
        return self.fallback(fallback), cursor

    def next_key(self, key: str, cursor: ScanCursor) -> tuple[TextRange, ScanCursor]:
        """Next ``key:`` (preferred) or ``"key":``; covers the needle."""
        for needle in (f"{key}:", f'"{key}":'):
            index = self.raw.find(needle, cursor.offset)
            if index >= 0:
                found = TextRange(index, index + len(needle))
                return found, cursor.advance_to(found.end)
        return self.fallback(Fallback.DOCUMENT_START), cursor

    def next_status_code(self, code: str, cursor: ScanCursor) -> tuple[TextRange, ScanCursor]:
        """Next line keyed by ``code``, ``"code"`` or ``'code'``.

        Returns the range of the code token and a cursor at the start of the
        following line. Falls back to the document start, cursor unchanged.
        """
        code = str(code)
        line_start = self.raw.rfind("\n", 0, max(cursor.offset, 0)) + 1 if cursor.offset > 0 else 0
        pattern = re.compile(rf"[ \t]*([\"']?){re.escape(code)}\1[ \t]*:")
        while line_start < len(self.raw):
            line_end = self.raw.find("\n", line_start)
            end = len(self.raw) if line_end == -1 else line_end
            match = pattern.match(self.raw, line_start, end)
            if match is not None:
                offset = self.raw.index(code, line_start, end)
                found = TextRange(offset, offset + len(code))
                return found, cursor.advance_to(end + 1 if line_end != -1 else end)
            if line_end == -1:
                break
            line_start = line_end + 1
        return self.fallback(Fallback.DOCUMENT_START), cursor

    def violation_range(self, value: str, pattern: re.Pattern, start: int = 0) -> TextRange:
        """The offending characters of a string value.

        Locates the value's literal text (from ``start``) and narrows to the
        first match of ``pattern`` inside it; falls back to the first
        offending run anywhere after ``start``, then to the document start.
        """
        match = pattern.search(value) if value else None
        if match is None:
            return self.fallback(Fallback.DOCUMENT_START)
        index = self.raw.find(value, max(start, 0))
        if index >= 0:
            return TextRange(index + match.start(), index + match.end())
        offending = match.group(0)
        index = self.raw.find(offending, max(start, 0))
        if index < 0:
            index = self.raw.find(offending)
        if index >= 0:
            return TextRange(index, index + len(offending))
        return self.fallback(Fallback.DOCUMENT_START)

    def line_range(self, offset: int) -> TextRange:
        """The line containing ``offset``, without its newline."""
        offset = min(max(offset, 0), len(self.raw))
        start = self.raw.rfind("\n", 0, offset) + 1
        end = self.raw.find("\n", offset)
        return TextRange(start, len(self.raw) if end == -1 else end)

    def line_number(self, offset: int) -> int:
        """1-based line number of ``offset``."""
        offset = min(max(offset, 0), len(self.raw))
        return self.raw.count("\n", 0, offset) + 1

    # Internals

    @staticmethod
    def _key_pattern(key: str) -> re.Pattern:
        return re.compile(rf"^[ \t]*([\"']?)(?P<key>{re.escape(key)})\1[ \t]*:", re.MULTILINE)

    def _path_match(self, path: str) -> re.Match | None:
        pattern = re.compile(
            rf"^(?P<indent>[ \t]*)([\"']?){re.escape(path)}\2[ \t]*:(?=[ \t]|$)", re.MULTILINE
        )
        return pattern.search(self.raw, self.paths_block_offset())

    def _block_end(self, start: int, indent: int) -> int:
        """End of the block opened by the line at ``start`` with ``indent``."""
        line_end = self.raw.find("\n", start)
        if line_end == -1:
            return len(self.raw)
        position = line_end + 1
        while position < len(self.raw):
            next_end = self.raw.find("\n", position)
            end = len(self.raw) if next_end == -1 else next_end
            line = self.raw[position:end]
            stripped = line.lstrip(" \t")
            if stripped and not stripped.startswith("#") and stripped.rstrip("\r") not in ("}", "},"):
                if len(line) - len(stripped) <= indent:
                    return position
            if next_end == -1:
                break
            position = next_end + 1
        return len(self.raw)

    def _operation_block(self, path: str, method: str) -> tuple[int, int] | None:
        path_match = self._path_match(path)
        if path_match is None:
            return None
        path_indent = len(path_match.group("indent"))
        path_end = self._block_end(path_match.start(), path_indent)

        method_pattern = re.compile(
            rf"^(?P<indent>[ \t]+)([\"']?)(?P<key>{re.escape(method)})\2[ \t]*:", re.MULTILINE
        )
        child_indent = self._first_child_indent(path_match.end(), path_end)
        position = path_match.end()
        while True:
            method_match = method_pattern.search(self.raw, position, path_end)
            if method_match is None:
                return None
            method_indent = len(method_match.group("indent"))
            if method_indent > path_indent and (child_indent is None or method_indent == child_indent):
                return method_match.start("key"), self._block_end(method_match.start(), method_indent)
            position = method_match.end()

    def _first_child_indent(self, start: int, end: int) -> int | None:
        position = self.raw.find("\n", start, end)
        while 0 <= position < end:
            line_start = position + 1
            line_end = self.raw.find("\n", line_start, end)
            line = self.raw[line_start:end if line_end == -1 else line_end]
            stripped = line.lstrip(" \t")
            if stripped.strip() and not stripped.startswith("#"):
                return len(line) - len(stripped)
            position = line_end
        return None

    def _method_offset(self, path: str, method: str) -> int | None:
        block = self._operation_block(path, method)
        return block[0] if block is not None else None
