"""Word heuristics for naming checks: tokenizing identifiers and paths,
spotting abbreviations and (given a dictionary) unknown words."""

import re
from pathlib import Path

DATA_DIR = Path(__file__).parent.parent.parent / "data"

VERSION_SEGMENT = re.compile(r"^v[0-9]+(\.[0-9]+)?$")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")
_VOWELS = re.compile(r"[aeiou]")
_LETTERS = re.compile(r"^[a-z]+$")


def load_word_list(text: str) -> set[str]:
    """One word per line; blank lines and ``#`` comments are ignored."""
    words = set()
    for line in text.splitlines():
        word = line.strip().lower()
        if word and not word.startswith("#"):
            words.add(word)
    return words


def bundled_abbreviations() -> set[str]:
    """Abbreviations accepted in API names (``oaslint/data/allowed_abbreviations``)."""
    text = (DATA_DIR / "allowed_abbreviations").read_text(encoding="utf-8")
    return load_word_list(text)


def read_word_file(path: str | Path | None) -> set[str] | None:
    """Load a word list file, or ``None`` when no path is configured."""
    if not path:
        return None
    return load_word_list(Path(path).read_text(encoding="utf-8"))


def split_identifier(name: str) -> list[str]:
    """``createdAt`` / ``created-at`` / ``created_at`` -> ``["created", "at"]``."""
    spaced = _CAMEL_BOUNDARY.sub(r"\1 \2", name)
    spaced = re.sub(r"[-_]", " ", spaced).lower()
    return [token for token in spaced.split() if token]


def split_path(path: str) -> list[str]:
    """Lowercase word tokens of a URI path, skipping parameters and versions."""
    tokens: list[str] = []
    for segment in path.split("/"):
        if not segment:
            continue
        if re.fullmatch(r"\{.*\}", segment) or VERSION_SEGMENT.match(segment):
            continue
        for part in re.split(r"[-_]", segment):
            if part:
                tokens.extend(p.lower() for p in _CAMEL_BOUNDARY.sub(r"\1 \2", part).split())
    return tokens


def looks_like_abbreviation(token: str, allowed: set[str]) -> bool:
    """Short, vowel-free tokens not in the allowed list (``usr``, ``cfg``)."""
    if not token or not _LETTERS.match(token):
        return False
    if token in allowed or (token.endswith("s") and token[:-1] in allowed):
        return False
    if len(token) > 5 or len(token) <= 1:
        return False
    return not _VOWELS.search(token)


def looks_like_unknown_word(token: str, dictionary: set[str], allowed: set[str]) -> bool:
    """Tokens absent from ``dictionary`` that do not read like words."""
    if not token or not _LETTERS.match(token):
        return False
    if token in dictionary or token in allowed:
        return False
    if len(token) <= 2:
        return False

    vowels = len(_VOWELS.findall(token))
    if vowels == 0:
        return True
    if len(token) >= 6:
        return True
    if len(token) <= 4:
        return False
    return vowels <= 1
