"""
Env file line model.

Every line of a plaintext env file is classified as exactly one of:

- :class:`Blank`: empty or whitespace only, passed through unchanged
- :class:`Comment`: starts with ``#``, passed through unchanged
- :class:`Assignment`: anything else; ``KEY=VALUE`` data that gets encrypted

Keeping the raw text on every variant makes round trips exact.
"""
from dataclasses import dataclass
from typing import Optional, Union
from collections.abc import Iterable, Iterator

COMMENT_PREFIX = "#"
LINE_SEPARATOR = "\n"


@dataclass(frozen=True)
class Blank:
    raw: str = ""


@dataclass(frozen=True)
class Comment:
    raw: str

    @property
    def text(self) -> str:
        """Comment body without the leading marker."""
        return self.raw[len(COMMENT_PREFIX):]


@dataclass(frozen=True)
class Assignment:
    key: str
    value: str
    raw: str


Line = Union[Blank, Comment, Assignment]


def parse_line(raw: str) -> Line:
    """Classify a single line of an env file."""
    if raw.strip() == "":
        return Blank(raw)
    if raw.startswith(COMMENT_PREFIX):
        return Comment(raw)
    key, _, value = raw.partition("=")
    return Assignment(key=key.strip(), value=value, raw=raw)


def is_passthrough(line: Line) -> bool:
    """True for lines that are stored verbatim in an encrypted file."""
    return not isinstance(line, Assignment)


def parse_lines(lines: Iterable[str]) -> Iterator[Line]:
    for raw in lines:
        yield parse_line(raw)


def split_lines(text: str) -> list[str]:
    """Split file content into lines; a trailing newline yields a final ''."""
    return text.split(LINE_SEPARATOR)


def join_lines(lines: Iterable[str]) -> str:
    return LINE_SEPARATOR.join(lines)


def find_assignment(lines: Iterable[str], key: str) -> Optional[Assignment]:
    """Return the first assignment of ``key``, or None."""
    for line in parse_lines(lines):
        if isinstance(line, Assignment) and line.key == key:
            return line
    return None


def assignment_value(lines: Iterable[str], key: str) -> Optional[str]:
    """Return the stripped value assigned to ``key``; None if absent or empty."""
    line = find_assignment(lines, key)
    if line is None:
        return None
    return line.value.strip() or None


def replace_assignment(lines: list[str], key: str, value: str) -> list[str]:
    """Return a copy of ``lines`` with ``key`` set to ``value``.

    The first assignment of ``key`` is rewritten in place; if there is none,
    a new ``key=value`` line is appended before any trailing blank line so
    the file keeps its final newline.
    """
    updated = list(lines)
    new_line = f"{key}={value}"
    for idx, line in enumerate(parse_lines(updated)):
        if isinstance(line, Assignment) and line.key == key:
            updated[idx] = new_line
            return updated
    if updated and updated[-1] == "":
        updated.insert(len(updated) - 1, new_line)
    else:
        updated.append(new_line)
    return updated
