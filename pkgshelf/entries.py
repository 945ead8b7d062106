from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from pathlib import Path

from .atomic import atomic_write_text
from .errors import ConfigIOError, EntryNotFoundError, InvalidEntryError
from .formats import COMMENT_ESCAPE, COMMENT_MARKER, ENTRY_SEPARATOR
from .model import ConfigLine

logger = logging.getLogger(__name__)


def find_comment_start(line: str) -> int:
    """Index of the first comment marker not preceded by an escape, or -1."""
    start = 0
    while True:
        idx = line.find(COMMENT_MARKER, start)
        if idx <= 0:
            return idx
        if line[idx - 1] != COMMENT_ESCAPE:
            return idx
        start = idx + 1


def parse_config_line(raw: str) -> ConfigLine:
    cut = find_comment_start(raw)
    if cut < 0:
        body, comment = raw, ""
    else:
        body, comment = raw[:cut], raw[cut:]

    body = body.strip()
    if not body:
        return ConfigLine(key=None, value=None, comment=comment, raw=raw)

    if ENTRY_SEPARATOR not in body:
        return ConfigLine(key=body, value=None, comment=comment, raw=raw)

    key, value = body.split(ENTRY_SEPARATOR, 1)
    key = key.strip()
    value = value.strip()
    # "key =" with nothing but a comment after the separator is not an entry.
    if not key or not value:
        return ConfigLine(key=None, value=None, comment=comment, raw=raw)
    return ConfigLine(key=key, value=value, comment=comment, raw=raw)


def format_config_line(key: str, value: str | None) -> str:
    if value is None:
        return key
    return f"{key}{ENTRY_SEPARATOR}{value}"


def validate_entry(key: str, value: str | None) -> None:
    if not key:
        raise InvalidEntryError("config key must not be empty")
    if key != key.strip():
        raise InvalidEntryError(f"config key has surrounding whitespace: {key!r}")
    for ch in (ENTRY_SEPARATOR, COMMENT_MARKER, "\n", "\r"):
        if ch in key:
            raise InvalidEntryError(f"config key may not contain {ch!r}: {key!r}")
    if value is None:
        return
    if not value.strip():
        raise InvalidEntryError(f"config value for '{key}' must not be empty")
    if value != value.strip():
        raise InvalidEntryError(
            f"config value has surrounding whitespace: {value!r}"
        )
    for ch in (COMMENT_MARKER, "\n", "\r"):
        if ch in value:
            raise InvalidEntryError(
                f"config value may not contain {ch!r}: {value!r}"
            )


@dataclass
class ConfigDocument:
    """Ordered config lines, serialized back to text one line per record.

    Each line keeps its own ending, so untouched lines render byte-for-byte.
    A final line without a newline gets one on render.
    """

    lines: list[ConfigLine] = field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> ConfigDocument:
        if not text:
            return cls()
        pieces = text.split("\n")
        if pieces[-1] == "":
            pieces.pop()
        lines: list[ConfigLine] = []
        for piece in pieces:
            if piece.endswith("\r"):
                lines.append(replace(parse_config_line(piece[:-1]), eol="\r\n"))
            else:
                lines.append(parse_config_line(piece))
        return cls(lines=lines)

    def render(self) -> str:
        return "".join(f"{ln.raw}{ln.eol}" for ln in self.lines)

    def entries(self) -> Iterator[ConfigLine]:
        for ln in self.lines:
            if ln.is_entry:
                yield ln

    def append(self, key: str, value: str | None) -> ConfigLine:
        # New lines follow the ending of the line before them.
        eol = self.lines[-1].eol if self.lines else "\n"
        line = ConfigLine(
            key=key, value=value, raw=format_config_line(key, value), eol=eol
        )
        self.lines.append(line)
        return line

    def find(self, key: str, value: str | None) -> int | None:
        for idx, ln in enumerate(self.lines):
            if ln.key == key and ln.value == value:
                return idx
        return None

    def blank(self, index: int) -> ConfigLine:
        old = self.lines[index]
        self.lines[index] = ConfigLine(
            key=None, value=None, comment=old.comment, raw=old.comment, eol=old.eol
        )
        return old


class ConfigStore:
    """The user's persisted key/value entries.

    Two kinds of entries share the file: reserved options (``repo = name``)
    and bare keys (``prefix:package``), the latter being installed-package
    markers. A missing file reads as empty. There is no locking; concurrent
    writers race and the last writer wins.
    """

    def __init__(self, path: Path, reserved_options: frozenset[str]) -> None:
        self.path = path
        self.reserved_options = reserved_options

    def load(self) -> ConfigDocument:
        try:
            # newline="" keeps "\r\n" endings for the document to preserve.
            with self.path.open(encoding="utf-8", newline="") as fh:
                text = fh.read()
        except FileNotFoundError:
            logger.debug("config file %s missing; treating as empty", self.path)
            return ConfigDocument()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigIOError(f"cannot read {self.path}: {e}") from e
        return ConfigDocument.parse(text)

    def save(self, document: ConfigDocument) -> None:
        try:
            atomic_write_text(self.path, [document.render()])
        except OSError as e:
            raise ConfigIOError(f"cannot write {self.path}: {e}") from e

    def list_entries(self, option_key: str) -> list[str]:
        return [
            ln.value
            for ln in self.load().entries()
            if ln.key == option_key and ln.value is not None
        ]

    def list_bare_keys(self) -> set[str]:
        return {
            ln.key
            for ln in self.load().entries()
            if ln.key is not None and ln.key not in self.reserved_options
        }

    def add_entry(self, option_key: str, value: str | None = None) -> None:
        validate_entry(option_key, value)
        doc = self.load()
        doc.append(option_key, value)
        self.save(doc)
        logger.debug(
            "appended %r to %s", format_config_line(option_key, value), self.path
        )

    def remove_entry(self, option_key: str, value: str | None = None) -> None:
        if value is not None:
            value = value.strip()
        doc = self.load()
        idx = doc.find(option_key, value)
        if idx is None:
            raise EntryNotFoundError(option_key, value)
        doc.blank(idx)
        self.save(doc)
        logger.debug("blanked line %d of %s", idx + 1, self.path)
