from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ConfigLine:
    """One physical line of the user config file."""

    key: str | None  # None for blank/comment-only lines
    value: str | None  # None for bare keys (installed-package markers)
    comment: str = ""  # trailing comment, including the marker and leading space
    raw: str = ""  # original text; reused verbatim when the line is untouched
    eol: str = "\n"  # line ending as read, "\n" or "\r\n"

    @property
    def is_entry(self) -> bool:
        return self.key is not None


@dataclass(frozen=True)
class PackageRef:
    repo_ref: str  # "" means the stable repository
    name: str


@dataclass(frozen=True)
class IndexRecord:
    kind: str  # "source"
    relative_path: str  # posix path relative to the repository root
    synopsis: str = ""


@dataclass(frozen=True)
class RepoSummary:
    identifier: str
    path: str
    available_count: int
    installed_count: int
    is_trusted: bool
    is_subscribed: bool
    last_indexed_at: datetime


@dataclass(frozen=True)
class PackageListing:
    qualified_name: str  # parseable token, or a full path for path-named repos
    repo: str  # raw repository identifier
    record: IndexRecord


@dataclass(frozen=True)
class PackageInfo:
    token: str
    ref: PackageRef
    path: str
    exists: bool
    installed: bool
    record: IndexRecord | None
