from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator, Sequence
from datetime import datetime, timezone
from pathlib import Path

import pathspec

from .atomic import atomic_write_lines
from .config import DEFAULT_README_NAMES, Settings
from .errors import IndexIOError, RepoUnreadableError
from .formats import INDEX_KIND_SOURCE, INDEX_KINDS
from .model import IndexRecord

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDES = [
    ".git/",
    ".hg/",
    ".svn/",
    "__pycache__/",
]


def _load_ignore_lines(root: Path, filename: str) -> list[str]:
    p = root / filename
    if not p.is_file():
        return []
    return p.read_text(encoding="utf-8", errors="replace").splitlines()


def _load_ignore(root: Path, ignore_filename: str | None) -> pathspec.PathSpec:
    # Order matters: patterns later in the list take precedence (e.g. negations).
    lines = list(DEFAULT_EXCLUDES)
    if ignore_filename:
        lines.extend(_load_ignore_lines(root, ignore_filename))
    return pathspec.PathSpec.from_lines("gitwildmatch", lines)


def read_synopsis(package_dir: Path, readme_names: Sequence[str]) -> str:
    """First line of the first readme present in ``package_dir``, else ""."""
    for name in readme_names:
        p = package_dir / name
        if not p.is_file():
            continue
        with p.open(encoding="utf-8", errors="replace") as fh:
            return fh.readline().strip()
    return ""


def iter_index_records(
    repo_root: Path,
    *,
    marker_name: str = "env.sh",
    readme_names: Sequence[str] = DEFAULT_README_NAMES,
    ignore_filename: str | None = ".pkgshelfignore",
) -> Iterator[IndexRecord]:
    """Yield one record per package directory below ``repo_root``.

    The walk is lazy and visits directory names in sorted order, so records
    come out in a stable order without collecting the tree first. Nested
    packages are indexed too. The root itself is never a package.
    """
    ignore = _load_ignore(repo_root, ignore_filename)

    for dirpath, dirnames, filenames in os.walk(repo_root):
        base = Path(dirpath)
        rel = base.relative_to(repo_root).as_posix()

        kept: list[str] = []
        for d in sorted(dirnames):
            rel_d = d if rel == "." else f"{rel}/{d}"
            if ignore.match_file(f"{rel_d}/"):
                continue
            kept.append(d)
        dirnames[:] = kept

        if rel == "." or marker_name not in filenames:
            continue
        if any(ch.isspace() for ch in rel):
            logger.warning("skipping package with whitespace in its path: %r", rel)
            continue
        yield IndexRecord(
            kind=INDEX_KIND_SOURCE,
            relative_path=rel,
            synopsis=read_synopsis(base, readme_names),
        )


def format_index_line(record: IndexRecord) -> str:
    head = f"{record.kind} {record.relative_path}"
    return f"{head} {record.synopsis}" if record.synopsis else head


def parse_index_line(line: str) -> IndexRecord | None:
    """Parse one index line; None for blank lines.

    Raises ValueError for lines that do not start with a known kind followed
    by a path.
    """
    if not line.strip():
        return None
    parts = line.split(maxsplit=2)
    if len(parts) < 2 or parts[0] not in INDEX_KINDS:
        raise ValueError(f"malformed index line: {line!r}")
    synopsis = parts[2].rstrip() if len(parts) == 3 else ""
    return IndexRecord(kind=parts[0], relative_path=parts[1], synopsis=synopsis)


def read_index(index_path: Path) -> list[IndexRecord]:
    try:
        text = index_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise RepoUnreadableError(f"cannot read index {index_path}: {e}") from e

    # Records end at "\n" only; a synopsis may hold other line-break characters.
    records: list[IndexRecord] = []
    for lineno, line in enumerate(text.split("\n"), start=1):
        try:
            record = parse_index_line(line)
        except ValueError as e:
            raise RepoUnreadableError(f"{index_path}:{lineno}: {e}") from e
        if record is not None:
            records.append(record)
    return records


def write_index(index_path: Path, records: Iterable[IndexRecord]) -> int:
    try:
        return atomic_write_lines(index_path, map(format_index_line, records))
    except OSError as e:
        raise IndexIOError(f"cannot write index {index_path}: {e}") from e


def index_mtime(index_path: Path) -> datetime:
    try:
        st = index_path.stat()
    except OSError as e:
        raise RepoUnreadableError(f"cannot stat index {index_path}: {e}") from e
    return datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)


class IndexBuilder:
    """Builds and persists repository indices using the configured file names."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def index_path(self, repo_root: Path) -> Path:
        return repo_root / self.settings.index_name

    def iter_records(self, repo_root: Path) -> Iterator[IndexRecord]:
        return iter_index_records(
            repo_root,
            marker_name=self.settings.marker_name,
            readme_names=self.settings.readme_names,
            ignore_filename=self.settings.ignore_filename,
        )

    def build(self, repo_root: Path) -> list[IndexRecord]:
        return list(self.iter_records(repo_root))

    def rebuild(self, repo_root: Path) -> int:
        """Regenerate the index file of ``repo_root`` wholesale.

        Records stream from the walk straight into the temp file. Returns the
        number of packages indexed.
        """
        path = self.index_path(repo_root)
        count = write_index(path, self.iter_records(repo_root))
        logger.debug("indexed %d package(s) into %s", count, path)
        return count

    def read(self, repo_root: Path) -> list[IndexRecord]:
        return read_index(self.index_path(repo_root))
