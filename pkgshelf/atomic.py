from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Iterable
from pathlib import Path


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _target_mode(path: Path) -> int:
    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o666 & ~_current_umask()


def atomic_write_text(path: Path, chunks: Iterable[str]) -> None:
    """Write ``chunks`` verbatim to ``path`` via a same-dir temp file.

    A symlinked ``path`` is followed, so the link stays and its target is
    replaced. The replacement keeps the permission bits of the file it
    replaces; a new file gets the umask default. The target is replaced only
    after the temp file is fully written and synced, so a failure leaves the
    previous content in place.
    """
    path = path.resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    mode = _target_mode(path)
    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            newline="",
            delete=False,
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
        ) as handle:
            temp_path = Path(handle.name)
            for chunk in chunks:
                handle.write(chunk)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(temp_path, mode)
        os.replace(temp_path, path)
    finally:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink(missing_ok=True)


def atomic_write_lines(path: Path, lines: Iterable[str]) -> int:
    """Write ``lines``, each terminated by ``\\n``; returns the line count."""
    count = 0

    def _terminated() -> Iterable[str]:
        nonlocal count
        for line in lines:
            count += 1
            yield f"{line}\n"

    atomic_write_text(path, _terminated())
    return count
