from __future__ import annotations

EXIT_OK = 0
EXIT_ALREADY_SUBSCRIBED = 3
EXIT_NOT_FOUND = 4
EXIT_IO_FAILURE = 5
EXIT_NOT_SUBSCRIBED = 6
EXIT_REPO_UNREADABLE = 7
EXIT_INVALID_ENTRY = 8


class PkgshelfError(Exception):
    """Base class for failures surfaced to the command layer."""

    exit_code: int = 1


class NotFoundError(PkgshelfError):
    exit_code = EXIT_NOT_FOUND


class EntryNotFoundError(NotFoundError):
    def __init__(self, key: str, value: str | None) -> None:
        self.key = key
        self.value = value
        shown = key if value is None else f"{key} = {value}"
        super().__init__(f"no config entry matches '{shown}'")


class RepoNotFoundError(NotFoundError):
    def __init__(self, identifier: str, path: str) -> None:
        self.identifier = identifier
        self.path = path
        super().__init__(f"repository '{identifier}' not found at {path}")


class AlreadyExistsError(PkgshelfError):
    exit_code = EXIT_ALREADY_SUBSCRIBED


class AlreadySubscribedError(AlreadyExistsError):
    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__(f"already subscribed to '{identifier}'")


class NotSubscribedError(PkgshelfError):
    exit_code = EXIT_NOT_SUBSCRIBED

    def __init__(self, identifier: str, *, reason: str | None = None) -> None:
        self.identifier = identifier
        msg = f"not subscribed to '{identifier}'"
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class ConfigIOError(PkgshelfError, OSError):
    exit_code = EXIT_IO_FAILURE


class RepoUnreadableError(PkgshelfError):
    exit_code = EXIT_REPO_UNREADABLE


class IndexIOError(PkgshelfError, OSError):
    exit_code = EXIT_IO_FAILURE


class InvalidEntryError(PkgshelfError, ValueError):
    exit_code = EXIT_INVALID_ENTRY
