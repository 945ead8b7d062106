from __future__ import annotations

from .config import Settings
from .formats import PATH_SEPARATOR, TEMPLATE_PLACEHOLDER


def strip_trailing_separator(path: str) -> str:
    # Exactly one separator is removed; the filesystem root stays "/".
    if len(path) > 1 and path.endswith(PATH_SEPARATOR):
        return path[:-1]
    return path


class RepoResolver:
    """Map repository identifiers to filesystem paths.

    Absolute identifiers resolve to themselves. Short names are substituted
    into the unstable-repository template. Resolution never touches the
    filesystem.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def stable_path(self) -> str:
        return strip_trailing_separator(self.settings.stable_repo)

    def is_symbolic(self, identifier: str) -> bool:
        return bool(identifier) and not identifier.startswith(PATH_SEPARATOR)

    def resolve(self, identifier: str) -> str:
        if not identifier:
            return self.stable_path
        if identifier.startswith(PATH_SEPARATOR):
            return strip_trailing_separator(identifier)
        return self.settings.unstable_template.replace(
            TEMPLATE_PLACEHOLDER, identifier
        )
