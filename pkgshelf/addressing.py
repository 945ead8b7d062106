from __future__ import annotations

from .formats import PACKAGE_PREFIX_DELIMITER, PATH_SEPARATOR
from .model import PackageRef
from .resolver import RepoResolver


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


def is_repo_prefix(text: str) -> bool:
    return bool(text) and all(_is_word_char(ch) for ch in text)


def parse_package_token(token: str) -> PackageRef:
    """Split ``[prefix:]name`` into a PackageRef.

    The prefix is the run of word characters before the first ``:``. When the
    text before the first ``:`` is not such a run, the whole token is the name
    and the prefix is empty (the stable repository). Every string parses,
    the empty one included.
    """
    head, sep, tail = token.partition(PACKAGE_PREFIX_DELIMITER)
    if sep and is_repo_prefix(head):
        return PackageRef(repo_ref=head, name=tail)
    return PackageRef(repo_ref="", name=token)


class PackageAddressing:
    def __init__(self, resolver: RepoResolver) -> None:
        self.resolver = resolver

    def to_path(self, ref: PackageRef) -> str:
        repo = ref.repo_ref or self.resolver.settings.stable_repo
        return f"{self.resolver.resolve(repo)}{PATH_SEPARATOR}{ref.name}"

    def repo_path(self, ref: PackageRef) -> str:
        return self.resolver.resolve(ref.repo_ref or self.resolver.settings.stable_repo)

    def qualify(self, repo: str, relative_path: str) -> str:
        """Render the token that addresses ``relative_path`` inside ``repo``.

        Packages of the stable repository are bare names, packages of
        word-named repositories get a ``prefix:`` and everything else is
        addressed by its full path.
        """
        if repo == self.resolver.settings.stable_repo:
            return relative_path
        if is_repo_prefix(repo):
            return f"{repo}{PACKAGE_PREFIX_DELIMITER}{relative_path}"
        return f"{self.resolver.resolve(repo)}{PATH_SEPARATOR}{relative_path}"
