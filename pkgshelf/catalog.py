from __future__ import annotations

import logging
from pathlib import Path

from .addressing import PackageAddressing, parse_package_token
from .config import Settings
from .entries import ConfigStore
from .errors import (
    AlreadySubscribedError,
    ConfigIOError,
    NotSubscribedError,
    RepoNotFoundError,
    RepoUnreadableError,
)
from .formats import COMMENT_MARKER, PATH_SEPARATOR
from .indexer import IndexBuilder, index_mtime, read_index
from .model import IndexRecord, PackageInfo, PackageListing, PackageRef, RepoSummary
from .resolver import RepoResolver, strip_trailing_separator

logger = logging.getLogger(__name__)


class RepoCatalog:
    """Subscribed repositories and the package view built from their indices.

    Every call re-reads the config, trust list and index files; nothing is
    cached between calls.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        store: ConfigStore | None = None,
        resolver: RepoResolver | None = None,
        indexer: IndexBuilder | None = None,
    ) -> None:
        self.settings = settings
        self.store = store or ConfigStore(
            settings.config_path, settings.reserved_options
        )
        self.resolver = resolver or RepoResolver(settings)
        self.addressing = PackageAddressing(self.resolver)
        self.indexer = indexer or IndexBuilder(settings)

    # Subscriptions

    def subscribed_repos(self) -> list[str]:
        # Deduplicated by raw identifier; two names for one path stay distinct.
        repos = {self.settings.stable_repo}
        repos.update(self.store.list_entries(self.settings.repo_option))
        return sorted(repos)

    def is_subscribed(self, identifier: str) -> bool:
        return identifier in self.subscribed_repos()

    def repo_paths(self) -> list[tuple[str, str]]:
        return [(r, self.resolver.resolve(r)) for r in self.subscribed_repos()]

    def add_subscription(self, identifier: str) -> str:
        if self.is_subscribed(identifier):
            raise AlreadySubscribedError(identifier)
        path = self.resolver.resolve(identifier)
        if not Path(path).is_dir():
            raise RepoNotFoundError(identifier, path)
        self.store.add_entry(self.settings.repo_option, identifier)
        logger.debug("subscribed to %s (%s)", identifier, path)
        return path

    def remove_subscription(self, identifier: str) -> None:
        if identifier == self.settings.stable_repo:
            raise NotSubscribedError(
                identifier, reason="the stable repository cannot be removed"
            )
        if not self.is_subscribed(identifier):
            raise NotSubscribedError(identifier)
        self.store.remove_entry(self.settings.repo_option, identifier)
        logger.debug("unsubscribed from %s", identifier)

    # Installed packages

    def installed_packages(self) -> list[str]:
        return sorted(self.store.list_bare_keys())

    def _installed_refs(self) -> list[PackageRef]:
        return [parse_package_token(key) for key in self.installed_packages()]

    def installed_package_count(self, identifier: str) -> int:
        target = self.resolver.resolve(identifier)
        return sum(
            1
            for ref in self._installed_refs()
            if self.addressing.repo_path(ref) == target
        )

    # Trust

    def trusted_repos(self) -> set[str]:
        path = self.settings.trusted_repos_path
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return set()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigIOError(f"cannot read {path}: {e}") from e
        out: set[str] = set()
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith(COMMENT_MARKER):
                continue
            out.add(strip_trailing_separator(line))
        return out

    def is_trusted(self, identifier: str) -> bool:
        return self.resolver.resolve(identifier) in self.trusted_repos()

    # Indices

    def _repo_root(self, identifier: str) -> Path:
        return Path(self.resolver.resolve(identifier))

    def reindex(self, identifier: str) -> int:
        root = self._repo_root(identifier)
        if not root.is_dir():
            raise RepoNotFoundError(identifier, root.as_posix())
        return self.indexer.rebuild(root)

    def repo_index(self, identifier: str) -> list[IndexRecord]:
        return self.indexer.read(self._repo_root(identifier))

    def repo_summary(self, identifier: str) -> RepoSummary:
        root = self._repo_root(identifier)
        index_path = self.indexer.index_path(root)
        records = read_index(index_path)
        return RepoSummary(
            identifier=identifier,
            path=root.as_posix(),
            available_count=len(records),
            installed_count=self.installed_package_count(identifier),
            is_trusted=self.is_trusted(identifier),
            is_subscribed=self.is_subscribed(identifier),
            last_indexed_at=index_mtime(index_path),
        )

    def available_packages(self) -> list[PackageListing]:
        """Merge the indices of all subscribed repositories.

        Packages are deduplicated by their resolved path; the first repository
        in sorted order wins. Repositories whose index cannot be read are
        skipped with a warning.
        """
        seen: set[str] = set()
        out: list[PackageListing] = []
        for repo in self.subscribed_repos():
            try:
                records = self.repo_index(repo)
            except RepoUnreadableError as e:
                logger.warning("skipping repository %s: %s", repo, e)
                continue
            repo_path = self.resolver.resolve(repo)
            for record in records:
                full = f"{repo_path}{PATH_SEPARATOR}{record.relative_path}"
                if full in seen:
                    continue
                seen.add(full)
                out.append(
                    PackageListing(
                        qualified_name=self.addressing.qualify(
                            repo, record.relative_path
                        ),
                        repo=repo,
                        record=record,
                    )
                )
        return out

    def describe_package(self, token: str) -> PackageInfo:
        ref = parse_package_token(token)
        path = self.addressing.to_path(ref)

        record: IndexRecord | None = None
        try:
            records = self.indexer.read(Path(self.addressing.repo_path(ref)))
        except RepoUnreadableError as e:
            logger.debug("no index for %s: %s", token, e)
        else:
            record = next((r for r in records if r.relative_path == ref.name), None)

        installed = any(
            self.addressing.to_path(other) == path for other in self._installed_refs()
        )
        return PackageInfo(
            token=token,
            ref=ref,
            path=path,
            exists=Path(path).is_dir(),
            installed=installed,
            record=record,
        )
