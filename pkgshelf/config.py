from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .formats import PATH_SEPARATOR, TEMPLATE_PLACEHOLDER

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # pyright: ignore[reportMissingImports]

SETTINGS_FILENAMES: tuple[str, ...] = (".pkgshelf.toml", "pkgshelf.toml")
SETTINGS_SECTION = "pkgshelf"

ENV_SETTINGS = "PKGSHELF_SETTINGS"
ENV_CONFIG = "PKGSHELF_CONFIG"
ENV_STABLE_REPO = "PKGSHELF_STABLE_REPO"
ENV_REPO_TEMPLATE = "PKGSHELF_REPO_TEMPLATE"
ENV_TRUSTED = "PKGSHELF_TRUSTED"

DEFAULT_STABLE_REPO = "/opt/pkgshelf/stable"
DEFAULT_UNSTABLE_TEMPLATE = "/home/{name}/.pkgshelf/repo"
DEFAULT_CONFIG_FILENAME = ".pkgshelfrc"
DEFAULT_TRUSTED_REPOS_PATH = "/opt/pkgshelf/trusted_repos"
DEFAULT_README_NAMES: tuple[str, ...] = ("README", "README.md", "README.txt")


@dataclass
class Settings:
    # Always-subscribed repository; its identifier is an absolute path.
    stable_repo: str = DEFAULT_STABLE_REPO
    # Path pattern for user-scoped repositories; "{name}" is the short name.
    unstable_template: str = DEFAULT_UNSTABLE_TEMPLATE
    # The user's key/value config file (subscriptions + installed markers).
    config_path: Path = field(
        default_factory=lambda: Path.home() / DEFAULT_CONFIG_FILENAME
    )
    trusted_repos_path: Path = Path(DEFAULT_TRUSTED_REPOS_PATH)
    repo_option: str = "repo"
    # Presence of this file marks a directory as an installable package.
    marker_name: str = "env.sh"
    readme_names: tuple[str, ...] = DEFAULT_README_NAMES
    index_name: str = "INDEX"
    ignore_filename: str = ".pkgshelfignore"

    @property
    def reserved_options(self) -> frozenset[str]:
        return frozenset({self.repo_option})


def validate_template(template: str) -> str:
    if template.count(TEMPLATE_PLACEHOLDER) != 1:
        raise ValueError(
            f"repository template must contain exactly one {TEMPLATE_PLACEHOLDER} "
            f"placeholder: {template!r}"
        )
    if template.endswith(PATH_SEPARATOR) and len(template) > 1:
        template = template[:-1]
    return template


def _find_settings_path(home: Path) -> Path | None:
    for name in SETTINGS_FILENAMES:
        p = home / name
        if p.exists():
            return p
    return None


def _extract_section(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        return {}
    section = data.get(SETTINGS_SECTION)
    if isinstance(section, dict):
        return section
    return {}


def _str_value(section: dict[str, Any], key: str, default: str) -> str:
    value = section.get(key, default)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def load_settings(
    home: Path | None = None,
    environ: Mapping[str, str] | None = None,
    path: Path | None = None,
) -> Settings:
    """Build Settings from the settings file and the environment.

    Lookup order for the file: ``path``, then ``$PKGSHELF_SETTINGS``, then
    ``.pkgshelf.toml`` / ``pkgshelf.toml`` in ``home``. Values of the wrong type
    are ignored. Environment variables override file values.
    """
    env = os.environ if environ is None else environ
    home = Path.home() if home is None else home

    if path is None and env.get(ENV_SETTINGS):
        path = Path(env[ENV_SETTINGS])
    if path is None:
        path = _find_settings_path(home)

    section: dict[str, Any] = {}
    if path is not None:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
        section = _extract_section(data)

    cfg = Settings(config_path=home / DEFAULT_CONFIG_FILENAME)
    cfg.stable_repo = _str_value(section, "stable_repo", cfg.stable_repo)
    cfg.unstable_template = _str_value(
        section, "unstable_template", cfg.unstable_template
    )
    cfg.repo_option = _str_value(section, "repo_option", cfg.repo_option)
    cfg.marker_name = _str_value(section, "marker_name", cfg.marker_name)
    cfg.index_name = _str_value(section, "index_name", cfg.index_name)
    cfg.ignore_filename = _str_value(section, "ignore_filename", cfg.ignore_filename)

    config_path = section.get("config_path")
    if isinstance(config_path, str) and config_path.strip():
        cfg.config_path = Path(config_path.strip()).expanduser()

    trusted = section.get("trusted_repos_path")
    if isinstance(trusted, str) and trusted.strip():
        cfg.trusted_repos_path = Path(trusted.strip()).expanduser()

    readmes = section.get("readme_names")
    if isinstance(readmes, list) and readmes:
        cfg.readme_names = tuple(str(x) for x in readmes)

    if env.get(ENV_CONFIG):
        cfg.config_path = Path(env[ENV_CONFIG]).expanduser()
    if env.get(ENV_STABLE_REPO):
        cfg.stable_repo = env[ENV_STABLE_REPO]
    if env.get(ENV_REPO_TEMPLATE):
        cfg.unstable_template = env[ENV_REPO_TEMPLATE]
    if env.get(ENV_TRUSTED):
        cfg.trusted_repos_path = Path(env[ENV_TRUSTED]).expanduser()

    if not cfg.stable_repo.startswith(PATH_SEPARATOR):
        raise ValueError(
            f"stable repository must be an absolute path: {cfg.stable_repo!r}"
        )
    cfg.unstable_template = validate_template(cfg.unstable_template)
    return cfg
