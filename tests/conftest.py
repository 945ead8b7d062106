from __future__ import annotations

from pathlib import Path

import pytest

from pkgshelf.catalog import RepoCatalog
from pkgshelf.config import Settings


def make_package(root: Path, rel: str, synopsis: str | None = None) -> Path:
    pkg = root / rel
    pkg.mkdir(parents=True, exist_ok=True)
    (pkg / "env.sh").write_text("export PATH=$PATH\n", encoding="utf-8")
    if synopsis is not None:
        (pkg / "README").write_text(f"{synopsis}\nMore text.\n", encoding="utf-8")
    return pkg


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    stable = tmp_path / "stable"
    stable.mkdir()
    return Settings(
        stable_repo=stable.as_posix(),
        unstable_template=f"{tmp_path.as_posix()}/users/{{name}}/repo",
        config_path=tmp_path / "home" / ".pkgshelfrc",
        trusted_repos_path=tmp_path / "trusted_repos",
    )


@pytest.fixture
def catalog(settings: Settings) -> RepoCatalog:
    return RepoCatalog(settings)


@pytest.fixture
def user_repo(tmp_path: Path):
    def _make(name: str) -> Path:
        root = tmp_path / "users" / name / "repo"
        root.mkdir(parents=True, exist_ok=True)
        return root

    return _make


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a sandbox; returns the stable repository root."""
    home = tmp_path / "home"
    home.mkdir(exist_ok=True)
    stable = tmp_path / "stable"
    stable.mkdir(exist_ok=True)
    monkeypatch.setenv("HOME", home.as_posix())
    monkeypatch.delenv("PKGSHELF_SETTINGS", raising=False)
    monkeypatch.setenv("PKGSHELF_CONFIG", (home / ".pkgshelfrc").as_posix())
    monkeypatch.setenv("PKGSHELF_STABLE_REPO", stable.as_posix())
    monkeypatch.setenv(
        "PKGSHELF_REPO_TEMPLATE", f"{tmp_path.as_posix()}/users/{{name}}/repo"
    )
    monkeypatch.setenv("PKGSHELF_TRUSTED", (tmp_path / "trusted_repos").as_posix())
    return stable
