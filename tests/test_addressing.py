from __future__ import annotations

import pytest

from pkgshelf.addressing import PackageAddressing, is_repo_prefix, parse_package_token
from pkgshelf.config import Settings
from pkgshelf.model import PackageRef
from pkgshelf.resolver import RepoResolver


@pytest.fixture
def addressing() -> PackageAddressing:
    settings = Settings(
        stable_repo="/opt/stable", unstable_template="/home/{name}/repo"
    )
    return PackageAddressing(RepoResolver(settings))


def test_parse_prefixed_token() -> None:
    assert parse_package_token("acme:foo") == PackageRef(repo_ref="acme", name="foo")


def test_parse_bare_token() -> None:
    assert parse_package_token("foo") == PackageRef(repo_ref="", name="foo")


def test_parse_splits_on_first_colon_only() -> None:
    assert parse_package_token("acme:a:b") == PackageRef(repo_ref="acme", name="a:b")


def test_name_may_contain_slashes() -> None:
    ref = parse_package_token("acme:tools/grep")
    assert ref.name == "tools/grep"


@pytest.mark.parametrize("token", ["a-b:foo", "tools/x:y", ":foo", "a.b:c"])
def test_non_word_prefix_means_no_prefix(token: str) -> None:
    ref = parse_package_token(token)
    assert ref.repo_ref == ""
    assert ref.name == token


def test_parse_accepts_any_string() -> None:
    assert parse_package_token("") == PackageRef(repo_ref="", name="")
    assert parse_package_token("my tool") == PackageRef(repo_ref="", name="my tool")
    assert parse_package_token("acme:\tx") == PackageRef(repo_ref="acme", name="\tx")


def test_is_repo_prefix() -> None:
    assert is_repo_prefix("acme_2")
    assert not is_repo_prefix("")
    assert not is_repo_prefix("ac-me")


def test_to_path_composes_with_resolve(addressing: PackageAddressing) -> None:
    resolver = addressing.resolver
    ref = parse_package_token("acme:foo")
    assert addressing.to_path(ref) == resolver.resolve("acme") + "/foo"
    assert addressing.to_path(ref) == "/home/acme/repo/foo"


def test_to_path_uses_stable_repo_without_prefix(
    addressing: PackageAddressing,
) -> None:
    assert addressing.to_path(parse_package_token("tools/grep")) == (
        "/opt/stable/tools/grep"
    )


def test_qualify(addressing: PackageAddressing) -> None:
    assert addressing.qualify("/opt/stable", "grep") == "grep"
    assert addressing.qualify("acme", "grep") == "acme:grep"
    assert addressing.qualify("/srv/other/", "grep") == "/srv/other/grep"


def test_qualify_round_trips_for_named_repos(addressing: PackageAddressing) -> None:
    for repo in ("/opt/stable", "acme"):
        token = addressing.qualify(repo, "tools/grep")
        path = addressing.to_path(parse_package_token(token))
        assert path == addressing.resolver.resolve(repo) + "/tools/grep"
