from __future__ import annotations

import pytest

from pkgshelf.cli import main


def test_main_without_command_prints_friendly_help(capsys) -> None:
    main([])

    captured = capsys.readouterr()
    assert "usage: pkgshelf" in captured.out
    assert "Quick start examples:" in captured.out
    assert "pkgshelf repo add alice" in captured.out
    assert "pkgshelf show alice:tools/grep" in captured.out


def test_main_help_flag_still_works(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["-h"])
    assert exc.value.code == 0

    captured = capsys.readouterr()
    assert "repo" in captured.out
    assert "show" in captured.out
    assert "installed" in captured.out


def test_main_version_flag_prints_version(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0

    captured = capsys.readouterr()
    assert captured.out.startswith("pkgshelf ")


def test_repo_help_lists_subcommands(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["repo", "-h"])
    assert exc.value.code == 0

    captured = capsys.readouterr()
    for name in ("add", "remove", "list", "paths", "path", "show", "index"):
        assert name in captured.out


def test_unknown_command_exits_with_usage_error(capsys) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["frobnicate"])
    assert exc.value.code == 2
