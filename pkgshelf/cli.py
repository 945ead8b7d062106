from __future__ import annotations

import argparse
import importlib.metadata as importlib_metadata
import logging
import sys
from pathlib import Path

from .catalog import RepoCatalog
from .config import load_settings
from .errors import PkgshelfError

try:
    import tomllib  # py311+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # pyright: ignore[reportMissingImports]


def _pkgshelf_version() -> str:
    try:
        return importlib_metadata.version("pkgshelf")
    except importlib_metadata.PackageNotFoundError:
        return "0+unknown"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pkgshelf",
        description="Subscribe to package repositories and browse their indices.",
    )
    p.add_argument(
        "--version",
        action="version",
        version=f"pkgshelf {_pkgshelf_version()}",
    )
    p.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings TOML file (default: $PKGSHELF_SETTINGS or ~/.pkgshelf.toml)",
    )
    p.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log file operations to stderr",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    # repo
    repo = sub.add_parser("repo", help="Manage repository subscriptions.")
    repo_sub = repo.add_subparsers(dest="repo_cmd", required=True)

    add = repo_sub.add_parser("add", help="Subscribe to a repository.")
    add.add_argument("name", help="Short repository name or absolute path")

    remove = repo_sub.add_parser("remove", help="Unsubscribe from a repository.")
    remove.add_argument("name", help="Short repository name or absolute path")

    repo_sub.add_parser("list", help="List subscribed repositories.")
    repo_sub.add_parser(
        "paths", help="List the filesystem path of every subscribed repository."
    )

    path = repo_sub.add_parser("path", help="Print the path a repository maps to.")
    path.add_argument(
        "name", nargs="?", default="", help="Repository (default: stable)"
    )

    show = repo_sub.add_parser("show", help="Summarize one repository.")
    show.add_argument("name", help="Short repository name or absolute path")

    index = repo_sub.add_parser("index", help="Rebuild the index of a repository.")
    index.add_argument("name", help="Short repository name or absolute path")

    # show
    pkg = sub.add_parser("show", help="Describe one package.")
    pkg.add_argument("package", help="Package identifier: [repo:]name")

    # list / installed
    sub.add_parser("list", help="List packages of all subscribed repositories.")
    sub.add_parser("installed", help="List installed-package markers.")

    return p


def _print_top_level_help(parser: argparse.ArgumentParser) -> None:
    parser.print_help()
    print()
    print("Quick start examples:")
    print("  pkgshelf repo add alice")
    print("  pkgshelf repo list")
    print("  pkgshelf repo index alice")
    print("  pkgshelf list")
    print("  pkgshelf show alice:tools/grep")


def _run_repo(catalog: RepoCatalog, args: argparse.Namespace) -> None:
    if args.repo_cmd == "add":
        path = catalog.add_subscription(args.name)
        print(f"Subscribed to {args.name} ({path}).")

    elif args.repo_cmd == "remove":
        catalog.remove_subscription(args.name)
        print(f"Unsubscribed from {args.name}.")

    elif args.repo_cmd == "list":
        for repo in catalog.subscribed_repos():
            print(repo)

    elif args.repo_cmd == "paths":
        for _, path in catalog.repo_paths():
            print(path)

    elif args.repo_cmd == "path":
        print(catalog.resolver.resolve(args.name))

    elif args.repo_cmd == "show":
        summary = catalog.repo_summary(args.name)
        print(f"Repository: {summary.identifier}")
        print(f"{'Path':>12}: {summary.path}")
        print(f"{'Available':>12}: {summary.available_count} package(s)")
        print(f"{'Installed':>12}: {summary.installed_count} package(s)")
        print(f"{'Trusted':>12}: {'yes' if summary.is_trusted else 'no'}")
        print(f"{'Subscribed':>12}: {'yes' if summary.is_subscribed else 'no'}")
        stamp = summary.last_indexed_at.strftime("%Y-%m-%d %H:%M:%S UTC")
        print(f"{'Indexed':>12}: {stamp}")

    elif args.repo_cmd == "index":
        count = catalog.reindex(args.name)
        print(f"Indexed {count} package(s) in {catalog.resolver.resolve(args.name)}.")


def _run_show(catalog: RepoCatalog, token: str) -> None:
    info = catalog.describe_package(token)
    print(f"Package: {info.token}")
    print(f"{'Repository':>12}: {info.ref.repo_ref or catalog.settings.stable_repo}")
    print(f"{'Path':>12}: {info.path}")
    print(f"{'Exists':>12}: {'yes' if info.exists else 'no'}")
    print(f"{'Installed':>12}: {'yes' if info.installed else 'no'}")
    if info.record is None:
        print(f"{'Indexed':>12}: no")
    else:
        print(f"{'Indexed':>12}: yes ({info.record.kind})")
        if info.record.synopsis:
            print(f"{'Synopsis':>12}: {info.record.synopsis}")


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    raw_argv = list(sys.argv[1:] if argv is None else argv)
    if not raw_argv:
        _print_top_level_help(parser)
        return

    args = parser.parse_args(raw_argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_settings(path=args.settings)
    except (OSError, ValueError, tomllib.TOMLDecodeError) as e:
        parser.error(f"settings: {e}")
    catalog = RepoCatalog(settings)

    try:
        if args.cmd == "repo":
            _run_repo(catalog, args)

        elif args.cmd == "show":
            _run_show(catalog, args.package)

        elif args.cmd == "list":
            for listing in catalog.available_packages():
                synopsis = listing.record.synopsis
                print(
                    f"{listing.qualified_name}  {synopsis}"
                    if synopsis
                    else listing.qualified_name
                )

        elif args.cmd == "installed":
            for key in catalog.installed_packages():
                print(key)
    except PkgshelfError as e:
        print(f"pkgshelf: {e}", file=sys.stderr)
        raise SystemExit(e.exit_code) from e


if __name__ == "__main__":
    main()
