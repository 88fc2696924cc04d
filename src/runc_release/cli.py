"""Command-line interface for runc-release."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import NoReturn, Sequence

from runc_release import __version__
from runc_release.config import DEFAULT_COMMIT, DEFAULT_HASH_COMMAND, resolve_config
from runc_release.errors import ReleaseError, UsageError
from runc_release.logging_utils import LogOptions, configure_logging
from runc_release.pipeline import run_release
from runc_release.tools import load_tool_paths, resolve_tools

USAGE = "runc-release [-S <gpg-key-id>] [-c <commit-ish>] [-r <release-dir>] [-v <version>] [-h <hash-command>]"
EXIT_USAGE = 1
EXIT_FAILURE = 1

LOGGER = logging.getLogger("runc_release.cli")


class ReleaseArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors with exit status 1."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_USAGE, f"{message}\n")


def build_parser() -> argparse.ArgumentParser:
    # -h selects the hash command, so help is only available as --help.
    parser = ReleaseArgumentParser(
        prog="runc-release",
        usage=USAGE,
        description="Build, archive, checksum and sign a runc release.",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument("--help", action="help", help="Show this message and exit.")
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("-S", dest="key_id", metavar="KEY-ID", help="GPG key to sign with.")
    parser.add_argument(
        "-c",
        dest="commit",
        metavar="COMMIT-ISH",
        help=f"Revision to archive (default: {DEFAULT_COMMIT}).",
    )
    parser.add_argument(
        "-r",
        dest="release_dir",
        metavar="RELEASE-DIR",
        help="Output directory (default: release/<version>).",
    )
    parser.add_argument(
        "-v",
        dest="version",
        metavar="VERSION",
        help="Release version (default: contents of VERSION).",
    )
    parser.add_argument(
        "-h",
        dest="hash_command",
        metavar="HASH-COMMAND",
        help=f"Checksum tool (default: {DEFAULT_HASH_COMMAND}).",
    )
    parser.add_argument(
        "--root",
        type=Path,
        help="Project root holding VERSION and the Makefile (default: $RUNC_RELEASE_ROOT or cwd).",
    )
    parser.add_argument(
        "--tool-config",
        type=Path,
        help="JSON file overriding external tool commands.",
    )
    parser.add_argument(
        "--verbose",
        action="count",
        default=0,
        help="Echo every external command.",
    )
    parser.add_argument("--quiet", action="store_true", help="Only log warnings and errors.")
    parser.add_argument("--log-file", type=Path, help="Write JSON-lines logs to this file.")
    parser.add_argument(
        "--json-logs", action="store_true", help="Emit JSON logs on the console."
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(
        LogOptions(
            verbose=args.verbose,
            quiet=args.quiet,
            log_file=args.log_file,
            json_console=args.json_logs,
        )
    )
    try:
        tools = resolve_tools(load_tool_paths(args.tool_config))
        config = resolve_config(
            key_id=args.key_id,
            commit=args.commit,
            release_dir=args.release_dir,
            version=args.version,
            hash_command=args.hash_command,
            project_root=args.root,
            tools=tools,
        )
    except UsageError as exc:
        parser.print_usage(sys.stderr)
        LOGGER.error("%s", exc)
        return EXIT_USAGE
    except ReleaseError as exc:
        LOGGER.error("%s", exc)
        return EXIT_FAILURE

    try:
        result = run_release(config)
    except ReleaseError as exc:
        LOGGER.error("%s", exc)
        return EXIT_FAILURE
    LOGGER.info("release artifacts available in %s", result.release_dir)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
