"""Command-line configuration for the hindsight server and its subcommands."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

import platformdirs

_PROG = "hindsight-mcp"
_VERSION = "0.1.5"
_DATABASE_ENV = "HINDSIGHT_DATABASE"
_WORKSPACE_ENV = "HINDSIGHT_WORKSPACE"

_TEST_EPILOG = """\
EXAMPLES:
    hindsight-mcp test                      Run all tests and ingest
    hindsight-mcp test -p my-crate          Test specific package
    hindsight-mcp test -p a -p b            Test multiple packages
    hindsight-mcp test --dry-run            Preview without writing to database
    hindsight-mcp test --stdin              Read nextest JSON from stdin
    hindsight-mcp test -- --retries 2       Pass extra args to nextest

REQUIREMENTS:
    Requires cargo-nextest: cargo install cargo-nextest"""


class ConfigError(Exception):
    """Base class for configuration errors."""


class WorkspaceNotFoundError(ConfigError):
    """The configured workspace path does not exist."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Workspace path not found: {path}")
        self.path = path


class WorkspaceNotDirectoryError(ConfigError):
    """The configured workspace path is not a directory."""

    def __init__(self, path: Path) -> None:
        super().__init__(f"Workspace path is not a directory: {path}")
        self.path = path


class DatabaseDirectoryCreateError(ConfigError):
    """The directory holding the database could not be created."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Failed to create database directory {path}: {cause}")
        self.path = path
        self.cause = cause


class DatabaseInitError(ConfigError):
    """Database initialization failed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Database initialization failed: {message}")
        self.message = message


class UsageError(Exception):
    """Raised when the command line cannot be parsed, or help/version was requested.

    ``exit_code`` is 0 for help and version output and 2 for real errors.
    """

    def __init__(self, message: str, exit_code: int = 2) -> None:
        super().__init__(message)
        self.message = message
        self.exit_code = exit_code


@dataclass
class IngestCommand:
    """Ingest data from various sources."""

    tests: bool = False
    commit: Optional[str] = None


@dataclass
class TestCommand:
    """Run tests and ingest results in one command."""

    __test__ = False

    package: list[str] = field(default_factory=list)
    bin: list[str] = field(default_factory=list)
    filter: Optional[str] = None
    stdin: bool = False
    dry_run: bool = False
    no_commit: bool = False
    commit: Optional[str] = None
    show_output: bool = False
    nextest_args: list[str] = field(default_factory=list)


Command = Union[IngestCommand, TestCommand]


@dataclass
class Config:
    """Server configuration: database, workspace and logging options."""

    command: Optional[Command] = None
    database: Optional[Path] = None
    workspace: Optional[Path] = None
    verbose: bool = False
    quiet: bool = False
    skip_init: bool = False

    def database_path(self) -> Path:
        """Return the database path, defaulting to the platform data directory."""
        if self.database is not None:
            return Path(self.database)
        try:
            base = Path(platformdirs.user_data_dir())
        except Exception:
            base = Path(".")
        return base / "hindsight" / "hindsight.db"

    def workspace_path(self) -> Optional[Path]:
        """Return the workspace path, defaulting to the current directory."""
        if self.workspace is not None:
            return Path(self.workspace)
        try:
            return Path.cwd()
        except OSError:
            return None

    def validate(self) -> None:
        """Check the workspace and make sure the database directory exists."""
        if self.workspace is not None:
            workspace = Path(self.workspace)
            if not workspace.exists():
                raise WorkspaceNotFoundError(workspace)
            if not workspace.is_dir():
                raise WorkspaceNotDirectoryError(workspace)

        parent = self.database_path().parent
        if not parent.exists():
            try:
                parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise DatabaseDirectoryCreateError(parent, exc) from exc

    def log_level(self) -> int:
        """Return the logging level implied by the verbose and quiet flags."""
        if self.verbose:
            return logging.DEBUG
        if self.quiet:
            return logging.WARNING
        return logging.INFO


class _HelpAction(argparse.Action):
    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        raise UsageError(parser.format_help(), exit_code=0)


class _VersionAction(argparse.Action):
    def __init__(self, option_strings, dest=argparse.SUPPRESS, default=argparse.SUPPRESS, help=None):
        super().__init__(option_strings, dest=dest, default=default, nargs=0, help=help)

    def __call__(self, parser, namespace, values, option_string=None):
        raise UsageError(f"{_PROG} {_VERSION}\n", exit_code=0)


class _Parser(argparse.ArgumentParser):
    """Argument parser that raises instead of exiting."""

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("add_help", False)
        kwargs.setdefault("allow_abbrev", False)
        kwargs.setdefault("formatter_class", argparse.RawDescriptionHelpFormatter)
        super().__init__(*args, **kwargs)
        self.add_argument("-h", "--help", action=_HelpAction, help="Print help")

    def error(self, message: str):
        prefix = "unrecognized arguments"
        if message.startswith(prefix):
            message = "unexpected argument" + message[len(prefix):]
        raise UsageError(f"{self.prog}: error: {message}\n{self.format_usage()}")

    def exit(self, status: int = 0, message: Optional[str] = None):
        raise UsageError(message or "", exit_code=status)


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser (everything except the ``--`` passthrough)."""
    parser = _Parser(
        prog=_PROG,
        description="Hindsight MCP Server - AI-assisted coding with development history",
    )
    parser.add_argument("-V", "--version", action=_VersionAction, help="Print version")
    parser.add_argument(
        "-d", "--database", default=None,
        help=f"Path to SQLite database file [env: {_DATABASE_ENV}]",
    )
    parser.add_argument(
        "-w", "--workspace", default=None,
        help=f"Default workspace path for queries [env: {_WORKSPACE_ENV}]",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging (debug level)")
    parser.add_argument("-q", "--quiet", action="store_true", help="Quiet mode - suppress info-level logs")
    parser.add_argument(
        "--skip-init", action="store_true", help="Skip database initialization/migration check"
    )

    subcommands = parser.add_subparsers(dest="command", metavar="COMMAND")
    subcommands.required = False

    ingest = subcommands.add_parser(
        "ingest",
        help="Ingest data from various sources",
        description="Ingest data from various sources. Test output should be piped from stdin.",
    )
    ingest.add_argument("--tests", action="store_true", help="Ingest test results from stdin (nextest JSON format)")
    ingest.add_argument("--commit", default=None, help="Git commit SHA to associate with test results")

    test = subcommands.add_parser(
        "test",
        help="Run tests and ingest results in one command",
        description=(
            "Run tests and ingest results in one command.\n\n"
            "This command wraps cargo-nextest, runs your tests, and automatically\n"
            "ingests the results into the hindsight database."
        ),
        epilog=_TEST_EPILOG,
        usage=f"{_PROG} test [OPTIONS] [-- NEXTEST_ARGS...]",
    )
    test.add_argument("-p", "--package", action="append", default=None, help="Package(s) to test")
    test.add_argument("--bin", action="append", default=None, help="Test binary(ies) to run")
    test.add_argument("-E", "--filter", default=None, help="Run only tests matching this filter expression")
    test.add_argument("--stdin", action="store_true", help="Read nextest JSON from stdin instead of running tests")
    test.add_argument("--dry-run", action="store_true", help="Don't actually ingest - just show what would be ingested")
    commit_group = test.add_mutually_exclusive_group()
    commit_group.add_argument("--no-commit", action="store_true", help="Don't auto-detect and link to current git commit")
    commit_group.add_argument("--commit", default=None, help="Explicit commit SHA to associate with test run")
    test.add_argument("--show-output", action="store_true", help="Show test output in terminal")
    return parser


def _env_path(name: str) -> Optional[Path]:
    value = os.environ.get(name)
    return Path(value) if value else None


def parse_args(argv: Optional[Sequence[str]] = None) -> Config:
    """Parse a command line into a :class:`Config`.

    Raises :class:`UsageError` on invalid input or when help/version is asked for.
    """
    args = list(sys.argv[1:] if argv is None else argv)
    passthrough: list[str] = []
    if "--" in args:
        split = args.index("--")
        args, passthrough = args[:split], args[split + 1:]

    ns = build_parser().parse_args(args)

    command: Optional[Command] = None
    if ns.command == "test":
        command = TestCommand(
            package=ns.package or [],
            bin=ns.bin or [],
            filter=ns.filter,
            stdin=ns.stdin,
            dry_run=ns.dry_run,
            no_commit=ns.no_commit,
            commit=ns.commit,
            show_output=ns.show_output,
            nextest_args=passthrough,
        )
    elif ns.command == "ingest":
        command = IngestCommand(tests=ns.tests, commit=ns.commit)

    if passthrough and not isinstance(command, TestCommand):
        raise UsageError(
            f"{_PROG}: error: unexpected argument '{passthrough[0]}' found"
        )

    return Config(
        command=command,
        database=Path(ns.database) if ns.database is not None else _env_path(_DATABASE_ENV),
        workspace=Path(ns.workspace) if ns.workspace is not None else _env_path(_WORKSPACE_ENV),
        verbose=ns.verbose,
        quiet=ns.quiet,
        skip_init=ns.skip_init,
    )