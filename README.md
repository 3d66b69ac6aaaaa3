# hindsight_mcp

Command-line configuration for the hindsight development-history server.
The package parses the server's command line into a `Config` object and
settles where the database and the workspace live and which log level
applies. Everything lives in one module, `hindsight_mcp.config`.

## Installation

```
pip install hindsight-mcp
```

With the test requirements:

```
pip install "hindsight-mcp[test]"
```

## Parsing a command line

`parse_args(argv)` takes a list of arguments without the program name and
returns a `Config`. Called with no list, it reads `sys.argv[1:]`.

```python
from hindsight_mcp.config import parse_args

config = parse_args(["--database", "/tmp/history.db", "-v", "test", "-p", "my-crate"])

config.database      # Path("/tmp/history.db")
config.verbose       # True
config.command       # TestCommand(package=["my-crate"], ...)
```

`parse_args` never exits the interpreter. It raises `UsageError` instead:

- for an unknown flag, a flag missing its value, or `--commit` given
  together with `--no-commit`; `exit_code` is 2;
- for `-h`/`--help` and `-V`/`--version`; `exit_code` is 0 and `message`
  holds the help or version text.

`build_parser()` returns the underlying `argparse.ArgumentParser`, which
handles everything except the `--` passthrough.

### Global options

These must come before the subcommand; given after it they are rejected.

| Option | Meaning |
| --- | --- |
| `-d`, `--database PATH` | SQLite database file. If absent, a non-empty `HINDSIGHT_DATABASE` is used. |
| `-w`, `--workspace PATH` | Default workspace. If absent, a non-empty `HINDSIGHT_WORKSPACE` is used. |
| `-v`, `--verbose` | Debug-level logging. |
| `-q`, `--quiet` | Only warnings and errors. |
| `--skip-init` | Skip the database initialisation check. |
| `-V`, `--version` | Version text (raised as `UsageError`). |

With no subcommand, `config.command` is `None`.

### `ingest`

Parses to an `IngestCommand`:

- `--tests` sets `tests` to `True`.
- `--commit SHA` sets `commit`.

### `test`

Parses to a `TestCommand`:

| Option | Field |
| --- | --- |
| `-p`, `--package NAME` | `package` (repeatable, in order) |
| `--bin NAME` | `bin` (repeatable, in order) |
| `-E`, `--filter EXPR` | `filter` |
| `--stdin` | `stdin` |
| `--dry-run` | `dry_run` |
| `--no-commit` | `no_commit` |
| `--commit SHA` | `commit` |
| `--show-output` | `show_output` |

Everything after the first `--` is kept untouched and in order as
`nextest_args`, even when it looks like a flag:

```python
config = parse_args(["test", "--", "--retries", "2"])
config.command.nextest_args   # ["--retries", "2"]
```

Arguments after `--` with any subcommand other than `test` raise
`UsageError`.

## Resolving paths and log level

```python
from hindsight_mcp.config import Config

config = Config()
config.database_path()   # <user data dir>/hindsight/hindsight.db unless database is set
config.workspace_path()  # workspace if set, else the current directory (None if unavailable)
config.log_level()       # logging.DEBUG if verbose, logging.WARNING if quiet, else logging.INFO
```

`Config.validate()` checks the configuration and creates the database's
parent directory if it is missing. Failures raise subclasses of
`ConfigError`:

- `WorkspaceNotFoundError`: the workspace does not exist.
- `WorkspaceNotDirectoryError`: the workspace is not a directory.
- `DatabaseDirectoryCreateError`: the database directory could not be
  created.

`DatabaseInitError` is also defined for callers reporting that a database
could not be set up; nothing in this package raises it.

## What this package does not do

It only describes the configuration. It does not open or create the
database, run any tests, read test output from stdin, record commits or
chat sessions, or serve any requests. It installs no command; a program
built on it calls `parse_args` and acts on the returned `Config`.