# ruff: noqa: I001
"""CLI for the ``statement_ledger`` package.

This module exposes callable command handlers (``cmd_inspect``,
``cmd_import``, ``cmd_fixed_deposits``, ``cmd_group``) and a Typer-based
console interface. Environment variables (notably ``DATABASE_URL``) are loaded
from a local ``.env`` using ``python-dotenv`` before delegating to command
logic. Business logic lives in ``statement_ledger.api`` and related modules.

Handlers print results to stdout (JSON) and errors to stderr, and return a
process exit code.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated, Any
from collections.abc import Sequence

import typer
from dotenv import load_dotenv
from typer.models import ArgumentInfo, OptionInfo

from .errors import MappingValidationError
from .logging_setup import configure_logging


# ---- Small module-level helpers used by CLI commands -------------------------


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _parse_mapping_pairs(pairs: Sequence[str]) -> dict[str, str] | None:
    """Turn ``COLUMN=FIELD`` pairs into a mapping; ``None`` when no pair was given.

    Column names go through the same header normalization as parsed files so
    ``--map "Txn Date=date"`` matches the ``txn_date`` key.
    """

    if not pairs:
        return None
    from .ingest.adapters.common import normalize_header

    mapping: dict[str, str] = {}
    for pair in pairs:
        column, sep, target = pair.partition("=")
        if not sep or not column.strip() or not target.strip():
            raise ValueError(f"Invalid --map value {pair!r}; expected COLUMN=FIELD")
        mapping[normalize_header(column)] = target.strip()
    return mapping


def _read_file(path: Path) -> bytes:
    return path.read_bytes()


# ---- Command handlers --------------------------------------------------------


def cmd_inspect(path: str) -> int:
    """Parse a statement export and print fields, counts and the suggested mapping."""

    from .api import parse_statement, suggest_column_mapping

    p = Path(path)
    try:
        result = parse_statement(p.name, _read_file(p))
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _print_json(
        {
            "file": p.name,
            "fields": result.fields,
            "delimiter": result.delimiter,
            "rows": len(result.rows),
            "errors": [err.to_dict() for err in result.errors],
            "suggested_mapping": suggest_column_mapping(result.rows),
        }
    )
    return 0


def cmd_import(
    path: str,
    *,
    mapping_pairs: Sequence[str] = (),
    database_url: str | None = None,
) -> int:
    """Parse, map, de-duplicate and upsert a statement into the ledger database."""

    from db.client import session_scope

    from .api import parse_statement, upload_transactions
    from .config import database_url as resolve_database_url
    from .errors import StorageError
    from .persistence import SqlLedgerStore

    p = Path(path)
    try:
        mapping = _parse_mapping_pairs(mapping_pairs)
        result = parse_statement(p.name, _read_file(p))
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    url = resolve_database_url(database_url)
    if not url:
        print("Error: DATABASE_URL is not set (use --database-url).", file=sys.stderr)
        return 1

    try:
        with session_scope(database_url=url) as session:
            summary = upload_transactions(result.rows, mapping, SqlLedgerStore(session))
    except MappingValidationError as e:
        print("Error: invalid column mapping:", file=sys.stderr)
        for problem in e.problems:
            print(f"  - {problem}", file=sys.stderr)
        return 1
    except (ValueError, StorageError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _print_json({**summary.to_dict(), "rejected": summary.rejected})
    return 0


def cmd_fixed_deposits(path: str, *, save: bool = False, database_url: str | None = None) -> int:
    """Extract fixed deposits from a PDF statement; optionally upsert them."""

    from .api import parse_pdf, save_fixed_deposits
    from .config import database_url as resolve_database_url
    from .errors import StorageError

    p = Path(path)
    try:
        outcome = parse_pdf(_read_file(p))
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    saved = 0
    if save and outcome.fixed_deposits:
        from db.client import session_scope
        from .persistence import SqlLedgerStore

        url = resolve_database_url(database_url)
        if not url:
            print("Error: DATABASE_URL is not set (use --database-url).", file=sys.stderr)
            return 1
        try:
            with session_scope(database_url=url) as session:
                saved = len(save_fixed_deposits(outcome.fixed_deposits, SqlLedgerStore(session)))
        except StorageError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    _print_json(
        {
            "pages": outcome.page_count,
            "fixed_deposits": [fd.to_record() for fd in outcome.fixed_deposits],
            "saved": saved,
        }
    )
    return 0


def cmd_group(path: str, *, mode: str, threshold: float) -> int:
    """Parse a statement with the suggested mapping and print grouped rows."""

    from .api import parse_statement
    from .columns import resolve_column_mapping, transform_rows
    from .grouping import group_transactions

    if mode not in ("none", "date", "narration"):
        print(f"Error: unknown grouping mode {mode!r}", file=sys.stderr)
        return 1

    p = Path(path)
    try:
        result = parse_statement(p.name, _read_file(p))
        mapping = resolve_column_mapping(result.rows)
        outcome = transform_rows(result.rows, mapping)
        grouped = group_transactions(
            outcome.transactions,
            mode,  # type: ignore[arg-type]
            similarity_threshold=threshold,
        )
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    _print_json([row.to_record() for row in grouped])
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import bank statement exports (CSV/XLSX) into a de-duplicated ledger and "
        "read fixed deposits from PDF statements. Loads DATABASE_URL from a local .env."
    ),
)

# Module-level argument/option objects to satisfy ruff B008 (no calls in
# parameter defaults). Typer inspects them when used as defaults below.
STATEMENT_PATH_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Path to a statement export (.csv, .tsv, .txt, .xlsx, .xlsm)",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files
)
PDF_PATH_ARGUMENT: ArgumentInfo = typer.Argument(
    ..., help="Path to a PDF statement", dir_okay=False, file_okay=True, exists=False
)
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
MAP_OPTION: OptionInfo = typer.Option(
    "--map",
    "-m",
    help="Column mapping as COLUMN=FIELD (repeatable). Defaults to the suggested mapping.",
)
LOG_LEVEL_OPTION: OptionInfo = typer.Option(
    "--log-level", help="Logging level name or number (falls back to STATEMENT_LEDGER_LOG_LEVEL)."
)


@app.command("inspect")
def inspect_cmd(path: Annotated[Path, STATEMENT_PATH_ARGUMENT]) -> None:
    """Show parsed columns, counts, row errors and the suggested mapping."""

    raise typer.Exit(cmd_inspect(str(path)))


@app.command("import")
def import_cmd(
    path: Annotated[Path, STATEMENT_PATH_ARGUMENT],
    *,
    mapping: Annotated[list[str] | None, MAP_OPTION] = None,
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Upload a statement into the ledger database."""

    raise typer.Exit(
        cmd_import(str(path), mapping_pairs=mapping or [], database_url=database_url)
    )


@app.command("fixed-deposits")
def fixed_deposits_cmd(
    path: Annotated[Path, PDF_PATH_ARGUMENT],
    *,
    save: bool = typer.Option(False, help="Upsert the extracted deposits by FD number."),
    database_url: Annotated[str | None, DATABASE_URL_OPTION] = None,
) -> None:
    """Extract fixed-deposit records from a PDF statement."""

    raise typer.Exit(cmd_fixed_deposits(str(path), save=save, database_url=database_url))


@app.command("group")
def group_cmd(
    path: Annotated[Path, STATEMENT_PATH_ARGUMENT],
    *,
    mode: str = typer.Option("date", help="Grouping mode: none, date or narration."),
    threshold: float = typer.Option(
        0.3, help="Narration mode: max edit distance relative to the longer narration."
    ),
) -> None:
    """Print transactions grouped by date or by similar narration."""

    raise typer.Exit(cmd_group(str(path), mode=mode, threshold=threshold))


@app.command("serve")
def serve_cmd(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
) -> None:
    """Run the HTTP API with uvicorn."""

    import uvicorn

    uvicorn.run("statement_ledger.server:app", host=host, port=port)


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    log_level: Annotated[str | None, LOG_LEVEL_OPTION] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m statement_ledger.cli`
    app()
