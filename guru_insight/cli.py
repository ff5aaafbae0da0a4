from __future__ import annotations

import json
import os
import random
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from guru_insight.core.codes import format_code, is_fatal, parse_alert_code, subsystem_name
from guru_insight.core.config import ENV_LOG_LEVEL, InsightConfig, load_config
from guru_insight.core.errors import (
    AllocationFailure,
    CodeFormatError,
    ConfigError,
    InsightError,
    TableLoadError,
    TableValidationError,
)
from guru_insight.core.expand.expand_hint import expand_hint
from guru_insight.core.expand.token_table import TokenConfigError, load_and_merge
from guru_insight.core.io.load_table import load_table
from guru_insight.core.kb.knowledge_base import KnowledgeBase
from guru_insight.core.lint.lint_table import has_errors, lint_table
from guru_insight.core.logging_setup import setup_logging
from guru_insight.core.model import LookupResult, TokenTable
from guru_insight.core.validate.validate_table import summarize_table, validate_table

app = typer.Typer(add_completion=False, no_args_is_help=True)
console = Console()

UNKNOWN_DESCRIPTION = "Unknown Error"
UNKNOWN_HINT = "No Insight for this error code."

TABLE_FILE_HELP = "Alert table file (.yaml/.yml/.json); defaults to the bundled table"
TOKEN_FILE_HELP = "Optional YAML file to add/override hint tokens"


@app.callback()
def _callback(
    log_level: str | None = typer.Option(
        None, "--log-level", help="Log level for diagnostics on stderr"
    ),
) -> None:
    """Guru Meditation insight: explain Amiga alert codes."""
    if not (log_level or os.getenv(ENV_LOG_LEVEL)):
        return
    try:
        cfg = load_config(log_level=log_level)
    except ConfigError as e:
        _print_errors([e])
        raise typer.Exit(code=2)
    setup_logging(cfg.log_level)


@app.command("lookup")
def lookup_cmd(
    code: str = typer.Argument(..., help="Alert code, exactly 8 hex digits (0x prefix optional)"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    table_file: str | None = typer.Option(None, "--table-file", help=TABLE_FILE_HELP),
    token_file: str | None = typer.Option(None, "--token-file", help=TOKEN_FILE_HELP),
) -> None:
    """Describe one alert code."""
    _check_format(format, "lookup")

    try:
        alert = parse_alert_code(code)
    except CodeFormatError as e:
        _print_errors([e])
        raise typer.Exit(code=2)

    kb = _load_kb(table_file, token_file)
    result = _lookup(kb, alert)

    if result is None:
        if format == "json":
            _emit_json(_lookup_payload(alert, None), exit_code=1)
        typer.echo(f"Error Code: {format_code(alert)}")
        typer.echo(f"Error: {UNKNOWN_DESCRIPTION}")
        typer.echo(UNKNOWN_HINT)
        raise typer.Exit(code=1)

    with result:
        if format == "json":
            _emit_json(_lookup_payload(alert, result), exit_code=0)
        _echo_result(result)


@app.command("guru")
def guru_cmd(
    seed: int | None = typer.Option(None, "--seed", help="Seed for repeatable picks"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    table_file: str | None = typer.Option(None, "--table-file", help=TABLE_FILE_HELP),
    token_file: str | None = typer.Option(None, "--token-file", help=TOKEN_FILE_HELP),
) -> None:
    """Show a random catalogued alert (self-test)."""
    _check_format(format, "guru")

    kb = _load_kb(table_file, token_file)
    try:
        alert = kb.random_code(random.Random(seed))
    except LookupError:
        _print_errors(
            [
                TableValidationError(
                    code="E_GURU_EMPTY_TABLE",
                    message="alert table has no entries to pick from",
                    file=kb.table.source,
                    path="entries",
                )
            ]
        )
        raise typer.Exit(code=2)

    result = _lookup(kb, alert)
    if result is None:  # pragma: no cover - random_code only yields catalogued codes
        _print_errors(
            [
                TableValidationError(
                    code="E_GURU_LOOKUP_FAILED",
                    message=f"failed to look up alert {format_code(alert)}",
                    file=kb.table.source,
                    path=format_code(alert),
                )
            ]
        )
        raise typer.Exit(code=1)

    with result:
        if format == "json":
            _emit_json(_lookup_payload(alert, result, command="guru"), exit_code=0)
        _echo_result(result)


@app.command("lint")
def lint(
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    strict: bool = typer.Option(False, "--strict", help="Fail on warnings as well as errors"),
    table_file: str | None = typer.Option(None, "--table-file", help=TABLE_FILE_HELP),
    token_file: str | None = typer.Option(None, "--token-file", help=TOKEN_FILE_HELP),
) -> None:
    """Lint the alert table: duplicates, token references, token version drift."""
    _check_format(format, "lint")

    def _to_item(e: InsightError) -> dict:
        code = getattr(e, "code", "E_UNKNOWN")
        source = (
            "lint" if code.startswith("L_") else "validate" if code.startswith("E_") else "unknown"
        )
        return {
            "code": e.code,
            "message": e.message,
            "file": e.file,
            "path": e.path,
            "severity": e.severity,
            "source": source,
        }

    def _emit(ok: bool, findings: list[InsightError], exit_code: int, summary: dict | None) -> None:
        payload = {
            "tool": "insight",
            "command": "lint",
            "ok": ok,
            "error_count": sum(1 for f in findings if f.severity == "error"),
            "warning_count": sum(1 for f in findings if f.severity == "warning"),
            "errors": [_to_item(f) for f in findings],
            "summary": summary,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    cfg = _config(table_file, token_file)
    try:
        raw = load_table(cfg.table_file)
    except TableLoadError as e:
        if format == "json":
            _emit(False, [e], 1, None)
        _print_errors([e])
        raise typer.Exit(code=1)

    table, validation_errors = validate_table(raw)
    if table is None:
        if format == "json":
            _emit(False, list(validation_errors), 2, None)
        _print_errors(validation_errors)
        raise typer.Exit(code=2)

    tokens = _load_tokens(cfg.token_file)
    lint_findings = lint_table(table, tokens)
    findings: list[InsightError] = list(lint_findings)
    failed = has_errors(lint_findings, strict=strict)

    if format == "json":
        summary = {
            "entry_count": len(table.entries),
            "distinct_codes": len({e.code for e in table.entries}),
            "schema_version": table.schema_version,
            "token_table_version": tokens.version,
        }
        _emit(not failed, findings, 2 if failed else 0, summary)

    typer.echo(f"Alert table {table.schema_version} ({len(table.entries)} entries)")
    _print_errors(findings)
    if failed:
        raise typer.Exit(code=2)
    warnings = sum(1 for f in findings if f.severity == "warning")
    typer.echo(f"OK: lint passed ({warnings} warnings)")


@app.command("tokens")
def tokens_cmd(
    token_file: str | None = typer.Option(None, "--token-file", help=TOKEN_FILE_HELP),
) -> None:
    """List the hint token table."""
    tokens = _load_tokens(_config(None, token_file).token_file)

    table = Table(title=f"Hint tokens (version {tokens.version})")
    table.add_column("Token", no_wrap=True)
    table.add_column("Phrase")
    for name in sorted(tokens.tokens.keys()):
        table.add_row(f"TOK_{name}", tokens.tokens[name])
    console.print(table)


@app.command("expand")
def expand_cmd(
    text: str = typer.Argument(..., help="Hint text containing TOK_<name> references"),
    token_file: str | None = typer.Option(None, "--token-file", help=TOKEN_FILE_HELP),
) -> None:
    """Expand TOK_<name> references in arbitrary text."""
    cfg = _config(None, token_file)
    tokens = _load_tokens(cfg.token_file)
    typer.echo(expand_hint(text, tokens, capacity=cfg.buffer_capacity))


@app.command("info")
def info_cmd(
    table_file: str | None = typer.Option(None, "--table-file", help=TABLE_FILE_HELP),
    token_file: str | None = typer.Option(None, "--token-file", help=TOKEN_FILE_HELP),
) -> None:
    """Summarize the alert table and token table."""
    kb = _load_kb(table_file, token_file)
    typer.echo(summarize_table(kb.table))
    typer.echo(f"Tokens: {len(kb.tokens)} (version {kb.tokens.version})")


def _check_format(format: str, command: str) -> None:
    if format not in ("text", "json"):
        err = TableValidationError(
            code=f"E_{command.upper()}_UNKNOWN_FORMAT",
            message=f"unknown format: {format} (choose one of: text, json)",
            file=None,
            path="format",
        )
        _print_errors([err])
        raise typer.Exit(code=2)


def _config(table_file: str | None, token_file: str | None) -> InsightConfig:
    try:
        return load_config(table_file=table_file, token_file=token_file)
    except ConfigError as e:
        _print_errors([e])
        raise typer.Exit(code=2)


def _load_tokens(token_file: str | None) -> TokenTable:
    try:
        return load_and_merge(token_file)
    except FileNotFoundError:
        _print_errors(
            [
                TableLoadError(
                    code="E_TOKEN_FILE_NOT_FOUND",
                    message=f"token file not found: {token_file}",
                    file=None,
                    path="token_file",
                )
            ]
        )
        raise typer.Exit(code=1)
    except TokenConfigError as e:
        _print_errors(
            [
                TableValidationError(
                    code="E_TOKEN_FILE_INVALID",
                    message=str(e),
                    file=token_file,
                    path="token_file",
                )
            ]
        )
        raise typer.Exit(code=2)


def _load_kb(table_file: str | None, token_file: str | None) -> KnowledgeBase:
    cfg = _config(table_file, token_file)
    try:
        raw = load_table(cfg.table_file)
    except TableLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    table, errors = validate_table(raw)
    if errors or table is None:
        _print_errors(errors)
        raise typer.Exit(code=2)

    tokens = _load_tokens(cfg.token_file)
    return KnowledgeBase(table, tokens, buffer_capacity=cfg.buffer_capacity)


def _lookup(kb: KnowledgeBase, alert: int) -> LookupResult | None:
    try:
        return kb.lookup(alert)
    except AllocationFailure as e:
        _print_errors([e])
        raise typer.Exit(code=1)


def _echo_result(result: LookupResult) -> None:
    typer.echo(f"Error Code: {format_code(result.code)}")
    typer.echo(f"Error: {result.description}")
    typer.echo(result.hint or "")


def _lookup_payload(
    alert: int, result: LookupResult | None, *, command: str = "lookup"
) -> dict[str, Any]:
    return {
        "tool": "insight",
        "command": command,
        "ok": result is not None,
        "code": format_code(alert),
        "found": result is not None,
        "description": result.description if result is not None else UNKNOWN_DESCRIPTION,
        "hint": result.hint if result is not None else UNKNOWN_HINT,
        "fatal": is_fatal(alert),
        "subsystem": subsystem_name(alert),
    }


def _emit_json(payload: dict[str, Any], *, exit_code: int) -> None:
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))
    raise typer.Exit(code=exit_code)


def _print_errors(errors: list[InsightError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        prefix = "WARN: " if e.severity == "warning" else ""
        typer.echo(f"{prefix}{e}", err=True)


def main() -> None:
    app(prog_name="insight")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
