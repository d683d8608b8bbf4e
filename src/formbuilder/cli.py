from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any

import orjson
import typer

from formbuilder.aggregate import aggregate
from formbuilder.config import Settings
from formbuilder.errors import FormSchemaError, SubmissionDocumentError
from formbuilder.export import write_csv
from formbuilder.schema import load_form_schema, parse_form_document
from formbuilder.submissions import load_submissions
from formbuilder.utils import dumps_json, loads_json, parse_dt
from formbuilder.validator import validate

cli = typer.Typer(add_completion=False, help="Validate form submissions and summarize responses.")

logger = logging.getLogger(__name__)


def _read_json(path: Path) -> Any:
    try:
        return loads_json(path.read_bytes())
    except OSError as exc:
        typer.echo(f"Cannot read {path}: {exc}", err=True)
        raise typer.Exit(code=2)
    except orjson.JSONDecodeError:
        typer.echo(f"{path} is not valid JSON", err=True)
        raise typer.Exit(code=2)


def _load_schema(path: Path):
    try:
        return load_form_schema(_read_json(path))
    except FormSchemaError as exc:
        for message in exc.errors:
            typer.echo(message, err=True)
        raise typer.Exit(code=2)


def _load_submissions(path: Path):
    try:
        return load_submissions(_read_json(path))
    except SubmissionDocumentError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)


@cli.callback()
def main(ctx: typer.Context) -> None:
    settings = Settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = settings


@cli.command()
def check(form_file: Path = typer.Argument(..., help="Form document (JSON)")) -> None:
    """Report authoring problems in a form document."""
    _, errors = parse_form_document(_read_json(form_file))
    for message in errors:
        typer.echo(message)
    if errors:
        raise typer.Exit(code=1)
    typer.echo("ok")


@cli.command("validate")
def validate_command(
    ctx: typer.Context,
    form_file: Path = typer.Argument(..., help="Form document (JSON)"),
    answers_file: Path = typer.Argument(..., help="Candidate answers (JSON)"),
    now: str | None = typer.Option(None, help="Evaluate as of this ISO timestamp"),
    submissions_so_far: int = typer.Option(0, help="Submissions already stored for the form"),
    first_only: bool = typer.Option(False, "--first-only", help="Stop at the first violation"),
) -> None:
    """Validate one candidate submission."""
    settings: Settings = ctx.obj or Settings()
    schema = _load_schema(form_file)
    raw = _read_json(answers_file)
    if isinstance(raw, dict) and isinstance(raw.get("responses", raw.get("answers")), list):
        raw = raw.get("responses", raw.get("answers"))

    as_of = None
    if now:
        as_of = parse_dt(now)
        if as_of is None:
            typer.echo(f"--now is not a valid timestamp: {now}", err=True)
            raise typer.Exit(code=2)

    result = validate(
        schema,
        raw,
        now=as_of,
        submissions_so_far=submissions_so_far,
        collect_all=settings.collect_all and not first_only,
    )
    typer.echo(dumps_json(result.as_dict(), indent=True))
    if not result.accepted:
        raise typer.Exit(code=1)


@cli.command("aggregate")
def aggregate_command(
    ctx: typer.Context,
    form_file: Path = typer.Argument(..., help="Form document (JSON)"),
    submissions_file: Path = typer.Argument(..., help="Stored submissions (JSON)"),
    tz: str | None = typer.Option(None, "--tz", help="Timezone for grouping by date"),
) -> None:
    """Print per-field analytics for stored submissions."""
    settings: Settings = ctx.obj or Settings()
    schema = _load_schema(form_file)
    submissions = _load_submissions(submissions_file)
    try:
        report = aggregate(schema, submissions, tz=tz or settings.timezone)
    except (KeyError, ValueError) as exc:
        typer.echo(f"Unknown timezone: {tz or settings.timezone} ({exc})", err=True)
        raise typer.Exit(code=2)
    typer.echo(dumps_json(report.as_dict(), indent=True))


@cli.command("export")
def export_command(
    ctx: typer.Context,
    form_file: Path = typer.Argument(..., help="Form document (JSON)"),
    submissions_file: Path = typer.Argument(..., help="Stored submissions (JSON)"),
    fmt: str = typer.Option("csv", "--format", help="csv or tsv"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to this file"),
) -> None:
    """Export submissions as CSV/TSV, one row per submission."""
    settings: Settings = ctx.obj or Settings()
    if fmt not in {"csv", "tsv"}:
        typer.echo(f"Unsupported format: {fmt}", err=True)
        raise typer.Exit(code=2)
    schema = _load_schema(form_file)
    submissions = _load_submissions(submissions_file)
    delimiter = "," if fmt == "csv" else "\t"

    buffer = io.StringIO()
    count = write_csv(
        schema,
        submissions,
        buffer,
        delimiter=delimiter,
        not_answered_text=settings.not_answered_text,
    )
    if output is None:
        typer.echo(buffer.getvalue(), nl=False)
    else:
        output.write_text(buffer.getvalue(), encoding="utf-8", newline="")
        logger.info("Exported %d submission(s) to %s", count, output)


if __name__ == "__main__":
    cli()
