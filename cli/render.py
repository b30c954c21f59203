from __future__ import annotations

from typing import Iterable

import typer

from models.records import ObservationRecord


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def render_records(records: Iterable[ObservationRecord]) -> None:
    rows = list(records)
    echo_heading(f"Observations ({len(rows)})")
    if not rows:
        typer.echo("No observations matched.")
        return
    for record in rows:
        typer.echo(f"  {record.timestamp}  {record.value}  {record.unit or '-'}")


def render_verdict(operator: str, verdict: bool) -> None:
    echo_heading(f"Operator {operator}")
    typer.secho(
        "true" if verdict else "false",
        fg=typer.colors.GREEN if verdict else typer.colors.RED,
    )
