from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_records, render_verdict
from models.query import (
    INTERVAL_ABSOLUTE_END_PARAM,
    INTERVAL_ABSOLUTE_START_PARAM,
    INTERVAL_END_PARAM,
    INTERVAL_START_PARAM,
    MADE_BY_SENSOR_PARAM,
    OBSERVED_PROPERTY_PARAM,
    OPERATOR_PARAM,
    VALUE_PARAM,
    ModalOperator,
)
from services.formatter import parse_csv


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for querying temporal containers on a temporal store service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        typer.secho("CLI state is uninitialized.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Temporal store base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Request timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("query")
def query_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the temporal container, e.g. sensors/room-1/."),
    observed_property: Optional[str] = typer.Option(None, "--observed-property", help="Observed property IRI."),
    made_by_sensor: Optional[str] = typer.Option(None, "--made-by-sensor", help="Sensor IRI."),
    interval_start: Optional[str] = typer.Option(
        None, "--interval-start", help="Keep observations at least this ISO-8601 duration old."
    ),
    interval_end: Optional[str] = typer.Option(
        None, "--interval-end", help="Keep observations at most this ISO-8601 duration old."
    ),
    interval_absolute_start: Optional[str] = typer.Option(
        None, "--interval-absolute-start", help="Keep observations at or before this instant."
    ),
    interval_absolute_end: Optional[str] = typer.Option(
        None, "--interval-absolute-end", help="Keep observations at or after this instant."
    ),
    value: Optional[str] = typer.Option(
        None, "--value", help="Value filter, optionally prefixed with gte_, gt_, lt_ or lte_."
    ),
    operator: Optional[ModalOperator] = typer.Option(
        None, "--operator", case_sensitive=False, help="Modal operator to evaluate."
    ),
) -> None:
    """Evaluate a temporal query against a container."""
    state = _get_state(ctx)
    params: Dict[str, str] = {}
    for name, option in (
        (OBSERVED_PROPERTY_PARAM, observed_property),
        (MADE_BY_SENSOR_PARAM, made_by_sensor),
        (INTERVAL_START_PARAM, interval_start),
        (INTERVAL_END_PARAM, interval_end),
        (INTERVAL_ABSOLUTE_START_PARAM, interval_absolute_start),
        (INTERVAL_ABSOLUTE_END_PARAM, interval_absolute_end),
        (VALUE_PARAM, value),
        (OPERATOR_PARAM, operator.value if operator else None),
    ):
        if option is not None:
            params[name] = option

    if not params:
        raise typer.BadParameter("Provide at least one filter or an operator; use 'get' for plain reads.")

    resource = state.client.get_resource(path, params=params)
    if operator is not None and resource.content_type == "application/json":
        render_verdict(operator.value, json.loads(resource.body) is True)
        return
    if resource.content_type != "text/csv":
        typer.secho(
            f"{path} is not a temporal container; showing its representation.",
            fg=typer.colors.YELLOW,
            err=True,
        )
        typer.echo(resource.body)
        return
    render_records(parse_csv(resource.body))


@app.command("get")
def get_command(
    ctx: typer.Context,
    path: str = typer.Argument(..., help="Path of the resource."),
    accept: Optional[str] = typer.Option(None, "--accept", help="Accept header to send."),
) -> None:
    """Fetch a resource representation unchanged."""
    state = _get_state(ctx)
    resource = state.client.get_resource(path, accept=accept)
    typer.secho(f"Content-Type: {resource.content_type}", bold=True, err=True)
    typer.echo(resource.body)
