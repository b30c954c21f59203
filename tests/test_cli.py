from __future__ import annotations

from typing import Dict, List, Optional

import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.client import FetchedResource

CELSIUS = "http://qudt.org/vocab/unit/DEG_C"


class StubClient:
    def __init__(self, config, resource: Optional[FetchedResource] = None) -> None:
        self.config = config
        self.resource = resource or FetchedResource(
            content_type="text/csv",
            body=(
                f"2026-10-18T09:00:00+00:00, 30, {CELSIUS}\n"
                f"2026-10-18T10:00:00+00:00, 20, {CELSIUS}"
            ),
        )
        self.calls: List[tuple[str, Optional[Dict[str, str]], Optional[str]]] = []
        self.closed = False

    def get_resource(
        self,
        path: str,
        params: Optional[Dict[str, str]] = None,
        accept: Optional[str] = None,
    ) -> FetchedResource:
        self.calls.append((path, params, accept))
        return self.resource

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


def _install_stub(monkeypatch, stub: StubClient) -> None:
    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)


def test_query_renders_observations(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["query", "room/", "--interval-start", "PT90M", "--value", "gte_20"])

    assert result.exit_code == 0
    assert "Observations (2)" in result.stdout
    assert f"2026-10-18T09:00:00+00:00  30  {CELSIUS}" in result.stdout
    assert stub.calls == [("room/", {"intervalStart": "PT90M", "value": "gte_20"}, None)]
    assert stub.closed is True


def test_query_with_operator_renders_verdict(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None, resource=FetchedResource("application/json", "false"))
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["query", "room/", "--value", "gte_20", "--operator", "box"])

    assert result.exit_code == 0
    assert "Operator box" in result.stdout
    assert "false" in result.stdout
    assert stub.calls[0][1] == {"value": "gte_20", "operator": "box"}


def test_query_on_plain_resource_shows_representation(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None, resource=FetchedResource("text/turtle", "<> a <urn:x> ."))
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["query", "notes/", "--operator", "diamond"])

    assert result.exit_code == 0
    assert "<> a <urn:x> ." in result.stdout


def test_query_requires_a_parameter(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None)
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["query", "room/"])

    assert result.exit_code != 0
    assert stub.calls == []


def test_get_command_passes_accept(monkeypatch, runner: CliRunner) -> None:
    stub = StubClient(config=None, resource=FetchedResource("text/html", "<p>index</p>"))
    _install_stub(monkeypatch, stub)

    result = runner.invoke(app, ["--base-url", "http://store:9000/", "get", "site/", "--accept", "text/html"])

    assert result.exit_code == 0
    assert "<p>index</p>" in result.stdout
    assert stub.calls == [("site/", None, "text/html")]
    assert stub.config.base_url == "http://store:9000"
