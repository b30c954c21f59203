from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


@dataclass(frozen=True)
class FetchedResource:
    content_type: str
    body: str


class ApiClient:
    """Minimal HTTP client for the temporal store service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def get_resource(
        self,
        path: str,
        params: Optional[Dict[str, str]] = None,
        accept: Optional[str] = None,
    ) -> FetchedResource:
        headers = {"Accept": accept} if accept else {}
        try:
            response = self._client.get(f"/{path.lstrip('/')}", params=params or None, headers=headers)
            if response.status_code == 404:
                raise typer.BadParameter(f"Resource {path} was not found.")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        content_type = response.headers.get("content-type", "")
        return FetchedResource(content_type=content_type.split(";")[0].strip(), body=response.text)

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
