"""CLI entrypoint for the documentation search service."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import List, Optional

import requests
import typer

app = typer.Typer(name="docs-search", help="Documentation search command-line interface")

DEFAULT_HOST = "http://127.0.0.1:3001"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip('/')
    env_host = os.environ.get("DOCS_HOST")
    if env_host:
        return env_host.rstrip('/')
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    base = _resolve_host(host)
    url = f"{base}{path}"
    resp = requests.request(method, url, timeout=60, **kwargs)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


def _echo(resp: requests.Response) -> None:
    typer.echo(json.dumps(resp.json(), indent=2, ensure_ascii=False))


@app.command()
def search(
    q: str = typer.Argument(..., help="Query text"),
    limit: int = typer.Option(10, "--limit", "-n", help="Number of results to return"),
    search_type: str = typer.Option("hybrid", "--type", help="keyword, semantic or hybrid"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Search the documentation."""
    resp = _request("GET", "/api/search", host=host, params={"query": q, "limit": limit, "search_type": search_type})
    _echo(resp)


@app.command()
def chapter(
    chapter_id: int = typer.Argument(..., help="Chapter identifier"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show a single chapter."""
    _echo(_request("GET", f"/api/chapter/{chapter_id}", host=host))


@app.command()
def chapters(
    page: int = typer.Option(1, "--page", help="Page number"),
    limit: int = typer.Option(20, "--limit", help="Chapters per page"),
    filter_text: Optional[str] = typer.Option(None, "--search", help="Substring filter"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """List chapters page by page."""
    params: dict[str, object] = {"page": page, "limit": limit}
    if filter_text:
        params["search"] = filter_text
    _echo(_request("GET", "/api/chapters", host=host, params=params))


@app.command()
def stats(
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Show documentation statistics."""
    _echo(_request("GET", "/api/statistics", host=host))


@app.command("import")
def import_files(
    paths: Optional[List[Path]] = typer.Argument(None, help="Structure files or directories"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Import structure files into the document store."""
    body: dict[str, object] = {}
    if paths:
        body["paths"] = [str(path.expanduser().resolve()) for path in paths]
    _echo(_request("POST", "/api/import", host=host, json=body))


@app.command()
def embed(
    chapter_id: Optional[int] = typer.Option(None, "--chapter", help="Re-embed a single chapter"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Generate embeddings for every chapter, or refresh one."""
    if chapter_id is None:
        _echo(_request("POST", "/api/embeddings/rebuild", host=host))
    else:
        _echo(_request("PUT", f"/api/embeddings/{chapter_id}", host=host))


if __name__ == "__main__":
    app()
