"""CLI entrypoint for notion-rag."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import orjson
import typer

from notion_rag.api.dependencies import Services, build_services
from notion_rag.core.config import Settings
from notion_rag.core.errors import NotionRagError
from notion_rag.core.logging import configure_logging, get_logger
from notion_rag.ingest.pipeline import reembed_all
from notion_rag.retrieval.search import format_context

app = typer.Typer(name="nrag", help="Sync Notion content into a vector store and query it")

logger = get_logger(__name__)

ConfigOption = typer.Option(None, "--config", "-c", help="Path to the YAML config file")


def _echo_json(payload: Any) -> None:
    typer.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8"))


def _load_services(config: Optional[Path]) -> Services:
    try:
        settings = Settings.from_yaml(config)
        return build_services(settings)
    except NotionRagError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


@app.callback()
def main(
    log_level: str = typer.Option("INFO", "--log-level", help="Root log level"),
    json_logs: bool = typer.Option(True, "--json-logs/--plain-logs", help="Emit JSON log lines"),
) -> None:
    configure_logging(log_level.upper(), use_json=json_logs)


@app.command()
def sync(
    config: Optional[Path] = ConfigOption,
    force: bool = typer.Option(False, "--force", "-f", help="Re-index every page, even if unchanged"),
) -> None:
    """Fetch configured pages and databases, then store chunk embeddings."""
    services = _load_services(config)
    try:
        if force:
            logger.info("Force option enabled - will re-index all content")
        report = services.pipeline().run(force=force)
    except NotionRagError as exc:
        typer.echo(f"Sync failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        services.close()
    _echo_json(report.to_dict())


@app.command()
def query(
    text: str = typer.Argument(..., help="Question to search for"),
    threshold: Optional[float] = typer.Option(None, "--threshold", "-t", help="Minimum similarity"),
    config: Optional[Path] = ConfigOption,
) -> None:
    """Print the stored chunks most similar to TEXT."""
    services = _load_services(config)
    try:
        cutoff = services.settings.similarity_threshold if threshold is None else threshold
        results = services.retriever.retrieve(text, cutoff)
    except NotionRagError as exc:
        typer.echo(f"Query failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        services.close()
    _echo_json(
        {
            "results": [result.to_dict() for result in results],
            "context": format_context(results),
        }
    )


@app.command()
def reembed(config: Optional[Path] = ConfigOption) -> None:
    """Recompute embeddings for every stored chunk."""
    services = _load_services(config)
    try:
        count = reembed_all(services.embedder, services.store)
    except NotionRagError as exc:
        typer.echo(f"Re-embedding failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    finally:
        services.close()
    _echo_json({"reembedded": count})


if __name__ == "__main__":
    app()
