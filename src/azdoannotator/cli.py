from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import typer
import uvicorn
from rich.console import Console
from rich.markup import escape

from azdoannotator.core.annotator import AzureDevOpsAnnotatorProcessor
from azdoannotator.core.errors import AnnotatorError
from azdoannotator.core.host import normalize_host
from azdoannotator.core.location_parser import parse_azure_location
from azdoannotator.core.types import LocationSpec
from azdoannotator.storage.config import AzureIntegration, ConfigStore

app = typer.Typer(add_completion=False, help="Annotate catalog entities sourced from Azure DevOps repositories.")
console = Console()

DATA_DIR_HELP = "Config dir (defaults to ~/.azdoannotator)"


def setup_logging(level: str = "WARNING") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        # stdout carries command output (annotate prints JSON)
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def _fail(message: str) -> None:
    console.print(f"[red]{escape(message)}[/red]", soft_wrap=True)
    raise typer.Exit(code=2)


def _processor(data_dir: Optional[Path], kinds: Optional[List[str]] = None) -> AzureDevOpsAnnotatorProcessor:
    try:
        cfg = ConfigStore(data_dir=data_dir).load()
        return AzureDevOpsAnnotatorProcessor.from_config(cfg, kinds=kinds)
    except AnnotatorError as e:
        _fail(str(e))


@app.callback()
def main(log_level: str = typer.Option("WARNING", help="Log level (DEBUG, INFO, WARNING, ERROR)")):
    setup_logging(log_level)


@app.command()
def parse(
    url: str = typer.Argument(..., help="Repository URL"),
    data_dir: Optional[Path] = typer.Option(None, help=DATA_DIR_HELP),
):
    """Show what an Azure DevOps URL resolves to."""
    processor = _processor(data_dir)
    parsed = parse_azure_location(url, processor.registry)
    if parsed is None:
        console.print(f"No Azure DevOps repository recognized in {escape(url)}", soft_wrap=True)
        raise typer.Exit(code=1)

    console.print(f"host: {escape(parsed.host)}", soft_wrap=True)
    if parsed.prefix:
        console.print(f"collection: {escape('/'.join(parsed.prefix))}", soft_wrap=True)
    console.print(f"organization: {escape(parsed.organization)}", soft_wrap=True)
    console.print(f"project: {escape(parsed.project)}", soft_wrap=True)
    console.print(f"repository: {escape(parsed.repository)}", soft_wrap=True)
    for key, value in parsed.annotations().items():
        console.print(f"{key}: {escape(value)}", soft_wrap=True)


@app.command()
def annotate(
    entity_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Entity JSON file"),
    target: str = typer.Option(..., help="Location target URL the entity was read from"),
    location_type: str = typer.Option("url", "--type", help="Location type"),
    kind: Optional[List[str]] = typer.Option(None, help="Only annotate these kinds (repeatable)"),
    data_dir: Optional[Path] = typer.Option(None, help=DATA_DIR_HELP),
):
    """Annotate an entity and print it as JSON."""
    processor = _processor(data_dir, kinds=kind or None)
    try:
        entity = json.loads(entity_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        _fail(f"{entity_file} is not valid JSON: {e}")
    if not isinstance(entity, dict):
        _fail(f"{entity_file} must contain a JSON object")

    result = processor.pre_process_entity(entity, LocationSpec(type=location_type, target=target))
    console.print_json(data=result)


@app.command()
def hosts(data_dir: Optional[Path] = typer.Option(None, help=DATA_DIR_HELP)):
    """List recognized Azure DevOps hosts."""
    for host in _processor(data_dir).registry.sorted_hosts():
        console.print(escape(host), soft_wrap=True)


@app.command("add-host")
def add_host(
    host: str = typer.Argument(..., help="Azure DevOps Server host (URLs are reduced to their host)"),
    data_dir: Optional[Path] = typer.Option(None, help=DATA_DIR_HELP),
):
    """Register an on-premises Azure DevOps host."""
    store = ConfigStore(data_dir=data_dir)
    try:
        cfg = store.load()
        bare = normalize_host(host)
        if not bare:
            _fail(f"'{host}' is not a valid host")
        if bare in cfg.azure_hosts():
            console.print(f"{escape(bare)} is already configured", soft_wrap=True)
            return
        cfg.integrations.azure.append(AzureIntegration(host=bare))
    except AnnotatorError as e:
        _fail(str(e))
    except ValueError as e:
        _fail(f"'{host}' is not a valid host: {e}")
    store.save(cfg)
    console.print(f"Added [bold]{escape(bare)}[/bold]", soft_wrap=True)


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind host"),
    port: int = typer.Option(8766, help="Bind port"),
    data_dir: Optional[Path] = typer.Option(None, help=DATA_DIR_HELP),
):
    """Serve the annotation API."""
    from azdoannotator.web.app import create_app

    try:
        api = create_app(data_dir=data_dir)
    except AnnotatorError as e:
        _fail(str(e))
    console.print(f"[bold]azdoannotator[/bold] API running at http://{host}:{port}")
    uvicorn.run(api, host=host, port=port, log_level="info")


if __name__ == "__main__":
    app()
