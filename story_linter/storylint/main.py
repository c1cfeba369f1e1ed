"""Command-line entrypoint -- ``story-linter validate``."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import signal
from pathlib import Path
from typing import List, NoReturn, Optional, Sequence

import typer

from storylint import __version__
from storylint.config.discovery import resolve_targets
from storylint.config.loader import load_config
from storylint.config.models import LinterConfig, OutputFormat
from storylint.engine.errors import StoryLinterError
from storylint.engine.events import ErrorEvent, EventBus, RunPhase, RunStart
from storylint.engine.models import AggregateResult, FailOn, effective_exit_code
from storylint.engine.orchestrator import CancellationToken, Orchestrator
from storylint.output.formatters import build_meta, get_formatter
from storylint.validators import BUILTIN_VALIDATORS

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Consistency checks for Markdown narratives.")


def _configure_logging(verbose: bool) -> None:
    debug = verbose or os.environ.get("STORYLINT_DEBUG", "").lower() in ("1", "true", "yes")
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        force=True,
    )


class _Progress:
    """Writes run progress to stderr."""

    def __init__(self, bus: EventBus) -> None:
        bus.subscribe(RunStart, self.on_start)
        bus.subscribe(RunPhase, self.on_phase)
        bus.subscribe(ErrorEvent, self.on_error)

    def on_start(self, event: RunStart) -> None:
        typer.echo(f"Validating {event.file_count} file(s)...", err=True)

    def on_phase(self, event: RunPhase) -> None:
        typer.echo(f"  {event.phase} finished in {event.elapsed:.2f}s", err=True)

    def on_error(self, event: ErrorEvent) -> None:
        typer.echo(f"  {event.kind}: {event.context}", err=True)


async def run_validation(
    config: LinterConfig, files: Sequence[Path], quiet: bool = False
) -> AggregateResult:
    """Run the built-in validators; SIGINT cancels the run cooperatively."""
    bus = EventBus()
    if not quiet:
        _Progress(bus)
    orchestrator = Orchestrator(config, bus)
    orchestrator.register_all(BUILTIN_VALIDATORS)

    token = CancellationToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, token.cancel)
        installed = True
    except (NotImplementedError, RuntimeError, ValueError):
        installed = False
    try:
        return await orchestrator.run(files, token)
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)


def _fail(error: StoryLinterError, output_format: OutputFormat) -> NoReturn:
    typer.echo(f"story-linter: {error.kind}: {error.message}", err=True)
    if output_format == OutputFormat.json:
        payload = {"error": {"kind": error.kind, "message": error.message}}
        typer.echo(json.dumps(payload), err=True)
    raise typer.Exit(code=2)


@app.command()
def validate(
    files: Optional[List[Path]] = typer.Argument(None, help="Files or directories to check."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file or directory."),
    output_format: Optional[OutputFormat] = typer.Option(None, "--format", "-f"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress progress output."),
    no_color: bool = typer.Option(False, "--no-color"),
    fail_on: Optional[FailOn] = typer.Option(None, "--fail-on"),
    root: Optional[Path] = typer.Option(None, "--root", help="Project root directory."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a Markdown project and report issues."""
    _configure_logging(verbose)

    overrides: dict = {}
    if fail_on is not None:
        overrides["validation"] = {"failOn": fail_on.value}
    if output_format is not None:
        overrides.setdefault("output", {})["format"] = output_format.value
    if no_color:
        overrides.setdefault("output", {})["color"] = False
    if root is not None:
        overrides["project"] = {"root": str(root.resolve())}

    chosen_format = output_format or OutputFormat.text
    try:
        cfg = load_config(config, start_dir=root, overrides=overrides)
        chosen_format = cfg.output.format
        targets = resolve_targets(
            files or [], cfg.project.root, cfg.project.include, cfg.project.exclude
        )
        logger.debug("Validating %d files under %s", len(targets), cfg.project.root)
        result = asyncio.run(run_validation(cfg, targets, quiet))
    except StoryLinterError as e:
        _fail(e, chosen_format)

    result.meta = build_meta()
    formatter = get_formatter(cfg.output.format)
    typer.echo(formatter(result, cfg.output.color))
    raise typer.Exit(code=effective_exit_code(result))


@app.command()
def version() -> None:
    """Print the version."""
    typer.echo(f"story-linter {__version__}")


if __name__ == "__main__":
    app()
