"""CLI interface for nbaltcheck."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from nbaltcheck import __version__
from nbaltcheck.analysis.extractor import ContentIssueExtractor
from nbaltcheck.check_logger import configure_logging, log_checker_configuration
from nbaltcheck.controller import IndicatorController
from nbaltcheck.errors import NotebookLoadError
from nbaltcheck.model.options import CheckerOptions
from nbaltcheck.notebook import NotebookDocument
from nbaltcheck.registry import IssueRegistry
from nbaltcheck.ui.panel import render_report
from nbaltcheck.ui.view import TerminalCellView
from nbaltcheck.watch import NotebookWatcher

app = typer.Typer(
    name="nbaltcheck",
    help="Check images in Jupyter notebooks for missing alt text and high transparency.",
    no_args_is_help=True,
)

NotebookArg = Annotated[
    Path,
    typer.Argument(
        help="Path to the .ipynb notebook to check",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
]
OriginOpt = Annotated[
    str | None,
    typer.Option(
        "--origin",
        help=(
            "Notebook server origin (e.g. http://localhost:8888). Relative image paths "
            "resolve to <origin>/files/<path>; without it they are read beside the notebook."
        ),
    ),
]
TimeoutOpt = Annotated[
    float | None,
    typer.Option(
        "--timeout",
        help="Per-image load timeout in seconds (default: $NBALTCHECK_IMAGE_TIMEOUT or 10)",
    ),
]
ThresholdOpt = Annotated[
    float,
    typer.Option(
        "--threshold",
        help="Report images whose transparency score (0-10) is below this value",
    ),
]
AltCheckOpt = Annotated[
    bool,
    typer.Option(
        "--alt-check/--no-alt-check",
        help="Report images without alternative text in Markdown cells (default: yes)",
    ),
]
VerboseOpt = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging"),
]


@dataclass
class CheckSession:
    document: NotebookDocument
    registry: IssueRegistry
    view: TerminalCellView
    controller: IndicatorController

    def render(self, console: Console) -> None:
        console.print(render_report(self.registry, self.document, self.view))


def build_session(document: NotebookDocument, options: CheckerOptions) -> CheckSession:
    view = TerminalCellView(lambda cell_id: document.cell(cell_id) is not None)
    registry = IssueRegistry(view, flash_duration=options.flash_duration)
    controller = IndicatorController(
        registry,
        view,
        ContentIssueExtractor(options=options),
        options,
        base_path=str(document.path),
    )
    return CheckSession(document=document, registry=registry, view=view, controller=controller)


def _prepare(
    notebook: Path,
    origin: str | None,
    timeout: float | None,
    threshold: float,
    alt_check: bool,
    verbose: bool,
) -> CheckSession:
    configure_logging(verbose)
    try:
        options = CheckerOptions.from_cli(
            origin=origin, timeout=timeout, threshold=threshold, alt_check=alt_check
        )
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
    log_checker_configuration(options)

    try:
        document = NotebookDocument.load(notebook)
    except NotebookLoadError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc
    return build_session(document, options)


@app.command()
def check(
    notebook: NotebookArg,
    origin: OriginOpt = None,
    timeout: TimeoutOpt = None,
    threshold: ThresholdOpt = 9.0,
    alt_check: AltCheckOpt = True,
    fail_on_issues: Annotated[
        bool,
        typer.Option(
            "--fail-on-issues/--no-fail-on-issues",
            help="Exit with status 1 when any issue is found (default: yes)",
        ),
    ] = True,
    verbose: VerboseOpt = False,
) -> None:
    """
    Check every cell of a notebook once and print the issue panel.

    Examples:

        # Images referenced relative to the notebook are read from disk
        nbaltcheck check analysis.ipynb

        # Resolve relative images through a running Jupyter server
        nbaltcheck check analysis.ipynb --origin http://localhost:8888
    """
    session = _prepare(notebook, origin, timeout, threshold, alt_check, verbose)
    asyncio.run(session.controller.rescan(session.document.cells))
    session.render(Console())

    if fail_on_issues and len(session.registry):
        raise typer.Exit(1)


@app.command()
def watch(
    notebook: NotebookArg,
    origin: OriginOpt = None,
    timeout: TimeoutOpt = None,
    threshold: ThresholdOpt = 9.0,
    alt_check: AltCheckOpt = True,
    verbose: VerboseOpt = False,
) -> None:
    """Check a notebook, then re-check changed cells whenever the file is saved."""
    session = _prepare(notebook, origin, timeout, threshold, alt_check, verbose)
    console = Console()
    watcher = NotebookWatcher(
        session.document, session.controller, on_update=lambda: session.render(console)
    )

    async def _run() -> None:
        await session.controller.rescan(session.document.cells)
        session.render(console)
        await watcher.run()

    typer.echo(f"👀 Watching {notebook} (Ctrl+C to stop)")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        typer.echo("Stopped watching.")


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"nbaltcheck version {__version__}")


def version_callback(value: bool) -> None:
    """Version callback for --version flag."""
    if value:
        typer.echo(f"nbaltcheck version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
) -> None:
    """
    nbaltcheck - accessibility checks for images in Jupyter notebooks.

    Flags cells whose images lack alternative text or are mostly transparent,
    and lists them in an issue panel with a badge on each affected cell.
    """
    pass


if __name__ == "__main__":  # pragma: no cover - executed only via `python -m`
    app()
