"""Rich rendering of the issue panel and per-cell badges."""

from __future__ import annotations

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from nbaltcheck.notebook import NotebookDocument
from nbaltcheck.registry import IssueRegistry
from nbaltcheck.ui.view import BADGE_STYLE, TerminalCellView


def _first_line(source: str, width: int = 48) -> str:
    line = next((ln.strip() for ln in source.splitlines() if ln.strip()), "")
    return line if len(line) <= width else line[: width - 1] + "…"


def render_issue_panel(registry: IssueRegistry, document: NotebookDocument | None = None) -> Panel:
    """Render the registry rows in discovery order."""
    if not len(registry):
        body: Table | Text = Text("No accessibility issues found.", style="green")
    else:
        positions = (
            {cell.cell_id: index for index, cell in enumerate(document.cells, start=1)}
            if document is not None
            else {}
        )
        table = Table(show_header=True, header_style="bold", expand=True)
        table.add_column("Cell", no_wrap=True)
        table.add_column("Issue")
        for row in registry.rows:
            position = positions.get(row.cell_id)
            label = f"#{position} ({row.cell_id})" if position else row.cell_id
            table.add_row(label, row.message)
        body = table
    return Panel(body, title=registry.title, border_style="blue")


def render_cell_overview(document: NotebookDocument, view: TerminalCellView) -> Table:
    """One line per cell with its badge and any active highlight."""
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("badge", width=2)
    table.add_column("index", justify="right")
    table.add_column("type")
    table.add_column("preview")
    for index, cell in enumerate(document.cells, start=1):
        badge = Text("●", style=BADGE_STYLE) if view.has_badge(cell.cell_id) else Text(" ")
        style = view.get_style(cell.cell_id) or ""
        table.add_row(
            badge,
            str(index),
            cell.cell_type,
            Text(_first_line(cell.source), style=style),
        )
    return table


def render_report(
    registry: IssueRegistry, document: NotebookDocument, view: TerminalCellView
) -> Group:
    return Group(render_cell_overview(document, view), render_issue_panel(registry, document))
