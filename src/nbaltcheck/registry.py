"""Side-panel registry of cells that currently have accessibility issues."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass

from nbaltcheck.types import CellView

logger = logging.getLogger(__name__)

PANEL_TITLE = "Cells with Accessibility Issues"
HIGHLIGHT_STYLE = "on #ffff99"
DEFAULT_FLASH_DURATION = 0.8

Scheduler = Callable[..., object]


def call_later(delay: float, callback: Callable[..., object], *args: object) -> None:
    """Run ``callback(*args)`` after ``delay`` seconds on the running event loop.

    Raises:
        RuntimeError: If called outside the event loop thread
    """
    asyncio.get_running_loop().call_later(delay, callback, *args)


@dataclass(frozen=True, slots=True)
class IssueRow:
    cell_id: str
    message: str


class IssueRegistry:
    """Mapping of cell id to the set of issue rows shown for it.

    Rows are unique per (cell id, message) and kept in discovery order.
    """

    title = PANEL_TITLE

    def __init__(
        self,
        view: CellView | None = None,
        *,
        flash_duration: float = DEFAULT_FLASH_DURATION,
        scheduler: Scheduler = call_later,
    ) -> None:
        self.view = view
        self.flash_duration = flash_duration
        self._schedule = scheduler
        # Per-cell rows keyed by message; dicts keep insertion order
        self._cells: dict[str, dict[str, IssueRow]] = {}
        self._rows: dict[tuple[str, str], IssueRow] = {}
        self._listeners: list[Callable[[], None]] = []
        self._flashing: dict[str, str | None] = {}

    def add_entry(self, cell_id: str, message: str) -> None:
        """Add a row for ``cell_id``; re-adding the same message is a no-op."""
        entries = self._cells.setdefault(cell_id, {})
        if message in entries:
            return
        row = IssueRow(cell_id=cell_id, message=message)
        entries[message] = row
        self._rows[(cell_id, message)] = row
        self._notify()

    def remove_entries(self, cell_id: str) -> None:
        """Delete every row for ``cell_id``; no-op when it has none."""
        entries = self._cells.pop(cell_id, None)
        if not entries:
            return
        for message in entries:
            self._rows.pop((cell_id, message), None)
        self._notify()

    def navigate_to(self, cell_id: str) -> bool:
        """Scroll to a cell and flash a highlight on it.

        Returns False without doing anything if the cell is not in the view.
        With the default scheduler this must be called from the event loop
        thread; the highlight is restored on that loop.
        """
        view = self.view
        if view is None or not view.has_cell(cell_id):
            logger.debug("Cell %s not in current view; ignoring navigation", cell_id)
            return False

        view.scroll_into_view(cell_id)
        original = self._flashing.get(cell_id, view.get_style(cell_id))
        # The style only changes once its restore is scheduled
        self._schedule(self.flash_duration, self._restore_style, cell_id)
        self._flashing[cell_id] = original
        view.set_style(cell_id, HIGHLIGHT_STYLE)
        return True

    def _restore_style(self, cell_id: str) -> None:
        if cell_id not in self._flashing:
            return
        original = self._flashing.pop(cell_id)
        if self.view is not None and self.view.has_cell(cell_id):
            self.view.set_style(cell_id, original)

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Call ``callback`` after every change; returns an unsubscribe function."""
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback()

    @property
    def rows(self) -> list[IssueRow]:
        return list(self._rows.values())

    @property
    def cell_ids(self) -> list[str]:
        return list(self._cells)

    def entries(self, cell_id: str) -> list[IssueRow]:
        return list(self._cells.get(cell_id, {}).values())

    def has_entries(self, cell_id: str) -> bool:
        return bool(self._cells.get(cell_id))

    def __contains__(self, cell_id: object) -> bool:
        return cell_id in self._cells

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[IssueRow]:
        return iter(self.rows)
