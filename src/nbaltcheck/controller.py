"""Indicator controller: the single authority on which cells are flagged.

Every analysis pass recomputes a cell's state from scratch: its registry rows
are removed first, then one row is added per current issue, and the badge is
shown exactly when rows remain. Each pass is stamped with a monotonically
increasing version; a pass that completes after a newer one started for the
same cell is discarded, so a slow image can never overwrite fresher results.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Iterable

from nbaltcheck.analysis.extractor import ContentIssueExtractor
from nbaltcheck.check_logger import log_cell_decision
from nbaltcheck.model.issues import AnalysisResult, IssueDescriptor
from nbaltcheck.model.options import CheckerOptions
from nbaltcheck.registry import IssueRegistry
from nbaltcheck.types import CellEventSource, CellLike, CellView

logger = logging.getLogger(__name__)


class IndicatorController:
    """Commits analysis results to the issue registry and cell badges."""

    def __init__(
        self,
        registry: IssueRegistry,
        view: CellView | None = None,
        extractor: ContentIssueExtractor | None = None,
        options: CheckerOptions | None = None,
        *,
        base_path: str = "",
        enabled: bool = True,
    ) -> None:
        self.registry = registry
        self.view = view if view is not None else registry.view
        self.options = options or (extractor.options if extractor else CheckerOptions())
        self.extractor = extractor or ContentIssueExtractor(options=self.options)
        self.base_path = base_path
        self._enabled = enabled
        self._counter = itertools.count(1)
        self._versions: dict[str, int] = {}
        self._tasks: set[asyncio.Task[AnalysisResult]] = set()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, value: bool) -> None:
        """Switch checking on or off.

        Switching off clears every known cell immediately and invalidates
        analyses still in flight.
        """
        if value == self._enabled:
            return
        self._enabled = value
        logger.info("Accessibility checks %s.", "enabled" if value else "disabled")
        if not value:
            for cell_id in set(self._versions) | set(self.registry.cell_ids):
                self._stamp(cell_id)
                self.apply_indicator(cell_id, [])

    def toggle(self) -> bool:
        self.set_enabled(not self._enabled)
        return self._enabled

    async def toggle_and_rescan(self, cells: Iterable[CellLike]) -> bool:
        """Flip the enabled flag, then re-check every given cell."""
        enabled = self.toggle()
        await self.rescan(cells)
        return enabled

    def _stamp(self, cell_id: str) -> int:
        version = next(self._counter)
        self._versions[cell_id] = version
        return version

    def is_current(self, cell_id: str, version: int) -> bool:
        return self._versions.get(cell_id) == version

    def apply_indicator(self, cell_id: str, issues: Iterable[IssueDescriptor]) -> int:
        """Replace the rows and badge of ``cell_id`` with ``issues``.

        Returns:
            Number of registry rows the cell has afterwards
        """
        self.registry.remove_entries(cell_id)
        threshold = self.options.transparency_threshold
        for issue in issues:
            if issue.is_issue(threshold):
                self.registry.add_entry(cell_id, issue.message())

        count = len(self.registry.entries(cell_id))
        if self.view is not None:
            if count:
                self.view.show_badge(cell_id)
            else:
                self.view.hide_badge(cell_id)
        log_cell_decision(cell_id, "flagged" if count else "clean", count)
        return count

    async def analyze_cell(self, cell: CellLike) -> AnalysisResult:
        """Analyze one cell and commit the result unless it went stale."""
        cell_id = cell.cell_id
        version = self._stamp(cell_id)
        if not self._enabled:
            self.apply_indicator(cell_id, [])
            return []

        issues = await self.extractor.check_cell(cell, self.base_path)
        if not self.is_current(cell_id, version):
            log_cell_decision(cell_id, "stale")
            return issues
        self.apply_indicator(cell_id, issues)
        return issues

    async def rescan(self, cells: Iterable[CellLike]) -> None:
        await asyncio.gather(*(self.analyze_cell(cell) for cell in cells))

    def _schedule(self, cell: CellLike) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self.analyze_cell(cell))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[AnalysisResult]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Cell analysis failed: %s", exc, exc_info=exc)

    async def wait_idle(self) -> None:
        """Wait until every analysis scheduled by events has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # Event interface; must be called from the event loop thread

    def on_content_changed(self, cell: CellLike) -> None:
        self._schedule(cell)

    def on_cell_added(self, cell: CellLike) -> None:
        self._schedule(cell)

    def on_cell_removed(self, cell_id: str) -> None:
        self._versions.pop(cell_id, None)
        self.registry.remove_entries(cell_id)
        if self.view is not None:
            self.view.hide_badge(cell_id)

    def attach(self, source: CellEventSource) -> Callable[[], None]:
        """Subscribe to a host's cell events; returns a detach function."""
        return source.subscribe(self)
