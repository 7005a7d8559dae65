"""Terminal implementation of the cell view used by the CLI."""

from __future__ import annotations

from collections.abc import Callable

BADGE_STYLE = "bold #ff8080"


class TerminalCellView:
    """Tracks badges, styles, and the focused cell for terminal rendering.

    ``cell_exists`` tells whether a cell is still part of the open notebook.
    """

    def __init__(self, cell_exists: Callable[[str], bool]) -> None:
        self._cell_exists = cell_exists
        self.badges: set[str] = set()
        self.styles: dict[str, str | None] = {}
        self.focused: str | None = None

    def has_cell(self, cell_id: str) -> bool:
        return self._cell_exists(cell_id)

    def show_badge(self, cell_id: str) -> None:
        self.badges.add(cell_id)

    def hide_badge(self, cell_id: str) -> None:
        self.badges.discard(cell_id)

    def has_badge(self, cell_id: str) -> bool:
        return cell_id in self.badges

    def scroll_into_view(self, cell_id: str) -> None:
        self.focused = cell_id

    def get_style(self, cell_id: str) -> str | None:
        return self.styles.get(cell_id)

    def set_style(self, cell_id: str, style: str | None) -> None:
        if style is None:
            self.styles.pop(cell_id, None)
        else:
            self.styles[cell_id] = style
