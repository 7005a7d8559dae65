from __future__ import annotations

from collections.abc import Callable
from typing import Literal, Protocol

CellType = Literal["markdown", "code", "raw"]


class CellLike(Protocol):
    """Minimal protocol for a notebook cell as seen by the checker."""

    @property
    def cell_id(self) -> str:  # pragma: no cover - typing
        ...

    @property
    def cell_type(self) -> str:  # pragma: no cover - typing
        ...

    @property
    def source(self) -> str:  # pragma: no cover - typing
        ...

    def rendered_output_html(self) -> str:  # pragma: no cover - typing
        ...


class CellView(Protocol):
    """Host surface that shows badges and can scroll to and restyle cells."""

    def has_cell(self, cell_id: str) -> bool:  # pragma: no cover - typing
        ...

    def show_badge(self, cell_id: str) -> None:  # pragma: no cover - typing
        ...

    def hide_badge(self, cell_id: str) -> None:  # pragma: no cover - typing
        ...

    def scroll_into_view(self, cell_id: str) -> None:  # pragma: no cover - typing
        ...

    def get_style(self, cell_id: str) -> str | None:  # pragma: no cover - typing
        ...

    def set_style(self, cell_id: str, style: str | None) -> None:  # pragma: no cover - typing
        ...


class CellEventListener(Protocol):
    def on_content_changed(self, cell: CellLike) -> None:  # pragma: no cover - typing
        ...

    def on_cell_added(self, cell: CellLike) -> None:  # pragma: no cover - typing
        ...

    def on_cell_removed(self, cell_id: str) -> None:  # pragma: no cover - typing
        ...


class CellEventSource(Protocol):
    """Host document that notifies listeners about cell lifecycle events."""

    def subscribe(
        self, listener: CellEventListener
    ) -> Callable[[], None]:  # pragma: no cover - typing
        ...
