"""File-backed notebook host model.

Reads nbformat 4 ``.ipynb`` JSON into cells the checker understands, renders
code-cell outputs to HTML the same way a notebook front end displays them,
and turns a re-read of the file into added/changed/removed cell events.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from nbaltcheck.errors import NotebookLoadError
from nbaltcheck.ids import compute_cell_id
from nbaltcheck.types import CellEventListener

logger = logging.getLogger(__name__)

# Raster output types rendered as <img>; SVG is not a raster format
IMAGE_MIME_TYPES = ("image/png", "image/jpeg", "image/gif")


def _join_text(value: Any) -> str:
    if isinstance(value, list):
        return "".join(str(part) for part in value)
    if value is None:
        return ""
    return str(value)


def render_outputs_html(outputs: list[dict[str, Any]]) -> str:
    """Render rich display outputs to an HTML fragment.

    Only ``display_data`` and ``execute_result`` outputs carry display data;
    stream and error outputs contain no images and are ignored.
    """
    parts: list[str] = []
    for output in outputs:
        if output.get("output_type") not in ("display_data", "execute_result"):
            continue
        data = output.get("data") or {}
        if "text/html" in data:
            parts.append(_join_text(data["text/html"]))
            continue
        for mime in IMAGE_MIME_TYPES:
            if mime in data:
                payload = "".join(_join_text(data[mime]).split())
                parts.append(f'<img src="data:{mime};base64,{payload}">')
                break
    return "".join(f'<div class="output">{part}</div>' for part in parts)


@dataclass(slots=True)
class NotebookCell:
    cell_id: str
    cell_type: str
    source: str
    outputs: list[dict[str, Any]] = field(default_factory=list)

    def rendered_output_html(self) -> str:
        if self.cell_type != "code":
            return ""
        return render_outputs_html(self.outputs)


@dataclass(slots=True)
class CellChanges:
    added: list[NotebookCell] = field(default_factory=list)
    changed: list[NotebookCell] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.added or self.changed or self.removed)


def parse_notebook(data: Any, path: Path) -> list[NotebookCell]:
    if not isinstance(data, dict) or not isinstance(data.get("cells"), list):
        major = data.get("nbformat") if isinstance(data, dict) else None
        reason = f"unsupported nbformat {major}" if major else "no cell list"
        raise NotebookLoadError(path, ValueError(reason))

    cells: list[NotebookCell] = []
    seen: set[str] = set()
    for index, raw in enumerate(data["cells"]):
        if not isinstance(raw, dict):
            raise NotebookLoadError(path, ValueError(f"cell {index} is not an object"))
        cell_id = raw.get("id")
        if not isinstance(cell_id, str) or not cell_id or cell_id in seen:
            cell_id = compute_cell_id(str(path), index)
        seen.add(cell_id)
        outputs = raw.get("outputs")
        cells.append(
            NotebookCell(
                cell_id=cell_id,
                cell_type=str(raw.get("cell_type", "raw")),
                source=_join_text(raw.get("source")),
                outputs=outputs if isinstance(outputs, list) else [],
            )
        )
    return cells


def read_notebook(path: Path) -> list[NotebookCell]:
    """Read the cells of a notebook file.

    Raises:
        NotebookLoadError: If the file is unreadable or not notebook JSON
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise NotebookLoadError(path, exc) from exc
    return parse_notebook(data, path)


def diff_cells(old: list[NotebookCell], new: list[NotebookCell]) -> CellChanges:
    previous = {cell.cell_id: cell for cell in old}
    current_ids = {cell.cell_id for cell in new}
    changes = CellChanges()
    for cell in new:
        before = previous.get(cell.cell_id)
        if before is None:
            changes.added.append(cell)
        elif before != cell:
            changes.changed.append(cell)
    changes.removed = [cell.cell_id for cell in old if cell.cell_id not in current_ids]
    return changes


class NotebookDocument:
    """A notebook on disk that notifies listeners about cell changes."""

    def __init__(self, path: Path, cells: list[NotebookCell] | None = None) -> None:
        self.path = path
        self.cells: list[NotebookCell] = list(cells or [])
        self._listeners: list[CellEventListener] = []

    @classmethod
    def load(cls, path: Path) -> NotebookDocument:
        return cls(path, read_notebook(path))

    def cell(self, cell_id: str) -> NotebookCell | None:
        for cell in self.cells:
            if cell.cell_id == cell_id:
                return cell
        return None

    def subscribe(self, listener: CellEventListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def update(self, cells: list[NotebookCell]) -> CellChanges:
        """Replace the cells and notify listeners of the differences."""
        changes = diff_cells(self.cells, cells)
        self.cells = list(cells)
        for listener in list(self._listeners):
            for cell_id in changes.removed:
                listener.on_cell_removed(cell_id)
            for cell in changes.added:
                listener.on_cell_added(cell)
            for cell in changes.changed:
                listener.on_content_changed(cell)
        if changes:
            logger.debug(
                "Notebook %s: %d added, %d changed, %d removed",
                self.path,
                len(changes.added),
                len(changes.changed),
                len(changes.removed),
            )
        return changes

    def reload(self) -> CellChanges:
        return self.update(read_notebook(self.path))
