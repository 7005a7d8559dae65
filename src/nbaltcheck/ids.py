from __future__ import annotations

import hashlib


def compute_cell_id(notebook_path: str, cell_index: int) -> str:
    """Compute a deterministic 16-hex id for a cell that has none.

    _id = sha1(<notebook-path>|cell-<index>)[:16]
    Only used for notebooks older than nbformat 4.5, which carry no cell ids.
    """

    seed = f"{notebook_path}|cell-{cell_index:04d}"
    digest = hashlib.sha1(seed.encode("utf-8")).hexdigest()
    return digest[:16]
