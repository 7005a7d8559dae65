import json
import logging
import sys
from collections.abc import Callable
from io import BytesIO
from pathlib import Path
from typing import Any

import pytest
from PIL import Image  # type: ignore[import-not-found]

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from nbaltcheck.errors import ImageLoadError  # noqa: E402


@pytest.fixture
def isolate_logging():
    """Isolate logging configuration between tests.

    The CLI installs a rich handler on the root logger; without this fixture
    it would leak into later tests.
    """
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level

    logging.root.handlers.clear()
    null_handler = logging.NullHandler()
    logging.root.addHandler(null_handler)

    yield

    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)


def make_png(width: int = 4, height: int = 4, transparent: int = 0, alpha: int = 0) -> bytes:
    """Encode an RGBA PNG whose first ``transparent`` pixels have ``alpha``."""
    image = Image.new("RGBA", (width, height), (200, 30, 30, 255))
    pixels = image.load()
    for i in range(transparent):
        pixels[i % width, i // width] = (200, 30, 30, alpha)
    buf = BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def png_factory() -> Callable[..., bytes]:
    return make_png


class FakeFetch:
    """Stand-in for the network/file loader keyed by resolved source."""

    def __init__(self, images: dict[str, bytes] | None = None) -> None:
        self.images = dict(images or {})
        self.calls: list[str] = []

    def __call__(self, source: Any, timeout: float) -> bytes:
        key = str(source)
        self.calls.append(key)
        if key not in self.images:
            raise ImageLoadError(key, ConnectionError("unreachable"))
        return self.images[key]


@pytest.fixture
def fake_fetch() -> FakeFetch:
    return FakeFetch()


@pytest.fixture
def write_notebook(tmp_path: Path) -> Callable[..., Path]:
    def _write(cells: list[dict[str, Any]], name: str = "demo.ipynb") -> Path:
        path = tmp_path / name
        data = {"nbformat": 4, "nbformat_minor": 5, "metadata": {}, "cells": cells}
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
