"""Tests for image resolution, loading and transparency scoring."""

from __future__ import annotations

import asyncio
import base64
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import requests

from nbaltcheck.analysis import transparency
from nbaltcheck.analysis.transparency import (
    ImageTransparencyAnalyzer,
    compute_transparency_score,
    fetch_image_bytes,
    is_absolute_url,
    resolve_image_source,
)
from nbaltcheck.errors import DecodeContextUnavailable, ImageLoadError
from nbaltcheck.model.issues import IssueKind
from nbaltcheck.model.options import CheckerOptions


class TestResolveImageSource:
    def test_absolute_url_is_unchanged(self) -> None:
        url = "http://example.com/img.png"
        assert resolve_image_source(url, "http://localhost:8888") == url

    def test_data_uri_is_unchanged(self) -> None:
        uri = "data:image/png;base64,AAAA"
        assert is_absolute_url(uri)
        assert resolve_image_source(uri, None) == uri

    def test_relative_path_uses_files_endpoint(self) -> None:
        resolved = resolve_image_source("plots/fig.png", "http://localhost:8888")
        assert resolved == "http://localhost:8888/files/plots/fig.png"

    def test_slashes_are_normalized(self) -> None:
        resolved = resolve_image_source("/plots/fig.png", "http://localhost:8888/")
        assert resolved == "http://localhost:8888/files/plots/fig.png"

    def test_relative_path_without_origin_is_local(self, tmp_path: Path) -> None:
        assert resolve_image_source("plots/fig.png", None, tmp_path) == tmp_path / "plots/fig.png"

    def test_file_uri_becomes_path(self) -> None:
        assert resolve_image_source("file:///tmp/a.png", None) == Path("/tmp/a.png")

    def test_not_absolute(self) -> None:
        assert not is_absolute_url("plots/fig.png")
        assert not is_absolute_url("C:\\images\\fig.png")


class TestComputeTransparencyScore:
    def test_opaque_image_scores_ten(self, png_factory: Callable[..., bytes]) -> None:
        score = compute_transparency_score(png_factory(4, 4, transparent=0))
        assert score == 10
        assert f"{score:g} transp" == "10 transp"

    def test_fully_transparent_scores_zero(self, png_factory: Callable[..., bytes]) -> None:
        score = compute_transparency_score(png_factory(4, 4, transparent=16))
        assert score == 0
        assert f"{score:g} transp" == "0 transp"

    def test_half_transparent_scores_five(self, png_factory: Callable[..., bytes]) -> None:
        assert compute_transparency_score(png_factory(4, 4, transparent=8)) == pytest.approx(5.0)

    def test_partial_alpha_counts_as_transparent(self, png_factory: Callable[..., bytes]) -> None:
        data = png_factory(10, 1, transparent=1, alpha=254)
        assert compute_transparency_score(data) == pytest.approx(9.0)

    def test_image_without_alpha_is_opaque(self) -> None:
        from io import BytesIO

        from PIL import Image  # type: ignore[import-not-found]

        buf = BytesIO()
        Image.new("RGB", (3, 3), (0, 0, 0)).save(buf, format="JPEG")
        assert compute_transparency_score(buf.getvalue()) == 10

    def test_garbage_bytes_fail_to_load(self) -> None:
        with pytest.raises(ImageLoadError, match="Failed to load image"):
            compute_transparency_score(b"not an image", "bad.png")


class TestFetchImageBytes:
    def test_reads_local_file(self, tmp_path: Path) -> None:
        path = tmp_path / "a.bin"
        path.write_bytes(b"abc")
        assert fetch_image_bytes(path, 1.0) == b"abc"

    def test_missing_local_file(self, tmp_path: Path) -> None:
        with pytest.raises(ImageLoadError) as exc_info:
            fetch_image_bytes(tmp_path / "missing.png", 1.0)
        assert isinstance(exc_info.value.cause, OSError)

    def test_base64_data_uri(self) -> None:
        payload = base64.b64encode(b"\x89PNG-ish").decode()
        assert fetch_image_bytes(f"data:image/png;base64,{payload}", 1.0) == b"\x89PNG-ish"

    def test_percent_encoded_data_uri(self) -> None:
        assert fetch_image_bytes("data:text/plain,a%20b", 1.0) == b"a b"

    def test_data_uri_without_payload(self) -> None:
        with pytest.raises(ImageLoadError):
            fetch_image_bytes("data:image/png;base64", 1.0)

    def test_http_uses_timeout(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[tuple[str, float]] = []

        class _Response:
            content = b"payload"

            def raise_for_status(self) -> None:
                return None

        def _get(url: str, timeout: float) -> _Response:
            calls.append((url, timeout))
            return _Response()

        monkeypatch.setattr(transparency.requests, "get", _get)
        assert fetch_image_bytes("http://example.com/a.png", 2.0) == b"payload"
        assert calls == [("http://example.com/a.png", 2.0)]

    def test_http_error_becomes_load_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _get(url: str, timeout: float) -> Any:
            raise requests.ConnectionError("connection refused")

        monkeypatch.setattr(transparency.requests, "get", _get)
        with pytest.raises(ImageLoadError, match="connection refused"):
            fetch_image_bytes("http://example.com/a.png", 2.0)


class TestImageTransparencyAnalyzer:
    def test_analyze_resolves_and_scores(
        self, fake_fetch: Any, png_factory: Callable[..., bytes]
    ) -> None:
        url = "http://localhost:8888/files/plots/fig.png"
        fake_fetch.images[url] = png_factory(4, 4, transparent=8)
        analyzer = ImageTransparencyAnalyzer(
            CheckerOptions(origin="http://localhost:8888"), fetch=fake_fetch
        )

        issue = asyncio.run(analyzer.analyze("plots/fig.png", "notebooks/demo.ipynb"))

        assert fake_fetch.calls == [url]
        assert issue.kind is IssueKind.TRANSPARENCY
        assert issue.score == pytest.approx(5.0)
        assert issue.src == "plots/fig.png"
        assert issue.label == "5 transp"

    def test_analyze_local_relative_to_notebook(
        self, tmp_path: Path, png_factory: Callable[..., bytes]
    ) -> None:
        (tmp_path / "img").mkdir()
        (tmp_path / "img" / "clear.png").write_bytes(png_factory(2, 2, transparent=4))
        analyzer = ImageTransparencyAnalyzer(CheckerOptions())

        issue = asyncio.run(analyzer.analyze("img/clear.png", str(tmp_path / "nb.ipynb")))

        assert issue.score == 0

    def test_load_failure_propagates(self, fake_fetch: Any) -> None:
        analyzer = ImageTransparencyAnalyzer(
            CheckerOptions(origin="http://localhost:8888"), fetch=fake_fetch
        )
        with pytest.raises(ImageLoadError):
            asyncio.run(analyzer.analyze("missing.png"))

    def test_decode_context_unavailable_is_neutral(
        self, monkeypatch: pytest.MonkeyPatch, fake_fetch: Any, isolate_logging: None
    ) -> None:
        fake_fetch.images["http://example.com/a.png"] = b"whatever"

        def _unavailable(data: bytes, source: str = "") -> float:
            raise DecodeContextUnavailable(source)

        monkeypatch.setattr(transparency, "compute_transparency_score", _unavailable)
        analyzer = ImageTransparencyAnalyzer(fetch=fake_fetch)

        issue = asyncio.run(analyzer.analyze("http://example.com/a.png"))

        assert issue.score == 10
        assert issue.label == "10 transp"

    def test_slow_image_times_out(self) -> None:
        def _slow(source: Any, timeout: float) -> bytes:
            time.sleep(0.3)
            return b""

        analyzer = ImageTransparencyAnalyzer(CheckerOptions(image_timeout=0.05), fetch=_slow)
        with pytest.raises(ImageLoadError, match="timed out"):
            asyncio.run(analyzer.analyze("http://slow.example.com/a.png"))

    def test_queued_loads_do_not_time_out_while_waiting(
        self, png_factory: Callable[..., bytes]
    ) -> None:
        data = png_factory()

        def _steady(source: Any, timeout: float) -> bytes:
            time.sleep(0.1)
            return data

        analyzer = ImageTransparencyAnalyzer(
            CheckerOptions(image_timeout=0.25), fetch=_steady, max_workers=1
        )

        async def scenario() -> list[float | None]:
            issues = await asyncio.gather(
                *(analyzer.analyze(f"http://example.com/{n}.png") for n in range(4))
            )
            return [issue.score for issue in issues]

        assert asyncio.run(scenario()) == [10, 10, 10, 10]
