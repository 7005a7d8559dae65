"""Image loading and transparency scoring.

An image reference is either an absolute URL (fetched as-is), a ``data:`` URI,
or a path relative to the notebook server, resolved as
``<origin>/files/<path>``. The score is ``10 - transparent_percentage / 10``
where a pixel counts as transparent when its alpha is below 255, so an opaque
image scores 10 and a fully transparent one scores 0.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from io import BytesIO
from pathlib import Path
from urllib.parse import unquote_to_bytes, urlparse

import requests
from PIL import Image, UnidentifiedImageError  # type: ignore[import-not-found]

from nbaltcheck.check_logger import log_error_policy
from nbaltcheck.errors import DecodeContextUnavailable, ImageLoadError
from nbaltcheck.model.issues import NEUTRAL_SCORE, IssueDescriptor
from nbaltcheck.model.options import CheckerOptions

logger = logging.getLogger(__name__)

ImageSource = str | Path
FetchFunction = Callable[[ImageSource, float], bytes]

# Image loads running at once per analyzer
MAX_CONCURRENT_LOADS = 8


def is_absolute_url(image_ref: str) -> bool:
    parsed = urlparse(image_ref)
    if parsed.scheme in ("data", "file"):
        return True
    return bool(parsed.scheme) and bool(parsed.netloc)


def resolve_image_source(
    image_ref: str, origin: str | None, base_dir: Path | None = None
) -> ImageSource:
    """Resolve an image reference to a URL or a local file path.

    - Absolute URLs and data: URIs are returned unchanged
    - file:// URIs become local paths
    - Relative references become <origin>/files/<ref> when an origin is set,
      otherwise a path relative to ``base_dir``
    """

    ref = image_ref.strip()
    if is_absolute_url(ref):
        parsed = urlparse(ref)
        if parsed.scheme == "file":
            return Path(parsed.path)
        return ref

    if origin:
        return f"{origin.rstrip('/')}/files/{ref.lstrip('/')}"

    path = Path(ref)
    if not path.is_absolute() and base_dir is not None:
        path = base_dir / path
    return path


def _decode_data_uri(uri: str) -> bytes:
    header, sep, payload = uri.partition(",")
    if not sep:
        raise ValueError("data URI has no payload")
    if header.endswith(";base64"):
        return base64.b64decode(payload, validate=False)
    return unquote_to_bytes(payload)


def fetch_image_bytes(source: ImageSource, timeout: float) -> bytes:
    """Load raw image bytes from a URL, data URI, or local path.

    Raises:
        ImageLoadError: On network errors, HTTP error statuses, or unreadable files
    """
    if isinstance(source, Path):
        try:
            return source.read_bytes()
        except OSError as exc:
            raise ImageLoadError(str(source), exc) from exc

    if source.startswith("data:"):
        try:
            return _decode_data_uri(source)
        except (ValueError, binascii.Error) as exc:
            raise ImageLoadError(source, exc) from exc

    try:
        response = requests.get(source, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise ImageLoadError(source, exc) from exc
    return response.content


def compute_transparency_score(data: bytes, source: str = "<bytes>") -> float:
    """Compute the 0..10 transparency score of encoded image bytes.

    Raises:
        ImageLoadError: If the bytes are not a decodable raster image
        DecodeContextUnavailable: If no pixel buffer can be obtained
    """
    try:
        image = Image.open(BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageLoadError(source, exc) from exc

    width, height = image.size
    total_pixels = width * height
    if total_pixels == 0:
        raise DecodeContextUnavailable(source)

    try:
        alpha = image.convert("RGBA").getchannel("A")
    except (OSError, ValueError) as exc:
        raise DecodeContextUnavailable(source, exc) from exc

    # 256-bin histogram of alpha values; bin 255 holds fully opaque pixels
    histogram = alpha.histogram()
    transparent_pixels = total_pixels - histogram[255]
    transparency_percentage = transparent_pixels / total_pixels * 100
    return 10 - transparency_percentage / 10


class ImageTransparencyAnalyzer:
    """Loads images and scores their transparency off the event loop."""

    def __init__(
        self,
        options: CheckerOptions | None = None,
        fetch: FetchFunction = fetch_image_bytes,
        max_workers: int = MAX_CONCURRENT_LOADS,
    ) -> None:
        self.options = options or CheckerOptions()
        self._fetch = fetch
        self._max_workers = max_workers
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="nbaltcheck-image"
        )
        self._slots: asyncio.Semaphore | None = None
        self._slots_loop: asyncio.AbstractEventLoop | None = None

    def _get_slots(self, loop: asyncio.AbstractEventLoop) -> asyncio.Semaphore:
        if self._slots is None or self._slots_loop is not loop:
            self._slots = asyncio.Semaphore(self._max_workers)
            self._slots_loop = loop
        return self._slots

    async def _run_load(self, source: ImageSource) -> float:
        """Run one load in a free worker, timing it from when the worker starts.

        A slot is held until the worker thread returns, even after a timeout,
        so a queued load never starts its clock behind a busy worker.
        """
        loop = asyncio.get_running_loop()
        slots = self._get_slots(loop)
        await slots.acquire()
        future = loop.run_in_executor(self._executor, self._load_and_score, source)

        def _release(done: asyncio.Future[float]) -> None:
            slots.release()
            if not done.cancelled():
                done.exception()

        future.add_done_callback(_release)
        return await asyncio.wait_for(asyncio.shield(future), timeout=self.options.image_timeout)

    def _load_and_score(self, source: ImageSource) -> float:
        data = self._fetch(source, self.options.image_timeout)
        return compute_transparency_score(data, str(source))

    async def analyze(self, image_ref: str, base_path: str = "") -> IssueDescriptor:
        """Score one image reference.

        Args:
            image_ref: URL, data URI, or relative path as written in the cell
            base_path: Path of the notebook the reference appears in

        Returns:
            A transparency descriptor; neutral (10) when no pixels are available

        Raises:
            ImageLoadError: If the image cannot be loaded or times out
        """
        base_dir = Path(base_path).parent if base_path else None
        source = resolve_image_source(image_ref, self.options.origin, base_dir)
        logger.debug("Analyzing image %s", source)

        try:
            score = await self._run_load(source)
        except asyncio.TimeoutError as exc:
            raise ImageLoadError(
                str(source), TimeoutError(f"timed out after {self.options.image_timeout}s")
            ) from exc
        except DecodeContextUnavailable as exc:
            log_error_policy("Transparency", "decode_context_unavailable", "neutral", str(exc))
            score = NEUTRAL_SCORE

        return IssueDescriptor.transparency(score, src=image_ref)


__all__ = [
    "MAX_CONCURRENT_LOADS",
    "FetchFunction",
    "ImageSource",
    "ImageTransparencyAnalyzer",
    "compute_transparency_score",
    "fetch_image_bytes",
    "is_absolute_url",
    "resolve_image_source",
]
