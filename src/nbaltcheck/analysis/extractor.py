"""Extraction of image references and accessibility findings from cell content.

Two encodings are understood: HTML (``<img>`` elements, parsed with
BeautifulSoup) and Markdown image syntax ``![alt](src)``. Markdown cells are
checked with both, since Markdown may embed raw HTML; code cells are checked
through the HTML of their rendered outputs only.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass

from bs4 import BeautifulSoup

from nbaltcheck.analysis.transparency import ImageTransparencyAnalyzer
from nbaltcheck.check_logger import log_error_policy
from nbaltcheck.errors import ImageLoadError
from nbaltcheck.model.issues import AnalysisResult, IssueDescriptor
from nbaltcheck.model.options import CheckerOptions
from nbaltcheck.types import CellLike

logger = logging.getLogger(__name__)

_MARKDOWN_IMAGE_RE = re.compile(r"!\[(?P<alt>.*?)\]\((?P<src>.*?)\)")


@dataclass(frozen=True, slots=True)
class ImageRef:
    src: str
    # None when the element has no alt attribute at all
    alt: str | None
    # HTML alt="" explicitly marks an image as decorative
    decorative: bool = False

    @property
    def missing_alt(self) -> bool:
        if self.decorative:
            return False
        return self.alt is None or not self.alt.strip()


def extract_html_image_refs(html: str) -> list[ImageRef]:
    """Collect ``<img>`` elements that have a ``src``.

    An explicit ``alt=""`` marks a decorative image, which is not reported;
    only a missing attribute counts as missing alt text.
    """
    try:
        soup = BeautifulSoup(html or "", "html.parser")
    except Exception as exc:  # pragma: no cover - html.parser is lenient
        logger.debug("HTML parse failed, treating as zero images: %s", exc)
        return []

    refs: list[ImageRef] = []
    for img in soup.find_all("img"):
        src = img.get("src")
        if not isinstance(src, str) or not src.strip():
            continue
        alt = img.get("alt")
        refs.append(ImageRef(src=src.strip(), alt=alt, decorative=alt == ""))
    return refs


def _markdown_target(raw: str) -> str:
    # ![a](<path with spaces.png> "Title") -> path with spaces.png
    target = raw.strip()
    if target.startswith("<") and ">" in target:
        return target[1 : target.index(">")]
    return target.split(maxsplit=1)[0] if target else ""


def extract_markdown_image_refs(text: str) -> list[ImageRef]:
    """Collect every ``![alt](src)`` occurrence in ``text``."""
    refs: list[ImageRef] = []
    for m in _MARKDOWN_IMAGE_RE.finditer(text or ""):
        src = _markdown_target(m.group("src"))
        if src:
            refs.append(ImageRef(src=src, alt=m.group("alt")))
    return refs


class ContentIssueExtractor:
    """Turns cell content into an AnalysisResult."""

    def __init__(
        self,
        analyzer: ImageTransparencyAnalyzer | None = None,
        options: CheckerOptions | None = None,
    ) -> None:
        self.options = options or (analyzer.options if analyzer else CheckerOptions())
        self.analyzer = analyzer or ImageTransparencyAnalyzer(self.options)

    async def _analyze_refs(
        self, refs: list[ImageRef], base_path: str, check_alt: bool
    ) -> AnalysisResult:
        outcomes = await asyncio.gather(
            *(self.analyzer.analyze(ref.src, base_path) for ref in refs),
            return_exceptions=True,
        )

        issues: AnalysisResult = []
        for ref, outcome in zip(refs, outcomes, strict=True):
            if check_alt and self.options.detect_missing_alt and ref.missing_alt:
                issues.append(IssueDescriptor.missing_alt(ref.src))
            if isinstance(outcome, ImageLoadError):
                log_error_policy("Transparency", "image_load_failed", "skip", str(outcome))
            elif isinstance(outcome, Exception):
                logger.warning("Unexpected error analyzing %s: %s", ref.src, outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                issues.append(outcome)
        return issues

    async def check_html(
        self, content: str, base_path: str = "", *, check_alt: bool = True
    ) -> AnalysisResult:
        return await self._analyze_refs(extract_html_image_refs(content), base_path, check_alt)

    async def check_markdown(
        self, content: str, base_path: str = "", *, check_alt: bool = True
    ) -> AnalysisResult:
        return await self._analyze_refs(
            extract_markdown_image_refs(content), base_path, check_alt
        )

    async def check_cell(self, cell: CellLike, base_path: str = "") -> AnalysisResult:
        """Analyze one cell according to its type."""
        if cell.cell_type == "markdown":
            markdown_issues, html_issues = await asyncio.gather(
                self.check_markdown(cell.source, base_path),
                self.check_html(cell.source, base_path),
            )
            return html_issues + markdown_issues
        if cell.cell_type == "code":
            return await self.check_html(cell.rendered_output_html(), base_path, check_alt=False)
        return []


__all__ = [
    "ContentIssueExtractor",
    "ImageRef",
    "extract_html_image_refs",
    "extract_markdown_image_refs",
]
