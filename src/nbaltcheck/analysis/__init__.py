from __future__ import annotations

__all__ = [
    "ContentIssueExtractor",
    "ImageRef",
    "ImageTransparencyAnalyzer",
    "compute_transparency_score",
    "extract_html_image_refs",
    "extract_markdown_image_refs",
    "fetch_image_bytes",
    "resolve_image_source",
]

from .extractor import ContentIssueExtractor as ContentIssueExtractor
from .extractor import ImageRef as ImageRef
from .extractor import extract_html_image_refs as extract_html_image_refs
from .extractor import extract_markdown_image_refs as extract_markdown_image_refs
from .transparency import ImageTransparencyAnalyzer as ImageTransparencyAnalyzer
from .transparency import compute_transparency_score as compute_transparency_score
from .transparency import fetch_image_bytes as fetch_image_bytes
from .transparency import resolve_image_source as resolve_image_source
