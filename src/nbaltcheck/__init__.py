"""Accessibility checks for images embedded in Jupyter notebooks."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = [
    "CheckerOptions",
    "ContentIssueExtractor",
    "ImageTransparencyAnalyzer",
    "IndicatorController",
    "IssueDescriptor",
    "IssueKind",
    "IssueRegistry",
    "NotebookDocument",
    "__version__",
]

from .analysis.extractor import ContentIssueExtractor as ContentIssueExtractor
from .analysis.transparency import ImageTransparencyAnalyzer as ImageTransparencyAnalyzer
from .controller import IndicatorController as IndicatorController
from .model.issues import IssueDescriptor as IssueDescriptor
from .model.issues import IssueKind as IssueKind
from .model.options import CheckerOptions as CheckerOptions
from .notebook import NotebookDocument as NotebookDocument
from .registry import IssueRegistry as IssueRegistry
