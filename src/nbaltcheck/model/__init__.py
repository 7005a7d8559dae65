from __future__ import annotations

from .issues import HIGH_TRANSPARENCY_MESSAGE as HIGH_TRANSPARENCY_MESSAGE
from .issues import MISSING_ALT_MESSAGE as MISSING_ALT_MESSAGE
from .issues import NEUTRAL_SCORE as NEUTRAL_SCORE
from .issues import AnalysisResult as AnalysisResult
from .issues import IssueDescriptor as IssueDescriptor
from .issues import IssueKind as IssueKind
from .options import CheckerOptions as CheckerOptions

__all__ = [
    "HIGH_TRANSPARENCY_MESSAGE",
    "MISSING_ALT_MESSAGE",
    "NEUTRAL_SCORE",
    "AnalysisResult",
    "CheckerOptions",
    "IssueDescriptor",
    "IssueKind",
]
