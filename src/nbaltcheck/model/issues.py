"""Issue descriptors produced by image analysis."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

MISSING_ALT_MESSAGE = "Cell Error: Missing Alt Tag"
HIGH_TRANSPARENCY_MESSAGE = "Cell Error: High Image Transparency"

# Neutral score used when no pixel data can be inspected
NEUTRAL_SCORE = 10.0


class IssueKind(Enum):
    """Kinds of findings an image reference can produce."""

    MISSING_ALT_TEXT = "missing-alt-text"
    TRANSPARENCY = "transparency"


@dataclass(frozen=True, slots=True)
class IssueDescriptor:
    """A classified finding for one image reference.

    Transparency descriptors always carry a score in the 0..10 range, lower
    meaning more transparent pixels. Whether the score is an actual issue
    depends on the configured threshold, see :meth:`is_issue`.
    """

    kind: IssueKind
    src: str = ""
    score: float | None = None

    @classmethod
    def missing_alt(cls, src: str = "") -> IssueDescriptor:
        return cls(kind=IssueKind.MISSING_ALT_TEXT, src=src)

    @classmethod
    def transparency(cls, score: float, src: str = "") -> IssueDescriptor:
        return cls(kind=IssueKind.TRANSPARENCY, src=src, score=float(score))

    @property
    def label(self) -> str:
        """Short textual form, e.g. ``"10 transp"`` or ``"Alt"``."""
        if self.kind is IssueKind.MISSING_ALT_TEXT:
            return "Alt"
        return f"{self.score:g} transp"

    def is_issue(self, threshold: float) -> bool:
        if self.kind is IssueKind.MISSING_ALT_TEXT:
            return True
        return self.score is not None and self.score < threshold

    def message(self) -> str:
        if self.kind is IssueKind.MISSING_ALT_TEXT:
            return MISSING_ALT_MESSAGE
        return HIGH_TRANSPARENCY_MESSAGE


# One cell's findings at one point in time; empty means no issues
AnalysisResult = list[IssueDescriptor]


__all__ = [
    "HIGH_TRANSPARENCY_MESSAGE",
    "MISSING_ALT_MESSAGE",
    "NEUTRAL_SCORE",
    "AnalysisResult",
    "IssueDescriptor",
    "IssueKind",
]
