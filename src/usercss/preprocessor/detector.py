"""Preprocessor detection: explicit ``/* @preprocessor x */`` marker or syntax heuristics."""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = [
    "PREPROCESSOR_TYPES",
    "HEURISTIC_INDICATORS",
    "HEURISTIC_CONFIDENCE_CAP",
    "LESS_TIE_MARGIN",
    "PreprocessorDetection",
    "detect_preprocessor",
    "from_directive",
    "display_name",
]

PREPROCESSOR_TYPES = ("none", "less", "stylus")

_MARKER_RE = re.compile(r"^/\*\s*@preprocessor\s+([A-Za-z]+)\s*\*/")

# (pattern, engine, weight).  Each indicator counts once, however often it occurs.
HEURISTIC_INDICATORS: tuple[tuple[re.Pattern[str], str, int], ...] = (
    (re.compile(re.escape("@import")), "less", 1),
    (re.compile(re.escape("@extend")), "less", 1),
    (re.compile(re.escape("@mixin")), "less", 1),
    (re.compile(re.escape(".(")), "less", 1),  # mixin call
    (re.compile(re.escape("when ")), "less", 1),  # guard
    (re.compile(re.escape(")")), "less", 1),
    (re.compile(re.escape("&")), "stylus", 1),  # parent reference
    (re.compile(re.escape("//")), "stylus", 1),  # line comment
    (re.compile(re.escape("->")), "stylus", 1),
    (re.compile(re.escape("colors.")), "stylus", 1),  # hash property access
    (re.compile(re.escape("unless ")), "stylus", 1),
    (re.compile(re.escape("if ")), "stylus", 1),
)

HEURISTIC_CONFIDENCE_CAP = 0.8

# Less still wins when Stylus leads by at most this much.
LESS_TIE_MARGIN = 1


@dataclass(frozen=True)
class PreprocessorDetection:
    type: str  # "none", "less", "stylus"
    source: str | None  # "metadata", "heuristic" or None
    confidence: float


def from_directive(name: str) -> PreprocessorDetection:
    """Detection for an explicit preprocessor name (marker comment or header directive).

    An unrecognized name is an explicit "none" with half confidence, unlike
    an absent marker.
    """
    normalized = name.strip().lower()
    if normalized in ("less", "stylus"):
        return PreprocessorDetection(type=normalized, source="metadata", confidence=1.0)
    return PreprocessorDetection(type="none", source="metadata", confidence=0.5)


def score(text: str) -> dict[str, int]:
    """Heuristic score per engine for *text*."""
    scores = {"less": 0, "stylus": 0}
    for pattern, engine, weight in HEURISTIC_INDICATORS:
        if pattern.search(text):
            scores[engine] += weight
    return scores


def _confidence(points: int) -> float:
    return min(points / 4, HEURISTIC_CONFIDENCE_CAP)


def detect_preprocessor(text: str) -> PreprocessorDetection:
    """Classify *text* as plain CSS, Less or Stylus.

    A leading ``/* @preprocessor <name> */`` marker is authoritative.
    Otherwise indicator tokens are scored; Less wins ties and near-ties.
    """
    trimmed = text.strip()
    marker = _MARKER_RE.match(trimmed)
    if marker:
        return from_directive(marker.group(1))

    scores = score(trimmed)
    less, stylus = scores["less"], scores["stylus"]
    if less >= 1 and (less >= stylus or stylus - less <= LESS_TIE_MARGIN):
        return PreprocessorDetection(type="less", source="heuristic", confidence=_confidence(less))
    if stylus > less and stylus > 0:
        return PreprocessorDetection(
            type="stylus", source="heuristic", confidence=_confidence(stylus)
        )
    return PreprocessorDetection(type="none", source=None, confidence=0.0)


def display_name(preprocessor: str) -> str:
    return {"less": "Less", "stylus": "Stylus", "none": "None"}.get(preprocessor, "Unknown")
