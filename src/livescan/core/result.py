"""
Classification result data structures.
"""

from dataclasses import dataclass, field
from typing import Any

NOTHING_RECOGNIZED = "Nothing recognized."
CLASSIFYING = "Classifying..."
LABEL_HEADER = "Classification:"
DISPLAYED_LABELS = 2


@dataclass(frozen=True)
class Classification:
    """A single class label with its confidence (0.0 to 1.0)."""

    identifier: str
    confidence: float

    def describe(self) -> str:
        return f"({self.confidence:.2f}): {self.identifier}"


@dataclass
class ClassificationResult:
    """
    Output of one classifier invocation.

    Attributes:
        classifications: Labels sorted by descending confidence
        processing_time_ms: Time taken for inference in milliseconds
        source: "live" for camera frames, "static" for picked photos
    """

    classifications: list[Classification] = field(default_factory=list)
    processing_time_ms: float = 0.0
    source: str = "live"

    @property
    def top(self) -> Classification | None:
        """Highest-confidence classification, if any."""
        return self.classifications[0] if self.classifications else None

    @property
    def is_empty(self) -> bool:
        return not self.classifications

    def label_text(self, limit: int = DISPLAYED_LABELS) -> str:
        """Text shown in the classification label."""
        return format_classifications(self.classifications, limit)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "classifications": [
                {"identifier": c.identifier, "confidence": round(c.confidence, 4)}
                for c in self.classifications
            ],
            "label": self.label_text(),
            "processing_time_ms": round(self.processing_time_ms, 2),
            "source": self.source,
        }


def format_classifications(
    classifications: list[Classification], limit: int = DISPLAYED_LABELS
) -> str:
    """
    Render classifications the way both scanner screens display them.

    Empty input gives "Nothing recognized."; otherwise a header line followed
    by the top `limit` entries as "(0.87): label".
    """
    if not classifications:
        return NOTHING_RECOGNIZED
    descriptions = [c.describe() for c in classifications[:limit]]
    return LABEL_HEADER + "\n" + "\n".join(descriptions)
