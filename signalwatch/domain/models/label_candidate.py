# signalwatch/domain/models/label_candidate.py
from dataclasses import dataclass


@dataclass(frozen=True)
class LabelCandidate:
    """
    A token scored against one target label.

    Confidence is clamped to [0, 1] on construction.
    """
    text: str
    label: str
    confidence: float
    source: str = ""

    def __post_init__(self):
        clamped = min(1.0, max(0.0, float(self.confidence)))
        object.__setattr__(self, "confidence", clamped)

    def __str__(self) -> str:
        return f"{self.label}:{self.text} (conf={self.confidence:.2f}, src={self.source})"
