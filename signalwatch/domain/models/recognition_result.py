# signalwatch/domain/models/recognition_result.py
"""
Recognition result models.

A RecognitionResult is produced fresh for every engine call and never mutated.
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from signalwatch.domain.models.region_model import Region


class SegmentationMode(Enum):
    """Text segmentation strategies understood by the recognition engine."""
    SINGLE_LINE = "single_line"
    SINGLE_WORD = "single_word"
    AUTO = "auto"
    SINGLE_BLOCK = "single_block"


# Order in which the orchestrator tries the strategies
DEFAULT_SEGMENTATION_ORDER: Tuple[SegmentationMode, ...] = (
    SegmentationMode.SINGLE_LINE,
    SegmentationMode.SINGLE_WORD,
    SegmentationMode.AUTO,
    SegmentationMode.SINGLE_BLOCK,
)


@dataclass(frozen=True)
class OcrWord:
    """A single recognised word with its bounding box (x, y, width, height)."""
    text: str
    confidence: float
    bounding_box: Tuple[int, int, int, int] = (0, 0, 0, 0)


@dataclass(frozen=True)
class RecognitionResult:
    """
    Raw output of one recognition attempt.

    Attributes:
        text: Full recognised text, stripped
        words: Per-word boxes and confidences when the engine provides them
        mode: Segmentation strategy used for this attempt
        timestamp: Wall-clock time the result was produced
        region: Source region, when known
    """
    text: str
    words: Tuple[OcrWord, ...] = ()
    mode: Optional[SegmentationMode] = None
    timestamp: float = field(default_factory=time.time)
    region: Optional[Region] = None

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()

    @property
    def mean_confidence(self) -> float:
        """Mean word confidence in [0, 100], or 0.0 with no words."""
        if not self.words:
            return 0.0
        return sum(w.confidence for w in self.words) / len(self.words)
