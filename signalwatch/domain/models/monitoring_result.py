#signalwatch/domain/models/monitoring_result.py
"""
Per-tick outcome of the monitoring loop.

Each tick produces exactly one TickResult whose status tells the loop how to
continue, so no exception is needed to signal "nothing recognised".
"""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from signalwatch.domain.common.errors import DomainError
from signalwatch.domain.models.extract_rule import ExtractMatch
from signalwatch.domain.models.label_candidate import LabelCandidate


class MonitoringState(Enum):
    IDLE = "Idle"
    RUNNING = "Running"
    STOPPED = "Stopped"
    FAULTED = "Faulted"


class TickStatus(Enum):
    MATCHED = "Matched"
    NOT_FOUND = "NotFound"
    LOW_CONFIDENCE = "LowConfidence"
    NO_FRAME = "NoFrame"
    ERROR = "Error"


@dataclass
class TickResult:
    """
    Model representing the result of a single monitoring tick.

    Attributes:
        status: Which branch of the decision tree the tick ended in
        source: "template" or "ocr" when recognition produced something
        candidate: Best label candidate of the tick (OCR path)
        matches: Rule matches produced this tick
        dispatched: Matches actually handed to the match handler (after cooldown)
        raw_texts: Raw recognised texts, for diagnostics
        error: Stage error when status is ERROR
        timestamp: When the tick finished
    """
    status: TickStatus
    source: Optional[str] = None
    candidate: Optional[LabelCandidate] = None
    matches: List[ExtractMatch] = field(default_factory=list)
    dispatched: List[ExtractMatch] = field(default_factory=list)
    raw_texts: List[str] = field(default_factory=list)
    error: Optional[DomainError] = None
    timestamp: float = field(default_factory=time.time)

    @property
    def has_matches(self) -> bool:
        return len(self.matches) > 0
