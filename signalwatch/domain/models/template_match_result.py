# signalwatch/domain/models/template_match_result.py
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TemplateMatchResult:
    """
    Outcome of one template matcher call.

    A timed-out or cancelled call is reported as not found, with
    ``timed_out`` set, rather than as an error.
    """
    found: bool
    label: Optional[str]
    best_score: float
    tried_count: int
    elapsed_seconds: float
    template_name: Optional[str] = None
    timed_out: bool = False

    @classmethod
    def not_found(cls, elapsed_seconds: float = 0.0, tried_count: int = 0,
                  timed_out: bool = False) -> 'TemplateMatchResult':
        return cls(found=False, label=None, best_score=0.0, tried_count=tried_count,
                   elapsed_seconds=elapsed_seconds, timed_out=timed_out)
