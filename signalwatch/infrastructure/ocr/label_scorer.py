#signalwatch/infrastructure/ocr/label_scorer.py
"""
Label normalizer and fuzzy scorer.

Raw recognition text is cleaned, split into tokens, expanded into
confusable variants and every variant is scored against every target label.
"""
from typing import Dict, Iterable, List, Optional, Sequence

from rapidfuzz.distance import Levenshtein

from signalwatch.domain.models.label_candidate import LabelCandidate
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.infrastructure.ocr.text_utils import (
    alphanumeric_count, clean_recognized_text, confusable_variants, tokenize
)

# Earlier labels win exact ties
DEFAULT_LABELS = ("SELL", "BUY")


def score_token(token: str, label: str) -> float:
    """
    Combined lexical and edit-distance score in [0, 1].

    ``0.5 * min(1, (alnum*100 + len*10) / 500) + 0.5 * (1 - dist / max_len)``.
    An exact match always scores 1.0.
    """
    if not token or not label:
        return 0.0
    if token == label:
        return 1.0

    lexical = min(1.0, (alphanumeric_count(token) * 100 + len(token) * 10) / 500.0)
    max_len = max(len(token), len(label))
    similarity = 1.0 - Levenshtein.distance(token, label) / max_len
    return min(1.0, max(0.0, 0.5 * lexical + 0.5 * similarity))


class LabelScorer:
    """Scores recognized texts against a fixed set of target labels."""

    def __init__(self, logger: ILoggerService, labels: Iterable[str] = DEFAULT_LABELS):
        self.logger = logger
        self.labels = [label.strip().upper() for label in labels if label and label.strip()]

    def score(self, raw_texts: Sequence[str], sources: Optional[Sequence[str]] = None) -> List[LabelCandidate]:
        """
        Score every token variant of every text against every label.

        Args:
            raw_texts: Raw recognition texts
            sources: Optional source tag per text ("binary", "gray", ...)

        Returns:
            All candidates, highest confidence first (stable for ties)
        """
        candidates: List[LabelCandidate] = []

        for index, raw in enumerate(raw_texts):
            source = sources[index] if sources and index < len(sources) else f"text{index}"
            cleaned = clean_recognized_text(raw)
            for token in tokenize(cleaned):
                for variant in confusable_variants(token):
                    for label in self.labels:
                        candidates.append(LabelCandidate(text=variant, label=label,
                                                         confidence=score_token(variant, label),
                                                         source=source))

        candidates.sort(key=lambda c: c.confidence, reverse=True)
        if candidates:
            self.logger.debug("Scored label candidates", count=len(candidates), best=str(candidates[0]))
        return candidates

    @staticmethod
    def best_per_label(candidates: Iterable[LabelCandidate]) -> Dict[str, LabelCandidate]:
        """Highest-confidence candidate for each label; earlier candidates win ties."""
        best: Dict[str, LabelCandidate] = {}
        for candidate in candidates:
            current = best.get(candidate.label)
            if current is None or candidate.confidence > current.confidence:
                best[candidate.label] = candidate
        return best

    def choose(self, candidates: Sequence[LabelCandidate]) -> Optional[LabelCandidate]:
        """The single best candidate across labels; label order breaks ties."""
        best = self.best_per_label(candidates)
        chosen: Optional[LabelCandidate] = None
        for label in self.labels:
            candidate = best.get(label)
            if candidate is not None and (chosen is None or candidate.confidence > chosen.confidence):
                chosen = candidate
        return chosen
