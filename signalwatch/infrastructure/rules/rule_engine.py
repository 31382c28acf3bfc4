#signalwatch/infrastructure/rules/rule_engine.py
"""
Rule engine.

Matches recognized text against user-defined keyword and regex rules.
Keyword rules try an exact substring, then an in-order word sequence, then a
bounded fuzzy window. Regex rules run case-insensitively. Matches are
reported as substrings of the original text wherever the span can be mapped
back through normalization.
"""
import re
import unicodedata
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Pattern, Tuple

from rapidfuzz.distance import Levenshtein

from signalwatch.domain.common.errors import InvalidRulePatternError
from signalwatch.domain.models.extract_rule import ExtractMatch, ExtractRule, RuleKind
from signalwatch.domain.services.i_logger_service import ILoggerService

MAX_FUZZY_TEXT_LENGTH = 2000


@dataclass(frozen=True)
class NormalizedText:
    """
    Comparison form of a text plus, for every character, the index of the
    original character it came from.
    """
    text: str
    index_map: Tuple[int, ...]
    original: str

    def original_span(self, start: int, end: int) -> Optional[str]:
        """Original substring behind the normalized span [start, end), stripped."""
        if start < 0 or end > len(self.text) or start >= end:
            return None
        first = self.index_map[start]
        last = self.index_map[end - 1]
        span = self.original[first:last + 1].strip()
        return span or None


def normalize_for_comparison(text: str) -> NormalizedText:
    """NFKC, upper-case and collapse whitespace runs to one space; trims the ends."""
    chars: List[str] = []
    index_map: List[int] = []
    pending_space: Optional[int] = None

    for index, ch in enumerate(text or ""):
        for piece in unicodedata.normalize("NFKC", ch).upper():
            if piece.isspace():
                if chars and pending_space is None:
                    pending_space = index
                continue
            if pending_space is not None:
                chars.append(" ")
                index_map.append(pending_space)
                pending_space = None
            chars.append(piece)
            index_map.append(index)

    return NormalizedText(text="".join(chars), index_map=tuple(index_map), original=text or "")


def normalize_pattern(pattern: str) -> str:
    return normalize_for_comparison(pattern).text


class RuleEngine:
    """Extracts structured matches from text with an ordered set of rules."""

    def __init__(self, logger: ILoggerService, fuzzy_threshold: int = 1):
        self.logger = logger
        self.fuzzy_threshold = max(0, int(fuzzy_threshold))
        self._regex_cache: Dict[str, Optional[Pattern]] = {}

    def extract(self, text: str, rules: Iterable[ExtractRule]) -> List[ExtractMatch]:
        """
        Run every enabled rule, in ascending order, against the text.

        A rule with an invalid pattern is logged and skipped; it never aborts
        the batch. Each rule contributes at most one ExtractMatch.

        Args:
            text: Recognized text
            rules: Rules in any order; sorted stably by ``order`` here

        Returns:
            Matches in rule order
        """
        results: List[ExtractMatch] = []
        if not text or not text.strip():
            return results

        normalized = normalize_for_comparison(text)
        active = sorted((r for r in rules if r.enabled), key=lambda r: r.order)

        for rule in active:
            if rule.kind == RuleKind.KEYWORD:
                matches = self._match_keyword(normalized, rule)
            else:
                matches = self._match_regex(normalized, rule)

            if matches:
                self.logger.debug("Rule matched", rule=rule.name, kind=rule.kind.value, matches=matches)
                results.append(ExtractMatch(rule_id=rule.id, rule_name=rule.name, matches=matches))

        return results

    def _match_keyword(self, normalized: NormalizedText, rule: ExtractRule) -> List[str]:
        pattern = normalize_pattern(rule.pattern)
        if not pattern:
            return []
        text = normalized.text

        index = text.find(pattern)
        if index >= 0:
            return [normalized.original_span(index, index + len(pattern)) or pattern]

        words = pattern.split(" ")
        if len(words) > 1 and self._words_in_order(text, words):
            return [rule.pattern.strip()]

        window = self._best_fuzzy_window(text, pattern)
        if window is not None:
            start, end, distance = window
            self.logger.debug("Keyword fuzzy match", rule=rule.name, distance=distance)
            return [normalized.original_span(start, end) or pattern]

        return []

    @staticmethod
    def _words_in_order(text: str, words: List[str]) -> bool:
        position = 0
        for word in words:
            found = text.find(word, position)
            if found < 0:
                return False
            position = found + len(word)
        return True

    def _best_fuzzy_window(self, text: str, pattern: str) -> Optional[Tuple[int, int, int]]:
        """
        Slide windows of length len(pattern) +/- threshold across the text.

        Returns:
            (start, end, distance) of the best window within the threshold, or None
        """
        if self.fuzzy_threshold <= 0 or not text:
            return None

        text = text[:MAX_FUZZY_TEXT_LENGTH]
        p_len = len(pattern)
        best: Optional[Tuple[int, int, int]] = None

        lengths = range(max(1, p_len - self.fuzzy_threshold), p_len + self.fuzzy_threshold + 1)
        for length in lengths:
            if length > len(text):
                break
            for start in range(0, len(text) - length + 1):
                distance = Levenshtein.distance(text[start:start + length], pattern)
                if best is None or distance < best[2]:
                    best = (start, start + length, distance)

        if best is None and len(text) < p_len:
            best = (0, len(text), Levenshtein.distance(text, pattern))

        if best is not None and best[2] <= self.fuzzy_threshold:
            return best
        return None

    def _match_regex(self, normalized: NormalizedText, rule: ExtractRule) -> List[str]:
        compiled = self._compile(rule)
        if compiled is None:
            return []

        matches = []
        for match in compiled.finditer(normalized.text):
            if match.end() <= match.start():
                continue
            matches.append(normalized.original_span(match.start(), match.end()) or match.group(0).strip())
        return [m for m in matches if m]

    def _compile(self, rule: ExtractRule) -> Optional[Pattern]:
        if rule.pattern in self._regex_cache:
            return self._regex_cache[rule.pattern]
        try:
            compiled = re.compile(rule.pattern, re.IGNORECASE)
        except re.error as e:
            error = InvalidRulePatternError(f"Invalid regex for rule '{rule.name}': {e}",
                                            details={"rule_id": rule.id, "pattern": rule.pattern},
                                            inner_error=e)
            self.logger.warning(str(error))
            self._regex_cache[rule.pattern] = None
            return None
        self._regex_cache[rule.pattern] = compiled
        return compiled
