# signalwatch/domain/models/extract_rule.py
"""
Extraction rule and match models.

Rules are owned by the user and persisted outside the pipeline; the rule
engine only reads an ordered, enabled-filtered view of them.
"""
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class RuleKind(Enum):
    KEYWORD = "Keyword"
    REGEX = "Regex"

    @classmethod
    def parse(cls, value: Any) -> 'RuleKind':
        """Accept "Keyword"/"Regex" in any case, or the legacy integer form (0=Regex, 1=Keyword)."""
        if isinstance(value, RuleKind):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls.REGEX if value == 0 else cls.KEYWORD
        text = str(value or "").strip().lower()
        for kind in cls:
            if kind.value.lower() == text:
                return kind
        raise ValueError(f"Unknown rule type: {value!r}")


@dataclass
class ExtractRule:
    """A user-defined keyword or regular-expression rule."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    pattern: str = ""
    kind: RuleKind = RuleKind.REGEX
    enabled: bool = True
    order: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExtractRule':
        """Build a rule from its JSON form; keys are matched case-insensitively."""
        lowered = {str(k).lower(): v for k, v in data.items()}
        return cls(
            id=str(lowered.get("id") or uuid.uuid4()),
            name=str(lowered.get("name") or ""),
            pattern=str(lowered.get("pattern") or ""),
            kind=RuleKind.parse(lowered.get("type", RuleKind.REGEX.value)),
            enabled=bool(lowered.get("enabled", True)),
            order=int(lowered.get("order", 0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "pattern": self.pattern,
            "type": self.kind.value,
            "enabled": self.enabled,
            "order": self.order,
        }


def default_rules() -> List[ExtractRule]:
    """Built-in rules used when no rule file exists."""
    return [
        ExtractRule(id="r1", name="Sell", pattern="SELL", kind=RuleKind.KEYWORD, enabled=True, order=0),
        ExtractRule(id="r2", name="Buy", pattern="BUY", kind=RuleKind.KEYWORD, enabled=True, order=1),
    ]


@dataclass
class ExtractMatch:
    """Substrings matched by one rule, in the order they were found."""
    rule_id: str
    rule_name: str
    matches: List[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        """Cooldown key: rule id, else rule name."""
        return self.rule_id or self.rule_name
