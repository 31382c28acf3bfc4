# signalwatch/domain/services/i_match_handler.py
from abc import ABC, abstractmethod

from signalwatch.domain.models.extract_rule import ExtractMatch


class IMatchHandler(ABC):
    """Delivery trigger for rule matches, decoupled from the rule engine."""

    @abstractmethod
    def handle_match(self, match: ExtractMatch) -> None:
        """
        Hand a match off for delivery. Must not block on the delivery itself.

        Args:
            match: Match produced by the rule engine that passed the cooldown
        """
        pass
