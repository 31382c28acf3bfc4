# signalwatch/domain/services/i_rule_repository_service.py
"""
Rule repository interface.

Rules are user-owned configuration persisted outside the pipeline.
"""
from abc import ABC, abstractmethod
from typing import List

from signalwatch.domain.common.result import Result
from signalwatch.domain.models.extract_rule import ExtractRule


class IRuleRepository(ABC):
    """Interface for loading and saving extraction rules."""

    @abstractmethod
    def load_rules(self) -> List[ExtractRule]:
        """
        Load all rules sorted by their order.

        Falls back to the built-in default rules when nothing usable is stored,
        so this never fails.

        Returns:
            Rules in ascending order, ties kept in stored order
        """
        pass

    @abstractmethod
    def save_rules(self, rules: List[ExtractRule]) -> Result[bool]:
        """
        Persist rules, sorted by order.

        Args:
            rules: Rules to store

        Returns:
            Result indicating success or failure
        """
        pass
