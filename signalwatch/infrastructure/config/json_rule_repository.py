#signalwatch/infrastructure/config/json_rule_repository.py
"""
JSON-backed rule repository.

The rule file is an array of objects
``{"id", "name", "pattern", "type": "Regex"|"Keyword", "enabled", "order"}``.
"""
import json
import os
import threading
from typing import List

from signalwatch.domain.common.errors import ConfigurationError
from signalwatch.domain.common.result import Result
from signalwatch.domain.models.extract_rule import ExtractRule, default_rules
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.domain.services.i_rule_repository_service import IRuleRepository


def sort_rules(rules: List[ExtractRule]) -> List[ExtractRule]:
    """Stable sort by order; ties keep their stored position."""
    return sorted(rules, key=lambda r: r.order)


class JsonRuleRepository(IRuleRepository):
    """Loads and saves extraction rules from a JSON file."""

    def __init__(self, rules_file: str, logger: ILoggerService):
        self.rules_file = rules_file
        self.logger = logger
        self._lock = threading.RLock()

    def load_rules(self) -> List[ExtractRule]:
        with self._lock:
            if not os.path.exists(self.rules_file):
                self.logger.info("Rule file not found, using default rules", path=self.rules_file)
                return default_rules()

            try:
                with open(self.rules_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, ValueError) as e:
                self.logger.error(f"Error reading rule file: {e}", path=self.rules_file)
                return default_rules()

            if not isinstance(data, list):
                self.logger.warning("Rule file does not contain a list, using default rules", path=self.rules_file)
                return default_rules()

            rules = []
            for index, item in enumerate(data):
                if not isinstance(item, dict):
                    self.logger.warning("Skipping malformed rule entry", index=index)
                    continue
                try:
                    rules.append(ExtractRule.from_dict(item))
                except (TypeError, ValueError) as e:
                    self.logger.warning(f"Skipping invalid rule entry: {e}", index=index)

            if not rules:
                self.logger.info("Rule file is empty, using default rules", path=self.rules_file)
                return default_rules()

            self.logger.debug(f"Loaded {len(rules)} rules", path=self.rules_file)
            return sort_rules(rules)

    def save_rules(self, rules: List[ExtractRule]) -> Result[bool]:
        with self._lock:
            try:
                rules_dir = os.path.dirname(self.rules_file)
                if rules_dir:
                    os.makedirs(rules_dir, exist_ok=True)

                temp_path = f"{self.rules_file}.tmp"
                with open(temp_path, "w", encoding="utf-8") as f:
                    json.dump([r.to_dict() for r in sort_rules(rules)], f, indent=2)
                os.replace(temp_path, self.rules_file)

                self.logger.info(f"Saved {len(rules)} rules", path=self.rules_file)
                return Result.ok(True)
            except (OSError, TypeError, ValueError) as e:
                error = ConfigurationError(f"Failed to save rules: {e}",
                                           details={"path": self.rules_file}, inner_error=e)
                self.logger.error(str(error))
                return Result.fail(error)
