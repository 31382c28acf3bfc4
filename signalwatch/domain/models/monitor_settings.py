# signalwatch/domain/models/monitor_settings.py
"""
Typed view over the persisted application settings.

The JSON configuration is a plain dictionary; MonitorSettings converts it to
typed values, falling back to defaults for anything missing or malformed.
"""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional, Tuple

from signalwatch.domain.models.region_model import Region

DEFAULT_TEMPLATE_SCALES: Tuple[float, ...] = (0.9, 0.95, 1.0, 1.05, 1.1)


@dataclass
class MonitorSettings:
    """Tunables of a monitoring session."""
    region: Optional[Region] = None
    preset: str = "readable"
    template_dir: str = "templates"
    template_accept_threshold: float = 0.80
    template_timeout_seconds: float = 2.0
    template_scales: Tuple[float, ...] = DEFAULT_TEMPLATE_SCALES
    notify_threshold: float = 0.75
    log_only_threshold: float = 0.55
    fuzzy_threshold: int = 1
    cooldown_seconds: float = 5.0
    tick_interval_seconds: float = 0.2
    error_backoff_seconds: float = 0.5
    max_backoff_seconds: float = 5.0
    duplicate_window_seconds: float = 10.0
    retry_delay_seconds: float = 1.0
    min_delivery_interval_seconds: float = 0.3
    shutdown_timeout_seconds: float = 2.0
    target_labels: List[str] = field(default_factory=lambda: ["SELL", "BUY"])
    right_crop_fallback: bool = True
    tesseract_lang: str = "eng"
    webhook_key: str = "signalwatch"

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], logger=None) -> 'MonitorSettings':
        """
        Build settings from a configuration dictionary.

        Args:
            data: Configuration dictionary (may be None or partial)
            logger: Optional logger for warnings about invalid values

        Returns:
            MonitorSettings with invalid entries replaced by defaults
        """
        settings = cls()
        data = data or {}

        def warn(key, value):
            if logger:
                logger.warning(f"Invalid value for setting '{key}', using default", value=repr(value))

        region = data.get("region")
        if region:
            try:
                settings.region = Region.from_tuple(tuple(region))
            except (TypeError, ValueError):
                warn("region", region)

        for key in ("preset", "template_dir", "tesseract_lang", "webhook_key"):
            if key in data:
                value = data[key]
                if isinstance(value, str) and value.strip():
                    setattr(settings, key, value.strip())
                else:
                    warn(key, value)

        float_keys = (
            "template_accept_threshold", "template_timeout_seconds", "notify_threshold",
            "log_only_threshold", "cooldown_seconds", "tick_interval_seconds",
            "error_backoff_seconds", "max_backoff_seconds", "duplicate_window_seconds",
            "retry_delay_seconds", "min_delivery_interval_seconds", "shutdown_timeout_seconds",
        )
        for key in float_keys:
            if key in data:
                try:
                    value = float(data[key])
                    if value < 0:
                        raise ValueError(key)
                    setattr(settings, key, value)
                except (TypeError, ValueError):
                    warn(key, data[key])

        for key in ("template_accept_threshold", "notify_threshold", "log_only_threshold"):
            setattr(settings, key, min(1.0, max(0.0, getattr(settings, key))))

        if "fuzzy_threshold" in data:
            try:
                settings.fuzzy_threshold = max(0, int(data["fuzzy_threshold"]))
            except (TypeError, ValueError):
                warn("fuzzy_threshold", data["fuzzy_threshold"])

        if "template_scales" in data:
            try:
                scales = tuple(float(s) for s in data["template_scales"] if float(s) > 0)
                if not scales:
                    raise ValueError("empty")
                settings.template_scales = scales
            except (TypeError, ValueError):
                warn("template_scales", data["template_scales"])

        if "target_labels" in data:
            labels = data["target_labels"]
            if isinstance(labels, list) and labels and all(isinstance(l, str) and l.strip() for l in labels):
                settings.target_labels = [l.strip().upper() for l in labels]
            else:
                warn("target_labels", labels)

        if "right_crop_fallback" in data:
            settings.right_crop_fallback = bool(data["right_crop_fallback"])

        return settings

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["region"] = list(self.region.as_tuple()) if self.region else None
        data["template_scales"] = list(self.template_scales)
        return data
