#signalwatch/infrastructure/ocr/template_matcher.py
"""
Template matching fast path.

Known label glyphs are matched against the preprocessed region with
normalized cross-correlation over a small range of scales. A confident hit
bypasses text recognition for the tick.
"""
import os
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import cv2
import numpy as np

from signalwatch.domain.models.monitor_settings import DEFAULT_TEMPLATE_SCALES
from signalwatch.domain.models.template_match_result import TemplateMatchResult
from signalwatch.domain.services.i_background_task_service import CancellationToken, LinkedCancellationToken
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.infrastructure.ocr.preprocessor import to_grayscale

TEMPLATE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp")
MAX_TEMPLATE_WIDTH = 1000
MAX_TEMPLATE_HEIGHT = 300
BLANK_MEAN_LOW = 5.0
BLANK_MEAN_HIGH = 250.0


def normalize_template_label(label: str) -> Optional[str]:
    """Map a template directory name onto the label vocabulary (DOWN -> SELL, UP -> BUY)."""
    if not label:
        return None
    name = label.strip().upper()
    if "DOWN" in name or "SELL" in name:
        return "SELL"
    if "UP" in name or "BUY" in name:
        return "BUY"
    return name


@dataclass(frozen=True)
class TemplateEntry:
    label: str
    file_name: str
    image: np.ndarray


class TemplateLibrary:
    """
    Read-only mapping of label -> grayscale glyph templates.

    Loaded once from a directory holding one subdirectory per label.
    """

    def __init__(self, templates: Optional[Dict[str, List[TemplateEntry]]] = None):
        self._templates: Dict[str, List[TemplateEntry]] = dict(templates or {})

    @property
    def labels(self) -> List[str]:
        return list(self._templates.keys())

    @property
    def is_empty(self) -> bool:
        return not any(self._templates.values())

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._templates.values())

    def entries(self) -> List[TemplateEntry]:
        """All templates, grouped by label in load order."""
        return [entry for entries in self._templates.values() for entry in entries]

    @classmethod
    def from_directory(cls, root_dir: str, logger: ILoggerService) -> 'TemplateLibrary':
        """
        Load templates from ``root_dir/<LABEL>/*.{png,jpg,jpeg,bmp}``.

        A missing directory yields an empty library. Unreadable or constant
        images are skipped with a warning; oversized ones are downscaled.
        """
        templates: Dict[str, List[TemplateEntry]] = {}

        if not root_dir or not os.path.isdir(root_dir):
            logger.warning("Template directory not found, template matching disabled", path=root_dir)
            return cls(templates)

        for label_dir in sorted(os.listdir(root_dir)):
            label_path = os.path.join(root_dir, label_dir)
            if not os.path.isdir(label_path):
                continue
            label = label_dir.strip().upper()

            for file_name in sorted(os.listdir(label_path)):
                if not file_name.lower().endswith(TEMPLATE_EXTENSIONS):
                    continue
                path = os.path.join(label_path, file_name)
                image = cls._load_image(path, logger)
                if image is None:
                    continue
                templates.setdefault(label, []).append(TemplateEntry(label=label, file_name=file_name, image=image))

        library = cls(templates)
        logger.info(f"Loaded {len(library)} templates", labels=",".join(library.labels) or "-")
        return library

    @staticmethod
    def _load_image(path: str, logger: ILoggerService) -> Optional[np.ndarray]:
        try:
            # np.fromfile + imdecode handles non-ASCII paths
            data = np.fromfile(path, dtype=np.uint8)
            image = cv2.imdecode(data, cv2.IMREAD_UNCHANGED)
        except (OSError, cv2.error) as e:
            logger.warning(f"Failed to read template: {e}", path=path)
            return None

        if image is None or image.size == 0:
            logger.warning("Failed to decode template", path=path)
            return None

        gray = to_grayscale(image)

        h, w = gray.shape[:2]
        if w > MAX_TEMPLATE_WIDTH or h > MAX_TEMPLATE_HEIGHT:
            factor = min(MAX_TEMPLATE_WIDTH / w, MAX_TEMPLATE_HEIGHT / h)
            gray = cv2.resize(gray, (max(1, int(w * factor)), max(1, int(h * factor))),
                              interpolation=cv2.INTER_AREA)

        if int(gray.max()) == int(gray.min()):
            logger.warning("Skipping constant template", path=path)
            return None

        return gray


class TemplateMatcher:
    """
    Multi-scale normalized cross-correlation against a TemplateLibrary.
    """

    def __init__(self,
                 library: TemplateLibrary,
                 logger: ILoggerService,
                 accept_threshold: float = 0.80,
                 scales: Sequence[float] = DEFAULT_TEMPLATE_SCALES,
                 clock=time.monotonic):
        self.library = library
        self.logger = logger
        self.accept_threshold = accept_threshold
        self.scales = tuple(scales)
        self._clock = clock

    def check(self, image: np.ndarray,
              cancellation_token: Optional[CancellationToken] = None,
              timeout: Optional[float] = 2.0) -> TemplateMatchResult:
        """
        Match every template at every scale and report the global best.

        Stops early once a candidate reaches the accept threshold. The
        deadline and cancellation are checked between candidates; when either
        fires the call reports not-found with ``timed_out`` set.

        Args:
            image: Preprocessed single-channel (or BGR) image
            cancellation_token: Outer cancellation of the calling task
            timeout: Wall-clock budget in seconds, None for unbounded

        Returns:
            TemplateMatchResult; found iff best_score >= accept_threshold
        """
        started = self._clock()
        token = LinkedCancellationToken(cancellation_token, timeout, clock=self._clock)

        def elapsed() -> float:
            return self._clock() - started

        if self.library.is_empty or image is None or image.size == 0:
            return TemplateMatchResult.not_found(elapsed())

        roi = to_grayscale(image)
        mean = float(roi.mean())
        if mean < BLANK_MEAN_LOW or mean > BLANK_MEAN_HIGH:
            self.logger.debug("Template check skipped for blank frame", mean=f"{mean:.1f}")
            return TemplateMatchResult.not_found(elapsed())

        roi_h, roi_w = roi.shape[:2]
        tried = 0
        best_score = 0.0
        best_entry: Optional[TemplateEntry] = None

        for entry in self.library.entries():
            for scale in self.scales:
                if token.is_cancelled:
                    self.logger.debug("Template check stopped by deadline or cancellation",
                                      tried=tried, elapsed=f"{elapsed():.3f}s")
                    return TemplateMatchResult.not_found(elapsed(), tried, timed_out=True)

                t_h, t_w = entry.image.shape[:2]
                new_w = int(round(t_w * scale))
                new_h = int(round(t_h * scale))
                if new_w <= 0 or new_h <= 0 or new_w > roi_w or new_h > roi_h:
                    continue

                if (new_w, new_h) == (t_w, t_h):
                    candidate = entry.image
                else:
                    candidate = cv2.resize(entry.image, (new_w, new_h), interpolation=cv2.INTER_LANCZOS4)
                if int(candidate.max()) == int(candidate.min()):
                    continue

                scores = cv2.matchTemplate(roi, candidate, cv2.TM_CCOEFF_NORMED)
                _, max_val, _, _ = cv2.minMaxLoc(scores)
                tried += 1

                if not np.isfinite(max_val):
                    continue
                if best_entry is None or max_val > best_score:
                    best_score = float(max_val)
                    best_entry = entry

                if max_val >= self.accept_threshold:
                    label = normalize_template_label(entry.label)
                    self.logger.debug("Template matched", label=label, score=f"{max_val:.3f}",
                                      template=entry.file_name, tried=tried)
                    return TemplateMatchResult(found=True, label=label, best_score=min(1.0, best_score),
                                               tried_count=tried, elapsed_seconds=elapsed(),
                                               template_name=entry.file_name)

        label = normalize_template_label(best_entry.label) if best_entry else None
        return TemplateMatchResult(found=False, label=label, best_score=max(0.0, best_score),
                                   tried_count=tried, elapsed_seconds=elapsed(),
                                   template_name=best_entry.file_name if best_entry else None)
