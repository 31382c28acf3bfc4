#signalwatch/infrastructure/ocr/recognition_orchestrator.py
"""
Recognition orchestrator.

Runs the recognition engine with a priority list of segmentation strategies
and takes the first non-empty result. Per-strategy failures are logged and
skipped; if nothing is recognized the result is empty text, not an error.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from signalwatch.domain.models.preprocessed_image import PreprocessedImage
from signalwatch.domain.models.recognition_result import (
    DEFAULT_SEGMENTATION_ORDER, RecognitionResult, SegmentationMode
)
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.domain.services.i_recognition_engine import IRecognitionEngine


@dataclass(frozen=True)
class RecognizedText:
    """Text recognized from one image variant."""
    source: str
    text: str
    result: Optional[RecognitionResult] = None


class RecognitionOrchestrator:
    """
    Retries recognition across segmentation strategies.

    The engine is shared and used from the monitoring thread only.
    """

    def __init__(self, engine: IRecognitionEngine, logger: ILoggerService,
                 modes: Sequence[SegmentationMode] = DEFAULT_SEGMENTATION_ORDER):
        self.engine = engine
        self.logger = logger
        self.modes = tuple(modes)

    def recognize(self, image: np.ndarray) -> RecognitionResult:
        """
        Recognize text in one image.

        Args:
            image: Single-channel image, dark text on light background

        Returns:
            The first non-empty result, or an empty RecognitionResult
        """
        for mode in self.modes:
            try:
                result = self.engine.recognize(image, mode)
            except Exception as e:
                self.logger.warning(f"Recognition engine raised in {mode.value} mode: {e}")
                continue

            if result.is_failure:
                self.logger.debug(str(result.error), mode=mode.value)
                continue

            recognition = result.value
            if not recognition.is_empty:
                self.logger.debug("Recognized text", mode=mode.value, text=repr(recognition.text))
                return recognition

        return RecognitionResult(text="")

    def recognize_preprocessed(self, image: PreprocessedImage) -> List[RecognizedText]:
        """
        Recognize both the binary and the grayscale variant.

        Each variant favors different failure modes, so both are always tried.

        Returns:
            One entry per variant, in the order binary, gray
        """
        texts = []
        for source, raster in (("binary", image.binary), ("gray", image.gray)):
            recognition = self.recognize(raster)
            texts.append(RecognizedText(source=source, text=recognition.text, result=recognition))
        return texts
