# signalwatch/domain/services/i_recognition_engine.py
"""
Recognition engine interface.

The engine is the external text-recognition boundary. It is shared by the
monitoring loop and assumed to be used from one thread at a time.
"""
from abc import ABC, abstractmethod

import numpy as np

from signalwatch.domain.common.result import Result
from signalwatch.domain.models.recognition_result import RecognitionResult, SegmentationMode


class IRecognitionEngine(ABC):
    """
    Interface for text recognition engines.
    """

    @abstractmethod
    def recognize(self, image: np.ndarray, mode: SegmentationMode) -> Result[RecognitionResult]:
        """
        Recognize text in a single-channel image with one segmentation strategy.

        Args:
            image: Binary or grayscale image, dark text on light background
            mode: Segmentation strategy to use

        Returns:
            Result containing the recognition result, or a RecognitionError
        """
        pass
