# signalwatch/domain/services/i_image_hash_service.py
from abc import ABC, abstractmethod

import numpy as np


class IImageHashService(ABC):
    """Cheap perceptual hash used to gate preview refreshes."""

    @abstractmethod
    def compute_hash(self, image: np.ndarray) -> str:
        """
        Compute a perceptual hash of an image.

        Args:
            image: BGR or grayscale image

        Returns:
            Hash string; visually identical images give identical strings.
            An empty string is returned for empty input.
        """
        pass
