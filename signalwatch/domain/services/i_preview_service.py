# signalwatch/domain/services/i_preview_service.py
from abc import ABC, abstractmethod

import numpy as np


class IPreviewService(ABC):
    """Receives the cropped region image for display."""

    @abstractmethod
    def set_preview(self, image: np.ndarray) -> None:
        """
        Publish a new preview image. Called at most once per monitoring tick,
        and only when the image changed.
        """
        pass
