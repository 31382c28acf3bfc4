# signalwatch/domain/services/i_screenshot_service.py

"""
Screenshot service interface.

Defines the capture and crop primitives consumed by the monitoring loop.
"""
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from signalwatch.domain.models.captured_frame import CapturedFrame
from signalwatch.domain.models.region_model import Region


class IScreenshotService(ABC):
    """
    Interface for screenshot services.
    """

    @abstractmethod
    def capture_frame(self, hint: Optional[Region] = None) -> Optional[CapturedFrame]:
        """
        Capture the desktop.

        Args:
            hint: Region of interest; implementations may capture only the area
                covering it. None captures the whole desktop.

        Returns:
            The captured frame, or None when nothing could be captured
        """
        pass

    @abstractmethod
    def crop_to_region(self, frame: CapturedFrame, region: Region) -> Optional[np.ndarray]:
        """
        Crop a captured frame to a desktop region. Pure, never captures.

        Args:
            frame: Previously captured frame
            region: Region in desktop coordinates

        Returns:
            The cropped BGR image (a copy), or None if the region lies outside the frame
        """
        pass
