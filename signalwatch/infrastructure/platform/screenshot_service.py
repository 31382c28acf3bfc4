# signalwatch/infrastructure/platform/screenshot_service.py
"""
Qt-native screen capture using QScreen.
"""
import io
from typing import Optional

import cv2
import numpy as np
from PIL import Image
from PySide6.QtCore import QBuffer, QByteArray, QIODevice, QPoint
from PySide6.QtGui import QGuiApplication, QPixmap

from signalwatch.domain.models.captured_frame import CapturedFrame
from signalwatch.domain.models.region_model import Region
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.domain.services.i_screenshot_service import IScreenshotService


def crop_frame(frame: CapturedFrame, region: Region) -> Optional[np.ndarray]:
    """Crop a frame to a desktop region, clipped to the frame. None if they do not overlap."""
    left = max(0, region.x - frame.origin_x)
    top = max(0, region.y - frame.origin_y)
    right = min(frame.width, region.x - frame.origin_x + region.width)
    bottom = min(frame.height, region.y - frame.origin_y + region.height)
    if right <= left or bottom <= top:
        return None
    return frame.image[top:bottom, left:right].copy()


class QtScreenshotService(IScreenshotService):
    """
    Screen capture through Qt's grabWindow, converted via PIL into a BGR array.

    Region coordinates are physical pixels; they are converted to the
    screen's logical coordinates for grabbing, and the returned pixmap is in
    physical pixels again. Requires a QGuiApplication instance.
    """

    def __init__(self, logger: ILoggerService):
        self.logger = logger

    def capture_frame(self, hint: Optional[Region] = None) -> Optional[CapturedFrame]:
        if QGuiApplication.instance() is None:
            self.logger.error("Screen capture requires a running Qt application")
            return None

        screen = None
        if hint is not None:
            screen = QGuiApplication.screenAt(QPoint(hint.x, hint.y))
        if screen is None:
            screen = QGuiApplication.primaryScreen()
        if screen is None:
            self.logger.warning("No screen available for capture")
            return None

        geometry = screen.geometry()
        ratio = screen.devicePixelRatio() or 1.0
        origin_x = int(geometry.x() * ratio)
        origin_y = int(geometry.y() * ratio)

        if hint is not None:
            # Grab only the hinted area; coordinates relative to the screen, logical units
            pixmap = screen.grabWindow(0,
                                       int((hint.x - origin_x) / ratio), int((hint.y - origin_y) / ratio),
                                       max(1, int(round(hint.width / ratio))),
                                       max(1, int(round(hint.height / ratio))))
            origin_x, origin_y = hint.x, hint.y
        else:
            pixmap = screen.grabWindow(0)

        if pixmap.isNull():
            self.logger.warning("Screen capture returned an empty pixmap")
            return None

        image = self._qpixmap_to_bgr(pixmap)
        if image is None:
            return None
        return CapturedFrame(image=image, origin_x=origin_x, origin_y=origin_y)

    def crop_to_region(self, frame: CapturedFrame, region: Region) -> Optional[np.ndarray]:
        cropped = crop_frame(frame, region)
        if cropped is None:
            self.logger.debug("Region lies outside the captured frame", region=region.as_tuple())
        return cropped

    def _qpixmap_to_bgr(self, pixmap: QPixmap) -> Optional[np.ndarray]:
        """Convert QPixmap to a BGR array using an intermediate PNG buffer."""
        try:
            byte_array = QByteArray()
            buffer = QBuffer(byte_array)
            buffer.open(QIODevice.WriteOnly)
            pixmap.save(buffer, "PNG")
            buffer.close()

            with Image.open(io.BytesIO(byte_array.data())) as image:
                rgb = np.array(image.convert("RGB"))
            return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
        except (OSError, ValueError, cv2.error) as e:
            self.logger.error(f"Error converting QPixmap to image array: {e}")
            return None
