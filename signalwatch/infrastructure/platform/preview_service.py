# signalwatch/infrastructure/platform/preview_service.py
import cv2
import numpy as np
from PySide6.QtCore import QObject, Signal
from PySide6.QtGui import QImage

from signalwatch.domain.services.i_preview_service import IPreviewService


class PreviewSignals(QObject):
    """Signals emitted by the preview service."""
    preview_changed = Signal(QImage)


class QtPreviewService(IPreviewService):
    """
    Publishes region previews as QImages through a Qt signal.

    The signal is emitted from the monitoring thread; receivers on the GUI
    thread get it through a queued connection.
    """

    def __init__(self):
        self.signals = PreviewSignals()
        self.update_count = 0

    def set_preview(self, image: np.ndarray) -> None:
        if image is None or image.size == 0:
            return
        self.update_count += 1
        self.signals.preview_changed.emit(self.to_qimage(image))

    @staticmethod
    def to_qimage(image: np.ndarray) -> QImage:
        """Deep-copied QImage so the numpy buffer can be released."""
        if image.ndim == 2:
            gray = np.ascontiguousarray(image)
            h, w = gray.shape
            return QImage(gray.data, w, h, w, QImage.Format_Grayscale8).copy()
        rgb = np.ascontiguousarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))
        h, w = rgb.shape[:2]
        return QImage(rgb.data, w, h, 3 * w, QImage.Format_RGB888).copy()
