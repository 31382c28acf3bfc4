# signalwatch/infrastructure/platform/image_hash_service.py
import cv2
import numpy as np

from signalwatch.domain.services.i_image_hash_service import IImageHashService
from signalwatch.infrastructure.ocr.preprocessor import to_grayscale


class AverageHashService(IImageHashService):
    """
    Average hash: downscale to ``size`` x ``size``, set one bit per pixel
    brighter than the mean, render as hex.
    """

    def __init__(self, size: int = 8):
        self.size = max(2, int(size))

    def compute_hash(self, image: np.ndarray) -> str:
        if image is None or image.size == 0:
            return ""
        gray = to_grayscale(image)
        small = cv2.resize(gray, (self.size, self.size), interpolation=cv2.INTER_AREA)
        bits = (small > small.mean()).flatten()
        value = 0
        for bit in bits:
            value = (value << 1) | int(bit)
        return f"{value:0{(self.size * self.size + 3) // 4}x}"
