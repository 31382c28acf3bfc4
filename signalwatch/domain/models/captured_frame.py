# signalwatch/domain/models/captured_frame.py
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class CapturedFrame:
    """
    A raw screen capture (BGR) and the desktop coordinate of its top-left pixel.

    Region coordinates are desktop coordinates, so cropping subtracts the origin.
    """
    image: np.ndarray
    origin_x: int = 0
    origin_y: int = 0

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])
