# signalwatch/domain/models/preprocessed_image.py
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class PreprocessedImage:
    """
    Output of the preprocessing pipeline.

    Both rasters are single-channel, dark text on a white background, and
    carry the same border so they have identical dimensions.

    Attributes:
        binary: Thresholded and cleaned image
        gray: Upscaled, denoised grayscale image before thresholding
        scale: Integer upscale factor applied to the input
        border: Border width in pixels added on every side
    """
    binary: np.ndarray
    gray: np.ndarray
    scale: int
    border: int

    @property
    def width(self) -> int:
        return int(self.binary.shape[1])

    @property
    def height(self) -> int:
        return int(self.binary.shape[0])
