#signalwatch/infrastructure/ocr/preprocessor.py
"""
Image preprocessing for template matching and text recognition.

Turns a raw region capture into a binarized, noise-reduced image. The
pipeline is deterministic and keeps no state between calls.
"""
import cv2
import numpy as np

from signalwatch.domain.common.errors import PreprocessingError
from signalwatch.domain.common.result import Result
from signalwatch.domain.models.preprocess_config import PreprocessConfig
from signalwatch.domain.models.preprocessed_image import PreprocessedImage
from signalwatch.domain.services.i_logger_service import ILoggerService


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert a BGR, BGRA or single-channel image to 8-bit grayscale."""
    if image.ndim == 2:
        gray = image
    elif image.ndim == 3 and image.shape[2] == 1:
        gray = image[:, :, 0]
    elif image.ndim == 3 and image.shape[2] == 3:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    elif image.ndim == 3 and image.shape[2] == 4:
        gray = cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    else:
        raise ValueError(f"Unsupported image shape {image.shape}")

    if gray.dtype != np.uint8:
        gray = np.clip(gray, 0, 255).astype(np.uint8)
    return gray


def odd_at_least(value: int, minimum: int) -> int:
    value = max(int(value), minimum)
    return value if value % 2 == 1 else value + 1


class ImagePreprocessor:
    """
    Deterministic preprocessing pipeline.

    Stages, in order: integer bicubic upscale, grayscale, bilateral denoise,
    optional CLAHE, Gaussian blur, adaptive threshold, close then open,
    optional dilate, optional unsharp mask, optional outline, constant border.

    Morphology runs with the text as foreground ("ink" is white), so closing
    fills holes inside glyphs and opening removes specks around them. The
    result is inverted back to dark text on white before the border is added.
    """

    def __init__(self, logger: ILoggerService):
        self.logger = logger

    def preprocess(self, image: np.ndarray, config: PreprocessConfig) -> Result[PreprocessedImage]:
        """
        Run the pipeline.

        Args:
            image: Raw BGR/BGRA/grayscale crop
            config: Pipeline tunables

        Returns:
            Result containing the preprocessed image, or a PreprocessingError.
            No partial result is ever returned.
        """
        if image is None or image.size == 0 or image.shape[0] < 1 or image.shape[1] < 1:
            error = PreprocessingError("Cannot preprocess an empty image",
                                       details={"shape": None if image is None else image.shape})
            self.logger.error(str(error))
            return Result.fail(error)

        try:
            return Result.ok(self._run(image, config))
        except (cv2.error, ValueError, TypeError) as e:
            error = PreprocessingError(f"Preprocessing failed: {e}",
                                       details={"shape": image.shape}, inner_error=e)
            self.logger.error(str(error))
            return Result.fail(error)

    def _run(self, image: np.ndarray, config: PreprocessConfig) -> PreprocessedImage:
        scale = max(1, int(config.scale))
        border = max(0, int(config.border))

        src = image
        if scale > 1:
            h, w = image.shape[:2]
            src = cv2.resize(image, (w * scale, h * scale), interpolation=cv2.INTER_CUBIC)

        gray = to_grayscale(src)
        if config.is_dark_background:
            # Light text on dark: invert so text is always darker than its surroundings
            gray = cv2.bitwise_not(gray)

        if config.bilateral_diameter > 0:
            gray = cv2.bilateralFilter(gray, int(config.bilateral_diameter),
                                       float(config.bilateral_sigma_color),
                                       float(config.bilateral_sigma_space))

        if config.use_clahe:
            tile_w, tile_h = config.clahe_tile_grid_size
            clahe = cv2.createCLAHE(clipLimit=float(config.clahe_clip_limit),
                                    tileGridSize=(max(1, int(tile_w)), max(1, int(tile_h))))
            gray = clahe.apply(gray)

        kernel_size = odd_at_least(config.gaussian_kernel, 1)
        if kernel_size > 1:
            gray = cv2.GaussianBlur(gray, (kernel_size, kernel_size), 0)

        block_size = odd_at_least(config.adaptive_block_size, 3)
        # Ink (text) becomes 255
        ink = cv2.adaptiveThreshold(gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
                                    cv2.THRESH_BINARY_INV, block_size, float(config.adaptive_c))

        if config.morph_kernel > 1:
            kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (int(config.morph_kernel), int(config.morph_kernel)))
            ink = cv2.morphologyEx(ink, cv2.MORPH_CLOSE, kernel)
            ink = cv2.morphologyEx(ink, cv2.MORPH_OPEN, kernel)

        if config.use_dilate and config.dilate_iterations > 0:
            dilate_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (2, 2))
            ink = cv2.dilate(ink, dilate_kernel, iterations=int(config.dilate_iterations))

        if config.sharpen and config.sharpen_amount > 0:
            blurred = cv2.GaussianBlur(ink, (0, 0), 1.0)
            amount = float(config.sharpen_amount)
            ink = cv2.addWeighted(ink, 1.0 + amount, blurred, -amount, 0)

        if config.make_outline:
            outline_kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (3, 3))
            gradient = cv2.morphologyEx(ink, cv2.MORPH_GRADIENT, outline_kernel)
            ink = cv2.max(ink, gradient)

        binary = cv2.bitwise_not(ink)

        if border > 0:
            binary = cv2.copyMakeBorder(binary, border, border, border, border,
                                        cv2.BORDER_CONSTANT, value=255)
            gray = cv2.copyMakeBorder(gray, border, border, border, border,
                                      cv2.BORDER_CONSTANT, value=255)

        self.logger.debug("Preprocessed image", size=f"{binary.shape[1]}x{binary.shape[0]}",
                          scale=scale, border=border)
        return PreprocessedImage(binary=binary, gray=gray, scale=scale, border=border)


def right_edge_crop(image: np.ndarray, fraction: float = 0.32) -> np.ndarray:
    """
    Return the right-most ``fraction`` of an image's width.

    Labels usually sit at the end of a row, so this is the retry area when
    the full crop yields nothing confident.
    """
    width = image.shape[1]
    keep = max(1, int(round(width * fraction)))
    return image[:, width - keep:].copy()
