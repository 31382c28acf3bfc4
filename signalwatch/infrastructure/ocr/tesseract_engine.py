#signalwatch/infrastructure/ocr/tesseract_engine.py

"""
Recognition engine backed by Tesseract OCR.
"""
import os
import sys
from typing import Dict, List, Optional

import numpy as np
import pytesseract
from PIL import Image

from signalwatch.domain.common.errors import EngineInitializationError, RecognitionError
from signalwatch.domain.common.result import Result
from signalwatch.domain.models.recognition_result import OcrWord, RecognitionResult, SegmentationMode
from signalwatch.domain.services.i_logger_service import ILoggerService
from signalwatch.domain.services.i_recognition_engine import IRecognitionEngine

CHAR_WHITELIST = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789:-"

PAGE_SEGMENTATION_MODES: Dict[SegmentationMode, int] = {
    SegmentationMode.SINGLE_LINE: 7,
    SegmentationMode.SINGLE_WORD: 8,
    SegmentationMode.AUTO: 3,
    SegmentationMode.SINGLE_BLOCK: 6,
}

COMMON_TESSERACT_PATHS = [
    r'C:\Program Files\Tesseract-OCR\tesseract.exe',
    r'C:\Program Files (x86)\Tesseract-OCR\tesseract.exe',
    r'/usr/bin/tesseract',
    r'/usr/local/bin/tesseract',
    r'/opt/homebrew/bin/tesseract',
]


class TesseractEngine(IRecognitionEngine):
    """
    Tesseract recognition engine.

    Construction verifies the executable is usable; a missing or broken
    installation raises EngineInitializationError since nothing can be
    recognized without it.
    """

    def __init__(self, logger: ILoggerService, lang: str = "eng", tesseract_cmd: Optional[str] = None):
        self.logger = logger
        self.lang = lang or "eng"

        self._configure_tesseract_path(tesseract_cmd)

        try:
            version = pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError, RuntimeError) as e:
            raise EngineInitializationError(
                f"Tesseract OCR is not available: {e}. Install Tesseract or set TESSERACT_CMD.",
                inner_error=e
            ) from e
        self.logger.info("Tesseract engine ready", version=version, lang=self.lang)

    def _configure_tesseract_path(self, tesseract_cmd: Optional[str]) -> None:
        """Resolve the executable: explicit argument, TESSERACT_CMD, bundled copy, common locations."""
        explicit = tesseract_cmd or os.environ.get("TESSERACT_CMD")
        if explicit:
            pytesseract.pytesseract.tesseract_cmd = explicit
            self.logger.info(f"Configured Tesseract path: {explicit}")
            return

        # PyInstaller bundles resources under _MEIPASS
        if getattr(sys, 'frozen', False):
            bundled = os.path.join(getattr(sys, '_MEIPASS', ''), "resources", "Tesseract-OCR", "tesseract.exe")
            if os.path.exists(bundled):
                pytesseract.pytesseract.tesseract_cmd = bundled
                self.logger.info(f"Configured Tesseract path for executable: {bundled}")
                return

        for path in COMMON_TESSERACT_PATHS:
            if os.path.exists(path):
                pytesseract.pytesseract.tesseract_cmd = path
                self.logger.debug(f"Configured Tesseract path: {path}")
                return

        self.logger.debug("Tesseract not found in common locations, relying on PATH")

    def build_config(self, mode: SegmentationMode) -> str:
        return f"--psm {PAGE_SEGMENTATION_MODES[mode]} -c tessedit_char_whitelist={CHAR_WHITELIST}"

    def recognize(self, image: np.ndarray, mode: SegmentationMode) -> Result[RecognitionResult]:
        try:
            pil_image = Image.fromarray(image)
            data = pytesseract.image_to_data(pil_image, lang=self.lang, config=self.build_config(mode),
                                             output_type=pytesseract.Output.DICT)
        except (pytesseract.TesseractError, RuntimeError, OSError, ValueError, TypeError) as e:
            error = RecognitionError(f"Tesseract failed in {mode.value} mode: {e}",
                                     details={"mode": mode.value}, inner_error=e)
            return Result.fail(error)

        words, text = self._parse_data(data)
        return Result.ok(RecognitionResult(text=text, words=tuple(words), mode=mode))

    @staticmethod
    def _parse_data(data: Dict[str, List]) -> tuple:
        """Collect words with boxes and rebuild the text line by line."""
        words: List[OcrWord] = []
        lines: Dict[tuple, List[str]] = {}

        for i, raw in enumerate(data.get("text", [])):
            word = (raw or "").strip()
            if not word:
                continue
            try:
                confidence = float(data["conf"][i])
            except (KeyError, IndexError, TypeError, ValueError):
                confidence = -1.0
            if confidence < 0:
                continue

            box = (int(data["left"][i]), int(data["top"][i]), int(data["width"][i]), int(data["height"][i]))
            words.append(OcrWord(text=word, confidence=confidence, bounding_box=box))

            key = (data["block_num"][i], data["par_num"][i], data["line_num"][i])
            lines.setdefault(key, []).append(word)

        text = "\n".join(" ".join(parts) for parts in lines.values()).strip()
        return words, text
