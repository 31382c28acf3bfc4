import numpy as np

from signalwatch.domain.common.errors import RecognitionError
from signalwatch.domain.common.result import Result
from signalwatch.domain.models.preprocessed_image import PreprocessedImage
from signalwatch.domain.models.recognition_result import RecognitionResult, SegmentationMode
from signalwatch.domain.services.i_recognition_engine import IRecognitionEngine
from signalwatch.infrastructure.ocr.recognition_orchestrator import RecognitionOrchestrator

from conftest import FakeRecognitionEngine

IMAGE = np.full((20, 40), 255, dtype=np.uint8)


def test_first_non_empty_mode_wins(logger):
    engine = FakeRecognitionEngine(per_mode={SegmentationMode.SINGLE_LINE: "  ",
                                             SegmentationMode.SINGLE_WORD: "SELL",
                                             SegmentationMode.AUTO: "BUY"})

    result = RecognitionOrchestrator(engine, logger).recognize(IMAGE)

    assert result.text == "SELL"
    assert engine.calls == [SegmentationMode.SINGLE_LINE, SegmentationMode.SINGLE_WORD]


def test_raising_mode_is_skipped(logger):
    engine = FakeRecognitionEngine(text="BUY", fail_modes=[SegmentationMode.SINGLE_LINE])

    result = RecognitionOrchestrator(engine, logger).recognize(IMAGE)

    assert result.text == "BUY"
    assert result.mode == SegmentationMode.SINGLE_WORD
    assert logger.messages("WARNING")


def test_all_modes_failing_gives_empty_text(logger):
    class FailingEngine(IRecognitionEngine):
        def recognize(self, image, mode):
            return Result.fail(RecognitionError("unreadable"))

    result = RecognitionOrchestrator(FailingEngine(), logger).recognize(IMAGE)

    assert isinstance(result, RecognitionResult)
    assert result.text == ""


def test_preprocessed_image_yields_binary_then_gray(logger):
    engine = FakeRecognitionEngine(text="SELL")
    image = PreprocessedImage(binary=IMAGE, gray=IMAGE.copy(), scale=1, border=0)

    texts = RecognitionOrchestrator(engine, logger).recognize_preprocessed(image)

    assert [t.source for t in texts] == ["binary", "gray"]
    assert all(t.text == "SELL" for t in texts)
