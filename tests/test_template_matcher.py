import os

import cv2
import numpy as np
import pytest

from signalwatch.domain.models.preprocess_config import get_preset
from signalwatch.domain.services.i_background_task_service import CancellationToken
from signalwatch.infrastructure.ocr.preprocessor import ImagePreprocessor
from signalwatch.infrastructure.ocr.template_matcher import (
    TemplateEntry, TemplateLibrary, TemplateMatcher, normalize_template_label
)

from conftest import draw_text_image


@pytest.fixture
def sell_binary(logger):
    image = draw_text_image("SELL", width=110, height=40)
    return ImagePreprocessor(logger).preprocess(image, get_preset("readable")).value.binary


def library_from(binary, label="SELL"):
    # Glyph area of the preprocessed image, border excluded
    template = binary[10:-10, 10:-10].copy()
    return TemplateLibrary({label: [TemplateEntry(label=label, file_name="sell.png", image=template)]})


@pytest.mark.parametrize("name, expected", [
    ("down", "SELL"), ("Sell", "SELL"), ("UP", "BUY"), ("buy_arrow", "BUY"), ("hold", "HOLD"),
])
def test_normalize_template_label(name, expected):
    assert normalize_template_label(name) == expected


def test_template_cut_from_image_matches(sell_binary, logger):
    matcher = TemplateMatcher(library_from(sell_binary), logger, accept_threshold=0.8)

    result = matcher.check(sell_binary)

    assert result.found
    assert result.label == "SELL"
    assert result.best_score >= 0.8
    assert not result.timed_out


def test_down_directory_is_reported_as_sell(sell_binary, logger):
    matcher = TemplateMatcher(library_from(sell_binary, label="DOWN"), logger)

    assert matcher.check(sell_binary).label == "SELL"


def test_blank_frame_is_not_matched(sell_binary, logger):
    matcher = TemplateMatcher(library_from(sell_binary), logger)
    blank = np.full_like(sell_binary, 255)

    result = matcher.check(blank)

    assert not result.found
    assert result.tried_count == 0


def test_expired_deadline_reports_timeout(sell_binary, logger):
    ticks = iter(range(0, 1000, 5))
    matcher = TemplateMatcher(library_from(sell_binary), logger, clock=lambda: float(next(ticks)))

    result = matcher.check(sell_binary, timeout=1.0)

    assert not result.found
    assert result.timed_out


def test_cancelled_outer_token_stops_matching(sell_binary, logger):
    token = CancellationToken()
    token.cancel()
    matcher = TemplateMatcher(library_from(sell_binary), logger)

    result = matcher.check(sell_binary, cancellation_token=token)

    assert result.timed_out
    assert not result.found


def test_empty_library_never_matches(sell_binary, logger):
    assert not TemplateMatcher(TemplateLibrary(), logger).check(sell_binary).found


def test_library_loads_label_directories(tmp_path, logger):
    sell_dir = tmp_path / "sell"
    sell_dir.mkdir()
    glyph = draw_text_image("SELL", width=80, height=30)
    cv2.imwrite(str(sell_dir / "a.png"), glyph)
    cv2.imwrite(str(sell_dir / "blank.png"), np.full((30, 80), 128, dtype=np.uint8))
    (sell_dir / "notes.txt").write_text("ignored")
    big_dir = tmp_path / "buy"
    big_dir.mkdir()
    cv2.imwrite(str(big_dir / "huge.png"), draw_text_image("BUY", width=2000, height=200, scale=4, thickness=6))

    library = TemplateLibrary.from_directory(str(tmp_path), logger)

    assert sorted(library.labels) == ["BUY", "SELL"]
    assert len(library) == 2
    huge = [e for e in library.entries() if e.label == "BUY"][0]
    assert huge.image.shape[1] <= 1000 and huge.image.shape[0] <= 300


def test_missing_directory_gives_empty_library(tmp_path, logger):
    library = TemplateLibrary.from_directory(os.path.join(str(tmp_path), "nope"), logger)

    assert library.is_empty
    assert logger.messages("WARNING")
