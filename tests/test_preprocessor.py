import numpy as np
import pytest

from signalwatch.domain.models.preprocess_config import PRESETS, PreprocessConfig, get_preset
from signalwatch.infrastructure.ocr.preprocessor import ImagePreprocessor, right_edge_crop

from conftest import draw_text_image


@pytest.fixture
def preprocessor(logger):
    return ImagePreprocessor(logger)


@pytest.mark.parametrize("preset_name", sorted(PRESETS))
def test_output_dimensions_follow_scale_and_border(preprocessor, preset_name):
    config = get_preset(preset_name)
    image = draw_text_image("SELL 1234", width=120, height=30, scale=0.7)

    result = preprocessor.preprocess(image, config)

    assert result.is_success
    out = result.value
    expected = (30 * config.scale + 2 * config.border, 120 * config.scale + 2 * config.border)
    assert out.binary.shape == expected
    assert out.gray.shape == expected


def test_binary_output_is_two_level_with_white_border(preprocessor):
    config = PreprocessConfig(scale=2, border=5)
    result = preprocessor.preprocess(draw_text_image("BUY"), config)

    binary = result.value.binary
    assert set(np.unique(binary)).issubset({0, 255})
    assert (binary[:5, :] == 255).all()
    assert (binary[:, -5:] == 255).all()


def test_text_stays_dark_on_light_for_dark_background(preprocessor):
    image = draw_text_image("SELL", dark_background=True)
    config = get_preset("readable").with_overrides(is_dark_background=True)

    binary = preprocessor.preprocess(image, config).value.binary

    # Mostly background, which must come out white
    assert binary.mean() > 127


def test_grayscale_and_bgra_inputs_are_accepted(preprocessor):
    bgr = draw_text_image("BUY", width=80, height=24)
    gray = bgr[:, :, 0].copy()
    bgra = np.dstack([bgr, np.full(bgr.shape[:2], 255, dtype=np.uint8)])

    for image in (gray, bgra):
        assert preprocessor.preprocess(image, PreprocessConfig()).is_success


def test_empty_image_fails_with_preprocessing_error(preprocessor, logger):
    result = preprocessor.preprocess(np.zeros((0, 0, 3), dtype=np.uint8), PreprocessConfig())

    assert result.is_failure
    assert result.error.code == "PreprocessingFailed"
    assert logger.messages("ERROR")


def test_unknown_preset_raises_key_error():
    with pytest.raises(KeyError):
        get_preset("sharpest")


def test_right_edge_crop_keeps_rightmost_fraction():
    image = np.arange(100, dtype=np.uint8).reshape(1, 100)

    cropped = right_edge_crop(image, 0.32)

    assert cropped.shape == (1, 32)
    assert cropped[0, -1] == 99
