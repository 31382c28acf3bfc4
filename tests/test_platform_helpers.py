import numpy as np

from signalwatch.domain.models.captured_frame import CapturedFrame
from signalwatch.domain.models.region_model import Region
from signalwatch.infrastructure.platform.screenshot_service import crop_frame

from conftest import draw_text_image


def test_crop_subtracts_frame_origin():
    image = np.arange(100 * 200, dtype=np.uint32).reshape(100, 200)
    frame = CapturedFrame(image, origin_x=1000, origin_y=500)

    crop = crop_frame(frame, Region(1010, 520, 30, 10))

    assert crop.shape == (10, 30)
    assert crop[0, 0] == image[20, 10]


def test_crop_is_clipped_to_frame():
    frame = CapturedFrame(np.zeros((50, 50), dtype=np.uint8))

    assert crop_frame(frame, Region(40, 40, 30, 30)).shape == (10, 10)
    assert crop_frame(frame, Region(60, 0, 10, 10)) is None


def test_crop_is_a_copy():
    image = np.zeros((10, 10), dtype=np.uint8)
    crop = crop_frame(CapturedFrame(image), Region(0, 0, 5, 5))

    crop[:] = 7

    assert image.max() == 0


def test_hash_is_stable_and_sensitive(hash_service):
    sell = draw_text_image("SELL")
    buy = draw_text_image("BUY 99")

    assert hash_service.compute_hash(sell) == hash_service.compute_hash(sell.copy())
    assert hash_service.compute_hash(sell) != hash_service.compute_hash(buy)
    assert len(hash_service.compute_hash(sell)) == 16


def test_hash_of_empty_image_is_empty(hash_service):
    assert hash_service.compute_hash(np.zeros((0, 0), dtype=np.uint8)) == ""
