import math

import numpy as np
import pytest

from conftest import gradient, solid
from raster_editor.image_processing import filters
from raster_editor.image_processing.utils import create_gaussian_kernel


def pixel(pixels, x=0, y=0):
    return pixels[y, x].tolist()


def test_brightness_adds_and_keeps_alpha():
    pixels = solid(2, 2, (100, 100, 100, 200)).data
    assert pixel(filters.brightness(pixels, 50)) == [150, 150, 150, 200]


def test_brightness_saturates():
    pixels = solid(2, 2, (250, 10, 128, 255)).data
    assert pixel(filters.brightness(pixels, 50)) == [255, 60, 178, 255]
    assert pixel(filters.brightness(pixels, -50)) == [200, 0, 78, 255]


def test_brightness_does_not_modify_input():
    pixels = solid(2, 2).data
    filters.brightness(pixels, 30)
    assert pixel(pixels) == [100, 100, 100, 255]


def test_contrast_zero_is_identity():
    pixels = gradient().data
    assert np.array_equal(filters.contrast(pixels, 0), pixels)


def test_contrast_pushes_away_from_mid_grey():
    pixels = solid(1, 1, (100, 128, 200, 255)).data
    r, g, b, _ = pixel(filters.contrast(pixels, 100))
    assert r < 100
    assert g == 128
    assert b > 200


@pytest.mark.parametrize("value", [-256, 300])
def test_contrast_out_of_range_raises(value):
    with pytest.raises(ValueError):
        filters.contrast(solid(1, 1).data, value)


def test_saturation_zero_gives_luma_grey():
    pixels = solid(1, 1, (200, 100, 50, 255)).data
    expected = round(0.2989 * 200 + 0.5870 * 100 + 0.1140 * 50)
    assert pixel(filters.saturation(pixels, 0)) == [expected] * 3 + [255]


def test_saturation_one_is_identity():
    pixels = gradient().data
    assert np.array_equal(filters.saturation(pixels, 1.0), pixels)


def test_grayscale_weights():
    pixels = solid(1, 1, (200, 100, 50, 90)).data
    expected = round(0.299 * 200 + 0.587 * 100 + 0.114 * 50)
    assert pixel(filters.grayscale(pixels)) == [expected] * 3 + [90]


def test_sepia_matrix():
    pixels = solid(1, 1, (100, 50, 20, 255)).data
    expected = [
        round(0.393 * 100 + 0.769 * 50 + 0.189 * 20),
        round(0.349 * 100 + 0.686 * 50 + 0.168 * 20),
        round(0.272 * 100 + 0.534 * 50 + 0.131 * 20),
    ]
    assert pixel(filters.sepia(pixels))[:3] == expected


def test_invert_twice_is_identity():
    pixels = gradient().data
    inverted = filters.invert(pixels)
    assert pixel(inverted, 3, 2)[:3] == [255 - c for c in pixel(pixels, 3, 2)[:3]]
    assert np.array_equal(filters.invert(inverted), pixels)


def test_convolution_keeps_border_and_alpha():
    pixels = gradient().data.copy()
    pixels[..., 3] = 77
    for fn in (filters.sharpen, filters.edge_detect, filters.emboss):
        result = fn(pixels)
        assert np.array_equal(result[0], pixels[0])
        assert np.array_equal(result[-1], pixels[-1])
        assert np.array_equal(result[:, 0], pixels[:, 0])
        assert np.array_equal(result[:, -1], pixels[:, -1])
        assert (result[..., 3] == 77).all()


def test_edge_detect_flat_image_is_black_inside():
    result = filters.edge_detect(solid(5, 5, (90, 90, 90, 255)).data)
    assert pixel(result, 2, 2) == [0, 0, 0, 255]
    assert pixel(result, 0, 0) == [90, 90, 90, 255]


def test_sharpen_flat_image_is_unchanged():
    pixels = solid(5, 5, (90, 40, 10, 255)).data
    assert np.array_equal(filters.sharpen(pixels), pixels)


def test_convolution_on_tiny_image_is_copy():
    pixels = solid(2, 2).data
    assert np.array_equal(filters.emboss(pixels), pixels)


def test_blur_of_flat_image_is_unchanged():
    pixels = solid(9, 9, (10, 200, 30, 255)).data
    assert np.array_equal(filters.blur(pixels, 3), pixels)


def test_blur_spreads_a_single_point():
    pixels = solid(11, 11, (0, 0, 0, 255)).data.copy()
    pixels[5, 5] = (255, 255, 255, 255)
    result = filters.blur(pixels, 2)
    assert result[5, 5, 0] < 255
    assert result[5, 6, 0] > 0
    assert result[5, 5, 0] >= result[5, 6, 0]


def test_blur_radius_zero_is_identity():
    pixels = gradient().data
    assert np.array_equal(filters.blur(pixels, 0), pixels)


def test_apply_with_mask_limits_filter_to_selection():
    original = solid(4, 4, (100, 100, 100, 255)).data
    filtered = solid(4, 4, (200, 200, 200, 255)).data
    mask = np.zeros((4, 4), dtype=np.uint8)
    mask[0, 0] = 255
    mask[1, 1] = 128

    result = filters.apply_with_mask(original, filtered, mask)

    assert pixel(result, 0, 0) == [200, 200, 200, 255]
    assert pixel(result, 3, 3) == [100, 100, 100, 255]
    assert pixel(result, 1, 1)[:3] == [150, 150, 150]


def test_apply_with_mask_without_mask_returns_filtered():
    filtered = gradient().data
    assert filters.apply_with_mask(solid(16, 12).data, filtered, None) is filtered


def test_get_filter_lookup():
    assert filters.get_filter("Edge-Detect") is filters.edge_detect
    with pytest.raises(ValueError):
        filters.get_filter("posterize")


def test_emboss_kernel_orientation():
    pixels = np.zeros((3, 3, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    pixels[0, 0, :3] = 10
    pixels[2, 2, :3] = 50
    # -2 * top-left + 2 * bottom-right
    assert pixel(filters.emboss(pixels), 1, 1) == [80, 80, 80, 255]


@pytest.mark.parametrize("radius", [1, 3, 5])
def test_gaussian_kernel_shape_and_sigma(radius):
    kernel = create_gaussian_kernel(radius)
    sigma = radius / 3.0
    assert kernel.shape == (2 * radius + 1,)
    assert kernel.sum() == pytest.approx(1.0)
    assert np.argmax(kernel) == radius
    assert kernel[radius + 1] / kernel[radius] == pytest.approx(math.exp(-1 / (2 * sigma * sigma)))
    assert np.allclose(kernel, kernel[::-1])
