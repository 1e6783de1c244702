import numpy as np
import pytest

from conftest import gradient, solid
from raster_editor.image_processing import transforms


def test_target_size_keeps_aspect_from_width():
    assert transforms.target_size(200, 100, 50, None) == (50, 25)


def test_target_size_keeps_aspect_from_height():
    assert transforms.target_size(200, 100, None, 30) == (60, 30)


def test_target_size_without_aspect_uses_both():
    assert transforms.target_size(200, 100, 10, 70, maintain_aspect=False) == (10, 70)
    assert transforms.target_size(200, 100, 10, None, maintain_aspect=False) == (10, 100)


def test_target_size_rejects_degenerate_result():
    with pytest.raises(ValueError):
        transforms.target_size(200, 100, -5, None)


def test_derived_side_is_at_least_one_pixel():
    assert transforms.target_size(1000, 10, 50, None) == (50, 1)
    assert transforms.target_size(10, 1000, None, 50) == (1, 50)


def test_resize_very_wide_canvas_by_width():
    resized = transforms.resize(solid(1000, 10), *transforms.target_size(1000, 10, 50, None))
    assert resized.size == (50, 1)


def test_resize_changes_dimensions(gradient_buffer):
    resized = transforms.resize(gradient_buffer, 8, 6)
    assert resized.size == (8, 6)


def test_resize_flat_color_is_preserved():
    resized = transforms.resize(solid(10, 10, (30, 60, 90, 255)), 25, 4, resample="bilinear")
    assert resized.size == (25, 4)
    assert resized.get_pixel(12, 2) == (30, 60, 90, 255)


def test_resize_same_size_is_copy(gradient_buffer):
    resized = transforms.resize(gradient_buffer, 16, 12)
    assert resized == gradient_buffer
    assert resized.data is not gradient_buffer.data


def test_crop_inside(gradient_buffer):
    cropped = transforms.crop(gradient_buffer, 2, 3, 5, 4)
    assert cropped.size == (5, 4)
    assert np.array_equal(cropped.data, gradient_buffer.data[3:7, 2:7])


def test_crop_past_edge_pads_with_transparency(gradient_buffer):
    cropped = transforms.crop(gradient_buffer, 14, 10, 5, 5)
    assert cropped.size == (5, 5)
    assert np.array_equal(cropped.data[:2, :2], gradient_buffer.data[10:12, 14:16])
    assert not cropped.data[2:].any()
    assert not cropped.data[:, 2:].any()


@pytest.mark.parametrize("size", [(0, 5), (5, -1)])
def test_crop_rejects_empty_size(gradient_buffer, size):
    with pytest.raises(ValueError):
        transforms.crop(gradient_buffer, 0, 0, *size)


def test_rotate_90_swaps_dimensions_clockwise(gradient_buffer):
    rotated = transforms.rotate(gradient_buffer, 90)
    assert rotated.size == (12, 16)
    # top-left corner lands at the top-right
    assert rotated.get_pixel(11, 0) == gradient_buffer.get_pixel(0, 0)
    assert rotated.get_pixel(0, 0) == gradient_buffer.get_pixel(0, 11)


def test_rotate_four_quarter_turns_is_identity(gradient_buffer):
    rotated = gradient_buffer
    for _ in range(4):
        rotated = transforms.rotate(rotated, 90)
    assert rotated == gradient_buffer


def test_rotate_negative_quarter_turn_matches_270(gradient_buffer):
    assert transforms.rotate(gradient_buffer, -90) == transforms.rotate(gradient_buffer, 270)


def test_rotate_180(gradient_buffer):
    rotated = transforms.rotate(gradient_buffer, 180)
    assert rotated.size == (16, 12)
    assert rotated.get_pixel(15, 11) == gradient_buffer.get_pixel(0, 0)


def test_rotate_arbitrary_angle_grows_canvas():
    rotated = transforms.rotate(solid(10, 10, (200, 0, 0, 255)), 45)
    assert rotated.size == (14, 14)
    # corners fall outside the source square
    assert rotated.get_pixel(0, 0)[3] == 0
    assert rotated.get_pixel(7, 7) == (200, 0, 0, 255)


def test_rotated_size():
    assert transforms.rotated_size(100, 50, 90) == (50, 100)
    assert transforms.rotated_size(100, 50, 0) == (100, 50)


def test_flip_horizontal(gradient_buffer):
    flipped = transforms.flip_horizontal(gradient_buffer)
    assert flipped.get_pixel(0, 4) == gradient_buffer.get_pixel(15, 4)
    assert transforms.flip_horizontal(flipped) == gradient_buffer


def test_flip_vertical(gradient_buffer):
    flipped = transforms.flip_vertical(gradient_buffer)
    assert flipped.get_pixel(3, 0) == gradient_buffer.get_pixel(3, 11)
    assert transforms.flip_vertical(flipped) == gradient_buffer
