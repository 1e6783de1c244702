import numpy as np
import pytest

from conftest import solid
from raster_editor.image_processing import drawing
from raster_editor.models import Rect, ShapeKind


def rect_mask(width, height, x, y, w, h):
    mask = np.zeros((height, width), dtype=np.uint8)
    mask[y:y + h, x:x + w] = 255
    return mask


def test_filled_rectangle():
    result = drawing.draw_shape(solid(10, 10), "rectangle", 2, 2, 4, 4,
                                fill_color="#ff0000", stroke_color=None)
    assert result.get_pixel(3, 3) == (255, 0, 0, 255)
    assert result.get_pixel(8, 8) == (100, 100, 100, 255)


def test_circle_uses_smaller_side():
    result = drawing.draw_shape(solid(20, 10, (0, 0, 0, 0)), ShapeKind.CIRCLE, 0, 0, 20, 10,
                                fill_color="#00ff00", stroke_color=None)
    assert result.get_pixel(10, 5)[3] == 255
    assert result.get_pixel(1, 5)[3] == 0


def test_stroke_only_ellipse_leaves_centre():
    result = drawing.draw_shape(solid(20, 20), "ellipse", 0, 0, 20, 20, line_width=2)
    assert result.get_pixel(10, 10) == (100, 100, 100, 255)
    assert result.get_pixel(0, 10) == (0, 0, 0, 255)


def test_unknown_shape_rejected():
    with pytest.raises(ValueError):
        drawing.draw_shape(solid(4, 4), "star", 0, 0, 2, 2)


def test_draw_text_does_not_modify_input():
    buffer = solid(40, 20, (0, 0, 0, 0))
    result = drawing.draw_text(buffer, "A", 2, 2, size=14, color="#ffffff")
    assert not buffer.data.any()
    assert result.data[..., 3].any()


def test_draw_empty_text_is_copy():
    buffer = solid(10, 10)
    assert drawing.draw_text(buffer, "", 0, 0) == buffer


def test_max_width_squeezes_text():
    buffer = solid(200, 40, (0, 0, 0, 0))
    wide = drawing.draw_text(buffer, "WWWWWW", 0, 0, size=20)
    narrow = drawing.draw_text(buffer, "WWWWWW", 0, 0, size=20, max_width=20)
    assert np.flatnonzero(narrow.data[..., 3].any(axis=0)).max() < 21
    assert np.flatnonzero(wide.data[..., 3].any(axis=0)).max() > 20


def test_copy_masked_applies_mask_alpha():
    mask = rect_mask(6, 6, 1, 1, 2, 2)
    mask[1, 1] = 0
    region = drawing.copy_masked(solid(6, 6), mask, Rect(1, 1, 2, 2))
    assert region.size == (2, 2)
    assert region.get_pixel(0, 0)[3] == 0
    assert region.get_pixel(1, 1) == (100, 100, 100, 255)


def test_clear_masked_partial():
    mask = np.full((2, 2), 128, dtype=np.uint8)
    result = drawing.clear_masked(solid(2, 2, (200, 200, 200, 255)), mask)
    assert result.get_pixel(0, 0) == (100, 100, 100, 127)


def test_fill_masked_on_transparent_layer_is_opaque():
    mask = rect_mask(4, 4, 0, 0, 2, 2)
    result = drawing.fill_masked(solid(4, 4, (0, 0, 0, 0)), mask, "#336699")
    assert result.get_pixel(0, 0) == (0x33, 0x66, 0x99, 255)
    assert result.get_pixel(3, 3) == (0, 0, 0, 0)


def test_mask_edges_ignores_canvas_border():
    edges = drawing.mask_edges(np.full((5, 5), 255, dtype=np.uint8))
    assert not edges.any()


def test_mask_edges_of_rectangle():
    edges = drawing.mask_edges(rect_mask(10, 10, 2, 2, 5, 5))
    assert edges.sum() == 16
    assert edges[2, 2] and not edges[4, 4]


def test_stroke_width_spreads_outline():
    mask = rect_mask(12, 12, 3, 3, 6, 6)
    thin = drawing.stroke_masked(solid(12, 12), mask, "#ff0000", 1)
    thick = drawing.stroke_masked(solid(12, 12), mask, "#ff0000", 3)
    assert thin.get_pixel(2, 5) == (100, 100, 100, 255)
    assert thick.get_pixel(2, 5) == (255, 0, 0, 255)
    assert thick.get_pixel(4, 5) == (255, 0, 0, 255)
