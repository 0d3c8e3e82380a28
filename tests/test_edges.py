"""Supresión de no-máximos, umbral doble y Canny completo"""

import math

import numpy as np
import pytest

from edge_filters import (
    GradientField,
    Raster,
    apply_canny,
    compute_gradients,
    compute_luma,
    double_threshold,
    gaussian_blur,
    non_maximum_suppression,
)
from edge_filters.hysteresis_filter import STRONG_EDGE, WEAK_EDGE

from conftest import make_frame, make_vertical_edge


def field(magnitude, direction):
    magnitude = np.asarray(magnitude, dtype=np.float32)
    direction = np.broadcast_to(np.asarray(direction, dtype=np.float32), magnitude.shape)
    return GradientField(Raster.from_array(magnitude), Raster.from_array(direction.copy()))


def single_row(values):
    return Raster.from_array(np.asarray([values], dtype=np.float32))


# --- Supresión de no-máximos ---------------------------------------------------

def reference_neighbors(magnitude, direction, y, x):
    """Vecinos elegidos según la tabla de bins, píxel a píxel"""
    degrees = math.degrees(float(direction[y, x]))
    angle = ((degrees % 180) + 180) % 180
    if angle < 22.5 or angle >= 157.5:
        return magnitude[y, x - 1], magnitude[y, x + 1]
    if angle < 67.5:
        return magnitude[y - 1, x + 1], magnitude[y + 1, x - 1]
    if angle < 112.5:
        return magnitude[y - 1, x], magnitude[y + 1, x]
    return magnitude[y - 1, x - 1], magnitude[y + 1, x + 1]


def test_suppression_keeps_only_local_maxima(random_frame):
    gradients = compute_gradients(compute_luma(random_frame))
    suppressed = non_maximum_suppression(gradients).data
    magnitude = gradients.magnitude.data
    direction = gradients.direction.data

    for y in range(1, random_frame.height - 1):
        for x in range(1, random_frame.width - 1):
            n1, n2 = reference_neighbors(magnitude, direction, y, x)
            if magnitude[y, x] >= n1 and magnitude[y, x] >= n2:
                assert suppressed[y, x] == magnitude[y, x]
            else:
                assert suppressed[y, x] == 0


def test_suppression_border_is_zero():
    gradients = field(np.full((5, 6), 10.0), 0.0)
    suppressed = non_maximum_suppression(gradients).data

    assert not suppressed[0].any() and not suppressed[-1].any()
    assert not suppressed[:, 0].any() and not suppressed[:, -1].any()
    assert (suppressed[1:-1, 1:-1] == 10).all()


def test_suppression_horizontal_bin_compares_east_west():
    magnitude = np.zeros((3, 5))
    magnitude[1] = [0, 5, 9, 5, 0]
    suppressed = non_maximum_suppression(field(magnitude, 0.0)).data

    assert list(suppressed[1]) == [0, 0, 9, 0, 0]


def test_suppression_vertical_bin_compares_north_south():
    magnitude = np.zeros((5, 3))
    magnitude[:, 1] = [0, 4, 7, 4, 0]
    suppressed = non_maximum_suppression(field(magnitude, np.pi / 2)).data

    assert list(suppressed[:, 1]) == [0, 0, 7, 0, 0]


@pytest.mark.parametrize("angle,kept,dropped", [
    (math.radians(45), (1, 3), (1, 1)),    # ↗: compara noreste y suroeste
    (math.radians(135), (1, 1), (1, 3)),   # ↘: compara noroeste y sureste
])
def test_suppression_diagonal_bins(angle, kept, dropped):
    magnitude = np.array([
        [0, 0, 6, 0, 0],
        [0, 5, 0, 5, 0],
        [0, 0, 0, 0, 0],
    ], dtype=np.float32)
    # (0,2) es el noreste de (1,1) y el noroeste de (1,3)
    suppressed = non_maximum_suppression(field(magnitude, angle)).data

    assert suppressed[kept] == 5
    assert suppressed[dropped] == 0


def test_negative_angles_fold_into_same_bin():
    magnitude = np.zeros((3, 5))
    magnitude[1] = [0, 5, 9, 5, 0]
    # -pi y pi son horizontales igual que 0
    for angle in (np.pi, -np.pi + 1e-6, -0.1):
        suppressed = non_maximum_suppression(field(magnitude, angle)).data
        assert suppressed[1, 2] == 9


def test_suppression_on_non_square_raster_bounds_each_axis():
    # Frame apaisado 8x4: el borde inferior es la fila height-1 (3), no width-1 (7)
    magnitude = np.zeros((4, 8))
    magnitude[1:3, 3] = 12
    suppressed = non_maximum_suppression(field(magnitude, 0.0)).data

    assert suppressed.shape == (4, 8)
    assert (suppressed[1:3, 3] == 12).all()
    assert not suppressed[3].any()
    assert not suppressed[:, 7].any()


def test_suppression_of_tiny_raster():
    suppressed = non_maximum_suppression(field(np.ones((2, 2)), 0.0))
    assert (suppressed.width, suppressed.height) == (2, 2)
    assert not suppressed.data.any()


# --- Umbral doble ----------------------------------------------------------------

def test_threshold_boundaries():
    edges = double_threshold(single_row([150, 50, 49, 149.5, 0, 300]), 50, 150).data

    assert list(edges[0, :, 0]) == [STRONG_EDGE, WEAK_EDGE, 0, WEAK_EDGE, 0, STRONG_EDGE]
    assert (edges[:, :, 0] == edges[:, :, 1]).all()
    assert (edges[:, :, 1] == edges[:, :, 2]).all()
    assert (edges[:, :, 3] == 255).all()


def test_low_above_high_has_no_weak_band():
    edges = double_threshold(single_row([10, 100, 120, 200]), 150, 100).data
    assert list(edges[0, :, 0]) == [0, STRONG_EDGE, STRONG_EDGE, STRONG_EDGE]


@pytest.mark.parametrize("low,high,expected", [
    (-10, -5, [STRONG_EDGE, STRONG_EDGE]),
    (0, 1000, [WEAK_EDGE, WEAK_EDGE]),
    (300, 400, [0, 0]),
    (float("nan"), float("nan"), [0, 0]),
])
def test_out_of_range_thresholds_are_not_errors(low, high, expected):
    edges = double_threshold(single_row([0, 255]), low, high).data
    assert list(edges[0, :, 0]) == expected


# --- Canny -------------------------------------------------------------------------

@pytest.mark.parametrize("low,high", [(50, 150), (1, 2), (200, 100), (0.5, 255)])
def test_flat_gray_frame_has_no_edges(flat_gray_frame, low, high):
    edges = apply_canny(flat_gray_frame, low, high).data

    assert edges.shape == (10, 10, 4)
    assert not edges[:, :, :3].any()
    assert (edges[:, :, 3] == 255).all()


def test_canny_vertical_edge_is_thin_strong_line():
    frame = make_vertical_edge(width=10, height=8)
    edges = apply_canny(frame, 50, 150).data[:, :, 0]

    assert (edges[2:6, 4:6] == STRONG_EDGE).all()
    assert not edges[:, :4].any()
    assert not edges[:, 6:].any()
    assert not edges[:2].any() and not edges[6:].any()


def test_canny_is_deterministic(random_frame):
    first = apply_canny(random_frame, 30, 90)
    second = apply_canny(random_frame, 30, 90)
    np.testing.assert_array_equal(first.data, second.data)


def test_canny_does_not_mutate_input(random_frame):
    before = random_frame.data.copy()
    apply_canny(random_frame, 30, 90)
    np.testing.assert_array_equal(random_frame.data, before)


def test_canny_suppression_border_rings_are_zero(random_frame):
    blurred = gaussian_blur(compute_luma(random_frame))
    suppressed = non_maximum_suppression(compute_gradients(blurred, 3, extra_margin=1)).data
    assert not suppressed[:2].any() and not suppressed[-2:].any()
    assert not suppressed[:, :2].any() and not suppressed[:, -2:].any()


def test_uniform_color_frame_has_no_edges():
    edges = apply_canny(make_frame((10, 200, 40), 7, 5), 1, 2).data
    assert not edges[:, :, :3].any()
