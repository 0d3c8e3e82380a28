"""Etapas individuales: luma, blur, kernels, gradiente, Sobel"""

import numpy as np
import pytest

from edge_filters import (
    Raster,
    apply_sobel,
    compute_gradients,
    compute_luma,
    gaussian_blur,
    render_grayscale,
)
from edge_filters.kernels import resolve_kernel_size, sobel_kernels

from conftest import make_frame


def border_ring(array):
    return np.concatenate([array[0], array[-1], array[:, 0], array[:, -1]])


# --- Luma --------------------------------------------------------------------

def test_luma_uses_bt601_weights_and_ignores_alpha():
    frame = make_frame((255, 0, 0), 3, 3, alpha=0)
    luma = compute_luma(frame)

    assert luma.channels == 1
    assert luma.data.dtype == np.float32
    np.testing.assert_allclose(luma.data, 0.299 * 255, rtol=1e-6)

    mixed = compute_luma(make_frame((10, 20, 30), 2, 2))
    np.testing.assert_allclose(mixed.data, 0.299 * 10 + 0.587 * 20 + 0.114 * 30, rtol=1e-6)


def test_grayscale_is_idempotent(random_frame):
    gray = render_grayscale(random_frame)
    again = compute_luma(gray)

    np.testing.assert_allclose(again.data, gray.data[:, :, 0].astype(np.float32), atol=1e-3)
    np.testing.assert_array_equal(render_grayscale(gray).data[:, :, :3], gray.data[:, :, :3])


def test_grayscale_output_copies_alpha_and_equalizes_channels(random_frame):
    gray = render_grayscale(random_frame)

    np.testing.assert_array_equal(gray.data[:, :, 3], random_frame.data[:, :, 3])
    np.testing.assert_array_equal(gray.data[:, :, 0], gray.data[:, :, 1])
    np.testing.assert_array_equal(gray.data[:, :, 1], gray.data[:, :, 2])


def test_luma_of_single_channel_is_a_copy():
    single = Raster.from_array(np.full((3, 3), 42.0, dtype=np.float32))
    luma = compute_luma(single)
    luma.data[0, 0] = 0
    assert single.data[0, 0] == 42.0


# --- Blur --------------------------------------------------------------------

def test_blur_leaves_border_at_zero(random_frame):
    blurred = gaussian_blur(compute_luma(random_frame))
    assert not border_ring(blurred.data).any()


def test_blur_interior_matches_kernel():
    values = np.arange(25, dtype=np.float32).reshape(5, 5)
    blurred = gaussian_blur(Raster.from_array(values))

    kernel = np.array([[1, 2, 1], [2, 4, 2], [1, 2, 1]], dtype=np.float64)
    expected = (values[1:4, 1:4].astype(np.float64) * kernel).sum() / 16
    assert blurred.data[2, 2] == pytest.approx(expected)


def test_blur_of_tiny_raster_is_all_zero():
    blurred = gaussian_blur(Raster.from_array(np.full((2, 5), 9.0, dtype=np.float32)))
    assert not blurred.data.any()


# --- Kernels -----------------------------------------------------------------

def test_sobel_3x3_taps():
    gx, gy = sobel_kernels(3)
    np.testing.assert_array_equal(gx, [[-1, 0, 1], [-2, 0, 2], [-1, 0, 1]])
    np.testing.assert_array_equal(gy, [[-1, -2, -1], [0, 0, 0], [1, 2, 1]])


@pytest.mark.parametrize("size", [5, 7])
def test_larger_kernels_are_antisymmetric(size):
    gx, gy = sobel_kernels(size)
    assert gx.shape == (size, size)
    np.testing.assert_array_equal(gx[:, ::-1], -gx)
    np.testing.assert_array_equal(gy, gx.T)


@pytest.mark.parametrize("value,expected", [(3, 3), (5, 5), (7, 7), (5.0, 5),
                                            (4, 3), (9, 3), (1, 3), (None, 3), ("x", 3)])
def test_unsupported_kernel_sizes_fall_back_to_3(value, expected):
    assert resolve_kernel_size(value) == expected


# --- Gradiente ---------------------------------------------------------------

def test_gradient_magnitude_and_direction_ranges(random_frame):
    gradients = compute_gradients(compute_luma(random_frame))
    pi = np.float32(np.pi)

    assert (gradients.magnitude.data >= 0).all()
    assert (gradients.direction.data > -pi).all()
    assert (gradients.direction.data <= pi).all()


def test_gradient_border_is_zero(random_frame):
    gradients = compute_gradients(compute_luma(random_frame))
    assert not border_ring(gradients.magnitude.data).any()
    assert not border_ring(gradients.direction.data).any()


def test_gradient_extra_margin_clears_second_ring(random_frame):
    gradients = compute_gradients(compute_luma(random_frame), 3, extra_margin=1)
    assert not gradients.magnitude.data[:2].any()
    assert not gradients.magnitude.data[:, -2:].any()


def test_gradient_pointing_left_is_pi():
    # Brillo decreciente hacia la derecha: gx < 0, gy = 0 -> dirección pi
    values = np.tile(np.array([200, 100, 0], dtype=np.float32), (3, 1))
    gradients = compute_gradients(Raster.from_array(values))

    assert gradients.magnitude.data[1, 1] == pytest.approx(800)
    assert gradients.direction.data[1, 1] == pytest.approx(np.pi)


# --- Sobel -------------------------------------------------------------------

def test_vertical_edge_gradient_is_horizontal(vertical_edge_frame):
    gradients = compute_gradients(compute_luma(vertical_edge_frame))
    magnitude = gradients.magnitude.data
    direction = gradients.direction.data

    # columnas 4 y 5 a ambos lados del corte, filas interiores
    assert (magnitude[1:-1, 4:6] > 1000).all()
    np.testing.assert_allclose(direction[1:-1, 4:6], 0, atol=1e-6)
    assert not magnitude[1:-1, 1:3].any()
    assert not magnitude[1:-1, 7:9].any()


def test_sobel_renders_clamped_magnitude(vertical_edge_frame):
    sobel = apply_sobel(vertical_edge_frame)

    assert sobel.is_rgba
    assert (sobel.width, sobel.height) == (vertical_edge_frame.width, vertical_edge_frame.height)
    assert (sobel.data[1:-1, 4:6, :3] == 255).all()
    assert not sobel.data[1:-1, 1:3, :3].any()
    assert not sobel.data[1:-1, 7:9, :3].any()
    assert (sobel.data[:, :, 3] == 255).all()


def test_sobel_kernel_size_changes_border():
    frame = make_frame((90, 90, 90), 12, 12)
    frame.data[:, 6:, :3] = 30
    sobel5 = apply_sobel(frame, 5)

    assert not sobel5.data[:2, :, :3].any()
    assert (sobel5.data[2:-2, 5:7, 0] > 0).all()
