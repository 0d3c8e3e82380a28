"""Fixtures compartidos: frames RGBA sintéticos"""

import numpy as np
import pytest

from edge_filters import Raster
from frame_core import ProcessingOptions


def make_frame(rgb, width, height, alpha=255):
    """Frame RGBA uniforme"""
    data = np.empty((height, width, 4), dtype=np.uint8)
    data[:, :, :3] = rgb
    data[:, :, 3] = alpha
    return Raster.from_array(data)


def make_vertical_edge(width=10, height=8):
    """Mitad izquierda negra, mitad derecha blanca (corte en width // 2)"""
    data = np.zeros((height, width, 4), dtype=np.uint8)
    data[:, width // 2:, :3] = 255
    data[:, :, 3] = 255
    return Raster.from_array(data)


@pytest.fixture
def flat_gray_frame():
    return make_frame((128, 128, 128), 10, 10)


@pytest.fixture
def vertical_edge_frame():
    return make_vertical_edge()


@pytest.fixture
def random_frame():
    rng = np.random.default_rng(1234)
    data = rng.integers(0, 256, size=(9, 12, 4), dtype=np.uint8)
    return Raster.from_array(data)


@pytest.fixture
def default_options():
    return ProcessingOptions()
