"""
Biblioteca de Filtros para el procesamiento de frames de video
"""

from .base_filter import BaseFilter, FILTER_REGISTRY
from .raster import Raster, GradientField, RasterError

from .grayscale_filter import GrayscaleFilter, compute_luma, render_grayscale
from .gaussian_blur_filter import GaussianBlurFilter, gaussian_blur
from .gradient_filter import SobelGradientFilter, compute_gradients
from .sobel_filter import SobelFilter, apply_sobel
from .non_max_suppression import NonMaxSuppressionFilter, non_maximum_suppression
from .hysteresis_filter import HysteresisFilter, double_threshold
from .canny_edge_filter import CannyEdgeFilter, apply_canny


# Lista de todos los filtros disponibles
__all__ = [
    "BaseFilter",
    "FILTER_REGISTRY",
    "Raster",
    "GradientField",
    "RasterError",
    "GrayscaleFilter",
    "GaussianBlurFilter",
    "SobelGradientFilter",
    "SobelFilter",
    "NonMaxSuppressionFilter",
    "HysteresisFilter",
    "CannyEdgeFilter",
    "compute_luma",
    "render_grayscale",
    "gaussian_blur",
    "compute_gradients",
    "apply_sobel",
    "non_maximum_suppression",
    "double_threshold",
    "apply_canny",
    "get_filter",
    "list_filters",
    "get_filter_info",
]


def get_filter(name: str) -> type:
    """Obtiene una clase de filtro por nombre"""
    return FILTER_REGISTRY.get(name)


def list_filters() -> list:
    """Lista todos los filtros disponibles"""
    return list(FILTER_REGISTRY.keys())


def get_filter_info(name: str) -> dict:
    """Obtiene información sobre un filtro"""
    filter_class = FILTER_REGISTRY.get(name)
    if filter_class:
        return {
            "name": filter_class.FILTER_NAME,
            "description": filter_class.DESCRIPTION,
            "inputs": filter_class.INPUTS,
            "outputs": filter_class.OUTPUTS,
            "params": filter_class.PARAMS
        }
    return None
