"""
Filtro: CannyEdgeFilter
"""

from typing import Dict, Any
from .base_filter import BaseFilter
from .gaussian_blur_filter import gaussian_blur
from .gradient_filter import compute_gradients
from .grayscale_filter import compute_luma
from .hysteresis_filter import double_threshold
from .non_max_suppression import non_maximum_suppression
from .raster import Raster


BLUR_BORDER = 1


def apply_canny(frame: Raster, low_threshold: float, high_threshold: float) -> Raster:
    """Luma -> blur 3x3 -> gradiente 3x3 -> supresión de no-máximos -> umbral doble"""
    luma = compute_luma(frame)
    blurred = gaussian_blur(luma)
    # El borde del blur es cero: el anillo contiguo no es un borde real
    gradients = compute_gradients(blurred, 3, extra_margin=BLUR_BORDER)
    suppressed = non_maximum_suppression(gradients)
    return double_threshold(suppressed, low_threshold, high_threshold)


class CannyEdgeFilter(BaseFilter):
    """Detector de bordes Canny"""

    FILTER_NAME = "CannyEdge"
    DESCRIPTION = "Detecta bordes: luma, blur 3x3, Sobel, supresión de no-máximos y umbral doble"
    INPUTS = {
        "input_image": "raster"
    }
    OUTPUTS = {
        "edge_image": "raster",
        "sample_image": "raster"
    }
    PARAMS = {
        "threshold1": {
            "default": 50,
            "min": 0,
            "max": 200,
            "step": 5,
            "description": "Umbral inferior para histéresis"
        },
        "threshold2": {
            "default": 150,
            "min": 0,
            "max": 255,
            "step": 5,
            "description": "Umbral superior para histéresis"
        }
    }
    OPTION_PARAMS = {
        "threshold1": "canny_low_threshold",
        "threshold2": "canny_high_threshold"
    }

    def process(self, inputs: Dict[str, Any], original_frame: Raster) -> Dict[str, Any]:
        input_img = inputs.get("input_image", original_frame)

        edges = apply_canny(input_img, self.params["threshold1"], self.params["threshold2"])

        return {
            "edge_image": edges,
            "sample_image": None if self.without_preview else edges
        }
