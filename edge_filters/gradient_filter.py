"""
Filtro: SobelGradientFilter
"""

import cv2
import numpy as np
from typing import Dict, Any
from .base_filter import BaseFilter
from .grayscale_filter import compute_luma, preview_from_float
from .kernels import resolve_kernel_size, sobel_kernels, DEFAULT_KERNEL_SIZE
from .raster import Raster, GradientField, clear_border


def compute_gradients(luma: Raster, kernel_size: int = DEFAULT_KERNEL_SIZE,
                      extra_margin: int = 0) -> GradientField:
    """
    Estima el gradiente con kernels de Sobel.

    magnitude = sqrt(gx² + gy²), direction = atan2(gy, gx) en (-pi, pi].
    El anillo exterior (kernel_size // 2 píxeles, 1 para 3x3) queda en cero
    en ambos rasters. Un raster RGBA se convierte antes a luma.

    Args:
        extra_margin: píxeles adicionales de marco en cero. Tras el blur 3x3
            (cuyo borde es cero) se usa 1 para no medir ese escalón artificial.
    """
    if luma.is_rgba:
        luma = compute_luma(luma)

    ksize = resolve_kernel_size(kernel_size)
    kernel_x, kernel_y = sobel_kernels(ksize)

    gx = cv2.filter2D(luma.data, cv2.CV_32F, kernel_x, borderType=cv2.BORDER_CONSTANT)
    gy = cv2.filter2D(luma.data, cv2.CV_32F, kernel_y, borderType=cv2.BORDER_CONSTANT)

    magnitude = np.sqrt(gx * gx + gy * gy)
    direction = np.arctan2(gy, gx)
    # atan2(-0.0, x<0) = -pi; el rango es semiabierto por abajo
    direction[direction <= -np.pi] = np.pi

    margin = ksize // 2 + max(0, int(extra_margin))
    clear_border(magnitude, margin)
    clear_border(direction, margin)

    return GradientField(
        Raster(luma.width, luma.height, Raster.SINGLE_CHANNEL, magnitude),
        Raster(luma.width, luma.height, Raster.SINGLE_CHANNEL, direction)
    )


class SobelGradientFilter(BaseFilter):
    """Calcula magnitud y dirección del gradiente (Sobel)"""

    FILTER_NAME = "SobelGradient"
    DESCRIPTION = "Gradiente Sobel: magnitud sqrt(gx²+gy²) y dirección atan2(gy, gx)"
    INPUTS = {
        "input_image": "float_raster"
    }
    OUTPUTS = {
        "gradients": "gradient_field",
        "magnitude_image": "float_raster",
        "direction_image": "float_raster",
        "sample_image": "raster"
    }
    PARAMS = {
        "kernel_size": {
            "default": 3,
            "min": 3,
            "max": 7,
            "step": 2,
            "description": "Tamaño del kernel Sobel (3, 5 o 7)"
        },
        "border": {
            "default": 0,
            "min": 0,
            "max": 3,
            "step": 1,
            "description": "Marco extra en cero (1 si la entrada viene de GaussianBlur3x3)"
        }
    }

    def process(self, inputs: Dict[str, Any], original_frame: Raster) -> Dict[str, Any]:
        input_img = inputs.get("input_image", original_frame)

        gradients = compute_gradients(input_img, self.params["kernel_size"],
                                      self.params["border"])

        sample = None
        if not self.without_preview:
            sample = preview_from_float(gradients.magnitude)

        return {
            "gradients": gradients,
            "magnitude_image": gradients.magnitude,
            "direction_image": gradients.direction,
            "sample_image": sample
        }
