"""
Filtro: SobelFilter
"""

from typing import Dict, Any
from .base_filter import BaseFilter
from .grayscale_filter import compute_luma, preview_from_float
from .gradient_filter import compute_gradients
from .kernels import DEFAULT_KERNEL_SIZE
from .raster import Raster


def apply_sobel(frame: Raster, kernel_size: int = DEFAULT_KERNEL_SIZE) -> Raster:
    """
    Modo sobel: luma -> gradiente (sin desenfoque) -> magnitud visible.

    La magnitud se satura a 0-255 en R, G y B; alpha es 255 en todo el
    raster, incluido el borde (0,0,0,255).
    """
    gradients = compute_gradients(compute_luma(frame), kernel_size)
    return preview_from_float(gradients.magnitude)


class SobelFilter(BaseFilter):
    """Operador de Sobel completo (modo de filtro independiente)"""

    FILTER_NAME = "Sobel"
    DESCRIPTION = "Magnitud del gradiente Sobel sobre la luma, sin supresión ni umbral"
    INPUTS = {
        "input_image": "raster"
    }
    OUTPUTS = {
        "sobel_image": "raster",
        "sample_image": "raster"
    }
    PARAMS = {
        "kernel_size": {
            "default": 3,
            "min": 3,
            "max": 7,
            "step": 2,
            "description": "Tamaño del kernel Sobel (3 verificado; 5 y 7 extensión)"
        }
    }
    OPTION_PARAMS = {
        "kernel_size": "sobel_kernel_size"
    }

    def process(self, inputs: Dict[str, Any], original_frame: Raster) -> Dict[str, Any]:
        input_img = inputs.get("input_image", original_frame)

        sobel = apply_sobel(input_img, self.params["kernel_size"])

        return {
            "sobel_image": sobel,
            "sample_image": None if self.without_preview else sobel
        }
