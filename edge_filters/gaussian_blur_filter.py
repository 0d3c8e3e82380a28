"""
Filtro: GaussianBlurFilter
"""

import cv2
import numpy as np
from typing import Dict, Any
from .base_filter import BaseFilter
from .grayscale_filter import compute_luma, preview_from_float
from .raster import Raster, clear_border


# Kernel gaussiano 3x3 fijo: [[1,2,1],[2,4,2],[1,2,1]] / 16
GAUSSIAN_KERNEL_3X3 = np.array([
    [1, 2, 1],
    [2, 4, 2],
    [1, 2, 1]
], dtype=np.float32) / 16.0


def gaussian_blur(luma: Raster) -> Raster:
    """
    Suavizado gaussiano 3x3 sobre un raster de un canal.

    Solo se calculan los píxeles interiores; el marco exterior de un píxel
    queda en cero (no se replica ni se refleja el borde).
    """
    if luma.is_rgba:
        luma = compute_luma(luma)

    blurred = cv2.filter2D(luma.data, cv2.CV_32F, GAUSSIAN_KERNEL_3X3,
                           borderType=cv2.BORDER_CONSTANT)
    clear_border(blurred, 1)
    return Raster(luma.width, luma.height, Raster.SINGLE_CHANNEL, blurred)


class GaussianBlurFilter(BaseFilter):
    """Aplica desenfoque gaussiano 3x3 fijo (reducción de ruido para Canny)"""

    FILTER_NAME = "GaussianBlur3x3"
    DESCRIPTION = "Desenfoque gaussiano 3x3 fijo; el borde de 1 píxel queda en cero"
    INPUTS = {
        "input_image": "float_raster"
    }
    OUTPUTS = {
        "blurred_image": "float_raster",
        "sample_image": "raster"
    }

    def process(self, inputs: Dict[str, Any], original_frame: Raster) -> Dict[str, Any]:
        input_img = inputs.get("input_image", original_frame)

        blurred = gaussian_blur(input_img)

        sample = None
        if not self.without_preview:
            sample = preview_from_float(blurred)

        return {
            "blurred_image": blurred,
            "sample_image": sample
        }
