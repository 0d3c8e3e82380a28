"""
Filtro: GrayscaleFilter
"""

import numpy as np
from typing import Dict, Any
from .base_filter import BaseFilter
from .raster import Raster


# Pesos de luma ITU-R BT.601 (R, G, B)
LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def compute_luma(raster: Raster) -> Raster:
    """
    Convierte un raster RGBA en intensidad de un canal (float32).

    luma = 0.299*R + 0.587*G + 0.114*B, el canal alpha se ignora.
    Un raster de un canal ya es luma: se devuelve una copia float32.
    """
    if not raster.is_rgba:
        return Raster(raster.width, raster.height, Raster.SINGLE_CHANNEL,
                      raster.data.astype(np.float32, copy=True))

    rgb = raster.data[:, :, :3].astype(np.float64)
    luma = (rgb @ LUMA_WEIGHTS).astype(np.float32)
    return Raster(raster.width, raster.height, Raster.SINGLE_CHANNEL, luma)


def to_display_channel(values: np.ndarray) -> np.ndarray:
    """Redondea (mitad a par) y satura al rango 0-255 de 8 bits"""
    return np.clip(np.rint(values), 0, 255).astype(np.uint8)


def preview_from_float(raster: Raster) -> Raster:
    """Visualización RGBA de un raster float (gris, alpha 255)"""
    gray = to_display_channel(raster.data)
    rgba = np.dstack([gray, gray, gray, np.full_like(gray, 255)])
    return Raster(raster.width, raster.height, Raster.RGBA_CHANNELS, rgba)


def render_grayscale(raster: Raster) -> Raster:
    """Salida del modo grayscale: luma en R, G y B; alpha del frame de entrada"""
    luma = compute_luma(raster)
    gray = to_display_channel(luma.data)

    out = np.empty((raster.height, raster.width, 4), dtype=np.uint8)
    out[:, :, 0] = gray
    out[:, :, 1] = gray
    out[:, :, 2] = gray
    out[:, :, 3] = raster.data[:, :, 3] if raster.is_rgba else 255
    return Raster(raster.width, raster.height, Raster.RGBA_CHANNELS, out)


class GrayscaleFilter(BaseFilter):
    """Convierte el frame a escala de grises (luma BT.601)"""

    FILTER_NAME = "Grayscale"
    DESCRIPTION = "Convierte RGBA a luma 0.299R + 0.587G + 0.114B (alpha ignorado)"
    INPUTS = {
        "input_image": "raster"
    }
    OUTPUTS = {
        "luma_image": "float_raster",
        "grayscale_image": "raster",
        "sample_image": "raster"
    }

    def process(self, inputs: Dict[str, Any], original_frame: Raster) -> Dict[str, Any]:
        input_img = inputs.get("input_image", original_frame)

        gray = render_grayscale(input_img)

        return {
            "luma_image": compute_luma(input_img),
            "grayscale_image": gray,
            "sample_image": None if self.without_preview else gray
        }
