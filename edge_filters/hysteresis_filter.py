"""
Filtro: HysteresisFilter
"""

import numpy as np
from typing import Dict, Any
from .base_filter import BaseFilter
from .raster import Raster


STRONG_EDGE = 255
WEAK_EDGE = 75
BACKGROUND = 0


def double_threshold(suppressed: Raster, low_threshold: float, high_threshold: float) -> Raster:
    """
    Clasificación en dos niveles.

        valor >= high          -> borde fuerte (255,255,255,255)
        low <= valor < high    -> borde débil  (75,75,75,255)
        resto                  -> fondo        (0,0,0,255)

    No hay análisis de conectividad: los débiles se emiten tal cual.
    Cualquier umbral numérico es válido (negativo, > 255, low >= high);
    el resultado sigue únicamente las comparaciones.
    """
    low = float(low_threshold)
    high = float(high_threshold)
    values = suppressed.data

    strong = values >= high
    weak = ~strong & (values >= low)

    edges = np.full((suppressed.height, suppressed.width), BACKGROUND, dtype=np.uint8)
    edges[weak] = WEAK_EDGE
    edges[strong] = STRONG_EDGE

    rgba = np.dstack([edges, edges, edges, np.full_like(edges, 255)])
    return Raster(suppressed.width, suppressed.height, Raster.RGBA_CHANNELS, rgba)


class HysteresisFilter(BaseFilter):
    """Umbral doble: fondo / borde débil / borde fuerte"""

    FILTER_NAME = "Hysteresis"
    DESCRIPTION = "Clasifica la magnitud suprimida en fondo, borde débil (75) y fuerte (255)"
    INPUTS = {
        "input_image": "float_raster"
    }
    OUTPUTS = {
        "edge_image": "raster",
        "sample_image": "raster"
    }
    PARAMS = {
        "low_threshold": {
            "default": 50,
            "min": 0,
            "max": 200,
            "step": 5,
            "description": "Umbral inferior (borde débil)"
        },
        "high_threshold": {
            "default": 150,
            "min": 0,
            "max": 255,
            "step": 5,
            "description": "Umbral superior (borde fuerte)"
        }
    }
    OPTION_PARAMS = {
        "low_threshold": "canny_low_threshold",
        "high_threshold": "canny_high_threshold"
    }

    def process(self, inputs: Dict[str, Any], original_frame: Raster) -> Dict[str, Any]:
        suppressed = inputs.get("input_image")
        if suppressed is None:
            raise ValueError("Hysteresis requiere el input 'input_image'")

        edges = double_threshold(suppressed, self.params["low_threshold"],
                                 self.params["high_threshold"])

        return {
            "edge_image": edges,
            "sample_image": None if self.without_preview else edges
        }
