"""
Filtro: NonMaxSuppressionFilter

Adelgaza las crestas de magnitud a un píxel de ancho comparando cada píxel
con sus dos vecinos en la dirección del gradiente.

Borde: x se acota con width-1 e y con height-1 de forma independiente, así
que frames no cuadrados se tratan igual que los cuadrados. Nunca se deriva un
único ancho de la longitud del buffer.
"""

import numpy as np
from typing import Dict, Any
from .base_filter import BaseFilter
from .grayscale_filter import preview_from_float
from .raster import Raster, GradientField


# Límites de los 4 bins de orientación, en grados sobre [0, 180)
BIN_BOUNDARIES = (22.5, 67.5, 112.5, 157.5)


def normalize_angle(direction: np.ndarray) -> np.ndarray:
    """Radianes -> grados en [0, 180) con ((deg % 180) + 180) % 180"""
    degrees = direction.astype(np.float64) * (180.0 / np.pi)
    return np.mod(np.mod(degrees, 180.0) + 180.0, 180.0)


def non_maximum_suppression(gradients: GradientField) -> Raster:
    """
    Supresión de no-máximos.

    Bins (grados normalizados):
        [0, 22.5) y [157.5, 180) -> horizontal, compara oeste/este
        [22.5, 67.5)             -> diagonal ↗, compara noreste/suroeste
        [67.5, 112.5)            -> vertical, compara norte/sur
        [112.5, 157.5)           -> diagonal ↘, compara noroeste/sureste

    La magnitud se conserva solo si es >= que ambos vecinos; el resto y el
    borde exterior quedan en cero.
    """
    width, height = gradients.width, gradients.height
    magnitude = gradients.magnitude.data
    suppressed = np.zeros((height, width), dtype=np.float32)

    if width < 3 or height < 3:
        return Raster(width, height, Raster.SINGLE_CHANNEL, suppressed)

    angle = normalize_angle(gradients.direction.data)[1:-1, 1:-1]
    center = magnitude[1:-1, 1:-1]

    west, east = magnitude[1:-1, :-2], magnitude[1:-1, 2:]
    north, south = magnitude[:-2, 1:-1], magnitude[2:, 1:-1]
    north_east, south_west = magnitude[:-2, 2:], magnitude[2:, :-2]
    north_west, south_east = magnitude[:-2, :-2], magnitude[2:, 2:]

    low, mid_low, mid_high, high = BIN_BOUNDARIES
    horizontal = (angle < low) | (angle >= high)
    rising = (angle >= low) & (angle < mid_low)
    vertical = (angle >= mid_low) & (angle < mid_high)
    conditions = [horizontal, rising, vertical]

    neighbor1 = np.select(conditions, [west, north_east, north], default=north_west)
    neighbor2 = np.select(conditions, [east, south_west, south], default=south_east)

    keep = (center >= neighbor1) & (center >= neighbor2)
    suppressed[1:-1, 1:-1] = np.where(keep, center, 0)

    return Raster(width, height, Raster.SINGLE_CHANNEL, suppressed)


class NonMaxSuppressionFilter(BaseFilter):
    """Supresión de no-máximos sobre un campo de gradiente"""

    FILTER_NAME = "NonMaxSuppression"
    DESCRIPTION = "Adelgaza bordes a 1 píxel conservando máximos locales en la dirección del gradiente"
    INPUTS = {
        "gradients": "gradient_field"
    }
    OUTPUTS = {
        "suppressed_image": "float_raster",
        "sample_image": "raster"
    }

    def process(self, inputs: Dict[str, Any], original_frame: Raster) -> Dict[str, Any]:
        gradients = inputs.get("gradients")
        if gradients is None:
            raise ValueError("NonMaxSuppression requiere el input 'gradients'")

        suppressed = non_maximum_suppression(gradients)

        sample = None
        if not self.without_preview:
            sample = preview_from_float(suppressed)

        return {
            "suppressed_image": suppressed,
            "sample_image": sample
        }
