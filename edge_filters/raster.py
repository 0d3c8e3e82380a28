"""
Raster - Buffers de píxeles usados por todos los filtros
========================================================

Raster: buffer rectangular row-major. Dos layouts posibles:
    - RGBA de 8 bits, shape (alto, ancho, 4), para entrada/salida visible
    - Un canal float32, shape (alto, ancho), para etapas intermedias
GradientField: par magnitud/dirección co-indexado píxel a píxel
"""

from typing import Any, Optional, Tuple

import numpy as np


class RasterError(ValueError):
    """Raster mal formado (dimensiones o longitud de buffer inválidas)"""


class Raster:
    """Buffer de píxeles con dimensiones inmutables"""

    RGBA_CHANNELS = 4
    SINGLE_CHANNEL = 1
    DTYPES = {RGBA_CHANNELS: np.uint8, SINGLE_CHANNEL: np.float32}

    def __init__(self, width: int, height: int, channels: int = RGBA_CHANNELS,
                 data: Optional[Any] = None):
        """
        Crea un raster validando dimensiones y buffer.

        Args:
            width: Ancho en píxeles (> 0)
            height: Alto en píxeles (> 0)
            channels: 4 (RGBA uint8) o 1 (float32)
            data: Buffer opcional; si es None se crea en ceros

        Raises:
            RasterError: si las dimensiones o la longitud del buffer no son válidas
        """
        self._check_dimensions(width, height)
        if channels not in self.DTYPES:
            raise RasterError(f"Número de canales no soportado: {channels} (usar 1 o 4)")

        self._width = int(width)
        self._height = int(height)
        self._channels = channels
        self._data = self._prepare_data(data)

    @staticmethod
    def _check_dimensions(width: Any, height: Any):
        for name, value in (("width", width), ("height", height)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise RasterError(f"{name} debe ser entero, recibido {value!r}")
            if value <= 0:
                raise RasterError(f"{name} debe ser > 0, recibido {value}")

    def _check_rgba_values(self, array: np.ndarray):
        """Los canales RGBA son enteros de 8 bits: nada de floats ni valores fuera de [0, 255]"""
        if array.dtype == np.uint8:
            return
        if not np.issubdtype(array.dtype, np.integer):
            raise RasterError(f"Un raster RGBA requiere datos enteros, recibido {array.dtype}")
        if array.min() < 0 or array.max() > 255:
            raise RasterError(
                f"Valores RGBA fuera de [0, 255]: min {array.min()}, max {array.max()}"
            )

    def _prepare_data(self, data: Optional[Any]) -> np.ndarray:
        dtype = self.DTYPES[self._channels]
        if data is None:
            return np.zeros(self.shape, dtype=dtype)

        array = np.asarray(data)
        expected = self._width * self._height * self._channels
        if array.size != expected:
            raise RasterError(
                f"Longitud de buffer {array.size} != {self._width}x{self._height}x"
                f"{self._channels} ({expected})"
            )
        if self.is_rgba:
            self._check_rgba_values(array)
        return array.astype(dtype, copy=False).reshape(self.shape)

    @classmethod
    def from_buffer(cls, width: int, height: int, buffer: Any) -> "Raster":
        """Crea un raster RGBA desde un buffer plano de bytes (R,G,B,A intercalados)"""
        if isinstance(buffer, (bytes, bytearray, memoryview)):
            array = np.frombuffer(buffer, dtype=np.uint8)
        else:
            array = np.asarray(buffer)
        return cls(width, height, cls.RGBA_CHANNELS, array)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "Raster":
        """Crea un raster infiriendo dimensiones de un ndarray (alto, ancho[, 4])"""
        array = np.asarray(array)
        if array.ndim == 2:
            height, width = array.shape
            return cls(width, height, cls.SINGLE_CHANNEL, array)
        if array.ndim == 3 and array.shape[2] == cls.RGBA_CHANNELS:
            height, width = array.shape[:2]
            return cls(width, height, cls.RGBA_CHANNELS, array)
        raise RasterError(f"Shape no soportado para raster: {array.shape}")

    @property
    def data(self) -> np.ndarray:
        return self._data

    @data.setter
    def data(self, array: np.ndarray):
        """Reemplaza el contenido; shape y dtype deben coincidir (para cambiar dimensiones usar resize)"""
        array = np.asarray(array)
        dtype = self.DTYPES[self._channels]
        if array.shape != self.shape or array.dtype != dtype:
            raise RasterError(
                f"Buffer {array.shape} {array.dtype} incompatible con raster "
                f"{self.shape} {np.dtype(dtype)}"
            )
        self._data = array

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def channels(self) -> int:
        return self._channels

    @property
    def shape(self) -> Tuple[int, ...]:
        if self._channels == self.SINGLE_CHANNEL:
            return (self._height, self._width)
        return (self._height, self._width, self._channels)

    @property
    def is_rgba(self) -> bool:
        return self._channels == self.RGBA_CHANNELS

    def resize(self, width: int, height: int):
        """Reasigna dimensiones explícitamente. El contenido anterior se descarta."""
        self._check_dimensions(width, height)
        self._width = int(width)
        self._height = int(height)
        self._data = np.zeros(self.shape, dtype=self.DTYPES[self._channels])

    def copy(self) -> "Raster":
        return Raster(self._width, self._height, self._channels, self.data.copy())

    def to_bytes(self) -> bytes:
        """Buffer plano row-major, listo para subir como textura"""
        return np.ascontiguousarray(self.data).tobytes()

    def __repr__(self) -> str:
        return f"Raster({self._width}x{self._height}, channels={self._channels})"


class GradientField:
    """Magnitud (>= 0) y dirección (radianes, (-pi, pi]) del gradiente"""

    def __init__(self, magnitude: Raster, direction: Raster):
        for name, raster in (("magnitude", magnitude), ("direction", direction)):
            if raster.channels != Raster.SINGLE_CHANNEL:
                raise RasterError(f"{name} debe ser un raster de un canal")
        if (magnitude.width, magnitude.height) != (direction.width, direction.height):
            raise RasterError(
                f"Dimensiones distintas: magnitud {magnitude.width}x{magnitude.height}, "
                f"dirección {direction.width}x{direction.height}"
            )
        self.magnitude = magnitude
        self.direction = direction

    @property
    def width(self) -> int:
        return self.magnitude.width

    @property
    def height(self) -> int:
        return self.magnitude.height


def clear_border(array: np.ndarray, margin: int = 1) -> np.ndarray:
    """Pone a cero el marco exterior de `margin` píxeles (in place)"""
    if margin <= 0:
        return array
    array[:margin] = 0
    array[-margin:] = 0
    array[:, :margin] = 0
    array[:, -margin:] = 0
    return array
