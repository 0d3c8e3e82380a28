"""
Kernels de Sobel
================

El contrato verificado es el kernel 3x3:
    Gx = [[-1,0,1],[-2,0,2],[-1,0,1]]
    Gy = [[-1,-2,-1],[0,0,0],[1,2,1]]

Los tamaños 5 y 7 son una extensión: se generan con los kernels derivativos
separables de OpenCV (cv2.getDerivKernels), que para 3 reproducen exactamente
los taps anteriores.
"""

import logging
from typing import Any, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)

SUPPORTED_KERNEL_SIZES = (3, 5, 7)
DEFAULT_KERNEL_SIZE = 3


def resolve_kernel_size(kernel_size: Any) -> int:
    """Devuelve un tamaño soportado; cualquier otro valor cae a 3"""
    try:
        size = int(kernel_size)
    except (TypeError, ValueError):
        size = None

    if size not in SUPPORTED_KERNEL_SIZES or size != kernel_size:
        logger.debug("Tamaño de kernel Sobel %r no soportado, usando %d",
                     kernel_size, DEFAULT_KERNEL_SIZE)
        return DEFAULT_KERNEL_SIZE
    return size


def sobel_kernels(kernel_size: int = DEFAULT_KERNEL_SIZE) -> Tuple[np.ndarray, np.ndarray]:
    """Retorna (Gx, Gy) como arrays float32 de kernel_size x kernel_size"""
    ksize = resolve_kernel_size(kernel_size)

    deriv_x, smooth_y = cv2.getDerivKernels(1, 0, ksize, ktype=cv2.CV_32F)
    smooth_x, deriv_y = cv2.getDerivKernels(0, 1, ksize, ktype=cv2.CV_32F)

    # kernel[fila][columna] = vertical[fila] * horizontal[columna]
    gx = np.outer(smooth_y.ravel(), deriv_x.ravel()).astype(np.float32)
    gy = np.outer(deriv_y.ravel(), smooth_x.ravel()).astype(np.float32)
    return gx, gy
