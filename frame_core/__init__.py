"""
Core - Componentes centrales del procesamiento de frames
========================================================

Contiene clases y utilidades compartidas entre el núcleo y los scripts.
"""

from .pipeline_classes import (
    FilterMode,
    ProcessingOptions,
    PipelineProcessor,
    PipelineError,
    FrameProcessor,
    ImageBrowser,
    MODE_PIPELINES,
    load_frame,
    save_frame,
)
from .logger import setup_logger

__all__ = [
    'FilterMode',
    'ProcessingOptions',
    'PipelineProcessor',
    'PipelineError',
    'FrameProcessor',
    'ImageBrowser',
    'MODE_PIPELINES',
    'load_frame',
    'save_frame',
    'setup_logger',
]

__version__ = '1.0.0'
