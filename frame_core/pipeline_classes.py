"""
Pipeline Classes - Componentes centrales del sistema
====================================================

ProcessingOptions: Umbrales de Canny y tamaño de kernel Sobel (por llamada)
FilterMode: Selector de la secuencia de etapas (raw, grayscale, sobel, canny)
PipelineProcessor: Ejecuta un grafo ordenado de filtros sobre un frame
FrameProcessor: Punto de entrada "procesar un frame" con despacho por modo
ImageBrowser: Maneja la navegación de imágenes en carpetas
"""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Any, Optional, Tuple
from collections import OrderedDict

import cv2
import numpy as np

# Importar biblioteca de filtros
from edge_filters import get_filter, BaseFilter, Raster

logger = logging.getLogger(__name__)


class PipelineError(ValueError):
    """Definición de pipeline inválida"""


class FilterMode(str, Enum):
    """Secuencia de etapas a ejecutar sobre cada frame"""

    RAW = "raw"
    GRAYSCALE = "grayscale"
    SOBEL = "sobel"
    CANNY = "canny"


class ProcessingOptions:
    """Opciones de procesamiento, se pasan frescas en cada llamada"""

    DEFAULTS = OrderedDict([
        ("canny_low_threshold", 50),
        ("canny_high_threshold", 150),
        ("sobel_kernel_size", 3),
    ])

    # Nombres alternativos aceptados en configuraciones JSON
    ALIASES = {
        "cannyLowThreshold": "canny_low_threshold",
        "cannyHighThreshold": "canny_high_threshold",
        "cannyThreshold1": "canny_low_threshold",
        "cannyThreshold2": "canny_high_threshold",
        "sobelKernelSize": "sobel_kernel_size",
    }

    def __init__(self, canny_low_threshold: float = 50, canny_high_threshold: float = 150,
                 sobel_kernel_size: int = 3):
        self.canny_low_threshold = canny_low_threshold
        self.canny_high_threshold = canny_high_threshold
        self.sobel_kernel_size = sobel_kernel_size

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ProcessingOptions":
        """Crea opciones desde un dict (snake_case o camelCase); claves desconocidas se ignoran"""
        values = dict(cls.DEFAULTS)
        for key, value in (data or {}).items():
            name = cls.ALIASES.get(key, key)
            if name in values:
                values[name] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return OrderedDict((name, getattr(self, name)) for name in self.DEFAULTS)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ProcessingOptions):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        fields = ", ".join(f"{k}={v!r}" for k, v in self.to_dict().items())
        return f"ProcessingOptions({fields})"


# Pipelines predefinidos por modo: (definición de filtros, "filter_id.output_name")
MODE_PIPELINES: Dict[FilterMode, Tuple[Dict[str, Dict], str]] = {
    FilterMode.GRAYSCALE: (
        {"grayscale": {"filter_name": "Grayscale",
                       "inputs": {"input_image": "original.frame"}}},
        "grayscale.grayscale_image"
    ),
    FilterMode.SOBEL: (
        {"sobel": {"filter_name": "Sobel",
                   "inputs": {"input_image": "original.frame"}}},
        "sobel.sobel_image"
    ),
    FilterMode.CANNY: (
        {"canny": {"filter_name": "CannyEdge",
                   "inputs": {"input_image": "original.frame"}}},
        "canny.edge_image"
    ),
}


class PipelineProcessor:
    """Procesa un pipeline de filtros sobre un frame"""

    ORIGINAL_SOURCE = "original"

    def __init__(self, pipeline: Dict[str, Dict], without_preview: bool = False):
        self.without_preview = without_preview
        self.pipeline: OrderedDict = OrderedDict(pipeline)
        # Asignar orden implícito basado en posición
        self.filter_order: Dict[str, int] = {filter_id: i
                                             for i, filter_id in enumerate(self.pipeline.keys())}

    @classmethod
    def from_file(cls, pipeline_path: str, without_preview: bool = False) -> "PipelineProcessor":
        """Carga el pipeline desde JSON preservando orden"""
        path = Path(pipeline_path)
        if not path.exists():
            raise FileNotFoundError(f"No se encontró {pipeline_path}")

        try:
            with open(path, 'r') as f:
                data = json.load(f, object_pairs_hook=OrderedDict)
        except json.JSONDecodeError as e:
            raise PipelineError(f"JSON inválido en pipeline {pipeline_path}: {e}")

        pipeline = data.get('filters', OrderedDict())
        logger.info("Pipeline cargado: %d filtros", len(pipeline))
        return cls(pipeline, without_preview=without_preview)

    @classmethod
    def for_mode(cls, mode: FilterMode, without_preview: bool = True) -> "PipelineProcessor":
        """Pipeline predefinido para un modo distinto de raw"""
        mode = FilterMode(mode)
        if mode not in MODE_PIPELINES:
            raise PipelineError(f"El modo '{mode.value}' no tiene pipeline")
        filters, _ = MODE_PIPELINES[mode]
        return cls(filters, without_preview=without_preview)

    def validate_pipeline(self) -> List[str]:
        """Valida que el pipeline tenga conexiones correctas"""
        errors = []

        for filter_id, filter_config in self.pipeline.items():
            filter_name = filter_config.get('filter_name')
            filter_class = get_filter(filter_name)

            if filter_class is None:
                errors.append(f"Filtro {filter_id}: '{filter_name}' no existe")
                continue

            inputs_config = filter_config.get('inputs', {})

            for input_name, source in inputs_config.items():
                if input_name not in filter_class.INPUTS:
                    errors.append(f"Filtro {filter_id}: input desconocido '{input_name}'")

                # Validar formato "filter_id.output_name"
                if '.' not in source:
                    errors.append(f"Filtro {filter_id}: formato inválido '{source}', debe ser 'filter_id.output_name'")
                    continue

                source_id, output_name = source.split('.', 1)

                # Referencia especial al frame original
                if source_id == self.ORIGINAL_SOURCE:
                    continue

                if source_id not in self.pipeline:
                    errors.append(f"Filtro {filter_id}: referencia a filtro inexistente '{source_id}'")
                    continue

                if self.filter_order.get(source_id, 999) >= self.filter_order.get(filter_id, 0):
                    errors.append(f"Filtro {filter_id}: referencia a filtro posterior '{source_id}'")

                source_filter = get_filter(self.pipeline[source_id].get('filter_name'))
                if source_filter and output_name not in source_filter.OUTPUTS:
                    errors.append(f"Filtro {filter_id}: filtro {source_id} no produce '{output_name}'")

        return errors

    def instantiate_filters(self, options: Optional[ProcessingOptions] = None,
                            up_to: Optional[str] = None) -> Dict[str, BaseFilter]:
        """
        Crea instancias nuevas de los filtros para una llamada.

        Los params fijos del pipeline se aplican primero; las opciones de la
        llamada (si se pasan) sobrescriben los params que cada filtro mapea
        en OPTION_PARAMS.
        """
        errors = self.validate_pipeline()
        if errors:
            raise PipelineError("Pipeline inválido:\n  " + "\n  ".join(errors))

        instances = {}
        last_order = self.filter_order.get(up_to, len(self.pipeline)) if up_to else len(self.pipeline)

        for filter_id in self.get_sorted_ids():
            if self.filter_order[filter_id] > last_order:
                break

            filter_config = self.pipeline[filter_id]
            filter_class = get_filter(filter_config['filter_name'])

            params = dict(filter_config.get('params', {}))
            params.update(filter_class.params_from_options(options))

            instances[filter_id] = filter_class(params, without_preview=self.without_preview)
            logger.debug("Filtro %s: %s instanciado con %s", filter_id,
                         filter_class.FILTER_NAME, params)

        return instances

    def process_up_to(self, target_id: str, frame: Raster,
                      options: Optional[ProcessingOptions] = None) -> Dict[str, Dict[str, Any]]:
        """
        Procesa todos los filtros hasta el ID especificado.

        Returns:
            Outputs de cada filtro procesado {filter_id: {output_name: valor}}.
            El dict es nuevo en cada llamada; no queda estado entre frames.
        """
        if target_id not in self.pipeline:
            raise PipelineError(f"Filtro '{target_id}' no existe en el pipeline")

        instances = self.instantiate_filters(options, up_to=target_id)
        filter_outputs: Dict[str, Dict[str, Any]] = {}

        for filter_id, filter_instance in instances.items():
            inputs = self._collect_inputs(filter_id, frame, filter_outputs)
            filter_outputs[filter_id] = filter_instance.process(inputs, frame)

        return filter_outputs

    def process(self, frame: Raster,
                options: Optional[ProcessingOptions] = None) -> Dict[str, Dict[str, Any]]:
        """Procesa el pipeline completo"""
        sorted_ids = self.get_sorted_ids()
        if not sorted_ids:
            return {}
        return self.process_up_to(sorted_ids[-1], frame, options)

    def _collect_inputs(self, filter_id: str, frame: Raster,
                        filter_outputs: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
        """Recolecta inputs de filtros anteriores"""
        inputs = {}
        for input_name, source in self.pipeline[filter_id].get('inputs', {}).items():
            source_id, output_name = source.split('.', 1)

            if source_id == self.ORIGINAL_SOURCE:
                inputs[input_name] = frame
            elif source_id in filter_outputs:
                inputs[input_name] = filter_outputs[source_id].get(output_name)
        return inputs

    def get_filter_count(self) -> int:
        """Retorna el número de filtros en el pipeline"""
        return len(self.pipeline)

    def get_sorted_ids(self) -> List[str]:
        """Retorna los IDs de filtros ordenados"""
        return list(self.pipeline.keys())

    def get_filter_name(self, filter_id: str) -> str:
        """Obtiene el nombre de un filtro"""
        if filter_id in self.pipeline:
            return self.pipeline[filter_id].get('filter_name', 'Unknown')
        return 'Unknown'

    def get_filter_order(self, filter_id: str) -> int:
        """Obtiene el orden de un filtro"""
        return self.filter_order.get(filter_id, 999)

    def get_output_type(self, filter_id: str, output_name: str) -> str:
        """Obtiene el tipo de un output consultando la clase del filtro"""
        filter_class = get_filter(self.get_filter_name(filter_id))
        if filter_class and output_name in filter_class.OUTPUTS:
            return filter_class.OUTPUTS[output_name]
        return "unknown"


class FrameProcessor:
    """
    Procesa un frame completo según el modo activo.

    Es el único punto de entrada por frame: quien programa las llamadas
    (refresco de pantalla, bucle de captura) vive fuera de este núcleo.
    El modo y las opciones llegan en cada llamada, así que un cambio de modo
    se aplica en el frame siguiente.
    """

    def __init__(self):
        self.processors: Dict[FilterMode, PipelineProcessor] = {
            mode: PipelineProcessor.for_mode(mode) for mode in MODE_PIPELINES
        }

    def process_frame(self, frame: Raster, mode: FilterMode = FilterMode.RAW,
                      options: Optional[ProcessingOptions] = None) -> Raster:
        """
        Procesa un frame RGBA y retorna el raster RGBA a dibujar.

        Raises:
            ValueError: si el modo no existe
            RasterError: si el frame no es un raster RGBA válido
        """
        mode = FilterMode(mode)
        if not isinstance(frame, Raster):
            raise TypeError(f"Se esperaba un Raster, recibido {type(frame).__name__}")

        # raw es identidad: mismo objeto, sin copias
        if mode is FilterMode.RAW:
            return frame

        if options is None:
            options = ProcessingOptions()

        _, target = MODE_PIPELINES[mode]
        target_id, output_name = target.split('.', 1)

        outputs = self.processors[mode].process_up_to(target_id, frame, options)
        return outputs[target_id][output_name]


class ImageBrowser:
    """Maneja la navegación de imágenes"""

    SUPPORTED_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.bmp', '.tiff', '.tif', '.webp'}

    def __init__(self, folder_path: str):
        self.folder_path = Path(folder_path)
        self.images: List[Path] = []
        self.current_index = 0

        self.scan_folder()

    def scan_folder(self):
        """Escanea el folder buscando imágenes"""
        self.images = []

        if not self.folder_path.exists():
            logger.error("Carpeta '%s' no existe", self.folder_path)
            return

        for file in sorted(self.folder_path.iterdir()):
            if file.is_file() and file.suffix.lower() in self.SUPPORTED_EXTENSIONS:
                self.images.append(file)

        logger.info("Encontradas %d imágenes en %s", len(self.images), self.folder_path)

    def get_current_frame(self) -> Optional[Raster]:
        """Carga la imagen actual como frame RGBA"""
        if not self.images:
            return None

        img_path = self.images[self.current_index]
        frame = load_frame(img_path)

        if frame is None:
            logger.error("No se pudo cargar %s", img_path)

        return frame

    def get_current_name(self) -> str:
        """Retorna el nombre de la imagen actual"""
        if not self.images:
            return "Sin imágenes"
        return self.images[self.current_index].name

    def next_image(self):
        """Avanza a la siguiente imagen"""
        if self.images:
            self.current_index = (self.current_index + 1) % len(self.images)

    def get_image_count(self) -> int:
        """Retorna el número total de imágenes"""
        return len(self.images)


def load_frame(path) -> Optional[Raster]:
    """Lee una imagen con OpenCV y la convierte a frame RGBA"""
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        return None

    # PNG/TIFF de 16 bits
    if img.dtype == np.uint16:
        img = cv2.convertScaleAbs(img, alpha=255.0 / 65535.0)

    if img.ndim == 2:
        rgba = cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    elif img.shape[2] == 4:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    else:
        rgba = cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)

    return Raster.from_array(rgba)


def save_frame(frame: Raster, path) -> bool:
    """Guarda un frame RGBA con OpenCV (convierte a BGRA)"""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    bgra = cv2.cvtColor(np.ascontiguousarray(frame.data), cv2.COLOR_RGBA2BGRA)
    return bool(cv2.imwrite(str(path), bgra))
