#!/usr/bin/env python3
"""
Batch Processor - Procesamiento por lotes sin GUI
==================================================

Aplica un modo de filtro (grayscale, sobel, canny) o un pipeline propio a
todas las imágenes de una carpeta, tratando cada imagen como un frame RGBA,
y guarda los outputs definidos en batch_config.json.

Uso:
    python batch_processor.py [--config batch_config.json] [--mode canny] [--overwrite]

Ejemplo de batch_config.json:
    {
        "source_folder": "frames",
        "mode": "canny",
        "options": {"canny_low_threshold": 40, "canny_high_threshold": 120},
        "targets": [
            {"filter_id": "canny", "output_name": "edge_image",
             "destination": {"folder": "out", "suffix": "_edges", "extension": "png"}}
        ]
    }

Con "pipeline": "pipeline.json" se usa un grafo de filtros propio en lugar del modo.
Si no se definen targets se guarda el output principal del modo.
"""

import sys
import logging
import json
from pathlib import Path
from typing import Dict, List, Any, Optional
from collections import OrderedDict

import numpy as np
from tqdm import tqdm  # Para progress bar

from frame_core import (
    FilterMode,
    ImageBrowser,
    MODE_PIPELINES,
    PipelineProcessor,
    ProcessingOptions,
    save_frame,
    setup_logger,
)
from edge_filters import Raster

logger = logging.getLogger("batch_processor")


class BatchConfig:
    """Maneja la configuración del procesamiento por lotes"""

    def __init__(self, config_path: str, mode_override: Optional[str] = None,
                 pipeline_override: Optional[str] = None):
        self.config_path = Path(config_path)
        self.config: Dict = {}
        self.source_folder: Path = Path(".")
        self.mode: Optional[FilterMode] = None
        self.pipeline_path: Optional[Path] = None
        self.options = ProcessingOptions()
        self.targets: List[Dict] = []

        self.load(mode_override, pipeline_override)

    def load(self, mode_override: Optional[str] = None, pipeline_override: Optional[str] = None):
        """Carga la configuración desde JSON"""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Archivo de configuración no encontrado: {self.config_path}")

        try:
            with open(self.config_path, 'r') as f:
                self.config = json.load(f, object_pairs_hook=OrderedDict)
        except json.JSONDecodeError as e:
            raise ValueError(f"JSON inválido en {self.config_path}: {e}")

        # Extraer campos
        self.source_folder = Path(self.config.get("source_folder", "."))
        self.options = ProcessingOptions.from_dict(self.config.get("options"))
        self.targets = self.config.get("targets", [])

        # Un modo pasado explícitamente reemplaza al pipeline de la configuración
        # y a sus targets, que referencian filtros de ese pipeline
        if pipeline_override:
            pipeline_str = pipeline_override
        elif mode_override:
            pipeline_str = None
            if self.config.get("pipeline"):
                logger.info("ℹ️  --mode %s reemplaza al pipeline %s de la configuración",
                            mode_override, self.config["pipeline"])
                self.targets = []
        else:
            pipeline_str = self.config.get("pipeline")
        mode_str = mode_override or self.config.get("mode")

        if pipeline_str:
            self.pipeline_path = Path(pipeline_str)
        elif mode_str:
            self.mode = FilterMode(mode_str)
            if self.mode is FilterMode.RAW:
                raise ValueError("El modo 'raw' no produce outputs que guardar")
            if not self.targets:
                self.targets = [self._default_target(self.mode)]
        else:
            raise ValueError("La configuración debe definir 'mode' o 'pipeline'")

        if not self.targets:
            raise ValueError("La configuración debe tener al menos un target")

        logger.info("✓ Configuración cargada: %d target(s)", len(self.targets))

    @staticmethod
    def _default_target(mode: FilterMode) -> Dict:
        """Target del output principal de un modo"""
        _, target = MODE_PIPELINES[mode]
        filter_id, output_name = target.split('.', 1)
        return {
            "filter_id": filter_id,
            "output_name": output_name,
            "destination": {"folder": f"output_{mode.value}", "suffix": f"_{mode.value}",
                            "extension": "png"}
        }

    def validate_structure(self):
        """Valida la estructura de cada target"""
        errors = []

        for i, target in enumerate(self.targets):
            if "filter_id" not in target:
                errors.append(f"Target {i}: falta campo 'filter_id'")

            if "output_name" not in target:
                errors.append(f"Target {i}: falta campo 'output_name'")

            if "destination" not in target:
                errors.append(f"Target {i}: falta campo 'destination'")
            elif not isinstance(target["destination"], dict):
                errors.append(f"Target {i}: 'destination' debe ser un objeto")

        if errors:
            raise ValueError("Errores en estructura de targets:\n  " + "\n  ".join(errors))

        logger.info("✓ Estructura de targets validada")


class BatchValidator:
    """Valida la configuración del batch contra el pipeline"""

    def __init__(self, batch_config: BatchConfig, processor: PipelineProcessor):
        self.batch_config = batch_config
        self.processor = processor

    def validate_all(self) -> bool:
        """Ejecuta todas las validaciones"""
        logger.info("VALIDANDO CONFIGURACIÓN DE BATCH")

        # 1. Pipeline bien conectado
        pipeline_errors = self.processor.validate_pipeline()
        if pipeline_errors:
            for error in pipeline_errors:
                logger.error("❌ %s", error)
            return False

        # 2. Carpeta fuente con imágenes
        if not self._validate_source_folder():
            return False

        # 3. Cada target
        if not self._validate_targets():
            return False

        # 4. Carpetas de destino
        if not self._create_destination_folders():
            return False

        logger.info("✅ VALIDACIÓN EXITOSA")
        return True

    def _validate_source_folder(self) -> bool:
        """Valida que la carpeta fuente existe y tiene imágenes"""
        source = self.batch_config.source_folder

        if not source.is_dir():
            logger.error("❌ Carpeta fuente no existe o no es carpeta: %s", source)
            return False

        img_count = ImageBrowser(str(source)).get_image_count()
        if img_count == 0:
            logger.error("❌ No se encontraron imágenes en: %s", source)
            return False

        logger.info("✓ Carpeta fuente: %s (%d imágenes)", source, img_count)
        return True

    def _validate_targets(self) -> bool:
        """Valida cada target contra el pipeline"""
        errors = []

        for i, target in enumerate(self.batch_config.targets):
            filter_id = target["filter_id"]
            output_name = target["output_name"]

            if filter_id not in self.processor.pipeline:
                errors.append(f"Target {i}: filter_id '{filter_id}' no existe en el pipeline")
                continue

            output_type = self.processor.get_output_type(filter_id, output_name)
            if output_type == "unknown":
                errors.append(f"Target {i}: output '{output_name}' no existe en filtro '{filter_id}'")
                continue

            logger.info("  ✓ Target %d: %s.%s (%s)", i, filter_id, output_name, output_type)

        if errors:
            for error in errors:
                logger.error("❌ %s", error)
            return False

        return True

    def _create_destination_folders(self) -> bool:
        """Crea las carpetas de destino si no existen"""
        for target in self.batch_config.targets:
            folder = target["destination"].get("folder")
            if not folder:
                continue
            try:
                Path(folder).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.error("❌ No se pudo crear carpeta '%s': %s", folder, e)
                return False
        return True


class OutputSaver:
    """Maneja el guardado de diferentes tipos de outputs"""

    @staticmethod
    def save(data: Any, output_path: Path, output_type: str) -> bool:
        """
        Guarda un output según su tipo.

        Args:
            data: Datos a guardar
            output_path: Path completo del archivo destino
            output_type: Tipo de output (raster, float_raster, gradient_field, ...)

        Returns:
            True si se guardó exitosamente
        """
        if data is None:
            logger.warning("  ⚠️  Output vacío, no se guardó: %s", output_path)
            return False

        output_path.parent.mkdir(parents=True, exist_ok=True)

        if output_type == "raster":
            return OutputSaver._save_raster(data, output_path)
        elif output_type == "float_raster":
            np.save(output_path.with_suffix(".npy"), data.data)
            return True
        elif output_type == "gradient_field":
            np.savez(output_path.with_suffix(".npz"),
                     magnitude=data.magnitude.data, direction=data.direction.data)
            return True
        else:
            with open(output_path, 'w') as f:
                json.dump(data, f, indent=2, default=str)
            return True

    @staticmethod
    def _save_raster(raster: Raster, path: Path) -> bool:
        """Guarda un raster RGBA como imagen"""
        if not save_frame(raster, path):
            logger.error("  ❌ cv2.imwrite falló: %s", path)
            return False
        return True


class BatchProcessor:
    """Procesador por lotes principal"""

    def __init__(self, batch_config_path: str = "batch_config.json",
                 mode: Optional[str] = None, pipeline_path: Optional[str] = None):

        self.batch_config_path = batch_config_path
        self.mode = mode
        self.pipeline_path = pipeline_path

        # Componentes
        self.batch_config: Optional[BatchConfig] = None
        self.processor: Optional[PipelineProcessor] = None
        self.browser: Optional[ImageBrowser] = None

        # Estadísticas
        self.stats = {
            "total_images": 0,
            "processed": 0,
            "errors": 0,
            "skipped": 0
        }

    def initialize(self) -> bool:
        """Inicializa todos los componentes y ejecuta validaciones"""
        logger.info("BATCH PROCESSOR - INICIALIZACIÓN")

        # 1. Cargar configuración batch
        try:
            self.batch_config = BatchConfig(self.batch_config_path, self.mode, self.pipeline_path)
            self.batch_config.validate_structure()
        except (OSError, ValueError) as e:
            logger.error("❌ ERROR al cargar configuración batch: %s", e)
            return False

        # 2. Crear processor (sin preview: solo interesan los outputs principales)
        try:
            if self.batch_config.pipeline_path is not None:
                self.processor = PipelineProcessor.from_file(
                    str(self.batch_config.pipeline_path), without_preview=True)
            else:
                self.processor = PipelineProcessor.for_mode(self.batch_config.mode)
        except (OSError, ValueError) as e:
            logger.error("❌ ERROR al crear processor: %s", e)
            return False
        logger.info("✓ Pipeline con %d filtros (without_preview=True)",
                    self.processor.get_filter_count())

        # 3. Validar targets contra pipeline
        if not BatchValidator(self.batch_config, self.processor).validate_all():
            return False

        # 4. Crear browser
        self.browser = ImageBrowser(str(self.batch_config.source_folder))
        self.stats["total_images"] = self.browser.get_image_count()

        logger.info("✅ Inicialización completada exitosamente")
        return True

    def process_all(self, overwrite: bool = False):
        """Procesa todas las imágenes según los targets configurados"""
        if self.browser is None or self.batch_config is None:
            logger.error("❌ BatchProcessor no inicializado correctamente")
            return

        logger.info("PROCESANDO IMÁGENES: %d imágenes, %d targets, modo %s",
                    self.stats["total_images"], len(self.batch_config.targets),
                    "sobrescribir" if overwrite else "saltar existentes")

        last_filter_needed = self._get_last_filter_needed()
        logger.info("ℹ️  Último filtro a procesar: %s", last_filter_needed)

        with tqdm(total=self.stats["total_images"], desc="Procesando", unit="img") as pbar:
            for _ in range(self.stats["total_images"]):
                img_name = self.browser.get_current_name()

                try:
                    if self._process_single_image(img_name, last_filter_needed, overwrite):
                        self.stats["processed"] += 1
                    else:
                        self.stats["skipped"] += 1
                except Exception as e:
                    logger.error("❌ ERROR procesando %s: %s", img_name, e)
                    self.stats["errors"] += 1

                self.browser.next_image()
                pbar.update(1)

        self._print_summary()

    def _get_last_filter_needed(self) -> str:
        """Último filtro necesario entre todos los targets (los posteriores no se procesan)"""
        return max((target["filter_id"] for target in self.batch_config.targets),
                   key=self.processor.get_filter_order)

    def _process_single_image(self, img_name: str, last_filter_id: str, overwrite: bool) -> bool:
        """
        Procesa una imagen individual y guarda todos sus targets.

        Returns:
            True si se guardó al menos un target, False si se saltó
        """
        if not overwrite and self._all_targets_exist(img_name):
            return False

        frame = self.browser.get_current_frame()
        if frame is None:
            logger.warning("  ⚠️  No se pudo cargar: %s", img_name)
            return False

        filter_outputs = self.processor.process_up_to(last_filter_id, frame,
                                                      self.batch_config.options)

        saved_count = 0
        for target in self.batch_config.targets:
            if self._save_target(img_name, target, filter_outputs, overwrite):
                saved_count += 1

        return saved_count > 0

    def _all_targets_exist(self, img_name: str) -> bool:
        """Verifica si todos los targets de esta imagen ya existen"""
        return all(self._build_output_path(img_name, target).exists()
                   for target in self.batch_config.targets)

    def _save_target(self, img_name: str, target: Dict,
                     filter_outputs: Dict[str, Dict[str, Any]], overwrite: bool) -> bool:
        """Guarda un target específico"""
        filter_id = target["filter_id"]
        output_name = target["output_name"]

        output_path = self._build_output_path(img_name, target)
        if not overwrite and output_path.exists():
            return False

        data = filter_outputs.get(filter_id, {}).get(output_name)
        output_type = self.processor.get_output_type(filter_id, output_name)

        return OutputSaver.save(data, output_path, output_type)

    def _build_output_path(self, img_name: str, target: Dict) -> Path:
        """
        Construye el path completo del archivo de salida.

        Formato: {folder}/{prefix}{nombre_base}{suffix}.{extension}
        La extensión se ajusta a .npy/.npz para rasters float y gradientes.
        """
        dest = target["destination"]

        folder = dest.get("folder", ".")
        prefix = dest.get("prefix", "")
        suffix = dest.get("suffix", f"_{target['filter_id']}")
        extension = dest.get("extension", "png")

        output_type = self.processor.get_output_type(target["filter_id"], target["output_name"])
        if output_type == "float_raster":
            extension = "npy"
        elif output_type == "gradient_field":
            extension = "npz"

        base_name = Path(img_name).stem
        return Path(folder) / f"{prefix}{base_name}{suffix}.{extension}"

    def _print_summary(self):
        """Resumen final del procesamiento"""
        logger.info("RESUMEN: total=%d procesadas=%d saltadas=%d errores=%d",
                    self.stats["total_images"], self.stats["processed"],
                    self.stats["skipped"], self.stats["errors"])

        if self.stats['errors'] == 0 and self.stats['processed'] > 0:
            logger.info("✅ Procesamiento completado exitosamente")
        elif self.stats['errors'] > 0:
            logger.warning("⚠️  Procesamiento completado con errores")
        else:
            logger.info("ℹ️  No se procesaron imágenes nuevas")


def main(argv: Optional[List[str]] = None):
    """Función principal"""
    import argparse

    parser = argparse.ArgumentParser(
        description='Procesamiento por lotes de frames (grayscale, sobel, canny)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Ejemplos:
  python batch_processor.py
  python batch_processor.py --config mi_config.json --mode sobel
  python batch_processor.py --pipeline pipeline.json --overwrite
        """
    )
    parser.add_argument('--config', default='batch_config.json',
                        help='Ruta al archivo de configuración (default: batch_config.json)')
    parser.add_argument('--mode', choices=[m.value for m in FilterMode if m is not FilterMode.RAW],
                        help='Modo de filtro (sobrescribe el modo o pipeline de la configuración)')
    parser.add_argument('--pipeline',
                        help='Ruta a un pipeline.json propio (sobrescribe el modo)')
    parser.add_argument('--overwrite', action='store_true',
                        help='Sobrescribir archivos existentes')
    parser.add_argument('--log-level', default='INFO',
                        help='Nivel de log (default: INFO)')

    args = parser.parse_args(argv)
    setup_logger("batch_processor", args.log_level)

    processor = BatchProcessor(
        batch_config_path=args.config,
        mode=args.mode,
        pipeline_path=args.pipeline
    )

    if not processor.initialize():
        logger.error("❌ Inicialización fallida. Abortando.")
        sys.exit(1)

    processor.process_all(overwrite=args.overwrite)


if __name__ == "__main__":
    main()
