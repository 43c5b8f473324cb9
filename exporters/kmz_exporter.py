# exporters/kmz_exporter.py
import logging
import zipfile

from pyproj import ProjError

from core.polygon_store import CoordinateSystem
from exporters.kml_exporter import KMLExporter

logger = logging.getLogger(__name__)


class KMZExporter:
    @staticmethod
    def _generate_kml_string(features: list[dict], coordinate_system: CoordinateSystem) -> str:
        # ValueError or ProjError can be raised by the shared KML builder
        return KMLExporter.to_string(features, coordinate_system)

    @staticmethod
    def export(features: list[dict], filename: str, coordinate_system: CoordinateSystem):
        if not features:
            raise ValueError("No hay polígonos para exportar.")
        if not filename.lower().endswith(".kmz"):
            raise ValueError("El nombre de archivo debe terminar en .kmz")

        try:
            kml_content_bytes = KMZExporter._generate_kml_string(features, coordinate_system).encode('utf-8')
        except (ValueError, ProjError) as ve:
            raise RuntimeError(f"Error al generar contenido KML para KMZ: {ve}")

        try:
            with zipfile.ZipFile(filename, 'w', zipfile.ZIP_DEFLATED) as kmz_file:
                kmz_file.writestr('doc.kml', kml_content_bytes)
        except OSError as e:
            raise RuntimeError(f"Error al crear el archivo KMZ '{filename}': {e}")
        logger.info("KMZ exportado: %s (%d polígonos)", filename, len(features))
