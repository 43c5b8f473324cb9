# exporters/kml_exporter.py
import logging
from typing import Optional
from xml.etree.ElementTree import Element, SubElement, tostring
from xml.dom import minidom

from pyproj import Transformer, ProjError

from core.polygon_store import CoordinateSystem, GeometryType

logger = logging.getLogger(__name__)


class KMLExporter:
    @staticmethod
    def _ring_coordinates(ring: list, transformer, feat_id) -> Optional[str]:
        """
        Cierra el anillo, lo transforma a WGS84 y devuelve el texto de <coordinates>.
        Devuelve None si no quedan al menos 4 puntos (3 únicos + cierre).
        """
        if len(ring) < 3:
            return None
        closed = list(ring)
        if tuple(closed[0]) != tuple(closed[-1]):
            closed.append(closed[0])

        coords_text_list = []
        for coord_pair in closed:
            if not isinstance(coord_pair, (list, tuple)) or len(coord_pair) != 2:
                logger.warning("Par de coordenadas inválido %s en polígono %s. Se omitirá este par.", coord_pair, feat_id)
                continue
            try:
                lon, lat = transformer.transform(coord_pair[0], coord_pair[1])
                coords_text_list.append(f"{lon:.6f},{lat:.6f},0")
            except ProjError as pe:
                logger.warning("Error de transformación en polígono %s: %s. Se omitirá esta coordenada.", feat_id, pe)

        if len(coords_text_list) < 4:
            return None
        return " ".join(coords_text_list)

    @staticmethod
    def _build_kml_root_element(features: list[dict], coordinate_system: CoordinateSystem) -> Element:
        """
        Builds the KML root Element from polygon features.
        The outer ring goes to outerBoundaryIs and every hole to its own innerBoundaryIs.
        Raises ValueError for an invalid zone/hemisphere, ProjError for CRS issues.
        """
        try:
            epsg_from = coordinate_system.epsg()
        except ValueError as e:
            raise ValueError(f"Error en parámetros de zona/hemisferio: {e}")

        # This can raise ProjError, which will propagate upwards
        transformer = Transformer.from_crs(f"EPSG:{epsg_from}", "EPSG:4326", always_xy=True)

        kml_root = Element("kml", xmlns="http://www.opengis.net/kml/2.2")
        doc = SubElement(kml_root, "Document")

        for feat in features:
            feat_id = feat.get("id", "SinID")
            geom_type = feat.get("type")
            outer = feat.get("outer") or []

            if geom_type != GeometryType.POLIGONO:
                logger.warning("Tipo de geometría '%s' para feature %s no soportado. Se omitirá.", geom_type, feat_id)
                continue

            outer_text = KMLExporter._ring_coordinates(outer, transformer, feat_id)
            if outer_text is None:
                logger.warning("Polígono %s sin suficientes coordenadas válidas en el anillo exterior. Se omitirá.", feat_id)
                continue

            pm = SubElement(doc, "Placemark")
            SubElement(pm, "name").text = str(feat_id)
            x0, y0 = outer[0][0], outer[0][1]
            desc_text = (
                f"Sistema: {coordinate_system.describe()}\n"
                f"Primer vértice: {x0:.6f}, {y0:.6f}\n"
                f"Huecos: {len(feat.get('holes') or [])}"
            )
            SubElement(pm, "description").text = f"<![CDATA[{desc_text}]]>"

            poly_elem = SubElement(pm, "Polygon")
            obb = SubElement(poly_elem, "outerBoundaryIs")
            lr = SubElement(obb, "LinearRing")
            SubElement(lr, "coordinates").text = outer_text

            for index, hole in enumerate(feat.get("holes") or []):
                hole_text = KMLExporter._ring_coordinates(hole, transformer, feat_id)
                if hole_text is None:
                    logger.warning("Hueco %d del polígono %s tiene menos de 3 coordenadas válidas. Se omitirá.", index, feat_id)
                    continue
                ibb = SubElement(poly_elem, "innerBoundaryIs")
                hole_lr = SubElement(ibb, "LinearRing")
                SubElement(hole_lr, "coordinates").text = hole_text

        return kml_root

    @staticmethod
    def to_string(features: list[dict], coordinate_system: CoordinateSystem) -> str:
        kml_root = KMLExporter._build_kml_root_element(features, coordinate_system)
        xml_bytes = tostring(kml_root, encoding="utf-8", method="xml")
        return minidom.parseString(xml_bytes).toprettyxml(indent="  ")

    @staticmethod
    def export(features: list[dict], filename: str, coordinate_system: CoordinateSystem):
        if not features:
            raise ValueError("No hay polígonos para exportar.")
        if not filename.lower().endswith(".kml"):
            raise ValueError("El nombre de archivo debe terminar en .kml")

        try:
            xml_str_pretty = KMLExporter.to_string(features, coordinate_system)
        except (ValueError, ProjError) as e:
            raise RuntimeError(f"Error al preparar datos KML: {e}")

        try:
            with open(filename, "w", encoding="utf-8") as f:
                f.write(xml_str_pretty)
        except OSError as e:
            raise RuntimeError(f"Error al crear el archivo KML '{filename}': {e}")
        logger.info("KML exportado: %s (%d polígonos)", filename, len(features))
