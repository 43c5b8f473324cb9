# core/geometry.py
from PySide6.QtGui import QPainterPath, QPen, QBrush, QColor
from PySide6.QtCore import QPointF, Qt

from core.models import Coordinate, Polygon, Ring


class GeometryBuilder:
    """
    Construye objetos de dibujo (QPainterPath) a partir de los polígonos
    confirmados y del polígono en edición.

    El eje Y de la escena crece hacia abajo, por eso se invierte la
    latitud/Norte al pasar a la escena.
    """

    @staticmethod
    def to_scene(coord: Coordinate) -> QPointF:
        return QPointF(coord.x, -coord.y)

    @staticmethod
    def from_scene(x: float, y: float) -> Coordinate:
        return Coordinate(x=x, y=-y)

    @staticmethod
    def _add_ring(path: QPainterPath, ring: Ring) -> None:
        if not ring:
            return
        path.moveTo(GeometryBuilder.to_scene(ring[0]))
        for coord in ring[1:]:
            path.lineTo(GeometryBuilder.to_scene(coord))
        # Los anillos se guardan abiertos; el cierre es cosa del dibujo
        if len(ring) >= 3:
            path.closeSubpath()

    @staticmethod
    def path_from_polygon(polygon: Polygon):
        """
        Devuelve un QPainterPath con un subpath por anillo (exterior + huecos),
        o None si el anillo exterior está vacío.
        """
        if not polygon.outer:
            return None
        path = QPainterPath()
        path.setFillRule(Qt.OddEvenFill)
        GeometryBuilder._add_ring(path, polygon.outer)
        for hole in polygon.holes:
            GeometryBuilder._add_ring(path, hole)
        return path

    @staticmethod
    def style(editing: bool):
        """Pen/brush: negro para el polígono en edición, rojo para los confirmados."""
        pen = QPen(QColor(0, 0, 0) if editing else QColor(255, 0, 0), 1)
        pen.setCosmetic(True)
        brush = QBrush(QColor(255, 0, 0, 77))
        return pen, brush

    @staticmethod
    def paths_from_polygons(polygons, editing: bool = False):
        """
        Devuelve lista de tuplas (path, pen, brush) para cada polígono dibujable.
        """
        result = []
        for polygon in polygons:
            path = GeometryBuilder.path_from_polygon(polygon)
            if path is None:
                continue
            pen, brush = GeometryBuilder.style(editing)
            result.append((path, pen, brush))
        return result
