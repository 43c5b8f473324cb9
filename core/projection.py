# core/projection.py
"""
Paso entre grados (servicio de posición, vista por defecto) y las unidades
de la superficie de dibujo, que son las del sistema de coordenadas del store.
"""
import logging
from typing import Tuple

from pyproj import Transformer

from core.models import Coordinate
from core.polygon_store import WGS84_EPSG, CoordinateSystem
from core.position import Viewport

logger = logging.getLogger(__name__)

Extent = Tuple[float, float, float, float]


class ViewProjection:
    def __init__(self, coordinate_system: CoordinateSystem):
        self.coordinate_system = coordinate_system
        self._forward = None
        self._inverse = None
        if not coordinate_system.is_geographic:
            target = f"EPSG:{coordinate_system.epsg()}"
            self._forward = Transformer.from_crs(f"EPSG:{WGS84_EPSG}", target, always_xy=True)
            self._inverse = Transformer.from_crs(target, f"EPSG:{WGS84_EPSG}", always_xy=True)
            logger.debug("Proyección de vista EPSG:%s -> %s", WGS84_EPSG, target)

    def to_surface(self, coord: Coordinate) -> Coordinate:
        """lon/lat -> unidades de la superficie. Fuera del dominio del CRS lanza ValueError."""
        if self._forward is None:
            return coord
        x, y = self._forward.transform(coord.x, coord.y)
        return Coordinate(x=x, y=y)

    def to_geographic(self, coord: Coordinate) -> Coordinate:
        if self._inverse is None:
            return coord
        lon, lat = self._inverse.transform(coord.x, coord.y)
        return Coordinate(x=lon, y=lat)

    def extent(self, viewport: Viewport) -> Extent:
        """(min_x, min_y, max_x, max_y) de la vista en unidades de la superficie."""
        half_lon = viewport.longitude_delta / 2
        half_lat = viewport.latitude_delta / 2
        corners = [
            self.to_surface(Coordinate(x=viewport.longitude + dx, y=viewport.latitude + dy))
            for dx in (-half_lon, half_lon)
            for dy in (-half_lat, half_lat)
        ]
        xs = [c.x for c in corners]
        ys = [c.y for c in corners]
        return min(xs), min(ys), max(xs), max(ys)
