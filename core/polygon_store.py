# core/polygon_store.py
import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from core.models import Polygon

logger = logging.getLogger(__name__)

WGS84_EPSG = 4326


class GeometryType:
    POLIGONO = "Polígono"


@dataclass(frozen=True)
class CoordinateSystem:
    """
    Sistema en el que la superficie reporta las coordenadas.
    kind: "geographic" (lon/lat WGS84) o "utm" (Este/Norte, con zona y hemisferio).
    """
    kind: str = "geographic"
    hemisphere: str = "Norte"
    zone: int = 18

    @classmethod
    def geographic(cls) -> "CoordinateSystem":
        return cls(kind="geographic")

    @classmethod
    def utm(cls, hemisphere: str, zone: int) -> "CoordinateSystem":
        return cls(kind="utm", hemisphere=hemisphere, zone=zone)

    @property
    def is_geographic(self) -> bool:
        return self.kind == "geographic"

    def epsg(self) -> int:
        if self.is_geographic:
            return WGS84_EPSG
        if self.kind != "utm":
            raise ValueError(f"Sistema de coordenadas '{self.kind}' no reconocido.")
        if not (1 <= int(self.zone) <= 60):
            raise ValueError(f"Zona UTM '{self.zone}' inválida. Debe estar entre 1 y 60.")
        if self.hemisphere.lower() not in ("norte", "sur"):
            raise ValueError(f"Hemisferio '{self.hemisphere}' no reconocido. Debe ser 'Norte' o 'Sur'.")
        return (32600 if self.hemisphere.lower() == "norte" else 32700) + int(self.zone)

    def describe(self) -> str:
        if self.is_geographic:
            return "WGS84 (lon/lat)"
        return f"UTM zona {self.zone} ({self.hemisphere})"


class PolygonStore:
    """
    Colección de polígonos confirmados durante la sesión.
    Solo crece: no hay borrado ni edición tras confirmar.
    """

    def __init__(self, coordinate_system: Optional[CoordinateSystem] = None):
        self.coordinate_system = coordinate_system or CoordinateSystem.geographic()
        self._polygons: list[Polygon] = []

    def add(self, polygon: Polygon) -> None:
        self._polygons.append(polygon)
        logger.info("Polígono %s confirmado (%d en la sesión)", polygon.id, len(self._polygons))

    @property
    def polygons(self) -> tuple[Polygon, ...]:
        return tuple(self._polygons)

    def get(self, polygon_id: int) -> Optional[Polygon]:
        for polygon in self._polygons:
            if polygon.id == polygon_id:
                return polygon
        return None

    def features(self) -> list[dict]:
        """
        Devuelve los polígonos como features para los exportadores:
        { id, type, outer: [(x, y), ...], holes: [[(x, y), ...], ...] }
        """
        return [
            {
                "id": p.id,
                "type": GeometryType.POLIGONO,
                "outer": [c.as_tuple() for c in p.outer],
                "holes": [[c.as_tuple() for c in hole] for hole in p.holes],
            }
            for p in self._polygons
        ]

    def __len__(self) -> int:
        return len(self._polygons)

    def __iter__(self) -> Iterator[Polygon]:
        return iter(tuple(self._polygons))
