# core/models.py
import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class Coordinate:
    """
    Par inmutable de ejes numéricos.
    x = longitud / Este, y = latitud / Norte.
    """
    x: float
    y: float

    def __post_init__(self):
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise ValueError(f"Coordenada no finita: ({self.x}, {self.y})")

    @property
    def longitude(self) -> float:
        return self.x

    @property
    def latitude(self) -> float:
        return self.y

    def as_tuple(self) -> tuple[float, float]:
        return (self.x, self.y)


# Un anillo es una secuencia ordenada y abierta de coordenadas.
Ring = tuple[Coordinate, ...]


class DrawingMode(Enum):
    IDLE = "idle"
    DRAWING_OUTER = "drawing_outer"
    DRAWING_HOLE = "drawing_hole"


@dataclass(frozen=True)
class Polygon:
    """
    Polígono con anillo exterior y huecos.

    Nunca se modifica en sitio: cada operación devuelve un valor nuevo,
    de modo que quien compare por identidad detecta el cambio.
    """
    id: int
    outer: Ring = ()
    holes: tuple[Ring, ...] = ()

    @classmethod
    def start(cls, polygon_id: int, first: Coordinate) -> "Polygon":
        return cls(id=polygon_id, outer=(first,), holes=())

    @property
    def active_hole(self) -> Optional[Ring]:
        return self.holes[-1] if self.holes else None

    def with_outer_point(self, coord: Coordinate) -> "Polygon":
        return replace(self, outer=self.outer + (coord,))

    def with_new_hole(self) -> "Polygon":
        return replace(self, holes=self.holes + ((),))

    def with_hole_point(self, coord: Coordinate) -> "Polygon":
        # Agrega al último hueco; solo se llama en DRAWING_HOLE, donde siempre existe uno
        last = self.holes[-1]
        return replace(self, holes=self.holes[:-1] + (last + (coord,),))

    def without_last_hole(self) -> "Polygon":
        return replace(self, holes=self.holes[:-1])


@dataclass(frozen=True)
class EditingSession:
    """Instantánea de solo lectura del estado de edición."""
    polygon: Optional[Polygon] = None
    mode: DrawingMode = DrawingMode.IDLE
    revision: int = 0

    @property
    def is_editing(self) -> bool:
        return self.polygon is not None

    @property
    def render_key(self) -> Optional[tuple[int, int]]:
        """Clave derivada para memoizar el dibujo; cambia con cada punto aceptado."""
        if self.polygon is None:
            return None
        return (self.polygon.id, self.revision)
