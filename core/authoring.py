# core/authoring.py
"""
Máquina de estados para dibujar polígonos con huecos.

Entradas: PointSelected(c), ToggleHole(), Finish().
Estados: IDLE -> DRAWING_OUTER <-> DRAWING_HOLE -> (Finish) IDLE.

Todas las transiciones son totales: las combinaciones sin efecto
(p.ej. ToggleHole en IDLE) no hacen nada y no lanzan excepciones.
"""
import itertools
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Union

from core.models import Coordinate, DrawingMode, EditingSession, Polygon
from core.polygon_store import PolygonStore

logger = logging.getLogger(__name__)

SessionListener = Callable[[EditingSession], None]

HOLE_START_LABEL = "Crear hueco"
HOLE_END_LABEL = "Terminar hueco"


@dataclass(frozen=True)
class PointSelected:
    coordinate: Coordinate


@dataclass(frozen=True)
class ToggleHole:
    pass


@dataclass(frozen=True)
class Finish:
    pass


AuthoringEvent = Union[PointSelected, ToggleHole, Finish]


class PolygonAuthoring:
    """
    Interpreta el flujo de eventos de la superficie y decide a qué anillo
    de qué polígono pertenece cada punto nuevo.

    El contador de ids vive lo mismo que esta instancia (una sesión),
    así que dos polígonos de la misma sesión nunca comparten id.
    """

    def __init__(self, store: PolygonStore, first_id: int = 0):
        self.store = store
        self._ids = itertools.count(first_id)
        self._polygon: Optional[Polygon] = None
        self._mode = DrawingMode.IDLE
        self._revision = 0
        self._listeners: list[SessionListener] = []

    # --- Lectura ---
    @property
    def session(self) -> EditingSession:
        return EditingSession(polygon=self._polygon, mode=self._mode, revision=self._revision)

    @property
    def mode(self) -> DrawingMode:
        return self._mode

    @property
    def polygon(self) -> Optional[Polygon]:
        return self._polygon

    @property
    def hole_action_label(self) -> Optional[str]:
        if self._mode == DrawingMode.DRAWING_OUTER:
            return HOLE_START_LABEL
        if self._mode == DrawingMode.DRAWING_HOLE:
            return HOLE_END_LABEL
        return None

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Entradas ---
    def dispatch(self, event: AuthoringEvent) -> DrawingMode:
        if isinstance(event, PointSelected):
            return self.point_selected(event.coordinate)
        if isinstance(event, ToggleHole):
            return self.toggle_hole()
        if isinstance(event, Finish):
            return self.finish()
        raise TypeError(f"Evento de edición no soportado: {event!r}")

    def point_selected(self, coord: Coordinate) -> DrawingMode:
        if self._mode == DrawingMode.IDLE:
            polygon_id = next(self._ids)
            self._apply(Polygon.start(polygon_id, coord), DrawingMode.DRAWING_OUTER)
            logger.debug("Polígono %s iniciado en %s", polygon_id, coord)
        elif self._mode == DrawingMode.DRAWING_OUTER:
            self._apply(self._polygon.with_outer_point(coord), DrawingMode.DRAWING_OUTER)
        else:
            self._apply(self._polygon.with_hole_point(coord), DrawingMode.DRAWING_HOLE)
        return self._mode

    def toggle_hole(self) -> DrawingMode:
        if self._mode == DrawingMode.DRAWING_OUTER:
            self._apply(self._polygon.with_new_hole(), DrawingMode.DRAWING_HOLE)
            logger.debug("Hueco %d iniciado en polígono %s", len(self._polygon.holes), self._polygon.id)
        elif self._mode == DrawingMode.DRAWING_HOLE:
            if not self._polygon.active_hole:
                self._apply(self._polygon.without_last_hole(), DrawingMode.DRAWING_OUTER)
                logger.debug("Hueco vacío descartado en polígono %s", self._polygon.id)
            else:
                # Un hueco con puntos no se cierra aquí; solo Finish confirma el polígono.
                logger.debug("ToggleHole ignorado: el hueco activo ya tiene puntos")
        return self._mode

    def finish(self) -> DrawingMode:
        if self._mode == DrawingMode.IDLE:
            return self._mode
        polygon = self._polygon
        self.store.add(polygon)
        self._apply(None, DrawingMode.IDLE)
        logger.debug("Sesión de edición limpia tras confirmar polígono %s", polygon.id)
        return self._mode

    def _apply(self, polygon: Optional[Polygon], mode: DrawingMode) -> None:
        self._polygon = polygon
        self._mode = mode
        self._revision += 1
        snapshot = self.session
        for listener in list(self._listeners):
            listener(snapshot)
