# core/position.py
"""
Arranque de la vista a partir del servicio de posición.

El servicio responde de forma asíncrona con una coordenada o con un
mensaje de error. Un error no afecta a la edición de polígonos: la vista
se queda con el centro por defecto y el mensaje se muestra tal cual.
"""
import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional, Protocol

from core.models import Coordinate

logger = logging.getLogger(__name__)

WAITING_TEXT = "Esperando..."


@dataclass(frozen=True)
class Viewport:
    latitude: float
    longitude: float
    latitude_delta: float = 0.0922
    longitude_delta: float = 0.0421

    @property
    def center(self) -> Coordinate:
        return Coordinate(x=self.longitude, y=self.latitude)

    def centered_on(self, coord: Coordinate) -> "Viewport":
        return replace(self, latitude=coord.latitude, longitude=coord.longitude)


DEFAULT_VIEWPORT = Viewport(latitude=0.327305, longitude=32.593260)


class PositionService(Protocol):
    def request_position(self,
                         on_position: Callable[[Coordinate], None],
                         on_error: Callable[[str], None],
                         high_accuracy: bool = False) -> None:
        ...


class PositionBootstrap:
    def __init__(self, service: Optional[PositionService], default_viewport: Viewport = DEFAULT_VIEWPORT):
        self.service = service
        self.default_viewport = default_viewport
        self.viewport = default_viewport
        self.location: Optional[Coordinate] = None
        self.error_message: Optional[str] = None
        self._listeners: list[Callable[[Viewport, str], None]] = []

    def subscribe(self, listener: Callable[[Viewport, str], None]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[Viewport, str], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def status_text(self) -> str:
        if self.error_message:
            return self.error_message
        if self.location is not None:
            return f"{self.location.latitude:.6f}, {self.location.longitude:.6f}"
        return WAITING_TEXT

    def start(self) -> None:
        """Pide la posición inicial una sola vez al abrir la sesión."""
        self._request(high_accuracy=False)

    def recenter(self) -> None:
        """Botón 'Mi ubicación': vuelve a pedir la posición y centra la vista."""
        self._request(high_accuracy=True)

    def on_position(self, coord: Coordinate) -> None:
        self.location = coord
        self.error_message = None
        self.viewport = self.viewport.centered_on(coord)
        logger.info("Posición obtenida: %s", self.status_text)
        self._notify()

    def on_error(self, message: str) -> None:
        self.error_message = message
        logger.info("Posición no disponible: %s", message)
        self._notify()

    def _request(self, high_accuracy: bool) -> None:
        if self.service is None:
            self.on_error("No hay servicio de posicionamiento disponible")
            return
        self.service.request_position(self.on_position, self.on_error, high_accuracy=high_accuracy)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.viewport, self.status_text)
