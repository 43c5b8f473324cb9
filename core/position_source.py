# core/position_source.py
import logging
from typing import Callable, Optional

from PySide6.QtPositioning import QGeoPositionInfoSource

from core.models import Coordinate

logger = logging.getLogger(__name__)

NO_SOURCE_MESSAGE = "No hay servicio de posicionamiento disponible"
ACCESS_DENIED_MESSAGE = "Permission to access location was denied"

_ERROR_MESSAGES = {
    QGeoPositionInfoSource.Error.AccessError: ACCESS_DENIED_MESSAGE,
    QGeoPositionInfoSource.Error.ClosedError: "El servicio de posicionamiento se cerró",
    QGeoPositionInfoSource.Error.UpdateTimeoutError: "Tiempo de espera agotado al obtener la posición",
}


class QtPositionService:
    """
    Servicio de posición sobre QtPositioning.
    Una petición = una respuesta (coordenada o mensaje). Sin reintentos.
    """

    def __init__(self, timeout_ms: int = 10000, parent=None):
        self.timeout_ms = timeout_ms
        self._source = QGeoPositionInfoSource.createDefaultSource(parent)
        self._on_position: Optional[Callable[[Coordinate], None]] = None
        self._on_error: Optional[Callable[[str], None]] = None
        if self._source is not None:
            self._source.positionUpdated.connect(self._handle_position)
            self._source.errorOccurred.connect(self._handle_error)
        else:
            logger.warning("QtPositioning no ofrece ninguna fuente de posición por defecto")

    @property
    def available(self) -> bool:
        return self._source is not None

    def request_position(self,
                         on_position: Callable[[Coordinate], None],
                         on_error: Callable[[str], None],
                         high_accuracy: bool = False) -> None:
        if self._source is None:
            on_error(NO_SOURCE_MESSAGE)
            return
        self._on_position = on_position
        self._on_error = on_error
        methods = (QGeoPositionInfoSource.PositioningMethod.SatellitePositioningMethods if high_accuracy
                   else QGeoPositionInfoSource.PositioningMethod.AllPositioningMethods)
        self._source.setPreferredPositioningMethods(methods)
        self._source.requestUpdate(self.timeout_ms)

    def _take_callbacks(self):
        callbacks = (self._on_position, self._on_error)
        self._on_position = self._on_error = None
        return callbacks

    def _handle_position(self, info) -> None:
        on_position, on_error = self._take_callbacks()
        if on_position is None:
            return
        geo = info.coordinate()
        try:
            coord = Coordinate(x=geo.longitude(), y=geo.latitude())
        except ValueError:
            # una QGeoCoordinate inválida devuelve NaN
            logger.warning("Posición recibida no válida: %s", geo)
            on_error("La posición recibida no es válida")
            return
        on_position(coord)

    def _handle_error(self, error) -> None:
        _, on_error = self._take_callbacks()
        if on_error is None:
            return
        on_error(_ERROR_MESSAGES.get(error, f"Error al obtener la posición ({error})"))
