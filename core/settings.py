# core/settings.py
import logging
from dataclasses import dataclass, field

from core.polygon_store import CoordinateSystem
from core.position import DEFAULT_VIEWPORT, Viewport

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class AppSettings:
    coordinate_system: CoordinateSystem = field(default_factory=CoordinateSystem.geographic)
    default_viewport: Viewport = DEFAULT_VIEWPORT
    use_live_position: bool = True
    position_timeout_ms: int = 10000
    log_level: str = "INFO"


def _to_bool(value) -> bool:
    # QSettings con backend INI devuelve "true"/"false" como texto
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "si", "sí")
    return bool(value)


def _read(store, key: str, default, convert):
    raw = store.value(key, default)
    if raw is None:
        return default
    try:
        return convert(raw)
    except (TypeError, ValueError):
        logger.warning("Valor inválido para '%s': %r. Se usa %r.", key, raw, default)
        return default


def load_settings(store) -> AppSettings:
    """
    Lee la configuración de un objeto tipo QSettings
    (value(key, default) / setValue(key, value)).
    """
    defaults = AppSettings()
    kind = _read(store, "crs/kind", "geographic", str)
    if kind == "utm":
        crs = CoordinateSystem.utm(
            hemisphere=_read(store, "crs/hemisphere", "Norte", str),
            zone=_read(store, "crs/zone", 18, int),
        )
        try:
            crs.epsg()
        except ValueError as e:
            logger.warning("Sistema de coordenadas inválido (%s). Se usa WGS84.", e)
            crs = CoordinateSystem.geographic()
    else:
        crs = CoordinateSystem.geographic()

    dv = defaults.default_viewport
    viewport = Viewport(
        latitude=_read(store, "viewport/latitude", dv.latitude, float),
        longitude=_read(store, "viewport/longitude", dv.longitude, float),
        latitude_delta=_read(store, "viewport/latitude_delta", dv.latitude_delta, float),
        longitude_delta=_read(store, "viewport/longitude_delta", dv.longitude_delta, float),
    )

    log_level = _read(store, "log/level", defaults.log_level, lambda v: str(v).upper())
    if log_level not in LOG_LEVELS:
        logger.warning("Nivel de log '%s' no reconocido. Se usa %s.", log_level, defaults.log_level)
        log_level = defaults.log_level

    return AppSettings(
        coordinate_system=crs,
        default_viewport=viewport,
        use_live_position=_read(store, "position/use_live", defaults.use_live_position, _to_bool),
        position_timeout_ms=_read(store, "position/timeout_ms", defaults.position_timeout_ms, int),
        log_level=log_level,
    )


def save_settings(settings: AppSettings, store) -> None:
    crs = settings.coordinate_system
    store.setValue("crs/kind", crs.kind)
    store.setValue("crs/hemisphere", crs.hemisphere)
    store.setValue("crs/zone", crs.zone)
    vp = settings.default_viewport
    store.setValue("viewport/latitude", vp.latitude)
    store.setValue("viewport/longitude", vp.longitude)
    store.setValue("viewport/latitude_delta", vp.latitude_delta)
    store.setValue("viewport/longitude_delta", vp.longitude_delta)
    store.setValue("position/use_live", settings.use_live_position)
    store.setValue("position/timeout_ms", settings.position_timeout_ms)
    store.setValue("log/level", settings.log_level)
