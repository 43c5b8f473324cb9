from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QFormLayout,
    QLineEdit, QCheckBox, QComboBox, QSpinBox,
    QDialogButtonBox
)
from PySide6.QtCore import Qt

from core.polygon_store import CoordinateSystem
from core.position import Viewport
from core.settings import AppSettings, LOG_LEVELS


class ConfigDialog(QDialog):
    def __init__(self, settings: AppSettings, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Configuraciones")
        self._settings = settings
        self._build_ui()
        self._load(settings)

    def _build_ui(self):
        layout = QVBoxLayout(self)
        form = QFormLayout()

        # Sistema de coordenadas de la superficie
        self.cb_crs = QComboBox(); self.cb_crs.addItems(["WGS84 (lon/lat)", "UTM"])
        self.cb_crs.currentIndexChanged.connect(self._on_crs_changed)
        form.addRow("Coordenadas:", self.cb_crs)
        self.cb_hemisferio = QComboBox(); self.cb_hemisferio.addItems(["Norte", "Sur"])
        form.addRow("Hemisferio:", self.cb_hemisferio)
        self.cb_zona = QComboBox(); self.cb_zona.addItems([str(i) for i in range(1, 61)])
        form.addRow("Zona UTM:", self.cb_zona)

        # Vista por defecto
        self.lat_edit = QLineEdit(); self.lat_edit.setPlaceholderText("Ej. 0.327305")
        form.addRow("Latitud inicial:", self.lat_edit)
        self.lon_edit = QLineEdit(); self.lon_edit.setPlaceholderText("Ej. 32.593260")
        form.addRow("Longitud inicial:", self.lon_edit)

        # Posición en vivo
        self.live_checkbox = QCheckBox()
        form.addRow("Usar posición actual:", self.live_checkbox)
        self.timeout_spin = QSpinBox(); self.timeout_spin.setRange(0, 120000); self.timeout_spin.setSuffix(" ms")
        form.addRow("Tiempo de espera:", self.timeout_spin)

        self.cb_log = QComboBox(); self.cb_log.addItems(list(LOG_LEVELS))
        form.addRow("Nivel de log:", self.cb_log)

        layout.addLayout(form)

        buttons = QDialogButtonBox(
            QDialogButtonBox.Ok | QDialogButtonBox.Cancel,
            Qt.Horizontal, self
        )
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

    def _load(self, settings: AppSettings):
        crs = settings.coordinate_system
        self.cb_crs.setCurrentIndex(0 if crs.is_geographic else 1)
        self.cb_hemisferio.setCurrentText(crs.hemisphere)
        self.cb_zona.setCurrentText(str(crs.zone))
        self.lat_edit.setText(f"{settings.default_viewport.latitude:.6f}")
        self.lon_edit.setText(f"{settings.default_viewport.longitude:.6f}")
        self.live_checkbox.setChecked(settings.use_live_position)
        self.timeout_spin.setValue(settings.position_timeout_ms)
        self.cb_log.setCurrentText(settings.log_level)
        self._on_crs_changed(self.cb_crs.currentIndex())

    def _on_crs_changed(self, index):
        utm = index == 1
        self.cb_hemisferio.setEnabled(utm); self.cb_zona.setEnabled(utm)

    def get_values(self) -> AppSettings:
        """
        Devuelve los ajustes ingresados, tras un exec() exitoso.
        Los campos numéricos vacíos o inválidos conservan el valor anterior.
        """
        if self.cb_crs.currentIndex() == 1:
            crs = CoordinateSystem.utm(self.cb_hemisferio.currentText(), int(self.cb_zona.currentText()))
        else:
            crs = CoordinateSystem.geographic()

        current = self._settings.default_viewport
        try:
            lat = float(self.lat_edit.text().strip().replace(",", "."))
            lon = float(self.lon_edit.text().strip().replace(",", "."))
            viewport = Viewport(lat, lon, current.latitude_delta, current.longitude_delta)
        except ValueError:
            viewport = current

        return AppSettings(
            coordinate_system=crs,
            default_viewport=viewport,
            use_live_position=self.live_checkbox.isChecked(),
            position_timeout_ms=self.timeout_spin.value(),
            log_level=self.cb_log.currentText(),
        )
