import logging
import os
import sys

from PySide6.QtCore import Qt, QRectF, QSettings, Signal
from PySide6.QtGui import QAction, QPen, QBrush, QColor, QPainter
from PySide6.QtWidgets import (
    QApplication,
    QMainWindow,
    QWidget,
    QToolBar,
    QStyle,
    QMessageBox,
    QVBoxLayout,
    QHBoxLayout,
    QPushButton,
    QLabel,
    QFileDialog,
    QGraphicsView,
    QGraphicsScene,
    QGraphicsItem,
)

from config_dialog import ConfigDialog
from core.authoring import PolygonAuthoring
from core.geometry import GeometryBuilder
from core.models import EditingSession
from core.polygon_store import PolygonStore
from core.position import PositionBootstrap, Viewport
from core.projection import Extent, ViewProjection
from core.position_source import QtPositionService
from core.settings import AppSettings, load_settings, save_settings
from exporters.kml_exporter import KMLExporter
from exporters.kmz_exporter import KMZExporter
from logging_config import set_log_level, setup_logging

logger = logging.getLogger(__name__)

LIVE_POSITION_OFF_TEXT = "Posición en vivo desactivada"
# Distancia (px) por debajo de la cual soltar el botón cuenta como toque y no como arrastre
TAP_TOLERANCE_PX = 4


class MapCanvas(QGraphicsView):
    """
    Superficie de dibujo. Emite pointSelected(x, y) en coordenadas de escena
    por cada toque y, mientras hay una edición activa, por cada movimiento
    de arrastre (en ese modo el desplazamiento del mapa queda bloqueado).
    """
    pointSelected = Signal(float, float)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setScene(QGraphicsScene(self))
        self.setRenderHint(QPainter.Antialiasing)
        self.setTransformationAnchor(QGraphicsView.AnchorUnderMouse)
        self._editing = False
        self._press_pos = None
        self.set_editing(False)

    def set_editing(self, editing: bool):
        self._editing = editing
        self.setDragMode(QGraphicsView.NoDrag if editing else QGraphicsView.ScrollHandDrag)

    def show_viewport(self, extent: Extent):
        """extent = (min_x, min_y, max_x, max_y) en unidades de la superficie (Y hacia arriba)."""
        min_x, min_y, max_x, max_y = extent
        rect = QRectF(min_x, -max_y, max_x - min_x, max_y - min_y)
        # El área de escena debe cubrir la vista para que centerOn funcione lejos de los polígonos
        w, h = rect.width() * 50, rect.height() * 50
        self.scene().setSceneRect(self.scene().sceneRect().united(rect.adjusted(-w, -h, w, h)))
        self.fitInView(rect, Qt.KeepAspectRatio)

    def _emit_point(self, event):
        p = self.mapToScene(event.position().toPoint())
        self.pointSelected.emit(p.x(), p.y())

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self._press_pos = event.position()
            if self._editing:
                self._emit_point(event)
                return
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._editing and event.buttons() & Qt.LeftButton:
            self._emit_point(event)
            return
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.LeftButton and not self._editing and self._press_pos is not None:
            moved = (event.position() - self._press_pos).manhattanLength()
            if moved <= TAP_TOLERANCE_PX:
                self._emit_point(event)
        self._press_pos = None
        super().mouseReleaseEvent(event)

    def wheelEvent(self, event):
        factor = 1.25 if event.angleDelta().y() > 0 else 0.8
        self.scale(factor, factor)


class MainWindow(QMainWindow):
    def __init__(self, settings: AppSettings, qsettings: QSettings = None):
        super().__init__()
        self.setWindowTitle("PinLand")
        self.settings = settings
        self.qsettings = qsettings
        self._committed_items = []
        self._editing_items = []
        self._editing_key = None
        self._location_item = None
        self.bootstrap = None
        self._build_ui()
        self._create_toolbar()
        self._new_session()
        self._start_position()

    # --- Métodos de UI ---
    def _build_ui(self):
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)

        title = QLabel("Nuevo PinLand"); title.setStyleSheet("font-size: 20px; font-weight: bold;")
        layout.addWidget(title, 0, Qt.AlignHCenter)
        self.status_label = QLabel(""); self.status_label.setWordWrap(True)
        layout.addWidget(self.status_label)

        self.canvas = MapCanvas()
        self.canvas.setMinimumSize(400, 300)
        self.canvas.setStyleSheet("background-color:white; border:1px solid #ccc;")
        self.canvas.pointSelected.connect(self._on_point_selected)
        layout.addWidget(self.canvas, 1)

        buttons = QHBoxLayout(); buttons.addStretch()
        self.btn_hole = QPushButton(""); self.btn_hole.clicked.connect(self._on_toggle_hole)
        self.btn_finish = QPushButton("Terminar"); self.btn_finish.clicked.connect(self._on_finish)
        buttons.addWidget(self.btn_hole); buttons.addWidget(self.btn_finish)
        buttons.addStretch()
        layout.addLayout(buttons)

    def _create_toolbar(self):
        tb = QToolBar("Principal"); self.addToolBar(tb)
        actions_data = [
            (QStyle.SP_FileIcon, "Nuevo", self._on_new),
            (QStyle.SP_DialogSaveButton, "Exportar", self._on_export),
            None,
            (QStyle.SP_ArrowUp, "Mi ubicación", self._on_recenter),
            None,
            (QStyle.SP_FileDialogDetailedView, "Configuraciones", self._on_settings),
        ]
        for item_data in actions_data:
            if item_data is None: tb.addSeparator(); continue
            action = QAction(self.style().standardIcon(item_data[0]), item_data[1], self)
            action.triggered.connect(item_data[2])
            tb.addAction(action)

    # --- Sesión ---
    def _new_session(self):
        self.store = PolygonStore(self.settings.coordinate_system)
        self.projection = ViewProjection(self.store.coordinate_system)
        self.authoring = PolygonAuthoring(self.store)
        self.authoring.subscribe(self._on_session_changed)
        self.canvas.scene().clear()
        self._committed_items = []; self._editing_items = []; self._editing_key = None
        self._location_item = None
        self._on_session_changed(self.authoring.session)
        if self.bootstrap is not None:
            self._show_position()
        logger.info("Nueva sesión (%s)", self.store.coordinate_system.describe())

    def _start_position(self):
        if self.bootstrap is not None:
            self.bootstrap.unsubscribe(self._on_position_outcome)
        service = QtPositionService(self.settings.position_timeout_ms, self) if self.settings.use_live_position else None
        self.bootstrap = PositionBootstrap(service, self.settings.default_viewport)
        self.bootstrap.subscribe(self._on_position_outcome)
        self._show_position()
        if service is None:
            self.status_label.setText(LIVE_POSITION_OFF_TEXT)
            return
        self.status_label.setText(self.bootstrap.status_text)
        self.bootstrap.start()

    def _on_position_outcome(self, viewport: Viewport, status_text: str):
        self.status_label.setText(status_text)
        self._show_position()

    def _show_position(self):
        # Vista y posición llegan en grados; la superficie usa el CRS del store
        viewport = self.bootstrap.viewport
        try:
            self.canvas.show_viewport(self.projection.extent(viewport))
        except ValueError as e:
            logger.warning("La vista %s no se puede proyectar a %s: %s",
                           viewport, self.store.coordinate_system.describe(), e)
        self._draw_location()

    def _draw_location(self):
        scene = self.canvas.scene()
        if self._location_item is not None:
            scene.removeItem(self._location_item)
            self._location_item = None
        location = self.bootstrap.location
        if location is None:
            return
        try:
            point = self.projection.to_surface(location)
        except ValueError as e:
            logger.warning("Posición fuera del sistema %s: %s", self.store.coordinate_system.describe(), e)
            return
        marker = scene.addEllipse(-5, -5, 10, 10, QPen(QColor(255, 255, 255), 2), QBrush(QColor(0, 122, 255)))
        marker.setFlag(QGraphicsItem.ItemIgnoresTransformations)
        marker.setPos(GeometryBuilder.to_scene(point))
        marker.setZValue(1)
        self._location_item = marker

    # --- Entradas de edición ---
    def _on_point_selected(self, x: float, y: float):
        try:
            coord = GeometryBuilder.from_scene(x, y)
        except ValueError as e:
            logger.warning("Punto descartado: %s", e)
            return
        self.authoring.point_selected(coord)

    def _on_toggle_hole(self): self.authoring.toggle_hole()
    def _on_finish(self): self.authoring.finish()

    # --- Dibujo ---
    def _on_session_changed(self, session: EditingSession):
        editing = session.is_editing
        self.canvas.set_editing(editing)
        self.btn_hole.setVisible(editing); self.btn_finish.setVisible(editing)
        self.btn_hole.setText(self.authoring.hole_action_label or "")
        if len(self._committed_items) != len(self.store):
            self._redraw_committed()
        self._redraw_editing(session)

    def _redraw_committed(self):
        scene = self.canvas.scene()
        for item in self._committed_items: scene.removeItem(item)
        self._committed_items = [
            scene.addPath(path, pen, brush)
            for path, pen, brush in GeometryBuilder.paths_from_polygons(self.store.polygons)
        ]

    def _redraw_editing(self, session: EditingSession):
        if session.render_key == self._editing_key:
            return
        self._editing_key = session.render_key
        scene = self.canvas.scene()
        for item in self._editing_items: scene.removeItem(item)
        self._editing_items = []
        if session.polygon is None:
            return
        for path, pen, brush in GeometryBuilder.paths_from_polygons([session.polygon], editing=True):
            self._editing_items.append(scene.addPath(path, pen, brush))
        # Vértices con tamaño fijo en pantalla
        vertex_pen, vertex_brush = QPen(Qt.black), QBrush(QColor(255, 255, 255))
        for ring in (session.polygon.outer,) + session.polygon.holes:
            for coord in ring:
                marker = scene.addEllipse(-3, -3, 6, 6, vertex_pen, vertex_brush)
                marker.setFlag(QGraphicsItem.ItemIgnoresTransformations)
                marker.setPos(GeometryBuilder.to_scene(coord))
                self._editing_items.append(marker)

    # --- Toolbar ---
    def _on_new(self):
        if self.authoring.session.is_editing or len(self.store):
            answer = QMessageBox.question(self, "Nuevo", "Se descartarán los polígonos de esta sesión. ¿Continuar?")
            if answer != QMessageBox.Yes: return
        self._new_session()

    def _on_recenter(self):
        if not self.settings.use_live_position:
            QMessageBox.information(self, "Mi ubicación", "Active la posición en vivo en Configuraciones.")
            return
        self.bootstrap.recenter()

    def _on_export(self):
        if not len(self.store):
            QMessageBox.warning(self, "Nada para Exportar", "No hay polígonos terminados para exportar.")
            return
        path, _ = QFileDialog.getSaveFileName(self, "Exportar polígonos", "pinland.kml", "KML (*.kml);;KMZ (*.kmz)")
        if not path: return
        features = self.store.features()
        crs = self.store.coordinate_system
        ext = os.path.splitext(path)[1].lower()
        try:
            if ext == ".kml": KMLExporter.export(features, path, crs)
            elif ext == ".kmz": KMZExporter.export(features, path, crs)
            else: QMessageBox.warning(self, "Formato no Soportado", f"Exportación a '{ext}' no implementada."); return
            QMessageBox.information(self, "Éxito", f"Archivo guardado en:\n{path}")
        except (ValueError, RuntimeError) as e:
            logger.error("Exportación fallida: %s", e)
            QMessageBox.critical(self, "Error de Exportación", f"Error al exportar a '{ext}':\n{e}")

    def _on_settings(self):
        dlg = ConfigDialog(self.settings, self)
        if not dlg.exec(): return
        previous = self.settings
        self.settings = dlg.get_values()
        if self.qsettings is not None:
            save_settings(self.settings, self.qsettings)
        set_log_level(self.settings.log_level)
        if (self.settings.use_live_position, self.settings.position_timeout_ms) != \
                (previous.use_live_position, previous.position_timeout_ms):
            self._start_position()
        if self.settings.coordinate_system != previous.coordinate_system:
            QMessageBox.information(self, "Configuraciones",
                                    "El nuevo sistema de coordenadas se aplicará en la próxima sesión (Nuevo).")


def main():
    app = QApplication(sys.argv)
    app.setApplicationName("PinLand")
    qsettings = QSettings("PinLand", "PinLand")
    settings = load_settings(qsettings)
    setup_logging(level=getattr(logging, settings.log_level, logging.INFO))
    win = MainWindow(settings, qsettings)
    win.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
