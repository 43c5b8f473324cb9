import math
import unittest
from unittest.mock import MagicMock, patch

from PySide6.QtPositioning import QGeoPositionInfoSource

from core.models import Coordinate
from core.position_source import ACCESS_DENIED_MESSAGE, NO_SOURCE_MESSAGE, QtPositionService


def make_info(lat, lon):
    info = MagicMock()
    info.coordinate.return_value.latitude.return_value = lat
    info.coordinate.return_value.longitude.return_value = lon
    return info


class TestQtPositionService(unittest.TestCase):

    def setUp(self):
        patcher = patch('core.position_source.QGeoPositionInfoSource')
        self.MockSource = patcher.start()
        self.addCleanup(patcher.stop)
        self.source = MagicMock()
        self.MockSource.createDefaultSource.return_value = self.source
        self.on_position = MagicMock()
        self.on_error = MagicMock()

    def handlers(self):
        position_handler = self.source.positionUpdated.connect.call_args[0][0]
        error_handler = self.source.errorOccurred.connect.call_args[0][0]
        return position_handler, error_handler

    def test_request_uses_timeout(self):
        service = QtPositionService(timeout_ms=2500)
        service.request_position(self.on_position, self.on_error)
        self.source.requestUpdate.assert_called_once_with(2500)

    def test_position_update_reaches_callback_once(self):
        service = QtPositionService()
        service.request_position(self.on_position, self.on_error)
        position_handler, _ = self.handlers()

        position_handler(make_info(37.78825, -122.4324))
        position_handler(make_info(1.0, 1.0))

        self.on_position.assert_called_once_with(Coordinate(x=-122.4324, y=37.78825))
        self.on_error.assert_not_called()

    def test_access_error_is_reported_as_denial(self):
        service = QtPositionService()
        service.request_position(self.on_position, self.on_error)
        _, error_handler = self.handlers()

        error_handler(QGeoPositionInfoSource.Error.AccessError)

        self.on_error.assert_called_once_with(ACCESS_DENIED_MESSAGE)
        self.on_position.assert_not_called()

    def test_invalid_coordinate_is_an_error(self):
        service = QtPositionService()
        service.request_position(self.on_position, self.on_error)
        position_handler, _ = self.handlers()

        position_handler(make_info(math.nan, math.nan))

        self.on_position.assert_not_called()
        self.on_error.assert_called_once()

    def test_no_default_source(self):
        self.MockSource.createDefaultSource.return_value = None
        service = QtPositionService()
        self.assertFalse(service.available)

        service.request_position(self.on_position, self.on_error)

        self.on_error.assert_called_once_with(NO_SOURCE_MESSAGE)


if __name__ == '__main__':
    unittest.main()
