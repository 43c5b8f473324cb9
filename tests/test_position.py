import unittest
from unittest.mock import MagicMock

from core.models import Coordinate
from core.position import DEFAULT_VIEWPORT, WAITING_TEXT, PositionBootstrap, Viewport


class FakeService:
    """Records requests; the test decides the outcome."""

    def __init__(self):
        self.requests = []

    def request_position(self, on_position, on_error, high_accuracy=False):
        self.requests.append((on_position, on_error, high_accuracy))


class TestPositionBootstrap(unittest.TestCase):

    def setUp(self):
        self.service = FakeService()
        self.bootstrap = PositionBootstrap(self.service)

    def test_starts_on_default_viewport(self):
        self.assertEqual(self.bootstrap.viewport, DEFAULT_VIEWPORT)
        self.assertEqual(self.bootstrap.status_text, WAITING_TEXT)
        self.assertAlmostEqual(DEFAULT_VIEWPORT.latitude, 0.327305)
        self.assertAlmostEqual(DEFAULT_VIEWPORT.longitude, 32.593260)

    def test_start_requests_once(self):
        self.bootstrap.start()
        self.assertEqual(len(self.service.requests), 1)
        self.assertFalse(self.service.requests[0][2])

    def test_success_recenters_and_keeps_deltas(self):
        listener = MagicMock()
        self.bootstrap.subscribe(listener)
        self.bootstrap.start()
        on_position, _, _ = self.service.requests[0]

        on_position(Coordinate(x=-122.4324, y=37.78825))

        vp = self.bootstrap.viewport
        self.assertEqual((vp.latitude, vp.longitude), (37.78825, -122.4324))
        self.assertEqual(vp.latitude_delta, DEFAULT_VIEWPORT.latitude_delta)
        self.assertEqual(self.bootstrap.status_text, "37.788250, -122.432400")
        listener.assert_called_once_with(vp, "37.788250, -122.432400")

    def test_denial_keeps_default_viewport(self):
        self.bootstrap.start()
        _, on_error, _ = self.service.requests[0]

        on_error("Permission to access location was denied")

        self.assertEqual(self.bootstrap.viewport, DEFAULT_VIEWPORT)
        self.assertIsNone(self.bootstrap.location)
        self.assertEqual(self.bootstrap.status_text, "Permission to access location was denied")

    def test_recenter_prefers_high_accuracy(self):
        self.bootstrap.recenter()
        self.assertTrue(self.service.requests[0][2])

    def test_later_success_clears_previous_error(self):
        self.bootstrap.on_error("timeout")
        self.bootstrap.on_position(Coordinate(1.0, 2.0))
        self.assertIsNone(self.bootstrap.error_message)
        self.assertEqual(self.bootstrap.viewport.center, Coordinate(1.0, 2.0))

    def test_unsubscribed_listener_is_not_notified(self):
        listener = MagicMock()
        self.bootstrap.subscribe(listener)
        self.bootstrap.unsubscribe(listener)
        self.bootstrap.on_error("timeout")
        listener.assert_not_called()

    def test_missing_service_reports_message(self):
        bootstrap = PositionBootstrap(None, Viewport(10.0, 20.0))
        bootstrap.start()
        self.assertEqual(bootstrap.status_text, "No hay servicio de posicionamiento disponible")
        self.assertEqual(bootstrap.viewport, Viewport(10.0, 20.0))


if __name__ == '__main__':
    unittest.main()
