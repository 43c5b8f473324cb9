import logging
import os
import tempfile
import unittest

from logging_config import set_log_level, setup_logging


class TestLoggingConfig(unittest.TestCase):

    def setUp(self):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level

        def restore():
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

        self.addCleanup(restore)
        self.tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)

    def test_setup_logging_installs_console_and_file_handlers(self):
        setup_logging(logging.INFO, os.path.join(self.tmpdir.name, "pinland.log"))
        root = logging.getLogger()
        self.assertEqual(root.level, logging.INFO)
        self.assertEqual(len(root.handlers), 2)
        self.assertTrue(all(h.level == logging.INFO for h in root.handlers))

    def test_set_log_level_updates_handlers(self):
        log_file = os.path.join(self.tmpdir.name, "pinland.log")
        setup_logging(logging.INFO, log_file)

        set_log_level("DEBUG")
        logging.getLogger("core.authoring").debug("Punto añadido al anillo exterior")

        root = logging.getLogger()
        self.assertEqual(root.level, logging.DEBUG)
        self.assertTrue(all(h.level == logging.DEBUG for h in root.handlers))
        for handler in root.handlers:
            handler.flush()
        with open(log_file, encoding="utf-8") as f:
            self.assertIn("Punto añadido al anillo exterior", f.read())


if __name__ == '__main__':
    unittest.main()
