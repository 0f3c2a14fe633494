import logging
import unittest
import tempfile
import os
from unittest.mock import patch

from duckpond.logging import setup_logging, get_logger


class TestLogging(unittest.TestCase):

    def tearDown(self):
        setup_logging("INFO")

    def test_setup_logging_stdout(self):
        """Verify that setup_logging configures logging to stdout correctly."""
        setup_logging("DEBUG")
        logger = logging.getLogger()
        self.assertEqual(logger.level, logging.DEBUG)
        self.assertTrue(any(isinstance(h, logging.StreamHandler) for h in logger.handlers))

    def test_unknown_level_falls_back_to_info(self):
        setup_logging("LOUD")
        self.assertEqual(logging.getLogger().level, logging.INFO)

    def test_third_party_loggers_stay_quiet(self):
        setup_logging("DEBUG")
        self.assertEqual(logging.getLogger("trimesh").level, logging.WARNING)
        setup_logging("ERROR")
        self.assertEqual(logging.getLogger("trimesh").level, logging.ERROR)

    def test_reconfigure_replaces_handlers(self):
        setup_logging("INFO")
        setup_logging("INFO")
        self.assertEqual(len(logging.getLogger().handlers), 1)

    def test_setup_logging_file(self):
        """Verify that setup_logging configures file logging correctly."""
        with tempfile.NamedTemporaryFile(mode="w", delete=False) as tmp_file:
            log_file_path = tmp_file.name

        try:
            with patch("logging.FileHandler") as mock_file_handler:
                setup_logging("INFO", log_file=log_file_path)
                logger = logging.getLogger()
                self.assertEqual(logger.level, logging.INFO)
                mock_file_handler.assert_called_once_with(log_file_path, mode="a")
            # drop the mocked handler before tearDown reconfigures
            logging.getLogger().handlers = []
        finally:
            os.remove(log_file_path)

    def test_get_logger(self):
        """Verify that get_logger returns a logger and that it logs messages."""
        logger = get_logger("test_logger")
        self.assertIsInstance(logger, logging.Logger)

        with self.assertLogs("test_logger", level="INFO") as cm:
            logger.info("Duck loaded.")
            logger.warning("Sound missing.")
        self.assertEqual(len(cm.output), 2)
        self.assertIn("INFO:test_logger:Duck loaded.", cm.output[0])
        self.assertIn("WARNING:test_logger:Sound missing.", cm.output[1])

    def test_log_to_file(self):
        """Verify that log messages are written to the specified file."""
        with tempfile.NamedTemporaryFile(mode="w", delete=False, suffix=".log") as tmp_file:
            log_file_path = tmp_file.name

        try:
            setup_logging("INFO", log_file=log_file_path)
            logger = get_logger("file_test_logger")
            logger.info("quack")
            for h in logging.getLogger().handlers:
                h.flush()

            with open(log_file_path, "r") as f:
                log_contents = f.read()

            self.assertIn("quack", log_contents)
            self.assertIn("INFO", log_contents)
            self.assertIn("file_test_logger", log_contents)
        finally:
            setup_logging("INFO")
            if os.path.exists(log_file_path):
                os.remove(log_file_path)


if __name__ == "__main__":
    unittest.main()
