import logging
import os
import tempfile
from unittest import TestCase, mock

from adminlist.core_services.Config import Config
from adminlist.core_services.Database import DatabaseError
from adminlist.core_services.ErrorHandler import ErrorHandler


class TestConfig(TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            config = Config()
            self.assertFalse(config.debug)
            self.assertEqual(config.page_limit, 20)
            self.assertFalse(config.sql_log)
            self.assertIsNone(config.log_file)
            self.assertEqual(config.database, ":memory:")

    def test_environment(self):
        with mock.patch.dict(os.environ, {"ADMINLIST_DEBUG": "yes", "ADMINLIST_PAGE_LIMIT": "7"}):
            config = Config()
            self.assertTrue(config.debug)
            self.assertEqual(config.page_limit, 7)

    def test_overrides_win(self):
        with mock.patch.dict(os.environ, {"ADMINLIST_PAGE_LIMIT": "7"}):
            config = Config({"ADMINLIST_PAGE_LIMIT": "15"}).set("ADMINLIST_SQL_LOG", True)
            self.assertEqual(config.page_limit, 15)
            self.assertTrue(config.sql_log)

    def test_bad_integer_falls_back(self):
        config = Config({"ADMINLIST_PAGE_LIMIT": "many"})
        self.assertEqual(config.page_limit, 20)
        self.assertEqual(config.get("UNKNOWN_KEY", "x"), "x")


class TestErrorHandler(TestCase):
    def setUp(self):
        self.handler = ErrorHandler("adminlist.tests", log_to_console=False)

    def test_mapped_errors_are_logged_and_passed_to_fallback(self):
        seen = []
        with self.assertLogs("adminlist.tests", level="ERROR") as logs:
            with self.handler.handle_errors({DatabaseError: "Query failed"},
                                            fallback=lambda message, error: seen.append((message, str(error)))):
                raise DatabaseError("no such table")

        self.assertEqual(seen, [("Query failed", "no such table")])
        self.assertIn("Query failed | Exception: DatabaseError: no such table", logs.output[0])

    def test_reraise(self):
        with self.assertLogs("adminlist.tests", level="WARNING"):
            with self.assertRaises(DatabaseError):
                with self.handler.handle_errors({DatabaseError: "Query failed"}, log_level=logging.WARNING,
                                                reraise=True):
                    raise DatabaseError()

    def test_unmapped_errors_propagate(self):
        with self.assertRaises(KeyError):
            with self.handler.handle_errors({DatabaseError: "Query failed"}):
                raise KeyError("x")

    def test_file_logging(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "adminlist.log")
            handler = ErrorHandler("adminlist.tests.file", log_to_console=False, log_to_file=path)
            ErrorHandler("adminlist.tests.file", log_to_console=False, log_to_file=path)
            self.assertEqual(len(handler.logger.handlers), 1)

            handler.warning("slow query %s", "q1")
            for log_handler in handler.logger.handlers:
                log_handler.flush()
                log_handler.close()
            handler.logger.handlers.clear()

            with open(path) as log_file:
                self.assertIn("WARNING adminlist.tests.file: slow query q1", log_file.read())
