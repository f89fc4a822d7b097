# tests/test_log.py
"""
Integration tests for LaserCalc.log
(covers TankHandler, the Qt bridge, setup helpers and the log table models).

Run:
    python -m unittest tests.test_log
"""
import logging
from typing import List

from PySide6.QtCore import QtMsgType

from LaserCalc.log.log import (
    TankHandler,
    qt_message_handler,
    set_logging_level,
    setup_logging,
)
from LaserCalc.log.model import Level, LogFilterProxyModel, LogTableModel
from LaserCalc.ui.actions import signals
from tests.base import BaseTestCase


class LogModuleTests(BaseTestCase):
    """
    Each test starts with a fresh root logger configured by
    setup_logging(enable_stream_handler=False).
    """

    def setUp(self) -> None:
        super().setUp()

        logging.disable(logging.NOTSET)

        setup_logging(enable_stream_handler=False,
                      enable_qt_handler=False,
                      log_level=logging.DEBUG)

        self.root_logger = logging.getLogger()
        self.tank: TankHandler = next(
            h for h in self.root_logger.handlers if isinstance(h, TankHandler)
        )
        self.tank.clear_logs()

    def test_set_logging_level_accepts_valid_levels(self):
        set_logging_level(logging.ERROR)
        self.assertEqual(self.root_logger.level, logging.ERROR)
        for h in self.root_logger.handlers:
            self.assertEqual(h.level, logging.ERROR)

    def test_set_logging_level_rejects_non_int(self):
        with self.assertRaises(ValueError):
            set_logging_level("INFO")  # type: ignore[arg-type]
        with self.assertRaises(ValueError):
            set_logging_level(True)

    def test_set_logging_level_rejects_unknown(self):
        with self.assertRaises(ValueError):
            set_logging_level(1234)

    def test_tank_handler_stores_and_filters(self):
        logging.debug("dbg message")
        logging.error("err message")
        self.assertEqual(len(self.tank.tank), 2)
        errs: List[str] = self.tank.get_logs(logging.ERROR)
        self.assertEqual(len(errs), 1)
        self.assertIn("err message", errs[0])
        self.tank.clear_logs()
        self.assertEqual(len(self.tank.tank), 0)

    def test_emit_triggers_showLogs_on_error(self):
        triggered: list[bool] = []

        def _slot() -> None:
            triggered.append(True)

        signals.showLogs.connect(_slot)
        try:
            logging.warning("not an error")
            self.assertFalse(triggered)
            logging.error("should emit signal")
            self.assertTrue(triggered)
        finally:
            signals.showLogs.disconnect(_slot)

    def test_qt_message_handler_maps_to_logging(self):
        qt_message_handler(QtMsgType.QtInfoMsg, None, "Qt info")
        qt_message_handler(QtMsgType.QtWarningMsg, None, "Qt warn")
        msgs = self.tank.get_logs()
        self.assertTrue(any("Qt info" in m for m in msgs))
        self.assertTrue(any("Qt warn" in m for m in msgs))

    def test_qt_message_handler_fatal_exits(self):
        with self.assertRaises(SystemExit):
            qt_message_handler(QtMsgType.QtFatalMsg, None, "fatal")

    def test_setup_logging_installs_tank_handler_only(self):
        self.assertEqual(
            [type(h) for h in self.root_logger.handlers],
            [TankHandler],
        )

    def test_store_errors_reach_the_tank(self):
        api = self.make_api()
        api.update("preset_missing", {"name": "x"})
        self.assertTrue(any("preset_missing" in m for m in self.tank.get_logs(logging.WARNING)))


class LogTableModelTests(BaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        logging.disable(logging.NOTSET)
        setup_logging(enable_stream_handler=False,
                      enable_qt_handler=False,
                      log_level=logging.DEBUG)

        self.model = LogTableModel(fetch_interval_ms=60_000)
        self.proxy = LogFilterProxyModel()
        self.proxy.setSourceModel(self.model)

    def test_parse_formatted_line(self):
        entry = LogTableModel.parse("[2025-01-05 10:00:00] <lib> WARNING:  Skipped invalid preset record")
        self.assertEqual(entry["date"], "2025-01-05 10:00:00")
        self.assertEqual(entry["module"], "lib")
        self.assertEqual(entry["level"], Level.WARNING)
        self.assertEqual(entry["message"], "Skipped invalid preset record")

    def test_parse_unformatted_line(self):
        entry = LogTableModel.parse("plain text")
        self.assertEqual(entry["level"], Level.NOTSET)
        self.assertEqual(entry["message"], "plain text")

    def test_fetch_appends_new_entries(self):
        logging.info("first")
        self.model.fetch()
        count = self.model.rowCount()
        self.assertGreaterEqual(count, 1)

        logging.error("second")
        self.model.fetch()
        self.assertEqual(self.model.rowCount(), count + 1)

    def test_pause_stops_fetching(self):
        self.model.pause()
        logging.info("ignored while paused")
        self.model.fetch()
        self.assertEqual(self.model.rowCount(), 0)

        self.model.resume()
        self.model.fetch()
        self.assertGreaterEqual(self.model.rowCount(), 1)

    def test_filter_level(self):
        logging.debug("quiet")
        logging.error("loud")
        self.model.fetch()

        self.proxy.set_filter_level(logging.ERROR)
        self.assertEqual(self.proxy.rowCount(), 1)
        self.proxy.set_filter_level(logging.NOTSET)
        self.assertEqual(self.proxy.rowCount(), self.model.rowCount())

    def test_clear_logs(self):
        logging.info("entry")
        self.model.fetch()
        self.model.clear_logs()
        self.assertEqual(self.model.rowCount(), 0)
