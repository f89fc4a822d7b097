import enum
import logging
import re
from typing import Any, Dict, List

from PySide6 import QtCore

from .log import TankHandler, get_tank_handler
from ..ui import ui


class Columns(enum.IntEnum):
    """Defines the column indexes for log table data."""
    Date = 0
    Module = 1
    Level = 2
    Message = 3


class Level(enum.IntEnum):
    """Maps standard log level names to their numeric values."""
    NOTSET = logging.NOTSET
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


LevelRole = QtCore.Qt.UserRole + 1


def get_handler() -> TankHandler:
    """Returns the TankHandler from the root logger or raises RuntimeError."""
    handler = get_tank_handler()
    if handler is None:
        raise RuntimeError('TankHandler not found in root logger')
    return handler


class LogTableModel(QtCore.QAbstractTableModel):
    """
    A model for displaying log messages fetched from a TankHandler.

    New entries are polled from the tank every ``fetch_interval_ms`` unless paused.
    """

    re_log_pattern = re.compile(
        r'^\[(?P<date>[^\]]+)\]\s+<(?P<module>[^>]+)>\s+(?P<level>[^:]+):\s+(?P<message>.*)$',
        flags=re.DOTALL
    )

    def __init__(self, parent: Any = None, fetch_interval_ms: int = 1000):
        super().__init__(parent=parent)
        self._logs: List[Dict[str, Any]] = []
        self._is_paused = False

        self._timer = QtCore.QTimer(self)
        self._timer.timeout.connect(self.fetch)
        self._timer.start(fetch_interval_ms)

    @QtCore.Slot()
    def pause(self) -> None:
        self._is_paused = True

    @QtCore.Slot()
    def resume(self) -> None:
        self._is_paused = False

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._logs)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(Columns)

    def data(self, index: QtCore.QModelIndex, role: int = QtCore.Qt.DisplayRole) -> Any:
        if not index.isValid() or index.row() >= len(self._logs):
            return None

        entry = self._logs[index.row()]

        if role == QtCore.Qt.DisplayRole:
            if index.column() == Columns.Date:
                return entry['date']
            if index.column() == Columns.Module:
                return entry['module']
            if index.column() == Columns.Level:
                return entry['level'].name
            if index.column() == Columns.Message:
                return entry['message']

        if role == QtCore.Qt.ForegroundRole:
            from ..settings import lib
            theme = ui.Theme(lib.settings['theme'])
            if entry['level'] == Level.DEBUG:
                return ui.Color.SecondaryText(theme)
            if entry['level'] >= Level.ERROR:
                return ui.Color.Red(theme)

        if role == LevelRole:
            return entry['level'].value

        return None

    def headerData(self, section: int, orientation, role: int = QtCore.Qt.DisplayRole) -> Any:
        if orientation == QtCore.Qt.Horizontal and role == QtCore.Qt.DisplayRole:
            return Columns(section).name
        return super().headerData(section, orientation, role)

    @QtCore.Slot()
    def fetch(self) -> None:
        """Append messages the tank received since the last fetch."""
        if self._is_paused:
            return

        try:
            handler = get_handler()
        except RuntimeError:
            return

        incoming = handler.get_logs(logging.NOTSET)[len(self._logs):]
        if not incoming:
            return

        entries = [self.parse(msg) for msg in incoming]
        first = len(self._logs)
        self.beginInsertRows(QtCore.QModelIndex(), first, first + len(entries) - 1)
        self._logs.extend(entries)
        self.endInsertRows()

    def clear_logs(self) -> None:
        self.beginResetModel()
        self._logs.clear()
        self.endResetModel()

    @classmethod
    def parse(cls, raw_message: str) -> Dict[str, Any]:
        """
        Split a formatted log line into its date, module, level and message parts.

        Lines that do not match keep the whole text as the message with a NOTSET level.
        """
        match = cls.re_log_pattern.match(raw_message)
        if not match:
            return {'date': '', 'module': '', 'level': Level.NOTSET, 'message': raw_message}

        try:
            level = Level[match.group('level').strip().upper()]
        except KeyError:
            level = Level.NOTSET

        return {
            'date': match.group('date'),
            'module': match.group('module'),
            'level': level,
            'message': match.group('message'),
        }


class LogFilterProxyModel(QtCore.QSortFilterProxyModel):
    """Filters out rows below a minimum logging level."""

    def __init__(self, parent: Any = None):
        super().__init__(parent)
        self._filter_level = logging.NOTSET

    def filter_level(self) -> int:
        return self._filter_level

    def set_filter_level(self, level: int) -> None:
        self._filter_level = level
        self.invalidateFilter()

    def filterAcceptsRow(self, source_row: int, source_parent: QtCore.QModelIndex) -> bool:
        index = self.sourceModel().index(source_row, Columns.Date, source_parent)
        level = index.data(LevelRole)
        if level is None:
            return True
        return level >= self._filter_level
