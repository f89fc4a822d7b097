"""Log view and dock widget for browsing the messages kept by the TankHandler.

This module provides:
    - LogTableView: table view for formatted log entries
    - LogDockWidget: dockable container with level filters and a clear action
"""
import logging

from PySide6 import QtCore, QtWidgets, QtGui

from . import log
from .model import LogFilterProxyModel, LogTableModel, Columns, get_handler
from ..ui import ui

LEVELS = (
    ('Debug', logging.DEBUG),
    ('Info', logging.INFO),
    ('Warning', logging.WARNING),
    ('Error', logging.ERROR),
    ('Critical', logging.CRITICAL),
)


class LogTableView(QtWidgets.QTableView):
    """A QTableView displaying log messages from LogTableModel."""

    def __init__(self, parent=None):
        super().__init__(parent=parent)
        self.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        self.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        self.setWordWrap(True)

        proxy = LogFilterProxyModel(self)
        proxy.setSourceModel(LogTableModel(parent=self))
        self.setModel(proxy)

        header = self.horizontalHeader()
        header.setDefaultAlignment(QtCore.Qt.AlignLeft | QtCore.Qt.AlignVCenter)
        header.setSectionResizeMode(Columns.Date, QtWidgets.QHeaderView.ResizeToContents)
        header.setSectionResizeMode(Columns.Module, QtWidgets.QHeaderView.ResizeToContents)
        header.setSectionResizeMode(Columns.Level, QtWidgets.QHeaderView.ResizeToContents)
        header.setSectionResizeMode(Columns.Message, QtWidgets.QHeaderView.Stretch)

        header = self.verticalHeader()
        header.setDefaultSectionSize(ui.Size.RowHeight(1.0))
        header.setHidden(True)

        self.model().rowsInserted.connect(self.scrollToBottom)

    def sizeHint(self):
        return QtCore.QSize(
            ui.Size.DefaultWidth(1.0),
            ui.Size.DefaultHeight(0.5)
        )


class LogDockWidget(QtWidgets.QDockWidget):
    """Dockable widget for viewing app logs."""

    def __init__(self, parent=None) -> None:
        super().__init__('Logs', parent)
        self.setObjectName('LaserCalcLogDockWidget')
        self.setFeatures(
            QtWidgets.QDockWidget.DockWidgetMovable |
            QtWidgets.QDockWidget.DockWidgetFloatable |
            QtWidgets.QDockWidget.DockWidgetClosable
        )

        self.view = LogTableView(self)
        self.view.setContextMenuPolicy(QtCore.Qt.ActionsContextMenu)
        self.setWidget(self.view)

        self._init_actions()
        self.visibilityChanged.connect(self.on_visibility_changed)

    def _add_level_menu(self, label: str, current: int, callback) -> None:
        action = QtGui.QAction(label, self)
        menu = QtWidgets.QMenu(self)
        group = QtGui.QActionGroup(self)
        group.setExclusive(True)

        for name, lvl in LEVELS:
            act = menu.addAction(name)
            act.setData(lvl)
            act.setCheckable(True)
            act.setChecked(current == lvl)
            group.addAction(act)
        group.triggered.connect(lambda a: callback(a.data()))

        action.setMenu(menu)
        self.view.addAction(action)

    def _init_actions(self) -> None:
        proxy = self.view.model()

        self._add_level_menu('App Level', logging.getLogger().level, log.set_logging_level)
        self._add_level_menu('View Filter', proxy.filter_level(), proxy.set_filter_level)

        action = QtGui.QAction('Clear Logs', self)
        action.setToolTip('Clear all log entries')
        action.triggered.connect(self.clear_logs)
        self.view.addAction(action)

    @QtCore.Slot()
    def clear_logs(self) -> None:
        try:
            get_handler().clear_logs()
        except RuntimeError:
            logging.warning('TankHandler not found; cannot clear underlying logs.')
        self.view.model().sourceModel().clear_logs()

    @QtCore.Slot(bool)
    def on_visibility_changed(self, visible: bool) -> None:
        model = self.view.model().sourceModel()
        if visible:
            model.resume()
            model.fetch()
        else:
            model.pause()
