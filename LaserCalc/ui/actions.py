"""Application-wide Qt signals for LaserCalc.

This module provides:
    - Signals: custom Qt signals for settings changes, preset lifecycle events,
      errors and UI requests (showLogs, showPresetManager).
"""
import logging

from PySide6 import QtCore


class Signals(QtCore.QObject):
    """Centralized Qt signals for application settings, presets, and UI events."""
    initializationRequested = QtCore.Signal()

    settingChanged = QtCore.Signal(str, object)  # Key, value

    calculatorChanged = QtCore.Signal(str)

    presetsChanged = QtCore.Signal()
    presetLoaded = QtCore.Signal(str, str)  # Calculator type, preset id
    presetSelectionCleared = QtCore.Signal(str)

    showLogs = QtCore.Signal()
    showPresetManager = QtCore.Signal()

    error = QtCore.Signal(str)

    def __init__(self):
        super().__init__()
        self._connect_signals()

    def _connect_signals(self):
        @QtCore.Slot(str, object)
        def setting_changed(key: str, value: object) -> None:
            if key != 'theme':
                return

            try:
                from . import ui
                ui.apply_theme(ui.Theme(value))
            except Exception as ex:
                logging.debug(f'Error applying theme: {ex}')

        self.settingChanged.connect(setting_changed)


signals = Signals()
