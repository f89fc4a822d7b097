"""Main window hosting the calculator catalog and the preset controls.

This module defines:
    - show(): initialize and display the main window
    - CalculatorForm: parameter inputs built from a calculator's defaults
    - MainWindow: calculator chooser, parameter form, preset manager and log dock
"""
import logging
from typing import Any, Dict, Mapping, Optional

from PySide6 import QtWidgets, QtCore, QtGui

from . import ui
from .actions import signals
from ..log.view import LogDockWidget
from ..presets import calculators
from ..presets import lib as presets_lib
from ..presets.manager import PresetManagerWidget
from ..settings import lib
from ..settings.lib import app_name

DEFAULT_CALCULATOR = 'energy-cost'

widget = None


def show():
    global widget

    if widget is None:
        widget = MainWindow()

    widget.show()


class CalculatorForm(QtWidgets.QWidget):
    """Input form for the parameters of one calculator type.

    Values the calculator does not define are kept aside and returned unchanged by
    :meth:`parameters`, so presets round-trip through the form.
    """

    parametersChanged = QtCore.Signal()

    def __init__(self, calculator_type: str, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self._calculator_type = ''
        self._editors: Dict[str, QtWidgets.QWidget] = {}
        self._extra: Dict[str, Any] = {}

        QtWidgets.QVBoxLayout(self)
        self.layout().setContentsMargins(0, 0, 0, 0)

        self._form = QtWidgets.QFormLayout()
        self._form.setLabelAlignment(QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter)
        self.layout().addLayout(self._form)

        self.status_label = QtWidgets.QLabel(self)
        self.status_label.setObjectName('FieldError')
        self.status_label.setWordWrap(True)
        self.layout().addWidget(self.status_label)
        self.layout().addStretch(1)

        self.set_calculator_type(calculator_type)

    def calculator_type(self) -> str:
        return self._calculator_type

    def set_calculator_type(self, calculator_type: str) -> None:
        """Rebuild the inputs for calculator_type, filled with its defaults."""
        if calculator_type == self._calculator_type:
            return
        self._calculator_type = calculator_type

        while self._form.rowCount():
            self._form.removeRow(0)
        self._editors.clear()
        self._extra.clear()

        for key, value in calculators.default_parameters(calculator_type).items():
            editor = self._create_editor(value)
            self._editors[key] = editor
            self._form.addRow(calculators.display_name(calculator_type, key), editor)

        self.set_parameters({})

    def _create_editor(self, value: Any) -> QtWidgets.QWidget:
        if isinstance(value, bool):
            editor = QtWidgets.QCheckBox(self)
            editor.toggled.connect(self._changed)
        elif isinstance(value, int):
            editor = QtWidgets.QSpinBox(self)
            editor.setRange(-1_000_000_000, 1_000_000_000)
            editor.valueChanged.connect(self._changed)
        elif isinstance(value, float):
            editor = QtWidgets.QDoubleSpinBox(self)
            editor.setRange(-1e12, 1e12)
            editor.setDecimals(3)
            editor.valueChanged.connect(self._changed)
        else:
            editor = QtWidgets.QLineEdit(self)
            editor.textChanged.connect(self._changed)
        return editor

    @QtCore.Slot()
    def _changed(self, *args) -> None:
        errors, _ = calculators.validate_parameters(self._calculator_type, self.parameters())
        self.status_label.setText('\n'.join(errors))
        self.status_label.setHidden(not errors)
        self.parametersChanged.emit()

    def parameters(self) -> Dict[str, Any]:
        """Return the current input values."""
        params = dict(self._extra)
        for key, editor in self._editors.items():
            if isinstance(editor, QtWidgets.QCheckBox):
                params[key] = editor.isChecked()
            elif isinstance(editor, (QtWidgets.QSpinBox, QtWidgets.QDoubleSpinBox)):
                params[key] = editor.value()
            else:
                params[key] = editor.text()
        return params

    def set_parameters(self, parameters: Mapping[str, Any]) -> None:
        """Fill the inputs from parameters, using defaults for missing values."""
        merged = calculators.merge_with_defaults(self._calculator_type, parameters)
        self._extra = {k: v for k, v in merged.items() if k not in self._editors}

        for key, editor in self._editors.items():
            value = merged.get(key)
            editor.blockSignals(True)
            try:
                if isinstance(editor, QtWidgets.QCheckBox):
                    editor.setChecked(bool(value))
                elif isinstance(editor, QtWidgets.QSpinBox):
                    editor.setValue(int(value))
                elif isinstance(editor, QtWidgets.QDoubleSpinBox):
                    editor.setValue(float(value))
                else:
                    editor.setText('' if value is None else str(value))
            except (TypeError, ValueError) as ex:
                logging.warning(f'Could not apply "{key}"={value!r}: {ex}')
            finally:
                editor.blockSignals(False)
        self._changed()


class MainWindow(QtWidgets.QMainWindow):
    """Calculator host window."""

    def __init__(self, api: Optional[presets_lib.PresetsAPI] = None, parent=None):
        super().__init__(parent=parent)
        self.setWindowTitle(app_name)
        self.setObjectName('LaserCalcMainWindow')

        self.api = api if api is not None else presets_lib.PresetsAPI(parent=self)

        self.calculator_editor: QtWidgets.QComboBox
        self.form: CalculatorForm
        self.presets_view: PresetManagerWidget
        self.log_view: LogDockWidget

        self._create_ui()
        self._init_actions()
        self._connect_signals()

    def _create_ui(self) -> None:
        central = QtWidgets.QWidget(self)
        layout = QtWidgets.QVBoxLayout(central)
        margin = ui.Size.Margin(1.0)
        layout.setContentsMargins(margin, margin, margin, margin)
        layout.setSpacing(ui.Size.Margin(0.5))
        self.setCentralWidget(central)

        calculator_type = lib.settings['calculator']
        if calculator_type not in calculators.calculator_types():
            calculator_type = DEFAULT_CALCULATOR

        self.calculator_editor = QtWidgets.QComboBox(central)
        for t in calculators.calculator_types():
            self.calculator_editor.addItem(calculators.label(t), userData=t)
        self.calculator_editor.setCurrentIndex(self.calculator_editor.findData(calculator_type))
        layout.addWidget(self.calculator_editor)

        self.form = CalculatorForm(calculator_type, parent=central)
        layout.addWidget(self.form, 1)

        self.presets_view = PresetManagerWidget(
            self.api,
            calculator_type,
            current_parameters=self.form.parameters,
            on_preset_load=self.load_preset,
            parent=central
        )
        layout.addWidget(self.presets_view, 1)

        self.log_view = LogDockWidget(parent=self)
        self.addDockWidget(QtCore.Qt.BottomDockWidgetArea, self.log_view)
        self.log_view.hide()

        self.setStatusBar(QtWidgets.QStatusBar(self))

    def _init_actions(self) -> None:
        action = self.log_view.toggleViewAction()
        action.setText('Show Logs')
        action.setShortcut('Ctrl+L')
        self.addAction(action)

        @QtCore.Slot()
        def toggle_theme() -> None:
            theme = ui.Theme(lib.settings['theme'])
            lib.settings['theme'] = (ui.Theme.Light if theme == ui.Theme.Dark else ui.Theme.Dark).value

        action = QtGui.QAction('Toggle Theme', self)
        action.setShortcut('Ctrl+T')
        action.triggered.connect(toggle_theme)
        self.addAction(action)

        action = QtGui.QAction('Reload Presets', self)
        action.setShortcut('F5')
        action.triggered.connect(self.api.reload)
        self.addAction(action)

        self.setContextMenuPolicy(QtCore.Qt.ActionsContextMenu)

    def _connect_signals(self) -> None:
        self.calculator_editor.currentIndexChanged.connect(
            lambda idx: self.set_calculator_type(self.calculator_editor.itemData(idx))
        )
        self.form.parametersChanged.connect(self.presets_view.refresh_readout)

        signals.initializationRequested.connect(self.api.reload)
        signals.showLogs.connect(self.log_view.show)
        signals.error.connect(self.show_error)
        signals.showPresetManager.connect(self.presets_view.manager.open_list)

    def calculator_type(self) -> str:
        return self.form.calculator_type()

    @QtCore.Slot(str)
    def set_calculator_type(self, calculator_type: str) -> None:
        if calculator_type == self.form.calculator_type():
            return
        self.form.set_calculator_type(calculator_type)
        self.presets_view.set_calculator_type(calculator_type)

        idx = self.calculator_editor.findData(calculator_type)
        if idx != self.calculator_editor.currentIndex():
            self.calculator_editor.blockSignals(True)
            self.calculator_editor.setCurrentIndex(idx)
            self.calculator_editor.blockSignals(False)

        lib.settings['calculator'] = calculator_type
        signals.calculatorChanged.emit(calculator_type)

    @QtCore.Slot(str)
    def show_error(self, message: str) -> None:
        self.statusBar().showMessage(message, 5000)

    def load_preset(self, preset: presets_lib.Preset) -> None:
        """Apply a preset's parameters to the form."""
        logging.debug(f'Loading preset "{preset.name}" into {preset.calculator_type}')
        self.form.set_parameters(preset.parameters)
        self.statusBar().showMessage(f'Loaded preset "{preset.name}"', 3000)

    def sizeHint(self):
        return QtCore.QSize(
            ui.Size.DefaultWidth(1.5),
            ui.Size.DefaultHeight(1.5)
        )
