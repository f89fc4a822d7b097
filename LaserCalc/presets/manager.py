"""Preset workflows for one open calculator.

:class:`PresetManager` is the state machine behind the preset controls. It owns the
selection, opens and closes the editor and the list, and loads presets into the
host calculator through the ``on_preset_load`` callback. :class:`PresetManagerWidget`
lays out the selector, the save/manage buttons and, in full mode, the parameter
readout and the list.
"""
import enum
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from PySide6 import QtWidgets, QtCore

from . import calculators
from . import lib
from .editor import PresetEditor
from .model import PresetModel
from .selector import PresetSelector
from .view import PresetListWidget
from ..status import status
from ..ui import ui
from ..ui.actions import signals


class ManagerState(enum.StrEnum):
    Idle = 'idle'
    Selected = 'selected'
    Editing = 'editing'
    Listing = 'listing'


class PresetManager(QtCore.QObject):
    """State machine coordinating the preset store with a host calculator.

    States are ``Idle``, ``Selected`` (a preset id is loaded), ``Editing`` (a new
    preset when :attr:`editing` is None, otherwise the edited preset) and
    ``Listing``. Leaving ``Editing`` or ``Listing`` returns to the state they were
    entered from.

    Args:
        api: The preset store.
        calculator_type: The calculator the presets are scoped to.
        current_parameters: Returns the host's live parameter values.
        on_preset_load: Receives the preset whose parameters the host should apply.
        default_version: Version marker given to new presets.
    """

    stateChanged = QtCore.Signal(str)
    #: The selected preset id, or None
    selectionChanged = QtCore.Signal(object)
    #: Emitted with (draft payload, edited preset or None) when editing starts
    editingStarted = QtCore.Signal(object, object)
    editingFinished = QtCore.Signal()

    def __init__(
            self,
            api: lib.PresetsAPI,
            calculator_type: str,
            current_parameters: Callable[[], Mapping[str, Any]],
            on_preset_load: Callable[[lib.Preset], None],
            default_version: Optional[str] = None,
            parent: Optional[QtCore.QObject] = None
    ) -> None:
        super().__init__(parent=parent)

        if default_version is None:
            from ..settings import lib as settings_lib
            default_version = settings_lib.settings['default_version']

        self._api = api
        self._calculator_type = calculator_type
        self._current_parameters = current_parameters
        self._on_preset_load = on_preset_load
        self._default_version = default_version

        self._state = ManagerState.Idle
        self._selected_id: Optional[str] = None
        self._editing: Optional[lib.Preset] = None
        self._history: List[ManagerState] = []

        self._unsubscribe = self._api.subscribe(self._presets_changed)
        self.destroyed.connect(lambda *args: self._unsubscribe())

    # -- properties ----------------------------------------------------------

    def api(self) -> lib.PresetsAPI:
        return self._api

    @property
    def state(self) -> ManagerState:
        return self._state

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    @property
    def editing(self) -> Optional[lib.Preset]:
        """The preset being edited, or None when creating or not editing."""
        return self._editing

    @property
    def calculator_type(self) -> str:
        return self._calculator_type

    @property
    def default_version(self) -> str:
        return self._default_version

    def presets(self) -> List[lib.Preset]:
        return self._api.by_calculator(self._calculator_type)

    def selected(self) -> Optional[lib.Preset]:
        if self._selected_id is None:
            return None
        return self._api.get(self._selected_id)

    # -- transitions ---------------------------------------------------------

    def _set_state(self, state: ManagerState) -> None:
        if state == self._state:
            return
        logging.debug(f'Preset manager [{self._calculator_type}]: {self._state} -> {state}')
        self._state = state
        self.stateChanged.emit(state.value)

    def _set_selected(self, preset_id: Optional[str]) -> None:
        if preset_id == self._selected_id:
            return
        self._selected_id = preset_id
        self.selectionChanged.emit(preset_id)

    def _push(self, state: ManagerState) -> None:
        if state != self._state:
            self._history.append(self._state)
        self._set_state(state)

    def _pop(self) -> None:
        previous = self._history.pop() if self._history else ManagerState.Idle
        if previous == ManagerState.Selected and self._selected_id is None:
            previous = ManagerState.Idle
        self._set_state(previous)

    def _reset(self) -> None:
        self._history.clear()
        self._editing = None
        self._set_selected(None)
        self._set_state(ManagerState.Idle)

    def set_calculator_type(self, calculator_type: str) -> None:
        """Scope the manager to another calculator. Clears the selection."""
        if calculator_type == self._calculator_type:
            return
        self._reset()
        self._calculator_type = calculator_type

    def select(self, preset_id: str) -> bool:
        """Load a preset into the host calculator.

        Returns:
            True if the preset was found and loaded. A missing id reverts to Idle.
        """
        preset = self._api.get(preset_id)
        if preset is None or preset.calculator_type != self._calculator_type:
            logging.warning(f'Preset not available for {self._calculator_type}: {preset_id}')
            self._reset()
            return False

        self._on_preset_load(preset)

        self._history.clear()
        self._editing = None
        self._set_selected(preset.id)
        self._set_state(ManagerState.Selected)
        signals.presetLoaded.emit(self._calculator_type, preset.id)
        return True

    def clear(self) -> None:
        """Drop the selection and return to Idle."""
        had_selection = self._selected_id is not None
        self._reset()
        if had_selection:
            signals.presetSelectionCleared.emit(self._calculator_type)

    def begin_create(self) -> Dict[str, Any]:
        """Start creating a preset from the host's current parameters.

        Returns:
            The draft payload shown in the editor.
        """
        draft = {
            'name': '',
            'description': '',
            'tags': [],
            'calculator_type': self._calculator_type,
            'parameters': dict(self._current_parameters() or {}),
            'version': self._default_version,
        }
        self._editing = None
        self._push(ManagerState.Editing)
        self.editingStarted.emit(draft, None)
        return draft

    def begin_edit(self, preset_id: str) -> Optional[lib.Preset]:
        """Start editing an existing preset. Editing from the list closes it first.

        Returns:
            The preset being edited, or None if it does not exist.
        """
        preset = self._api.get(preset_id)
        if preset is None:
            logging.warning(f'Cannot edit missing preset: {preset_id}')
            return None

        draft = {
            'name': preset.name,
            'description': preset.description,
            'tags': list(preset.tags),
            'calculator_type': preset.calculator_type,
            'parameters': dict(preset.parameters),
            'version': preset.version,
        }
        if self._state == ManagerState.Listing:
            self._pop()
        self._editing = preset
        self._push(ManagerState.Editing)
        self.editingStarted.emit(draft, preset)
        return preset

    def submit(self, payload: Mapping[str, Any]) -> lib.Result:
        """Save the editor payload.

        Creating selects the new preset. Updating returns to the previous state. A
        failed save stays in Editing, except a missing preset which reverts to Idle.
        """
        if self._state != ManagerState.Editing:
            raise RuntimeError(f'Cannot submit a preset while {self._state}')

        if self._editing is None:
            result = self._api.create(payload)
            if not result:
                return result
            self._history.clear()
            self._set_selected(result.data.id)
            self._set_state(ManagerState.Selected)
            self.editingFinished.emit()
            return result

        result = self._api.update(self._editing.id, payload)
        if result.status == status.Status.PresetNotFound:
            self._reset()
            self.editingFinished.emit()
            return result
        if not result:
            return result

        self._editing = None
        self._pop()
        self.editingFinished.emit()
        return result

    def cancel(self) -> None:
        """Leave Editing or Listing without touching the store."""
        if self._state not in (ManagerState.Editing, ManagerState.Listing):
            return
        was_editing = self._state == ManagerState.Editing
        self._editing = None
        self._pop()
        if was_editing:
            self.editingFinished.emit()

    def open_list(self) -> None:
        if self._state == ManagerState.Listing:
            return
        self._push(ManagerState.Listing)

    def close_list(self) -> None:
        if self._state != ManagerState.Listing:
            return
        self._pop()

    def delete(self, preset_id: str) -> lib.Result:
        """Delete a preset. Deleting the selected preset reverts to Idle.

        A successful delete while listing closes the list.
        """
        result = self._api.delete(preset_id)
        if not result:
            return result
        if preset_id == self._selected_id:
            self._drop_selection()
        if self._state == ManagerState.Listing:
            self._pop()
        return result

    def _drop_selection(self) -> None:
        self._set_selected(None)
        if self._state == ManagerState.Selected:
            self._set_state(ManagerState.Idle)
        self._history = [ManagerState.Idle if s == ManagerState.Selected else s for s in self._history]
        signals.presetSelectionCleared.emit(self._calculator_type)

    def _presets_changed(self, presets: List[lib.Preset]) -> None:
        if self._selected_id is None:
            return
        if any(p.id == self._selected_id for p in presets):
            return
        logging.debug(f'Selected preset {self._selected_id} no longer exists')
        self._drop_selection()

    def dispose(self) -> None:
        """Stop listening to the store."""
        self._unsubscribe()


class ParameterReadout(QtWidgets.QWidget):
    """Read-only display of the host's current parameters."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        QtWidgets.QFormLayout(self)
        self.layout().setContentsMargins(0, 0, 0, 0)
        self.layout().setLabelAlignment(QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter)

    def set_parameters(self, calculator_type: str, parameters: Mapping[str, Any]) -> None:
        layout = self.layout()
        while layout.rowCount():
            layout.removeRow(0)

        from ..settings import lib as settings_lib
        from ..settings import locale

        for key, value in parameters.items():
            if isinstance(value, float):
                text = locale.format_float(value, settings_lib.settings['locale'])
            else:
                text = str(value)
            label = QtWidgets.QLabel(text, self)
            label.setTextInteractionFlags(QtCore.Qt.TextSelectableByMouse)
            layout.addRow(calculators.display_name(calculator_type, key), label)

    def rows(self) -> List[Tuple[str, str]]:
        """Return the (label, value) pairs shown."""
        layout = self.layout()
        pairs = []
        for row in range(layout.rowCount()):
            label = layout.itemAt(row, QtWidgets.QFormLayout.LabelRole).widget()
            field = layout.itemAt(row, QtWidgets.QFormLayout.FieldRole).widget()
            pairs.append((label.text(), field.text()))
        return pairs


class PresetManagerWidget(QtWidgets.QWidget):
    """Preset controls for a calculator.

    Compact mode shows the selector, a save button and an optional manage button.
    Full mode also shows the current parameters and the preset list inline.
    """

    def __init__(
            self,
            api: lib.PresetsAPI,
            calculator_type: str,
            current_parameters: Callable[[], Mapping[str, Any]],
            on_preset_load: Callable[[lib.Preset], None],
            compact: Optional[bool] = None,
            show_manage: Optional[bool] = None,
            parent: Optional[QtWidgets.QWidget] = None
    ) -> None:
        super().__init__(parent=parent)

        from ..settings import lib as settings_lib
        self._compact = settings_lib.settings['compact'] if compact is None else compact
        self._show_manage = settings_lib.settings['show_manage'] if show_manage is None else show_manage
        self._current_parameters = current_parameters

        self.model = PresetModel(api, calculator_type, parent=self)
        self.manager = PresetManager(api, calculator_type, current_parameters, on_preset_load, parent=self)

        self.selector: PresetSelector
        self.save_button: QtWidgets.QPushButton
        self.manage_button: Optional[QtWidgets.QPushButton] = None
        self.readout: Optional[ParameterReadout] = None
        self.list_widget: Optional[PresetListWidget] = None
        self.list_dialog: Optional[QtWidgets.QDialog] = None
        self.editor: Optional[PresetEditor] = None

        self._create_ui()
        self._connect_signals()
        self.refresh_readout()

    def is_compact(self) -> bool:
        return self._compact

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Indicator(1.0)
        self.layout().setContentsMargins(0, 0, 0, 0)
        self.layout().setSpacing(o)

        row = QtWidgets.QHBoxLayout()
        self.layout().addLayout(row)

        self.selector = PresetSelector(self.model, parent=self)
        row.addWidget(self.selector, 1)

        self.save_button = QtWidgets.QPushButton('Save preset', self)
        self.save_button.setToolTip('Save the current parameters as a new preset')
        row.addWidget(self.save_button)

        if self._show_manage:
            self.manage_button = QtWidgets.QPushButton('Manage', self)
            self.manage_button.setToolTip('Browse, edit and delete presets')
            row.addWidget(self.manage_button)

        if self._compact:
            return

        label = QtWidgets.QLabel('Current parameters', self)
        label.setObjectName('SecondaryText')
        self.layout().addWidget(label)

        self.readout = ParameterReadout(self)
        self.layout().addWidget(self.readout)

        self.list_widget = PresetListWidget(self.model, parent=self)
        self.layout().addWidget(self.list_widget, 1)

    def _connect_signals(self) -> None:
        self.selector.presetSelected.connect(self._preset_selected)
        self.save_button.clicked.connect(self.manager.begin_create)
        if self.manage_button:
            self.manage_button.clicked.connect(self._manage_clicked)

        self.manager.selectionChanged.connect(self.selector.set_current)
        self.manager.selectionChanged.connect(self.refresh_readout)
        self.manager.stateChanged.connect(self._state_changed)
        self.manager.editingStarted.connect(self.open_editor)
        self.manager.editingFinished.connect(self._close_editor)

        if self.list_widget:
            self._connect_list(self.list_widget)

    def _connect_list(self, widget: PresetListWidget) -> None:
        widget.presetActivated.connect(self._preset_selected)
        widget.editRequested.connect(self.manager.begin_edit)
        widget.deleteRequested.connect(self._delete)

    @QtCore.Slot()
    def _manage_clicked(self) -> None:
        if self.manager.state == ManagerState.Listing:
            self.manager.close_list()
            return
        self.manager.open_list()

    @QtCore.Slot(object)
    def _preset_selected(self, preset_id: Optional[str]) -> None:
        if preset_id is None:
            self.manager.clear()
            return
        self.manager.select(preset_id)
        self.refresh_readout()

    @QtCore.Slot(str)
    def _delete(self, preset_id: str) -> None:
        result = self.manager.delete(preset_id)
        if not result:
            QtWidgets.QMessageBox.critical(self, 'Delete Preset', f'Failed to delete preset: {result.error}')

    def set_calculator_type(self, calculator_type: str) -> None:
        self._close_editor()
        self.manager.set_calculator_type(calculator_type)
        self.model.set_calculator_type(calculator_type)
        self.refresh_readout()

    @QtCore.Slot()
    def refresh_readout(self, *args) -> None:
        if self.readout is None:
            return
        self.readout.set_parameters(self.model.calculator_type(), self._current_parameters() or {})

    @QtCore.Slot(object, object)
    def open_editor(self, draft: Dict[str, Any], preset: Optional[lib.Preset]) -> None:
        self._close_editor()
        self.editor = PresetEditor(
            draft['calculator_type'],
            draft['parameters'],
            on_save=self.manager.submit,
            preset=preset,
            version=draft['version'],
            parent=self
        )
        self.editor.cancelled.connect(self.manager.cancel)
        self.editor.open()

    @QtCore.Slot()
    def _close_editor(self) -> None:
        if self.editor is None:
            return
        editor, self.editor = self.editor, None
        editor.blockSignals(True)
        editor.close()
        editor.deleteLater()

    @QtCore.Slot(str)
    def _state_changed(self, state: str) -> None:
        if not self._compact:
            if state == ManagerState.Listing and self.list_widget:
                self.list_widget.search_editor.setFocus(QtCore.Qt.OtherFocusReason)
            return
        if state == ManagerState.Listing:
            self._open_list_dialog()
        elif self.list_dialog and self.list_dialog.isVisible() and state != ManagerState.Editing:
            self.list_dialog.blockSignals(True)
            self.list_dialog.hide()
            self.list_dialog.blockSignals(False)

    def _open_list_dialog(self) -> None:
        if self.list_dialog is None:
            self.list_dialog = QtWidgets.QDialog(self)
            self.list_dialog.setWindowTitle(f'{calculators.label(self.model.calculator_type())} Presets')
            QtWidgets.QVBoxLayout(self.list_dialog)
            widget = PresetListWidget(self.model, parent=self.list_dialog)
            self.list_dialog.layout().addWidget(widget)
            self.list_dialog.resize(ui.Size.DefaultWidth(1.0), ui.Size.DefaultHeight(1.0))
            self._connect_list(widget)
            self.list_dialog.finished.connect(lambda *args: self.manager.close_list())
            self.list_widget = widget
        self.list_dialog.show()
