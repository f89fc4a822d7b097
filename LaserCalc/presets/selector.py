"""Dropdown for picking one preset of the current calculator type.

The selector shows the selected preset's name on a button. Clicking the button opens
a popup list; above :data:`SEARCH_THRESHOLD` entries the popup also shows a search
field. Choosing an entry, or the clear entry, emits
:attr:`PresetSelector.presetSelected`.
"""
import logging
from typing import Optional

from PySide6 import QtWidgets, QtCore, QtGui

from .model import PresetModel, PresetsSortFilterProxyModel, PresetRole, IdRole, Columns
from ..ui import ui

#: Default number of entries above which the search field is shown
SEARCH_THRESHOLD = 5

PLACEHOLDER_TEXT = 'Select a preset...'
EMPTY_TEXT = 'No presets available'
NO_MATCH_TEXT = "No presets match '{query}'"


def search_threshold() -> int:
    """Return the configured search threshold."""
    from ..settings import lib
    try:
        return int(lib.settings['search_threshold'])
    except (KeyError, TypeError, ValueError) as ex:
        logging.debug(f'Using default search threshold: {ex}')
        return SEARCH_THRESHOLD


class PresetSelectorPopup(QtWidgets.QFrame):
    """Popup list of presets with an optional search field."""

    entryChosen = QtCore.Signal(object)
    dismissed = QtCore.Signal()

    def __init__(self, proxy: PresetsSortFilterProxyModel, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)
        self.setWindowFlags(QtCore.Qt.Popup)
        self.setObjectName('PresetSelectorPopup')
        self.setFrameShape(QtWidgets.QFrame.StyledPanel)

        self._proxy = proxy

        self.search_editor: QtWidgets.QLineEdit
        self.view: QtWidgets.QListView
        self.empty_label: QtWidgets.QLabel
        self.clear_button: QtWidgets.QPushButton

        self._create_ui()
        self._connect_signals()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Indicator(1.0)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(o)

        self.search_editor = QtWidgets.QLineEdit(self)
        self.search_editor.setPlaceholderText('Search presets...')
        self.search_editor.setClearButtonEnabled(True)
        self.search_editor.installEventFilter(self)
        self.layout().addWidget(self.search_editor)

        self.view = QtWidgets.QListView(self)
        self.view.setModel(self._proxy)
        self.view.setModelColumn(Columns.Name)
        self.view.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.view.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        self.view.setUniformItemSizes(True)
        self.view.installEventFilter(self)
        self.layout().addWidget(self.view, 1)

        self.empty_label = QtWidgets.QLabel(self)
        self.empty_label.setObjectName('EmptyState')
        self.empty_label.setAlignment(QtCore.Qt.AlignCenter)
        self.empty_label.setWordWrap(True)
        self.layout().addWidget(self.empty_label)

        self.clear_button = QtWidgets.QPushButton('Clear selection', self)
        self.clear_button.setFlat(True)
        self.layout().addWidget(self.clear_button)

    def _connect_signals(self) -> None:
        self.search_editor.textChanged.connect(self._proxy.set_filter_string)
        self.search_editor.textChanged.connect(self.update_empty_state)

        self._proxy.modelReset.connect(self.update_empty_state)
        self._proxy.rowsInserted.connect(self.update_empty_state)
        self._proxy.rowsRemoved.connect(self.update_empty_state)

        self.view.clicked.connect(self._choose)
        self.view.activated.connect(self._choose)
        self.clear_button.clicked.connect(lambda: self.entryChosen.emit(None))

    @QtCore.Slot(QtCore.QModelIndex)
    def _choose(self, index: QtCore.QModelIndex) -> None:
        if not index.isValid():
            return
        preset_id = index.data(IdRole)
        if preset_id:
            self.entryChosen.emit(preset_id)

    def empty_message(self) -> str:
        """Return the empty-state message, or an empty string when entries are shown."""
        if self._proxy.rowCount() > 0:
            return ''
        query = self._proxy.filter_string().strip()
        if query and self._proxy.sourceModel().rowCount() > 0:
            return NO_MATCH_TEXT.format(query=query)
        return EMPTY_TEXT

    @QtCore.Slot()
    def update_empty_state(self, *args) -> None:
        message = self.empty_message()
        self.empty_label.setText(message)
        self.empty_label.setHidden(not message)
        self.view.setHidden(bool(message))

    def reset_search(self) -> None:
        self.search_editor.clear()
        self._proxy.set_filter_string('')

    def dismiss(self) -> None:
        """Close the popup and discard the search text."""
        self.reset_search()
        self.hide()
        self.dismissed.emit()

    def eventFilter(self, widget: QtCore.QObject, event: QtCore.QEvent) -> bool:
        if event.type() == QtCore.QEvent.KeyPress and event.key() == QtCore.Qt.Key_Escape:
            self.dismiss()
            return True
        return super().eventFilter(widget, event)

    def keyPressEvent(self, event: QtGui.QKeyEvent) -> None:
        if event.key() == QtCore.Qt.Key_Escape:
            self.dismiss()
            return
        super().keyPressEvent(event)

    def hideEvent(self, event: QtGui.QHideEvent) -> None:
        # Clicking outside a Qt.Popup hides it without a key event
        if self.search_editor.text():
            self.reset_search()
        super().hideEvent(event)


class PresetSelector(QtWidgets.QWidget):
    """Button showing the current preset that opens a popup list of presets.

    The selector does not change its own selection when an entry is chosen. It emits
    :attr:`presetSelected` and relies on the owner to call :meth:`set_current`.
    """

    #: The chosen preset id, or None when the selection is cleared
    presetSelected = QtCore.Signal(object)

    def __init__(self, model: PresetModel, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)

        self._model = model
        self._current: Optional[str] = None

        self.proxy = PresetsSortFilterProxyModel(self)
        self.proxy.setSourceModel(model)
        # store order
        self.proxy.sort(-1)

        self.button: QtWidgets.QPushButton
        self.popup: PresetSelectorPopup

        self._create_ui()
        self._connect_signals()
        self._update_button()

    def _create_ui(self) -> None:
        QtWidgets.QHBoxLayout(self)
        self.layout().setContentsMargins(0, 0, 0, 0)

        self.button = QtWidgets.QPushButton(self)
        self.button.setFocusPolicy(QtCore.Qt.StrongFocus)
        self.button.setSizePolicy(
            QtWidgets.QSizePolicy.Expanding,
            QtWidgets.QSizePolicy.Fixed
        )
        self.layout().addWidget(self.button, 1)

        self.popup = PresetSelectorPopup(self.proxy, parent=self)

    def _connect_signals(self) -> None:
        self.button.clicked.connect(self.open_popup)
        self.popup.entryChosen.connect(self._entry_chosen)

        self._model.modelReset.connect(self._update_button)

    def model(self) -> PresetModel:
        return self._model

    def current(self) -> Optional[str]:
        """Return the selected preset id, or None."""
        return self._current

    def set_current(self, preset_id: Optional[str]) -> None:
        """Show preset_id as the selection without emitting presetSelected."""
        self._current = preset_id
        self._update_button()

    @QtCore.Slot()
    def _update_button(self) -> None:
        row = self._model.row_of(self._current) if self._current else -1
        if row < 0:
            self.button.setText(PLACEHOLDER_TEXT)
            self.button.setToolTip('')
            return
        item = self._model.index(row, 0).data(PresetRole)
        self.button.setText(item.name)
        self.button.setToolTip(item.description or item.name)

    @QtCore.Slot(object)
    def _entry_chosen(self, preset_id: Optional[str]) -> None:
        self.popup.dismiss()
        self.presetSelected.emit(preset_id)

    def is_search_enabled(self) -> bool:
        """True when the scoped list is long enough to show the search field."""
        return self._model.rowCount() > search_threshold()

    def is_open(self) -> bool:
        return self.popup.isVisible()

    @QtCore.Slot()
    def open_popup(self) -> None:
        """Open the popup below the button."""
        self.popup.reset_search()
        self.popup.search_editor.setVisible(self.is_search_enabled())
        self.popup.clear_button.setVisible(self._current is not None)
        self.popup.update_empty_state()

        width = max(self.button.width(), ui.Size.DefaultWidth(0.4))
        height = min(
            ui.Size.RowHeight(1.0) * (max(self.proxy.rowCount(), 1) + 3),
            ui.Size.DefaultHeight(0.8)
        )
        self.popup.resize(width, height)
        self.popup.move(self.button.mapToGlobal(QtCore.QPoint(0, self.button.height())))
        self.popup.show()

        if self.popup.search_editor.isVisible():
            self.popup.search_editor.setFocus(QtCore.Qt.PopupFocusReason)
        else:
            self.popup.view.setFocus(QtCore.Qt.PopupFocusReason)

    @QtCore.Slot()
    def close_popup(self) -> None:
        self.popup.dismiss()

    def set_search_text(self, text: str) -> None:
        self.popup.search_editor.setText(text)

    def empty_message(self) -> str:
        return self.popup.empty_message()

    def keyPressEvent(self, event: QtGui.QKeyEvent) -> None:
        if event.key() in (QtCore.Qt.Key_Down, QtCore.Qt.Key_Space, QtCore.Qt.Key_Return, QtCore.Qt.Key_Enter):
            self.open_popup()
            return
        super().keyPressEvent(event)
