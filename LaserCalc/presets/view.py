"""List of the presets of one calculator type with search, sorting and actions.

This module defines:
    - PresetsListView: table of presets showing name, description, tags and modification date
    - PresetListWidget: search field, sort controls, the list view and edit/delete actions
"""
from typing import Optional

from PySide6 import QtWidgets, QtGui, QtCore

from . import calculators
from .model import PresetModel, PresetsSortFilterProxyModel, Columns, PresetRole, IdRole
from ..ui import ui

SORT_OPTIONS = (
    ('Last Modified', 'updated_at'),
    ('Created', 'created_at'),
    ('Name', 'name'),
)

EMPTY_TEXT = 'No presets saved yet'
NO_MATCH_TEXT = 'No presets found matching your search'


class PresetsListView(QtWidgets.QTableView):
    """Table view of the presets."""

    def __init__(self, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)

        self.setSelectionMode(QtWidgets.QAbstractItemView.SingleSelection)
        self.setSelectionBehavior(QtWidgets.QAbstractItemView.SelectRows)
        self.setEditTriggers(QtWidgets.QAbstractItemView.NoEditTriggers)
        self.setContextMenuPolicy(QtCore.Qt.ActionsContextMenu)
        self.setWordWrap(False)
        self.setSortingEnabled(False)

    def init_header(self) -> None:
        header = self.horizontalHeader()
        header.setSectionResizeMode(Columns.Name, QtWidgets.QHeaderView.ResizeToContents)
        header.setSectionResizeMode(Columns.Description, QtWidgets.QHeaderView.Stretch)
        header.setSectionResizeMode(Columns.Tags, QtWidgets.QHeaderView.ResizeToContents)
        header.setSectionResizeMode(Columns.Modified, QtWidgets.QHeaderView.ResizeToContents)

        header = self.verticalHeader()
        header.setDefaultSectionSize(ui.Size.RowHeight(1.0))
        header.setVisible(False)

        self.setCornerButtonEnabled(False)

    def selected_id(self) -> Optional[str]:
        """Return the id of the selected preset, or None."""
        sel = self.selectionModel()
        if not sel or not sel.hasSelection():
            return None
        return sel.selectedRows()[0].data(IdRole)


class PresetListWidget(QtWidgets.QWidget):
    """Searchable, sortable list of presets.

    The widget does not modify the store. Edit and delete are emitted as requests,
    delete only after the user confirms.
    """

    presetActivated = QtCore.Signal(str)
    editRequested = QtCore.Signal(str)
    deleteRequested = QtCore.Signal(str)

    def __init__(self, model: PresetModel, parent: Optional[QtWidgets.QWidget] = None) -> None:
        super().__init__(parent=parent)

        self._model = model

        self.proxy = PresetsSortFilterProxyModel(self)
        self.proxy.setSourceModel(model)

        self.search_editor: QtWidgets.QLineEdit
        self.sort_editor: QtWidgets.QComboBox
        self.order_button: QtWidgets.QToolButton
        self.count_label: QtWidgets.QLabel
        self.empty_label: QtWidgets.QLabel
        self.toolbar: QtWidgets.QToolBar
        self.view: PresetsListView

        self._create_ui()
        self._init_actions()
        self._connect_signals()

        self.set_sort('updated_at', descending=True)
        self.update_state()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Indicator(1.0)
        self.layout().setContentsMargins(0, 0, 0, 0)
        self.layout().setSpacing(o)

        row = QtWidgets.QHBoxLayout()
        self.layout().addLayout(row)

        self.search_editor = QtWidgets.QLineEdit(self)
        self.search_editor.setPlaceholderText('Search presets...')
        self.search_editor.setClearButtonEnabled(True)
        row.addWidget(self.search_editor, 1)

        self.sort_editor = QtWidgets.QComboBox(self)
        for display, key in SORT_OPTIONS:
            self.sort_editor.addItem(display, userData=key)
        row.addWidget(self.sort_editor)

        self.order_button = QtWidgets.QToolButton(self)
        self.order_button.setCheckable(True)
        row.addWidget(self.order_button)

        self.toolbar = QtWidgets.QToolBar(self)
        self.toolbar.setMovable(False)
        self.toolbar.setToolButtonStyle(QtCore.Qt.ToolButtonTextOnly)
        self.layout().addWidget(self.toolbar)

        self.view = PresetsListView(self)
        self.view.setModel(self.proxy)
        self.view.init_header()
        self.layout().addWidget(self.view, 1)

        self.empty_label = QtWidgets.QLabel(self)
        self.empty_label.setObjectName('EmptyState')
        self.empty_label.setAlignment(QtCore.Qt.AlignCenter)
        self.layout().addWidget(self.empty_label, 1)

        self.count_label = QtWidgets.QLabel(self)
        self.count_label.setObjectName('SecondaryText')
        self.layout().addWidget(self.count_label)

    def _init_actions(self) -> None:
        @QtCore.Slot()
        def edit_preset() -> None:
            preset_id = self.view.selected_id()
            if preset_id:
                self.edit(preset_id)

        action = QtGui.QAction('Edit', self)
        action.setShortcut('F2')
        action.setStatusTip('Edit the selected preset')
        action.triggered.connect(edit_preset)
        self.toolbar.addAction(action)
        self.view.addAction(action)

        @QtCore.Slot()
        def delete_preset() -> None:
            preset_id = self.view.selected_id()
            if preset_id:
                self.delete(preset_id)

        action = QtGui.QAction('Delete', self)
        action.setShortcut('Delete')
        action.setStatusTip('Delete the selected preset')
        action.triggered.connect(delete_preset)
        self.toolbar.addAction(action)
        self.view.addAction(action)

    def _connect_signals(self) -> None:
        self.search_editor.textChanged.connect(self.proxy.set_filter_string)
        self.search_editor.textChanged.connect(self.update_state)

        self.sort_editor.currentIndexChanged.connect(
            lambda idx: self.set_sort(self.sort_editor.itemData(idx), self.proxy.is_descending())
        )
        self.order_button.toggled.connect(
            lambda checked: self.set_sort(self.proxy.sort_key(), not checked)
        )

        self._model.modelReset.connect(self.update_state)

        @QtCore.Slot(QtCore.QModelIndex)
        def activated(index: QtCore.QModelIndex) -> None:
            if not index.isValid():
                return
            preset_id = index.data(IdRole)
            if preset_id:
                self.presetActivated.emit(preset_id)

        self.view.activated.connect(activated)

    def set_sort(self, sort_by: str, descending: bool = True) -> None:
        """Sort by 'updated_at', 'created_at' or 'name' and sync the controls."""
        self.proxy.set_sort(sort_by, descending)

        self.sort_editor.blockSignals(True)
        self.sort_editor.setCurrentIndex(self.sort_editor.findData(sort_by))
        self.sort_editor.blockSignals(False)

        self.order_button.blockSignals(True)
        self.order_button.setChecked(not descending)
        self.order_button.blockSignals(False)
        self.order_button.setText('↓' if descending else '↑')
        self.order_button.setToolTip('Sort ascending' if descending else 'Sort descending')

    def visible_ids(self):
        """Return the ids of the rows as shown, after search and sorting."""
        return [self.proxy.index(row, 0).data(IdRole) for row in range(self.proxy.rowCount())]

    def empty_message(self) -> str:
        if self.proxy.rowCount() > 0:
            return ''
        return NO_MATCH_TEXT if self.proxy.filter_string().strip() else EMPTY_TEXT

    @QtCore.Slot()
    def update_state(self, *args) -> None:
        message = self.empty_message()
        self.empty_label.setText(message)
        self.empty_label.setHidden(not message)
        self.view.setHidden(bool(message))

        count = self._model.rowCount()
        noun = 'preset' if count == 1 else 'presets'
        self.count_label.setText(f'{count} {noun} for {calculators.label(self._model.calculator_type())}')

    def edit(self, preset_id: str) -> None:
        self.editRequested.emit(preset_id)

    def delete(self, preset_id: str) -> bool:
        """Ask for confirmation and request deletion of the preset.

        Returns:
            True if the user confirmed.
        """
        row = self._model.row_of(preset_id)
        if row < 0:
            return False
        item = self._model.index(row, 0).data(PresetRole)
        if not self.confirm_delete(item.name):
            return False
        self.deleteRequested.emit(preset_id)
        return True

    def confirm_delete(self, name: str) -> bool:
        r = QtWidgets.QMessageBox.question(
            self, 'Delete Preset',
            f'Delete preset "{name}"? This cannot be undone.',
            QtWidgets.QMessageBox.Yes | QtWidgets.QMessageBox.No
        )
        return r == QtWidgets.QMessageBox.Yes
