"""Qt models exposing the presets of one calculator type.

:class:`PresetModel` keeps a snapshot of the store scoped to a calculator type and
resets whenever the store changes. :class:`PresetsSortFilterProxyModel` filters rows
with the same rules as :func:`lib.search` and sorts by the keys of
:func:`lib.sort_presets`.
"""
import enum
from typing import Any, List, Optional

from PySide6 import QtCore

from . import lib
from ..settings import locale
from ..ui import ui

PresetRole = QtCore.Qt.UserRole + 2
IdRole = QtCore.Qt.UserRole + 3

MAX_VISIBLE_TAGS = 2


class Columns(enum.IntEnum):
    Name = 0
    Description = 1
    Tags = 2
    Modified = 3


def tag_summary(tags: List[str]) -> str:
    """Return the first two tags followed by '+N more' when there are others."""
    text = ', '.join(tags[:MAX_VISIBLE_TAGS])
    extra = len(tags) - MAX_VISIBLE_TAGS
    if extra > 0:
        text += f' +{extra} more'
    return text


class PresetModel(QtCore.QAbstractItemModel):
    """Flat model of the presets bound to one calculator type."""

    def __init__(self, api: lib.PresetsAPI, calculator_type: str = '', parent: Optional[QtCore.QObject] = None) -> None:
        super().__init__(parent=parent)
        self._api = api
        self._calculator_type = calculator_type
        self._items: List[lib.Preset] = []

        self._connect_signals()
        self._reset_model()

    def api(self) -> lib.PresetsAPI:
        """Return the PresetsAPI instance."""
        return self._api

    def calculator_type(self) -> str:
        return self._calculator_type

    def set_calculator_type(self, calculator_type: str) -> None:
        if calculator_type == self._calculator_type:
            return
        self._calculator_type = calculator_type
        self._reset_model()

    def presets(self) -> List[lib.Preset]:
        """Return the presets currently shown, in store order."""
        return list(self._items)

    def _connect_signals(self) -> None:
        self._api.presetAdded.connect(self._reset_model)
        self._api.presetUpdated.connect(self._reset_model)
        self._api.presetRemoved.connect(self._reset_model)
        self._api.presetsReloaded.connect(self._reset_model)

        from ..ui.actions import signals
        signals.settingChanged.connect(self._setting_changed)

    @QtCore.Slot(str, object)
    def _setting_changed(self, key: str, value: object) -> None:
        if key in ('locale', 'theme'):
            self._reset_model()

    def _reset_model(self, *args) -> None:
        self.beginResetModel()
        self._items = self._api.by_calculator(self._calculator_type)
        self.endResetModel()

    def row_of(self, preset_id: str) -> int:
        """Return the row of the given preset, or -1."""
        return next((i for i, p in enumerate(self._items) if p.id == preset_id), -1)

    def rowCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        if parent.isValid():
            return 0
        return len(self._items)

    def columnCount(self, parent: QtCore.QModelIndex = QtCore.QModelIndex()) -> int:
        return len(Columns)

    def index(
            self,
            row: int,
            column: int = 0,
            parent: QtCore.QModelIndex = QtCore.QModelIndex()
    ) -> QtCore.QModelIndex:
        if (
                parent.isValid() or
                row < 0 or
                row >= len(self._items) or
                column < 0 or
                column >= self.columnCount()
        ):
            return QtCore.QModelIndex()
        return self.createIndex(row, column)

    def parent(self, index: QtCore.QModelIndex) -> QtCore.QModelIndex:
        """Flat list has no parent."""
        return QtCore.QModelIndex()

    def data(
            self,
            index: QtCore.QModelIndex,
            role: int = QtCore.Qt.DisplayRole
    ) -> Any:
        if not index.isValid() or index.row() >= len(self._items):
            return None

        item = self._items[index.row()]
        col = index.column()

        if role == QtCore.Qt.DisplayRole:
            if col == Columns.Name:
                return item.name
            if col == Columns.Description:
                return item.description
            if col == Columns.Tags:
                return tag_summary(item.tags)
            if col == Columns.Modified:
                from ..settings import lib as settings_lib
                return locale.format_timestamp(item.updated_at, settings_lib.settings['locale'], fmt='short')
            return None

        if role == QtCore.Qt.ToolTipRole:
            if col == Columns.Tags:
                return ', '.join(item.tags)
            return item.description or item.name

        if role == QtCore.Qt.ForegroundRole:
            if col == Columns.Name:
                return None
            from ..settings import lib as settings_lib
            return ui.Color.SecondaryText(ui.Theme(settings_lib.settings['theme']))

        if role == QtCore.Qt.TextAlignmentRole:
            if col == Columns.Modified:
                return QtCore.Qt.AlignVCenter | QtCore.Qt.AlignRight
            return QtCore.Qt.AlignVCenter | QtCore.Qt.AlignLeft

        if role == PresetRole:
            return item

        if role == IdRole:
            return item.id

        return None

    def flags(self, index: QtCore.QModelIndex) -> QtCore.Qt.ItemFlags:
        if not index.isValid():
            return QtCore.Qt.NoItemFlags
        return QtCore.Qt.ItemIsEnabled | QtCore.Qt.ItemIsSelectable

    def headerData(
            self,
            section: int,
            orientation: QtCore.Qt.Orientation,
            role: int = QtCore.Qt.DisplayRole
    ) -> Any:
        if orientation == QtCore.Qt.Horizontal:
            if role == QtCore.Qt.DisplayRole:
                if section == Columns.Name:
                    return 'Name'
                if section == Columns.Description:
                    return 'Description'
                if section == Columns.Tags:
                    return 'Tags'
                if section == Columns.Modified:
                    return 'Modified'
            if role == QtCore.Qt.TextAlignmentRole:
                return QtCore.Qt.AlignVCenter | QtCore.Qt.AlignLeft
        return None


class PresetsSortFilterProxyModel(QtCore.QSortFilterProxyModel):
    """Proxy model to search presets by name or description and sort them by a preset field."""

    def __init__(
            self,
            parent: QtCore.QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._filter_string = ''
        self._sort_key = 'updated_at'

        self.setDynamicSortFilter(True)
        self.sort(Columns.Name, QtCore.Qt.DescendingOrder)

    def filter_string(self) -> str:
        return self._filter_string

    def set_filter_string(self, filter_string: str) -> None:
        self._filter_string = filter_string or ''
        self.invalidateFilter()

    def sort_key(self) -> str:
        return self._sort_key

    def is_descending(self) -> bool:
        return self.sortOrder() == QtCore.Qt.DescendingOrder

    def set_sort(self, sort_by: str, descending: bool = True) -> None:
        """Sort rows by 'name', 'created_at' or 'updated_at'."""
        if sort_by not in lib.SORT_KEYS:
            raise ValueError(f'Invalid sort key: {sort_by}, must be one of {lib.SORT_KEYS}')
        self._sort_key = sort_by
        self.invalidate()
        self.sort(Columns.Name, QtCore.Qt.DescendingOrder if descending else QtCore.Qt.AscendingOrder)

    def filterAcceptsRow(self, source_row: int, source_parent: QtCore.QModelIndex) -> bool:
        if not self._filter_string.strip():
            return True
        index = self.sourceModel().index(source_row, 0, source_parent)
        item = index.data(PresetRole)
        if item is None:
            return False
        return lib.matches(item, self._filter_string)

    def lessThan(self, source_left: QtCore.QModelIndex, source_right: QtCore.QModelIndex) -> bool:
        left_item = source_left.data(PresetRole)
        right_item = source_right.data(PresetRole)
        if left_item is None or right_item is None:
            return super().lessThan(source_left, source_right)

        if self._sort_key == 'name':
            return left_item.name.casefold() < right_item.name.casefold()
        return getattr(left_item, self._sort_key) < getattr(right_item, self._sort_key)
