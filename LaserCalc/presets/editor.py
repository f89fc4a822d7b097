"""Form for creating and editing presets.

:func:`validate` and :func:`parse_tags` hold the field rules. :class:`PresetEditor`
shows the form, validates on submit and hands the assembled payload to a save
callback which returns a :class:`lib.Result`.
"""
import copy
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from PySide6 import QtWidgets, QtCore

from . import lib
from ..ui import ui

NAME_MAX_LENGTH = lib.NAME_MAX_LENGTH
DESCRIPTION_MAX_LENGTH = lib.DESCRIPTION_MAX_LENGTH


def validate(name: str, description: str = '') -> Dict[str, str]:
    """Check the name and description of a preset.

    Args:
        name: The preset name. Required and trimmed before checking its length.
        description: The optional preset description.

    Returns:
        A mapping of field name to error message. Empty when the input is valid.
    """
    errors = {}

    name = (name or '').strip()
    if not name:
        errors['name'] = 'Preset name is required'
    elif len(name) > NAME_MAX_LENGTH:
        errors['name'] = f'Preset name must be {NAME_MAX_LENGTH} characters or less'

    description = (description or '').strip()
    if len(description) > DESCRIPTION_MAX_LENGTH:
        errors['description'] = f'Description must be {DESCRIPTION_MAX_LENGTH} characters or less'

    return errors


def parse_tags(text: str) -> List[str]:
    """Split comma separated text into trimmed, non-empty tags."""
    return lib.parse_tags(str(text or ''))


class PresetEditor(QtWidgets.QDialog):
    """Dialog to create a new preset or edit an existing one.

    Args:
        calculator_type: Calculator type the preset is bound to.
        parameters: Parameters carried through to the payload unchanged.
        on_save: Called with the payload dict. Must return a :class:`lib.Result`.
        preset: The preset being edited, or None when creating.
        version: Version marker for new presets.
    """

    #: Emitted with the saved Preset after a successful save
    saved = QtCore.Signal(object)
    cancelled = QtCore.Signal()

    def __init__(
            self,
            calculator_type: str,
            parameters: Mapping[str, Any],
            on_save: Callable[[Dict[str, Any]], lib.Result],
            preset: Optional[lib.Preset] = None,
            version: str = '',
            parent: Optional[QtWidgets.QWidget] = None
    ) -> None:
        super().__init__(parent=parent)

        self._calculator_type = calculator_type
        self._parameters = copy.deepcopy(dict(parameters or {}))
        self._on_save = on_save
        self._preset = preset
        self._version = preset.version if preset else version

        self.name_editor: QtWidgets.QLineEdit
        self.description_editor: QtWidgets.QPlainTextEdit
        self.tags_editor: QtWidgets.QLineEdit
        self.version_editor: QtWidgets.QLineEdit
        self.name_error: QtWidgets.QLabel
        self.description_error: QtWidgets.QLabel
        self.form_error: QtWidgets.QLabel
        self.submit_button: QtWidgets.QPushButton
        self.cancel_button: QtWidgets.QPushButton

        self.setWindowTitle('Edit Preset' if preset else 'Save Preset')
        self.setMinimumWidth(ui.Size.DefaultWidth(0.6))

        self._create_ui()
        self._init_data()
        self._connect_signals()

    def _create_ui(self) -> None:
        QtWidgets.QVBoxLayout(self)
        o = ui.Size.Margin(0.5)
        self.layout().setContentsMargins(o, o, o, o)
        self.layout().setSpacing(o)

        form = QtWidgets.QFormLayout()
        form.setLabelAlignment(QtCore.Qt.AlignRight | QtCore.Qt.AlignVCenter)
        self.layout().addLayout(form)

        self.name_editor = QtWidgets.QLineEdit(self)
        self.name_editor.setPlaceholderText('e.g. 3mm mild steel, night tariff')
        self.name_error = self._error_label()
        form.addRow('Name', self._with_error(self.name_editor, self.name_error))

        self.description_editor = QtWidgets.QPlainTextEdit(self)
        self.description_editor.setPlaceholderText('Optional description')
        self.description_editor.setFixedHeight(ui.Size.RowHeight(2.5))
        self.description_error = self._error_label()
        form.addRow('Description', self._with_error(self.description_editor, self.description_error))

        self.tags_editor = QtWidgets.QLineEdit(self)
        self.tags_editor.setPlaceholderText('Comma separated, e.g. steel, production')
        form.addRow('Tags', self.tags_editor)

        self.version_editor = QtWidgets.QLineEdit(self)
        form.addRow('Version', self.version_editor)

        from . import calculators
        label = QtWidgets.QLabel(calculators.label(self._calculator_type), self)
        label.setObjectName('SecondaryText')
        form.addRow('Calculator', label)

        self.form_error = self._error_label()
        self.form_error.setObjectName('FormError')
        self.layout().addWidget(self.form_error)

        self.layout().addStretch(1)

        row = QtWidgets.QHBoxLayout()
        row.addStretch(1)
        self.cancel_button = QtWidgets.QPushButton('Cancel', self)
        row.addWidget(self.cancel_button)
        self.submit_button = QtWidgets.QPushButton('Update Preset' if self._preset else 'Save Preset', self)
        self.submit_button.setDefault(True)
        row.addWidget(self.submit_button)
        self.layout().addLayout(row)

    def _error_label(self) -> QtWidgets.QLabel:
        label = QtWidgets.QLabel(self)
        label.setObjectName('FieldError')
        label.setWordWrap(True)
        label.hide()
        return label

    def _with_error(self, editor: QtWidgets.QWidget, label: QtWidgets.QLabel) -> QtWidgets.QWidget:
        widget = QtWidgets.QWidget(self)
        QtWidgets.QVBoxLayout(widget)
        widget.layout().setContentsMargins(0, 0, 0, 0)
        widget.layout().setSpacing(ui.Size.Indicator(0.5))
        widget.layout().addWidget(editor)
        widget.layout().addWidget(label)
        return widget

    def _init_data(self) -> None:
        if self._preset:
            self.name_editor.setText(self._preset.name)
            self.description_editor.setPlainText(self._preset.description)
            self.tags_editor.setText(', '.join(self._preset.tags))
        self.version_editor.setText(self._version)

    def _connect_signals(self) -> None:
        self.name_editor.textChanged.connect(lambda: self.set_field_error('name', ''))
        self.description_editor.textChanged.connect(lambda: self.set_field_error('description', ''))

        self.submit_button.clicked.connect(self.submit)
        self.cancel_button.clicked.connect(self.reject)

    def preset(self) -> Optional[lib.Preset]:
        return self._preset

    def is_editing(self) -> bool:
        return self._preset is not None

    def errors(self) -> Dict[str, str]:
        """Return the field errors currently shown."""
        errors = {}
        if not self.name_error.isHidden():
            errors['name'] = self.name_error.text()
        if not self.description_error.isHidden():
            errors['description'] = self.description_error.text()
        return errors

    def form_error_text(self) -> str:
        return '' if self.form_error.isHidden() else self.form_error.text()

    def set_field_error(self, field: str, message: str) -> None:
        label = {
            'name': self.name_error,
            'description': self.description_error,
        }.get(field)
        if label is None:
            raise KeyError(f'Unknown field: {field}')
        label.setText(message)
        label.setHidden(not message)

    def set_form_error(self, message: str) -> None:
        self.form_error.setText(message)
        self.form_error.setHidden(not message)

    def payload(self) -> Dict[str, Any]:
        """Return the data the form would submit."""
        return {
            'name': self.name_editor.text().strip(),
            'description': self.description_editor.toPlainText().strip(),
            'tags': parse_tags(self.tags_editor.text()),
            'calculator_type': self._calculator_type,
            'parameters': copy.deepcopy(self._parameters),
            'version': self.version_editor.text().strip() or self._version,
        }

    @QtCore.Slot()
    def submit(self) -> Optional[lib.Result]:
        """Validate the form and pass the payload to the save callback.

        Returns:
            The callback's Result, or None when validation failed.
        """
        self.set_form_error('')
        errors = validate(self.name_editor.text(), self.description_editor.toPlainText())
        for field in ('name', 'description'):
            self.set_field_error(field, errors.get(field, ''))
        if errors:
            logging.debug(f'Preset form has errors: {errors}')
            return None

        payload = self.payload()
        self.submit_button.setEnabled(False)
        try:
            result = self._on_save(payload)
        finally:
            self.submit_button.setEnabled(True)

        if not result:
            self.set_form_error(result.error or 'Failed to save preset.')
            return result

        self.saved.emit(result.data)
        self.accept()
        return result

    def reject(self) -> None:
        self.cancelled.emit()
        super().reject()
