"""Settings library for application preferences and file locations.

Provides:
    - Schema validation and enforcement for the settings.json structure.
    - ConfigPaths: resolution of template, settings and preset storage paths.
    - SettingsAPI: loading, saving, reverting and item access for settings values.
"""

import json
import logging
import os
import pathlib
import shutil
from typing import Dict, Any, Optional, List

from PySide6 import QtCore, QtWidgets

from ..status import status

app_name: str = 'LaserCalc'

#: Environment variable overriding the application data directory
DATA_DIR_ENV_KEY: str = 'LASERCALC_DATA_DIR'

THEME_VALUES: List[str] = ['light', 'dark']

SETTINGS_KEYS: List[str] = [
    'theme',
    'locale',
    'search_threshold',
    'default_version',
    'compact',
    'show_manage',
    'calculator',
]

SETTINGS_SCHEMA: Dict[str, Any] = {
    'theme': {'type': str, 'required': True, 'allowed_values': THEME_VALUES},
    'locale': {'type': str, 'required': True},
    'search_threshold': {'type': int, 'required': True, 'min': 0},
    'default_version': {'type': str, 'required': True, 'non_empty': True},
    'compact': {'type': bool, 'required': True},
    'show_manage': {'type': bool, 'required': True},
    'calculator': {'type': str, 'required': True},
}


def _validate_value(key: str, value: Any) -> None:
    """Validate a single settings value against SETTINGS_SCHEMA.

    Args:
        key: Settings key.
        value: Value to check.

    Raises:
        KeyError: If key is not defined in the schema.
        TypeError: If the value has the wrong type.
        ValueError: If the value is out of the allowed range or set.
    """
    if key not in SETTINGS_SCHEMA:
        raise KeyError(f'Invalid settings key: {key}, must be one of {SETTINGS_KEYS}')

    specs = SETTINGS_SCHEMA[key]
    _type = specs['type']
    # bool is a subclass of int; keep them apart
    if not isinstance(value, _type) or (_type is int and isinstance(value, bool)):
        raise TypeError(f'Settings key "{key}" must be {_type.__name__}, got {type(value).__name__}.')

    if 'allowed_values' in specs and value not in specs['allowed_values']:
        raise ValueError(f'Settings key "{key}" must be one of {specs["allowed_values"]}, got "{value}".')
    if 'min' in specs and value < specs['min']:
        raise ValueError(f'Settings key "{key}" must be >= {specs["min"]}, got {value}.')
    if specs.get('non_empty') and not value.strip():
        raise ValueError(f'Settings key "{key}" must not be empty.')


class ConfigPaths:
    """Manage application file paths and ensure default templates and directories exist.

    The data root is the Qt AppDataLocation unless a root is passed in or the
    ``LASERCALC_DATA_DIR`` environment variable is set.
    """

    def __init__(self, root: Optional[pathlib.Path] = None) -> None:
        QtWidgets.QApplication.setApplicationName(app_name)
        QtWidgets.QApplication.setOrganizationName('')

        if root is None and os.environ.get(DATA_DIR_ENV_KEY):
            root = pathlib.Path(os.environ[DATA_DIR_ENV_KEY])
        if root is None:
            p = QtCore.QStandardPaths.writableLocation(QtCore.QStandardPaths.AppDataLocation)
            root = pathlib.Path(p)
        self.app_data_dir: pathlib.Path = pathlib.Path(root)
        logging.debug(f'Using app data directory: {self.app_data_dir}')

        self.template_dir: pathlib.Path = pathlib.Path(__file__).parent.parent / 'config'
        self.settings_template: pathlib.Path = self.template_dir / 'settings.json.template'
        self.stylesheet_path: pathlib.Path = self.template_dir / 'stylesheet.qss'

        self.config_dir: pathlib.Path = self.app_data_dir / 'config'
        self.presets_dir: pathlib.Path = self.app_data_dir / 'presets'

        self.settings_path: pathlib.Path = self.config_dir / 'settings.json'
        self.presets_path: pathlib.Path = self.presets_dir / 'presets.json'

        self._verify_and_prepare()

    def _verify_and_prepare(self) -> None:
        """Verify templates exist and prepare configuration directories and files.

        Raises:
            FileNotFoundError: If the template directory or settings template is missing.
        """
        logging.debug(f'Verifying required directories and templates in {self.template_dir}')
        if not self.template_dir.exists():
            msg: str = f'Missing template directory: {self.template_dir}'
            logging.error(msg)
            raise FileNotFoundError(msg)
        if not self.settings_template.exists():
            msg = f'Missing settings template: {self.settings_template}'
            logging.error(msg)
            raise FileNotFoundError(msg)

        for path in (self.config_dir, self.presets_dir):
            if not path.exists():
                logging.debug(f'Creating directory: {path}')
                path.mkdir(parents=True, exist_ok=True)

        if not self.settings_path.exists():
            logging.debug(f'Copying default settings from template to {self.settings_path}')
            shutil.copy(self.settings_template, self.settings_path)

    def load_template(self) -> Dict[str, Any]:
        """Return the default settings stored in the template file."""
        with self.settings_template.open('r', encoding='utf-8') as f:
            return json.load(f)

    def revert_settings_to_template(self) -> None:
        """Restore settings.json from the default template file.

        Raises:
            FileNotFoundError: If the settings template file is missing.
        """
        logging.debug(f'Reverting settings to template: {self.settings_template}')
        if not self.settings_template.exists():
            msg: str = f'Settings template not found: {self.settings_template}'
            logging.error(msg)
            raise FileNotFoundError(msg)
        shutil.copy(self.settings_template, self.settings_path)


class SettingsAPI(ConfigPaths):
    """
    Provides an interface to get/set/revert/save the values of settings.json.
    """

    def __init__(self, root: Optional[pathlib.Path] = None) -> None:
        super().__init__(root=root)

        self._signals_blocked: bool = False
        self.data: Dict[str, Any] = self.load_template()

        self.init_data()

    def __getitem__(self, key: str) -> Any:
        """Retrieve a settings value using dictionary-style access.

        Raises:
            KeyError: If key is not in SETTINGS_KEYS.
        """
        if key not in SETTINGS_KEYS:
            raise KeyError(f'Invalid settings key: {key}, must be one of {SETTINGS_KEYS}')
        return self.data.get(key)

    def __setitem__(self, key: str, value: Any) -> None:
        """Validate, assign and persist a settings value.

        Raises:
            KeyError: If key is not in SETTINGS_KEYS.
            TypeError: If the value has the wrong type.
            ValueError: If the value is not allowed.
        """
        try:
            _validate_value(key, value)
        except (KeyError, TypeError, ValueError) as ex:
            logging.error(f'Rejected settings value for "{key}": {ex}')
            raise

        self.data[key] = value
        self.save()

        if self._signals_blocked:
            return

        from ..ui.actions import signals
        signals.settingChanged.emit(key, value)

    def block_signals(self, v: bool) -> None:
        """Enable or disable emission of settings change signals."""
        self._signals_blocked = v

    def init_data(self) -> None:
        """Load settings from disk, falling back to template values for invalid keys."""
        try:
            self.data = self.load_settings()
        except status.BaseStatusException:
            logging.warning('Using template settings.')
            self.data = self.load_template()

    def load_settings(self) -> Dict[str, Any]:
        """Load settings.json from disk and validate it.

        Keys missing from, or invalid in, the file are replaced with template values.

        Returns:
            The loaded settings dictionary.

        Raises:
            status.SettingsNotFoundException: If settings.json is missing.
            status.SettingsInvalidException: If the file is not a JSON object.
        """
        logging.debug(f'Loading settings from "{self.settings_path}"')
        if not self.settings_path.exists():
            raise status.SettingsNotFoundException

        try:
            with self.settings_path.open('r', encoding='utf-8') as f:
                data = json.load(f)
        except (ValueError, OSError) as ex:
            raise status.SettingsInvalidException(str(ex)) from ex

        if not isinstance(data, dict):
            raise status.SettingsInvalidException('settings.json must contain an object.')

        template = self.load_template()
        for key in SETTINGS_KEYS:
            if key not in data:
                logging.warning(f'Settings key "{key}" missing, using template value.')
                data[key] = template[key]
                continue
            try:
                _validate_value(key, data[key])
            except (TypeError, ValueError) as ex:
                logging.warning(f'{ex} Using template value.')
                data[key] = template[key]
        return data

    def validate_settings(self, data: Dict[str, Any] = None) -> None:
        """Validate settings data against SETTINGS_SCHEMA.

        Raises:
            status.SettingsInvalidException: If a required key is missing or invalid.
        """
        if data is None:
            data = self.data
        for key, specs in SETTINGS_SCHEMA.items():
            if specs.get('required') and key not in data:
                raise status.SettingsInvalidException(f'Missing required key: {key}')
            try:
                _validate_value(key, data[key])
            except (TypeError, ValueError) as ex:
                raise status.SettingsInvalidException(str(ex)) from ex

    def save(self) -> None:
        """Persist the current settings to settings.json."""
        self.validate_settings()
        logging.debug(f'Saving settings to "{self.settings_path}"')
        with self.settings_path.open('w', encoding='utf-8') as f:
            json.dump(self.data, f, indent=4, ensure_ascii=False)

    def revert(self) -> None:
        """Revert all settings to their template defaults and emit change signals."""
        self.revert_settings_to_template()
        self.init_data()

        if self._signals_blocked:
            return

        from ..ui.actions import signals
        for k, v in self.data.items():
            signals.settingChanged.emit(k, v)


settings: SettingsAPI = SettingsAPI()
