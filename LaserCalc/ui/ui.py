"""UI styling utilities for LaserCalc.

This module provides:
    - Theme: supported UI themes (light, dark)
    - Size: standardized size constants and scaling logic
    - Color: standardized color palette resolved against an explicit theme
    - init_stylesheet / apply_theme: expansion and application of the QSS template
"""
import enum
import logging
import math
import os
import re
from typing import Optional

from PySide6 import QtWidgets, QtGui

#: Set to 1/true/yes to skip stylesheet application
DISABLE_STYLESHEET_ENV_KEY = 'LASERCALC_DISABLE_STYLESHEET'


class Theme(enum.StrEnum):
    Light = 'light'
    Dark = 'dark'


class Size(enum.Enum):
    """Enumeration of size values used for UI scaling."""
    SmallText = 11.0
    MediumText = 12.0
    LargeText = 16.0
    Indicator = 4.0
    Separator = 1.0
    Margin = 18.0
    RowHeight = 34.0
    DefaultWidth = 640.0
    DefaultHeight = 480.0

    def __new__(cls, value):
        obj = object.__new__(cls)
        obj._value_ = float(value)
        return obj

    def __call__(self, multiplier=1.0, apply_scale=True):
        """
        Returns the scaled size value.

        Args:
            multiplier (float): A multiplier to apply to the size.
            apply_scale (bool): If True, applies UI scaling factors.

        Returns:
            int: The scaled size.
        """
        if apply_scale:
            return round(self.value * float(multiplier))
        return round(self._value_ * float(multiplier))

    @property
    def value(self):
        """float: The scaled size value."""
        return self.size(self._value_)

    @classmethod
    def size(cls, value, ui_scale_factor=1.0, dpi=72.0):
        """Scale a value by DPI and UI scale factor."""
        return math.ceil(float(value) * (float(dpi) / 72.0)) * float(ui_scale_factor)


class Color(enum.Enum):
    """Enumeration of colours used across the UI, keyed by theme."""

    VeryDarkBackground = {
        Theme.Light.value: (245, 245, 245),
        Theme.Dark.value: (30, 30, 30),
    }
    DarkBackground = {
        Theme.Light.value: (220, 220, 220),
        Theme.Dark.value: (45, 45, 45),
    }
    Background = {
        Theme.Light.value: (190, 190, 190),
        Theme.Dark.value: (65, 65, 65),
    }
    LightBackground = {
        Theme.Light.value: (170, 170, 170),
        Theme.Dark.value: (85, 85, 85),
    }
    DisabledText = {
        Theme.Light.value: (120, 120, 120),
        Theme.Dark.value: (135, 135, 135),
    }
    SecondaryText = {
        Theme.Light.value: (70, 70, 70),
        Theme.Dark.value: (185, 185, 185),
    }
    Text = {
        Theme.Light.value: (30, 30, 30),
        Theme.Dark.value: (225, 225, 225),
    }
    SelectedText = {
        Theme.Light.value: (0, 0, 0),
        Theme.Dark.value: (255, 255, 255),
    }
    Blue = {
        Theme.Light.value: (0, 50, 100),
        Theme.Dark.value: (88, 138, 180),
    }
    Red = {
        Theme.Light.value: (179, 94, 94),
        Theme.Dark.value: (229, 114, 114),
    }
    Green = {
        Theme.Light.value: (60, 180, 125),
        Theme.Dark.value: (90, 200, 155),
    }

    def __new__(cls, v):
        if not isinstance(v, dict):
            raise ValueError(f'Invalid color value: {v}. Must be a dictionary, got {type(v)}: {v}')
        obj = object.__new__(cls)
        obj._value_ = v
        return obj

    def __call__(self, theme: Theme = Theme.Dark, qss=False):
        """
        Returns a QColor or CSS rgba string for the given theme.

        Args:
            theme (Theme): The theme to resolve the colour against.
            qss (bool): If True, returns a CSS rgba string suitable for QSS.

        Returns:
            QColor or str: A QColor instance if qss=False, otherwise a CSS rgba string.
        """
        key = Theme(theme).value
        color = QtGui.QColor(*self._value_[key])
        if not qss:
            return color
        return self.rgb(color)

    @staticmethod
    def rgb(color):
        """Returns the CSS rgba string for a QColor."""
        rgb = [str(f) for f in color.getRgb()]
        return f'rgba({",".join(rgb)})'


def init_stylesheet(theme: Theme, path: Optional[str] = None) -> str:
    """Expand the stylesheet template for the given theme.

    Tokens are written as ``<Name>`` for colours and ``<Name@multiplier>`` for sizes.

    Args:
        theme (Theme): The theme used to resolve colour tokens.
        path (str): Optional template path. Defaults to the packaged stylesheet.

    Returns:
        str: The style sheet.

    """
    if path is None:
        from ..settings import lib
        path = lib.settings.stylesheet_path

    if not os.path.isfile(path):
        raise FileNotFoundError(f'Style sheet file not found: {path}')

    with open(path, 'r', encoding='utf-8') as f:
        qss = f.read()

    kwargs = {}

    for enum_ in Color:
        kwargs[enum_.name] = enum_(theme, qss=True)

    for enum_ in Size:
        for i in [float(f) / 10.0 for f in range(1, 101)]:
            key = f'{enum_.name}@{i:.1f}'
            if key in kwargs:
                raise KeyError(f'Key {key} already set!')
            kwargs[key] = round(enum_() * i)

    def _sub(match):
        key = match.group(1)
        if key not in kwargs:
            raise KeyError(f'Key {key} not found in stylesheet tokens!')
        return str(kwargs[key])

    qss = re.sub(r'<(.*?)>', _sub, qss)
    return qss


def apply_theme(theme: Optional[Theme] = None) -> None:
    """Set the style sheet for the entire app.

    This function should be called after the QApplication is created.

    Args:
        theme (Theme): The theme to apply. Defaults to the theme stored in the settings.

    """
    app = QtWidgets.QApplication.instance()
    if not app:
        raise RuntimeError('apply_theme() must be called after a QApplication is initiated.')

    if os.environ.get(DISABLE_STYLESHEET_ENV_KEY, '').lower() in ['1', 'true', 'yes']:
        logging.warning('Stylesheet disabled by environment variable.')
        return

    if theme is None:
        from ..settings import lib
        theme = Theme(lib.settings['theme'])

    qss = init_stylesheet(theme)
    app.setStyleSheet(qss)
    logging.debug(f'Applied {theme.value} theme')
