"""
LaserCalc: desktop catalog of laser-cutting calculators with reusable parameter presets.

This package provides:

- :mod:`LaserCalc.presets` – Preset store, query functions, selector, editor, list and manager.
- :mod:`LaserCalc.ui` – PySide6 application, theming and the calculator host window.
- :mod:`LaserCalc.settings` – Settings management, schema validation and localization.
- :mod:`LaserCalc.status` – Status codes and exceptions.
- :mod:`LaserCalc.log` – In-app logging with a log viewer.

Use :func:`LaserCalc.exec_` to launch the application.
"""

import sys

from PySide6 import QtCore

# Fail on Python < 3.11
if not (sys.version_info.major == 3 and sys.version_info.minor >= 11):
    raise RuntimeError('LaserCalc requires Python 3.11 or higher.')

__version__ = '0.1.0'
__description__ = 'LaserCalc: laser-cutting calculators with saved parameter presets.'

from .log import log

log.setup_logging()


def exec_() -> None:
    """Launch the LaserCalc GUI application and enter its event loop."""
    from .ui import app
    from .ui import main
    from .ui.actions import signals
    application = app.Application(sys.argv)
    main.show()

    QtCore.QTimer.singleShot(100, signals.initializationRequested)

    sys.exit(application.exec())


if __name__ == '__main__':
    exec_()
