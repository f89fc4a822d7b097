"""
User interface package: application signals, theming, and the calculator host window.

Modules:

- :mod:`LaserCalc.ui.actions` – Application-wide Qt signals.
- :mod:`LaserCalc.ui.ui` – Theme, size and colour definitions and stylesheet handling.
- :mod:`LaserCalc.ui.app` – Custom QApplication.
- :mod:`LaserCalc.ui.main` – Calculator host window wiring a parameter form to the preset manager.
"""
