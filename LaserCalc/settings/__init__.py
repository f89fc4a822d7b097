"""
Settings package: configuration paths, schema validation, and localization.

This package provides:

- :mod:`LaserCalc.settings.lib` – Core settings management and schema validation.
- :mod:`LaserCalc.settings.locale` – Localization utilities for formatting timestamps and numbers.
"""
