"""Presets subpackage: named parameter bundles for the calculator catalog.

This package provides:
    - lib: the preset store, storage backends and pure query functions
    - calculators: per-calculator parameter maps, defaults and value checks
    - model: Qt models scoping presets to one calculator type
    - selector: dropdown for picking a preset
    - editor: form for creating and editing presets
    - view: list widget with search, sorting and delete confirmation
    - manager: state machine and widget bridging presets to a host calculator
"""
