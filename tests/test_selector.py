# tests/test_selector.py
"""
Unit-tests for LaserCalc.presets.selector.PresetSelector
(covers the button label, the popup list, search threshold, empty states and keyboard handling).

Run with:
    python -m unittest tests.test_selector
"""
from PySide6 import QtCore
from PySide6.QtTest import QTest

from LaserCalc.presets import selector as selector_module
from LaserCalc.presets.model import PresetModel
from LaserCalc.presets.selector import PresetSelector
from LaserCalc.settings import lib as settings_lib
from tests.base import BaseTestCase


class PresetSelectorTests(BaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.api = self.make_api()
        self.model = PresetModel(self.api, "energy-cost")
        self.selector = PresetSelector(self.model)
        self.selector.show()

        self.selected = []
        self.selector.presetSelected.connect(lambda preset_id: self.selected.append(preset_id))

    def tearDown(self) -> None:
        self.selector.close_popup()
        super().tearDown()

    def _index_of(self, name):
        proxy = self.selector.proxy
        for row in range(proxy.rowCount()):
            index = proxy.index(row, 0)
            if index.data() == name:
                return index
        raise AssertionError(f"{name} not listed")

    def test_placeholder_without_selection(self):
        self.assertEqual(self.selector.button.text(), selector_module.PLACEHOLDER_TEXT)
        self.assertIsNone(self.selector.current())

    def test_set_current_does_not_emit(self):
        preset = self.create(self.api, "Default")
        self.selector.set_current(preset.id)
        self.assertEqual(self.selector.button.text(), "Default")
        self.assertEqual(self.selected, [])

    def test_label_follows_rename(self):
        preset = self.create(self.api, "Default")
        self.selector.set_current(preset.id)
        self.api.update(preset.id, {"name": "Renamed"})
        self.assertEqual(self.selector.button.text(), "Renamed")

    def test_label_resets_when_preset_disappears(self):
        preset = self.create(self.api, "Default")
        self.selector.set_current(preset.id)
        self.api.delete(preset.id)
        self.assertEqual(self.selector.button.text(), selector_module.PLACEHOLDER_TEXT)

    def test_lists_only_current_calculator_in_store_order(self):
        self.create(self.api, "beta")
        self.create(self.api, "Alpha")
        self.create(self.api, "Kerf", calculator_type="kerf-width")

        proxy = self.selector.proxy
        names = [proxy.index(r, 0).data() for r in range(proxy.rowCount())]
        self.assertEqual(names, ["beta", "Alpha"])

    def test_empty_list(self):
        self.selector.open_popup()
        self.assertTrue(self.selector.is_open())
        self.assertEqual(self.selector.empty_message(), selector_module.EMPTY_TEXT)
        self.assertFalse(self.selector.popup.empty_label.isHidden())

    def test_choosing_an_entry(self):
        preset = self.create(self.api, "Default")
        self.selector.open_popup()

        self.selector.popup.view.clicked.emit(self._index_of("Default"))

        self.assertEqual(self.selected, [preset.id])
        self.assertFalse(self.selector.is_open())
        # The owner decides whether the selection sticks
        self.assertIsNone(self.selector.current())

    def test_clear_entry(self):
        preset = self.create(self.api, "Default")
        self.selector.set_current(preset.id)
        self.selector.open_popup()
        self.assertFalse(self.selector.popup.clear_button.isHidden())

        self.selector.popup.clear_button.click()
        self.assertEqual(self.selected, [None])

    def test_clear_entry_hidden_without_selection(self):
        self.create(self.api, "Default")
        self.selector.open_popup()
        self.assertTrue(self.selector.popup.clear_button.isHidden())

    def test_search_hidden_at_threshold(self):
        for i in range(selector_module.SEARCH_THRESHOLD):
            self.create(self.api, f"Preset {i}")
        self.assertFalse(self.selector.is_search_enabled())
        self.selector.open_popup()
        self.assertTrue(self.selector.popup.search_editor.isHidden())

    def test_search_shown_above_threshold(self):
        for i in range(selector_module.SEARCH_THRESHOLD + 1):
            self.create(self.api, f"Preset {i}")
        self.assertTrue(self.selector.is_search_enabled())
        self.selector.open_popup()
        self.assertFalse(self.selector.popup.search_editor.isHidden())

    def test_threshold_from_settings(self):
        settings_lib.settings["search_threshold"] = 1
        self.create(self.api, "A")
        self.assertFalse(self.selector.is_search_enabled())
        self.create(self.api, "B")
        self.assertTrue(self.selector.is_search_enabled())

    def test_search_filters_entries(self):
        for name in ("Mild steel", "Stainless", "Aluminium", "Copper", "Brass", "Steel night"):
            self.create(self.api, name)
        self.selector.open_popup()

        self.selector.set_search_text("STEEL")
        proxy = self.selector.proxy
        names = sorted(proxy.index(r, 0).data() for r in range(proxy.rowCount()))
        self.assertEqual(names, ["Mild steel", "Steel night"])

        self.selector.set_search_text("titanium")
        self.assertEqual(proxy.rowCount(), 0)
        self.assertEqual(self.selector.empty_message(), "No presets match 'titanium'")

    def test_escape_closes_and_clears_search(self):
        for i in range(selector_module.SEARCH_THRESHOLD + 1):
            self.create(self.api, f"Preset {i}")
        self.selector.open_popup()
        self.selector.set_search_text("Preset 1")

        QTest.keyClick(self.selector.popup.search_editor, QtCore.Qt.Key_Escape)

        self.assertFalse(self.selector.is_open())
        self.assertEqual(self.selector.popup.search_editor.text(), "")
        self.assertEqual(self.selector.proxy.rowCount(), selector_module.SEARCH_THRESHOLD + 1)
        self.assertEqual(self.selected, [])

    def test_keyboard_opens_popup(self):
        self.create(self.api, "Default")
        QTest.keyClick(self.selector, QtCore.Qt.Key_Down)
        self.assertTrue(self.selector.is_open())
