# tests/test_ui.py
"""
Tests for the UI layer of LaserCalc
(covers theming, the stylesheet template, the calculator form and the main window).

Run with:
    python -m unittest tests.test_ui
"""
from PySide6 import QtGui

from LaserCalc.presets import calculators
from LaserCalc.settings import lib
from LaserCalc.ui import ui
from LaserCalc.ui.actions import signals
from LaserCalc.ui.main import CalculatorForm, MainWindow
from tests.base import BaseTestCase


class ThemeTests(BaseTestCase):
    def test_color_resolves_per_theme(self):
        light = ui.Color.Text(ui.Theme.Light)
        dark = ui.Color.Text(ui.Theme.Dark)
        self.assertIsInstance(light, QtGui.QColor)
        self.assertNotEqual(light, dark)
        self.assertEqual(ui.Color.Red("light", qss=True), "rgba(179,94,94,255)")

    def test_size_scaling(self):
        self.assertEqual(ui.Size.Margin(1.0), 18)
        self.assertEqual(ui.Size.Margin(0.5), 9)

    def test_stylesheet_tokens_are_expanded(self):
        for theme in ui.Theme:
            with self.subTest(theme=theme):
                qss = ui.init_stylesheet(theme)
                self.assertTrue(qss)
                self.assertNotIn("<Text>", qss)
                self.assertNotRegex(qss, r"<[A-Za-z]+(@[\d.]+)?>")

    def test_missing_stylesheet(self):
        with self.assertRaises(FileNotFoundError):
            ui.init_stylesheet(ui.Theme.Dark, path=str(self.data_dir / "missing.qss"))

    def test_apply_theme_respects_disable_flag(self):
        # tests run with LASERCALC_DISABLE_STYLESHEET set
        ui.apply_theme(ui.Theme.Light)


class CalculatorFormTests(BaseTestCase):
    def test_inputs_follow_defaults(self):
        form = CalculatorForm("energy-cost")
        self.assertEqual(form.parameters(), calculators.default_parameters("energy-cost"))

    def test_set_parameters_keeps_unknown_values(self):
        form = CalculatorForm("energy-cost")
        form.set_parameters({"electricity_rate": 0.08, "note": "night"})
        params = form.parameters()
        self.assertAlmostEqual(params["electricity_rate"], 0.08)
        self.assertEqual(params["laser_power"], 1500.0)
        self.assertEqual(params["note"], "night")

    def test_invalid_values_are_reported(self):
        form = CalculatorForm("energy-cost")
        form.set_parameters({"laser_power": 0.0})
        self.assertIn("Laser Power (W)", form.status_label.text())
        self.assertFalse(form.status_label.isHidden())

    def test_switching_calculator_rebuilds_inputs(self):
        form = CalculatorForm("energy-cost")
        form.set_calculator_type("kerf-width")
        self.assertEqual(set(form.parameters()), set(calculators.fields("kerf-width")))


class MainWindowTests(BaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.api = self.make_api()
        self.window = MainWindow(api=self.api)
        self.window.show()

    def test_starts_with_stored_calculator(self):
        self.assertEqual(self.window.calculator_type(), lib.settings["calculator"])

    def test_selecting_preset_updates_form(self):
        self.create(self.api, "Default", parameters={"electricity_rate": 0.12})
        night = self.create(self.api, "NightShift", parameters={"electricity_rate": 0.08, "operating_time": 10.0})

        self.window.presets_view.selector.presetSelected.emit(night.id)

        params = self.window.form.parameters()
        self.assertAlmostEqual(params["electricity_rate"], 0.08)
        self.assertAlmostEqual(params["operating_time"], 10.0)
        self.assertEqual(self.window.presets_view.selector.button.text(), "NightShift")

    def test_save_uses_live_form_values(self):
        self.window.form.set_parameters({"electricity_rate": 0.2})
        self.window.presets_view.save_button.click()
        editor = self.window.presets_view.editor
        editor.name_editor.setText("Peak")
        editor.submit()

        preset = self.api.by_calculator("energy-cost")[0]
        self.assertAlmostEqual(preset.parameters["electricity_rate"], 0.2)
        self.assertEqual(preset.version, lib.settings["default_version"])

    def test_switching_calculator(self):
        self.create(self.api, "Default")
        thin = self.create(self.api, "Thin", calculator_type="kerf-width")

        changed = []
        slot = lambda calculator_type: changed.append(calculator_type)
        signals.calculatorChanged.connect(slot)
        try:
            idx = self.window.calculator_editor.findData("kerf-width")
            self.window.calculator_editor.setCurrentIndex(idx)
        finally:
            signals.calculatorChanged.disconnect(slot)

        self.assertEqual(changed, ["kerf-width"])
        self.assertEqual(lib.settings["calculator"], "kerf-width")
        self.assertEqual(self.window.presets_view.model.presets()[0].id, thin.id)
        self.assertEqual(self.window.presets_view.model.rowCount(), 1)

    def test_reload_action(self):
        self.create(self.api, "Default")
        actions = {a.text(): a for a in self.window.actions()}
        self.assertIn("Reload Presets", actions)
        actions["Reload Presets"].trigger()
        self.assertEqual(self.window.presets_view.model.rowCount(), 1)

    def test_error_shows_in_status_bar(self):
        signals.error.emit("Disk full")
        self.assertEqual(self.window.statusBar().currentMessage(), "Disk full")

    def test_show_preset_manager(self):
        signals.showPresetManager.emit()
        self.assertEqual(self.window.presets_view.manager.state, "listing")
