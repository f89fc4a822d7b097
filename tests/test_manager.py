# tests/test_manager.py
"""
Unit-tests for LaserCalc.presets.manager
(covers the PresetManager state machine and the PresetManagerWidget workflows).

Run with:
    python -m unittest tests.test_manager
"""
from unittest.mock import patch

from PySide6 import QtWidgets

from LaserCalc.presets import selector as selector_module
from LaserCalc.presets.lib import PresetsAPI
from LaserCalc.presets.manager import ManagerState, PresetManager, PresetManagerWidget
from LaserCalc.status import status
from LaserCalc.ui.actions import signals
from tests.base import BaseTestCase, FailingStorage


class HostCalculator:
    """Stands in for a calculator form holding live parameter values."""

    def __init__(self, parameters=None):
        self.parameters = dict(parameters or {"electricity_rate": 0.12})
        self.loaded = []

    def current_parameters(self):
        return dict(self.parameters)

    def load(self, preset):
        self.loaded.append(preset.id)
        self.parameters = dict(preset.parameters)


class PresetManagerTests(BaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.api = self.make_api()
        self.host = HostCalculator()
        self.manager = PresetManager(
            self.api, "energy-cost",
            self.host.current_parameters, self.host.load,
        )
        self.states = []
        self.manager.stateChanged.connect(lambda state: self.states.append(state))

    def test_initial_state(self):
        self.assertEqual(self.manager.state, ManagerState.Idle)
        self.assertIsNone(self.manager.selected_id)
        self.assertEqual(self.manager.default_version, "1.0.0")

    def test_select_loads_parameters(self):
        preset = self.create(self.api, "NightShift", parameters={"electricity_rate": 0.08})
        self.assertTrue(self.manager.select(preset.id))
        self.assertEqual(self.manager.state, ManagerState.Selected)
        self.assertEqual(self.manager.selected_id, preset.id)
        self.assertEqual(self.host.loaded, [preset.id])
        self.assertEqual(self.host.parameters, {"electricity_rate": 0.08})

    def test_select_emits_preset_loaded(self):
        preset = self.create(self.api, "Default")
        loaded = []
        slot = lambda calculator_type, preset_id: loaded.append((calculator_type, preset_id))
        signals.presetLoaded.connect(slot)
        try:
            self.manager.select(preset.id)
        finally:
            signals.presetLoaded.disconnect(slot)
        self.assertEqual(loaded, [("energy-cost", preset.id)])

    def test_select_missing_reverts_to_idle(self):
        preset = self.create(self.api, "Default")
        self.manager.select(preset.id)
        self.assertFalse(self.manager.select("preset_missing"))
        self.assertEqual(self.manager.state, ManagerState.Idle)
        self.assertIsNone(self.manager.selected_id)

    def test_select_other_calculator_is_rejected(self):
        preset = self.create(self.api, "Thin", calculator_type="kerf-width")
        self.assertFalse(self.manager.select(preset.id))
        self.assertEqual(self.host.loaded, [])

    def test_clear(self):
        preset = self.create(self.api, "Default")
        self.manager.select(preset.id)
        self.manager.clear()
        self.assertEqual(self.manager.state, ManagerState.Idle)
        self.assertIsNone(self.manager.selected_id)

    def test_create_flow_selects_new_preset(self):
        draft = self.manager.begin_create()
        self.assertEqual(self.manager.state, ManagerState.Editing)
        self.assertIsNone(self.manager.editing)
        self.assertEqual(draft["parameters"], {"electricity_rate": 0.12})
        self.assertEqual(draft["version"], "1.0.0")

        draft["name"] = "Default"
        result = self.manager.submit(draft)

        self.assertTrue(result.success)
        self.assertEqual(self.manager.state, ManagerState.Selected)
        self.assertEqual(self.manager.selected_id, result.data.id)
        # Parameters already match the host
        self.assertEqual(self.host.loaded, [])

    def test_cancel_returns_to_previous_state(self):
        preset = self.create(self.api, "Default")
        self.manager.select(preset.id)
        self.manager.begin_create()
        self.manager.cancel()
        self.assertEqual(self.manager.state, ManagerState.Selected)
        self.assertEqual(len(self.api), 1)

    def test_edit_from_list_returns_to_state_before_list(self):
        keep = self.create(self.api, "Keep")
        preset = self.create(self.api, "Default")
        self.manager.select(keep.id)
        self.manager.open_list()
        self.assertEqual(self.manager.begin_edit(preset.id).id, preset.id)
        self.assertEqual(self.manager.state, ManagerState.Editing)
        self.assertEqual(self.states, ["selected", "listing", "selected", "editing"])

        result = self.manager.submit({"name": "Renamed"})
        self.assertTrue(result.success)
        self.assertEqual(self.api.get(preset.id).name, "Renamed")
        self.assertEqual(self.manager.state, ManagerState.Selected)
        self.assertEqual(self.manager.selected_id, keep.id)

    def test_edit_from_list_without_selection(self):
        preset = self.create(self.api, "Default")
        self.manager.open_list()
        self.manager.begin_edit(preset.id)
        self.manager.cancel()
        self.assertEqual(self.manager.state, ManagerState.Idle)

    def test_edit_missing(self):
        self.assertIsNone(self.manager.begin_edit("preset_missing"))
        self.assertEqual(self.manager.state, ManagerState.Idle)

    def test_edit_of_deleted_preset_reverts_to_idle(self):
        preset = self.create(self.api, "Default")
        self.manager.begin_edit(preset.id)
        self.api.delete(preset.id)

        result = self.manager.submit({"name": "Renamed"})
        self.assertEqual(result.status, status.Status.PresetNotFound)
        self.assertEqual(self.manager.state, ManagerState.Idle)

    def test_failed_create_stays_in_editing(self):
        self.manager.begin_create()
        result = self.manager.submit({"name": "", "calculator_type": "energy-cost", "parameters": {}})
        self.assertFalse(result.success)
        self.assertEqual(self.manager.state, ManagerState.Editing)

    def test_submit_outside_editing_raises(self):
        with self.assertRaises(RuntimeError):
            self.manager.submit({"name": "x"})

    def test_deleting_selected_preset_clears_selection(self):
        preset = self.create(self.api, "Default")
        self.manager.select(preset.id)
        self.assertTrue(self.manager.delete(preset.id).success)
        self.assertEqual(self.manager.state, ManagerState.Idle)
        self.assertIsNone(self.manager.selected_id)

    def test_external_delete_clears_selection(self):
        preset = self.create(self.api, "Default")
        self.manager.select(preset.id)
        self.manager.open_list()
        self.api.delete(preset.id)
        self.assertIsNone(self.manager.selected_id)

        self.manager.close_list()
        self.assertEqual(self.manager.state, ManagerState.Idle)

    def test_delete_other_keeps_selection(self):
        keep = self.create(self.api, "Keep")
        other = self.create(self.api, "Other")
        self.manager.select(keep.id)
        self.manager.delete(other.id)
        self.assertEqual(self.manager.selected_id, keep.id)
        self.assertEqual(self.manager.state, ManagerState.Selected)

    def test_delete_from_list_returns_to_previous_state(self):
        keep = self.create(self.api, "Keep")
        other = self.create(self.api, "Other")
        self.manager.select(keep.id)
        self.manager.open_list()

        self.assertTrue(self.manager.delete(other.id).success)
        self.assertEqual(self.manager.state, ManagerState.Selected)
        self.assertEqual(self.manager.selected_id, keep.id)

    def test_delete_selected_from_list_reverts_to_idle(self):
        preset = self.create(self.api, "Default")
        self.manager.select(preset.id)
        self.manager.open_list()

        self.assertTrue(self.manager.delete(preset.id).success)
        self.assertEqual(self.manager.state, ManagerState.Idle)
        self.assertIsNone(self.manager.selected_id)

    def test_failed_delete_stays_in_list(self):
        storage = FailingStorage()
        api = PresetsAPI(storage=storage)
        preset = self.create(api, "Default")
        manager = PresetManager(api, "energy-cost", self.host.current_parameters, self.host.load)
        manager.open_list()
        storage.fail = True

        self.assertFalse(manager.delete(preset.id).success)
        self.assertEqual(manager.state, ManagerState.Listing)

    def test_list_round_trip(self):
        preset = self.create(self.api, "Default")
        self.manager.select(preset.id)
        self.manager.open_list()
        self.manager.open_list()
        self.assertEqual(self.manager.state, ManagerState.Listing)
        self.manager.close_list()
        self.assertEqual(self.manager.state, ManagerState.Selected)
        self.assertEqual(self.states, ["selected", "listing", "selected"])

    def test_calculator_switch_resets(self):
        preset = self.create(self.api, "Default")
        self.manager.select(preset.id)
        self.manager.set_calculator_type("kerf-width")
        self.assertEqual(self.manager.state, ManagerState.Idle)
        self.assertIsNone(self.manager.selected_id)
        self.assertEqual(self.manager.presets(), [])

    def test_dispose_stops_listening(self):
        preset = self.create(self.api, "Default")
        self.manager.select(preset.id)
        self.manager.dispose()
        self.api.delete(preset.id)
        self.assertEqual(self.manager.selected_id, preset.id)


class PresetManagerWidgetTests(BaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.api = self.make_api()
        self.host = HostCalculator()

    def make_widget(self, compact=False, show_manage=True):
        widget = PresetManagerWidget(
            self.api, "energy-cost",
            self.host.current_parameters, self.host.load,
            compact=compact, show_manage=show_manage,
        )
        widget.show()
        return widget

    def test_save_new_preset_from_empty_store(self):
        widget = self.make_widget()

        widget.selector.open_popup()
        self.assertEqual(widget.selector.empty_message(), selector_module.EMPTY_TEXT)
        widget.selector.close_popup()

        widget.save_button.click()
        self.assertEqual(widget.manager.state, ManagerState.Editing)
        self.assertIsNotNone(widget.editor)

        widget.editor.name_editor.setText("Default")
        widget.editor.submit()

        presets = self.api.by_calculator("energy-cost")
        self.assertEqual(len(presets), 1)
        self.assertEqual(presets[0].name, "Default")
        self.assertEqual(presets[0].parameters, {"electricity_rate": 0.12})
        self.assertEqual(widget.manager.selected_id, presets[0].id)
        self.assertEqual(widget.selector.current(), presets[0].id)
        self.assertEqual(widget.selector.button.text(), "Default")
        self.assertEqual(widget.selector.proxy.rowCount(), 1)
        self.assertIsNone(widget.editor)

    def test_selecting_loads_into_host(self):
        self.create(self.api, "Default", parameters={"electricity_rate": 0.12})
        night = self.create(self.api, "NightShift", parameters={"electricity_rate": 0.08})
        widget = self.make_widget()

        widget.selector.presetSelected.emit(night.id)

        self.assertEqual(self.host.loaded, [night.id])
        self.assertEqual(self.host.parameters, {"electricity_rate": 0.08})
        self.assertEqual(widget.selector.button.text(), "NightShift")
        self.assertIn(("Electricity Rate ($/kWh)", "0.08"), widget.readout.rows())

    def test_clearing_selection(self):
        preset = self.create(self.api, "Default")
        widget = self.make_widget()
        widget.selector.presetSelected.emit(preset.id)
        widget.selector.presetSelected.emit(None)
        self.assertIsNone(widget.manager.selected_id)
        self.assertEqual(widget.selector.button.text(), selector_module.PLACEHOLDER_TEXT)

    def test_invalid_description_never_reaches_store(self):
        preset = self.create(self.api, "Default")
        widget = self.make_widget()
        before = self.api.list()

        widget.manager.begin_edit(preset.id)
        widget.editor.description_editor.setPlainText("d" * 501)
        with patch.object(self.api, "update", wraps=self.api.update) as update:
            self.assertIsNone(widget.editor.submit())
        update.assert_not_called()

        self.assertEqual(self.api.list(), before)
        self.assertEqual(widget.editor.errors(), {"description": "Description must be 500 characters or less"})
        self.assertEqual(widget.manager.state, ManagerState.Editing)

    def test_failed_save_keeps_editor_open(self):
        storage = FailingStorage()
        self.api = PresetsAPI(storage=storage)
        widget = self.make_widget()

        widget.save_button.click()
        storage.fail = True
        widget.editor.name_editor.setText("Default")
        widget.editor.submit()

        self.assertIsNotNone(widget.editor)
        self.assertTrue(widget.editor.form_error_text())
        self.assertEqual(widget.manager.state, ManagerState.Editing)
        self.assertEqual(self.api.list(), [])

    def test_cancel_editor(self):
        widget = self.make_widget()
        widget.save_button.click()
        widget.editor.cancel_button.click()
        self.assertEqual(widget.manager.state, ManagerState.Idle)
        self.assertIsNone(widget.editor)
        self.assertEqual(self.api.list(), [])

    def test_delete_from_list(self):
        preset = self.create(self.api, "Default")
        widget = self.make_widget()
        widget.selector.presetSelected.emit(preset.id)

        with patch.object(widget.list_widget, "confirm_delete", return_value=True):
            widget.list_widget.delete(preset.id)

        self.assertIsNone(self.api.get(preset.id))
        self.assertIsNone(widget.manager.selected_id)
        self.assertEqual(widget.selector.button.text(), selector_module.PLACEHOLDER_TEXT)

    def test_failed_delete_shows_message(self):
        storage = FailingStorage()
        self.api = PresetsAPI(storage=storage)
        preset = self.create(self.api, "Default")
        widget = self.make_widget()
        storage.fail = True

        with patch.object(QtWidgets.QMessageBox, "critical") as critical:
            with patch.object(widget.list_widget, "confirm_delete", return_value=True):
                widget.list_widget.delete(preset.id)
        critical.assert_called_once()
        self.assertIsNotNone(self.api.get(preset.id))

    def test_edit_from_list(self):
        preset = self.create(self.api, "Default")
        widget = self.make_widget()
        widget.list_widget.edit(preset.id)

        self.assertEqual(widget.manager.state, ManagerState.Editing)
        self.assertEqual(widget.editor.name_editor.text(), "Default")

        widget.editor.name_editor.setText("Renamed")
        widget.editor.submit()
        self.assertEqual(self.api.get(preset.id).name, "Renamed")
        self.assertIsNone(widget.editor)

    def test_full_mode_layout(self):
        widget = self.make_widget()
        self.assertIsNotNone(widget.readout)
        self.assertIsNotNone(widget.list_widget)
        self.assertIsNotNone(widget.manage_button)

    def test_compact_mode_manage_opens_dialog(self):
        widget = self.make_widget(compact=True)
        self.assertIsNone(widget.readout)
        self.assertIsNone(widget.list_widget)

        widget.manage_button.click()
        self.assertEqual(widget.manager.state, ManagerState.Listing)
        self.assertTrue(widget.list_dialog.isVisible())

        widget.manage_button.click()
        self.assertEqual(widget.manager.state, ManagerState.Idle)
        self.assertFalse(widget.list_dialog.isVisible())

    def test_compact_mode_delete_closes_dialog(self):
        preset = self.create(self.api, "Default")
        widget = self.make_widget(compact=True)
        widget.selector.presetSelected.emit(preset.id)
        widget.manage_button.click()
        self.assertTrue(widget.list_dialog.isVisible())

        with patch.object(widget.list_widget, "confirm_delete", return_value=True):
            widget.list_widget.delete(preset.id)

        self.assertEqual(widget.manager.state, ManagerState.Idle)
        self.assertFalse(widget.list_dialog.isVisible())

    def test_compact_mode_without_manage(self):
        widget = self.make_widget(compact=True, show_manage=False)
        self.assertIsNone(widget.manage_button)

    def test_calculator_switch(self):
        self.create(self.api, "Default")
        thin = self.create(self.api, "Thin", calculator_type="kerf-width")
        widget = self.make_widget()

        widget.set_calculator_type("kerf-width")
        self.assertEqual(widget.model.rowCount(), 1)
        widget.selector.presetSelected.emit(thin.id)
        self.assertEqual(widget.manager.selected_id, thin.id)
