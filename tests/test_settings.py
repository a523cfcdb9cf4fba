import json
import tempfile
import unittest
from dataclasses import asdict
from pathlib import Path

from elecflow_engine.settings import (
    FlowSettings,
    default_hide_below,
    load_settings,
    save_settings,
    settings_from_dict,
    validate_settings,
)


class ValidateSettingsTests(unittest.TestCase):
    def test_defaults_are_valid(self):
        self.assertEqual(validate_settings({}), [])
        self.assertEqual(validate_settings(asdict(FlowSettings())), [])

    def test_errors_are_collected(self):
        errors = validate_settings({
            "unit": "hp",
            "max_consumer_branches": -1,
            "hide_consumers_below": "lots",
            "invert_battery_flows": "yes",
            "grid_color": "purple",
            "colour": "#000000",
        })
        self.assertEqual(len(errors), 6)
        self.assertIn("unknown setting: colour", errors)

    def test_bool_is_not_an_int(self):
        self.assertEqual(len(validate_settings({"max_consumer_branches": True})), 1)

    def test_from_dict_raises(self):
        with self.assertRaises(ValueError) as cm:
            settings_from_dict({"unit": "hp"})
        self.assertIn("unit must be one of", str(cm.exception))

    def test_from_dict(self):
        s = settings_from_dict({"unit": "kWh", "max_consumer_branches": 3})
        self.assertEqual(s.unit, "kWh")
        self.assertEqual(s.max_consumer_branches, 3)


class HideBelowTests(unittest.TestCase):
    def test_unit_defaults(self):
        self.assertAlmostEqual(default_hide_below("W"), 100.0)
        self.assertAlmostEqual(default_hide_below("kW"), 0.1)
        self.assertAlmostEqual(default_hide_below("kWh"), 0.1)
        self.assertAlmostEqual(default_hide_below("Wh"), 100.0)

    def test_effective_threshold(self):
        self.assertEqual(FlowSettings().effective_hide_below(), 0.0)
        self.assertAlmostEqual(FlowSettings(hide_small_consumers=True).effective_hide_below(), 100.0)
        self.assertAlmostEqual(FlowSettings(unit="kWh", hide_small_consumers=True).effective_hide_below(), 0.1)
        self.assertEqual(FlowSettings(hide_consumers_below=50, hide_small_consumers=True).effective_hide_below(), 50)


class PersistenceTests(unittest.TestCase):
    def test_missing_file_gives_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            settings, settings_hash = load_settings(Path(tmp))
        self.assertEqual(settings, FlowSettings())
        self.assertEqual(len(settings_hash), 12)

    def test_save_then_load(self):
        settings = FlowSettings(unit="kW", max_consumer_branches=4, invert_battery_flows=True,
                                grid_color="#123456")
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertLogs("elecflow_engine.settings", level="INFO"):
                saved_hash = save_settings(settings, Path(tmp))
            path = Path(tmp) / "data" / "flow_settings.json"
            self.assertTrue(path.exists())
            self.assertEqual(json.loads(path.read_text())["settings_hash"], saved_hash)
            loaded, loaded_hash = load_settings(Path(tmp))
        self.assertEqual(loaded, settings)
        self.assertEqual(loaded_hash, saved_hash)

    def test_corrupt_file_raises(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "data" / "flow_settings.json"
            path.parent.mkdir(parents=True)
            path.write_text(json.dumps({"unit": "furlongs"}))
            with self.assertRaises(ValueError):
                load_settings(Path(tmp))


if __name__ == "__main__":
    unittest.main()
