import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import YamlConfig, load_settings
from settings_schema import SettingsSchema, validate_settings


class YamlConfigTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.path = "test_settings.yaml"
        if os.path.exists(self.path):
            os.remove(self.path)

    def tearDown(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)

    def test_missing_file(self) -> None:
        self.assertEqual(YamlConfig(self.path).load(), {})
        settings = load_settings(self.path)
        self.assertEqual(settings, SettingsSchema())
        self.assertEqual(settings.rest_timer_seconds, 90)
        self.assertEqual(settings.timer_presets, [30, 60, 90, 120, 180])
        self.assertFalse(settings.replace_active_workout)

    def test_save_and_load(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({"rest_timer_seconds": 120, "log_level": "debug"})
        self.assertTrue(os.path.exists(self.path))
        self.assertEqual(cfg.load()["rest_timer_seconds"], 120)
        settings = load_settings(self.path)
        self.assertEqual(settings.rest_timer_seconds, 120)
        self.assertEqual(settings.log_level, "DEBUG")

    def test_non_mapping_rejected(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("- 1\n- 2\n")
        with self.assertRaises(ValueError):
            YamlConfig(self.path).load()


class SettingsSchemaTestCase(unittest.TestCase):
    def test_invalid_values(self) -> None:
        with self.assertRaises(ValueError):
            validate_settings({"rest_timer_seconds": "soon"})
        with self.assertRaises(ValueError):
            validate_settings({"log_level": "LOUD"})
        with self.assertRaises(ValueError):
            validate_settings({"timer_min_seconds": 400})
        with self.assertRaises(ValueError):
            validate_settings({"timer_min_seconds": 0})
        with self.assertRaises(ValueError):
            validate_settings({"timer_step_seconds": 0})

    def test_valid_values(self) -> None:
        settings = validate_settings(
            {"timer_min_seconds": 10, "timer_max_seconds": 600, "db_path": "gym.db"}
        )
        self.assertEqual(settings.timer_max_seconds, 600)
        self.assertEqual(settings.db_path, "gym.db")


if __name__ == "__main__":
    unittest.main()
