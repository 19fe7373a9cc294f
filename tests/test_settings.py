import os
import sys
import unittest

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
from config import YamlConfig
from settings_schema import DB_PATH_ENV, SettingsSchema, load_settings, validate_settings


class SettingsTest(unittest.TestCase):
    def setUp(self) -> None:
        self.path = "test_settings.yaml"
        if os.path.exists(self.path):
            os.remove(self.path)
        os.environ.pop(DB_PATH_ENV, None)

    def tearDown(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)
        os.environ.pop(DB_PATH_ENV, None)

    def test_missing_file_gives_defaults(self) -> None:
        self.assertEqual(YamlConfig(self.path).load(), {})
        self.assertEqual(load_settings(self.path), SettingsSchema())

    def test_save_and_load(self) -> None:
        cfg = YamlConfig(self.path)
        cfg.save({"history_limit": 5, "db_path": "gym.db"})
        settings = load_settings(self.path)
        self.assertEqual(settings.history_limit, 5)
        self.assertEqual(settings.db_path, "gym.db")
        self.assertEqual(settings.recent_limit, 5)

    def test_environment_overrides_db_path(self) -> None:
        YamlConfig(self.path).save({"db_path": "gym.db"})
        os.environ[DB_PATH_ENV] = "other.db"
        self.assertEqual(load_settings(self.path).db_path, "other.db")

    def test_invalid_values_rejected(self) -> None:
        with self.assertRaises(ValueError):
            validate_settings({"history_limit": 0})
        with self.assertRaises(ValueError):
            validate_settings({"recent_limit": "many"})

    def test_non_mapping_file_rejected(self) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("- a\n- b\n")
        with self.assertRaises(ValueError):
            YamlConfig(self.path).load()


if __name__ == "__main__":
    unittest.main()
