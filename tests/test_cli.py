import contextlib
import io
import json
import os
import sys
import unittest
from unittest import mock

sys.path.append(os.path.dirname(os.path.dirname(__file__)))
import cli
from config import YamlConfig


class CLITest(unittest.TestCase):
    def setUp(self) -> None:
        self.db = "test_cli.db"
        self.other_db = "test_cli_other.db"
        self.yaml = "test_cli.yaml"
        self.export = "test_cli_export.json"
        self.files = [self.db, self.other_db, self.yaml, self.export]
        for path in self.files:
            if os.path.exists(path):
                os.remove(path)

    def tearDown(self) -> None:
        for path in self.files:
            if os.path.exists(path):
                os.remove(path)

    def _demo(self) -> str:
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            cli.demo_data(self.db, self.yaml)
        return out.getvalue()

    def test_demo_inserts_once(self) -> None:
        self.assertIn("Demo data inserted", self._demo())
        self.assertIn("already contains", self._demo())
        store = cli.open_store(self.db, self.yaml)
        self.assertEqual(len(store.exercises), 2)
        self.assertEqual(len(store.get_completed_sessions()), 1)
        self.assertEqual(len(store.get_exercise_history(store.exercises[0].id)), 1)

    def test_export_then_import_into_new_db(self) -> None:
        self._demo()
        cli.export_data(self.db, self.export)
        with open(self.export, encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(sorted(data), ["exercises", "routines", "sessions"])

        cli.import_data(self.other_db, self.export)
        source = cli.open_store(self.db, self.yaml)
        copy = cli.open_store(self.other_db, self.yaml)
        self.assertEqual(copy.exercises, source.exercises)
        self.assertEqual(copy.routines, source.routines)
        self.assertEqual(copy.sessions, source.sessions)

    def test_export_and_import_follow_yaml_settings(self) -> None:
        self._demo()
        YamlConfig(self.yaml).save({"db_path": self.db, "log_level": "DEBUG"})
        cli.export_data(None, self.export, self.yaml)
        with open(self.export, encoding="utf-8") as f:
            data = json.load(f)
        self.assertEqual(len(data["exercises"]), 2)

        YamlConfig(self.yaml).save({"db_path": self.other_db, "log_level": "DEBUG"})
        cli.import_data(None, self.export, self.yaml)
        self.assertEqual(len(cli.open_store(self.other_db, self.yaml).exercises), 2)

    def test_main_reads_log_level_from_chosen_yaml(self) -> None:
        YamlConfig(self.yaml).save({"db_path": self.db, "log_level": "WARNING"})
        argv = ["liftlog", "export", "--yaml", self.yaml, "--out", self.export]
        with mock.patch.object(sys, "argv", argv), mock.patch.object(cli, "configure_logging") as configure:
            cli.main()
        configure.assert_called_once_with("WARNING")
        with open(self.export, encoding="utf-8") as f:
            self.assertEqual(sorted(json.load(f)), ["exercises", "routines", "sessions"])

    def test_backup_and_restore(self) -> None:
        self._demo()
        cli.backup_db(self.db, self.other_db)
        os.remove(self.db)
        cli.restore_db(self.other_db, self.db)
        self.assertEqual(len(cli.open_store(self.db, self.yaml).routines), 1)


if __name__ == "__main__":
    unittest.main()
