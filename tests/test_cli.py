import os
import tempfile
import unittest

import yaml

from assetrecon.cli import build_parser, run
from assetrecon.config import Settings, load_config
from assetrecon.errors import ConfigError


class ParserTests(unittest.TestCase):
    def test_import_defaults_to_clear(self):
        args = build_parser().parse_args(["import-codes", "codes.xlsx"])
        self.assertTrue(args.clear)
        self.assertEqual(args.file, "codes.xlsx")

    def test_append_flag(self):
        args = build_parser().parse_args(["import-codes", "codes.xlsx", "--append"])
        self.assertFalse(args.clear)

    def test_clear_and_append_are_exclusive(self):
        with self.assertRaises(SystemExit):
            build_parser().parse_args(["import-codes", "codes.xlsx", "--append", "--clear"])


class SettingsTests(unittest.TestCase):
    def test_missing_profile_is_a_config_error(self):
        settings = Settings.from_config({"management_area": "East", "databases": {}})
        with self.assertRaises(ConfigError):
            settings.profile("red")

    def test_area_override_and_defaults(self):
        settings = Settings.from_config({"management_area": "East"}, area="West")
        self.assertEqual(settings.management_area, "West")
        self.assertEqual(settings.output_dir, "./output")
        self.assertEqual(settings.delay_seconds, 0.1)

    def test_missing_area_is_a_config_error(self):
        with self.assertRaises(ConfigError):
            Settings.from_config({})


class RunTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.tmp.cleanup()

    def _config(self, data):
        path = os.path.join(self.tmp.name, "config.yaml")
        with open(path, "w", encoding="utf-8") as file:
            yaml.safe_dump(data, file)
        return path

    def test_missing_config_exits_non_zero(self):
        missing = os.path.join(self.tmp.name, "nope.yaml")
        self.assertEqual(run(["--config", missing, "red-hierarchy"]), 1)

    def test_missing_profile_exits_non_zero(self):
        config = self._config({"management_area": "East", "output_dir": self.tmp.name, "databases": {}})
        self.assertEqual(run(["--config", config, "red-hierarchy"]), 1)

    def test_missing_import_file_exits_non_zero(self):
        config = self._config({"management_area": "East", "databases": {"blue": {"url": "sqlite://"}}})
        missing = os.path.join(self.tmp.name, "codes.xlsx")
        self.assertEqual(run(["--config", config, "import-codes", missing]), 1)

    def test_compare_without_exports_exits_non_zero(self):
        config = self._config({"management_area": "East", "output_dir": self.tmp.name})
        self.assertEqual(run(["--config", config, "compare"]), 1)

    def test_unreadable_workbook_exits_non_zero(self):
        config = self._config({"management_area": "East", "output_dir": self.tmp.name,
                               "databases": {"blue": {"url": "sqlite://"}}})
        codes = os.path.join(self.tmp.name, "codes.xlsx")
        with open(codes, "w", encoding="utf-8") as file:
            file.write("OLD_AS_CODE,NEW_AS_CODE\nA,X\n")
        self.assertEqual(run(["--config", config, "import-codes", codes]), 1)

    def test_wrong_extension_exits_non_zero(self):
        config = self._config({"management_area": "East", "output_dir": self.tmp.name})
        codes = os.path.join(self.tmp.name, "codes.csv")
        with open(codes, "w", encoding="utf-8") as file:
            file.write("Code\nA\n")
        self.assertEqual(run(["--config", config, "resolve-codes", codes]), 1)

    def test_malformed_config_exits_non_zero(self):
        path = os.path.join(self.tmp.name, "config.yaml")
        with open(path, "w", encoding="utf-8") as file:
            file.write("management_area: [East\n")
        self.assertEqual(run(["--config", path, "compare"]), 1)


class LoadConfigTests(unittest.TestCase):
    def test_non_mapping_config_is_a_config_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "config.yaml")
            with open(path, "w", encoding="utf-8") as file:
                file.write("- just\n- a list\n")
            with self.assertRaises(ConfigError):
                load_config(path)


if __name__ == "__main__":
    unittest.main()
