# tests/test_config_loader.py
import unittest
import sys
import os
import logging
import tempfile

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from slot_engine.application.registry.machine_registry import DEFAULT_MACHINE_DIR, DEFAULT_SCHEMA_PATH
from slot_engine.infrastructure.config.loaders.yaml_loader import (ConfigError, FileNotFoundConfigError,
                                                                  SchemaValidationError,
                                                                  YamlConfigLoader, YamlParseError)
from slot_engine.infrastructure.config.validators.schema_validator import SchemaValidator
from slot_engine.infrastructure.logging.log_manager import LogManager


class TestYamlConfigLoader(unittest.TestCase):

    def setUp(self):
        self.loader = YamlConfigLoader(SchemaValidator())
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        self.temp_dir.cleanup()

    def write(self, name, content):
        path = os.path.join(self.temp_dir.name, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def test_empty_file(self):
        path = self.write("empty.yaml", "")
        self.assertEqual(self.loader.load_file(path), {})
        self.assertEqual(self.loader.load_file(path, default_config={"a": 1}), {"a": 1})

    def test_non_strict_mode_uses_default(self):
        self.loader.set_strict_mode(False)
        broken = self.write("broken.yaml", "a: [\n")

        self.assertEqual(self.loader.load_file(broken, default_config={"a": 1}), {"a": 1})
        self.assertEqual(self.loader.load_file(os.path.join(self.temp_dir.name, "none.yaml"),
                                               default_config={"b": 2}), {"b": 2})

    def test_strict_mode_raises(self):
        broken = self.write("broken.yaml", "a: [\n")
        with self.assertRaises(YamlParseError):
            self.loader.load_file(broken, default_config={"a": 1})

    def test_non_strict_schema_violation_keeps_config(self):
        path = self.write("bad.yaml", "symbols:\n  - id: seven\n    weight: heavy\n")

        with self.assertRaises(SchemaValidationError) as context:
            self.loader.load_file(path, DEFAULT_SCHEMA_PATH)
        self.assertTrue(any("weight" in error for error in context.exception.errors))

        config = self.loader.set_strict_mode(False).load_file(path, DEFAULT_SCHEMA_PATH)
        self.assertEqual(config["symbols"][0]["weight"], "heavy")

    def test_missing_schema(self):
        path = self.write("ok.yaml", "a: 1\n")
        with self.assertRaises(FileNotFoundConfigError):
            self.loader.load_file(path, os.path.join(self.temp_dir.name, "schema.json"))

    def test_load_directory(self):
        configs = self.loader.load_directory(DEFAULT_MACHINE_DIR, DEFAULT_SCHEMA_PATH)
        self.assertIn("classic_slots", configs)

        self.write("good.yml", "a: 1\n")
        self.write("broken.yaml", "a: [\n")
        self.write("readme.txt", "ignored")

        with self.assertRaises(YamlParseError):
            self.loader.load_directory(self.temp_dir.name)
        self.assertEqual(self.loader.load_directory(self.temp_dir.name, ignore_errors=True), {"good": {"a": 1}})

    def test_missing_directory(self):
        missing = os.path.join(self.temp_dir.name, "nowhere")
        with self.assertRaises(FileNotFoundConfigError):
            self.loader.load_directory(missing)
        self.assertEqual(self.loader.set_strict_mode(False).load_directory(missing), {})

    def test_load_with_fallbacks(self):
        good = self.write("good.yaml", "name: fallback\n")
        missing = os.path.join(self.temp_dir.name, "none.yaml")

        self.assertEqual(self.loader.load_with_fallbacks([missing, good]), {"name": "fallback"})
        with self.assertRaises(ConfigError):
            self.loader.load_with_fallbacks([missing])

        self.loader.set_strict_mode(False)
        self.assertEqual(self.loader.load_with_fallbacks([missing]), {})
        self.assertFalse(self.loader.strict_mode)


class TestSchemaValidator(unittest.TestCase):

    def test_collects_every_error(self):
        schema = {
            "type": "object",
            "properties": {"a": {"type": "integer"}, "b": {"type": "string"}},
            "required": ["c"],
        }
        is_valid, errors = SchemaValidator().validate({"a": "x", "b": 1}, schema)

        self.assertFalse(is_valid)
        self.assertEqual(len(errors), 3)

    def test_invalid_schema(self):
        is_valid, errors = SchemaValidator().validate({}, {"type": "nonsense"})
        self.assertFalse(is_valid)
        self.assertTrue(errors[0].startswith("Schema error"))


class TestLogManager(unittest.TestCase):

    def setUp(self):
        self.root = logging.getLogger()
        self.saved_handlers = list(self.root.handlers)
        self.saved_level = self.root.level
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self):
        for handler in list(self.root.handlers):
            self.root.removeHandler(handler)
            handler.close()
        for handler in self.saved_handlers:
            self.root.addHandler(handler)
        self.root.setLevel(self.saved_level)
        logging.getLogger("tests.config.child").setLevel(logging.NOTSET)
        self.temp_dir.cleanup()

    def test_initialize(self):
        log_path = os.path.join(self.temp_dir.name, "logs", "engine.log")
        manager = LogManager()
        manager.initialize({
            "level": "warning",
            "console": False,
            "file": {"enabled": True, "path": log_path, "level": "DEBUG"},
            "loggers": {"tests.config.child": {"level": "DEBUG"}},
        })

        self.assertEqual(self.root.level, logging.WARNING)
        self.assertEqual(set(manager.handlers), {"file"})
        self.assertEqual(logging.getLogger("tests.config.child").level, logging.DEBUG)

        logging.getLogger("tests.config.child").debug("spin detail")
        manager.handlers["file"].flush()
        with open(log_path, encoding="utf-8") as f:
            self.assertIn("spin detail", f.read())

    def test_second_initialize_needs_force(self):
        manager = LogManager()
        manager.initialize({"level": "ERROR", "console": False})
        manager.initialize({"level": "DEBUG", "console": False})
        self.assertEqual(self.root.level, logging.ERROR)

        manager.initialize({"level": "DEBUG", "console": False}, force=True)
        self.assertEqual(self.root.level, logging.DEBUG)


if __name__ == "__main__":
    unittest.main()
