from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from modmap_tools.errors import ConflictError, MalformedInputError, ModmapIOError
from modmap_tools.registry import (
    ModuleRegistry,
    default_bmi_path,
    load_registry,
    save_registry,
    split_partition,
)

FIXTURES = Path(__file__).parent / "fixtures"


class ModuleRegistryTests(unittest.TestCase):
    def test_insert_and_lookup(self) -> None:
        registry = ModuleRegistry()
        registry.insert("A", "a.bmi")

        self.assertEqual(registry.lookup("A"), "a.bmi")
        self.assertIsNone(registry.lookup("a"))
        self.assertIn("A", registry)
        self.assertEqual(len(registry), 1)

    def test_insert_same_path_is_noop(self) -> None:
        registry = ModuleRegistry()
        registry.insert("A", "a.bmi", origin="first.json")
        registry.insert("A", "a.bmi", origin="second.json")

        self.assertEqual(registry.to_dict(), {"A": "a.bmi"})
        self.assertEqual(next(iter(registry)).origin, "first.json")

    def test_insert_different_path_conflicts(self) -> None:
        registry = ModuleRegistry()
        registry.insert("A", "a.bmi", origin="first.json")

        with self.assertRaises(ConflictError) as ctx:
            registry.insert("A", "other.bmi", origin="second.json")

        self.assertEqual(ctx.exception.name, "A")
        self.assertEqual(ctx.exception.existing_path, "a.bmi")
        self.assertEqual(ctx.exception.new_path, "other.bmi")
        self.assertIn("first.json", str(ctx.exception))
        self.assertIn("second.json", str(ctx.exception))

    def test_paths_compared_textually(self) -> None:
        registry = ModuleRegistry()
        registry.insert("A", "out/a.bmi")

        with self.assertRaises(ConflictError):
            registry.insert("A", "out/./a.bmi")

    def test_merge_with_itself_is_idempotent(self) -> None:
        fragment = ModuleRegistry.from_dict({"A": "a.bmi", "A:part": "a-part.bmi"})
        registry = ModuleRegistry()

        registry.merge(fragment)
        once = registry.to_dict()
        registry.merge(fragment)
        registry.merge(registry)

        self.assertEqual(registry.to_dict(), once)

    def test_partitions(self) -> None:
        registry = ModuleRegistry.from_dict(
            {"M": "m.bmi", "M:b": "m-b.bmi", "M:a": "m-a.bmi", "N:a": "n-a.bmi"}
        )

        self.assertEqual(registry.partitions("M"), ["M:a", "M:b"])
        self.assertEqual(registry.partitions("X"), [])

    def test_naming_helpers(self) -> None:
        self.assertEqual(split_partition("M:part"), ("M", "part"))
        self.assertEqual(split_partition("M"), ("M", None))
        self.assertEqual(default_bmi_path("M:part"), "M-part.bmi")
        self.assertEqual(default_bmi_path("std.core"), "std.core.bmi")

    def test_from_dict_rejects_bad_shapes(self) -> None:
        with self.assertRaises(MalformedInputError):
            ModuleRegistry.from_dict(["A", "a.bmi"])
        with self.assertRaises(MalformedInputError):
            ModuleRegistry.from_dict({"A": 3})
        with self.assertRaises(MalformedInputError):
            ModuleRegistry.from_dict({"A": ""})

    def test_load_cmake_modules_info(self) -> None:
        registry = load_registry(FIXTURES / "cmake_modules_info.json")

        self.assertEqual(
            registry.to_dict(),
            {
                "bar:detail": "CMakeFiles/bar.dir/bar-detail.pcm",
                "foo": "CMakeFiles/foo.dir/foo.pcm",
            },
        )

    def test_cmake_module_without_bmi_is_malformed(self) -> None:
        with self.assertRaises(MalformedInputError):
            ModuleRegistry.from_dict({"modules": {"foo": {"is-private": False}}})

    def test_save_and_load_round_trip(self) -> None:
        registry = ModuleRegistry.from_dict({"B": "b.bmi", "A": "a.bmi"})

        with tempfile.TemporaryDirectory() as tmp:
            output = Path(tmp) / "nested" / "modules.json"
            save_registry(registry, output)

            self.assertEqual(json.loads(output.read_text()), {"A": "a.bmi", "B": "b.bmi"})
            self.assertEqual(load_registry(output), registry)
            self.assertEqual([p.name for p in output.parent.iterdir()], ["modules.json"])

    def test_load_cmake_references(self) -> None:
        registry = load_registry(FIXTURES / "cmake_references.json")

        self.assertEqual(registry.lookup("foo"), "CMakeFiles/foo.dir/foo.pcm")
        self.assertEqual(registry.lookup("bar"), "CMakeFiles/bar.dir/bar.pcm")
        self.assertEqual(len(registry), 2)

    def test_cmake_reference_disagreeing_with_module_conflicts(self) -> None:
        payload = {
            "modules": {"bar": {"bmi": "build/bar.pcm"}},
            "references": {"bar": {"lookup-method": "by-name", "path": "other/bar.pcm"}},
        }

        with self.assertRaises(ConflictError) as ctx:
            ModuleRegistry.from_dict(payload, origin="info.json")
        self.assertEqual(ctx.exception.name, "bar")

    def test_cmake_reference_without_path_is_malformed(self) -> None:
        with self.assertRaises(MalformedInputError):
            ModuleRegistry.from_dict({"modules": {}, "references": {"foo": {}}})

    def test_duplicate_key_with_different_paths_is_rejected(self) -> None:
        with self.assertRaises(MalformedInputError) as ctx:
            load_registry(FIXTURES / "registry_duplicate_key.json")

        self.assertIn("registry_duplicate_key.json", str(ctx.exception))
        self.assertIn("'A'", str(ctx.exception))

    def test_duplicate_key_with_same_path_is_accepted(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            fragment = Path(tmp) / "dup.json"
            fragment.write_text('{"A": "a.bmi", "A": "a.bmi"}')

            self.assertEqual(load_registry(fragment).to_dict(), {"A": "a.bmi"})

    def test_load_errors(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            broken = Path(tmp) / "broken.json"
            broken.write_text("{not json")

            with self.assertRaises(MalformedInputError) as ctx:
                load_registry(broken)
            self.assertIn("broken.json", str(ctx.exception))

            with self.assertRaises(ModmapIOError):
                load_registry(Path(tmp) / "missing.json")


if __name__ == "__main__":
    unittest.main()
