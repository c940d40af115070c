import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import structlog
from pydantic import ValidationError

from ..cli import build_parser, main, output_directory, resolve_settings
from ..config import Settings
from ..input_output import OUTPUT_FILE_NAME

"""
Tests for the command-line wrapper and the settings it resolves.
"""

EXAMPLE = {
    "points": [[0.0, 1.0], [1.0, 1.0]],
    "bound": [[-0.5, -0.5], [0.0, 0.0], [1.0, 0.5], [-0.5, -0.5]],
}


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.centering, "offset")
        self.assertEqual(settings.degenerate_cells, "empty")
        self.assertEqual(settings.max_workers, 1)

    def test_environment_override(self):
        env = {"BOUNDED_VORONOI_CENTERING": "bbox", "BOUNDED_VORONOI_MAX_WORKERS": "3"}
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)
        self.assertEqual(settings.centering, "bbox")
        self.assertEqual(settings.max_workers, 3)

    def test_validation(self):
        with self.assertRaises(ValidationError):
            Settings(max_workers=0)
        with self.assertRaises(ValidationError):
            Settings(centering="centroid")
        with self.assertRaises(ValidationError):
            Settings(epsilon=0.0)


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.input_path = self.tmp / "points.json"
        self.input_path.write_text(json.dumps(EXAMPLE), encoding="utf-8")

    def tearDown(self):
        structlog.reset_defaults()
        self._tmp.cleanup()

    def test_default_output_directory(self):
        args = build_parser().parse_args([str(self.input_path)])
        self.assertEqual(output_directory(args), self.input_path.resolve().parent)

    def test_flags_override_settings(self):
        args = build_parser().parse_args([str(self.input_path), "--centering", "bbox", "--workers", "2"])
        settings = resolve_settings(args)
        self.assertEqual(settings.centering, "bbox")
        self.assertEqual(settings.max_workers, 2)

    def test_writes_output_next_to_input(self):
        self.assertEqual(main([str(self.input_path)]), 0)
        records = json.loads((self.tmp / OUTPUT_FILE_NAME).read_text(encoding="utf-8"))
        self.assertEqual([r["site"] for r in records], [[0.0, 1.0], [1.0, 1.0]])
        for record in records:
            self.assertEqual(record["cell"][0], record["cell"][-1])

    def test_output_directory_flag(self):
        out = self.tmp / "results"
        self.assertEqual(main([str(self.input_path), "-o", str(out)]), 0)
        self.assertTrue((out / OUTPUT_FILE_NAME).exists())

    def test_plot_flag(self):
        plot_path = self.tmp / "diagram.png"
        self.assertEqual(main([str(self.input_path), "--plot", str(plot_path)]), 0)
        self.assertTrue(plot_path.exists())

    def test_unwritable_output_directory_fails(self):
        blocker = self.tmp / "not_a_directory"
        blocker.write_text("", encoding="utf-8")
        self.assertEqual(main([str(self.input_path), "-o", str(blocker / "out")]), 1)

    def test_unwritable_plot_path_fails(self):
        plot_path = self.tmp / "missing_dir" / "diagram.png"
        self.assertEqual(main([str(self.input_path), "--plot", str(plot_path)]), 1)

    def test_invalid_bound_fails(self):
        self.input_path.write_text(json.dumps({"points": [[0, 0]], "bound": [[0, 0], [1, 1]]}), encoding="utf-8")
        self.assertEqual(main([str(self.input_path)]), 1)
        self.assertFalse((self.tmp / OUTPUT_FILE_NAME).exists())

    def test_unreadable_input_fails(self):
        self.assertEqual(main([str(self.tmp / "missing.json")]), 1)


if __name__ == '__main__':
    unittest.main()
