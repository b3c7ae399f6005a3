import unittest
from pathlib import Path

from src.config.settings import DEFAULT_REPOSITORY_URL, load_settings


class SettingsTests(unittest.TestCase):
    def test_defaults(self):
        settings = load_settings({})
        self.assertEqual(settings.repository_url, DEFAULT_REPOSITORY_URL)
        self.assertEqual(settings.timeout_seconds, 60.0)
        self.assertEqual(settings.max_concurrency, 5)
        self.assertIsNone(settings.scratch_root)
        self.assertTrue(settings.effective_scratch_root.is_dir())

    def test_environment_overrides(self):
        settings = load_settings(
            {
                "REFINDEX_REPOSITORY_URL": "https://mirror.example/",
                "REFINDEX_TIMEOUT_SECONDS": "5.5",
                "REFINDEX_MAX_CONCURRENCY": "2",
                "REFINDEX_SCRATCH_ROOT": "/tmp/refindex-scratch",
                "REFINDEX_OUTPUT_DIR": "out",
                "REFINDEX_LOG_LEVEL": "info",
            }
        )
        self.assertEqual(settings.repository_url, "https://mirror.example/")
        self.assertEqual(settings.timeout_seconds, 5.5)
        self.assertEqual(settings.max_concurrency, 2)
        self.assertEqual(settings.scratch_root, Path("/tmp/refindex-scratch"))
        self.assertEqual(settings.output_dir, Path("out"))
        self.assertEqual(settings.log_level, "INFO")

    def test_invalid_numbers_raise(self):
        with self.assertRaises(ValueError):
            load_settings({"REFINDEX_TIMEOUT_SECONDS": "soon"})
        with self.assertRaises(ValueError):
            load_settings({"REFINDEX_MAX_CONCURRENCY": "0"})
