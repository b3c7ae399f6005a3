import json
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from src.config.settings import Settings
from src.refindex.build import parse_package_spec, run_build, run_build_async, to_requests
from src.refindex.domain.errors import RetrievalError
from src.refindex.domain.models import PackageRequest
from tests.utils.fixtures import managed_temp_dir, sample_build_result


class PackageSpecTests(unittest.TestCase):
    def test_parse_name_only_and_name_with_url(self):
        self.assertEqual(parse_package_spec("alpha"), PackageRequest(package="alpha"))
        self.assertEqual(
            parse_package_spec("alpha=https://alpha.example/"),
            PackageRequest(package="alpha", base_url="https://alpha.example/"),
        )
        self.assertEqual(parse_package_spec("alpha="), PackageRequest(package="alpha"))

    def test_parse_rejects_empty_name(self):
        with self.assertRaises(ValueError):
            parse_package_spec("=https://x.example/")

    def test_to_requests_accepts_mapping_and_mixed_sequence(self):
        self.assertEqual(
            to_requests({"alpha": "https://a.example/", "beta": None}),
            [PackageRequest("alpha", "https://a.example/"), PackageRequest("beta")],
        )
        self.assertEqual(
            to_requests([PackageRequest("alpha"), "beta=https://b.example/"]),
            [PackageRequest("alpha"), PackageRequest("beta", "https://b.example/")],
        )


class BuildApiTests(unittest.TestCase):
    def test_run_build_sync_wrapper(self):
        expected = sample_build_result()
        with patch("src.refindex.build.run_build_async", new=AsyncMock(return_value=expected)):
            result = run_build(["alpha=https://a.example/"])
        self.assertEqual(result, expected)


class BuildApiAsyncTests(unittest.IsolatedAsyncioTestCase):
    async def test_wiring_writes_outputs_and_releases_resources(self):
        expected = sample_build_result()
        event_log = MagicMock()
        workflow = MagicMock()
        workflow.run = AsyncMock(return_value=expected)

        with managed_temp_dir("build_api") as tmp:
            settings = Settings(scratch_root=tmp / "scratch", output_dir=tmp / "out")
            with (
                patch("src.refindex.build.FetchEventLog", return_value=event_log),
                patch("src.refindex.build.BuildCatalogWorkflow", return_value=workflow) as workflow_cls,
            ):
                result = await run_build_async(
                    {"alpha": "https://a.example/"},
                    catalog_name="unit",
                    settings=settings,
                    show_progress=False,
                )

            self.assertEqual(result, expected)
            event_log.close.assert_called_once()
            requests, workspace = workflow.run.await_args.args
            self.assertEqual(requests, [PackageRequest("alpha", "https://a.example/")])
            self.assertFalse(Path(workspace).exists())
            self.assertEqual(list((tmp / "scratch").iterdir()), [])
            catalog = json.loads((tmp / "out" / "unit.json").read_text(encoding="utf-8"))
            self.assertEqual(catalog[0]["alias"], "foo")
            self.assertTrue((tmp / "out" / "unit.csv").is_file())
            self.assertTrue((tmp / "out" / "unit_report.json").is_file())
            config = workflow_cls.call_args.kwargs["config"]
            self.assertFalse(config.show_progress)

    async def test_preset_supplies_packages_and_pattern(self):
        workflow = MagicMock()
        workflow.run = AsyncMock(return_value=sample_build_result())
        with managed_temp_dir("build_api_preset") as tmp:
            settings = Settings(scratch_root=tmp, output_dir=tmp / "out")
            with (
                patch("src.refindex.build.FetchEventLog", return_value=MagicMock()),
                patch("src.refindex.build.BuildCatalogWorkflow", return_value=workflow) as workflow_cls,
            ):
                await run_build_async(preset="tidymodels", settings=settings, write_outputs=False)

            requests, _ = workflow.run.await_args.args
            self.assertIn(PackageRequest("recipes", "https://recipes.tidymodels.org/"), requests)
            self.assertIsNone(workflow_cls.call_args.kwargs["config"].pattern)
            self.assertFalse((tmp / "out").exists())

    async def test_recipes_preset_pattern_with_explicit_packages(self):
        workflow = MagicMock()
        workflow.run = AsyncMock(return_value=sample_build_result())
        with managed_temp_dir("build_api_recipes") as tmp:
            settings = Settings(scratch_root=tmp, output_dir=tmp / "out")
            with (
                patch("src.refindex.build.FetchEventLog", return_value=MagicMock()),
                patch("src.refindex.build.BuildCatalogWorkflow", return_value=workflow) as workflow_cls,
            ):
                await run_build_async(["recipes", "embed"], preset="recipes", settings=settings, write_outputs=False)

        self.assertEqual(workflow_cls.call_args.kwargs["config"].pattern, "^step_")
        requests, _ = workflow.run.await_args.args
        self.assertEqual([r.package for r in requests], ["recipes", "embed"])

    async def test_fatal_error_still_cleans_up(self):
        event_log = MagicMock()
        workflow = MagicMock()
        workflow.run = AsyncMock(side_effect=RetrievalError(["ghost"]))
        with managed_temp_dir("build_api_fatal") as tmp:
            settings = Settings(scratch_root=tmp / "scratch", output_dir=tmp / "out")
            with (
                patch("src.refindex.build.FetchEventLog", return_value=event_log),
                patch("src.refindex.build.BuildCatalogWorkflow", return_value=workflow),
            ):
                with self.assertRaises(RetrievalError):
                    await run_build_async(["ghost"], settings=settings)

            event_log.close.assert_called_once()
            self.assertEqual(list((tmp / "scratch").iterdir()), [])
            self.assertFalse((tmp / "out" / "topics.json").exists())
