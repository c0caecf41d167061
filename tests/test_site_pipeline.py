"""Tests for site/pipeline.py module.

Tests step ordering, skipping, and fail-fast behavior of the docs build.
Uses mocked subprocess for every npm invocation.
"""

from unittest.mock import MagicMock, patch

import pytest

from apidocs_builder.config import Settings
from apidocs_builder.generation.cache import GenerationCache, hash_file
from apidocs_builder.generation.specs import default_specs
from apidocs_builder.site.pipeline import (
    BuildOptions,
    BuildStepError,
    build_site,
    needs_install,
    run_step,
)
from apidocs_builder.types import BuildStep


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Create settings for a docs tree whose API docs are up to date."""
    cache = GenerationCache(tmp_path / ".api-docs-cache.json")
    for name, spec in default_specs(tmp_path).items():
        spec.spec_path.parent.mkdir(parents=True, exist_ok=True)
        spec.spec_path.write_text(f"title: {name}\n")
        spec.output_dir.mkdir(parents=True, exist_ok=True)
        (spec.output_dir / "index.mdx").write_text("# API")
        cache.record(name, hash_file(spec.spec_path))
    cache.save()
    (tmp_path / "node_modules").mkdir()
    return Settings(docs_dir=tmp_path)


def _npm_calls(mock_run: MagicMock) -> list[list[str]]:
    return [c.args[0][1:] for c in mock_run.call_args_list]


class TestBuildOptions:
    """Tests for BuildOptions.from_settings."""

    def test_env_flags_are_ored(self, tmp_path):
        """Environment switches should enable skip/force."""
        settings = Settings(docs_dir=tmp_path, skip_api_docs=True, force_api_docs=True)
        options = BuildOptions.from_settings(settings)
        assert options.skip_api is True
        assert options.force is True

    def test_cli_flags_kept(self, tmp_path):
        """CLI flags should apply when the environment is silent."""
        settings = Settings(docs_dir=tmp_path)
        options = BuildOptions.from_settings(settings, parallel=True, serve=True)
        assert options.parallel is True
        assert options.serve is True
        assert options.skip_api is False


class TestRunStep:
    """Tests for run_step function."""

    def test_success(self, tmp_path):
        """A zero exit should return quietly."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            run_step(BuildStep.BUILD, ["npm", "run", "build"], tmp_path)
            assert mock_run.call_args.kwargs["cwd"] == tmp_path

    def test_failure_carries_exit_code(self, tmp_path):
        """A non-zero exit should raise with the step and code."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=7)
            with pytest.raises(BuildStepError) as exc_info:
                run_step(BuildStep.BUILD, ["npm", "run", "build"], tmp_path)

        assert exc_info.value.step is BuildStep.BUILD
        assert exc_info.value.exit_code == 7
        assert exc_info.value.code == "build_step_failed"

    def test_spawn_error(self, tmp_path):
        """A missing executable should raise BuildStepError."""
        with patch("subprocess.run", side_effect=FileNotFoundError("npm")):
            with pytest.raises(BuildStepError) as exc_info:
                run_step(BuildStep.INSTALL, ["npm", "ci"], tmp_path)
        assert exc_info.value.exit_code == 1


class TestNeedsInstall:
    """Tests for needs_install function."""

    def test_missing_node_modules(self, tmp_path):
        """Should install when node_modules is absent."""
        assert needs_install(tmp_path) is True

    def test_present_node_modules(self, tmp_path):
        """Should not install when node_modules exists."""
        (tmp_path / "node_modules").mkdir()
        assert needs_install(tmp_path) is False


class TestBuildSite:
    """Tests for build_site function."""

    def test_default_sequence(self, settings):
        """Up-to-date API docs should go straight to sync and build."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            report = build_site(BuildOptions(), settings)

        assert _npm_calls(mock_run) == [["run", "sync-files"], ["run", "build"]]
        assert report.completed_steps == [
            BuildStep.INSTALL,
            BuildStep.GENERATE_API_DOCS,
            BuildStep.SYNC_FILES,
            BuildStep.BUILD,
        ]
        assert report.generation is not None
        assert report.output_dir == settings.docs_dir / "build"

    def test_installs_when_node_modules_missing(self, settings):
        """npm ci should run first when dependencies are missing."""
        (settings.docs_dir / "node_modules").rmdir()
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            build_site(BuildOptions(skip_api=True), settings)

        assert _npm_calls(mock_run)[0] == ["ci"]

    def test_force_regenerates_then_builds(self, settings):
        """Force should run gen-api-docs for every spec before building."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            build_site(BuildOptions(force=True), settings)

        calls = _npm_calls(mock_run)
        assert calls[:3] == [
            ["run", "docusaurus", "gen-api-docs", "stable"],
            ["run", "docusaurus", "gen-api-docs", "experimental"],
            ["run", "docusaurus", "gen-api-docs", "deprecated"],
        ]
        assert calls[3:] == [["run", "sync-files"], ["run", "build"]]

    def test_skip_api(self, settings):
        """skip_api should leave API generation out entirely."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            report = build_site(BuildOptions(skip_api=True, force=True), settings)

        assert BuildStep.GENERATE_API_DOCS not in report.completed_steps
        assert report.generation is None
        assert _npm_calls(mock_run) == [["run", "sync-files"], ["run", "build"]]

    def test_serve(self, settings):
        """serve should start the local server after the build."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)
            report = build_site(BuildOptions(serve=True), settings)

        assert _npm_calls(mock_run)[-1] == ["run", "serve"]
        assert report.completed_steps[-1] is BuildStep.SERVE

    def test_generation_failure_halts(self, settings):
        """A failed generation should stop before syncing files."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=1)
            with pytest.raises(BuildStepError) as exc_info:
                build_site(BuildOptions(force=True), settings)

        assert exc_info.value.step is BuildStep.GENERATE_API_DOCS
        assert ["run", "sync-files"] not in _npm_calls(mock_run)

    def test_build_failure_halts(self, settings):
        """A failed build should stop before serving."""

        def fake_run(cmd, **kwargs):
            return MagicMock(returncode=2 if cmd[-1] == "build" else 0)

        with patch("subprocess.run", side_effect=fake_run) as mock_run:
            with pytest.raises(BuildStepError) as exc_info:
                build_site(BuildOptions(serve=True), settings)

        assert exc_info.value.step is BuildStep.BUILD
        assert exc_info.value.exit_code == 2
        assert ["run", "serve"] not in _npm_calls(mock_run)

    def test_missing_docs_dir(self, tmp_path):
        """A missing docs directory should fail before running anything."""
        settings = Settings(docs_dir=tmp_path / "missing")
        with patch("subprocess.run") as mock_run:
            with pytest.raises(BuildStepError):
                build_site(BuildOptions(), settings)
            mock_run.assert_not_called()
