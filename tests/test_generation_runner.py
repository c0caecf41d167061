"""Tests for generation/runner.py module.

Tests gen-api-docs command composition and execution.
Uses mocked subprocess for execution tests.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from apidocs_builder.generation.runner import (
    GenerationResult,
    GenerationTask,
    compose_generate_command,
    run_generation,
    run_generations,
    start_generation,
    wait_all,
)


def _popen_by_spec(exit_codes: dict[str, int]):
    """Return a Popen side effect whose processes exit with the code per spec."""

    def factory(cmd, **kwargs):
        process = MagicMock()
        process.poll.return_value = exit_codes[cmd[-1]]
        process.wait.return_value = exit_codes[cmd[-1]]
        return process

    return factory


class TestComposeGenerateCommand:
    """Tests for compose_generate_command function."""

    def test_default_npm(self):
        """Should run the docusaurus gen-api-docs script for the spec."""
        assert compose_generate_command("stable") == [
            "npm",
            "run",
            "docusaurus",
            "gen-api-docs",
            "stable",
        ]

    def test_custom_npm(self):
        """Should use the configured npm executable."""
        cmd = compose_generate_command("experimental", npm_command="/opt/bin/npm")
        assert cmd[0] == "/opt/bin/npm"
        assert cmd[-1] == "experimental"


class TestRunGeneration:
    """Tests for run_generation function with mocked subprocess."""

    def test_success(self, tmp_path):
        """Should report success for exit code 0."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)

            result = run_generation("stable", tmp_path)

            assert isinstance(result, GenerationResult)
            assert result.success is True
            assert result.exit_code == 0
            assert result.error_message is None
            assert result.command == "npm run docusaurus gen-api-docs stable"
            assert mock_run.call_args.kwargs["cwd"] == tmp_path

    def test_failure(self, tmp_path):
        """Should report failure for a non-zero exit code."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=2)

            result = run_generation("stable", tmp_path)

            assert result.success is False
            assert result.exit_code == 2
            assert "exit code 2" in result.error_message

    def test_spawn_error(self, tmp_path):
        """A missing executable should be a failed result, not a crash."""
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = FileNotFoundError("npm")

            result = run_generation("stable", tmp_path)

            assert result.success is False
            assert result.exit_code is None
            assert "Failed to execute" in result.error_message

    def test_stdout_target(self, tmp_path):
        """A stdout target should be handed to the generator process."""
        with patch("subprocess.run") as mock_run:
            mock_run.return_value = MagicMock(returncode=0)

            run_generation("stable", tmp_path, stdout=subprocess.DEVNULL)

            assert mock_run.call_args.kwargs["stdout"] == subprocess.DEVNULL


class TestParallelTasks:
    """Tests for start_generation and wait_all."""

    def test_start_does_not_wait(self, tmp_path):
        """start_generation should launch without joining."""
        with patch("subprocess.Popen") as mock_popen:
            task = start_generation("stable", tmp_path)

            mock_popen.assert_called_once()
            task.process.wait.assert_not_called()
            assert task.spec_name == "stable"

    def test_wait_all_collects_results_in_order(self, tmp_path):
        """wait_all should join every task and keep launch order."""
        codes = {"stable": 0, "experimental": 1, "deprecated": 0}
        with patch("subprocess.Popen", side_effect=_popen_by_spec(codes)):
            tasks = [start_generation(name, tmp_path) for name in codes]
            results = wait_all(tasks)

        assert [r.spec_name for r in results] == list(codes)
        assert [r.success for r in results] == [True, False, True]
        for task in tasks:
            task.process.poll.assert_called()
            task.process.terminate.assert_not_called()

    def test_wait_all_times_each_process_at_its_exit(self, tmp_path):
        """A fast spec should not inherit the duration of a slow one ahead of it."""
        slow = MagicMock()
        slow.poll.side_effect = [None, None, 0]
        fast = MagicMock()
        fast.poll.return_value = 0
        tasks = [
            GenerationTask("stable", "npm stable", started=0.0, process=slow),
            GenerationTask(
                "experimental", "npm experimental", started=0.0, process=fast
            ),
        ]

        with patch("apidocs_builder.generation.runner.time") as mock_time:
            mock_time.monotonic.side_effect = [1.0, 5.0]
            results = wait_all(tasks)

        assert [r.spec_name for r in results] == ["stable", "experimental"]
        assert results[0].duration == 5.0
        assert results[1].duration == 1.0
        assert mock_time.sleep.call_count == 2
        slow.wait.assert_not_called()

    def test_wait_all_interrupted_terminates_running(self, tmp_path):
        """Ctrl-C during the join should terminate and reap unfinished processes."""
        processes = [MagicMock(), MagicMock()]
        for process in processes:
            process.poll.return_value = None
        tasks = [
            GenerationTask(name, f"npm {name}", started=0.0, process=process)
            for name, process in zip(["stable", "experimental"], processes)
        ]

        with patch("apidocs_builder.generation.runner.time") as mock_time:
            mock_time.sleep.side_effect = KeyboardInterrupt
            with pytest.raises(KeyboardInterrupt):
                wait_all(tasks)

        for process in processes:
            process.terminate.assert_called_once()
            process.wait.assert_called_once()

    def test_start_passes_stdout_target(self, tmp_path):
        """start_generation should hand the stdout target to Popen."""
        with patch("subprocess.Popen") as mock_popen:
            start_generation("stable", tmp_path, stdout=subprocess.DEVNULL)

        assert mock_popen.call_args.kwargs["stdout"] == subprocess.DEVNULL

    def test_launch_error(self, tmp_path):
        """A task that never started should be a failed result."""
        with patch("subprocess.Popen", side_effect=OSError("no npm")):
            task = start_generation("stable", tmp_path)
            results = wait_all([task])

        assert task.process is None
        assert results[0].success is False
        assert "no npm" in results[0].error_message


class TestRunGenerations:
    """Tests for run_generations function."""

    def test_sequential_runs_every_spec(self, tmp_path):
        """A failure should not stop later specs in sequential mode."""
        with patch("subprocess.run") as mock_run:
            mock_run.side_effect = [
                MagicMock(returncode=1),
                MagicMock(returncode=0),
            ]

            results = run_generations(["stable", "experimental"], tmp_path)

            assert mock_run.call_count == 2
            assert [r.success for r in results] == [False, True]

    def test_parallel_uses_popen(self, tmp_path):
        """Parallel mode should launch every spec before joining."""
        codes = {"stable": 0, "experimental": 0}
        with (
            patch("subprocess.Popen", side_effect=_popen_by_spec(codes)) as mock_popen,
            patch("subprocess.run") as mock_run,
        ):
            results = run_generations(list(codes), tmp_path, parallel=True)

            assert mock_popen.call_count == 2
            mock_run.assert_not_called()
            assert all(r.success for r in results)

    def test_parallel_single_spec_runs_sequentially(self, tmp_path):
        """Parallel mode should not apply to a single pending spec."""
        with (
            patch("subprocess.Popen") as mock_popen,
            patch("subprocess.run") as mock_run,
        ):
            mock_run.return_value = MagicMock(returncode=0)

            results = run_generations(["stable"], tmp_path, parallel=True)

            mock_popen.assert_not_called()
            assert results[0].success is True
