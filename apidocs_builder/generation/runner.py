"""Generation runner for the site generator's gen-api-docs command.

This module handles:
- Composing the per-spec `npm run docusaurus gen-api-docs` command
- Running generations one at a time with subprocess.run
- Launching generations concurrently as Popen task handles and joining them

Generator output goes to the inherited stdout/stderr unless a stdout target
is given. There is no timeout: a hung generator hangs the run.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any, Union

logger = logging.getLogger(__name__)

# Seconds between exit checks while joining parallel generations
POLL_INTERVAL = 0.1

# Where generator stdout goes; None inherits ours
OutputTarget = Union[int, IO[Any], None]


@dataclass
class GenerationResult:
    """Result of one spec generation.

    Attributes:
        spec_name: Spec that was generated.
        success: Whether the generator exited with code 0.
        exit_code: Process exit code (None if the process never started).
        duration: Wall-clock seconds.
        command: The command that was executed.
        error_message: Error message if generation failed.
    """

    spec_name: str
    success: bool
    exit_code: int | None
    duration: float
    command: str
    error_message: str | None = None


@dataclass
class GenerationTask:
    """Handle for a generation launched in parallel mode.

    Attributes:
        spec_name: Spec being generated.
        command: The command that was launched.
        started: time.monotonic() at launch.
        process: Running process, or None if launching failed.
        launch_error: Error message if launching failed.
    """

    spec_name: str
    command: str
    started: float
    process: subprocess.Popen[bytes] | None = None
    launch_error: str | None = None


def compose_generate_command(spec_name: str, npm_command: str = "npm") -> list[str]:
    """Compose the gen-api-docs command for one spec.

    Args:
        spec_name: Spec name understood by the generator plugin.
        npm_command: npm executable.

    Returns:
        Command as list of strings suitable for subprocess.
    """
    return [npm_command, "run", "docusaurus", "gen-api-docs", spec_name]


def _finish(
    spec_name: str,
    command: str,
    started: float,
    exit_code: int | None,
    error_message: str | None = None,
) -> GenerationResult:
    duration = time.monotonic() - started
    success = exit_code == 0 and error_message is None
    if success:
        logger.info("Completed %s in %.1fs", spec_name, duration)
    else:
        if error_message is None:
            error_message = f"Generation failed with exit code {exit_code}"
        logger.error(
            "Failed to generate %s (exit code: %s): %s",
            spec_name,
            exit_code,
            error_message,
        )
    return GenerationResult(
        spec_name=spec_name,
        success=success,
        exit_code=exit_code,
        duration=duration,
        command=command,
        error_message=None if success else error_message,
    )


def run_generation(
    spec_name: str,
    docs_dir: Path,
    npm_command: str = "npm",
    stdout: OutputTarget = None,
) -> GenerationResult:
    """Generate API docs for one spec and wait for it.

    Args:
        spec_name: Spec to generate.
        docs_dir: Documentation root (working directory of the generator).
        npm_command: npm executable.
        stdout: Where generator stdout goes (None inherits ours).

    Returns:
        GenerationResult; a process that cannot be started is a failure.
    """
    cmd = compose_generate_command(spec_name, npm_command)
    cmd_str = shlex.join(cmd)
    logger.info("Generating API docs for: %s", spec_name)
    logger.debug("Executing: %s (cwd=%s)", cmd_str, docs_dir)

    started = time.monotonic()
    try:
        result = subprocess.run(cmd, cwd=docs_dir, stdout=stdout, check=False)
    except OSError as e:
        return _finish(spec_name, cmd_str, started, None, f"Failed to execute: {e}")
    return _finish(spec_name, cmd_str, started, result.returncode)


def start_generation(
    spec_name: str,
    docs_dir: Path,
    npm_command: str = "npm",
    stdout: OutputTarget = None,
) -> GenerationTask:
    """Launch generation for one spec without waiting for it.

    Args:
        spec_name: Spec to generate.
        docs_dir: Documentation root (working directory of the generator).
        npm_command: npm executable.
        stdout: Where generator stdout goes (None inherits ours).

    Returns:
        GenerationTask handle to pass to wait_all().
    """
    cmd = compose_generate_command(spec_name, npm_command)
    cmd_str = shlex.join(cmd)
    logger.info("Generating API docs for: %s", spec_name)
    logger.debug("Launching: %s (cwd=%s)", cmd_str, docs_dir)

    task = GenerationTask(
        spec_name=spec_name,
        command=cmd_str,
        started=time.monotonic(),
    )
    try:
        task.process = subprocess.Popen(cmd, cwd=docs_dir, stdout=stdout)
    except OSError as e:
        task.launch_error = f"Failed to execute: {e}"
    return task


def _terminate(tasks: list[GenerationTask]) -> None:
    for task in tasks:
        if task.process is not None and task.process.poll() is None:
            logger.warning("Terminating unfinished generation for %s", task.spec_name)
            task.process.terminate()
            task.process.wait()


def wait_all(tasks: list[GenerationTask]) -> list[GenerationResult]:
    """Block until every task has exited.

    Each process is polled so its result is timed when that process
    exits, not when the join reaches it. If the wait is interrupted,
    processes still running are terminated and reaped.

    Args:
        tasks: Handles returned by start_generation().

    Returns:
        One GenerationResult per task, in the same order.
    """
    results: dict[int, GenerationResult] = {}
    pending = list(enumerate(tasks))
    try:
        while pending:
            still_running: list[tuple[int, GenerationTask]] = []
            for index, task in pending:
                if task.process is None:
                    results[index] = _finish(
                        task.spec_name,
                        task.command,
                        task.started,
                        None,
                        task.launch_error,
                    )
                    continue
                exit_code = task.process.poll()
                if exit_code is None:
                    still_running.append((index, task))
                    continue
                results[index] = _finish(
                    task.spec_name, task.command, task.started, exit_code
                )
            pending = still_running
            if pending:
                time.sleep(POLL_INTERVAL)
    finally:
        _terminate([task for _, task in pending])
    return [results[index] for index in range(len(tasks))]


def run_generations(
    spec_names: list[str],
    docs_dir: Path,
    npm_command: str = "npm",
    parallel: bool = False,
    stdout: OutputTarget = None,
) -> list[GenerationResult]:
    """Generate API docs for several specs.

    Parallel mode only applies when more than one spec is pending. In
    sequential mode a failure does not stop the remaining specs.

    Args:
        spec_names: Specs to generate, in order.
        docs_dir: Documentation root.
        npm_command: npm executable.
        parallel: Launch all generations at once and join them.
        stdout: Where generator stdout goes (None inherits ours).

    Returns:
        One GenerationResult per spec, in input order.
    """
    if parallel and len(spec_names) > 1:
        logger.info("Running in parallel mode...")
        tasks = [
            start_generation(name, docs_dir, npm_command, stdout)
            for name in spec_names
        ]
        return wait_all(tasks)

    return [
        run_generation(name, docs_dir, npm_command, stdout) for name in spec_names
    ]


__all__ = [
    "POLL_INTERVAL",
    "GenerationResult",
    "GenerationTask",
    "OutputTarget",
    "compose_generate_command",
    "run_generation",
    "run_generations",
    "start_generation",
    "wait_all",
]
