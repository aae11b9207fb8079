"""Termination of externally started containers, with optional log capture.

The container runtime is treated as an opaque CLI. This module issues at most
three kinds of command against a container name:

- ``logs``: fetch everything the container has written so far
- ``stop --time N``: graceful stop; the runtime escalates after N seconds
- ``kill``: immediate, non-graceful stop

When a log directory is configured, the logs are fetched and written to
``<log_dir>/<container>.log`` strictly before any termination command runs,
so the log file is a forensic record of the container as it was when the
test finished.

Failures are fatal to the calling test: the first failing step fails the
test through ``pytest.fail`` with the command's combined output in the
message. There are no retries and no partial-success path.
"""

import asyncio
import contextlib
from pathlib import Path

import pytest
from loguru import logger

from src.core.config import Settings, get_settings
from src.core.constants import LOG_FILE_MODE, LOG_FILE_SUFFIX
from src.core.exceptions import ContainerCommandError


def container_log_path(log_dir: str | Path, container_name: str) -> Path:
    """Return the path the logs of ``container_name`` are written to."""
    return Path(log_dir) / f"{container_name}{LOG_FILE_SUFFIX}"


async def run_runtime_command(*args: str, settings: Settings | None = None) -> bytes:
    """Run the container runtime CLI and return its combined output.

    stdout and stderr share one pipe so the output interleaves the way it
    would on a terminal. There is no internal timeout; callers bound the
    command with their own ``asyncio.timeout`` or by cancelling the task.

    Args:
        *args: Arguments passed to the runtime binary.
        settings: Settings override; defaults to the cached settings.

    Returns:
        bytes: Combined stdout and stderr of the command.

    Raises:
        ContainerCommandError: If the command cannot be started or exits non-zero.
    """
    settings = settings or get_settings()
    command = [settings.container_config.runtime_binary, *args]

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
    except OSError as e:
        raise ContainerCommandError(command, None, str(e).encode(), cause=e) from e

    try:
        output, _ = await process.communicate()
    except asyncio.CancelledError:
        # Do not leave the runtime CLI running behind a cancelled test
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise

    if process.returncode != 0:
        raise ContainerCommandError(command, process.returncode, output or b"")

    return output or b""


async def _write_logs(
    container_name: str, log_dir: str, settings: Settings
) -> Path | None:
    if not log_dir:
        return None

    try:
        output = await run_runtime_command("logs", container_name, settings=settings)
    except ContainerCommandError as e:
        pytest.fail(
            f"unable to fetch container log {container_name}: {e}: {e.output_text}",
            pytrace=False,
        )

    log_path = container_log_path(log_dir, container_name)
    try:
        log_path.write_bytes(output)
        log_path.chmod(LOG_FILE_MODE)
    except OSError as e:
        pytest.fail(f"unable to write container log {log_path}: {e}", pytrace=False)

    logger.info(
        "Captured container logs",
        container_name=container_name,
        log_path=str(log_path),
        size=len(output),
    )
    return log_path


async def terminate_container(
    container_name: str,
    log_dir: str = "",
    *,
    kill: bool = False,
    settings: Settings | None = None,
) -> None:
    """Terminate a running container, capturing its logs first if asked.

    Args:
        container_name: Runtime name of the container. An empty name is a
            no-op, which suits fixtures that only sometimes start a container.
        log_dir: Absolute directory for ``<container_name>.log``; empty skips
            log capture.
        kill: Use the runtime's immediate kill instead of a graceful stop.
        settings: Settings override; defaults to the cached settings.

    Note:
        Any failure fails the calling test via ``pytest.fail``. Calling this
        twice for the same container is up to the runtime, which usually
        reports an error for a container that no longer exists.
    """
    if not container_name:
        return

    settings = settings or get_settings()

    await _write_logs(container_name, log_dir, settings)

    if kill:
        args = ["kill", container_name]
    else:
        grace = settings.container_config.stop_grace_period_seconds
        args = ["stop", "--time", str(grace), container_name]

    try:
        await run_runtime_command(*args, settings=settings)
    except ContainerCommandError as e:
        pytest.fail(
            f"unable to terminate container {container_name}: {e}: {e.output_text}",
            pytrace=False,
        )

    logger.info("Terminated container", container_name=container_name, kill=kill)
