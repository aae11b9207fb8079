"""Shared fixtures for integration tests.

These fixtures drive a real container runtime. Every test that requests
``postgres_container`` is skipped when docker is not installed or the daemon
is not reachable.
"""

import asyncio
import shutil
import socket
import subprocess
import uuid
from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from loguru import logger

from src.core.config import Settings
from src.core.exceptions import PoolConnectError
from src.infrastructure.database.readiness import create_pg_pool
from src.testing.scope import CleanupScope
from tests.integration.containers import PostgresContainer

POSTGRES_IMAGE = "postgres:16-alpine"
STARTUP_TIMEOUT_SECONDS = 60


def _docker_available() -> bool:
    """Check that the docker CLI exists and its daemon answers."""
    if shutil.which("docker") is None:
        return False
    result = subprocess.run(
        ["docker", "info"],
        capture_output=True,
        check=False,
    )
    return result.returncode == 0


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return int(sock.getsockname()[1])


async def _wait_for_postgres(
    container: PostgresContainer, settings: Settings
) -> bool:
    """Probe the container until it answers or the startup timeout passes.

    Args:
        container: The container to probe.
        settings: Harness settings used for each probe.

    Returns:
        bool: True once a probe succeeded, False on timeout.
    """
    loop = asyncio.get_running_loop()
    give_up_at = loop.time() + STARTUP_TIMEOUT_SECONDS
    last_error: PoolConnectError | None = None

    while loop.time() < give_up_at:
        try:
            async with CleanupScope() as scope:
                await create_pg_pool(
                    scope,
                    container.username,
                    container.password,
                    container.port,
                    settings=settings,
                )
        except PoolConnectError as e:
            last_error = e
            await asyncio.sleep(1)
        else:
            return True

    if last_error:
        logger.warning("Last error while waiting for postgres: {}", last_error)
    return False


@pytest.fixture(scope="session")
def docker_required() -> None:
    """Skip the requesting test when no container runtime is usable."""
    if not _docker_available():
        pytest.skip("docker is not available")


@pytest_asyncio.fixture
async def postgres_container(
    docker_required: None, harness_settings: Settings
) -> AsyncGenerator[PostgresContainer]:
    """Start a disposable postgres container and wait until it is ready."""
    del docker_required
    container = PostgresContainer(
        name=f"harness-it-{uuid.uuid4().hex[:12]}",
        port=_free_port(),
        username="postgres",
        password="harness_pass",
    )

    result = subprocess.run(
        [
            "docker",
            "run",
            "--detach",
            "--rm",
            "--name",
            container.name,
            "--env",
            f"POSTGRES_PASSWORD={container.password}",
            "--publish",
            f"127.0.0.1:{container.port}:5432",
            POSTGRES_IMAGE,
        ],
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        pytest.fail(f"Failed to start postgres container: {result.stderr}")

    try:
        if not await _wait_for_postgres(container, harness_settings):
            pytest.fail(
                f"postgres container did not become ready in {STARTUP_TIMEOUT_SECONDS}s"
            )
        yield container
    finally:
        # Tests normally terminate the container themselves
        subprocess.run(
            ["docker", "rm", "--force", container.name],
            capture_output=True,
            check=False,
        )
